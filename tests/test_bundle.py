"""Tests for the index constituent data bundle."""

import pytest

from creditlib.curves import IsdaCreditCurve
from creditlib.index import IntrinsicIndexDataBundle


def test_defaults_to_equal_weights(constituent_curves) -> None:
    bundle = IntrinsicIndexDataBundle(constituent_curves, [0.4] * 5)
    assert bundle.index_size == 5
    assert bundle.weights == pytest.approx([0.2] * 5)
    assert bundle.lgds == pytest.approx([0.6] * 5)
    assert bundle.index_factor == pytest.approx(1.0)
    assert bundle.num_defaults == 0
    assert bundle.alive_indices() == (0, 1, 2, 3, 4)


def test_with_default_reduces_index_factor(bundle) -> None:
    defaulted = bundle.with_default(1)
    assert defaulted.num_defaults == 1
    assert defaulted.is_defaulted(1)
    assert defaulted.credit_curve(1) is None
    assert defaulted.index_factor == pytest.approx(bundle.index_factor - bundle.weight(1))
    assert defaulted.alive_indices() == (0, 2, 3, 4)
    # the original is untouched
    assert bundle.num_defaults == 0
    assert bundle.credit_curve(1) is not None

    more = defaulted.with_default(0, 4)
    assert more.num_defaults == 3
    assert more.index_factor == pytest.approx(0.4)
    assert more.weights == bundle.weights
    assert more.lgds == bundle.lgds


def test_defaults_inferred_from_missing_curves(constituent_curves) -> None:
    curves = list(constituent_curves)
    curves[2] = None
    bundle = IntrinsicIndexDataBundle(curves, [0.4] * 5)
    assert bundle.defaulted == (False, False, True, False, False)
    assert bundle.index_factor == pytest.approx(0.8)


def test_with_credit_curves_keeps_defaults(bundle) -> None:
    defaulted = bundle.with_default(3)
    flat = IsdaCreditCurve([1.0], [0.01])
    replaced = defaulted.with_credit_curves(
        None if curve is None else flat for curve in defaulted.credit_curves
    )
    assert replaced.credit_curve(0) is flat
    assert replaced.credit_curve(3) is None
    assert replaced.index_factor == defaulted.index_factor
    single = bundle.with_credit_curve(2, flat)
    assert single.credit_curve(2) is flat
    assert single.credit_curve(1) is bundle.credit_curve(1)


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"weights": [0.3, 0.3, 0.2, 0.1, 0.2]}, "sum to 1"),
        ({"weights": [0.5, 0.5, 0.2, -0.2, 0.0]}, "positive"),
        ({"weights": [0.5, 0.5]}, "weights"),
        ({"recovery_rates": [0.4, 0.4, 1.2, 0.4, 0.4]}, "Recovery rate"),
        ({"recovery_rates": [0.4]}, "recovery rates"),
        ({"defaulted": [True, False, False, False, False]}, "defaulted but has a credit curve"),
    ],
)
def test_invalid_construction(constituent_curves, kwargs, message) -> None:
    args = {"credit_curves": constituent_curves, "recovery_rates": [0.4] * 5}
    args.update(kwargs)
    with pytest.raises(ValueError, match=message):
        IntrinsicIndexDataBundle(**args)


def test_alive_name_needs_curve(constituent_curves) -> None:
    curves = [None] + list(constituent_curves[1:])
    with pytest.raises(ValueError, match="alive but has no credit curve"):
        IntrinsicIndexDataBundle(curves, [0.4] * 5, defaulted=[False] * 5)
    with pytest.raises(ValueError, match="at least one name"):
        IntrinsicIndexDataBundle([], [])


def test_invalid_defaults(bundle) -> None:
    with pytest.raises(ValueError, match="No names"):
        bundle.with_default()
    with pytest.raises(ValueError, match="repeated"):
        bundle.with_default(1, 1)
    with pytest.raises(ValueError, match="out of range"):
        bundle.with_default(5)
    with pytest.raises(ValueError, match="already defaulted"):
        bundle.with_default(2).with_default(2)
    with pytest.raises(ValueError, match="Expected 5 credit curves"):
        bundle.with_credit_curves(bundle.credit_curves[:3])


def test_to_frame(bundle) -> None:
    frame = bundle.with_default(0).to_frame(horizon=5.0)
    assert list(frame.columns) == ["weight", "lgd", "defaulted", "survival_probability"]
    assert frame.loc[0, "survival_probability"] == 0.0
    assert frame.loc[1, "survival_probability"] == pytest.approx(
        bundle.credit_curve(1).survival_probability(5.0)
    )
    assert "index_factor=0.850000" in repr(bundle.with_default(0))
