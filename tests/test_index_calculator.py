"""Tests for the intrinsic index calculator."""

import pytest
from dateutil.relativedelta import relativedelta

from creditlib.curves import IsdaCreditCurve
from creditlib.index import CdsIndexCalculator, IntrinsicIndexDataBundle
from creditlib.pricing import AnalyticCdsPricer

COUPON = 0.01


@pytest.fixture
def calculator() -> CdsIndexCalculator:
    return CdsIndexCalculator()


def test_index_pv_is_weighted_single_name_pv(calculator, index_cds, yield_curve, bundle) -> None:
    pricer = AnalyticCdsPricer()
    expected = sum(
        bundle.weight(i)
        * pricer.pv(
            index_cds.with_recovery_rate(1.0 - bundle.lgd(i)),
            yield_curve,
            bundle.credit_curve(i),
            COUPON,
        )
        for i in range(bundle.index_size)
    )
    assert calculator.index_pv(index_cds, COUPON, yield_curve, bundle) == pytest.approx(
        expected, abs=1e-15
    )


def test_index_puf_is_per_remaining_notional(calculator, index_cds, yield_curve, bundle) -> None:
    defaulted = bundle.with_default(2)
    pv = calculator.index_pv(index_cds, COUPON, yield_curve, defaulted)
    puf = calculator.index_puf(index_cds, COUPON, yield_curve, defaulted)
    assert puf == pytest.approx(pv / defaulted.index_factor, rel=1e-15)
    # dropping the riskiest name lowers the value of protection
    worst = bundle.with_default(4)
    assert calculator.index_pv(index_cds, COUPON, yield_curve, worst) < calculator.index_pv(
        index_cds, COUPON, yield_curve, bundle
    )


def test_intrinsic_spread_zeroes_the_index(calculator, index_cds, yield_curve, bundle) -> None:
    spread = calculator.intrinsic_index_spread(index_cds, yield_curve, bundle)
    assert calculator.index_pv(index_cds, spread, yield_curve, bundle) == pytest.approx(
        0.0, abs=1e-15
    )
    average = calculator.average_spread(index_cds, yield_curve, bundle)
    assert average != pytest.approx(spread, abs=1e-8)
    assert average == pytest.approx(spread, rel=0.1)


def test_homogeneous_index_matches_single_name(calculator, index_cds, yield_curve) -> None:
    curve = IsdaCreditCurve([1.0, 5.0], [0.01, 0.02])
    bundle = IntrinsicIndexDataBundle([curve] * 4, [0.4] * 4)
    single = AnalyticCdsPricer().par_spread(index_cds, yield_curve, curve)
    assert calculator.intrinsic_index_spread(index_cds, yield_curve, bundle) == pytest.approx(
        single, rel=1e-14
    )
    assert calculator.average_spread(index_cds, yield_curve, bundle) == pytest.approx(
        single, rel=1e-14
    )


def test_expected_default_settlement_value(calculator, bundle) -> None:
    defaulted = bundle.with_default(1)
    assert calculator.expected_default_settlement_value(0.0, defaulted) == pytest.approx(
        bundle.weight(1) * bundle.lgd(1)
    )
    later = calculator.expected_default_settlement_value(2.0, defaulted)
    assert later > calculator.expected_default_settlement_value(1.0, defaulted)


def test_jump_to_default(calculator, index_cds, yield_curve, bundle) -> None:
    defaulted = bundle.with_default(0)
    values = calculator.jump_to_default_all(index_cds, COUPON, yield_curve, defaulted)
    assert values[0] == 0.0
    pricer = AnalyticCdsPricer()
    pv = pricer.pv(index_cds, yield_curve, bundle.credit_curve(3), COUPON)
    assert values[3] == pytest.approx(bundle.weight(3) * (bundle.lgd(3) - pv), abs=1e-15)
    assert all(v > 0.0 for v in values[1:])
    with pytest.raises(ValueError, match="already defaulted"):
        calculator.jump_to_default(index_cds, COUPON, yield_curve, defaulted, 0)


def test_fully_defaulted_index(calculator, index_cds, yield_curve, bundle) -> None:
    gone = bundle.with_default(0, 1, 2, 3, 4)
    assert calculator.index_pv(index_cds, COUPON, yield_curve, gone) == 0.0
    with pytest.raises(ValueError, match="Every name"):
        calculator.index_puf(index_cds, COUPON, yield_curve, gone)
    with pytest.raises(ValueError, match="Every name"):
        calculator.intrinsic_index_spread(index_cds, yield_curve, gone)


def test_implied_index_curve_reprices_intrinsic_upfronts(
    calculator, factory, trade_date, yield_curve, bundle
) -> None:
    index_cds_list = factory.make_imm_cds_series(trade_date, ["3Y", "5Y", "7Y"])
    curve = calculator.implied_index_curve(index_cds_list, COUPON, yield_curve, bundle)
    pricer = AnalyticCdsPricer()
    for cds in index_cds_list:
        target = calculator.index_puf(cds, COUPON, yield_curve, bundle)
        assert pricer.pv(cds, yield_curve, curve, COUPON) == pytest.approx(target, abs=1e-12)


@pytest.fixture
def forward_index_cds(factory, trade_date):
    return factory.make_forward_starting_cdx(trade_date, trade_date + relativedelta(months=3), "5Y")


def test_default_adjusted_forward_index_value(
    calculator, forward_index_cds, yield_curve, bundle
) -> None:
    t = forward_index_cds.effective_protection_start
    value = calculator.default_adjusted_forward_index_value(
        forward_index_cds, t, yield_curve, COUPON, bundle
    )
    expected = calculator.index_pv(
        forward_index_cds, COUPON, yield_curve, bundle
    ) + calculator.expected_default_settlement_value(t, bundle)
    assert value == pytest.approx(expected, rel=1e-15)

    spread = calculator.default_adjusted_forward_spread(forward_index_cds, t, yield_curve, bundle)
    at_spread = calculator.default_adjusted_forward_index_value(
        forward_index_cds, t, yield_curve, spread, bundle
    )
    assert at_spread == pytest.approx(0.0, abs=1e-14)
    # expected defaults before expiry push the forward spread above the plain one
    assert spread > calculator.intrinsic_index_spread(forward_index_cds, yield_curve, bundle)


def test_forward_values_from_index_curve_match_homogeneous_bundle(
    calculator, forward_index_cds, yield_curve
) -> None:
    curve = IsdaCreditCurve([1.0, 5.0], [0.01, 0.02])
    bundle = IntrinsicIndexDataBundle([curve] * 4, [0.4] * 4)
    t = forward_index_cds.effective_protection_start

    value = calculator.default_adjusted_forward_index_value(
        forward_index_cds, t, yield_curve, COUPON, bundle
    )
    from_curve = calculator.default_adjusted_forward_index_value_from_curve(
        forward_index_cds, t, yield_curve, COUPON, curve
    )
    assert value == pytest.approx(from_curve, rel=1e-14)
    spread = calculator.default_adjusted_forward_spread(forward_index_cds, t, yield_curve, bundle)
    spread_from_curve = calculator.default_adjusted_forward_spread_from_curve(
        forward_index_cds, t, yield_curve, curve
    )
    assert spread == pytest.approx(spread_from_curve, rel=1e-14)

    # one name has defaulted and settled at 0.6 * 0.25
    defaulted = bundle.with_default(0)
    history = dict(initial_index_size=4, initial_default_settlement=0.15, num_defaults=1)
    value = calculator.default_adjusted_forward_index_value(
        forward_index_cds, t, yield_curve, COUPON, defaulted
    )
    from_curve = calculator.default_adjusted_forward_index_value_from_curve(
        forward_index_cds, t, yield_curve, COUPON, curve, **history
    )
    assert value == pytest.approx(from_curve, rel=1e-14)
    spread = calculator.default_adjusted_forward_spread(
        forward_index_cds, t, yield_curve, defaulted
    )
    spread_from_curve = calculator.default_adjusted_forward_spread_from_curve(
        forward_index_cds, t, yield_curve, curve, **history
    )
    assert spread == pytest.approx(spread_from_curve, rel=1e-14)


def test_forward_value_validation(
    calculator, index_cds, forward_index_cds, yield_curve, bundle
) -> None:
    curve = bundle.credit_curve(0)
    t = forward_index_cds.effective_protection_start
    with pytest.raises(ValueError, match="forward starting"):
        calculator.default_adjusted_forward_index_value(index_cds, t, yield_curve, COUPON, bundle)
    with pytest.raises(ValueError, match="forward starting"):
        calculator.default_adjusted_forward_spread(index_cds, t, yield_curve, bundle)
    with pytest.raises(ValueError, match="non-negative"):
        calculator.default_adjusted_forward_spread(forward_index_cds, -0.1, yield_curve, bundle)
    with pytest.raises(ValueError, match="initial_index_size is needed"):
        calculator.expected_index_curve_settlement_value(t, curve, 0.6, num_defaults=1)
    with pytest.raises(ValueError, match="num_defaults"):
        calculator.expected_index_curve_settlement_value(
            t, curve, 0.6, initial_index_size=4, num_defaults=5
        )
    with pytest.raises(ValueError, match="initial_default_settlement"):
        calculator.expected_index_curve_settlement_value(
            t, curve, 0.6, initial_index_size=4, initial_default_settlement=0.3, num_defaults=1
        )
    with pytest.raises(ValueError, match="lgd"):
        calculator.expected_index_curve_settlement_value(t, curve, 1.2)


def test_ir01(calculator, index_cds, yield_curve, bundle) -> None:
    parallel = calculator.parallel_ir01(index_cds, COUPON, yield_curve, bundle)
    buckets = calculator.bucketed_ir01(index_cds, COUPON, yield_curve, bundle)
    assert len(buckets) == yield_curve.number_of_knots
    assert parallel != 0.0
    assert sum(buckets) == pytest.approx(parallel, rel=1e-2)
    # knots well beyond the index maturity do not move the value
    assert buckets[-1] == 0.0


def test_recovery01(calculator, index_cds, yield_curve, bundle, constituent_curves) -> None:
    pricer = AnalyticCdsPricer()
    unit_lgd = index_cds.with_recovery_rate(0.0)
    sensitivities = calculator.recovery01(index_cds, yield_curve, bundle)
    for i, value in enumerate(sensitivities):
        expected = -bundle.weight(i) * pricer.protection_leg(
            unit_lgd, yield_curve, bundle.credit_curve(i)
        )
        assert value == pytest.approx(expected, rel=1e-15)
        assert value < 0.0

    # the index value is linear in each recovery rate
    bumped = IntrinsicIndexDataBundle(
        constituent_curves, [0.4, 0.4, 0.36, 0.4, 0.25], list(bundle.weights)
    )
    change = calculator.index_pv(index_cds, COUPON, yield_curve, bumped) - calculator.index_pv(
        index_cds, COUPON, yield_curve, bundle
    )
    assert change == pytest.approx(0.01 * sensitivities[2], rel=1e-10)

    defaulted = calculator.recovery01(index_cds, yield_curve, bundle.with_default(1))
    assert defaulted[1] == 0.0
    assert defaulted[0] == sensitivities[0]
