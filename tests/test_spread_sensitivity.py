"""Tests for finite-difference CS01."""

from dataclasses import dataclass

import pytest

from creditlib.calibration import MarketQuoteConverter, SpreadSensitivityCalculator
from creditlib.conventions import FiniteDifferenceType, PriceType, ShiftType
from creditlib.instruments import CdsQuote, ParSpread, PointsUpFront, QuotedSpread

SPREADS = [0.006, 0.008, 0.011, 0.013, 0.015, 0.016]
COUPON = 0.01
ONE_BP = 1e-4


@dataclass(frozen=True)
class _IndicativeQuote(CdsQuote):
    level: float

    @property
    def coupon(self) -> float:
        return self.level


@pytest.fixture
def calculator() -> SpreadSensitivityCalculator:
    return SpreadSensitivityCalculator()


@pytest.fixture
def cds(pillar_cds):
    return pillar_cds[3]


def test_shift_types() -> None:
    assert ShiftType.ABSOLUTE.apply(0.01, 1e-4) == pytest.approx(0.0101, abs=1e-16)
    assert ShiftType.RELATIVE.apply(0.01, 0.1) == pytest.approx(0.011, abs=1e-16)


def test_par_spread_cs01_is_the_annuity(calculator, cds, yield_curve) -> None:
    cs01 = calculator.parallel_cs01(cds, ParSpread(0.013), yield_curve)
    curve = calculator.calibrator.calibrate_flat(cds, ParSpread(0.013), yield_curve)
    assert cs01 == pytest.approx(calculator.pricer.annuity(cds, yield_curve, curve), rel=1e-2)
    assert calculator.parallel_cs01_from_spread(
        cds, 0.013, yield_curve, 0.013
    ) == pytest.approx(cs01, rel=1e-14)


def test_quoted_spread_and_upfront_cs01_agree(calculator, cds, yield_curve) -> None:
    puf = MarketQuoteConverter().quoted_spread_to_puf(cds, COUPON, yield_curve, 0.013)
    from_quoted = calculator.parallel_cs01(cds, QuotedSpread(COUPON, 0.013), yield_curve)
    from_puf = calculator.parallel_cs01(cds, PointsUpFront(COUPON, puf), yield_curve)
    assert from_quoted > 0.0
    assert from_puf == pytest.approx(from_quoted, rel=1e-3)
    assert calculator.parallel_cs01_from_quoted_spread(
        cds, COUPON, yield_curve, cds, 0.013
    ) == pytest.approx(from_quoted, rel=1e-14)


def test_relative_shift_scales_with_spread(calculator, cds, yield_curve) -> None:
    relative = calculator.parallel_cs01_from_spread(
        cds, COUPON, yield_curve, 0.013, bump=0.01, shift_type=ShiftType.RELATIVE
    )
    absolute = calculator.parallel_cs01_from_spread(cds, COUPON, yield_curve, 0.013, bump=1.3e-4)
    assert relative == pytest.approx(0.013 * absolute, rel=1e-6)


def test_pillar_quotes_match_par_spreads(calculator, cds, pillar_cds, yield_curve) -> None:
    quotes = [ParSpread(s) for s in SPREADS]
    from_quotes = calculator.parallel_cs01_from_pillar_quotes(
        cds, COUPON, yield_curve, pillar_cds, quotes
    )
    from_spreads = calculator.parallel_cs01_from_par_spreads(
        cds, COUPON, yield_curve, pillar_cds, SPREADS
    )
    assert from_quotes == pytest.approx(from_spreads, rel=1e-10)

    buckets = calculator.bucketed_cs01_from_pillar_quotes(
        cds, COUPON, yield_curve, pillar_cds, quotes
    )
    spread_buckets = calculator.bucketed_cs01_from_par_spreads(
        cds, COUPON, yield_curve, pillar_cds, SPREADS
    )
    assert buckets == pytest.approx(spread_buckets, rel=1e-10, abs=1e-12)


def test_bucketed_sums_to_parallel(calculator, cds, pillar_cds, yield_curve) -> None:
    parallel = calculator.parallel_cs01_from_par_spreads(
        cds, COUPON, yield_curve, pillar_cds, SPREADS
    )
    buckets = calculator.bucketed_cs01_from_par_spreads(
        cds, COUPON, yield_curve, pillar_cds, SPREADS
    )
    assert sum(buckets) == pytest.approx(parallel, rel=2e-2)
    # pillars after the trade maturity do not move its curve
    assert buckets[4] == 0.0
    assert buckets[5] == 0.0
    assert buckets[3] > 0.0


def test_bucketed_from_credit_curve(calculator, pillar_cds, yield_curve) -> None:
    quotes = [ParSpread(s) for s in SPREADS]
    curve = calculator.calibrator.calibrate(pillar_cds, quotes, yield_curve)
    trade = pillar_cds[2]
    buckets = calculator.bucketed_cs01_from_credit_curve(
        trade, COUPON, pillar_cds, yield_curve, curve
    )
    assert len(buckets) == len(pillar_cds)
    assert buckets[3:] == [0.0, 0.0, 0.0]
    parallel = calculator.parallel_cs01_from_credit_curve(
        trade, COUPON, pillar_cds, yield_curve, curve
    )
    assert sum(buckets) == pytest.approx(parallel, rel=2e-2)


def test_bucketed_from_puf(calculator, cds, pillar_cds, yield_curve) -> None:
    puf = MarketQuoteConverter().quoted_spread_to_puf(cds, COUPON, yield_curve, 0.013)
    buckets = calculator.bucketed_cs01_from_puf(
        cds, PointsUpFront(COUPON, puf), yield_curve, pillar_cds
    )
    assert buckets[4:] == [0.0, 0.0]
    parallel = calculator.parallel_cs01_from_puf(cds, COUPON, yield_curve, puf)
    assert sum(buckets) == pytest.approx(parallel, rel=2e-2)


def test_bucketed_from_quoted_spreads(calculator, pillar_cds, yield_curve) -> None:
    trades = [pillar_cds[2], pillar_cds[3]]
    matrix = calculator.bucketed_cs01_from_quoted_spreads(
        trades, COUPON, yield_curve, pillar_cds, SPREADS
    )
    single = calculator.bucketed_cs01_from_quoted_spreads(
        trades[1], COUPON, yield_curve, pillar_cds, SPREADS
    )
    assert len(matrix) == 2
    assert matrix[1] == pytest.approx(single, rel=1e-15, abs=1e-15)
    assert matrix[0][3:] == [0.0, 0.0, 0.0]
    assert single[4:] == [0.0, 0.0]
    assert single[3] > 0.0


def test_bump_quote(calculator, cds, yield_curve) -> None:
    assert calculator.bump_quote(cds, ParSpread(0.01), yield_curve, ONE_BP) == ParSpread(
        0.01 + ONE_BP
    )
    bumped = calculator.bump_quote(cds, QuotedSpread(0.01, 0.013), yield_curve, ONE_BP)
    assert bumped.premium == 0.01
    assert bumped.quoted_spread == pytest.approx(0.0131, abs=1e-16)

    converter = MarketQuoteConverter()
    puf = converter.quoted_spread_to_puf(cds, COUPON, yield_curve, 0.013)
    bumped = calculator.bump_quote(cds, PointsUpFront(COUPON, puf), yield_curve, ONE_BP)
    assert isinstance(bumped, PointsUpFront)
    assert bumped.premium == COUPON
    assert bumped.puf > puf
    assert converter.puf_to_quoted_spread(cds, COUPON, yield_curve, bumped.puf) == pytest.approx(
        0.0131, abs=1e-10
    )

    quotes = calculator.bump_quotes(
        [cds, cds], [ParSpread(0.01), ParSpread(0.02)], yield_curve, ONE_BP
    )
    assert [q.spread for q in quotes] == pytest.approx([0.0101, 0.0201], abs=1e-16)


def test_finite_differences(calculator, cds, pillar_cds, yield_curve) -> None:
    deltas = [ONE_BP] * len(SPREADS)

    def difference(fd_type):
        return calculator.finite_difference_spread_sensitivity(
            cds, COUPON, PriceType.CLEAN, yield_curve, pillar_cds, SPREADS, deltas, fd_type
        )

    central = difference(FiniteDifferenceType.CENTRAL)
    forward = difference(FiniteDifferenceType.FORWARD)
    backward = difference(FiniteDifferenceType.BACKWARD)
    assert forward + backward == pytest.approx(central, abs=1e-14)
    assert forward > 0.0
    assert backward > 0.0
    # a forward difference equals an unscaled parallel CS01
    parallel = calculator.parallel_cs01_from_par_spreads(
        cds, COUPON, yield_curve, pillar_cds, SPREADS
    )
    assert forward == pytest.approx(parallel * ONE_BP, rel=1e-10)


def test_invalid_inputs(calculator, cds, pillar_cds, yield_curve) -> None:
    with pytest.raises(ValueError, match="too small"):
        calculator.parallel_cs01(cds, ParSpread(0.01), yield_curve, bump=1e-12)
    with pytest.raises(ValueError, match="Unknown quote convention"):
        calculator.parallel_cs01(cds, _IndicativeQuote(0.01), yield_curve)
    with pytest.raises(ValueError, match="Unknown quote convention"):
        calculator.bump_quote(cds, _IndicativeQuote(0.01), yield_curve, ONE_BP)
    with pytest.raises(ValueError, match="par spreads"):
        calculator.parallel_cs01_from_par_spreads(
            cds, COUPON, yield_curve, pillar_cds, SPREADS[:-1]
        )

    deltas = [ONE_BP] * len(SPREADS)
    negative = [-s for s in SPREADS]
    with pytest.raises(ValueError, match="must be positive"):
        calculator.finite_difference_spread_sensitivity(
            cds, COUPON, PriceType.CLEAN, yield_curve, pillar_cds, negative, deltas,
            FiniteDifferenceType.FORWARD,
        )
    with pytest.raises(ValueError, match="non-negative"):
        calculator.finite_difference_spread_sensitivity(
            cds, COUPON, PriceType.CLEAN, yield_curve, pillar_cds, SPREADS, [-ONE_BP] * 6,
            FiniteDifferenceType.FORWARD,
        )
    wide = [0.01] * len(SPREADS)
    with pytest.raises(ValueError, match="less than the spread"):
        calculator.finite_difference_spread_sensitivity(
            cds, COUPON, PriceType.CLEAN, yield_curve, pillar_cds, SPREADS, wide,
            FiniteDifferenceType.CENTRAL,
        )
    # a forward difference may move spreads by more than their level
    assert calculator.finite_difference_spread_sensitivity(
        cds, COUPON, PriceType.CLEAN, yield_curve, pillar_cds, SPREADS, wide,
        FiniteDifferenceType.FORWARD,
    ) > 0.0
