"""Tests for ISDA discount curve calibration."""

import logging
import math
from datetime import date

import pytest

from creditlib.calibration import (
    CalibrationConfig,
    DiscountCurveConventions,
    IsdaDiscountCurveCalibrator,
    build_discount_curve,
)
from creditlib.conventions import ACT_360, ACT_365F, BusinessDayAdjustment, get_calendar
from creditlib.instruments import DepositNode, SwapNode
from creditlib.schedule import add_tenor

SPOT_DATE = date(2013, 5, 31)

INSTRUMENTS = [DepositNode(f"{m}M") for m in (1, 2, 3, 6, 9, 12)] + [
    SwapNode(f"{y}Y") for y in (2, 3, 4, 5, 6, 7, 8, 9, 10, 12, 15, 20, 25, 30)
]

RATES = [
    0.00340055550701297, 0.00636929056400781, 0.0102617798438113, 0.0135851258907251,
    0.0162809551414651, 0.020583125112332, 0.0227369218210212, 0.0251978805237614,
    0.0273223815467694, 0.0310882447627048, 0.0358397743454067, 0.036047665095421,
    0.0415916567616181, 0.044066373237682, 0.046708518178509, 0.0491196954851753,
    0.0529297239911766, 0.0562025436376854, 0.0589772202773522, 0.0607471217692999,
]

# Zero rates from the ISDA reference spreadsheet for a 2013-05-31 curve
SAMPLE_TIMES = [
    0.0767123287671233, 0.167123287671233, 0.249315068493151, 0.498630136986301,
    0.747945205479452, 0.997260273972603, 1.4958904109589, 1.99452054794521,
    2.5013698630137, 3.0027397260274, 3.5041095890411, 4.0027397260274, 4.5041095890411,
    5.0027397260274, 5.5041095890411, 6.0027397260274, 6.5013698630137, 7,
    7.50684931506849, 8.00547945205479, 8.50684931506849, 9.00547945205479,
    9.50684931506849, 10.0054794520548, 10.5068493150685, 11.0082191780822,
    11.5068493150685, 12.0054794520548, 12.5041095890411, 13.0027397260274,
    13.5095890410959, 14.0082191780822, 14.5095890410959, 15.0109589041096,
    15.5123287671233, 16.0109589041096, 16.5123287671233, 17.0109589041096,
    17.5095890410959, 18.0082191780822, 18.5068493150685, 19.013698630137,
    19.5150684931507, 20.013698630137, 20.5150684931507, 21.013698630137,
    21.5150684931507, 22.013698630137, 22.5150684931507, 23.013698630137,
    23.5123287671233, 24.0109589041096, 24.5178082191781, 25.0164383561644,
    25.5178082191781, 26.0164383561644, 26.5178082191781, 27.0191780821918,
    27.5205479452055, 28.0191780821918, 28.5178082191781, 29.0164383561644,
    29.5150684931507, 30.013698630137,
]
EXPECTED_ZERO_RATES = [
    0.00344732957665484, 0.00645427070262317, 0.010390833731528, 0.0137267241507424,
    0.016406009142171, 0.0206548075787697, 0.0220059788254565, 0.0226815644487997,
    0.0241475224808774, 0.0251107341245228, 0.0263549710022889, 0.0272832610741453,
    0.0294785565070328, 0.0312254350680597, 0.0340228731758456, 0.0363415444446394,
    0.0364040719835966, 0.0364576914896066, 0.0398713425199977, 0.0428078389323812,
    0.0443206903065534, 0.0456582004054368, 0.0473373527805339, 0.0488404232471453,
    0.0496433764260127, 0.0503731885238783, 0.0510359350109291, 0.0516436290741354,
    0.0526405492486405, 0.0535610094687589, 0.05442700569164, 0.0552178073994544,
    0.0559581527041068, 0.0566490425640605, 0.0572429526830672, 0.0577967261153023,
    0.0583198210222109, 0.0588094750567186, 0.0592712408001043, 0.0597074348516306,
    0.0601201241459759, 0.0605174325075768, 0.0608901411604128, 0.0612422922398251,
    0.0618707980423834, 0.0624661234885966, 0.0630368977571603, 0.0635787665840882,
    0.064099413535239, 0.0645947156962813, 0.0650690099353217, 0.0655236050526131,
    0.0659667431709796, 0.0663851731522577, 0.0668735344788778, 0.0673405584796377,
    0.0677924400667054, 0.0682275513575991, 0.0686468089170376, 0.0690488939824011,
    0.0694369182384849, 0.06981160656508, 0.0701736348572483, 0.0705236340943412,
]


@pytest.fixture
def calibrator() -> IsdaDiscountCurveCalibrator:
    return IsdaDiscountCurveCalibrator()


def test_matches_isda_reference_zero_rates(calibrator) -> None:
    curve = calibrator.calibrate(SPOT_DATE, INSTRUMENTS, RATES)
    assert curve.number_of_knots == len(INSTRUMENTS)
    for t, expected in zip(SAMPLE_TIMES, EXPECTED_ZERO_RATES):
        assert curve.zero_rate(t) == pytest.approx(expected, abs=1e-10)


def test_knots_sit_at_adjusted_maturities(calibrator) -> None:
    curve = calibrator.calibrate(SPOT_DATE, INSTRUMENTS, RATES)
    # 1M lands on Sunday 2013-06-30 and rolls back to Friday the 28th
    assert curve.time_at_index(0) == pytest.approx(28 / 365)
    # 2Y lands on Sunday 2015-05-31 and rolls back to Friday the 29th
    assert curve.time_at_index(6) == pytest.approx(728 / 365)


def test_deposit_closed_form(calibrator) -> None:
    curve = calibrator.calibrate(SPOT_DATE, [DepositNode("3M")], [0.01])
    maturity = get_calendar("WEEKEND").adjust(
        add_tenor(SPOT_DATE, "3M"), BusinessDayAdjustment.MODIFIED_FOLLOWING
    )
    t = ACT_365F.year_fraction(SPOT_DATE, maturity)
    yf = ACT_360.year_fraction(SPOT_DATE, maturity)
    assert curve.zero_rate_at_index(0) == pytest.approx(math.log(1 + 0.01 * yf) / t, abs=1e-16)


def test_reprices_par_rates(calibrator) -> None:
    curve = calibrator.calibrate(SPOT_DATE, INSTRUMENTS, RATES)
    repriced = calibrator.par_rates(curve, SPOT_DATE, INSTRUMENTS)
    for rate, expected in zip(repriced, RATES):
        assert rate == pytest.approx(expected, abs=1e-12)


def test_valuation_before_spot_reprices(calibrator) -> None:
    valuation = date(2013, 5, 29)
    curve = calibrator.calibrate(valuation, INSTRUMENTS, RATES, spot_date=SPOT_DATE)
    repriced = calibrator.par_rates(curve, valuation, INSTRUMENTS, spot_date=SPOT_DATE)
    for rate, expected in zip(repriced, RATES):
        assert rate == pytest.approx(expected, abs=1e-12)
    # the valuation-based curve is the spot-based one re-expressed two days earlier
    at_spot = calibrator.calibrate(SPOT_DATE, INSTRUMENTS, RATES)
    shift = 2 / 365
    for t in (0.5, 3.0, 12.0):
        ratio = curve.discount_factor(t + shift) / curve.discount_factor(shift)
        assert ratio == pytest.approx(at_spot.discount_factor(t), rel=1e-13)


def test_swap_only_curve(calibrator) -> None:
    swaps = INSTRUMENTS[6:]
    curve = calibrator.calibrate(SPOT_DATE, swaps, RATES[6:])
    repriced = calibrator.par_rates(curve, SPOT_DATE, swaps)
    assert repriced == pytest.approx(RATES[6:], abs=1e-12)


def test_node_overrides_change_the_curve(calibrator) -> None:
    base = calibrator.calibrate(SPOT_DATE, [DepositNode("6M")], [0.01])
    act365 = calibrator.calibrate(SPOT_DATE, [DepositNode("6M", day_count="ACT/365F")], [0.01])
    assert act365.zero_rate_at_index(0) < base.zero_rate_at_index(0)
    annual = calibrator.calibrate(
        SPOT_DATE, [SwapNode("5Y", payment_interval="1Y")], [0.02]
    )
    semi = calibrator.calibrate(SPOT_DATE, [SwapNode("5Y")], [0.02])
    assert annual.zero_rate_at_index(0) != pytest.approx(semi.zero_rate_at_index(0), abs=1e-8)


def test_build_discount_curve_wrapper(calibrator) -> None:
    direct = calibrator.calibrate(SPOT_DATE, INSTRUMENTS, RATES)
    wrapped = build_discount_curve(
        SPOT_DATE,
        INSTRUMENTS,
        RATES,
        conventions=DiscountCurveConventions(),
        config=CalibrationConfig(),
    )
    assert wrapped == direct


def test_verbose_logging(caplog) -> None:
    calibrator = IsdaDiscountCurveCalibrator(config=CalibrationConfig(verbose=True))
    with caplog.at_level(logging.INFO, logger="creditlib.calibration"):
        calibrator.calibrate(SPOT_DATE, INSTRUMENTS[:8], RATES[:8])
    assert "Calibrating ISDA discount curve" in caplog.text
    assert "swap 3Y solved" in caplog.text


def test_invalid_inputs(calibrator) -> None:
    with pytest.raises(ValueError, match="at least one instrument"):
        calibrator.calibrate(SPOT_DATE, [], [])
    with pytest.raises(ValueError, match="rates"):
        calibrator.calibrate(SPOT_DATE, INSTRUMENTS, RATES[:-1])
    with pytest.raises(ValueError, match="strictly ascending"):
        calibrator.calibrate(SPOT_DATE, [DepositNode("1Y"), DepositNode("6M")], [0.01, 0.01])
    with pytest.raises(ValueError, match="growth factor"):
        calibrator.calibrate(SPOT_DATE, [DepositNode("1Y")], [-2.0])
    with pytest.raises(ValueError):
        SwapNode("5X")
    with pytest.raises(ValueError):
        CalibrationConfig(tolerance=0.0)
