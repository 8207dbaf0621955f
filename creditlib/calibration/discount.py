"""
ISDA discount curve calibration from money-market and swap par rates.

Nodes are solved one at a time in maturity order. Deposits have a closed
form; each swap node is found by a bracketed Newton-Raphson search on the
zero rate at its maturity, holding the earlier nodes fixed.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence, Union

import numpy as np

from creditlib.conventions.calendars import get_calendar
from creditlib.conventions.daycount import get_day_count_convention
from creditlib.conventions.types import BusinessDayAdjustment
from creditlib.curves.yield_curve import IsdaYieldCurve
from creditlib.instruments.nodes import DepositNode, SwapNode
from creditlib.schedule.generator import fixed_leg_payment_dates
from creditlib.schedule.tenor import add_tenor, parse_tenor

from .base import BaseCalibrator, CalibrationConfig, check_ascending

logger = logging.getLogger(__name__)

YieldCurveNode = Union[DepositNode, SwapNode]


@dataclass(frozen=True)
class DiscountCurveConventions:
    """Conventions of the ISDA discount curve instruments.

    Defaults follow the USD ISDA standard: ACT/360 deposits, 30/360
    semi-annual swap fixed legs, ACT/365F curve time, Modified Following on
    a Saturday/Sunday calendar.
    """

    money_market_day_count: str = "ACT/360"
    swap_day_count: str = "30U/360"
    swap_interval: str = "6M"
    curve_day_count: str = "ACT/365F"
    business_day_adjustment: BusinessDayAdjustment = BusinessDayAdjustment.MODIFIED_FOLLOWING
    calendar: str = "WEEKEND"

    def __post_init__(self):
        get_day_count_convention(self.money_market_day_count)
        get_day_count_convention(self.swap_day_count)
        get_day_count_convention(self.curve_day_count)
        get_calendar(self.calendar)
        parse_tenor(self.swap_interval)


class _DiscountCurveContext:
    """Schedules and year fractions for one calibration run.

    Curve times are measured from the spot date; ``offset`` locates the
    valuation date on that axis.
    """

    def __init__(
        self,
        conventions: DiscountCurveConventions,
        spot_date: date,
        valuation_date: date,
        instruments: Sequence[YieldCurveNode],
    ):
        calendar = get_calendar(conventions.calendar)
        bda = conventions.business_day_adjustment
        curve_dcc = get_day_count_convention(conventions.curve_day_count)

        self.offset = curve_dcc.relative_year_fraction(spot_date, valuation_date)
        self.knot_times: List[float] = []
        self.payment_times: List[np.ndarray] = []
        self.year_fractions: List[np.ndarray] = []

        for node in instruments:
            if node.is_swap:
                dcc = get_day_count_convention(node.day_count or conventions.swap_day_count)
                interval = node.payment_interval or conventions.swap_interval
                maturity = add_tenor(spot_date, node.tenor)
                dates = fixed_leg_payment_dates(spot_date, maturity, interval, bda, calendar)
                previous = spot_date
                times, fractions = [], []
                for payment in dates:
                    fractions.append(dcc.year_fraction(previous, payment))
                    times.append(curve_dcc.year_fraction(spot_date, payment))
                    previous = payment
            else:
                dcc = get_day_count_convention(
                    node.day_count or conventions.money_market_day_count
                )
                maturity = calendar.adjust(add_tenor(spot_date, node.tenor), bda)
                times = [curve_dcc.year_fraction(spot_date, maturity)]
                fractions = [dcc.year_fraction(spot_date, maturity)]
            self.payment_times.append(np.array(times))
            self.year_fractions.append(np.array(fractions))
            self.knot_times.append(times[-1])

        check_ascending(self.knot_times, "Instrument maturities")

    def base_discount_factor(self, curve: IsdaYieldCurve, t: float) -> float:
        """Discount factor from the spot date using a curve based at valuation."""
        return curve.discount_factor(t - self.offset) / curve.discount_factor(-self.offset)


class IsdaDiscountCurveCalibrator(BaseCalibrator):
    """
    Bootstraps an ISDA zero-rate curve from deposits and par swaps.

    Args:
        conventions: Instrument and curve conventions
        config: Root-finder settings
    """

    def __init__(
        self,
        conventions: Optional[DiscountCurveConventions] = None,
        config: Optional[CalibrationConfig] = None,
    ):
        super().__init__(config)
        self.conventions = conventions or DiscountCurveConventions()

    def calibrate(
        self,
        valuation_date: date,
        instruments: Sequence[YieldCurveNode],
        rates: Sequence[float],
        spot_date: Optional[date] = None,
    ) -> IsdaYieldCurve:
        """
        Build the discount curve.

        Args:
            valuation_date: Date the returned curve is based at
            instruments: Deposit and swap nodes in ascending maturity order
            rates: Par rate per instrument
            spot_date: Start date of the instruments (defaults to valuation date)

        Returns:
            Zero-rate curve with one knot per instrument, times in years
            (curve day count) from the valuation date
        """
        if not instruments:
            raise ValueError("Need at least one instrument to build a discount curve")
        if len(instruments) != len(rates):
            raise ValueError(
                f"Got {len(instruments)} instruments but {len(rates)} rates"
            )
        spot = spot_date or valuation_date
        context = _DiscountCurveContext(self.conventions, spot, valuation_date, instruments)

        for i, (node, rate) in enumerate(zip(instruments, rates)):
            if not node.is_swap and 1.0 + rate * context.year_fractions[i][0] <= 0.0:
                raise ValueError(
                    f"Deposit {node.tenor} rate {rate} gives a non-positive growth factor"
                )

        logger.info(
            "Calibrating ISDA discount curve: %d instruments, spot %s, valuation %s",
            len(instruments),
            spot,
            valuation_date,
        )
        if self.config.verbose:
            logger.info(
                "   Money market %s, swap %s %s, curve %s, %s on %s",
                self.conventions.money_market_day_count,
                self.conventions.swap_day_count,
                self.conventions.swap_interval,
                self.conventions.curve_day_count,
                self.conventions.business_day_adjustment.value,
                self.conventions.calendar,
            )

        curve = IsdaYieldCurve(context.knot_times, np.zeros(len(instruments)))
        for i, (node, rate) in enumerate(zip(instruments, rates)):
            if node.is_swap:
                zero_rate = self._solve_swap(context, curve, i, rate, node.tenor)
            else:
                yf = context.year_fractions[i][0]
                zero_rate = math.log(1.0 + rate * yf) / context.knot_times[i]
                self._log_node(f"deposit {node.tenor}", zero_rate, 0)
            curve = curve.with_rate(zero_rate, i)

        return curve.with_offset(context.offset)

    def _solve_swap(
        self,
        context: _DiscountCurveContext,
        curve: IsdaYieldCurve,
        index: int,
        rate: float,
        tenor: str,
    ) -> float:
        times = context.payment_times[index]
        cashflows = rate * context.year_fractions[index]
        cashflows[-1] += 1.0

        # cashflows up to the previous knot do not depend on this node
        previous_knot = curve.time_at_index(index - 1) if index > 0 else 0.0
        n_fixed = int(np.searchsorted(times, previous_knot, side="right"))
        fixed_pv = sum(cashflows[j] * curve.discount_factor(times[j]) for j in range(n_fixed))

        def func_and_deriv(x: float):
            trial = curve.with_rate(x, index)
            value = 1.0 - fixed_pv
            deriv = 0.0
            for j in range(n_fixed, len(times)):
                value -= cashflows[j] * trial.discount_factor(times[j])
                deriv -= cashflows[j] * trial.single_node_discount_factor_sensitivity(
                    times[j], index
                )
            return value, deriv

        guess = curve.zero_rate_at_index(index - 1) if index > 0 else 0.0
        if guess == 0.0:
            bracket = (-0.01, 0.01)
        else:
            bracket = tuple(sorted((0.75 * guess, 1.25 * guess)))
        return self._solve_node(f"swap {tenor}", func_and_deriv, bracket)

    def par_rates(
        self,
        curve: IsdaYieldCurve,
        valuation_date: date,
        instruments: Sequence[YieldCurveNode],
        spot_date: Optional[date] = None,
    ) -> List[float]:
        """Par rate of each instrument implied by ``curve``.

        ``curve`` is based at ``valuation_date`` as returned by
        :meth:`calibrate`. Repricing needs the spot date to lie before the
        curve's first knot.
        """
        spot = spot_date or valuation_date
        context = _DiscountCurveContext(self.conventions, spot, valuation_date, instruments)
        rates = []
        for i, node in enumerate(instruments):
            times = context.payment_times[i]
            fractions = context.year_fractions[i]
            dfs = np.array([context.base_discount_factor(curve, t) for t in times])
            if node.is_swap:
                rates.append(float((1.0 - dfs[-1]) / np.dot(fractions, dfs)))
            else:
                rates.append(float((1.0 / dfs[0] - 1.0) / fractions[0]))
        return rates


def build_discount_curve(
    valuation_date: date,
    instruments: Sequence[YieldCurveNode],
    rates: Sequence[float],
    *,
    spot_date: Optional[date] = None,
    conventions: Optional[DiscountCurveConventions] = None,
    config: Optional[CalibrationConfig] = None,
) -> IsdaYieldCurve:
    """Convenience wrapper around :class:`IsdaDiscountCurveCalibrator`."""
    calibrator = IsdaDiscountCurveCalibrator(conventions, config)
    return calibrator.calibrate(valuation_date, instruments, rates, spot_date)
