"""
Analytic description of a CDS on the ISDA time axis.

All times are measured from the trade date with the curve day count. The
pricer only ever sees these numbers, never dates.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Tuple

from creditlib.conventions.calendars import Calendar
from creditlib.conventions.daycount import DayCountConvention
from creditlib.conventions.types import BusinessDayAdjustment, StubType
from creditlib.schedule.generator import (
    SchedulePeriod,
    premium_leg_schedule,
    truncate_schedule,
)
from creditlib.schedule.tenor import TenorLike


@dataclass(frozen=True)
class CdsCoupon:
    """One premium period.

    Attributes:
        effective_start: Start of protection for accrual-on-default purposes
        effective_end: End of protection for the period
        payment_time: Time of the premium payment
        year_frac: Accrual year fraction (accrual day count)
        yf_ratio: ``year_frac`` divided by the curve-day-count fraction
    """

    effective_start: float
    effective_end: float
    payment_time: float
    year_frac: float
    yf_ratio: float

    @classmethod
    def from_period(
        cls,
        trade_date: date,
        period: SchedulePeriod,
        protect_start: bool,
        accrual_day_count: DayCountConvention,
        curve_day_count: DayCountConvention,
    ) -> "CdsCoupon":
        shift = timedelta(days=1) if protect_start else timedelta(0)
        eff_start = period.accrual_start - shift
        eff_end = period.accrual_end - shift
        year_frac = accrual_day_count.year_fraction(period.accrual_start, period.accrual_end)
        curve_frac = curve_day_count.year_fraction(period.accrual_start, period.accrual_end)
        return cls(
            effective_start=curve_day_count.relative_year_fraction(trade_date, eff_start),
            effective_end=curve_day_count.relative_year_fraction(trade_date, eff_end),
            payment_time=curve_day_count.relative_year_fraction(trade_date, period.payment_date),
            year_frac=year_frac,
            yf_ratio=year_frac / curve_frac,
        )


@dataclass(frozen=True)
class CdsAnalytic:
    """A CDS reduced to the times and fractions the analytic pricer needs.

    Attributes:
        coupons: Remaining premium periods (those ending after step-in)
        accrual_start: Time of the first accrual start (may be negative)
        effective_protection_start: Time protection starts, at least step-in
        protection_end: Time of the maturity date
        cash_settle_time: Time of the cash settlement (valuation) date
        lgd: Loss given default, ``1 - recovery``
        accrued_year_fraction: Accrued premium fraction at step-in
        accrued_days: Accrued days at step-in
        pay_accrual_on_default: Whether premium accrued at default is paid
        protection_from_start_of_day: Protection begins at the start of day
    """

    coupons: Tuple[CdsCoupon, ...]
    accrual_start: float
    effective_protection_start: float
    protection_end: float
    cash_settle_time: float
    lgd: float
    accrued_year_fraction: float
    accrued_days: int
    pay_accrual_on_default: bool = True
    protection_from_start_of_day: bool = True

    def __post_init__(self):
        if not self.coupons:
            raise ValueError("A CDS needs at least one coupon")
        if not 0.0 <= self.lgd <= 1.0:
            raise ValueError(f"lgd must be in [0, 1], got {self.lgd}")
        if self.protection_end <= 0.0:
            raise ValueError(
                f"Protection must end after the trade date, got {self.protection_end}"
            )

    @classmethod
    def from_dates(
        cls,
        trade_date: date,
        step_in_date: date,
        cash_settlement_date: date,
        accrual_start_date: date,
        end_date: date,
        *,
        pay_accrual_on_default: bool,
        coupon_interval: TenorLike,
        stub_type: StubType,
        protect_start: bool,
        recovery_rate: float,
        business_day_adjustment: BusinessDayAdjustment,
        calendar: Calendar,
        accrual_day_count: DayCountConvention,
        curve_day_count: DayCountConvention,
    ) -> "CdsAnalytic":
        """Build the analytic form of a CDS from its dates and conventions."""
        if step_in_date < trade_date:
            raise ValueError(f"Step-in date {step_in_date} is before trade date {trade_date}")
        if cash_settlement_date < trade_date:
            raise ValueError(
                f"Cash settlement date {cash_settlement_date} is before trade date {trade_date}"
            )
        if end_date <= max(step_in_date, accrual_start_date):
            raise ValueError(
                f"Maturity {end_date} must be after step-in {step_in_date} "
                f"and accrual start {accrual_start_date}"
            )
        if not 0.0 <= recovery_rate <= 1.0:
            raise ValueError(f"Recovery rate must be in [0, 1], got {recovery_rate}")

        full = premium_leg_schedule(
            accrual_start_date,
            end_date,
            coupon_interval,
            stub_type,
            business_day_adjustment,
            calendar,
            protect_start,
        )
        periods = truncate_schedule(step_in_date, full)
        coupons = tuple(
            CdsCoupon.from_period(trade_date, p, protect_start, accrual_day_count, curve_day_count)
            for p in periods
        )

        protection_start = max(step_in_date, accrual_start_date)
        if protect_start:
            protection_start -= timedelta(days=1)

        first_accrual = periods[0].accrual_start
        if first_accrual < step_in_date:
            accrued_days = accrual_day_count.day_count(first_accrual, step_in_date)
            accrued = accrual_day_count.year_fraction(first_accrual, step_in_date)
        else:
            accrued_days = 0
            accrued = 0.0

        return cls(
            coupons=coupons,
            accrual_start=curve_day_count.relative_year_fraction(trade_date, accrual_start_date),
            effective_protection_start=curve_day_count.relative_year_fraction(
                trade_date, protection_start
            ),
            protection_end=curve_day_count.year_fraction(trade_date, end_date),
            cash_settle_time=curve_day_count.year_fraction(trade_date, cash_settlement_date),
            lgd=1.0 - recovery_rate,
            accrued_year_fraction=accrued,
            accrued_days=accrued_days,
            pay_accrual_on_default=pay_accrual_on_default,
            protection_from_start_of_day=protect_start,
        )

    @property
    def number_of_coupons(self) -> int:
        return len(self.coupons)

    @property
    def recovery_rate(self) -> float:
        return 1.0 - self.lgd

    def coupon(self, index: int) -> CdsCoupon:
        return self.coupons[index]

    def accrued_premium(self, fractional_spread: float) -> float:
        return self.accrued_year_fraction * fractional_spread

    def with_recovery_rate(self, recovery_rate: float) -> "CdsAnalytic":
        if not 0.0 <= recovery_rate <= 1.0:
            raise ValueError(f"Recovery rate must be in [0, 1], got {recovery_rate}")
        return replace(self, lgd=1.0 - recovery_rate)
