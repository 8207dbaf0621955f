"""
Factory for standard (ISDA convention) CDS analytic descriptions.
"""

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import List, Optional, Sequence

from dateutil.relativedelta import relativedelta

from creditlib.conventions.calendars import Calendar, get_calendar
from creditlib.conventions.daycount import DayCountConvention, get_day_count_convention
from creditlib.conventions.types import BusinessDayAdjustment, StubType
from creditlib.schedule.imm import (
    imm_date_set,
    next_imm_date,
    next_index_roll_date,
    previous_imm_date,
)
from creditlib.schedule.tenor import TenorLike, add_tenor, parse_tenor, tenor_to_months

from .cds import CdsAnalytic


@dataclass(frozen=True)
class CdsAnalyticFactory:
    """CDS conventions, defaulting to the ISDA standard contract.

    Step-in is T+1 calendar day, cash settlement T+3 business days,
    quarterly coupons with a short front stub, protection from the start of
    the day and accrued premium paid on default.
    """

    step_in_days: int = 1
    cash_settle_days: int = 3
    pay_accrual_on_default: bool = True
    coupon_interval: str = "3M"
    stub_type: StubType = StubType.SHORT_INITIAL
    protect_start: bool = True
    recovery_rate: float = 0.4
    business_day_adjustment: BusinessDayAdjustment = BusinessDayAdjustment.FOLLOWING
    calendar: str = "WEEKEND"
    accrual_day_count: str = "ACT/360"
    curve_day_count: str = "ACT/365F"

    def __post_init__(self):
        if self.step_in_days < 0:
            raise ValueError(f"step_in_days must be non-negative, got {self.step_in_days}")
        if self.cash_settle_days < 0:
            raise ValueError(
                f"cash_settle_days must be non-negative, got {self.cash_settle_days}"
            )
        if not 0.0 <= self.recovery_rate <= 1.0:
            raise ValueError(f"Recovery rate must be in [0, 1], got {self.recovery_rate}")
        parse_tenor(self.coupon_interval)
        # fail fast on unknown names
        get_calendar(self.calendar)
        get_day_count_convention(self.accrual_day_count)
        get_day_count_convention(self.curve_day_count)

    @property
    def calendar_obj(self) -> Calendar:
        return get_calendar(self.calendar)

    @property
    def accrual_day_count_obj(self) -> DayCountConvention:
        return get_day_count_convention(self.accrual_day_count)

    @property
    def curve_day_count_obj(self) -> DayCountConvention:
        return get_day_count_convention(self.curve_day_count)

    def with_recovery_rate(self, recovery_rate: float) -> "CdsAnalyticFactory":
        return replace(self, recovery_rate=recovery_rate)

    def with_coupon_interval(self, interval: str) -> "CdsAnalyticFactory":
        return replace(self, coupon_interval=interval)

    def with_accrual_day_count(self, day_count: str) -> "CdsAnalyticFactory":
        return replace(self, accrual_day_count=day_count)

    def with_pay_accrual_on_default(self, pay: bool) -> "CdsAnalyticFactory":
        return replace(self, pay_accrual_on_default=pay)

    def with_step_in_days(self, days: int) -> "CdsAnalyticFactory":
        return replace(self, step_in_days=days)

    def with_cash_settle_days(self, days: int) -> "CdsAnalyticFactory":
        return replace(self, cash_settle_days=days)

    def with_protect_start(self, protect_start: bool) -> "CdsAnalyticFactory":
        return replace(self, protect_start=protect_start)

    # ------------------------------------------------------------------
    # CDS construction
    # ------------------------------------------------------------------
    def make_cds(
        self, trade_date: date, accrual_start_date: date, maturity: date
    ) -> CdsAnalytic:
        """CDS with step-in and cash settlement dates from the conventions."""
        step_in = trade_date + timedelta(days=self.step_in_days)
        cash_settle = self.calendar_obj.add_business_days(trade_date, self.cash_settle_days)
        return self.make_cds_from_dates(trade_date, step_in, cash_settle, accrual_start_date, maturity)

    def make_cds_from_dates(
        self,
        trade_date: date,
        step_in_date: date,
        cash_settlement_date: date,
        accrual_start_date: date,
        maturity: date,
    ) -> CdsAnalytic:
        return CdsAnalytic.from_dates(
            trade_date,
            step_in_date,
            cash_settlement_date,
            accrual_start_date,
            maturity,
            pay_accrual_on_default=self.pay_accrual_on_default,
            coupon_interval=self.coupon_interval,
            stub_type=self.stub_type,
            protect_start=self.protect_start,
            recovery_rate=self.recovery_rate,
            business_day_adjustment=self.business_day_adjustment,
            calendar=self.calendar_obj,
            accrual_day_count=self.accrual_day_count_obj,
            curve_day_count=self.curve_day_count_obj,
        )

    def make_cds_series(
        self, trade_date: date, accrual_start_date: date, maturities: Sequence[date]
    ) -> List[CdsAnalytic]:
        return [self.make_cds(trade_date, accrual_start_date, m) for m in maturities]

    def standard_accrual_start(self, trade_date: date) -> date:
        """Previous IMM date before ``trade_date``, business-day adjusted."""
        return self.calendar_obj.adjust(
            previous_imm_date(trade_date), self.business_day_adjustment
        )

    def make_imm_cds(self, trade_date: date, tenor: TenorLike) -> CdsAnalytic:
        """Standard CDS maturing ``tenor`` after the next IMM date."""
        maturity = add_tenor(next_imm_date(trade_date), tenor)
        return self.make_cds(trade_date, self.standard_accrual_start(trade_date), maturity)

    def make_imm_cds_series(
        self, trade_date: date, tenors: Sequence[TenorLike]
    ) -> List[CdsAnalytic]:
        accrual_start = self.standard_accrual_start(trade_date)
        maturities = imm_date_set(next_imm_date(trade_date), tenors)
        return self.make_cds_series(trade_date, accrual_start, maturities)

    # ------------------------------------------------------------------
    # Index CDS (semi-annual rolls on 20 March and 20 September)
    # ------------------------------------------------------------------
    def index_maturity(self, roll_date: date, tenor: TenorLike) -> date:
        """Maturity of the ``tenor`` index series issued on ``roll_date``.

        An index rolled on 20 March matures on 20 June, so the maturity is
        the roll date plus the tenor, less three months.
        """
        return roll_date + relativedelta(months=tenor_to_months(tenor) - 3)

    def make_cdx(self, trade_date: date, tenor: TenorLike) -> CdsAnalytic:
        """Index CDS of the series that is on the run at the next roll."""
        maturity = self.index_maturity(next_index_roll_date(trade_date), tenor)
        return self.make_cds(trade_date, self.standard_accrual_start(trade_date), maturity)

    def make_cdx_series(
        self, trade_date: date, tenors: Sequence[TenorLike]
    ) -> List[CdsAnalytic]:
        mid = next_index_roll_date(trade_date) - relativedelta(months=3)
        maturities = imm_date_set(mid, tenors)
        return self.make_cds_series(trade_date, self.standard_accrual_start(trade_date), maturities)

    # ------------------------------------------------------------------
    # Forward starting CDS
    # ------------------------------------------------------------------
    def make_forward_starting_cds(
        self,
        trade_date: date,
        forward_start_date: date,
        maturity: date,
        accrual_start_date: Optional[date] = None,
    ) -> CdsAnalytic:
        """CDS whose protection starts at ``forward_start_date``.

        Step-in and cash settlement follow the conventions from the forward
        start date, and accrual starts at the IMM date before it unless
        ``accrual_start_date`` is given. Times are still measured from
        ``trade_date``.
        """
        if forward_start_date < trade_date:
            raise ValueError(
                f"Forward start date {forward_start_date} is before trade date {trade_date}"
            )
        step_in = forward_start_date + timedelta(days=self.step_in_days)
        cash_settle = self.calendar_obj.add_business_days(forward_start_date, self.cash_settle_days)
        if accrual_start_date is None:
            accrual_start_date = self.standard_accrual_start(forward_start_date)
        return self.make_cds_from_dates(
            trade_date, step_in, cash_settle, accrual_start_date, maturity
        )

    def make_forward_starting_imm_cds(
        self, trade_date: date, forward_start_date: date, tenor: TenorLike
    ) -> CdsAnalytic:
        maturity = add_tenor(next_imm_date(forward_start_date), tenor)
        return self.make_forward_starting_cds(trade_date, forward_start_date, maturity)

    def make_forward_starting_cdx(
        self, trade_date: date, forward_start_date: date, tenor: TenorLike
    ) -> CdsAnalytic:
        maturity = self.index_maturity(next_index_roll_date(forward_start_date), tenor)
        return self.make_forward_starting_cds(trade_date, forward_start_date, maturity)
