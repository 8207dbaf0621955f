"""
Schedule generation for swap fixed legs and CDS premium legs.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List

from creditlib.conventions.calendars import Calendar
from creditlib.conventions.types import BusinessDayAdjustment, StubType

from .tenor import TenorLike, add_tenor


@dataclass(frozen=True)
class SchedulePeriod:
    """A single accrual period of a premium leg."""

    accrual_start: date
    accrual_end: date
    payment_date: date


def fixed_leg_payment_dates(
    start: date,
    maturity: date,
    interval: TenorLike,
    adjustment: BusinessDayAdjustment,
    calendar: Calendar,
) -> List[date]:
    """Adjusted payment dates of an ISDA swap fixed leg.

    Unadjusted dates are ``maturity - k * interval`` for k = 0, 1, ... while
    they fall strictly after ``start``; any front stub is therefore short.
    Dates are returned in ascending order after business day adjustment.
    """
    if maturity <= start:
        raise ValueError(
            f"Swap maturity {maturity} must be after start date {start}"
        )
    unadjusted = []
    step = 0
    current = maturity
    while current > start:
        unadjusted.append(current)
        step += 1
        current = add_tenor(maturity, interval, -step)
    return [calendar.adjust(d, adjustment) for d in reversed(unadjusted)]


def _unadjusted_premium_dates(
    start: date, end: date, interval: TenorLike, stub_type: StubType
) -> List[date]:
    if stub_type.is_front_stub:
        dates = []
        step = 0
        current = end
        while current > start:
            dates.append(current)
            step += 1
            current = add_tenor(end, interval, -step)
        dates.append(start)
        dates.reverse()
        # A long front stub absorbs the short one
        if (
            stub_type == StubType.LONG_INITIAL
            and len(dates) > 2
            and dates[0] != add_tenor(dates[1], interval, -1)
        ):
            del dates[1]
        return dates

    dates = []
    step = 0
    current = start
    while current < end:
        dates.append(current)
        step += 1
        current = add_tenor(start, interval, step)
    dates.append(end)
    if (
        stub_type == StubType.LONG_FINAL
        and len(dates) > 2
        and dates[-1] != add_tenor(dates[-2], interval)
    ):
        del dates[-2]
    return dates


def premium_leg_schedule(
    start: date,
    end: date,
    interval: TenorLike,
    stub_type: StubType,
    adjustment: BusinessDayAdjustment,
    calendar: Calendar,
    protect_start: bool,
) -> List[SchedulePeriod]:
    """Accrual periods of an ISDA CDS premium leg.

    Accrual dates other than the first and last are business-day adjusted
    and double as payment dates. The final accrual period runs to the
    unadjusted end date, plus one day when protection starts at the
    beginning of the day, while its payment date is adjusted.
    """
    if end <= start:
        raise ValueError(f"Premium leg end {end} must be after start {start}")

    nominal = _unadjusted_premium_dates(start, end, interval, stub_type)
    n = len(nominal) - 1
    periods = []
    acc_start = start
    for i in range(1, n + 1):
        payment = calendar.adjust(nominal[i], adjustment)
        if i == n:
            acc_end = end + timedelta(days=1) if protect_start else end
        else:
            acc_end = payment
        periods.append(SchedulePeriod(acc_start, acc_end, payment))
        acc_start = acc_end
    return periods


def truncate_schedule(
    step_in: date, periods: List[SchedulePeriod]
) -> List[SchedulePeriod]:
    """Drop the periods whose accrual ends on or before the step-in date."""
    kept = [p for p in periods if p.accrual_end > step_in]
    if not kept:
        raise ValueError(f"No premium periods remain after step-in date {step_in}")
    return kept
