"""
QuantLib-backed business day calendars.
"""

from datetime import date, timedelta

import QuantLib as ql

from .daycount import DateLike, to_date, to_ql_date
from .types import BusinessDayAdjustment


def _to_py_date(ql_date: ql.Date) -> date:
    """Convert QuantLib Date to Python date."""
    return date(ql_date.year(), ql_date.month(), ql_date.dayOfMonth())


class Calendar:
    """Business day calendar delegating holiday rules to QuantLib."""

    def __init__(self, name: str, ql_calendar: ql.Calendar):
        self.name = name
        self._ql_calendar = ql_calendar

    def is_business_day(self, dt: DateLike) -> bool:
        """Check if date is a business day (not weekend or holiday)."""
        return self._ql_calendar.isBusinessDay(to_ql_date(dt))

    def add_business_days(self, start_date: DateLike, days: int) -> date:
        """Move ``days`` business days from ``start_date``."""
        ql_result = self._ql_calendar.advance(to_ql_date(start_date), days, ql.Days)
        return _to_py_date(ql_result)

    def adjust(self, dt: DateLike, adjustment: BusinessDayAdjustment) -> date:
        """Apply a business day adjustment rule to ``dt``."""
        dt = to_date(dt)

        if adjustment == BusinessDayAdjustment.NO_ADJUSTMENT:
            return dt

        if adjustment == BusinessDayAdjustment.FOLLOWING:
            return self._roll(dt, 1)

        if adjustment == BusinessDayAdjustment.PRECEDING:
            return self._roll(dt, -1)

        if adjustment == BusinessDayAdjustment.MODIFIED_FOLLOWING:
            adjusted = self._roll(dt, 1)
            # If month changed, use preceding instead
            if adjusted.month != dt.month:
                adjusted = self._roll(dt, -1)
            return adjusted

        if adjustment == BusinessDayAdjustment.MODIFIED_PRECEDING:
            adjusted = self._roll(dt, -1)
            if adjusted.month != dt.month:
                adjusted = self._roll(dt, 1)
            return adjusted

        raise ValueError(f"Unknown business day adjustment: {adjustment}")

    def _roll(self, dt: date, direction: int) -> date:
        while not self.is_business_day(dt):
            dt += timedelta(days=direction)
        return dt

    def __repr__(self) -> str:
        return f"Calendar({self.name!r})"


# Pre-defined calendar instances
WEEKEND = Calendar("WEEKEND", ql.WeekendsOnly())
TARGET = Calendar("TARGET", ql.TARGET())
USNY = Calendar("USNY", ql.UnitedStates(ql.UnitedStates.Settlement))
UK = Calendar("UK", ql.UnitedKingdom(ql.UnitedKingdom.Settlement))

# Calendar registry
CALENDARS = {
    "WEEKEND": WEEKEND,
    "SAT_SUN": WEEKEND,
    "TARGET": TARGET,
    "EUR": TARGET,
    "USNY": USNY,
    "UK": UK,
    "GBLO": UK,
}


def get_calendar(name) -> Calendar:
    """Get a calendar by name (instances pass through)."""
    if isinstance(name, Calendar):
        return name
    key = name.upper().strip()
    if key not in CALENDARS:
        raise ValueError(
            f"Unknown calendar: {name}. Available: {list(CALENDARS.keys())}"
        )
    return CALENDARS[key]
