"""Market conventions: day counts, calendars and shared enums."""

from .calendars import CALENDARS, Calendar, get_calendar
from .daycount import (
    ACT_360,
    ACT_365F,
    ACT_ACT,
    DAY_COUNT_CONVENTIONS,
    THIRTY_360E,
    THIRTY_360U,
    DayCountConvention,
    get_day_count_convention,
)
from .types import (
    AccrualOnDefaultFormula,
    ArbitrageHandling,
    BusinessDayAdjustment,
    FiniteDifferenceType,
    PriceType,
    ShiftType,
    StubType,
)

__all__ = [
    "ACT_360",
    "ACT_365F",
    "ACT_ACT",
    "THIRTY_360E",
    "THIRTY_360U",
    "DAY_COUNT_CONVENTIONS",
    "DayCountConvention",
    "get_day_count_convention",
    "CALENDARS",
    "Calendar",
    "get_calendar",
    "AccrualOnDefaultFormula",
    "ArbitrageHandling",
    "BusinessDayAdjustment",
    "FiniteDifferenceType",
    "PriceType",
    "ShiftType",
    "StubType",
]
