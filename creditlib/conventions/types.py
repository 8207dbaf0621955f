"""
Enums shared by the schedule, pricing and calibration layers.
"""

from enum import Enum


class BusinessDayAdjustment(Enum):
    """Business day adjustment rules."""

    NO_ADJUSTMENT = "NO_ADJUSTMENT"
    FOLLOWING = "FOLLOWING"
    MODIFIED_FOLLOWING = "MODIFIED_FOLLOWING"
    PRECEDING = "PRECEDING"
    MODIFIED_PRECEDING = "MODIFIED_PRECEDING"


class StubType(Enum):
    """Stub placement for premium leg schedules."""

    SHORT_INITIAL = "SHORT_INITIAL"
    LONG_INITIAL = "LONG_INITIAL"
    SHORT_FINAL = "SHORT_FINAL"
    LONG_FINAL = "LONG_FINAL"

    @property
    def is_front_stub(self) -> bool:
        return self in (StubType.SHORT_INITIAL, StubType.LONG_INITIAL)


class PriceType(Enum):
    """Whether a premium leg value includes the accrued premium."""

    CLEAN = "CLEAN"
    DIRTY = "DIRTY"


class AccrualOnDefaultFormula(Enum):
    """Accrual-on-default formula variants of the ISDA standard model.

    ORIGINAL_ISDA reproduces the ISDA C code, including its half-day shift
    of the default time inside each accrual period. MARKIT_FIX is the Markit
    correction of that shift and CORRECT is the exact integral.
    """

    ORIGINAL_ISDA = "ORIGINAL_ISDA"
    MARKIT_FIX = "MARKIT_FIX"
    CORRECT = "CORRECT"

    @property
    def omega(self) -> float:
        """Time offset (years) added to the default time within a period."""
        if self is AccrualOnDefaultFormula.ORIGINAL_ISDA:
            return 1.0 / 730.0
        return 0.0


class ArbitrageHandling(Enum):
    """Treatment of a negative forward hazard rate found while bootstrapping."""

    IGNORE = "IGNORE"
    FAIL = "FAIL"
    ZERO_HAZARD_RATE = "ZERO_HAZARD_RATE"


class ShiftType(Enum):
    """How a bump is applied to a market spread."""

    ABSOLUTE = "ABSOLUTE"
    RELATIVE = "RELATIVE"

    def apply(self, value: float, amount: float) -> float:
        if self is ShiftType.ABSOLUTE:
            return value + amount
        return value * (1.0 + amount)


class FiniteDifferenceType(Enum):
    FORWARD = "FORWARD"
    CENTRAL = "CENTRAL"
    BACKWARD = "BACKWARD"
