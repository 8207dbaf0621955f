"""
Money-market and swap nodes of an ISDA discount curve.
"""

from dataclasses import dataclass
from typing import Optional

from creditlib.schedule.tenor import parse_tenor


@dataclass(frozen=True)
class DepositNode:
    """Money-market deposit from the curve spot date to ``spot + tenor``.

    ``day_count`` overrides the calibrator's money-market day count.
    """

    tenor: str
    day_count: Optional[str] = None

    def __post_init__(self):
        parse_tenor(self.tenor)

    @property
    def is_swap(self) -> bool:
        return False


@dataclass(frozen=True)
class SwapNode:
    """Par swap from the curve spot date; only the fixed leg is modelled.

    ``day_count`` and ``payment_interval`` override the calibrator's swap
    fixed-leg conventions.
    """

    tenor: str
    day_count: Optional[str] = None
    payment_interval: Optional[str] = None

    def __post_init__(self):
        parse_tenor(self.tenor)
        if self.payment_interval is not None:
            parse_tenor(self.payment_interval)

    @property
    def is_swap(self) -> bool:
        return True
