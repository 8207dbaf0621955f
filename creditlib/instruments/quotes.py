"""
CDS market quote conventions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class CdsQuote(ABC):
    """A CDS market quote."""

    @property
    @abstractmethod
    def coupon(self) -> float:
        """Running coupon the quote is struck at."""


@dataclass(frozen=True)
class ParSpread(CdsQuote):
    """Spread at which the CDS has zero upfront value."""

    spread: float

    @property
    def coupon(self) -> float:
        return self.spread


@dataclass(frozen=True)
class QuotedSpread(CdsQuote):
    """Spread of a flat hazard curve that prices a standard-coupon CDS.

    ``coupon`` is the contractual premium; the quoted spread translates to an
    upfront amount through a single-pillar (flat) credit curve.
    """

    premium: float
    quoted_spread: float

    @property
    def coupon(self) -> float:
        return self.premium


@dataclass(frozen=True)
class PointsUpFront(CdsQuote):
    """Clean upfront payment (fraction of notional) at a contractual coupon."""

    premium: float
    puf: float

    @property
    def coupon(self) -> float:
        return self.premium
