"""ISDA zero-rate discount curve."""

from __future__ import annotations

from .base import IsdaCompliantCurve


class IsdaYieldCurve(IsdaCompliantCurve):
    """Discount curve: knots carry continuously compounded zero rates."""

    __slots__ = ()

    factor_label = "discount_factor"

    def discount_factor(self, t: float) -> float:
        return self._factor(t)
