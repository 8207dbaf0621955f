"""ISDA hazard-rate (survival) curve."""

from __future__ import annotations

from .base import IsdaCompliantCurve


class IsdaCreditCurve(IsdaCompliantCurve):
    """Credit curve: ``rt(t)`` is the accumulated hazard up to ``t``.

    The hazard rate is piecewise constant between knots, so survival
    probabilities ``exp(-rt(t))`` are continuous and, when every forward
    hazard rate is non-negative, non-increasing.
    """

    __slots__ = ()

    factor_label = "survival_probability"

    def survival_probability(self, t: float) -> float:
        return self._factor(t)

    def hazard_rate(self, t: float) -> float:
        """Instantaneous hazard rate at ``t``."""
        return self.forward_rate(t)
