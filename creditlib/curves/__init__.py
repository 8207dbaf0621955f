"""
Curve representations: piecewise ISDA discount and credit curves.
"""

from .base import IsdaCompliantCurve
from .credit_curve import IsdaCreditCurve
from .yield_curve import IsdaYieldCurve

__all__ = [
    "IsdaCompliantCurve",
    "IsdaCreditCurve",
    "IsdaYieldCurve",
]
