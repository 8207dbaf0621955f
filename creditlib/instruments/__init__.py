"""
Instrument definitions: discount curve nodes, CDS analytics and quotes.
"""

from .cds import CdsAnalytic, CdsCoupon
from .factory import CdsAnalyticFactory
from .nodes import DepositNode, SwapNode
from .quotes import CdsQuote, ParSpread, PointsUpFront, QuotedSpread

__all__ = [
    "CdsAnalytic",
    "CdsCoupon",
    "CdsAnalyticFactory",
    "DepositNode",
    "SwapNode",
    "CdsQuote",
    "ParSpread",
    "PointsUpFront",
    "QuotedSpread",
]
