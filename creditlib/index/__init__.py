"""CDS index constituents, intrinsic valuation and portfolio adjustment."""

from .adjustment import PortfolioSwapAdjustment
from .bundle import IntrinsicIndexDataBundle
from .calculator import CdsIndexCalculator

__all__ = [
    "CdsIndexCalculator",
    "IntrinsicIndexDataBundle",
    "PortfolioSwapAdjustment",
]
