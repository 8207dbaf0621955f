"""Calibration of ISDA discount and credit curves."""

from .base import ArbitrageError, BaseCalibrator, CalibrationConfig, CalibrationError
from .credit import IsdaCreditCurveCalibrator, calibrate_credit_curve
from .discount import (
    DiscountCurveConventions,
    IsdaDiscountCurveCalibrator,
    build_discount_curve,
)
from .quote_converter import MarketQuoteConverter
from .spread_sensitivity import SpreadSensitivityCalculator

__all__ = [
    # Base classes
    "ArbitrageError",
    "BaseCalibrator",
    "CalibrationConfig",
    "CalibrationError",
    # Calibrators
    "DiscountCurveConventions",
    "IsdaDiscountCurveCalibrator",
    "IsdaCreditCurveCalibrator",
    "MarketQuoteConverter",
    "SpreadSensitivityCalculator",
    # Convenience functions
    "build_discount_curve",
    "calibrate_credit_curve",
]
