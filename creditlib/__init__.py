"""ISDA Standard Model Credit Curves and CDS Index Adjustment.

This package provides tools for building ISDA-compliant discount and credit
curves and for adjusting single-name credit curves to CDS index quotes.

Key modules:
- curves: Piecewise linear-in-rt discount and credit curves
- calibration: Discount and credit curve bootstrapping, quote conversion, CS01
- index: Index constituent data, intrinsic valuation, portfolio adjustment
- pricing: Analytic CDS pricer
- instruments: CDS, money market and swap node definitions
- schedule: Premium leg and fixed leg schedules, IMM dates
- conventions: Day counts, calendars and enumerations
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    # Main modules are imported via subpackages
    "curves",
    "calibration",
    "index",
    "pricing",
    "instruments",
    "schedule",
    "conventions",
    "utils",
]
