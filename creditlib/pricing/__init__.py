"""
Analytic CDS pricing.
"""

from .cds_pricer import AnalyticCdsPricer

__all__ = ["AnalyticCdsPricer"]
