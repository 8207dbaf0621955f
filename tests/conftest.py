"""Shared market data for the creditlib tests."""

from datetime import date

import pytest

from creditlib.curves import IsdaCreditCurve, IsdaYieldCurve
from creditlib.index import IntrinsicIndexDataBundle
from creditlib.instruments import CdsAnalyticFactory

TRADE_DATE = date(2013, 6, 4)
PILLAR_TENORS = ["6M", "1Y", "3Y", "5Y", "7Y", "10Y"]


@pytest.fixture
def trade_date() -> date:
    return TRADE_DATE


@pytest.fixture
def factory() -> CdsAnalyticFactory:
    return CdsAnalyticFactory()


@pytest.fixture
def yield_curve() -> IsdaYieldCurve:
    times = [0.25, 0.5, 1.0, 2.0, 3.0, 5.0, 7.0, 10.0, 15.0, 30.0]
    rates = [0.002, 0.003, 0.005, 0.008, 0.011, 0.016, 0.020, 0.024, 0.028, 0.031]
    return IsdaYieldCurve(times, rates)


@pytest.fixture
def pillar_cds(factory, trade_date):
    return factory.make_imm_cds_series(trade_date, PILLAR_TENORS)


@pytest.fixture
def index_cds(factory, trade_date):
    return factory.make_imm_cds(trade_date, "5Y")


@pytest.fixture
def constituent_curves(pillar_cds):
    """Five names with upward sloping hazard curves of different levels."""
    times = [cds.protection_end for cds in pillar_cds]
    slope = [1.0, 1.1, 1.3, 1.45, 1.55, 1.6]
    levels = [0.004, 0.008, 0.012, 0.02, 0.035]
    return [IsdaCreditCurve(times, [level * s for s in slope]) for level in levels]


@pytest.fixture
def bundle(constituent_curves) -> IntrinsicIndexDataBundle:
    recovery_rates = [0.4, 0.4, 0.35, 0.4, 0.25]
    weights = [0.15, 0.25, 0.2, 0.2, 0.2]
    return IntrinsicIndexDataBundle(constituent_curves, recovery_rates, weights)
