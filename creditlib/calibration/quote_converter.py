"""Conversions between CDS quoting conventions."""

from typing import List, Optional, Sequence

from creditlib.conventions.types import AccrualOnDefaultFormula, ArbitrageHandling, PriceType
from creditlib.curves.yield_curve import IsdaYieldCurve
from creditlib.instruments.cds import CdsAnalytic
from creditlib.instruments.quotes import CdsQuote

from .base import CalibrationConfig
from .credit import IsdaCreditCurveCalibrator


class MarketQuoteConverter:
    """Converts between par spreads, quoted spreads, upfronts and prices.

    Quoted-spread conversions go through a flat (single-knot) credit curve,
    par-spread conversions through a curve bootstrapped on the full term
    structure.
    """

    def __init__(
        self,
        formula: AccrualOnDefaultFormula = AccrualOnDefaultFormula.ORIGINAL_ISDA,
        config: Optional[CalibrationConfig] = None,
    ):
        self.calibrator = IsdaCreditCurveCalibrator(formula, ArbitrageHandling.IGNORE, config)
        self.pricer = self.calibrator.pricer

    @staticmethod
    def clean_price(puf: float) -> float:
        """Clean price per unit notional, ``1 - puf``."""
        return 1.0 - puf

    @staticmethod
    def puf_from_clean_price(price: float) -> float:
        return 1.0 - price

    def quoted_spread_to_puf(
        self,
        cds: CdsAnalytic,
        premium: float,
        yield_curve: IsdaYieldCurve,
        quoted_spread: float,
    ) -> float:
        flat = self.calibrator.calibrate_upfront([cds], [quoted_spread], [0.0], yield_curve)
        return self.pricer.pv(cds, yield_curve, flat, premium, PriceType.CLEAN)

    def puf_to_quoted_spread(
        self,
        cds: CdsAnalytic,
        premium: float,
        yield_curve: IsdaYieldCurve,
        puf: float,
    ) -> float:
        flat = self.calibrator.calibrate_upfront([cds], [premium], [puf], yield_curve)
        return self.pricer.par_spread(cds, yield_curve, flat)

    def par_spreads_to_puf(
        self,
        cds_list: Sequence[CdsAnalytic],
        premium: float,
        yield_curve: IsdaYieldCurve,
        par_spreads: Sequence[float],
    ) -> List[float]:
        curve = self.calibrator.calibrate_upfront(
            cds_list, par_spreads, [0.0] * len(par_spreads), yield_curve
        )
        return [
            self.pricer.pv(cds, yield_curve, curve, premium, PriceType.CLEAN) for cds in cds_list
        ]

    def puf_to_par_spreads(
        self,
        cds_list: Sequence[CdsAnalytic],
        premiums: Sequence[float],
        yield_curve: IsdaYieldCurve,
        pufs: Sequence[float],
    ) -> List[float]:
        curve = self.calibrator.calibrate_upfront(cds_list, premiums, pufs, yield_curve)
        return [self.pricer.par_spread(cds, yield_curve, curve) for cds in cds_list]

    def to_points_upfront(
        self,
        cds: CdsAnalytic,
        quote: CdsQuote,
        yield_curve: IsdaYieldCurve,
        coupon: Optional[float] = None,
    ) -> float:
        """Points-upfront equivalent of ``quote`` at ``coupon``.

        ``coupon`` defaults to the quote's own coupon. When it differs the
        quote is carried over through a flat credit curve.
        """
        quote_coupon, quote_puf = self.calibrator.to_upfront(cds, quote, yield_curve)
        if coupon is None or coupon == quote_coupon:
            return quote_puf
        flat = self.calibrator.calibrate_upfront([cds], [quote_coupon], [quote_puf], yield_curve)
        return self.pricer.pv(cds, yield_curve, flat, coupon, PriceType.CLEAN)
