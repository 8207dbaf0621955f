"""
ISDA credit curve calibration from CDS quotes.

Pillars are bootstrapped in maturity order. For pillar ``k`` the
accumulated hazard at the pillar's protection end is solved so the CDS
clean value matches its points-upfront, with earlier knots held fixed.
"""

import logging
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from creditlib.conventions.types import AccrualOnDefaultFormula, ArbitrageHandling, PriceType
from creditlib.curves.credit_curve import IsdaCreditCurve
from creditlib.curves.yield_curve import IsdaYieldCurve
from creditlib.instruments.cds import CdsAnalytic
from creditlib.instruments.quotes import CdsQuote, ParSpread, PointsUpFront, QuotedSpread
from creditlib.pricing.cds_pricer import AnalyticCdsPricer
from creditlib.utils.rootfinding import with_numerical_derivative

from .base import ArbitrageError, BaseCalibrator, CalibrationConfig, check_ascending

logger = logging.getLogger(__name__)


class IsdaCreditCurveCalibrator(BaseCalibrator):
    """
    Sequential bootstrapper of piecewise-flat hazard rate curves.

    Args:
        formula: Accrual-on-default formula used by every pricing call
        arbitrage_handling: What to do on a negative forward hazard rate
        config: Root-finder settings
    """

    def __init__(
        self,
        formula: AccrualOnDefaultFormula = AccrualOnDefaultFormula.ORIGINAL_ISDA,
        arbitrage_handling: ArbitrageHandling = ArbitrageHandling.IGNORE,
        config: Optional[CalibrationConfig] = None,
    ):
        super().__init__(config)
        self.formula = formula
        self.arbitrage_handling = arbitrage_handling
        self.pricer = AnalyticCdsPricer(formula)

    # ------------------------------------------------------------------
    # Quote normalization
    # ------------------------------------------------------------------
    def to_upfront(
        self, cds: CdsAnalytic, quote: CdsQuote, yield_curve: IsdaYieldCurve
    ) -> Tuple[float, float]:
        """Express a quote as ``(coupon, points_upfront)``.

        A quoted spread is turned into an upfront through a flat credit
        curve calibrated to that spread alone.
        """
        if isinstance(quote, ParSpread):
            return quote.spread, 0.0
        if isinstance(quote, PointsUpFront):
            return quote.premium, quote.puf
        if isinstance(quote, QuotedSpread):
            flat = self.calibrate_upfront([cds], [quote.quoted_spread], [0.0], yield_curve)
            puf = self.pricer.pv(cds, yield_curve, flat, quote.premium, PriceType.CLEAN)
            return quote.premium, puf
        raise ValueError(f"Unknown quote convention: {type(quote).__name__}")

    # ------------------------------------------------------------------
    # Calibration
    # ------------------------------------------------------------------
    def calibrate(
        self,
        cds_list: Sequence[CdsAnalytic],
        quotes: Sequence[CdsQuote],
        yield_curve: IsdaYieldCurve,
    ) -> IsdaCreditCurve:
        """Calibrate to one quote per CDS (par spread, quoted spread or PUF)."""
        if len(cds_list) != len(quotes):
            raise ValueError(f"Got {len(cds_list)} CDS but {len(quotes)} quotes")
        coupons, pufs = [], []
        for cds, quote in zip(cds_list, quotes):
            coupon, puf = self.to_upfront(cds, quote, yield_curve)
            coupons.append(coupon)
            pufs.append(puf)
        return self.calibrate_upfront(cds_list, coupons, pufs, yield_curve)

    def calibrate_flat(
        self, cds: CdsAnalytic, quote: CdsQuote, yield_curve: IsdaYieldCurve
    ) -> IsdaCreditCurve:
        """Single-knot (constant hazard rate) curve repricing one CDS."""
        return self.calibrate([cds], [quote], yield_curve)

    def calibrate_upfront(
        self,
        cds_list: Sequence[CdsAnalytic],
        coupons: Sequence[float],
        pufs: Sequence[float],
        yield_curve: IsdaYieldCurve,
    ) -> IsdaCreditCurve:
        """
        Calibrate so every CDS has clean value ``puf`` at its coupon.

        Args:
            cds_list: Pillar CDSs in strictly ascending protection end order
            coupons: Running coupon per CDS
            pufs: Points-upfront per CDS
            yield_curve: Discount curve based at the trade date

        Returns:
            Credit curve with one knot per pillar at its protection end
        """
        n = len(cds_list)
        if n == 0:
            raise ValueError("Need at least one CDS to calibrate a credit curve")
        if len(coupons) != n or len(pufs) != n:
            raise ValueError(
                f"Got {n} CDS, {len(coupons)} coupons and {len(pufs)} upfronts"
            )
        times = [cds.protection_end for cds in cds_list]
        check_ascending(times, "CDS protection end times")
        for i, cds in enumerate(cds_list):
            if cds.lgd == 0.0:
                raise ValueError(f"CDS {i} has zero loss given default and cannot be calibrated")

        logger.info(
            "Calibrating ISDA credit curve: %d pillars, formula %s, arbitrage handling %s",
            n,
            self.formula.value,
            self.arbitrage_handling.value,
        )

        curve = IsdaCreditCurve(times, np.zeros(n))
        for k, cds in enumerate(cds_list):
            root = self._solve_pillar(curve, k, cds, coupons[k], pufs[k], yield_curve)
            root = self._check_arbitrage(curve, k, root)
            curve = curve.with_rt(root, k)
        return curve

    def _solve_pillar(
        self,
        curve: IsdaCreditCurve,
        k: int,
        cds: CdsAnalytic,
        coupon: float,
        puf: float,
        yield_curve: IsdaYieldCurve,
    ) -> float:
        t_k = curve.time_at_index(k)

        def objective(x: float) -> float:
            trial = curve.with_rt(x, k)
            return self.pricer.pv(cds, yield_curve, trial, coupon, PriceType.CLEAN) - puf

        guess = (coupon + puf / t_k) / cds.lgd * t_k
        if guess > 0.0:
            bracket = (0.8 * guess, 1.25 * guess)
        else:
            bracket = (0.0, 0.01 * t_k)
        return self._solve_node(
            f"pillar {k} (t={t_k:.6f})", with_numerical_derivative(objective), bracket
        )

    def _check_arbitrage(self, curve: IsdaCreditCurve, k: int, rt_k: float) -> float:
        t_k = curve.time_at_index(k)
        t_prev = curve.time_at_index(k - 1) if k > 0 else 0.0
        rt_prev = curve.rt_at_index(k - 1) if k > 0 else 0.0
        if rt_k >= rt_prev:
            return rt_k

        forward = (rt_k - rt_prev) / (t_k - t_prev)
        if self.arbitrage_handling is ArbitrageHandling.FAIL:
            raise ArbitrageError(
                f"Negative forward hazard rate {forward:.6g} between t={t_prev:.6f} "
                f"and t={t_k:.6f} (pillar {k})"
            )
        if self.arbitrage_handling is ArbitrageHandling.ZERO_HAZARD_RATE:
            logger.warning(
                "Negative forward hazard rate %.6g at pillar %d set to zero", forward, k
            )
            return rt_prev
        logger.warning("Negative forward hazard rate %.6g at pillar %d ignored", forward, k)
        return rt_k


def calibrate_credit_curve(
    cds: Union[CdsAnalytic, Sequence[CdsAnalytic]],
    quotes: Union[CdsQuote, Sequence[CdsQuote]],
    yield_curve: IsdaYieldCurve,
    *,
    formula: AccrualOnDefaultFormula = AccrualOnDefaultFormula.ORIGINAL_ISDA,
    arbitrage_handling: ArbitrageHandling = ArbitrageHandling.IGNORE,
    config: Optional[CalibrationConfig] = None,
) -> IsdaCreditCurve:
    """Calibrate a credit curve to one or more CDS quotes."""
    cds_list: List[CdsAnalytic] = [cds] if isinstance(cds, CdsAnalytic) else list(cds)
    quote_list = [quotes] if isinstance(quotes, CdsQuote) else list(quotes)
    calibrator = IsdaCreditCurveCalibrator(formula, arbitrage_handling, config)
    return calibrator.calibrate(cds_list, quote_list, yield_curve)
