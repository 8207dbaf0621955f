"""Analytic ISDA CDS pricer (protection and premium legs)."""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from creditlib.conventions.types import AccrualOnDefaultFormula, PriceType
from creditlib.curves.credit_curve import IsdaCreditCurve
from creditlib.curves.yield_curve import IsdaYieldCurve
from creditlib.instruments.cds import CdsAnalytic, CdsCoupon
from creditlib.utils.mathutils import epsilon, epsilon_p, integration_points

logger = logging.getLogger(__name__)

# below this |d(h+r)| the closed forms switch to their series expansions
_SMALL_EXPONENT = 1e-5


def _truncate(lower: float, upper: float, points: np.ndarray) -> np.ndarray:
    inner = points[(points > lower) & (points < upper)]
    return np.concatenate(([lower], inner, [upper]))


class AnalyticCdsPricer:
    """Prices CDS legs off ISDA yield and credit curves.

    Both legs are integrated exactly between the union of the two curves'
    knots, where hazard and forward rates are constant.

    Args:
        formula: Accrual-on-default formula used for the premium leg
    """

    def __init__(self, formula: AccrualOnDefaultFormula = AccrualOnDefaultFormula.ORIGINAL_ISDA):
        self.formula = formula
        self._omega = formula.omega
        if formula is AccrualOnDefaultFormula.MARKIT_FIX:
            self._segment = self._markit_fix_segment
        else:
            self._segment = self._isda_segment

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def pv(
        self,
        cds: CdsAnalytic,
        yield_curve: IsdaYieldCurve,
        credit_curve: IsdaCreditCurve,
        fractional_spread: float,
        price_type: PriceType = PriceType.CLEAN,
        valuation_time: Optional[float] = None,
    ) -> float:
        """Value of protection bought, per unit notional, at ``valuation_time``.

        ``valuation_time`` defaults to the cash settlement time, in which case
        the clean value is the points-upfront.
        """
        if cds.protection_end <= 0.0:
            return 0.0
        if valuation_time is None:
            valuation_time = cds.cash_settle_time
        rpv01 = self.annuity(cds, yield_curve, credit_curve, price_type, 0.0)
        pro_leg = self.protection_leg(cds, yield_curve, credit_curve, 0.0)
        df = yield_curve.discount_factor(valuation_time)
        return (pro_leg - fractional_spread * rpv01) / df

    def points_upfront(
        self,
        cds: CdsAnalytic,
        yield_curve: IsdaYieldCurve,
        credit_curve: IsdaCreditCurve,
        fractional_spread: float,
    ) -> float:
        return self.pv(cds, yield_curve, credit_curve, fractional_spread, PriceType.CLEAN)

    def par_spread(
        self,
        cds: CdsAnalytic,
        yield_curve: IsdaYieldCurve,
        credit_curve: IsdaCreditCurve,
    ) -> float:
        """Running spread at which the CDS has zero clean value."""
        if cds.protection_end <= 0.0:
            raise ValueError("CDS has expired")
        rpv01 = self.annuity(cds, yield_curve, credit_curve, PriceType.CLEAN, 0.0)
        pro_leg = self.protection_leg(cds, yield_curve, credit_curve, 0.0)
        return pro_leg / rpv01

    def protection_leg(
        self,
        cds: CdsAnalytic,
        yield_curve: IsdaYieldCurve,
        credit_curve: IsdaCreditCurve,
        valuation_time: Optional[float] = None,
    ) -> float:
        """Value of the protection leg: ``lgd * int P(t) dQ(t)``."""
        if valuation_time is None:
            valuation_time = cds.cash_settle_time
        knots = integration_points(
            cds.effective_protection_start,
            cds.protection_end,
            yield_curve.knot_times,
            credit_curve.knot_times,
        )
        ht0 = credit_curve.rt(knots[0])
        rt0 = yield_curve.rt(knots[0])
        b0 = math.exp(-ht0 - rt0)
        pv = 0.0
        for t in knots[1:]:
            ht1 = credit_curve.rt(t)
            rt1 = yield_curve.rt(t)
            b1 = math.exp(-ht1 - rt1)
            dht = ht1 - ht0
            dhrt = dht + rt1 - rt0
            if abs(dhrt) < _SMALL_EXPONENT:
                pv += dht * b0 * epsilon(-dhrt)
            else:
                pv += (b0 - b1) * dht / dhrt
            ht0, rt0, b0 = ht1, rt1, b1
        pv *= cds.lgd
        return pv / yield_curve.discount_factor(valuation_time)

    def annuity(
        self,
        cds: CdsAnalytic,
        yield_curve: IsdaYieldCurve,
        credit_curve: IsdaCreditCurve,
        price_type: PriceType = PriceType.CLEAN,
        valuation_time: Optional[float] = None,
    ) -> float:
        """Risky PV01 (premium leg for a unit spread)."""
        if valuation_time is None:
            valuation_time = cds.cash_settle_time
        pv = self.dirty_annuity(cds, yield_curve, credit_curve)
        val_df = yield_curve.discount_factor(valuation_time)
        if price_type is PriceType.CLEAN:
            cs_time = cds.cash_settle_time
            cs_df = val_df if valuation_time == cs_time else yield_curve.discount_factor(cs_time)
            prot_start = cds.effective_protection_start
            q = 1.0 if prot_start == 0.0 else credit_curve.survival_probability(prot_start)
            pv -= cds.accrued_year_fraction * cs_df * q
        return pv / val_df

    def dirty_annuity(
        self,
        cds: CdsAnalytic,
        yield_curve: IsdaYieldCurve,
        credit_curve: IsdaCreditCurve,
    ) -> float:
        """Premium leg for a unit spread, discounted to the trade date."""
        pv = 0.0
        for coupon in cds.coupons:
            p = yield_curve.discount_factor(coupon.payment_time)
            q = credit_curve.survival_probability(coupon.effective_end)
            pv += coupon.year_frac * p * q

        if cds.pay_accrual_on_default:
            start = (
                cds.effective_protection_start
                if cds.number_of_coupons == 1
                else cds.accrual_start
            )
            points = integration_points(
                start, cds.protection_end, yield_curve.knot_times, credit_curve.knot_times
            )
            for coupon in cds.coupons:
                pv += self._accrual_on_default(
                    coupon, cds.effective_protection_start, points, yield_curve, credit_curve
                )
        return pv

    # ------------------------------------------------------------------
    # Accrual on default
    # ------------------------------------------------------------------
    def _accrual_on_default(
        self,
        coupon: CdsCoupon,
        effective_start: float,
        points: np.ndarray,
        yield_curve: IsdaYieldCurve,
        credit_curve: IsdaCreditCurve,
    ) -> float:
        start = max(coupon.effective_start, effective_start)
        if start >= coupon.effective_end:
            return 0.0
        knots = _truncate(start, coupon.effective_end, points)

        t = knots[0]
        ht0 = credit_curve.rt(t)
        rt0 = yield_curve.rt(t)
        b0 = math.exp(-rt0 - ht0)
        t0 = t - coupon.effective_start + self._omega
        pv = 0.0
        for j in range(1, len(knots)):
            t = knots[j]
            ht1 = credit_curve.rt(t)
            rt1 = yield_curve.rt(t)
            b1 = math.exp(-rt1 - ht1)
            dt = knots[j] - knots[j - 1]
            dht = ht1 - ht0
            dhrt = dht + rt1 - rt0
            t1 = t - coupon.effective_start + self._omega
            pv += self._segment(dht, dhrt, dt, b0, b1, t0, t1)
            ht0, rt0, b0, t0 = ht1, rt1, b1, t1
        return coupon.yf_ratio * pv

    @staticmethod
    def _isda_segment(dht, dhrt, dt, b0, b1, t0, t1) -> float:
        if abs(dhrt) < _SMALL_EXPONENT:
            return dht * b0 * (t0 * epsilon(-dhrt) + dt * epsilon_p(-dhrt))
        return dht / dhrt * (t0 * b0 - t1 * b1 + dt / dhrt * (b0 - b1))

    @staticmethod
    def _markit_fix_segment(dht, dhrt, dt, b0, b1, t0, t1) -> float:
        # TODO: confirm against the Markit-fixed ISDA reference results
        if abs(dhrt) < _SMALL_EXPONENT:
            return dht * dt * b0 * epsilon_p(-dhrt)
        return dht * dt / dhrt * ((b0 - b1) / dhrt - b1)
