"""
Finite-difference credit spread sensitivities (CS01).

Market spreads are bumped, the credit curve is recalibrated and the CDS
repriced. Results are price changes divided by the bump, so a bump of
``1e-4`` gives the value change per basis point scaled to a unit move.
"""

import bisect
import logging
from typing import List, Optional, Sequence, Union

from creditlib.conventions.types import (
    AccrualOnDefaultFormula,
    FiniteDifferenceType,
    PriceType,
    ShiftType,
)
from creditlib.curves.credit_curve import IsdaCreditCurve
from creditlib.curves.yield_curve import IsdaYieldCurve
from creditlib.instruments.cds import CdsAnalytic
from creditlib.instruments.quotes import CdsQuote, ParSpread, PointsUpFront, QuotedSpread

from .base import CalibrationConfig, check_ascending
from .quote_converter import MarketQuoteConverter

logger = logging.getLogger(__name__)

ONE_BP = 1e-4
_MIN_BUMP = 1e-10


def _check_bump(bump: float) -> None:
    if abs(bump) <= _MIN_BUMP:
        raise ValueError(f"Bump amount {bump} is too small")


def _check_lengths(cds_list: Sequence[CdsAnalytic], values: Sequence, what: str) -> None:
    if not cds_list:
        raise ValueError("Need at least one market CDS")
    if len(values) != len(cds_list):
        raise ValueError(f"Got {len(cds_list)} market CDSs but {len(values)} {what}")


def _bumped_spreads(
    spreads: Sequence[float],
    amount: float,
    shift_type: ShiftType,
    index: Optional[int] = None,
) -> List[float]:
    """Shift every spread, or only ``spreads[index]`` when ``index`` is given."""
    return [
        shift_type.apply(s, amount) if index is None or i == index else s
        for i, s in enumerate(spreads)
    ]


class SpreadSensitivityCalculator:
    """
    CS01 of a CDS with respect to the market quotes behind its credit curve.

    Args:
        formula: Accrual-on-default formula for calibration and pricing
        config: Root-finder settings for the recalibrations
    """

    def __init__(
        self,
        formula: AccrualOnDefaultFormula = AccrualOnDefaultFormula.ORIGINAL_ISDA,
        config: Optional[CalibrationConfig] = None,
    ):
        self.converter = MarketQuoteConverter(formula, config)
        self.calibrator = self.converter.calibrator
        self.pricer = self.calibrator.pricer

    def _curve_from_spreads(
        self,
        cds_list: Sequence[CdsAnalytic],
        spreads: Sequence[float],
        yield_curve: IsdaYieldCurve,
    ) -> IsdaCreditCurve:
        return self.calibrator.calibrate_upfront(
            cds_list, spreads, [0.0] * len(spreads), yield_curve
        )

    # ------------------------------------------------------------------
    # Parallel CS01
    # ------------------------------------------------------------------
    def parallel_cs01(
        self,
        cds: CdsAnalytic,
        quote: CdsQuote,
        yield_curve: IsdaYieldCurve,
        bump: float = ONE_BP,
    ) -> float:
        """Parallel CS01 of a CDS from its own market quote."""
        if isinstance(quote, QuotedSpread):
            return self.parallel_cs01_from_par_spreads(
                cds, quote.premium, yield_curve, [cds], [quote.quoted_spread], bump
            )
        if isinstance(quote, PointsUpFront):
            return self.parallel_cs01_from_puf(cds, quote.premium, yield_curve, quote.puf, bump)
        if isinstance(quote, ParSpread):
            return self.parallel_cs01_from_par_spreads(
                cds, quote.spread, yield_curve, [cds], [quote.spread], bump
            )
        raise ValueError(f"Unknown quote convention: {type(quote).__name__}")

    def parallel_cs01_from_puf(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: IsdaYieldCurve,
        puf: float,
        bump: float = ONE_BP,
    ) -> float:
        """Bump the quoted spread implied by ``puf`` and reprice on a flat curve."""
        _check_bump(bump)
        bumped_spread = self.converter.puf_to_quoted_spread(cds, coupon, yield_curve, puf) + bump
        bumped_curve = self._curve_from_spreads([cds], [bumped_spread], yield_curve)
        bumped_price = self.pricer.pv(cds, yield_curve, bumped_curve, coupon)
        return (bumped_price - puf) / bump

    def parallel_cs01_from_spread(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: IsdaYieldCurve,
        market_spread: float,
        bump: float = ONE_BP,
        shift_type: ShiftType = ShiftType.ABSOLUTE,
    ) -> float:
        return self.parallel_cs01_from_par_spreads(
            cds, coupon, yield_curve, [cds], [market_spread], bump, shift_type
        )

    def parallel_cs01_from_quoted_spread(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: IsdaYieldCurve,
        reference_cds: CdsAnalytic,
        quoted_spread: float,
        bump: float = ONE_BP,
        shift_type: ShiftType = ShiftType.ABSOLUTE,
    ) -> float:
        """Parallel CS01 of ``cds`` from the quoted spread of ``reference_cds``."""
        return self.parallel_cs01_from_par_spreads(
            cds, coupon, yield_curve, [reference_cds], [quoted_spread], bump, shift_type
        )

    def parallel_cs01_from_pillar_quotes(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: IsdaYieldCurve,
        market_cds: Sequence[CdsAnalytic],
        quotes: Sequence[CdsQuote],
        bump: float = ONE_BP,
    ) -> float:
        """Parallel CS01 with every pillar quote bumped by ``bump``."""
        _check_bump(bump)
        _check_lengths(market_cds, quotes, "quotes")
        base_curve = self.calibrator.calibrate(market_cds, quotes, yield_curve)
        base_price = self.pricer.pv(cds, yield_curve, base_curve, coupon)
        bumped_quotes = self.bump_quotes(market_cds, quotes, yield_curve, bump)
        bumped_curve = self.calibrator.calibrate(market_cds, bumped_quotes, yield_curve)
        bumped_price = self.pricer.pv(cds, yield_curve, bumped_curve, coupon)
        return (bumped_price - base_price) / bump

    def parallel_cs01_from_par_spreads(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: IsdaYieldCurve,
        market_cds: Sequence[CdsAnalytic],
        par_spreads: Sequence[float],
        bump: float = ONE_BP,
        shift_type: ShiftType = ShiftType.ABSOLUTE,
    ) -> float:
        """Parallel CS01 with every pillar par spread shifted (dirty prices)."""
        _check_bump(bump)
        _check_lengths(market_cds, par_spreads, "par spreads")
        bumped = _bumped_spreads(par_spreads, bump, shift_type)
        diff = self._price_difference(
            cds, coupon, market_cds, bumped, par_spreads, yield_curve, PriceType.DIRTY
        )
        return diff / bump

    def parallel_cs01_from_credit_curve(
        self,
        cds: CdsAnalytic,
        coupon: float,
        pillar_cds: Sequence[CdsAnalytic],
        yield_curve: IsdaYieldCurve,
        credit_curve: IsdaCreditCurve,
        bump: float = ONE_BP,
    ) -> float:
        """Parallel CS01 from the par spreads ``credit_curve`` implies at the pillars."""
        _check_bump(bump)
        check_ascending([c.protection_end for c in pillar_cds], "Pillar CDS protection ends")
        implied = [self.pricer.par_spread(c, yield_curve, credit_curve) for c in pillar_cds]
        base_curve = self._curve_from_spreads(pillar_cds, implied, yield_curve)
        base_price = self.pricer.pv(cds, yield_curve, base_curve, coupon)
        bumped_curve = self._curve_from_spreads(
            pillar_cds, _bumped_spreads(implied, bump, ShiftType.ABSOLUTE), yield_curve
        )
        price = self.pricer.pv(cds, yield_curve, bumped_curve, coupon)
        return (price - base_price) / bump

    # ------------------------------------------------------------------
    # Bucketed CS01
    # ------------------------------------------------------------------
    def bucketed_cs01_from_pillar_quotes(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: IsdaYieldCurve,
        market_cds: Sequence[CdsAnalytic],
        quotes: Sequence[CdsQuote],
        bump: float = ONE_BP,
    ) -> List[float]:
        """CS01 to each pillar quote in turn."""
        _check_bump(bump)
        _check_lengths(market_cds, quotes, "quotes")
        base_curve = self.calibrator.calibrate(market_cds, quotes, yield_curve)
        base_price = self.pricer.pv(cds, yield_curve, base_curve, coupon)
        result = []
        for i in range(len(market_cds)):
            bumped_quotes = list(quotes)
            bumped_quotes[i] = self.bump_quote(market_cds[i], quotes[i], yield_curve, bump)
            bumped_curve = self.calibrator.calibrate(market_cds, bumped_quotes, yield_curve)
            price = self.pricer.pv(cds, yield_curve, bumped_curve, coupon)
            result.append((price - base_price) / bump)
        return result

    def bucketed_cs01_from_par_spreads(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: IsdaYieldCurve,
        market_cds: Sequence[CdsAnalytic],
        par_spreads: Sequence[float],
        bump: float = ONE_BP,
        shift_type: ShiftType = ShiftType.ABSOLUTE,
    ) -> List[float]:
        _check_bump(bump)
        _check_lengths(market_cds, par_spreads, "par spreads")
        base_curve = self._curve_from_spreads(market_cds, par_spreads, yield_curve)
        base_price = self.pricer.pv(cds, yield_curve, base_curve, coupon, PriceType.DIRTY)
        result = []
        for i in range(len(market_cds)):
            bumped = _bumped_spreads(par_spreads, bump, shift_type, i)
            bumped_curve = self._curve_from_spreads(market_cds, bumped, yield_curve)
            price = self.pricer.pv(cds, yield_curve, bumped_curve, coupon, PriceType.DIRTY)
            result.append((price - base_price) / bump)
        return result

    def bucketed_cs01_from_quoted_spreads(
        self,
        cds: Union[CdsAnalytic, Sequence[CdsAnalytic]],
        deal_spread: float,
        yield_curve: IsdaYieldCurve,
        market_cds: Sequence[CdsAnalytic],
        quoted_spreads: Sequence[float],
        bump: float = ONE_BP,
        shift_type: ShiftType = ShiftType.ABSOLUTE,
    ) -> Union[List[float], List[List[float]]]:
        """
        Bucketed CS01 when every pillar is quoted at ``deal_spread`` as premium.

        Args:
            cds: Trade CDS, or several trade CDSs sharing the deal spread
            deal_spread: Premium of the trades and of every pillar
            yield_curve: Discount curve
            market_cds: Pillar CDSs
            quoted_spreads: Quoted spread per pillar
            bump: Spread bump
            shift_type: How the bump is applied

        Returns:
            One CS01 per pillar, or one such row per trade when ``cds`` is a list
        """
        _check_bump(bump)
        _check_lengths(market_cds, quoted_spreads, "quoted spreads")
        trades = [cds] if isinstance(cds, CdsAnalytic) else list(cds)
        n = len(market_cds)
        premiums = [deal_spread] * n
        pufs = [
            self.converter.quoted_spread_to_puf(c, deal_spread, yield_curve, s)
            for c, s in zip(market_cds, quoted_spreads)
        ]
        base_curve = self.calibrator.calibrate_upfront(market_cds, premiums, pufs, yield_curve)
        base_prices = [
            self.pricer.pv(trade, yield_curve, base_curve, deal_spread, PriceType.DIRTY)
            for trade in trades
        ]

        rows = [[0.0] * n for _ in trades]
        for i in range(n):
            bumped_pufs = list(pufs)
            bumped_spread = shift_type.apply(quoted_spreads[i], bump)
            bumped_pufs[i] = self.converter.quoted_spread_to_puf(
                market_cds[i], deal_spread, yield_curve, bumped_spread
            )
            bumped_curve = self.calibrator.calibrate_upfront(
                market_cds, premiums, bumped_pufs, yield_curve
            )
            for j, trade in enumerate(trades):
                price = self.pricer.pv(
                    trade, yield_curve, bumped_curve, deal_spread, PriceType.DIRTY
                )
                rows[j][i] = (price - base_prices[j]) / bump
        return rows[0] if isinstance(cds, CdsAnalytic) else rows

    def bucketed_cs01_from_credit_curve(
        self,
        cds: CdsAnalytic,
        coupon: float,
        bucket_cds: Sequence[CdsAnalytic],
        yield_curve: IsdaYieldCurve,
        credit_curve: IsdaCreditCurve,
        bump: float = ONE_BP,
    ) -> List[float]:
        """CS01 to the par spreads ``credit_curve`` implies at the bucket CDSs.

        Buckets after the first one ending on or after the CDS carry no
        sensitivity and are left at zero.
        """
        _check_bump(bump)
        ends = [c.protection_end for c in bucket_cds]
        check_ascending(ends, "Bucket CDS protection ends")
        implied = [self.pricer.par_spread(c, yield_curve, credit_curve) for c in bucket_cds]
        n = len(bucket_cds)
        last = min(bisect.bisect_left(ends, cds.protection_end), n - 1)

        base_curve = self._curve_from_spreads(bucket_cds, implied, yield_curve)
        base_price = self.pricer.pv(cds, yield_curve, base_curve, coupon)
        result = [0.0] * n
        for i in range(last + 1):
            bumped = _bumped_spreads(implied, bump, ShiftType.ABSOLUTE, i)
            bumped_curve = self._curve_from_spreads(bucket_cds, bumped, yield_curve)
            price = self.pricer.pv(cds, yield_curve, bumped_curve, coupon)
            result[i] = (price - base_price) / bump
        return result

    def bucketed_cs01_from_puf(
        self,
        cds: CdsAnalytic,
        quote: PointsUpFront,
        yield_curve: IsdaYieldCurve,
        bucket_cds: Sequence[CdsAnalytic],
        bump: float = ONE_BP,
    ) -> List[float]:
        """Bucketed CS01 of a CDS whose flat curve is implied by its own upfront."""
        curve = self.calibrator.calibrate_flat(cds, quote, yield_curve)
        return self.bucketed_cs01_from_credit_curve(
            cds, quote.premium, bucket_cds, yield_curve, curve, bump
        )

    # ------------------------------------------------------------------
    # Raw finite differences
    # ------------------------------------------------------------------
    def finite_difference_spread_sensitivity(
        self,
        cds: CdsAnalytic,
        spread: float,
        price_type: PriceType,
        yield_curve: IsdaYieldCurve,
        market_cds: Sequence[CdsAnalytic],
        market_spreads: Sequence[float],
        delta_spreads: Sequence[float],
        fd_type: FiniteDifferenceType,
    ) -> float:
        """Price change (not divided by the bump) for per-pillar spread deltas."""
        _check_lengths(market_cds, market_spreads, "spreads")
        _check_lengths(market_cds, delta_spreads, "spread deltas")
        for i, (s, delta) in enumerate(zip(market_spreads, delta_spreads)):
            if s <= 0.0:
                raise ValueError(f"Spread {i} must be positive, got {s}")
            if delta < 0.0:
                raise ValueError(f"Spread delta {i} must be non-negative, got {delta}")
            if fd_type is not FiniteDifferenceType.FORWARD and delta >= s:
                raise ValueError(
                    f"Spread delta {i} ({delta}) must be less than the spread ({s}) "
                    "unless a forward difference is used"
                )

        up = [s + d for s, d in zip(market_spreads, delta_spreads)]
        down = [s - d for s, d in zip(market_spreads, delta_spreads)]
        if fd_type is FiniteDifferenceType.CENTRAL:
            upper, lower = up, down
        elif fd_type is FiniteDifferenceType.FORWARD:
            upper, lower = up, list(market_spreads)
        else:
            upper, lower = list(market_spreads), down
        return self._price_difference(
            cds, spread, market_cds, upper, lower, yield_curve, price_type
        )

    def _price_difference(
        self,
        cds: CdsAnalytic,
        coupon: float,
        market_cds: Sequence[CdsAnalytic],
        spreads_up: Sequence[float],
        spreads_down: Sequence[float],
        yield_curve: IsdaYieldCurve,
        price_type: PriceType,
    ) -> float:
        curve_up = self._curve_from_spreads(market_cds, spreads_up, yield_curve)
        curve_down = self._curve_from_spreads(market_cds, spreads_down, yield_curve)
        up = self.pricer.pv(cds, yield_curve, curve_up, coupon, price_type)
        down = self.pricer.pv(cds, yield_curve, curve_down, coupon, price_type)
        logger.debug("CS01 bump: pv up=%.12g down=%.12g", up, down)
        return up - down

    # ------------------------------------------------------------------
    # Quote bumping
    # ------------------------------------------------------------------
    def bump_quote(
        self, cds: CdsAnalytic, quote: CdsQuote, yield_curve: IsdaYieldCurve, amount: float
    ) -> CdsQuote:
        """Shift a quote's spread by ``amount``, keeping its convention.

        An upfront is shifted through its quoted spread.
        """
        if isinstance(quote, ParSpread):
            return ParSpread(quote.spread + amount)
        if isinstance(quote, QuotedSpread):
            return QuotedSpread(quote.premium, quote.quoted_spread + amount)
        if isinstance(quote, PointsUpFront):
            spread = self.converter.puf_to_quoted_spread(cds, quote.premium, yield_curve, quote.puf)
            puf = self.converter.quoted_spread_to_puf(
                cds, quote.premium, yield_curve, spread + amount
            )
            return PointsUpFront(quote.premium, puf)
        raise ValueError(f"Unknown quote convention: {type(quote).__name__}")

    def bump_quotes(
        self,
        cds_list: Sequence[CdsAnalytic],
        quotes: Sequence[CdsQuote],
        yield_curve: IsdaYieldCurve,
        amount: float,
    ) -> List[CdsQuote]:
        _check_lengths(cds_list, quotes, "quotes")
        return [self.bump_quote(c, q, yield_curve, amount) for c, q in zip(cds_list, quotes)]
