"""Intrinsic (bottom-up) valuation of a CDS index from its constituents."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from creditlib.calibration.base import CalibrationConfig
from creditlib.calibration.credit import IsdaCreditCurveCalibrator
from creditlib.conventions.types import AccrualOnDefaultFormula, PriceType
from creditlib.curves.credit_curve import IsdaCreditCurve
from creditlib.curves.yield_curve import IsdaYieldCurve
from creditlib.instruments.cds import CdsAnalytic
from creditlib.pricing.cds_pricer import AnalyticCdsPricer

from .bundle import IntrinsicIndexDataBundle

logger = logging.getLogger(__name__)

ONE_BP = 1e-4


class CdsIndexCalculator:
    """Values an index CDS as the weighted sum of single-name CDSs.

    Each constituent uses the index CDS's schedule with its own credit curve
    and loss given default. Defaulted names drop out of both legs.

    Args:
        formula: Accrual-on-default formula of the underlying pricer
    """

    def __init__(self, formula: AccrualOnDefaultFormula = AccrualOnDefaultFormula.ORIGINAL_ISDA):
        self.formula = formula
        self.pricer = AnalyticCdsPricer(formula)

    def index_protection_leg(
        self,
        index_cds: CdsAnalytic,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
        valuation_time: Optional[float] = None,
    ) -> float:
        """Protection leg per unit of initial index notional."""
        if valuation_time is None:
            valuation_time = index_cds.cash_settle_time
        unit_lgd = index_cds.with_recovery_rate(0.0)
        total = 0.0
        for i in bundle.alive_indices():
            total += (
                bundle.weight(i)
                * bundle.lgd(i)
                * self.pricer.protection_leg(unit_lgd, yield_curve, bundle.credit_curve(i), 0.0)
            )
        return total / yield_curve.discount_factor(valuation_time)

    def index_annuity(
        self,
        index_cds: CdsAnalytic,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
        price_type: PriceType = PriceType.CLEAN,
        valuation_time: Optional[float] = None,
    ) -> float:
        """Risky PV01 per unit of initial index notional."""
        if valuation_time is None:
            valuation_time = index_cds.cash_settle_time
        total = 0.0
        for i in bundle.alive_indices():
            total += bundle.weight(i) * self.pricer.annuity(
                index_cds, yield_curve, bundle.credit_curve(i), price_type, 0.0
            )
        return total / yield_curve.discount_factor(valuation_time)

    def index_pv(
        self,
        index_cds: CdsAnalytic,
        index_coupon: float,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
        price_type: PriceType = PriceType.CLEAN,
        valuation_time: Optional[float] = None,
    ) -> float:
        """Intrinsic value of protection bought, per unit of initial notional."""
        prot = self.index_protection_leg(index_cds, yield_curve, bundle, valuation_time)
        annuity = self.index_annuity(index_cds, yield_curve, bundle, price_type, valuation_time)
        return prot - index_coupon * annuity

    def index_puf(
        self,
        index_cds: CdsAnalytic,
        index_coupon: float,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
    ) -> float:
        """Intrinsic points-upfront, per unit of current (remaining) notional."""
        if bundle.num_defaults == bundle.index_size:
            raise ValueError("Every name in the index has defaulted")
        pv = self.index_pv(index_cds, index_coupon, yield_curve, bundle)
        return pv / bundle.index_factor

    def intrinsic_index_spread(
        self,
        index_cds: CdsAnalytic,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
    ) -> float:
        """Coupon at which the intrinsic index value is zero."""
        if bundle.num_defaults == bundle.index_size:
            raise ValueError("Every name in the index has defaulted")
        prot = self.index_protection_leg(index_cds, yield_curve, bundle)
        annuity = self.index_annuity(index_cds, yield_curve, bundle)
        return prot / annuity

    def average_spread(
        self,
        index_cds: CdsAnalytic,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
    ) -> float:
        """Weighted average of the constituents' par spreads."""
        if bundle.num_defaults == bundle.index_size:
            raise ValueError("Every name in the index has defaulted")
        unit_lgd = index_cds.with_recovery_rate(0.0)
        total = 0.0
        for i in bundle.alive_indices():
            curve = bundle.credit_curve(i)
            prot = bundle.lgd(i) * self.pricer.protection_leg(unit_lgd, yield_curve, curve)
            annuity = self.pricer.annuity(unit_lgd, yield_curve, curve)
            total += bundle.weight(i) * prot / annuity
        return total / bundle.index_factor

    def expected_default_settlement_value(
        self, t: float, bundle: IntrinsicIndexDataBundle
    ) -> float:
        """Expected default settlement amount paid at time ``t``.

        Names that have already defaulted count in full.
        """
        total = 0.0
        for i in range(bundle.index_size):
            if bundle.is_defaulted(i):
                default_probability = 1.0
            else:
                default_probability = 1.0 - bundle.credit_curve(i).survival_probability(t)
            total += bundle.weight(i) * bundle.lgd(i) * default_probability
        return total

    # ------------------------------------------------------------------
    # Forward values adjusted for defaults
    # ------------------------------------------------------------------
    @staticmethod
    def _check_forward(fwd_cds: CdsAnalytic, time_to_expiry: float) -> None:
        if time_to_expiry < 0.0:
            raise ValueError(f"time_to_expiry must be non-negative, got {time_to_expiry}")
        if fwd_cds.effective_protection_start < time_to_expiry:
            raise ValueError(
                f"Effective protection start {fwd_cds.effective_protection_start} is before "
                f"expiry {time_to_expiry}; a forward starting CDS is required"
            )

    def expected_index_curve_settlement_value(
        self,
        t: float,
        index_curve: IsdaCreditCurve,
        lgd: float,
        initial_index_size: Optional[int] = None,
        initial_default_settlement: float = 0.0,
        num_defaults: int = 0,
    ) -> float:
        """Expected default settlement at ``t`` when the index is one credit curve.

        Args:
            t: Time of the (expiry) settlement
            index_curve: Credit curve of the whole index
            lgd: Index loss given default
            initial_index_size: Number of names at issue; needed once names have defaulted
            initial_default_settlement: Normalised settlement of the defaults so far
            num_defaults: Number of defaults so far
        """
        if not 0.0 <= lgd <= 1.0:
            raise ValueError(f"lgd must be in [0, 1], got {lgd}")
        default_fraction = self._default_fraction(
            initial_index_size, initial_default_settlement, num_defaults
        )
        q = index_curve.survival_probability(t)
        return (1.0 - default_fraction) * lgd * (1.0 - q) + initial_default_settlement

    @staticmethod
    def _default_fraction(
        initial_index_size: Optional[int], initial_default_settlement: float, num_defaults: int
    ) -> float:
        if initial_index_size is None:
            if num_defaults or initial_default_settlement:
                raise ValueError("initial_index_size is needed once names have defaulted")
            return 0.0
        if initial_index_size <= 1:
            raise ValueError(f"initial_index_size must exceed 1, got {initial_index_size}")
        if not 0 <= num_defaults <= initial_index_size:
            raise ValueError(
                f"num_defaults must be in [0, {initial_index_size}], got {num_defaults}"
            )
        default_fraction = num_defaults / initial_index_size
        # the upper limit is every default settling with zero recovery
        if not 0.0 <= initial_default_settlement <= default_fraction:
            raise ValueError(
                f"initial_default_settlement must be in [0, {default_fraction}], "
                f"got {initial_default_settlement}"
            )
        return default_fraction

    def default_adjusted_forward_index_value(
        self,
        fwd_cds: CdsAnalytic,
        time_to_expiry: float,
        yield_curve: IsdaYieldCurve,
        index_coupon: float,
        bundle: IntrinsicIndexDataBundle,
    ) -> float:
        """Expected index value at expiry plus the settlement of defaults before it.

        ``fwd_cds`` must start protection no earlier than ``time_to_expiry``.
        """
        self._check_forward(fwd_cds, time_to_expiry)
        pv = self.index_pv(fwd_cds, index_coupon, yield_curve, bundle)
        return pv + self.expected_default_settlement_value(time_to_expiry, bundle)

    def default_adjusted_forward_index_value_from_curve(
        self,
        fwd_cds: CdsAnalytic,
        time_to_expiry: float,
        yield_curve: IsdaYieldCurve,
        index_coupon: float,
        index_curve: IsdaCreditCurve,
        initial_index_size: Optional[int] = None,
        initial_default_settlement: float = 0.0,
        num_defaults: int = 0,
    ) -> float:
        self._check_forward(fwd_cds, time_to_expiry)
        settlement = self.expected_index_curve_settlement_value(
            time_to_expiry,
            index_curve,
            fwd_cds.lgd,
            initial_index_size,
            initial_default_settlement,
            num_defaults,
        )
        f = 1.0 if initial_index_size is None else 1.0 - num_defaults / initial_index_size
        return settlement + f * self.pricer.pv(fwd_cds, yield_curve, index_curve, index_coupon)

    def default_adjusted_forward_spread(
        self,
        fwd_cds: CdsAnalytic,
        time_to_expiry: float,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
    ) -> float:
        """Ratio of expected protection plus default settlement to the expected annuity.

        All three are values at the forward cash settlement date.
        """
        self._check_forward(fwd_cds, time_to_expiry)
        prot = self.index_protection_leg(fwd_cds, yield_curve, bundle)
        settlement = self.expected_default_settlement_value(time_to_expiry, bundle)
        annuity = self.index_annuity(fwd_cds, yield_curve, bundle)
        return (prot + settlement) / annuity

    def default_adjusted_forward_spread_from_curve(
        self,
        fwd_cds: CdsAnalytic,
        time_to_expiry: float,
        yield_curve: IsdaYieldCurve,
        index_curve: IsdaCreditCurve,
        initial_index_size: Optional[int] = None,
        initial_default_settlement: float = 0.0,
        num_defaults: int = 0,
    ) -> float:
        self._check_forward(fwd_cds, time_to_expiry)
        settlement = self.expected_index_curve_settlement_value(
            time_to_expiry,
            index_curve,
            fwd_cds.lgd,
            initial_index_size,
            initial_default_settlement,
            num_defaults,
        )
        f = 1.0 if initial_index_size is None else 1.0 - num_defaults / initial_index_size
        prot = f * self.pricer.protection_leg(fwd_cds, yield_curve, index_curve)
        annuity = f * self.pricer.annuity(fwd_cds, yield_curve, index_curve)
        return (prot + settlement) / annuity

    # ------------------------------------------------------------------
    # Sensitivities
    # ------------------------------------------------------------------
    def parallel_ir01(
        self,
        index_cds: CdsAnalytic,
        index_coupon: float,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
    ) -> float:
        """Change in dirty index value for a 1bp rise of every zero rate."""
        base = self.index_pv(index_cds, index_coupon, yield_curve, bundle, PriceType.DIRTY)
        bumped_curve = yield_curve.with_rates(yield_curve.knot_zero_rates + ONE_BP)
        bumped = self.index_pv(index_cds, index_coupon, bumped_curve, bundle, PriceType.DIRTY)
        return bumped - base

    def bucketed_ir01(
        self,
        index_cds: CdsAnalytic,
        index_coupon: float,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
    ) -> List[float]:
        """Change in dirty index value for a 1bp rise of each zero rate in turn."""
        base = self.index_pv(index_cds, index_coupon, yield_curve, bundle, PriceType.DIRTY)
        result = []
        for i in range(yield_curve.number_of_knots):
            bumped_curve = yield_curve.with_rate(yield_curve.zero_rate_at_index(i) + ONE_BP, i)
            bumped = self.index_pv(index_cds, index_coupon, bumped_curve, bundle, PriceType.DIRTY)
            result.append(bumped - base)
        return result

    def recovery01(
        self,
        index_cds: CdsAnalytic,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
    ) -> List[float]:
        """Change in index value per unit rise of each name's recovery rate.

        The value is linear in each recovery rate, so no bump is needed.
        Defaulted names have zero sensitivity.
        """
        unit_lgd = index_cds.with_recovery_rate(0.0)
        return [
            0.0
            if bundle.is_defaulted(i)
            else -bundle.weight(i)
            * self.pricer.protection_leg(unit_lgd, yield_curve, bundle.credit_curve(i))
            for i in range(bundle.index_size)
        ]

    # ------------------------------------------------------------------
    # Jump to default
    # ------------------------------------------------------------------
    def jump_to_default(
        self,
        index_cds: CdsAnalytic,
        index_coupon: float,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
        name_index: int,
    ) -> float:
        """Change in index value if ``name_index`` defaulted immediately."""
        if bundle.is_defaulted(name_index):
            raise ValueError(f"Name {name_index} has already defaulted")
        pv = self.pricer.pv(
            index_cds, yield_curve, bundle.credit_curve(name_index), index_coupon, PriceType.CLEAN
        )
        return bundle.weight(name_index) * (bundle.lgd(name_index) - pv)

    def jump_to_default_all(
        self,
        index_cds: CdsAnalytic,
        index_coupon: float,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
    ) -> List[float]:
        """Jump-to-default per name (zero for defaulted names)."""
        return [
            0.0
            if bundle.is_defaulted(i)
            else self.jump_to_default(index_cds, index_coupon, yield_curve, bundle, i)
            for i in range(bundle.index_size)
        ]

    def implied_index_curve(
        self,
        index_cds_list: Sequence[CdsAnalytic],
        index_coupon: float,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
        config: Optional[CalibrationConfig] = None,
    ) -> IsdaCreditCurve:
        """Single credit curve that reprices the intrinsic index upfronts."""
        pufs = [
            self.index_puf(cds, index_coupon, yield_curve, bundle) for cds in index_cds_list
        ]
        logger.debug("Intrinsic index upfronts: %s", pufs)
        calibrator = IsdaCreditCurveCalibrator(self.formula, config=config)
        return calibrator.calibrate_upfront(
            index_cds_list, [index_coupon] * len(pufs), pufs, yield_curve
        )
