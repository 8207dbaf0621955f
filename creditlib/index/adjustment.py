"""
Portfolio swap adjustment.

The intrinsic value of an index, built bottom-up from single-name curves,
rarely matches the traded index price. The adjustment rescales the
accumulated hazard rates of every constituent curve by a common multiplier
so the intrinsic value reprices the index quote. With several index
maturities the multiplier becomes piecewise constant in time, one piece per
maturity, solved in maturity order.
"""

import logging
from numbers import Real
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from creditlib.calibration.base import CalibrationError
from creditlib.calibration.quote_converter import MarketQuoteConverter
from creditlib.curves.credit_curve import IsdaCreditCurve
from creditlib.curves.yield_curve import IsdaYieldCurve
from creditlib.instruments.cds import CdsAnalytic
from creditlib.instruments.quotes import CdsQuote
from creditlib.utils.rootfinding import RootFindingError, newton_raphson

from .bundle import IntrinsicIndexDataBundle
from .calculator import CdsIndexCalculator

logger = logging.getLogger(__name__)

IndexQuote = Union[float, CdsQuote]

# Relative step size at which Newton stops; the value tolerance is configurable.
_STEP_TOLERANCE = 1e-12


def _scale_rt(curve: IsdaCreditCurve, factor: float, start: int, stop: int) -> IsdaCreditCurve:
    """Multiply the knot values ``rt[start:stop]`` of ``curve`` by ``factor``."""
    rt = np.array(curve.knot_rt, dtype=float)
    rt[start:stop] *= factor
    return curve.with_rt_values(rt)


class PortfolioSwapAdjustment:
    """
    Adjusts constituent credit curves so an index reprices its quotes.

    Args:
        pricer: Index calculator used for the intrinsic value
        tolerance: Absolute tolerance on the index value mismatch
        max_iterations: Newton iteration budget per index maturity
    """

    def __init__(
        self,
        pricer: Optional[CdsIndexCalculator] = None,
        tolerance: float = 1e-15,
        max_iterations: int = 50,
    ):
        if tolerance <= 0.0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
        self.pricer = pricer or CdsIndexCalculator()
        self.tolerance = tolerance
        self.max_iterations = max_iterations
        self.converter = MarketQuoteConverter(self.pricer.formula)

    def adjust_curves(
        self,
        index_quotes: Union[IndexQuote, Sequence[IndexQuote]],
        index_cds: Union[CdsAnalytic, Sequence[CdsAnalytic]],
        index_coupon: float,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
    ) -> IntrinsicIndexDataBundle:
        """
        Rescale the bundle's credit curves to match the index quotes.

        Args:
            index_quotes: Points-upfront (per unit of current notional) or a
                quote object, one per index CDS
            index_cds: Index CDS, or index CDSs in ascending maturity order
            index_coupon: Standard running coupon of the index
            yield_curve: Discount curve
            bundle: Constituent data

        Returns:
            New bundle with adjusted credit curves; defaulted names unchanged

        Raises:
            ValueError: On inconsistent or out-of-range inputs
            CalibrationError: If a multiplier cannot be solved
        """
        if isinstance(index_cds, CdsAnalytic):
            if not self._is_single_quote(index_quotes):
                raise ValueError("A single index CDS needs a single quote")
            cds_list = [index_cds]
            quote_list = [index_quotes]
        else:
            if self._is_single_quote(index_quotes):
                raise ValueError("Several index CDSs need one quote each")
            cds_list = list(index_cds)
            quote_list = list(index_quotes)

        pufs = self._validate(quote_list, cds_list, index_coupon, yield_curve, bundle)

        if len(cds_list) == 1:
            return self._adjust_single_term(
                pufs[0], cds_list[0], index_coupon, yield_curve, bundle
            )
        return self._adjust_multi_term(pufs, cds_list, index_coupon, yield_curve, bundle)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    @staticmethod
    def _is_single_quote(quote) -> bool:
        return isinstance(quote, (Real, CdsQuote))

    def _validate(
        self,
        quotes: Sequence[IndexQuote],
        cds_list: Sequence[CdsAnalytic],
        index_coupon: float,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
    ) -> List[float]:
        if not cds_list:
            raise ValueError("Need at least one index CDS")
        if len(quotes) != len(cds_list):
            raise ValueError(f"Got {len(cds_list)} index CDSs but {len(quotes)} quotes")
        if not 0.0 <= index_coupon <= 1.0:
            raise ValueError(f"Index coupon must be in [0, 1], got {index_coupon}")
        for j in range(1, len(cds_list)):
            if cds_list[j].protection_end <= cds_list[j - 1].protection_end:
                raise ValueError(
                    "Index CDS protection ends must be strictly ascending: "
                    f"item {j} ends at t={cds_list[j].protection_end}"
                )
        if bundle.num_defaults == bundle.index_size:
            raise ValueError("Every name in the index has defaulted")

        pufs = []
        for j, (cds, quote) in enumerate(zip(cds_list, quotes)):
            if isinstance(quote, CdsQuote):
                puf = self.converter.to_points_upfront(cds, quote, yield_curve, index_coupon)
            else:
                puf = float(quote)
            if puf > 1.0:
                raise ValueError(f"Points-upfront of index CDS {j} exceeds 1: {puf}")
            pufs.append(puf)
        return pufs

    # ------------------------------------------------------------------
    # Solvers
    # ------------------------------------------------------------------
    def _solve(self, label: str, func, initial_guess: float) -> float:
        try:
            result = newton_raphson(
                func,
                initial_guess,
                tol_value=self.tolerance,
                tol_step=_STEP_TOLERANCE,
                max_iter=self.max_iterations,
            )
        except RootFindingError as exc:
            raise CalibrationError(f"Failed to adjust {label}: {exc}") from exc
        logger.debug(
            "   %s multiplier=%.12g after %d iterations", label, result.root, result.iterations
        )
        return result.root

    def _adjust_single_term(
        self,
        puf: float,
        index_cds: CdsAnalytic,
        index_coupon: float,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
    ) -> IntrinsicIndexDataBundle:
        logger.info(
            "Adjusting %d alive curves to index PUF %.8f", bundle.index_size - bundle.num_defaults, puf
        )
        target = bundle.index_factor * puf

        def scaled(x: float) -> IntrinsicIndexDataBundle:
            return bundle.with_credit_curves(
                None if curve is None else _scale_rt(curve, x, 0, curve.number_of_knots)
                for curve in bundle.credit_curves
            )

        def objective(x: float) -> float:
            return self.pricer.index_pv(index_cds, index_coupon, yield_curve, scaled(x)) - target

        x = self._solve("single-term index", objective, 1.0)
        return scaled(x)

    def _adjust_multi_term(
        self,
        pufs: Sequence[float],
        cds_list: Sequence[CdsAnalytic],
        index_coupon: float,
        yield_curve: IsdaYieldCurve,
        bundle: IntrinsicIndexDataBundle,
    ) -> IntrinsicIndexDataBundle:
        n = len(cds_list)
        ends = [cds.protection_end for cds in cds_list]
        logger.info(
            "Adjusting %d alive curves to %d index terms",
            bundle.index_size - bundle.num_defaults,
            n,
        )

        working = bundle.with_credit_curves(
            None if curve is None else curve.with_knots(ends) for curve in bundle.credit_curves
        )
        knot_indices = [
            None if curve is None else np.searchsorted(curve.knot_times, ends)
            for curve in working.credit_curves
        ]

        x = 1.0
        for j in range(n):
            ranges = [
                None if idx is None else self._term_range(idx, j, curve.number_of_knots)
                for curve, idx in zip(working.credit_curves, knot_indices)
            ]
            current = working

            def scaled(x_j: float, current=current, ranges=ranges) -> IntrinsicIndexDataBundle:
                return current.with_credit_curves(
                    None if curve is None else _scale_rt(curve, x_j, *span)
                    for curve, span in zip(current.credit_curves, ranges)
                )

            target = bundle.index_factor * pufs[j]

            def objective(x_j: float, cds=cds_list[j], target=target, scaled=scaled) -> float:
                return self.pricer.index_pv(cds, index_coupon, yield_curve, scaled(x_j)) - target

            x = self._solve(f"index term {j} (t={ends[j]:.6f})", objective, x)
            working = scaled(x)
        return working

    @staticmethod
    def _term_range(knot_index: np.ndarray, term: int, num_knots: int) -> Tuple[int, int]:
        start = 0 if term == 0 else int(knot_index[term - 1]) + 1
        stop = num_knots if term == len(knot_index) - 1 else int(knot_index[term]) + 1
        return start, stop
