"""Immutable snapshot of the constituents of a CDS index."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from creditlib.curves.credit_curve import IsdaCreditCurve

WEIGHT_TOLERANCE = 1e-12


class IntrinsicIndexDataBundle:
    """Weights, LGDs, credit curves and default status of index names.

    A name is either alive, with a credit curve, or defaulted, with no
    curve. The index factor is the total weight of the alive names. Every
    ``with_*`` method returns a new bundle and leaves this one untouched.

    Args:
        credit_curves: One curve per name, ``None`` for defaulted names
        recovery_rates: Recovery rate per name
        weights: Index weights (equal weights when omitted)
        defaulted: Default flag per name (inferred from missing curves when
            omitted)
    """

    __slots__ = (
        "_curves",
        "_lgds",
        "_weights",
        "_defaulted",
        "_num_defaults",
        "_index_factor",
    )

    def __init__(
        self,
        credit_curves: Sequence[Optional[IsdaCreditCurve]],
        recovery_rates: Sequence[float],
        weights: Optional[Sequence[float]] = None,
        defaulted: Optional[Sequence[bool]] = None,
    ):
        n = len(credit_curves)
        if n == 0:
            raise ValueError("An index needs at least one name")
        if len(recovery_rates) != n:
            raise ValueError(f"Got {n} credit curves but {len(recovery_rates)} recovery rates")

        if weights is None:
            weights = [1.0 / n] * n
        elif len(weights) != n:
            raise ValueError(f"Got {n} credit curves but {len(weights)} weights")
        for i, w in enumerate(weights):
            if not w > 0.0:
                raise ValueError(f"Weight of name {i} must be positive, got {w}")
        total = float(np.sum(weights))
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise ValueError(f"Index weights must sum to 1, got {total!r}")

        lgds = []
        for i, rr in enumerate(recovery_rates):
            if not 0.0 <= rr <= 1.0:
                raise ValueError(f"Recovery rate of name {i} must be in [0, 1], got {rr}")
            lgds.append(1.0 - rr)

        if defaulted is None:
            defaulted = [curve is None for curve in credit_curves]
        elif len(defaulted) != n:
            raise ValueError(f"Got {n} credit curves but {len(defaulted)} default flags")

        curves = tuple(credit_curves)
        flags = tuple(bool(d) for d in defaulted)
        self._check_curves(curves, flags)
        self._curves = curves
        self._lgds = tuple(lgds)
        self._weights = tuple(float(w) for w in weights)
        self._defaulted = flags
        self._num_defaults = sum(flags)
        self._index_factor = float(
            sum(w for w, d in zip(self._weights, flags) if not d)
        )

    @staticmethod
    def _check_curves(
        curves: Tuple[Optional[IsdaCreditCurve], ...], defaulted: Tuple[bool, ...]
    ) -> None:
        for i, (curve, is_defaulted) in enumerate(zip(curves, defaulted)):
            if is_defaulted and curve is not None:
                raise ValueError(f"Name {i} is defaulted but has a credit curve")
            if not is_defaulted and curve is None:
                raise ValueError(f"Name {i} is alive but has no credit curve")

    @classmethod
    def _from_parts(cls, curves, lgds, weights, defaulted, num_defaults, index_factor):
        bundle = cls.__new__(cls)
        bundle._curves = curves
        bundle._lgds = lgds
        bundle._weights = weights
        bundle._defaulted = defaulted
        bundle._num_defaults = num_defaults
        bundle._index_factor = index_factor
        return bundle

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def index_size(self) -> int:
        """Number of names at inception."""
        return len(self._weights)

    @property
    def num_defaults(self) -> int:
        return self._num_defaults

    @property
    def index_factor(self) -> float:
        """Total weight of the names that have not defaulted."""
        return self._index_factor

    @property
    def weights(self) -> Tuple[float, ...]:
        return self._weights

    @property
    def lgds(self) -> Tuple[float, ...]:
        return self._lgds

    @property
    def credit_curves(self) -> Tuple[Optional[IsdaCreditCurve], ...]:
        return self._curves

    @property
    def defaulted(self) -> Tuple[bool, ...]:
        return self._defaulted

    def weight(self, index: int) -> float:
        return self._weights[index]

    def lgd(self, index: int) -> float:
        return self._lgds[index]

    def credit_curve(self, index: int) -> Optional[IsdaCreditCurve]:
        return self._curves[index]

    def is_defaulted(self, index: int) -> bool:
        return self._defaulted[index]

    def alive_indices(self) -> Tuple[int, ...]:
        return tuple(i for i, d in enumerate(self._defaulted) if not d)

    # ------------------------------------------------------------------
    # Persistent updates
    # ------------------------------------------------------------------
    def with_default(self, *indices: int) -> "IntrinsicIndexDataBundle":
        """New bundle with the given names defaulted."""
        if not indices:
            raise ValueError("No names given to default")
        if len(set(indices)) != len(indices):
            raise ValueError(f"Names repeated in default list {indices}")
        n = self.index_size
        for i in indices:
            if not 0 <= i < n:
                raise ValueError(f"Index {i} out of range [0, {n})")
            if self._defaulted[i]:
                raise ValueError(f"Name {i} has already defaulted")

        curves = list(self._curves)
        flags = list(self._defaulted)
        index_factor = self._index_factor
        for i in indices:
            curves[i] = None
            flags[i] = True
            index_factor -= self._weights[i]
        return self._from_parts(
            tuple(curves),
            self._lgds,
            self._weights,
            tuple(flags),
            self._num_defaults + len(indices),
            index_factor,
        )

    def with_credit_curves(
        self, curves: Iterable[Optional[IsdaCreditCurve]]
    ) -> "IntrinsicIndexDataBundle":
        """New bundle with every name's curve replaced (``None`` when defaulted)."""
        new_curves = tuple(curves)
        if len(new_curves) != self.index_size:
            raise ValueError(
                f"Expected {self.index_size} credit curves, got {len(new_curves)}"
            )
        self._check_curves(new_curves, self._defaulted)
        return self._from_parts(
            new_curves,
            self._lgds,
            self._weights,
            self._defaulted,
            self._num_defaults,
            self._index_factor,
        )

    def with_credit_curve(
        self, index: int, curve: IsdaCreditCurve
    ) -> "IntrinsicIndexDataBundle":
        curves = list(self._curves)
        curves[index] = curve
        return self.with_credit_curves(curves)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    def to_frame(self, horizon: Optional[float] = None) -> pd.DataFrame:
        """One row per name; adds survival to ``horizon`` when given."""
        frame = pd.DataFrame(
            {
                "weight": self._weights,
                "lgd": self._lgds,
                "defaulted": self._defaulted,
            }
        )
        if horizon is not None:
            frame["survival_probability"] = [
                0.0 if curve is None else curve.survival_probability(horizon)
                for curve in self._curves
            ]
        return frame

    def __repr__(self) -> str:
        return (
            f"IntrinsicIndexDataBundle(size={self.index_size}, "
            f"defaults={self._num_defaults}, index_factor={self._index_factor:.6f})"
        )
