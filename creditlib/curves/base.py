"""Piecewise curve shared by ISDA discount and credit curves."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

import numpy as np
import pandas as pd


def _frozen(values: np.ndarray) -> np.ndarray:
    values.setflags(write=False)
    return values


class IsdaCompliantCurve:
    """Curve that is linear in ``r(t) * t`` between knots.

    The curve is defined by knot times ``t_i`` (strictly ascending, the first
    non-negative) and values ``rt_i = r_i * t_i``. For a discount curve
    ``r_i`` is a continuously compounded zero rate, for a credit curve it is
    the average hazard rate so that ``rt`` is the accumulated hazard.

    Interpolation is linear in ``rt``, which makes the instantaneous forward
    rate piecewise flat. Before the first knot ``rt`` is the line through the
    origin and ``(t_0, rt_0)``; beyond the last knot the last segment is
    extended.

    Instances are immutable: every ``with_*`` method returns a new curve of
    the same class.
    """

    __slots__ = ("_t", "_rt", "_r")

    factor_label = "factor"

    def __init__(self, times: Sequence[float], zero_rates: Sequence[float]):
        t = np.array(times, dtype=float)
        r = np.array(zero_rates, dtype=float)
        if t.ndim != 1 or r.ndim != 1 or len(t) != len(r):
            raise ValueError(
                f"times and zero rates must be 1-d and of equal length, got "
                f"{len(t)} and {len(r)}"
            )
        self._init(t, r * t, r)

    @classmethod
    def from_rt(cls, times: Sequence[float], rt: Sequence[float]) -> "IsdaCompliantCurve":
        """Build a curve from knot times and accumulated values ``r_i * t_i``."""
        t = np.array(times, dtype=float)
        rt = np.array(rt, dtype=float)
        if t.ndim != 1 or rt.ndim != 1 or len(t) != len(rt):
            raise ValueError(
                f"times and rt values must be 1-d and of equal length, got "
                f"{len(t)} and {len(rt)}"
            )
        return cls._create(t, rt)

    @classmethod
    def from_forward_rates(
        cls, times: Sequence[float], forward_rates: Sequence[float]
    ) -> "IsdaCompliantCurve":
        """Build a curve from the flat forward rate on each segment.

        The first forward applies from time zero to the first knot.
        """
        t = np.array(times, dtype=float)
        fwd = np.array(forward_rates, dtype=float)
        if len(t) != len(fwd):
            raise ValueError("times and forward rates must be of equal length")
        dt = np.diff(np.concatenate(([0.0], t)))
        return cls._create(t, np.cumsum(fwd * dt))

    @classmethod
    def _create(cls, t: np.ndarray, rt: np.ndarray, r: np.ndarray = None):
        curve = cls.__new__(cls)
        if r is None:
            r = np.empty_like(t)
            positive = t > 0.0
            r[positive] = rt[positive] / t[positive]
            if not positive.all():
                # only the first knot can sit at t = 0
                r[0] = (rt[1] - rt[0]) / (t[1] - t[0]) if len(t) > 1 else 0.0
        curve._init(t, rt, r)
        return curve

    def _init(self, t: np.ndarray, rt: np.ndarray, r: np.ndarray) -> None:
        if len(t) == 0:
            raise ValueError("A curve needs at least one knot")
        if t[0] < 0.0:
            raise ValueError(f"First knot time must be non-negative, got {t[0]}")
        if len(t) > 1 and not np.all(np.diff(t) > 0.0):
            raise ValueError(f"Knot times must be strictly ascending: {t.tolist()}")
        if not (np.all(np.isfinite(t)) and np.all(np.isfinite(rt))):
            raise ValueError("Knot times and values must be finite")
        if t[0] == 0.0 and rt[0] != 0.0:
            raise ValueError("A knot at t=0 must have zero accumulated value")
        self._t = _frozen(t)
        self._rt = _frozen(rt)
        self._r = _frozen(r)

    # ------------------------------------------------------------------
    # Knot access
    # ------------------------------------------------------------------
    @property
    def knot_times(self) -> np.ndarray:
        return self._t

    @property
    def knot_rt(self) -> np.ndarray:
        return self._rt

    @property
    def knot_zero_rates(self) -> np.ndarray:
        return self._r

    @property
    def number_of_knots(self) -> int:
        return len(self._t)

    def time_at_index(self, index: int) -> float:
        return float(self._t[index])

    def zero_rate_at_index(self, index: int) -> float:
        return float(self._r[index])

    def rt_at_index(self, index: int) -> float:
        return float(self._rt[index])

    def forward_rate_at_index(self, index: int) -> float:
        """Flat forward rate on the segment ending at knot ``index``."""
        if index == 0:
            return float(self._r[0])
        return float(
            (self._rt[index] - self._rt[index - 1]) / (self._t[index] - self._t[index - 1])
        )

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------
    def rt(self, t: float) -> float:
        """Accumulated value ``r(t) * t`` at time ``t``."""
        times = self._t
        if t <= times[0]:
            return float(self._r[0] * t)
        n = len(times)
        index = int(np.searchsorted(times, t))
        if index < n and times[index] == t:
            return float(self._rt[index])
        if n == 1:
            return float(self._r[0] * t)
        index = min(index, n - 1)
        t1 = times[index - 1]
        t2 = times[index]
        return float(((t2 - t) * self._rt[index - 1] + (t - t1) * self._rt[index]) / (t2 - t1))

    def zero_rate(self, t: float) -> float:
        if t <= self._t[0]:
            return float(self._r[0])
        return self.rt(t) / t

    def forward_rate(self, t: float) -> float:
        """Instantaneous forward rate, right-continuous at the knots."""
        times = self._t
        n = len(times)
        if t < times[0] or n == 1:
            return float(self._r[0])
        index = int(np.searchsorted(times, t, side="right"))
        index = min(index, n - 1)
        return self.forward_rate_at_index(index)

    def _factor(self, t: float) -> float:
        return math.exp(-self.rt(t))

    # ------------------------------------------------------------------
    # Node sensitivities
    # ------------------------------------------------------------------
    def single_node_rt_sensitivity(self, t: float, node_index: int) -> float:
        """Sensitivity of ``rt(t)`` to the zero rate at ``node_index``."""
        times = self._t
        n = len(times)
        if not 0 <= node_index < n:
            raise ValueError(f"node index {node_index} out of range [0, {n})")
        if t <= times[0] or n == 1:
            return t if node_index == 0 else 0.0
        index = int(np.searchsorted(times, t))
        if index < n and times[index] == t:
            return t if node_index == index else 0.0
        index = min(index, n - 1)
        if node_index != index and node_index != index - 1:
            return 0.0
        t1 = times[index - 1]
        t2 = times[index]
        dt = t2 - t1
        if node_index == index:
            return t2 * (t - t1) / dt
        return t1 * (t2 - t) / dt

    def rt_and_sensitivity(self, t: float, node_index: int):
        """Return ``(rt(t), d rt(t) / d r_node)``."""
        return self.rt(t), self.single_node_rt_sensitivity(t, node_index)

    def single_node_discount_factor_sensitivity(self, t: float, node_index: int) -> float:
        """Sensitivity of ``exp(-rt(t))`` to the zero rate at ``node_index``."""
        rt, sense = self.rt_and_sensitivity(t, node_index)
        return -sense * math.exp(-rt)

    # ------------------------------------------------------------------
    # Persistent updates
    # ------------------------------------------------------------------
    def with_rate(self, rate: float, index: int):
        """New curve with the zero rate at knot ``index`` replaced."""
        rt = self._rt.copy()
        rt[index] = rate * self._t[index]
        r = self._r.copy()
        r[index] = rate
        return type(self)._create(self._t, rt, r)

    def with_rt(self, value: float, index: int):
        """New curve with the accumulated value at knot ``index`` replaced."""
        rt = self._rt.copy()
        rt[index] = value
        return type(self)._create(self._t, rt)

    def with_rates(self, rates: Sequence[float]):
        r = np.array(rates, dtype=float)
        if len(r) != len(self._t):
            raise ValueError(f"Expected {len(self._t)} rates, got {len(r)}")
        return type(self)._create(self._t, r * self._t, r)

    def with_rt_values(self, rt: Sequence[float]):
        values = np.array(rt, dtype=float)
        if len(values) != len(self._t):
            raise ValueError(f"Expected {len(self._t)} rt values, got {len(values)}")
        return type(self)._create(self._t, values)

    def with_knots(self, extra_times: Iterable[float]):
        """Regenerate the curve on the union of its knots and ``extra_times``.

        Values at the existing knots are preserved exactly and a time that
        already is a knot is not duplicated, so the shape of the curve does
        not change.
        """
        extra = np.asarray(list(extra_times), dtype=float)
        if np.any(extra < 0.0):
            raise ValueError("Extra knot times must be non-negative")
        times = np.union1d(self._t, extra)
        if len(times) == len(self._t):
            return self
        rt = np.array([self.rt(t) for t in times])
        return type(self)._create(times, rt)

    def with_offset(self, offset: float):
        """Re-express the curve from a new base at ``offset`` on this axis.

        ``offset`` may be negative (new base before the current one). Knots
        at or before a positive offset are dropped; past the last knot the
        curve collapses to a single knot at ``t = 1`` carrying the last
        forward rate.
        """
        if offset == 0.0:
            return self
        times = self._t
        n = len(times)
        if offset < times[0]:
            eta = self._r[0] * offset
            return type(self)._create(times - offset, self._rt - eta)
        if offset >= times[-1]:
            fwd = self.forward_rate_at_index(n - 1)
            return type(self)._create(np.array([1.0]), np.array([fwd]))
        index = int(np.searchsorted(times, offset, side="right"))
        eta = self.rt(offset)
        return type(self)._create(times[index:] - offset, self._rt[index:] - eta)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    def summary(self) -> pd.DataFrame:
        """Knot table: time, zero rate, rt and the discount/survival factor."""
        return pd.DataFrame(
            {
                "time": self._t,
                "zero_rate": self._r,
                "rt": self._rt,
                self.factor_label: np.exp(-self._rt),
            }
        )

    def __eq__(self, other) -> bool:
        return (
            type(other) is type(self)
            and np.array_equal(self._t, other._t)
            and np.array_equal(self._rt, other._rt)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(knots={self.number_of_knots}, "
            f"times={self._t.tolist()}, zero_rates={self._r.tolist()})"
        )
