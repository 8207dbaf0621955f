"""Numerical helpers for the analytic CDS integrals."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

_SMALL = 1e-3
# coefficients 1/(n+1)! and (n+1)/(n+2)! for n = 0..7
_EPS_COEFFS = [1.0 / math.factorial(n + 1) for n in range(8)]
_EPS_P_COEFFS = [(n + 1) / math.factorial(n + 2) for n in range(8)]


def _series(coeffs, x: float) -> float:
    total = 0.0
    for c in reversed(coeffs):
        total = total * x + c
    return total


def epsilon(x: float) -> float:
    """(exp(x) - 1) / x, exact at x = 0."""
    if abs(x) > _SMALL:
        return math.expm1(x) / x
    return _series(_EPS_COEFFS, x)


def epsilon_p(x: float) -> float:
    """Derivative of :func:`epsilon`: (x e^x - e^x + 1) / x^2."""
    if abs(x) > _SMALL:
        return (x * math.exp(x) - math.expm1(x)) / (x * x)
    return _series(_EPS_P_COEFFS, x)


def integration_points(
    start: float, end: float, *knot_sets: Sequence[float]
) -> np.ndarray:
    """Sorted union of knots strictly inside ``(start, end)`` plus both ends."""
    if end <= start:
        raise ValueError(f"Integration end {end} must be after start {start}")
    inner = [np.asarray(knots, dtype=float) for knots in knot_sets]
    merged = np.unique(np.concatenate(inner)) if inner else np.empty(0)
    merged = merged[(merged > start) & (merged < end)]
    return np.concatenate(([start], merged, [end]))
