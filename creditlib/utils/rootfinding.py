"""Root-finding utilities (bracketing, safeguarded Newton-Raphson)."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

logger = logging.getLogger(__name__)

FuncDeriv = Callable[[float], Tuple[float, float]]
Func = Callable[[float], float]


@dataclass
class RootResult:
    root: float
    iterations: int
    converged: bool
    method: str


class RootFindingError(RuntimeError):
    """Raised when root-finding fails to bracket or converge."""


def find_bracket(
    func: Func,
    lower: float,
    upper: float,
    *,
    min_value: float = -math.inf,
    max_value: float = math.inf,
    expansion: float = 1.6,
    max_iter: int = 50,
) -> Tuple[float, float]:
    """Widen ``[lower, upper]`` until ``func`` changes sign across it.

    The end with the smaller absolute function value is pushed outwards,
    never beyond ``min_value``/``max_value``.
    """
    if lower >= upper:
        raise ValueError(f"Invalid initial bracket [{lower}, {upper}]")
    lower = max(lower, min_value)
    upper = min(upper, max_value)
    f_lower = func(lower)
    f_upper = func(upper)

    for _ in range(max_iter):
        if f_lower * f_upper <= 0.0:
            return lower, upper
        width = upper - lower
        move_lower = abs(f_lower) < abs(f_upper)
        if move_lower and lower <= min_value:
            move_lower = False
        elif not move_lower and upper >= max_value:
            move_lower = True
        if move_lower:
            if lower <= min_value:
                break
            lower = max(min_value, lower - expansion * width)
            f_lower = func(lower)
        else:
            upper = min(max_value, upper + expansion * width)
            f_upper = func(upper)
        logger.debug("Bracket widened to [%s, %s]", lower, upper)

    raise RootFindingError(
        f"Failed to bracket the root: f({lower})={f_lower}, f({upper})={f_upper}"
    )


def newton_with_bisect(
    func_and_deriv: FuncDeriv,
    initial_guess: Optional[float],
    *,
    bracket: Tuple[float, float],
    tol_value: float = 1e-15,
    tol_step: float = 1e-15,
    max_iter: int = 100,
) -> RootResult:
    """Newton-Raphson kept inside a bracket by bisection steps.

    Parameters
    ----------
    func_and_deriv:
        Callable returning (value, derivative) at a given point.
    initial_guess:
        Starting point; the bracket midpoint is used when ``None`` or when
        the guess lies outside the bracket.
    bracket:
        Interval (lower, upper) over which the function changes sign.
    tol_value:
        Absolute tolerance for the function value.
    tol_step:
        Tolerance for successive updates, relative to ``max(1, |x|)``.
    """
    a, b = bracket
    f_a = func_and_deriv(a)[0]
    f_b = func_and_deriv(b)[0]
    if f_a == 0.0:
        return RootResult(a, 0, True, "newton")
    if f_b == 0.0:
        return RootResult(b, 0, True, "newton")
    if f_a * f_b > 0.0:
        raise RootFindingError(
            f"Root not bracketed: f({a})={f_a}, f({b})={f_b}"
        )

    # orient so that f(lo) < 0 < f(hi)
    lo, hi = (a, b) if f_a < 0.0 else (b, a)
    if initial_guess is None or not min(a, b) < initial_guess < max(a, b):
        x = 0.5 * (a + b)
    else:
        x = float(initial_guess)
    dx_old = abs(b - a)
    dx = dx_old
    value, deriv = func_and_deriv(x)

    for iteration in range(1, max_iter + 1):
        if abs(value) <= tol_value:
            return RootResult(x, iteration, True, "newton")
        newton_leaves_bracket = ((x - hi) * deriv - value) * ((x - lo) * deriv - value) > 0.0
        if newton_leaves_bracket or abs(2.0 * value) > abs(dx_old * deriv):
            dx_old = dx
            dx = 0.5 * (hi - lo)
            x = lo + dx
            method = "bisect"
        else:
            dx_old = dx
            dx = value / deriv
            x -= dx
            method = "newton"
        logger.debug("%s iter %s: x=%s value=%s deriv=%s", method, iteration, x, value, deriv)
        if abs(dx) <= tol_step * max(1.0, abs(x)):
            return RootResult(x, iteration, True, method)
        value, deriv = func_and_deriv(x)
        if value < 0.0:
            lo = x
        else:
            hi = x

    raise RootFindingError(
        f"Newton-Raphson failed to converge in {max_iter} iterations (last x={x}, value={value})"
    )


def with_numerical_derivative(func: Func, step: float = 1e-7) -> FuncDeriv:
    """Pair ``func`` with a central finite-difference derivative."""

    def func_and_deriv(x: float) -> Tuple[float, float]:
        h = step * max(1.0, abs(x))
        return func(x), (func(x + h) - func(x - h)) / (2.0 * h)

    return func_and_deriv


def newton_raphson(
    func: Func,
    initial_guess: float,
    *,
    derivative: Optional[Func] = None,
    tol_value: float = 1e-15,
    tol_step: float = 1e-15,
    max_iter: int = 50,
    step: float = 1e-7,
) -> RootResult:
    """Unbracketed Newton-Raphson.

    Uses ``derivative`` when given, otherwise a central finite difference
    with relative step ``step``.
    """
    x = float(initial_guess)
    for iteration in range(1, max_iter + 1):
        value = func(x)
        if abs(value) <= tol_value:
            return RootResult(x, iteration, True, "newton")
        if derivative is not None:
            deriv = derivative(x)
        else:
            h = step * max(1.0, abs(x))
            deriv = (func(x + h) - func(x - h)) / (2.0 * h)
        logger.debug("Newton iter %s: x=%s value=%s deriv=%s", iteration, x, value, deriv)
        if deriv == 0.0 or not math.isfinite(deriv):
            raise RootFindingError(f"Zero or invalid derivative at x={x}")
        dx = value / deriv
        x -= dx
        if abs(dx) <= tol_step * max(1.0, abs(x)):
            return RootResult(x, iteration, True, "newton")

    raise RootFindingError(
        f"Newton-Raphson failed to converge in {max_iter} iterations (last x={x})"
    )
