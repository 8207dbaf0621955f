"""Tests for the root-finding utilities."""

import math

import pytest

from creditlib.utils.rootfinding import (
    RootFindingError,
    find_bracket,
    newton_raphson,
    newton_with_bisect,
    with_numerical_derivative,
)


def test_newton_with_bisect_finds_sqrt_two() -> None:
    result = newton_with_bisect(lambda x: (x * x - 2.0, 2.0 * x), 1.0, bracket=(0.0, 2.0))
    assert result.converged
    assert result.root == pytest.approx(math.sqrt(2.0), abs=1e-14)


def test_newton_with_bisect_requires_sign_change() -> None:
    with pytest.raises(RootFindingError):
        newton_with_bisect(lambda x: (x * x + 1.0, 2.0 * x), None, bracket=(-1.0, 2.0))


def test_find_bracket_widens_until_sign_change() -> None:
    lower, upper = find_bracket(lambda x: x - 5.0, 0.0, 1.0)
    assert lower <= 5.0 <= upper


def test_find_bracket_respects_lower_bound() -> None:
    """The root at -5 lies below the floor, so no bracket exists."""
    with pytest.raises(RootFindingError):
        find_bracket(lambda x: x + 5.0, 1.0, 2.0, min_value=0.0)


def test_find_bracket_rejects_inverted_interval() -> None:
    with pytest.raises(ValueError):
        find_bracket(lambda x: x, 1.0, 0.0)


def test_bracketed_and_numerical_newton_agree() -> None:
    func = lambda x: math.exp(x) - 2.0  # noqa: E731
    bracketed = newton_with_bisect(with_numerical_derivative(func), None, bracket=(0.0, 1.0))
    by_newton = newton_raphson(func, 1.0)
    assert bracketed.root == pytest.approx(math.log(2.0), abs=1e-14)
    assert by_newton.root == pytest.approx(math.log(2.0), abs=1e-14)


def test_numerical_derivative_matches_analytic() -> None:
    value, deriv = with_numerical_derivative(math.sin)(0.3)
    assert value == math.sin(0.3)
    assert deriv == pytest.approx(math.cos(0.3), abs=1e-8)


def test_newton_raphson_reports_flat_function() -> None:
    with pytest.raises(RootFindingError):
        newton_raphson(lambda x: 1.0, 0.0)
