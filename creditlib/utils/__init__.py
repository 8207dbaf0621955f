"""Shared numerical utilities."""

from .mathutils import epsilon, epsilon_p, integration_points
from .rootfinding import (
    RootFindingError,
    RootResult,
    find_bracket,
    newton_raphson,
    newton_with_bisect,
    with_numerical_derivative,
)

__all__ = [
    "epsilon",
    "epsilon_p",
    "integration_points",
    "RootFindingError",
    "RootResult",
    "find_bracket",
    "newton_raphson",
    "newton_with_bisect",
    "with_numerical_derivative",
]
