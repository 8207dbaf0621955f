"""Base calibration framework shared by the discount and credit calibrators."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from creditlib.utils.rootfinding import (
    FuncDeriv,
    RootFindingError,
    find_bracket,
    newton_with_bisect,
)

logger = logging.getLogger(__name__)


class CalibrationError(RootFindingError):
    """Raised when a curve node cannot be calibrated."""


class ArbitrageError(CalibrationError):
    """Raised when a calibrated credit curve implies a negative hazard rate."""


@dataclass
class CalibrationConfig:
    """Configuration for calibration runs.

    Attributes:
        tolerance: Absolute root-finder tolerance on the objective and the step
        max_iterations: Root-finder iteration budget per node
        verbose: Log the conventions and every solved node at INFO level
    """

    tolerance: float = 1e-15
    max_iterations: int = 100
    verbose: bool = False

    def __post_init__(self):
        if self.tolerance <= 0.0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {self.max_iterations}")


def check_ascending(times: Sequence[float], what: str) -> None:
    """Raise ``ValueError`` unless ``times`` are strictly ascending and positive."""
    previous = 0.0
    for i, t in enumerate(times):
        if t <= previous:
            raise ValueError(
                f"{what} must be strictly ascending and positive: "
                f"item {i} at t={t} follows t={previous}"
            )
        previous = t


class BaseCalibrator(ABC):
    """
    Abstract base class for curve calibrators.

    Holds the configuration and the bracket-then-Newton solve every
    sequential bootstrap step uses.
    """

    def __init__(self, config: Optional[CalibrationConfig] = None):
        self.config = config or CalibrationConfig()

    def _solve_node(
        self,
        label: str,
        func_and_deriv: FuncDeriv,
        guess_bracket: Tuple[float, float],
        min_value: float = float("-inf"),
    ) -> float:
        """Bracket and solve one node, wrapping failures in ``CalibrationError``."""

        def func(x: float) -> float:
            return func_and_deriv(x)[0]

        lower, upper = guess_bracket
        try:
            bracket = find_bracket(func, lower, upper, min_value=min_value)
            result = newton_with_bisect(
                func_and_deriv,
                0.5 * (lower + upper),
                bracket=bracket,
                tol_value=self.config.tolerance,
                tol_step=self.config.tolerance,
                max_iter=self.config.max_iterations,
            )
        except RootFindingError as exc:
            raise CalibrationError(f"Failed to calibrate {label}: {exc}") from exc

        self._log_node(label, result.root, result.iterations)
        return result.root

    def _log_node(self, label: str, value: float, iterations: int) -> None:
        log = logger.info if self.config.verbose else logger.debug
        log("   %s solved: value=%.12g after %d iterations", label, value, iterations)

    @abstractmethod
    def calibrate(self, *args, **kwargs):
        """Build a curve from market data."""

