"""
Convergence tolerance policies.

A tolerance is a stateless predicate deciding whether a residual norm (or a
duality gap) is small enough to stop iterating. Policies are frozen
dataclasses and may be shared freely between solvers and threads.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

MACHINE_EPSILON: float = float(np.finfo(float).eps)
DEFAULT_EPSILON = 1e-4


class Tolerance(ABC):
    """Base class for convergence policies."""

    @abstractmethod
    def is_converged(self, norm: float) -> bool:
        """Return True when ``norm`` is small enough to stop."""


@dataclass(frozen=True)
class AbsoluteTolerance(Tolerance):
    """Converged when ``norm <= epsilon``."""

    epsilon: float = DEFAULT_EPSILON

    def __post_init__(self) -> None:
        if not (self.epsilon >= 0.0 and math.isfinite(self.epsilon)):
            raise ValueError("epsilon must be a finite non-negative number")

    def is_converged(self, norm: float) -> bool:
        norm = float(norm)
        # NaN compares false and is therefore never considered converged.
        return norm <= self.epsilon


@dataclass(frozen=True)
class RelativeTolerance(Tolerance):
    """
    Converged when ``norm / base <= epsilon``.

    ``base`` is fixed at construction, typically the norm of the data the
    residual is measured against (for example ``max(1, ||b||)``).
    """

    base: float
    epsilon: float = DEFAULT_EPSILON

    def __post_init__(self) -> None:
        if not (self.base > 0.0 and math.isfinite(self.base)):
            raise ValueError("base must be a finite positive number")
        if not (self.epsilon >= 0.0 and math.isfinite(self.epsilon)):
            raise ValueError("epsilon must be a finite non-negative number")

    def is_converged(self, norm: float) -> bool:
        return float(norm) / self.base <= self.epsilon


__all__ = [
    "MACHINE_EPSILON",
    "DEFAULT_EPSILON",
    "Tolerance",
    "AbsoluteTolerance",
    "RelativeTolerance",
]
