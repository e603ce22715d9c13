"""
Typed failure signals raised by the convex solvers.

Each error carries the :class:`~coneopt.iterative.Status` that an
:class:`~coneopt.iterative.IterativeMinimizer` adopts when the error escapes
one of its steps. Running out of iterations is not an error.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..iterative.core import Status


class ConvexOptimizationError(Exception):
    """Base class for all solver failures."""

    status = Status.NUMERICAL_ERROR


class DimensionMismatchError(ConvexOptimizationError, ValueError):
    """Problem data with inconsistent shapes; raised at construction."""


class UnboundedError(ConvexOptimizationError):
    """
    The objective decreases without bound over the feasible set.

    Attributes:
        column: Index of the pricing column that certified unboundedness
            (a standard-form column for the simplex backend), or ``None``.
        variable: Index of the original decision variable behind ``column``
            when it maps to one, else ``None`` (for example a slack column).
        direction: Recession ray of the original variables along which the
            objective decreases, when available.
    """

    status = Status.UNBOUNDED

    def __init__(
        self,
        message: str = "problem is unbounded",
        column: Optional[int] = None,
        variable: Optional[int] = None,
        direction: Optional[np.ndarray] = None,
    ) -> None:
        super().__init__(message)
        self.column = column
        self.variable = variable
        self.direction = direction


class InfeasibleError(ConvexOptimizationError):
    """
    No point satisfies the constraints.

    Attributes:
        constraint: Index of an offending constraint row when one can be
            singled out (for example the violated row of an infeasible
            starting point), else ``None``.
    """

    status = Status.INFEASIBLE

    def __init__(self, message: str = "problem is infeasible", constraint: Optional[int] = None) -> None:
        super().__init__(message)
        self.constraint = constraint


class NumericalBreakdownError(ConvexOptimizationError):
    """A linear system could not be solved or produced non-finite values."""


__all__ = [
    "ConvexOptimizationError",
    "DimensionMismatchError",
    "UnboundedError",
    "InfeasibleError",
    "NumericalBreakdownError",
]
