"""
Helpers for linear constraint systems ``A x >= b``, ``A_eq x = b_eq``.
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from ..iterative.core import Status
from ..logging import get_logger
from .core import LPProblem
from .errors import InfeasibleError, NumericalBreakdownError
from .lp import RevisedSimplex

logger = get_logger(__name__)


def active_rows(a_mat: np.ndarray, b_vec: np.ndarray, x: np.ndarray, epsilon: float) -> List[int]:
    """Indices of the rows of ``A x >= b`` that hold with equality within ``epsilon``."""

    if a_mat.shape[0] == 0:
        return []
    slack = a_mat @ x - b_vec
    return [int(i) for i in np.flatnonzero(np.abs(slack) <= epsilon)]


def max_violation(a_mat: np.ndarray, b_vec: np.ndarray, x: np.ndarray) -> float:
    """Largest amount by which ``A x >= b`` is violated (0 when feasible)."""

    if a_mat.shape[0] == 0:
        return 0.0
    return float(np.max(np.maximum(b_vec - a_mat @ x, 0.0)))


def independent_rows(
    candidates: Sequence[int],
    a_mat: np.ndarray,
    base: np.ndarray,
    epsilon: float,
) -> List[int]:
    """
    Greedily keep the candidate rows of ``a_mat`` that raise the rank of
    ``base`` stacked with the rows kept so far.
    """

    kept: List[int] = []
    stack = base
    rank = np.linalg.matrix_rank(stack, tol=epsilon) if stack.shape[0] else 0
    for idx in candidates:
        trial = np.vstack([stack, a_mat[idx][np.newaxis, :]])
        trial_rank = np.linalg.matrix_rank(trial, tol=epsilon)
        if trial_rank > rank:
            kept.append(idx)
            stack = trial
            rank = trial_rank
    return kept


def find_feasible_point(
    a_ineq: np.ndarray,
    b_ineq: np.ndarray,
    a_eq: np.ndarray,
    b_eq: np.ndarray,
    epsilon: float = 1e-9,
) -> np.ndarray:
    """
    Find ``x`` with ``A x >= b`` and ``A_eq x = b_eq`` using a phase-1 LP.

    Solves ``min t`` subject to ``A x + t >= b``, ``A_eq x = b_eq``,
    ``t >= 0`` with ``x`` free, using the simplex backend.

    Raises:
        InfeasibleError: If the phase-1 point still violates a row by more
            than ``epsilon`` (see :func:`max_violation`) or the equalities
            are inconsistent.
    """
    n = a_ineq.shape[1]
    m_ineq = a_ineq.shape[0]
    phase1 = LPProblem(
        c=np.concatenate([np.zeros(n), [1.0]]),
        a_ge=np.hstack([a_ineq, np.ones((m_ineq, 1))]) if m_ineq else None,
        b_ge=b_ineq if m_ineq else None,
        a_eq=np.hstack([a_eq, np.zeros((a_eq.shape[0], 1))]) if a_eq.shape[0] else None,
        b_eq=b_eq if a_eq.shape[0] else None,
        lb=np.concatenate([np.full(n, -np.inf), [0.0]]),
    )
    minimizer = RevisedSimplex(epsilon=epsilon).solve(phase1)
    solution = minimizer.search()
    if minimizer.status is not Status.OPTIMAL:
        raise NumericalBreakdownError("phase-1 problem did not converge")

    x = solution.x[:n]
    violation = max_violation(a_ineq, b_ineq, x)
    if violation > epsilon * max(1.0, float(np.max(np.abs(b_ineq), initial=0.0))):
        worst = int(np.argmax(b_ineq - a_ineq @ x))
        raise InfeasibleError(
            f"no point satisfies the inequalities (minimal violation {violation:.3e})",
            constraint=worst,
        )
    logger.debug("phase-1 point found after %d pivots", minimizer.iterations)
    return x


__all__ = ["active_rows", "max_violation", "independent_rows", "find_feasible_point"]
