"""
Embedding of linear and quadratic programs into second-order cone form.

An LP or QP over ``x`` becomes a :class:`SOCPGeneralProblem` whose dual
variable ``y`` carries ``x`` (plus an epigraph variable ``t`` for a QP):

* every canonical row ``a^T x >= beta`` is a one-dimensional cone with slack
  ``s = a^T x - beta``, i.e. ``A_i = -a`` and ``c_i = -beta``;
* every equality is split into two opposite inequalities;
* finite LP bounds become rows ``x_j >= lb_j`` and ``-x_j >= -ub_j``;
* a QP objective ``0.5 x^T H x + p^T x`` is replaced by ``p^T x + t`` with
  the rotated cone ``||L^T x||^2 <= 2 t`` (``H = L L^T``), written as the
  second-order cone block ``(t + 1/2, L^T x, t - 1/2)``.

Maximizing ``b^T y`` with ``b = -c`` (or ``b = -(p, 1)``) minimizes the
original objective. The primal cone variable of the embedding holds the
Lagrange multipliers of the original rows, which is how solutions are mapped
back.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import singledispatch
from typing import Any, List, Tuple, Union

import numpy as np

from .core import (
    LPProblem,
    LPSolution,
    PrimalDualSolution,
    QPProblem,
    QPSolution,
    SOCPGeneralProblem,
)
from .errors import DimensionMismatchError

Solution = Union[LPSolution, QPSolution, PrimalDualSolution]


@dataclass(frozen=True, eq=False)
class ConicEmbedding:
    """
    A cone problem together with the bookkeeping needed to map back.

    Attributes:
        source: The problem that was embedded.
        socp: The equivalent :class:`SOCPGeneralProblem`.
        n: Number of original variables.
        n_ineq: Number of canonical ``>=`` rows (one 1-d cone each).
        n_eq: Number of equality rows (two 1-d cones each).
        offset: Index of the first linear cone entry (``n + 2`` for a QP,
            whose objective cone comes first, else 0).
    """

    source: Any
    socp: SOCPGeneralProblem
    n: int
    n_ineq: int = 0
    n_eq: int = 0
    offset: int = 0

    def lift(self, x: np.ndarray) -> np.ndarray:
        """Map an original point to the dual variable ``y`` of the embedding."""

        x = np.asarray(x, dtype=float).reshape(-1)
        if x.shape[0] != self.n:
            raise DimensionMismatchError(f"starting point must have length {self.n}, got {x.shape[0]}")
        if isinstance(self.source, QPProblem):
            t = 0.5 * x @ self.source.H @ x + 1.0
            return np.concatenate([x, [t]])
        return x.copy()

    def _row_multipliers(self, solution: PrimalDualSolution) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        start = self.offset
        lam = solution.x[start : start + self.n_ineq]
        slack = solution.s[start : start + self.n_ineq]
        eq_start = start + self.n_ineq
        nu = (
            solution.x[eq_start : eq_start + self.n_eq]
            - solution.x[eq_start + self.n_eq : eq_start + 2 * self.n_eq]
        )
        return lam, slack, nu

    def recover(self, solution: PrimalDualSolution) -> Solution:
        """Map a cone iterate back to a solution of the source problem."""

        if isinstance(self.source, SOCPGeneralProblem):
            return solution
        x = solution.y[: self.n].copy()
        lam, slack, nu = self._row_multipliers(solution)
        if isinstance(self.source, LPProblem):
            return LPSolution(
                x=x,
                objective=self.source.objective(x),
                multipliers=lam.copy(),
                eq_multipliers=nu.copy(),
            )
        active = tuple(int(i) for i in np.flatnonzero(lam > slack))
        return QPSolution(
            x=x,
            active_set=active,
            multipliers=lam[list(active)].copy(),
            eq_multipliers=nu.copy(),
        )


def _linear_blocks(
    a_rows: np.ndarray,
    b_rows: np.ndarray,
    m: int,
) -> Tuple[List[np.ndarray], List[np.ndarray]]:
    a_blocks = []
    c_blocks = []
    for row, beta in zip(a_rows, b_rows):
        column = np.zeros((m, 1))
        column[: row.shape[0], 0] = -row
        a_blocks.append(column)
        c_blocks.append(np.array([-beta]))
    return a_blocks, c_blocks


@singledispatch
def embed(problem: Any) -> ConicEmbedding:
    """Embed ``problem`` in cone form, keeping the mapping back."""

    raise TypeError(f"cannot embed {type(problem).__name__} in cone form")


@embed.register
def _(problem: SOCPGeneralProblem) -> ConicEmbedding:
    return ConicEmbedding(source=problem, socp=problem, n=problem.m)


@embed.register
def _(problem: LPProblem) -> ConicEmbedding:
    n = problem.n
    eye = np.eye(n)
    finite_lb = np.flatnonzero(np.isfinite(problem.lb))
    finite_ub = np.flatnonzero(np.isfinite(problem.ub))
    a_rows = np.vstack(
        [problem.a_ineq, problem.a_eq, -problem.a_eq, eye[finite_lb], -eye[finite_ub]]
    )
    b_rows = np.concatenate(
        [problem.b_ineq, problem.b_eq, -problem.b_eq, problem.lb[finite_lb], -problem.ub[finite_ub]]
    )
    if a_rows.shape[0] == 0:
        raise DimensionMismatchError("an LP without constraints or bounds has no cone embedding")
    a_blocks, c_blocks = _linear_blocks(a_rows, b_rows, n)
    socp = SOCPGeneralProblem(b=-problem.c, a_blocks=a_blocks, c_blocks=c_blocks)
    return ConicEmbedding(
        source=problem,
        socp=socp,
        n=n,
        n_ineq=problem.a_ineq.shape[0],
        n_eq=problem.a_eq.shape[0],
    )


@embed.register
def _(problem: QPProblem) -> ConicEmbedding:
    n = problem.n
    m = n + 1
    eigvals, eigvecs = np.linalg.eigh(problem.H)
    factor = eigvecs * np.sqrt(np.clip(eigvals, 0.0, None))

    # Rows of A_0^T: (t + 1/2, L^T x, t - 1/2) = c_0 - A_0^T y.
    a0_t = np.zeros((n + 2, m))
    a0_t[0, n] = -1.0
    a0_t[1 : n + 1, :n] = -factor.T
    a0_t[n + 1, n] = -1.0
    c0 = np.zeros(n + 2)
    c0[0] = 0.5
    c0[n + 1] = -0.5

    a_rows = np.vstack([problem.a_ineq, problem.a_eq, -problem.a_eq])
    b_rows = np.concatenate([problem.b_ineq, problem.b_eq, -problem.b_eq])
    a_blocks, c_blocks = _linear_blocks(a_rows, b_rows, m)
    socp = SOCPGeneralProblem(
        b=-np.concatenate([problem.p, [1.0]]),
        a_blocks=[a0_t.T] + a_blocks,
        c_blocks=[c0] + c_blocks,
    )
    return ConicEmbedding(
        source=problem,
        socp=socp,
        n=n,
        n_ineq=problem.a_ineq.shape[0],
        n_eq=problem.a_eq.shape[0],
        offset=n + 2,
    )


def to_socp(problem: Union[LPProblem, QPProblem, SOCPGeneralProblem]) -> SOCPGeneralProblem:
    """Return the canonical cone form of an LP, QP or cone problem."""

    return embed(problem).socp


__all__ = ["ConicEmbedding", "embed", "to_socp"]
