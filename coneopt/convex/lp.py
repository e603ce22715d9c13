"""
Linear programming: revised simplex backend and the LP dispatch layer.

The revised simplex implementation follows the textbook algorithm outlined in
Nocedal & Wright (Chapter 13). An :class:`~coneopt.convex.core.LPProblem` is
converted to the standard equality form

```
    minimize    c^T z
    subject to  A z = b,  z >= 0,  b >= 0
```

Lower bounds are handled by shifting variables, free variables are
represented as the difference of two non-negative variables, and ``<=`` rows
(including finite upper bounds) receive slack columns. A two-phase method
then runs on ``[A | I]`` with one artificial column per row; each call to
``step`` performs exactly one pivot. Pricing uses Bland's smallest-subscript
rule, so the method cannot cycle.

Example:
    >>> import numpy as np
    >>> from coneopt.convex import LPProblem, LPSolver
    >>> problem = LPProblem(
    ...     c=np.array([-3.0, -5.0]),
    ...     a_le=np.array([[1.0, 2.0], [3.0, 2.0]]),
    ...     b_le=np.array([4.0, 6.0]),
    ... )
    >>> LPSolver().solve(problem).search().x
    array([1. , 1.5])

References:
    - Nocedal & Wright, *Numerical Optimization*, 2nd edition, 2006.
    - Bertsimas & Tsitsiklis, *Introduction to Linear Optimization*, 1997.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from ..iterative.core import IterativeMinimizer, StepInfo
from ..iterative.monitor import IterationMonitor
from ..logging import get_logger
from .core import LPProblem, LPSolution
from .errors import InfeasibleError, NumericalBreakdownError, UnboundedError
from .ipm import ConicMethod, PrimalDualInteriorPoint

logger = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class _StandardFormLP:
    A: np.ndarray
    b: np.ndarray
    c: np.ndarray
    transform: np.ndarray
    shift: np.ndarray
    base_var_count: int
    n_real: int
    n_constraints: int
    column_variable: Tuple[Optional[int], ...]
    row_sign: np.ndarray
    n_eq: int
    n_ge: int
    n_le: int

    @property
    def a_phase(self) -> np.ndarray:
        return np.hstack([self.A, np.eye(self.n_constraints)])


def _convert_to_standard(problem: LPProblem) -> _StandardFormLP:
    n = problem.n
    c = problem.c
    shift = np.zeros(n)
    columns: List[np.ndarray] = []
    column_variable: List[Optional[int]] = []

    for i in range(n):
        lb_i = problem.lb[i]
        col = np.zeros(n)
        col[i] = 1.0
        columns.append(col)
        column_variable.append(i)
        if np.isfinite(lb_i):
            shift[i] = lb_i
        else:
            columns.append(-col)
            column_variable.append(i)

    transform = np.column_stack(columns)
    base_var_count = transform.shape[1]
    c_base = transform.T @ c

    def _apply_shift(mat: np.ndarray, rhs: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        return mat @ transform, rhs - mat @ shift

    a_eq, b_eq = _apply_shift(problem.a_eq, problem.b_eq)

    # Inequalities in <= form: negated >= rows, <= rows, finite upper bounds.
    g_ge, h_ge = _apply_shift(-problem.a_ge, -problem.b_ge)
    g_le, h_le = _apply_shift(problem.a_le, problem.b_le)
    ineq_blocks = [g_ge, g_le]
    ineq_rhs = [h_ge, h_le]
    for idx, ub_i in enumerate(problem.ub):
        if np.isfinite(ub_i):
            ineq_blocks.append(transform[idx, :][np.newaxis, :])
            ineq_rhs.append(np.array([ub_i - shift[idx]]))
    g_stack = np.vstack(ineq_blocks)
    h_stack = np.concatenate(ineq_rhs)

    m_ineq = g_stack.shape[0]
    n_real = base_var_count + m_ineq
    g_aug = np.hstack([g_stack, np.eye(m_ineq)])
    a_aug = np.hstack([a_eq, np.zeros((a_eq.shape[0], m_ineq))])

    a_final = np.vstack([a_aug, g_aug])
    b_final = np.concatenate([b_eq, h_stack])
    row_sign = np.where(b_final < 0.0, -1.0, 1.0)
    a_final = a_final * row_sign[:, np.newaxis]
    b_final = b_final * row_sign

    c_real = np.concatenate([c_base, np.zeros(m_ineq)])
    column_variable.extend([None] * m_ineq)
    return _StandardFormLP(
        A=a_final,
        b=b_final,
        c=c_real,
        transform=transform,
        shift=shift,
        base_var_count=base_var_count,
        n_real=n_real,
        n_constraints=a_final.shape[0],
        column_variable=tuple(column_variable),
        row_sign=row_sign,
        n_eq=a_eq.shape[0],
        n_ge=g_ge.shape[0],
        n_le=g_le.shape[0],
    )


@dataclass(frozen=True, eq=False)
class SimplexState:
    """Current basis (standard-form columns, artificials included) and phase."""

    form: _StandardFormLP
    basis: Tuple[int, ...]
    phase: int


def _solve_basis(matrix: np.ndarray, rhs: np.ndarray, what: str) -> np.ndarray:
    try:
        sol = np.linalg.solve(matrix, rhs)
    except np.linalg.LinAlgError as exc:
        raise NumericalBreakdownError(f"basis matrix singular ({what})") from exc
    if not np.all(np.isfinite(sol)):
        raise NumericalBreakdownError(f"non-finite values in basis solve ({what})")
    return sol


@dataclass(frozen=True)
class RevisedSimplex:
    """
    Two-phase revised simplex method with Bland's rule.

    Args:
        epsilon: Pricing, ratio-test and phase-1 feasibility tolerance.
        max_iterations: Pivot cap used by :meth:`solve`.
    """

    epsilon: float = 1e-9
    max_iterations: int = 1000

    def __post_init__(self) -> None:
        if self.epsilon <= 0.0:
            raise ValueError("epsilon must be positive")
        if self.max_iterations < 0:
            raise ValueError("max_iterations must be non-negative")

    def solve(
        self,
        problem: LPProblem,
        monitor: Optional[IterationMonitor[SimplexState]] = None,
    ) -> IterativeMinimizer[SimplexState]:
        return IterativeMinimizer(problem, self, self.max_iterations, monitor)

    # ------------------------------------------------------------------
    # Iterative method protocol
    # ------------------------------------------------------------------
    def initial_state(self, problem: LPProblem, *initials: np.ndarray) -> SimplexState:
        if initials:
            raise ValueError("the simplex backend builds its own starting basis")
        form = _convert_to_standard(problem)
        basis = tuple(range(form.n_real, form.n_real + form.n_constraints))
        return SimplexState(form=form, basis=basis, phase=1 if form.n_constraints else 2)

    def step(self, problem: LPProblem, state: SimplexState) -> Tuple[SimplexState, StepInfo]:
        form = state.form
        if form.n_constraints == 0:
            return self._step_unconstrained(form, state)

        a_phase = form.a_phase
        basis = list(state.basis)
        if state.phase == 1:
            costs = np.concatenate([np.zeros(form.n_real), np.ones(form.n_constraints)])
            n_eligible = a_phase.shape[1]
        else:
            costs = np.concatenate([form.c, np.zeros(form.n_constraints)])
            n_eligible = form.n_real

        basis_matrix = a_phase[:, basis]
        x_basic = _solve_basis(basis_matrix, form.b, "primal")
        y = _solve_basis(basis_matrix.T, costs[basis], "dual")
        reduced = costs - a_phase.T @ y
        in_basis = set(basis)

        # Bland: the smallest eligible index with a negative reduced cost enters.
        entering = None
        for j in range(n_eligible):
            if j not in in_basis and reduced[j] < -self.epsilon:
                entering = j
                break

        if entering is None:
            if state.phase == 2:
                return state, StepInfo(converged=True, residual=0.0, message="optimal basis")
            return self._finish_phase_one(form, basis, basis_matrix, x_basic)

        direction = _solve_basis(basis_matrix, a_phase[:, entering], "direction")
        positive = direction > self.epsilon
        if not np.any(positive):
            if state.phase == 1:
                raise NumericalBreakdownError("phase 1 objective reported unbounded")
            raise UnboundedError(
                f"objective unbounded along column {entering}",
                column=entering,
                variable=form.column_variable[entering],
                direction=self._ray(form, basis, entering, direction),
            )

        ratios = np.full_like(x_basic, np.inf)
        ratios[positive] = np.maximum(x_basic[positive], 0.0) / direction[positive]
        theta = float(np.min(ratios))
        ties = np.flatnonzero(ratios <= theta + self.epsilon * max(1.0, abs(theta)))
        leave_pos = int(min(ties, key=lambda pos: basis[pos]))
        leaving = basis[leave_pos]
        basis[leave_pos] = entering

        info = StepInfo(
            converged=False,
            residual=float(-reduced[entering]),
            step_length=theta,
            message=f"phase {state.phase}: column {entering} enters, column {leaving} leaves",
        )
        return replace(state, basis=tuple(basis)), info

    def _step_unconstrained(self, form: _StandardFormLP, state: SimplexState) -> Tuple[SimplexState, StepInfo]:
        for j in range(form.n_real):
            if form.c[j] < -self.epsilon:
                direction = np.zeros(form.n_real)
                direction[j] = 1.0
                raise UnboundedError(
                    f"objective decreases along column {j} without constraints",
                    column=j,
                    variable=form.column_variable[j],
                    direction=form.transform @ direction[: form.base_var_count],
                )
        return state, StepInfo(converged=True, residual=0.0, message="no constraints")

    def _finish_phase_one(
        self,
        form: _StandardFormLP,
        basis: List[int],
        basis_matrix: np.ndarray,
        x_basic: np.ndarray,
    ) -> Tuple[SimplexState, StepInfo]:
        infeasibility = float(sum(x_basic[pos] for pos, j in enumerate(basis) if j >= form.n_real))
        if infeasibility > self.epsilon * max(1.0, float(np.max(form.b, initial=0.0))):
            row = None
            for pos, j in enumerate(basis):
                if j >= form.n_real and x_basic[pos] > self.epsilon:
                    std_row = j - form.n_real - form.n_eq
                    if 0 <= std_row < form.n_ge + form.n_le:
                        row = std_row
                    break
            raise InfeasibleError(
                f"phase 1 objective {infeasibility:.3e} > 0; no feasible point",
                constraint=row,
            )

        # Drive zero-level artificials out of the basis where a real column can replace them.
        for pos in range(len(basis)):
            if basis[pos] < form.n_real:
                continue
            tableau_row = _solve_basis(basis_matrix, form.A, "tableau")[pos]
            for j in range(form.n_real):
                if j not in basis and abs(tableau_row[j]) > self.epsilon:
                    basis[pos] = j
                    basis_matrix = form.a_phase[:, basis]
                    break
            else:
                logger.debug("constraint row %d is redundant", basis[pos] - form.n_real)

        info = StepInfo(converged=False, residual=infeasibility, message="phase 1 complete")
        return SimplexState(form=form, basis=tuple(basis), phase=2), info

    @staticmethod
    def _ray(form: _StandardFormLP, basis: List[int], entering: int, direction: np.ndarray) -> np.ndarray:
        z = np.zeros(form.n_real + form.n_constraints)
        z[entering] = 1.0
        z[basis] -= direction
        return form.transform @ z[: form.base_var_count]

    def _basic_values(self, state: SimplexState) -> np.ndarray:
        form = state.form
        z = np.zeros(form.n_real + form.n_constraints)
        if form.n_constraints:
            basis = list(state.basis)
            z[basis] = _solve_basis(form.a_phase[:, basis], form.b, "primal")
        return z

    def solution(self, problem: LPProblem, state: SimplexState) -> LPSolution:
        form = state.form
        z = self._basic_values(state)
        x = form.shift + form.transform @ z[: form.base_var_count]
        multipliers = None
        eq_multipliers = None
        if state.phase == 2 and form.n_constraints:
            basis = list(state.basis)
            costs = np.concatenate([form.c, np.zeros(form.n_constraints)])
            y = _solve_basis(form.a_phase[:, basis].T, costs[basis], "dual") * form.row_sign
            eq_multipliers = y[: form.n_eq]
            lam = -y[form.n_eq : form.n_eq + form.n_ge + form.n_le]
            multipliers = lam
        elif state.phase == 2:
            multipliers = np.zeros(0)
            eq_multipliers = np.zeros(0)
        return LPSolution(
            x=x,
            objective=problem.objective(x),
            multipliers=multipliers,
            eq_multipliers=eq_multipliers,
        )

    def objective(self, problem: LPProblem, state: SimplexState) -> float:
        return self.solution(problem, state).objective


class LPBackend(Enum):
    """Algorithm used by :class:`LPSolver`."""

    SIMPLEX = "simplex"
    INTERIOR_POINT = "interior_point"


@dataclass(frozen=True)
class LPSolver:
    """
    Dispatch an LP to the simplex or the interior-point backend.

    Both backends return an :class:`~coneopt.iterative.IterativeMinimizer`
    whose ``minimizer`` is an :class:`~coneopt.convex.core.LPSolution`. The
    interior-point backend solves the cone embedding of the LP; it reports
    unboundedness and infeasibility from Farkas certificates, so its errors
    carry no column index.
    """

    backend: LPBackend = LPBackend.SIMPLEX
    epsilon: float = 1e-9
    max_iterations: int = 1000
    interior_point: PrimalDualInteriorPoint = field(default_factory=PrimalDualInteriorPoint)

    def __post_init__(self) -> None:
        if not isinstance(self.backend, LPBackend):
            object.__setattr__(self, "backend", LPBackend(self.backend))

    def solve(self, problem: LPProblem, monitor: Optional[IterationMonitor] = None) -> IterativeMinimizer:
        if not isinstance(problem, LPProblem):
            raise TypeError(f"LPSolver expects an LPProblem, got {type(problem).__name__}")
        if self.backend is LPBackend.SIMPLEX:
            method = RevisedSimplex(epsilon=self.epsilon, max_iterations=self.max_iterations)
            return IterativeMinimizer(problem, method, self.max_iterations, monitor)
        method = ConicMethod(self.interior_point)
        return IterativeMinimizer(problem, method, self.interior_point.max_iterations, monitor)


__all__ = ["SimplexState", "RevisedSimplex", "LPBackend", "LPSolver"]
