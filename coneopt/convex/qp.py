"""
Quadratic programming solvers.

Implements the primal active-set method for strictly convex quadratic
programs described in Nocedal & Wright (2006), Algorithm 16.3. Inequalities
are handled in the canonical form ``A x >= b``; equalities are permanently in
the working set. Each ``step``

* solves the equality-constrained subproblem on the working set for a
  direction ``d``;
* if ``d`` vanishes, either stops (all working multipliers non-negative) or
  drops the row with the most negative multiplier;
* otherwise moves along ``d`` as far as the first blocking row allows and adds
  that row to the working set.

A feasible start is computed with a phase-1 linear program when none is
supplied.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from ..diagnostics import assert_feasible, register_check, run_checks
from ..iterative.core import IterativeMinimizer, StepInfo
from ..iterative.monitor import IterationMonitor
from ..iterative.tolerance import MACHINE_EPSILON
from ..logging import get_logger
from .constraints import active_rows, find_feasible_point, independent_rows
from .core import QPProblem, QPSolution
from .errors import DimensionMismatchError, InfeasibleError
from .utils import is_pos_def, stable_solve

logger = get_logger(__name__)

ITERATE_CHECK = "active-set iterate"


@register_check(ITERATE_CHECK)
def _iterate_is_feasible(problem: QPProblem, x: np.ndarray, eps: float) -> None:
    assert_feasible(problem.a_ineq, problem.b_ineq, x, atol=10.0 * eps, name=ITERATE_CHECK)


def solve_equality_qp(
    hessian: np.ndarray,
    p_vec: np.ndarray,
    a_mat: np.ndarray,
    b_vec: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Minimize ``0.5 x^T H x + p^T x`` subject to ``A x = b``.

    Returns the minimizer ``x`` and multipliers ``nu`` satisfying
    ``H x + p = A^T nu``. Near-singular KKT systems are handled by
    :func:`~coneopt.convex.utils.stable_solve`.
    """

    n = hessian.shape[0]
    m = a_mat.shape[0]
    if m == 0:
        return -stable_solve(hessian, p_vec), np.zeros(0)
    kkt_matrix = np.block([[hessian, a_mat.T], [a_mat, np.zeros((m, m))]])
    rhs = np.concatenate([-p_vec, b_vec])
    sol = stable_solve(kkt_matrix, rhs)
    return sol[:n], -sol[n:]


@dataclass(frozen=True, eq=False)
class ActiveSetState:
    """Feasible iterate and working set (indices into the canonical ``>=`` rows)."""

    x: np.ndarray
    working: Tuple[int, ...]


@dataclass(frozen=True)
class ActiveSetQPSolver:
    """
    Primal active-set solver for :class:`QPProblem`.

    Args:
        epsilon: Zero tolerance for directions, multipliers and feasibility.
            Defaults to ``sqrt(machine eps) * max(1, ||H||_inf)``.
        max_iterations: Iteration cap used by :meth:`solve`.
    """

    epsilon: Optional[float] = None
    max_iterations: int = 1000

    def __post_init__(self) -> None:
        if self.epsilon is not None and not self.epsilon > 0.0:
            raise ValueError("epsilon must be positive")
        if self.max_iterations < 0:
            raise ValueError("max_iterations must be non-negative")

    def zero_tolerance(self, problem: QPProblem) -> float:
        if self.epsilon is not None:
            return self.epsilon
        return math.sqrt(MACHINE_EPSILON) * max(1.0, float(np.linalg.norm(problem.H, ord=np.inf)))

    def solve(
        self,
        problem: QPProblem,
        monitor: Optional[IterationMonitor[ActiveSetState]] = None,
    ) -> IterativeMinimizer[ActiveSetState]:
        if not isinstance(problem, QPProblem):
            raise TypeError(f"ActiveSetQPSolver expects a QPProblem, got {type(problem).__name__}")
        if not is_pos_def(problem.H):
            raise ValueError("the active-set solver requires a positive definite Hessian")
        return IterativeMinimizer(problem, self, self.max_iterations, monitor)

    # ------------------------------------------------------------------
    # Iterative method protocol
    # ------------------------------------------------------------------
    def initial_state(self, problem: QPProblem, *initials: np.ndarray) -> ActiveSetState:
        """
        Start from the supplied feasible point, or from a phase-1 point.

        Raises:
            InfeasibleError: If the supplied point violates a constraint
                (``constraint`` numbers the canonical ``>=`` rows first,
                then the equality rows) or no feasible point exists.
        """
        eps = self.zero_tolerance(problem)
        a_ineq, b_ineq = problem.a_ineq, problem.b_ineq
        if len(initials) > 1:
            raise ValueError("expected at most one starting point")
        if initials:
            x = np.array(initials[0], dtype=float).reshape(-1)
            if x.shape[0] != problem.n:
                raise DimensionMismatchError(f"starting point must have length {problem.n}, got {x.shape[0]}")
            self._check_feasible(problem, x, eps)
        else:
            x = find_feasible_point(a_ineq, b_ineq, problem.a_eq, problem.b_eq)

        candidates = active_rows(a_ineq, b_ineq, x, eps)
        working = independent_rows(candidates, a_ineq, problem.a_eq, eps)
        logger.debug("initial working set %s", working)
        return ActiveSetState(x=x, working=tuple(working))

    @staticmethod
    def _check_feasible(problem: QPProblem, x: np.ndarray, eps: float) -> None:
        n_ineq = problem.a_ineq.shape[0]
        if n_ineq:
            slack = problem.a_ineq @ x - problem.b_ineq
            worst = int(np.argmin(slack))
            if slack[worst] < -eps:
                raise InfeasibleError(
                    f"starting point violates inequality {worst} by {-slack[worst]:.3e}",
                    constraint=worst,
                )
        if problem.a_eq.shape[0]:
            residual = np.abs(problem.a_eq @ x - problem.b_eq)
            worst = int(np.argmax(residual))
            if residual[worst] > eps:
                raise InfeasibleError(
                    f"starting point violates equality {worst} by {residual[worst]:.3e}",
                    constraint=n_ineq + worst,
                )

    def _working_multipliers(
        self,
        problem: QPProblem,
        x: np.ndarray,
        working: Tuple[int, ...],
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        a_work = np.vstack([problem.a_eq, problem.a_ineq[list(working)]])
        d, nu = solve_equality_qp(problem.H, problem.gradient(x), a_work, np.zeros(a_work.shape[0]))
        n_eq = problem.a_eq.shape[0]
        return d, nu[:n_eq], nu[n_eq:]

    def step(self, problem: QPProblem, state: ActiveSetState) -> Tuple[ActiveSetState, StepInfo]:
        eps = self.zero_tolerance(problem)
        x, working = state.x, state.working
        d, _, lam = self._working_multipliers(problem, x, working)
        d_norm = float(np.linalg.norm(d, ord=np.inf))

        if d_norm < eps:
            if lam.size == 0 or float(np.min(lam)) >= -eps:
                return state, StepInfo(converged=True, residual=d_norm, message="multipliers non-negative")
            drop = int(np.argmin(lam))
            row = working[drop]
            new_working = working[:drop] + working[drop + 1 :]
            info = StepInfo(
                converged=False,
                residual=float(-lam[drop]),
                message=f"drop constraint {row} (multiplier {lam[drop]:.3e})",
            )
            return ActiveSetState(x=x, working=new_working), info

        a_ineq, b_ineq = problem.a_ineq, problem.b_ineq
        alpha = 1.0
        blocking = None
        in_working = set(working)
        for i in range(a_ineq.shape[0]):
            if i in in_working:
                continue
            ad = float(a_ineq[i] @ d)
            if ad < -eps:
                alpha_i = max(0.0, float(a_ineq[i] @ x - b_ineq[i]) / -ad)
                if alpha_i < alpha or (blocking is None and alpha_i <= alpha):
                    alpha = alpha_i
                    blocking = i

        x_new = x + alpha * d
        new_working: List[int] = list(working)
        message = "full step"
        if blocking is not None:
            new_working.append(blocking)
            message = f"add constraint {blocking} (step {alpha:.3e})"
        run_checks(ITERATE_CHECK, problem, x_new, eps)
        info = StepInfo(converged=False, residual=d_norm, step_length=alpha, message=message)
        return ActiveSetState(x=x_new, working=tuple(new_working)), info

    def solution(self, problem: QPProblem, state: ActiveSetState) -> QPSolution:
        _, nu, lam = self._working_multipliers(problem, state.x, state.working)
        order = np.argsort(state.working, kind="stable")
        return QPSolution(
            x=state.x.copy(),
            active_set=tuple(int(state.working[i]) for i in order),
            multipliers=lam[order] if lam.size else np.zeros(0),
            eq_multipliers=nu,
        )

    def objective(self, problem: QPProblem, state: ActiveSetState) -> float:
        return problem.objective(state.x)


__all__ = ["solve_equality_qp", "ActiveSetState", "ActiveSetQPSolver"]
