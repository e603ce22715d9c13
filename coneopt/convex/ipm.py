"""
Primal-dual interior-point method for second-order cone programs.

The solver works on the dual form of :class:`SOCPGeneralProblem`
(``max b^T y`` s.t. ``A_i^T y + s_i = c_i``, ``s_i in K``) together with its
primal ``min c^T x`` s.t. ``A x = b``, ``x in K``, both placed in the
homogeneous self-dual embedding

```
    A x - b tau = 0,    A^T y + s - c tau = 0,    b^T y - c^T x - kappa = 0,
```

with ``x, s in K`` and ``tau, kappa >= 0``. Each iteration

1. evaluates the residuals ``r_p = b tau - A x``, ``r_d = c tau - A^T y - s``,
   ``r_g = kappa + c^T x - b^T y`` and ``mu = (x^T s + tau kappa) / (q + 1)``;
2. computes Nesterov-Todd scaling ``W`` with ``lam = W x = W^{-1} s`` and
   factors the Schur complement ``M = A W^{-2} A^T`` (Cholesky, LU fallback);
3. solves an affine predictor and a Mehrotra corrector
   (``r_c = sigma mu e - lam o lam - (W dx_a) o (W^{-1} ds_a)``,
   ``sigma = (mu_aff / mu)^3``), each from two solves with the same
   factorization;
4. takes a common step ``alpha = min(1, 0.99 alpha_max)`` where ``alpha_max``
   is the largest step keeping ``x``, ``s``, ``tau`` and ``kappa`` feasible.

When ``tau`` vanishes relative to ``kappa`` the iterate approaches a Farkas
certificate instead of a solution: a ray ``y`` with ``A^T y + s = 0`` and
``b^T y > 0`` shows the objective is unbounded, a ray ``x`` with ``A x = 0``
and ``c^T x < 0`` shows the constraints are infeasible.

LPs and QPs are solved through their cone embedding by :class:`ConicMethod`.

References:
    - Vandenberghe, "The CVXOPT linear and quadratic cone program solvers" (2010)
    - Toh, Todd & Tutuncu, "SDPT3 - a MATLAB software package" (1999)
    - Andersen, Roos & Terlaky, "On implementing a primal-dual interior-point
      method for conic quadratic optimization", Math. Prog. (2003)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Tuple, Union

import numpy as np

from ..diagnostics import assert_cone_interior, assert_finite, register_check, run_checks
from ..iterative.core import IterativeMinimizer, StepInfo
from ..iterative.monitor import IterationMonitor
from ..iterative.tolerance import MACHINE_EPSILON, AbsoluteTolerance, Tolerance
from ..logging import get_logger
from . import cones
from .conversions import ConicEmbedding, embed
from .core import LPProblem, PrimalDualSolution, QPProblem, SOCPGeneralProblem
from .errors import (
    ConvexOptimizationError,
    DimensionMismatchError,
    InfeasibleError,
    NumericalBreakdownError,
    UnboundedError,
)
from .utils import factorize

logger = get_logger(__name__)

ITERATE_CHECK = "interior-point iterate"


@dataclass(frozen=True, eq=False)
class HomogeneousIterate(PrimalDualSolution):
    """
    Iterate of the homogeneous embedding.

    ``(x, s, y) / tau`` is the candidate solution; ``kappa`` measures how far
    the iterate leans towards an infeasibility certificate.
    """

    tau: float = 1.0
    kappa: float = 1.0

    @property
    def gap(self) -> float:
        """Complementarity ``x^T s`` of the normalised point."""
        return float(self.x @ self.s) / self.tau ** 2

    def normalized(self) -> PrimalDualSolution:
        return PrimalDualSolution(x=self.x / self.tau, s=self.s / self.tau, y=self.y / self.tau)


@register_check(ITERATE_CHECK)
def _iterate_is_interior(problem: SOCPGeneralProblem, state: HomogeneousIterate) -> None:
    assert_cone_interior(state.x, problem.dims, name="x")
    assert_cone_interior(state.s, problem.dims, name="s")
    assert_finite(state.y, name="y")
    if not (state.tau > 0.0 and state.kappa > 0.0):
        raise ValueError(f"tau={state.tau:.3e} and kappa={state.kappa:.3e} must stay positive.")


def default_start(problem: SOCPGeneralProblem) -> HomogeneousIterate:
    """
    Manufactured interior starting point.

    ``x = xi e`` and ``s = eta e`` with

    ```
        xi  = max(1, max_k (1 + |b_k|) / (1 + ||A_k||))
        eta = max(1, (1 + max(||c||, max_k ||A_k||)) / sqrt(N))
    ```

    (``A_k`` the rows of ``A``), ``y`` the least-squares solution of
    ``A^T y = c - s`` and ``tau = kappa = 1``.
    """

    a_full = problem.A()
    c_full = problem.c()
    row_norms = np.linalg.norm(a_full, axis=1)
    xi = max(1.0, float(np.max((1.0 + np.abs(problem.b)) / (1.0 + row_norms))))
    eta = max(
        1.0,
        (1.0 + max(float(np.linalg.norm(c_full)), float(np.max(row_norms)))) / math.sqrt(problem.n),
    )
    e = cones.identity(problem.dims)
    x = xi * e
    s = eta * e
    y, *_ = np.linalg.lstsq(a_full.T, c_full - s, rcond=None)
    return HomogeneousIterate(x=x, s=s, y=y)


def _range_basis(a_full: np.ndarray) -> Optional[np.ndarray]:
    """Orthonormal basis of the range of ``A``, or ``None`` when ``A`` has full row rank."""

    u, sv, _ = np.linalg.svd(a_full, full_matrices=False)
    cutoff = max(a_full.shape) * MACHINE_EPSILON * (float(sv[0]) if sv.size else 0.0)
    rank = int(np.sum(sv > cutoff))
    if rank == 0:
        raise NumericalBreakdownError("no cone block depends on y")
    if rank == a_full.shape[0]:
        return None
    return u[:, :rank]


@dataclass(frozen=True)
class PrimalDualInteriorPoint:
    """
    Mehrotra predictor-corrector interior-point solver.

    Args:
        tolerance: Applied to the largest of the relative primal residual
            ``||r_p|| / (tau (1 + ||b||))``, the relative dual residual
            ``||r_d|| / (tau (1 + ||c||))`` and the relative gap
            ``x^T s / tau^2 / (1 + |b^T y| / tau)``.
        max_iterations: Iteration cap used by :meth:`solve`.
        step_safety: Fraction of the maximal cone step actually taken.
        certificate_tolerance: A ray ``y`` with
            ``||A^T y + s|| <= certificate_tolerance * b^T y`` raises
            :class:`UnboundedError`; a ray ``x`` with
            ``||A x|| <= certificate_tolerance * (-c^T x)`` raises
            :class:`InfeasibleError`.
        min_step: Step lengths below this raise
            :class:`NumericalBreakdownError`.
    """

    tolerance: Tolerance = field(default_factory=lambda: AbsoluteTolerance(1e-8))
    max_iterations: int = 100
    step_safety: float = 0.99
    certificate_tolerance: float = 1e-7
    min_step: float = 1e-12

    def __post_init__(self) -> None:
        if not 0.0 < self.step_safety < 1.0:
            raise ValueError("step_safety must lie in (0, 1)")
        if self.max_iterations < 0:
            raise ValueError("max_iterations must be non-negative")
        if not 0.0 < self.certificate_tolerance < 1.0:
            raise ValueError("certificate_tolerance must lie in (0, 1)")

    def solve(
        self,
        problem: Union[SOCPGeneralProblem, LPProblem, QPProblem],
        monitor: Optional[IterationMonitor] = None,
    ) -> IterativeMinimizer:
        """Bind ``problem`` to a fresh minimizer; LPs and QPs are embedded first."""
        method: Any = self if isinstance(problem, SOCPGeneralProblem) else ConicMethod(self)
        return IterativeMinimizer(problem, method, self.max_iterations, monitor)

    # ------------------------------------------------------------------
    # Iterative method protocol
    # ------------------------------------------------------------------
    def initial_state(self, problem: SOCPGeneralProblem, *initials: np.ndarray) -> HomogeneousIterate:
        """
        Accepts no initials (manufactured start), ``(y,)`` or ``(x, s, y)``.

        A supplied ``x`` and ``s`` must lie strictly inside the cones.
        """
        if not initials:
            return default_start(problem)
        if len(initials) == 1:
            y = np.array(initials[0], dtype=float).reshape(-1)
            if y.shape[0] != problem.m:
                raise DimensionMismatchError(f"y must have length {problem.m}, got {y.shape[0]}")
            return replace(default_start(problem), y=y)
        if len(initials) != 3:
            raise ValueError("expected no initials, (y,) or (x, s, y)")

        x, s, y = (np.array(v, dtype=float).reshape(-1) for v in initials)
        for name, vec, size in (("x", x, problem.n), ("s", s, problem.n), ("y", y, problem.m)):
            if vec.shape[0] != size:
                raise DimensionMismatchError(f"{name} must have length {size}, got {vec.shape[0]}")
        for name, vec in (("x", x), ("s", s)):
            if not cones.is_interior(vec, problem.dims):
                raise ValueError(f"initial {name} is not strictly inside the cone")
        return HomogeneousIterate(x=x, s=s, y=y)

    def certificate(
        self,
        problem: SOCPGeneralProblem,
        state: HomogeneousIterate,
        tolerance: Optional[float] = None,
    ) -> Optional[ConvexOptimizationError]:
        """
        Return the error certified by ``state``, or ``None``.

        Only iterates with ``kappa > tau`` are inspected: away from that
        regime the point is still heading for a solution.
        """
        if not state.kappa > state.tau:
            return None
        tol = self.certificate_tolerance if tolerance is None else tolerance
        a_full = problem.A()

        b_y = float(problem.b @ state.y)
        if b_y > 0.0 and np.linalg.norm(a_full.T @ state.y + state.s) <= tol * b_y:
            return UnboundedError(
                f"dual ray with b^T y = {b_y:.3e}: objective is unbounded",
                direction=state.y / np.linalg.norm(state.y),
            )
        c_x = float(problem.c() @ state.x)
        if c_x < 0.0 and np.linalg.norm(a_full @ state.x) <= tol * -c_x:
            return InfeasibleError(f"primal ray with c^T x = {c_x:.3e}: constraints are infeasible")
        return None

    def step(self, problem: SOCPGeneralProblem, state: HomogeneousIterate) -> Tuple[HomogeneousIterate, StepInfo]:
        a_full = problem.A()
        c_full = problem.c()
        basis = _range_basis(a_full)
        # Components of b outside the range of A cannot be matched by A x.
        b_eff = problem.b if basis is None else basis @ (basis.T @ problem.b)
        b_null = problem.b - b_eff

        x, s, y, tau, kappa = state.x, state.s, state.y, state.tau, state.kappa
        r_p = tau * b_eff - a_full @ x
        r_d = tau * c_full - a_full.T @ y - s
        r_g = kappa + c_full @ x - b_eff @ y
        mu = (float(x @ s) + tau * kappa) / (problem.q + 1)

        norm = max(
            float(np.linalg.norm(r_p)) / tau / (1.0 + float(np.linalg.norm(b_eff))),
            float(np.linalg.norm(r_d)) / tau / (1.0 + float(np.linalg.norm(c_full))),
            float(x @ s) / tau ** 2 / (1.0 + abs(float(b_eff @ y)) / tau),
        )
        if not math.isfinite(norm):
            raise NumericalBreakdownError("non-finite residuals")
        if self.tolerance.is_converged(norm):
            null_norm = float(np.linalg.norm(b_null))
            if null_norm > math.sqrt(MACHINE_EPSILON) * (1.0 + float(np.linalg.norm(problem.b))):
                # Feasible, and the objective grows along a direction no cone restricts.
                raise UnboundedError(
                    f"objective component {null_norm:.3e} outside the range of A: objective is unbounded",
                    direction=b_null / null_norm,
                )
            return state, StepInfo(converged=True, residual=norm, message="residuals within tolerance")

        error = self.certificate(problem, state)
        if error is not None:
            raise error

        try:
            new_state, info = self._newton_step(problem, state, basis, b_eff, r_p, r_d, r_g, mu)
        except NumericalBreakdownError as exc:
            error = self.certificate(problem, state, math.sqrt(self.certificate_tolerance))
            if error is not None:
                raise error from exc
            raise
        return new_state, replace(info, residual=norm)

    def _newton_step(
        self,
        problem: SOCPGeneralProblem,
        state: HomogeneousIterate,
        basis: Optional[np.ndarray],
        b_eff: np.ndarray,
        r_p: np.ndarray,
        r_d: np.ndarray,
        r_g: float,
        mu: float,
    ) -> Tuple[HomogeneousIterate, StepInfo]:
        dims = problem.dims
        a_full = problem.A()
        c_full = problem.c()
        x, s, y, tau, kappa = state.x, state.s, state.y, state.tau, state.kappa

        scaling = cones.NTScaling(x, s, dims)
        lam = scaling.lam
        w_inv = scaling.W_inv
        w_inv_sq = w_inv @ w_inv
        schur = a_full @ w_inv_sq @ a_full.T
        # With dependent rows the system is solved on the range of A.
        factor = factorize(schur if basis is None else basis.T @ schur @ basis)

        def _solve_schur(rhs: np.ndarray) -> np.ndarray:
            if basis is None:
                return factor.solve(rhs)
            return basis @ factor.solve(basis.T @ rhs)

        def _direction(
            rp: np.ndarray, rd: np.ndarray, r_tilde: np.ndarray
        ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
            # A dx = rp, A^T dy + ds = rd, W dx + W^{-1} ds = r_tilde
            dy = _solve_schur(rp - a_full @ (w_inv @ r_tilde) + a_full @ (w_inv_sq @ rd))
            dx = w_inv @ r_tilde + w_inv_sq @ (a_full.T @ dy - rd)
            ds = rd - a_full.T @ dy
            return dx, ds, dy

        # The tau direction; one solve serves both the predictor and the corrector.
        dx2, ds2, dy2 = _direction(b_eff, c_full, np.zeros_like(x))
        denominator = float(b_eff @ dy2 - c_full @ dx2) + kappa / tau

        def _homogeneous_direction(eta: float, r_c: np.ndarray, r_tau: float):
            dx1, ds1, dy1 = _direction(eta * r_p, eta * r_d, cones.jordan_divide(lam, r_c, dims))
            numerator = eta * r_g - float(b_eff @ dy1) + float(c_full @ dx1) + r_tau / tau
            d_tau = numerator / denominator
            d_kappa = (r_tau - kappa * d_tau) / tau
            return dx1 + d_tau * dx2, ds1 + d_tau * ds2, dy1 + d_tau * dy2, d_tau, d_kappa

        def _max_step(dx: np.ndarray, ds: np.ndarray, d_tau: float, d_kappa: float) -> float:
            alpha = min(cones.max_step(x, dx, dims), cones.max_step(s, ds, dims))
            if d_tau < 0.0:
                alpha = min(alpha, -tau / d_tau)
            if d_kappa < 0.0:
                alpha = min(alpha, -kappa / d_kappa)
            return alpha

        lam_sq = cones.jordan_product(lam, lam, dims)
        dx_a, ds_a, _, dtau_a, dkappa_a = _homogeneous_direction(1.0, -lam_sq, -tau * kappa)
        alpha_a = min(1.0, _max_step(dx_a, ds_a, dtau_a, dkappa_a))
        mu_aff = (
            float((x + alpha_a * dx_a) @ (s + alpha_a * ds_a))
            + (tau + alpha_a * dtau_a) * (kappa + alpha_a * dkappa_a)
        ) / (problem.q + 1)
        sigma = min(1.0, max(0.0, mu_aff / mu)) ** 3 if mu > 0.0 else 0.0

        r_c = (
            sigma * mu * cones.identity(dims)
            - lam_sq
            - cones.jordan_product(scaling.scale(dx_a), scaling.unscale(ds_a), dims)
        )
        r_tau = sigma * mu - tau * kappa - dtau_a * dkappa_a
        dx, ds, dy, d_tau, d_kappa = _homogeneous_direction(1.0 - sigma, r_c, r_tau)
        alpha = min(1.0, self.step_safety * _max_step(dx, ds, d_tau, d_kappa))
        if not alpha >= self.min_step:
            raise NumericalBreakdownError(f"step length collapsed to {alpha:.3e}")

        new_state = HomogeneousIterate(
            x=x + alpha * dx,
            s=s + alpha * ds,
            y=y + alpha * dy,
            tau=tau + alpha * d_tau,
            kappa=kappa + alpha * d_kappa,
        )
        run_checks(ITERATE_CHECK, problem, new_state)
        info = StepInfo(
            converged=False,
            step_length=alpha,
            message=f"mu={mu:.3e} sigma={sigma:.3f} tau={new_state.tau:.3e} kappa={new_state.kappa:.3e}",
        )
        return new_state, info

    def solution(self, problem: SOCPGeneralProblem, state: HomogeneousIterate) -> PrimalDualSolution:
        return state.normalized()

    def objective(self, problem: SOCPGeneralProblem, state: HomogeneousIterate) -> float:
        """Dual objective ``b^T y / tau`` (the quantity being maximized)."""
        return problem.dual_objective(state.y) / state.tau


@dataclass(frozen=True, eq=False)
class EmbeddedState:
    """Interior-point iterate of the cone embedding of an LP or QP."""

    embedding: ConicEmbedding
    point: HomogeneousIterate


@dataclass(frozen=True)
class ConicMethod:
    """Runs :class:`PrimalDualInteriorPoint` on the cone embedding of an LP or QP."""

    ipm: PrimalDualInteriorPoint

    def initial_state(self, problem: Union[LPProblem, QPProblem], *initials: np.ndarray) -> EmbeddedState:
        if len(initials) > 1:
            raise ValueError("expected at most one starting point")
        embedding = embed(problem)
        lifted = tuple(embedding.lift(x0) for x0 in initials)
        return EmbeddedState(embedding, self.ipm.initial_state(embedding.socp, *lifted))

    def step(self, problem: Union[LPProblem, QPProblem], state: EmbeddedState) -> Tuple[EmbeddedState, StepInfo]:
        try:
            point, info = self.ipm.step(state.embedding.socp, state.point)
        except UnboundedError as exc:
            # Report the ray in the original variables (a QP epigraph entry is dropped).
            if exc.direction is not None:
                exc.direction = exc.direction[: state.embedding.n]
            raise
        return replace(state, point=point), info

    def solution(self, problem: Union[LPProblem, QPProblem], state: EmbeddedState) -> Any:
        return state.embedding.recover(state.point.normalized())

    def objective(self, problem: Union[LPProblem, QPProblem], state: EmbeddedState) -> float:
        return problem.objective(self.solution(problem, state).x)


__all__ = [
    "default_start",
    "HomogeneousIterate",
    "PrimalDualInteriorPoint",
    "EmbeddedState",
    "ConicMethod",
]
