"""
Karush-Kuhn-Tucker diagnostics for quadratic and cone programs.
"""

from __future__ import annotations

from typing import Dict

import numpy as np

from .core import QPProblem, QPSolution, SOCPGeneralProblem


def qp_kkt_residuals(problem: QPProblem, solution: QPSolution) -> Dict[str, float]:
    """
    Infinity norms of the KKT residuals of a QP solution.

    With the canonical rows ``A x >= b`` and multipliers ``lam`` (zero outside
    the active set) the conditions are

    ```
        H x + p - A^T lam - A_eq^T nu = 0      ("dual")
        A x >= b, A_eq x = b_eq                ("primal_ineq", "primal_eq")
        lam >= 0                               ("dual_feasibility")
        lam_i (a_i^T x - b_i) = 0              ("complementary")
    ```
    """

    x = np.asarray(solution.x, dtype=float)
    a_ineq = problem.a_ineq
    lam = np.zeros(a_ineq.shape[0])
    if solution.active_set:
        lam[list(solution.active_set)] = solution.multipliers
    nu = np.asarray(solution.eq_multipliers, dtype=float).reshape(-1)
    if nu.shape[0] != problem.a_eq.shape[0]:
        nu = np.zeros(problem.a_eq.shape[0])

    stationarity = problem.gradient(x) - a_ineq.T @ lam - problem.a_eq.T @ nu
    slack = a_ineq @ x - problem.b_ineq
    eq_res = problem.a_eq @ x - problem.b_eq

    return {
        "primal_eq": float(np.linalg.norm(eq_res, ord=np.inf)) if eq_res.size else 0.0,
        "primal_ineq": float(np.max(np.maximum(-slack, 0.0), initial=0.0)),
        "dual": float(np.linalg.norm(stationarity, ord=np.inf)),
        "dual_feasibility": float(np.max(np.maximum(-lam, 0.0), initial=0.0)),
        "complementary": float(np.max(np.abs(lam * slack), initial=0.0)),
    }


def is_kkt_optimal(residuals: Dict[str, float], tol: float = 1e-6) -> bool:
    """Return True if all KKT residuals are below ``tol``."""

    return all(value <= tol for value in residuals.values())


def socp_residuals(
    problem: SOCPGeneralProblem,
    x: np.ndarray,
    s: np.ndarray,
    y: np.ndarray,
) -> Dict[str, np.ndarray]:
    """
    Residuals of a primal-dual cone iterate.

    Returns the primal residual ``r_p = b - A x``, the dual residual
    ``r_d = c - s - A^T y`` and the complementarity measure
    ``mu = x^T s / q``.
    """

    a_full = problem.A()
    r_p = problem.b - a_full @ x
    r_d = problem.c() - s - a_full.T @ y
    mu = float(x @ s) / problem.q
    return {"primal": r_p, "dual": r_d, "mu": mu}


__all__ = ["qp_kkt_residuals", "is_kkt_optimal", "socp_residuals"]
