"""
Integration tests for the convex optimization package.

Exercises the public API from the top-level ``coneopt`` namespace on
realistic problems and cross-checks the solvers against each other.
"""

import numpy as np
import pytest

from coneopt import (
    ActiveSetQPSolver,
    AbsoluteTolerance,
    IterationCounter,
    LPProblem,
    LPSolver,
    PrimalDualInteriorPoint,
    Status,
    to_socp,
)
from coneopt.convex import is_kkt_optimal, qp_kkt_residuals


def test_main_package_imports():
    import coneopt

    for name in coneopt.__all__:
        assert getattr(coneopt, name) is not None


def test_portfolio_active_set(portfolio_problem):
    minimizer = ActiveSetQPSolver().solve(portfolio_problem)
    solution = minimizer.search()
    assert minimizer.status is Status.OPTIMAL
    assert np.allclose(solution.x, [3452.9, 0.0007, 1068.8, 2223.5], atol=0.1)
    # Only the required-return row binds.
    assert 0 in solution.active_set
    assert portfolio_problem.a_ge[0] @ solution.x == pytest.approx(1000.0, rel=1e-8)
    assert is_kkt_optimal(qp_kkt_residuals(portfolio_problem, solution), tol=1e-6)


def test_active_set_and_interior_point_agree(nocedal_qp):
    active = ActiveSetQPSolver().solve(nocedal_qp).search()
    interior_min = PrimalDualInteriorPoint(tolerance=AbsoluteTolerance(1e-9)).solve(nocedal_qp)
    interior = interior_min.search()
    assert interior_min.converged
    assert np.allclose(active.x, [1.4, 1.7], atol=1e-8)
    assert np.allclose(interior.x, active.x, atol=1e-5)
    assert interior_min.minimum == pytest.approx(nocedal_qp.objective(active.x), abs=1e-5)


def test_lp_backends_agree():
    problem = LPProblem(
        c=np.array([-3.0, -5.0, -4.0]),
        a_le=np.array([[2.0, 3.0, 0.0], [0.0, 2.0, 5.0], [3.0, 2.0, 4.0]]),
        b_le=np.array([8.0, 10.0, 15.0]),
    )
    counter = IterationCounter()
    simplex = LPSolver("simplex").solve(problem, monitor=counter).search()
    interior = LPSolver("interior_point").solve(problem).search()
    assert counter.count > 0
    assert simplex.objective == pytest.approx(interior.objective, abs=1e-6)
    assert np.allclose(simplex.x, interior.x, atol=1e-5)


def test_socp_form_of_lp_has_one_cone_per_row():
    problem = LPProblem(c=np.ones(3), a_eq=np.ones((1, 3)), b_eq=np.array([1.0]))
    socp = to_socp(problem)
    assert socp.q == 2 + 3
    assert all(d == 1 for d in socp.dims)
