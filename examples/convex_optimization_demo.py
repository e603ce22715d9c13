"""
Example: Convex Optimization with coneopt

Walks through the three solver families on small textbook problems:
an LP solved by both simplex and interior point, a Markowitz portfolio
solved by the active-set method, and the shortest distance between two
ellipses posed as a second-order cone program.
"""

import numpy as np

from coneopt import (
    ActiveSetQPSolver,
    AbsoluteTolerance,
    IterationHistory,
    LPProblem,
    LPSolver,
    PrimalDualInteriorPoint,
    QPProblem,
    SOCPGeneralProblem,
    Status,
    UnboundedError,
)
from coneopt.convex import socp_residuals


def example_linear_programming():
    """Example: Production planning with two backends."""
    print("=" * 60)
    print("Example 1: Linear Programming - Production Planning")
    print("=" * 60)

    # Maximize profit 3x + 5y subject to x + 2y <= 4, 3x + 2y <= 6, x, y >= 0
    problem = LPProblem(
        c=np.array([-3.0, -5.0]),
        a_le=np.array([[1.0, 2.0], [3.0, 2.0]]),
        b_le=np.array([4.0, 6.0]),
    )
    for backend in ("simplex", "interior_point"):
        minimizer = LPSolver(backend).solve(problem)
        solution = minimizer.search()
        print(f"[{backend}] status: {minimizer.status.name}")
        print(f"[{backend}] x = {np.round(solution.x, 6)}, profit = {-solution.objective:.6f}")
        print(f"[{backend}] iterations: {minimizer.iterations}")

    # With only x - y <= 1 the profit grows without bound along x = y.
    open_ended = LPProblem(c=problem.c, a_le=np.array([[1.0, -1.0]]), b_le=np.array([1.0]))
    try:
        LPSolver("interior_point").solve(open_ended).search()
    except UnboundedError as exc:
        print(f"[interior_point] unbounded along {np.round(exc.direction, 4)}")
    print()


def example_portfolio():
    """Example: Minimum-variance portfolio with a return target."""
    print("=" * 60)
    print("Example 2: Quadratic Programming - Portfolio Optimization")
    print("=" * 60)

    covariance = np.array(
        [
            [0.08, -0.05, -0.05, -0.05],
            [-0.05, 0.16, -0.02, -0.02],
            [-0.05, -0.02, 0.35, 0.06],
            [-0.05, -0.02, 0.06, 0.35],
        ]
    )
    returns = np.array([0.05, -0.20, 0.15, 0.30])
    problem = QPProblem(
        H=covariance,
        p=np.zeros(4),
        a_ge=np.vstack([returns, np.eye(4)]),
        b_ge=np.array([1000.0, 0.0, 0.0, 0.0, 0.0]),
        a_le=np.ones((1, 4)),
        b_le=np.array([10000.0]),
    )
    minimizer = ActiveSetQPSolver().solve(problem)
    solution = minimizer.search()
    print(f"Status: {minimizer.status.name}")
    print(f"Allocation: {np.round(solution.x, 2)}")
    print(f"Expected return: {returns @ solution.x:.2f}")
    print(f"Variance: {2.0 * minimizer.minimum:.2f}")
    print(f"Active constraints: {solution.active_set}")
    print()


def example_ellipse_distance():
    """Example: Distance between two ellipses as a cone program."""
    print("=" * 60)
    print("Example 3: Second-Order Cone Programming - Ellipse Distance")
    print("=" * 60)

    a1_t = np.array([[1.0, 0, 0, 0, 0], [0, 1.0, 0, -1.0, 0], [0, 0, 1.0, 0, -1.0]])
    a2_t = np.array([[0.0, 0, 0, 0, 0], [0, 0.5, 0, 0, 0], [0, 0, 1.0, 0, 0]])
    a3_t = np.array([[0.0, 0, 0, 0, 0], [0, 0, 0, 0.75, 0.25], [0, 0, 0, 0.25, 0.75]])
    problem = SOCPGeneralProblem(
        b=np.array([1.0, 0.0, 0.0, 0.0, 0.0]),
        a_blocks=[a1_t.T, a2_t.T, a3_t.T],
        c_blocks=[np.zeros(3), np.array([1.0, -0.5, 0.0]), np.array([1.0, -2.5, -3.5])],
    )

    history = IterationHistory()
    solver = PrimalDualInteriorPoint(tolerance=AbsoluteTolerance(1e-9))
    minimizer = solver.solve(problem, monitor=history)
    solution = minimizer.search()
    print(f"Status: {minimizer.status.name} after {minimizer.iterations} iterations")
    print(f"Distance: {-solution.y[0]:.4f}")
    print(f"Closest point on ellipse 1: {np.round(-solution.y[1:3], 4)}")
    print(f"Closest point on ellipse 2: {np.round(-solution.y[3:5], 4)}")
    print(f"Duality gaps: {[f'{state.gap:.1e}' for state in history.states[-3:]]}")
    residuals = socp_residuals(problem, solution.x, solution.s, solution.y)
    print(f"Primal residual: {np.linalg.norm(residuals['primal']):.1e}")
    print(f"Dual residual: {np.linalg.norm(residuals['dual']):.1e}")
    print()


def example_qp_through_cones():
    """Example: A QP solved by both the active-set and interior-point methods."""
    print("=" * 60)
    print("Example 4: QP via its Cone Embedding")
    print("=" * 60)

    problem = QPProblem(
        H=2.0 * np.eye(2),
        p=np.array([-2.0, -5.0]),
        a_ge=np.array([[1.0, -2.0], [-1.0, -2.0], [-1.0, 2.0], [1.0, 0.0], [0.0, 1.0]]),
        b_ge=np.array([-2.0, -6.0, -2.0, 0.0, 0.0]),
    )
    active = ActiveSetQPSolver().solve(problem)
    interior = PrimalDualInteriorPoint().solve(problem)
    for name, minimizer in (("active set", active), ("interior point", interior)):
        solution = minimizer.search()
        ok = minimizer.status is Status.OPTIMAL
        print(f"[{name}] optimal={ok} x = {np.round(solution.x, 6)} f = {minimizer.minimum:.6f}")
    print()


if __name__ == "__main__":
    example_linear_programming()
    example_portfolio()
    example_ellipse_distance()
    example_qp_through_cones()
    print("All convex optimization examples completed.")
