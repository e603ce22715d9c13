import numpy as np
import pytest

from coneopt.convex import (
    DimensionMismatchError,
    LPProblem,
    PrimalDualSolution,
    QPProblem,
    cones,
    embed,
    to_socp,
)


def test_lp_embedding_slacks_match_constraint_rows():
    problem = LPProblem(
        c=np.array([1.0, -2.0]),
        a_ge=np.array([[1.0, 1.0]]),
        b_ge=np.array([1.0]),
        a_le=np.array([[1.0, -1.0]]),
        b_le=np.array([3.0]),
        a_eq=np.array([[0.0, 1.0]]),
        b_eq=np.array([0.5]),
        ub=np.array([4.0, np.inf]),
    )
    socp = to_socp(problem)
    # 2 inequalities, 1 split equality, 2 lower bounds, 1 upper bound.
    assert socp.dims == (1,) * 7
    assert np.array_equal(socp.b, -problem.c)

    x = np.array([2.0, 0.5])
    slack = socp.c() - socp.A().T @ x
    expected = np.concatenate(
        [
            problem.a_ineq @ x - problem.b_ineq,
            problem.a_eq @ x - problem.b_eq,
            problem.b_eq - problem.a_eq @ x,
            x - problem.lb,
            [problem.ub[0] - x[0]],
        ]
    )
    assert np.allclose(slack, expected)


def test_qp_embedding_objective_cone(rng):
    m = rng.standard_normal((3, 3))
    problem = QPProblem(H=m @ m.T + np.eye(3), p=rng.standard_normal(3))
    embedding = embed(problem)
    socp = embedding.socp
    assert socp.dims == (5,)
    assert socp.m == 4
    assert np.allclose(socp.b, -np.concatenate([problem.p, [1.0]]))

    x = rng.standard_normal(3)
    y = embedding.lift(x)
    s0 = socp.c(0) - socp.A(0).T @ y
    t = y[-1]
    assert s0[0] == pytest.approx(t + 0.5)
    assert s0[-1] == pytest.approx(t - 0.5)
    assert s0[1:4] @ s0[1:4] == pytest.approx(x @ problem.H @ x)
    assert cones.is_interior(s0, socp.dims)


def test_recover_lp_solution_maps_multipliers():
    problem = LPProblem(
        c=np.array([1.0]),
        a_ge=np.array([[1.0]]),
        b_ge=np.array([2.0]),
        a_eq=np.array([[1.0]]),
        b_eq=np.array([2.0]),
    )
    embedding = embed(problem)
    # Cone entries: [ineq, eq+, eq-, lb]
    point = PrimalDualSolution(
        x=np.array([0.25, 1.0, 0.25, 0.0]),
        s=np.array([0.0, 0.0, 0.0, 2.0]),
        y=np.array([2.0]),
    )
    solution = embedding.recover(point)
    assert np.allclose(solution.x, [2.0])
    assert np.allclose(solution.multipliers, [0.25])
    assert np.allclose(solution.eq_multipliers, [0.75])
    assert solution.objective == pytest.approx(2.0)


def test_socp_embeds_as_itself(ellipse_problem):
    assert to_socp(ellipse_problem) is ellipse_problem


def test_unsupported_problem_type():
    with pytest.raises(TypeError):
        to_socp(object())


def test_lp_without_rows_has_no_embedding():
    problem = LPProblem(c=np.ones(2), lb=np.full(2, -np.inf))
    with pytest.raises(DimensionMismatchError):
        to_socp(problem)


def test_lift_checks_length():
    embedding = embed(LPProblem(c=np.ones(2)))
    with pytest.raises(DimensionMismatchError):
        embedding.lift(np.ones(3))
