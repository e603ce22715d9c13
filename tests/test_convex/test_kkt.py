import numpy as np

from coneopt.convex import (
    QPProblem,
    QPSolution,
    SOCPGeneralProblem,
    is_kkt_optimal,
    qp_kkt_residuals,
    socp_residuals,
)


def test_kkt_residuals_at_optimum():
    problem = QPProblem(
        H=np.eye(2),
        p=np.array([-1.0, -1.0]),
        a_eq=np.array([[1.0, 1.0]]),
        b_eq=np.array([1.0]),
    )
    solution = QPSolution(
        x=np.array([0.5, 0.5]),
        active_set=(),
        multipliers=np.zeros(0),
        eq_multipliers=np.array([-0.5]),
    )
    residuals = qp_kkt_residuals(problem, solution)
    assert residuals["primal_eq"] <= 1e-12
    assert residuals["dual"] <= 1e-12
    assert is_kkt_optimal(residuals)


def test_kkt_detects_infeasibility_and_negative_multiplier():
    problem = QPProblem(H=np.eye(1), p=np.zeros(1), a_le=np.array([[1.0]]), b_le=np.array([0.0]))
    solution = QPSolution(
        x=np.array([1.0]),
        active_set=(0,),
        multipliers=np.array([-1.0]),
        eq_multipliers=np.zeros(0),
    )
    residuals = qp_kkt_residuals(problem, solution)
    assert residuals["primal_ineq"] > 0.5
    assert residuals["dual_feasibility"] == 1.0
    assert not is_kkt_optimal(residuals)


def test_socp_residuals():
    problem = SOCPGeneralProblem(
        b=np.array([1.0]),
        a_blocks=[np.array([[1.0, 0.0]]), np.array([[-1.0]])],
        c_blocks=[np.array([2.0, 0.0]), np.array([0.0])],
    )
    x = np.array([1.0, 0.0, 0.0])
    s = np.array([1.0, 0.0, 1.0])
    y = np.array([1.0])
    res = socp_residuals(problem, x, s, y)
    assert np.allclose(res["primal"], [0.0])
    assert np.allclose(res["dual"], [0.0, 0.0, 0.0])
    assert res["mu"] == 0.5
