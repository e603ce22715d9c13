import numpy as np
import pytest

from coneopt.convex import InfeasibleError
from coneopt.convex.constraints import (
    active_rows,
    find_feasible_point,
    independent_rows,
    max_violation,
)


def test_active_rows_and_violation():
    a_mat = np.array([[1.0, 0.0], [0.0, 1.0], [-1.0, -1.0]])
    b_vec = np.array([1.0, 0.0, -3.0])
    x = np.array([1.0, 0.5])
    assert active_rows(a_mat, b_vec, x, 1e-9) == [0]
    assert max_violation(a_mat, b_vec, x) == 0.0
    assert max_violation(a_mat, b_vec, np.array([0.0, 4.0])) == pytest.approx(1.0)
    assert active_rows(np.zeros((0, 2)), np.zeros(0), x, 1e-9) == []


def test_independent_rows_skips_dependent_candidates():
    a_mat = np.array([[1.0, 0.0], [2.0, 0.0], [0.0, 1.0]])
    assert independent_rows([0, 1, 2], a_mat, np.zeros((0, 2)), 1e-9) == [0, 2]

    base = np.array([[1.0, 1.0]])
    assert independent_rows([0, 2], a_mat, base, 1e-9) == [0]


def test_find_feasible_point_satisfies_rows():
    a_ineq = np.array([[1.0, 0.0], [0.0, 1.0], [-1.0, -1.0]])
    b_ineq = np.array([1.0, 2.0, -5.0])
    a_eq = np.array([[1.0, -1.0]])
    b_eq = np.array([-1.5])
    x = find_feasible_point(a_ineq, b_ineq, a_eq, b_eq)
    assert np.all(a_ineq @ x >= b_ineq - 1e-9)
    assert np.allclose(a_eq @ x, b_eq)


def test_find_feasible_point_reports_infeasibility():
    a_ineq = np.array([[1.0], [-1.0]])
    b_ineq = np.array([1.0, 0.0])
    with pytest.raises(InfeasibleError) as excinfo:
        find_feasible_point(a_ineq, b_ineq, np.zeros((0, 1)), np.zeros(0))
    assert excinfo.value.constraint in (0, 1)
    # The best compromise x = 0.5 misses both rows by half a unit.
    assert "5.000e-01" in str(excinfo.value)
