"""Tests for debug mode functionality."""

import numpy as np
import pytest

from coneopt.convex import ActiveSetQPSolver, QPProblem
from coneopt.convex.qp import ActiveSetState
from coneopt.convex import PrimalDualInteriorPoint
from coneopt.convex.ipm import ITERATE_CHECK
from coneopt.diagnostics import (
    debug_context,
    is_debug_enabled,
    register_check,
    registered_checks,
    run_checks,
    set_debug_enabled,
    unregister_check,
)


def test_debug_mode_toggle_and_context() -> None:
    """Test debug mode toggling and context manager."""
    original = is_debug_enabled()

    try:
        set_debug_enabled(False)
        assert not is_debug_enabled()

        with debug_context(True):
            assert is_debug_enabled()

        assert not is_debug_enabled()

        set_debug_enabled(True)
        assert is_debug_enabled()

        with debug_context(False):
            assert not is_debug_enabled()

        assert is_debug_enabled()
    finally:
        set_debug_enabled(original)


def test_debug_context_nested() -> None:
    """Test nested debug contexts."""
    original = is_debug_enabled()

    try:
        set_debug_enabled(False)
        with debug_context(True):
            assert is_debug_enabled()
            with debug_context(False):
                assert not is_debug_enabled()
            assert is_debug_enabled()
        assert not is_debug_enabled()
    finally:
        set_debug_enabled(original)


def test_debug_context_restores_after_error() -> None:
    original = is_debug_enabled()
    with pytest.raises(RuntimeError):
        with debug_context(not original):
            raise RuntimeError("boom")
    assert is_debug_enabled() == original


def test_active_set_step_checks_feasibility_in_debug_mode() -> None:
    """An infeasible iterate is only caught when debug mode is on."""
    problem = QPProblem(
        H=np.eye(2),
        p=np.array([-4.0, 0.0]),
        a_le=np.array([[1.0, 0.0]]),
        b_le=np.array([1.0]),
    )
    solver = ActiveSetQPSolver()
    # Start outside x_0 <= 1; the blocking row stops the step at the infeasible point.
    state = ActiveSetState(x=np.array([2.0, 0.0]), working=())

    with debug_context(False):
        new_state, _ = solver.step(problem, state)
    assert new_state.working == (0,)
    assert np.allclose(new_state.x, [2.0, 0.0])

    with debug_context(True):
        with pytest.raises(ValueError, match="violates constraint 0"):
            solver.step(problem, state)


def test_registered_check_runs_only_in_debug_mode() -> None:
    seen = []

    @register_check("unit-test iterate")
    def _record(value: int) -> None:
        seen.append(value)

    try:
        assert registered_checks("unit-test iterate") == (_record,)
        with debug_context(False):
            assert run_checks("unit-test iterate", 1) == 0
        with debug_context(True):
            assert run_checks("unit-test iterate", 2) == 1
        assert seen == [2]
    finally:
        unregister_check("unit-test iterate", _record)
    assert registered_checks("unit-test iterate") == ()


def test_register_check_is_idempotent() -> None:
    def _noop() -> None:
        pass

    register_check("unit-test repeat", _noop)
    register_check("unit-test repeat", _noop)
    try:
        assert registered_checks("unit-test repeat") == (_noop,)
    finally:
        unregister_check("unit-test repeat", _noop)
    # Unknown hooks and callables are ignored.
    unregister_check("unit-test repeat", _noop)
    unregister_check("unit-test missing", _noop)


def test_custom_check_sees_interior_point_iterates(ellipse_problem) -> None:
    taus = []

    def _record_tau(problem, state) -> None:
        taus.append(state.tau)

    register_check(ITERATE_CHECK, _record_tau)
    try:
        with debug_context(True):
            minimizer = PrimalDualInteriorPoint().solve(ellipse_problem)
            minimizer.search()
    finally:
        unregister_check(ITERATE_CHECK, _record_tau)
    assert len(taus) == minimizer.iterations
    assert all(tau > 0.0 for tau in taus)


def test_failing_check_stops_the_step(ellipse_problem) -> None:
    def _reject(problem, state) -> None:
        raise ValueError("rejected iterate")

    register_check(ITERATE_CHECK, _reject)
    try:
        minimizer = PrimalDualInteriorPoint().solve(ellipse_problem)
        with debug_context(True):
            with pytest.raises(ValueError, match="rejected iterate"):
                minimizer.search()
        with debug_context(False):
            minimizer.search()
        assert minimizer.converged
    finally:
        unregister_check(ITERATE_CHECK, _reject)
