import logging
from dataclasses import dataclass
from io import StringIO

import pytest

from coneopt.iterative import (
    AbsoluteTolerance,
    IterationCounter,
    IterationHistory,
    IterativeMinimizer,
    Status,
    StepInfo,
)
from coneopt.logging import configure_logging


@dataclass(frozen=True)
class Halving:
    """Toy method: minimize |x| by halving the iterate each step."""

    tolerance: AbsoluteTolerance = AbsoluteTolerance(1e-3)
    default: float = 1.0

    def initial_state(self, problem, *initials):
        return float(initials[0]) if initials else self.default

    def step(self, problem, state):
        if self.tolerance.is_converged(abs(state)):
            return state, StepInfo(converged=True, residual=abs(state))
        return state / 2.0, StepInfo(converged=False, residual=abs(state), step_length=0.5)

    def solution(self, problem, state):
        return state

    def objective(self, problem, state):
        return abs(state)


class Exploding:
    def initial_state(self, problem, *initials):
        return 0

    def step(self, problem, state):
        raise ArithmeticError("boom")

    def solution(self, problem, state):
        return state

    def objective(self, problem, state):
        return 0.0


def test_search_converges_and_counts_only_moving_steps():
    counter = IterationCounter()
    minimizer = IterativeMinimizer(None, Halving(), max_iterations=100, monitor=counter)
    result = minimizer.search(1.0)
    # 1 / 2^10 < 1e-3 <= 1 / 2^9
    assert minimizer.converged
    assert minimizer.status is Status.OPTIMAL
    assert minimizer.iterations == 10
    assert counter.count == 10
    assert minimizer.last_info.converged
    assert result == pytest.approx(2.0**-10)
    assert minimizer.minimum == pytest.approx(2.0**-10)


def test_search_without_initials_uses_default_start():
    minimizer = IterativeMinimizer(None, Halving(default=4.0), max_iterations=100)
    # 4 / 2^12 < 1e-3 <= 4 / 2^11
    assert minimizer.search() == pytest.approx(2.0**-10)
    assert minimizer.iterations == 12


def test_step_on_converged_state_is_noop():
    minimizer = IterativeMinimizer(None, Halving(), max_iterations=100)
    minimizer.search(1.0)
    before = (minimizer.minimizer, minimizer.iterations)
    info = minimizer.step()
    assert info.converged
    assert (minimizer.minimizer, minimizer.iterations) == before


def test_repeated_search_reproduces_solution():
    history = IterationHistory()
    minimizer = IterativeMinimizer(None, Halving(), max_iterations=100, monitor=history)
    first = minimizer.search(3.0)
    first_iterations = minimizer.iterations
    second = minimizer.search(3.0)
    assert second == first
    assert minimizer.iterations == first_iterations
    assert len(history) == first_iterations


def test_step_seeds_lazily():
    minimizer = IterativeMinimizer(None, Halving(default=1.0), max_iterations=5)
    info = minimizer.step()
    assert not info.converged
    assert minimizer.minimizer == pytest.approx(0.5)
    assert minimizer.iterations == 1


def test_iteration_cap_reports_max_iter_and_warns():
    stream = StringIO()
    configure_logging(level=logging.WARNING, stream=stream)
    try:
        minimizer = IterativeMinimizer(None, Halving(), max_iterations=3)
        result = minimizer.search(1.0)
    finally:
        configure_logging(level=logging.WARNING)
    assert not minimizer.converged
    assert minimizer.status is Status.MAX_ITER
    assert minimizer.iterations == 3
    assert result == pytest.approx(0.125)
    assert "iteration cap" in stream.getvalue()


def test_zero_iteration_cap_still_detects_converged_start():
    minimizer = IterativeMinimizer(None, Halving(), max_iterations=0)
    minimizer.search(1e-4)
    assert minimizer.converged
    assert minimizer.iterations == 0


def test_errors_propagate_and_mark_status():
    minimizer = IterativeMinimizer(None, Exploding(), max_iterations=10)
    with pytest.raises(ArithmeticError):
        minimizer.search()
    assert minimizer.status is Status.NUMERICAL_ERROR


def test_accessors_require_seed():
    minimizer = IterativeMinimizer(None, Halving(), max_iterations=10)
    assert minimizer.status is Status.NOT_STARTED
    with pytest.raises(RuntimeError):
        _ = minimizer.minimizer


def test_negative_cap_rejected():
    with pytest.raises(ValueError):
        IterativeMinimizer(None, Halving(), max_iterations=-1)
