import math

import numpy as np
import pytest

from coneopt.iterative import MACHINE_EPSILON, AbsoluteTolerance, RelativeTolerance, Tolerance


def test_absolute_tolerance_threshold():
    tol = AbsoluteTolerance(1e-6)
    assert tol.is_converged(0.0)
    assert tol.is_converged(1e-6)
    assert not tol.is_converged(1.1e-6)


def test_absolute_tolerance_default_epsilon():
    assert AbsoluteTolerance().epsilon == pytest.approx(1e-4)


def test_relative_tolerance_scales_by_base():
    tol = RelativeTolerance(base=1000.0, epsilon=1e-3)
    assert tol.is_converged(0.5)
    assert tol.is_converged(1.0)
    assert not tol.is_converged(2.0)


@pytest.mark.parametrize("tol", [AbsoluteTolerance(1.0), RelativeTolerance(base=1.0, epsilon=1.0)])
def test_nan_is_never_converged(tol):
    assert not tol.is_converged(math.nan)
    assert not tol.is_converged(np.nan)


def test_invalid_configuration_rejected():
    with pytest.raises(ValueError):
        AbsoluteTolerance(-1.0)
    with pytest.raises(ValueError):
        RelativeTolerance(base=0.0)
    with pytest.raises(ValueError):
        RelativeTolerance(base=math.inf)


def test_tolerances_are_immutable():
    tol = AbsoluteTolerance(1e-8)
    with pytest.raises(AttributeError):
        tol.epsilon = 1.0  # type: ignore[misc]


def test_machine_epsilon_matches_numpy():
    assert MACHINE_EPSILON == np.finfo(float).eps


def test_tolerance_base_is_abstract():
    with pytest.raises(TypeError):
        Tolerance()

    class GapTolerance(Tolerance):
        def is_converged(self, norm):
            return norm < 1.0

    assert GapTolerance().is_converged(0.5)
