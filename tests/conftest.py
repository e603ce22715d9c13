"""Pytest configuration and shared fixtures for coneopt tests.

This module provides:
- A deterministic RNG fixture
- The reference problems used across the convex test modules
"""

import os

import numpy as np
import pytest

from coneopt.convex import QPProblem, SOCPGeneralProblem


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    """
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    return np.random.default_rng(seed)


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds() -> None:
    """Seed the legacy global numpy RNG for every test."""
    np.random.seed(int(os.environ.get("TEST_RNG_SEED", "0")))


@pytest.fixture
def portfolio_problem() -> QPProblem:
    """Markowitz portfolio: minimum variance for a required return.

    Budget ``sum(x) <= 10000``, expected return ``r^T x >= 1000`` and no
    short selling.
    """
    covariance = np.array(
        [
            [0.08, -0.05, -0.05, -0.05],
            [-0.05, 0.16, -0.02, -0.02],
            [-0.05, -0.02, 0.35, 0.06],
            [-0.05, -0.02, 0.06, 0.35],
        ]
    )
    returns = np.array([0.05, -0.20, 0.15, 0.30])
    return QPProblem(
        H=covariance,
        p=np.zeros(4),
        a_ge=np.vstack([returns, np.eye(4)]),
        b_ge=np.array([1000.0, 0.0, 0.0, 0.0, 0.0]),
        a_le=np.ones((1, 4)),
        b_le=np.array([10000.0]),
    )


@pytest.fixture
def ellipse_problem() -> SOCPGeneralProblem:
    """Shortest distance between two ellipses (Antoniou & Lu, Example 14.5).

    Variables ``y = -(delta, u1, u2, v1, v2)``; maximizing ``b^T y`` minimizes
    the distance ``delta`` between ``u`` in the first ellipse and ``v`` in the
    second.
    """
    a1_t = np.array(
        [
            [1.0, 0.0, 0.0, 0.0, 0.0],
            [0.0, 1.0, 0.0, -1.0, 0.0],
            [0.0, 0.0, 1.0, 0.0, -1.0],
        ]
    )
    a2_t = np.array(
        [
            [0.0, 0.0, 0.0, 0.0, 0.0],
            [0.0, 0.5, 0.0, 0.0, 0.0],
            [0.0, 0.0, 1.0, 0.0, 0.0],
        ]
    )
    a3_t = np.array(
        [
            [0.0, 0.0, 0.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 0.75, 0.25],
            [0.0, 0.0, 0.0, 0.25, 0.75],
        ]
    )
    return SOCPGeneralProblem(
        b=np.array([1.0, 0.0, 0.0, 0.0, 0.0]),
        a_blocks=[a1_t.T, a2_t.T, a3_t.T],
        c_blocks=[np.zeros(3), np.array([1.0, -0.5, 0.0]), np.array([1.0, -2.5, -3.5])],
    )


@pytest.fixture
def nocedal_qp() -> QPProblem:
    """Nocedal & Wright, Example 16.4; minimizer (1.4, 1.7)."""
    return QPProblem(
        H=2.0 * np.eye(2),
        p=np.array([-2.0, -5.0]),
        a_ge=np.array(
            [[1.0, -2.0], [-1.0, -2.0], [-1.0, 2.0], [1.0, 0.0], [0.0, 1.0]]
        ),
        b_ge=np.array([-2.0, -6.0, -2.0, 0.0, 0.0]),
    )
