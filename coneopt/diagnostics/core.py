"""Invariant checks used by the solvers when debug mode is enabled."""

from __future__ import annotations

from typing import Sequence

import numpy as np


def assert_finite(values: np.ndarray, name: str = "array") -> None:
    """
    Assert that every entry of ``values`` is finite.

    Raises
    ------
    ValueError
        If any entry is NaN or infinite.
    """
    arr = np.asarray(values, dtype=float)
    if not np.all(np.isfinite(arr)):
        bad = np.flatnonzero(~np.isfinite(arr.reshape(-1)))
        raise ValueError(f"{name} contains non-finite entries at {bad.tolist()}.")


def assert_cone_interior(
    values: np.ndarray,
    dims: Sequence[int],
    name: str = "iterate",
) -> None:
    """
    Assert that ``values`` lies strictly inside a product of second-order cones.

    Parameters
    ----------
    values:
        Concatenation of the cone blocks, block ``i`` having ``dims[i]`` entries
        laid out as ``(t, u)`` with the requirement ``t > ||u||``.
    dims:
        Dimension of every cone block.
    name:
        Label used in the error message.

    Raises
    ------
    ValueError
        If the lengths disagree or some block sits on or outside its cone.
    """
    arr = np.asarray(values, dtype=float).reshape(-1)
    if arr.shape[0] != int(np.sum(dims)):
        raise ValueError(
            f"{name} has {arr.shape[0]} entries but the cones need {int(np.sum(dims))}."
        )
    assert_finite(arr, name)
    start = 0
    for block, dim in enumerate(dims):
        head = arr[start]
        tail = np.linalg.norm(arr[start + 1 : start + dim])
        if head <= tail:
            raise ValueError(
                f"{name} block {block} is not strictly inside its cone: "
                f"t={head:.3e}, ||u||={tail:.3e}."
            )
        start += dim


def assert_feasible(
    a_mat: np.ndarray,
    b_vec: np.ndarray,
    x: np.ndarray,
    atol: float = 1e-8,
    name: str = "point",
) -> None:
    """
    Assert that ``A x >= b`` holds within ``atol``.

    Raises
    ------
    ValueError
        Naming the most violated row if the point is infeasible.
    """
    a_mat = np.asarray(a_mat, dtype=float)
    if a_mat.shape[0] == 0:
        return
    slack = a_mat @ np.asarray(x, dtype=float) - np.asarray(b_vec, dtype=float)
    worst = int(np.argmin(slack))
    if slack[worst] < -atol:
        raise ValueError(
            f"{name} violates constraint {worst} by {-slack[worst]:.3e} (tolerance {atol})."
        )


__all__ = ["assert_finite", "assert_cone_interior", "assert_feasible"]
