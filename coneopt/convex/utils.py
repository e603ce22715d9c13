"""
Numerical helper routines shared by the convex solvers.

These helpers emphasize determinism and graceful degradation when matrices are
nearly singular. Factorizations go through :mod:`scipy.linalg` so that one
factor can be reused for several right-hand sides.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import numpy as np
from scipy import linalg as sla

from .errors import DimensionMismatchError, NumericalBreakdownError


def symmetrize(matrix: np.ndarray) -> np.ndarray:
    """Return the symmetric part ``0.5 * (matrix + matrix.T)``."""

    return 0.5 * (matrix + matrix.T)


def stable_solve(matrix: np.ndarray, rhs: np.ndarray, reg: float = 1e-12) -> np.ndarray:
    """
    Solve ``A x = b`` with simple regularization fallbacks.

    The function first attempts ``np.linalg.solve``. Upon encountering a
    ``LinAlgError`` it retries with Tikhonov regularization by adding ``reg``
    to the diagonal. If the system remains singular it falls back to a
    least-squares solve via ``np.linalg.lstsq``.
    """

    try:
        return np.linalg.solve(matrix, rhs)
    except np.linalg.LinAlgError:
        if reg > 0.0:
            augmented = matrix + reg * np.eye(matrix.shape[0], dtype=matrix.dtype)
            try:
                return np.linalg.solve(augmented, rhs)
            except np.linalg.LinAlgError:
                pass
    sol, *_ = np.linalg.lstsq(matrix, rhs, rcond=None)
    return sol


def is_pos_def(matrix: np.ndarray, tol: float = 0.0) -> bool:
    """Return True if the symmetric part of ``matrix`` has eigenvalues above ``tol``."""

    if matrix.size == 0:
        return True
    eigvals = np.linalg.eigvalsh(symmetrize(matrix))
    return bool(np.all(eigvals > tol))


@dataclass(frozen=True)
class Factorization:
    """A reusable factorization of a square matrix (Cholesky or LU)."""

    kind: str
    factor: Tuple[Any, Any]

    def solve(self, rhs: np.ndarray) -> np.ndarray:
        if self.kind == "cholesky":
            sol = sla.cho_solve(self.factor, rhs, check_finite=False)
        else:
            sol = sla.lu_solve(self.factor, rhs, check_finite=False)
        if not np.all(np.isfinite(sol)):
            raise NumericalBreakdownError("factorized solve produced non-finite values")
        return sol


def factorize(matrix: np.ndarray, pivot_tol: Optional[float] = None) -> Factorization:
    """
    Factor ``matrix`` with Cholesky, falling back to pivoted LU.

    Raises:
        NumericalBreakdownError: If ``matrix`` contains non-finite entries or
            is numerically singular.
    """

    if not np.all(np.isfinite(matrix)):
        raise NumericalBreakdownError("matrix contains non-finite entries")
    try:
        return Factorization("cholesky", sla.cho_factor(matrix, lower=True, check_finite=False))
    except np.linalg.LinAlgError:
        pass
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", sla.LinAlgWarning)
        lu, piv = sla.lu_factor(matrix, check_finite=False)
    diag = np.abs(np.diag(lu))
    if pivot_tol is None:
        pivot_tol = np.finfo(float).eps * max(1.0, float(np.max(np.abs(matrix), initial=0.0))) * matrix.shape[0]
    if diag.size and np.min(diag) <= pivot_tol:
        raise NumericalBreakdownError("matrix is singular to working precision")
    return Factorization("lu", (lu, piv))


def as_matrix(data: Any, name: str, cols: Optional[int] = None) -> np.ndarray:
    """Coerce ``data`` to a read-only float matrix, checking the column count."""

    arr = np.array(data, dtype=float)
    if arr.ndim == 1 and cols is not None:
        if arr.size == 0:
            arr = arr.reshape(0, cols)
        elif arr.size == cols:
            arr = arr.reshape(1, cols)
    if arr.ndim != 2:
        raise DimensionMismatchError(f"{name} must be a 2-D matrix, got shape {arr.shape}")
    if cols is not None and arr.shape[1] != cols:
        raise DimensionMismatchError(f"{name} must have {cols} columns, got {arr.shape[1]}")
    arr.setflags(write=False)
    return arr


def as_vector(data: Any, name: str, size: Optional[int] = None) -> np.ndarray:
    """Coerce ``data`` to a read-only float vector, checking its length."""

    arr = np.array(data, dtype=float)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    if arr.ndim != 1:
        raise DimensionMismatchError(f"{name} must be a vector, got shape {arr.shape}")
    if size is not None and arr.shape[0] != size:
        raise DimensionMismatchError(f"{name} must have length {size}, got {arr.shape[0]}")
    arr.setflags(write=False)
    return arr


__all__ = [
    "symmetrize",
    "stable_solve",
    "is_pos_def",
    "Factorization",
    "factorize",
    "as_matrix",
    "as_vector",
]
