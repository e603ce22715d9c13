"""
Second-order cone algebra.

Vectors living in a product of cones ``K_{d_1} x ... x K_{d_q}`` are stored as
the concatenation of their blocks. A block of dimension ``d`` is written
``u = (u0, u1)`` with ``u0`` scalar and ``u1`` in ``R^{d-1}``; it lies in the
cone when ``u0 >= ||u1||``. One-dimensional blocks are the non-negative reals.

The Jordan product ``u o v = (u'v, u0 v1 + v0 u1)`` and its identity
``e = (1, 0, ..., 0)`` give the complementarity structure used by the
interior-point method, and :class:`NTScaling` implements the Nesterov-Todd
scaling of a primal/dual pair.

References:
    - Alizadeh & Goldfarb, "Second-order cone programming", Math. Prog. (2003)
    - Vandenberghe, "The CVXOPT linear and quadratic cone program solvers" (2010)
"""

from __future__ import annotations

import math
from typing import List, Sequence

import numpy as np
from scipy.linalg import block_diag

from .errors import NumericalBreakdownError


def block_slices(dims: Sequence[int]) -> List[slice]:
    """Return the slice of every cone block in a concatenated vector."""

    slices = []
    start = 0
    for dim in dims:
        slices.append(slice(start, start + int(dim)))
        start += int(dim)
    return slices


def identity(dims: Sequence[int]) -> np.ndarray:
    """Jordan identity ``e``: one in the leading entry of every block."""

    e = np.zeros(int(np.sum(dims)))
    for sl in block_slices(dims):
        e[sl.start] = 1.0
    return e


def block_det(u: np.ndarray) -> float:
    """
    Determinant ``u0^2 - ||u1||^2`` of one cone block.

    Evaluated as ``(u0 - ||u1||)(u0 + ||u1||)`` so that points close to the
    boundary keep their relative accuracy.
    """

    tail = float(np.linalg.norm(u[1:]))
    return (float(u[0]) - tail) * (float(u[0]) + tail)


def jordan_product(u: np.ndarray, v: np.ndarray, dims: Sequence[int]) -> np.ndarray:
    out = np.empty_like(u, dtype=float)
    for sl in block_slices(dims):
        ub, vb = u[sl], v[sl]
        out[sl.start] = ub @ vb
        out[sl.start + 1 : sl.stop] = ub[0] * vb[1:] + vb[0] * ub[1:]
    return out


def jordan_divide(lam: np.ndarray, r: np.ndarray, dims: Sequence[int]) -> np.ndarray:
    """Solve ``lam o q = r`` for ``q`` (``lam`` must be cone-interior)."""

    out = np.empty_like(r, dtype=float)
    for sl in block_slices(dims):
        lb, rb = lam[sl], r[sl]
        det = block_det(lb)
        q0 = (lb[0] * rb[0] - lb[1:] @ rb[1:]) / det
        out[sl.start] = q0
        out[sl.start + 1 : sl.stop] = (rb[1:] - q0 * lb[1:]) / lb[0]
    return out


def is_interior(u: np.ndarray, dims: Sequence[int]) -> bool:
    """True when every block satisfies ``u0 > ||u1||`` strictly."""

    for sl in block_slices(dims):
        block = u[sl]
        if not block[0] > np.linalg.norm(block[1:]):
            return False
    return True


def _block_max_step(ub: np.ndarray, db: np.ndarray) -> float:
    if ub.shape[0] == 1:
        return -ub[0] / db[0] if db[0] < 0.0 else math.inf

    # Roots of (u0 + a d0)^2 - ||u1 + a d1||^2 = p0 a^2 + p1 a + p2.
    p0 = db[0] ** 2 - db[1:] @ db[1:]
    p1 = 2.0 * (ub[0] * db[0] - ub[1:] @ db[1:])
    p2 = block_det(ub)
    if p2 <= 0.0:
        return 0.0

    alpha = math.inf
    if db[0] < 0.0:
        alpha = -ub[0] / db[0]

    scale = max(abs(p0), abs(p1), abs(p2))
    if abs(p0) <= 1e-14 * scale:
        if p1 < 0.0:
            alpha = min(alpha, -p2 / p1)
        return alpha

    disc = p1 * p1 - 4.0 * p0 * p2
    if disc < 0.0:
        return alpha
    root = math.sqrt(disc)
    q = -0.5 * (p1 + math.copysign(root, p1))
    candidates = [q / p0]
    if q != 0.0:
        candidates.append(p2 / q)
    positive = [c for c in candidates if c > 0.0]
    if positive:
        alpha = min(alpha, min(positive))
    return alpha


def max_step(u: np.ndarray, du: np.ndarray, dims: Sequence[int]) -> float:
    """
    Largest ``alpha >= 0`` keeping ``u + alpha du`` in the (closed) cone.

    Returns ``inf`` when the ray never leaves the cone.
    """

    alpha = math.inf
    for sl in block_slices(dims):
        alpha = min(alpha, _block_max_step(u[sl], du[sl]))
    return alpha


class NTScaling:
    """
    Nesterov-Todd scaling of an interior primal/dual pair ``(x, s)``.

    The symmetric block-diagonal matrix ``W`` satisfies ``W x = W^{-1} s``;
    this common value is the scaled point ``lam``. For a block of dimension
    one ``W = sqrt(s / x)``; otherwise ``W = eta * Wbar`` with

    ```
        Wbar = [[w0, w1'], [w1, I + w1 w1' / (1 + w0)]]
    ```

    built from the normalized scaling point ``wbar = (sbar + J xbar) / (2 gamma)``.
    """

    def __init__(self, x: np.ndarray, s: np.ndarray, dims: Sequence[int]) -> None:
        self.dims = [int(d) for d in dims]
        w_blocks = []
        w_inv_blocks = []
        for sl in block_slices(self.dims):
            xb, sb = x[sl], s[sl]
            if xb.shape[0] == 1:
                if not (xb[0] > 0.0 and sb[0] > 0.0 and math.isfinite(sb[0] / xb[0])):
                    raise NumericalBreakdownError(
                        f"scaling undefined: x={xb[0]:.3e}, s={sb[0]:.3e} left the cone"
                    )
                w = math.sqrt(sb[0] / xb[0])
                w_blocks.append(np.array([[w]]))
                w_inv_blocks.append(np.array([[1.0 / w]]))
                continue
            x_det = block_det(xb)
            s_det = block_det(sb)
            if not (x_det > 0.0 and s_det > 0.0 and math.isfinite(x_det) and math.isfinite(s_det)):
                raise NumericalBreakdownError(
                    f"scaling undefined: block determinants x={x_det:.3e}, s={s_det:.3e}"
                )
            x_bar = xb / math.sqrt(x_det)
            s_bar = sb / math.sqrt(s_det)
            gamma = math.sqrt(0.5 * (1.0 + s_bar @ x_bar))
            w_bar = s_bar.copy()
            w_bar[0] += x_bar[0]
            w_bar[1:] -= x_bar[1:]
            w_bar /= 2.0 * gamma
            eta = (s_det / x_det) ** 0.25

            dim = xb.shape[0]
            w_mat = np.empty((dim, dim))
            w_mat[0, 0] = w_bar[0]
            w_mat[0, 1:] = w_bar[1:]
            w_mat[1:, 0] = w_bar[1:]
            w_mat[1:, 1:] = np.eye(dim - 1) + np.outer(w_bar[1:], w_bar[1:]) / (1.0 + w_bar[0])
            # Wbar^{-1} = J Wbar J
            w_inv = w_mat.copy()
            w_inv[0, 1:] *= -1.0
            w_inv[1:, 0] *= -1.0
            w_blocks.append(eta * w_mat)
            w_inv_blocks.append(w_inv / eta)

        self.W = block_diag(*w_blocks)
        self.W_inv = block_diag(*w_inv_blocks)
        self.lam = self.W @ x

    def scale(self, v: np.ndarray) -> np.ndarray:
        return self.W @ v

    def unscale(self, v: np.ndarray) -> np.ndarray:
        return self.W_inv @ v


__all__ = [
    "block_slices",
    "identity",
    "jordan_product",
    "jordan_divide",
    "block_det",
    "is_interior",
    "max_step",
    "NTScaling",
]
