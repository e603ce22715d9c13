"""
Problem and solution dataclasses for the convex optimization module.

Problems are immutable: the constructors copy their inputs into read-only
NumPy arrays and validate every shape, raising
:class:`~coneopt.convex.errors.DimensionMismatchError` on the first
inconsistency. Inequalities use the canonical ``>=`` orientation. LPs and QPs
may give rows as ``A_ge x >= b_ge`` and/or ``A_le x <= b_le``; the canonical
system ``A x >= b`` stacks the ``>=`` rows first and the negated ``<=`` rows
after them.

The general cone problem is stored in the dual form

```
    maximize    b^T y
    subject to  A_i^T y + s_i = c_i,   s_i in K_{d_i},   i = 1..q
```

whose primal is ``minimize c^T x`` subject to ``A x = b`` and
``x in K_{d_1} x ... x K_{d_q}`` with ``A = [A_1 ... A_q]``.

References:
    - Boyd & Vandenberghe, *Convex Optimization* (2004)
    - Nocedal & Wright, *Numerical Optimization* (2006)
    - Antoniou & Lu, *Practical Optimization* (2007), Chapter 14
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np

from .errors import DimensionMismatchError
from .utils import as_matrix, as_vector


def _empty_rows(n: int) -> Tuple[np.ndarray, np.ndarray]:
    a_mat = np.zeros((0, n))
    b_vec = np.zeros(0)
    a_mat.setflags(write=False)
    b_vec.setflags(write=False)
    return a_mat, b_vec


def _constraint_pair(
    a_mat: Optional[np.ndarray],
    b_vec: Optional[np.ndarray],
    n: int,
    label: str,
) -> Tuple[np.ndarray, np.ndarray]:
    if a_mat is None and b_vec is None:
        return _empty_rows(n)
    if a_mat is None or b_vec is None:
        raise DimensionMismatchError(f"a_{label} and b_{label} must be provided together")
    a_arr = as_matrix(a_mat, f"a_{label}", cols=n)
    b_arr = as_vector(b_vec, f"b_{label}", size=a_arr.shape[0])
    return a_arr, b_arr


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class LPProblem:
    """
    Linear program ``minimize c^T x``.

    Constraints are ``a_ge x >= b_ge``, ``a_le x <= b_le``, ``a_eq x = b_eq``
    and ``lb <= x <= ub``. Unless stated otherwise every variable is
    non-negative (``lb = 0``, ``ub = inf``); pass ``-np.inf`` entries in ``lb``
    for free variables.
    """

    c: np.ndarray
    a_ge: Optional[np.ndarray] = None
    b_ge: Optional[np.ndarray] = None
    a_le: Optional[np.ndarray] = None
    b_le: Optional[np.ndarray] = None
    a_eq: Optional[np.ndarray] = None
    b_eq: Optional[np.ndarray] = None
    lb: Optional[np.ndarray] = None
    ub: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        c = as_vector(self.c, "c")
        n = c.shape[0]
        if n == 0:
            raise DimensionMismatchError("a linear program needs at least one variable")
        object.__setattr__(self, "c", c)
        for label in ("ge", "le", "eq"):
            a_arr, b_arr = _constraint_pair(
                getattr(self, f"a_{label}"), getattr(self, f"b_{label}"), n, label
            )
            object.__setattr__(self, f"a_{label}", a_arr)
            object.__setattr__(self, f"b_{label}", b_arr)

        lb = np.zeros(n) if self.lb is None else np.array(as_vector(self.lb, "lb", size=n))
        ub = np.full(n, np.inf) if self.ub is None else np.array(as_vector(self.ub, "ub", size=n))
        if np.any(np.isnan(lb)) or np.any(np.isnan(ub)):
            raise ValueError("bounds must not contain NaN")
        object.__setattr__(self, "lb", _readonly(lb))
        object.__setattr__(self, "ub", _readonly(ub))

    @property
    def n(self) -> int:
        return self.c.shape[0]

    @property
    def a_ineq(self) -> np.ndarray:
        """Canonical ``>=`` matrix: ``a_ge`` rows, then ``-a_le`` rows."""
        return np.vstack([self.a_ge, -self.a_le])

    @property
    def b_ineq(self) -> np.ndarray:
        return np.concatenate([self.b_ge, -self.b_le])

    def objective(self, x: np.ndarray) -> float:
        return float(self.c @ np.asarray(x, dtype=float))


@dataclass(frozen=True, eq=False)
class QPProblem:
    """
    Quadratic program ``minimize 0.5 x^T H x + p^T x``.

    Constraints are ``a_ge x >= b_ge``, ``a_le x <= b_le`` and
    ``a_eq x = b_eq``; variables are free. ``H`` must be square and is
    symmetrized on construction; the active-set solver additionally requires
    it to be positive definite.
    """

    H: np.ndarray
    p: np.ndarray
    a_ge: Optional[np.ndarray] = None
    b_ge: Optional[np.ndarray] = None
    a_le: Optional[np.ndarray] = None
    b_le: Optional[np.ndarray] = None
    a_eq: Optional[np.ndarray] = None
    b_eq: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        p = as_vector(self.p, "p")
        n = p.shape[0]
        if n == 0:
            raise DimensionMismatchError("a quadratic program needs at least one variable")
        H = np.array(as_matrix(self.H, "H", cols=n))
        if H.shape[0] != n:
            raise DimensionMismatchError(f"H must be {n}x{n}, got {H.shape}")
        object.__setattr__(self, "H", _readonly(0.5 * (H + H.T)))
        object.__setattr__(self, "p", p)
        for label in ("ge", "le", "eq"):
            a_arr, b_arr = _constraint_pair(
                getattr(self, f"a_{label}"), getattr(self, f"b_{label}"), n, label
            )
            object.__setattr__(self, f"a_{label}", a_arr)
            object.__setattr__(self, f"b_{label}", b_arr)

    @property
    def n(self) -> int:
        return self.p.shape[0]

    @property
    def a_ineq(self) -> np.ndarray:
        """Canonical ``>=`` matrix: ``a_ge`` rows, then ``-a_le`` rows."""
        return np.vstack([self.a_ge, -self.a_le])

    @property
    def b_ineq(self) -> np.ndarray:
        return np.concatenate([self.b_ge, -self.b_le])

    def objective(self, x: np.ndarray) -> float:
        x = np.asarray(x, dtype=float)
        return float(0.5 * x @ self.H @ x + self.p @ x)

    def gradient(self, x: np.ndarray) -> np.ndarray:
        return self.H @ np.asarray(x, dtype=float) + self.p


@dataclass(frozen=True, eq=False)
class SOCPGeneralProblem:
    """
    Second-order cone program in dual form (see the module docstring).

    Args:
        b: Objective vector of the dual variable ``y`` (length ``m``).
        a_blocks: One ``m x d_i`` matrix per cone block.
        c_blocks: One length-``d_i`` offset per cone block.
    """

    b: np.ndarray
    a_blocks: Sequence[np.ndarray]
    c_blocks: Sequence[np.ndarray]
    _a_full: np.ndarray = field(init=False, repr=False, compare=False)
    _c_full: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        b = as_vector(self.b, "b")
        m = b.shape[0]
        if m == 0:
            raise DimensionMismatchError("b must have at least one entry")
        if len(self.a_blocks) == 0:
            raise DimensionMismatchError("at least one cone block is required")
        if len(self.a_blocks) != len(self.c_blocks):
            raise DimensionMismatchError(
                f"{len(self.a_blocks)} A blocks but {len(self.c_blocks)} c blocks"
            )
        a_blocks = []
        c_blocks = []
        for i, (a_i, c_i) in enumerate(zip(self.a_blocks, self.c_blocks)):
            a_arr = as_matrix(a_i, f"A({i})")
            if a_arr.shape[0] != m:
                raise DimensionMismatchError(f"A({i}) must have {m} rows, got {a_arr.shape[0]}")
            if a_arr.shape[1] == 0:
                raise DimensionMismatchError(f"cone block {i} has dimension zero")
            a_blocks.append(a_arr)
            c_blocks.append(as_vector(c_i, f"c({i})", size=a_arr.shape[1]))

        object.__setattr__(self, "b", b)
        object.__setattr__(self, "a_blocks", tuple(a_blocks))
        object.__setattr__(self, "c_blocks", tuple(c_blocks))
        object.__setattr__(self, "_a_full", _readonly(np.hstack(a_blocks)))
        object.__setattr__(self, "_c_full", _readonly(np.concatenate(c_blocks)))

    def A(self, i: Optional[int] = None) -> np.ndarray:
        """Block ``i`` (``m x d_i``), or the concatenation ``[A_1 ... A_q]``."""
        if i is None:
            return self._a_full
        return self.a_blocks[i]

    def c(self, i: Optional[int] = None) -> np.ndarray:
        """Offset of block ``i``, or the concatenation of all offsets."""
        if i is None:
            return self._c_full
        return self.c_blocks[i]

    @property
    def dims(self) -> Tuple[int, ...]:
        return tuple(a.shape[1] for a in self.a_blocks)

    @property
    def m(self) -> int:
        return self.b.shape[0]

    @property
    def q(self) -> int:
        return len(self.a_blocks)

    @property
    def n(self) -> int:
        return self._a_full.shape[1]

    def dual_objective(self, y: np.ndarray) -> float:
        return float(self.b @ y)

    def primal_objective(self, x: np.ndarray) -> float:
        return float(self._c_full @ x)


@dataclass(frozen=True, eq=False)
class PrimalDualSolution:
    """Iterate or solution ``(x, s, y)`` of a :class:`SOCPGeneralProblem`."""

    x: np.ndarray
    s: np.ndarray
    y: np.ndarray

    @property
    def gap(self) -> float:
        """Complementarity ``x^T s``."""
        return float(self.x @ self.s)


@dataclass(frozen=True, eq=False)
class QPSolution:
    """
    Solution of a :class:`QPProblem`.

    Attributes:
        x: Minimizer.
        active_set: Indices into the canonical ``>=`` rows that hold with
            equality at ``x``.
        multipliers: Lagrange multipliers of ``active_set`` (same order).
        eq_multipliers: Lagrange multipliers of the equality rows.
    """

    x: np.ndarray
    active_set: Tuple[int, ...]
    multipliers: np.ndarray
    eq_multipliers: np.ndarray


@dataclass(frozen=True, eq=False)
class LPSolution:
    """
    Solution of an :class:`LPProblem`.

    ``multipliers`` (canonical ``>=`` rows) and ``eq_multipliers`` are
    ``None`` when the backend does not produce them.
    """

    x: np.ndarray
    objective: float
    multipliers: Optional[np.ndarray] = None
    eq_multipliers: Optional[np.ndarray] = None


__all__ = [
    "LPProblem",
    "QPProblem",
    "SOCPGeneralProblem",
    "PrimalDualSolution",
    "QPSolution",
    "LPSolution",
]
