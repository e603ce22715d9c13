"""
Generic iterative minimization framework.

An algorithm is written as an explicit state machine: a *method* object
exposing pure functions

```
    initial_state(problem, *initials) -> state
    step(problem, state)              -> (state, StepInfo)
    solution(problem, state)          -> solution object
    objective(problem, state)         -> float
```

and an :class:`IterativeMinimizer` owns the mutable state, drives the loop,
enforces the iteration cap and notifies an optional monitor. A step that
reports ``converged=True`` must return the state unchanged; such steps are
not counted as iterations.

Solvers in :mod:`coneopt.convex` are stateless frozen dataclasses that act as
their own method; ``solver.solve(problem)`` returns a fresh minimizer so
independent problems can be solved concurrently with one solver.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, Protocol, Tuple, TypeVar

from ..logging import get_logger
from .monitor import IterationMonitor

logger = get_logger(__name__)

S = TypeVar("S")


class Status(Enum):
    """Lifecycle of an :class:`IterativeMinimizer`."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    OPTIMAL = "optimal"
    MAX_ITER = "max_iter"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    NUMERICAL_ERROR = "numerical_error"


@dataclass(frozen=True)
class StepInfo:
    """Outcome of a single call to ``step``."""

    converged: bool
    residual: float = float("nan")
    step_length: float = 0.0
    message: str = ""


class IterativeMethod(Protocol[S]):
    def initial_state(self, problem: Any, *initials: Any) -> S:
        ...

    def step(self, problem: Any, state: S) -> Tuple[S, StepInfo]:
        ...

    def solution(self, problem: Any, state: S) -> Any:
        ...

    def objective(self, problem: Any, state: S) -> float:
        ...


class IterativeMinimizer(Generic[S]):
    """
    Mutable driver binding a problem to an iterative method.

    Args:
        problem: Immutable problem instance.
        method: Object implementing :class:`IterativeMethod`.
        max_iterations: Cap on the number of (non-converged) steps taken by
            :meth:`search`.
        monitor: Optional observer receiving every accepted iterate.

    A minimizer is not thread-safe; create one per concurrent solve.
    """

    def __init__(
        self,
        problem: Any,
        method: IterativeMethod[S],
        max_iterations: int,
        monitor: Optional[IterationMonitor[S]] = None,
    ) -> None:
        if max_iterations < 0:
            raise ValueError("max_iterations must be non-negative")
        self.problem = problem
        self.method = method
        self.max_iterations = int(max_iterations)
        self.monitor = monitor
        self._state: Optional[S] = None
        self._iterations = 0
        self._converged = False
        self._status = Status.NOT_STARTED
        self._last_info: Optional[StepInfo] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def set_initials(self, *initials: Any) -> None:
        """Seed (or re-seed) the state; with no arguments use the default start."""
        try:
            state = self.method.initial_state(self.problem, *initials)
        except Exception as exc:
            self._fail(exc)
            raise
        self._state = state
        self._iterations = 0
        self._converged = False
        self._status = Status.RUNNING
        self._last_info = None
        if self.monitor is not None:
            self.monitor.reset()

    def step(self) -> StepInfo:
        """
        Perform exactly one iteration.

        Seeds from the default start when no state exists yet. On a converged
        state the call is a no-op that re-confirms convergence.
        """
        if self._state is None:
            self.set_initials()
        if self._converged:
            return StepInfo(
                converged=True,
                residual=self._last_info.residual if self._last_info else float("nan"),
                message="already converged",
            )
        new_state, info = self._evaluate()
        if info.converged:
            return info
        self._state = new_state
        self._iterations += 1
        if self.monitor is not None:
            self.monitor.record(new_state)
        logger.debug(
            "%s iteration %d: residual=%.3e step=%.3e %s",
            type(self.method).__name__,
            self._iterations,
            info.residual,
            info.step_length,
            info.message,
        )
        return info

    def search(self, *initials: Any) -> Any:
        """
        Seed with ``initials`` (or the default start) and iterate to convergence.

        Reaching ``max_iterations`` is not an error: the status becomes
        ``Status.MAX_ITER``, a warning is logged and the current iterate is
        returned.
        """
        self.set_initials(*initials)
        while self._iterations < self.max_iterations:
            if self.step().converged:
                return self.minimizer

        # At the cap the final iterate is still tested; its move is discarded.
        _, info = self._evaluate()
        if not info.converged:
            self._status = Status.MAX_ITER
            logger.warning(
                "%s stopped at the iteration cap (%d) without converging; "
                "last residual %.3e",
                type(self.method).__name__,
                self.max_iterations,
                info.residual,
            )
        return self.minimizer

    def _evaluate(self) -> Tuple[S, StepInfo]:
        try:
            new_state, info = self.method.step(self.problem, self._state)
        except Exception as exc:
            self._fail(exc)
            raise
        self._last_info = info
        if info.converged:
            self._converged = True
            self._status = Status.OPTIMAL
            logger.info(
                "%s converged after %d iterations (residual %.3e)",
                type(self.method).__name__,
                self._iterations,
                info.residual,
            )
        return new_state, info

    def _fail(self, exc: Exception) -> None:
        self._status = getattr(exc, "status", Status.NUMERICAL_ERROR)
        logger.info("%s terminated: %s", type(self.method).__name__, exc)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    def _require_state(self) -> S:
        if self._state is None:
            raise RuntimeError("minimizer has not been seeded; call search() or set_initials()")
        return self._state

    @property
    def state(self) -> S:
        return self._require_state()

    @property
    def minimizer(self) -> Any:
        return self.method.solution(self.problem, self._require_state())

    @property
    def minimum(self) -> float:
        return self.method.objective(self.problem, self._require_state())

    @property
    def iterations(self) -> int:
        return self._iterations

    @property
    def converged(self) -> bool:
        return self._converged

    @property
    def status(self) -> Status:
        return self._status

    @property
    def last_info(self) -> Optional[StepInfo]:
        return self._last_info


__all__ = ["Status", "StepInfo", "IterativeMethod", "IterativeMinimizer"]
