"""Observers attached to an :class:`~coneopt.iterative.core.IterativeMinimizer`.

Monitors only look at iterates; they never influence the algorithm.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Generic, List, TypeVar

S = TypeVar("S")


class IterationMonitor(ABC, Generic[S]):
    """
    Base monitor.

    ``record`` is called with the new iterate after every accepted step and
    ``reset`` whenever the minimizer is re-seeded.
    """

    @abstractmethod
    def record(self, state: S) -> None:
        """Observe an accepted iterate."""

    @abstractmethod
    def reset(self) -> None:
        """Forget everything recorded so far."""


class IterationCounter(IterationMonitor[S]):
    """Counts recorded iterates."""

    def __init__(self) -> None:
        self.count = 0

    def record(self, state: S) -> None:
        self.count += 1

    def reset(self) -> None:
        self.count = 0


class IterationHistory(IterationMonitor[S]):
    """Keeps a deep copy of every recorded iterate."""

    def __init__(self) -> None:
        self.states: List[S] = []

    def record(self, state: S) -> None:
        self.states.append(copy.deepcopy(state))

    def reset(self) -> None:
        self.states = []

    @property
    def count(self) -> int:
        return len(self.states)

    def __len__(self) -> int:
        return len(self.states)

    def __getitem__(self, index: int) -> S:
        return self.states[index]


__all__ = ["IterationMonitor", "IterationCounter", "IterationHistory"]
