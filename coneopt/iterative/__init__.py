"""Generic iterative-algorithm framework: minimizer driver, tolerances, monitors."""

from .core import IterativeMethod, IterativeMinimizer, Status, StepInfo
from .monitor import IterationCounter, IterationHistory, IterationMonitor
from .tolerance import (
    DEFAULT_EPSILON,
    MACHINE_EPSILON,
    AbsoluteTolerance,
    RelativeTolerance,
    Tolerance,
)

__all__ = [
    "Status",
    "StepInfo",
    "IterativeMethod",
    "IterativeMinimizer",
    "IterationMonitor",
    "IterationCounter",
    "IterationHistory",
    "Tolerance",
    "AbsoluteTolerance",
    "RelativeTolerance",
    "MACHINE_EPSILON",
    "DEFAULT_EPSILON",
]
