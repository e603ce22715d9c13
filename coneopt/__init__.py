"""coneopt - linear, quadratic and second-order cone programming in NumPy."""

__version__ = "0.1.0"

from .convex import (
    ActiveSetQPSolver,
    ConvexOptimizationError,
    DimensionMismatchError,
    InfeasibleError,
    LPBackend,
    LPProblem,
    LPSolution,
    LPSolver,
    NumericalBreakdownError,
    PrimalDualInteriorPoint,
    PrimalDualSolution,
    QPProblem,
    QPSolution,
    RevisedSimplex,
    SOCPGeneralProblem,
    UnboundedError,
    to_socp,
)
from .diagnostics import debug_context, is_debug_enabled, set_debug_enabled
from .iterative import (
    MACHINE_EPSILON,
    AbsoluteTolerance,
    IterationCounter,
    IterationHistory,
    IterativeMinimizer,
    RelativeTolerance,
    Status,
    StepInfo,
)
from .logging import configure_logging, get_logger, set_log_level

__all__ = [
    "__version__",
    # Problems and solutions
    "LPProblem",
    "QPProblem",
    "SOCPGeneralProblem",
    "PrimalDualSolution",
    "QPSolution",
    "LPSolution",
    "to_socp",
    # Solvers
    "ActiveSetQPSolver",
    "PrimalDualInteriorPoint",
    "RevisedSimplex",
    "LPBackend",
    "LPSolver",
    # Errors
    "ConvexOptimizationError",
    "DimensionMismatchError",
    "UnboundedError",
    "InfeasibleError",
    "NumericalBreakdownError",
    # Iterative framework
    "IterativeMinimizer",
    "StepInfo",
    "Status",
    "AbsoluteTolerance",
    "RelativeTolerance",
    "MACHINE_EPSILON",
    "IterationCounter",
    "IterationHistory",
    # Diagnostics and logging
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
    "get_logger",
    "set_log_level",
    "configure_logging",
]
