"""
Constrained convex optimization: LP, QP and second-order cone programs.

Problems are immutable dataclasses; solvers are stateless frozen dataclasses
whose ``solve(problem)`` returns a fresh
:class:`~coneopt.iterative.IterativeMinimizer`. Three numerical protocols are
provided:

* :class:`PrimalDualInteriorPoint` for cone programs (and LPs/QPs through
  their cone embedding);
* :class:`ActiveSetQPSolver` for strictly convex QPs;
* :class:`RevisedSimplex` for LPs, selected through :class:`LPSolver`.
"""

from . import cones, constraints, conversions, core, errors, ipm, kkt, lp, qp, utils
from .conversions import ConicEmbedding, embed, to_socp
from .core import (
    LPProblem,
    LPSolution,
    PrimalDualSolution,
    QPProblem,
    QPSolution,
    SOCPGeneralProblem,
)
from .errors import (
    ConvexOptimizationError,
    DimensionMismatchError,
    InfeasibleError,
    NumericalBreakdownError,
    UnboundedError,
)
from .ipm import ConicMethod, HomogeneousIterate, PrimalDualInteriorPoint, default_start
from .kkt import is_kkt_optimal, qp_kkt_residuals, socp_residuals
from .lp import LPBackend, LPSolver, RevisedSimplex
from .qp import ActiveSetQPSolver, solve_equality_qp

__all__ = [
    "cones",
    "constraints",
    "conversions",
    "core",
    "errors",
    "ipm",
    "kkt",
    "lp",
    "qp",
    "utils",
    # Problems and solutions
    "LPProblem",
    "QPProblem",
    "SOCPGeneralProblem",
    "PrimalDualSolution",
    "HomogeneousIterate",
    "QPSolution",
    "LPSolution",
    # Errors
    "ConvexOptimizationError",
    "DimensionMismatchError",
    "UnboundedError",
    "InfeasibleError",
    "NumericalBreakdownError",
    # Solvers
    "PrimalDualInteriorPoint",
    "ConicMethod",
    "default_start",
    "ActiveSetQPSolver",
    "solve_equality_qp",
    "RevisedSimplex",
    "LPBackend",
    "LPSolver",
    # Embedding and diagnostics
    "ConicEmbedding",
    "embed",
    "to_socp",
    "qp_kkt_residuals",
    "is_kkt_optimal",
    "socp_residuals",
]
