"""Diagnostics and debugging utilities for coneopt."""

from .checks import (
    debug_context,
    is_debug_enabled,
    register_check,
    registered_checks,
    run_checks,
    set_debug_enabled,
    unregister_check,
)
from .core import assert_cone_interior, assert_feasible, assert_finite

__all__ = [
    "assert_finite",
    "assert_cone_interior",
    "assert_feasible",
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
    "register_check",
    "unregister_check",
    "registered_checks",
    "run_checks",
]
