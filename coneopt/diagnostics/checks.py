"""
Debug mode and per-iterate invariant checks.

Every solver announces its accepted iterates with :func:`run_checks` under
a named hook, for example ``"interior-point iterate"``. While debug mode is
on, the checks registered for that hook run in registration order and
signal a broken invariant by raising ``ValueError``. While it is off,
:func:`run_checks` returns at once and costs one flag lookup.

Debug mode is toggled with :func:`set_debug_enabled`, :func:`debug_context`
or the ``CONEOPT_DEBUG`` environment variable.
"""

from __future__ import annotations

import os
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

Check = Callable[..., None]

_DEBUG_ENV_VAR = "CONEOPT_DEBUG"
_debug_enabled: bool = os.getenv(_DEBUG_ENV_VAR, "0").lower() in (
    "1",
    "true",
    "yes",
    "on",
)

_registry: Dict[str, List[Check]] = {}
_registry_lock = threading.Lock()


def is_debug_enabled() -> bool:
    """Return whether registered iterate checks are currently run."""
    return _debug_enabled


def set_debug_enabled(enabled: bool) -> None:
    global _debug_enabled
    _debug_enabled = bool(enabled)


@contextmanager
def debug_context(enabled: bool = True) -> Iterator[None]:
    """
    Temporarily enable or disable debug mode.

    Example
    -------
    >>> with debug_context(True):
    ...     pass  # iterate checks run inside this block
    """
    global _debug_enabled
    prev = _debug_enabled
    _debug_enabled = bool(enabled)
    try:
        yield
    finally:
        _debug_enabled = prev


def register_check(hook: str, check: Optional[Check] = None) -> Any:
    """
    Register ``check`` to run on every iterate announced under ``hook``.

    Can be called directly or used as a decorator::

        @register_check("active-set iterate")
        def _feasible(problem, x):
            ...

    Registering the same callable twice for one hook has no effect.
    """

    def _register(fn: Check) -> Check:
        with _registry_lock:
            checks = _registry.setdefault(hook, [])
            if fn not in checks:
                checks.append(fn)
        return fn

    if check is None:
        return _register
    return _register(check)


def unregister_check(hook: str, check: Check) -> None:
    """Remove ``check`` from ``hook``; a callable that was never registered is ignored."""
    with _registry_lock:
        checks = _registry.get(hook, [])
        if check in checks:
            checks.remove(check)


def registered_checks(hook: str) -> Tuple[Check, ...]:
    with _registry_lock:
        return tuple(_registry.get(hook, ()))


def run_checks(hook: str, *args: Any, **kwargs: Any) -> int:
    """
    Run the checks of ``hook`` when debug mode is on.

    Returns the number of checks that ran. The first failing check raises
    and stops the rest.
    """
    if not _debug_enabled:
        return 0
    checks = registered_checks(hook)
    for check in checks:
        check(*args, **kwargs)
    return len(checks)
