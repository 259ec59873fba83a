"""Environment-driven settings shared by the runner, REPL and evaluator."""

from __future__ import annotations

import os
from typing import Optional

DEFAULT_MAX_CALL_DEPTH = 150
# Larger settings are clamped so the interpreter stays within the C stack.
MAX_CALL_DEPTH_CEILING = 450

_TRUTHY = {"1", "true", "yes", "on"}

# loguru's built-in levels
LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def _env_flag(name: str) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return False
    return raw.strip().lower() in _TRUTHY


def debug_py_trace_enabled() -> bool:
    """Show Python tracebacks alongside Laspa errors."""
    return _env_flag("LASPA_DEBUG_PY_TRACE")


def max_call_depth() -> int:
    """Deepest user-function nesting before evaluation fails."""
    raw = os.environ.get("LASPA_MAX_CALL_DEPTH")
    if raw is None:
        return DEFAULT_MAX_CALL_DEPTH

    try:
        value = int(raw.strip())
    except ValueError:
        return DEFAULT_MAX_CALL_DEPTH

    if value <= 0:
        return DEFAULT_MAX_CALL_DEPTH
    return min(value, MAX_CALL_DEPTH_CEILING)


def log_level_override() -> Optional[str]:
    """Level name from LASPA_LOG_LEVEL; unknown names are ignored."""
    raw = os.environ.get("LASPA_LOG_LEVEL")
    if raw is None:
        return None
    name = raw.strip().upper()
    return name if name in LOG_LEVELS else None
