"""Environment-driven settings shared by the CLI and the REPL."""

from __future__ import annotations

import os
from typing import Optional

DEBUG_PY_TRACE_VAR = "TABLISP_DEBUG_PY_TRACE"
RACKET_VAR = "TABLISP_RACKET"
DEFAULT_RACKET = "racket"

_TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return False
    return raw.strip().lower() in _TRUTHY


def debug_py_trace_enabled() -> bool:
    """Whether internal failures should print the Python traceback."""
    return env_flag(DEBUG_PY_TRACE_VAR)


def set_debug_py_trace(enabled: bool) -> None:
    if enabled:
        os.environ[DEBUG_PY_TRACE_VAR] = "1"
    else:
        os.environ.pop(DEBUG_PY_TRACE_VAR, None)


def racket_executable(explicit: Optional[str] = None) -> str:
    if explicit:
        return explicit

    configured = os.environ.get(RACKET_VAR, "").strip()
    return configured or DEFAULT_RACKET
