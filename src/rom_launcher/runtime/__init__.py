"""Runtime module for running the launched program.

Provides the blocking ProcessRunner and its lifecycle types.
"""

from __future__ import annotations

from .process_runner import (
    EventType,
    ExitOutcome,
    ExitStatus,
    ProcessErrorKind,
    ProcessEvent,
    ProcessRunner,
    RunResult,
    RunState,
)

__all__ = [
    "EventType",
    "ExitOutcome",
    "ExitStatus",
    "ProcessErrorKind",
    "ProcessEvent",
    "ProcessRunner",
    "RunResult",
    "RunState",
]
