"""rom-launcher exception classes.

Only programming errors are raised. Operational failures of a launch
(missing program, crash, timeout) are reported through lifecycle events.
"""

from __future__ import annotations

__all__ = [
    "LauncherError",
    "InvariantViolation",
    "ProcessAlreadyRunningError",
]


class LauncherError(Exception):
    """Base exception of the package."""
    pass


class InvariantViolation(LauncherError, AssertionError):
    """A state the launcher can never legitimately reach."""
    pass


class ProcessAlreadyRunningError(InvariantViolation):
    """A run was started while the runner still owns a process.

    Attributes:
        pid: Process id of the outstanding process, if known
    """

    def __init__(self, pid: int | None = None) -> None:
        self.pid = pid
        super().__init__(f"A process is already running (pid={pid})")
