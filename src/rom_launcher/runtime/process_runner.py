"""Blocking process runner with lifecycle events.

rom-launcher runtime module

This module provides:
- A single-process runner that blocks until the child exits
- An explicit state machine (IDLE -> STARTING -> RUNNING -> FINISHED, or
  STARTING -> FAILED_TO_START)
- Lifecycle events (started / failed / finished) delivered synchronously on
  the calling thread and recorded in the returned RunResult
- A best-effort terminate() once the wait returned

Key design points:
- The command line is split with split_command(), never by a shell
- No pipes are attached; the child inherits the launcher's standard streams
- Operational failures are logged and reported, only invariant violations
  are raised
"""

from __future__ import annotations

import logging
import subprocess
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..command import split_command
from ..config import get_config
from ..errors import InvariantViolation, ProcessAlreadyRunningError

__all__ = [
    "ProcessRunner",
    "RunResult",
    "RunState",
    "ProcessEvent",
    "EventType",
    "ProcessErrorKind",
    "ExitStatus",
    "ExitOutcome",
    "exit_outcome",
    "classify_spawn_error",
    "describe_error",
]

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = sys.platform == "win32"

# Windows exit codes at or above this value are NTSTATUS failures
# (access violation, stack overflow, ...)
NTSTATUS_ERROR = 0xC0000000

# Reaping an abandoned process
DEFAULT_TERM_TIMEOUT = 2.0  # seconds to wait after terminate()
DEFAULT_KILL_TIMEOUT = 1.0  # seconds to wait after kill()


class RunState(str, Enum):
    """State of a ProcessRunner."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    FINISHED = "finished"
    FAILED_TO_START = "failed_to_start"


class ProcessErrorKind(str, Enum):
    """Failure reported by a `failed` event.

    - FAILED_TO_START: the program is missing or could not be executed
    - CRASHED: the program terminated abnormally after starting
    - TIMEDOUT: the program did not start in time
    - READ_ERROR / WRITE_ERROR: channel errors, impossible without pipes
    - UNKNOWN: any other OS error
    """

    FAILED_TO_START = "failed_to_start"
    CRASHED = "crashed"
    TIMEDOUT = "timedout"
    READ_ERROR = "read_error"
    WRITE_ERROR = "write_error"
    UNKNOWN = "unknown"


class ExitStatus(str, Enum):
    """How a process terminated."""

    NORMAL = "normal"
    CRASHED = "crashed"


class EventType(str, Enum):
    """Lifecycle event types."""

    STARTED = "started"
    FAILED = "failed"
    FINISHED = "finished"


@dataclass(frozen=True)
class ExitOutcome:
    """Exit code and status of a terminated process.

    Attributes:
        exit_code: Raw return code (negative signal number on POSIX crashes)
        status: NORMAL or CRASHED
    """

    exit_code: int
    status: ExitStatus

    @property
    def crashed(self) -> bool:
        return self.status is ExitStatus.CRASHED


@dataclass(frozen=True)
class ProcessEvent:
    """A lifecycle notification.

    Attributes:
        type: Event type
        pid: OS process id (STARTED)
        error: Failure kind (FAILED)
        outcome: Exit outcome (FINISHED)
    """

    type: EventType
    pid: int | None = None
    error: ProcessErrorKind | None = None
    outcome: ExitOutcome | None = None


@dataclass
class RunResult:
    """Result of a single ProcessRunner.run() call.

    Attributes:
        command: The command line that was run
        program: First argument of the split command line
        state: Terminal runner state (FINISHED or FAILED_TO_START)
        events: Lifecycle events in emission order
        pid: Process id, None if the process never started
        outcome: Exit outcome, None if no `finished` event was emitted
        error: Last reported failure kind, None if nothing failed
    """

    command: str
    program: str = ""
    state: RunState = RunState.IDLE
    events: list[ProcessEvent] = field(default_factory=list)
    pid: int | None = None
    outcome: ExitOutcome | None = None
    error: ProcessErrorKind | None = None

    @property
    def started(self) -> bool:
        return self.pid is not None

    @property
    def succeeded(self) -> bool:
        """Whether the process exited normally with code 0."""
        return (
            self.outcome is not None
            and not self.outcome.crashed
            and self.outcome.exit_code == 0
        )


_ERROR_MESSAGES: dict[ProcessErrorKind, str] = {
    ProcessErrorKind.FAILED_TO_START: (
        "Could not run the command `{program}`; either the invoked program is"
        " missing, or you don't have the permission to run it."
    ),
    ProcessErrorKind.CRASHED: "The external program `{program}` has crashed",
    ProcessErrorKind.TIMEDOUT: (
        "The command `{program}` has not started in a reasonable amount of time"
    ),
    ProcessErrorKind.UNKNOWN: (
        "Running the command `{program}` failed due to an unknown error"
    ),
}


def describe_error(kind: ProcessErrorKind, program: str) -> str:
    """Return the user-facing message for a failure.

    Raises:
        InvariantViolation: For READ_ERROR / WRITE_ERROR, which cannot occur
            because the runner never attaches pipes
    """
    if kind in (ProcessErrorKind.READ_ERROR, ProcessErrorKind.WRITE_ERROR):
        raise InvariantViolation(f"Unexpected {kind.value} for `{program}`")
    return _ERROR_MESSAGES[kind].format(program=program)


def classify_spawn_error(exc: BaseException) -> ProcessErrorKind:
    """Map an exception raised while spawning to a failure kind."""
    if isinstance(exc, (TimeoutError, subprocess.TimeoutExpired)):
        return ProcessErrorKind.TIMEDOUT
    # Missing program, permission denied, bad executable format, null bytes
    if isinstance(exc, (OSError, ValueError)):
        return ProcessErrorKind.FAILED_TO_START
    return ProcessErrorKind.UNKNOWN


def exit_outcome(returncode: int, *, windows: bool = IS_WINDOWS) -> ExitOutcome:
    """Build the ExitOutcome for a Popen return code.

    Args:
        returncode: Popen.returncode of a terminated process
        windows: Interpret the code with Windows semantics

    Returns:
        CRASHED for signal deaths (POSIX) or NTSTATUS failures (Windows),
        NORMAL otherwise
    """
    if windows:
        crashed = (returncode & 0xFFFFFFFF) >= NTSTATUS_ERROR
    else:
        crashed = returncode < 0
    status = ExitStatus.CRASHED if crashed else ExitStatus.NORMAL
    return ExitOutcome(exit_code=returncode, status=status)


class ProcessRunner:
    """Runs one external program at a time and waits for it.

    Example:
        runner = ProcessRunner()
        result = runner.run('retroarch -L core.so "/roms/Super Game.sfc"')
        if result.outcome is not None:
            print(result.outcome.exit_code)

    Attributes:
        new_session: Start the child in its own session / process group
        terminate_after_wait: Issue terminate() after the wait returned
    """

    def __init__(
        self,
        new_session: bool | None = None,
        terminate_after_wait: bool | None = None,
    ) -> None:
        config = get_config()
        self.new_session = config.new_session if new_session is None else new_session
        self.terminate_after_wait = (
            config.terminate_after_wait
            if terminate_after_wait is None
            else terminate_after_wait
        )

        self._process: subprocess.Popen | None = None
        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        """Whether the runner currently owns a process."""
        return self._process is not None

    def run(
        self,
        command: str,
        on_event: Callable[[ProcessEvent], None] | None = None,
    ) -> RunResult:
        """Run a command line and block until it exits or fails to start.

        Events are passed to ``on_event`` on the calling thread as they
        happen, and collected in the returned RunResult:
        - success: STARTED, FINISHED
        - crash: STARTED, FAILED(CRASHED), FINISHED
        - spawn failure: FAILED(FAILED_TO_START or TIMEDOUT)

        Args:
            command: Command line built by build_launch_command()
            on_event: Optional listener for lifecycle events

        Returns:
            The RunResult of this run

        Raises:
            ProcessAlreadyRunningError: If a previous run is still outstanding
        """
        if self._process is not None:
            raise ProcessAlreadyRunningError(self._process.pid)

        result = RunResult(command=command)
        self._state = RunState.STARTING

        argv = split_command(command)
        result.program = argv[0] if argv else ""

        try:
            if not argv:
                raise FileNotFoundError("Empty command line")
            self._process = subprocess.Popen(argv, **self._build_subprocess_kwargs())
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            kind = classify_spawn_error(e)
            logger.debug(f"Spawn failed argv={argv}: {e!r}")
            self._state = RunState.FAILED_TO_START
            result.state = self._state
            self._report_failure(result, kind, on_event)
            return result

        process = self._process
        try:
            self._state = RunState.RUNNING
            result.pid = process.pid
            logger.info(f"Process {process.pid} started")
            self._emit(result, ProcessEvent(EventType.STARTED, pid=process.pid), on_event)

            try:
                returncode = process.wait()
            except OSError as e:
                logger.debug(f"Waiting for pid={process.pid} failed: {e!r}")
                self._state = RunState.FINISHED
                result.state = self._state
                self._report_failure(result, ProcessErrorKind.UNKNOWN, on_event)
                return result

            outcome = exit_outcome(returncode)
            self._state = RunState.FINISHED
            result.state = self._state
            result.outcome = outcome

            if outcome.crashed:
                self._report_failure(result, ProcessErrorKind.CRASHED, on_event)
                logger.info(
                    f"The external program has crashed on exit, with exit code {returncode}"
                )
            else:
                logger.info(
                    f"The external program has finished cleanly, with exit code {returncode}"
                )
            self._emit(
                result, ProcessEvent(EventType.FINISHED, outcome=outcome), on_event
            )
        finally:
            # Still running when the wait was interrupted or a listener raised
            abandoned = process.returncode is None
            if self.terminate_after_wait or abandoned:
                self._terminate_quietly(process)
            if abandoned:
                self._reap(process)
            self._process = None

        return result

    def _build_subprocess_kwargs(self) -> dict[str, Any]:
        """Build platform-specific Popen kwargs.

        Returns:
            Dict of kwargs for subprocess.Popen
        """
        kwargs: dict[str, Any] = {}

        if self.new_session:
            if IS_WINDOWS:
                kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
            else:
                kwargs["start_new_session"] = True

        return kwargs

    def _report_failure(
        self,
        result: RunResult,
        kind: ProcessErrorKind,
        on_event: Callable[[ProcessEvent], None] | None,
    ) -> None:
        message = describe_error(kind, result.program)
        logger.warning(message)
        result.error = kind
        self._emit(result, ProcessEvent(EventType.FAILED, error=kind), on_event)

    @staticmethod
    def _emit(
        result: RunResult,
        event: ProcessEvent,
        on_event: Callable[[ProcessEvent], None] | None,
    ) -> None:
        result.events.append(event)
        if on_event is not None:
            on_event(event)

    @staticmethod
    def _terminate_quietly(process: subprocess.Popen) -> None:
        """Send terminate() to a process that should already be gone."""
        try:
            process.terminate()
        except OSError as e:
            logger.debug(f"terminate() after wait failed pid={process.pid}: {e}")

    @staticmethod
    def _reap(process: subprocess.Popen) -> None:
        """Wait for a terminated process, killing it if it does not exit.

        Termination strategy:
        1. Wait up to DEFAULT_TERM_TIMEOUT after terminate()
        2. If still running, kill() and wait up to DEFAULT_KILL_TIMEOUT
        """
        pid = process.pid
        try:
            try:
                process.wait(timeout=DEFAULT_TERM_TIMEOUT)
                return
            except subprocess.TimeoutExpired:
                pass

            logger.debug(f"Force killing subprocess pid={pid}")
            process.kill()
            try:
                process.wait(timeout=DEFAULT_KILL_TIMEOUT)
            except subprocess.TimeoutExpired:
                logger.warning(f"Subprocess did not exit after kill pid={pid}")
        except OSError as e:
            logger.debug(f"Reaping subprocess failed pid={pid}: {e}")
