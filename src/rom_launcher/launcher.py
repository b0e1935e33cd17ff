"""Game launching facade.

Builds the command for a platform/game pair, runs it with a ProcessRunner and
signals completion through the ``on_done`` callback, whatever the outcome.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from .command import LaunchRequest
from .runtime import ProcessEvent, ProcessRunner, RunResult

__all__ = ["ProcessLauncher", "PlatformLike", "GameLike", "SEPARATOR"]

logger = logging.getLogger(__name__)

SEPARATOR = "-" * 40


class PlatformLike(Protocol):
    launch_cmd: str


class GameLike(Protocol):
    rom_path: str


class ProcessLauncher:
    """Launches games one at a time.

    Example:
        launcher = ProcessLauncher(on_done=restore_ui)
        launcher.launch(LaunchRequest('mednafen "%ROM%"', "/roms/Game.pce"))

    Attributes:
        runner: The ProcessRunner used for every launch
    """

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        on_done: Callable[[], None] | None = None,
        on_event: Callable[[ProcessEvent], None] | None = None,
    ) -> None:
        self.runner = runner if runner is not None else ProcessRunner()
        self._on_done = on_done
        self._on_event = on_event

    def launch(self, request: LaunchRequest) -> RunResult:
        """Run the command of ``request`` and block until it is over.

        ``on_done`` is called after the run in every case, including when the
        runner raised.
        """
        command = request.build()

        logger.info(SEPARATOR)
        logger.info(f"Executing command: `{command}`")

        try:
            return self.runner.run(command, on_event=self._on_event)
        finally:
            if self._on_done is not None:
                self._on_done()

    def launch_game(self, platform: PlatformLike, game: GameLike) -> RunResult:
        """Launch ``game`` with the launch command of ``platform``."""
        return self.launch(LaunchRequest(platform.launch_cmd, game.rom_path))
