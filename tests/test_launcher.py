"""ProcessLauncher tests.

Test coverage:
- Event order ending with done
- done fires on spawn failure and on invariant errors
- Separator banner and resolved command logging
- launch_game with platform/game objects
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pytest

from rom_launcher.command import LaunchRequest
from rom_launcher.errors import ProcessAlreadyRunningError
from rom_launcher.launcher import SEPARATOR, ProcessLauncher
from rom_launcher.runtime import EventType, ProcessErrorKind, ProcessEvent


@dataclass
class Platform:
    launch_cmd: str


@dataclass
class Game:
    rom_path: str


class Recorder:
    """Collects lifecycle events and the done signal in one ordered list."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.events: list[ProcessEvent] = []

    def on_event(self, event: ProcessEvent) -> None:
        self.events.append(event)
        self.calls.append(event.type.value)

    def on_done(self) -> None:
        self.calls.append("done")


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def launcher(recorder: Recorder) -> ProcessLauncher:
    return ProcessLauncher(on_done=recorder.on_done, on_event=recorder.on_event)


class TestLaunch:
    """Test launch ordering."""

    def test_success_order(self, launcher: ProcessLauncher, recorder: Recorder, fake_game: str):
        result = launcher.launch(LaunchRequest(fake_game, "/roms/a.rom"))

        assert recorder.calls == ["started", "finished", "done"]
        assert result.succeeded

    def test_spawn_failure_order(self, launcher: ProcessLauncher, recorder: Recorder):
        result = launcher.launch(
            LaunchRequest('rom-launcher-missing-emulator "%ROM%"', "/roms/My Game.rom")
        )

        assert recorder.calls == ["failed", "done"]
        assert recorder.events[0].error is ProcessErrorKind.FAILED_TO_START
        assert result.outcome is None

    def test_crash_order(self, launcher: ProcessLauncher, recorder: Recorder, fake_game: str):
        launcher.launch(LaunchRequest(f"{fake_game} --crash", "/roms/a.rom"))
        assert recorder.calls == ["started", "failed", "finished", "done"]

    def test_done_fires_when_runner_raises(self, launcher: ProcessLauncher, recorder: Recorder):
        def broken_run(command, on_event=None):
            raise ProcessAlreadyRunningError(123)

        launcher.runner.run = broken_run  # type: ignore[method-assign]

        with pytest.raises(ProcessAlreadyRunningError):
            launcher.launch(LaunchRequest("emu %ROM%", "/roms/a.rom"))
        assert recorder.calls == ["done"]

    def test_without_callbacks(self, fake_game: str):
        result = ProcessLauncher().launch(LaunchRequest(fake_game, "/roms/a.rom"))
        assert [e.type for e in result.events] == [EventType.STARTED, EventType.FINISHED]

    def test_runs_the_built_command(self, launcher: ProcessLauncher):
        seen: list[str] = []

        def fake_run(command, on_event=None):
            seen.append(command)
            return None

        launcher.runner.run = fake_run  # type: ignore[method-assign]
        launcher.launch(LaunchRequest('"%BASENAME%" --fullscreen', "/roms/Super Game!.rom"))
        assert seen == ['"Super Game!" --fullscreen']


class TestLaunchGame:
    """Test launching from platform and game objects."""

    def test_launch_game(self, launcher: ProcessLauncher, recorder: Recorder, fake_game: str):
        result = launcher.launch_game(
            Platform(f"{fake_game} --exit-code %BASENAME%"), Game("/roms/4.rom")
        )

        assert recorder.calls == ["started", "finished", "done"]
        assert result.outcome.exit_code == 4


class TestLogging:
    """Test the banner and command lines."""

    def test_banner_and_command(self, launcher: ProcessLauncher, caplog: pytest.LogCaptureFixture):
        caplog.set_level(logging.INFO, logger="rom_launcher")
        launcher.launch(LaunchRequest('rom-launcher-missing-emulator "%ROM%"', "/roms/My Game.rom"))

        messages = [r.getMessage() for r in caplog.records]
        assert messages[0] == SEPARATOR
        assert messages[1] == 'Executing command: `rom-launcher-missing-emulator "/roms/My Game.rom"`'
        assert caplog.records[-1].levelno == logging.WARNING
