"""rom-launcher - run games from platform launch-command templates.

Environment variables:
    ROML_LOG_DEBUG: DEBUG logging to a temp file (default false)
    ROML_NEW_SESSION: start games in their own process group (default false)
    ROML_TERMINATE_AFTER_WAIT: terminate() after the wait (default true)

Usage:
    rom-launcher 'retroarch -L core.so "%ROM%"' "/roms/Super Game.sfc"
"""

__version__ = "0.1.0"

from .command import LaunchRequest, build_launch_command
from .launcher import ProcessLauncher
from .runtime import ProcessRunner

__all__ = [
    "__version__",
    "LaunchRequest",
    "ProcessLauncher",
    "ProcessRunner",
    "build_launch_command",
]
