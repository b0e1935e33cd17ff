"""Environment configuration.

Environment variables:
    ROML_LOG_DEBUG: debug logging
        - true/1/yes/on = write DEBUG logs to a file in the temp directory
        - false/0/no/off = INFO logs to stderr (default)

    ROML_NEW_SESSION: run the game in its own session / process group
        - true/1/yes/on = isolate, Ctrl+C in the launcher's terminal does not
          reach the game
        - false/0/no/off = share the launcher's process group (default)

    ROML_TERMINATE_AFTER_WAIT: send terminate() once the wait returned
        - true/1/yes/on = enabled (default)
        - false/0/no/off = disabled
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

__all__ = ["Config", "load_config", "get_config", "reload_config"]


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes", "on")


def _generate_log_file_path() -> str:
    """Return a timestamped log file path under the temp directory."""
    log_dir = Path(tempfile.gettempdir()) / "rom-launcher"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"roml_debug_{timestamp}.log"

    return str(log_file.resolve())


@dataclass
class Config:
    """Launcher configuration.

    Attributes:
        log_debug: DEBUG logging to a file
        log_file: Log file path (set when log_debug is on)
        new_session: Start the child in a new session / process group
        terminate_after_wait: Issue terminate() after the wait returned
    """

    log_debug: bool = False
    log_file: str | None = None
    new_session: bool = False
    terminate_after_wait: bool = True


def load_config() -> Config:
    """Load configuration from the environment."""
    log_debug = _parse_bool(os.environ.get("ROML_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug else None

    return Config(
        log_debug=log_debug,
        log_file=log_file,
        new_session=_parse_bool(os.environ.get("ROML_NEW_SESSION"), default=False),
        terminate_after_wait=_parse_bool(
            os.environ.get("ROML_TERMINATE_AFTER_WAIT"), default=True
        ),
    )


# Loaded lazily
_config: Config | None = None


def get_config() -> Config:
    """Return the process-wide configuration."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload the configuration from the environment (used by tests)."""
    global _config
    _config = load_config()
    return _config
