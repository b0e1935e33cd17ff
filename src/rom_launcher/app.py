"""rom-launcher command-line entry point.

Sets up logging and launches a single game from the command line.
"""

from __future__ import annotations

import argparse
import logging
import sys

from . import __version__
from .command import LaunchRequest, split_command
from .config import Config, get_config
from .launcher import ProcessLauncher
from .runtime import RunResult

__all__ = ["configure_logging", "exit_status", "main"]

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(config: Config) -> None:
    """Configure log output for the rom_launcher namespace."""
    log_handlers: list[logging.Handler] = []

    if config.log_debug and config.log_file:
        # Debug mode: log to a temp file
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log_handlers.append(file_handler)
        log_level = logging.DEBUG
    else:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log_handlers.append(stderr_handler)
        log_level = logging.INFO

    # Third-party loggers stay at WARNING
    logging.basicConfig(
        level=logging.WARNING,
        handlers=log_handlers,
    )
    logging.getLogger("rom_launcher").setLevel(log_level)


def exit_status(result: RunResult) -> int:
    """Map a RunResult to the launcher's own exit status."""
    outcome = result.outcome
    if outcome is None or outcome.crashed:
        return 1
    return outcome.exit_code


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rom-launcher",
        description="Launch a game file with a platform command template.",
    )
    parser.add_argument(
        "template",
        help='launch command template, e.g. \'retroarch -L core.so "%%ROM%%"\'',
    )
    parser.add_argument("rom_path", help="path of the game file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="print the resolved command and its arguments without running it",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = _build_parser().parse_args(argv)
    request = LaunchRequest(args.template, args.rom_path)

    if args.dry_run:
        command = request.build()
        print(command)
        for arg in split_command(command):
            print(f"  {arg}")
        return 0

    config = get_config()
    configure_logging(config)
    if config.log_file:
        logger.debug(f"Debug log: {config.log_file}")

    launcher = ProcessLauncher(on_done=lambda: logger.debug("Launch done"))
    result = launcher.launch(request)
    return exit_status(result)


if __name__ == "__main__":
    sys.exit(main())
