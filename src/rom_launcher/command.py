"""Launch command templating.

Turns a platform launch-command template into a concrete command line by
substituting the placeholders below with values quoted for the command-line
rules implemented by :func:`split_command`.

Placeholders:
    %ROM%       path of the game file
    %ROM_RAW%   same as %ROM%
    %BASENAME%  file name without directory and last extension

Each placeholder may appear bare (``%ROM%``) or pre-quoted in the template
(``"%ROM%"``). Pre-quoted forms are replaced first, quotes included, so a value
that gets wrapped in quotes during sanitizing never ends up double-quoted.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

__all__ = [
    "Placeholder",
    "LaunchRequest",
    "PLACEHOLDER_TOKENS",
    "complete_base_name",
    "sanitize_value",
    "build_launch_command",
    "split_command",
]

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s")


class Placeholder(Enum):
    """Kind of value substituted for a template token."""

    PATH = "path"
    BASENAME = "basename"


# Replacement order matters: it is applied once for the quoted forms and then
# once for the bare forms.
PLACEHOLDER_TOKENS: tuple[tuple[str, Placeholder], ...] = (
    ("%ROM%", Placeholder.PATH),
    ("%ROM_RAW%", Placeholder.PATH),
    ("%BASENAME%", Placeholder.BASENAME),
)


def complete_base_name(path: str) -> str:
    """Return the file name of ``path`` without its directory and last extension.

    Both ``/`` and ``\\`` count as directory separators. Everything from the last dot
    on is the extension, so ``.nes`` has an empty base name.

    Examples:
        >>> complete_base_name("/a/b/game.zip")
        'game'
        >>> complete_base_name("game.tar.gz")
        'game.tar'
        >>> complete_base_name("/roms/.nes")
        ''
    """
    name = re.split(r"[\\/]", path)[-1]
    dot = name.rfind(".")
    if dot < 0:
        return name
    return name[:dot]


def sanitize_value(value: str) -> str:
    """Quote a value for the launch command line.

    Literal quotes are written as triple quotes; a value containing whitespace
    is wrapped in quotes afterwards.
    """
    value = value.replace('"', '"""')
    if _WHITESPACE_RE.search(value):
        value = f'"{value}"'
    return value


def build_launch_command(template: str, rom_path: str) -> str:
    """Substitute the known placeholders of ``template``.

    Args:
        template: Platform launch command, e.g. ``emulator -f "%ROM%"``
        rom_path: Path of the game file

    Returns:
        The command line with every placeholder replaced
    """
    params = {
        Placeholder.PATH: sanitize_value(rom_path),
        Placeholder.BASENAME: sanitize_value(complete_base_name(rom_path)),
    }
    for kind, value in params.items():
        logger.debug(f"Placeholder {kind.value}: {value}")

    command = template
    for token, kind in PLACEHOLDER_TOKENS:
        command = command.replace(f'"{token}"', params[kind])
    for token, kind in PLACEHOLDER_TOKENS:
        command = command.replace(token, params[kind])
    return command


def split_command(command: str) -> list[str]:
    """Split a command line into program and arguments.

    Whitespace separates arguments unless it is inside double quotes. A single
    quote character toggles quoting, three consecutive quotes produce one
    literal ``"`` and two consecutive quotes produce nothing.

    Examples:
        >>> split_command('emu "My Game.rom" -f')
        ['emu', 'My Game.rom', '-f']
        >>> split_command('echo \"\"\"hi\"\"\"')
        ['echo', '"hi"']
    """
    args: list[str] = []
    current: list[str] = []
    quote_count = 0
    in_quote = False

    for char in command:
        if char == '"':
            quote_count += 1
            if quote_count == 3:
                quote_count = 0
                current.append(char)
            continue
        if quote_count:
            if quote_count == 1:
                in_quote = not in_quote
            quote_count = 0
        if not in_quote and char.isspace():
            if current:
                args.append("".join(current))
                current = []
        else:
            current.append(char)

    if current:
        args.append("".join(current))
    return args


@dataclass(frozen=True)
class LaunchRequest:
    """A command template paired with the game file it should launch.

    Attributes:
        command_template: Platform launch command with placeholders
        rom_path: Path of the game file
    """

    command_template: str
    rom_path: str

    def build(self) -> str:
        """Build the concrete command line for this request."""
        return build_launch_command(self.command_template, self.rom_path)
