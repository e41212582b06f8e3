"""Strip or render Minecraft formatting codes in server text."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rconpanel.parsers import PlayerRecord

# A section sign followed by any single character
_MC_CODE_PATTERN = re.compile(r"§.")

RED = "§c"

_ANSI_RESET = "\033[0m"
_ANSI_BOLD = "\033[1m"

# Classic Minecraft chat palette
_MC_COLORS: dict[str, str] = {
    "0": "000000",
    "1": "0000AA",
    "2": "00AA00",
    "3": "00AAAA",
    "4": "AA0000",
    "5": "AA00AA",
    "6": "FFAA00",
    "7": "AAAAAA",
    "8": "555555",
    "9": "5555FF",
    "a": "55FF55",
    "b": "55FFFF",
    "c": "FF5555",
    "d": "FF55FF",
    "e": "FFFF55",
    "f": "FFFFFF",
}
_DEFAULT_COLOR = "FFFFFF"

_MC_STYLES: dict[str, str] = {
    "l": _ANSI_BOLD,
    "m": "\033[9m",  # Strikethrough
    "n": "\033[4m",  # Underline
    "o": "\033[3m",  # Italic
    "r": _ANSI_RESET,
}


def strip_formatting(text: str) -> str:
    """Remove every formatting code (§ plus one character) from text."""
    return _MC_CODE_PATTERN.sub("", text)


def _ansi_color(hex_color: str) -> str:
    r, g, b = (int(hex_color[i : i + 2], 16) for i in (0, 2, 4))
    return f"\033[38;2;{r};{g};{b}m"


def convert_formatting(text: str) -> str:
    """Convert Minecraft formatting codes to ANSI escape sequences.

    Color codes become 24-bit colors from the Minecraft palette and style
    codes become the matching terminal styles. Any other code falls back
    to white. A reset is appended if anything was converted.
    """
    converted = False

    def _replace(match: re.Match[str]) -> str:
        nonlocal converted
        converted = True
        code = match.group(0)[1].lower()
        if code in _MC_STYLES:
            return _MC_STYLES[code]
        return _ansi_color(_MC_COLORS.get(code, _DEFAULT_COLOR))

    result = _MC_CODE_PATTERN.sub(_replace, text)
    if converted:
        result += _ANSI_RESET
    return result


def format_response(text: str, *, color: bool = True) -> str:
    """Format a server response for terminal display.

    Args:
        text: Raw text from the Minecraft server.
        color: If True, convert formatting codes to ANSI sequences.
            If False, strip all formatting codes.
    """
    if color:
        return convert_formatting(text)
    return strip_formatting(text)


def format_player(player: PlayerRecord, *, color: bool = True) -> str:
    """Render one player as a single line: name, then [OP] and [AFK] tags."""
    if color:
        line = f"{_ANSI_BOLD}{convert_formatting(player.name)}{_ANSI_RESET}"
    else:
        line = player.plain_name
    if player.is_op:
        line += " [OP]"
    if player.afk:
        line += " [AFK]"
    return line
