"""Heuristic parsers for the replies to the player and operator commands.

Server output is meant for humans and varies between server software, so
these functions never raise. Anything they cannot make sense of becomes an
empty list.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from rconpanel.formatting import strip_formatting

log = logging.getLogger(__name__)

_RE_SEPARATORS = re.compile(r"[\r\n,]+")
# Everything up to the first colon plus the whitespace after it
_RE_ITEM_PREFIX = re.compile(r"^.*?:\s*")
_RE_AFK = re.compile(re.escape("[AFK]"), re.IGNORECASE)


@dataclass(frozen=True)
class PlayerRecord:
    """An online player as reported by the server.

    ``name`` keeps any color codes the server embedded in it.
    """

    name: str
    is_op: bool = False
    afk: bool = False

    @property
    def plain_name(self) -> str:
        """The name without color codes or surrounding whitespace."""
        return strip_formatting(self.name).strip()


def _split_items(text: str) -> list[str]:
    """Return the trimmed, non-empty items after the first colon."""
    _header, sep, names = text.partition(":")
    if not sep:
        return []
    items = (item.strip() for item in _RE_SEPARATORS.split(names))
    return [item for item in items if item]


def parse_player_list(text: str) -> list[PlayerRecord]:
    """Parse the reply to ``list`` into player records.

    Expects something like 'There are 2/20 players online: Alice, Bob [AFK]'.
    The header wording is ignored; only the first colon matters. Items that
    contain a colon themselves, as servers grouping players by rank produce
    ('admins: Alice'), keep only the text after it. A player whose name
    really contains a colon is therefore truncated.
    """
    players: list[PlayerRecord] = []
    for item in _split_items(text):
        name = item
        if ":" in name:
            name = _RE_ITEM_PREFIX.sub("", name, count=1)
        afk = bool(_RE_AFK.search(name))
        if afk:
            name = _RE_AFK.sub("", name).strip()
        players.append(PlayerRecord(name=name, afk=afk))

    log.debug("Parsed %d players", len(players))
    return players


def parse_ops_list(text: str) -> list[str]:
    """Parse the reply to ``ops`` into operator names, in server order."""
    return _split_items(text)
