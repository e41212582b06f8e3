"""Decide which online players are operators."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

from rconpanel.formatting import RED

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rconpanel.parsers import PlayerRecord


def resolve_operators(
    players: Iterable[PlayerRecord], ops: Iterable[str]
) -> list[PlayerRecord]:
    """Return copies of players with ``is_op`` recomputed from the inputs.

    Names are matched against ops case-insensitively after stripping color
    codes. When the server gave no operator list, a name rendered in red
    (containing the red color code) is taken as an operator instead; that
    is a display convention, not something the server confirms.
    """
    op_names = {op.strip().lower() for op in ops}

    if not op_names:
        return [dataclasses.replace(p, is_op=RED in p.name) for p in players]

    return [
        dataclasses.replace(p, is_op=p.plain_name.lower() in op_names)
        for p in players
    ]
