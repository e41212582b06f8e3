"""Fetch the online player list with operator flags."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rconpanel.client import DEFAULT_TIMEOUT, run_command
from rconpanel.errors import RconError
from rconpanel.operators import resolve_operators
from rconpanel.parsers import parse_ops_list, parse_player_list

if TYPE_CHECKING:
    from rconpanel.client import RandomSource
    from rconpanel.parsers import PlayerRecord

log = logging.getLogger(__name__)

LIST_COMMAND = "list"
OPS_COMMAND = "ops"


def fetch_players(
    host: str,
    port: int,
    password: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    rng: RandomSource | None = None,
) -> list[PlayerRecord]:
    """Ask the server who is online and which of them are operators.

    Each command runs over its own connection. A failed ``list`` is raised
    rather than returned as text, since error text containing a colon would
    otherwise parse as a player. A failed ``ops`` only means no operator
    list, so the red-name fallback decides.

    Raises:
        RconError: The ``list`` command could not be run.
    """
    players = parse_player_list(
        run_command(host, port, password, LIST_COMMAND, timeout=timeout, rng=rng)
    )
    # Servers without an ops command reply with an error message that has no
    # name list, which parses to no ops as well.
    try:
        ops = parse_ops_list(
            run_command(host, port, password, OPS_COMMAND, timeout=timeout, rng=rng)
        )
    except RconError as e:
        log.debug("No operator list: %s", e)
        ops = []
    log.debug("Online: %d players, %d ops listed", len(players), len(ops))
    return resolve_operators(players, ops)


def player_names(players: list[PlayerRecord]) -> list[str]:
    """Plain names suitable for typing into commands."""
    return [p.plain_name for p in players]
