"""Interactive REPL using prompt_toolkit."""

from __future__ import annotations

import logging
import sys
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import FileHistory
from prompt_toolkit.key_binding import KeyBindings

from rconpanel.client import DEFAULT_TIMEOUT, query
from rconpanel.completer import ConsoleCompleter
from rconpanel.config import HISTORY_FILE, ensure_config_dir
from rconpanel.errors import RconError
from rconpanel.formatting import format_player, format_response
from rconpanel.players import fetch_players, player_names
from rconpanel.transcript import Transcript

if TYPE_CHECKING:
    from prompt_toolkit.key_binding.key_processor import KeyPressEvent

    from rconpanel.config import ServerConfig

log = logging.getLogger(__name__)

_PLAYER_REFRESH_INTERVAL = 5.0


@dataclass
class ConsoleContext:
    """Everything a REPL line needs to reach the server."""

    server: ServerConfig
    password: str
    timeout: float = DEFAULT_TIMEOUT
    color: bool = True
    transcript: Transcript = field(default_factory=Transcript)


def _create_key_bindings() -> KeyBindings:
    """Ctrl+C and Ctrl+D abandon a non-empty line and exit on an empty one."""
    kb = KeyBindings()

    def _abandon_or_exit(event: KeyPressEvent, exc: type[BaseException]) -> None:
        buffer = event.app.current_buffer
        if buffer.text:
            print()
            buffer.reset()
            event.app.renderer.reset()
        else:
            event.app.exit(exception=exc)

    @kb.add("c-c")
    def _(event: KeyPressEvent) -> None:
        _abandon_or_exit(event, KeyboardInterrupt)

    @kb.add("c-d")
    def _(event: KeyPressEvent) -> None:
        _abandon_or_exit(event, EOFError)

    return kb


def run_repl(ctx: ConsoleContext) -> None:
    """Run the interactive REPL loop until the user exits.

    Every line opens its own connection; nothing is kept between commands
    apart from the transcript.
    """
    ensure_config_dir()

    completer = ConsoleCompleter()
    stop = threading.Event()
    _start_player_refresh(ctx, completer, stop)

    session: PromptSession[str] = PromptSession(
        history=FileHistory(str(HISTORY_FILE)),
        completer=completer,
        complete_while_typing=False,
        key_bindings=_create_key_bindings(),
    )

    try:
        while True:
            try:
                text = session.prompt(HTML("<ansigreen>rcon</ansigreen>> ")).strip()
            except (EOFError, KeyboardInterrupt):
                print("\nGoodbye.")
                break

            if not text:
                continue
            if text in ("exit", "quit"):
                print("Goodbye.")
                break

            handle_line(ctx, text, completer)
    finally:
        stop.set()


def handle_line(ctx: ConsoleContext, text: str, completer: ConsoleCompleter) -> None:
    """Run a local command or send the line to the server and print the reply."""
    if text == "transcript":
        for line in ctx.transcript.lines():
            print(format_response(line, color=ctx.color))
        return

    if text == "players":
        _show_players(ctx, completer)
        return

    response = query(
        ctx.server.host,
        ctx.server.port,
        ctx.password,
        text,
        timeout=ctx.timeout,
        transcript=ctx.transcript,
    )
    if response:
        print(format_response(response, color=ctx.color))


def _show_players(ctx: ConsoleContext, completer: ConsoleCompleter) -> None:
    try:
        players = fetch_players(
            ctx.server.host, ctx.server.port, ctx.password, timeout=ctx.timeout
        )
    except RconError as e:
        print(f"Could not fetch players: {e}", file=sys.stderr)
        return

    completer.update_players(player_names(players))
    if not players:
        print("No players online.")
    for player in players:
        print(format_player(player, color=ctx.color))


def _start_player_refresh(
    ctx: ConsoleContext,
    completer: ConsoleCompleter,
    stop: threading.Event,
) -> None:
    """Start a daemon thread keeping the completer's player names current."""
    thread = threading.Thread(
        target=_refresh_players,
        args=(ctx, completer, stop),
        daemon=True,
    )
    thread.start()


def _refresh_players(
    ctx: ConsoleContext,
    completer: ConsoleCompleter,
    stop: threading.Event,
) -> None:
    """Poll the player list until stop is set, one connection per poll."""
    while not stop.is_set():
        try:
            players = fetch_players(
                ctx.server.host, ctx.server.port, ctx.password, timeout=ctx.timeout
            )
        except RconError:
            log.debug("Failed to refresh player list", exc_info=True)
        else:
            completer.update_players(player_names(players))
        stop.wait(_PLAYER_REFRESH_INTERVAL)
