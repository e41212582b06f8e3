"""Command and player name completion for the prompt_toolkit REPL."""

from __future__ import annotations

from typing import TYPE_CHECKING

from prompt_toolkit.completion import Completer, Completion

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prompt_toolkit.completion import CompleteEvent
    from prompt_toolkit.document import Document

# Commands handled by the REPL itself and never sent to the server
LOCAL_COMMANDS = ("exit", "quit", "players", "transcript")

# Server commands whose first argument is a player name
PLAYER_COMMANDS = (
    "ban",
    "deop",
    "gamemode",
    "kick",
    "msg",
    "op",
    "pardon",
    "tell",
    "tp",
)

SERVER_COMMANDS = (
    *PLAYER_COMMANDS,
    "list",
    "ops",
    "save-all",
    "say",
    "stop",
    "time",
    "weather",
    "whitelist",
)


class ConsoleCompleter(Completer):
    """Completes command names, then player names for player commands.

    The player list is replaced wholesale by a background thread; reference
    assignment is atomic under the GIL so no lock is needed.
    """

    def __init__(self, players: Iterable[str] = ()) -> None:
        self.players: list[str] = list(players)

    def update_players(self, players: list[str]) -> None:
        """Replace the player list atomically."""
        self.players = players

    def get_completions(
        self,
        document: Document,
        complete_event: CompleteEvent,  # noqa: ARG002
    ) -> Iterable[Completion]:
        """Yield completions based on the current input."""
        text = document.text_before_cursor.lstrip()
        words = text.split()

        if not words or (len(words) == 1 and not text.endswith(" ")):
            prefix = words[0] if words else ""
            for name in sorted({*LOCAL_COMMANDS, *SERVER_COMMANDS}):
                if name.startswith(prefix):
                    yield Completion(name, start_position=-len(prefix))
            return

        command = words[0].lower().lstrip("/")
        if command not in PLAYER_COMMANDS:
            return

        # Only the first argument is a player name
        completing_first_arg = (len(words) == 1 and text.endswith(" ")) or (
            len(words) == 2 and not text.endswith(" ")  # noqa: PLR2004
        )
        if not completing_first_arg:
            return

        prefix = "" if text.endswith(" ") else words[-1]
        for player in self.players:
            if player.lower().startswith(prefix.lower()):
                yield Completion(player, start_position=-len(prefix))
