"""Caller-owned console transcript of issued commands and their results."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

SENT = ">"
RECEIVED = "<"


class TranscriptSink(Protocol):
    """Anything that can record a command together with its result."""

    def record(self, command: str, result: str) -> None: ...


@dataclass(frozen=True)
class TranscriptEntry:
    """One line of the console log."""

    timestamp: datetime
    direction: str
    text: str

    def render(self) -> list[str]:
        """Render the entry as console lines.

        Continuation lines of a multi-line result carry the same timestamp
        and are marked as received unless they already start with a marker.
        """
        stamp = self.timestamp.strftime("[%H:%M:%S]")
        first, *rest = self.text.splitlines() or [""]
        lines = [f"{stamp} {self.direction} {first}"]
        for line in rest:
            if not line:
                continue
            if line.strip().startswith((SENT, RECEIVED)):
                lines.append(f"{stamp} {line}")
            else:
                lines.append(f"{stamp} {RECEIVED} {line}")
        return lines


class Transcript:
    """Append-only log of commands sent and results received.

    Entries for one command are appended together, so concurrent callers
    never interleave a command with someone else's result.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self._entries: list[TranscriptEntry] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TranscriptEntry]:
        return iter(self.entries)

    @property
    def entries(self) -> tuple[TranscriptEntry, ...]:
        """A snapshot of all entries so far."""
        with self._lock:
            return tuple(self._entries)

    def record(self, command: str, result: str) -> None:
        """Append a sent entry for command and a received entry for result."""
        with self._lock:
            self._entries.append(TranscriptEntry(self._clock(), SENT, command))
            self._entries.append(TranscriptEntry(self._clock(), RECEIVED, result))

    def lines(self) -> list[str]:
        """Render the whole transcript for display."""
        rendered: list[str] = []
        for entry in self.entries:
            rendered.extend(entry.render())
        return rendered
