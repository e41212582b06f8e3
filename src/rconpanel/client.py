"""One-shot RCON sessions: connect, authenticate, run a command, close."""

from __future__ import annotations

import contextlib
import enum
import functools
import logging
import random
import socket
from typing import TYPE_CHECKING, Protocol

from rconpanel.errors import (
    AuthenticationError,
    ConnectivityError,
    RconError,
    RconTimeoutError,
)
from rconpanel.protocol import Packet, PacketType, read_packet

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType
    from typing import Any

    from rconpanel.transcript import TranscriptSink

log = logging.getLogger(__name__)

DEFAULT_PORT = 25575
DEFAULT_TIMEOUT = 3.0
REQUEST_ID_RANGE = (1, 100_000)
AUTH_FAILED_ID = -1


class RandomSource(Protocol):
    """The part of random.Random used to draw request ids."""

    def randint(self, a: int, b: int) -> int: ...


class SessionState(enum.Enum):
    """Lifecycle of a session. CLOSED is reached on every path."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    READY = "ready"
    EXECUTING = "executing"
    CLOSED = "closed"


def _requires(*states: SessionState) -> Callable[[Any], Any]:
    """Decorator rejecting calls unless the session is in one of states."""

    def decorator(method: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(method)
        def wrapper(self: RconSession, *args: Any, **kwargs: Any) -> Any:
            if self.state not in states:
                expected = " or ".join(s.value for s in states)
                msg = (
                    f"Cannot {method.__name__} while {self.state.value}"
                    f" (must be {expected})"
                )
                raise RconError(msg)
            return method(self, *args, **kwargs)

        return wrapper

    return decorator


class RconSession:
    """A single TCP connection to an RCON server, used for one command.

    Every blocking call is bounded by ``timeout`` seconds. The connection is
    closed after authentication fails and after ``execute`` returns or
    raises, so a session is never reused.
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        rng: RandomSource | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self.state = SessionState.DISCONNECTED
        self._rng = rng if rng is not None else random.Random()  # noqa: S311
        self._sock: socket.socket | None = None

    def __enter__(self) -> RconSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def connected(self) -> bool:
        """Whether the session holds an open socket."""
        return self._sock is not None

    @_requires(SessionState.DISCONNECTED)
    def connect(self) -> None:
        """Open the TCP connection and apply the read timeout."""
        self.state = SessionState.CONNECTING
        log.debug("Connecting to %s:%d", self.host, self.port)
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(self.timeout)
        try:
            sock.connect((self.host, self.port))
        except TimeoutError as e:
            sock.close()
            self.state = SessionState.CLOSED
            msg = f"Timed out connecting to {self.host}:{self.port}"
            raise RconTimeoutError(msg) from e
        except OSError as e:
            sock.close()
            self.state = SessionState.CLOSED
            raise ConnectivityError.from_os_error(e) from e
        except (OverflowError, ValueError) as e:
            # Port outside 0-65535 or an unusable host string
            sock.close()
            self.state = SessionState.CLOSED
            msg = f"Cannot connect: {e}"
            raise ConnectivityError(msg) from e
        self._sock = sock
        self.state = SessionState.AUTHENTICATING

    @_requires(SessionState.AUTHENTICATING)
    def authenticate(self, password: str) -> None:
        """Log in with the RCON password.

        Raises:
            AuthenticationError: The server echoed id -1 or closed the
                stream without answering. The connection is closed.
        """
        request_id = self._next_request_id()
        try:
            self._send(Packet(request_id, PacketType.AUTH, password.encode("utf-8")))
            response = read_packet(self._socket())
        except RconError:
            self.close()
            raise

        if response is None or response.request_id == AUTH_FAILED_ID:
            log.debug(
                "Authentication rejected by %s:%d (%s)",
                self.host,
                self.port,
                "no reply" if response is None else "id -1",
            )
            self.close()
            raise AuthenticationError
        self.state = SessionState.READY

    @_requires(SessionState.READY)
    def execute(self, command: str) -> str:
        """Send a command and return the body of the single reply packet.

        A server that closes the stream without replying yields an empty
        string. The connection is closed afterwards in every case.
        """
        self.state = SessionState.EXECUTING
        request_id = self._next_request_id()
        try:
            self._send(
                Packet(request_id, PacketType.COMMAND, command.encode("utf-8"))
            )
            response = read_packet(self._socket())
        finally:
            self.close()

        if response is None:
            log.debug("No reply to %r", command)
            return ""
        return response.text

    def close(self) -> None:
        """Close the TCP connection. Safe to call more than once."""
        if self._sock is not None:
            with contextlib.suppress(OSError):
                self._sock.close()
            self._sock = None
        self.state = SessionState.CLOSED

    def _next_request_id(self) -> int:
        return self._rng.randint(*REQUEST_ID_RANGE)

    def _socket(self) -> socket.socket:
        if self._sock is None:
            msg = "Not connected"
            raise ConnectivityError(msg)
        return self._sock

    def _send(self, packet: Packet) -> None:
        """Send an encoded packet over the socket."""
        log.debug(
            "Sending packet id=%d type=%d", packet.request_id, packet.packet_type
        )
        try:
            self._socket().sendall(packet.encode())
        except TimeoutError as e:
            msg = "Timed out sending data"
            raise RconTimeoutError(msg) from e
        except OSError as e:
            msg = f"Failed to send data: {e}"
            raise ConnectivityError(msg) from e


def run_command(  # noqa: PLR0913
    host: str,
    port: int,
    password: str,
    command: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    rng: RandomSource | None = None,
) -> str:
    """Connect, authenticate, run one command and return its result.

    Raises the typed RconError subclasses; see ``query`` for the variant
    that reports failures as text.
    """
    with RconSession(host, port, timeout=timeout, rng=rng) as session:
        session.connect()
        session.authenticate(password)
        return session.execute(command)


def query(  # noqa: PLR0913
    host: str,
    port: int,
    password: str,
    command: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    rng: RandomSource | None = None,
    transcript: TranscriptSink | None = None,
) -> str:
    """Run one command and return its result or a description of the failure.

    Never raises RconError. If a transcript is given, the command and the
    returned text are recorded in it.
    """
    try:
        result = run_command(
            host, port, password, command, timeout=timeout, rng=rng
        )
    except RconError as e:
        log.debug("Command %r failed: %s", command, e)
        result = str(e)

    if transcript is not None:
        transcript.record(command, result)
    return result
