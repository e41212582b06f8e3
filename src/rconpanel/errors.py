"""Exceptions raised while talking to an RCON server."""

from __future__ import annotations


class RconError(Exception):
    """Base exception for RCON errors."""


class ConnectivityError(RconError):
    """Raised when the socket cannot be opened or the connection drops."""

    @classmethod
    def from_os_error(cls, err: OSError) -> ConnectivityError:
        """Build the error from a failed connect, keeping the OS description."""
        description = err.strerror or str(err) or type(err).__name__
        return cls(f"Cannot connect: {description} ({err.errno})")


class ProtocolError(RconError):
    """Raised when a packet on the wire is malformed."""


class AuthenticationError(RconError):
    """Raised when the server rejects the password or never answers it."""

    def __init__(self, msg: str = "Authentication failed.") -> None:
        super().__init__(msg)


class RconTimeoutError(RconError):
    """Raised when the server sends nothing within the read window."""
