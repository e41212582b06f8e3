"""Source RCON wire protocol encoding and decoding."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING

from rconpanel.errors import ConnectivityError, ProtocolError, RconTimeoutError

if TYPE_CHECKING:
    import socket

log = logging.getLogger(__name__)


class PacketType(IntEnum):
    """RCON packet types."""

    RESPONSE = 0
    COMMAND = 2
    AUTH = 3


LENGTH_SIZE = 4
# request_id + type + two terminating nulls
MIN_PACKET_LENGTH = 10


@dataclass(frozen=True)
class Packet:
    """A single RCON packet.

    Wire format: [length:i32][request_id:i32][type:i32][payload\\0\\0]
    Length covers everything after itself (req_id + type + payload + 2 nulls).
    """

    request_id: int
    packet_type: int
    payload: bytes = b""

    @property
    def text(self) -> str:
        """The payload decoded as UTF-8, with undecodable bytes replaced."""
        return self.payload.decode("utf-8", errors="replace")

    def encode(self) -> bytes:
        """Encode the packet into bytes for transmission."""
        body = self.payload + b"\x00\x00"
        return struct.pack(
            f"<iii{len(body)}s",
            4 + 4 + len(body),
            self.request_id,
            self.packet_type,
            body,
        )

    @classmethod
    def decode(cls, data: bytes) -> Packet:
        """Decode a packet from raw bytes (excluding the 4-byte length prefix).

        The two trailing bytes are dropped without checking that they are
        nulls; some servers pad differently and are still accepted.
        """
        if len(data) < MIN_PACKET_LENGTH:
            msg = f"Packet too short: {len(data)} bytes"
            raise ProtocolError(msg)
        request_id, packet_type = struct.unpack_from("<ii", data, 0)
        return cls(
            request_id=request_id,
            packet_type=packet_type,
            payload=bytes(data[8:-2]),
        )


def read_packet(sock: socket.socket) -> Packet | None:
    """Read one framed packet from a connected socket.

    Returns None if the server closed the stream before sending any byte of
    a new packet. Only a single packet is read; responses split across
    several packets are not reassembled.

    Raises:
        ConnectivityError: The length header was cut short or the
            connection failed.
        ProtocolError: The declared length is below the minimum or the
            body ended early.
        RconTimeoutError: Nothing arrived within the socket timeout.
    """
    header = _recv_exact(sock, LENGTH_SIZE)
    if not header:
        log.debug("Stream closed before a reply arrived")
        return None
    if len(header) < LENGTH_SIZE:
        msg = f"Connection closed inside packet header ({len(header)} bytes)"
        raise ConnectivityError(msg)

    (length,) = struct.unpack("<i", header)
    if length < MIN_PACKET_LENGTH:
        msg = f"Declared packet length {length} is below {MIN_PACKET_LENGTH}"
        raise ProtocolError(msg)

    body = _recv_exact(sock, length)
    if len(body) < length:
        msg = f"Short packet body: expected {length} bytes, got {len(body)}"
        raise ProtocolError(msg)

    packet = Packet.decode(body)
    log.debug(
        "Received packet id=%d type=%d (%d payload bytes)",
        packet.request_id,
        packet.packet_type,
        len(packet.payload),
    )
    return packet


def _recv_exact(sock: socket.socket, num_bytes: int) -> bytes:
    """Read up to num_bytes, stopping early only if the peer closes."""
    data = bytearray()
    while len(data) < num_bytes:
        try:
            chunk = sock.recv(num_bytes - len(data))
        except TimeoutError as e:
            msg = "Timed out waiting for the server to respond"
            raise RconTimeoutError(msg) from e
        except OSError as e:
            msg = f"Connection lost: {e}"
            raise ConnectivityError(msg) from e

        if not chunk:
            break
        data.extend(chunk)

    return bytes(data)
