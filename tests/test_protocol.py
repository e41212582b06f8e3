"""Tests for the RCON wire protocol."""

import struct
from unittest.mock import MagicMock

import pytest

from rconpanel.errors import ConnectivityError, ProtocolError, RconTimeoutError
from rconpanel.protocol import Packet, PacketType, read_packet


def _stream(data: bytes, chunk_size: int = 1024) -> MagicMock:
    """A mock socket whose recv hands out data in chunks, then EOF."""
    offset = 0

    def mock_recv(num_bytes):
        nonlocal offset
        chunk = data[offset : offset + min(num_bytes, chunk_size)]
        offset += len(chunk)
        return chunk

    sock = MagicMock()
    sock.recv.side_effect = mock_recv
    return sock


class TestPacketEncode:
    def test_auth_packet_bytes(self):
        packet = Packet(request_id=7, packet_type=PacketType.AUTH, payload=b"pw")

        assert packet.encode() == struct.pack("<iii", 12, 7, 3) + b"pw\x00\x00"

    def test_length_field(self):
        packet = Packet(request_id=42, packet_type=PacketType.COMMAND, payload=b"list")
        data = packet.encode()

        length = struct.unpack_from("<i", data, 0)[0]
        assert length == 4 + 4 + 4 + 2
        assert len(data) == 4 + length

    def test_empty_payload(self):
        data = Packet(request_id=1, packet_type=PacketType.COMMAND).encode()

        assert struct.unpack_from("<i", data, 0)[0] == 10
        assert data[-2:] == b"\x00\x00"

    def test_negative_request_id(self):
        data = Packet(request_id=-1, packet_type=PacketType.COMMAND).encode()

        assert struct.unpack_from("<i", data, 4)[0] == -1


class TestPacketDecode:
    def test_decode_response(self):
        payload = "There are 3 of a max of 20 players online: A, B, C"
        body = struct.pack("<ii", 1, PacketType.RESPONSE) + payload.encode() + b"\x00\x00"

        packet = Packet.decode(body)

        assert packet.request_id == 1
        assert packet.packet_type == PacketType.RESPONSE
        assert packet.text == payload

    def test_decode_auth_failure(self):
        body = struct.pack("<ii", -1, PacketType.COMMAND) + b"\x00\x00"

        assert Packet.decode(body).request_id == -1

    def test_trailing_bytes_stripped_without_checking(self):
        body = struct.pack("<ii", 3, 0) + b"hello!?"

        assert Packet.decode(body).payload == b"hello"

    def test_unknown_type_accepted(self):
        body = struct.pack("<ii", 3, 99) + b"\x00\x00"

        assert Packet.decode(body).packet_type == 99

    @pytest.mark.parametrize("size", [0, 4, 8, 9])
    def test_too_short(self, size):
        with pytest.raises(ProtocolError):
            Packet.decode(b"\x00" * size)

    def test_invalid_utf8_replaced(self):
        body = struct.pack("<ii", 1, 0) + b"\xff\x00\x00"

        assert Packet.decode(body).text == "\ufffd"


class TestPacketRoundTrip:
    def test_roundtrip(self):
        original = Packet(
            request_id=7,
            packet_type=PacketType.COMMAND,
            payload=b"gamemode creative Steve",
        )

        assert Packet.decode(original.encode()[4:]) == original

    def test_roundtrip_color_codes(self):
        original = Packet(
            request_id=100000,
            packet_type=PacketType.AUTH,
            payload="§cAlice says héllo".encode(),
        )

        decoded = Packet.decode(original.encode()[4:])
        assert decoded == original
        assert decoded.text == "§cAlice says héllo"


class TestReadPacket:
    def test_reads_one_packet(self):
        first = Packet(5, PacketType.RESPONSE, b"first").encode()
        second = Packet(6, PacketType.RESPONSE, b"second").encode()
        sock = _stream(first + second)

        packet = read_packet(sock)

        assert packet == Packet(5, PacketType.RESPONSE, b"first")

    def test_partial_reads(self):
        sock = _stream(Packet(5, 0, b"chunked reply").encode(), chunk_size=3)

        assert read_packet(sock).payload == b"chunked reply"

    def test_eof_before_reply(self):
        assert read_packet(_stream(b"")) is None

    def test_truncated_header(self):
        with pytest.raises(ConnectivityError):
            read_packet(_stream(b"\x0a\x00"))

    @pytest.mark.parametrize("length", [-1, 0, 9])
    def test_declared_length_too_small(self, length):
        data = struct.pack("<i", length) + b"\x00" * 16

        with pytest.raises(ProtocolError, match="below 10"):
            read_packet(_stream(data))

    def test_truncated_body(self):
        data = Packet(5, 0, b"cut off here").encode()[:-5]

        with pytest.raises(ProtocolError, match="Short packet body"):
            read_packet(_stream(data))

    def test_timeout(self):
        sock = MagicMock()
        sock.recv.side_effect = TimeoutError("timed out")

        with pytest.raises(RconTimeoutError):
            read_packet(sock)

    def test_connection_reset(self):
        sock = MagicMock()
        sock.recv.side_effect = ConnectionResetError(104, "Connection reset by peer")

        with pytest.raises(ConnectivityError, match="Connection lost"):
            read_packet(sock)
