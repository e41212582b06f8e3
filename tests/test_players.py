"""Tests for fetching players with operator flags."""

from unittest.mock import patch

import pytest

from rconpanel.errors import AuthenticationError, RconTimeoutError
from rconpanel.parsers import PlayerRecord
from rconpanel.players import fetch_players, player_names


def _fake_server(replies):
    def run_command(host, port, password, command, **kwargs):
        return replies[command]

    return run_command


class TestFetchPlayers:
    @patch("rconpanel.players.run_command")
    def test_ops_list_used(self, mock_run):
        mock_run.side_effect = _fake_server(
            {
                "list": "There are 2 of a max of 20 players online: Alice, Bob [AFK]",
                "ops": "There are 1 ops: alice",
            }
        )

        players = fetch_players("localhost", 25575, "pw", timeout=1.5)

        assert players == [
            PlayerRecord(name="Alice", is_op=True),
            PlayerRecord(name="Bob", afk=True),
        ]
        commands = [call.args[3] for call in mock_run.call_args_list]
        assert commands == ["list", "ops"]
        assert all(call.kwargs["timeout"] == 1.5 for call in mock_run.call_args_list)

    @patch("rconpanel.players.run_command")
    def test_red_fallback_without_ops_command(self, mock_run):
        mock_run.side_effect = _fake_server(
            {
                "list": "Online: §cAlice§r, Bob",
                "ops": "Unknown or incomplete command, see below for error",
            }
        )

        players = fetch_players("localhost", 25575, "pw")

        assert [p.name for p in players if p.is_op] == ["§cAlice§r"]

    @patch("rconpanel.players.run_command")
    def test_failed_ops_falls_back_to_red_names(self, mock_run):
        def run_command(host, port, password, command, **kwargs):
            if command == "ops":
                raise RconTimeoutError("Timed out waiting for the server to respond")
            return "Online: §cAlice, Bob"

        mock_run.side_effect = run_command

        players = fetch_players("localhost", 25575, "pw")

        assert players == [
            PlayerRecord(name="§cAlice", is_op=True),
            PlayerRecord(name="Bob"),
        ]

    @patch("rconpanel.players.run_command")
    def test_errors_propagate(self, mock_run):
        mock_run.side_effect = AuthenticationError()

        with pytest.raises(AuthenticationError):
            fetch_players("localhost", 25575, "bad")


def test_player_names():
    players = [PlayerRecord(name="§cAlice§r"), PlayerRecord(name="Bob", afk=True)]

    assert player_names(players) == ["Alice", "Bob"]
