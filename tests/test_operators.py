"""Tests for operator resolution."""

from rconpanel.operators import resolve_operators
from rconpanel.parsers import PlayerRecord


def _names_marked(players):
    return [p.name for p in players if p.is_op]


class TestRedNameFallback:
    def test_red_name_marked_when_no_ops(self):
        players = [PlayerRecord(name="§cAlice"), PlayerRecord(name="Bob")]

        assert _names_marked(resolve_operators(players, [])) == ["§cAlice"]

    def test_red_anywhere_in_name(self):
        players = [PlayerRecord(name="[Admin] §cCarol§r")]

        assert _names_marked(resolve_operators(players, [])) == ["[Admin] §cCarol§r"]

    def test_uppercase_code_is_not_red(self):
        players = [PlayerRecord(name="§CAlice")]

        assert _names_marked(resolve_operators(players, [])) == []

    def test_fallback_not_used_when_ops_known(self):
        players = [PlayerRecord(name="§cAlice"), PlayerRecord(name="Bob")]

        assert _names_marked(resolve_operators(players, ["Bob"])) == ["Bob"]


class TestOpsListMatching:
    def test_case_insensitive(self):
        players = [PlayerRecord(name="Alice"), PlayerRecord(name="Bob")]

        resolved = resolve_operators(players, ["alice"])

        assert resolved == [
            PlayerRecord(name="Alice", is_op=True),
            PlayerRecord(name="Bob", is_op=False),
        ]

    def test_color_codes_and_whitespace_ignored(self):
        players = [PlayerRecord(name="§a§lAlice§r ")]

        assert _names_marked(resolve_operators(players, ["  ALICE  "])) == ["§a§lAlice§r "]

    def test_afk_flag_kept(self):
        players = [PlayerRecord(name="Alice", afk=True)]

        assert resolve_operators(players, ["Alice"]) == [
            PlayerRecord(name="Alice", is_op=True, afk=True)
        ]


class TestPurity:
    def test_inputs_not_mutated(self):
        players = [PlayerRecord(name="Alice")]
        ops = ["alice"]

        resolve_operators(players, ops)

        assert players == [PlayerRecord(name="Alice")]
        assert ops == ["alice"]

    def test_repeated_calls_identical(self):
        players = [PlayerRecord(name="§cAlice"), PlayerRecord(name="Bob", afk=True)]

        for ops in ([], ["bob"]):
            first = resolve_operators(players, ops)
            assert resolve_operators(players, ops) == first
            assert resolve_operators(first, ops) == first

    def test_empty_players(self):
        assert resolve_operators([], ["alice"]) == []


class TestExistingFlagIgnored:
    def test_stale_flag_cleared_with_ops_list(self):
        players = [PlayerRecord(name="Bob", is_op=True)]

        assert resolve_operators(players, ["alice"]) == [PlayerRecord(name="Bob")]

    def test_stale_flag_cleared_in_fallback(self):
        players = [PlayerRecord(name="Bob", is_op=True)]

        assert resolve_operators(players, []) == [PlayerRecord(name="Bob")]
