"""Tests for match payloads and mode detection."""

from __future__ import annotations

import pytest

from domain.common import TIE, GameMode, MatchResult, PlayerMatchStats, detect_mode, matches_from_payloads


def test_game_mode_parse_is_case_insensitive() -> None:
    assert GameMode.parse("Mega") is GameMode.MEGA
    assert GameMode.parse(" duo ") is GameMode.DUO
    with pytest.raises(ValueError, match="Unknown game mode"):
        GameMode.parse("quads")


@pytest.mark.parametrize(
    ("lobby_id", "expected"),
    [
        ("MEGA12", GameMode.MEGA),
        ("BEDM3", GameMode.MEGA),
        ("BEDF1", GameMode.FOURS),
        ("BEDT9", GameMode.TRIO),
        ("BEDD2", GameMode.DUO),
        ("BED7", GameMode.SOLO),
    ],
)
def test_detect_mode_prefers_lobby_prefix(lobby_id: str, expected: GameMode) -> None:
    teams = {"red": ("a", "b", "c", "d")}
    assert detect_mode(teams, lobby_id) is expected


def test_detect_mode_falls_back_to_largest_team() -> None:
    assert detect_mode({"red": ("a",), "blue": ("b",)}) is GameMode.SOLO
    assert detect_mode({"red": ("a", "b"), "blue": ("c",)}) is GameMode.DUO
    assert detect_mode({"red": ("a", "b", "c")}) is GameMode.TRIO
    assert detect_mode({"red": tuple("abcde")}) is GameMode.FOURS
    assert detect_mode({"red": tuple("abcdefgh")}) is GameMode.MEGA
    assert detect_mode({"red": ()}) is None


def test_match_payload_round_trip() -> None:
    match = MatchResult(
        match_id="m1",
        mode=GameMode.DUO,
        timestamp=1_700_000_000,
        teams={"red": ("a", "b"), "blue": ("c", "d")},
        winner=TIE,
        player_stats={"a": PlayerMatchStats(kills=2, deaths=1, bed_breaks=1, final_kills=1)},
        lobby_id="BEDD1",
    )
    assert MatchResult.from_payload(match.to_payload()) == match
    assert match.is_tie
    assert not match.player_won("a")


def test_from_payload_detects_mode_and_normalizes_fields() -> None:
    match = MatchResult.from_payload(
        {
            "unix_time": 1_700_000_100,
            "winner": "blue",
            "teams": {"red": ["a"], "blue": ["b"]},
            "player_stats": {"b": {"kills": 3, "bed_breaks": 1}, "a": None},
        },
        match_id="abc",
    )
    assert match.match_id == "abc"
    assert match.mode is GameMode.SOLO
    assert match.player_won("b")
    assert match.team_of("a") == "red"
    assert match.stats_for("b") == PlayerMatchStats(kills=3, bed_breaks=1)
    assert match.stats_for("a") is None


def test_from_payload_requires_match_id() -> None:
    with pytest.raises(ValueError, match="missing match_id"):
        MatchResult.from_payload({"teams": {"red": ["a"]}})


def test_matches_from_payloads_sorts_by_timestamp() -> None:
    matches = matches_from_payloads(
        {
            "late": {"unix_time": 200, "winner": "red", "teams": {"red": ["a"], "blue": ["b"]}},
            "early": {"unix_time": 100, "winner": "blue", "teams": {"red": ["a"], "blue": ["b"]}},
        }
    )
    assert [match.match_id for match in matches] == ["early", "late"]
