"""Shared match fixtures."""

from __future__ import annotations

import pytest

from domain.common import GameMode, MatchResult, PlayerMatchStats


def make_match(
    match_id: str,
    timestamp: int,
    teams: dict[str, list[str]],
    winner: str,
    *,
    mode: GameMode,
    stats: dict[str, PlayerMatchStats] | None = None,
) -> MatchResult:
    return MatchResult(
        match_id=match_id,
        mode=mode,
        timestamp=timestamp,
        teams={name: tuple(players) for name, players in teams.items()},
        winner=winner,
        player_stats=stats or {},
    )


@pytest.fixture
def five_matches() -> list[MatchResult]:
    """M1..M5 across solo and duo for players A-D; D only plays M1 and M2."""
    return [
        make_match(
            "M1",
            100,
            {"red": ["A"], "blue": ["B"], "green": ["C"], "yellow": ["D"]},
            "red",
            mode=GameMode.SOLO,
            stats={
                "A": PlayerMatchStats(kills=3, deaths=0, bed_breaks=1, final_kills=1),
                "B": PlayerMatchStats(kills=1, deaths=1),
                "C": PlayerMatchStats(deaths=2),
                "D": PlayerMatchStats(deaths=1),
            },
        ),
        make_match(
            "M2",
            200,
            {"red": ["A", "B"], "blue": ["C", "D"]},
            "blue",
            mode=GameMode.DUO,
            stats={"C": PlayerMatchStats(kills=2, bed_breaks=1)},
        ),
        make_match(
            "M3",
            300,
            {"red": ["A"], "blue": ["B"]},
            "red",
            mode=GameMode.SOLO,
            stats={
                "A": PlayerMatchStats(kills=2, deaths=1, bed_breaks=1),
                "B": PlayerMatchStats(kills=1, deaths=2),
            },
        ),
        make_match(
            "M4",
            400,
            {"red": ["A", "C"], "blue": ["B"]},
            "blue",
            mode=GameMode.DUO,
            stats={"B": PlayerMatchStats(kills=2, bed_breaks=2)},
        ),
        make_match(
            "M5",
            500,
            {"red": ["B"], "blue": ["C"]},
            "blue",
            mode=GameMode.SOLO,
            stats={
                "B": PlayerMatchStats(deaths=2),
                "C": PlayerMatchStats(kills=2, bed_breaks=1),
            },
        ),
    ]
