"""Shared types for multi-team rating matches."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

TIE = "Tie"


class GameMode(str, Enum):
    """Team-size category with its own rating bucket."""

    SOLO = "solo"
    DUO = "duo"
    TRIO = "trio"
    FOURS = "fours"
    MEGA = "mega"

    @classmethod
    def parse(cls, value: str | GameMode) -> GameMode:
        if isinstance(value, GameMode):
            return value
        normalized = str(value).strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode
        raise ValueError(f"Unknown game mode: {value}")

    @classmethod
    def standard_modes(cls) -> tuple[GameMode, ...]:
        return (cls.SOLO, cls.DUO, cls.TRIO, cls.FOURS)

    @property
    def is_mega(self) -> bool:
        return self is GameMode.MEGA

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


_LOBBY_PREFIXES: tuple[tuple[str, GameMode], ...] = (
    ("MEGA", GameMode.MEGA),
    ("BEDM", GameMode.MEGA),
    ("BEDF", GameMode.FOURS),
    ("BEDT", GameMode.TRIO),
    ("BEDD", GameMode.DUO),
    ("BED", GameMode.SOLO),
)


def detect_mode(
    teams: Mapping[str, Sequence[str]],
    lobby_id: str | None = None,
) -> GameMode | None:
    """Pick a mode from the lobby prefix, falling back to the largest team size."""
    if lobby_id:
        for prefix, mode in _LOBBY_PREFIXES:
            if lobby_id.startswith(prefix):
                return mode

    team_sizes = [len(players) for players in teams.values() if players]
    if not team_sizes:
        return None

    largest = max(team_sizes)
    if largest >= 8:
        return GameMode.MEGA
    if largest == 1:
        return GameMode.SOLO
    if largest == 2:
        return GameMode.DUO
    if largest == 3:
        return GameMode.TRIO
    return GameMode.FOURS


@dataclass(frozen=True)
class PlayerMatchStats:
    """Per-player stat line for one match."""

    kills: int = 0
    deaths: int = 0
    bed_breaks: int = 0
    final_kills: int = 0

    def to_payload(self) -> dict[str, int]:
        return {
            "kills": self.kills,
            "deaths": self.deaths,
            "bed_breaks": self.bed_breaks,
            "final_kills": self.final_kills,
        }

    @classmethod
    def from_payload(cls, raw: Mapping[str, Any]) -> PlayerMatchStats:
        return cls(
            kills=int(raw.get("kills", 0) or 0),
            deaths=int(raw.get("deaths", 0) or 0),
            bed_breaks=int(raw.get("bed_breaks", 0) or 0),
            final_kills=int(raw.get("final_kills", 0) or 0),
        )


@dataclass(frozen=True)
class MatchResult:
    """Canonical completed-match payload consumed by the rating engine and ledger.

    ``timestamp`` is the logical ordering key (unix seconds), not arrival order.
    ``winner`` is a team name or ``TIE``.
    """

    match_id: str
    mode: GameMode
    timestamp: int
    teams: Mapping[str, tuple[str, ...]]
    winner: str | None
    player_stats: Mapping[str, PlayerMatchStats] = field(default_factory=dict)
    lobby_id: str | None = None

    @property
    def is_tie(self) -> bool:
        return self.winner == TIE

    def is_winner(self, team_name: str) -> bool:
        return not self.is_tie and self.winner == team_name

    def player_ids(self) -> list[str]:
        seen: list[str] = []
        for players in self.teams.values():
            for player_id in players:
                if player_id not in seen:
                    seen.append(player_id)
        return seen

    def team_of(self, player_id: str) -> str | None:
        for team_name, players in self.teams.items():
            if player_id in players:
                return team_name
        return None

    def player_won(self, player_id: str) -> bool:
        team_name = self.team_of(player_id)
        return team_name is not None and self.is_winner(team_name)

    def stats_for(self, player_id: str) -> PlayerMatchStats | None:
        return self.player_stats.get(player_id)

    def to_payload(self) -> dict[str, Any]:
        """Raw JSON-compatible payload stored for replay."""
        return {
            "match_id": self.match_id,
            "mode": self.mode.value,
            "unix_time": self.timestamp,
            "lobby_id": self.lobby_id,
            "winner": self.winner,
            "teams": {team: list(players) for team, players in self.teams.items()},
            "player_stats": {
                player_id: stats.to_payload() for player_id, stats in self.player_stats.items()
            },
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], *, match_id: str | None = None) -> MatchResult:
        resolved_id = match_id if match_id is not None else payload.get("match_id")
        if not resolved_id:
            raise ValueError("match payload is missing match_id")

        raw_teams = payload.get("teams") or {}
        teams = {str(team): tuple(str(player) for player in players) for team, players in raw_teams.items()}
        lobby_id = payload.get("lobby_id")

        raw_mode = payload.get("mode")
        if raw_mode:
            mode = GameMode.parse(raw_mode)
        else:
            detected = detect_mode(teams, lobby_id)
            if detected is None:
                raise ValueError(f"match_id={resolved_id} has no teams to detect a mode from")
            mode = detected

        raw_stats = payload.get("player_stats") or {}
        winner = payload.get("winner")

        return cls(
            match_id=str(resolved_id),
            mode=mode,
            timestamp=int(payload.get("unix_time") or payload.get("timestamp") or 0),
            teams=teams,
            winner=None if winner in (None, "") else str(winner),
            player_stats={
                str(player_id): PlayerMatchStats.from_payload(stats)
                for player_id, stats in raw_stats.items()
                if stats is not None
            },
            lobby_id=None if lobby_id is None else str(lobby_id),
        )


def matches_from_payloads(raw: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> list[MatchResult]:
    """Parse a match dump keyed by match id, or a list of payloads, oldest first."""
    if isinstance(raw, Mapping):
        matches = [MatchResult.from_payload(payload, match_id=str(match_id)) for match_id, payload in raw.items()]
    else:
        matches = [MatchResult.from_payload(payload) for payload in raw]
    return sorted(matches, key=lambda match: match.timestamp)


@dataclass(frozen=True)
class RatingDelta:
    """One participant's rating change for a match."""

    player_id: str
    mode: GameMode
    previous_rating: float
    delta: float
    raw_performance: float = 1.0
    performance_score: float = 1.0

    @property
    def new_rating(self) -> float:
        return self.previous_rating + self.delta


@dataclass(frozen=True)
class HistoryEntry:
    """One recorded rating change for a (player, mode, match)."""

    player_id: str
    mode: GameMode
    match_id: str
    timestamp: int
    previous_rating: float
    new_rating: float
    won: bool
    is_tie: bool

    @property
    def delta(self) -> float:
        return self.new_rating - self.previous_rating


@dataclass(frozen=True)
class RecentMatch:
    """Recent-window slot: the match id plus the delta applied to every touched player."""

    match_id: str
    mode: GameMode
    timestamp: int
    deltas: Mapping[str, float]


__all__ = [
    "GameMode",
    "HistoryEntry",
    "MatchResult",
    "PlayerMatchStats",
    "RatingDelta",
    "RecentMatch",
    "TIE",
    "detect_mode",
    "matches_from_payloads",
]
