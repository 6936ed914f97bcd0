"""Read-only breakdowns of stored matches and player rating history."""

from __future__ import annotations

from dataclasses import dataclass

from domain.common import GameMode, HistoryEntry, MatchResult, PlayerMatchStats
from domain.protocol import RatingStore
from domain.ratings.calculator import RatingEngine, calculate_expected_score


class MatchNotFoundError(LookupError):
    def __init__(self, match_id: str) -> None:
        super().__init__(f"No stored payload for match_id={match_id}")
        self.match_id = match_id


@dataclass(frozen=True)
class TeamBreakdown:
    team: str
    player_ids: tuple[str, ...]
    average_rating: float
    outcome: str


@dataclass(frozen=True)
class Matchup:
    """Expected score of ``team`` against one ``opponent``."""

    team: str
    opponent: str
    rating_difference: float
    expected_score: float


@dataclass(frozen=True)
class PlayerBreakdown:
    player_id: str
    team: str
    previous_rating: float
    stats: PlayerMatchStats | None
    raw_performance: float
    performance_score: float
    delta: float
    recorded_delta: float | None

    @property
    def new_rating(self) -> float:
        return self.previous_rating + self.delta


@dataclass(frozen=True)
class MatchAnalysis:
    """Step-by-step view of how one match moves ratings.

    ``previous_rating`` comes from the match's own history entries when they
    exist, so the breakdown reflects the ratings at the time it was played.
    ``recorded_delta`` is ``None`` for players without a history entry.
    """

    match: MatchResult
    k_factor: float
    teams: tuple[TeamBreakdown, ...]
    matchups: tuple[Matchup, ...]
    players: tuple[PlayerBreakdown, ...]
    zero_sum_total: float
    zero_sum_epsilon: float

    @property
    def is_zero_sum(self) -> bool:
        return abs(self.zero_sum_total) <= self.zero_sum_epsilon

    @property
    def from_history(self) -> bool:
        return all(player.recorded_delta is not None for player in self.players)


@dataclass(frozen=True)
class ModeSummary:
    """Aggregate of one player's history in one mode."""

    mode: GameMode
    matches: int
    wins: int
    ties: int
    starting_rating: float
    current_rating: float
    peak_rating: float
    lowest_rating: float

    @property
    def losses(self) -> int:
        return self.matches - self.wins - self.ties

    @property
    def total_change(self) -> float:
        return self.current_rating - self.starting_rating

    @property
    def win_rate(self) -> float:
        return self.wins / self.matches if self.matches else 0.0


def _team_outcome(match: MatchResult, team: str) -> str:
    if match.is_tie:
        return "tied"
    return "winner" if match.is_winner(team) else "loser"


def analyze_match(store: RatingStore, engine: RatingEngine, match_id: str) -> MatchAnalysis:
    """Recompute a stored match against its pre-match ratings."""
    match = store.load_match_payload(match_id)
    if match is None:
        raise MatchNotFoundError(match_id)

    recorded = {entry.player_id: entry for entry in store.history(match_ids=[match_id])}
    ratings: dict[str, float] = {}
    for player_id in match.player_ids():
        entry = recorded.get(player_id)
        if entry is not None:
            ratings[player_id] = entry.previous_rating
            continue
        player = store.get_player(player_id)
        ratings[player_id] = player.rating(match.mode) if player is not None else engine.params.initial_rating

    deltas = engine.compute_deltas(match, ratings)

    teams = {name: players for name, players in match.teams.items() if players}
    averages = {name: engine.team_average_rating(players, ratings) for name, players in teams.items()}
    team_rows = tuple(
        TeamBreakdown(
            team=name,
            player_ids=tuple(players),
            average_rating=averages[name],
            outcome=_team_outcome(match, name),
        )
        for name, players in teams.items()
    )
    matchups = tuple(
        Matchup(
            team=name,
            opponent=opponent,
            rating_difference=averages[opponent] - averages[name],
            expected_score=calculate_expected_score(
                averages[name],
                averages[opponent],
                scale_factor=engine.params.scale_factor,
            ),
        )
        for name in teams
        for opponent in teams
        if opponent != name
    )

    player_rows: list[PlayerBreakdown] = []
    for name, players in teams.items():
        for player_id in players:
            delta = deltas[player_id]
            entry = recorded.get(player_id)
            player_rows.append(
                PlayerBreakdown(
                    player_id=player_id,
                    team=name,
                    previous_rating=delta.previous_rating,
                    stats=match.stats_for(player_id),
                    raw_performance=delta.raw_performance,
                    performance_score=delta.performance_score,
                    delta=delta.delta,
                    recorded_delta=entry.delta if entry is not None else None,
                )
            )

    return MatchAnalysis(
        match=match,
        k_factor=engine.params.for_mode(match.mode).k_factor,
        teams=team_rows,
        matchups=matchups,
        players=tuple(player_rows),
        zero_sum_total=sum(delta.delta for delta in deltas.values()),
        zero_sum_epsilon=engine.params.zero_sum_epsilon,
    )


def summarize_history(entries: list[HistoryEntry]) -> list[ModeSummary]:
    """Per-mode summary of one player's history entries, in mode order."""
    summaries: list[ModeSummary] = []
    for mode in GameMode:
        mode_entries = sorted(
            (entry for entry in entries if entry.mode is mode),
            key=lambda entry: entry.timestamp,
        )
        if not mode_entries:
            continue
        new_ratings = [entry.new_rating for entry in mode_entries]
        summaries.append(
            ModeSummary(
                mode=mode,
                matches=len(mode_entries),
                wins=sum(1 for entry in mode_entries if entry.won),
                ties=sum(1 for entry in mode_entries if entry.is_tie),
                starting_rating=mode_entries[0].previous_rating,
                current_rating=mode_entries[-1].new_rating,
                peak_rating=max(new_ratings),
                lowest_rating=min(new_ratings),
            )
        )
    return summaries


def player_history(
    store: RatingStore,
    player_id: str,
    mode: GameMode | None = None,
) -> tuple[list[HistoryEntry], list[ModeSummary]]:
    """History entries (oldest first) and per-mode summaries for one player."""
    entries = store.history(player_id=player_id, mode=mode)
    return entries, summarize_history(entries)


__all__ = [
    "MatchAnalysis",
    "MatchNotFoundError",
    "Matchup",
    "ModeSummary",
    "PlayerBreakdown",
    "TeamBreakdown",
    "analyze_match",
    "player_history",
    "summarize_history",
]
