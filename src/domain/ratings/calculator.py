"""Zero-sum, performance-adjusted multi-team rating logic."""

from __future__ import annotations

from collections.abc import Mapping

from domain.common import MatchResult, PlayerMatchStats, RatingDelta
from domain.ratings.config import ModeParameters, RatingParameters


def calculate_expected_score(rating: float, opponent_rating: float, scale_factor: float = 400.0) -> float:
    """Compute the Elo expected score for one side."""
    return 1.0 / (1.0 + 10.0 ** ((opponent_rating - rating) / scale_factor))


def kd_transform(kd_ratio: float) -> float:
    """Symmetric K/D transform around 1.0: 2.0 -> +1.0, 0.5 -> -1.0."""
    if kd_ratio >= 1.0:
        return kd_ratio - 1.0
    return -(1.0 / kd_ratio - 1.0)


class RatingEngine:
    """Stateless calculator turning a match and current ratings into per-player deltas."""

    def __init__(self, params: RatingParameters | None = None) -> None:
        self.params = params or RatingParameters()

    def kd_ratio(self, kills: int, deaths: int) -> float:
        ratio = (kills + 1.0) / (deaths + 1.0)
        return max(self.params.kd_min, min(ratio, self.params.kd_cap))

    def performance_score(self, stats: PlayerMatchStats | None, mode_params: ModeParameters) -> float:
        """Raw performance multiplier, clamped to the configured bounds."""
        if stats is None:
            return 1.0

        score = 1.0
        score += mode_params.weight_bed_breaks * stats.bed_breaks
        score += mode_params.weight_kd * kd_transform(self.kd_ratio(stats.kills, stats.deaths))
        score += mode_params.weight_final_kills * min(stats.final_kills, mode_params.final_kill_cap)
        return max(
            self.params.min_performance_multiplier,
            min(score, self.params.max_performance_multiplier),
        )

    def team_average_rating(self, players: tuple[str, ...], ratings: Mapping[str, float]) -> float:
        if not players:
            return self.params.initial_rating
        return sum(ratings.get(player_id, self.params.initial_rating) for player_id in players) / len(players)

    def compute_deltas(
        self,
        match: MatchResult,
        ratings: Mapping[str, float],
    ) -> dict[str, RatingDelta]:
        """Return one zero-sum delta per participant.

        ``ratings`` holds each participant's current rating in ``match.mode``;
        missing players start at the initial rating. A match with a single team
        has nothing to compare against and yields all-zero deltas.
        """
        mode_params = self.params.for_mode(match.mode)
        teams = {name: players for name, players in match.teams.items() if players}

        raw_scores: dict[str, float] = {}
        for players in teams.values():
            for player_id in players:
                raw_scores[player_id] = self.performance_score(match.stats_for(player_id), mode_params)

        if not raw_scores:
            return {}

        mean_score = sum(raw_scores.values()) / len(raw_scores)
        normalized = {player_id: score / mean_score for player_id, score in raw_scores.items()}

        totals = {player_id: 0.0 for player_id in raw_scores}
        num_opponents = len(teams) - 1

        if num_opponents > 0:
            averages = {name: self.team_average_rating(players, ratings) for name, players in teams.items()}
            for team_name, players in teams.items():
                if match.is_tie:
                    actual = 0.5
                else:
                    actual = 1.0 if match.is_winner(team_name) else 0.0

                for opponent_name in teams:
                    if opponent_name == team_name:
                        continue
                    expected = calculate_expected_score(
                        rating=averages[team_name],
                        opponent_rating=averages[opponent_name],
                        scale_factor=self.params.scale_factor,
                    )
                    score_diff = actual - expected
                    for player_id in players:
                        # Strong performance amplifies gains and dampens losses.
                        if score_diff >= 0:
                            multiplier = normalized[player_id]
                        else:
                            multiplier = 1.0 / normalized[player_id]
                        totals[player_id] += (
                            mode_params.k_factor * score_diff * multiplier / num_opponents
                        )

            drift = sum(totals.values())
            if abs(drift) > self.params.zero_sum_epsilon:
                correction = drift / len(totals)
                totals = {player_id: delta - correction for player_id, delta in totals.items()}

        return {
            player_id: RatingDelta(
                player_id=player_id,
                mode=match.mode,
                previous_rating=ratings.get(player_id, self.params.initial_rating),
                delta=delta,
                raw_performance=raw_scores[player_id],
                performance_score=normalized[player_id],
            )
            for player_id, delta in totals.items()
        }


__all__ = ["RatingEngine", "calculate_expected_score", "kd_transform"]
