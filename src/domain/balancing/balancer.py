"""Two-team balancing with bracket shuffling and an expanding difference threshold."""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from domain.common import GameMode
from domain.player import Player
from domain.protocol import BalancePolicy
from domain.ratings.config import BalancerParameters

logger = logging.getLogger(__name__)

RatingSelector = Callable[[Player], float]


def rating_selector(
    policy: BalancePolicy,
    mode: GameMode | None = None,
    mega_weight: float = 2.0,
) -> RatingSelector:
    """Return the rating lookup a balance policy sorts and sums on."""
    if policy is BalancePolicy.MODE:
        selected_mode = mode or GameMode.MEGA
        return lambda player: player.rating(selected_mode)
    if policy is BalancePolicy.GLOBAL:
        return lambda player: player.global_rating()
    if policy is BalancePolicy.WEIGHTED:
        return lambda player: player.balancing_rating(mega_weight)
    raise ValueError(f"Unsupported balance policy: {policy}")


@dataclass(frozen=True)
class BalanceResult:
    team_a: tuple[Player, ...]
    team_b: tuple[Player, ...]
    total_a: float
    total_b: float
    difference: float
    attempts: int
    within_threshold: bool

    @property
    def average_a(self) -> float:
        return self.total_a / len(self.team_a) if self.team_a else 0.0

    @property
    def average_b(self) -> float:
        return self.total_b / len(self.team_b) if self.team_b else 0.0


class TeamBalancer:
    """Splits a lobby into two teams whose sizes differ by at most one."""

    def __init__(
        self,
        params: BalancerParameters | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.params = params or BalancerParameters()
        self.rng = rng or random.Random()

    def balance(
        self,
        players: Sequence[Player],
        policy: BalancePolicy = BalancePolicy.MODE,
        mode: GameMode | None = None,
    ) -> BalanceResult:
        selector = rating_selector(policy, mode, self.params.mega_weight)
        return self.balance_with(players, selector)

    def balance_with(self, players: Sequence[Player], selector: RatingSelector) -> BalanceResult:
        if len(players) < 2:
            raise ValueError("Need at least 2 players to balance teams")

        ratings = {id(player): selector(player) for player in players}
        team_size = len(players) // 2
        max_difference = self.params.target_difference

        result: BalanceResult | None = None
        for attempt in range(1, self.params.max_attempts + 1):
            ordered = self._bracket_shuffle(players, ratings)
            team_a, team_b, total_a, total_b = _greedy_assign(ordered, ratings)
            difference = abs(total_a - total_b)
            within_threshold = difference <= max_difference * team_size
            result = BalanceResult(
                team_a=tuple(team_a),
                team_b=tuple(team_b),
                total_a=total_a,
                total_b=total_b,
                difference=difference,
                attempts=attempt,
                within_threshold=within_threshold,
            )
            if within_threshold:
                return result
            max_difference += self.params.threshold_increment

        logger.info(
            "no split within threshold after %d attempts; keeping difference=%.1f",
            self.params.max_attempts,
            result.difference,
        )
        return result

    def _bracket_shuffle(self, players: Sequence[Player], ratings: dict[int, float]) -> list[Player]:
        ordered = sorted(players, key=lambda player: ratings[id(player)], reverse=True)
        start = 0
        while start < len(ordered):
            bracket_start = ratings[id(ordered[start])]
            end = start + 1
            while (
                end < len(ordered)
                and abs(ratings[id(ordered[end])] - bracket_start) < self.params.bracket_size
            ):
                end += 1
            if end - start > 1:
                bracket = ordered[start:end]
                self.rng.shuffle(bracket)
                ordered[start:end] = bracket
            start = end
        return ordered


def _greedy_assign(
    ordered: Sequence[Player],
    ratings: dict[int, float],
) -> tuple[list[Player], list[Player], float, float]:
    cap = math.ceil(len(ordered) / 2)
    team_a: list[Player] = []
    team_b: list[Player] = []
    total_a = 0.0
    total_b = 0.0
    for player in ordered:
        rating = ratings[id(player)]
        if len(team_a) >= cap:
            put_in_a = False
        elif len(team_b) >= cap:
            put_in_a = True
        else:
            put_in_a = total_a <= total_b
        if put_in_a:
            team_a.append(player)
            total_a += rating
        else:
            team_b.append(player)
            total_b += rating
    return team_a, team_b, total_a, total_b


__all__ = ["BalanceResult", "RatingSelector", "TeamBalancer", "rating_selector"]
