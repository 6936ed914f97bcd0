"""Shared protocols and enums for the rating core."""

from __future__ import annotations

from collections.abc import Collection, Sequence
from enum import Enum
from typing import Protocol, runtime_checkable

from domain.common import GameMode, HistoryEntry, MatchResult, RecentMatch
from domain.player import Player


class BalancePolicy(str, Enum):
    """Which rating the team balancer sorts and sums on."""

    MODE = "mode"
    GLOBAL = "global"
    WEIGHTED = "weighted"


@runtime_checkable
class RatingStore(Protocol):
    """Repository contract every component reads and writes rating state through."""

    def get_player(self, player_id: str) -> Player | None: ...

    def save_player(self, player: Player) -> None: ...

    def players(self) -> list[Player]: ...

    def append_history(self, entries: Sequence[HistoryEntry]) -> None: ...

    def history(
        self,
        *,
        player_id: str | None = None,
        mode: GameMode | None = None,
        match_ids: Collection[str] | None = None,
    ) -> list[HistoryEntry]: ...

    def delete_history(self, match_ids: Collection[str]) -> int: ...

    def save_match_payload(self, match: MatchResult) -> None: ...

    def load_match_payload(self, match_id: str) -> MatchResult | None: ...

    def processed_match_ids(self) -> set[str]: ...

    def forget_match(self, match_id: str) -> None: ...

    def blacklisted_match_ids(self) -> set[str]: ...

    def blacklist_match(self, match_id: str) -> None: ...

    def load_recent_window(self) -> list[RecentMatch]: ...

    def save_recent_window(self, window: Sequence[RecentMatch]) -> None: ...

    def clear(self) -> None: ...


__all__ = ["BalancePolicy", "RatingStore"]
