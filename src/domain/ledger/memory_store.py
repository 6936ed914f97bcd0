"""In-memory implementation of the rating store."""

from __future__ import annotations

from collections.abc import Collection, Sequence
from copy import deepcopy

from domain.common import GameMode, HistoryEntry, MatchResult, RecentMatch
from domain.player import Player


class InMemoryRatingStore:
    """Dict-backed store; players are copied on read and write like a real repository."""

    def __init__(self) -> None:
        self._players: dict[str, Player] = {}
        self._history: list[HistoryEntry] = []
        self._payloads: dict[str, MatchResult] = {}
        self._blacklist: set[str] = set()
        self._recent: list[RecentMatch] = []

    def get_player(self, player_id: str) -> Player | None:
        player = self._players.get(player_id)
        return None if player is None else deepcopy(player)

    def save_player(self, player: Player) -> None:
        self._players[player.player_id] = deepcopy(player)

    def players(self) -> list[Player]:
        return [deepcopy(player) for player in self._players.values()]

    def append_history(self, entries: Sequence[HistoryEntry]) -> None:
        self._history.extend(entries)

    def history(
        self,
        *,
        player_id: str | None = None,
        mode: GameMode | None = None,
        match_ids: Collection[str] | None = None,
    ) -> list[HistoryEntry]:
        selected = [
            entry
            for entry in self._history
            if (player_id is None or entry.player_id == player_id)
            and (mode is None or entry.mode == mode)
            and (match_ids is None or entry.match_id in match_ids)
        ]
        # Stable sort keeps insertion order for equal timestamps.
        return sorted(selected, key=lambda entry: entry.timestamp)

    def delete_history(self, match_ids: Collection[str]) -> int:
        before = len(self._history)
        self._history = [entry for entry in self._history if entry.match_id not in match_ids]
        return before - len(self._history)

    def save_match_payload(self, match: MatchResult) -> None:
        self._payloads[match.match_id] = match

    def load_match_payload(self, match_id: str) -> MatchResult | None:
        return self._payloads.get(match_id)

    def processed_match_ids(self) -> set[str]:
        return set(self._payloads)

    def forget_match(self, match_id: str) -> None:
        self._payloads.pop(match_id, None)

    def blacklisted_match_ids(self) -> set[str]:
        return set(self._blacklist)

    def blacklist_match(self, match_id: str) -> None:
        self._blacklist.add(match_id)

    def load_recent_window(self) -> list[RecentMatch]:
        return list(self._recent)

    def save_recent_window(self, window: Sequence[RecentMatch]) -> None:
        self._recent = list(window)

    def clear(self) -> None:
        """Drop players, history, payloads and the recent window; the blacklist survives."""
        self._players.clear()
        self._history.clear()
        self._payloads.clear()
        self._recent.clear()


__all__ = ["InMemoryRatingStore"]
