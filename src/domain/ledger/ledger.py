"""Rating history, the recent-match window and restore-then-replay removal."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass

from domain.common import GameMode, HistoryEntry, MatchResult, RatingDelta, RecentMatch
from domain.ledger.registry import PlayerRegistry
from domain.player import Player
from domain.protocol import RatingStore
from domain.ratings.calculator import RatingEngine

logger = logging.getLogger(__name__)


class ReplayPayloadMissingError(RuntimeError):
    """A match scheduled for replay has no stored payload."""

    def __init__(self, match_id: str) -> None:
        super().__init__(f"No stored payload for match_id={match_id}; refusing to remove without replay")
        self.match_id = match_id


@dataclass(frozen=True)
class RemovalSummary:
    """Outcome of one ``remove_recent`` call."""

    target_id: str
    removed_ids: tuple[str, ...]
    replayed_ids: tuple[str, ...]
    restored_ratings: Mapping[tuple[str, GameMode], float]


@dataclass(frozen=True)
class ContinuityViolation:
    player_id: str
    mode: GameMode
    earlier_match_id: str
    later_match_id: str
    earlier_new_rating: float
    later_previous_rating: float


class MatchLedger:
    """Applies deltas, appends history and owns the bounded recent-match window.

    All rating mutation goes through this class. Callers serialize access.
    """

    def __init__(
        self,
        store: RatingStore,
        engine: RatingEngine,
        registry: PlayerRegistry,
        *,
        window_size: int = 5,
    ) -> None:
        if window_size <= 0:
            raise ValueError("window_size must be greater than 0")
        self.store = store
        self.engine = engine
        self.registry = registry
        self.window_size = window_size

    def record_match(
        self,
        match: MatchResult,
        deltas: Mapping[str, RatingDelta],
        *,
        names: Mapping[str, str] | None = None,
    ) -> list[HistoryEntry]:
        """Apply computed deltas and append one history entry per touched player."""
        entries = self._apply(
            match,
            {player_id: delta.delta for player_id, delta in deltas.items()},
            names=names,
        )
        logger.info(
            "recorded match_id=%s mode=%s players=%d",
            match.match_id,
            match.mode.value,
            len(entries),
        )
        return entries

    def recent_matches(self) -> list[RecentMatch]:
        """Recent window, newest first."""
        return self.store.load_recent_window()

    def latest_timestamp(self) -> int | None:
        window = self.store.load_recent_window()
        if window:
            return max(recent.timestamp for recent in window)
        history = self.store.history()
        if not history:
            return None
        return max(entry.timestamp for entry in history)

    def blacklist(self, match_id: str) -> None:
        self.store.blacklist_match(match_id)

    def remove_recent(self, index: int) -> RemovalSummary | None:
        """Remove the ``index``-th most recent match (1 = newest) and replay everything newer.

        Returns ``None`` without touching state when ``index`` falls outside the window.
        """
        window = self.store.load_recent_window()
        if index < 1 or index > len(window):
            logger.warning("invalid removal index=%d (available: 1-%d)", index, len(window))
            return None

        removed = window[:index]
        target = removed[-1]
        intermediates = removed[:-1]
        removed_ids = [recent.match_id for recent in removed]

        payloads: dict[str, MatchResult] = {}
        for recent in removed:
            payload = self.store.load_match_payload(recent.match_id)
            if payload is None:
                if recent is not target:
                    raise ReplayPayloadMissingError(recent.match_id)
                logger.warning("no payload for target match_id=%s; reverting games played only", recent.match_id)
                continue
            payloads[recent.match_id] = payload

        logger.info("removing recent matches %s (target: %s)", removed_ids, target.match_id)

        # Larger position in the newest-first window means an earlier match.
        position = {match_id: offset for offset, match_id in enumerate(removed_ids)}
        earliest: dict[tuple[str, GameMode], HistoryEntry] = {}
        removed_entries = self.store.history(match_ids=removed_ids)
        for entry in removed_entries:
            key = (entry.player_id, entry.mode)
            current = earliest.get(key)
            if current is None or position[entry.match_id] > position[current.match_id]:
                earliest[key] = entry

        players: dict[str, Player] = {}
        for player_id, _ in earliest:
            if player_id not in players:
                players[player_id] = self.registry.lookup(player_id)

        restored_ratings: dict[tuple[str, GameMode], float] = {}
        for (player_id, mode), entry in earliest.items():
            players[player_id].set_rating(mode, entry.previous_rating)
            restored_ratings[(player_id, mode)] = entry.previous_rating

        for entry in removed_entries:
            payload = payloads.get(entry.match_id)
            stats = payload.stats_for(entry.player_id) if payload is not None else None
            players[entry.player_id].revert_game(entry.mode, stats, won=entry.won)

        self.store.delete_history(removed_ids)
        for player in players.values():
            self.store.save_player(player)
        self.store.save_recent_window(window[index:])

        replayed_ids: list[str] = []
        for recent in reversed(intermediates):
            self._replay(payloads[recent.match_id], recent)
            replayed_ids.append(recent.match_id)
        self._refill_window()

        self.store.forget_match(target.match_id)

        logger.info(
            "removed match_id=%s replayed=%s restored_pairs=%d",
            target.match_id,
            replayed_ids,
            len(restored_ratings),
        )
        return RemovalSummary(
            target_id=target.match_id,
            removed_ids=tuple(removed_ids),
            replayed_ids=tuple(replayed_ids),
            restored_ratings=restored_ratings,
        )

    def continuity_violations(self) -> list[ContinuityViolation]:
        """Adjacent history entries whose new/previous ratings disagree."""
        grouped: dict[tuple[str, GameMode], list[HistoryEntry]] = defaultdict(list)
        for entry in self.store.history():
            grouped[(entry.player_id, entry.mode)].append(entry)

        violations: list[ContinuityViolation] = []
        for (player_id, mode), entries in grouped.items():
            ordered = sorted(entries, key=lambda entry: entry.timestamp)
            for earlier, later in zip(ordered, ordered[1:]):
                if not math.isclose(earlier.new_rating, later.previous_rating, rel_tol=0.0, abs_tol=1e-9):
                    violations.append(
                        ContinuityViolation(
                            player_id=player_id,
                            mode=mode,
                            earlier_match_id=earlier.match_id,
                            later_match_id=later.match_id,
                            earlier_new_rating=earlier.new_rating,
                            later_previous_rating=later.previous_rating,
                        )
                    )
        return violations

    def _refill_window(self) -> None:
        """Top the window back up with the newest older matches that still have history."""
        window = self.store.load_recent_window()
        if len(window) >= self.window_size:
            return

        present = {recent.match_id for recent in window}
        grouped: dict[str, list[HistoryEntry]] = defaultdict(list)
        for entry in self.store.history():
            if entry.match_id not in present:
                grouped[entry.match_id].append(entry)

        # history() is oldest first, so reversing keeps newest-first order for equal timestamps.
        candidates = sorted(
            reversed(list(grouped.items())),
            key=lambda item: item[1][0].timestamp,
            reverse=True,
        )
        for match_id, entries in candidates[: self.window_size - len(window)]:
            window.append(
                RecentMatch(
                    match_id=match_id,
                    mode=entries[0].mode,
                    timestamp=entries[0].timestamp,
                    deltas={entry.player_id: entry.delta for entry in entries},
                )
            )
        self.store.save_recent_window(window)

    def _replay(self, match: MatchResult, recent: RecentMatch) -> list[HistoryEntry]:
        ratings = {
            player_id: self.registry.lookup(player_id).rating(match.mode)
            for player_id in match.player_ids()
        }
        recomputed = self.engine.compute_deltas(match, ratings)

        forced: dict[str, float] = {}
        for player_id, fresh in recomputed.items():
            recorded = recent.deltas.get(player_id)
            if recorded is None:
                logger.warning(
                    "no recorded delta for player_id=%s in match_id=%s; using recomputed delta",
                    player_id,
                    match.match_id,
                )
                forced[player_id] = fresh.delta
                continue
            if not math.isclose(recorded, fresh.delta, rel_tol=0.0, abs_tol=1e-9):
                logger.debug(
                    "replay drift match_id=%s player_id=%s recorded=%.4f recomputed=%.4f",
                    match.match_id,
                    player_id,
                    recorded,
                    fresh.delta,
                )
            forced[player_id] = recorded

        logger.info("replaying match_id=%s with recorded deltas", match.match_id)
        return self._apply(match, forced)

    def _apply(
        self,
        match: MatchResult,
        deltas: Mapping[str, float],
        *,
        names: Mapping[str, str] | None = None,
    ) -> list[HistoryEntry]:
        names = names or {}
        mode = match.mode
        entries: list[HistoryEntry] = []
        applied: dict[str, float] = {}

        for player_id in match.player_ids():
            if player_id not in deltas:
                continue
            player = self.registry.get_or_create(player_id, names.get(player_id))
            delta = deltas[player_id]
            previous_rating = player.rating(mode)
            new_rating = previous_rating + delta
            won = match.player_won(player_id)

            player.set_rating(mode, new_rating)
            player.record_game(mode, match.stats_for(player_id), won=won)
            self.store.save_player(player)

            entries.append(
                HistoryEntry(
                    player_id=player_id,
                    mode=mode,
                    match_id=match.match_id,
                    timestamp=match.timestamp,
                    previous_rating=previous_rating,
                    new_rating=new_rating,
                    won=won,
                    is_tie=match.is_tie,
                )
            )
            applied[player_id] = delta

        self.store.append_history(entries)
        self.store.save_match_payload(match)

        window = [
            RecentMatch(
                match_id=match.match_id,
                mode=mode,
                timestamp=match.timestamp,
                deltas=applied,
            )
        ]
        window.extend(
            recent
            for recent in self.store.load_recent_window()
            if recent.match_id != match.match_id
        )
        self.store.save_recent_window(window[: self.window_size])
        return entries


__all__ = [
    "ContinuityViolation",
    "MatchLedger",
    "RemovalSummary",
    "ReplayPayloadMissingError",
]
