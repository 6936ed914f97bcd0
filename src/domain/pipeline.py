"""Match ingestion, bulk history rebuild and leaderboard reads."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from domain.common import GameMode, MatchResult, RatingDelta
from domain.ledger.ledger import MatchLedger
from domain.ledger.registry import PlayerRegistry
from domain.protocol import RatingStore
from domain.ratings.calculator import RatingEngine
from domain.ratings.config import RatingSystemConfig, default_system_config
from domain.ratings.validation import MatchValidator

logger = logging.getLogger(__name__)


class ProcessStatus(str, Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    BLACKLISTED = "blacklisted"
    OUT_OF_ORDER = "out_of_order"
    INVALID = "invalid"


@dataclass(frozen=True)
class ProcessOutcome:
    """Result of offering one match to the processor."""

    match_id: str
    status: ProcessStatus
    reason: str | None = None
    deltas: Mapping[str, RatingDelta] = field(default_factory=dict)

    @property
    def applied(self) -> bool:
        return self.status is ProcessStatus.APPLIED


class MatchProcessor:
    """Validates a match, computes its deltas and hands them to the ledger."""

    def __init__(
        self,
        store: RatingStore,
        config: RatingSystemConfig | None = None,
        *,
        registry: PlayerRegistry | None = None,
        engine: RatingEngine | None = None,
        ledger: MatchLedger | None = None,
        validator: MatchValidator | None = None,
        legacy_player_ids: Iterable[str] = (),
    ) -> None:
        self.store = store
        self.config = config or default_system_config()
        self.registry = registry or PlayerRegistry(
            store,
            self.config.rating,
            legacy_player_ids=legacy_player_ids,
        )
        self.engine = engine or RatingEngine(self.config.rating)
        self.ledger = ledger or MatchLedger(
            store,
            self.engine,
            self.registry,
            window_size=self.config.ledger.recent_window_size,
        )
        self.validator = validator or MatchValidator(self.config.validation)

    def process(self, match: MatchResult, names: Mapping[str, str] | None = None) -> ProcessOutcome:
        if match.match_id in self.store.processed_match_ids():
            logger.warning("skipping already processed match_id=%s", match.match_id)
            return ProcessOutcome(match.match_id, ProcessStatus.DUPLICATE, "already processed")
        if match.match_id in self.store.blacklisted_match_ids():
            logger.warning("skipping blacklisted match_id=%s", match.match_id)
            return ProcessOutcome(match.match_id, ProcessStatus.BLACKLISTED, "blacklisted")

        if self.config.ledger.enforce_chronological_order:
            latest = self.ledger.latest_timestamp()
            if latest is not None and match.timestamp < latest:
                reason = f"timestamp {match.timestamp} is older than latest recorded {latest}"
                logger.warning("rejecting match_id=%s: %s", match.match_id, reason)
                return ProcessOutcome(match.match_id, ProcessStatus.OUT_OF_ORDER, reason)

        validation = self.validator.validate(match)
        if not validation.valid:
            self._record_invalid(match, names or {})
            logger.warning("invalid match_id=%s: %s", match.match_id, validation.reason)
            return ProcessOutcome(match.match_id, ProcessStatus.INVALID, validation.reason)

        ratings = {
            player_id: self.registry.get_or_create(player_id, (names or {}).get(player_id)).rating(match.mode)
            for player_id in match.player_ids()
        }
        deltas = self.engine.compute_deltas(match, ratings)
        self.ledger.record_match(match, deltas, names=names)
        return ProcessOutcome(match.match_id, ProcessStatus.APPLIED, deltas=deltas)

    def _record_invalid(self, match: MatchResult, names: Mapping[str, str]) -> None:
        for player_id in match.player_ids():
            player = self.registry.get_or_create(player_id, names.get(player_id))
            player.record_invalid_game(match.mode, won=match.player_won(player_id))
            self.store.save_player(player)


@dataclass(frozen=True)
class RebuildSummary:
    """Outcome of one full history rebuild."""

    system_name: str
    total_matches: int
    applied: int
    invalid: int
    skipped: int
    passes: int
    tracked_players: int


def rebuild_history(
    matches: Iterable[MatchResult],
    *,
    processor: MatchProcessor,
    names: Mapping[str, str] | None = None,
    passes: int = 1,
    seed_mega_from_standard: bool = False,
    echo: Callable[[str], None] | None = None,
) -> RebuildSummary:
    """Reset the store and rebuild every rating from ``matches``.

    The first ``passes - 1`` passes only warm up a scratch rating map; the
    final pass goes through the processor so history, the recent window and
    the processed set reflect exactly one application of each match.
    """
    if passes <= 0:
        raise ValueError("passes must be greater than 0")

    ordered = sorted(matches, key=lambda match: match.timestamp)
    store = processor.store
    store.clear()

    blacklisted = store.blacklisted_match_ids()
    ratable = [
        match
        for match in ordered
        if match.match_id not in blacklisted and processor.validator.validate(match).valid
    ]

    scratch: dict[tuple[str, GameMode], float] = {}
    if seed_mega_from_standard:
        _seed_mega_ratings(processor, ratable, scratch, max(passes - 1, 1))
    for warmup in range(1, passes):
        _scratch_pass(processor, ratable, scratch)
        if echo is not None:
            echo(f"warm-up pass={warmup}/{passes - 1} matches={len(ratable)}")

    for (player_id, mode), rating in scratch.items():
        player = processor.registry.get_or_create(player_id, (names or {}).get(player_id))
        player.set_rating(mode, rating)
        store.save_player(player)

    counts = {status: 0 for status in ProcessStatus}
    for index, match in enumerate(ordered, start=1):
        outcome = processor.process(match, names)
        counts[outcome.status] += 1
        if echo is not None and index % 1_000 == 0:
            echo(f"system={processor.config.name} processed_matches={index}/{len(ordered)}")

    summary = RebuildSummary(
        system_name=processor.config.name,
        total_matches=len(ordered),
        applied=counts[ProcessStatus.APPLIED],
        invalid=counts[ProcessStatus.INVALID],
        skipped=(
            counts[ProcessStatus.DUPLICATE]
            + counts[ProcessStatus.BLACKLISTED]
            + counts[ProcessStatus.OUT_OF_ORDER]
        ),
        passes=passes,
        tracked_players=len(store.players()),
    )
    if echo is not None:
        echo(
            "completed "
            f"system={summary.system_name} "
            f"total_matches={summary.total_matches} "
            f"applied={summary.applied} "
            f"invalid={summary.invalid} "
            f"skipped={summary.skipped} "
            f"passes={summary.passes} "
            f"tracked_players={summary.tracked_players}"
        )
    logger.info("rebuilt %s: applied=%d invalid=%d", summary.system_name, summary.applied, summary.invalid)
    return summary


def _scratch_pass(
    processor: MatchProcessor,
    matches: Iterable[MatchResult],
    scratch: dict[tuple[str, GameMode], float],
) -> None:
    for match in matches:
        ratings = {
            player_id: scratch.get(
                (player_id, match.mode),
                processor.registry.initial_rating_for(player_id),
            )
            for player_id in match.player_ids()
        }
        for player_id, delta in processor.engine.compute_deltas(match, ratings).items():
            scratch[(player_id, match.mode)] = delta.new_rating


def _seed_mega_ratings(
    processor: MatchProcessor,
    matches: list[MatchResult],
    scratch: dict[tuple[str, GameMode], float],
    passes: int,
) -> None:
    """Start mega players at their games-weighted standard-mode rating."""
    standard_matches = [match for match in matches if not match.mode.is_mega]
    standard: dict[tuple[str, GameMode], float] = {}
    for _ in range(passes):
        _scratch_pass(processor, standard_matches, standard)

    games: dict[tuple[str, GameMode], int] = {}
    for match in standard_matches:
        for player_id in match.player_ids():
            games[(player_id, match.mode)] = games.get((player_id, match.mode), 0) + 1

    mega_players = {
        player_id
        for match in matches
        if match.mode.is_mega
        for player_id in match.player_ids()
    }
    for player_id in mega_players:
        weighted = 0.0
        played = 0
        for mode in GameMode.standard_modes():
            count = games.get((player_id, mode), 0)
            if count:
                weighted += standard[(player_id, mode)] * count
                played += count
        if played:
            scratch[(player_id, GameMode.MEGA)] = weighted / played


@dataclass(frozen=True)
class LeaderboardRow:
    rank: int
    player_id: str
    name: str
    rating: float
    games_played: int


def leaderboard(
    store: RatingStore,
    mode: GameMode | None = None,
    limit: int = 0,
) -> list[LeaderboardRow]:
    """Players with at least one game, best first, by mode rating or global rating."""
    if limit < 0:
        raise ValueError("limit must be >= 0")

    scored: list[tuple[float, int, str, str]] = []
    for player in store.players():
        if mode is None:
            games_played = sum(player.games_played(standard) for standard in GameMode.standard_modes())
            rating = player.global_rating()
        else:
            games_played = player.games_played(mode)
            rating = player.rating(mode)
        if games_played > 0:
            scored.append((rating, games_played, player.player_id, player.name))

    scored.sort(key=lambda row: (-row[0], row[2]))
    if limit:
        scored = scored[:limit]

    return [
        LeaderboardRow(
            rank=rank,
            player_id=player_id,
            name=name,
            rating=rating,
            games_played=games_played,
        )
        for rank, (rating, games_played, player_id, name) in enumerate(scored, start=1)
    ]


__all__ = [
    "LeaderboardRow",
    "MatchProcessor",
    "ProcessOutcome",
    "ProcessStatus",
    "RebuildSummary",
    "leaderboard",
    "rebuild_history",
]
