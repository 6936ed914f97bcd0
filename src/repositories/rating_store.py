"""SQLAlchemy-backed rating store."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Collection, Sequence
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from domain.common import GameMode, HistoryEntry, MatchResult, RecentMatch
from domain.player import ModeRecord, Player
from models import (
    BlacklistedMatch,
    PlayerAccount,
    PlayerModeRating,
    ProcessedMatch,
    RatingHistoryEntry,
    RecentMatchSlot,
)

_COUNTER_FIELDS = (
    "games_played",
    "kills",
    "deaths",
    "bed_breaks",
    "final_kills",
    "victories",
    "invalid_games",
    "invalid_wins",
)

_TABLES = (
    PlayerAccount.__table__,
    PlayerModeRating.__table__,
    RatingHistoryEntry.__table__,
    ProcessedMatch.__table__,
    RecentMatchSlot.__table__,
    BlacklistedMatch.__table__,
)


def ensure_schema(engine: Engine) -> None:
    """Create rating tables and indexes when missing."""
    with engine.begin() as connection:
        for table in _TABLES:
            table.create(bind=connection, checkfirst=True)


def _record_from_row(row: PlayerModeRating) -> ModeRecord:
    return ModeRecord(
        rating=float(row.rating),
        **{name: int(getattr(row, name) or 0) for name in _COUNTER_FIELDS},
    )


def _history_from_row(row: RatingHistoryEntry) -> HistoryEntry:
    return HistoryEntry(
        player_id=row.player_id,
        mode=GameMode.parse(row.mode),
        match_id=row.match_id,
        timestamp=int(row.event_time),
        previous_rating=float(row.previous_rating),
        new_rating=float(row.new_rating),
        won=bool(row.won),
        is_tie=bool(row.is_tie),
    )


class SqlRatingStore:
    """Rating store over the ORM tables.

    The session belongs to the caller: this class flushes but never commits.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_player(self, player_id: str) -> Player | None:
        account = self.session.get(PlayerAccount, player_id)
        if account is None:
            return None
        rows = self.session.scalars(
            select(PlayerModeRating).where(PlayerModeRating.player_id == player_id)
        ).all()
        return Player(
            player_id=account.player_id,
            name=account.name,
            records={GameMode.parse(row.mode): _record_from_row(row) for row in rows},
        )

    def save_player(self, player: Player) -> None:
        account = self.session.get(PlayerAccount, player.player_id)
        if account is None:
            account = PlayerAccount(player_id=player.player_id, name=player.name)
            self.session.add(account)
        else:
            account.name = player.name
            account.updated_at = datetime.now(UTC).replace(tzinfo=None)

        existing = {
            row.mode: row
            for row in self.session.scalars(
                select(PlayerModeRating).where(PlayerModeRating.player_id == player.player_id)
            )
        }
        for mode, record in player.records.items():
            row = existing.get(mode.value)
            if row is None:
                row = PlayerModeRating(player_id=player.player_id, mode=mode.value, rating=record.rating)
                self.session.add(row)
            row.rating = record.rating
            for name in _COUNTER_FIELDS:
                setattr(row, name, getattr(record, name))
        self.session.flush()

    def players(self) -> list[Player]:
        accounts = self.session.scalars(select(PlayerAccount).order_by(PlayerAccount.player_id)).all()
        records: dict[str, dict[GameMode, ModeRecord]] = defaultdict(dict)
        for row in self.session.scalars(select(PlayerModeRating)):
            records[row.player_id][GameMode.parse(row.mode)] = _record_from_row(row)
        return [
            Player(player_id=account.player_id, name=account.name, records=records[account.player_id])
            for account in accounts
        ]

    def append_history(self, entries: Sequence[HistoryEntry]) -> None:
        self.session.add_all(
            RatingHistoryEntry(
                player_id=entry.player_id,
                mode=entry.mode.value,
                match_id=entry.match_id,
                event_time=entry.timestamp,
                previous_rating=entry.previous_rating,
                new_rating=entry.new_rating,
                won=entry.won,
                is_tie=entry.is_tie,
            )
            for entry in entries
        )
        self.session.flush()

    def history(
        self,
        *,
        player_id: str | None = None,
        mode: GameMode | None = None,
        match_ids: Collection[str] | None = None,
    ) -> list[HistoryEntry]:
        statement = select(RatingHistoryEntry)
        if player_id is not None:
            statement = statement.where(RatingHistoryEntry.player_id == player_id)
        if mode is not None:
            statement = statement.where(RatingHistoryEntry.mode == mode.value)
        if match_ids is not None:
            statement = statement.where(RatingHistoryEntry.match_id.in_(list(match_ids)))
        statement = statement.order_by(RatingHistoryEntry.event_time, RatingHistoryEntry.id)
        return [_history_from_row(row) for row in self.session.scalars(statement)]

    def delete_history(self, match_ids: Collection[str]) -> int:
        if not match_ids:
            return 0
        result = self.session.execute(
            delete(RatingHistoryEntry).where(RatingHistoryEntry.match_id.in_(list(match_ids)))
        )
        return int(result.rowcount or 0)

    def save_match_payload(self, match: MatchResult) -> None:
        self.session.merge(
            ProcessedMatch(
                match_id=match.match_id,
                mode=match.mode.value,
                event_time=match.timestamp,
                payload=match.to_payload(),
            )
        )
        self.session.flush()

    def load_match_payload(self, match_id: str) -> MatchResult | None:
        row = self.session.get(ProcessedMatch, match_id)
        if row is None:
            return None
        return MatchResult.from_payload(row.payload, match_id=match_id)

    def processed_match_ids(self) -> set[str]:
        return set(self.session.scalars(select(ProcessedMatch.match_id)))

    def forget_match(self, match_id: str) -> None:
        self.session.execute(delete(ProcessedMatch).where(ProcessedMatch.match_id == match_id))

    def blacklisted_match_ids(self) -> set[str]:
        return set(self.session.scalars(select(BlacklistedMatch.match_id)))

    def blacklist_match(self, match_id: str) -> None:
        if self.session.get(BlacklistedMatch, match_id) is None:
            self.session.add(BlacklistedMatch(match_id=match_id))
            self.session.flush()

    def load_recent_window(self) -> list[RecentMatch]:
        rows = self.session.scalars(select(RecentMatchSlot).order_by(RecentMatchSlot.position))
        return [
            RecentMatch(
                match_id=row.match_id,
                mode=GameMode.parse(row.mode),
                timestamp=int(row.event_time),
                deltas={player_id: float(delta) for player_id, delta in row.deltas.items()},
            )
            for row in rows
        ]

    def save_recent_window(self, window: Sequence[RecentMatch]) -> None:
        self.session.execute(delete(RecentMatchSlot))
        self.session.add_all(
            RecentMatchSlot(
                position=position,
                match_id=recent.match_id,
                mode=recent.mode.value,
                event_time=recent.timestamp,
                deltas=dict(recent.deltas),
            )
            for position, recent in enumerate(window)
        )
        self.session.flush()

    def clear(self) -> None:
        """Drop all rating state except the blacklist."""
        for model in (RatingHistoryEntry, PlayerModeRating, PlayerAccount, ProcessedMatch, RecentMatchSlot):
            self.session.execute(delete(model))
        self.session.flush()


__all__ = ["SqlRatingStore", "ensure_schema"]
