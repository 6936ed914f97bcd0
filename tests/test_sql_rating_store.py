"""Tests for the SQLAlchemy rating store on in-memory SQLite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from sqlalchemy.orm import Session

from db import create_db_engine
from domain.common import GameMode, MatchResult, RecentMatch
from domain.pipeline import MatchProcessor, ProcessStatus, rebuild_history
from domain.player import Player
from domain.protocol import RatingStore
from repositories import SqlRatingStore, ensure_schema


@pytest.fixture
def session() -> Iterator[Session]:
    engine = create_db_engine("sqlite://")
    ensure_schema(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


def test_sql_store_satisfies_protocol(session: Session) -> None:
    assert isinstance(SqlRatingStore(session), RatingStore)


def test_player_round_trip(session: Session) -> None:
    store = SqlRatingStore(session)
    player = Player.new("a", "Alice", 1200.0)
    player.set_rating(GameMode.DUO, 1234.5)
    player.record_invalid_game(GameMode.MEGA, won=True)
    store.save_player(player)

    player.name = "Alicia"
    player.set_rating(GameMode.SOLO, 1111.0)
    store.save_player(player)

    loaded = store.get_player("a")
    assert loaded is not None
    assert loaded.name == "Alicia"
    assert loaded.records == player.records
    assert store.get_player("missing") is None
    assert [stored.player_id for stored in store.players()] == ["a"]


def test_recent_window_round_trip(session: Session) -> None:
    store = SqlRatingStore(session)
    window = [
        RecentMatch("m2", GameMode.DUO, 200, {"a": 12.5, "b": -12.5}),
        RecentMatch("m1", GameMode.SOLO, 100, {"a": -3.25, "b": 3.25}),
    ]
    store.save_recent_window(window)
    assert store.load_recent_window() == window

    store.save_recent_window(window[1:])
    assert store.load_recent_window() == window[1:]


def test_processing_and_removal_on_sql_store(session: Session, five_matches: list[MatchResult]) -> None:
    store = SqlRatingStore(session)
    processor = MatchProcessor(store)
    original = {}
    for match in five_matches:
        outcome = processor.process(match)
        assert outcome.status is ProcessStatus.APPLIED
        original[match.match_id] = {player_id: delta.delta for player_id, delta in outcome.deltas.items()}
    session.commit()

    assert store.load_match_payload("M3") == five_matches[2]

    summary = processor.ledger.remove_recent(3)
    session.commit()

    assert summary is not None
    assert summary.replayed_ids == ("M4", "M5")
    assert store.history(match_ids=["M3"]) == []
    for entry in store.history(match_ids=["M4", "M5"]):
        assert entry.delta == pytest.approx(original[entry.match_id][entry.player_id], abs=1e-9)
    assert processor.ledger.continuity_violations() == []
    assert [recent.match_id for recent in store.load_recent_window()] == ["M5", "M4", "M2", "M1"]
    assert "M3" not in store.processed_match_ids()
    assert store.load_match_payload("M3") is None


def test_clear_keeps_blacklist(session: Session, five_matches: list[MatchResult]) -> None:
    store = SqlRatingStore(session)
    processor = MatchProcessor(store)
    processor.ledger.blacklist("M5")
    processor.ledger.blacklist("M5")

    summary = rebuild_history(five_matches, processor=processor)
    session.commit()

    assert summary.applied == 4
    assert summary.skipped == 1
    assert store.blacklisted_match_ids() == {"M5"}
    assert processor.process(five_matches[4]).status is ProcessStatus.BLACKLISTED

    store.clear()
    assert store.players() == []
    assert store.history() == []
    assert store.processed_match_ids() == set()
    assert store.blacklisted_match_ids() == {"M5"}
