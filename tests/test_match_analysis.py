"""Tests for stored-match breakdowns and player history summaries."""

from __future__ import annotations

import pytest

from conftest import make_match
from domain.analysis import MatchNotFoundError, analyze_match, player_history, summarize_history
from domain.common import GameMode, HistoryEntry, MatchResult, PlayerMatchStats
from domain.ledger import InMemoryRatingStore
from domain.pipeline import MatchProcessor


def _processed(matches: list[MatchResult]) -> tuple[InMemoryRatingStore, MatchProcessor]:
    store = InMemoryRatingStore()
    processor = MatchProcessor(store)
    for match in matches:
        assert processor.process(match).applied
    return store, processor


def test_analyze_match_uses_pre_match_ratings_from_history(five_matches: list[MatchResult]) -> None:
    store, processor = _processed(five_matches)
    entries = {entry.player_id: entry for entry in store.history(match_ids=["M3"])}

    analysis = analyze_match(store, processor.engine, "M3")

    assert analysis.from_history
    assert analysis.k_factor == pytest.approx(40.0)
    assert [(team.team, team.outcome) for team in analysis.teams] == [("red", "winner"), ("blue", "loser")]
    for row in analysis.players:
        entry = entries[row.player_id]
        assert row.previous_rating == pytest.approx(entry.previous_rating)
        assert row.delta == pytest.approx(entry.delta, abs=1e-9)
        assert row.recorded_delta == pytest.approx(entry.delta)
    assert analysis.is_zero_sum


def test_analyze_match_reports_expected_scores_and_performance(five_matches: list[MatchResult]) -> None:
    store, processor = _processed(five_matches)

    analysis = analyze_match(store, processor.engine, "M3")

    assert len(analysis.matchups) == 2
    red_vs_blue, blue_vs_red = analysis.matchups
    assert red_vs_blue.rating_difference == pytest.approx(-blue_vs_red.rating_difference)
    assert red_vs_blue.expected_score + blue_vs_red.expected_score == pytest.approx(1.0)

    by_player = {row.player_id: row for row in analysis.players}
    assert by_player["A"].raw_performance > by_player["B"].raw_performance
    mean_raw = (by_player["A"].raw_performance + by_player["B"].raw_performance) / 2
    assert by_player["A"].performance_score == pytest.approx(by_player["A"].raw_performance / mean_raw)
    assert by_player["A"].stats == PlayerMatchStats(kills=2, deaths=1, bed_breaks=1)


def test_analyze_stored_payload_without_history_uses_current_ratings() -> None:
    store = InMemoryRatingStore()
    processor = MatchProcessor(store)
    match = make_match(
        "P1",
        100,
        {"red": ["A"], "blue": ["B"], "green": ["C"]},
        "green",
        mode=GameMode.TRIO,
        stats={"C": PlayerMatchStats(bed_breaks=2, deaths=1)},
    )
    store.save_match_payload(match)

    analysis = analyze_match(store, processor.engine, "P1")

    assert not analysis.from_history
    assert all(row.recorded_delta is None for row in analysis.players)
    assert all(row.previous_rating == pytest.approx(1200.0) for row in analysis.players)
    assert len(analysis.matchups) == 6
    assert [team.outcome for team in analysis.teams] == ["loser", "loser", "winner"]
    assert analysis.is_zero_sum


def test_analyze_unknown_match_raises() -> None:
    store = InMemoryRatingStore()

    with pytest.raises(MatchNotFoundError, match="missing"):
        analyze_match(store, MatchProcessor(store).engine, "missing")


def test_player_history_summarizes_each_mode(five_matches: list[MatchResult]) -> None:
    store, _ = _processed(five_matches)

    entries, summaries = player_history(store, "A")

    assert [entry.match_id for entry in entries] == ["M1", "M2", "M3", "M4"]
    assert [summary.mode for summary in summaries] == [GameMode.SOLO, GameMode.DUO]
    solo, duo = summaries
    assert solo.matches == 2
    assert solo.wins == 2
    assert solo.losses == 0
    assert solo.win_rate == pytest.approx(1.0)
    assert solo.starting_rating == pytest.approx(1200.0)
    player = store.get_player("A")
    assert player is not None
    assert solo.current_rating == pytest.approx(player.rating(GameMode.SOLO))
    assert solo.peak_rating == pytest.approx(solo.current_rating)
    assert duo.wins == 0
    assert duo.losses == 2
    assert duo.total_change < 0


def test_player_history_filters_by_mode(five_matches: list[MatchResult]) -> None:
    store, _ = _processed(five_matches)

    entries, summaries = player_history(store, "C", GameMode.SOLO)

    assert [entry.match_id for entry in entries] == ["M1", "M5"]
    assert [summary.mode for summary in summaries] == [GameMode.SOLO]


def test_summarize_history_counts_ties_apart_from_losses() -> None:
    entries = [
        HistoryEntry("A", GameMode.DUO, "T1", 100, 1200.0, 1215.0, won=True, is_tie=False),
        HistoryEntry("A", GameMode.DUO, "T2", 200, 1215.0, 1212.0, won=False, is_tie=True),
        HistoryEntry("A", GameMode.DUO, "T3", 300, 1212.0, 1190.0, won=False, is_tie=False),
    ]

    (summary,) = summarize_history(entries)

    assert (summary.wins, summary.ties, summary.losses) == (1, 1, 1)
    assert summary.peak_rating == pytest.approx(1215.0)
    assert summary.lowest_rating == pytest.approx(1190.0)
    assert summary.total_change == pytest.approx(-10.0)
