"""Unit tests for per-mode player state."""

from __future__ import annotations

import pytest

from domain.common import GameMode, PlayerMatchStats
from domain.player import Player, default_player_name


def test_new_player_has_every_mode_at_initial_rating() -> None:
    player = Player.new("0123456789abcdef", None, 1200.0)
    assert player.name == default_player_name("0123456789abcdef") == "Player-01234567"
    assert {mode: player.rating(mode) for mode in GameMode} == {mode: 1200.0 for mode in GameMode}
    assert player.total_games_played() == 0


def test_global_rating_without_games_is_plain_mean() -> None:
    player = Player.new("a", "Alice", 1200.0)
    player.set_rating(GameMode.SOLO, 1400.0)
    assert player.global_rating() == pytest.approx((1400.0 + 1200.0 * 3) / 4)


def test_global_rating_is_games_weighted_over_standard_modes() -> None:
    player = Player.new("a", "Alice", 1200.0)
    player.set_rating(GameMode.SOLO, 1300.0)
    player.set_rating(GameMode.DUO, 1100.0)
    player.set_rating(GameMode.MEGA, 2000.0)
    for _ in range(3):
        player.record_game(GameMode.SOLO, None, won=False)
    player.record_game(GameMode.DUO, None, won=False)
    player.record_game(GameMode.MEGA, None, won=False)

    assert player.global_rating() == pytest.approx((1300.0 * 3 + 1100.0) / 4)


def test_adjusted_global_rating_weights_mega_games() -> None:
    player = Player.new("a", "Alice", 1200.0)
    player.set_rating(GameMode.SOLO, 1300.0)
    player.set_rating(GameMode.MEGA, 1000.0)
    player.record_game(GameMode.SOLO, None, won=True)
    player.record_game(GameMode.MEGA, None, won=False)
    player.record_game(GameMode.MEGA, None, won=False)

    assert player.adjusted_global_rating(2.0) == pytest.approx((1300.0 + 1000.0 * 4) / 5)
    assert player.balancing_rating(2.0) == pytest.approx((1300.0 + 1000.0 * 4) / 5)


def test_balancing_rating_for_mega_only_player_is_mega_rating() -> None:
    player = Player.new("a", "Alice", 1200.0)
    player.set_rating(GameMode.MEGA, 1450.0)
    player.record_game(GameMode.MEGA, None, won=True)
    assert player.balancing_rating(2.0) == pytest.approx(1450.0)


def test_record_and_revert_game_round_trip_counters() -> None:
    player = Player.new("a", "Alice", 1200.0)
    stats = PlayerMatchStats(kills=4, deaths=2, bed_breaks=1, final_kills=3)

    player.record_game(GameMode.TRIO, stats, won=True)
    record = player.record(GameMode.TRIO)
    assert (record.games_played, record.victories, record.kills, record.final_kills) == (1, 1, 4, 3)

    player.revert_game(GameMode.TRIO, stats, won=True)
    record = player.record(GameMode.TRIO)
    assert (record.games_played, record.victories, record.kills, record.deaths) == (0, 0, 0, 0)


def test_invalid_games_do_not_touch_rating() -> None:
    player = Player.new("a", "Alice", 1200.0)
    player.record_invalid_game(GameMode.FOURS, won=True)
    player.record_invalid_game(GameMode.FOURS, won=False)
    assert player.record(GameMode.FOURS).invalid_games == 2
    assert player.record(GameMode.FOURS).invalid_wins == 1
    assert player.total_invalid_games() == 2
    assert player.rating(GameMode.FOURS) == pytest.approx(1200.0)
    assert player.games_played(GameMode.FOURS) == 0


def test_reset_restores_initial_state() -> None:
    player = Player.new("a", "Alice", 1200.0)
    player.set_rating(GameMode.SOLO, 1500.0)
    player.record_game(GameMode.SOLO, None, won=True)
    player.reset(1800.0)
    assert player.rating(GameMode.SOLO) == pytest.approx(1800.0)
    assert player.total_games_played() == 0
    assert player.name == "Alice"
