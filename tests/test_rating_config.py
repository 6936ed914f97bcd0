"""Tests for TOML-based rating system config loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from domain.common import GameMode
from domain.ratings.config import (
    MEGA_MODE_DEFAULTS,
    load_rating_system_config,
    load_rating_system_configs,
)

ROOT_DIR = Path(__file__).resolve().parents[1]


def test_load_rating_system_configs_from_directory(tmp_path: Path) -> None:
    config_path = tmp_path / "default.toml"
    config_path.write_text(
        """
[system]
name = "system_a"
description = "A test system"

[rating]
initial_rating = 1000.0
legacy_initial_rating = 1500.0
kd_cap = 3.0

[modes.standard]
k_factor = 32.0
weight_bed_breaks = 0.1

[modes.duo]
k_factor = 36.0

[modes.mega]
k_factor = 50.0

[balancer]
bracket_size = 50.0
max_attempts = 4

[ledger]
recent_window_size = 8
enforce_chronological_order = false

[validation]
no_bed_minimum_deaths = 3
""".strip()
    )

    configs = load_rating_system_configs(tmp_path)
    assert len(configs) == 1

    system = configs[0]
    assert system.name == "system_a"
    assert system.description == "A test system"
    assert system.rating.initial_rating == pytest.approx(1000.0)
    assert system.rating.legacy_initial_rating == pytest.approx(1500.0)
    assert system.rating.kd_cap == pytest.approx(3.0)
    assert system.rating.kd_min == pytest.approx(0.25)
    assert system.rating.for_mode(GameMode.SOLO).k_factor == pytest.approx(32.0)
    assert system.rating.for_mode(GameMode.SOLO).weight_bed_breaks == pytest.approx(0.1)
    assert system.rating.for_mode(GameMode.DUO).k_factor == pytest.approx(36.0)
    assert system.rating.for_mode(GameMode.DUO).weight_bed_breaks == pytest.approx(0.1)
    assert system.rating.for_mode(GameMode.MEGA).k_factor == pytest.approx(50.0)
    assert system.rating.for_mode(GameMode.MEGA).weight_kd == pytest.approx(MEGA_MODE_DEFAULTS.weight_kd)
    assert system.balancer.bracket_size == pytest.approx(50.0)
    assert system.balancer.max_attempts == 4
    assert system.balancer.target_difference == pytest.approx(20.0)
    assert system.ledger.recent_window_size == 8
    assert system.ledger.enforce_chronological_order is False
    assert system.validation.no_bed_minimum_deaths == 3

    config_json = system.as_config_json()
    assert config_json["initial_rating"] == pytest.approx(1000.0)
    assert config_json["modes"]["duo"]["k_factor"] == pytest.approx(36.0)
    assert config_json["recent_window_size"] == 8


def test_shipped_default_config_matches_built_in_defaults() -> None:
    system = load_rating_system_config(ROOT_DIR / "configs" / "ratings" / "default.toml")
    assert system.name == "bedwars_default"
    assert system.rating.for_mode(GameMode.FOURS).k_factor == pytest.approx(40.0)
    assert system.rating.for_mode(GameMode.MEGA) == MEGA_MODE_DEFAULTS
    assert system.ledger.recent_window_size == 5


def test_load_rating_system_configs_requires_name(tmp_path: Path) -> None:
    (tmp_path / "bad.toml").write_text("[rating]\ninitial_rating = 1200.0\n")

    with pytest.raises(ValueError, match=r"\[system\]\.name is required"):
        load_rating_system_configs(tmp_path)


def test_load_rating_system_configs_rejects_duplicate_names(tmp_path: Path) -> None:
    (tmp_path / "a.toml").write_text('[system]\nname = "same"\n')
    (tmp_path / "b.toml").write_text('[system]\nname = "same"\n')

    with pytest.raises(ValueError, match="Duplicate rating system name .same. in a.toml and b.toml"):
        load_rating_system_configs(tmp_path)


def test_load_rating_system_configs_rejects_empty_directory(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="No .toml config files"):
        load_rating_system_configs(tmp_path)


def test_non_positive_minimum_multiplier_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "bad.toml").write_text(
        '[system]\nname = "bad"\n\n[rating]\nmin_performance_multiplier = 0.0\n'
    )

    with pytest.raises(ValueError, match="min_performance_multiplier must be > 0"):
        load_rating_system_configs(tmp_path)


def test_unknown_mode_section_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "bad.toml").write_text('[system]\nname = "bad"\n\n[modes.quads]\nk_factor = 10.0\n')

    with pytest.raises(ValueError, match="unknown \\[modes\\] sections"):
        load_rating_system_configs(tmp_path)


def test_non_positive_window_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "bad.toml").write_text('[system]\nname = "bad"\n\n[ledger]\nrecent_window_size = 0\n')

    with pytest.raises(ValueError, match="recent_window_size must be > 0"):
        load_rating_system_configs(tmp_path)


def test_missing_config_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_rating_system_config(tmp_path / "missing.toml")


def test_missing_config_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Rating config directory not found"):
        load_rating_system_configs(tmp_path / "nowhere")
