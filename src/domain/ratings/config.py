"""Load rating system definitions from TOML files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping
import tomllib

from domain.common import GameMode


@dataclass(frozen=True)
class ModeParameters:
    """K-factor and performance weights for one mode."""

    k_factor: float = 40.0
    weight_bed_breaks: float = 0.15
    weight_kd: float = 0.05
    weight_final_kills: float = 0.06
    final_kill_cap: int = 4


STANDARD_MODE_DEFAULTS = ModeParameters()
MEGA_MODE_DEFAULTS = ModeParameters(
    k_factor=60.0,
    weight_bed_breaks=0.20,
    weight_kd=0.035,
    weight_final_kills=0.025,
    final_kill_cap=4,
)


def _default_mode_parameters() -> dict[GameMode, ModeParameters]:
    return {
        mode: MEGA_MODE_DEFAULTS if mode.is_mega else STANDARD_MODE_DEFAULTS
        for mode in GameMode
    }


@dataclass(frozen=True)
class RatingParameters:
    initial_rating: float = 1200.0
    legacy_initial_rating: float = 1800.0
    scale_factor: float = 400.0
    kd_cap: float = 4.0
    kd_min: float = 0.25
    min_performance_multiplier: float = 0.5
    max_performance_multiplier: float = 2.0
    zero_sum_epsilon: float = 1e-4
    modes: Mapping[GameMode, ModeParameters] = field(default_factory=_default_mode_parameters)

    def for_mode(self, mode: GameMode) -> ModeParameters:
        return self.modes.get(mode, MEGA_MODE_DEFAULTS if mode.is_mega else STANDARD_MODE_DEFAULTS)


@dataclass(frozen=True)
class BalancerParameters:
    bracket_size: float = 100.0
    target_difference: float = 20.0
    threshold_increment: float = 10.0
    max_attempts: int = 10
    mega_weight: float = 2.0


@dataclass(frozen=True)
class LedgerParameters:
    recent_window_size: int = 5
    enforce_chronological_order: bool = True


@dataclass(frozen=True)
class ValidationParameters:
    no_bed_minimum_deaths: int = 2


@dataclass(frozen=True)
class RatingSystemConfig:
    """One named rating system: engine, balancer, ledger and validation settings."""

    name: str
    description: str | None
    file_path: Path
    rating: RatingParameters = field(default_factory=RatingParameters)
    balancer: BalancerParameters = field(default_factory=BalancerParameters)
    ledger: LedgerParameters = field(default_factory=LedgerParameters)
    validation: ValidationParameters = field(default_factory=ValidationParameters)

    def as_config_json(self) -> dict[str, Any]:
        return {
            "initial_rating": self.rating.initial_rating,
            "legacy_initial_rating": self.rating.legacy_initial_rating,
            "scale_factor": self.rating.scale_factor,
            "kd_cap": self.rating.kd_cap,
            "kd_min": self.rating.kd_min,
            "min_performance_multiplier": self.rating.min_performance_multiplier,
            "max_performance_multiplier": self.rating.max_performance_multiplier,
            "zero_sum_epsilon": self.rating.zero_sum_epsilon,
            "modes": {
                mode.value: {
                    "k_factor": params.k_factor,
                    "weight_bed_breaks": params.weight_bed_breaks,
                    "weight_kd": params.weight_kd,
                    "weight_final_kills": params.weight_final_kills,
                    "final_kill_cap": params.final_kill_cap,
                }
                for mode, params in self.rating.modes.items()
            },
            "bracket_size": self.balancer.bracket_size,
            "target_difference": self.balancer.target_difference,
            "threshold_increment": self.balancer.threshold_increment,
            "max_attempts": self.balancer.max_attempts,
            "mega_weight": self.balancer.mega_weight,
            "recent_window_size": self.ledger.recent_window_size,
            "enforce_chronological_order": self.ledger.enforce_chronological_order,
            "no_bed_minimum_deaths": self.validation.no_bed_minimum_deaths,
        }


def default_system_config() -> RatingSystemConfig:
    return RatingSystemConfig(name="default", description=None, file_path=Path("default.toml"))


def load_rating_system_config(file_path: Path) -> RatingSystemConfig:
    """Load and validate one rating system TOML file."""
    if not file_path.is_file():
        raise FileNotFoundError(f"Rating system file not found: {file_path}")
    with file_path.open("rb") as file:
        return _parse_rating_system_config(tomllib.load(file), file_path)


def load_rating_system_configs(config_dir: Path) -> list[RatingSystemConfig]:
    """Load every ``*.toml`` rating system in a directory; system names must be unique."""
    if not config_dir.exists():
        raise FileNotFoundError(f"Rating config directory not found: {config_dir}")
    if not config_dir.is_dir():
        raise NotADirectoryError(f"Rating config path is not a directory: {config_dir}")

    systems = [load_rating_system_config(path) for path in sorted(config_dir.glob("*.toml"))]
    if not systems:
        raise ValueError(f"No .toml config files found in: {config_dir}")

    seen: dict[str, Path] = {}
    for system in systems:
        if system.name in seen:
            raise ValueError(
                f"Duplicate rating system name {system.name!r} in {seen[system.name].name} "
                f"and {system.file_path.name}"
            )
        seen[system.name] = system.file_path
    return systems


def _parse_mode_parameters(
    raw: Mapping[str, Any],
    defaults: ModeParameters,
) -> ModeParameters:
    return ModeParameters(
        k_factor=float(raw.get("k_factor", defaults.k_factor)),
        weight_bed_breaks=float(raw.get("weight_bed_breaks", defaults.weight_bed_breaks)),
        weight_kd=float(raw.get("weight_kd", defaults.weight_kd)),
        weight_final_kills=float(raw.get("weight_final_kills", defaults.weight_final_kills)),
        final_kill_cap=int(raw.get("final_kill_cap", defaults.final_kill_cap)),
    )


def _parse_modes(modes_raw: Mapping[str, Any], file_path: Path) -> dict[GameMode, ModeParameters]:
    known_sections = {"standard", "mega"} | {mode.value for mode in GameMode}
    unknown = sorted(set(modes_raw) - known_sections)
    if unknown:
        raise ValueError(f"{file_path}: unknown [modes] sections: {unknown}")

    standard = _parse_mode_parameters(modes_raw.get("standard", {}), STANDARD_MODE_DEFAULTS)
    mega = _parse_mode_parameters(modes_raw.get("mega", {}), MEGA_MODE_DEFAULTS)

    modes: dict[GameMode, ModeParameters] = {}
    for mode in GameMode:
        base = mega if mode.is_mega else standard
        override = modes_raw.get(mode.value) if not mode.is_mega else None
        modes[mode] = base if override is None else _parse_mode_parameters(override, base)
    return modes


def _parse_rating_system_config(raw: dict[str, Any], file_path: Path) -> RatingSystemConfig:
    system_raw = raw.get("system", {})
    rating_raw = raw.get("rating", {})
    balancer_raw = raw.get("balancer", {})
    ledger_raw = raw.get("ledger", {})
    validation_raw = raw.get("validation", {})

    name = str(system_raw.get("name", "")).strip()
    if not name:
        raise ValueError(f"{file_path}: [system].name is required")

    description_value = system_raw.get("description")
    description = None if description_value is None else str(description_value)

    rating = RatingParameters(
        initial_rating=float(rating_raw.get("initial_rating", 1200.0)),
        legacy_initial_rating=float(rating_raw.get("legacy_initial_rating", 1800.0)),
        scale_factor=float(rating_raw.get("scale_factor", 400.0)),
        kd_cap=float(rating_raw.get("kd_cap", 4.0)),
        kd_min=float(rating_raw.get("kd_min", 0.25)),
        min_performance_multiplier=float(rating_raw.get("min_performance_multiplier", 0.5)),
        max_performance_multiplier=float(rating_raw.get("max_performance_multiplier", 2.0)),
        zero_sum_epsilon=float(rating_raw.get("zero_sum_epsilon", 1e-4)),
        modes=_parse_modes(raw.get("modes", {}), file_path),
    )
    balancer = BalancerParameters(
        bracket_size=float(balancer_raw.get("bracket_size", 100.0)),
        target_difference=float(balancer_raw.get("target_difference", 20.0)),
        threshold_increment=float(balancer_raw.get("threshold_increment", 10.0)),
        max_attempts=int(balancer_raw.get("max_attempts", 10)),
        mega_weight=float(balancer_raw.get("mega_weight", 2.0)),
    )
    ledger = LedgerParameters(
        recent_window_size=int(ledger_raw.get("recent_window_size", 5)),
        enforce_chronological_order=bool(ledger_raw.get("enforce_chronological_order", True)),
    )
    validation = ValidationParameters(
        no_bed_minimum_deaths=int(validation_raw.get("no_bed_minimum_deaths", 2)),
    )

    _validate_rating(file_path=file_path, rating=rating)
    _validate_balancer(file_path=file_path, balancer=balancer)
    if ledger.recent_window_size <= 0:
        raise ValueError(f"{file_path}: [ledger].recent_window_size must be > 0")
    if validation.no_bed_minimum_deaths < 0:
        raise ValueError(f"{file_path}: [validation].no_bed_minimum_deaths must be >= 0")

    return RatingSystemConfig(
        name=name,
        description=description,
        file_path=file_path,
        rating=rating,
        balancer=balancer,
        ledger=ledger,
        validation=validation,
    )


def _validate_rating(*, file_path: Path, rating: RatingParameters) -> None:
    if rating.initial_rating <= 0.0:
        raise ValueError(f"{file_path}: [rating].initial_rating must be > 0")
    if rating.legacy_initial_rating <= 0.0:
        raise ValueError(f"{file_path}: [rating].legacy_initial_rating must be > 0")
    if rating.scale_factor <= 0.0:
        raise ValueError(f"{file_path}: [rating].scale_factor must be > 0")
    if rating.kd_min <= 0.0:
        raise ValueError(f"{file_path}: [rating].kd_min must be > 0")
    if rating.kd_cap < rating.kd_min:
        raise ValueError(f"{file_path}: [rating].kd_cap must be >= kd_min")
    if rating.min_performance_multiplier <= 0.0:
        raise ValueError(f"{file_path}: [rating].min_performance_multiplier must be > 0")
    if rating.max_performance_multiplier < rating.min_performance_multiplier:
        raise ValueError(
            f"{file_path}: [rating].max_performance_multiplier must be >= min_performance_multiplier"
        )
    if rating.zero_sum_epsilon < 0.0:
        raise ValueError(f"{file_path}: [rating].zero_sum_epsilon must be >= 0")
    for mode, params in rating.modes.items():
        if params.k_factor <= 0.0:
            raise ValueError(f"{file_path}: [modes.{mode.value}].k_factor must be > 0")
        if params.final_kill_cap < 0:
            raise ValueError(f"{file_path}: [modes.{mode.value}].final_kill_cap must be >= 0")


def _validate_balancer(*, file_path: Path, balancer: BalancerParameters) -> None:
    if balancer.bracket_size < 0.0:
        raise ValueError(f"{file_path}: [balancer].bracket_size must be >= 0")
    if balancer.target_difference < 0.0:
        raise ValueError(f"{file_path}: [balancer].target_difference must be >= 0")
    if balancer.threshold_increment < 0.0:
        raise ValueError(f"{file_path}: [balancer].threshold_increment must be >= 0")
    if balancer.max_attempts <= 0:
        raise ValueError(f"{file_path}: [balancer].max_attempts must be > 0")
    if balancer.mega_weight <= 0.0:
        raise ValueError(f"{file_path}: [balancer].mega_weight must be > 0")


__all__ = [
    "BalancerParameters",
    "LedgerParameters",
    "MEGA_MODE_DEFAULTS",
    "ModeParameters",
    "RatingParameters",
    "RatingSystemConfig",
    "STANDARD_MODE_DEFAULTS",
    "ValidationParameters",
    "default_system_config",
    "load_rating_system_config",
    "load_rating_system_configs",
]
