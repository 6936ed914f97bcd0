"""Pre-rating match validation."""

from __future__ import annotations

from dataclasses import dataclass

from domain.common import TIE, MatchResult
from domain.ratings.config import ValidationParameters


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: str | None = None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def invalid(cls, reason: str) -> ValidationResult:
        return cls(valid=False, reason=reason)

    def __str__(self) -> str:
        return "VALID" if self.valid else f"INVALID: {self.reason}"


class MatchValidator:
    """Rejects matches that must not reach the rating engine."""

    def __init__(self, params: ValidationParameters | None = None) -> None:
        self.params = params or ValidationParameters()

    def validate(self, match: MatchResult) -> ValidationResult:
        if not match.player_ids():
            return ValidationResult.invalid("No players in match")
        empty_teams = [name for name, players in match.teams.items() if not players]
        if empty_teams:
            return ValidationResult.invalid(f"Empty teams: {', '.join(empty_teams)}")
        if not match.winner:
            return ValidationResult.invalid("No winner specified")
        if match.winner != TIE and match.winner not in match.teams:
            return ValidationResult.invalid(f"Winner team not found: {match.winner}")
        return self._validate_activity(match)

    def _validate_activity(self, match: MatchResult) -> ValidationResult:
        total_bed_breaks = total_bed_breaks_in(match)
        total_deaths = total_deaths_in(match)
        if total_bed_breaks == 0 and total_deaths < self.params.no_bed_minimum_deaths:
            return ValidationResult.invalid(
                f"No bed breaks and only {total_deaths} deaths "
                f"(minimum {self.params.no_bed_minimum_deaths} required)"
            )
        return ValidationResult.ok()


def total_bed_breaks_in(match: MatchResult) -> int:
    return sum(stats.bed_breaks for stats in match.player_stats.values())


def total_deaths_in(match: MatchResult) -> int:
    return sum(stats.deaths for stats in match.player_stats.values())


__all__ = ["MatchValidator", "ValidationResult", "total_bed_breaks_in", "total_deaths_in"]
