"""Per-player, per-mode rating state."""

from __future__ import annotations

from dataclasses import dataclass, field

from domain.common import GameMode, PlayerMatchStats


@dataclass
class ModeRecord:
    """Current rating and cumulative counters for one mode."""

    rating: float
    games_played: int = 0
    kills: int = 0
    deaths: int = 0
    bed_breaks: int = 0
    final_kills: int = 0
    victories: int = 0
    invalid_games: int = 0
    invalid_wins: int = 0


@dataclass
class Player:
    """Rated player; ratings only change through rating-engine deltas."""

    player_id: str
    name: str
    records: dict[GameMode, ModeRecord] = field(default_factory=dict)

    @classmethod
    def new(cls, player_id: str, name: str | None, initial_rating: float) -> Player:
        return cls(
            player_id=player_id,
            name=name or default_player_name(player_id),
            records={mode: ModeRecord(rating=initial_rating) for mode in GameMode},
        )

    def record(self, mode: GameMode) -> ModeRecord:
        return self.records[mode]

    def rating(self, mode: GameMode) -> float:
        return self.records[mode].rating

    def set_rating(self, mode: GameMode, rating: float) -> None:
        self.records[mode].rating = rating

    def games_played(self, mode: GameMode) -> int:
        return self.records[mode].games_played

    def total_games_played(self) -> int:
        return sum(record.games_played for record in self.records.values())

    def total_invalid_games(self) -> int:
        return sum(record.invalid_games for record in self.records.values())

    def global_rating(self) -> float:
        """Games-weighted mean over the standard modes."""
        weighted = 0.0
        games = 0
        for mode in GameMode.standard_modes():
            played = self.games_played(mode)
            if played > 0:
                weighted += self.rating(mode) * played
                games += played
        if games == 0:
            standard = GameMode.standard_modes()
            return sum(self.rating(mode) for mode in standard) / len(standard)
        return weighted / games

    def adjusted_global_rating(self, mega_weight: float) -> float:
        """Games-weighted mean over every mode, with mega games counted ``mega_weight`` times."""
        weighted = 0.0
        total_weight = 0.0
        for mode in GameMode.standard_modes():
            played = self.games_played(mode)
            if played > 0:
                weighted += self.rating(mode) * played
                total_weight += played

        mega_games = self.games_played(GameMode.MEGA)
        if mega_games > 0:
            weighted += self.rating(GameMode.MEGA) * mega_games * mega_weight
            total_weight += mega_games * mega_weight

        if total_weight > 0:
            return weighted / total_weight
        return sum(self.rating(mode) for mode in GameMode) / len(GameMode)

    def balancing_rating(self, mega_weight: float) -> float:
        has_standard_games = any(self.games_played(mode) > 0 for mode in GameMode.standard_modes())
        if not has_standard_games and self.games_played(GameMode.MEGA) > 0:
            return self.rating(GameMode.MEGA)
        return self.adjusted_global_rating(mega_weight)

    def record_game(self, mode: GameMode, stats: PlayerMatchStats | None, *, won: bool) -> None:
        record = self.records[mode]
        record.games_played += 1
        if won:
            record.victories += 1
        if stats is not None:
            record.kills += stats.kills
            record.deaths += stats.deaths
            record.bed_breaks += stats.bed_breaks
            record.final_kills += stats.final_kills

    def revert_game(self, mode: GameMode, stats: PlayerMatchStats | None, *, won: bool) -> None:
        record = self.records[mode]
        record.games_played = max(0, record.games_played - 1)
        if won:
            record.victories = max(0, record.victories - 1)
        if stats is not None:
            record.kills = max(0, record.kills - stats.kills)
            record.deaths = max(0, record.deaths - stats.deaths)
            record.bed_breaks = max(0, record.bed_breaks - stats.bed_breaks)
            record.final_kills = max(0, record.final_kills - stats.final_kills)

    def record_invalid_game(self, mode: GameMode, *, won: bool) -> None:
        record = self.records[mode]
        record.invalid_games += 1
        if won:
            record.invalid_wins += 1

    def reset(self, initial_rating: float) -> None:
        self.records = {mode: ModeRecord(rating=initial_rating) for mode in GameMode}


def default_player_name(player_id: str) -> str:
    return f"Player-{player_id[:8]}"


__all__ = ["ModeRecord", "Player", "default_player_name"]
