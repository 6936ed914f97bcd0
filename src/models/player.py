"""players and player_mode_ratings table models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from domain.common import GameMode
from models.base import Base

GAME_MODE_ENUM = Enum(
    *[mode.value for mode in GameMode],
    name="game_mode",
    native_enum=False,
)


class PlayerAccount(Base):
    """Rated player identity."""

    __tablename__ = "players"

    player_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )


class PlayerModeRating(Base):
    """Current rating and cumulative counters for one player in one mode."""

    __tablename__ = "player_mode_ratings"
    __table_args__ = (
        UniqueConstraint("player_id", "mode", name="uq_player_mode_rating"),
        CheckConstraint("games_played >= 0", name="ck_player_mode_rating_games_played"),
        Index("idx_player_mode_rating_mode", "mode", "rating"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.player_id"), nullable=False)
    mode: Mapped[str] = mapped_column(GAME_MODE_ENUM, nullable=False)
    rating: Mapped[float] = mapped_column(Float, nullable=False)
    games_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    kills: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    deaths: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bed_breaks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    final_kills: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    victories: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    invalid_games: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    invalid_wins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
