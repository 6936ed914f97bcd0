"""rating_history table model."""

from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.player import GAME_MODE_ENUM


class RatingHistoryEntry(Base):
    """One rating change per (player, mode, match)."""

    __tablename__ = "rating_history"
    __table_args__ = (
        Index("idx_rating_history_player_mode_time", "player_id", "mode", "event_time"),
        Index("idx_rating_history_match", "match_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_id: Mapped[str] = mapped_column(String(64), nullable=False)
    mode: Mapped[str] = mapped_column(GAME_MODE_ENUM, nullable=False)
    match_id: Mapped[str] = mapped_column(String(128), nullable=False)
    event_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    previous_rating: Mapped[float] = mapped_column(Float, nullable=False)
    new_rating: Mapped[float] = mapped_column(Float, nullable=False)
    won: Mapped[bool] = mapped_column(Boolean, nullable=False)
    is_tie: Mapped[bool] = mapped_column(Boolean, nullable=False)
