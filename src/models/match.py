"""processed_matches, recent_matches and blacklisted_matches table models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.player import GAME_MODE_ENUM


class ProcessedMatch(Base):
    """Raw payload of every applied match, kept for replay."""

    __tablename__ = "processed_matches"

    match_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    mode: Mapped[str] = mapped_column(GAME_MODE_ENUM, nullable=False)
    event_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    processed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )


class RecentMatchSlot(Base):
    """Recent-window slot; position 0 is the newest match."""

    __tablename__ = "recent_matches"

    position: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    match_id: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    mode: Mapped[str] = mapped_column(GAME_MODE_ENUM, nullable=False)
    event_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    deltas: Mapped[dict[str, float]] = mapped_column(JSON, nullable=False)


class BlacklistedMatch(Base):
    __tablename__ = "blacklisted_matches"

    match_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
