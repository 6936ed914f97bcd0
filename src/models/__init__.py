"""ORM models."""

from models.base import Base
from models.history import RatingHistoryEntry
from models.match import BlacklistedMatch, ProcessedMatch, RecentMatchSlot
from models.player import PlayerAccount, PlayerModeRating

__all__ = [
    "Base",
    "BlacklistedMatch",
    "PlayerAccount",
    "PlayerModeRating",
    "ProcessedMatch",
    "RatingHistoryEntry",
    "RecentMatchSlot",
]
