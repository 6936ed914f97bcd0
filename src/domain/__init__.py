"""Rating, balancing and ledger domain modules."""

from domain.common import TIE, GameMode, MatchResult, PlayerMatchStats
from domain.protocol import BalancePolicy, RatingStore

__all__ = ["BalancePolicy", "GameMode", "MatchResult", "PlayerMatchStats", "RatingStore", "TIE"]
