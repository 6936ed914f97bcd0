"""History ledger, player registry and the in-memory store."""

from domain.ledger.ledger import MatchLedger, RemovalSummary, ReplayPayloadMissingError
from domain.ledger.memory_store import InMemoryRatingStore
from domain.ledger.registry import PlayerRegistry

__all__ = [
    "InMemoryRatingStore",
    "MatchLedger",
    "PlayerRegistry",
    "RemovalSummary",
    "ReplayPayloadMissingError",
]
