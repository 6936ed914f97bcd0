"""Database repository helpers."""

from repositories.rating_store import SqlRatingStore, ensure_schema

__all__ = ["SqlRatingStore", "ensure_schema"]
