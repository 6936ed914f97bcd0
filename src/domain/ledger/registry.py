"""Fetch-or-create access to players."""

from __future__ import annotations

from collections.abc import Iterable

from domain.player import Player
from domain.protocol import RatingStore
from domain.ratings.config import RatingParameters


class PlayerRegistry:
    """Creates players on first appearance; legacy players start at the boosted rating."""

    def __init__(
        self,
        store: RatingStore,
        params: RatingParameters | None = None,
        *,
        legacy_player_ids: Iterable[str] = (),
    ) -> None:
        self.store = store
        self.params = params or RatingParameters()
        self.legacy_player_ids = frozenset(legacy_player_ids)

    def initial_rating_for(self, player_id: str) -> float:
        if player_id in self.legacy_player_ids:
            return self.params.legacy_initial_rating
        return self.params.initial_rating

    def get_or_create(self, player_id: str, name: str | None = None) -> Player:
        player = self.store.get_player(player_id)
        if player is None:
            player = Player.new(player_id, name, self.initial_rating_for(player_id))
            self.store.save_player(player)
        elif name and name != player.name:
            player.name = name
            self.store.save_player(player)
        return player

    def lookup(self, player_id: str) -> Player:
        """Return the stored player or an unsaved one at the initial rating."""
        player = self.store.get_player(player_id)
        if player is None:
            return Player.new(player_id, None, self.initial_rating_for(player_id))
        return player

    def reset_player(self, player_id: str) -> Player | None:
        player = self.store.get_player(player_id)
        if player is None:
            return None
        player.reset(self.initial_rating_for(player_id))
        self.store.save_player(player)
        return player


__all__ = ["PlayerRegistry"]
