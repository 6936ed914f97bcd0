"""Matchmaking team balancer."""

from domain.balancing.balancer import BalanceResult, TeamBalancer, rating_selector

__all__ = ["BalanceResult", "TeamBalancer", "rating_selector"]
