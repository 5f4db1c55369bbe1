"""Leaderboard aggregation."""

from .aggregator import RankingAggregator, build_reason_summary, rank_from_store

__all__ = ["RankingAggregator", "build_reason_summary", "rank_from_store"]
