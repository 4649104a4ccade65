"""
duelstats Infrastructure - Support components for the aggregation pipeline.

This module contains:
- cache: LRU cache for filtered views and the per-game move-scan memo
"""

from duelstats.infra.cache import CacheStats, GameMemo, LRUCache, filter_cache_key

__all__: list[str] = [
    "CacheStats",
    "GameMemo",
    "LRUCache",
    "filter_cache_key",
]
