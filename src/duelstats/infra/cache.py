"""
In-memory caching for the aggregation pipeline.

Provides:
- A fixed-capacity LRU cache for filtered views of the store, keyed by
  "{year}-{month}-{day}"
- An unbounded per-game memo for move-list scans (king moves, move
  counts) with a size-based flush

Neither cache encodes a data version: whoever changes the underlying store
must clear them. Clearing only costs recomputation, never correctness.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

from duelstats.analysis.moves import KingMoves, count_king_moves, move_count
from duelstats.core.constants import ALL, FILTER_CACHE_CAPACITY, MEMO_FLUSH_THRESHOLD
from duelstats.core.models import Game

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class CacheStats:
    """Cache statistics."""

    total_entries: int
    capacity: int | None = None
    hit_count: int = 0
    miss_count: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hit_count + self.miss_count
        return (self.hit_count / total * 100) if total > 0 else 0.0

    def to_dict(self) -> dict:
        return {
            "total_entries": self.total_entries,
            "capacity": self.capacity,
            "hit_count": self.hit_count,
            "miss_count": self.miss_count,
            "hit_rate_pct": round(self.hit_rate, 1),
        }


def filter_cache_key(year: str, month: str, day: str | None) -> str:
    """Composite key for a filtered view."""
    return f"{year}-{month}-{day or ALL}"


class LRUCache(Generic[K, V]):
    """
    Least-recently-used cache with a fixed capacity.

    ``get`` refreshes an entry's recency; ``set`` on a full cache evicts the
    least recently used entry before inserting.
    """

    def __init__(self, capacity: int = FILTER_CACHE_CAPACITY):
        if capacity < 1:
            raise ValueError(f"LRU capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: OrderedDict[K, V] = OrderedDict()
        self._hits = 0
        self._misses = 0

    def get(self, key: K, default: V | None = None) -> V | None:
        if key not in self._entries:
            self._misses += 1
            return default
        self._hits += 1
        self._entries.move_to_end(key)
        return self._entries[key]

    def set(self, key: K, value: V) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"LRU evicted {evicted!r}")
        self._entries[key] = value

    def keys(self) -> list[K]:
        """Keys from least to most recently used."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> CacheStats:
        return CacheStats(
            total_entries=len(self._entries),
            capacity=self.capacity,
            hit_count=self._hits,
            miss_count=self._misses,
        )

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class GameMemo:
    """
    Per-game memo of move-list scans.

    Keyed by game id, or by the move string itself when a game has no id.
    Tables grow without bound until ``cleanup`` finds one above
    ``flush_threshold`` entries and drops it.
    """

    def __init__(self, flush_threshold: int = MEMO_FLUSH_THRESHOLD):
        self.flush_threshold = flush_threshold
        self._king_moves: dict[str, KingMoves] = {}
        self._move_counts: dict[str, int] = {}
        self._hits = 0
        self._misses = 0

    @staticmethod
    def _key(moves: str, game_id: str | None) -> str:
        return game_id or moves

    def king_moves(self, moves: str | None, game_id: str | None = None) -> KingMoves:
        if not moves:
            return KingMoves()
        key = self._key(moves, game_id)
        cached = self._king_moves.get(key)
        if cached is not None:
            self._hits += 1
            return cached
        self._misses += 1
        result = count_king_moves(moves)
        self._king_moves[key] = result
        return result

    def move_count(self, moves: str | None, game_id: str | None = None) -> int:
        if not moves:
            return 0
        key = self._key(moves, game_id)
        cached = self._move_counts.get(key)
        if cached is not None:
            self._hits += 1
            return cached
        self._misses += 1
        result = move_count(moves)
        self._move_counts[key] = result
        return result

    def king_moves_for(self, game: Game) -> KingMoves:
        return self.king_moves(game.moves, game.id)

    def move_count_for(self, game: Game) -> int:
        return self.move_count(game.moves, game.id)

    def cleanup(self) -> bool:
        """
        Drop any table that has grown past the flush threshold.

        Returns:
            True if something was flushed
        """
        flushed = False
        for name, table in (("king_moves", self._king_moves), ("move_counts", self._move_counts)):
            if len(table) > self.flush_threshold:
                logger.info(f"Flushing {name} memo ({len(table)} entries)")
                table.clear()
                flushed = True
        return flushed

    def clear(self) -> None:
        self._king_moves.clear()
        self._move_counts.clear()

    def stats(self) -> CacheStats:
        return CacheStats(
            total_entries=len(self._king_moves) + len(self._move_counts),
            hit_count=self._hits,
            miss_count=self._misses,
        )

    def __len__(self) -> int:
        return len(self._king_moves) + len(self._move_counts)


def cached_move_count(game: Game, memo: GameMemo | None) -> int:
    """Move count through the memo when one is supplied."""
    return memo.move_count_for(game) if memo is not None else game.move_count


def cached_king_moves(game: Game, memo: GameMemo | None) -> KingMoves:
    """King-move counts through the memo when one is supplied."""
    return memo.king_moves_for(game) if memo is not None else count_king_moves(game.moves)


__all__: list[str] = [
    "CacheStats",
    "GameMemo",
    "LRUCache",
    "cached_king_moves",
    "cached_move_count",
    "filter_cache_key",
]
