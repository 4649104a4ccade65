"""
Head-to-head context: a game store plus the caches that serve it.

DuelContext is the single owner of mutable state. It holds the store, the
resolved player names, an LRU of filtered views and the per-game memo, and
it clears both caches whenever the store changes.

Usage:
    from duelstats.context import DuelContext

    ctx = DuelContext.from_directory("data/games")
    stats = ctx.stats("2024", "03")
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from duelstats.analysis.filtering import filter_by_range, flatten_games
from duelstats.analysis.highlights import Highlights, find_highlights
from duelstats.analysis.openings import OpeningRecord, compute_opening_stats
from duelstats.analysis.sessions import Session, cluster_into_sessions
from duelstats.analysis.stats import Stats, compute_stats
from duelstats.analysis.streaks import StreakResult, compute_streaks
from duelstats.analysis.timeline import PointsSeries, points_series
from duelstats.core.config import DuelStatsConfig
from duelstats.core.constants import ALL
from duelstats.core.loader import identify_players, load_archive, merge_games
from duelstats.core.models import Game, GamesByMonth
from duelstats.infra.cache import CacheStats, GameMemo, LRUCache, filter_cache_key

logger = logging.getLogger(__name__)


class DuelContext:
    """
    Store-backed entry point for every aggregation.

    Filtered views are cached by (year, month, day); move scans are memoised
    per game id. Cached values are only ever reused for the store they were
    computed from.
    """

    def __init__(self, store: GamesByMonth | None = None, config: DuelStatsConfig | None = None):
        self.config = config or DuelStatsConfig()
        self.store: GamesByMonth = store if store is not None else {}
        self.tz = self.config.get_tzinfo()
        self.filter_cache: LRUCache[str, GamesByMonth] = LRUCache(self.config.cache.filter_capacity)
        self.memo = GameMemo(self.config.cache.memo_flush_threshold)
        self.player1_name, self.player2_name = identify_players(self.store)

    @classmethod
    def from_directory(
        cls, directory: Path | str | None = None, config: DuelStatsConfig | None = None
    ) -> DuelContext:
        """Load every monthly file of an archive directory."""
        config = config or DuelStatsConfig()
        path = Path(directory) if directory is not None else Path(config.data.data_dir)
        store = load_archive(path, speed=config.data.speed or None)
        return cls(store, config)

    @property
    def total_games(self) -> int:
        return sum(len(games) for games in self.store.values())

    def filtered(self, year: str = ALL, month: str = ALL, day: str | None = ALL) -> GamesByMonth:
        """Filtered view of the store, served from the LRU when possible."""
        key = filter_cache_key(year, month, day)
        cached = self.filter_cache.get(key)
        if cached is not None:
            return cached

        result = filter_by_range(self.store, year, month, day, tz=self.tz)
        self.filter_cache.set(key, result)
        return result

    def stats(self, year: str = ALL, month: str = ALL, day: str | None = ALL) -> Stats | None:
        result = compute_stats(
            self.filtered(year, month, day),
            self.store,
            memo=self.memo,
            time_pressure_seconds=self.config.stats.time_pressure_seconds,
        )
        self.memo.cleanup()
        return result

    def streaks(self, year: str = ALL, month: str = ALL, day: str | None = ALL) -> StreakResult:
        return compute_streaks(flatten_games(self.filtered(year, month, day)), self.player1_name)

    def openings(
        self, year: str = ALL, month: str = ALL, day: str | None = ALL
    ) -> dict[str, OpeningRecord]:
        return compute_opening_stats(
            self.filtered(year, month, day), self.player1_name, self.player2_name
        )

    def sessions(
        self,
        year: str = ALL,
        month: str = ALL,
        day: str | None = ALL,
        max_gap_minutes: float | None = None,
    ) -> list[Session]:
        gap = max_gap_minutes if max_gap_minutes is not None else self.config.sessions.max_gap_minutes
        result = cluster_into_sessions(
            self.filtered(year, month, day),
            self.player1_name,
            max_gap_minutes=gap,
            tz=self.tz,
            memo=self.memo,
        )
        self.memo.cleanup()
        return result

    def highlights(self, year: str = ALL, month: str = ALL, day: str | None = ALL) -> Highlights:
        return find_highlights(
            self.filtered(year, month, day),
            self.player1_name,
            self.player2_name,
            top_n=self.config.highlights.top_n,
        )

    def points_series(self, year: str = ALL, month: str = ALL, day: str | None = ALL) -> PointsSeries:
        return points_series(self.filtered(year, month, day), self.player1_name)

    def merge(self, new_games: Iterable[Game]) -> int:
        """
        Merge freshly fetched games into the store.

        Both caches are cleared and player names re-resolved afterwards.

        Returns:
            Number of games that were not already in the store
        """
        self.store, new_count = merge_games(
            self.store, new_games, speed=self.config.data.speed or None, tz=self.tz
        )
        self.invalidate()
        self.player1_name, self.player2_name = identify_players(self.store)
        return new_count

    def invalidate(self) -> None:
        """Drop every cached view and memoised scan."""
        self.filter_cache.clear()
        self.memo.clear()
        logger.debug("Caches invalidated")

    def cache_stats(self) -> dict[str, CacheStats]:
        return {"filter": self.filter_cache.stats(), "memo": self.memo.stats()}
