"""
duelstats Analysis - Head-to-head aggregations over the game store.

This module contains:
- filtering: Year / month / day selection of month buckets
- streaks: Longest and current win streaks
- moves: King-move counter and move-list helpers
- stats: Aggregate statistics engine
- openings: Per-opening result tallies
- sessions: Session clustering and duration estimates
- highlights: Interesting-game rankings
- timeline: Points and monthly chart series

Import from the submodules directly (``from duelstats.analysis.stats
import compute_stats``). Nothing is re-exported here: ``infra.cache``
imports ``analysis.moves``.
"""

__all__: list[str] = [
    "filtering",
    "highlights",
    "moves",
    "openings",
    "sessions",
    "stats",
    "streaks",
    "timeline",
]
