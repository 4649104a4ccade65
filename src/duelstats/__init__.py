"""
duelstats - Head-to-head chess statistics

Aggregates a two-player archive of Lichess games (monthly YYYY-MM.json
files) into win/loss tallies, streaks, opening results, play sessions and
highlight rankings.

Usage:
    from duelstats import DuelContext

    ctx = DuelContext.from_directory("data/games")
    stats = ctx.stats("2024")

    print(f"{stats.player1_name}: {stats.player1.wins} wins")
"""

__version__ = "0.1.0"
__author__ = "duelstats Contributors"


def __getattr__(name):
    """Lazy import so that `import duelstats` stays cheap."""
    if name == "DuelContext":
        from duelstats.context import DuelContext
        return DuelContext
    elif name == "load_archive":
        from duelstats.core.loader import load_archive
        return load_archive
    elif name == "load_config":
        from duelstats.core.config import load_config
        return load_config
    elif name == "compute_stats":
        from duelstats.analysis.stats import compute_stats
        return compute_stats
    elif name == "cluster_into_sessions":
        from duelstats.analysis.sessions import cluster_into_sessions
        return cluster_into_sessions
    elif name == "find_highlights":
        from duelstats.analysis.highlights import find_highlights
        return find_highlights
    elif name == "export_analysis":
        from duelstats.export import export_analysis
        return export_analysis
    raise AttributeError(f"module 'duelstats' has no attribute '{name}'")


__all__ = [
    # Version
    "__version__",
    # Entry points
    "DuelContext",
    "load_archive",
    "load_config",
    "compute_stats",
    "cluster_into_sessions",
    "find_highlights",
    "export_analysis",
]
