"""
Date-range filtering over the month-bucketed store.

Also provides the per-day groupings used by the activity calendar.
"""

import logging
from datetime import tzinfo

from duelstats.core.constants import ALL
from duelstats.core.models import Game, GamesByMonth
from duelstats.core.utils import day_key, to_local_datetime

logger = logging.getLogger(__name__)


def filter_by_range(
    store: GamesByMonth,
    year: str,
    month: str = ALL,
    day: str | None = ALL,
    tz: tzinfo | None = None,
) -> GamesByMonth:
    """
    Select the games of a year / month / day.

    ``year == "all"`` returns the store itself, not a copy. Otherwise only
    buckets whose "YYYY-MM" key matches are kept; with a specific ``day``
    ("01".."31") games are further filtered on the local day-of-month of
    ``created_at``. Buckets left empty are dropped, so the result never
    contains an empty list.

    Args:
        store: Month-bucketed games
        year: "YYYY" or "all"
        month: "MM" or "all"
        day: "DD", "all" or None
        tz: Zone for day-of-month; None means system local time

    Returns:
        Filtered store
    """
    if year == ALL:
        return store

    filtered: GamesByMonth = {}
    for key, games in store.items():
        game_year, _, game_month = key.partition("-")
        if game_year != year or (month != ALL and game_month != month):
            continue

        if day is not None and day != ALL:
            games = [g for g in games if to_local_datetime(g.created_at, tz).strftime("%d") == day]

        if games:
            filtered[key] = games

    logger.debug(f"Filter {year}-{month}-{day}: {len(filtered)} month(s) retained")
    return filtered


def flatten_games(store: GamesByMonth) -> list[Game]:
    """All games in chronological order (months by key, then by created_at)."""
    games: list[Game] = []
    for key in sorted(store):
        games.extend(store[key])
    games.sort(key=lambda g: g.created_at)
    return games


def games_by_day(store: GamesByMonth, tz: tzinfo | None = None) -> dict[str, list[Game]]:
    """Group games by local calendar day ("YYYY-MM-DD")."""
    days: dict[str, list[Game]] = {}
    for game in flatten_games(store):
        days.setdefault(day_key(game.created_at, tz), []).append(game)
    return days


def intensity_level(count: int, max_count: int) -> int:
    """
    Bucket a day's game count into an activity level 0-5.

    0 means no games; 1-5 split the ratio to the busiest day at
    0.2 / 0.4 / 0.6 / 0.8.
    """
    if count == 0 or max_count == 0:
        return 0
    ratio = count / max_count
    if ratio >= 0.8:
        return 5
    if ratio >= 0.6:
        return 4
    if ratio >= 0.4:
        return 3
    if ratio >= 0.2:
        return 2
    return 1


def available_years(store: GamesByMonth) -> list[str]:
    """Years present in the store, ascending."""
    return sorted({key.partition("-")[0] for key, games in store.items() if games})
