"""
Monthly archive loader.

Reads ``{YYYY}-{MM}.json`` shards (one JSON array of Lichess game records per
calendar month) into the month-bucketed store, and merges freshly fetched
records into an existing store.

The aggregation core never calls into this module; it only consumes the
GamesByMonth it produces.
"""

import json
import logging
import re
from collections.abc import Iterable
from datetime import tzinfo
from pathlib import Path
from typing import Any

from duelstats.core.constants import BLITZ, DEFAULT_PLAYER_NAMES, MONTH_FILE_PATTERN
from duelstats.core.models import Game, GamesByMonth
from duelstats.core.utils import month_key

logger = logging.getLogger(__name__)

_MONTH_FILE_RE = re.compile(MONTH_FILE_PATTERN)


def _parse_records(records: Iterable[Any], speed: str | None) -> list[Game]:
    games = []
    for record in records:
        if not isinstance(record, dict):
            continue
        if speed and record.get("speed") != speed:
            continue
        games.append(Game.from_dict(record))
    return games


def load_month_file(path: Path, speed: str | None = BLITZ) -> list[Game]:
    """
    Load one monthly shard.

    Args:
        path: Path to a ``YYYY-MM.json`` file
        speed: Speed category to keep (None keeps everything)

    Returns:
        Games in file order; an empty list if the file is unreadable
    """
    try:
        with open(path, encoding="utf-8") as f:
            records = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Skipping unreadable archive file {path}: {e}")
        return []

    if not isinstance(records, list):
        logger.warning(f"Skipping {path}: expected a JSON array, got {type(records).__name__}")
        return []

    games = _parse_records(records, speed)
    logger.debug(f"Loaded {len(games)}/{len(records)} games from {path.name}")
    return games


def load_archive(directory: Path, speed: str | None = BLITZ) -> GamesByMonth:
    """
    Load every monthly shard in a directory.

    Files not named ``YYYY-MM.json`` are ignored and months with no games
    of the requested speed are omitted.
    """
    store: GamesByMonth = {}
    if not directory.is_dir():
        logger.warning(f"Archive directory not found: {directory}")
        return store

    for path in sorted(directory.iterdir()):
        match = _MONTH_FILE_RE.match(path.name)
        if not match or not path.is_file():
            continue
        games = load_month_file(path, speed)
        if games:
            store[f"{match.group(1)}-{match.group(2)}"] = games

    total = sum(len(g) for g in store.values())
    logger.info(f"Loaded {total} games across {len(store)} months from {directory}")
    return store


def load_records(records: Iterable[dict[str, Any]], speed: str | None = BLITZ) -> list[Game]:
    """Parse raw records (e.g. NDJSON lines from an API response)."""
    return _parse_records(records, speed)


def _merge_key(game: Game) -> str | tuple[int, str]:
    return game.id or (game.created_at, game.moves or "")


def merge_games(
    store: GamesByMonth,
    new_games: Iterable[Game],
    speed: str | None = BLITZ,
    tz: tzinfo | None = None,
) -> tuple[GamesByMonth, int]:
    """
    Merge new games into a store.

    Games are de-duplicated by id (a new record replaces the stored one).
    Records without an id are matched on ``(created_at, moves)`` instead.
    Games are re-bucketed by calendar month and sorted by ``created_at``
    inside each month. The input store is left untouched.

    Returns:
        (merged store, number of games that were not already present)
    """
    by_id: dict[str | tuple[int, str], Game] = {}
    for games in store.values():
        for game in games:
            by_id[_merge_key(game)] = game

    new_count = 0
    for game in new_games:
        if speed and game.speed != speed:
            continue
        key = _merge_key(game)
        if key not in by_id:
            new_count += 1
        by_id[key] = game

    merged: GamesByMonth = {}
    for game in by_id.values():
        merged.setdefault(month_key(game.created_at, tz), []).append(game)

    for games in merged.values():
        games.sort(key=lambda g: g.created_at)

    logger.info(f"Merged {new_count} new games ({len(by_id)} total)")
    return merged, new_count


def most_recent_timestamp(store: GamesByMonth) -> int:
    """Latest ``created_at`` in the store, or 0 when it is empty."""
    return max((g.created_at for games in store.values() for g in games), default=0)


def identify_players(store: GamesByMonth) -> tuple[str, str]:
    """
    Resolve the (player1, player2) pair.

    Names come from the first game of the earliest non-empty month:
    player1 is whoever had White there.
    """
    for key in sorted(store):
        games = store[key]
        if games:
            return games[0].white.name, games[0].black.name
    return DEFAULT_PLAYER_NAMES
