"""
Opening Book Aggregator.

Groups games by opening name and tallies the head-to-head result of each
opening. Games without an opening name are left out entirely; a view that
needs an "Unknown" row builds it from the raw games itself.
"""

import logging
from dataclasses import dataclass

from duelstats.analysis.filtering import flatten_games
from duelstats.analysis.stats import win_rate
from duelstats.analysis.streaks import winner_slot
from duelstats.core.constants import PlayerSlot
from duelstats.core.models import GamesByMonth

logger = logging.getLogger(__name__)

OPENING_SORT_KEYS = (
    "games",
    "name",
    "player1_wins",
    "player2_wins",
    "draws",
    "player1_win_rate",
    "player2_win_rate",
)


@dataclass
class OpeningRecord:
    """Head-to-head results within one opening."""

    name: str
    player1_wins: int = 0
    player2_wins: int = 0
    draws: int = 0
    games: int = 0
    player1_white_games: int = 0
    player1_black_games: int = 0
    player2_white_games: int = 0
    player2_black_games: int = 0

    @property
    def player1_losses(self) -> int:
        return self.games - self.player1_wins - self.draws

    @property
    def player2_losses(self) -> int:
        return self.games - self.player2_wins - self.draws

    @property
    def player1_win_rate(self) -> float:
        return win_rate(self.player1_wins, self.player1_losses)

    @property
    def player2_win_rate(self) -> float:
        return win_rate(self.player2_wins, self.player2_losses)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "games": self.games,
            "player1_wins": self.player1_wins,
            "player2_wins": self.player2_wins,
            "draws": self.draws,
            "player1_white_games": self.player1_white_games,
            "player1_black_games": self.player1_black_games,
            "player2_white_games": self.player2_white_games,
            "player2_black_games": self.player2_black_games,
            "player1_win_rate": round(self.player1_win_rate, 1),
            "player2_win_rate": round(self.player2_win_rate, 1),
        }


def compute_opening_stats(
    store: GamesByMonth,
    player1_name: str,
    player2_name: str | None = None,
) -> dict[str, OpeningRecord]:
    """
    Tally results per opening.

    Args:
        store: Month-bucketed games
        player1_name: Name of player1; colors are attributed by name equality
        player2_name: Accepted for symmetry with the other aggregations;
            player2 is whoever is not player1

    Returns:
        Opening name -> OpeningRecord, in first-seen order
    """
    openings: dict[str, OpeningRecord] = {}

    for game in flatten_games(store):
        if game.opening is None:
            continue

        name = game.opening.name
        record = openings.get(name)
        if record is None:
            record = openings[name] = OpeningRecord(name=name)

        record.games += 1
        if game.white.name == player1_name:
            record.player1_white_games += 1
            record.player2_black_games += 1
        else:
            record.player1_black_games += 1
            record.player2_white_games += 1

        slot = winner_slot(game, player1_name)
        if slot is PlayerSlot.PLAYER1:
            record.player1_wins += 1
        elif slot is PlayerSlot.PLAYER2:
            record.player2_wins += 1
        else:
            record.draws += 1

    logger.debug(f"Aggregated {len(openings)} openings")
    return openings


def rank_openings(
    openings: dict[str, OpeningRecord],
    sort_by: str = "games",
    descending: bool = True,
) -> list[OpeningRecord]:
    """
    Order opening records for a table view.

    Ties keep first-seen order.

    Raises:
        ValueError: if ``sort_by`` is not one of OPENING_SORT_KEYS
    """
    if sort_by not in OPENING_SORT_KEYS:
        raise ValueError(f"Unknown opening sort key: {sort_by}")

    if sort_by == "name":
        return sorted(openings.values(), key=lambda r: r.name.casefold(), reverse=descending)
    return sorted(openings.values(), key=lambda r: getattr(r, sort_by), reverse=descending)
