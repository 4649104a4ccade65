"""
Win streaks over an ordered game sequence.

A decisive result for the same player as the previous decisive result
extends the streak, a win by the other player restarts it at 1, and a draw
resets it to 0 with no leader. Games are processed in the order given.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from duelstats.core.constants import Color, PlayerSlot
from duelstats.core.models import Game


@dataclass(frozen=True)
class StreakResult:
    """Longest win streak of each player."""

    player1: int = 0
    player2: int = 0

    def for_slot(self, slot: PlayerSlot) -> int:
        return self.player1 if slot is PlayerSlot.PLAYER1 else self.player2


def winner_slot(game: Game, player1_name: str) -> PlayerSlot | None:
    """Which head-to-head slot won the game, or None for a draw."""
    if game.winner is None:
        return None
    player1_white = game.white.name == player1_name
    if game.winner is Color.WHITE:
        return PlayerSlot.PLAYER1 if player1_white else PlayerSlot.PLAYER2
    return PlayerSlot.PLAYER2 if player1_white else PlayerSlot.PLAYER1


def compute_streaks(games: Sequence[Game], player1_name: str) -> StreakResult:
    """
    Longest streak per player across the whole sequence.

    The caller is responsible for chronological order.
    """
    best = {PlayerSlot.PLAYER1: 0, PlayerSlot.PLAYER2: 0}
    leader: PlayerSlot | None = None
    streak = 0

    for game in games:
        slot = winner_slot(game, player1_name)
        if slot is None:
            streak = 0
            leader = None
            continue

        if slot is leader:
            streak += 1
        else:
            streak = 1
            leader = slot
        best[slot] = max(best[slot], streak)

    return StreakResult(player1=best[PlayerSlot.PLAYER1], player2=best[PlayerSlot.PLAYER2])


def current_streak(games: Sequence[Game], player1_name: str) -> tuple[PlayerSlot | None, int]:
    """
    The streak still running at the end of the sequence.

    Scans backward from the most recent game and stops at the first draw or
    change of winner.

    Returns:
        (leader, length); (None, 0) when the last game was a draw
    """
    leader: PlayerSlot | None = None
    streak = 0

    for game in reversed(games):
        slot = winner_slot(game, player1_name)
        if slot is None:
            break
        if leader is not None and slot is not leader:
            break
        leader = slot
        streak += 1

    return leader, streak
