"""
Aggregate Statistics Engine.

Rolls a (filtered) store up into head-to-head statistics:
  - Win / loss / draw tallies, overall and by color
  - Best and current win streaks
  - Accuracy samples and blunder / mistake / inaccuracy totals
  - King walks (king moves per game)
  - First-move repertoire of the White player
  - Winner's remaining clock and time-pressure wins
  - Termination tallies, global and per winner
  - Monthly breakdowns
  - Game-length extremes and most common opening / first move / termination

Every win rate uses the decisive convention: wins / (wins + losses), draws
excluded from the denominator.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from operator import itemgetter
from typing import Any

from duelstats.analysis.filtering import flatten_games
from duelstats.analysis.moves import first_move
from duelstats.analysis.streaks import StreakResult, compute_streaks, current_streak
from duelstats.core.constants import TIME_PRESSURE_SECONDS, Color, PlayerSlot
from duelstats.core.loader import identify_players as default_identify_players
from duelstats.core.models import Game, GamesByMonth
from duelstats.core.utils import mean_or_zero, round_half_up, timed
from duelstats.infra.cache import GameMemo, cached_king_moves, cached_move_count

logger = logging.getLogger(__name__)

PlayerResolver = Callable[[GamesByMonth], tuple[str, str]]


def win_rate(wins: int, losses: int) -> float:
    """
    Decisive win rate as a percentage.

    Draws never enter the denominator; with no decisive games the rate is 0.
    """
    decisive = wins + losses
    if decisive == 0:
        return 0.0
    return wins / decisive * 100


def _most_common(counts: Counter[str]) -> str:
    """Key with the highest count, first seen wins ties; "-" when empty."""
    if not counts:
        return "-"
    return max(counts.items(), key=itemgetter(1))[0]


@dataclass
class PlayerStats:
    """Accumulated statistics for one side of the head-to-head."""

    name: str
    wins: int = 0
    losses: int = 0
    draws: int = 0
    best_streak: int = 0
    current_streak: int = 0

    accuracy: list[float] = field(default_factory=list)
    blunders: int = 0
    mistakes: int = 0
    inaccuracies: int = 0

    games_as_white: int = 0
    games_as_black: int = 0
    wins_as_white: int = 0
    wins_as_black: int = 0
    losses_as_white: int = 0
    losses_as_black: int = 0

    king_walks: list[int] = field(default_factory=list)
    fastest_win: int | None = None  # plies
    fastest_win_id: str | None = None
    first_moves: Counter[str] = field(default_factory=Counter)
    time_remaining: list[float] = field(default_factory=list)  # seconds, wins only
    time_pressure_wins: int = 0
    by_termination: Counter[str] = field(default_factory=Counter)

    @property
    def games(self) -> int:
        return self.wins + self.losses + self.draws

    @property
    def decisive_games(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> float:
        return win_rate(self.wins, self.losses)

    @property
    def white_win_rate(self) -> float:
        return win_rate(self.wins_as_white, self.losses_as_white)

    @property
    def black_win_rate(self) -> float:
        return win_rate(self.wins_as_black, self.losses_as_black)

    @property
    def avg_accuracy(self) -> int:
        if not self.accuracy:
            return 0
        return round_half_up(mean_or_zero(self.accuracy))

    @property
    def total_king_moves(self) -> int:
        return sum(self.king_walks)

    @property
    def avg_king_walks(self) -> float:
        return mean_or_zero(self.king_walks)

    @property
    def avg_time_remaining(self) -> float:
        return mean_or_zero(self.time_remaining)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["first_moves"] = dict(self.first_moves)
        data["by_termination"] = dict(self.by_termination)
        data.update(
            games=self.games,
            decisive_games=self.decisive_games,
            win_rate=round(self.win_rate, 1),
            white_win_rate=round(self.white_win_rate, 1),
            black_win_rate=round(self.black_win_rate, 1),
            avg_accuracy=self.avg_accuracy,
            avg_king_walks=round(self.avg_king_walks, 2),
            avg_time_remaining=round(self.avg_time_remaining, 1),
        )
        return data


@dataclass
class MonthStats:
    """Head-to-head breakdown for one "YYYY-MM" bucket."""

    games: int = 0
    player1_wins: int = 0
    player2_wins: int = 0
    draws: int = 0
    streaks: StreakResult = field(default_factory=StreakResult)
    player1_king_moves: list[int] = field(default_factory=list)
    player2_king_moves: list[int] = field(default_factory=list)
    player1_accuracy: list[float] = field(default_factory=list)
    player2_accuracy: list[float] = field(default_factory=list)

    @property
    def player1_win_rate(self) -> float:
        # In a two-player archive one side's wins are the other's losses
        return win_rate(self.player1_wins, self.player2_wins)

    @property
    def player2_win_rate(self) -> float:
        return win_rate(self.player2_wins, self.player1_wins)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.update(
            player1_win_rate=round(self.player1_win_rate, 1),
            player2_win_rate=round(self.player2_win_rate, 1),
        )
        return data


@dataclass
class Stats:
    """Everything the dashboard shows for one filter selection."""

    player1_name: str
    player2_name: str
    total_games: int
    player1: PlayerStats
    player2: PlayerStats
    by_termination: Counter[str] = field(default_factory=Counter)
    monthly_stats: dict[str, MonthStats] = field(default_factory=dict)
    game_lengths: list[int] = field(default_factory=list)
    opening_counts: Counter[str] = field(default_factory=Counter)
    longest_game_id: str | None = None
    longest_game_length: int = 0
    shortest_game_id: str | None = None
    shortest_game_length: int = 0
    most_common_opening: str = "-"
    most_common_termination: str = "-"
    most_common_first_move: str = "-"
    date_range: str = ""

    @property
    def avg_game_length(self) -> int:
        if not self.game_lengths:
            return 0
        return round_half_up(mean_or_zero(self.game_lengths))

    @property
    def draws(self) -> int:
        return self.player1.draws

    def player(self, slot: PlayerSlot) -> PlayerStats:
        return self.player1 if slot is PlayerSlot.PLAYER1 else self.player2

    def to_dict(self) -> dict[str, Any]:
        return {
            "player1_name": self.player1_name,
            "player2_name": self.player2_name,
            "total_games": self.total_games,
            "player1": self.player1.to_dict(),
            "player2": self.player2.to_dict(),
            "by_termination": dict(self.by_termination),
            "monthly_stats": {k: v.to_dict() for k, v in self.monthly_stats.items()},
            "avg_game_length": self.avg_game_length,
            "longest_game_id": self.longest_game_id,
            "longest_game_length": self.longest_game_length,
            "shortest_game_id": self.shortest_game_id,
            "shortest_game_length": self.shortest_game_length,
            "opening_counts": dict(self.opening_counts),
            "most_common_opening": self.most_common_opening,
            "most_common_termination": self.most_common_termination,
            "most_common_first_move": self.most_common_first_move,
            "date_range": self.date_range,
        }


def winner_remaining_seconds(game: Game) -> float:
    """
    Remaining clock of the winner when the game ended, in seconds.

    The final clock sample belongs to the last mover (the loser), so the
    winner's time is the second-to-last sample. A single sample is used as
    is; no samples gives 0.
    """
    clocks = game.clocks
    if len(clocks) >= 2:
        return clocks[-2] / 1000
    if len(clocks) == 1:
        return clocks[0] / 1000
    return 0.0


class _StatsAccumulator:
    """Single pass over the months of a filtered store."""

    def __init__(
        self,
        player1_name: str,
        player2_name: str,
        memo: GameMemo | None,
        time_pressure_seconds: float,
    ):
        self.player1_name = player1_name
        self.memo = memo
        self.time_pressure_seconds = time_pressure_seconds
        self.players = {
            PlayerSlot.PLAYER1: PlayerStats(name=player1_name),
            PlayerSlot.PLAYER2: PlayerStats(name=player2_name),
        }
        self.by_termination: Counter[str] = Counter()
        self.opening_counts: Counter[str] = Counter()
        self.game_lengths: list[int] = []
        self.longest: tuple[int, str | None] = (0, None)
        self.shortest: tuple[int, str | None] | None = None

    def slot_for(self, color: Color, player1_white: bool) -> PlayerSlot:
        if (color is Color.WHITE) == player1_white:
            return PlayerSlot.PLAYER1
        return PlayerSlot.PLAYER2

    def add_game(self, game: Game, month: MonthStats) -> None:
        player1_white = game.white.name == self.player1_name
        white_slot = self.slot_for(Color.WHITE, player1_white)
        black_slot = white_slot.other
        white = self.players[white_slot]
        black = self.players[black_slot]

        white.games_as_white += 1
        black.games_as_black += 1

        winner_slot = self.slot_for(game.winner, player1_white) if game.winner else None
        self._add_result(game, winner_slot, month)
        self._add_analysis(game, white_slot, black_slot, month)
        self._add_moves(game, white_slot, black_slot, winner_slot, month)
        self._add_clock(game, winner_slot)

        if game.opening is not None:
            self.opening_counts[game.opening.name] += 1

        status = str(game.status)
        self.by_termination[status] += 1
        if winner_slot is None:
            white.by_termination[status] += 1
            black.by_termination[status] += 1
        else:
            self.players[winner_slot].by_termination[status] += 1

    def _add_result(self, game: Game, winner_slot: PlayerSlot | None, month: MonthStats) -> None:
        if winner_slot is None:
            month.draws += 1
            for player in self.players.values():
                player.draws += 1
            return

        winner = self.players[winner_slot]
        loser = self.players[winner_slot.other]
        winner.wins += 1
        loser.losses += 1
        if game.winner is Color.WHITE:
            winner.wins_as_white += 1
            loser.losses_as_black += 1
        else:
            winner.wins_as_black += 1
            loser.losses_as_white += 1

        if winner_slot is PlayerSlot.PLAYER1:
            month.player1_wins += 1
        else:
            month.player2_wins += 1

    def _add_analysis(
        self, game: Game, white_slot: PlayerSlot, black_slot: PlayerSlot, month: MonthStats
    ) -> None:
        for side, slot in ((game.white, white_slot), (game.black, black_slot)):
            analysis = side.analysis
            if analysis is None:
                continue
            player = self.players[slot]
            if analysis.accuracy is not None:
                player.accuracy.append(analysis.accuracy)
                month_samples = (
                    month.player1_accuracy if slot is PlayerSlot.PLAYER1 else month.player2_accuracy
                )
                month_samples.append(analysis.accuracy)
            player.blunders += analysis.blunder
            player.mistakes += analysis.mistake
            player.inaccuracies += analysis.inaccuracy

    def _add_moves(
        self,
        game: Game,
        white_slot: PlayerSlot,
        black_slot: PlayerSlot,
        winner_slot: PlayerSlot | None,
        month: MonthStats,
    ) -> None:
        length = cached_move_count(game, self.memo)
        if length == 0:
            return

        self.game_lengths.append(length)
        if length > self.longest[0]:
            self.longest = (length, game.id)
        if self.shortest is None or length < self.shortest[0]:
            self.shortest = (length, game.id)

        if winner_slot is not None:
            winner = self.players[winner_slot]
            if winner.fastest_win is None or length < winner.fastest_win:
                winner.fastest_win = length
                winner.fastest_win_id = game.id

        king_moves = cached_king_moves(game, self.memo)
        self.players[white_slot].king_walks.append(king_moves.white)
        self.players[black_slot].king_walks.append(king_moves.black)
        by_slot = {white_slot: king_moves.white, black_slot: king_moves.black}
        month.player1_king_moves.append(by_slot[PlayerSlot.PLAYER1])
        month.player2_king_moves.append(by_slot[PlayerSlot.PLAYER2])

        self.players[white_slot].first_moves[first_move(game.moves)] += 1

    def _add_clock(self, game: Game, winner_slot: PlayerSlot | None) -> None:
        if winner_slot is None or not game.clocks:
            return
        remaining = winner_remaining_seconds(game)
        if remaining <= 0:
            return
        winner = self.players[winner_slot]
        winner.time_remaining.append(remaining)
        if remaining < self.time_pressure_seconds:
            winner.time_pressure_wins += 1


@timed
def compute_stats(
    filtered: GamesByMonth,
    all_games: GamesByMonth,
    identify_players: PlayerResolver = default_identify_players,
    memo: GameMemo | None = None,
    time_pressure_seconds: float = TIME_PRESSURE_SECONDS,
) -> Stats | None:
    """
    Compute head-to-head statistics for a filtered view.

    Args:
        filtered: The games to aggregate
        all_games: The unfiltered store, used only to resolve player names so
            they stay stable across filter changes
        identify_players: Resolver returning (player1, player2) names
        memo: Optional per-game memo for move-list scans
        time_pressure_seconds: Threshold for a time-pressure win

    Returns:
        Stats, or None when the filtered view has no games
    """
    games = flatten_games(filtered)
    if not games:
        return None

    player1_name, player2_name = identify_players(all_games)
    acc = _StatsAccumulator(player1_name, player2_name, memo, time_pressure_seconds)

    monthly_stats: dict[str, MonthStats] = {}
    sorted_months = sorted(key for key, month_games in filtered.items() if month_games)
    for key in sorted_months:
        month_games = filtered[key]
        month = MonthStats(games=len(month_games), streaks=compute_streaks(month_games, player1_name))
        for game in month_games:
            acc.add_game(game, month)
        monthly_stats[key] = month

    player1 = acc.players[PlayerSlot.PLAYER1]
    player2 = acc.players[PlayerSlot.PLAYER2]

    best = compute_streaks(games, player1_name)
    player1.best_streak = best.player1
    player2.best_streak = best.player2

    leader, length = current_streak(games, player1_name)
    if leader is not None:
        acc.players[leader].current_streak = length

    stats = Stats(
        player1_name=player1_name,
        player2_name=player2_name,
        total_games=len(games),
        player1=player1,
        player2=player2,
        by_termination=acc.by_termination,
        monthly_stats=monthly_stats,
        game_lengths=acc.game_lengths,
        opening_counts=acc.opening_counts,
        longest_game_id=acc.longest[1],
        longest_game_length=acc.longest[0],
        shortest_game_id=acc.shortest[1] if acc.shortest else None,
        shortest_game_length=acc.shortest[0] if acc.shortest else 0,
        most_common_opening=_most_common(acc.opening_counts),
        most_common_termination=_most_common(acc.by_termination),
        most_common_first_move=_most_common(player1.first_moves + player2.first_moves),
        date_range=f"({sorted_months[0]} to {sorted_months[-1]})",
    )

    logger.info(
        f"Computed stats for {stats.total_games} games: "
        f"{player1_name} {player1.wins}-{player2.wins} {player2_name} ({player1.draws} draws)"
    )
    return stats
