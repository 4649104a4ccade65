"""
Time series for charting.

- points_series: cumulative head-to-head points, one step per game
- monthly_series: one value per month for a chosen metric
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from duelstats.analysis.filtering import flatten_games
from duelstats.analysis.stats import MonthStats, Stats
from duelstats.analysis.streaks import winner_slot
from duelstats.core.constants import MONTH_ABBREVIATIONS, PlayerSlot
from duelstats.core.models import GamesByMonth
from duelstats.core.utils import mean_or_zero


@dataclass
class PointsSeries:
    labels: list[str] = field(default_factory=list)
    player1: list[float] = field(default_factory=list)
    player2: list[float] = field(default_factory=list)


@dataclass
class MonthlySeries:
    metric: str
    labels: list[str] = field(default_factory=list)
    player1: list[float] = field(default_factory=list)
    player2: list[float] = field(default_factory=list)


def points_series(store: GamesByMonth, player1_name: str) -> PointsSeries:
    """
    Running score of both players in chronological order.

    A win is worth 1 point and a draw 0.5 to each side. Labels are
    "Game 1", "Game 2", ...
    """
    series = PointsSeries()
    player1_points = 0.0
    player2_points = 0.0

    for index, game in enumerate(flatten_games(store), start=1):
        slot = winner_slot(game, player1_name)
        if slot is PlayerSlot.PLAYER1:
            player1_points += 1
        elif slot is PlayerSlot.PLAYER2:
            player2_points += 1
        else:
            player1_points += 0.5
            player2_points += 0.5

        series.labels.append(f"Game {index}")
        series.player1.append(player1_points)
        series.player2.append(player2_points)

    return series


def month_label(month_key: str) -> str:
    """ "2024-03" -> "Mar 2024" """
    year, _, month = month_key.partition("-")
    return f"{MONTH_ABBREVIATIONS[int(month) - 1]} {year}"


MonthMetric = Callable[[MonthStats], tuple[float, float]]

MONTHLY_METRICS: dict[str, MonthMetric] = {
    "winrate": lambda m: (m.player1_win_rate, m.player2_win_rate),
    "wins": lambda m: (m.player1_wins, m.player2_wins),
    "accuracy": lambda m: (mean_or_zero(m.player1_accuracy), mean_or_zero(m.player2_accuracy)),
    "king_moves": lambda m: (
        mean_or_zero(m.player1_king_moves),
        mean_or_zero(m.player2_king_moves),
    ),
    "streaks": lambda m: (m.streaks.player1, m.streaks.player2),
}


def monthly_series(stats: Stats, metric: str = "winrate") -> MonthlySeries:
    """
    Per-month values of one metric, oldest month first.

    Raises:
        ValueError: if ``metric`` is not one of MONTHLY_METRICS
    """
    extract = MONTHLY_METRICS.get(metric)
    if extract is None:
        raise ValueError(f"Unknown monthly metric: {metric}. Choose from {sorted(MONTHLY_METRICS)}")

    series = MonthlySeries(metric=metric)
    for key in sorted(stats.monthly_stats):
        player1_value, player2_value = extract(stats.monthly_stats[key])
        series.labels.append(month_label(key))
        series.player1.append(player1_value)
        series.player2.append(player2_value)
    return series
