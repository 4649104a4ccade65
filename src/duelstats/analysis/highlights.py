"""
Highlight Ranking Engine ("interesting games").

Ranks games that carry engine analysis into five categories:
  - Missed mates: the eventual loser had a forced mate at some ply
  - Big swings: highest combined ACPL of both sides
  - High blunders: most blunders by both sides combined
  - Great games: highest average accuracy
  - Chaotic games: lowest average accuracy

Each list holds at most ``top_n`` entries; ties keep discovery order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from duelstats.analysis.filtering import flatten_games
from duelstats.core.constants import HIGHLIGHT_TOP_N, MISSED_MATE_BASE_SCORE, Color
from duelstats.core.models import Game, GamesByMonth, PlayerAnalysis

logger = logging.getLogger(__name__)

_EMPTY_ANALYSIS = PlayerAnalysis()


@dataclass(frozen=True)
class GameMetrics:
    """A game together with the analysis figures it is ranked on."""

    game: Game
    white_acpl: int = 0
    black_acpl: int = 0
    white_blunders: int = 0
    black_blunders: int = 0
    white_accuracy: float = 0.0
    black_accuracy: float = 0.0
    player1_white: bool = True

    @property
    def total_acpl(self) -> int:
        return self.white_acpl + self.black_acpl

    @property
    def total_blunders(self) -> int:
        return self.white_blunders + self.black_blunders

    @property
    def avg_accuracy(self) -> float:
        return (self.white_accuracy + self.black_accuracy) / 2

    @property
    def player1_blunders(self) -> int:
        return self.white_blunders if self.player1_white else self.black_blunders

    @property
    def player2_blunders(self) -> int:
        return self.black_blunders if self.player1_white else self.white_blunders

    @property
    def player1_acpl(self) -> int:
        return self.white_acpl if self.player1_white else self.black_acpl

    @property
    def player2_acpl(self) -> int:
        return self.black_acpl if self.player1_white else self.white_acpl


@dataclass(frozen=True)
class MissedMate:
    """A game whose loser had a forced mate on the board."""

    metrics: GameMetrics
    mate_in: int  # shortest mate the loser had
    missed_by: Color
    missed_by_name: str

    @property
    def game(self) -> Game:
        return self.metrics.game

    @property
    def score(self) -> int:
        return MISSED_MATE_BASE_SCORE - self.mate_in


@dataclass
class Highlights:
    """The five ranked highlight lists."""

    missed_mates: list[MissedMate] = field(default_factory=list)
    big_swings: list[GameMetrics] = field(default_factory=list)
    high_blunders: list[GameMetrics] = field(default_factory=list)
    great_games: list[GameMetrics] = field(default_factory=list)
    chaotic_games: list[GameMetrics] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.missed_mates
            or self.big_swings
            or self.high_blunders
            or self.great_games
            or self.chaotic_games
        )

    def to_dict(self) -> dict[str, list[dict]]:
        def rows(entries: list[GameMetrics]) -> list[dict]:
            return [
                {
                    "game_id": m.game.id,
                    "total_acpl": m.total_acpl,
                    "total_blunders": m.total_blunders,
                    "avg_accuracy": round(m.avg_accuracy, 1),
                    "player1_acpl": m.player1_acpl,
                    "player2_acpl": m.player2_acpl,
                    "player1_blunders": m.player1_blunders,
                    "player2_blunders": m.player2_blunders,
                }
                for m in entries
            ]

        return {
            "missed_mates": [
                {
                    "game_id": mm.game.id,
                    "mate_in": mm.mate_in,
                    "missed_by": str(mm.missed_by),
                    "missed_by_name": mm.missed_by_name,
                    "score": mm.score,
                }
                for mm in self.missed_mates
            ],
            "big_swings": rows(self.big_swings),
            "high_blunders": rows(self.high_blunders),
            "great_games": rows(self.great_games),
            "chaotic_games": rows(self.chaotic_games),
        }


def game_metrics(game: Game, player1_name: str) -> GameMetrics:
    """Collect ranking figures; a missing side's analysis counts as zeros."""
    white = game.white.analysis or _EMPTY_ANALYSIS
    black = game.black.analysis or _EMPTY_ANALYSIS
    return GameMetrics(
        game=game,
        white_acpl=white.acpl or 0,
        black_acpl=black.acpl or 0,
        white_blunders=white.blunder,
        black_blunders=black.blunder,
        white_accuracy=white.accuracy or 0.0,
        black_accuracy=black.accuracy or 0.0,
        player1_white=game.white.name == player1_name,
    )


def shortest_missed_mate(game: Game) -> tuple[Color, int] | None:
    """
    Shortest forced mate the eventual loser had, if any.

    Evaluation index parity gives the side the position belongs to: even
    indices follow White's moves, odd indices follow Black's. A positive
    ``mate`` at an even index is a White mate; a negative one at an odd
    index is a Black mate.

    Returns:
        (loser color, mate distance), or None for draws, games without an
        evaluation stream, or when the loser never had a mate
    """
    loser = game.loser
    if loser is None or not game.analysis:
        return None

    best: int | None = None
    for index, evaluation in enumerate(game.analysis):
        mate = evaluation.mate
        if mate is None:
            continue
        white_position = index % 2 == 0
        if loser is Color.WHITE and white_position and mate > 0:
            distance = mate
        elif loser is Color.BLACK and not white_position and mate < 0:
            distance = -mate
        else:
            continue
        if best is None or distance < best:
            best = distance

    if best is None:
        return None
    return loser, best


def find_highlights(
    store: GamesByMonth,
    player1_name: str,
    player2_name: str | None = None,
    top_n: int = HIGHLIGHT_TOP_N,
) -> Highlights:
    """
    Rank the analysed games of a store into the five highlight lists.

    Only games where at least one side has an analysis block take part;
    with none, every list is empty.
    """
    analysed = [game_metrics(g, player1_name) for g in flatten_games(store) if g.has_player_analysis]
    if not analysed:
        return Highlights()

    missed: list[MissedMate] = []
    for metrics in analysed:
        found = shortest_missed_mate(metrics.game)
        if found is None:
            continue
        color, mate_in = found
        missed.append(
            MissedMate(
                metrics=metrics,
                mate_in=mate_in,
                missed_by=color,
                missed_by_name=metrics.game.player(color).name,
            )
        )

    highlights = Highlights(
        missed_mates=sorted(missed, key=lambda m: m.score, reverse=True)[:top_n],
        big_swings=sorted(analysed, key=lambda m: m.total_acpl, reverse=True)[:top_n],
        high_blunders=sorted(analysed, key=lambda m: m.total_blunders, reverse=True)[:top_n],
        great_games=sorted(analysed, key=lambda m: m.avg_accuracy, reverse=True)[:top_n],
        chaotic_games=sorted(analysed, key=lambda m: m.avg_accuracy)[:top_n],
    )

    logger.info(
        f"Ranked {len(analysed)} analysed games ({len(missed)} with missed mates)"
    )
    return highlights
