"""
duelstats Data Contracts

The shape of a single archived game as exported by Lichess, and the
month-bucketed store every aggregation reads from.

Every optional part of the export (per-player analysis, opening, clock
settings, clock samples, engine evaluations, moves) is an explicit
``None``/empty field here, so consumers handle the absent case directly.

Producers: core/loader.py
Consumers: analysis/*, context.py, export.py
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from duelstats.core.constants import Color, Termination

logger = logging.getLogger(__name__)


def _opt_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _opt_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class PlayerAnalysis:
    """Engine summary for one side of a game."""

    accuracy: float | None = None  # 0-100
    acpl: int | None = None  # average centipawn loss
    blunder: int = 0
    mistake: int = 0
    inaccuracy: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PlayerAnalysis | None:
        if not isinstance(data, dict):
            return None
        return cls(
            accuracy=_opt_float(data.get("accuracy")),
            acpl=_opt_int(data.get("acpl")),
            blunder=_opt_int(data.get("blunder")) or 0,
            mistake=_opt_int(data.get("mistake")) or 0,
            inaccuracy=_opt_int(data.get("inaccuracy")) or 0,
        )


@dataclass(frozen=True)
class GamePlayer:
    """One participant. Identity is the display name."""

    name: str
    rating: int | None = None
    analysis: PlayerAnalysis | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> GamePlayer:
        data = data if isinstance(data, dict) else {}
        user = data.get("user") if isinstance(data.get("user"), dict) else {}
        name = user.get("name") or data.get("name") or ""
        return cls(
            name=str(name),
            rating=_opt_int(data.get("rating")),
            analysis=PlayerAnalysis.from_dict(data.get("analysis")),
        )


@dataclass(frozen=True)
class MoveEval:
    """
    Engine evaluation of the position after one ply.

    ``mate`` is signed: positive favors White, negative favors Black, the
    magnitude is the number of moves to mate.
    """

    eval: int | None = None  # centipawns, White's point of view
    mate: int | None = None
    best: str | None = None
    judgment: str | None = None  # Inaccuracy / Mistake / Blunder

    @classmethod
    def from_dict(cls, data: Any) -> MoveEval:
        if not isinstance(data, dict):
            return cls()
        judgment = data.get("judgment")
        return cls(
            eval=_opt_int(data.get("eval")),
            mate=_opt_int(data.get("mate")),
            best=data.get("best"),
            judgment=judgment.get("name") if isinstance(judgment, dict) else None,
        )


@dataclass(frozen=True)
class Clock:
    """Time control settings, in seconds."""

    initial: int | None = None
    increment: int | None = None
    total_time: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Clock | None:
        if not isinstance(data, dict):
            return None
        return cls(
            initial=_opt_int(data.get("initial")),
            increment=_opt_int(data.get("increment")),
            total_time=_opt_int(data.get("totalTime")),
        )


@dataclass(frozen=True)
class Opening:
    """Opening classification attached to a game."""

    name: str
    eco: str | None = None
    ply: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Opening | None:
        if not isinstance(data, dict) or not data.get("name"):
            return None
        return cls(name=str(data["name"]), eco=data.get("eco"), ply=_opt_int(data.get("ply")))


@dataclass(frozen=True)
class Game:
    """
    A single archived game. Immutable once loaded.

    ``last_move_at`` may be absent or implausible (earlier than
    ``created_at``, or hours after it for a blitz game); consumers must
    tolerate both.
    """

    id: str
    created_at: int  # epoch ms
    white: GamePlayer
    black: GamePlayer
    last_move_at: int | None = None  # epoch ms
    speed: str = ""
    status: Termination = Termination.UNKNOWN
    winner: Color | None = None  # None for draws
    moves: str = ""
    opening: Opening | None = None
    clock: Clock | None = None
    clocks: tuple[int, ...] = field(default_factory=tuple)  # remaining ms, one per ply
    analysis: tuple[MoveEval, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Game:
        """Build a Game from one Lichess export record."""
        players = data.get("players") if isinstance(data.get("players"), dict) else {}
        winner = data.get("winner")
        clocks = data.get("clocks") or []
        analysis = data.get("analysis") or []
        return cls(
            id=str(data.get("id", "")),
            created_at=_opt_int(data.get("createdAt")) or 0,
            last_move_at=_opt_int(data.get("lastMoveAt")),
            speed=str(data.get("speed") or ""),
            status=Termination.from_code(data.get("status")),
            winner=Color(winner) if winner in ("white", "black") else None,
            white=GamePlayer.from_dict(players.get("white")),
            black=GamePlayer.from_dict(players.get("black")),
            moves=data.get("moves") or "",
            opening=Opening.from_dict(data.get("opening")),
            clock=Clock.from_dict(data.get("clock")),
            clocks=tuple(c for c in (_opt_int(v) for v in clocks) if c is not None),
            analysis=tuple(MoveEval.from_dict(a) for a in analysis),
        )

    @property
    def move_tokens(self) -> list[str]:
        return self.moves.split()

    @property
    def move_count(self) -> int:
        """Number of plies in the move list."""
        return len(self.move_tokens)

    @property
    def has_player_analysis(self) -> bool:
        return self.white.analysis is not None or self.black.analysis is not None

    def player(self, color: Color) -> GamePlayer:
        return self.white if color is Color.WHITE else self.black

    def color_of(self, name: str) -> Color | None:
        """Color played by ``name``, or None if they did not play this game."""
        if self.white.name == name:
            return Color.WHITE
        if self.black.name == name:
            return Color.BLACK
        return None

    @property
    def winner_name(self) -> str | None:
        if self.winner is None:
            return None
        return self.player(self.winner).name

    @property
    def loser(self) -> Color | None:
        return self.winner.opponent if self.winner is not None else None


# Canonical in-memory store: "YYYY-MM" -> games of that calendar month
GamesByMonth = dict[str, list[Game]]
