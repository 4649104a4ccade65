"""
Session Clustering Engine.

Partitions the archive into sessions: bursts of games played back to back
on the same calendar day.

Two games share a session when
  - both started on the same local calendar day, and
  - the gap between the end of the earlier game and the start of the later
    one is between 0 and min(max_gap_minutes, 120) minutes.

A day boundary always starts a new session. Session duration is the sum of
the per-game duration estimates, not the outer time span, so a single
corrupt ``lastMoveAt`` cannot inflate it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import tzinfo

from duelstats.analysis.filtering import flatten_games
from duelstats.analysis.streaks import winner_slot
from duelstats.core.constants import (
    CAPPED_SPEEDS,
    CLOCK_SECONDS_PER_PLY,
    DEFAULT_CLOCK_INITIAL_SECONDS,
    DEFAULT_SESSION_GAP_MINUTES,
    FALLBACK_GAME_MINUTES,
    FALLBACK_MINUTES_PER_PLY,
    MAX_GAME_DURATION_MINUTES,
    MAX_SESSION_GAP_MINUTES,
    PlayerSlot,
)
from duelstats.core.models import Game, GamesByMonth
from duelstats.core.utils import mean_or_zero, round_half_up, timed, to_local_datetime
from duelstats.infra.cache import GameMemo, cached_move_count

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60_000


@dataclass
class Session:
    """A cluster of consecutive games on one day."""

    games: list[Game] = field(default_factory=list)
    start_time: int = 0  # epoch ms, created_at of the first game
    end_time: int | None = None  # last_move_at of the last game, if known
    player1_score: float = 0.0
    player2_score: float = 0.0
    duration_minutes: int = 0

    @property
    def total_games(self) -> int:
        return len(self.games)

    @property
    def winner(self) -> str:
        """Slot with the strictly higher score, else "draw"."""
        if self.player1_score > self.player2_score:
            return PlayerSlot.PLAYER1.value
        if self.player2_score > self.player1_score:
            return PlayerSlot.PLAYER2.value
        return "draw"

    def add(self, game: Game, player1_name: str) -> None:
        if not self.games:
            self.start_time = game.created_at
        self.games.append(game)
        self.end_time = game.last_move_at

        slot = winner_slot(game, player1_name)
        if slot is PlayerSlot.PLAYER1:
            self.player1_score += 1
        elif slot is PlayerSlot.PLAYER2:
            self.player2_score += 1
        else:
            self.player1_score += 0.5
            self.player2_score += 0.5

    def to_dict(self) -> dict:
        return {
            "game_ids": [g.id for g in self.games],
            "start_time": self.start_time,
            "end_time": self.end_time,
            "player1_score": self.player1_score,
            "player2_score": self.player2_score,
            "total_games": self.total_games,
            "winner": self.winner,
            "duration_minutes": self.duration_minutes,
        }


@dataclass
class SessionSummary:
    """Roll-up over a list of sessions."""

    total_sessions: int = 0
    player1_wins: int = 0
    player2_wins: int = 0
    draws: int = 0
    avg_games_per_session: int = 0
    avg_duration: int = 0


def effective_end_time(game: Game, memo: GameMemo | None = None) -> int:
    """
    When a game is taken to have ended, in epoch ms.

    ``last_move_at`` when present; otherwise ``created_at`` plus one minute
    per ply, or plus 30 minutes when there are no moves either.
    """
    if game.last_move_at:
        return game.last_move_at
    plies = cached_move_count(game, memo)
    if plies:
        return game.created_at + plies * FALLBACK_MINUTES_PER_PLY * MS_PER_MINUTE
    return game.created_at + FALLBACK_GAME_MINUTES * MS_PER_MINUTE


def estimate_game_duration(game: Game, memo: GameMemo | None = None) -> int:
    """
    Estimated playing time of one game, in whole minutes.

    Starts from the elapsed ``last_move_at - created_at`` (0 when missing
    or negative). A clock-based estimate, (initial - final clock + 2 s per
    ply) / 60, replaces it when clock data exists and the estimate falls
    strictly between 0 and 120 minutes. Blitz and rapid games are capped at
    120 minutes.
    """
    minutes = 0
    if game.created_at and game.last_move_at:
        minutes = max(0, round_half_up((game.last_move_at - game.created_at) / MS_PER_MINUTE))

    if game.clock is not None and game.clocks:
        initial = game.clock.initial or DEFAULT_CLOCK_INITIAL_SECONDS
        last_clock = game.clocks[-1] / 1000
        plies = cached_move_count(game, memo)
        estimate = round_half_up((initial - last_clock + plies * CLOCK_SECONDS_PER_PLY) / 60)
        if 0 < estimate < MAX_GAME_DURATION_MINUTES:
            minutes = estimate

    if game.speed in CAPPED_SPEEDS:
        minutes = min(minutes, MAX_GAME_DURATION_MINUTES)

    return minutes


@timed
def cluster_into_sessions(
    store: GamesByMonth,
    player1_name: str,
    max_gap_minutes: float = DEFAULT_SESSION_GAP_MINUTES,
    tz: tzinfo | None = None,
    memo: GameMemo | None = None,
) -> list[Session]:
    """
    Partition all games of a store into sessions.

    Games are sorted by ``created_at`` internally; the store is not touched.

    Args:
        store: Month-bucketed games
        player1_name: Name used for score attribution
        max_gap_minutes: Largest same-day gap that keeps a session going
            (capped at 120)
        tz: Zone for calendar-day comparison; None means local time
        memo: Optional per-game memo for move counts

    Returns:
        Sessions in chronological order
    """
    games = flatten_games(store)
    if not games:
        return []

    allowed_gap = min(max_gap_minutes, MAX_SESSION_GAP_MINUTES)
    sessions: list[Session] = []
    current = Session()
    current.add(games[0], player1_name)

    for prev, game in zip(games, games[1:]):
        gap_minutes = (game.created_at - effective_end_time(prev, memo)) / MS_PER_MINUTE
        same_day = (
            to_local_datetime(prev.created_at, tz).date()
            == to_local_datetime(game.created_at, tz).date()
        )

        if not (same_day and 0 <= gap_minutes <= allowed_gap):
            sessions.append(current)
            current = Session()
        current.add(game, player1_name)

    sessions.append(current)

    for session in sessions:
        session.duration_minutes = sum(estimate_game_duration(g, memo) for g in session.games)

    logger.info(f"Clustered {len(games)} games into {len(sessions)} sessions")
    return sessions


def summarize_sessions(sessions: list[Session]) -> SessionSummary:
    """Session win counts and averages (half-up rounded)."""
    if not sessions:
        return SessionSummary()

    return SessionSummary(
        total_sessions=len(sessions),
        player1_wins=sum(1 for s in sessions if s.winner == PlayerSlot.PLAYER1.value),
        player2_wins=sum(1 for s in sessions if s.winner == PlayerSlot.PLAYER2.value),
        draws=sum(1 for s in sessions if s.winner == "draw"),
        avg_games_per_session=round_half_up(mean_or_zero(s.total_games for s in sessions)),
        avg_duration=round_half_up(mean_or_zero(s.duration_minutes for s in sessions)),
    )
