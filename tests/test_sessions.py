"""Tests for session clustering and game duration estimates."""

from datetime import datetime, timezone

from duelstats.analysis.filtering import flatten_games
from duelstats.analysis.sessions import (
    Session,
    cluster_into_sessions,
    effective_end_time,
    estimate_game_duration,
    summarize_sessions,
)
from duelstats.core.constants import Color
from duelstats.core.models import Clock, Game, GamePlayer, GamesByMonth
from duelstats.core.utils import month_key

P1 = "alice"
P2 = "bob"
UTC = timezone.utc
MINUTE = 60_000


def _ts(day: int, hour: int, minute: int = 0) -> int:
    return int(datetime(2024, 3, day, hour, minute, tzinfo=UTC).timestamp() * 1000)


def _make_game(
    game_id: str,
    start: int,
    minutes: int | None = 5,
    winner: Color | None = Color.WHITE,
    white: str = P1,
    moves: str = "e4 e5 Nf3 Nc6",
    speed: str = "blitz",
    clock: Clock | None = None,
    clocks: tuple[int, ...] = (),
) -> Game:
    return Game(
        id=game_id,
        created_at=start,
        last_move_at=start + minutes * MINUTE if minutes is not None else None,
        white=GamePlayer(white),
        black=GamePlayer(P2 if white == P1 else P1),
        winner=winner,
        moves=moves,
        speed=speed,
        clock=clock,
        clocks=clocks,
    )


def _store(*games: Game) -> GamesByMonth:
    store: GamesByMonth = {}
    for game in games:
        store.setdefault(month_key(game.created_at, UTC), []).append(game)
    return store


def _session_ids(sessions: list[Session]) -> list[list[str]]:
    return [[g.id for g in s.games] for s in sessions]


class TestClusterIntoSessions:
    """Test session boundaries."""

    def test_empty_store(self):
        """No games, no sessions."""
        assert cluster_into_sessions({}, P1, tz=UTC) == []

    def test_gap_within_limit_joins(self):
        """A 5 minute gap keeps the session going; 24 minutes does not."""
        store = _store(
            _make_game("a", _ts(10, 12, 0)),
            _make_game("b", _ts(10, 12, 10)),
            _make_game("c", _ts(10, 12, 39)),
        )
        sessions = cluster_into_sessions(store, P1, max_gap_minutes=15, tz=UTC)
        assert _session_ids(sessions) == [["a", "b"], ["c"]]

    def test_gap_exactly_at_limit_joins(self):
        """The gap bound is inclusive."""
        store = _store(
            _make_game("a", _ts(10, 12, 0)),
            _make_game("b", _ts(10, 12, 20)),
        )
        assert len(cluster_into_sessions(store, P1, max_gap_minutes=15, tz=UTC)) == 1

    def test_day_boundary_splits(self):
        """Games three minutes apart across midnight are separate sessions."""
        store = _store(
            _make_game("late", _ts(10, 23, 50)),
            _make_game("early", _ts(11, 0, 0), minutes=4),
        )
        sessions = cluster_into_sessions(store, P1, max_gap_minutes=60, tz=UTC)
        assert _session_ids(sessions) == [["late"], ["early"]]

    def test_gap_capped_at_two_hours(self):
        """Asking for 500 minutes still splits on a 130 minute gap."""
        store = _store(
            _make_game("a", _ts(10, 8, 0)),
            _make_game("b", _ts(10, 10, 5)),
            _make_game("c", _ts(10, 12, 20)),
        )
        sessions = cluster_into_sessions(store, P1, max_gap_minutes=500, tz=UTC)
        assert _session_ids(sessions) == [["a", "b"], ["c"]]

    def test_overlapping_game_starts_new_session(self):
        """A negative gap is outside the allowed range."""
        store = _store(
            _make_game("a", _ts(10, 12, 0), minutes=30),
            _make_game("b", _ts(10, 12, 10)),
        )
        assert len(cluster_into_sessions(store, P1, tz=UTC)) == 2

    def test_partition_of_all_games(self):
        """Sessions concatenate back to the chronological game list."""
        store = _store(
            _make_game("d", _ts(12, 9, 0)),
            _make_game("a", _ts(10, 12, 0)),
            _make_game("b", _ts(10, 12, 7)),
            _make_game("c", _ts(11, 20, 0)),
        )
        sessions = cluster_into_sessions(store, P1, tz=UTC)
        flattened = [g.id for s in sessions for g in s.games]
        assert flattened == [g.id for g in flatten_games(store)]
        assert all(s.games for s in sessions)

    def test_scores_and_winner(self):
        """Wins count 1, draws 0.5 each; colors do not matter."""
        store = _store(
            _make_game("a", _ts(10, 12, 0), winner=Color.WHITE),
            _make_game("b", _ts(10, 12, 6), winner=None),
            _make_game("c", _ts(10, 12, 12), winner=Color.WHITE, white=P2),
            _make_game("d", _ts(10, 12, 18), winner=Color.BLACK, white=P2),
        )
        (session,) = cluster_into_sessions(store, P1, tz=UTC)
        assert session.player1_score == 2.5
        assert session.player2_score == 1.5
        assert session.winner == "player1"
        assert session.total_games == 4

    def test_equal_scores_is_draw(self):
        """One win each is a drawn session."""
        store = _store(
            _make_game("a", _ts(10, 12, 0), winner=Color.WHITE),
            _make_game("b", _ts(10, 12, 6), winner=Color.BLACK),
        )
        (session,) = cluster_into_sessions(store, P1, tz=UTC)
        assert session.winner == "draw"

    def test_duration_is_sum_of_games(self):
        """A session of a 5 and a 6 minute game lasts 11 minutes."""
        store = _store(
            _make_game("a", _ts(10, 12, 0), minutes=5),
            _make_game("b", _ts(10, 12, 10), minutes=6),
        )
        (session,) = cluster_into_sessions(store, P1, tz=UTC)
        assert session.duration_minutes == 11
        assert session.start_time == _ts(10, 12, 0)
        assert session.end_time == _ts(10, 12, 16)

    def test_missing_last_move_uses_ply_estimate(self):
        """Without lastMoveAt a 4-ply game ends 4 minutes after it started."""
        store = _store(
            _make_game("a", _ts(10, 12, 0), minutes=None),
            _make_game("b", _ts(10, 12, 19)),
        )
        sessions = cluster_into_sessions(store, P1, max_gap_minutes=15, tz=UTC)
        assert len(sessions) == 1


class TestDurationEstimates:
    """Test end-time and duration heuristics."""

    def test_effective_end_time_prefers_last_move(self):
        """lastMoveAt wins when present."""
        game = _make_game("a", _ts(10, 12), minutes=7)
        assert effective_end_time(game) == _ts(10, 12, 7)

    def test_effective_end_time_without_moves(self):
        """No lastMoveAt and no moves: 30 minutes."""
        game = _make_game("a", _ts(10, 12), minutes=None, moves="")
        assert effective_end_time(game) == _ts(10, 12, 30)

    def test_elapsed_minutes(self):
        """Plain elapsed time when no clock data exists."""
        assert estimate_game_duration(_make_game("a", _ts(10, 12), minutes=9)) == 9

    def test_negative_elapsed_is_zero(self):
        """lastMoveAt before createdAt gives 0."""
        game = _make_game("a", _ts(10, 12), minutes=-5)
        assert estimate_game_duration(game) == 0

    def test_clock_estimate_replaces_elapsed(self):
        """(180 - 100 + 10 * 2) / 60 rounds to 2 minutes."""
        game = _make_game(
            "a", _ts(10, 12), minutes=45,
            moves=" ".join(["e4"] * 10),
            clock=Clock(initial=180, increment=0),
            clocks=(180_000, 100_000),
        )
        assert estimate_game_duration(game) == 2

    def test_blitz_capped(self):
        """A corrupt 200 minute blitz game counts as 120."""
        game = _make_game("a", _ts(10, 8), minutes=200)
        assert estimate_game_duration(game) == 120

    def test_classical_not_capped(self):
        """Only blitz and rapid are capped."""
        game = _make_game("a", _ts(10, 8), minutes=200, speed="classical")
        assert estimate_game_duration(game) == 200


class TestSummarizeSessions:
    """Test the session roll-up."""

    def test_empty(self):
        """No sessions gives zeros."""
        summary = summarize_sessions([])
        assert summary.total_sessions == 0
        assert summary.avg_duration == 0

    def test_counts_and_averages(self):
        """Wins per player, drawn sessions and half-up averages."""
        store = _store(
            _make_game("a", _ts(10, 12, 0), minutes=5),
            _make_game("b", _ts(11, 12, 0), minutes=6, winner=Color.BLACK),
            _make_game("c", _ts(12, 12, 0), minutes=5, winner=None),
            _make_game("d", _ts(12, 12, 8), minutes=5, winner=None),
        )
        summary = summarize_sessions(cluster_into_sessions(store, P1, tz=UTC))
        assert summary.total_sessions == 3
        assert (summary.player1_wins, summary.player2_wins, summary.draws) == (1, 1, 1)
        assert summary.avg_games_per_session == 1  # 4 / 3
        assert summary.avg_duration == 7  # (5 + 6 + 10) / 3
