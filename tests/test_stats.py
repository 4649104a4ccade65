"""Tests for the aggregate statistics engine."""

import pytest

from duelstats.analysis.stats import (
    PlayerStats,
    compute_stats,
    win_rate,
    winner_remaining_seconds,
)
from duelstats.core.constants import Color, Termination
from duelstats.core.models import Game, GamePlayer, GamesByMonth, Opening, PlayerAnalysis
from duelstats.infra.cache import GameMemo

P1 = "alice"
P2 = "bob"
JAN = 1_704_100_000_000  # 2024-01-01
FEB = 1_706_800_000_000  # 2024-02-01


def _make_game(
    game_id: str,
    created_at: int,
    white: str = P1,
    winner: Color | None = Color.WHITE,
    moves: str = "e4 e5",
    status: Termination = Termination.RESIGN,
    white_analysis: PlayerAnalysis | None = None,
    black_analysis: PlayerAnalysis | None = None,
    clocks: tuple[int, ...] = (),
    opening: str | None = None,
) -> Game:
    black = P2 if white == P1 else P1
    return Game(
        id=game_id,
        created_at=created_at,
        white=GamePlayer(white, analysis=white_analysis),
        black=GamePlayer(black, analysis=black_analysis),
        winner=winner,
        moves=moves,
        status=status,
        clocks=clocks,
        opening=Opening(opening) if opening else None,
    )


def _make_store() -> GamesByMonth:
    return {
        "2024-01": [
            _make_game(
                "g1", JAN, white=P1, winner=Color.WHITE,
                moves="e4 e5 Ke2 Ke7", status=Termination.MATE,
                white_analysis=PlayerAnalysis(accuracy=90, acpl=20, blunder=1, mistake=1),
                black_analysis=PlayerAnalysis(accuracy=70, acpl=60, blunder=2, inaccuracy=3),
                clocks=(300_000, 299_000, 25_000, 20_000),
                opening="King's Pawn Game",
            ),
            _make_game(
                "g2", JAN + 600_000, white=P2, winner=Color.WHITE,
                moves="d4 d5 c4", status=Termination.RESIGN,
                opening="Queen's Gambit",
            ),
            _make_game(
                "g3", JAN + 1_200_000, white=P2, winner=None,
                moves="e4 c5", status=Termination.DRAW,
                opening="Queen's Gambit",
            ),
        ],
        "2024-02": [
            _make_game(
                "g4", FEB, white=P1, winner=Color.BLACK,
                moves="e4 e5 Nf3 Nc6 O-O Kd8", status=Termination.OUT_OF_TIME,
                clocks=(300_000, 300_000, 100_000, 50_000),
            ),
        ],
    }


class TestWinRate:
    """Test the decisive win-rate convention."""

    def test_draws_excluded(self):
        """3 wins, 1 loss -> 75% whatever the draws."""
        assert win_rate(3, 1) == 75.0

    def test_no_decisive_games(self):
        """Only draws gives 0, not a division error."""
        assert win_rate(0, 0) == 0.0


class TestComputeStats:
    """Test compute_stats on a small two-month archive."""

    def test_empty_filtered_returns_none(self):
        """No games in the selection gives None."""
        assert compute_stats({}, _make_store()) is None

    def test_result_tallies(self):
        """Wins, losses and draws per player."""
        stats = compute_stats(_make_store(), _make_store())
        assert stats.total_games == 4
        assert (stats.player1.wins, stats.player1.losses, stats.player1.draws) == (1, 2, 1)
        assert (stats.player2.wins, stats.player2.losses, stats.player2.draws) == (2, 1, 1)
        assert stats.draws == 1

    def test_wins_plus_draws_cover_all_games(self):
        """Every game is a win for one side or a draw."""
        stats = compute_stats(_make_store(), _make_store())
        assert stats.player1.wins + stats.player2.wins + stats.draws == stats.total_games

    def test_decisive_win_rates(self):
        """Overall and per-color rates exclude draws."""
        stats = compute_stats(_make_store(), _make_store())
        assert stats.player1.win_rate == pytest.approx(100 / 3)
        assert stats.player2.win_rate == pytest.approx(200 / 3)
        assert stats.player1.white_win_rate == 50.0
        assert stats.player1.black_win_rate == 0.0
        assert stats.player2.white_win_rate == 100.0
        assert stats.player2.black_win_rate == 50.0

    def test_color_counts(self):
        """Games as White and Black add up."""
        stats = compute_stats(_make_store(), _make_store())
        p1 = stats.player1
        assert p1.games_as_white == 2
        assert p1.games_as_black == 2
        assert p1.games_as_white + p1.games_as_black == stats.total_games

    def test_streaks(self):
        """Draw in the middle breaks runs; the last game sets the current streak."""
        stats = compute_stats(_make_store(), _make_store())
        assert stats.player1.best_streak == 1
        assert stats.player2.best_streak == 1
        assert stats.player2.current_streak == 1
        assert stats.player1.current_streak == 0

    def test_analysis_totals(self):
        """Both sides' accuracy and error counts are credited."""
        stats = compute_stats(_make_store(), _make_store())
        assert stats.player1.accuracy == [90]
        assert stats.player2.accuracy == [70]
        assert stats.player1.avg_accuracy == 90
        assert stats.player1.blunders == 1
        assert stats.player2.blunders == 2
        assert stats.player1.mistakes == 1
        assert stats.player2.inaccuracies == 3

    def test_king_walks(self):
        """King moves follow the player through color changes."""
        stats = compute_stats(_make_store(), _make_store())
        assert stats.player1.king_walks == [1, 0, 0, 1]
        assert stats.player2.king_walks == [1, 0, 0, 1]
        assert stats.player1.total_king_moves == 2

    def test_fastest_win(self):
        """Shortest winning game in plies."""
        stats = compute_stats(_make_store(), _make_store())
        assert (stats.player1.fastest_win, stats.player1.fastest_win_id) == (4, "g1")
        assert (stats.player2.fastest_win, stats.player2.fastest_win_id) == (3, "g2")

    def test_fastest_win_tie_keeps_first(self):
        """An equally short later win does not replace the first."""
        store = {
            "2024-01": [
                _make_game("first", JAN, moves="f3 e5 g4 Qh4"),
                _make_game("second", JAN + 1, moves="e4 e5 Bc4 Nc6"),
            ]
        }
        stats = compute_stats(store, store)
        assert stats.player1.fastest_win_id == "first"

    def test_first_moves_of_white_player(self):
        """First moves are credited to whoever had White."""
        stats = compute_stats(_make_store(), _make_store())
        assert dict(stats.player1.first_moves) == {"e4": 2}
        assert dict(stats.player2.first_moves) == {"d4": 1, "e4": 1}
        assert stats.most_common_first_move == "e4"

    def test_games_without_moves_add_no_first_move(self):
        """An empty move list credits no first move."""
        store = {"2024-01": [_make_game("empty", JAN, moves=""), _make_game("g", JAN + 1, moves="c4 e5")]}
        stats = compute_stats(store, store)
        assert dict(stats.player1.first_moves) == {"c4": 1}

    def test_time_pressure(self):
        """Winner's clock is the second-to-last sample."""
        stats = compute_stats(_make_store(), _make_store())
        assert stats.player1.time_remaining == [25.0]
        assert stats.player1.time_pressure_wins == 1
        assert stats.player2.time_remaining == [100.0]
        assert stats.player2.time_pressure_wins == 0

    def test_time_pressure_threshold_configurable(self):
        """A higher threshold turns the 100 s win into a pressure win."""
        stats = compute_stats(_make_store(), _make_store(), time_pressure_seconds=120)
        assert stats.player2.time_pressure_wins == 1

    def test_terminations(self):
        """Global and per-winner tallies; draws count for both."""
        stats = compute_stats(_make_store(), _make_store())
        assert dict(stats.by_termination) == {"mate": 1, "resign": 1, "draw": 1, "outoftime": 1}
        assert dict(stats.player1.by_termination) == {"mate": 1, "draw": 1}
        assert dict(stats.player2.by_termination) == {"resign": 1, "draw": 1, "outoftime": 1}
        assert stats.most_common_termination == "mate"

    def test_game_lengths(self):
        """Average (half-up), longest and shortest."""
        stats = compute_stats(_make_store(), _make_store())
        assert stats.avg_game_length == 4  # 3.75
        assert (stats.longest_game_id, stats.longest_game_length) == ("g4", 6)
        assert (stats.shortest_game_id, stats.shortest_game_length) == ("g3", 2)

    def test_openings(self):
        """Opening counts skip games without an opening."""
        stats = compute_stats(_make_store(), _make_store())
        assert stats.opening_counts["Queen's Gambit"] == 2
        assert stats.most_common_opening == "Queen's Gambit"

    def test_monthly_breakdown(self):
        """One entry per month with its own tallies."""
        stats = compute_stats(_make_store(), _make_store())
        assert list(stats.monthly_stats) == ["2024-01", "2024-02"]
        jan = stats.monthly_stats["2024-01"]
        assert (jan.games, jan.player1_wins, jan.player2_wins, jan.draws) == (3, 1, 1, 1)
        assert jan.player1_win_rate == 50.0
        assert stats.monthly_stats["2024-02"].player2_wins == 1
        assert stats.date_range == "(2024-01 to 2024-02)"

    def test_names_come_from_full_store(self):
        """Filtering to a month where bob had White keeps alice as player1."""
        full = _make_store()
        filtered = {"2024-01": [full["2024-01"][1]]}
        stats = compute_stats(filtered, full)
        assert stats.player1_name == P1
        assert stats.player2.wins == 1

    def test_custom_player_resolver(self):
        """An injected resolver decides the names."""
        stats = compute_stats(_make_store(), _make_store(), identify_players=lambda _: (P2, P1))
        assert stats.player1_name == P2
        assert stats.player1.wins == 2

    def test_memo_gives_same_result(self):
        """Memoised scans do not change the numbers."""
        memo = GameMemo()
        plain = compute_stats(_make_store(), _make_store())
        memoised = compute_stats(_make_store(), _make_store(), memo=memo)
        again = compute_stats(_make_store(), _make_store(), memo=memo)
        assert plain.to_dict() == memoised.to_dict() == again.to_dict()
        assert len(memo) > 0

    def test_to_dict(self):
        """Serialised form carries the headline numbers."""
        data = compute_stats(_make_store(), _make_store()).to_dict()
        assert data["total_games"] == 4
        assert data["player1"]["wins"] == 1
        assert data["player1"]["first_moves"] == {"e4": 2}
        player1 = data["player1"]
        assert player1["decisive_games"] == player1["wins"] + player1["losses"]
        assert data["monthly_stats"]["2024-01"]["games"] == 3


class TestEmptyAverages:
    """Averages over empty sets are zero."""

    def test_player_stats_defaults(self):
        """A fresh PlayerStats reports zeros everywhere."""
        player = PlayerStats(name=P1)
        assert player.avg_accuracy == 0
        assert player.avg_king_walks == 0.0
        assert player.avg_time_remaining == 0.0
        assert player.win_rate == 0.0

    def test_no_analysis_anywhere(self):
        """Games without analysis leave accuracy at 0."""
        store = {"2024-01": [_make_game("g", JAN)]}
        stats = compute_stats(store, store)
        assert stats.player1.avg_accuracy == 0


class TestWinnerRemainingSeconds:
    """Test the winner clock heuristic."""

    def test_second_to_last(self):
        """Uses clocks[-2]."""
        game = _make_game("g", JAN, clocks=(60_000, 59_000, 12_000, 3_000))
        assert winner_remaining_seconds(game) == 12.0

    def test_single_sample(self):
        """A lone sample is used as is."""
        assert winner_remaining_seconds(_make_game("g", JAN, clocks=(45_000,))) == 45.0

    def test_no_samples(self):
        """No clocks gives 0."""
        assert winner_remaining_seconds(_make_game("g", JAN)) == 0.0
