"""Tests for archive loading, record parsing and merging."""

import json
from datetime import timezone

from duelstats.core.constants import Color, Termination
from duelstats.core.loader import (
    identify_players,
    load_archive,
    load_month_file,
    load_records,
    merge_games,
    most_recent_timestamp,
)
from duelstats.core.models import Game

UTC = timezone.utc
JAN = 1_704_200_000_000  # 2024-01-02
FEB = 1_706_900_000_000  # 2024-02-02


def _make_record(game_id: str, created_at: int, white: str = "alice", black: str = "bob", **extra) -> dict:
    record = {
        "id": game_id,
        "createdAt": created_at,
        "lastMoveAt": created_at + 300_000,
        "speed": "blitz",
        "status": "resign",
        "winner": "white",
        "players": {
            "white": {"user": {"name": white, "id": white}, "rating": 1500},
            "black": {"user": {"name": black, "id": black}, "rating": 1490},
        },
        "moves": "e4 e5 Nf3 Nc6",
    }
    record.update(extra)
    return record


def _write_month(directory, name: str, records) -> None:
    (directory / name).write_text(json.dumps(records))


class TestGameFromDict:
    """Test parsing of a single Lichess record."""

    def test_full_record(self):
        """All optional sections are parsed when present."""
        record = _make_record(
            "abc",
            JAN,
            opening={"eco": "C50", "name": "Italian Game", "ply": 5},
            clock={"initial": 180, "increment": 2, "totalTime": 260},
            clocks=[18003, 18003, 17800],
            analysis=[{"eval": 20}, {"mate": -3, "best": "d8h4", "judgment": {"name": "Blunder"}}],
        )
        record["players"]["white"]["analysis"] = {"inaccuracy": 1, "mistake": 0, "blunder": 2, "acpl": 45, "accuracy": 81}
        game = Game.from_dict(record)
        assert game.white.name == "alice"
        assert game.white.analysis.blunder == 2
        assert game.black.analysis is None
        assert game.winner is Color.WHITE
        assert game.status is Termination.RESIGN
        assert game.opening.name == "Italian Game"
        assert game.clock.initial == 180
        assert game.clocks == (18003, 18003, 17800)
        assert game.analysis[1].mate == -3
        assert game.analysis[1].judgment == "Blunder"
        assert game.has_player_analysis

    def test_minimal_record(self):
        """Missing sections become None / empty."""
        game = Game.from_dict({"id": "x", "createdAt": JAN, "players": {"white": {"name": "anon"}}})
        assert game.white.name == "anon"
        assert game.black.name == ""
        assert game.winner is None
        assert game.opening is None
        assert game.clocks == ()
        assert game.moves == ""
        assert game.status is Termination.UNKNOWN

    def test_unknown_status(self):
        """Unrecognised status codes normalise to unknown."""
        game = Game.from_dict(_make_record("x", JAN, status="variantEnd"))
        assert game.status is Termination.UNKNOWN


class TestLoadMonthFile:
    """Test loading one monthly shard."""

    def test_speed_filter(self, tmp_path):
        """Only games of the requested speed are kept."""
        _write_month(tmp_path, "2024-01.json", [
            _make_record("a", JAN),
            _make_record("b", JAN, speed="bullet"),
        ])
        games = load_month_file(tmp_path / "2024-01.json")
        assert [g.id for g in games] == ["a"]
        assert len(load_month_file(tmp_path / "2024-01.json", speed=None)) == 2

    def test_invalid_json(self, tmp_path):
        """Broken files yield an empty list."""
        (tmp_path / "2024-01.json").write_text("{not json")
        assert load_month_file(tmp_path / "2024-01.json") == []

    def test_not_an_array(self, tmp_path):
        """A JSON object instead of an array is skipped."""
        (tmp_path / "2024-01.json").write_text('{"id": "a"}')
        assert load_month_file(tmp_path / "2024-01.json") == []

    def test_missing_file(self, tmp_path):
        """Unreadable path yields an empty list."""
        assert load_month_file(tmp_path / "2030-01.json") == []


class TestLoadArchive:
    """Test loading a directory of shards."""

    def test_loads_month_files_only(self, tmp_path):
        """Only YYYY-MM.json names are read; empty months are omitted."""
        _write_month(tmp_path, "2024-01.json", [_make_record("a", JAN)])
        _write_month(tmp_path, "2024-02.json", [_make_record("b", FEB, speed="bullet")])
        _write_month(tmp_path, "notes.json", [_make_record("c", JAN)])
        store = load_archive(tmp_path)
        assert list(store) == ["2024-01"]
        assert store["2024-01"][0].id == "a"

    def test_missing_directory(self, tmp_path):
        """A missing directory gives an empty store."""
        assert load_archive(tmp_path / "nope") == {}


class TestMergeGames:
    """Test merging new games into a store."""

    def test_dedupe_and_count(self):
        """Known ids are replaced, not duplicated."""
        store = {"2024-01": load_records([_make_record("a", JAN)])}
        fresh = load_records([
            _make_record("a", JAN, winner="black"),
            _make_record("b", FEB),
        ])
        merged, new_count = merge_games(store, fresh, tz=UTC)
        assert new_count == 1
        assert set(merged) == {"2024-01", "2024-02"}
        assert merged["2024-01"][0].winner is Color.BLACK

    def test_games_without_id(self):
        """Id-less games are kept apart unless time and moves both match."""
        fresh = load_records([
            _make_record("", JAN),
            _make_record("", JAN + 1000),
            _make_record("", JAN, winner="black"),
        ])
        merged, new_count = merge_games({}, fresh, tz=UTC)
        assert new_count == 2
        assert [g.created_at for g in merged["2024-01"]] == [JAN, JAN + 1000]
        assert merged["2024-01"][0].winner is Color.BLACK

    def test_input_not_mutated(self):
        """The original store keeps its games."""
        store = {"2024-01": load_records([_make_record("a", JAN)])}
        merge_games(store, load_records([_make_record("b", JAN + 1000)]), tz=UTC)
        assert len(store["2024-01"]) == 1

    def test_months_sorted(self):
        """Games inside a month are ordered by created_at."""
        fresh = load_records([_make_record("late", JAN + 9000), _make_record("early", JAN)])
        merged, _ = merge_games({}, fresh, tz=UTC)
        assert [g.id for g in merged["2024-01"]] == ["early", "late"]

    def test_speed_filter(self):
        """Games of another speed are not merged."""
        fresh = load_records([_make_record("bullet", JAN, speed="bullet")], speed=None)
        merged, new_count = merge_games({}, fresh, tz=UTC)
        assert merged == {}
        assert new_count == 0


class TestStoreHelpers:
    """Test player identification and timestamps."""

    def test_identify_players_from_earliest_month(self):
        """First game of the earliest month decides player1."""
        store = {
            "2024-02": load_records([_make_record("b", FEB, white="bob", black="alice")]),
            "2024-01": load_records([_make_record("a", JAN, white="alice", black="bob")]),
        }
        assert identify_players(store) == ("alice", "bob")

    def test_identify_players_empty(self):
        """Empty store falls back to placeholders."""
        assert identify_players({}) == ("Player 1", "Player 2")

    def test_most_recent_timestamp(self):
        """Latest created_at, 0 for an empty store."""
        store = {"2024-01": load_records([_make_record("a", JAN), _make_record("b", JAN + 5)])}
        assert most_recent_timestamp(store) == JAN + 5
        assert most_recent_timestamp({}) == 0


class TestGameHelpers:
    """Test per-game convenience accessors."""

    def test_winner_and_loser(self):
        """Names and colors of the result."""
        game = load_records([_make_record("a", JAN, winner="black")])[0]
        assert game.winner_name == "bob"
        assert game.loser is Color.WHITE
        assert game.color_of("bob") is Color.BLACK
        assert game.color_of("carol") is None

    def test_draw(self):
        """Draws have no winner or loser."""
        record = _make_record("a", JAN)
        del record["winner"]
        game = Game.from_dict(record)
        assert game.winner_name is None
        assert game.loser is None
