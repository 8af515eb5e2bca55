"""
Tests for the blunder database file
"""
import os
import json
import stat

import pytest

from database import Database
from evaluation import Evaluation
from models import Blunder, Game
from utils import StoreIOFailure


def sample_games():
    return [
        Game("https://lichess.org/1", [
            Blunder("fen-a", "Qh5", Evaluation(30), Evaluation(400)),
            Blunder("fen-b", "Bxf7", Evaluation(-20), Evaluation(4000)),
        ]),
        Game("https://lichess.org/2", []),
        Game("https://lichess.org/3", [Blunder("fen-a", "Qg4", Evaluation(25), Evaluation(380))]),
    ]


def test_missing_file_is_an_empty_database(tmp_path):
    assert Database.read(str(tmp_path / "missing.json")).games == []


def test_written_games_read_back_in_order(tmp_path):
    path = str(tmp_path / "blunders.json")
    Database(sample_games()).write(path)

    games = Database.read(path).games
    assert [g.id for g in games] == ["https://lichess.org/1", "https://lichess.org/2", "https://lichess.org/3"]
    first = games[0].blunders[1]
    assert (first.position, first.move, first.eval_before, first.eval_after) == \
        ("fen-b", "Bxf7", Evaluation(-20), Evaluation(4000))
    assert games[2].blunders[0].move == "Qg4"


def test_write_replaces_whole_file(tmp_path):
    path = str(tmp_path / "blunders.json")
    database = Database(sample_games())
    database.write(path)
    database.add_game(Game("https://lichess.org/4", []))
    database.write(path)

    with open(path) as f:
        assert len(json.load(f)["games"]) == 4
    assert [p.name for p in tmp_path.iterdir()] == ["blunders.json"]


def test_corrupt_file_is_not_treated_as_empty(tmp_path):
    path = tmp_path / "blunders.json"
    path.write_text('{"games": [{"id": "x", "blunders": [')
    with pytest.raises(StoreIOFailure):
        Database.read(str(path))


def test_wrong_shape_is_rejected(tmp_path):
    path = tmp_path / "blunders.json"
    path.write_text('{"games": [{"blunders": []}]}')
    with pytest.raises(StoreIOFailure):
        Database.read(str(path))


def test_unwritable_location_fails(tmp_path):
    with pytest.raises(StoreIOFailure):
        Database(sample_games()).write(str(tmp_path / "no-such-dir" / "blunders.json"))


def test_has_game():
    database = Database(sample_games())
    assert database.has_game("https://lichess.org/2")
    assert not database.has_game("https://lichess.org/9")


def test_recurring_blunders_group_by_position():
    recurring = Database(sample_games()).recurring_blunders()
    assert len(recurring) == 1
    blunder, count = recurring[0]
    assert blunder.position == "fen-a"
    assert count == 2


def test_rewrite_keeps_file_permissions(tmp_path):
    path = tmp_path / "blunders.json"
    Database(sample_games()).write(str(path))
    os.chmod(path, 0o644)

    Database(sample_games()[:1]).write(str(path))
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o644


def test_new_file_follows_umask(tmp_path):
    path = tmp_path / "blunders.json"
    old_umask = os.umask(0o022)
    try:
        Database(sample_games()).write(str(path))
    finally:
        os.umask(old_umask)
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o644
