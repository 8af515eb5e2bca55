"""
Shared fixtures: a scriptable fake UCI engine process and in-process stub engines.
"""
import sys
import stat
import textwrap

import pytest

from models import GameRecord, MoveRecord, ScanOptions

FAKE_ENGINE_SOURCE = textwrap.dedent('''
    import sys

    def say(line):
        sys.stdout.write(line + "\\n")
        sys.stdout.flush()

    say("FakeFish 1.0 by the test suite")
    fen = ""
    for raw in sys.stdin:
        cmd = raw.strip()
        if cmd == "uci":
            say("id name FakeFish")
            say("option name Hash type spin default 16 min 1 max 1024")
            say("uciok")
        elif cmd == "isready":
            say("readyok")
        elif cmd.startswith("position fen "):
            fen = cmd[len("position fen "):]
        elif cmd.startswith("go depth "):
            depth = int(cmd.split()[2])
            say("info depth 1 seldepth 1 score cp 1 nodes 20 pv a2a3")
            if fen.startswith("8/"):
                say("info depth %d seldepth %d score mate 2 nodes 400 pv d1h5" % (depth, depth))
                say("bestmove d1h5")
            else:
                say("info depth %d seldepth %d score cp %d nodes 400 pv e2e4" % (depth, depth, depth))
                say("bestmove e2e4 ponder e7e5")
        elif cmd == "die":
            sys.exit(3)
        elif cmd == "quit":
            break
''')


@pytest.fixture
def fake_engine_path(tmp_path):
    """Path to an executable fake UCI engine running on the current interpreter"""
    script = tmp_path / "fakefish"
    script.write_text(f"#!{sys.executable}\n{FAKE_ENGINE_SOURCE}")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(script)


class StubEngine:
    """In-process stand-in for UciEngine; ``scorer(fen, depth)`` gives the centipawn score"""

    def __init__(self, scorer):
        self.scorer = scorer
        self.fen = None
        self.searches = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.closed = True

    def set_position(self, fen):
        self.fen = fen

    def run(self, depth):
        self.searches.append((self.fen, depth))
        score = self.scorer(self.fen, depth)
        return (f"info depth 1 score cp 0 pv a2a3\n"
                f"info depth {depth} score cp {score} pv e2e4\n"
                f"bestmove e2e4")


class StubEngineFactory:
    """Engine factory recording every StubEngine it hands out"""

    def __init__(self, scorer=lambda fen, depth: 10):
        self.scorer = scorer
        self.engines = []

    def __call__(self, path):
        engine = StubEngine(self.scorer)
        self.engines.append(engine)
        return engine

    @property
    def searches(self):
        return [search for engine in self.engines for search in engine.searches]


@pytest.fixture
def engine_factory():
    return StubEngineFactory()


def make_game(site="https://lichess.org/abc", white="A", black="B", num_moves=8):
    moves = [MoveRecord(fen_before=f"before-{ply}", fen_after=f"after-{ply}", san=f"m{ply}")
             for ply in range(num_moves)]
    return GameRecord(headers={"White": white, "Black": black, "Site": site}, moves=moves)


@pytest.fixture
def scan_options():
    return ScanOptions(
        pgn_file="games.pgn",
        num_moves=8,
        player_name="A",
        stockfish_path="stockfish",
        default_depth=10,
        accurate_depth=20,
        blunder_threshold=40,
        moves_to_skip=5,
    )
