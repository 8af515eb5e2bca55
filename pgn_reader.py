"""
MCB PGN Reader
Turns a PGN batch file into GameRecords with the FEN before and after every move.
"""
import logging
from typing import Iterable, List, TextIO

import chess
import chess.pgn

from models import GameRecord, MoveRecord
from utils import is_valid_fen

logger = logging.getLogger(__name__)


def game_to_record(game: chess.pgn.Game) -> GameRecord:
    """Replay the mainline of ``game`` and record each move with its surrounding positions"""
    board = game.board()
    moves = []
    for move in game.mainline_moves():
        fen_before = board.fen()
        san = board.san(move)
        board.push(move)
        moves.append(MoveRecord(fen_before=fen_before, fen_after=board.fen(), san=san))
    return GameRecord(headers=dict(game.headers), moves=moves)


def read_games_from(pgn_file: TextIO) -> List[GameRecord]:
    games = []
    while True:
        game = chess.pgn.read_game(pgn_file)
        if game is None:
            break
        start_fen = game.headers.get("FEN")
        if start_fen is not None and not is_valid_fen(start_fen):
            logger.warning(f"Skipping game {game.headers.get('Site', '?')} with invalid FEN: {start_fen}")
            continue
        if game.errors:
            logger.warning(f"Skipping unparseable game {game.headers.get('Site', '?')}: {game.errors[0]}")
            continue
        games.append(game_to_record(game))
    return games


def read_games(path: str) -> List[GameRecord]:
    """Load every game from a PGN file, in file order"""
    with open(path, encoding="utf-8") as pgn_file:
        games = read_games_from(pgn_file)
    logger.info(f"Loaded {len(games)} games from {path}")
    return games


def filter_pending(games: Iterable[GameRecord], database) -> List[GameRecord]:
    """
    Drop games that cannot or need not be analyzed.

    Skips games without moves or without a Site id, games already in the
    database and repeats of an id earlier in the batch. Order is kept.
    """
    pending = []
    seen = set()
    for game in games:
        if not game.moves:
            logger.info(f"Skipping game without moves: {game.id or '?'}")
            continue
        if not game.id:
            logger.warning("Skipping game without a Site header")
            continue
        if database.has_game(game.id) or game.id in seen:
            logger.debug(f"Already analyzed: {game.id}")
            continue
        seen.add(game.id)
        pending.append(game)
    return pending
