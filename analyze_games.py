"""
MCB Blunder Detection
Two-stage engine screen that decides which of a player's moves were blunders.
"""
import logging
from typing import Callable, Dict, List

import chess

from engines.uci_engine import UciEngine, get_evaluation, get_evaluation_from_position
from models import Blunder, GameRecord, ScanOptions
from utils import PlayerNotFound

logger = logging.getLogger(__name__)


def to_play(color: chess.Color, ply: int) -> bool:
    """White moves on even plies, Black on odd ones."""
    return (ply % 2 == 0) == (color == chess.WHITE)


def get_player_color(headers: Dict[str, str], player_name: str) -> chess.Color:
    """Find which side ``player_name`` had, comparing names case-insensitively."""
    target = player_name.strip().lower()
    if headers.get("White", "").strip().lower() == target:
        return chess.WHITE
    if headers.get("Black", "").strip().lower() == target:
        return chess.BLACK
    raise PlayerNotFound(
        f"Player '{player_name}' is neither White ({headers.get('White', '?')}) "
        f"nor Black ({headers.get('Black', '?')}) in {headers.get('Site', 'this game')}"
    )


def is_candidate(color: chess.Color, ply: int, moves_to_skip: int) -> bool:
    return to_play(color, ply) and ply >= moves_to_skip


def find_blunders(game: GameRecord, options: ScanOptions,
                  engine_factory: Callable = UciEngine.open) -> List[Blunder]:
    """
    Screen the audited player's moves and return the confirmed blunders in move order.

    Each candidate move is first evaluated at ``default_depth``; only moves
    whose loss exceeds the threshold are re-searched at ``accurate_depth``
    and kept if the loss still exceeds it. Both engine scores are from the
    side to move, so the mover's loss is ``eval_before + eval_after``.

    One engine evaluates positions before moves and another the positions
    after; both live for the whole game.
    """
    player_color = get_player_color(game.headers, options.player_name)
    blunders = []

    with engine_factory(options.stockfish_path) as engine_before, \
            engine_factory(options.stockfish_path) as engine_after:
        for ply, chess_move in enumerate(game.moves[:options.num_moves]):
            if not is_candidate(player_color, ply, options.moves_to_skip):
                continue

            _, eval_before = get_evaluation_from_position(engine_before, chess_move.fen_before,
                                                          options.default_depth)
            _, eval_after = get_evaluation_from_position(engine_after, chess_move.fen_after,
                                                         options.default_depth)
            centipawn_loss = eval_before.centipawns + eval_after.centipawns
            if centipawn_loss <= options.blunder_threshold:
                continue

            logger.debug(f"{game.id} ply {ply}: {chess_move.san} flagged ({centipawn_loss}cp), confirming")
            best_move, eval_before = get_evaluation(engine_before, options.accurate_depth)
            _, eval_after = get_evaluation(engine_after, options.accurate_depth)
            centipawn_loss = eval_before.centipawns + eval_after.centipawns
            if centipawn_loss <= options.blunder_threshold:
                continue

            logger.info(
                f"In position: {chess_move.fen_before} you played {chess_move.san} and lost "
                f"{centipawn_loss} ({eval_before} vs {-eval_after.centipawns}). "
                f"Instead, you should have played {best_move}."
            )
            blunders.append(Blunder(
                position=chess_move.fen_before,
                move=chess_move.san,
                eval_before=eval_before,
                eval_after=eval_after,
            ))

    return blunders
