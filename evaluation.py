"""
Position evaluations and extraction of engine search results.
"""
import re
from dataclasses import dataclass

from config import MATE_SCORE_MULTIPLIER
from utils import ProtocolParseFailure

BEST_MOVE_RE = re.compile(r"bestmove (\S+)")
SCORE_RE = re.compile(r"score (cp|mate) (-?\d+)")


@dataclass(frozen=True, order=True)
class Evaluation:
    """Centipawn score from the point of view of the side to move."""
    centipawns: int

    @classmethod
    def from_mate(cls, moves: int) -> "Evaluation":
        return cls(moves * MATE_SCORE_MULTIPLIER)

    def __int__(self):
        return self.centipawns

    def __str__(self):
        return str(self.centipawns)


def parse_evaluation(analysis: str) -> Evaluation:
    """
    Extract the evaluation from accumulated search output.

    Engines print one score per search iteration; only the last (deepest)
    one is used.

    Raises:
        ProtocolParseFailure: if the output holds no score
    """
    matches = SCORE_RE.findall(analysis)
    if not matches:
        raise ProtocolParseFailure(f"No score found in engine output: {analysis!r}")
    score_type, value = matches[-1]
    if score_type == "mate":
        return Evaluation.from_mate(int(value))
    return Evaluation(int(value))


def parse_best_move(analysis: str) -> str:
    """Extract the last ``bestmove`` reported in search output."""
    matches = BEST_MOVE_RE.findall(analysis)
    if not matches:
        raise ProtocolParseFailure(f"No bestmove found in engine output: {analysis!r}")
    return matches[-1]
