"""
MCB Data Models
Records flowing from the PGN reader through analysis into the database.
"""
from dataclasses import dataclass, field
from typing import Dict, List

from config import (STOCKFISH_PATH, DEFAULT_DEPTH, ACCURATE_DEPTH,
                    BLUNDER_CENTIPAWN_LOSS, NUM_MOVES_TO_SKIP)
from evaluation import Evaluation


@dataclass(frozen=True)
class MoveRecord:
    """One played move; its ply index is its position in GameRecord.moves"""
    fen_before: str
    fen_after: str
    san: str


@dataclass
class GameRecord:
    """A parsed game waiting to be analyzed"""
    headers: Dict[str, str]
    moves: List[MoveRecord] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.headers.get("Site", "")


@dataclass(frozen=True, eq=False)
class Blunder:
    """
    A move that lost more than the blunder threshold.

    Two blunders are the same blunder when they happen in the same position,
    whatever move was played there, so repeats across games can be counted.
    """
    position: str
    move: str
    eval_before: Evaluation
    eval_after: Evaluation

    def __eq__(self, other):
        if not isinstance(other, Blunder):
            return NotImplemented
        return self.position == other.position

    def __hash__(self):
        return hash(self.position)

    def to_dict(self) -> Dict:
        return {
            "position": self.position,
            "move": self.move,
            "eval_before": self.eval_before.centipawns,
            "eval_after": self.eval_after.centipawns,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Blunder":
        return cls(
            position=data["position"],
            move=data["move"],
            eval_before=Evaluation(int(data["eval_before"])),
            eval_after=Evaluation(int(data["eval_after"])),
        )


@dataclass
class Game:
    """An analyzed game and the blunders found in it"""
    id: str
    blunders: List[Blunder] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {"id": self.id, "blunders": [b.to_dict() for b in self.blunders]}

    @classmethod
    def from_dict(cls, data: Dict) -> "Game":
        return cls(id=data["id"], blunders=[Blunder.from_dict(b) for b in data.get("blunders", [])])


@dataclass(frozen=True)
class ScanOptions:
    """Settings for one scan run, shared read-only by all workers"""
    pgn_file: str
    num_moves: int
    player_name: str
    stockfish_path: str = STOCKFISH_PATH
    default_depth: int = DEFAULT_DEPTH
    accurate_depth: int = ACCURATE_DEPTH
    blunder_threshold: int = BLUNDER_CENTIPAWN_LOSS
    moves_to_skip: int = NUM_MOVES_TO_SKIP

    def __post_init__(self):
        if self.num_moves < 0:
            raise ValueError(f"num_moves must not be negative, got {self.num_moves}")
        if self.default_depth < 1 or self.accurate_depth < 1:
            raise ValueError("search depths must be at least 1")
