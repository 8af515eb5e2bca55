"""
MCB Blunder Database
The list of analyzed games, stored as one JSON document and rewritten in full on every update.
"""
import os
import json
import stat
import logging
import tempfile
from collections import Counter
from typing import List, Tuple

from models import Blunder, Game
from utils import StoreIOFailure

logger = logging.getLogger(__name__)


def _file_mode(path: str) -> int:
    """Permission bits for a rewrite of ``path``: the current ones, else what open() would give"""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


class Database:
    """Analyzed games in the order they finished"""

    def __init__(self, games: List[Game] = None):
        self.games: List[Game] = games if games is not None else []

    @classmethod
    def read(cls, path: str) -> "Database":
        """Load the database, or start an empty one if ``path`` does not exist yet"""
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.info(f"No database at {path}, starting empty")
            return cls()
        except (OSError, ValueError) as e:
            raise StoreIOFailure(f"Reading database file {path}: {e}") from e

        try:
            games = [Game.from_dict(game) for game in data["games"]]
        except (KeyError, TypeError, ValueError) as e:
            raise StoreIOFailure(f"Malformed database file {path}: {e!r}") from e
        logger.debug(f"Read {len(games)} games from {path}")
        return cls(games)

    def write(self, path: str) -> None:
        """Replace the file at ``path`` with the current contents"""
        directory = os.path.dirname(os.path.abspath(path))
        content = json.dumps({"games": [game.to_dict() for game in self.games]}, indent=2)
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile("w", dir=directory, suffix=".tmp",
                                             delete=False, encoding="utf-8") as f:
                tmp_path = f.name
                f.write(content)
            os.chmod(tmp_path, _file_mode(path))
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StoreIOFailure(f"Writing database file {path}: {e}") from e
        logger.debug(f"Wrote {len(self.games)} games to {path}")

    def add_game(self, game: Game) -> None:
        self.games.append(game)

    def has_game(self, game_id: str) -> bool:
        return any(game.id == game_id for game in self.games)

    def all_blunders(self) -> List[Blunder]:
        return [blunder for game in self.games for blunder in game.blunders]

    def recurring_blunders(self) -> List[Tuple[Blunder, int]]:
        """Blunders whose position occurs in more than one record, most frequent first"""
        counter = Counter(self.all_blunders())
        return [(blunder, count) for blunder, count in counter.most_common() if count > 1]
