import logging
import subprocess
from contextlib import suppress
from typing import List

from config import ENGINE_QUIT_TIMEOUT
from evaluation import parse_best_move, parse_evaluation
from utils import PipeIOFailure, SpawnFailure

logger = logging.getLogger(__name__)

READY_COMMAND = "isready"
READY_REPLY = "readyok"
SEARCH_TERMINATOR = "bestmove"


class UciEngine:
    """
    One external UCI engine process driven through its stdin/stdout.

    A session is owned by a single thread for its whole lifetime. Every
    operation is a blocking request/response exchange.
    """

    def __init__(self, process: subprocess.Popen, path: str):
        self.process = process
        self.path = path
        self.closed = False

    @classmethod
    def open(cls, path: str) -> "UciEngine":
        """Launch the engine, consume its banner and switch it to UCI mode."""
        try:
            process = subprocess.Popen(
                [path],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
            )
        except OSError as e:
            raise SpawnFailure(f"Unable to run engine '{path}': {e}") from e

        engine = cls(process, path)
        try:
            banner = engine.read_line()
            logger.debug(f"Engine {path} (pid {process.pid}) started: {banner.strip()}")
            engine.command("uci")
        except Exception:
            engine.close()
            raise
        return engine

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def set_position(self, fen: str) -> None:
        """Set the current position. The engine sends no reply."""
        self._write_line(f"position fen {fen}")

    def command(self, cmd: str) -> str:
        """
        Send ``cmd`` and wait until the engine has flushed all of its output.

        An ``isready`` barrier follows the command; every line read before the
        matching ``readyok`` is returned, the barrier reply itself is dropped.
        """
        self._write_line(cmd.strip())
        return self._read_until_ready()

    def run(self, depth: int) -> str:
        """Search the current position to ``depth`` and return the full search output."""
        self._write_line(f"go depth {depth}")
        return self._read_until_bestmove()

    def close(self) -> None:
        """Ask the engine to quit and reap the process. Safe to call twice."""
        if self.closed:
            return
        self.closed = True
        if self.process.poll() is None:
            # The process may already be gone; the pipe error on quit is expected then.
            with suppress(OSError):
                self.process.stdin.write(b"quit\n")
                self.process.stdin.flush()
        with suppress(OSError):
            self.process.stdin.close()
        try:
            self.process.wait(timeout=ENGINE_QUIT_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.warning(f"Engine pid {self.process.pid} ignored quit, killing it")
            self.process.kill()
            self.process.wait()
        self.process.stdout.close()

    def _read_until_ready(self) -> str:
        lines: List[str] = []
        self._write_line(READY_COMMAND)
        while True:
            line = self.read_line().strip()
            if line == READY_REPLY:
                return "\n".join(lines)
            lines.append(line)

    def _read_until_bestmove(self) -> str:
        lines: List[str] = []
        while True:
            line = self.read_line().rstrip("\r\n")
            lines.append(line)
            if SEARCH_TERMINATOR in line:
                return "\n".join(lines)

    def read_line(self) -> str:
        """Read one newline-terminated line, one byte at a time."""
        buf = bytearray()
        while True:
            try:
                byte = self.process.stdout.read(1)
            except (OSError, ValueError) as e:
                raise PipeIOFailure(f"Reading from engine '{self.path}' failed: {e}") from e
            if not byte:
                raise PipeIOFailure(
                    f"Engine '{self.path}' closed its output (exit code {self.process.poll()})"
                )
            buf += byte
            if byte == b"\n":
                break
        line = buf.decode("utf-8", errors="replace")
        logger.debug(f"<< {line.rstrip()}")
        return line

    def _write_line(self, text: str) -> None:
        logger.debug(f">> {text}")
        try:
            self.process.stdin.write(f"{text}\n".encode("utf-8"))
            self.process.stdin.flush()
        except (OSError, ValueError) as e:
            raise PipeIOFailure(f"Writing to engine '{self.path}' failed: {e}") from e


def get_evaluation(engine, depth: int):
    """Search the position already set on ``engine`` and return (best move, evaluation)."""
    analysis = engine.run(depth)
    return parse_best_move(analysis), parse_evaluation(analysis)


def get_evaluation_from_position(engine, fen: str, depth: int):
    engine.set_position(fen)
    return get_evaluation(engine, depth)
