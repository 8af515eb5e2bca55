"""
MCB Analysis Service Module
Runs blunder detection for many games at once on a bounded pool of worker threads
and stores each result as soon as it arrives.
"""
import queue
import logging
import threading
from collections import deque
from typing import Any, Callable, Dict, Iterable, List, Optional

from analyze_games import find_blunders
from config import NUM_THREADS, POLL_TIMEOUT
from database import Database
from models import Game, GameRecord, ScanOptions
from performance_monitor import PerformanceMonitor
from utils import AnalysisFailure, log_error

# Set up logging
logger = logging.getLogger(__name__)


class AnalysisThread(threading.Thread):
    """Analyzes one game and posts exactly one Game on its result queue, or records its error."""

    def __init__(self, game: GameRecord, options: ScanOptions,
                 results: "queue.Queue[Game]", detector: Callable):
        super().__init__(name=f"analysis-{game.id}", daemon=True)
        self.game = game
        self.options = options
        self.results = results
        self.detector = detector
        self.error: Optional[BaseException] = None

    def run(self):
        try:
            blunders = self.detector(self.game, self.options)
        except Exception as e:
            # Re-raised by AnalysisThreadHandle.join() in the scheduler thread
            self.error = e
            return
        self.results.put(Game(id=self.game.id, blunders=blunders))


class AnalysisThreadHandle:
    """Scheduler-side view of a running AnalysisThread"""

    def __init__(self, thread: AnalysisThread, results: "queue.Queue[Game]"):
        self.thread = thread
        self.results = results
        self.finished = False

    @property
    def game_id(self) -> str:
        return self.thread.game.id

    def poll(self, timeout: float) -> Optional[Game]:
        """
        Wait up to ``timeout`` seconds for the result.

        A thread that has exited without posting a result failed; it is marked
        finished so that join() reports the failure.
        """
        try:
            game = self.results.get(timeout=timeout)
        except queue.Empty:
            if self.thread.is_alive():
                return None
            try:
                # The result may have been posted right after the timeout
                game = self.results.get_nowait()
            except queue.Empty:
                self.finished = True
                return None
        self.finished = True
        return game

    def join(self) -> None:
        """Wait for the thread to terminate and raise its error, if any"""
        self.thread.join()
        if self.thread.error is not None:
            raise AnalysisFailure(self.game_id, str(self.thread.error)) from self.thread.error


def start_analysis(game: GameRecord, options: ScanOptions,
                   detector: Callable = find_blunders) -> AnalysisThreadHandle:
    results: "queue.Queue[Game]" = queue.Queue(maxsize=1)
    thread = AnalysisThread(game, options, results, detector)
    thread.start()
    logger.debug(f"Started analysis of {game.id}")
    return AnalysisThreadHandle(thread, results)


class AnalysisScheduler:
    """
    Keeps up to ``capacity`` AnalysisThreads busy over a queue of pending games.

    The database is touched only from the thread calling run(): every result
    is appended and the whole file rewritten before the next poll, so an
    abort loses at most the games still in flight.
    """

    def __init__(self, database: Database, database_path: str, options: ScanOptions,
                 capacity: int = NUM_THREADS, poll_timeout: float = POLL_TIMEOUT,
                 detector: Callable = find_blunders):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.database = database
        self.database_path = database_path
        self.options = options
        self.capacity = capacity
        self.poll_timeout = poll_timeout
        self.detector = detector

    def run(self, pending_games: Iterable[GameRecord]) -> Dict[str, Any]:
        """Analyze every pending game in order; returns the performance report"""
        pending = deque(pending_games)
        active: List[AnalysisThreadHandle] = []
        monitor = PerformanceMonitor()
        monitor.start_analysis(len(pending), self.capacity)

        while True:
            while len(active) < self.capacity and pending:
                active.append(start_analysis(pending.popleft(), self.options, self.detector))
            monitor.record_active_workers(len(active))

            if not active:
                break

            for handle in active:
                game = handle.poll(self.poll_timeout)
                if game is not None:
                    self.database.add_game(game)
                    self.database.write(self.database_path)
                    monitor.record_game(game.id, len(game.blunders))

            finished = [handle for handle in active if handle.finished]
            active = [handle for handle in active if not handle.finished]
            for handle in finished:
                try:
                    handle.join()
                except AnalysisFailure as e:
                    log_error(str(e), handle.game_id, e.__cause__)
                    raise

        return monitor.finish_analysis()
