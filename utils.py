"""
MCB Utilities Module
Error types and common helper operations shared across the scanner.
"""
import time
import logging
from typing import Optional

import chess

# Set up logging
logger = logging.getLogger(__name__)

# ========================================
# ERROR TYPES
# ========================================

class MCBError(Exception):
    """Base class for every failure the scanner reports to the user."""


class SpawnFailure(MCBError):
    """The engine executable is missing or could not be launched."""


class PipeIOFailure(MCBError):
    """The engine process died or one of its pipes closed mid-conversation."""


class ProtocolParseFailure(MCBError):
    """An expected token (bestmove, score) is absent from engine output."""


class PlayerNotFound(MCBError):
    """The audited player matches neither side of a game."""


class StoreIOFailure(MCBError):
    """The blunder database could not be read or written."""


class AnalysisFailure(MCBError):
    """An analysis worker terminated abnormally."""

    def __init__(self, game_id: str, message: str):
        super().__init__(f"Analysis of {game_id} failed: {message}")
        self.game_id = game_id

# ========================================
# ERROR HANDLING UTILITIES
# ========================================

def log_error(message: str, game_id: Optional[str] = None, exception: Optional[Exception] = None) -> None:
    """
    Log an error with consistent formatting and optional context.

    Args:
        message (str): Error message
        game_id (Optional[str]): Game being analyzed when the error occurred
        exception (Optional[Exception]): Exception object for traceback
    """
    log_message = f"ERROR: {message}"

    if game_id:
        log_message += f" [Game: {game_id}]"

    if exception:
        logger.error(log_message, exc_info=exception)
    else:
        logger.error(log_message)

# ========================================
# PERFORMANCE UTILITIES
# ========================================

class Timer:
    """Context manager for timing operations."""

    def __init__(self, operation_name: str, logger: Optional[logging.Logger] = None):
        self.operation_name = operation_name
        self.logger = logger or logging.getLogger(__name__)
        self.start_time = None
        self.duration = None

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time:
            self.duration = time.time() - self.start_time
            self.logger.info(f"{self.operation_name} completed in {format_duration(self.duration)}")

def format_duration(seconds: float) -> str:
    """
    Format a duration in seconds to a human-readable string.

    Args:
        seconds (float): Duration in seconds

    Returns:
        str: Formatted duration string
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"

def calculate_eta(completed: int, total: int, elapsed_time: float) -> Optional[float]:
    """
    Calculate estimated time of arrival based on progress.

    Args:
        completed (int): Number of completed items
        total (int): Total number of items
        elapsed_time (float): Time elapsed so far

    Returns:
        Optional[float]: Estimated remaining time in seconds, None if cannot calculate
    """
    if completed <= 0 or total <= 0 or completed >= total or elapsed_time <= 0:
        return None

    rate = completed / elapsed_time
    remaining = total - completed
    return remaining / rate

# ========================================
# DATA VALIDATION UTILITIES
# ========================================

def is_valid_fen(fen: str) -> bool:
    """
    Validate a FEN (Forsyth-Edwards Notation) string.

    Args:
        fen (str): FEN string to validate

    Returns:
        bool: True if FEN is valid
    """
    if not fen or not isinstance(fen, str):
        return False

    try:
        chess.Board(fen)
        return True
    except ValueError:
        return False
