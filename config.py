"""
MCB Configuration Module
Centralized configuration and constants for the blunder scanner.
Values can be overridden through environment variables or a .env file.
"""
import os
import shutil
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# ========================================
# ENGINE CONFIGURATION
# ========================================

def get_stockfish_path():
    """Get Stockfish path from the environment, the system PATH, or fall back to the bare name"""
    if 'STOCKFISH_PATH' in os.environ:
        path = os.environ['STOCKFISH_PATH']
        logger.debug(f"Using Stockfish from environment: {path}")
        return path

    stockfish_cmd = shutil.which('stockfish')
    if stockfish_cmd:
        logger.debug(f"Using Stockfish from PATH: {stockfish_cmd}")
        return stockfish_cmd

    logger.debug("No Stockfish found, using fallback: stockfish")
    return "stockfish"

STOCKFISH_PATH = get_stockfish_path()

# Search depths for the two-stage screen
DEFAULT_DEPTH = int(os.environ.get('MCB_DEFAULT_DEPTH', 10))    # cheap stage
ACCURATE_DEPTH = int(os.environ.get('MCB_ACCURATE_DEPTH', 20))  # confirmation stage

# Forced mate in N is stored as N * MATE_SCORE_MULTIPLIER centipawns
MATE_SCORE_MULTIPLIER = 2000

# ========================================
# BLUNDER ANALYSIS CONSTANTS
# ========================================

BLUNDER_CENTIPAWN_LOSS = int(os.environ.get('MCB_BLUNDER_CENTIPAWN_LOSS', 40))
NUM_MOVES_TO_SKIP = int(os.environ.get('MCB_NUM_MOVES_TO_SKIP', 5))  # plies, both sides

# ========================================
# PARALLEL PROCESSING CONFIGURATION
# ========================================

NUM_THREADS = int(os.environ.get('MCB_NUM_THREADS', 4))        # concurrent game workers
POLL_TIMEOUT = float(os.environ.get('MCB_POLL_TIMEOUT', 0.02))  # seconds per result-channel poll
ENGINE_QUIT_TIMEOUT = 2.0

# ========================================
# FILE PATHS AND DEFAULTS
# ========================================

DEFAULT_DATABASE_FILE = "blunders.json"

# ========================================
# LOGGING CONFIGURATION
# ========================================

LOGGING_CONFIG = {
    'level': os.environ.get('MCB_LOG_LEVEL', 'INFO'),
    'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
}
