"""
MCB - Most Common Blunder Analysis
Command line entry point: scan a PGN batch for blunders, or show the ones you keep repeating.
"""
import sys
import logging
import argparse
from typing import List, Optional

from dotenv import load_dotenv

from analysis_service import AnalysisScheduler
from config import LOGGING_CONFIG, NUM_THREADS, STOCKFISH_PATH
from database import Database
from models import ScanOptions
from pgn_reader import filter_pending, read_games
from utils import MCBError, Timer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="MCB - find the blunders you keep repeating")
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug output")
    parser.add_argument("database", help="Path to the blunder database file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Analyze the games of a PGN file")
    scan.add_argument("pgn_file", help="Path to PGN file")
    scan.add_argument("num_moves", type=non_negative_int, help="Number of plies to analyze per game")
    scan.add_argument("player_name", help="Player whose moves are audited")
    scan.add_argument("--threads", type=positive_int, default=NUM_THREADS,
                      help="Number of games analyzed concurrently")
    scan.add_argument("--stockfish_path", default=STOCKFISH_PATH, help="Path to Stockfish")

    subparsers.add_parser("show", help="List blunders that occur in more than one game")
    return parser


def scan(database: Database, database_path: str, args) -> None:
    options = ScanOptions(
        pgn_file=args.pgn_file,
        num_moves=args.num_moves,
        player_name=args.player_name,
        stockfish_path=args.stockfish_path,
    )
    games = read_games(options.pgn_file)
    pending = filter_pending(games, database)
    print(f"Loaded {len(games)} games, {len(pending)} not analyzed yet")

    scheduler = AnalysisScheduler(database, database_path, options, capacity=args.threads)
    with Timer("Scan", logger):
        report = scheduler.run(pending)

    print(f"Total games analyzed: {report.get('games_analyzed', 0)}")
    print(f"Total blunders found: {report.get('total_blunders', 0)}")


def show_blunders(database: Database) -> None:
    for blunder, count in database.recurring_blunders():
        print(f"In position: {blunder.position}\n you played {blunder.move} ({count} times)")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point; returns the process exit status"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else getattr(logging, LOGGING_CONFIG['level'].upper()),
        format=LOGGING_CONFIG['format']
    )

    try:
        database = Database.read(args.database)
        if args.command == "scan":
            scan(database, args.database, args)
        else:
            show_blunders(database)
    except MCBError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as e:
        print(f"[ERROR] PGN file is not valid UTF-8: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
