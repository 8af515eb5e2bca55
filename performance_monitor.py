"""
MCB Performance Monitoring Module
Tracks progress and throughput of a scan run.
"""
import time
import logging
from typing import Any, Dict, Optional
from dataclasses import dataclass, field

from utils import calculate_eta, format_duration

@dataclass
class PerformanceMetrics:
    """Track performance metrics for one scan run"""
    games_total: int = 0
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None
    games_analyzed: int = 0
    total_blunders: int = 0
    peak_active_workers: int = 0

    @property
    def total_time(self) -> float:
        end = self.end_time or time.time()
        return end - self.start_time

    @property
    def games_per_second(self) -> float:
        if self.total_time == 0:
            return 0
        return self.games_analyzed / self.total_time

    @property
    def eta(self) -> Optional[float]:
        return calculate_eta(self.games_analyzed, self.games_total, self.total_time)

class PerformanceMonitor:
    """Monitor and log performance metrics"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.current_metrics: Optional[PerformanceMetrics] = None

    def start_analysis(self, games_total: int, capacity: int) -> PerformanceMetrics:
        """Start performance monitoring"""
        self.current_metrics = PerformanceMetrics(games_total=games_total)
        self.logger.info(f"Starting analysis of {games_total} games with up to {capacity} workers")
        return self.current_metrics

    def record_active_workers(self, active: int):
        if self.current_metrics:
            self.current_metrics.peak_active_workers = max(self.current_metrics.peak_active_workers, active)

    def record_game(self, game_id: str, blunders_found: int):
        """Count a finished game and log progress"""
        if not self.current_metrics:
            return
        metrics = self.current_metrics
        metrics.games_analyzed += 1
        metrics.total_blunders += blunders_found

        eta = metrics.eta
        eta_text = f", ETA {format_duration(eta)}" if eta is not None else ""
        self.logger.info(
            f"Finished analyzing {game_id}: {blunders_found} blunders "
            f"({metrics.games_analyzed}/{metrics.games_total}{eta_text})"
        )

    def finish_analysis(self) -> Dict[str, Any]:
        """Finish monitoring and return performance report"""
        if not self.current_metrics:
            return {}

        self.current_metrics.end_time = time.time()
        report = {
            "total_time": self.current_metrics.total_time,
            "games_analyzed": self.current_metrics.games_analyzed,
            "games_per_second": self.current_metrics.games_per_second,
            "total_blunders": self.current_metrics.total_blunders,
            "peak_active_workers": self.current_metrics.peak_active_workers,
        }

        self.logger.info(f"Analysis complete: {report}")
        return report
