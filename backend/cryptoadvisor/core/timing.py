"""
Performance Timing

Scoped timers for logging how long an operation took. The caller owns the
handle returned by start_timer() and closes it with stop(), or uses it as a
context manager.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class PerformanceTimer:
    """Handle for one timed operation."""

    operation: str
    started_at: float = field(default_factory=time.perf_counter)
    duration: Optional[float] = None

    @property
    def stopped(self) -> bool:
        return self.duration is not None

    def stop(self) -> float:
        """Stop the timer and log the duration. Returns seconds elapsed."""
        if self.duration is None:
            self.duration = time.perf_counter() - self.started_at
            logger.debug(f"PERFORMANCE END: {self.operation} - {format_duration(self.duration)}")
        return self.duration

    def __enter__(self) -> "PerformanceTimer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def start_timer(operation: str) -> PerformanceTimer:
    """Start timing an operation."""
    logger.debug(f"PERFORMANCE START: {operation}")
    return PerformanceTimer(operation=operation)


def format_duration(seconds: float) -> str:
    """Format a duration as ms below one second, else seconds."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    return f"{seconds:.2f}s"
