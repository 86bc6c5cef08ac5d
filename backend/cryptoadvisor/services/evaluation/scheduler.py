"""
Evaluation Scheduler

Runs an evaluation pass at fixed UTC hours (every 4 hours by default).
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from cryptoadvisor.core.config import settings
from cryptoadvisor.services.evaluation.service import (
    RecommendationEvaluator,
    get_evaluator,
)

logger = logging.getLogger(__name__)

DEFAULT_EVALUATION_HOURS = (3, 7, 11, 15, 19, 23)


def next_evaluation_delay(
    now: datetime, hours: Sequence[int] = DEFAULT_EVALUATION_HOURS
) -> float:
    """Seconds from `now` until the next listed UTC hour, on the hour."""
    if not hours:
        raise ValueError("At least one evaluation hour is required")

    now = now.astimezone(timezone.utc)
    today = now.replace(minute=0, second=0, microsecond=0)

    for hour in sorted(set(hours)):
        candidate = today.replace(hour=hour)
        if candidate > now:
            return (candidate - now).total_seconds()

    tomorrow = today.replace(hour=min(hours)) + timedelta(days=1)
    return (tomorrow - now).total_seconds()


class EvaluationScheduler:
    """Background task that triggers the evaluator on schedule."""

    def __init__(
        self,
        evaluator: Optional[RecommendationEvaluator] = None,
        hours: Optional[Sequence[int]] = None,
    ):
        self._evaluator = evaluator
        self.hours = tuple(hours or settings.evaluation_hours_utc)
        self._task: Optional[asyncio.Task] = None

    @property
    def evaluator(self) -> RecommendationEvaluator:
        if self._evaluator is None:
            self._evaluator = get_evaluator()
        return self._evaluator

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="evaluation-scheduler")
        logger.info(f"Evaluation scheduler started (UTC hours {list(self.hours)})")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Evaluation scheduler stopped")

    async def _run(self) -> None:
        while True:
            delay = next_evaluation_delay(datetime.now(timezone.utc), self.hours)
            logger.debug(f"Next evaluation in {delay / 3600:.2f}h")
            await asyncio.sleep(delay)

            logger.info("Running scheduled recommendation evaluation...")
            try:
                await self.evaluator.evaluate_all_pending()
            except Exception as e:
                logger.error(f"Scheduled evaluation failed: {e}", exc_info=True)
