"""
Recommendation Evaluator Service

Grades pending recommendations against live prices and elapsed time.
Records are evaluated one at a time with a pause in between; each record
costs at most one oracle call and at most one store write.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from cryptoadvisor.core.config import settings
from cryptoadvisor.core.timing import start_timer
from cryptoadvisor.db.store import RecommendationStore, get_recommendation_store
from cryptoadvisor.schemas.recommendation import (
    EvaluationStats,
    Recommendation,
    RecommendationStatus,
)
from cryptoadvisor.services.base import BaseService, PersistenceError
from cryptoadvisor.services.evaluation.rules import (
    NO_PRICE_REASON,
    EvaluationDecision,
    decide,
    is_expired,
)
from cryptoadvisor.services.evaluation.stats import get_evaluation_stats
from cryptoadvisor.services.market_data.price_oracle import PriceOracle, get_price_oracle

logger = logging.getLogger(__name__)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class EvaluationRunSummary:
    """Counters for one evaluation pass."""

    evaluated: int = 0
    transitioned: int = 0
    skipped: int = 0  # no price available
    failed: int = 0  # store write failed or record no longer pending


class RecommendationEvaluator(BaseService[None, EvaluationRunSummary]):
    """
    Recommendation Evaluator.

    Owns only the transition decision; the store persists it.
    Concurrent passes are not locked against each other.
    """

    def __init__(
        self,
        store: Optional[RecommendationStore] = None,
        oracle: Optional[PriceOracle] = None,
        pause_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.store = store or get_recommendation_store()
        self.oracle = oracle or get_price_oracle()
        self.pause_seconds = (
            settings.evaluation_pause_seconds if pause_seconds is None else pause_seconds
        )
        self.clock = clock

    @property
    def name(self) -> str:
        return "RecommendationEvaluator"

    async def execute(self, input_data: None = None) -> EvaluationRunSummary:
        return await self.evaluate_all_pending()

    async def evaluate_all_pending(self) -> EvaluationRunSummary:
        """Run one pass over every pending recommendation."""
        summary = EvaluationRunSummary()
        logger.info("Starting recommendation evaluation...")

        try:
            pending = await self.store.select_by_status(RecommendationStatus.PENDING)
        except PersistenceError as e:
            logger.error(f"Error fetching pending recommendations: {e.message}")
            return summary

        if not pending:
            logger.info("No pending recommendations to evaluate")
            return summary

        logger.info(f"Evaluating {len(pending)} pending recommendations")
        timer = start_timer("evaluate_all_pending")

        for index, rec in enumerate(pending):
            if index > 0 and self.pause_seconds > 0:
                await asyncio.sleep(self.pause_seconds)
            await self._evaluate_record(rec, summary)

        duration = timer.stop()
        logger.info(
            f"Evaluation completed in {duration:.2f}s: {summary.evaluated} evaluated, "
            f"{summary.transitioned} updated, {summary.skipped} without price, "
            f"{summary.failed} failed"
        )
        return summary

    async def evaluate_one(self, rec: Recommendation) -> EvaluationDecision:
        """
        Decide the next status for one record without writing it.

        The oracle is only consulted when the record has not already expired.
        """
        now = self.clock()
        if rec.status.is_terminal or is_expired(rec, now, settings.expiry_days):
            return self._decide(rec, None, now)

        quote = await self.oracle.get_quote(rec.symbol)
        return self._decide(rec, quote.price if quote else None, now)

    async def get_evaluation_stats(self) -> EvaluationStats:
        return await get_evaluation_stats(self.store)

    async def health_check(self) -> bool:
        try:
            await self.store.select_by_status(RecommendationStatus.PENDING)
            return True
        except PersistenceError:
            return False

    def _decide(
        self, rec: Recommendation, price: Optional[float], now: datetime
    ) -> EvaluationDecision:
        return decide(
            rec,
            price,
            now,
            expiry_days=settings.expiry_days,
            hold_min_days=settings.hold_min_days,
            hold_tolerance_percent=settings.hold_tolerance_percent,
        )

    async def _evaluate_record(self, rec: Recommendation, summary: EvaluationRunSummary) -> None:
        summary.evaluated += 1
        decision = await self.evaluate_one(rec)

        if not decision.transitions:
            if decision.reason == NO_PRICE_REASON:
                logger.warning(f"Could not get current price for {rec.symbol}, leaving {rec.id} pending")
                summary.skipped += 1
            return

        try:
            updated = await self.store.update(
                rec.id,
                {"status": decision.status, "evaluation_timestamp": self.clock()},
            )
        except PersistenceError as e:
            logger.error(f"Error updating recommendation {rec.id}: {e.message}")
            summary.failed += 1
            return

        if not updated:
            logger.warning(
                f"Recommendation {rec.id} was not updated to {decision.status.value}: "
                f"no longer pending in the store"
            )
            summary.failed += 1
            return

        summary.transitioned += 1
        logger.info(
            f"Updated {rec.symbol} {rec.action.value} recommendation {rec.id} "
            f"to {decision.status.value} ({decision.reason})"
        )


# Singleton instance
_service_instance: Optional[RecommendationEvaluator] = None


def get_evaluator() -> RecommendationEvaluator:
    """Get or create the recommendation evaluator."""
    global _service_instance
    if _service_instance is None:
        _service_instance = RecommendationEvaluator()
    return _service_instance
