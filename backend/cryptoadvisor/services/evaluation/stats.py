"""
Evaluation Stats Aggregator

Counts recommendations per status and derives the accuracy rate. Recomputed
from the store on every call.
"""

import logging
from collections import Counter
from typing import Iterable

from cryptoadvisor.db.store import RecommendationStore
from cryptoadvisor.schemas.recommendation import EvaluationStats, RecommendationStatus
from cryptoadvisor.services.base import PersistenceError

logger = logging.getLogger(__name__)


def compute_stats(statuses: Iterable[RecommendationStatus]) -> EvaluationStats:
    """accuracy_rate = accurate / (accurate + inaccurate) * 100, 0 when nothing was graded."""
    counts = Counter(RecommendationStatus(s) for s in statuses)

    accurate = counts[RecommendationStatus.ACCURATE]
    inaccurate = counts[RecommendationStatus.INACCURATE]
    graded = accurate + inaccurate

    return EvaluationStats(
        total=sum(counts.values()),
        pending=counts[RecommendationStatus.PENDING],
        accurate=accurate,
        inaccurate=inaccurate,
        expired=counts[RecommendationStatus.EXPIRED],
        accuracy_rate=accurate / graded * 100 if graded > 0 else 0.0,
    )


async def get_evaluation_stats(store: RecommendationStore) -> EvaluationStats:
    """Stats over every stored recommendation. A read failure yields all zeros."""
    try:
        records = await store.select_all()
    except PersistenceError as e:
        logger.error(f"Error getting evaluation stats: {e.message}")
        return EvaluationStats()

    return compute_stats(r.status for r in records)
