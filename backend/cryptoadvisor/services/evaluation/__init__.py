"""
Recommendation Evaluation Service

Grades stored recommendations against live prices and reports accuracy.
"""

from cryptoadvisor.services.evaluation.rules import (
    EvaluationDecision,
    decide,
    is_expired,
)
from cryptoadvisor.services.evaluation.stats import compute_stats, get_evaluation_stats
from cryptoadvisor.services.evaluation.service import (
    EvaluationRunSummary,
    RecommendationEvaluator,
    get_evaluator,
)
from cryptoadvisor.services.evaluation.scheduler import (
    EvaluationScheduler,
    next_evaluation_delay,
)

__all__ = [
    "EvaluationDecision",
    "decide",
    "is_expired",
    "compute_stats",
    "get_evaluation_stats",
    "EvaluationRunSummary",
    "RecommendationEvaluator",
    "get_evaluator",
    "EvaluationScheduler",
    "next_evaluation_delay",
]
