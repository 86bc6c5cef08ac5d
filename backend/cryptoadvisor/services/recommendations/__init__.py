"""
Recommendation Intake Service

Validates AI generator output and stores it for evaluation.
"""

from cryptoadvisor.services.recommendations.intake import (
    RecommendationIntakeService,
    coerce_candidate,
    get_intake_service,
)

__all__ = [
    "RecommendationIntakeService",
    "coerce_candidate",
    "get_intake_service",
]
