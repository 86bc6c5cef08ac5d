"""
Database module for Crypto Advisor.

Provides the async database connection, the recommendation model and the
store used by the evaluator.
"""

from cryptoadvisor.db.database import (
    init_db,
    close_db,
    create_engine,
    create_session_factory,
    get_session_factory,
)
from cryptoadvisor.db.models import Base, TradeRecommendation
from cryptoadvisor.db.store import (
    RecommendationStore,
    SQLAlchemyRecommendationStore,
    InMemoryRecommendationStore,
    get_recommendation_store,
)

__all__ = [
    "init_db",
    "close_db",
    "create_engine",
    "create_session_factory",
    "get_session_factory",
    "Base",
    "TradeRecommendation",
    "RecommendationStore",
    "SQLAlchemyRecommendationStore",
    "InMemoryRecommendationStore",
    "get_recommendation_store",
]
