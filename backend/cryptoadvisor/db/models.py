"""
SQLAlchemy models for the Crypto Advisor database.

Stores AI trading recommendations and their evaluation outcome.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    DateTime,
    Index,
    JSON,
)
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class TradeRecommendation(Base):
    """
    AI trade recommendation.
    Created pending; the evaluator moves it to a terminal status once.
    """
    __tablename__ = "trade_recommendations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    symbol = Column(String(20), nullable=False)
    action = Column(String(10), nullable=False)  # buy, sell, hold
    confidence = Column(Integer, nullable=False)

    # Price levels
    target_price = Column(Float, nullable=False)
    stop_loss = Column(Float, nullable=False)
    entry_price = Column(Float, nullable=False)

    reasoning = Column(JSON, nullable=False, default=list)  # ["reason", ...]
    timeframe = Column(String(50), nullable=False)
    risk_level = Column(String(10), nullable=False)  # low, medium, high

    # Evaluation
    status = Column(String(20), nullable=False, default="pending")  # pending, accurate, inaccurate, expired
    evaluation_timestamp = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_trade_recommendations_status", "status"),
        Index("ix_trade_recommendations_symbol", "symbol"),
        Index("ix_trade_recommendations_created_at", "created_at"),
    )
