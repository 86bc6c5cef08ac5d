"""
Recommendation Store

The persistence collaborator used by the evaluator, the stats aggregator
and the intake service. Records are append-only; the only mutation is the
single status transition written by the evaluator.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select, update as sql_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cryptoadvisor.db.database import get_session_factory, session_scope
from cryptoadvisor.db.models import TradeRecommendation
from cryptoadvisor.schemas.recommendation import (
    Recommendation,
    RecommendationCandidate,
    RecommendationStatus,
)
from cryptoadvisor.services.base import PersistenceError

logger = logging.getLogger(__name__)

SERVICE_NAME = "RecommendationStore"

# Columns the evaluator is allowed to write
UPDATABLE_FIELDS = {"status", "evaluation_timestamp"}


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; they were written as UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_schema(row: TradeRecommendation) -> Recommendation:
    return Recommendation(
        id=row.id,
        symbol=row.symbol,
        action=row.action,
        confidence=row.confidence,
        target_price=row.target_price,
        stop_loss=row.stop_loss,
        entry_price=row.entry_price,
        reasoning=list(row.reasoning or []),
        timeframe=row.timeframe,
        risk_level=row.risk_level,
        status=row.status,
        created_at=_as_utc(row.created_at),
        evaluation_timestamp=_as_utc(row.evaluation_timestamp),
    )


def _check_fields(fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields not updatable: {sorted(unknown)}")
    values = dict(fields)
    if isinstance(values.get("status"), RecommendationStatus):
        values["status"] = values["status"].value
    return values


class RecommendationStore(ABC):
    """Storage contract for recommendations."""

    @abstractmethod
    async def insert(
        self, candidate: RecommendationCandidate, entry_price: float
    ) -> Recommendation:
        """Store a new pending recommendation."""
        pass

    @abstractmethod
    async def select_by_status(self, status: RecommendationStatus) -> list[Recommendation]:
        pass

    @abstractmethod
    async def update(self, recommendation_id: str, fields: dict[str, Any]) -> bool:
        """
        Write status fields for one pending record.

        False when the id is unknown or the record already has a terminal status.
        """
        pass

    @abstractmethod
    async def select_all(self) -> list[Recommendation]:
        pass

    @abstractmethod
    async def select_recent(self, limit: int = 50) -> list[Recommendation]:
        """Newest first."""
        pass


class SQLAlchemyRecommendationStore(RecommendationStore):
    """Store backed by the trade_recommendations table. One transaction per call."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    async def insert(
        self, candidate: RecommendationCandidate, entry_price: float
    ) -> Recommendation:
        row = TradeRecommendation(
            id=str(uuid.uuid4()),
            symbol=candidate.symbol,
            action=candidate.action.value,
            confidence=candidate.confidence,
            target_price=candidate.target_price,
            stop_loss=candidate.stop_loss,
            entry_price=entry_price,
            reasoning=list(candidate.reasoning),
            timeframe=candidate.timeframe,
            risk_level=candidate.risk_level.value,
            status=RecommendationStatus.PENDING.value,
            created_at=datetime.now(timezone.utc),
        )
        try:
            async with session_scope(self.session_factory) as session:
                session.add(row)
        except SQLAlchemyError as e:
            raise PersistenceError(
                SERVICE_NAME, f"Failed to store recommendation for {candidate.symbol}: {e}"
            ) from e

        logger.info(f"Stored {candidate.action.value} recommendation {row.id} for {candidate.symbol}")
        return _to_schema(row)

    async def select_by_status(self, status: RecommendationStatus) -> list[Recommendation]:
        query = (
            select(TradeRecommendation)
            .where(TradeRecommendation.status == status.value)
            .order_by(TradeRecommendation.created_at)
        )
        return await self._select(query, f"status={status.value}")

    async def select_all(self) -> list[Recommendation]:
        query = select(TradeRecommendation).order_by(TradeRecommendation.created_at)
        return await self._select(query, "all")

    async def select_recent(self, limit: int = 50) -> list[Recommendation]:
        query = (
            select(TradeRecommendation)
            .order_by(TradeRecommendation.created_at.desc())
            .limit(limit)
        )
        return await self._select(query, f"recent {limit}")

    async def update(self, recommendation_id: str, fields: dict[str, Any]) -> bool:
        values = _check_fields(fields)
        try:
            async with session_scope(self.session_factory) as session:
                result = await session.execute(
                    sql_update(TradeRecommendation)
                    .where(TradeRecommendation.id == recommendation_id)
                    .where(TradeRecommendation.status == RecommendationStatus.PENDING.value)
                    .values(**values)
                )
                updated = result.rowcount > 0
        except SQLAlchemyError as e:
            raise PersistenceError(
                SERVICE_NAME, f"Failed to update recommendation {recommendation_id}: {e}"
            ) from e

        if not updated:
            logger.warning(f"Recommendation {recommendation_id} not found or no longer pending")
        return updated

    async def _select(self, query, description: str) -> list[Recommendation]:
        try:
            async with session_scope(self.session_factory) as session:
                rows = (await session.execute(query)).scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError(
                SERVICE_NAME, f"Failed to read recommendations ({description}): {e}"
            ) from e
        return [_to_schema(row) for row in rows]


class InMemoryRecommendationStore(RecommendationStore):
    """Dictionary-backed store for local runs and tests."""

    def __init__(self, records: Optional[list[Recommendation]] = None):
        self.records: dict[str, Recommendation] = {r.id: r for r in records or []}

    async def insert(
        self, candidate: RecommendationCandidate, entry_price: float
    ) -> Recommendation:
        record = Recommendation(
            id=str(uuid.uuid4()),
            entry_price=entry_price,
            status=RecommendationStatus.PENDING,
            created_at=datetime.now(timezone.utc),
            **candidate.model_dump(exclude={"entry_price"}),
        )
        self.records[record.id] = record
        return record

    async def select_by_status(self, status: RecommendationStatus) -> list[Recommendation]:
        return [r for r in self.records.values() if r.status == status]

    async def select_all(self) -> list[Recommendation]:
        return list(self.records.values())

    async def select_recent(self, limit: int = 50) -> list[Recommendation]:
        ordered = sorted(self.records.values(), key=lambda r: r.created_at, reverse=True)
        return ordered[:limit]

    async def update(self, recommendation_id: str, fields: dict[str, Any]) -> bool:
        values = _check_fields(fields)
        record = self.records.get(recommendation_id)
        if record is None or record.status.is_terminal:
            return False
        self.records[recommendation_id] = Recommendation.model_validate(
            {**record.model_dump(), **values}
        )
        return True


# Singleton instance
_store_instance: Optional[RecommendationStore] = None


def get_recommendation_store() -> RecommendationStore:
    """Get or create the recommendation store."""
    global _store_instance
    if _store_instance is None:
        _store_instance = SQLAlchemyRecommendationStore()
    return _store_instance
