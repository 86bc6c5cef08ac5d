from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from cryptoadvisor.db import (
    SQLAlchemyRecommendationStore,
    create_engine,
    create_session_factory,
    init_db,
)
from cryptoadvisor.schemas.recommendation import RecommendationCandidate, RecommendationStatus
from cryptoadvisor.services.base import PersistenceError

pytestmark = pytest.mark.anyio


def candidate(symbol="BTC", action="buy"):
    return RecommendationCandidate.model_validate(
        {
            "crypto": symbol,
            "action": action,
            "confidence": 70,
            "targetPrice": 70000,
            "stopLoss": 60000,
            "reasoning": ["Trend intact", "Volume confirms", "Support holding"],
            "timeframe": "1-2 weeks",
            "riskLevel": "low",
        }
    )


@pytest.fixture
async def store():
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield SQLAlchemyRecommendationStore(create_session_factory(engine))
    await engine.dispose()


async def test_insert_and_select_by_status(store):
    rec = await store.insert(candidate(), entry_price=65000.0)

    pending = await store.select_by_status(RecommendationStatus.PENDING)

    assert [r.id for r in pending] == [rec.id]
    stored = pending[0]
    assert stored.entry_price == 65000.0
    assert stored.reasoning == ["Trend intact", "Volume confirms", "Support holding"]
    assert stored.created_at.tzinfo is not None
    assert stored.evaluation_timestamp is None


async def test_update_moves_record_out_of_pending(store):
    rec = await store.insert(candidate(), entry_price=65000.0)
    when = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    ok = await store.update(
        rec.id, {"status": RecommendationStatus.ACCURATE, "evaluation_timestamp": when}
    )

    assert ok
    assert await store.select_by_status(RecommendationStatus.PENDING) == []
    [graded] = await store.select_all()
    assert graded.status == RecommendationStatus.ACCURATE
    assert graded.evaluation_timestamp == when


async def test_update_unknown_id_returns_false(store):
    assert not await store.update("missing", {"status": RecommendationStatus.EXPIRED})


async def test_update_leaves_terminal_status_alone(store):
    rec = await store.insert(candidate(), entry_price=65000.0)
    await store.update(rec.id, {"status": RecommendationStatus.INACCURATE})

    ok = await store.update(rec.id, {"status": RecommendationStatus.ACCURATE})

    assert not ok
    [graded] = await store.select_all()
    assert graded.status == RecommendationStatus.INACCURATE


async def test_update_rejects_other_columns(store):
    rec = await store.insert(candidate(), entry_price=65000.0)
    with pytest.raises(ValueError):
        await store.update(rec.id, {"target_price": 1.0})


async def test_select_recent_is_newest_first(store):
    first = await store.insert(candidate("BTC"), entry_price=65000.0)
    second = await store.insert(candidate("ETH"), entry_price=3000.0)

    recent = await store.select_recent(limit=1)

    assert [r.id for r in recent] == [second.id]
    assert {r.id for r in await store.select_all()} == {first.id, second.id}


async def test_database_errors_become_persistence_errors():
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    # no tables created
    store = SQLAlchemyRecommendationStore(create_session_factory(engine))

    with pytest.raises(PersistenceError) as exc_info:
        await store.select_all()

    assert isinstance(exc_info.value.__cause__, OperationalError)
    await engine.dispose()
