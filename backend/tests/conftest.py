from datetime import datetime, timedelta, timezone

import pytest

from cryptoadvisor.db.store import InMemoryRecommendationStore
from cryptoadvisor.schemas.market import Candle, Quote
from cryptoadvisor.schemas.recommendation import (
    Action,
    Recommendation,
    RecommendationStatus,
    RiskLevel,
)
from cryptoadvisor.services.base import PersistenceError

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def anyio_backend():
    return "asyncio"


def make_candles(closes, start=None, spread=1.0, volume=10.0):
    """Hourly candles with the given closes; high/low are close +/- spread."""
    start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
    candles = []
    for i, close in enumerate(closes):
        open_time = start + timedelta(hours=i)
        candles.append(
            Candle(
                open_time=open_time,
                close_time=open_time + timedelta(hours=1) - timedelta(milliseconds=1),
                open=close,
                high=close + spread,
                low=close - spread,
                close=close,
                volume=volume,
            )
        )
    return candles


def make_recommendation(
    action="buy",
    target=110.0,
    stop=90.0,
    entry=100.0,
    age_days=1.0,
    status=RecommendationStatus.PENDING,
    symbol="BTC",
    rec_id="rec-1",
    now=NOW,
):
    return Recommendation(
        id=rec_id,
        symbol=symbol,
        action=Action(action),
        confidence=70,
        target_price=target,
        stop_loss=stop,
        entry_price=entry,
        reasoning=["Momentum building", "Volume rising", "Holding support"],
        timeframe="1-2 weeks",
        risk_level=RiskLevel.MEDIUM,
        status=status,
        created_at=now - timedelta(days=age_days),
    )


class FakeOracle:
    """Price oracle returning fixed prices; records every symbol asked for."""

    def __init__(self, prices=None):
        self.prices = prices or {}
        self.calls = []

    async def get_quote(self, symbol):
        self.calls.append(symbol)
        price = self.prices.get(symbol)
        if price is None:
            return None
        return Quote(symbol=symbol, price=price, source="fake")

    async def get_quotes(self, symbols):
        quotes = []
        for symbol in symbols:
            quote = await self.get_quote(symbol)
            if quote is not None:
                quotes.append(quote)
        return quotes

    async def test_connection(self):
        return "BTC" in self.prices


class RecordingStore(InMemoryRecommendationStore):
    """In-memory store that records updates and can be told to fail."""

    def __init__(self, records=None, fail_select=False, fail_update_ids=(), fail_insert_symbols=()):
        super().__init__(records)
        self.fail_select = fail_select
        self.fail_update_ids = set(fail_update_ids)
        self.fail_insert_symbols = set(fail_insert_symbols)
        self.updates = []

    async def insert(self, candidate, entry_price):
        if candidate.symbol in self.fail_insert_symbols:
            raise PersistenceError("RecommendationStore", "disk full")
        return await super().insert(candidate, entry_price)

    async def select_by_status(self, status):
        if self.fail_select:
            raise PersistenceError("RecommendationStore", "database locked")
        return await super().select_by_status(status)

    async def select_all(self):
        if self.fail_select:
            raise PersistenceError("RecommendationStore", "database locked")
        return await super().select_all()

    async def update(self, recommendation_id, fields):
        self.updates.append((recommendation_id, dict(fields)))
        if recommendation_id in self.fail_update_ids:
            raise PersistenceError("RecommendationStore", "write failed")
        return await super().update(recommendation_id, fields)


class FakeResponse:
    def __init__(self, status=200, payload=None, text=""):
        self.status = status
        self._payload = payload
        self._text = text

    async def json(self, content_type=None):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Stands in for aiohttp.ClientSession; replies from a queue."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)


class FakeHTTP:
    def __init__(self, session):
        self.session = session

    async def get(self):
        return self.session
