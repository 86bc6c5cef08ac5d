import pytest
from fastapi.testclient import TestClient

from conftest import NOW, FakeOracle, RecordingStore, make_candles, make_recommendation
from cryptoadvisor.db.store import get_recommendation_store
from cryptoadvisor.main import app
from cryptoadvisor.schemas.recommendation import RecommendationStatus
from cryptoadvisor.services.base import DataFormatError, TransportError
from cryptoadvisor.services.evaluation import RecommendationEvaluator, get_evaluator
from cryptoadvisor.services.indicators import IndicatorService, get_indicator_service
from cryptoadvisor.services.market_data import get_binance_client, get_price_oracle
from cryptoadvisor.services.recommendations import (
    RecommendationIntakeService,
    get_intake_service,
)


class FakeCandleClient:
    def __init__(self, candles=None, error=None):
        self.candles = candles or []
        self.error = error

    async def fetch_candles(self, symbol, interval, limit):
        if self.error:
            raise self.error
        return self.candles[-limit:]

    async def ping(self):
        return self.error is None


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def oracle():
    return FakeOracle({"BTC": 65000.0, "ETH": 3200.0})


@pytest.fixture
def client(store, oracle):
    app.dependency_overrides[get_recommendation_store] = lambda: store
    app.dependency_overrides[get_price_oracle] = lambda: oracle
    app.dependency_overrides[get_intake_service] = lambda: RecommendationIntakeService(
        store=store, oracle=oracle
    )
    app.dependency_overrides[get_evaluator] = lambda: RecommendationEvaluator(
        store=store, oracle=oracle, pause_seconds=0, clock=lambda: NOW
    )
    app.dependency_overrides[get_binance_client] = lambda: FakeCandleClient()
    yield TestClient(app)
    app.dependency_overrides.clear()


def use_candles(candle_client):
    app.dependency_overrides[get_indicator_service] = lambda: IndicatorService(candle_client)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_quote(client):
    response = client.get("/api/v1/market/btc/quote")
    assert response.status_code == 200
    assert response.json()["price"] == 65000.0


def test_quote_without_data_is_404(client):
    response = client.get("/api/v1/market/XYZ/quote")
    assert response.status_code == 404


def test_quotes_skip_missing(client):
    response = client.get("/api/v1/market/quotes", params={"symbols": "BTC,XYZ,eth"})
    assert [q["symbol"] for q in response.json()] == ["BTC", "ETH"]


def test_connection_status(client):
    body = client.get("/api/v1/market/test-connection").json()
    assert body == {"connected": True, "price_oracle": True, "binance_futures": True}


def test_indicators(client):
    use_candles(FakeCandleClient(make_candles([100.0 + i for i in range(60)])))

    response = client.get("/api/v1/indicators/BTC", params={"interval": "1h", "limit": 60})

    assert response.status_code == 200
    body = response.json()
    assert body["current_price"] == 159.0
    assert body["ema20"] > body["ema50"]


@pytest.mark.parametrize(
    "error",
    [TransportError("BinanceFutures", "timeout"), DataFormatError("BinanceFutures", "bad")],
)
def test_indicators_upstream_failure_is_502(client, error):
    use_candles(FakeCandleClient(error=error))

    response = client.get("/api/v1/indicators/BTC")

    assert response.status_code == 502


def test_indicators_rejects_unknown_interval(client):
    use_candles(FakeCandleClient(make_candles([100.0])))
    assert client.get("/api/v1/indicators/BTC", params={"interval": "7m"}).status_code == 422


def test_create_recommendation(client, store):
    payload = {
        "crypto": "BTC",
        "action": "buy",
        "confidence": 80,
        "targetPrice": 70000,
        "stopLoss": 60000,
        "reasoning": ["Breakout", "Volume", "Funding"],
        "timeframe": "1-2 weeks",
        "riskLevel": "low",
    }

    response = client.post("/api/v1/recommendations", json=payload)

    assert response.status_code == 201
    body = response.json()
    assert body["failed"] == []
    [created] = body["stored"]
    assert created["status"] == "pending"
    assert created["entry_price"] == 65000.0
    assert created["id"] in store.records


def test_create_recommendation_invalid_is_422(client, store):
    payload = {"crypto": "BTC", "action": "ape", "confidence": 80, "targetPrice": 1, "stopLoss": 1}

    response = client.post("/api/v1/recommendations", json=[payload])

    assert response.status_code == 422
    assert store.records == {}


def candidate_payload(symbol):
    return {"crypto": symbol, "action": "buy", "confidence": 70, "targetPrice": 100, "stopLoss": 50}


def test_create_recommendations_partial_failure_is_207(client, store):
    store.fail_insert_symbols = {"ETH"}

    response = client.post(
        "/api/v1/recommendations",
        json=[candidate_payload("BTC"), candidate_payload("ETH")],
    )

    assert response.status_code == 207
    body = response.json()
    assert [r["symbol"] for r in body["stored"]] == ["BTC"]
    assert [(f["index"], f["symbol"]) for f in body["failed"]] == [(1, "ETH")]
    assert [r.symbol for r in store.records.values()] == ["BTC"]


def test_create_recommendations_all_failed_is_503(client, store):
    store.fail_insert_symbols = {"BTC", "ETH"}

    response = client.post(
        "/api/v1/recommendations",
        json=[candidate_payload("BTC"), candidate_payload("ETH")],
    )

    assert response.status_code == 503
    assert store.records == {}


def test_list_evaluate_and_stats(client, store):
    store.records = {
        r.id: r
        for r in [
            make_recommendation("buy", target=60000, stop=50000, rec_id="hit"),
            make_recommendation("sell", target=3000, stop=3100, symbol="ETH", rec_id="stopped"),
            make_recommendation("buy", symbol="DOGE", rec_id="no-price"),
        ]
    }

    assert len(client.get("/api/v1/recommendations", params={"limit": 2}).json()) == 2

    summary = client.post("/api/v1/recommendations/evaluate").json()
    assert summary == {"evaluated": 3, "transitioned": 2, "skipped": 1, "failed": 0}
    assert store.records["no-price"].status == RecommendationStatus.PENDING

    stats = client.get("/api/v1/recommendations/stats").json()
    assert stats["total"] == 3
    assert stats["accurate"] == 1
    assert stats["inaccurate"] == 1
    assert stats["accuracy_rate"] == 50.0
