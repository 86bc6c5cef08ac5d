import asyncio
from datetime import datetime, timezone

import pytest

from conftest import FakeHTTP, FakeResponse, FakeSession
from cryptoadvisor.schemas.market import Interval
from cryptoadvisor.services.base import DataFormatError, TransportError
from cryptoadvisor.services.market_data.binance_adapter import (
    BinanceFuturesClient,
    parse_klines,
    to_pair,
)

HOUR_MS = 3_600_000
START_MS = 1_704_067_200_000  # 2024-01-01T00:00:00Z


def kline(i, close="100.5"):
    open_time = START_MS + i * HOUR_MS
    return [
        open_time, "100.0", "101.0", "99.0", close, "12.5",
        open_time + HOUR_MS - 1, "1250.0", 42, "6.0", "600.0", "0",
    ]


def test_to_pair():
    assert to_pair("btc") == "BTCUSDT"
    assert to_pair("ETHUSDT") == "ETHUSDT"
    assert to_pair(" sol ") == "SOLUSDT"


def test_parse_klines_maps_fields():
    candles = parse_klines([kline(0), kline(1, close="102.25")])

    assert len(candles) == 2
    first = candles[0]
    assert first.open_time == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert first.open_time < first.close_time
    assert (first.open, first.high, first.low, first.close) == (100.0, 101.0, 99.0, 100.5)
    assert first.volume == 12.5
    assert first.quote_volume == 1250.0
    assert first.trade_count == 42
    assert candles[1].close == 102.25


@pytest.mark.parametrize(
    "payload",
    [
        {"code": -1121, "msg": "Invalid symbol."},
        [],
        None,
        [[START_MS, "1", "1", "1"]],
        [kline(0, close="abc")],
        [kline(0, close="0")],
    ],
)
def test_parse_klines_rejects_malformed(payload):
    with pytest.raises(DataFormatError):
        parse_klines(payload)


def test_parse_klines_rejects_out_of_order_and_duplicates():
    with pytest.raises(DataFormatError):
        parse_klines([kline(1), kline(0)])
    with pytest.raises(DataFormatError):
        parse_klines([kline(0), kline(0)])


@pytest.mark.anyio
async def test_fetch_candles_requests_klines():
    session = FakeSession(FakeResponse(payload=[kline(i) for i in range(3)]))
    client = BinanceFuturesClient(http=FakeHTTP(session), base_url="http://binance")

    candles = await client.fetch_candles("btc", Interval.H4, limit=3)

    assert len(candles) == 3
    method, url, kwargs = session.requests[0]
    assert (method, url) == ("GET", "http://binance/fapi/v1/klines")
    assert kwargs["params"] == {"symbol": "BTCUSDT", "interval": "4h", "limit": 3}


@pytest.mark.anyio
async def test_fetch_candles_http_error_is_transport_error():
    session = FakeSession(FakeResponse(status=400, text='{"code":-1121}'))
    client = BinanceFuturesClient(http=FakeHTTP(session))

    with pytest.raises(TransportError) as exc_info:
        await client.fetch_candles("NOPE")

    assert exc_info.value.details["status"] == 400


@pytest.mark.anyio
async def test_fetch_candles_timeout_is_transport_error():
    client = BinanceFuturesClient(http=FakeHTTP(FakeSession(asyncio.TimeoutError())))

    with pytest.raises(TransportError):
        await client.fetch_candles("BTC")


@pytest.mark.anyio
async def test_ping():
    ok = BinanceFuturesClient(http=FakeHTTP(FakeSession(FakeResponse(payload={}))))
    down = BinanceFuturesClient(http=FakeHTTP(FakeSession(asyncio.TimeoutError())))

    assert await ok.ping() is True
    assert await down.ping() is False
