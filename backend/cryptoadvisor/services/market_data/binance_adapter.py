"""
Binance Futures Candle Adapter

Fetches OHLCV klines from the Binance USD-M futures API and normalises them
into ordered Candle records.

Kline row layout:
    [openTime, open, high, low, close, volume, closeTime,
     quoteAssetVolume, numberOfTrades, takerBuyBase, takerBuyQuote, ignore]
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import aiohttp
from pydantic import ValidationError

from cryptoadvisor.core.config import settings
from cryptoadvisor.core.timing import start_timer
from cryptoadvisor.schemas.market import Candle, Interval
from cryptoadvisor.services.base import DataFormatError
from cryptoadvisor.services.market_data.http import (
    HTTPSession,
    get_http_session,
    request_json,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "BinanceFutures"
KLINE_FIELDS = 9


def to_pair(symbol: str, quote_asset: Optional[str] = None) -> str:
    """Convert an asset symbol to a futures pair (BTC -> BTCUSDT)."""
    quote_asset = (quote_asset or settings.binance_quote_asset).upper()
    symbol = symbol.upper().strip()
    if symbol.endswith(quote_asset):
        return symbol
    return f"{symbol}{quote_asset}"


def _ms_to_datetime(value: Any) -> datetime:
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


def parse_klines(payload: Any) -> list[Candle]:
    """
    Validate a klines response and map it to candles.

    Raises DataFormatError when the payload is not a non-empty array of
    kline rows, a row cannot be parsed, or rows are not strictly ascending.
    """
    if not isinstance(payload, list) or not payload:
        raise DataFormatError(SERVICE_NAME, "Invalid response format from Binance API")

    candles: list[Candle] = []
    for index, row in enumerate(payload):
        if not isinstance(row, (list, tuple)) or len(row) < KLINE_FIELDS:
            raise DataFormatError(
                SERVICE_NAME, f"Malformed kline at index {index}", {"row": str(row)[:200]}
            )

        try:
            candle = Candle(
                open_time=_ms_to_datetime(row[0]),
                open=float(row[1]),
                high=float(row[2]),
                low=float(row[3]),
                close=float(row[4]),
                volume=float(row[5]),
                close_time=_ms_to_datetime(row[6]),
                quote_volume=float(row[7]),
                trade_count=int(row[8]),
            )
        except (TypeError, ValueError, ValidationError) as e:
            raise DataFormatError(
                SERVICE_NAME, f"Unparseable kline at index {index}: {e}"
            ) from e

        if candles and candle.open_time <= candles[-1].open_time:
            raise DataFormatError(
                SERVICE_NAME, f"Klines out of order or duplicated at index {index}"
            )
        candles.append(candle)

    return candles


class BinanceFuturesClient:
    """Candle ingestor for the primary market-data provider."""

    def __init__(
        self,
        http: Optional[HTTPSession] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        ping_timeout: Optional[float] = None,
    ):
        self._http = http
        self.base_url = (base_url or settings.binance_futures_base_url).rstrip("/")
        self.timeout = timeout or settings.candle_timeout_seconds
        self.ping_timeout = ping_timeout or settings.ping_timeout_seconds

    @property
    def http(self) -> HTTPSession:
        if self._http is None:
            self._http = get_http_session()
        return self._http

    async def fetch_candles(
        self,
        symbol: str,
        interval: Interval = Interval.H1,
        limit: int = 100,
    ) -> list[Candle]:
        """
        Fetch `limit` klines for a symbol, oldest first.

        Raises:
            TransportError: request failed or timed out
            DataFormatError: response was empty or malformed
        """
        pair = to_pair(symbol)
        logger.info(f"Fetching {limit} {interval.value} candlesticks for {pair} from Binance Futures...")

        with start_timer("fetch_candles"):
            payload = await request_json(
                self.http,
                "GET",
                f"{self.base_url}/fapi/v1/klines",
                service_name=SERVICE_NAME,
                timeout=self.timeout,
                params={"symbol": pair, "interval": interval.value, "limit": limit},
            )
            candles = parse_klines(payload)

        logger.info(f"Fetched {len(candles)} candlesticks for {pair} ({interval.value})")
        return candles

    async def ping(self) -> bool:
        """Connectivity check. Never raises."""
        try:
            session = await self.http.get()
            async with session.get(
                f"{self.base_url}/fapi/v1/ping",
                timeout=aiohttp.ClientTimeout(total=self.ping_timeout),
            ) as resp:
                ok = resp.status == 200
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Binance Futures API test failed: {str(e) or type(e).__name__}")
            return False

        if ok:
            logger.info("Binance Futures API test successful")
        return ok


# Singleton instance
_client_instance: Optional[BinanceFuturesClient] = None


def get_binance_client() -> BinanceFuturesClient:
    """Get or create the Binance Futures client."""
    global _client_instance
    if _client_instance is None:
        _client_instance = BinanceFuturesClient()
    return _client_instance
