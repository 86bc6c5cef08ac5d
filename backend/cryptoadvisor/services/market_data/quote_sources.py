"""
Quote Sources

Each source resolves "current price and 24h stats" for one symbol through a
single upstream notation. Sources never raise: fetch() returns a QuoteResult
holding either a Quote or the error that stopped it.

Primary: TradingView scanner, one source per ticker notation
Secondary: CoinGecko simple price, keyed by a static symbol -> id table
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from cryptoadvisor.core.config import settings
from cryptoadvisor.schemas.market import Quote
from cryptoadvisor.services.base import DataFormatError, ServiceError, TransportError
from cryptoadvisor.services.market_data.http import (
    HTTPSession,
    get_http_session,
    request_json,
)

logger = logging.getLogger(__name__)


# Ticker notations tried against TradingView, in order
TRADINGVIEW_TICKER_FORMATS = [
    ("BINANCE", "USDT"),
    ("BINANCE", "USD"),
    ("COINBASE", "USD"),
    ("KRAKEN", "USD"),
    ("BITSTAMP", "USD"),
]

TRADINGVIEW_COLUMNS = [
    "name", "close", "change", "change_abs", "volume", "market_cap_basic",
]

COINGECKO_IDS = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "ADA": "cardano",
    "BNB": "binancecoin",
    "XRP": "ripple",
}


@dataclass
class QuoteResult:
    """Outcome of one quote attempt."""

    source: str
    quote: Optional[Quote] = None
    error: Optional[ServiceError] = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.quote is not None


def _build_quote(source: str, symbol: str, price: Any, **stats: Any) -> Quote:
    if isinstance(price, bool) or not isinstance(price, (int, float)) or price <= 0:
        raise DataFormatError(source, f"Invalid price {price!r} for {symbol}")
    try:
        return Quote(
            symbol=symbol,
            price=float(price),
            change_24h=float(stats.get("change_24h") or 0),
            volume=float(stats.get("volume") or 0),
            market_cap=float(stats.get("market_cap") or 0),
            source=source,
        )
    except (TypeError, ValueError, ValidationError) as e:
        raise DataFormatError(source, f"Unusable quote for {symbol}: {e}") from e


def parse_scanner_response(symbol: str, payload: Any, source: str) -> Quote:
    """Map a TradingView scanner response (first row) to a Quote."""
    try:
        row = list(payload["data"][0]["d"])
    except (KeyError, IndexError, TypeError) as e:
        raise DataFormatError(source, f"No data in scanner response for {symbol}") from e

    row += [None] * (len(TRADINGVIEW_COLUMNS) - len(row))
    _name, price, change, _change_abs, volume, market_cap = row[: len(TRADINGVIEW_COLUMNS)]

    return _build_quote(
        source, symbol, price, change_24h=change, volume=volume, market_cap=market_cap
    )


def parse_simple_price(symbol: str, coin_id: str, payload: Any, source: str) -> Quote:
    """Map a CoinGecko /simple/price response to a Quote."""
    data = payload.get(coin_id) if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        raise DataFormatError(source, f"No data from CoinGecko for {coin_id}")

    return _build_quote(
        source,
        symbol,
        data.get("usd"),
        change_24h=data.get("usd_24h_change"),
        volume=data.get("usd_24h_vol"),
        market_cap=data.get("usd_market_cap"),
    )


class QuoteSource(ABC):
    """A single strategy in the price fallback chain."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Source name for logging and Quote.source."""
        pass

    @abstractmethod
    async def fetch(self, symbol: str) -> QuoteResult:
        """Resolve a quote for an upper-cased asset symbol. Never raises."""
        pass


class HTTPQuoteSource(QuoteSource):
    """Quote source backed by the shared HTTP session."""

    def __init__(self, http: Optional[HTTPSession] = None, timeout: Optional[float] = None):
        self._http = http
        self.timeout = timeout or settings.quote_timeout_seconds

    @property
    def http(self) -> HTTPSession:
        if self._http is None:
            self._http = get_http_session()
        return self._http

    async def fetch(self, symbol: str) -> QuoteResult:
        try:
            quote = await self._fetch_quote(symbol)
        except (TransportError, DataFormatError) as e:
            logger.warning(f"Failed to fetch {symbol} from {self.name}: {e.message}")
            return QuoteResult(source=self.name, error=e)

        if quote is None:
            return QuoteResult(source=self.name, skipped=True)
        return QuoteResult(source=self.name, quote=quote)

    @abstractmethod
    async def _fetch_quote(self, symbol: str) -> Optional[Quote]:
        """Fetch and parse one quote. None means this source does not cover the symbol."""
        pass


class TradingViewQuoteSource(HTTPQuoteSource):
    """TradingView scanner query for one exchange/quote-asset notation."""

    def __init__(
        self,
        exchange: str,
        quote_asset: str,
        http: Optional[HTTPSession] = None,
        timeout: Optional[float] = None,
        url: Optional[str] = None,
    ):
        super().__init__(http=http, timeout=timeout)
        self.exchange = exchange.upper()
        self.quote_asset = quote_asset.upper()
        self.url = url or settings.tradingview_scanner_url

    @property
    def name(self) -> str:
        return f"TradingView {self.exchange}:*{self.quote_asset}"

    def ticker(self, symbol: str) -> str:
        return f"{self.exchange}:{symbol}{self.quote_asset}"

    async def _fetch_quote(self, symbol: str) -> Optional[Quote]:
        ticker = self.ticker(symbol)
        body = {
            "options": {"lang": "en"},
            "symbols": {"query": {"types": []}, "tickers": [ticker]},
            "columns": TRADINGVIEW_COLUMNS,
            "sort": {"sortBy": "name", "sortOrder": "asc"},
            "range": [0, 1],
        }
        payload = await request_json(
            self.http,
            "POST",
            self.url,
            service_name=self.name,
            timeout=self.timeout,
            json=body,
        )
        return parse_scanner_response(symbol, payload, f"TradingView {ticker}")


class CoinGeckoQuoteSource(HTTPQuoteSource):
    """CoinGecko simple price, for symbols present in the id table."""

    def __init__(
        self,
        http: Optional[HTTPSession] = None,
        timeout: Optional[float] = None,
        base_url: Optional[str] = None,
        coin_ids: Optional[dict[str, str]] = None,
    ):
        super().__init__(http=http, timeout=timeout)
        self.base_url = (base_url or settings.coingecko_base_url).rstrip("/")
        self.coin_ids = coin_ids if coin_ids is not None else COINGECKO_IDS

    @property
    def name(self) -> str:
        return "CoinGecko"

    async def _fetch_quote(self, symbol: str) -> Optional[Quote]:
        coin_id = self.coin_ids.get(symbol)
        if not coin_id:
            logger.info(f"No CoinGecko ID for {symbol}, skipping")
            return None

        payload = await request_json(
            self.http,
            "GET",
            f"{self.base_url}/simple/price",
            service_name=self.name,
            timeout=self.timeout,
            params={
                "ids": coin_id,
                "vs_currencies": "usd",
                "include_24hr_change": "true",
                "include_market_cap": "true",
                "include_24hr_vol": "true",
            },
        )
        return parse_simple_price(symbol, coin_id, payload, self.name)


def default_quote_sources(http: Optional[HTTPSession] = None) -> list[QuoteSource]:
    """TradingView notations in order, then CoinGecko."""
    sources: list[QuoteSource] = [
        TradingViewQuoteSource(exchange, quote_asset, http=http)
        for exchange, quote_asset in TRADINGVIEW_TICKER_FORMATS
    ]
    sources.append(CoinGeckoQuoteSource(http=http))
    return sources
