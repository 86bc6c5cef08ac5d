"""
Market Data Service

Candles from Binance Futures; current prices through the Price Oracle
(TradingView scanner notations, then CoinGecko).
"""

from cryptoadvisor.services.market_data.http import (
    HTTPSession,
    get_http_session,
    close_http_session,
)
from cryptoadvisor.services.market_data.binance_adapter import (
    BinanceFuturesClient,
    get_binance_client,
    parse_klines,
    to_pair,
)
from cryptoadvisor.services.market_data.quote_sources import (
    QuoteResult,
    QuoteSource,
    TradingViewQuoteSource,
    CoinGeckoQuoteSource,
    default_quote_sources,
)
from cryptoadvisor.services.market_data.price_oracle import (
    PriceOracle,
    get_price_oracle,
)

__all__ = [
    "HTTPSession",
    "get_http_session",
    "close_http_session",
    "BinanceFuturesClient",
    "get_binance_client",
    "parse_klines",
    "to_pair",
    "QuoteResult",
    "QuoteSource",
    "TradingViewQuoteSource",
    "CoinGeckoQuoteSource",
    "default_quote_sources",
    "PriceOracle",
    "get_price_oracle",
]
