"""
Market Data API Endpoints

Current prices through the Price Oracle fallback chain.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from cryptoadvisor.core.config import settings
from cryptoadvisor.schemas.market import Quote
from cryptoadvisor.services.market_data import (
    BinanceFuturesClient,
    PriceOracle,
    get_binance_client,
    get_price_oracle,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class ConnectionStatus(BaseModel):
    """Reachability of the market data providers."""
    connected: bool
    price_oracle: bool
    binance_futures: bool


@router.get("/quotes", response_model=list[Quote])
async def get_quotes(
    symbols: str = Query(default="", description="Comma-separated symbols, e.g. BTC,ETH"),
    oracle: PriceOracle = Depends(get_price_oracle),
):
    """
    Get quotes for several symbols.

    Symbols without data are left out. Defaults to the configured watchlist.
    """
    requested = [s.strip().upper() for s in symbols.split(",") if s.strip()]
    if not requested:
        requested = list(settings.default_symbols)
    return await oracle.get_quotes(requested)


@router.get("/test-connection", response_model=ConnectionStatus)
async def test_connection(
    oracle: PriceOracle = Depends(get_price_oracle),
    client: BinanceFuturesClient = Depends(get_binance_client),
):
    """Probe the price chain and the candle provider."""
    oracle_ok = await oracle.test_connection()
    binance_ok = await client.ping()
    return ConnectionStatus(
        connected=oracle_ok,
        price_oracle=oracle_ok,
        binance_futures=binance_ok,
    )


@router.get("/{symbol}/quote", response_model=Quote)
async def get_quote(
    symbol: str,
    oracle: PriceOracle = Depends(get_price_oracle),
):
    """
    Get the current price and 24h stats for a symbol.

    Sources, in order: TradingView (Binance, Coinbase, Kraken, Bitstamp
    notations), then CoinGecko.
    """
    symbol = symbol.upper().strip()
    quote = await oracle.get_quote(symbol)
    if quote is None:
        raise HTTPException(
            status_code=404,
            detail=f"Price data for {symbol} is temporarily unavailable",
        )
    return quote
