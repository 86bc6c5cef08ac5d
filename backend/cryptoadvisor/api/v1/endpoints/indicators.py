"""
Indicator API Endpoints

Endpoints for technical indicator calculations.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from cryptoadvisor.schemas.market import Interval
from cryptoadvisor.schemas.indicators import IndicatorSnapshot
from cryptoadvisor.services.base import DataFormatError, NoDataError, TransportError
from cryptoadvisor.services.indicators import IndicatorService, get_indicator_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{symbol}", response_model=IndicatorSnapshot)
async def get_indicators(
    symbol: str,
    interval: Interval = Interval.H1,
    limit: int = Query(default=100, ge=1, le=1500),
    service: IndicatorService = Depends(get_indicator_service),
):
    """
    Calculate technical indicators for a symbol.

    Candles come from Binance Futures (BTC means BTCUSDT). Returns:
    - RSI (14), MACD, Bollinger Bands (20, 2)
    - EMA 20/50 and EMA trend
    - Support/Resistance over the last 20 candles
    - Fibonacci levels, volume summary
    """
    symbol = symbol.upper().strip()
    try:
        return await service.calculate_for_symbol(symbol, interval, limit)
    except (TransportError, DataFormatError) as e:
        logger.error(f"Candle fetch failed for {symbol}: {e}")
        raise HTTPException(
            status_code=502,
            detail=f"Market data for {symbol} is temporarily unavailable",
        )
    except NoDataError as e:
        raise HTTPException(status_code=404, detail=e.message)
