"""
CONTRACT 1: Market Data Layer

Candle sequences feed the Indicator Engine.
Quotes feed the Recommendation Evaluator.
"""

from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class Interval(str, Enum):
    """Kline intervals accepted by the candle provider."""

    M15 = "15m"
    M30 = "30m"
    H1 = "1h"
    H4 = "4h"
    D1 = "1d"


# =============================================================================
# CANDLES
# =============================================================================


class Candle(BaseModel):
    """Single OHLCV bucket. Immutable once fetched."""

    open_time: datetime
    close_time: datetime
    open: float = Field(..., gt=0)
    high: float = Field(..., gt=0)
    low: float = Field(..., gt=0)
    close: float = Field(..., gt=0)
    volume: float = Field(..., ge=0)
    quote_volume: float = Field(default=0.0, ge=0)
    trade_count: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_bucket(self) -> "Candle":
        if self.open_time >= self.close_time:
            raise ValueError("open_time must be before close_time")
        return self


# =============================================================================
# QUOTES
# =============================================================================


class Quote(BaseModel):
    """Current price and 24h stats for a symbol."""

    symbol: str
    price: float = Field(..., gt=0)
    change_24h: float = Field(default=0.0, description="24h change in percent")
    volume: float = Field(default=0.0, ge=0)
    market_cap: float = Field(default=0.0, ge=0)
    source: str = Field(..., description="Quote source that answered")

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "symbol": "BTC",
                "price": 64250.5,
                "change_24h": 1.85,
                "volume": 1250000000.0,
                "market_cap": 0.0,
                "source": "TradingView BINANCE:BTCUSDT",
            }
        },
    }
