"""
Indicator Engine Service Implementation

Calculates all technical indicators from a candle window.
NO LLM INVOLVEMENT - Pure Python/NumPy calculations.
"""

import logging
from typing import Optional
import numpy as np

from cryptoadvisor.schemas.market import Candle, Interval
from cryptoadvisor.schemas.indicators import (
    IndicatorSnapshot,
    MACDData,
    BollingerBandsData,
    FibonacciLevels,
    EMATrend,
    IndicatorTrend,
    BandTrend,
    MarketRegime,
    VolumeTrend,
)
from cryptoadvisor.services.base import NoDataError
from cryptoadvisor.services.indicators.interface import IndicatorServiceInterface
from cryptoadvisor.services.indicators.calculations import (
    ema,
    rsi,
    macd,
    bollinger_bands,
    support_resistance,
    fibonacci_levels,
    price_change_percent,
    volume_sum,
    volume_trend,
    ema_trend,
    rsi_trend,
    macd_trend,
    bollinger_trend,
    market_regime,
)
from cryptoadvisor.services.market_data.binance_adapter import (
    BinanceFuturesClient,
    get_binance_client,
)

logger = logging.getLogger(__name__)


def _candles_to_arrays(candles: list[Candle]) -> tuple:
    """Convert candle list to numpy arrays."""
    highs = np.array([c.high for c in candles], dtype=float)
    lows = np.array([c.low for c in candles], dtype=float)
    closes = np.array([c.close for c in candles], dtype=float)
    volumes = np.array([c.volume for c in candles], dtype=float)
    return highs, lows, closes, volumes


def compute_indicators(candles: list[Candle]) -> IndicatorSnapshot:
    """
    Assemble one IndicatorSnapshot from a chronologically ordered window.

    Raises NoDataError only for an empty window; every indicator degrades
    to a documented default when the window is short.
    """
    if not candles:
        raise NoDataError("IndicatorEngine", "No candlestick data provided for technical analysis")

    highs, lows, closes, volumes = _candles_to_arrays(candles)
    current_price = float(closes[-1])
    rsi_value = rsi(closes)
    price_change = price_change_percent(closes)

    macd_line, signal_line, histogram = macd(closes)
    upper, middle, lower = bollinger_bands(closes)
    ema20 = ema(closes, 20)
    ema50 = ema(closes, 50)
    support, resistance = support_resistance(highs, lows, closes)
    trend, average_volume = volume_trend(volumes)

    rsi_direction = rsi_trend(closes)
    macd_direction = macd_trend(closes)
    bollinger_direction = bollinger_trend(closes)
    ema_direction = ema_trend(current_price, ema20, ema50)
    regime = market_regime(
        rsi_value=rsi_value,
        rsi_direction=rsi_direction,
        macd_line=macd_line,
        macd_signal=signal_line,
        macd_direction=macd_direction,
        bollinger_middle=middle,
        bollinger_direction=bollinger_direction,
        ema_direction=ema_direction,
        current_price=current_price,
        volume_direction=trend,
        price_change=price_change,
    )

    return IndicatorSnapshot(
        rsi=rsi_value,
        macd=MACDData(
            line=macd_line,
            signal=signal_line,
            histogram=histogram,
            trend=IndicatorTrend(macd_direction),
        ),
        bollinger=BollingerBandsData(
            upper=upper, middle=middle, lower=lower, trend=BandTrend(bollinger_direction)
        ),
        ema20=ema20,
        ema50=ema50,
        support=support,
        resistance=resistance,
        current_price=current_price,
        price_change_24h=price_change,
        volume_24h=volume_sum(volumes),
        rsi_trend=IndicatorTrend(rsi_direction),
        ema_trend=EMATrend(ema_direction),
        volume_trend=VolumeTrend(trend),
        average_volume=average_volume,
        fibonacci=FibonacciLevels(**fibonacci_levels(highs, lows, closes)),
        market_regime=MarketRegime(regime),
    )


class IndicatorService(IndicatorServiceInterface):
    """
    Indicator Engine Service.

    Calculates technical indicators for market analysis.
    All calculations are deterministic and reproducible.
    """

    def __init__(self, candle_client: Optional[BinanceFuturesClient] = None):
        self._candle_client = candle_client

    @property
    def candle_client(self) -> BinanceFuturesClient:
        if self._candle_client is None:
            self._candle_client = get_binance_client()
        return self._candle_client

    @property
    def name(self) -> str:
        return "IndicatorService"

    async def execute(self, input_data: list[Candle]) -> IndicatorSnapshot:
        """Calculate indicators for one candle window."""
        return compute_indicators(input_data)

    async def calculate_for_symbol(
        self,
        symbol: str,
        interval: Interval = Interval.H1,
        limit: int = 100,
    ) -> IndicatorSnapshot:
        """Fetch candles from the primary provider and calculate indicators."""
        candles = await self.candle_client.fetch_candles(symbol, interval, limit)
        snapshot = compute_indicators(candles)

        logger.info(
            f"{symbol.upper()} ({interval.value}): Price ${snapshot.current_price:,.2f}, "
            f"RSI {snapshot.rsi:.1f}, EMA trend {snapshot.ema_trend.value}, "
            f"regime {snapshot.market_regime.value}, "
            f"volume {snapshot.volume_trend.value}"
        )
        return snapshot

    async def health_check(self) -> bool:
        """Indicator service is always healthy (pure computation)."""
        return True


# Singleton instance
_service_instance: Optional[IndicatorService] = None


def get_indicator_service() -> IndicatorService:
    """Get or create indicator service instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = IndicatorService()
    return _service_instance
