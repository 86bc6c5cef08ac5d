"""
Indicator Engine Service Interface

Defines the contract for the indicator calculation layer.
"""

from abc import abstractmethod

from cryptoadvisor.services.base import BaseService
from cryptoadvisor.schemas.market import Candle, Interval
from cryptoadvisor.schemas.indicators import IndicatorSnapshot


class IndicatorServiceInterface(BaseService[list[Candle], IndicatorSnapshot]):
    """
    Indicator Engine Service Contract.

    INPUT: list[Candle]
        - One chronologically ordered, non-empty window

    OUTPUT: IndicatorSnapshot
        - RSI, MACD, Bollinger Bands, EMA20/50, support/resistance,
          price change and volume summaries for the window
    """

    @property
    def name(self) -> str:
        return "IndicatorService"

    @abstractmethod
    async def execute(self, input_data: list[Candle]) -> IndicatorSnapshot:
        """Calculate indicators for one candle window."""
        pass

    @abstractmethod
    async def calculate_for_symbol(
        self,
        symbol: str,
        interval: Interval = Interval.H1,
        limit: int = 100,
    ) -> IndicatorSnapshot:
        """
        Fetch candles for a symbol and calculate indicators.

        Args:
            symbol: Asset symbol (e.g., "BTC") or full pair ("BTCUSDT")
            interval: Kline interval
            limit: Number of candles to fetch

        Returns:
            Indicator snapshot for the fetched window
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Indicator service is always healthy (pure computation)."""
        pass
