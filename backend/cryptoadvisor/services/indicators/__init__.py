"""
Indicator Engine Service

CONTRACT:
    Input:  list[Candle]
    Output: IndicatorSnapshot

RESPONSIBILITIES:
    - Calculate RSI, MACD, EMA20/EMA50 and Bollinger Bands
    - Detect support/resistance and Fibonacci levels
    - Summarise price change and volume

PURE PYTHON - No LLM involvement.
Uses NumPy for calculations.
All math is deterministic and reproducible.
"""

from cryptoadvisor.services.indicators.interface import IndicatorServiceInterface
from cryptoadvisor.services.indicators.service import (
    IndicatorService,
    compute_indicators,
    get_indicator_service,
)

__all__ = [
    "IndicatorServiceInterface",
    "IndicatorService",
    "compute_indicators",
    "get_indicator_service",
]
