"""
Crypto Advisor Schema Contracts

This module defines all JSON contracts between system components.
These are the authoritative interfaces - all modules must conform to these schemas.
"""

from cryptoadvisor.schemas.market import (
    Candle,
    Interval,
    Quote,
)
from cryptoadvisor.schemas.indicators import (
    IndicatorSnapshot,
    MACDData,
    BollingerBandsData,
    FibonacciLevels,
    EMATrend,
    VolumeTrend,
    SwingTrend,
)
from cryptoadvisor.schemas.recommendation import (
    Action,
    RiskLevel,
    RecommendationStatus,
    RecommendationCandidate,
    Recommendation,
    EvaluationStats,
)

__all__ = [
    # Market
    "Candle",
    "Interval",
    "Quote",
    # Indicators
    "IndicatorSnapshot",
    "MACDData",
    "BollingerBandsData",
    "FibonacciLevels",
    "EMATrend",
    "VolumeTrend",
    "SwingTrend",
    # Recommendations
    "Action",
    "RiskLevel",
    "RecommendationStatus",
    "RecommendationCandidate",
    "Recommendation",
    "EvaluationStats",
]
