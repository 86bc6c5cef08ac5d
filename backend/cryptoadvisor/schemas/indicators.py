"""
CONTRACT 2: Indicator Engine

Input: list[Candle] (one chronologically ordered window)
Output: IndicatorSnapshot

This module performs ALL mathematical calculations.
Pure Python/NumPy - NO LLM involvement.
"""

from enum import Enum
from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================


class EMATrend(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class VolumeTrend(str, Enum):
    SIGNIFICANTLY_ABOVE_AVERAGE = "significantly_above_average"
    ABOVE_AVERAGE = "above_average"
    AVERAGE = "average"
    BELOW_AVERAGE = "below_average"


class IndicatorTrend(str, Enum):
    RISING = "rising"
    FALLING = "falling"
    FLAT = "flat"


class BandTrend(str, Enum):
    EXPANDING = "expanding"
    CONTRACTING = "contracting"
    FLAT = "flat"


class MarketRegime(str, Enum):
    TRENDING_BULLISH = "trending_bullish"
    TRENDING_BEARISH = "trending_bearish"
    RANGING_VOLATILE = "ranging_volatile"
    RANGING_QUIET = "ranging_quiet"
    CONSOLIDATION = "consolidation"
    BREAKOUT_PENDING = "breakout_pending"


class SwingTrend(str, Enum):
    BULLISH_RETRACEMENT = "bullish_retracement"
    BEARISH_RETRACEMENT = "bearish_retracement"
    EXTENSION_PHASE = "extension_phase"
    NO_CLEAR_SWING = "no_clear_swing"


# =============================================================================
# OUTPUT: Indicator Components
# =============================================================================


class MACDData(BaseModel):
    """MACD indicator values."""

    line: float
    signal: float
    histogram: float
    trend: IndicatorTrend = IndicatorTrend.FLAT

    model_config = {"frozen": True}


class BollingerBandsData(BaseModel):
    """Bollinger Bands values."""

    upper: float
    middle: float
    lower: float
    trend: BandTrend = BandTrend.FLAT

    model_config = {"frozen": True}


class FibonacciRetracement(BaseModel):
    """Retracement levels from swing high (0%) to swing low (100%)."""

    level_0: float
    level_236: float
    level_382: float
    level_500: float
    level_618: float
    level_786: float
    level_1000: float

    model_config = {"frozen": True}


class FibonacciExtension(BaseModel):
    """Extension levels below the swing low."""

    level_1272: float
    level_1618: float
    level_2618: float

    model_config = {"frozen": True}


class FibonacciLevels(BaseModel):
    """Fibonacci levels for the most significant recent swing."""

    retracement: FibonacciRetracement
    extension: FibonacciExtension
    swing_high: float
    swing_low: float
    trend: SwingTrend

    model_config = {"frozen": True}


# =============================================================================
# OUTPUT: IndicatorSnapshot (Complete Response)
# =============================================================================


class IndicatorSnapshot(BaseModel):
    """
    Derived statistics for one candle window.
    Returned by: Indicator Engine
    Consumed by: AI recommendation generator (external)
    """

    rsi: float = Field(..., ge=0, le=100)
    macd: MACDData
    bollinger: BollingerBandsData
    ema20: float
    ema50: float
    support: float
    resistance: float
    current_price: float = Field(..., gt=0)
    price_change_24h: float = Field(..., description="% change between the last two closes")
    volume_24h: float = Field(..., ge=0, description="Volume over the last 24 candles")
    rsi_trend: IndicatorTrend
    ema_trend: EMATrend
    volume_trend: VolumeTrend
    average_volume: float = Field(..., ge=0)
    fibonacci: FibonacciLevels
    market_regime: MarketRegime

    model_config = {"frozen": True}
