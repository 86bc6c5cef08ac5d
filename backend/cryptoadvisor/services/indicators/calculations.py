"""
Technical Indicator Calculations

Pure Python/NumPy implementations of technical indicators.
NO LLM INVOLVEMENT - All math is deterministic.

Every function returns the latest value for the window it is given.
Short windows never raise: each indicator has a degraded default.
Empty input raises NoDataError.
"""

import numpy as np

from cryptoadvisor.services.base import NoDataError

NEUTRAL_RSI = 50.0

# The signal line is a fixed fraction of the MACD line, not an EMA of MACD
# history. Recorded evaluation outcomes were produced with this ratio.
MACD_SIGNAL_RATIO = 0.8

BOLLINGER_FALLBACK_WIDTH = 0.02
SUPPORT_FALLBACK_RATIO = 0.95
RESISTANCE_FALLBACK_RATIO = 1.05

FIB_RETRACEMENTS = {
    "level_236": 0.236,
    "level_382": 0.382,
    "level_500": 0.500,
    "level_618": 0.618,
    "level_786": 0.786,
}
FIB_EXTENSIONS = {
    "level_1272": 0.272,
    "level_1618": 0.618,
    "level_2618": 1.618,
}


def _require_data(values: np.ndarray, name: str) -> None:
    if len(values) == 0:
        raise NoDataError("IndicatorEngine", f"No data provided for {name}")


# =============================================================================
# MOVING AVERAGES
# =============================================================================


def ema(values: np.ndarray, period: int) -> float:
    """
    Exponential Moving Average.

    Seeds with the SMA of the first `period` values. A series shorter than
    `period` returns its last value.
    """
    _require_data(values, "EMA")
    if len(values) < period:
        return float(values[-1])

    multiplier = 2 / (period + 1)
    result = float(np.mean(values[:period]))

    for price in values[period:]:
        result = float(price) * multiplier + result * (1 - multiplier)

    return result


# =============================================================================
# MOMENTUM INDICATORS
# =============================================================================


def rsi(closes: np.ndarray, period: int = 14) -> float:
    """Relative Strength Index with Wilder's smoothing. Neutral 50 when too short."""
    _require_data(closes, "RSI")
    if len(closes) < period + 1:
        return NEUTRAL_RSI

    deltas = np.diff(closes)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    # First average
    avg_gain = float(np.mean(gains[:period]))
    avg_loss = float(np.mean(losses[:period]))

    # Smoothed averages over the remaining deltas
    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return float(100 - (100 / (1 + rs)))


def macd(
    closes: np.ndarray,
    fast_period: int = 12,
    slow_period: int = 26,
) -> tuple[float, float, float]:
    """
    MACD (Moving Average Convergence Divergence).

    Returns: (macd_line, signal_line, histogram)
    """
    _require_data(closes, "MACD")
    macd_line = ema(closes, fast_period) - ema(closes, slow_period)
    signal_line = macd_line * MACD_SIGNAL_RATIO
    histogram = macd_line - signal_line

    return macd_line, signal_line, histogram


# =============================================================================
# VOLATILITY INDICATORS
# =============================================================================


def bollinger_bands(
    closes: np.ndarray, period: int = 20, std_dev: float = 2.0
) -> tuple[float, float, float]:
    """
    Bollinger Bands over the last `period` closes (population std dev).

    Returns: (upper, middle, lower)
    """
    _require_data(closes, "Bollinger Bands")
    last_close = float(closes[-1])
    if len(closes) < period:
        return (
            last_close * (1 + BOLLINGER_FALLBACK_WIDTH),
            last_close,
            last_close * (1 - BOLLINGER_FALLBACK_WIDTH),
        )

    window = closes[-period:]
    middle = float(np.mean(window))
    std = float(np.std(window))

    return middle + std_dev * std, middle, middle - std_dev * std


# =============================================================================
# SUPPORT/RESISTANCE
# =============================================================================


def support_resistance(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    lookback: int = 20,
    min_candles: int = 10,
) -> tuple[float, float]:
    """
    Support and resistance from the recent trading range.

    Returns: (support, resistance)
    """
    _require_data(closes, "support/resistance")
    if len(closes) < min_candles:
        last_close = float(closes[-1])
        return last_close * SUPPORT_FALLBACK_RATIO, last_close * RESISTANCE_FALLBACK_RATIO

    return float(np.min(lows[-lookback:])), float(np.max(highs[-lookback:]))


def fibonacci_levels(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    lookback: int = 50,
    window: int = 5,
) -> dict:
    """
    Fibonacci retracement/extension levels for the most significant swing.

    A swing high is strictly above the `window` candles on each side (swing
    low mirrors it). Falls back to the 20-candle range when no swing exists.
    """
    _require_data(closes, "Fibonacci levels")
    current_price = float(closes[-1])
    n = len(closes)

    if n < 20:
        return {
            "retracement": {
                "level_0": current_price * 1.05,
                "level_236": current_price * 1.038,
                "level_382": current_price * 1.024,
                "level_500": current_price * 1.012,
                "level_618": current_price * 0.995,
                "level_786": current_price * 0.978,
                "level_1000": current_price * 0.95,
            },
            "extension": {
                "level_1272": current_price * 1.08,
                "level_1618": current_price * 1.12,
                "level_2618": current_price * 1.25,
            },
            "swing_high": current_price * 1.05,
            "swing_low": current_price * 0.95,
            "trend": "no_clear_swing",
        }

    start = n - min(lookback, n)
    swing_high, swing_low = 0.0, float("inf")
    high_index, low_index = -1, -1

    for i in range(start + window, n - window):
        neighbours = [j for j in range(i - window, i + window + 1) if j != i]

        if all(highs[j] < highs[i] for j in neighbours) and highs[i] > swing_high:
            swing_high = float(highs[i])
            high_index = i

        if all(lows[j] > lows[i] for j in neighbours) and lows[i] < swing_low:
            swing_low = float(lows[i])
            low_index = i

    if high_index == -1 or low_index == -1:
        swing_high = float(np.max(highs[-20:]))
        swing_low = float(np.min(lows[-20:]))

    trend = "no_clear_swing"
    if high_index > low_index:
        if swing_low < current_price < swing_high:
            trend = "bearish_retracement"
        elif current_price < swing_low:
            trend = "extension_phase"
    elif low_index > high_index:
        if swing_low < current_price < swing_high:
            trend = "bullish_retracement"
        elif current_price > swing_high:
            trend = "extension_phase"

    price_range = swing_high - swing_low
    retracement = {"level_0": swing_high}
    for key, ratio in FIB_RETRACEMENTS.items():
        retracement[key] = swing_high - price_range * ratio
    retracement["level_1000"] = swing_low

    extension = {
        key: swing_low - price_range * ratio for key, ratio in FIB_EXTENSIONS.items()
    }

    return {
        "retracement": retracement,
        "extension": extension,
        "swing_high": swing_high,
        "swing_low": swing_low,
        "trend": trend,
    }


# =============================================================================
# PRICE / VOLUME SUMMARIES
# =============================================================================


def price_change_percent(closes: np.ndarray) -> float:
    """
    Percent change between the last two closes.

    Only a true 24h change when the candles are hourly.
    """
    _require_data(closes, "price change")
    if len(closes) < 2:
        return 0.0
    previous = float(closes[-2])
    return (float(closes[-1]) - previous) / previous * 100


def volume_sum(volumes: np.ndarray, window: int = 24) -> float:
    """Total volume over the last `window` candles."""
    _require_data(volumes, "volume")
    return float(np.sum(volumes[-window:]))


def volume_trend(
    volumes: np.ndarray, average_window: int = 168, current_window: int = 24
) -> tuple[str, float]:
    """
    Compare recent volume with the longer-run average.

    Returns: (trend, average_volume)
    """
    _require_data(volumes, "volume trend")
    if len(volumes) < 7:
        return "average", float(volumes[-1])

    average_volume = float(np.mean(volumes[-average_window:]))
    current_volume = float(np.mean(volumes[-current_window:]))

    if average_volume == 0:
        return "average", average_volume

    ratio = current_volume / average_volume
    if ratio >= 1.5:
        trend = "significantly_above_average"
    elif ratio >= 1.2:
        trend = "above_average"
    elif ratio >= 0.8:
        trend = "average"
    else:
        trend = "below_average"

    return trend, average_volume


def ema_trend(current_price: float, ema_fast: float, ema_slow: float) -> str:
    """Classify trend from price position relative to two EMAs."""
    if ema_fast > ema_slow and current_price > ema_fast:
        return "bullish"
    if ema_fast < ema_slow and current_price < ema_fast:
        return "bearish"
    return "neutral"


# =============================================================================
# INDICATOR TRENDS
# =============================================================================

# Trends compare the latest value with the value TREND_WINDOWS - 1 candles back
TREND_WINDOWS = 5
RSI_TREND_THRESHOLD = 2.0
MACD_TREND_THRESHOLD = 10.0
MACD_TREND_MIN_CANDLES = 50
BOLLINGER_TREND_THRESHOLD_PCT = 5.0


def _direction(diff: float, threshold: float) -> str:
    if diff > threshold:
        return "rising"
    if diff < -threshold:
        return "falling"
    return "flat"


def rsi_trend(closes: np.ndarray, period: int = 14) -> str:
    """Direction of RSI over the last TREND_WINDOWS closes. Flat when too short."""
    _require_data(closes, "RSI trend")
    n = len(closes)
    if n < period + TREND_WINDOWS:
        return "flat"

    current = rsi(closes, period)
    oldest = rsi(closes[: n - (TREND_WINDOWS - 1)], period)
    return _direction(current - oldest, RSI_TREND_THRESHOLD)


def macd_trend(closes: np.ndarray) -> str:
    """Direction of the MACD histogram over the last TREND_WINDOWS closes."""
    _require_data(closes, "MACD trend")
    n = len(closes)
    if n < MACD_TREND_MIN_CANDLES:
        return "flat"

    current = macd(closes)[2]
    oldest = macd(closes[: n - (TREND_WINDOWS - 1)])[2]
    return _direction(current - oldest, MACD_TREND_THRESHOLD)


def _band_width(window: np.ndarray, std_dev: float) -> float:
    middle = float(np.mean(window))
    return 2 * std_dev * float(np.std(window)) / middle * 100


def bollinger_trend(closes: np.ndarray, period: int = 20, std_dev: float = 2.0) -> str:
    """
    Whether the Bollinger band width is expanding or contracting.

    Compares the current band width (as % of the middle band) with the width
    TREND_WINDOWS - 1 closes back.
    """
    _require_data(closes, "Bollinger trend")
    n = len(closes)
    if n < period + TREND_WINDOWS:
        return "flat"

    shift = TREND_WINDOWS - 1
    current = _band_width(closes[-period:], std_dev)
    oldest = _band_width(closes[n - shift - period : n - shift], std_dev)

    if oldest == 0:
        return "expanding" if current > 0 else "flat"

    change = (current - oldest) / oldest * 100
    if change > BOLLINGER_TREND_THRESHOLD_PCT:
        return "expanding"
    if change < -BOLLINGER_TREND_THRESHOLD_PCT:
        return "contracting"
    return "flat"


# =============================================================================
# MARKET REGIME
# =============================================================================


def market_regime(
    *,
    rsi_value: float,
    rsi_direction: str,
    macd_line: float,
    macd_signal: float,
    macd_direction: str,
    bollinger_middle: float,
    bollinger_direction: str,
    ema_direction: str,
    current_price: float,
    volume_direction: str,
    price_change: float,
) -> str:
    """
    Classify the market from the trend labels of one snapshot.

    Checked in order: breakout_pending, consolidation, trending_bullish,
    trending_bearish, then ranging_quiet. Anything else is ranging_volatile.
    """
    move = abs(price_change)
    contracting = bollinger_direction == "contracting"

    if contracting and volume_direction == "above_average" and 45 < rsi_value < 55 and move < 2:
        return "breakout_pending"

    near_middle = (
        bollinger_middle > 0
        and abs(current_price - bollinger_middle) / bollinger_middle < 0.01
    )
    if near_middle and contracting and move < 1.5:
        return "consolidation"

    trending = ema_direction != "neutral" and macd_direction != "flat" and move > 2
    if trending:
        if ema_direction == "bullish" and macd_line > macd_signal and rsi_direction == "rising":
            return "trending_bullish"
        if ema_direction == "bearish" and macd_line < macd_signal and rsi_direction == "falling":
            return "trending_bearish"

    volatile = (
        bollinger_direction == "expanding"
        or volume_direction in ("significantly_above_average", "above_average")
        or move > 5
    )
    if not volatile and contracting and volume_direction == "below_average" and move < 1:
        return "ranging_quiet"

    return "ranging_volatile"
