"""
Technical indicators for strategy calculations.

All functions are pure and deterministic. Outputs are aligned index-for-index
with their inputs and only use data up to each index (no lookahead); warmup
positions are backfilled with the first computed value.
"""

from collections.abc import Sequence

from tradesim_engine.domain import Bar

TREND_UP = 1
TREND_DOWN = -1


def ema(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Exponential Moving Average.

    Args:
        values: Price series
        period: EMA period

    Returns:
        EMA values, seeded with the SMA of the first period values
    """
    if len(values) < period or period < 1:
        return [values[0] if values else 0.0] * len(values)

    multiplier = 2.0 / (period + 1)
    result = [0.0] * len(values)

    result[period - 1] = sum(values[:period]) / period

    for i in range(period, len(values)):
        result[i] = (values[i] - result[i - 1]) * multiplier + result[i - 1]

    for i in range(period - 1):
        result[i] = result[period - 1]

    return result


def sma(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Simple Moving Average.

    Args:
        values: Price series
        period: SMA period

    Returns:
        SMA values
    """
    if len(values) < period or period < 1:
        return [values[0] if values else 0.0] * len(values)

    result = [0.0] * len(values)

    window_sum = sum(values[:period])
    result[period - 1] = window_sum / period

    for i in range(period, len(values)):
        window_sum = window_sum - values[i - period] + values[i]
        result[i] = window_sum / period

    for i in range(period - 1):
        result[i] = result[period - 1]

    return result


def rsi(closes: Sequence[float], period: int = 14) -> list[float]:
    """
    Calculate Relative Strength Index with Wilder smoothing.

    Returns:
        RSI values (0-100); 50 throughout when there is not enough data
    """
    if len(closes) < period + 1:
        return [50.0] * len(closes)

    result = [50.0] * len(closes)
    gains = [0.0] * len(closes)
    losses = [0.0] * len(closes)

    for i in range(1, len(closes)):
        change = closes[i] - closes[i - 1]
        if change > 0:
            gains[i] = change
        else:
            losses[i] = abs(change)

    avg_gain = sum(gains[1 : period + 1]) / period
    avg_loss = sum(losses[1 : period + 1]) / period
    result[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period + 1, len(closes)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        result[i] = _rsi_value(avg_gain, avg_loss)

    for i in range(period):
        result[i] = result[period]

    return result


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    return 100 - (100 / (1 + avg_gain / avg_loss))


def macd(
    closes: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> tuple[list[float], list[float], list[float]]:
    """
    Calculate MACD (Moving Average Convergence Divergence).

    Returns:
        Tuple of (macd_line, signal_line, histogram)
    """
    fast_ema = ema(closes, fast_period)
    slow_ema = ema(closes, slow_period)

    macd_line = [f - s for f, s in zip(fast_ema, slow_ema, strict=True)]
    signal_line = ema(macd_line, signal_period)
    histogram = [m - s for m, s in zip(macd_line, signal_line, strict=True)]

    return macd_line, signal_line, histogram


def atr(bars: Sequence[Bar], period: int = 14) -> list[float]:
    """
    Calculate Average True Range.

    Args:
        bars: OHLCV bars, oldest first
        period: ATR period (default 14)

    Returns:
        ATR values
    """
    if len(bars) < 2:
        return [0.0] * len(bars)

    true_ranges = [bars[0].high - bars[0].low]

    for i in range(1, len(bars)):
        prev_close = bars[i - 1].close
        tr = max(
            bars[i].high - bars[i].low,
            abs(bars[i].high - prev_close),
            abs(bars[i].low - prev_close),
        )
        true_ranges.append(tr)

    return ema(true_ranges, period)


def vwap(bars: Sequence[Bar]) -> list[float]:
    """
    Calculate cumulative Volume Weighted Average Price.

    Uses the typical price (HLC/3). Positions before any volume has traded
    are 0.
    """
    result = [0.0] * len(bars)
    cum_volume = 0.0
    cum_tpv = 0.0

    for i, bar in enumerate(bars):
        cum_tpv += bar.typical * bar.volume
        cum_volume += bar.volume
        if cum_volume > 0:
            result[i] = cum_tpv / cum_volume

    return result


def supertrend(
    bars: Sequence[Bar],
    period: int = 7,
    multiplier: float = 3.0,
) -> tuple[list[float], list[int]]:
    """
    Calculate SuperTrend.

    Args:
        bars: OHLCV bars, oldest first
        period: ATR period (default 7)
        multiplier: ATR band multiplier (default 3.0)

    Returns:
        Tuple of (line values, trend) where trend is TREND_UP, TREND_DOWN, or
        0 before the first full period.
    """
    n = len(bars)
    values = [0.0] * n
    trend = [0] * n
    if period < 1 or n < period:
        return values, trend

    atr_values = atr(bars, period)
    upper = [0.0] * n
    lower = [0.0] * n

    for i in range(period - 1, n):
        mid = (bars[i].high + bars[i].low) / 2
        upper[i] = mid + multiplier * atr_values[i]
        lower[i] = mid - multiplier * atr_values[i]

    # Bands only tighten while price stays on their side
    for i in range(period, n):
        if lower[i] < lower[i - 1] and bars[i - 1].close > lower[i - 1]:
            lower[i] = lower[i - 1]
        if upper[i] > upper[i - 1] and bars[i - 1].close < upper[i - 1]:
            upper[i] = upper[i - 1]

    for i in range(period - 1, n):
        close = bars[i].close
        if i > period - 1 and trend[i - 1] == TREND_UP:
            is_up = close >= lower[i]
        else:
            is_up = close > upper[i]
        trend[i] = TREND_UP if is_up else TREND_DOWN
        values[i] = lower[i] if is_up else upper[i]

    return values, trend


# =============================================================================
# Utility Functions
# =============================================================================


def crossover(series1: Sequence[float], series2: Sequence[float], index: int) -> bool:
    """Check if series1 crosses above series2 at index."""
    if index < 1 or index >= len(series1) or index >= len(series2):
        return False
    return series1[index - 1] <= series2[index - 1] and series1[index] > series2[index]


def crossunder(series1: Sequence[float], series2: Sequence[float], index: int) -> bool:
    """Check if series1 crosses below series2 at index."""
    if index < 1 or index >= len(series1) or index >= len(series2):
        return False
    return series1[index - 1] >= series2[index - 1] and series1[index] < series2[index]


def crosses_above(prev: float, curr: float, level: float) -> bool:
    """Check if a value moved from at-or-below level to above it."""
    return prev <= level < curr
