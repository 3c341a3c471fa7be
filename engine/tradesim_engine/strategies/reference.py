"""
Reference strategies.

Five long-biased crossover detectors used to exercise the engine end to end.
Each emits at most one entry per crossover event, closing any short first,
and sizes entries with every whole share the available cash can buy.
"""

from tradesim_engine.backtest.context import SimulationContext
from tradesim_engine.domain import Bar
from tradesim_engine.interfaces.strategy import Strategy
from tradesim_engine.logging import get_logger
from tradesim_engine.strategies.indicators import (
    TREND_DOWN,
    TREND_UP,
    crosses_above,
    crossover,
    crossunder,
    macd,
    rsi,
    sma,
    supertrend,
    vwap,
)

logger = get_logger(__name__)


def max_shares(cash: float, price: float) -> int:
    """Whole shares purchasable with cash at price."""
    if price <= 0:
        return 0
    return int(cash / price)


def _enter_long(ctx: SimulationContext, bar: Bar, reason: str, exit_short_reason: str) -> None:
    if ctx.position > 0:
        return
    if ctx.position < 0:
        ctx.close_position(exit_short_reason)
    qty = max_shares(ctx.cash, bar.close)
    if qty > 0:
        ctx.buy(qty, reason)


# =============================================================================
# Strategies
# =============================================================================


class SMACrossover(Strategy):
    """Long when the fast SMA crosses above the slow SMA, flat on the cross back."""

    def __init__(self, fast_period: int = 20, slow_period: int = 50):
        self.fast_period = fast_period
        self.slow_period = slow_period

    @property
    def name(self) -> str:
        return "SMA Crossover"

    def on_bar(self, ctx: SimulationContext, bar: Bar) -> None:
        if ctx.current_bar < self.slow_period + 1:
            return

        closes = ctx.closes()
        fast = sma(closes, self.fast_period)
        slow = sma(closes, self.slow_period)
        idx = ctx.current_bar

        if crossover(fast, slow, idx):
            _enter_long(ctx, bar, "SMA bullish crossover", "SMA bearish exit")

        if crossunder(fast, slow, idx) and ctx.position > 0:
            ctx.close_position("SMA bearish crossover")


class RSIMeanReversion(Strategy):
    """Long when RSI climbs back above oversold, exit when it crosses overbought."""

    def __init__(self, period: int = 14, oversold: float = 30.0, overbought: float = 70.0):
        self.period = period
        self.oversold = oversold
        self.overbought = overbought

    @property
    def name(self) -> str:
        return "RSI Mean Reversion"

    def on_bar(self, ctx: SimulationContext, bar: Bar) -> None:
        if ctx.current_bar < self.period + 2:
            return

        values = rsi(ctx.closes(), self.period)
        curr = values[ctx.current_bar]
        prev = values[ctx.current_bar - 1]

        if crosses_above(prev, curr, self.oversold) and ctx.position <= 0:
            _enter_long(ctx, bar, "RSI oversold bounce", "RSI exit short")

        if crosses_above(prev, curr, self.overbought) and ctx.position > 0:
            ctx.close_position("RSI overbought exit")


class SuperTrendStrategy(Strategy):
    """Follow SuperTrend flips: long on a flip up, flat on a flip down."""

    def __init__(self, period: int = 7, multiplier: float = 3.0):
        self.period = period
        self.multiplier = multiplier

    @property
    def name(self) -> str:
        return "SuperTrend"

    def on_bar(self, ctx: SimulationContext, bar: Bar) -> None:
        if ctx.current_bar < self.period + 1:
            return

        _, trend = supertrend(ctx.historical_bars(), self.period, self.multiplier)
        curr = trend[ctx.current_bar]
        prev = trend[ctx.current_bar - 1]

        if prev == TREND_DOWN and curr == TREND_UP:
            _enter_long(ctx, bar, "SuperTrend UP signal", "SuperTrend trend flip exit short")

        if prev == TREND_UP and curr == TREND_DOWN and ctx.position > 0:
            ctx.close_position("SuperTrend DOWN signal")


class VWAPBreakout(Strategy):
    """Long on a close through VWAP confirmed by the SMA, flat on a close back below."""

    def __init__(self, sma_period: int = 20):
        self.sma_period = sma_period

    @property
    def name(self) -> str:
        return "VWAP Breakout"

    def on_bar(self, ctx: SimulationContext, bar: Bar) -> None:
        if ctx.current_bar < self.sma_period + 1:
            return

        history = ctx.historical_bars()
        level = vwap(history)[ctx.current_bar]
        trend = sma(ctx.closes(), self.sma_period)[ctx.current_bar]
        prev_close = history[ctx.current_bar - 1].close

        if prev_close <= level < bar.close and bar.close > trend:
            _enter_long(ctx, bar, "VWAP breakout long", "VWAP breakout exit short")

        if prev_close >= level > bar.close and ctx.position > 0:
            ctx.close_position("VWAP breakdown exit")


class MACDCrossover(Strategy):
    """Long when the MACD line crosses above its signal line, flat on the cross back."""

    def __init__(self, fast_period: int = 12, slow_period: int = 26, signal_period: int = 9):
        self.fast_period = fast_period
        self.slow_period = slow_period
        self.signal_period = signal_period

    @property
    def name(self) -> str:
        return "MACD Crossover"

    def on_bar(self, ctx: SimulationContext, bar: Bar) -> None:
        if ctx.current_bar < self.slow_period + self.signal_period + 1:
            return

        line, signal, _ = macd(
            ctx.closes(), self.fast_period, self.slow_period, self.signal_period
        )
        idx = ctx.current_bar

        if crossover(line, signal, idx):
            _enter_long(ctx, bar, "MACD bullish crossover", "MACD bearish exit")

        if crossunder(line, signal, idx) and ctx.position > 0:
            ctx.close_position("MACD bearish crossover")


# =============================================================================
# Registry
# =============================================================================


def builtin_strategies() -> list[Strategy]:
    """All reference strategies with default parameters, in a fixed order."""
    return [
        SMACrossover(20, 50),
        RSIMeanReversion(14, 30, 70),
        SuperTrendStrategy(7, 3.0),
        VWAPBreakout(20),
        MACDCrossover(12, 26, 9),
    ]


def _normalize(name: str) -> str:
    return name.strip().lower().replace("-", "_").replace(" ", "_")


def find_strategy(name: str) -> Strategy | None:
    """
    Look up a reference strategy by name.

    Case-insensitive; dashes, underscores and spaces are interchangeable and
    a fragment is enough ("sma", "rsi-mean"). The first match in
    builtin_strategies() order wins.
    """
    wanted = _normalize(name)
    if not wanted:
        return None
    for strategy in builtin_strategies():
        if wanted in _normalize(strategy.name):
            return strategy
    logger.debug("No strategy matches %r", name)
    return None


def list_strategy_names() -> list[str]:
    return [s.name for s in builtin_strategies()]
