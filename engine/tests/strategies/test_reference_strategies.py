"""
Tests for the reference strategies and the strategy registry.

Signal tests replay bars through a bare SimulationContext and fill every
queued order at the close of the bar that queued it, so a strategy's
entries and exits can be checked without next-bar price drift.
"""

import pytest

from tradesim_engine.backtest.broker_sim import execute_fill
from tradesim_engine.backtest.context import SimulationContext
from tradesim_engine.backtest.costs import zero_cost
from tradesim_engine.backtest.engine import BacktestEngine
from tradesim_engine.backtest.models import EngineConfig
from tradesim_engine.domain import Bar, OrderSide, OrderType, PendingOrder, ProductType
from tradesim_engine.interfaces.strategy import Strategy
from tradesim_engine.strategies import (
    MACDCrossover,
    RSIMeanReversion,
    SMACrossover,
    SuperTrendStrategy,
    VWAPBreakout,
    builtin_strategies,
    find_strategy,
    list_strategy_names,
    max_shares,
)
from tests.strategies.synthetic_data import (
    clean_trend,
    decline_then_rally,
    rally_then_decline,
    sine_wave,
)


def replay(
    strategy: Strategy,
    bars: list[Bar],
    product: ProductType = ProductType.CNC,
    opening_short: int = 0,
) -> tuple[SimulationContext, list[tuple[int, OrderSide, str]]]:
    """Run on_bar over bars, filling each queued order at the same bar's close."""
    ctx = SimulationContext(ticker="SYN", capital=100_000.0, bars=bars, product=product)
    if opening_short:
        ctx.current_ohlcv = bars[0]
        execute_fill(
            ctx,
            PendingOrder(OrderSide.SELL, OrderType.MARKET, opening_short),
            bars[0].close,
            bars[0].timestamp,
            zero_cost,
        )
    strategy.init(ctx)

    signals = []
    for i, bar in enumerate(bars):
        ctx.current_bar = i
        ctx.current_ohlcv = bar
        strategy.on_bar(ctx, bar)
        for order in ctx.drain_orders():
            signals.append((i, order.side, order.reason))
            execute_fill(ctx, order, bar.close, bar.timestamp, zero_cost)
    return ctx, signals


def reasons(signals: list[tuple[int, OrderSide, str]]) -> list[str]:
    return [reason for _, _, reason in signals]


def assert_alternating(signals: list[tuple[int, OrderSide, str]]) -> None:
    sides = [side for _, side, _ in signals]
    assert sides[0] == OrderSide.BUY
    for a, b in zip(sides, sides[1:]):
        assert a != b


# =============================================================================
# Registry
# =============================================================================


class TestRegistry:
    """Strategy lookup by name fragment."""

    def test_builtin_order(self) -> None:
        assert list_strategy_names() == [
            "SMA Crossover",
            "RSI Mean Reversion",
            "SuperTrend",
            "VWAP Breakout",
            "MACD Crossover",
        ]

    def test_builtin_defaults(self) -> None:
        sma_strategy, rsi_strategy, st, vw, md = builtin_strategies()
        assert (sma_strategy.fast_period, sma_strategy.slow_period) == (20, 50)
        assert (rsi_strategy.period, rsi_strategy.oversold, rsi_strategy.overbought) == (
            14,
            30.0,
            70.0,
        )
        assert (st.period, st.multiplier) == (7, 3.0)
        assert vw.sma_period == 20
        assert (md.fast_period, md.slow_period, md.signal_period) == (12, 26, 9)

    def test_fresh_instances(self) -> None:
        assert builtin_strategies()[0] is not builtin_strategies()[0]

    @pytest.mark.parametrize(
        "query,expected",
        [
            ("sma", "SMA Crossover"),
            ("SMA_crossover", "SMA Crossover"),
            ("rsi-mean", "RSI Mean Reversion"),
            ("supertrend", "SuperTrend"),
            ("  vwap ", "VWAP Breakout"),
            ("MACD", "MACD Crossover"),
            ("crossover", "SMA Crossover"),
        ],
    )
    def test_find_strategy(self, query: str, expected: str) -> None:
        strategy = find_strategy(query)
        assert strategy is not None
        assert strategy.name == expected

    @pytest.mark.parametrize("query", ["", "   ", "bollinger"])
    def test_find_strategy_miss(self, query: str) -> None:
        assert find_strategy(query) is None


class TestMaxShares:
    @pytest.mark.parametrize(
        "cash,price,expected",
        [(1_000.0, 33.0, 30), (1_000.0, 1_000.0, 1), (999.0, 1_000.0, 0), (1_000.0, 0.0, 0)],
    )
    def test_max_shares(self, cash: float, price: float, expected: int) -> None:
        assert max_shares(cash, price) == expected


# =============================================================================
# Signals
# =============================================================================


class TestSMACrossover:
    def test_entry_after_trend_reversal(self) -> None:
        ctx, signals = replay(SMACrossover(5, 20), decline_then_rally(120))

        assert reasons(signals) == ["SMA bullish crossover"]
        assert signals[0][0] > 60
        assert ctx.position > 0

    def test_no_entry_without_crossover(self) -> None:
        _, signals = replay(SMACrossover(5, 20), rally_then_decline(120))
        assert signals == []

    def test_round_trips_on_oscillation(self) -> None:
        _, signals = replay(SMACrossover(5, 20), sine_wave(200))

        assert "SMA bullish crossover" in reasons(signals)
        assert "SMA bearish crossover" in reasons(signals)
        assert_alternating(signals)

    def test_waits_for_slow_window(self) -> None:
        _, signals = replay(SMACrossover(5, 20), sine_wave(200))
        assert all(i >= 21 for i, _, _ in signals)

    def test_covers_short_before_entry(self) -> None:
        ctx, signals = replay(
            SMACrossover(5, 20),
            decline_then_rally(120),
            product=ProductType.MIS,
            opening_short=10,
        )

        assert reasons(signals)[:2] == ["SMA bearish exit", "SMA bullish crossover"]
        assert signals[0][1] == OrderSide.BUY
        assert ctx.position > 0


class TestRSIMeanReversion:
    def test_oversold_bounce_then_overbought_exit(self) -> None:
        _, signals = replay(RSIMeanReversion(14, 30, 70), sine_wave(200))

        assert "RSI oversold bounce" in reasons(signals)
        assert "RSI overbought exit" in reasons(signals)
        assert_alternating(signals)

    def test_no_signal_in_steady_trend(self) -> None:
        _, signals = replay(RSIMeanReversion(), clean_trend(100))
        assert signals == []


class TestSuperTrend:
    def test_flips_follow_swings(self) -> None:
        _, signals = replay(
            SuperTrendStrategy(7, 3.0), sine_wave(240, amplitude=20.0, period=60)
        )

        assert "SuperTrend UP signal" in reasons(signals)
        assert "SuperTrend DOWN signal" in reasons(signals)
        assert_alternating(signals)


class TestVWAPBreakout:
    def test_breakout_and_breakdown(self) -> None:
        _, signals = replay(VWAPBreakout(20), sine_wave(200))

        assert "VWAP breakout long" in reasons(signals)
        assert "VWAP breakdown exit" in reasons(signals)
        assert_alternating(signals)


class TestMACDCrossover:
    def test_crossovers(self) -> None:
        _, signals = replay(MACDCrossover(12, 26, 9), sine_wave(200))

        assert "MACD bullish crossover" in reasons(signals)
        assert "MACD bearish crossover" in reasons(signals)
        assert all(i >= 36 for i, _, _ in signals)


# =============================================================================
# End to End
# =============================================================================


class TestEngineIntegration:
    """Every reference strategy runs cleanly through the engine."""

    @pytest.mark.parametrize("strategy", builtin_strategies(), ids=list_strategy_names())
    def test_runs_on_synthetic_data(self, strategy: Strategy) -> None:
        bars = sine_wave(250)
        engine = BacktestEngine(EngineConfig(initial_capital=100_000.0))
        result = engine.run(strategy, "SYN", bars)

        assert result.strategy_name == strategy.name
        assert len(result.equity_curve) == len(bars)
        assert all(p.position >= 0 for p in result.equity_curve)
        assert all(p.equity > 0 for p in result.equity_curve)
