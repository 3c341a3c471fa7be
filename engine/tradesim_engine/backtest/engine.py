"""
Backtest Engine - Deterministic bar-driven backtesting.

Main orchestration for running one strategy over one bar series:
- Bars replayed strictly in timestamp order
- Queued orders filled against the bar after they were placed
- Equity recorded once per bar
- Residual position force-closed at the last close
- Metrics and benchmark comparison assembled into an immutable result
"""

import threading
from uuid import uuid4

from tradesim_engine.backtest.broker_sim import execute_fill, process_pending_orders
from tradesim_engine.backtest.context import SimulationContext
from tradesim_engine.backtest.costs import CostModel, brokerage_cost
from tradesim_engine.backtest.metrics import compute_metrics_summary
from tradesim_engine.backtest.models import (
    BacktestResult,
    EngineConfig,
    EquityPoint,
    TradeRecord,
)
from tradesim_engine.domain import Bar, OrderSide, OrderType, PendingOrder
from tradesim_engine.interfaces.strategy import Strategy
from tradesim_engine.logging import get_logger, run_context

logger = get_logger(__name__)

END_CLOSE_REASON = "backtest_end_close"
MIN_BARS = 2


class InvalidInputError(ValueError):
    """Raised when a run is requested without a strategy or with too few bars."""


class BacktestCancelledError(Exception):
    """Raised when a run's cancel event is set between bars."""

    def __init__(self, bars_processed: int):
        self.bars_processed = bars_processed
        super().__init__(f"Backtest cancelled after {bars_processed} bars")


def benchmark_return(bars: list[Bar] | None) -> float | None:
    """Percent change from the first to the last benchmark close."""
    if not bars or len(bars) < 2:
        return None
    ordered = sorted(bars, key=lambda b: b.timestamp)
    first = ordered[0].close
    last = ordered[-1].close
    if first <= 0:
        return None
    return (last - first) / first * 100


class BacktestEngine:
    """
    Deterministic bar-driven backtest engine.

    Configuration is fixed at construction. Each run owns its own
    SimulationContext; calls to run on the same instance are serialised.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        cost_model: CostModel | None = None,
    ):
        """
        Initialize backtest engine.

        Args:
            config: Run parameters (defaults to EngineConfig())
            cost_model: Transaction cost function (defaults to brokerage_cost)
        """
        self._config = config or EngineConfig()
        self._cost_model = cost_model or brokerage_cost
        self._lock = threading.Lock()

    @property
    def config(self) -> EngineConfig:
        return self._config

    def run(
        self,
        strategy: Strategy,
        ticker: str,
        bars: list[Bar],
        cancel_event: threading.Event | None = None,
    ) -> BacktestResult:
        """
        Replay bars through strategy.

        Args:
            strategy: Strategy to evaluate
            ticker: Instrument label carried into the result
            bars: OHLCV bars in any order (at least two)
            cancel_event: Optional event checked before each bar

        Returns:
            BacktestResult with trades, equity curve and metrics

        Raises:
            InvalidInputError: strategy missing or fewer than two bars
            BacktestCancelledError: cancel_event was set mid-run
        """
        if strategy is None:
            raise InvalidInputError("strategy is required")
        if bars is None or len(bars) < MIN_BARS:
            count = 0 if bars is None else len(bars)
            raise InvalidInputError(
                f"insufficient data: need at least {MIN_BARS} bars, got {count}"
            )

        with self._lock, run_context(str(uuid4())[:8], strategy.name, ticker):
            return self._run(strategy, ticker, bars, cancel_event)

    def _run(
        self,
        strategy: Strategy,
        ticker: str,
        bars: list[Bar],
        cancel_event: threading.Event | None,
    ) -> BacktestResult:
        cfg = self._config
        ordered = sorted(bars, key=lambda b: b.timestamp)

        logger.info(
            "Starting backtest: strategy=%s ticker=%s bars=%d %s to %s",
            strategy.name,
            ticker,
            len(ordered),
            ordered[0].timestamp.isoformat(),
            ordered[-1].timestamp.isoformat(),
        )

        ctx = SimulationContext(
            ticker=ticker,
            capital=cfg.initial_capital,
            bars=ordered,
            slippage=cfg.slippage_pct,
            product=cfg.product,
        )
        trades: list[TradeRecord] = []
        equity_curve: list[EquityPoint] = []

        strategy.init(ctx)

        for i, bar in enumerate(ordered):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning("Backtest cancelled at bar %d/%d", i, len(ordered))
                raise BacktestCancelledError(i)

            ctx.current_bar = i
            ctx.current_ohlcv = bar

            trades.extend(process_pending_orders(ctx, bar, self._cost_model))
            strategy.on_bar(ctx, bar)

            equity_curve.append(
                EquityPoint(
                    timestamp=bar.timestamp,
                    equity=ctx.portfolio_value(),
                    cash=ctx.cash,
                    position=ctx.position,
                )
            )

        last = ordered[-1]
        close_trade = self._force_close(ctx, last)
        if close_trade is not None:
            trades.append(close_trade)

        final_capital = ctx.portfolio_value()
        initial = cfg.initial_capital

        metrics = compute_metrics_summary(
            equity_curve,
            trades,
            initial,
            final_capital,
            ordered[0].timestamp,
            last.timestamp,
            cfg.risk_free_rate,
        )

        result = BacktestResult(
            strategy_name=strategy.name,
            ticker=ticker,
            start=ordered[0].timestamp,
            end=last.timestamp,
            initial_capital=initial,
            final_capital=final_capital,
            total_return=final_capital - initial,
            total_return_pct=(final_capital - initial) / initial * 100,
            trades=trades,
            equity_curve=equity_curve,
            metrics=metrics,
            benchmark_name=cfg.benchmark_name if cfg.benchmark else None,
            benchmark_return=benchmark_return(cfg.benchmark),
        )

        logger.info(
            "Backtest complete: trades=%d final=%.2f return=%.2f%% sharpe=%.3f",
            metrics.total_trades,
            final_capital,
            result.total_return_pct,
            metrics.sharpe_ratio,
        )
        return result

    def _force_close(self, ctx: SimulationContext, bar: Bar) -> TradeRecord | None:
        """Flatten any residual position at the bar's close, adjusted for slippage."""
        if ctx.position > 0:
            order = PendingOrder(
                OrderSide.SELL, OrderType.MARKET, ctx.position, reason=END_CLOSE_REASON
            )
            price = bar.close * (1 - ctx.slippage)
        elif ctx.position < 0:
            order = PendingOrder(
                OrderSide.BUY, OrderType.MARKET, -ctx.position, reason=END_CLOSE_REASON
            )
            price = bar.close * (1 + ctx.slippage)
        else:
            return None

        logger.debug("Force closing position=%d at %.4f", ctx.position, price)
        return execute_fill(ctx, order, price, bar.timestamp, self._cost_model)
