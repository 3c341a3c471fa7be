"""
Strategy sweep for backtesting.

Runs several strategies over the same bar series with a shared engine
configuration and ranks them by Sharpe ratio.
"""

import threading
from collections.abc import Callable, Sequence
from typing import Any

from tradesim_engine.backtest.costs import CostModel
from tradesim_engine.backtest.engine import (
    MIN_BARS,
    BacktestCancelledError,
    BacktestEngine,
    InvalidInputError,
)
from tradesim_engine.backtest.models import EngineConfig, SweepComboResult, SweepResult
from tradesim_engine.domain import Bar
from tradesim_engine.interfaces.strategy import Strategy
from tradesim_engine.logging import get_logger

logger = get_logger(__name__)


class StrategySweep:
    """
    Batch runner over a list of strategies.

    A strategy that raises is recorded as failed and the sweep moves on.
    Cancellation stops the whole sweep; the raised error's bars_processed
    counts bars replayed by the strategies that finished plus the run that was
    interrupted. Failed runs are not counted.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        cost_model: CostModel | None = None,
        progress_callback: Callable[[dict[str, Any]], None] | None = None,
    ):
        """
        Initialize sweep runner.

        Args:
            config: Engine configuration shared by every run
            cost_model: Transaction cost function shared by every run
            progress_callback: Optional callback for progress events
        """
        self._engine = BacktestEngine(config, cost_model)
        self._progress_callback = progress_callback

    def run(
        self,
        strategies: Sequence[Strategy],
        ticker: str,
        bars: list[Bar],
        cancel_event: threading.Event | None = None,
    ) -> SweepResult:
        """
        Run every strategy and return results ranked by Sharpe (descending).

        Raises:
            InvalidInputError: fewer than two bars
            BacktestCancelledError: cancel_event was set
        """
        if bars is None or len(bars) < MIN_BARS:
            raise InvalidInputError(
                f"insufficient data: need at least {MIN_BARS} bars, "
                f"got {0 if bars is None else len(bars)}"
            )

        total = len(strategies)
        logger.info("Starting sweep: %d strategies on %s", total, ticker)

        results: list[SweepComboResult] = []
        errors: list[str] = []
        failed = 0
        replayed = 0

        for i, strategy in enumerate(strategies):
            if cancel_event is not None and cancel_event.is_set():
                raise BacktestCancelledError(replayed)

            self._emit_progress({
                "type": "sweep_progress",
                "strategy": strategy.name,
                "done": i,
                "total": total,
            })

            try:
                bt = self._engine.run(strategy, ticker, bars, cancel_event)
            except BacktestCancelledError as e:
                raise BacktestCancelledError(replayed + e.bars_processed) from e
            except Exception as e:
                logger.exception("Strategy %s failed: %s", strategy.name, e)
                failed += 1
                errors.append(f"{strategy.name}: {e}")
                continue

            replayed += len(bars)
            m = bt.metrics
            results.append(
                SweepComboResult(
                    strategy=bt.strategy_name,
                    ticker=ticker,
                    sharpe=m.sharpe_ratio,
                    sortino=m.sortino_ratio,
                    cagr=m.cagr,
                    max_drawdown_pct=m.max_drawdown_pct,
                    win_rate=m.win_rate,
                    total_trades=m.total_trades,
                    total_return_pct=bt.total_return_pct,
                )
            )

        results.sort(key=lambda r: r.sharpe, reverse=True)

        self._emit_progress({
            "type": "sweep_completed",
            "completed": len(results),
            "failed": failed,
        })
        logger.info(
            "Sweep completed: %d/%d successful, top Sharpe=%.2f",
            len(results),
            total,
            results[0].sharpe if results else 0.0,
        )

        return SweepResult(
            ticker=ticker,
            total_combos=total,
            completed_combos=len(results),
            failed_combos=failed,
            results=results,
            errors=errors,
        )

    def _emit_progress(self, data: dict[str, Any]) -> None:
        if self._progress_callback:
            self._progress_callback(data)
