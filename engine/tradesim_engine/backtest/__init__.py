"""
Backtesting module for the tradesim engine.

Provides:
- BacktestEngine: deterministic bar-driven backtest runner
- SimulationContext: the strategy's account view and order surface
- Broker simulation: per-bar fill policy and slippage
- Cost model: Indian discount-broker charge schedule
- Metrics: CAGR, Sharpe, Sortino, drawdown and trade statistics
- StrategySweep: multi-strategy ranking over one bar series
"""

from tradesim_engine.backtest.context import (
    ClosesView,
    SimulationContext,
    StateKey,
    StrategyState,
)
from tradesim_engine.backtest.costs import (
    BrokerageCharges,
    CostModel,
    brokerage_cost,
    calculate_brokerage,
    zero_cost,
)
from tradesim_engine.backtest.engine import (
    BacktestCancelledError,
    BacktestEngine,
    InvalidInputError,
)
from tradesim_engine.backtest.metrics import compute_metrics, compute_metrics_summary
from tradesim_engine.backtest.models import (
    BacktestResult,
    EngineConfig,
    EquityPoint,
    MetricsSummary,
    PositionSide,
    SweepComboResult,
    SweepResult,
    TradeRecord,
)
from tradesim_engine.backtest.sweep import StrategySweep

__all__ = [
    "BacktestCancelledError",
    "BacktestEngine",
    "BacktestResult",
    "BrokerageCharges",
    "ClosesView",
    "CostModel",
    "EngineConfig",
    "EquityPoint",
    "InvalidInputError",
    "MetricsSummary",
    "PositionSide",
    "SimulationContext",
    "StateKey",
    "StrategyState",
    "StrategySweep",
    "SweepComboResult",
    "SweepResult",
    "TradeRecord",
    "brokerage_cost",
    "calculate_brokerage",
    "compute_metrics",
    "compute_metrics_summary",
    "zero_cost",
]
