"""
Performance metrics calculation for backtesting.

Computes CAGR, Sharpe, Sortino, max drawdown, win rate, profit factor and
trade-list statistics. Every metric degrades to zero on degenerate input
(no trades, fewer than two equity points, zero volatility, non-positive
capital or time span).
"""

import math
from collections.abc import Sequence
from datetime import datetime

from tradesim_engine.backtest.models import (
    DEFAULT_RISK_FREE_RATE,
    BacktestResult,
    EquityPoint,
    MetricsSummary,
    TradeRecord,
)
from tradesim_engine.logging import get_logger

logger = get_logger(__name__)

TRADING_DAYS_PER_YEAR = 252
DAYS_PER_YEAR = 365.25
SECONDS_PER_DAY = 86400.0


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def _sample_std(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    m = _mean(values)
    variance = sum((v - m) ** 2 for v in values) / (len(values) - 1)
    return math.sqrt(variance) if variance > 0 else 0.0


def calculate_returns(equity_curve: Sequence[EquityPoint]) -> list[float]:
    """Calculate period-over-period simple returns from the equity curve."""
    if len(equity_curve) < 2:
        return []

    returns = []
    for i in range(1, len(equity_curve)):
        prev_equity = equity_curve[i - 1].equity
        curr_equity = equity_curve[i].equity
        if prev_equity > 0:
            returns.append((curr_equity - prev_equity) / prev_equity)
        else:
            returns.append(0.0)

    return returns


def _excess_returns(returns: Sequence[float], risk_free_rate: float) -> list[float]:
    daily_rf = risk_free_rate / TRADING_DAYS_PER_YEAR
    return [r - daily_rf for r in returns]


def calculate_sharpe_ratio(
    returns: Sequence[float],
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> float:
    """
    Calculate annualised Sharpe ratio.

    Sharpe = mean(excess) / sample_std(excess) * sqrt(252)
    """
    if len(returns) < 2:
        return 0.0

    excess = _excess_returns(returns, risk_free_rate)
    std_dev = _sample_std(excess)
    if std_dev <= 0:
        return 0.0

    return _mean(excess) / std_dev * math.sqrt(TRADING_DAYS_PER_YEAR)


def calculate_sortino_ratio(
    returns: Sequence[float],
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> float:
    """
    Calculate annualised Sortino ratio.

    Downside deviation is sqrt(sum of squared negative excess returns / N),
    where N counts all returns, not only the negative ones.
    """
    if len(returns) < 2:
        return 0.0

    excess = _excess_returns(returns, risk_free_rate)
    downside = [r for r in excess if r < 0]
    if not downside:
        return 0.0

    downside_dev = math.sqrt(sum(r * r for r in downside) / len(excess))
    if downside_dev <= 0:
        return 0.0

    return _mean(excess) / downside_dev * math.sqrt(TRADING_DAYS_PER_YEAR)


def calculate_max_drawdown(equity_curve: Sequence[EquityPoint]) -> tuple[float, float]:
    """
    Calculate maximum drawdown from the running peak.

    Returns (max_drawdown_absolute, max_drawdown_pct) with pct in 0-100.
    """
    if not equity_curve:
        return 0.0, 0.0

    peak = equity_curve[0].equity
    max_dd = 0.0
    max_dd_pct = 0.0

    for point in equity_curve:
        if point.equity > peak:
            peak = point.equity
        dd = peak - point.equity
        dd_pct = dd / peak * 100 if peak > 0 else 0.0
        max_dd = max(max_dd, dd)
        max_dd_pct = max(max_dd_pct, dd_pct)

    return max_dd, max_dd_pct


def calculate_cagr(
    initial_capital: float,
    final_capital: float,
    start: datetime,
    end: datetime,
) -> float:
    """Compound annual growth rate in percent over the calendar span."""
    if initial_capital <= 0 or final_capital <= 0:
        return 0.0

    days = (end - start).total_seconds() / SECONDS_PER_DAY
    if days <= 0:
        return 0.0

    years = days / DAYS_PER_YEAR
    return ((final_capital / initial_capital) ** (1.0 / years) - 1) * 100


def calculate_trade_metrics(trades: Sequence[TradeRecord]) -> dict[str, float]:
    """Calculate win/loss statistics from trade records."""
    if not trades:
        return {
            "total_trades": 0,
            "winning_trades": 0,
            "losing_trades": 0,
            "win_rate": 0.0,
            "profit_factor": 0.0,
            "avg_win": 0.0,
            "avg_loss": 0.0,
        }

    wins = [t.pnl for t in trades if t.pnl > 0]
    losses = [-t.pnl for t in trades if t.pnl < 0]

    gross_profit = sum(wins)
    gross_loss = sum(losses)

    if gross_loss > 0:
        profit_factor = gross_profit / gross_loss
    elif gross_profit > 0:
        profit_factor = math.inf
    else:
        profit_factor = 0.0

    return {
        "total_trades": len(trades),
        "winning_trades": len(wins),
        "losing_trades": len(losses),
        "win_rate": len(wins) / len(trades) * 100,
        "profit_factor": profit_factor,
        "avg_win": gross_profit / len(wins) if wins else 0.0,
        "avg_loss": gross_loss / len(losses) if losses else 0.0,
    }


# =============================================================================
# Trade-list utilities
# =============================================================================


def max_consecutive_wins(trades: Sequence[TradeRecord]) -> int:
    """Longest run of trades with positive PnL."""
    best = current = 0
    for t in trades:
        current = current + 1 if t.pnl > 0 else 0
        best = max(best, current)
    return best


def max_consecutive_losses(trades: Sequence[TradeRecord]) -> int:
    """Longest run of trades with negative PnL."""
    best = current = 0
    for t in trades:
        current = current + 1 if t.pnl < 0 else 0
        best = max(best, current)
    return best


def expectancy_per_trade(trades: Sequence[TradeRecord]) -> float:
    """Mean PnL per trade."""
    return _mean([t.pnl for t in trades])


def median_trade_pnl(trades: Sequence[TradeRecord]) -> float:
    if not trades:
        return 0.0
    pnls = sorted(t.pnl for t in trades)
    n = len(pnls)
    mid = n // 2
    if n % 2 == 0:
        return (pnls[mid - 1] + pnls[mid]) / 2
    return pnls[mid]


def average_holding_period(trades: Sequence[TradeRecord]) -> float:
    """Mean holding period in (fractional) days."""
    if not trades:
        return 0.0
    total_days = sum(
        (t.exit_time - t.entry_time).total_seconds() / SECONDS_PER_DAY for t in trades
    )
    return total_days / len(trades)


# =============================================================================
# Summary
# =============================================================================


def compute_metrics_summary(
    equity_curve: Sequence[EquityPoint],
    trades: Sequence[TradeRecord],
    initial_capital: float,
    final_capital: float,
    start: datetime,
    end: datetime,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> MetricsSummary:
    """
    Compute complete metrics summary.

    Args:
        equity_curve: Per-bar equity points
        trades: Closed trade records
        initial_capital: Starting capital
        final_capital: Capital after the final force close
        start: First bar timestamp
        end: Last bar timestamp
        risk_free_rate: Annual risk-free rate for Sharpe/Sortino

    Returns:
        MetricsSummary with all computed metrics
    """
    returns = calculate_returns(equity_curve)
    max_dd, max_dd_pct = calculate_max_drawdown(equity_curve)
    trade_metrics = calculate_trade_metrics(trades)

    return MetricsSummary(
        cagr=calculate_cagr(initial_capital, final_capital, start, end),
        sharpe_ratio=calculate_sharpe_ratio(returns, risk_free_rate),
        sortino_ratio=calculate_sortino_ratio(returns, risk_free_rate),
        max_drawdown=max_dd,
        max_drawdown_pct=max_dd_pct,
        total_trades=trade_metrics["total_trades"],
        winning_trades=trade_metrics["winning_trades"],
        losing_trades=trade_metrics["losing_trades"],
        win_rate=trade_metrics["win_rate"],
        profit_factor=trade_metrics["profit_factor"],
        avg_win=trade_metrics["avg_win"],
        avg_loss=trade_metrics["avg_loss"],
        max_consecutive_wins=max_consecutive_wins(trades),
        max_consecutive_losses=max_consecutive_losses(trades),
        expectancy=expectancy_per_trade(trades),
        median_trade_pnl=median_trade_pnl(trades),
        avg_holding_days=average_holding_period(trades),
    )


def compute_metrics(
    result: BacktestResult,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> BacktestResult:
    """Return a copy of result with its metrics recomputed."""
    summary = compute_metrics_summary(
        result.equity_curve,
        result.trades,
        result.initial_capital,
        result.final_capital,
        result.start,
        result.end,
        risk_free_rate,
    )
    logger.debug(
        "Metrics for %s/%s: trades=%d sharpe=%.3f cagr=%.2f%%",
        result.strategy_name,
        result.ticker,
        summary.total_trades,
        summary.sharpe_ratio,
        summary.cagr,
    )
    return result.model_copy(update={"metrics": summary})
