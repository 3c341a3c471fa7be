#!/usr/bin/env python3
"""
Quick backtest runner for the reference strategies.

Usage:
    python scripts/run_backtest.py --strategy sma_crossover --csv data/RELIANCE.csv --ticker RELIANCE
    python scripts/run_backtest.py --strategy rsi --csv data/TCS.csv --capital 500000 --json
    python scripts/run_backtest.py --sweep --csv data/INFY.csv --ticker INFY
    python scripts/run_backtest.py --list
"""

import argparse
import sys
from datetime import UTC, datetime
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tradesim_engine.backtest import (
    BacktestEngine,
    BacktestResult,
    EngineConfig,
    InvalidInputError,
    StrategySweep,
)
from tradesim_engine.config import get_settings
from tradesim_engine.data import load_bars_csv
from tradesim_engine.domain import Bar, ProductType
from tradesim_engine.logging import get_logger, setup_logging
from tradesim_engine.strategies import builtin_strategies, find_strategy, list_strategy_names

logger = get_logger("run_backtest")


def filter_bars(bars: list[Bar], start: str | None, end: str | None) -> list[Bar]:
    """Keep bars whose timestamp falls within [start, end] (YYYY-MM-DD, inclusive)."""
    if start:
        start_dt = datetime.fromisoformat(start).replace(tzinfo=UTC)
        bars = [b for b in bars if b.timestamp >= start_dt]
    if end:
        end_dt = datetime.fromisoformat(end).replace(tzinfo=UTC)
        bars = [b for b in bars if b.timestamp.date() <= end_dt.date()]
    return bars


def print_result(r: BacktestResult) -> None:
    m = r.metrics
    print("=" * 45)
    print("  Backtest Results")
    print("=" * 45)
    print(f"  Strategy:       {r.strategy_name}")
    print(f"  Ticker:         {r.ticker}")
    print(f"  Period:         {r.start:%Y-%m-%d} to {r.end:%Y-%m-%d}")
    print(f"  Initial:        {r.initial_capital:,.2f}")
    print(f"  Final:          {r.final_capital:,.2f}")
    print()
    print(f"  Total Return:   {r.total_return_pct:+.2f}%")
    print(f"  CAGR:           {m.cagr:+.2f}%")
    print(f"  Sharpe Ratio:   {m.sharpe_ratio:.2f}")
    print(f"  Sortino Ratio:  {m.sortino_ratio:.2f}")
    print(f"  Max Drawdown:   {m.max_drawdown_pct:.2f}%")
    if r.benchmark_return is not None:
        print(f"  Benchmark:      {r.benchmark_return:+.2f}% ({r.benchmark_name})")
    print()
    print(f"  Total Trades:   {m.total_trades}")
    print(f"  Win Rate:       {m.win_rate:.2f}%")
    print(f"  Profit Factor:  {m.profit_factor:.2f}")
    print("=" * 45)


def main() -> int:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Run tradesim backtests")
    parser.add_argument("--strategy", "-s", help="Strategy name (fragment match)")
    parser.add_argument("--csv", help="OHLCV CSV file with a header row")
    parser.add_argument("--ticker", "-t", default="", help="Ticker label (default: CSV stem)")
    parser.add_argument("--start", help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", help="End date (YYYY-MM-DD)")
    parser.add_argument("--capital", type=float, default=0.0, help="Initial capital")
    parser.add_argument(
        "--product",
        choices=[p.value for p in ProductType],
        default=settings.product.value,
        help="Margin regime",
    )
    parser.add_argument("--slippage", type=float, default=None, help="Slippage fraction")
    parser.add_argument("--benchmark-csv", help="Benchmark OHLCV CSV file")
    parser.add_argument("--sweep", action="store_true", help="Run every reference strategy")
    parser.add_argument("--json", action="store_true", help="Output result as JSON")
    parser.add_argument("--list", action="store_true", help="List strategy names and exit")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    args = parser.parse_args()

    setup_logging(args.log_level, json_output=settings.json_logs)

    if args.list:
        for name in list_strategy_names():
            print(name)
        return 0

    if not args.csv or not (args.strategy or args.sweep):
        parser.error("--csv and one of --strategy/--sweep are required")

    csv_path = Path(args.csv)
    ticker = args.ticker or csv_path.stem.upper()
    bars = filter_bars(load_bars_csv(csv_path), args.start, args.end)
    benchmark = load_bars_csv(args.benchmark_csv) if args.benchmark_csv else None

    config = EngineConfig.from_settings(settings, benchmark=benchmark).model_copy(
        update={
            "initial_capital": args.capital if args.capital > 0 else settings.initial_capital,
            "slippage_pct": settings.slippage_pct if args.slippage is None else max(args.slippage, 0.0),
            "product": ProductType(args.product),
        }
    )

    if args.sweep:
        sweep = StrategySweep(config).run(builtin_strategies(), ticker, bars)
        if args.json:
            print(sweep.model_dump_json(indent=2))
            return 0
        for rank, r in enumerate(sweep.results, start=1):
            print(
                f"{rank}. {r.strategy:20} | Sharpe: {r.sharpe:6.2f} | "
                f"Return: {r.total_return_pct:7.2f}% | Win: {r.win_rate:5.1f}% | "
                f"Trades: {r.total_trades}"
            )
        for err in sweep.errors:
            print(f"Failed: {err}")
        return 0 if sweep.completed_combos else 1

    strategy = find_strategy(args.strategy)
    if strategy is None:
        print(
            f"Unknown strategy {args.strategy!r}; available: {', '.join(list_strategy_names())}",
            file=sys.stderr,
        )
        return 2

    print(f"Backtesting {strategy.name} on {ticker} ({len(bars)} bars)")
    try:
        result = BacktestEngine(config).run(strategy, ticker, bars)
    except InvalidInputError as e:
        logger.error("Backtest failed: %s", e)
        return 1

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print_result(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
