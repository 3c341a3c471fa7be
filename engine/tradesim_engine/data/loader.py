"""
Bar loading and result export.

Turns OHLCV tables (DataFrame or CSV) into Bar values for the engine, and
backtest results into DataFrames for analysis.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pandas as pd

from tradesim_engine.backtest.models import BacktestResult, SweepResult
from tradesim_engine.domain import Bar
from tradesim_engine.logging import get_logger

logger = get_logger(__name__)

PRICE_COLUMNS = ["open", "high", "low", "close"]
TIMESTAMP_ALIASES = ["timestamp", "timestamp_utc", "datetime", "date", "time"]


class BarDataError(ValueError):
    """Raised when a table cannot be interpreted as OHLCV bars."""


def _find_timestamp_column(df: pd.DataFrame, timestamp_col: str | None) -> str:
    if timestamp_col is not None:
        if timestamp_col not in df.columns:
            raise BarDataError(f"Timestamp column {timestamp_col!r} not found")
        return timestamp_col
    for alias in TIMESTAMP_ALIASES:
        if alias in df.columns:
            return alias
    raise BarDataError(
        f"No timestamp column found; expected one of {TIMESTAMP_ALIASES}"
    )


def bars_from_dataframe(df: pd.DataFrame, timestamp_col: str | None = None) -> list[Bar]:
    """
    Convert a DataFrame to a list of Bar objects.

    Column names are matched case-insensitively. A DatetimeIndex is used when
    no timestamp column is present. Naive timestamps are taken as UTC. Rows
    with missing prices are dropped. Row order is preserved; the engine
    sorts.

    Raises:
        BarDataError: required columns are missing
        pydantic.ValidationError: a row violates OHLC consistency
    """
    frame = df.copy()
    frame.columns = [str(c).strip().lower() for c in frame.columns]

    if isinstance(frame.index, pd.DatetimeIndex) and not any(
        a in frame.columns for a in TIMESTAMP_ALIASES
    ):
        index_name = frame.index.name.lower() if frame.index.name else "timestamp"
        frame = frame.reset_index(names=index_name)
        if timestamp_col is None:
            timestamp_col = index_name
    elif timestamp_col is not None:
        timestamp_col = timestamp_col.lower()

    ts_col = _find_timestamp_column(frame, timestamp_col)

    missing = [c for c in PRICE_COLUMNS if c not in frame.columns]
    if missing:
        raise BarDataError(f"Missing price columns: {missing}")

    if "volume" not in frame.columns:
        frame["volume"] = 0.0

    before = len(frame)
    frame = frame.dropna(subset=PRICE_COLUMNS)
    if len(frame) < before:
        logger.warning("Dropped %d rows with missing prices", before - len(frame))

    timestamps = pd.to_datetime(frame[ts_col])
    if timestamps.dt.tz is None:
        timestamps = timestamps.dt.tz_localize("UTC")

    bars = []
    for ts, row in zip(timestamps, frame.itertuples(index=False), strict=True):
        bars.append(
            Bar(
                timestamp=ts.to_pydatetime(),
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                volume=float(row.volume) if pd.notna(row.volume) else 0.0,
            )
        )

    logger.debug("Loaded %d bars", len(bars))
    return bars


def load_bars_csv(path: str | Path, **read_csv_kwargs: Any) -> list[Bar]:
    """
    Load bars from a CSV file with a header row.

    Extra keyword arguments are passed to pandas.read_csv.
    """
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV not found: {csv_path}")
    df = pd.read_csv(csv_path, **read_csv_kwargs)
    logger.info("Read %d rows from %s", len(df), csv_path)
    return bars_from_dataframe(df)


def bars_to_dataframe(bars: Sequence[Bar]) -> pd.DataFrame:
    """Convert bars to a DataFrame with one row per bar."""
    return pd.DataFrame(
        [b.model_dump() for b in bars],
        columns=["timestamp", *PRICE_COLUMNS, "volume"],
    )


def equity_curve_frame(result: BacktestResult) -> pd.DataFrame:
    """Equity curve with running peak and drawdown columns."""
    df = pd.DataFrame(
        [p.model_dump() for p in result.equity_curve],
        columns=["timestamp", "equity", "cash", "position"],
    )
    df["peak"] = df["equity"].cummax()
    df["drawdown"] = df["peak"] - df["equity"]
    df["drawdown_pct"] = (df["drawdown"] / df["peak"].where(df["peak"] > 0)).fillna(0.0) * 100
    return df


def trades_frame(result: BacktestResult) -> pd.DataFrame:
    """Trade log, one row per closing fill."""
    return pd.DataFrame(
        [
            {
                "entry_time": t.entry_time,
                "exit_time": t.exit_time,
                "side": t.side.value,
                "entry_price": t.entry_price,
                "exit_price": t.exit_price,
                "quantity": t.quantity,
                "pnl": t.pnl,
                "pnl_pct": t.pnl_pct,
                "reason": t.reason,
            }
            for t in result.trades
        ],
        columns=[
            "entry_time",
            "exit_time",
            "side",
            "entry_price",
            "exit_price",
            "quantity",
            "pnl",
            "pnl_pct",
            "reason",
        ],
    )


def sweep_frame(sweep: SweepResult) -> pd.DataFrame:
    """Ranked sweep results with a 1-based rank column."""
    df = pd.DataFrame([r.model_dump() for r in sweep.results])
    if not df.empty:
        df.insert(0, "rank", range(1, len(df) + 1))
    return df
