"""
Bar loading and result export helpers built on pandas.
"""

from tradesim_engine.data.loader import (
    BarDataError,
    bars_from_dataframe,
    bars_to_dataframe,
    equity_curve_frame,
    load_bars_csv,
    sweep_frame,
    trades_frame,
)

__all__ = [
    "BarDataError",
    "bars_from_dataframe",
    "bars_to_dataframe",
    "equity_curve_frame",
    "load_bars_csv",
    "sweep_frame",
    "trades_frame",
]
