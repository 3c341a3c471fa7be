"""
tradesim Backtesting Engine

A deterministic bar-replay simulator supporting:
- Market, limit, stop-market and stop-limit order fills with slippage
- Long/short bookkeeping under delivery, intraday and carry-forward regimes
- Risk-adjusted performance statistics (CAGR, Sharpe, Sortino, drawdown)
- Pluggable strategies with five reference implementations
"""

__version__ = "1.0.0"
__author__ = "tradesim Development Team"

from tradesim_engine.config import Settings, get_settings

__all__ = ["__version__", "Settings", "get_settings"]
