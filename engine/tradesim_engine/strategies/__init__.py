"""
Strategy implementations for the tradesim engine.

Contains the reference crossover strategies and indicator helpers.
"""

from tradesim_engine.strategies.reference import (
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

__all__ = [
    "MACDCrossover",
    "RSIMeanReversion",
    "SMACrossover",
    "SuperTrendStrategy",
    "VWAPBreakout",
    "builtin_strategies",
    "find_strategy",
    "list_strategy_names",
    "max_shares",
]
