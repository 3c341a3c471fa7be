"""
Interfaces (abstract base classes) for the tradesim engine.

These define the contracts that must be implemented by:
- Strategy: Trading strategy logic driven by the backtest engine
"""

from tradesim_engine.interfaces.strategy import Strategy

__all__ = [
    "Strategy",
]
