"""
Strategy interface.

Defines the contract for strategies driven bar-by-bar by the backtest engine.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from tradesim_engine.domain import Bar

if TYPE_CHECKING:
    from tradesim_engine.backtest.context import SimulationContext


class Strategy(ABC):
    """
    Abstract base class for backtestable strategies.

    The engine calls init once before the first bar, then on_bar for every
    bar in timestamp order. Strategies act only by queueing orders on the
    context; queued orders fill no earlier than the next bar. Anything kept
    across bars belongs in ctx.state or on the instance.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable strategy name."""
        pass

    def init(self, ctx: "SimulationContext") -> None:
        """
        Called once before the first bar.

        Override to seed ctx.state or reset instance fields.
        """
        pass

    @abstractmethod
    def on_bar(self, ctx: "SimulationContext", bar: Bar) -> None:
        """
        Called for each bar after pending orders have been filled against it.

        Args:
            ctx: Account view and order surface
            bar: The bar being processed (same as ctx.current_ohlcv)
        """
        pass
