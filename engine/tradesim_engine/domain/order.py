"""
Order domain model.

A PendingOrder is queued by a strategy while a bar is processed and is only
evaluated for a fill against later bars.
"""

from dataclasses import dataclass
from enum import Enum


class OrderSide(str, Enum):
    """Order side (direction)."""

    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    """Order type."""

    MARKET = "MARKET"  # Fill at the next bar's open
    LIMIT = "LIMIT"  # Fill at the limit price or better
    STOP_MARKET = "STOP_MARKET"  # Fill at the trigger once touched
    STOP_LIMIT = "STOP_LIMIT"  # Fill bounded by trigger and limit once touched


@dataclass(frozen=True)
class PendingOrder:
    """A queued, unfilled instruction."""

    side: OrderSide
    order_type: OrderType
    quantity: int
    limit_price: float = 0.0
    trigger_price: float = 0.0
    reason: str = ""

    @property
    def is_buy(self) -> bool:
        """Check if this is a buy order."""
        return self.side == OrderSide.BUY

    @property
    def is_sell(self) -> bool:
        """Check if this is a sell order."""
        return self.side == OrderSide.SELL

    @property
    def effective_quantity(self) -> int:
        """Quantity used at fill time; non-positive sizes fill as a single unit."""
        return self.quantity if self.quantity > 0 else 1
