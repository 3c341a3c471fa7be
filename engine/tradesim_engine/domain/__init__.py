"""
Domain models for the tradesim engine.

These models represent the core concepts used throughout the system:
- Bar: OHLCV price data for a time period
- PendingOrder: Queued instruction to buy/sell
- ProductType: Margin regime governing whether shorts are allowed
"""

from tradesim_engine.domain.bar import Bar
from tradesim_engine.domain.order import OrderSide, OrderType, PendingOrder
from tradesim_engine.domain.product import SHORT_MARGIN_RATE, ProductType

__all__ = [
    "Bar",
    "OrderSide",
    "OrderType",
    "PendingOrder",
    "ProductType",
    "SHORT_MARGIN_RATE",
]
