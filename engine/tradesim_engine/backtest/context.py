"""
Simulation context.

The strategy's only view of the simulated account: cash, position, order
placement and history helpers, plus a per-strategy scratch store. The engine
owns and mutates the account fields; strategies read them and queue orders.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar, overload

from tradesim_engine.domain import Bar, OrderSide, OrderType, PendingOrder, ProductType

T = TypeVar("T")


# =============================================================================
# Scratch State
# =============================================================================


@dataclass(frozen=True)
class StateKey(Generic[T]):
    """
    Typed handle into a StrategyState.

    Example:
        PREV_FAST = StateKey("prev_fast", float, 0.0)
        ctx.state.set(PREV_FAST, 101.5)
        prev: float = ctx.state.get(PREV_FAST)
    """

    name: str
    type: type[T]
    default: T


class StrategyState:
    """
    Per-run key/value store for strategy bookkeeping across bars.

    Reads through a StateKey return the key's default when the value is
    missing or of the wrong type. Plain string keys are accepted too.
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def __contains__(self, key: object) -> bool:
        name = key.name if isinstance(key, StateKey) else key
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def set(self, key: "StateKey[T] | str", value: Any) -> None:
        name = key.name if isinstance(key, StateKey) else key
        self._values[name] = value

    @overload
    def get(self, key: StateKey[T]) -> T: ...

    @overload
    def get(self, key: str, default: Any = None) -> Any: ...

    def get(self, key, default=None):
        if isinstance(key, StateKey):
            value = self._values.get(key.name)
            if isinstance(value, key.type):
                return value
            return key.default
        return self._values.get(key, default)

    def get_float(self, key: str) -> float:
        """Return a numeric value as float, 0.0 on miss or type mismatch."""
        value = self._values.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0.0
        return float(value)

    def get_int(self, key: str) -> int:
        """Return an int value, 0 on miss or type mismatch."""
        value = self._values.get(key)
        if isinstance(value, bool) or not isinstance(value, int):
            return 0
        return value

    def clear(self) -> None:
        self._values.clear()


# =============================================================================
# Closes View
# =============================================================================


class ClosesView(Sequence[float]):
    """Read-only close prices of bars[:end], computed on access."""

    __slots__ = ("_bars", "_end")

    def __init__(self, bars: Sequence[Bar], end: int):
        self._bars = bars
        self._end = max(0, min(end, len(bars)))

    def __len__(self) -> int:
        return self._end

    @overload
    def __getitem__(self, index: int) -> float: ...

    @overload
    def __getitem__(self, index: slice) -> list[float]: ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self._bars[i].close for i in range(*index.indices(self._end))]
        if index < 0:
            index += self._end
        if index < 0 or index >= self._end:
            raise IndexError("closes index out of range")
        return self._bars[index].close

    def __iter__(self) -> Iterator[float]:
        for i in range(self._end):
            yield self._bars[i].close

    def __repr__(self) -> str:
        return f"ClosesView(len={self._end})"


# =============================================================================
# Context
# =============================================================================


@dataclass
class SimulationContext:
    """
    Account state and control surface handed to a strategy.

    position is signed (positive long, negative short). avg_price is 0 when
    flat. margin_reserved holds cash set aside for an open short.
    """

    ticker: str
    capital: float
    bars: Sequence[Bar]
    slippage: float = 0.0
    product: ProductType = ProductType.CNC
    cash: float = field(init=False)
    position: int = 0
    avg_price: float = 0.0
    current_bar: int = 0
    current_ohlcv: Bar = field(default_factory=Bar.zero)
    margin_reserved: float = 0.0
    entry_time: datetime | None = None
    state: StrategyState = field(default_factory=StrategyState)
    _orders: list[PendingOrder] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        self.cash = self.capital

    # -------------------------------------------------------------------------
    # Order placement
    # -------------------------------------------------------------------------

    def _queue(self, order: PendingOrder) -> None:
        self._orders.append(order)

    def buy(self, qty: int, reason: str = "") -> None:
        """Queue a market buy, filled at the next bar's open."""
        self._queue(PendingOrder(OrderSide.BUY, OrderType.MARKET, qty, reason=reason))

    def sell(self, qty: int, reason: str = "") -> None:
        """Queue a market sell, filled at the next bar's open."""
        self._queue(PendingOrder(OrderSide.SELL, OrderType.MARKET, qty, reason=reason))

    def buy_limit(self, qty: int, price: float, reason: str = "") -> None:
        self._queue(
            PendingOrder(OrderSide.BUY, OrderType.LIMIT, qty, limit_price=price, reason=reason)
        )

    def sell_limit(self, qty: int, price: float, reason: str = "") -> None:
        self._queue(
            PendingOrder(OrderSide.SELL, OrderType.LIMIT, qty, limit_price=price, reason=reason)
        )

    def buy_stop(self, qty: int, trigger: float, reason: str = "") -> None:
        """Queue a stop-market buy that fills at trigger once the high reaches it."""
        self._queue(
            PendingOrder(
                OrderSide.BUY, OrderType.STOP_MARKET, qty, trigger_price=trigger, reason=reason
            )
        )

    def sell_stop(self, qty: int, trigger: float, reason: str = "") -> None:
        """Queue a stop-market sell that fills at trigger once the low reaches it."""
        self._queue(
            PendingOrder(
                OrderSide.SELL, OrderType.STOP_MARKET, qty, trigger_price=trigger, reason=reason
            )
        )

    def buy_stop_limit(self, qty: int, trigger: float, limit: float, reason: str = "") -> None:
        self._queue(
            PendingOrder(
                OrderSide.BUY,
                OrderType.STOP_LIMIT,
                qty,
                limit_price=limit,
                trigger_price=trigger,
                reason=reason,
            )
        )

    def sell_stop_limit(self, qty: int, trigger: float, limit: float, reason: str = "") -> None:
        self._queue(
            PendingOrder(
                OrderSide.SELL,
                OrderType.STOP_LIMIT,
                qty,
                limit_price=limit,
                trigger_price=trigger,
                reason=reason,
            )
        )

    def close_position(self, reason: str = "") -> None:
        """Queue a market order that flattens the current position."""
        if self.position > 0:
            self.sell(self.position, reason)
        elif self.position < 0:
            self.buy(-self.position, reason)

    def cancel_pending(self) -> None:
        """Drop every queued, unfilled order."""
        self._orders.clear()

    @property
    def pending_orders(self) -> tuple[PendingOrder, ...]:
        return tuple(self._orders)

    def drain_orders(self) -> list[PendingOrder]:
        """Remove and return the queue (engine use)."""
        orders, self._orders = self._orders, []
        return orders

    def requeue_orders(self, orders: list[PendingOrder]) -> None:
        """Put unfilled orders back ahead of anything queued since the drain."""
        self._orders[:0] = orders

    # -------------------------------------------------------------------------
    # Data access
    # -------------------------------------------------------------------------

    def historical_bars(self) -> Sequence[Bar]:
        """Bars from the start up to and including the current bar."""
        return self.bars[: self.current_bar + 1]

    def closes(self) -> ClosesView:
        """Close prices up to and including the current bar."""
        return ClosesView(self.bars, self.current_bar + 1)

    def look_back(self, n: int) -> Bar:
        """Bar n bars before the current one; the zero bar when out of range."""
        idx = self.current_bar - n
        if n < 0 or idx < 0 or idx >= len(self.bars):
            return Bar.zero()
        return self.bars[idx]

    def bars_since_entry(self) -> int:
        """Number of bars since the open position was entered, 0 when flat."""
        if self.position == 0 or self.entry_time is None:
            return 0
        for i in range(min(self.current_bar, len(self.bars) - 1), -1, -1):
            if self.bars[i].timestamp <= self.entry_time:
                return self.current_bar - i
        return 0

    def position_value(self) -> float:
        """Signed market value of the position at the current close."""
        return self.position * self.current_ohlcv.close

    def unrealized_pnl(self) -> float:
        if self.position > 0:
            return self.position * (self.current_ohlcv.close - self.avg_price)
        if self.position < 0:
            return -self.position * (self.avg_price - self.current_ohlcv.close)
        return 0.0

    def portfolio_value(self) -> float:
        """
        Mark-to-market account value.

        Long: cash + position value. Short: cash + reserved margin +
        unrealized PnL, since opening a short only moved margin out of cash.
        This replaces the plain cash + signed position value, which would
        count the short's notional as a loss the moment it opened.
        """
        if self.position < 0:
            return self.cash + self.margin_reserved + self.unrealized_pnl()
        return self.cash + self.position_value()
