"""
Broker simulation for backtesting.

Decides whether a queued order fills against a bar, applies slippage, and
books the fill against the simulation context.

Fill price model (per bar):
- MARKET: open
- LIMIT: buy min(open, limit) if low <= limit; sell max(open, limit) if high >= limit
- STOP_MARKET: trigger, once the bar trades through it
- STOP_LIMIT: buy max(trigger, limit); sell min(trigger, limit), once triggered

Orders that cannot be paid for at fill time are dropped without notice.
"""

from datetime import datetime

from tradesim_engine.backtest.context import SimulationContext
from tradesim_engine.backtest.costs import CostModel, brokerage_cost
from tradesim_engine.backtest.models import PositionSide, TradeRecord
from tradesim_engine.domain import SHORT_MARGIN_RATE, Bar, OrderSide, OrderType, PendingOrder
from tradesim_engine.logging import get_logger

logger = get_logger(__name__)


def try_fill(order: PendingOrder, bar: Bar) -> float | None:
    """
    Test an order against a bar.

    Returns the pre-slippage fill price, or None when the bar does not reach
    the order's price condition.
    """
    if order.order_type == OrderType.MARKET:
        return bar.open

    if order.order_type == OrderType.LIMIT:
        if order.is_buy and bar.low <= order.limit_price:
            return min(bar.open, order.limit_price)
        if order.is_sell and bar.high >= order.limit_price:
            return max(bar.open, order.limit_price)
        return None

    if order.order_type == OrderType.STOP_MARKET:
        if order.is_buy and bar.high >= order.trigger_price:
            return order.trigger_price
        if order.is_sell and bar.low <= order.trigger_price:
            return order.trigger_price
        return None

    if order.order_type == OrderType.STOP_LIMIT:
        if order.is_buy and bar.high >= order.trigger_price:
            return max(order.trigger_price, order.limit_price)
        if order.is_sell and bar.low <= order.trigger_price:
            return min(order.trigger_price, order.limit_price)
        return None

    return None


def apply_slippage(price: float, side: OrderSide, slippage: float) -> float:
    """Move a fill price against the trader: buys up, sells down."""
    if side == OrderSide.BUY:
        return price * (1 + slippage)
    return price * (1 - slippage)


def _pnl_pct(pnl: float, entry_price: float, quantity: int) -> float:
    notional = entry_price * quantity
    if notional <= 0:
        return 0.0
    return pnl / notional * 100


def _reset_if_flat(ctx: SimulationContext) -> None:
    if ctx.position == 0:
        ctx.avg_price = 0.0
        ctx.margin_reserved = 0.0
        ctx.entry_time = None


# =============================================================================
# Opening fills
# =============================================================================


def _open_long(
    ctx: SimulationContext,
    price: float,
    qty: int,
    timestamp: datetime,
    cost_model: CostModel,
) -> None:
    notional = price * qty
    if notional > ctx.cash:
        logger.debug(
            "Buy dropped: qty=%d @ %.4f needs %.2f, cash %.2f", qty, price, notional, ctx.cash
        )
        return
    cost = cost_model(price, price, qty, ctx.product)
    if notional + cost > ctx.cash:
        logger.debug(
            "Buy dropped: qty=%d @ %.4f plus costs %.2f exceeds cash %.2f",
            qty,
            price,
            cost,
            ctx.cash,
        )
        return

    if ctx.position == 0:
        ctx.avg_price = price
        ctx.entry_time = timestamp
    else:
        ctx.avg_price = (ctx.avg_price * ctx.position + notional) / (ctx.position + qty)
    ctx.position += qty
    ctx.cash -= notional + cost

    logger.debug("Buy filled: qty=%d @ %.4f, position=%d", qty, price, ctx.position)


def _open_short(
    ctx: SimulationContext,
    price: float,
    qty: int,
    timestamp: datetime,
) -> None:
    if not ctx.product.allows_short:
        logger.debug("Sell dropped: shorting not allowed under %s", ctx.product.value)
        return
    margin = SHORT_MARGIN_RATE * price * qty
    if margin > ctx.cash:
        logger.debug("Sell dropped: margin %.2f exceeds cash %.2f", margin, ctx.cash)
        return

    held = -ctx.position
    if held == 0:
        ctx.avg_price = price
        ctx.entry_time = timestamp
    else:
        ctx.avg_price = (ctx.avg_price * held + price * qty) / (held + qty)
    ctx.position -= qty
    ctx.cash -= margin
    ctx.margin_reserved += margin

    logger.debug("Short opened: qty=%d @ %.4f, position=%d", qty, price, ctx.position)


# =============================================================================
# Fill execution
# =============================================================================


def execute_fill(
    ctx: SimulationContext,
    order: PendingOrder,
    fill_price: float,
    timestamp: datetime,
    cost_model: CostModel = brokerage_cost,
) -> TradeRecord | None:
    """
    Book a filled order against the context.

    Returns a TradeRecord when the fill reduced opposite exposure, else None.
    A fill larger than the opposite position closes it and opens the
    remainder in the new direction, subject to the usual cash checks.
    """
    qty = order.effective_quantity
    if order.is_buy:
        return _execute_buy(ctx, order, fill_price, qty, timestamp, cost_model)
    return _execute_sell(ctx, order, fill_price, qty, timestamp, cost_model)


def _execute_buy(
    ctx: SimulationContext,
    order: PendingOrder,
    price: float,
    qty: int,
    timestamp: datetime,
    cost_model: CostModel,
) -> TradeRecord | None:
    if ctx.position >= 0:
        _open_long(ctx, price, qty, timestamp, cost_model)
        return None

    # Covering a short: cash only has to absorb the loss and charges beyond
    # the margin the cover releases
    held = -ctx.position
    covered = min(qty, held)
    cost = cost_model(price, price, covered, ctx.product)
    entry_price = ctx.avg_price
    released = ctx.margin_reserved * covered / held
    pnl = (entry_price - price) * covered - cost
    needed = max(0.0, -pnl - released)
    if needed > ctx.cash:
        logger.debug(
            "Cover dropped: qty=%d @ %.4f needs %.2f beyond released margin, cash %.2f",
            covered,
            price,
            needed,
            ctx.cash,
        )
        return None

    entry_time = ctx.entry_time or timestamp

    ctx.cash += released + pnl
    ctx.margin_reserved -= released
    ctx.position += covered
    _reset_if_flat(ctx)

    trade = TradeRecord(
        entry_time=entry_time,
        exit_time=timestamp,
        side=PositionSide.SHORT,
        entry_price=entry_price,
        exit_price=price,
        quantity=covered,
        pnl=pnl,
        pnl_pct=_pnl_pct(pnl, entry_price, covered),
        reason=order.reason,
    )
    logger.debug("Short covered: qty=%d @ %.4f pnl=%.2f", covered, price, pnl)

    if qty > covered:
        _open_long(ctx, price, qty - covered, timestamp, cost_model)
    return trade


def _execute_sell(
    ctx: SimulationContext,
    order: PendingOrder,
    price: float,
    qty: int,
    timestamp: datetime,
    cost_model: CostModel,
) -> TradeRecord | None:
    if ctx.position <= 0:
        _open_short(ctx, price, qty, timestamp)
        return None

    closed = min(qty, ctx.position)
    entry_price = ctx.avg_price
    entry_time = ctx.entry_time or timestamp
    cost = cost_model(entry_price, price, closed, ctx.product)
    revenue = price * closed
    pnl = revenue - entry_price * closed - cost

    ctx.cash += revenue - cost
    ctx.position -= closed
    _reset_if_flat(ctx)

    trade = TradeRecord(
        entry_time=entry_time,
        exit_time=timestamp,
        side=PositionSide.LONG,
        entry_price=entry_price,
        exit_price=price,
        quantity=closed,
        pnl=pnl,
        pnl_pct=_pnl_pct(pnl, entry_price, closed),
        reason=order.reason,
    )
    logger.debug("Long closed: qty=%d @ %.4f pnl=%.2f", closed, price, pnl)

    if qty > closed:
        _open_short(ctx, price, qty - closed, timestamp)
    return trade


def process_pending_orders(
    ctx: SimulationContext,
    bar: Bar,
    cost_model: CostModel = brokerage_cost,
) -> list[TradeRecord]:
    """
    Evaluate every queued order against bar.

    Filled orders are executed in queue order; orders the bar does not reach
    stay queued for the next bar.
    """
    trades: list[TradeRecord] = []
    unfilled: list[PendingOrder] = []

    for order in ctx.drain_orders():
        price = try_fill(order, bar)
        if price is None:
            unfilled.append(order)
            continue
        price = apply_slippage(price, order.side, ctx.slippage)
        trade = execute_fill(ctx, order, price, bar.timestamp, cost_model)
        if trade is not None:
            trades.append(trade)

    ctx.requeue_orders(unfilled)
    return trades
