"""
Transaction cost model.

Charge schedule of an Indian discount broker: brokerage, securities
transaction tax (STT), exchange transaction charge, SEBI fee, stamp duty and
GST. The engine only depends on the CostModel callable; brokerage_cost is the
default implementation.
"""

from collections.abc import Callable
from dataclasses import dataclass

from tradesim_engine.domain import ProductType

# Alias for any cost function: (buy_price, sell_price, quantity, product) -> cost
CostModel = Callable[[float, float, int, ProductType], float]

# Rates (fractions of traded value)
INTRADAY_BROKERAGE_RATE = 0.0003
MAX_BROKERAGE_PER_ORDER = 20.0
DELIVERY_STT_RATE = 0.001
INTRADAY_STT_RATE = 0.00025
FNO_STT_RATE = 0.000625
DELIVERY_STAMP_RATE = 0.00015
INTRADAY_STAMP_RATE = 0.00003
EXCHANGE_TXN_RATE = 0.0000345
SEBI_RATE = 0.000001
GST_RATE = 0.18


@dataclass(frozen=True)
class BrokerageCharges:
    """Breakdown of charges for one round trip."""

    brokerage: float
    stt: float
    exchange_txn: float
    sebi: float
    stamp_duty: float
    gst: float
    total: float
    net_pnl: float


def _intraday_brokerage(buy_value: float, sell_value: float) -> float:
    return min(buy_value * INTRADAY_BROKERAGE_RATE, MAX_BROKERAGE_PER_ORDER) + min(
        sell_value * INTRADAY_BROKERAGE_RATE, MAX_BROKERAGE_PER_ORDER
    )


def calculate_brokerage(
    buy_price: float,
    sell_price: float,
    quantity: int,
    product: ProductType = ProductType.CNC,
) -> BrokerageCharges:
    """
    Calculate the full charge breakdown for buying and selling quantity units.

    Delivery (CNC) trades pay no brokerage but higher STT and stamp duty.
    Intraday (MIS) and F&O (NRML) trades pay 0.03% brokerage per leg, capped
    at 20 per order.
    """
    buy_value = buy_price * quantity
    sell_value = sell_price * quantity
    turnover = buy_value + sell_value

    if product == ProductType.MIS:
        brokerage = _intraday_brokerage(buy_value, sell_value)
        stt = sell_value * INTRADAY_STT_RATE
        stamp = buy_value * INTRADAY_STAMP_RATE
    elif product == ProductType.NRML:
        brokerage = _intraday_brokerage(buy_value, sell_value)
        stt = sell_value * FNO_STT_RATE
        stamp = buy_value * INTRADAY_STAMP_RATE
    else:
        brokerage = 0.0
        stt = turnover * DELIVERY_STT_RATE
        stamp = buy_value * DELIVERY_STAMP_RATE

    exchange_txn = turnover * EXCHANGE_TXN_RATE
    sebi = turnover * SEBI_RATE
    gst = (brokerage + exchange_txn + sebi) * GST_RATE

    total = brokerage + stt + exchange_txn + sebi + stamp + gst

    return BrokerageCharges(
        brokerage=brokerage,
        stt=stt,
        exchange_txn=exchange_txn,
        sebi=sebi,
        stamp_duty=stamp,
        gst=gst,
        total=total,
        net_pnl=(sell_price - buy_price) * quantity - total,
    )


def brokerage_cost(
    buy_price: float, sell_price: float, quantity: int, product: ProductType
) -> float:
    """Default CostModel: total charges from calculate_brokerage."""
    return calculate_brokerage(buy_price, sell_price, quantity, product).total


def zero_cost(
    _buy_price: float, _sell_price: float, _quantity: int, _product: ProductType
) -> float:
    """Frictionless CostModel."""
    return 0.0
