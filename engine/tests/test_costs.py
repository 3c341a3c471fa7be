"""
Tests for the transaction cost model.
"""

import pytest

from tradesim_engine.backtest.costs import (
    BrokerageCharges,
    brokerage_cost,
    calculate_brokerage,
    zero_cost,
)
from tradesim_engine.domain import ProductType


class TestDeliveryCharges:
    """CNC (delivery) charge schedule."""

    def test_breakdown(self) -> None:
        c = calculate_brokerage(100.0, 110.0, 10, ProductType.CNC)

        assert c.brokerage == 0.0
        assert c.stt == pytest.approx(2.1)  # 0.1% of 2,100 turnover
        assert c.stamp_duty == pytest.approx(0.15)  # 0.015% of 1,000 buy value
        assert c.exchange_txn == pytest.approx(0.07245)
        assert c.sebi == pytest.approx(0.0021)
        assert c.gst == pytest.approx((0.07245 + 0.0021) * 0.18)
        assert c.total == pytest.approx(2.337969)
        assert c.net_pnl == pytest.approx(100.0 - 2.337969)

    def test_total_is_sum_of_parts(self) -> None:
        c = calculate_brokerage(2500.0, 2450.0, 40, ProductType.CNC)
        parts = c.brokerage + c.stt + c.exchange_txn + c.sebi + c.stamp_duty + c.gst
        assert c.total == pytest.approx(parts)

    def test_default_product_is_delivery(self) -> None:
        assert calculate_brokerage(100.0, 110.0, 10) == calculate_brokerage(
            100.0, 110.0, 10, ProductType.CNC
        )


class TestIntradayCharges:
    """MIS and NRML charge schedules."""

    def test_mis_breakdown(self) -> None:
        c = calculate_brokerage(100.0, 110.0, 10, ProductType.MIS)

        assert c.brokerage == pytest.approx(0.63)  # 0.03% per leg
        assert c.stt == pytest.approx(0.275)  # 0.025% of sell value
        assert c.stamp_duty == pytest.approx(0.03)
        assert c.gst == pytest.approx((0.63 + 0.07245 + 0.0021) * 0.18)
        assert c.total == pytest.approx(1.136369)

    def test_brokerage_capped_per_leg(self) -> None:
        c = calculate_brokerage(100.0, 100.0, 1_000, ProductType.MIS)
        assert c.brokerage == pytest.approx(40.0)

    def test_nrml_stt_on_sell_value(self) -> None:
        c = calculate_brokerage(100.0, 110.0, 10, ProductType.NRML)
        assert c.stt == pytest.approx(0.6875)
        assert c.brokerage == pytest.approx(0.63)

    def test_losing_trade_net_pnl(self) -> None:
        c = calculate_brokerage(110.0, 100.0, 10, ProductType.MIS)
        assert c.net_pnl == pytest.approx(-100.0 - c.total)
        assert c.net_pnl < -100.0


class TestCostModels:
    """CostModel callables."""

    def test_brokerage_cost_returns_total(self) -> None:
        expected = calculate_brokerage(100.0, 110.0, 10, ProductType.MIS).total
        assert brokerage_cost(100.0, 110.0, 10, ProductType.MIS) == pytest.approx(expected)

    def test_zero_cost(self) -> None:
        assert zero_cost(100.0, 110.0, 10, ProductType.CNC) == 0.0

    def test_zero_quantity_costs_nothing(self) -> None:
        c = calculate_brokerage(100.0, 110.0, 0, ProductType.CNC)
        assert c == BrokerageCharges(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
