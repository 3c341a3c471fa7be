"""
Tests for domain models.
"""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from tradesim_engine.domain import (
    Bar,
    OrderSide,
    OrderType,
    PendingOrder,
    ProductType,
)


class TestBar:
    """Tests for Bar model."""

    def test_create_bar(self) -> None:
        """Should create bar with valid OHLCV."""
        bar = Bar(
            timestamp=datetime(2024, 1, 1, tzinfo=UTC),
            open=100.0,
            high=105.0,
            low=98.0,
            close=103.0,
            volume=5000,
        )
        assert bar.close == 103.0
        assert bar.volume == 5000.0

    def test_volume_defaults_to_zero(self) -> None:
        bar = Bar(timestamp=datetime(2024, 1, 1, tzinfo=UTC), open=1, high=1, low=1, close=1)
        assert bar.volume == 0.0

    def test_high_below_open_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Bar(
                timestamp=datetime(2024, 1, 1, tzinfo=UTC),
                open=100.0,
                high=99.0,
                low=95.0,
                close=96.0,
            )

    def test_low_above_high_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Bar(
                timestamp=datetime(2024, 1, 1, tzinfo=UTC),
                open=100.0,
                high=100.0,
                low=101.0,
                close=100.0,
            )

    def test_close_outside_range_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Bar(
                timestamp=datetime(2024, 1, 1, tzinfo=UTC),
                open=100.0,
                high=105.0,
                low=95.0,
                close=110.0,
            )

    def test_negative_price_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Bar(
                timestamp=datetime(2024, 1, 1, tzinfo=UTC),
                open=-1.0,
                high=1.0,
                low=-2.0,
                close=0.0,
            )

    def test_bar_is_immutable(self) -> None:
        """Bar should be frozen."""
        bar = Bar(timestamp=datetime(2024, 1, 1, tzinfo=UTC), open=1, high=2, low=1, close=2)
        with pytest.raises(ValidationError):
            bar.close = 3.0  # type: ignore

    def test_derived_properties(self) -> None:
        bar = Bar(
            timestamp=datetime(2024, 1, 1, tzinfo=UTC),
            open=100.0,
            high=110.0,
            low=90.0,
            close=105.0,
        )
        assert bar.typical == pytest.approx(305.0 / 3)
        assert bar.range == 20.0
        assert bar.is_bullish
        assert not bar.is_bearish

    def test_zero_bar(self) -> None:
        zero = Bar.zero()
        assert zero.is_zero
        assert zero.close == 0.0
        assert zero.volume == 0.0

    def test_real_bar_is_not_zero(self) -> None:
        bar = Bar(timestamp=datetime(2024, 1, 1, tzinfo=UTC), open=1, high=1, low=1, close=1)
        assert not bar.is_zero


class TestPendingOrder:
    """Tests for PendingOrder."""

    def test_sides(self) -> None:
        buy = PendingOrder(OrderSide.BUY, OrderType.MARKET, 10)
        sell = PendingOrder(OrderSide.SELL, OrderType.LIMIT, 10, limit_price=99.0)
        assert buy.is_buy and not buy.is_sell
        assert sell.is_sell and not sell.is_buy

    @pytest.mark.parametrize("qty,expected", [(5, 5), (1, 1), (0, 1), (-3, 1)])
    def test_effective_quantity(self, qty: int, expected: int) -> None:
        order = PendingOrder(OrderSide.BUY, OrderType.MARKET, qty)
        assert order.effective_quantity == expected

    def test_order_is_immutable(self) -> None:
        order = PendingOrder(OrderSide.BUY, OrderType.MARKET, 1)
        with pytest.raises(AttributeError):
            order.quantity = 2  # type: ignore


class TestProductType:
    """Tests for ProductType."""

    def test_cnc_disallows_short(self) -> None:
        assert not ProductType.CNC.allows_short

    @pytest.mark.parametrize("product", [ProductType.MIS, ProductType.NRML])
    def test_margin_products_allow_short(self, product: ProductType) -> None:
        assert product.allows_short

    def test_parse_from_string(self) -> None:
        assert ProductType("MIS") is ProductType.MIS
