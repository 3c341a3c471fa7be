"""
Tests for technical indicators.
"""

import pytest

from tradesim_engine.strategies.indicators import (
    TREND_DOWN,
    TREND_UP,
    atr,
    crosses_above,
    crossover,
    crossunder,
    ema,
    macd,
    rsi,
    sma,
    supertrend,
    vwap,
)
from tests.strategies.synthetic_data import bars_from_closes

# =============================================================================
# Moving Averages
# =============================================================================


class TestMovingAverages:
    """SMA and EMA with backfilled warmup."""

    def test_sma(self) -> None:
        assert sma([1.0, 2.0, 3.0, 4.0, 5.0], 3) == pytest.approx([2.0, 2.0, 2.0, 3.0, 4.0])

    def test_ema_seeded_with_sma(self) -> None:
        assert ema([1.0, 2.0, 3.0, 4.0, 5.0], 3) == pytest.approx([2.0, 2.0, 2.0, 3.0, 4.0])

    def test_ema_weights_recent_values(self) -> None:
        values = [10.0] * 5 + [20.0]
        assert ema(values, 3)[-1] == pytest.approx(15.0)
        assert sma(values, 3)[-1] == pytest.approx(40.0 / 3)

    @pytest.mark.parametrize("fn", [sma, ema])
    def test_short_input_repeats_first_value(self, fn) -> None:
        assert fn([5.0, 6.0], 3) == [5.0, 5.0]

    @pytest.mark.parametrize("fn", [sma, ema])
    def test_empty_input(self, fn) -> None:
        assert fn([], 3) == []

    @pytest.mark.parametrize("fn", [sma, ema])
    def test_output_aligned_with_input(self, fn) -> None:
        values = [float(i) for i in range(50)]
        assert len(fn(values, 10)) == 50


# =============================================================================
# RSI
# =============================================================================


class TestRSI:
    """Wilder-smoothed RSI."""

    def test_known_values(self) -> None:
        values = rsi([1.0, 2.0, 1.0, 2.0, 1.0], 2)
        assert values == pytest.approx([50.0, 50.0, 50.0, 75.0, 37.5])

    def test_only_gains(self) -> None:
        assert rsi([float(i) for i in range(20)], 14)[-1] == 100.0

    def test_only_losses(self) -> None:
        assert rsi([float(20 - i) for i in range(20)], 14)[-1] == 0.0

    def test_insufficient_data(self) -> None:
        assert rsi([1.0, 2.0, 3.0], 14) == [50.0, 50.0, 50.0]

    def test_bounded(self) -> None:
        closes = [100.0, 102.0, 99.0, 101.0, 98.0, 103.0, 97.0, 104.0] * 4
        assert all(0.0 <= v <= 100.0 for v in rsi(closes, 5))


# =============================================================================
# MACD
# =============================================================================


class TestMACD:
    def test_flat_prices(self) -> None:
        line, signal, hist = macd([100.0] * 60)
        assert line == pytest.approx([0.0] * 60)
        assert signal == pytest.approx([0.0] * 60)
        assert hist == pytest.approx([0.0] * 60)

    def test_uptrend_is_positive(self) -> None:
        line, _, _ = macd([100.0 + i for i in range(60)])
        assert line[-1] > 0

    def test_histogram_is_difference(self) -> None:
        closes = [100.0 + (i % 7) for i in range(60)]
        line, signal, hist = macd(closes)
        assert hist == pytest.approx([m - s for m, s in zip(line, signal)])


# =============================================================================
# Bar-based Indicators
# =============================================================================


class TestATR:
    def test_constant_range(self) -> None:
        bars = bars_from_closes([100.0] * 30, wick=1.0)
        assert atr(bars, 14) == pytest.approx([2.0] * 30)

    def test_gap_widens_true_range(self) -> None:
        bars = bars_from_closes([100.0] * 20 + [110.0], wick=1.0)
        values = atr(bars, 5)
        assert values[-1] > values[-2]

    def test_too_few_bars(self) -> None:
        assert atr(bars_from_closes([100.0]), 14) == [0.0]


class TestVWAP:
    def test_cumulative_average(self) -> None:
        bars = bars_from_closes([100.0, 102.0, 104.0])
        assert vwap(bars) == pytest.approx([100.0, 101.0, 102.0])

    def test_volume_weighting(self) -> None:
        bars = bars_from_closes([100.0], volume=3000.0) + bars_from_closes(
            [200.0], volume=1000.0
        )
        assert vwap(bars)[-1] == pytest.approx(125.0)

    def test_no_volume_is_zero(self) -> None:
        assert vwap(bars_from_closes([100.0, 101.0], volume=0.0)) == [0.0, 0.0]


class TestSupertrend:
    def test_warmup_is_neutral(self) -> None:
        bars = bars_from_closes([100.0 + i for i in range(30)], wick=0.5)
        values, trend = supertrend(bars, 7, 3.0)
        assert trend[:6] == [0] * 6
        assert values[:6] == [0.0] * 6

    def test_uptrend_flips_up(self) -> None:
        closes = [100.0 + 2 * i for i in range(40)]
        bars = bars_from_closes(closes, wick=0.5)
        values, trend = supertrend(bars, 7, 3.0)
        assert trend[-1] == TREND_UP
        assert values[-1] < closes[-1]

    def test_downtrend_stays_down(self) -> None:
        closes = [200.0 - 2 * i for i in range(40)]
        bars = bars_from_closes(closes, wick=0.5)
        values, trend = supertrend(bars, 7, 3.0)
        assert set(trend[6:]) == {TREND_DOWN}
        assert values[-1] > closes[-1]

    def test_too_few_bars(self) -> None:
        values, trend = supertrend(bars_from_closes([100.0, 101.0]), 7, 3.0)
        assert trend == [0, 0]
        assert values == [0.0, 0.0]


# =============================================================================
# Crossing Helpers
# =============================================================================


class TestCrossings:
    def test_crossover(self) -> None:
        assert crossover([1.0, 3.0], [2.0, 2.0], 1)
        assert not crossover([3.0, 4.0], [2.0, 2.0], 1)
        assert not crossover([1.0, 3.0], [2.0, 2.0], 0)
        assert not crossover([1.0, 3.0], [2.0, 2.0], 5)

    def test_crossover_from_touch(self) -> None:
        assert crossover([2.0, 3.0], [2.0, 2.0], 1)

    def test_crossunder(self) -> None:
        assert crossunder([3.0, 1.0], [2.0, 2.0], 1)
        assert not crossunder([1.0, 0.5], [2.0, 2.0], 1)

    def test_crosses_above(self) -> None:
        assert crosses_above(30.0, 31.0, 30.0)
        assert crosses_above(25.0, 35.0, 30.0)
        assert not crosses_above(29.0, 30.0, 30.0)
        assert not crosses_above(31.0, 35.0, 30.0)
