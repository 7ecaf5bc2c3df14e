"""
Tests for the market data domain layer.

Covers the rolling RateHistory, indicator math, MarketState and
recommendation parsing. Pure functions, no IO.
"""

import pytest

from app.domain.market.entities import Recommendation
from app.domain.market.indicators import IndicatorEngine, rsi, sma
from app.domain.market.rate_history import RateHistory
from app.domain.market.state import MarketState, instrument_key


class TestRateHistory:
    """Tests for the bounded price buffer."""

    def test_evicts_oldest_over_capacity(self) -> None:
        history = RateHistory(capacity=3)
        for price in (1.0, 2.0, 3.0, 4.0):
            history.push(price)

        assert len(history) == 3
        assert history.snapshot() == (2.0, 3.0, 4.0)
        assert history.latest == 4.0

    def test_snapshot_is_a_copy(self) -> None:
        history = RateHistory(capacity=5)
        history.push(1.0)
        snapshot = history.snapshot()
        history.push(2.0)
        assert snapshot == (1.0,)

    def test_empty_history(self) -> None:
        history = RateHistory()
        assert len(history) == 0
        assert history.latest is None
        assert history.capacity == 50

    def test_capacity_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            RateHistory(capacity=0)


class TestSma:
    def test_mean_of_last_period(self) -> None:
        assert sma([1.0, 2.0, 3.0, 4.0, 5.0, 6.0], 5) == pytest.approx(4.0)

    def test_short_history_uses_all_prices(self) -> None:
        assert sma([2.0, 4.0], 20) == pytest.approx(3.0)

    def test_empty_history_is_zero(self) -> None:
        assert sma([], 5) == 0.0


class TestRsi:
    """Tests for the fixed-window RSI."""

    def test_neutral_when_history_too_short(self) -> None:
        assert rsi([1.0] * 14, period=14) == 50.0

    def test_no_losses_is_max(self) -> None:
        prices = [1.0 + i * 0.01 for i in range(15)]
        assert rsi(prices, period=14) == 100.0

    def test_flat_prices_is_max(self) -> None:
        assert rsi([1.0] * 15, period=14) == 100.0

    def test_balanced_moves_are_neutral(self) -> None:
        assert rsi([1.0, 2.0, 1.0], period=2) == pytest.approx(50.0)

    def test_uses_first_period_deltas_only(self) -> None:
        # Deltas +2, -1 give rs = 2; the later -2 is outside the window.
        expected = 100.0 - 100.0 / 3.0
        assert rsi([1.0, 3.0, 2.0], period=2) == pytest.approx(expected)
        assert rsi([1.0, 3.0, 2.0, 0.0], period=2) == pytest.approx(expected)

    def test_bounded(self) -> None:
        prices = [1.0, 0.5, 0.25, 0.2, 0.1]
        assert 0.0 <= rsi(prices, period=4) <= 100.0


class TestIndicatorEngine:
    def test_compute_from_history(self) -> None:
        history = RateHistory(capacity=50)
        for price in (0.90, 0.91, 0.92):
            history.push(price)

        indicators = IndicatorEngine(sma_short_window=2, sma_long_window=20).compute(history)

        assert indicators.current_price == 0.92
        assert indicators.sma_short == pytest.approx(0.915)
        assert indicators.sma_long == pytest.approx(0.91)
        assert indicators.rsi == 50.0
        assert indicators.observations == 3
        assert indicators.ema == indicators.bollinger_upper == indicators.bollinger_lower == 0.92
        assert indicators.atr == 0.0
        assert indicators.volatility == 0.0

    def test_feature_vector_schema(self) -> None:
        history = RateHistory()
        history.push(1.1)
        features = IndicatorEngine().compute(history).feature_vector()
        assert set(features) == {
            "current_price",
            "sma_short",
            "sma_long",
            "ema",
            "rsi",
            "volatility",
            "bollinger_upper",
            "bollinger_lower",
        }

    def test_empty_history_rejected(self) -> None:
        with pytest.raises(ValueError):
            IndicatorEngine().compute(RateHistory())


class TestMarketState:
    def test_history_created_per_instrument(self) -> None:
        state = MarketState(history_capacity=10)
        usd = state.history_for(instrument_key("USD", "EUR"))
        gbp = state.history_for(instrument_key("GBP", "EUR"))

        assert usd is state.history_for("USD/EUR")
        assert usd is not gbp
        assert usd.capacity == 10
        assert state.instruments == ["GBP/EUR", "USD/EUR"]
        assert state.latest_update is None


class TestRecommendation:
    @pytest.mark.parametrize("label, expected", [
        ("Buy", Recommendation.BUY),
        ("sell", Recommendation.SELL),
        (" HOLD ", Recommendation.HOLD),
    ])
    def test_from_label(self, label: str, expected: Recommendation) -> None:
        assert Recommendation.from_label(label) is expected

    def test_unknown_label_rejected(self) -> None:
        with pytest.raises(ValueError):
            Recommendation.from_label("Short")
