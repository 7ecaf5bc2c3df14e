"""
Technical indicators over a rolling price history.

Computes, from a RateHistory snapshot:
- SMA over two configured windows
- RSI (fixed-window simple average of the first `period` deltas)

EMA, ATR, Bollinger Bands and volatility are extension points: they
currently return the current price (EMA, bands) or 0.0 (ATR, volatility)
so the predictor's feature schema stays fixed.

All functions are pure and synchronous.
"""

import logging
from typing import Sequence

import numpy as np

from app.domain.market.entities import IndicatorSet
from app.domain.market.rate_history import RateHistory

logger = logging.getLogger(__name__)

NEUTRAL_RSI = 50.0
MAX_RSI = 100.0
DEFAULT_RSI_PERIOD = 14
PLACEHOLDER_ATR = 0.0
PLACEHOLDER_VOLATILITY = 0.0


def sma(prices: Sequence[float], period: int) -> float:
    """Mean of the last `period` prices, or of all prices when fewer exist.

    Returns 0.0 for an empty history.
    """
    if period < 1:
        raise ValueError("period must be at least 1")
    if not prices:
        return 0.0
    window = np.asarray(prices[-period:], dtype=float)
    return float(window.mean())


def rsi(prices: Sequence[float], period: int = DEFAULT_RSI_PERIOD) -> float:
    """Relative Strength Index over the first `period` price deltas.

    Gains and losses are averaged with a plain mean over a fixed window
    (no Wilder smoothing).

    Returns:
        50.0 when fewer than `period + 1` prices exist, 100.0 when there
        were no losses, otherwise 100 - 100 / (1 + avg_gain / avg_loss).
    """
    if period < 1:
        raise ValueError("period must be at least 1")
    if len(prices) < period + 1:
        return NEUTRAL_RSI

    deltas = np.diff(np.asarray(prices, dtype=float))[:period]
    avg_gain = float(np.clip(deltas, 0, None).sum()) / period
    avg_loss = float(np.abs(np.clip(deltas, None, 0)).sum()) / period

    if avg_loss == 0:
        return MAX_RSI
    rs = avg_gain / avg_loss
    return MAX_RSI - MAX_RSI / (1 + rs)


class IndicatorEngine:
    """Derives the indicator set for a price history.

    Args:
        sma_short_window: Window of the fast moving average.
        sma_long_window: Window of the slow moving average.
        rsi_period: Number of deltas averaged by RSI.
    """

    def __init__(
        self,
        sma_short_window: int = 5,
        sma_long_window: int = 20,
        rsi_period: int = DEFAULT_RSI_PERIOD,
    ) -> None:
        self._sma_short = sma_short_window
        self._sma_long = sma_long_window
        self._rsi_period = rsi_period

    def compute(self, history: RateHistory) -> IndicatorSet:
        """Compute indicators from a snapshot of `history`.

        Raises:
            ValueError: If the history is empty.
        """
        prices = history.snapshot()
        if not prices:
            raise ValueError("cannot compute indicators on an empty history")

        current = prices[-1]
        indicators = IndicatorSet(
            current_price=current,
            sma_short=sma(prices, self._sma_short),
            sma_long=sma(prices, self._sma_long),
            ema=self.ema(prices),
            rsi=rsi(prices, self._rsi_period),
            atr=PLACEHOLDER_ATR,
            bollinger_upper=self.bollinger_upper(prices),
            bollinger_lower=self.bollinger_lower(prices),
            volatility=PLACEHOLDER_VOLATILITY,
            observations=len(prices),
        )
        logger.debug(
            "Computed indicators over %d observations: rsi=%.2f",
            indicators.observations,
            indicators.rsi,
        )
        return indicators

    # Placeholders below keep the feature schema stable until real
    # implementations land.

    @staticmethod
    def ema(prices: Sequence[float]) -> float:
        return prices[-1]

    @staticmethod
    def bollinger_upper(prices: Sequence[float]) -> float:
        return prices[-1]

    @staticmethod
    def bollinger_lower(prices: Sequence[float]) -> float:
        return prices[-1]
