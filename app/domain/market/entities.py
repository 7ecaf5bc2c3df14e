"""
Domain entities for the market data bounded context.

Market updates are ephemeral snapshots handed to subscribers; they are
never persisted and never mutated after construction.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Mapping


class Recommendation(Enum):
    """Trade recommendation label produced by the predictor."""

    BUY = "Buy"
    SELL = "Sell"
    HOLD = "Hold"

    @classmethod
    def from_label(cls, label: str) -> "Recommendation":
        """Parse a predictor label case-insensitively.

        Raises:
            ValueError: If the label is not Buy, Sell or Hold.
        """
        normalized = label.strip().capitalize()
        return cls(normalized)


@dataclass(frozen=True)
class RateSnapshot:
    """Exchange rates quoted against one base currency."""

    base: str
    rates: Mapping[str, float]
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class IndicatorSet:
    """Technical indicators derived from a rolling price history.

    `ema`, `atr`, `bollinger_upper`, `bollinger_lower` and `volatility`
    are placeholders: see IndicatorEngine for the values they carry.
    """

    current_price: float
    sma_short: float
    sma_long: float
    ema: float
    rsi: float
    atr: float
    bollinger_upper: float
    bollinger_lower: float
    volatility: float
    observations: int

    def feature_vector(self) -> dict[str, float]:
        """Return the fixed-schema feature vector sent to the predictor."""
        return {
            "current_price": self.current_price,
            "sma_short": self.sma_short,
            "sma_long": self.sma_long,
            "ema": self.ema,
            "rsi": self.rsi,
            "volatility": self.volatility,
            "bollinger_upper": self.bollinger_upper,
            "bollinger_lower": self.bollinger_lower,
        }


@dataclass(frozen=True)
class MarketUpdate:
    """Composite payload broadcast after every successful poll."""

    base: str
    rates: Mapping[str, float]
    instrument: str
    indicators: IndicatorSet
    recommendation: Recommendation
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "base": self.base,
            "rates": dict(self.rates),
            "instrument": self.instrument,
            "indicators": asdict(self.indicators),
            "recommendation": self.recommendation.value,
            "generated_at": self.generated_at.isoformat(),
        }


@dataclass(frozen=True)
class HistoricalRate:
    """A single day's closing rate for an instrument."""

    date: date
    rate: float

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "rate": self.rate}
