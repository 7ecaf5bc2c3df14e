"""
Port interfaces (ABCs) for the market data bounded context.

Both collaborators sit behind a network boundary; adapters must bound
every call with a timeout and raise UpstreamUnavailableError on failure.
"""

from abc import ABC, abstractmethod
from datetime import date

from app.domain.market.entities import HistoricalRate, RateSnapshot, Recommendation


class RateSourcePort(ABC):
    """Port for the external exchange-rate source."""

    @abstractmethod
    async def fetch_rates(self, base_currency: str) -> RateSnapshot:
        """Return the latest rates quoted against `base_currency`.

        Raises:
            UpstreamUnavailableError: On network errors, non-2xx
                responses, timeouts or malformed payloads.
        """
        raise NotImplementedError

    @abstractmethod
    async def fetch_history(
        self, base_currency: str, quote_currency: str, start: date, end: date
    ) -> list[HistoricalRate]:
        """Return daily rates for base/quote between start and end inclusive.

        Raises:
            UpstreamUnavailableError: As for fetch_rates.
        """
        raise NotImplementedError


class PredictorPort(ABC):
    """Port for the external recommendation predictor."""

    @abstractmethod
    async def predict(self, features: dict[str, float]) -> Recommendation:
        """Return a recommendation for a feature vector.

        Raises:
            UpstreamUnavailableError: If no usable recommendation is returned.
        """
        raise NotImplementedError
