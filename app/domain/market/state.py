"""
Process-scoped market state.

Owns the rolling price history of every tracked instrument and the last
MarketUpdate. A single instance is created by the composition root and
injected into the poller (the only writer) and the broadcaster.
"""

from typing import Optional

from app.domain.market.entities import MarketUpdate
from app.domain.market.rate_history import DEFAULT_CAPACITY, RateHistory


def instrument_key(base_currency: str, reference_currency: str) -> str:
    return f"{base_currency}/{reference_currency}"


class MarketState:
    """Rolling histories keyed by instrument plus a cache of the latest update."""

    def __init__(self, history_capacity: int = DEFAULT_CAPACITY) -> None:
        self._capacity = history_capacity
        self._histories: dict[str, RateHistory] = {}
        self._latest: Optional[MarketUpdate] = None

    def history_for(self, instrument: str) -> RateHistory:
        """Return the history for an instrument, creating it empty on first use."""
        history = self._histories.get(instrument)
        if history is None:
            history = RateHistory(capacity=self._capacity)
            self._histories[instrument] = history
        return history

    @property
    def instruments(self) -> list[str]:
        return sorted(self._histories)

    @property
    def latest_update(self) -> Optional[MarketUpdate]:
        return self._latest

    def record_update(self, update: MarketUpdate) -> None:
        self._latest = update
