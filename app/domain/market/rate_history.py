"""
Bounded rolling buffer of observed prices for one instrument.
"""

from collections import deque

DEFAULT_CAPACITY = 50


class RateHistory:
    """Fixed-capacity FIFO of prices, oldest evicted first.

    Written by a single owner (the rate poller); readers take a
    snapshot copy so indicator computation never sees a mutation.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._prices: deque[float] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._prices)

    def push(self, price: float) -> None:
        """Append a price, evicting the oldest once over capacity."""
        self._prices.append(float(price))

    def snapshot(self) -> tuple[float, ...]:
        """Return an immutable copy of the prices, oldest first."""
        return tuple(self._prices)

    @property
    def latest(self) -> float | None:
        return self._prices[-1] if self._prices else None
