"""
Domain-specific errors for the market data bounded context.

No framework imports allowed.
"""

from datetime import date

from app.domain.trading.errors import TradingDomainError, ValidationError


class MarketDomainError(TradingDomainError):
    """Base error for market data failures."""


class UpstreamUnavailableError(MarketDomainError):
    """Raised when the rate source or predictor cannot be used."""

    def __init__(self, service: str, reason: str) -> None:
        super().__init__(f"{service} unavailable: {reason}")
        self.service = service
        self.reason = reason


class InvalidDateRangeError(ValidationError):
    """Raised when a historical data request spans an invalid range."""

    def __init__(self, start: date, end: date, reason: str) -> None:
        super().__init__(f"Invalid date range {start}..{end}: {reason}")
        self.start = start
        self.end = end
        self.reason = reason
