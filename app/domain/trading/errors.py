"""
Domain-specific errors for the trading bounded context.

All errors raised from the domain layer must be defined here.
These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""


class TradingDomainError(Exception):
    """Base error for all trading domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class ValidationError(TradingDomainError):
    """Raised when a request is malformed. Nothing has been mutated."""


class InvalidPairError(ValidationError):
    """Raised when a currency pair is malformed or not held in the wallet."""

    def __init__(self, pair: str, reason: str) -> None:
        super().__init__(f"Invalid currency pair {pair}: {reason}")
        self.pair = pair
        self.reason = reason


class InvalidActionError(ValidationError):
    """Raised when an order action is neither Buy nor Sell."""

    def __init__(self, action: str) -> None:
        super().__init__(f"Invalid trade action: {action}. Must be Buy or Sell.")
        self.action = action


class InvalidQuantityError(ValidationError):
    """Raised when a price or quantity is not strictly positive."""

    def __init__(self, field_name: str, value: str) -> None:
        super().__init__(f"{field_name} must be positive, got {value}")
        self.field_name = field_name
        self.value = value


class UnknownCurrencyError(ValidationError):
    """Raised when a currency code is not part of the wallet's fixed schema."""

    def __init__(self, currency: str) -> None:
        super().__init__(f"Unknown currency: {currency}")
        self.currency = currency


class InsufficientFundsError(TradingDomainError):
    """Raised when the wallet lacks funds in one currency for a trade."""

    def __init__(self, currency: str, required: str, available: str) -> None:
        super().__init__(
            f"Insufficient {currency} funds: required {required}, available {available}"
        )
        self.currency = currency
        self.required = required
        self.available = available


class ConflictError(TradingDomainError):
    """Raised when a unique key (username, order id) already exists."""

    def __init__(self, resource: str, key: str) -> None:
        super().__init__(f"{resource} already exists: {key}")
        self.resource = resource
        self.key = key


class UserNotFoundError(TradingDomainError):
    """Raised when a user cannot be found."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class UnauthenticatedError(TradingDomainError):
    """Raised when a request carries no bearer credential."""

    def __init__(self) -> None:
        super().__init__("Authentication required")


class InvalidCredentialError(TradingDomainError):
    """Raised for bad passwords and invalid or expired tokens."""

    def __init__(self, reason: str = "Invalid credentials") -> None:
        super().__init__(reason)
        self.reason = reason
