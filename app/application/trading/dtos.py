"""
Data Transfer Objects for the trading application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from app.domain.trading.entities import Trade


@dataclass(frozen=True)
class ExecuteTradeCommand:
    """Input DTO for placing an order.

    Attributes:
        user_id: Authenticated owner of the wallet.
        currency_pair: Instrument symbol, e.g. "EUR/USD".
        action: Raw action label ("Buy" or "Sell").
        price: Execution price in quote currency per unit of base.
        quantity: Amount of base currency traded.
    """

    user_id: int
    currency_pair: str
    action: str
    price: Decimal
    quantity: Decimal


@dataclass(frozen=True)
class TradeResult:
    """Output DTO for a recorded trade."""

    order_id: str
    currency_pair: str
    action: str
    price: Decimal
    quantity: Decimal
    status: str
    timestamp: datetime
    profit: Decimal

    @classmethod
    def from_entity(cls, trade: Trade) -> "TradeResult":
        return cls(
            order_id=trade.order_id,
            currency_pair=trade.pair.symbol,
            action=trade.action.value,
            price=trade.price,
            quantity=trade.quantity,
            status=trade.status.value,
            timestamp=trade.timestamp,
            profit=trade.profit,
        )


@dataclass(frozen=True)
class GetWalletQuery:
    """Input DTO for reading a wallet."""

    user_id: int


@dataclass(frozen=True)
class WalletResult:
    """Output DTO for a wallet's balances."""

    user_id: int
    balances: dict[str, Decimal]


@dataclass(frozen=True)
class ListTradesQuery:
    """Input DTO for reading trade history.

    Attributes:
        user_id: Owner of the trades.
        limit: Maximum number of trades, newest first. None returns all.
    """

    user_id: int
    limit: int | None = None


@dataclass(frozen=True)
class GetTradeAnalyticsQuery:
    """Input DTO for trade analytics."""

    user_id: int


@dataclass(frozen=True)
class TradeAnalyticsResult:
    """Output DTO for aggregate trade figures."""

    total_volume: Decimal
    total_profit: Decimal
    total_trades_count: int


@dataclass(frozen=True)
class RegisterUserCommand:
    """Input DTO for account creation."""

    username: str
    password: str


@dataclass(frozen=True)
class RegisteredUserResult:
    """Output DTO for a newly created account."""

    id: int
    username: str
    balances: dict[str, Decimal]


@dataclass(frozen=True)
class AuthenticateUserCommand:
    """Input DTO for logging in."""

    username: str
    password: str


@dataclass(frozen=True)
class AccessTokenResult:
    """Output DTO for a successful login."""

    access_token: str
    username: str
    token_type: str = "bearer"
