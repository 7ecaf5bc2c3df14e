"""
Domain entities for the trading bounded context.

Entities represent core business objects with identity and lifecycle.
They contain no framework imports and no IO operations.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Mapping, Optional

from app.domain.trading.errors import (
    InsufficientFundsError,
    InvalidActionError,
    InvalidPairError,
    UnknownCurrencyError,
)

CURRENCY_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")
PAIR_SEPARATOR = "/"


class TradeAction(Enum):
    """Side of an order."""

    BUY = "Buy"
    SELL = "Sell"

    @classmethod
    def parse(cls, raw: str) -> "TradeAction":
        """Return the action for a raw label, or raise InvalidActionError."""
        for action in cls:
            if action.value == raw:
                return action
        raise InvalidActionError(raw)


class TradeStatus(Enum):
    """Execution status of a trade. Partial fills are not modeled."""

    FILLED = "Filled"


@dataclass(frozen=True)
class CurrencyPair:
    """An FX instrument such as EUR/USD.

    The base currency is the one being bought or sold; the quote
    currency is the one the price is expressed in.
    """

    base: str
    quote: str

    @classmethod
    def parse(cls, symbol: str) -> "CurrencyPair":
        """Parse a "BASE/QUOTE" symbol.

        Raises:
            InvalidPairError: If the symbol is not two distinct currency codes.
        """
        parts = symbol.split(PAIR_SEPARATOR)
        if len(parts) != 2:
            raise InvalidPairError(symbol, "expected BASE/QUOTE")
        base, quote = parts
        if not (CURRENCY_CODE_PATTERN.match(base) and CURRENCY_CODE_PATTERN.match(quote)):
            raise InvalidPairError(symbol, "currency codes must be three upper-case letters")
        if base == quote:
            raise InvalidPairError(symbol, "base and quote must differ")
        return cls(base=base, quote=quote)

    @property
    def symbol(self) -> str:
        return f"{self.base}{PAIR_SEPARATOR}{self.quote}"


@dataclass(frozen=True)
class Wallet:
    """A multi-currency balance sheet owned by exactly one user.

    The set of currencies is fixed at creation time: deltas may only
    touch currencies that already exist, and no balance may go negative.
    Instances are immutable; `apply` returns a new wallet.
    """

    balances: Mapping[str, Decimal]

    @classmethod
    def create(cls, seed: Mapping[str, Decimal]) -> "Wallet":
        """Build a wallet from a seed allocation, validating every entry."""
        balances: dict[str, Decimal] = {}
        for currency, amount in seed.items():
            if not CURRENCY_CODE_PATTERN.match(currency):
                raise UnknownCurrencyError(currency)
            amount = Decimal(amount)
            if amount < 0:
                raise ValueError(f"Seed balance for {currency} must be non-negative")
            balances[currency] = amount
        return cls(balances=balances)

    @property
    def currencies(self) -> frozenset[str]:
        return frozenset(self.balances)

    def has(self, currency: str) -> bool:
        return currency in self.balances

    def balance_of(self, currency: str) -> Decimal:
        if currency not in self.balances:
            raise UnknownCurrencyError(currency)
        return self.balances[currency]

    def check_affordable(self, deltas: list[Mapping[str, Decimal]]) -> None:
        """Verify that applying `deltas` in order never drives a balance negative.

        Runs over every delta before anything is mutated, so a failing
        multi-currency change is rejected as a whole.

        Raises:
            UnknownCurrencyError: If a delta names a currency not in the wallet.
            InsufficientFundsError: Naming the first currency that would go short.
        """
        running = dict(self.balances)
        for delta in deltas:
            for currency, amount in delta.items():
                if currency not in running:
                    raise UnknownCurrencyError(currency)
                after = running[currency] + amount
                if amount < 0 and after < 0:
                    raise InsufficientFundsError(
                        currency=currency,
                        required=str(-amount),
                        available=str(running[currency]),
                    )
                running[currency] = after

    def apply(self, deltas: list[Mapping[str, Decimal]]) -> "Wallet":
        """Return a new wallet with every delta applied, after checking them all."""
        self.check_affordable(deltas)
        balances = dict(self.balances)
        for delta in deltas:
            for currency, amount in delta.items():
                balances[currency] += amount
        return Wallet(balances=balances)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller of a trade or wallet operation."""

    id: int
    username: str


@dataclass
class User:
    """A registered account together with its wallet."""

    username: str
    password_hash: str
    wallet: Wallet
    id: Optional[int] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def principal(self) -> Principal:
        if self.id is None:
            raise ValueError("User has not been persisted yet")
        return Principal(id=self.id, username=self.username)


@dataclass(frozen=True)
class Trade:
    """An executed order. Immutable and append-only once recorded."""

    order_id: str
    user_id: int
    pair: CurrencyPair
    action: TradeAction
    price: Decimal
    quantity: Decimal
    status: TradeStatus
    timestamp: datetime
    profit: Decimal = Decimal("0")

    @property
    def notional(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class TradeAnalytics:
    """Aggregate figures over a user's trade history."""

    total_volume: Decimal
    total_profit: Decimal
    total_trades_count: int
