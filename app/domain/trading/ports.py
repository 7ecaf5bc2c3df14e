"""
Port interfaces (ABCs) for the trading bounded context.

Ports define the contracts that the domain requires from the outside world.
Infrastructure adapters implement these interfaces.
The domain layer never depends on concrete implementations.
"""

from abc import ABC, abstractmethod
from typing import Optional

from app.domain.trading.entities import (
    Principal,
    Trade,
    TradeAnalytics,
    User,
    Wallet,
)


class UserRepository(ABC):
    """Port for persisting and retrieving user accounts."""

    @abstractmethod
    def add(self, user: User) -> User:
        """Persist a new user and return it with its assigned id.

        Raises:
            ConflictError: If the username is already taken.
        """
        raise NotImplementedError

    @abstractmethod
    def get_by_id(self, user_id: int) -> Optional[User]:
        """Return a user by id, or None if not found."""
        raise NotImplementedError

    @abstractmethod
    def get_by_username(self, username: str) -> Optional[User]:
        """Return a user by username, or None if not found."""
        raise NotImplementedError


class WalletRepository(ABC):
    """Port for loading and saving a user's wallet."""

    @abstractmethod
    def get_wallet(self, user_id: int) -> Optional[Wallet]:
        """Return the user's wallet, or None if the user does not exist."""
        raise NotImplementedError

    @abstractmethod
    def save_wallet(self, user_id: int, wallet: Wallet, trade: Optional[Trade] = None) -> None:
        """Persist the wallet and, when given, append the trade atomically.

        Either both writes are committed or neither is.

        Raises:
            ConflictError: If the trade's order id already exists.
            UserNotFoundError: If the user does not exist.
        """
        raise NotImplementedError


class TradeRepository(ABC):
    """Port for the append-only per-user trade history."""

    @abstractmethod
    def append(self, trade: Trade) -> None:
        """Append a trade record.

        Raises:
            ConflictError: If the order id already exists.
        """
        raise NotImplementedError

    @abstractmethod
    def list_for_user(self, user_id: int, limit: Optional[int] = None) -> list[Trade]:
        """Return a user's trades ordered by timestamp descending."""
        raise NotImplementedError

    @abstractmethod
    def summarize(self, user_id: int) -> TradeAnalytics:
        """Return volume, profit and count totals over a user's trades."""
        raise NotImplementedError


class CredentialHasherPort(ABC):
    """Port for one-way password hashing."""

    @abstractmethod
    def hash(self, password: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def verify(self, password: str, password_hash: str) -> bool:
        raise NotImplementedError


class TokenServicePort(ABC):
    """Port for issuing and resolving bearer credentials."""

    @abstractmethod
    def issue(self, principal: Principal) -> str:
        """Return a signed bearer token for the principal."""
        raise NotImplementedError

    @abstractmethod
    def resolve(self, token: str) -> Principal:
        """Return the principal encoded in a token.

        Raises:
            InvalidCredentialError: If the token is malformed, tampered or expired.
        """
        raise NotImplementedError
