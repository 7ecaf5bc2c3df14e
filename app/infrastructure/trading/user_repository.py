"""
Adapter: User and wallet persistence.

Implements UserRepository and WalletRepository ports.
Reads/writes the users table; wallet balances are stored as a JSON
object of decimal strings. A wallet save and the accompanying trade
insert share one transaction.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from app.domain.trading.entities import Trade, User, Wallet
from app.domain.trading.errors import ConflictError, UserNotFoundError
from app.domain.trading.ports import UserRepository, WalletRepository
from app.infrastructure.database import as_utc, trades, users
from app.infrastructure.trading.trade_repository import trade_to_row

logger = logging.getLogger(__name__)


def _wallet_to_json(wallet: Wallet) -> dict[str, str]:
    return {currency: str(amount) for currency, amount in wallet.balances.items()}


def _wallet_from_json(raw: dict[str, Any]) -> Wallet:
    return Wallet(balances={currency: Decimal(str(amount)) for currency, amount in raw.items()})


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        wallet=_wallet_from_json(row.wallet),
        created_at=as_utc(row.created_at),
    )


class UserRepositoryAdapter(UserRepository, WalletRepository):
    """SQLAlchemy adapter for the users table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def add(self, user: User) -> User:
        """Insert a new user.

        Raises:
            ConflictError: If the username is taken.
        """
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    insert(users).values(
                        username=user.username,
                        password_hash=user.password_hash,
                        wallet=_wallet_to_json(user.wallet),
                        created_at=user.created_at,
                    )
                )
                user_id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise ConflictError("User", user.username) from exc

        return User(
            id=user_id,
            username=user.username,
            password_hash=user.password_hash,
            wallet=user.wallet,
            created_at=user.created_at,
        )

    def get_by_id(self, user_id: int) -> Optional[User]:
        with self._engine.connect() as conn:
            row = conn.execute(select(users).where(users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row else None

    def get_by_username(self, username: str) -> Optional[User]:
        with self._engine.connect() as conn:
            row = conn.execute(select(users).where(users.c.username == username)).fetchone()
        return _row_to_user(row) if row else None

    def get_wallet(self, user_id: int) -> Optional[Wallet]:
        with self._engine.connect() as conn:
            raw = conn.execute(
                select(users.c.wallet).where(users.c.id == user_id)
            ).scalar_one_or_none()
        return _wallet_from_json(raw) if raw is not None else None

    def save_wallet(self, user_id: int, wallet: Wallet, trade: Optional[Trade] = None) -> None:
        """Update the wallet and insert the trade in one transaction.

        Raises:
            UserNotFoundError: If no user has this id.
            ConflictError: If the trade's order id already exists.
        """
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    update(users)
                    .where(users.c.id == user_id)
                    .values(wallet=_wallet_to_json(wallet))
                )
                if result.rowcount == 0:
                    raise UserNotFoundError(str(user_id))
                if trade is not None:
                    conn.execute(insert(trades).values(**trade_to_row(trade)))
        except IntegrityError as exc:
            key = trade.order_id if trade is not None else str(user_id)
            logger.warning("Rejected duplicate trade record: %s", key)
            raise ConflictError("Trade", key) from exc
