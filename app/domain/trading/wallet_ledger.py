"""
Wallet ledger: per-user serialized debit/credit of multi-currency balances.

Every mutation of a wallet goes through `WalletLedger.debit_credit`, which
holds that user's lock for the whole load-check-apply-save cycle. Locks are
per user, so trades of different users never wait on each other. A lock
lives only while some caller holds it, so the registry does not grow with
the number of users who ever traded.
"""

import logging
import threading
import weakref
from decimal import Decimal
from typing import Callable, Mapping, Optional

from app.domain.trading.entities import Trade, Wallet
from app.domain.trading.errors import UserNotFoundError
from app.domain.trading.ports import WalletRepository

logger = logging.getLogger(__name__)

CurrencyDeltas = Mapping[str, Decimal]
TradeFactory = Callable[[], Trade]


class WalletLedger:
    """Applies currency deltas to user wallets atomically.

    Args:
        wallet_repo: Persistence for wallets (and the trade that
            accompanies a mutation).
    """

    def __init__(self, wallet_repo: WalletRepository) -> None:
        self._wallet_repo = wallet_repo
        self._locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()
        self._registry_lock = threading.Lock()

    def lock_for(self, user_id: int) -> threading.Lock:
        """Return the exclusive lock guarding one user's wallet."""
        with self._registry_lock:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_id] = lock
            return lock

    def get_wallet(self, user_id: int) -> Wallet:
        wallet = self._wallet_repo.get_wallet(user_id)
        if wallet is None:
            raise UserNotFoundError(str(user_id))
        return wallet

    def debit_credit(
        self,
        user_id: int,
        deltas: list[CurrencyDeltas],
        record: Optional[TradeFactory] = None,
    ) -> tuple[Wallet, Optional[Trade]]:
        """Apply `deltas` in order to the user's wallet as one unit.

        Every debit is checked against the running balance before any
        mutation is applied. On success the new wallet is saved, together
        with the trade built by `record` (if given) in the same transaction.
        On failure the stored wallet is untouched and nothing is written.

        Args:
            user_id: Owner of the wallet.
            deltas: Signed amounts per currency, applied in sequence.
            record: Optional factory building the trade for this mutation;
                called only once every debit is known to be affordable.

        Returns:
            The saved wallet and the recorded trade (or None).

        Raises:
            UserNotFoundError: If the user has no wallet.
            UnknownCurrencyError: If a delta names a currency the wallet lacks.
            InsufficientFundsError: If any debit would overdraw a currency.
            ConflictError: If the trade cannot be recorded.
        """
        with self.lock_for(user_id):
            wallet = self.get_wallet(user_id)
            updated = wallet.apply(deltas)
            trade = record() if record is not None else None
            self._wallet_repo.save_wallet(user_id, updated, trade)

        logger.debug(
            "Wallet updated: user=%s currencies=%s",
            user_id,
            sorted({c for d in deltas for c in d}),
        )
        return updated, trade
