"""
Use case: Read the caller's wallet balances.

Input: GetWalletQuery (user_id)
Output: WalletResult
Side effects: None.
Failure cases: UserNotFoundError.
"""

import logging

from app.application.trading.dtos import GetWalletQuery, WalletResult
from app.domain.trading.wallet_ledger import WalletLedger

logger = logging.getLogger(__name__)


class GetWalletUseCase:
    """Returns the current balances of a user's wallet."""

    def __init__(self, ledger: WalletLedger) -> None:
        self._ledger = ledger

    def execute(self, query: GetWalletQuery) -> WalletResult:
        wallet = self._ledger.get_wallet(query.user_id)
        return WalletResult(user_id=query.user_id, balances=dict(wallet.balances))
