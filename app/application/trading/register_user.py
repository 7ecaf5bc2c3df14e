"""
Use case: Create an account with a seeded wallet.

Input: RegisterUserCommand (username, password)
Output: RegisteredUserResult
Side effects: New user row with hashed password and seed wallet.
Failure cases: ConflictError (username taken).
"""

import logging
from decimal import Decimal
from typing import Mapping

from app.application.trading.dtos import RegisterUserCommand, RegisteredUserResult
from app.domain.trading.entities import User, Wallet
from app.domain.trading.ports import CredentialHasherPort, UserRepository

logger = logging.getLogger(__name__)


class RegisterUserUseCase:
    """Registers a user and allocates the default wallet seed."""

    def __init__(
        self,
        user_repo: UserRepository,
        hasher: CredentialHasherPort,
        wallet_seed: Mapping[str, Decimal],
    ) -> None:
        self._user_repo = user_repo
        self._hasher = hasher
        self._wallet_seed = wallet_seed

    def execute(self, command: RegisterUserCommand) -> RegisteredUserResult:
        """Run the registration use case.

        Raises:
            ConflictError: If the username already exists.
        """
        user = User(
            username=command.username,
            password_hash=self._hasher.hash(command.password),
            wallet=Wallet.create(self._wallet_seed),
        )
        saved = self._user_repo.add(user)
        logger.info("Registered user id=%s", saved.id)
        return RegisteredUserResult(
            id=saved.id,
            username=saved.username,
            balances=dict(saved.wallet.balances),
        )
