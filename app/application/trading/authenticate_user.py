"""
Use case: Exchange a username and password for a bearer token.

Input: AuthenticateUserCommand (username, password)
Output: AccessTokenResult
Side effects: None.
Failure cases: InvalidCredentialError (unknown user or wrong password).
"""

import logging

from app.application.trading.dtos import AccessTokenResult, AuthenticateUserCommand
from app.domain.trading.errors import InvalidCredentialError
from app.domain.trading.ports import (
    CredentialHasherPort,
    TokenServicePort,
    UserRepository,
)

logger = logging.getLogger(__name__)

INVALID_LOGIN = "Invalid username or password"


class AuthenticateUserUseCase:
    """Verifies credentials and issues a token for the user's principal."""

    def __init__(
        self,
        user_repo: UserRepository,
        hasher: CredentialHasherPort,
        tokens: TokenServicePort,
    ) -> None:
        self._user_repo = user_repo
        self._hasher = hasher
        self._tokens = tokens

    def execute(self, command: AuthenticateUserCommand) -> AccessTokenResult:
        user = self._user_repo.get_by_username(command.username)
        if user is None or not self._hasher.verify(command.password, user.password_hash):
            logger.warning("Failed login attempt")
            raise InvalidCredentialError(INVALID_LOGIN)

        token = self._tokens.issue(user.principal)
        logger.info("User id=%s logged in", user.id)
        return AccessTokenResult(access_token=token, username=user.username)
