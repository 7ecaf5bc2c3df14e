"""
Adapter: Bearer token issuance and resolution.

Implements TokenServicePort with signed JWTs (python-jose).
Claims: `sub` (user id as string), `username`, `exp`.
"""

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from app.domain.trading.entities import Principal
from app.domain.trading.errors import InvalidCredentialError
from app.domain.trading.ports import TokenServicePort

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "HS256"
DEFAULT_EXPIRE_MINUTES = 60


class JwtTokenService(TokenServicePort):
    """Issues and verifies HMAC-signed access tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = DEFAULT_ALGORITHM,
        expire_minutes: int = DEFAULT_EXPIRE_MINUTES,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expires = timedelta(minutes=expire_minutes)

    def issue(self, principal: Principal) -> str:
        claims = {
            "sub": str(principal.id),
            "username": principal.username,
            "exp": datetime.now(timezone.utc) + self._expires,
        }
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def resolve(self, token: str) -> Principal:
        """Decode a token into its principal.

        Raises:
            InvalidCredentialError: If the token is invalid or expired.
        """
        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
            return Principal(id=int(claims["sub"]), username=str(claims["username"]))
        except (JWTError, KeyError, ValueError) as exc:
            logger.warning("Rejected bearer token: %s", type(exc).__name__)
            raise InvalidCredentialError("Invalid or expired token") from exc
