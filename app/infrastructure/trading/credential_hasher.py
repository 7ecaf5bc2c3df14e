"""
Adapter: Password hashing.

Implements CredentialHasherPort with a passlib CryptContext.
"""

from passlib.context import CryptContext

from app.domain.trading.ports import CredentialHasherPort

DEFAULT_SCHEMES = ("pbkdf2_sha256",)


class PasslibCredentialHasher(CredentialHasherPort):
    """Hashes and verifies passwords with passlib."""

    def __init__(self, schemes: tuple[str, ...] = DEFAULT_SCHEMES) -> None:
        self._context = CryptContext(schemes=list(schemes), deprecated="auto")

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        return self._context.verify(password, password_hash)
