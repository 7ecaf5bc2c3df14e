"""
Pydantic schemas for the account API.

Usernames are restricted to a safe character set; passwords are only
length-checked and never echoed back.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"


class CredentialsRequest(BaseModel):
    """Request schema shared by signup and login.

    Attributes:
        username: 3-64 characters of letters, digits, '_', '.', '-'.
        password: 8-128 characters.
    """

    username: str = Field(..., min_length=3, max_length=64, pattern=USERNAME_PATTERN)
    password: str = Field(..., min_length=8, max_length=128)


class SignupResponse(BaseModel):
    """Response schema for a created account."""

    id: int
    username: str
    balances: dict[str, Decimal]


class TokenResponse(BaseModel):
    """Response schema for a successful login."""

    access_token: str
    token_type: str
    username: str
