"""
Application configuration.

Loads settings from environment variables and .env file.
All configuration is centralized here.
"""

import re
from decimal import Decimal
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        rate_limit_enabled: Toggle slowapi enforcement (off in tests).
        rate_limit_default: Default rate limit for all endpoints.
        rate_limit_auth: Rate limit for signup/login.
        rate_limit_trades: Rate limit for trade submission.
        wallet_seed: Initial balances of every new wallet.
        profit_fraction_bound: Simulated Sell P/L bound as a fraction of notional.
        poll_interval_seconds: Period of the market polling job.
        history_capacity: Number of prices kept per tracked instrument.

    When ``database_url`` is unset, a PostgreSQL DSN is built from the
    postgres_* values so Docker Compose setups need no extra variable.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    project_name: str = "Forex Trading Simulator"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    rate_limit_enabled: bool = True
    rate_limit_default: str = "60/minute"
    rate_limit_auth: str = "10/minute"
    rate_limit_trades: str = "30/minute"

    # Persistence
    database_url: Optional[str] = None
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "forexsim"

    # Auth
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # Trading
    wallet_seed: dict[str, Decimal] = {
        "USD": Decimal("10000"),
        "EUR": Decimal("0"),
        "GBP": Decimal("0"),
        "JPY": Decimal("0"),
    }
    profit_fraction_bound: float = 0.0005

    # Market data
    market_stream_enabled: bool = True
    rate_source_url: str = "https://api.exchangerate-api.com/v4/latest/{base}"
    rate_source_history_url: str = "https://api.frankfurter.app/{start}..{end}"
    rate_source_timeout_seconds: float = 10.0
    predictor_url: str = "http://localhost:8001/predict"
    predictor_timeout_seconds: float = 5.0
    poll_interval_seconds: float = 60.0
    default_base_currency: str = "USD"
    reference_currency: str = "EUR"
    history_capacity: int = 50
    sma_short_window: int = 5
    sma_long_window: int = 20
    rsi_period: int = 14
    max_history_days: int = 366

    @field_validator("wallet_seed")
    @classmethod
    def _check_wallet_seed(cls, value: dict[str, Decimal]) -> dict[str, Decimal]:
        if not value:
            raise ValueError("wallet_seed must name at least one currency")
        for currency, amount in value.items():
            if not _CURRENCY_CODE.match(currency):
                raise ValueError(f"invalid currency code in wallet_seed: {currency!r}")
            if amount < 0:
                raise ValueError(f"negative seed balance for {currency}")
        return value

    @field_validator("default_base_currency", "reference_currency")
    @classmethod
    def _check_currency(cls, value: str) -> str:
        value = value.upper()
        if not _CURRENCY_CODE.match(value):
            raise ValueError(f"invalid currency code: {value!r}")
        return value

    def get_database_dsn(self) -> str:
        """Return the effective SQLAlchemy DSN.

        Priority:
        1. Explicit `DATABASE_URL`
        2. Build DSN from postgres_* values (psycopg driver)
        """
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg://{self.postgres_user}:{self.postgres_password}@"
            f"{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


settings = Settings()
