"""
Database engine and schema.

Tables are declared with SQLAlchemy Core and created at startup.
Any SQLAlchemy URL works: PostgreSQL (psycopg) in production,
SQLite in tests and local development.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    create_engine,
)
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

AMOUNT = Numeric(precision=28, scale=10)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(64), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("wallet", JSON, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

trades = Table(
    "trades",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("order_id", String(36), nullable=False, unique=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False, index=True),
    Column("currency_pair", String(7), nullable=False),
    Column("action", String(8), nullable=False),
    Column("price", AMOUNT, nullable=False),
    Column("quantity", AMOUNT, nullable=False),
    Column("status", String(16), nullable=False),
    Column("timestamp", DateTime(timezone=True), nullable=False, index=True),
    Column("profit", AMOUNT, nullable=False, default=0),
)


def create_db_engine(dsn: str) -> Engine:
    """Build a SQLAlchemy engine for the given DSN."""
    connect_args = {}
    if dsn.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(dsn, pool_pre_ping=True, connect_args=connect_args)


def init_schema(engine: Engine) -> None:
    """Create any missing tables. Fails loudly if the backend is unreachable."""
    metadata.create_all(engine)
    logger.info("Database schema ready (%s)", engine.url.render_as_string(hide_password=True))


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes returned by backends without tz support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
