"""Database infrastructure: engine, schema bootstrap and session scopes."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Tuple

from sqlalchemy import event, inspect, text
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig
from ..constants.debt import DEFAULT_COMPOUNDING_FREQUENCY, DEFAULT_INTEREST_SCHEME

logger = logging.getLogger(__name__)

# Columns added to an existing account table; all nullable so old rows stay valid.
DEBT_ACCOUNT_COLUMNS: dict[str, str] = {
    "debt_type": "VARCHAR(32)",
    "interest_scheme": f"VARCHAR(32) DEFAULT '{DEFAULT_INTEREST_SCHEME}'",
    "interest_posting_day": "INTEGER",
    "apr": "FLOAT",
    "compounding_frequency": f"VARCHAR(16) DEFAULT '{DEFAULT_COMPOUNDING_FREQUENCY}'",
    "apr_last_updated": "DATETIME",
}


def create_db_engine(config: BaseConfig) -> Engine:
    """Create SQLModel engine from configuration."""
    engine = create_engine(config.DATABASE_URL, **config.sqlalchemy_engine_options())

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def _apply_pragmas(dbapi_connection, _record) -> None:
            cursor = dbapi_connection.cursor()
            for name, value in config.SQLITE_PRAGMAS.items():
                cursor.execute(f"PRAGMA {name}={value}")
            cursor.close()

    return engine


def ensure_debt_columns(engine: Engine) -> list[str]:
    """Add any missing debt/interest columns to the account table.

    Returns the names of the columns that were added.
    """

    inspector = inspect(engine)
    if not inspector.has_table("account"):
        return []

    existing = {column["name"] for column in inspector.get_columns("account")}
    missing = [name for name in DEBT_ACCOUNT_COLUMNS if name not in existing]
    if not missing:
        return []

    with engine.begin() as connection:
        for name in missing:
            connection.execute(
                text(f"ALTER TABLE account ADD COLUMN {name} {DEBT_ACCOUNT_COLUMNS[name]}")
            )
    logger.info("Added debt columns to account table", extra={"columns": missing})
    return missing


def init_database(engine: Engine) -> None:
    """Initialize database schema."""
    # Import all models to ensure they're registered
    from .. import models  # noqa: F401

    ensure_debt_columns(engine)
    SQLModel.metadata.create_all(engine)


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Provide a transactional scope around operations."""
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_session_factory(engine: Engine):
    """Create a session factory function."""

    def factory():
        """Create a new transactional session scope."""
        return session_scope(engine)

    return factory


def bootstrap_database(config: BaseConfig | None = None) -> Tuple:
    """Convenience bootstrap for engine + session_factory with schema init.

    Used by the CLI and tests to ensure consistent engine options and
    session configuration. Returns (engine, session_factory).
    """

    cfg = config or BaseConfig()
    engine = create_db_engine(cfg)
    init_database(engine)
    return engine, create_session_factory(engine)
