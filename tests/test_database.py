"""Schema bootstrap and transactional session scopes."""

from __future__ import annotations

import pytest
from sqlalchemy import inspect, text
from sqlmodel import create_engine, select

from debtsage.config import BaseConfig
from debtsage.infra.database import (
    DEBT_ACCOUNT_COLUMNS,
    bootstrap_database,
    ensure_debt_columns,
    init_database,
    session_scope,
)
from debtsage.models import Account


@pytest.fixture
def legacy_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'legacy.db'}")
    with engine.begin() as connection:
        connection.execute(
            text(
                "CREATE TABLE account ("
                "id INTEGER PRIMARY KEY, name VARCHAR(128) NOT NULL, "
                "offbudget BOOLEAN NOT NULL DEFAULT 0, closed BOOLEAN NOT NULL DEFAULT 0, "
                "tombstone BOOLEAN NOT NULL DEFAULT 0, is_debt BOOLEAN NOT NULL DEFAULT 0)"
            )
        )
        connection.execute(text("INSERT INTO account (name) VALUES ('Old Card')"))
    yield engine
    engine.dispose()


def _columns(engine) -> set[str]:
    return {column["name"] for column in inspect(engine).get_columns("account")}


def test_missing_debt_columns_are_added(legacy_engine):
    added = ensure_debt_columns(legacy_engine)

    assert set(added) == set(DEBT_ACCOUNT_COLUMNS)
    assert set(DEBT_ACCOUNT_COLUMNS) <= _columns(legacy_engine)


def test_existing_rows_get_defaults(legacy_engine):
    init_database(legacy_engine)

    with session_scope(legacy_engine) as session:
        account = session.exec(select(Account)).one()
        assert account.name == "Old Card"
        assert account.interest_scheme == "compound_monthly"
        assert account.compounding_frequency == "monthly"
        assert account.apr is None
        assert account.debt_type is None


def _insert_raw_account(engine) -> tuple:
    with engine.begin() as connection:
        connection.execute(
            text(
                "INSERT INTO account (name, offbudget, closed, tombstone, is_debt) "
                "VALUES ('Raw Card', 0, 0, 0, 0)"
            )
        )
        return connection.execute(
            text(
                "SELECT interest_scheme, compounding_frequency FROM account "
                "WHERE name = 'Raw Card'"
            )
        ).one()


def test_fresh_and_migrated_tables_share_column_defaults(db_engine, legacy_engine):
    """Rows written by other programs get the same defaults either way."""
    init_database(legacy_engine)

    expected = ("compound_monthly", "monthly")
    assert tuple(_insert_raw_account(db_engine)) == expected
    assert tuple(_insert_raw_account(legacy_engine)) == expected


def test_ensure_debt_columns_is_idempotent(legacy_engine):
    ensure_debt_columns(legacy_engine)

    assert ensure_debt_columns(legacy_engine) == []


def test_fresh_database_needs_no_migration(db_engine):
    assert ensure_debt_columns(db_engine) == []
    assert set(DEBT_ACCOUNT_COLUMNS) <= _columns(db_engine)


def test_ensure_debt_columns_without_account_table(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")

    assert ensure_debt_columns(engine) == []


def test_session_scope_commits(db_engine):
    with session_scope(db_engine) as session:
        session.add(Account(name="Checking"))

    with session_scope(db_engine) as session:
        assert session.exec(select(Account)).one().name == "Checking"


def test_session_scope_rolls_back_on_error(db_engine):
    with pytest.raises(RuntimeError):
        with session_scope(db_engine) as session:
            session.add(Account(name="Checking"))
            session.flush()
            raise RuntimeError("boom")

    with session_scope(db_engine) as session:
        assert session.exec(select(Account)).all() == []


def test_bootstrap_database_uses_config(tmp_path, monkeypatch):
    monkeypatch.setenv("DEBTSAGE_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("DEBTSAGE_DATABASE_URL", raising=False)

    engine, factory = bootstrap_database(BaseConfig())

    assert (tmp_path / "debtsage.db").exists()
    with engine.connect() as connection:
        assert connection.execute(text("PRAGMA foreign_keys")).scalar() == 1
    with factory() as session:
        assert session.exec(select(Account)).all() == []
    engine.dispose()
