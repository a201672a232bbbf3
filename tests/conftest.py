"""Pytest configuration and shared fixtures for DebtSage tests.

This module provides database fixtures and test data factories for testing the
interest formulas, detection heuristics and schedule plumbing without touching
a real ledger database.
"""

from __future__ import annotations

import logging
import tempfile
from datetime import date
from pathlib import Path

import pytest
from sqlmodel import Session, create_engine

from debtsage.infra.database import create_session_factory, init_database
from debtsage.models import Account, Category, Payee, Transaction

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    init_database(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for a single test.

    Yields:
        Session: SQLModel session for test
    """
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching what repositories expect (a transactional scope)."""

    return create_session_factory(db_engine)


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Detach handlers installed by setup_logging so tests stay independent."""

    yield
    logger = logging.getLogger("debtsage")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def account_factory(db_session):
    """Factory for creating test accounts.

    Returns:
        Callable: Function that creates and persists Account instances
    """

    def _create_account(
        name: str = "Test Account",
        offbudget: bool = False,
        closed: bool = False,
        tombstone: bool = False,
        is_debt: bool = False,
    ) -> Account:
        account = Account(
            name=name,
            offbudget=offbudget,
            closed=closed,
            tombstone=tombstone,
            is_debt=is_debt,
        )
        db_session.add(account)
        db_session.commit()
        db_session.refresh(account)
        return account

    return _create_account


@pytest.fixture
def category_factory(db_session):
    """Factory for creating test categories."""

    def _create_category(name: str = "Test Category", tombstone: bool = False) -> Category:
        category = Category(name=name, tombstone=tombstone)
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category

    return _create_category


@pytest.fixture
def payee_factory(db_session):
    """Factory for creating test payees."""

    def _create_payee(name: str) -> Payee:
        payee = Payee(name=name)
        db_session.add(payee)
        db_session.commit()
        db_session.refresh(payee)
        return payee

    return _create_payee


@pytest.fixture
def transaction_factory(db_session):
    """Factory for creating test transactions.

    Returns:
        Callable: Function that creates and persists Transaction instances
    """

    def _create_transaction(
        account: Account,
        amount: int,
        on: date | str = date(2024, 1, 1),
        *,
        payee: Payee | None = None,
        category: Category | None = None,
        notes: str = "",
        cleared: bool = False,
        tombstone: bool = False,
    ) -> Transaction:
        """Create a test transaction.

        Args:
            account: Owning account
            amount: Signed amount in cents (negative for charges)
            on: Transaction date (date or ISO string)
        """
        if isinstance(on, str):
            on = date.fromisoformat(on)
        transaction = Transaction(
            account_id=account.id,
            amount=amount,
            date=on,
            payee_id=payee.id if payee else None,
            category_id=category.id if category else None,
            notes=notes,
            cleared=cleared,
            tombstone=tombstone,
        )
        db_session.add(transaction)
        db_session.commit()
        db_session.refresh(transaction)
        return transaction

    return _create_transaction
