"""SQLModel implementation of Account repository."""

from __future__ import annotations

from typing import Callable

from sqlmodel import Session, select

from ...models.account import Account
from .transaction import account_balance


class SQLModelAccountRepository:
    """SQLModel-based account repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def list_open_non_debt(self) -> list[Account]:
        """Accounts eligible for debt detection: not debt, not closed, not tombstoned."""
        with self.session_factory() as session:
            statement = (
                select(Account)
                .where(Account.is_debt == False)  # noqa: E712
                .where(Account.closed == False)  # noqa: E712
                .where(Account.tombstone == False)  # noqa: E712
                .order_by(Account.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def get_balance(self, account_id: int) -> int:
        """Current balance in cents, ignoring tombstoned transactions."""
        with self.session_factory() as session:
            return account_balance(session, account_id)
