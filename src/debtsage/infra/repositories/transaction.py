"""SQLModel implementation of Transaction repository."""

from __future__ import annotations

from typing import Callable, Iterable

from sqlalchemy import func, or_
from sqlmodel import Session, select

from ...models.category import Category
from ...models.payee import Payee
from ...models.transaction import Transaction


def account_balance(session: Session, account_id: int) -> int:
    """Sum of non-tombstoned transaction amounts for an account, in cents."""

    statement = (
        select(func.coalesce(func.sum(Transaction.amount), 0))
        .where(Transaction.account_id == account_id)
        .where(Transaction.tombstone == False)  # noqa: E712
    )
    return int(session.exec(statement).one())


def _contains_any(column, keywords: Iterable[str]):
    """Case-insensitive "column contains any keyword" clause."""

    return or_(*(func.lower(column).like(f"%{keyword.lower()}%") for keyword in keywords))


class SQLModelTransactionRepository:
    """SQLModel-based transaction repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def recent_payments(self, account_id: int, *, limit: int = 12) -> list[Transaction]:
        """Most recent positive-amount (payment) transactions, newest first."""
        with self.session_factory() as session:
            statement = (
                select(Transaction)
                .where(Transaction.account_id == account_id)
                .where(Transaction.tombstone == False)  # noqa: E712
                .where(Transaction.amount > 0)
                .order_by(Transaction.date.desc(), Transaction.id.desc())  # type: ignore
                .limit(limit)
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def recent_interest_charges(
        self, account_id: int, *, keywords: Iterable[str], limit: int = 12
    ) -> list[Transaction]:
        """Most recent charges whose payee name or notes mention interest."""
        keywords = list(keywords)
        with self.session_factory() as session:
            statement = (
                select(Transaction)
                .outerjoin(Payee, Transaction.payee_id == Payee.id)  # type: ignore
                .where(Transaction.account_id == account_id)
                .where(Transaction.tombstone == False)  # noqa: E712
                .where(Transaction.amount < 0)
                .where(or_(_contains_any(Payee.name, keywords), _contains_any(Transaction.notes, keywords)))
                .order_by(Transaction.date.desc(), Transaction.id.desc())  # type: ignore
                .limit(limit)
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def has_category_matching(self, account_id: int, *, keywords: Iterable[str]) -> bool:
        """True when any live transaction sits in a live category matching a keyword."""
        with self.session_factory() as session:
            statement = (
                select(Transaction.id)
                .join(Category, Transaction.category_id == Category.id)  # type: ignore
                .where(Transaction.account_id == account_id)
                .where(Transaction.tombstone == False)  # noqa: E712
                .where(Category.tombstone == False)  # noqa: E712
                .where(_contains_any(Category.name, keywords))
                .limit(1)
            )
            return session.exec(statement).first() is not None
