"""Payee persistence helpers."""

from __future__ import annotations

from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ...models.payee import Payee


def upsert_payee(session: Session, name: str) -> Payee:
    """Return the payee called *name*, inserting it if needed.

    Relies on the unique constraint on ``payee.name`` so concurrent callers
    converge on one row instead of racing a check-then-insert.
    """

    dialect = session.get_bind().dialect.name
    if dialect not in {"sqlite", "postgresql"}:
        return _insert_or_reselect(session, name)

    insert = sqlite_insert if dialect == "sqlite" else postgresql_insert
    session.execute(
        insert(Payee).values(name=name).on_conflict_do_nothing(index_elements=["name"])
    )
    return session.exec(select(Payee).where(Payee.name == name)).one()


def _insert_or_reselect(session: Session, name: str) -> Payee:
    """Insert under a savepoint; on a unique-name conflict load the winning row."""

    payee = Payee(name=name)
    try:
        with session.begin_nested():
            session.add(payee)
    except IntegrityError:
        return session.exec(select(Payee).where(Payee.name == name)).one()
    return payee
