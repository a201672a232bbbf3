"""SQLModel definitions for ledger transactions."""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover - import guard for circular dependency
    from .account import Account
    from .category import Category
    from .payee import Payee


class Transaction(SQLModel, table=True):
    """A single ledger transaction; amounts are integer cents."""

    __tablename__: ClassVar[str] = "transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: int = Field(foreign_key="account.id", nullable=False, index=True)
    amount: int = Field(nullable=False, description="Positive for inflow, negative for outflow")
    date: dt.date = Field(nullable=False, index=True)
    payee_id: Optional[int] = Field(default=None, foreign_key="payee.id")
    category_id: Optional[int] = Field(default=None, foreign_key="category.id")
    notes: str = Field(default="", max_length=255)
    cleared: bool = Field(default=False, nullable=False)
    tombstone: bool = Field(default=False, nullable=False)

    account: "Account" = Relationship(
        back_populates="transactions",
        sa_relationship=relationship("Account", back_populates="transactions"),
    )
    payee: "Payee | None" = Relationship(
        back_populates="transactions",
        sa_relationship=relationship("Payee", back_populates="transactions"),
    )
    category: "Category | None" = Relationship(
        back_populates="transactions",
        sa_relationship=relationship("Category", back_populates="transactions"),
    )
