"""Payees referenced by transactions and rule actions."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .transaction import Transaction


class Payee(SQLModel, table=True):
    """Named counterparty; names are unique so lookups by name are upserts."""

    __tablename__: ClassVar[str] = "payee"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, unique=True, index=True, max_length=128)

    transactions: list["Transaction"] = Relationship(
        back_populates="payee",
        sa_relationship=relationship("Transaction", back_populates="payee"),
    )
