"""Ledger accounts, including the debt and interest configuration columns."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

from ..constants.debt import DEFAULT_COMPOUNDING_FREQUENCY, DEFAULT_INTEREST_SCHEME

if TYPE_CHECKING:  # pragma: no cover
    from .transaction import Transaction


class Account(SQLModel, table=True):
    """An account in the ledger; debt accounts carry a conventionally negative balance."""

    __tablename__: ClassVar[str] = "account"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=128, index=True)
    offbudget: bool = Field(default=False, nullable=False)
    closed: bool = Field(default=False, nullable=False)
    tombstone: bool = Field(default=False, nullable=False)
    is_debt: bool = Field(default=False, nullable=False, index=True)

    debt_type: Optional[str] = Field(default=None, max_length=32)
    apr: Optional[float] = Field(default=None, description="Annual rate as a percentage, e.g. 18.5")
    interest_scheme: Optional[str] = Field(
        default=DEFAULT_INTEREST_SCHEME,
        max_length=32,
        sa_column_kwargs={"server_default": DEFAULT_INTEREST_SCHEME},
    )
    compounding_frequency: Optional[str] = Field(
        default=DEFAULT_COMPOUNDING_FREQUENCY,
        max_length=16,
        sa_column_kwargs={"server_default": DEFAULT_COMPOUNDING_FREQUENCY},
    )
    interest_posting_day: Optional[int] = Field(
        default=None, ge=1, le=31, description="Day of month; None means the last day"
    )
    apr_last_updated: Optional[datetime] = Field(default=None)

    transactions: list["Transaction"] = Relationship(
        back_populates="account",
        sa_relationship=relationship("Transaction", back_populates="account"),
    )
