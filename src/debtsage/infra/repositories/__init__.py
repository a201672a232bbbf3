"""Concrete repository implementations using SQLModel."""

from .account import SQLModelAccountRepository
from .payee import upsert_payee
from .transaction import SQLModelTransactionRepository, account_balance

__all__ = [
    "SQLModelAccountRepository",
    "SQLModelTransactionRepository",
    "account_balance",
    "upsert_payee",
]
