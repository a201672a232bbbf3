"""Transaction repository protocol."""

from __future__ import annotations

from typing import Iterable, Protocol

from ...models.transaction import Transaction


class TransactionRepository(Protocol):
    """Read-side queries the debt detector runs against transaction history."""

    def recent_payments(self, account_id: int, *, limit: int = 12) -> list[Transaction]:
        """Most recent positive-amount transactions, newest first."""
        ...

    def recent_interest_charges(
        self, account_id: int, *, keywords: Iterable[str], limit: int = 12
    ) -> list[Transaction]:
        """Most recent negative transactions whose payee or notes match a keyword."""
        ...

    def has_category_matching(self, account_id: int, *, keywords: Iterable[str]) -> bool:
        """True when any transaction is categorized into a matching category."""
        ...
