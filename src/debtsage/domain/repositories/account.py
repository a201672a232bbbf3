"""Account repository protocol."""

from __future__ import annotations

from typing import Protocol

from ...models.account import Account


class AccountRepository(Protocol):
    """Read-side account queries the debt detector runs."""

    def list_open_non_debt(self) -> list[Account]:
        """Accounts eligible for debt detection."""
        ...

    def get_balance(self, account_id: int) -> int:
        """Current balance in cents, ignoring tombstoned transactions."""
        ...
