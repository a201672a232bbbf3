"""Turning ordinary accounts into debt accounts and back.

Each function works inside the caller's session; run it under
``session_scope`` so the account flags and the interest schedule commit or
roll back together.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session, col

from ..config import BaseConfig
from ..constants.debt import (
    COMPOUNDING_FREQUENCIES,
    DEBT_TYPES,
    DEFAULT_COMPOUNDING_FREQUENCY,
    DEFAULT_INTEREST_SCHEME,
    INTEREST_SCHEMES,
)
from ..exceptions import AccountNotFoundError
from ..models.account import Account
from ..models.transaction import Transaction
from .interest_schedule import (
    delete_interest_schedule,
    get_interest_schedule,
    setup_interest_schedule,
    update_interest_schedule,
)

logger = logging.getLogger(__name__)


def _get_live_account(session: Session, account_id: int) -> Account:
    account = session.get(Account, account_id)
    if account is None or account.tombstone:
        raise AccountNotFoundError(f"Account {account_id} not found")
    return account


def _validate_apr(apr: float) -> None:
    if not math.isfinite(apr) or apr < 0:
        raise ValueError("APR must be a non-negative number")


def _validate_settings(
    *,
    debt_type: str,
    apr: float,
    interest_scheme: str,
    compounding_frequency: str,
    interest_posting_day: Optional[int],
) -> None:
    if debt_type not in DEBT_TYPES:
        raise ValueError(f"Unknown debt type: {debt_type}")
    _validate_apr(apr)
    if interest_scheme not in INTEREST_SCHEMES:
        raise ValueError(f"Unknown interest scheme: {interest_scheme}")
    if compounding_frequency not in COMPOUNDING_FREQUENCIES:
        raise ValueError(f"Unknown compounding frequency: {compounding_frequency}")
    if interest_posting_day is not None and not 1 <= interest_posting_day <= 31:
        raise ValueError("Interest posting day must be between 1 and 31")


def categorize_uncategorized(session: Session, *, account_id: int, category_id: int) -> int:
    """Assign ``category_id`` to the account's live uncategorized transactions."""

    result = session.execute(
        update(Transaction)
        .where(col(Transaction.account_id) == account_id)
        .where(col(Transaction.category_id).is_(None))
        .where(col(Transaction.tombstone).is_(False))
        .values(category_id=category_id)
    )
    return result.rowcount or 0


def convert_to_debt(
    session: Session,
    *,
    account_id: int,
    debt_type: str,
    apr: float,
    interest_scheme: str = DEFAULT_INTEREST_SCHEME,
    compounding_frequency: str = DEFAULT_COMPOUNDING_FREQUENCY,
    interest_posting_day: Optional[int] = None,
    interest_category_id: Optional[int] = None,
    categorize_uncategorized_to: Optional[int] = None,
    now: Optional[datetime] = None,
    payee_name: str = BaseConfig.DEFAULT_INTEREST_PAYEE,
) -> Account:
    """Flag an account as debt, store its interest settings and sync its schedule.

    The account is moved on-budget. An interest schedule is kept only while an
    interest category is configured and the APR is positive; otherwise any
    existing schedule is removed.
    """

    _validate_settings(
        debt_type=debt_type,
        apr=apr,
        interest_scheme=interest_scheme,
        compounding_frequency=compounding_frequency,
        interest_posting_day=interest_posting_day,
    )
    account = _get_live_account(session, account_id)
    now = now or datetime.now(timezone.utc)

    account.is_debt = True
    account.offbudget = False
    account.debt_type = debt_type
    account.interest_scheme = interest_scheme
    account.compounding_frequency = compounding_frequency
    account.interest_posting_day = interest_posting_day
    if account.apr != apr:
        account.apr_last_updated = now
    account.apr = apr
    session.add(account)

    if categorize_uncategorized_to is not None:
        count = categorize_uncategorized(
            session, account_id=account_id, category_id=categorize_uncategorized_to
        )
        logger.info(
            "Categorized uncategorized transactions",
            extra={"account_id": account_id, "count": count},
        )

    if interest_category_id is not None and apr > 0:
        setup_interest_schedule(
            session,
            account_id=account_id,
            apr=apr,
            interest_scheme=interest_scheme,
            compounding_frequency=compounding_frequency,
            interest_posting_day=interest_posting_day,
            interest_category_id=interest_category_id,
            today=now.date(),
            payee_name=payee_name,
        )
    else:
        delete_interest_schedule(session, account_id)

    session.flush()
    logger.info(
        "Converted account to debt",
        extra={"account_id": account_id, "debt_type": debt_type, "apr": apr},
    )
    return account


def convert_from_debt(session: Session, *, account_id: int) -> Account:
    """Clear the debt flag and remove the account's interest schedule."""

    account = _get_live_account(session, account_id)
    account.is_debt = False
    account.debt_type = None
    session.add(account)
    delete_interest_schedule(session, account_id)
    session.flush()

    logger.info("Converted account from debt", extra={"account_id": account_id})
    return account


def update_apr(
    session: Session,
    *,
    account_id: int,
    apr: float,
    now: Optional[datetime] = None,
) -> Account:
    """Record a rate change on a variable-rate account and resync its schedule.

    A zero APR removes the interest schedule, as ``convert_to_debt`` does.
    """

    _validate_apr(apr)
    account = _get_live_account(session, account_id)
    now = now or datetime.now(timezone.utc)

    account.apr = apr
    account.apr_last_updated = now
    session.add(account)

    if apr == 0:
        delete_interest_schedule(session, account_id)
        info = None
    else:
        info = get_interest_schedule(session, account_id)
    if info is not None and info.category_id is not None:
        update_interest_schedule(
            session,
            schedule_id=info.schedule_id,
            rule_id=info.rule_id,
            apr=apr,
            interest_scheme=account.interest_scheme or DEFAULT_INTEREST_SCHEME,
            compounding_frequency=account.compounding_frequency or DEFAULT_COMPOUNDING_FREQUENCY,
            interest_posting_day=account.interest_posting_day,
            interest_category_id=info.category_id,
            today=now.date(),
        )

    session.flush()
    logger.info("Updated APR", extra={"account_id": account_id, "apr": apr})
    return account


__all__ = ["categorize_uncategorized", "convert_from_debt", "convert_to_debt", "update_apr"]
