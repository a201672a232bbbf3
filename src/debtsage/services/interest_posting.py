"""Post a single month of interest to a debt account."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlmodel import Session

from ..config import BaseConfig
from ..exceptions import NoInterestToPostError, ScheduleNotFoundError
from ..infra.repositories.payee import upsert_payee
from ..infra.repositories.transaction import account_balance
from ..models.transaction import Transaction
from .interest import calculate_interest
from .interest_schedule import get_interest_schedule

logger = logging.getLogger(__name__)


def post_interest_transaction(
    session: Session,
    *,
    account_id: int,
    apr: float,
    interest_scheme: str,
    compounding_frequency: str,
    interest_category_id: Optional[int],
    on_date: Optional[date] = None,
    payee_name: str = BaseConfig.DEFAULT_INTEREST_PAYEE,
) -> int:
    """Charge one month of interest on the live balance; returns the transaction id.

    Raises NoInterestToPostError, writing nothing, when the computed interest is
    zero (zero balance or zero APR).
    """

    balance = account_balance(session, account_id)
    interest = calculate_interest(balance, apr, interest_scheme, compounding_frequency)
    if interest == 0:
        raise NoInterestToPostError("No interest to post (balance is zero or APR is zero)")

    payee = upsert_payee(session, payee_name)
    transaction = Transaction(
        account_id=account_id,
        amount=-interest,  # interest always deepens the debt
        date=on_date or date.today(),
        payee_id=payee.id,
        category_id=interest_category_id,
        cleared=True,
        notes=f"Interest charge ({apr:g}% APR, {interest_scheme})",
    )
    session.add(transaction)
    session.flush()

    logger.info(
        "Posted interest",
        extra={"account_id": account_id, "amount": -interest, "transaction_id": transaction.id},
    )
    return transaction.id


def post_scheduled_interest(
    session: Session,
    *,
    account_id: int,
    on_date: Optional[date] = None,
    payee_name: str = BaseConfig.DEFAULT_INTEREST_PAYEE,
) -> int:
    """Post interest using the configuration stored on the account's schedule."""

    info = get_interest_schedule(session, account_id)
    if info is None or info.config is None:
        raise ScheduleNotFoundError(f"Account {account_id} has no usable interest schedule")

    return post_interest_transaction(
        session,
        account_id=account_id,
        apr=info.config.apr,
        interest_scheme=info.config.interest_scheme,
        compounding_frequency=info.config.compounding_frequency,
        interest_category_id=info.category_id,
        on_date=on_date,
        payee_name=payee_name,
    )


__all__ = ["post_interest_transaction", "post_scheduled_interest"]
