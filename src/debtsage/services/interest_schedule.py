"""Persisted "post interest" schedules for debt accounts.

An interest schedule is one rule with exactly one condition (``acct is <id>``)
and three actions (payee, category, ``debt_interest_config``), plus a schedule
row and its next-due date. The external schedule executor fires it; this module
only keeps the rows in sync with the account's configuration.

Callers must serialize mutations per account (one session per conversion).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import delete, func
from sqlmodel import Session, col, select

from ..config import BaseConfig
from ..constants.debt import ACCOUNT_CONDITION_FIELD, INTEREST_CONFIG_FIELD
from ..exceptions import AccountNotFoundError
from ..infra.repositories.payee import upsert_payee
from ..models.account import Account
from ..models.interest_config import InterestConfig
from ..models.rule import Rule, RuleAction, RuleCondition
from ..models.schedule import Schedule, ScheduleNextDate
from .interest import get_next_interest_date

logger = logging.getLogger(__name__)

PAYEE_FIELD = "payee"
CATEGORY_FIELD = "category"


@dataclass(frozen=True, slots=True)
class InterestScheduleInfo:
    """Read-back view of an account's interest schedule."""

    schedule_id: int
    rule_id: int
    config: Optional[InterestConfig]
    category_id: Optional[int]
    next_date: Optional[date]


def _now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def _find_action(session: Session, rule_id: int, field: str) -> Optional[RuleAction]:
    statement = (
        select(RuleAction)
        .where(RuleAction.rule_id == rule_id)
        .where(RuleAction.field == field)
        .order_by(RuleAction.id)  # type: ignore
    )
    return session.exec(statement).first()


def _set_action(session: Session, rule_id: int, field: str, value: str) -> RuleAction:
    """Rewrite the ``field`` action in place, creating it only when absent."""

    action = _find_action(session, rule_id, field)
    if action is None:
        action = RuleAction(rule_id=rule_id, field=field, op="set", value=value)
    else:
        action.value = value
    session.add(action)
    return action


def _set_next_date(session: Session, schedule_id: int, next_date: date) -> ScheduleNextDate:
    now = _now_ms()
    row = session.exec(
        select(ScheduleNextDate).where(ScheduleNextDate.schedule_id == schedule_id)
    ).first()
    if row is None:
        row = ScheduleNextDate(
            schedule_id=schedule_id,
            local_next_date=next_date,
            local_next_date_ts=now,
            base_next_date=next_date,
            base_next_date_ts=now,
        )
    else:
        row.local_next_date = next_date
        row.local_next_date_ts = now
        row.base_next_date = next_date
        row.base_next_date_ts = now
    session.add(row)
    return row


def find_interest_schedule(session: Session, account_id: int) -> Optional[Schedule]:
    """Return the non-staged interest schedule governing ``account_id``, if any."""

    statement = (
        select(Schedule)
        .join(Rule, Rule.id == Schedule.rule_id)  # type: ignore
        .join(RuleCondition, RuleCondition.rule_id == Rule.id)  # type: ignore
        .where(RuleCondition.field == ACCOUNT_CONDITION_FIELD)
        .where(RuleCondition.value == str(account_id))
        .where(col(Rule.stage).is_(None))
        .order_by(Schedule.id)  # type: ignore
    )
    for schedule in session.exec(statement).all():
        condition_count = session.exec(
            select(func.count())
            .select_from(RuleCondition)
            .where(RuleCondition.rule_id == schedule.rule_id)
        ).one()
        if condition_count != 1:
            continue
        if _find_action(session, schedule.rule_id, INTEREST_CONFIG_FIELD) is None:
            continue
        return schedule
    return None


def load_interest_config(session: Session, rule_id: int) -> Optional[InterestConfig]:
    """Decode the typed configuration stored on an interest rule."""

    action = _find_action(session, rule_id, INTEREST_CONFIG_FIELD)
    return InterestConfig.from_json(action.value) if action else None


def get_interest_schedule(session: Session, account_id: int) -> Optional[InterestScheduleInfo]:
    """Return the schedule, decoded config, category and next date for an account."""

    schedule = find_interest_schedule(session, account_id)
    if schedule is None:
        return None

    category_action = _find_action(session, schedule.rule_id, CATEGORY_FIELD)
    category_id = None
    if category_action is not None and category_action.value.isdigit():
        category_id = int(category_action.value)

    next_row = session.exec(
        select(ScheduleNextDate).where(ScheduleNextDate.schedule_id == schedule.id)
    ).first()

    return InterestScheduleInfo(
        schedule_id=schedule.id,
        rule_id=schedule.rule_id,
        config=load_interest_config(session, schedule.rule_id),
        category_id=category_id,
        next_date=next_row.local_next_date if next_row else None,
    )


def setup_interest_schedule(
    session: Session,
    *,
    account_id: int,
    apr: float,
    interest_scheme: str,
    compounding_frequency: str,
    interest_posting_day: Optional[int],
    interest_category_id: int,
    today: Optional[date] = None,
    payee_name: str = BaseConfig.DEFAULT_INTEREST_PAYEE,
) -> int:
    """Create or update the interest schedule for an account; returns its id.

    There is never more than one interest schedule per account: an existing one
    is updated in place.
    """

    config = InterestConfig(
        apr=apr, interest_scheme=interest_scheme, compounding_frequency=compounding_frequency
    )
    next_date = get_next_interest_date(interest_posting_day, today)

    existing = find_interest_schedule(session, account_id)
    if existing is not None:
        update_interest_schedule(
            session,
            schedule_id=existing.id,
            rule_id=existing.rule_id,
            apr=apr,
            interest_scheme=interest_scheme,
            compounding_frequency=compounding_frequency,
            interest_posting_day=interest_posting_day,
            interest_category_id=interest_category_id,
            today=today,
        )
        return existing.id

    account = session.get(Account, account_id)
    if account is None or account.tombstone:
        raise AccountNotFoundError(f"Account {account_id} not found")

    payee = upsert_payee(session, payee_name)

    rule = Rule(stage=None)
    session.add(rule)
    session.flush()

    session.add(
        RuleCondition(rule_id=rule.id, field=ACCOUNT_CONDITION_FIELD, op="is", value=str(account_id))
    )
    session.add(RuleAction(rule_id=rule.id, field=PAYEE_FIELD, op="set", value=str(payee.id)))
    session.add(
        RuleAction(rule_id=rule.id, field=CATEGORY_FIELD, op="set", value=str(interest_category_id))
    )
    session.add(
        RuleAction(rule_id=rule.id, field=INTEREST_CONFIG_FIELD, op="set", value=config.to_json())
    )

    schedule = Schedule(
        rule_id=rule.id,
        name=f"Interest for {account.name}",
        active=True,
        completed=False,
        posts_transaction=True,
    )
    session.add(schedule)
    session.flush()

    _set_next_date(session, schedule.id, next_date)
    session.flush()

    logger.info(
        "Created interest schedule",
        extra={"account_id": account_id, "schedule_id": schedule.id, "next_date": next_date},
    )
    return schedule.id


def update_interest_schedule(
    session: Session,
    *,
    schedule_id: int,
    rule_id: int,
    apr: float,
    interest_scheme: str,
    compounding_frequency: str,
    interest_posting_day: Optional[int],
    interest_category_id: int,
    today: Optional[date] = None,
) -> None:
    """Rewrite the config and category actions and the next due date in place."""

    config = InterestConfig(
        apr=apr, interest_scheme=interest_scheme, compounding_frequency=compounding_frequency
    )
    next_date = get_next_interest_date(interest_posting_day, today)

    _set_action(session, rule_id, INTEREST_CONFIG_FIELD, config.to_json())
    _set_action(session, rule_id, CATEGORY_FIELD, str(interest_category_id))
    _set_next_date(session, schedule_id, next_date)
    session.flush()

    logger.info(
        "Updated interest schedule",
        extra={"schedule_id": schedule_id, "apr": apr, "next_date": next_date},
    )


def delete_interest_schedule(session: Session, account_id: int) -> bool:
    """Remove an account's interest schedule; returns False when there was none."""

    schedule = find_interest_schedule(session, account_id)
    if schedule is None:
        return False

    schedule_id, rule_id = schedule.id, schedule.rule_id
    # Children before parents so no row is left pointing at a deleted one.
    session.execute(delete(ScheduleNextDate).where(ScheduleNextDate.schedule_id == schedule_id))
    session.execute(delete(Schedule).where(Schedule.id == schedule_id))
    session.execute(delete(RuleCondition).where(RuleCondition.rule_id == rule_id))
    session.execute(delete(RuleAction).where(RuleAction.rule_id == rule_id))
    session.execute(delete(Rule).where(Rule.id == rule_id))

    logger.info(
        "Deleted interest schedule",
        extra={"account_id": account_id, "schedule_id": schedule_id},
    )
    return True


__all__ = [
    "InterestScheduleInfo",
    "delete_interest_schedule",
    "find_interest_schedule",
    "get_interest_schedule",
    "load_interest_config",
    "setup_interest_schedule",
    "update_interest_schedule",
]
