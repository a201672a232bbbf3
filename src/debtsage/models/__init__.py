"""SQLModel table exports."""

from .account import Account
from .category import Category
from .interest_config import InterestConfig
from .payee import Payee
from .rule import Rule, RuleAction, RuleCondition
from .schedule import Schedule, ScheduleNextDate
from .transaction import Transaction

__all__ = [
    "Account",
    "Category",
    "InterestConfig",
    "Payee",
    "Rule",
    "RuleAction",
    "RuleCondition",
    "Schedule",
    "ScheduleNextDate",
    "Transaction",
]
