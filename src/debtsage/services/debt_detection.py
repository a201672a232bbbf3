"""Heuristic detection of accounts that are probably loans or credit lines.

Scoring is a fixed-weight point system: every entry in ``SCORING_RULES`` is
evaluated independently against an account's signals and contributes its weight
(plus a human-readable reason) when its predicate holds. Accounts with a
non-negative balance are never candidates.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..constants.debt import (
    AUTO_LOAN,
    AUTO_LOAN_KEYWORDS,
    CREDIT_CARD,
    CREDIT_CARD_KEYWORDS,
    DEBT_CATEGORY_KEYWORDS,
    DEBT_NAME_KEYWORDS,
    INTEREST_KEYWORDS,
    LINE_OF_CREDIT,
    LINE_OF_CREDIT_KEYWORDS,
    MORTGAGE,
    MORTGAGE_KEYWORDS,
    PERSONAL_LOAN,
    STUDENT_LOAN,
    STUDENT_LOAN_KEYWORDS,
)
from ..domain.repositories import AccountRepository, TransactionRepository
from ..models.account import Account
from ..models.transaction import Transaction

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 12
MIN_PATTERN_SAMPLES = 3
MIN_APR_SAMPLES = 3
MIN_CANDIDATE_SCORE = 40
HIGH_CONFIDENCE_SCORE = 70
MEDIUM_CONFIDENCE_SCORE = 50

SIGNIFICANT_BALANCE_CENTS = -100_000  # -$1,000
NEGATIVE_BALANCE_CENTS = -10_000  # -$100
MORTGAGE_BALANCE_CENTS = -10_000_000  # -$100,000

BIWEEKLY_MAX_GAP_DAYS = 18
MONTHLY_MAX_GAP_DAYS = 35

PLAUSIBLE_APR_RANGE = (0.1, 50.0)


@dataclass(frozen=True, slots=True)
class PaymentPattern:
    """Summary of the positive (payment) transactions on an account."""

    account_id: int
    average_payment: float
    frequency: str  # monthly | biweekly | irregular
    consistency: float  # 0..1, 1 means identical amounts
    payment_count: int


@dataclass(frozen=True, slots=True)
class InterestSignal:
    """Interest-looking charges found on an account."""

    count: int
    estimated_apr: Optional[float] = None

    @property
    def has_interest(self) -> bool:
        return self.count > 0


@dataclass(frozen=True, slots=True)
class AccountSignals:
    """Everything the scoring rules look at for one account."""

    account: Account
    balance: int
    name_matches_debt: bool
    pattern: PaymentPattern
    interest: InterestSignal
    has_debt_category: bool


@dataclass(frozen=True, slots=True)
class ScoringRule:
    """One weighted, independently evaluated scoring criterion."""

    name: str
    weight: int
    applies: Callable[[AccountSignals], bool]
    reason: Callable[[AccountSignals], str]


@dataclass(frozen=True, slots=True)
class DebtCandidate:
    """An account the detector believes is really a debt account."""

    account_id: int
    account_name: str
    balance: int
    currently_off_budget: bool
    confidence: str  # high | medium | low
    score: int
    reasons: tuple[str, ...]
    suggested_debt_type: str
    detected_apr: Optional[float] = None


def format_cents(amount: int) -> str:
    """Render a cent amount as an absolute dollar string, e.g. ``$1,234.50``."""

    return f"${abs(amount) / 100:,.2f}"


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def _has_steady_payments(signals: AccountSignals, threshold: float) -> bool:
    pattern = signals.pattern
    return (
        pattern.payment_count >= MIN_PATTERN_SAMPLES
        and pattern.frequency == "monthly"
        and pattern.consistency > threshold
    )


SCORING_RULES: tuple[ScoringRule, ...] = (
    ScoringRule(
        name="significant_balance",
        weight=30,
        applies=lambda s: s.balance < SIGNIFICANT_BALANCE_CENTS,
        reason=lambda s: f"Significant negative balance: {format_cents(s.balance)}",
    ),
    ScoringRule(
        name="negative_balance",
        weight=15,
        applies=lambda s: SIGNIFICANT_BALANCE_CENTS <= s.balance < NEGATIVE_BALANCE_CENTS,
        reason=lambda s: f"Negative balance: {format_cents(s.balance)}",
    ),
    ScoringRule(
        name="debt_name",
        weight=25,
        applies=lambda s: s.name_matches_debt,
        reason=lambda s: f'Account name suggests debt: "{s.account.name}"',
    ),
    ScoringRule(
        name="off_budget",
        weight=10,
        applies=lambda s: bool(s.account.offbudget),
        reason=lambda s: "Currently off-budget",
    ),
    ScoringRule(
        name="off_budget_debt_name",
        weight=15,
        applies=lambda s: bool(s.account.offbudget) and s.name_matches_debt,
        reason=lambda s: "Off-budget account with debt-related name",
    ),
    ScoringRule(
        name="regular_monthly_payments",
        weight=20,
        applies=lambda s: _has_steady_payments(s, 0.8),
        reason=lambda s: f"Regular monthly payments (~{format_cents(round(s.pattern.average_payment))})",
    ),
    ScoringRule(
        name="semi_regular_payments",
        weight=10,
        applies=lambda s: _has_steady_payments(s, 0.6) and not _has_steady_payments(s, 0.8),
        reason=lambda s: f"Semi-regular payments ({s.pattern.payment_count} found)",
    ),
    ScoringRule(
        name="interest_charges",
        weight=25,
        applies=lambda s: s.interest.has_interest,
        reason=lambda s: f"Interest charges detected ({s.interest.count} transactions)",
    ),
    ScoringRule(
        name="estimated_apr",
        weight=0,
        applies=lambda s: s.interest.estimated_apr is not None,
        reason=lambda s: f"Estimated APR: {s.interest.estimated_apr:.2f}%",
    ),
    ScoringRule(
        name="debt_category",
        weight=15,
        applies=lambda s: s.has_debt_category,
        reason=lambda s: "Transactions categorized to debt-related categories",
    ),
)


def confidence_for(score: int) -> str:
    """Map a score onto the high/medium/low confidence tiers."""

    if score >= HIGH_CONFIDENCE_SCORE:
        return "high"
    if score >= MEDIUM_CONFIDENCE_SCORE:
        return "medium"
    return "low"


def analyze_payment_pattern(account_id: int, payments: Sequence[Transaction]) -> PaymentPattern:
    """Classify payment cadence and amount consistency.

    ``payments`` are positive transactions ordered newest first.
    """

    if len(payments) < 2:
        return PaymentPattern(
            account_id=account_id,
            average_payment=0.0,
            frequency="irregular",
            consistency=0.0,
            payment_count=len(payments),
        )

    gaps = [abs((newer.date - older.date).days) for newer, older in zip(payments, payments[1:])]
    average_gap = sum(gaps) / len(gaps)
    if average_gap < BIWEEKLY_MAX_GAP_DAYS:
        frequency = "biweekly"
    elif average_gap < MONTHLY_MAX_GAP_DAYS:
        frequency = "monthly"
    else:
        frequency = "irregular"

    amounts = [p.amount for p in payments]
    average = sum(amounts) / len(amounts)
    variance = sum((amount - average) ** 2 for amount in amounts) / len(amounts)
    std_dev = math.sqrt(variance)
    consistency = 1 - min(std_dev / average, 1) if average > 0 else 0.0

    return PaymentPattern(
        account_id=account_id,
        average_payment=average,
        frequency=frequency,
        consistency=consistency,
        payment_count=len(payments),
    )


def estimate_apr(charges: Sequence[Transaction], balance: int) -> Optional[float]:
    """Annualize the average interest charge against the current balance.

    Implausible results (outside 0.1%..50%) are discarded.
    """

    if len(charges) < MIN_APR_SAMPLES or balance == 0:
        return None

    average_interest = abs(sum(c.amount for c in charges) / len(charges))
    if average_interest == 0:
        return None

    apr = average_interest / abs(balance) * 12 * 100
    low, high = PLAUSIBLE_APR_RANGE
    if not low <= apr <= high:
        return None
    return round(apr, 2)


def suggest_debt_type(account_name: str, balance: int, pattern: PaymentPattern) -> str:
    """Guess the debt type from the account name, in priority order."""

    if _contains_any(account_name, CREDIT_CARD_KEYWORDS):
        return CREDIT_CARD
    if _contains_any(account_name, MORTGAGE_KEYWORDS) or (
        balance < MORTGAGE_BALANCE_CENTS and pattern.frequency == "monthly"
    ):
        return MORTGAGE
    if _contains_any(account_name, AUTO_LOAN_KEYWORDS):
        return AUTO_LOAN
    if _contains_any(account_name, STUDENT_LOAN_KEYWORDS):
        return STUDENT_LOAN
    if _contains_any(account_name, LINE_OF_CREDIT_KEYWORDS):
        return LINE_OF_CREDIT
    return PERSONAL_LOAN


class DebtDetector:
    """Scores ledger accounts and returns likely debt candidates. Read-only."""

    def __init__(
        self,
        account_repo: AccountRepository,
        transaction_repo: TransactionRepository,
        *,
        rules: Sequence[ScoringRule] = SCORING_RULES,
        min_score: int = MIN_CANDIDATE_SCORE,
    ):
        self.account_repo = account_repo
        self.transaction_repo = transaction_repo
        self.rules = tuple(rules)
        self.min_score = min_score

    def collect_signals(self, account: Account, balance: int) -> AccountSignals:
        """Gather the per-account facts the scoring rules evaluate."""

        payments = self.transaction_repo.recent_payments(account.id, limit=HISTORY_WINDOW)
        charges = self.transaction_repo.recent_interest_charges(
            account.id, keywords=INTEREST_KEYWORDS, limit=HISTORY_WINDOW
        )
        return AccountSignals(
            account=account,
            balance=balance,
            name_matches_debt=_contains_any(account.name, DEBT_NAME_KEYWORDS),
            pattern=analyze_payment_pattern(account.id, payments),
            interest=InterestSignal(count=len(charges), estimated_apr=estimate_apr(charges, balance)),
            has_debt_category=self.transaction_repo.has_category_matching(
                account.id, keywords=DEBT_CATEGORY_KEYWORDS
            ),
        )

    def score(self, signals: AccountSignals) -> tuple[int, list[str]]:
        """Apply every rule and return (score, reasons)."""

        score = 0
        reasons: list[str] = []
        for rule in self.rules:
            if rule.applies(signals):
                score += rule.weight
                reasons.append(rule.reason(signals))
        return score, reasons

    def evaluate(self, account: Account) -> Optional[DebtCandidate]:
        """Return a candidate for ``account`` or None when it does not qualify."""

        balance = self.account_repo.get_balance(account.id)
        if balance >= 0:
            return None

        signals = self.collect_signals(account, balance)
        score, reasons = self.score(signals)
        logger.debug(
            "Scored account %s",
            account.name,
            extra={"account_id": account.id, "score": score, "balance": balance},
        )
        if score < self.min_score:
            return None

        return DebtCandidate(
            account_id=account.id,
            account_name=account.name,
            balance=balance,
            currently_off_budget=bool(account.offbudget),
            confidence=confidence_for(score),
            score=score,
            reasons=tuple(reasons),
            suggested_debt_type=suggest_debt_type(account.name, balance, signals.pattern),
            detected_apr=signals.interest.estimated_apr,
        )

    def detect(self) -> list[DebtCandidate]:
        """Evaluate every open non-debt account; highest score first."""

        candidates = []
        accounts = self.account_repo.list_open_non_debt()
        for account in accounts:
            candidate = self.evaluate(account)
            if candidate is not None:
                candidates.append(candidate)

        # sorted() is stable, so equal scores keep encounter order
        candidates = sorted(candidates, key=lambda c: c.score, reverse=True)
        logger.info(
            "Debt detection complete: %d candidates from %d accounts",
            len(candidates),
            len(accounts),
        )
        return candidates


def detect_debt_accounts(
    *, account_repo: AccountRepository, transaction_repo: TransactionRepository
) -> list[DebtCandidate]:
    """Return likely debt accounts, ordered by descending score."""

    return DebtDetector(account_repo, transaction_repo).detect()


__all__ = [
    "DebtCandidate",
    "DebtDetector",
    "PaymentPattern",
    "SCORING_RULES",
    "ScoringRule",
    "analyze_payment_pattern",
    "confidence_for",
    "detect_debt_accounts",
    "estimate_apr",
    "suggest_debt_type",
]
