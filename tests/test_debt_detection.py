"""Debt candidate detection against a real SQLite ledger."""

from __future__ import annotations

from datetime import date

import pytest

from debtsage.infra.repositories import SQLModelAccountRepository, SQLModelTransactionRepository
from debtsage.models import Account, Transaction
from debtsage.services.debt_detection import (
    DebtDetector,
    PaymentPattern,
    ScoringRule,
    analyze_payment_pattern,
    confidence_for,
    detect_debt_accounts,
    estimate_apr,
    format_cents,
    suggest_debt_type,
)


@pytest.fixture
def detect(session_factory):
    def _detect():
        return detect_debt_accounts(
            account_repo=SQLModelAccountRepository(session_factory),
            transaction_repo=SQLModelTransactionRepository(session_factory),
        )

    return _detect


class TestDetectDebtAccounts:
    def test_empty_ledger(self, detect):
        assert detect() == []

    def test_off_budget_credit_card(self, detect, account_factory, transaction_factory):
        card = account_factory("Chase Visa", offbudget=True)
        transaction_factory(card, -250000)

        [candidate] = detect()

        assert candidate.account_id == card.id
        assert candidate.score == 80
        assert candidate.confidence == "high"
        assert candidate.suggested_debt_type == "credit_card"
        assert candidate.currently_off_budget is True
        assert candidate.balance == -250000
        assert candidate.detected_apr is None
        assert candidate.reasons == (
            "Significant negative balance: $2,500.00",
            'Account name suggests debt: "Chase Visa"',
            "Currently off-budget",
            "Off-budget account with debt-related name",
        )

    def test_interest_charges_and_estimated_apr(
        self, detect, account_factory, transaction_factory, payee_factory
    ):
        account = account_factory("Family Note")
        interest = payee_factory("Interest Charge")
        transaction_factory(account, -1_200_000, "2023-12-01")
        for on in ("2024-01-31", "2024-02-29", "2024-03-31"):
            transaction_factory(account, -15000, on, payee=interest)

        [candidate] = detect()

        # 30 (balance) + 25 (interest); the APR reason carries no weight
        assert candidate.score == 55
        assert candidate.confidence == "medium"
        assert candidate.detected_apr == 14.46
        assert "Interest charges detected (3 transactions)" in candidate.reasons
        assert "Estimated APR: 14.46%" in candidate.reasons
        assert candidate.suggested_debt_type == "personal_loan"

    def test_interest_matched_through_notes(self, detect, account_factory, transaction_factory):
        account = account_factory("Family Note")
        transaction_factory(account, -1_200_000, "2023-12-01")
        transaction_factory(account, -900, "2024-01-31", notes="Monthly FINANCE CHARGE")

        [candidate] = detect()

        assert "Interest charges detected (1 transactions)" in candidate.reasons
        assert candidate.detected_apr is None

    def test_regular_monthly_payments(self, detect, account_factory, transaction_factory):
        account = account_factory("Dealer Note")
        transaction_factory(account, -900000, "2023-12-01")
        for on in ("2024-01-15", "2024-02-15", "2024-03-15"):
            transaction_factory(account, 35000, on)

        [candidate] = detect()

        assert candidate.score == 50
        assert candidate.confidence == "medium"
        assert "Regular monthly payments (~$350.00)" in candidate.reasons

    def test_semi_regular_payments_score_instead_of_regular(
        self, detect, account_factory, transaction_factory
    ):
        account = account_factory("Student Loan")
        transaction_factory(account, -1_500_000, "2023-12-01")
        for amount, on in ((30000, "2024-01-15"), (40000, "2024-02-15"), (50000, "2024-03-15")):
            transaction_factory(account, amount, on)

        [candidate] = detect()

        # 30 (balance) + 25 (name) + 10 (semi-regular, consistency ~0.80)
        assert candidate.score == 65
        assert "Semi-regular payments (3 found)" in candidate.reasons
        assert not any(r.startswith("Regular monthly") for r in candidate.reasons)
        assert candidate.suggested_debt_type == "student_loan"

    def test_debt_category(self, detect, account_factory, category_factory, transaction_factory):
        account = account_factory("Misc")
        category = category_factory("Loan Payments")
        transaction_factory(account, -150000, category=category)

        [candidate] = detect()

        assert candidate.score == 45
        assert candidate.confidence == "low"
        assert "Transactions categorized to debt-related categories" in candidate.reasons

    def test_tombstoned_category_is_ignored(
        self, detect, account_factory, category_factory, transaction_factory
    ):
        account = account_factory("Misc")
        category = category_factory("Loan Payments", tombstone=True)
        transaction_factory(account, -150000, category=category)

        assert detect() == []

    def test_ranked_by_descending_score(
        self, detect, account_factory, transaction_factory, payee_factory, category_factory
    ):
        misc = account_factory("Misc")
        transaction_factory(misc, -150000, category=category_factory("Mortgage"))
        card = account_factory("Chase Visa", offbudget=True)
        transaction_factory(card, -250000)
        note = account_factory("Family Note")
        transaction_factory(note, -1_200_000)
        transaction_factory(note, -15000, payee=payee_factory("Interest Charge"))

        candidates = detect()

        assert [c.account_name for c in candidates] == ["Chase Visa", "Family Note", "Misc"]
        scores = [c.score for c in candidates]
        assert scores == sorted(scores, reverse=True)

    def test_equal_scores_keep_account_order(self, detect, account_factory, transaction_factory):
        first = account_factory("Alpha Visa")
        second = account_factory("Beta Visa")
        transaction_factory(second, -250000)
        transaction_factory(first, -250000)

        candidates = detect()

        assert [c.account_id for c in candidates] == [first.id, second.id]
        assert {c.score for c in candidates} == {55}

    def test_ineligible_accounts_are_skipped(self, detect, account_factory, transaction_factory):
        for account in (
            account_factory("Closed Visa", closed=True),
            account_factory("Deleted Visa", tombstone=True),
            account_factory("Tracked Visa", is_debt=True),
        ):
            transaction_factory(account, -500000)

        assert detect() == []

    def test_non_negative_balance_is_never_a_candidate(
        self, detect, account_factory, transaction_factory
    ):
        card = account_factory("Mortgage Visa Loan", offbudget=True)
        transaction_factory(card, 0)
        savings = account_factory("Auto Loan Savings")
        transaction_factory(savings, 500000)

        assert detect() == []

    def test_tombstoned_transactions_are_excluded(
        self, detect, account_factory, transaction_factory
    ):
        account = account_factory("Ghost")
        transaction_factory(account, -500000, tombstone=True)
        transaction_factory(account, -5000)

        assert detect() == []

    def test_small_negative_balance_below_threshold(
        self, detect, account_factory, transaction_factory
    ):
        account = account_factory("Checking")
        transaction_factory(account, -50000)

        assert detect() == []

    def test_large_balance_with_monthly_payments_suggests_mortgage(
        self, detect, account_factory, transaction_factory
    ):
        account = account_factory("House")
        transaction_factory(account, -20_000_000, "2023-12-01")
        for on in ("2024-01-01", "2024-02-01", "2024-03-01"):
            transaction_factory(account, 150000, on)

        [candidate] = detect()

        assert candidate.score == 50
        assert candidate.suggested_debt_type == "mortgage"

    def test_detection_is_read_only(self, detect, account_factory, transaction_factory, db_session):
        card = account_factory("Chase Visa", offbudget=True)
        transaction_factory(card, -250000)

        detect()

        db_session.expire_all()
        stored = db_session.get(Account, card.id)
        assert stored.is_debt is False
        assert stored.offbudget is True


def _payment(amount: int, on: str) -> Transaction:
    return Transaction(account_id=1, amount=amount, date=date.fromisoformat(on))


class TestAnalyzePaymentPattern:
    def test_fewer_than_two_payments_is_irregular(self):
        pattern = analyze_payment_pattern(1, [_payment(10000, "2024-01-01")])
        assert pattern.frequency == "irregular"
        assert pattern.consistency == 0.0
        assert pattern.payment_count == 1

    def test_monthly_identical_amounts(self):
        payments = [_payment(35000, d) for d in ("2024-03-15", "2024-02-15", "2024-01-15")]
        pattern = analyze_payment_pattern(1, payments)
        assert pattern.frequency == "monthly"
        assert pattern.consistency == 1.0
        assert pattern.average_payment == 35000

    def test_biweekly(self):
        payments = [_payment(20000, d) for d in ("2024-01-29", "2024-01-15", "2024-01-01")]
        assert analyze_payment_pattern(1, payments).frequency == "biweekly"

    def test_sparse_payments_are_irregular(self):
        payments = [_payment(20000, d) for d in ("2024-06-01", "2024-03-01", "2024-01-01")]
        assert analyze_payment_pattern(1, payments).frequency == "irregular"

    def test_consistency_uses_population_deviation(self):
        payments = [
            _payment(50000, "2024-03-15"),
            _payment(40000, "2024-02-15"),
            _payment(30000, "2024-01-15"),
        ]
        assert analyze_payment_pattern(1, payments).consistency == pytest.approx(0.7959, abs=1e-4)

    def test_wild_amounts_floor_at_zero(self):
        payments = [_payment(1, "2024-02-15"), _payment(1_000_000, "2024-01-15")]
        assert analyze_payment_pattern(1, payments).consistency >= 0.0


class TestEstimateApr:
    def test_needs_three_samples(self):
        charges = [_payment(-1500, "2024-01-31"), _payment(-1500, "2024-02-29")]
        assert estimate_apr(charges, -100000) is None

    def test_annualizes_average_charge(self):
        charges = [_payment(-1500, d) for d in ("2024-01-31", "2024-02-29", "2024-03-31")]
        assert estimate_apr(charges, -100000) == 18.0

    def test_implausible_rate_discarded(self):
        charges = [_payment(-90000, d) for d in ("2024-01-31", "2024-02-29", "2024-03-31")]
        assert estimate_apr(charges, -100000) is None

    def test_zero_balance(self):
        charges = [_payment(-1500, d) for d in ("2024-01-31", "2024-02-29", "2024-03-31")]
        assert estimate_apr(charges, 0) is None


@pytest.mark.parametrize(
    "name, balance, frequency, expected",
    [
        ("Amex Gold", -100000, "irregular", "credit_card"),
        ("Visa Mortgage", -100000, "irregular", "credit_card"),
        ("Home Loan", -100000, "irregular", "mortgage"),
        ("Big One", -20_000_000, "monthly", "mortgage"),
        ("Big One", -20_000_000, "irregular", "personal_loan"),
        ("Car Loan", -100000, "monthly", "auto_loan"),
        ("Tuition", -100000, "monthly", "student_loan"),
        ("HELOC", -100000, "monthly", "line_of_credit"),
        ("Uncle Bob", -100000, "monthly", "personal_loan"),
    ],
)
def test_suggest_debt_type(name, balance, frequency, expected):
    pattern = PaymentPattern(
        account_id=1, average_payment=0.0, frequency=frequency, consistency=0.0, payment_count=0
    )
    assert suggest_debt_type(name, balance, pattern) == expected


@pytest.mark.parametrize(
    "score, tier", [(100, "high"), (70, "high"), (69, "medium"), (50, "medium"), (49, "low"), (40, "low")]
)
def test_confidence_for(score, tier):
    assert confidence_for(score) == tier


def test_format_cents():
    assert format_cents(-123450) == "$1,234.50"
    assert format_cents(5) == "$0.05"


class _FakeAccounts:
    def __init__(self, accounts, balances):
        self.accounts = accounts
        self.balances = balances

    def list_open_non_debt(self):
        return list(self.accounts)

    def get_balance(self, account_id):
        return self.balances[account_id]


class _FakeTransactions:
    def recent_payments(self, account_id, *, limit=12):
        return []

    def recent_interest_charges(self, account_id, *, keywords, limit=12):
        return []

    def has_category_matching(self, account_id, *, keywords):
        return False


def test_detector_accepts_custom_rules_and_threshold():
    accounts = [Account(id=1, name="Anything"), Account(id=2, name="Other")]
    rule = ScoringRule(
        name="any_debt",
        weight=5,
        applies=lambda s: s.balance < 0,
        reason=lambda s: "Owes money",
    )
    detector = DebtDetector(
        _FakeAccounts(accounts, {1: -1, 2: 10}), _FakeTransactions(), rules=[rule], min_score=5
    )

    [candidate] = detector.detect()

    assert candidate.account_id == 1
    assert candidate.score == 5
    assert candidate.reasons == ("Owes money",)
    assert candidate.confidence == "low"
