"""Interest formulas and posting-date arithmetic for debt accounts.

Every formula returns the interest for a single one-month period. Amounts are
integer cents; APRs are percentages (``18.5`` means 18.5% per year).
"""

from __future__ import annotations

import calendar
import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from ..constants.debt import (
    COMPOUND_ANNUALLY,
    COMPOUND_DAILY,
    COMPOUND_MONTHLY,
    INTEREST_SCHEMES,
    SIMPLE,
)

DAYS_PER_YEAR = 365
DAYS_PER_MONTH = 30  # fixed 30/365 approximation for daily compounding

DateLike = Union[date, str]


def normalize_scheme(interest_scheme: Optional[str]) -> str:
    """Return a known scheme, treating anything unrecognized as simple interest."""

    if interest_scheme in INTEREST_SCHEMES:
        return interest_scheme  # type: ignore[return-value]
    return SIMPLE


def _round_half_up(value: float, places: int = 0) -> Decimal:
    """Round half away from zero (``Decimal`` ROUND_HALF_UP semantics)."""

    exponent = Decimal(1).scaleb(-places)
    return Decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def calculate_interest(
    balance: float,
    apr: float,
    interest_scheme: Optional[str],
    compounding_frequency: Optional[str] = None,
) -> int:
    """Return one month of interest on ``balance`` in whole cents.

    The balance sign is ignored; callers decide the sign when posting.
    ``compounding_frequency`` is informational only, the scheme picks the formula.
    """

    principal = abs(balance)
    if principal == 0 or apr == 0:
        return 0

    rate = apr / 100
    scheme = normalize_scheme(interest_scheme)

    if scheme == COMPOUND_DAILY:
        daily_rate = rate / DAYS_PER_YEAR
        interest = principal * math.pow(1 + daily_rate, DAYS_PER_MONTH) - principal
    elif scheme == COMPOUND_ANNUALLY:
        interest = principal * math.pow(1 + rate, 1 / 12) - principal
    else:
        # simple and compound_monthly agree over a single month
        interest = principal * rate / 12

    return int(_round_half_up(interest))


def calculate_apr_from_interest(
    interest_charged: float,
    principal: float,
    interest_scheme: Optional[str],
) -> Optional[float]:
    """Estimate the APR implied by one month's interest charge.

    This assumes a single uniform one-month period. It cannot reproduce
    amortized payments, average-daily-balance methods, grace periods or
    fee-inclusive bank figures, so the result is an estimate only. Returns
    ``None`` when either input is zero or the math leaves its domain.
    """

    if principal == 0 or interest_charged == 0:
        return None

    ratio = abs(interest_charged) / abs(principal)
    scheme = normalize_scheme(interest_scheme)

    try:
        if scheme == COMPOUND_DAILY:
            # I = P * ((1 + r/365) ** 30 - 1)
            daily_rate = math.pow(1 + ratio, 1 / DAYS_PER_MONTH) - 1
            rate = daily_rate * DAYS_PER_YEAR
        elif scheme == COMPOUND_ANNUALLY:
            # I = P * ((1 + r) ** (1/12) - 1)
            rate = math.pow(1 + ratio, 12) - 1
        else:
            # I = P * r / 12
            rate = ratio * 12

        if not math.isfinite(rate):
            return None
        return float(_round_half_up(rate * 100, 2))
    except (ArithmeticError, ValueError):
        return None


def _coerce_date(value: Optional[DateLike]) -> date:
    if value is None:
        return date.today()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def get_next_interest_date(
    interest_posting_day: Optional[int], from_date: Optional[DateLike] = None
) -> date:
    """Return the posting date one calendar month after ``from_date``.

    ``None`` (or ``0``, the storage convention) posts on the last day of that
    month. A specific day is clamped to the month's length, so the 31st becomes
    the 29th in a leap-year February rather than spilling into March.
    """

    if interest_posting_day is not None and not 0 <= interest_posting_day <= 31:
        raise ValueError("Interest posting day must be between 1 and 31")

    current = _coerce_date(from_date)
    month = current.month + 1
    year = current.year + (month - 1) // 12
    month = ((month - 1) % 12) + 1
    last_day = calendar.monthrange(year, month)[1]

    if not interest_posting_day:
        return date(year, month, last_day)
    return date(year, month, min(interest_posting_day, last_day))


__all__ = [
    "calculate_interest",
    "calculate_apr_from_interest",
    "get_next_interest_date",
    "normalize_scheme",
]
