"""Domain-specific exceptions."""


class DebtSageError(Exception):
    """Base exception for the debt engine."""


class NoInterestToPostError(DebtSageError):
    """Computed interest is zero (zero balance or zero APR); nothing was written."""


class AccountNotFoundError(DebtSageError, LookupError):
    """Account does not exist or has been tombstoned."""


class ScheduleNotFoundError(DebtSageError, LookupError):
    """Account has no usable interest schedule."""
