"""Service module exports."""

from . import (
    debt_conversion,
    debt_detection,
    interest,
    interest_posting,
    interest_schedule,
)

__all__ = [
    "debt_conversion",
    "debt_detection",
    "interest",
    "interest_posting",
    "interest_schedule",
]
