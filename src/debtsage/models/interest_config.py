"""Typed interest configuration stored on an interest schedule's rule action."""

from __future__ import annotations

import json
import logging
from typing import ClassVar, Optional

from pydantic import ValidationError, field_validator
from sqlmodel import Field, SQLModel

from ..constants.debt import (
    COMPOUNDING_FREQUENCIES,
    DEFAULT_COMPOUNDING_FREQUENCY,
    INTEREST_SCHEMES,
    SIMPLE,
)

logger = logging.getLogger(__name__)


class InterestConfig(SQLModel):
    """Versioned payload the schedule executor needs to compute a dynamic amount.

    Serialized into the ``debt_interest_config`` rule action. Readers must go
    through :meth:`from_json`, which never raises.
    """

    CURRENT_VERSION: ClassVar[int] = 1

    version: int = Field(default=1)
    apr: float = Field(ge=0)
    interest_scheme: str = Field(default=SIMPLE)
    compounding_frequency: str = Field(default=DEFAULT_COMPOUNDING_FREQUENCY)

    @field_validator("interest_scheme", mode="before")
    @classmethod
    def _normalize_scheme(cls, value: object) -> str:
        # Loosely-typed storage: unknown schemes degrade to simple interest.
        if isinstance(value, str) and value in INTEREST_SCHEMES:
            return value
        return SIMPLE

    @field_validator("compounding_frequency", mode="before")
    @classmethod
    def _normalize_frequency(cls, value: object) -> str:
        if isinstance(value, str) and value in COMPOUNDING_FREQUENCIES:
            return value
        return DEFAULT_COMPOUNDING_FREQUENCY

    def to_json(self) -> str:
        """Return the canonical JSON encoding."""

        return json.dumps(
            {
                "version": self.version,
                "apr": self.apr,
                "interestScheme": self.interest_scheme,
                "compoundingFrequency": self.compounding_frequency,
            },
            sort_keys=True,
        )

    @classmethod
    def from_json(cls, raw: Optional[str]) -> Optional["InterestConfig"]:
        """Decode a stored payload, returning None when it is unusable."""

        if not raw:
            return None
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Interest config is not valid JSON", extra={"raw": raw})
            return None
        if not isinstance(data, dict):
            return None

        # Payloads written before versioning carry no "version" key.
        version = data.get("version", cls.CURRENT_VERSION)
        if version != cls.CURRENT_VERSION:
            logger.warning("Unsupported interest config version", extra={"version": version})
            return None

        try:
            return cls.model_validate(
                {
                    "version": version,
                    "apr": data.get("apr"),
                    "interest_scheme": data.get("interestScheme"),
                    "compounding_frequency": data.get("compoundingFrequency"),
                }
            )
        except ValidationError:
            logger.warning("Interest config failed validation", extra={"raw": raw})
            return None
