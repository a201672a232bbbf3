"""DebtSage: debt detection and interest automation for a personal ledger."""

from __future__ import annotations

from .config import BaseConfig, DevConfig
from .infra.database import bootstrap_database

__all__ = ["BaseConfig", "DevConfig", "bootstrap_database"]
