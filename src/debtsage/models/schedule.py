"""Recurring schedules and their next-due dates."""

from __future__ import annotations

from datetime import date
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class Schedule(SQLModel, table=True):
    """A recurring obligation backed by a rule; fired by the external executor."""

    __tablename__: ClassVar[str] = "schedule"

    id: Optional[int] = Field(default=None, primary_key=True)
    rule_id: int = Field(foreign_key="rule.id", nullable=False, index=True)
    name: str = Field(default="", max_length=128)
    active: bool = Field(default=True, nullable=False)
    completed: bool = Field(default=False, nullable=False)
    posts_transaction: bool = Field(default=False, nullable=False)


class ScheduleNextDate(SQLModel, table=True):
    """Next due date for a schedule. Timestamps are epoch milliseconds."""

    __tablename__: ClassVar[str] = "schedule_next_date"

    id: Optional[int] = Field(default=None, primary_key=True)
    schedule_id: int = Field(foreign_key="schedule.id", nullable=False, unique=True)
    local_next_date: date = Field(nullable=False)
    local_next_date_ts: int = Field(nullable=False)
    base_next_date: date = Field(nullable=False)
    base_next_date_ts: int = Field(nullable=False)
