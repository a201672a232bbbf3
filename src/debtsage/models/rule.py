"""Rule, condition and action rows consumed by the external rule engine."""

from __future__ import annotations

from typing import ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel


class Rule(SQLModel, table=True):
    """A rule; ``stage`` is None for rules that are not staged (pre/post)."""

    __tablename__: ClassVar[str] = "rule"

    id: Optional[int] = Field(default=None, primary_key=True)
    stage: Optional[str] = Field(default=None, max_length=16)
    conditions_op: str = Field(default="and", max_length=8)

    conditions: list["RuleCondition"] = Relationship(
        back_populates="rule",
        sa_relationship=relationship("RuleCondition", back_populates="rule"),
    )
    actions: list["RuleAction"] = Relationship(
        back_populates="rule",
        sa_relationship=relationship("RuleAction", back_populates="rule"),
    )


class RuleCondition(SQLModel, table=True):
    """A single ``field op value`` match clause."""

    __tablename__: ClassVar[str] = "rule_condition"

    id: Optional[int] = Field(default=None, primary_key=True)
    rule_id: int = Field(foreign_key="rule.id", nullable=False, index=True)
    field: str = Field(nullable=False, max_length=64)
    op: str = Field(nullable=False, max_length=16)
    value: str = Field(nullable=False, max_length=255)

    rule: "Rule" = Relationship(
        back_populates="conditions",
        sa_relationship=relationship("Rule", back_populates="conditions"),
    )


class RuleAction(SQLModel, table=True):
    """A single ``set field = value`` action; values are stored as text."""

    __tablename__: ClassVar[str] = "rule_action"

    id: Optional[int] = Field(default=None, primary_key=True)
    rule_id: int = Field(foreign_key="rule.id", nullable=False, index=True)
    field: str = Field(nullable=False, max_length=64)
    op: str = Field(nullable=False, max_length=16)
    value: str = Field(nullable=False, max_length=1024)

    rule: "Rule" = Relationship(
        back_populates="actions",
        sa_relationship=relationship("Rule", back_populates="actions"),
    )
