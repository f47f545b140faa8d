"""ORM models for saved plans, progress, credits and feedback."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from .base import Base, TimestampMixin

JSONType = JSON


def _uuid() -> str:
    return str(uuid.uuid4())


class SavedPlanModel(TimestampMixin, Base):
    __tablename__ = "saved_plans"
    __table_args__ = (UniqueConstraint("user_id", "topic", name="uq_saved_plans_user_topic"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    topic: Mapped[str] = mapped_column(String(200), nullable=False)
    level: Mapped[str] = mapped_column(String(64), nullable=False)
    weeks: Mapped[int] = mapped_column(Integer, nullable=False)
    hours_per_week: Mapped[int] = mapped_column(Integer, nullable=False)
    plan_data: Mapped[dict] = mapped_column(JSONType, nullable=False)


class ResourceProgressModel(Base):
    __tablename__ = "resource_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "topic", "resource_id", name="uq_progress_user_topic_resource"),
        Index("ix_resource_progress_user_topic", "user_id", "topic"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    topic: Mapped[str] = mapped_column(String(200), nullable=False)
    resource_id: Mapped[int] = mapped_column(Integer, nullable=False)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )


class UserCreditsModel(TimestampMixin, Base):
    __tablename__ = "user_credits"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class CreditTransactionModel(Base):
    __tablename__ = "credit_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )


class PlanFeedbackModel(Base):
    __tablename__ = "plan_feedback"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    topic: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    level: Mapped[str] = mapped_column(String(64), nullable=False)
    weeks: Mapped[int] = mapped_column(Integer, nullable=False)
    hours_per_week: Mapped[int] = mapped_column(Integer, nullable=False)
    overall_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    resource_quality_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    progression_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    relevance_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    feedback_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    what_worked_well: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    what_needs_improvement: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total_resources: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    valid_resources: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    invalid_resources: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    resources_completed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    completion_percentage: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    user_session_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )


__all__ = [
    "CreditTransactionModel",
    "PlanFeedbackModel",
    "ResourceProgressModel",
    "SavedPlanModel",
    "UserCreditsModel",
]
