"""Saved plans, resource progress, credits and feedback tables.

Revision ID: 20261019_01_plan_persistence
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20261019_01_plan_persistence"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "saved_plans",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("topic", sa.String(length=200), nullable=False),
        sa.Column("level", sa.String(length=64), nullable=False),
        sa.Column("weeks", sa.Integer(), nullable=False),
        sa.Column("hours_per_week", sa.Integer(), nullable=False),
        sa.Column("plan_data", sa.JSON(), nullable=False),
        sa.UniqueConstraint("user_id", "topic", name="uq_saved_plans_user_topic"),
    )
    op.create_index("ix_saved_plans_user_id", "saved_plans", ["user_id"])

    op.create_table(
        "resource_progress",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("topic", sa.String(length=200), nullable=False),
        sa.Column("resource_id", sa.Integer(), nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.UniqueConstraint("user_id", "topic", "resource_id", name="uq_progress_user_topic_resource"),
    )
    op.create_index("ix_resource_progress_user_topic", "resource_progress", ["user_id", "topic"])

    op.create_table(
        "user_credits",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False, unique=True),
        sa.Column("balance", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "credit_transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )
    op.create_index("ix_credit_transactions_user_id", "credit_transactions", ["user_id"])

    op.create_table(
        "plan_feedback",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("topic", sa.String(length=200), nullable=False),
        sa.Column("level", sa.String(length=64), nullable=False),
        sa.Column("weeks", sa.Integer(), nullable=False),
        sa.Column("hours_per_week", sa.Integer(), nullable=False),
        sa.Column("overall_rating", sa.Integer(), nullable=True),
        sa.Column("resource_quality_rating", sa.Integer(), nullable=True),
        sa.Column("progression_rating", sa.Integer(), nullable=True),
        sa.Column("relevance_rating", sa.Integer(), nullable=True),
        sa.Column("feedback_text", sa.Text(), nullable=True),
        sa.Column("what_worked_well", sa.Text(), nullable=True),
        sa.Column("what_needs_improvement", sa.Text(), nullable=True),
        sa.Column("total_resources", sa.Integer(), nullable=True),
        sa.Column("valid_resources", sa.Integer(), nullable=True),
        sa.Column("invalid_resources", sa.Integer(), nullable=True),
        sa.Column("resources_completed", sa.Integer(), nullable=True),
        sa.Column("completion_percentage", sa.Integer(), nullable=True),
        sa.Column("user_session_id", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )
    op.create_index("ix_plan_feedback_topic", "plan_feedback", ["topic"])


def downgrade() -> None:
    op.drop_index("ix_plan_feedback_topic", table_name="plan_feedback")
    op.drop_table("plan_feedback")
    op.drop_index("ix_credit_transactions_user_id", table_name="credit_transactions")
    op.drop_table("credit_transactions")
    op.drop_table("user_credits")
    op.drop_index("ix_resource_progress_user_topic", table_name="resource_progress")
    op.drop_table("resource_progress")
    op.drop_index("ix_saved_plans_user_id", table_name="saved_plans")
    op.drop_table("saved_plans")
