"""Per-resource completion flags keyed by (user, topic, resource id)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Set

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..db.models import ResourceProgressModel
from ..plan_models import Plan
from ._keys import normalize_topic, normalize_user_id


class ProgressRepository:
    def set_completed(
        self,
        session: Session,
        user_id: str,
        topic: str,
        resource_id: int,
        week_number: int,
        completed: bool,
    ) -> None:
        """Record completion (upsert) or clear it (delete)."""
        normalized_user = normalize_user_id(user_id)
        normalized_topic = normalize_topic(topic)
        if not completed:
            session.execute(
                delete(ResourceProgressModel).where(
                    ResourceProgressModel.user_id == normalized_user,
                    ResourceProgressModel.topic == normalized_topic,
                    ResourceProgressModel.resource_id == resource_id,
                )
            )
            return

        stmt = select(ResourceProgressModel).where(
            ResourceProgressModel.user_id == normalized_user,
            ResourceProgressModel.topic == normalized_topic,
            ResourceProgressModel.resource_id == resource_id,
        )
        model = session.execute(stmt).scalar_one_or_none()
        if model is None:
            model = ResourceProgressModel(
                user_id=normalized_user,
                topic=normalized_topic,
                resource_id=resource_id,
            )
            session.add(model)
        model.week_number = week_number
        model.completed_at = datetime.now(timezone.utc)
        session.flush()

    def completed_ids(self, session: Session, user_id: str, topic: str) -> Set[int]:
        stmt = select(ResourceProgressModel.resource_id).where(
            ResourceProgressModel.user_id == normalize_user_id(user_id),
            ResourceProgressModel.topic == normalize_topic(topic),
        )
        return set(session.execute(stmt).scalars())


def apply_progress(plan: Plan, completed_ids: Set[int]) -> Plan:
    """Return a copy of ``plan`` whose ``completed`` flags reflect ``completed_ids``."""
    weeks = [
        week.model_copy(
            update={
                "resources": [
                    resource.model_copy(update={"completed": resource.id in completed_ids})
                    for resource in week.resources
                ]
            }
        )
        for week in plan.weeks
    ]
    return plan.model_copy(update={"weeks": weeks})


progress = ProgressRepository()

__all__ = ["ProgressRepository", "apply_progress", "progress"]
