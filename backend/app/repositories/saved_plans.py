"""Database-backed store of enriched plans saved by users."""

from __future__ import annotations

from typing import List

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..db.models import SavedPlanModel
from ..plan_models import EnrichedPlan
from ._keys import normalize_topic, normalize_user_id


class SavedPlanRepository:
    """One saved plan per (user, topic); saving again replaces the previous plan."""

    def save(self, session: Session, user_id: str, plan: EnrichedPlan) -> EnrichedPlan:
        normalized_user = normalize_user_id(user_id)
        topic = normalize_topic(plan.topic)
        model = self._find(session, normalized_user, topic)
        if model is None:
            model = SavedPlanModel(user_id=normalized_user, topic=topic)
            session.add(model)
        model.level = plan.level
        model.weeks = plan.total_weeks
        model.hours_per_week = plan.hours_per_week
        model.plan_data = plan.to_wire()
        session.flush()
        return self._to_domain(model)

    def get(self, session: Session, user_id: str, topic: str) -> EnrichedPlan | None:
        model = self._find(session, normalize_user_id(user_id), normalize_topic(topic))
        if model is None:
            return None
        return self._to_domain(model)

    def list_for_user(self, session: Session, user_id: str) -> List[EnrichedPlan]:
        stmt = (
            select(SavedPlanModel)
            .where(SavedPlanModel.user_id == normalize_user_id(user_id))
            .order_by(SavedPlanModel.updated_at.desc())
        )
        return [self._to_domain(model) for model in session.execute(stmt).scalars()]

    def delete(self, session: Session, user_id: str, topic: str) -> bool:
        stmt = delete(SavedPlanModel).where(
            SavedPlanModel.user_id == normalize_user_id(user_id),
            SavedPlanModel.topic == normalize_topic(topic),
        )
        result = session.execute(stmt)
        return bool(result.rowcount)

    def _find(self, session: Session, user_id: str, topic: str) -> SavedPlanModel | None:
        stmt = select(SavedPlanModel).where(
            SavedPlanModel.user_id == user_id,
            SavedPlanModel.topic == topic,
        )
        return session.execute(stmt).scalar_one_or_none()

    def _to_domain(self, model: SavedPlanModel) -> EnrichedPlan:
        return EnrichedPlan.model_validate(model.plan_data)


saved_plans = SavedPlanRepository()

__all__ = ["SavedPlanRepository", "saved_plans"]
