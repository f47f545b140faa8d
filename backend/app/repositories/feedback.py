"""Storage and aggregation of user feedback on generated plans."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..db.models import PlanFeedbackModel
from ._keys import normalize_topic

Rating = Optional[int]


class FeedbackPayload(BaseModel):
    topic: str = Field(..., min_length=1)
    level: str = Field(..., min_length=1)
    weeks: int = Field(..., ge=1)
    hours_per_week: int = Field(..., ge=1, alias="hoursPerWeek")
    overall_rating: Rating = Field(default=None, ge=1, le=5, alias="overallRating")
    resource_quality_rating: Rating = Field(default=None, ge=1, le=5, alias="resourceQualityRating")
    progression_rating: Rating = Field(default=None, ge=1, le=5, alias="progressionRating")
    relevance_rating: Rating = Field(default=None, ge=1, le=5, alias="relevanceRating")
    feedback_text: Optional[str] = Field(default=None, alias="feedbackText")
    what_worked_well: Optional[str] = Field(default=None, alias="whatWorkedWell")
    what_needs_improvement: Optional[str] = Field(default=None, alias="whatNeedsImprovement")
    total_resources: Optional[int] = Field(default=None, ge=0, alias="totalResources")
    valid_resources: Optional[int] = Field(default=None, ge=0, alias="validResources")
    invalid_resources: Optional[int] = Field(default=None, ge=0, alias="invalidResources")
    resources_completed: Optional[int] = Field(default=None, ge=0, alias="resourcesCompleted")
    completion_percentage: Optional[int] = Field(default=None, ge=0, le=100, alias="completionPercentage")
    user_session_id: Optional[str] = Field(default=None, alias="userSessionId")

    model_config = {"populate_by_name": True}


class FeedbackRepository:
    def record(self, session: Session, payload: FeedbackPayload) -> str:
        values = payload.model_dump()
        values["topic"] = normalize_topic(payload.topic)
        model = PlanFeedbackModel(**values)
        session.add(model)
        session.flush()
        return model.id

    def insights(self, session: Session, topic: str) -> List[Dict[str, Any]]:
        """Average ratings per level for ``topic``."""
        stmt = (
            select(
                PlanFeedbackModel.level,
                func.count(PlanFeedbackModel.id),
                func.avg(PlanFeedbackModel.overall_rating),
                func.avg(PlanFeedbackModel.resource_quality_rating),
                func.avg(PlanFeedbackModel.progression_rating),
                func.avg(PlanFeedbackModel.relevance_rating),
            )
            .where(PlanFeedbackModel.topic == normalize_topic(topic))
            .group_by(PlanFeedbackModel.level)
            .order_by(PlanFeedbackModel.level)
        )
        insights: List[Dict[str, Any]] = []
        for level, count, overall, quality, progression, relevance in session.execute(stmt):
            insights.append(
                {
                    "topic": normalize_topic(topic),
                    "level": level,
                    "sampleSize": int(count),
                    "avgOverallRating": _round(overall),
                    "avgResourceQuality": _round(quality),
                    "avgProgression": _round(progression),
                    "avgRelevance": _round(relevance),
                }
            )
        return insights


def _round(value: Any) -> Optional[float]:
    if value is None:
        return None
    return round(float(value), 2)


feedback_store = FeedbackRepository()

__all__ = ["FeedbackPayload", "FeedbackRepository", "feedback_store"]
