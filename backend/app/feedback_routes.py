"""Plan feedback submission endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .db.session import get_session_dependency
from .repositories.feedback import FeedbackPayload, feedback_store
from .telemetry import emit_event

router = APIRouter(prefix="/api/feedback", tags=["feedback"])

logger = logging.getLogger(__name__)


@router.post("", status_code=status.HTTP_201_CREATED)
def submit_feedback(payload: FeedbackPayload, session: Session = Depends(get_session_dependency)) -> dict:
    logger.info("Submitting feedback for: %s", payload.topic)
    feedback_id = feedback_store.record(session, payload)
    emit_event(
        "plan_feedback_recorded",
        topic=payload.topic,
        level=payload.level,
        overall_rating=payload.overall_rating,
    )
    return {
        "success": True,
        "feedbackId": feedback_id,
        "message": "Thank you for your feedback! It will help improve future learning plans.",
        "insights": feedback_store.insights(session, payload.topic),
    }
