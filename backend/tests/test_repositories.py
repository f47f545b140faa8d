from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from app.plan_models import EnrichedPlan
from app.repositories.credits import InsufficientCreditsError, credit_ledger
from app.repositories.feedback import FeedbackPayload, feedback_store
from app.repositories.progress import apply_progress, progress
from app.repositories.saved_plans import saved_plans
from plan_factories import make_plan_payload


def _enriched(topic: str = "Python Programming", level: str = "beginner") -> EnrichedPlan:
    payload = make_plan_payload([["https://a.example/1", "https://a.example/2"], ["https://a.example/3"]], topic=topic)
    payload.update({"level": level, "totalWeeks": 2, "hoursPerWeek": 5})
    return EnrichedPlan.model_validate(payload)


def test_saved_plan_upsert_replaces_previous_plan(db_session: Session) -> None:
    saved_plans.save(db_session, "learner", _enriched(level="beginner"))
    saved_plans.save(db_session, " learner ", _enriched(level="advanced"))

    plans = saved_plans.list_for_user(db_session, "learner")

    assert len(plans) == 1
    assert plans[0].level == "advanced"


def test_saved_plan_lookup_normalises_topic_whitespace(db_session: Session) -> None:
    saved_plans.save(db_session, "learner", _enriched(topic="Machine  Learning"))

    stored = saved_plans.get(db_session, "learner", " Machine Learning ")

    assert stored is not None
    assert stored.total_weeks == 2
    assert saved_plans.get(db_session, "someone-else", "Machine Learning") is None


def test_saved_plan_delete_reports_missing(db_session: Session) -> None:
    saved_plans.save(db_session, "learner", _enriched())

    assert saved_plans.delete(db_session, "learner", "Python Programming") is True
    assert saved_plans.delete(db_session, "learner", "Python Programming") is False


def test_blank_user_id_is_rejected(db_session: Session) -> None:
    with pytest.raises(ValueError):
        saved_plans.save(db_session, "   ", _enriched())


def test_progress_toggle_and_apply(db_session: Session) -> None:
    progress.set_completed(db_session, "learner", "Python Programming", 1, 1, True)
    progress.set_completed(db_session, "learner", "Python Programming", 3, 2, True)
    progress.set_completed(db_session, "learner", "Python Programming", 3, 2, True)
    progress.set_completed(db_session, "learner", "Python Programming", 1, 1, False)

    completed = progress.completed_ids(db_session, "learner", "Python Programming")
    merged = apply_progress(_enriched(), completed)

    assert completed == {3}
    assert [r.completed for week in merged.weeks for r in week.resources] == [False, False, True]
    assert isinstance(merged, EnrichedPlan)


def test_credit_ledger_grant_and_deduct(db_session: Session) -> None:
    assert credit_ledger.balance(db_session, "learner") == 0

    assert credit_ledger.grant(db_session, "learner", 2, "Starter pack") == 2
    assert credit_ledger.deduct_one(db_session, "learner", "Generated a learning plan") == 1
    assert credit_ledger.deduct_one(db_session, "learner", "Generated a learning plan") == 0
    with pytest.raises(InsufficientCreditsError):
        credit_ledger.deduct_one(db_session, "learner", "Generated a learning plan")

    history = credit_ledger.transactions(db_session, "learner")
    assert [(entry.type, entry.amount) for entry in history] == [("usage", -1), ("usage", -1), ("purchase", 2)]


def test_credit_ledger_rejects_non_positive_grant(db_session: Session) -> None:
    with pytest.raises(ValueError):
        credit_ledger.grant(db_session, "learner", 0, "Nothing")


def test_deduct_without_account_raises(db_session: Session) -> None:
    with pytest.raises(InsufficientCreditsError):
        credit_ledger.deduct_one(db_session, "ghost", "Generated a learning plan")


def test_feedback_insights_group_by_level(db_session: Session) -> None:
    base = {"topic": "Rust", "weeks": 4, "hoursPerWeek": 6}
    feedback_store.record(db_session, FeedbackPayload.model_validate({**base, "level": "beginner", "overallRating": 4}))
    feedback_store.record(db_session, FeedbackPayload.model_validate({**base, "level": "beginner", "overallRating": 5}))
    feedback_store.record(
        db_session,
        FeedbackPayload.model_validate({**base, "level": "advanced", "relevanceRating": 2}),
    )

    insights = feedback_store.insights(db_session, "Rust")

    assert [(row["level"], row["sampleSize"]) for row in insights] == [("advanced", 1), ("beginner", 2)]
    assert insights[1]["avgOverallRating"] == 4.5
    assert insights[0]["avgOverallRating"] is None
    assert insights[0]["avgRelevance"] == 2.0
