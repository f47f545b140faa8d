from __future__ import annotations

from typing import Any, Dict, Iterator, List

import pytest
from fastapi.testclient import TestClient

from app.config import Settings, get_settings
from app.db.session import dispose_engine, session_scope
from app.main import app
from app.plan_generator import UpstreamPaymentRequired, UpstreamRateLimited
from app.plan_models import EnrichedPlan, GeneratePlanRequest, Plan
from app.plan_normalizer import MalformedPlanError
from app.plan_routes import get_plan_generator, get_plan_validator
from app.plan_validator import PlanValidator
from app.repositories.credits import credit_ledger
from app.telemetry import TelemetryEvent, clear_listeners, register_listener
from app.url_liveness import Confirmed, LivenessVerdict, Rejected
from plan_factories import make_plan_payload

GENERATE_BODY = {"topic": "Python Programming", "level": "beginner", "weeks": 2, "hoursPerWeek": 5}


class StubGenerator:
    def __init__(self, plan: Plan | None = None, error: Exception | None = None) -> None:
        self.plan = plan
        self.error = error
        self.requests: List[GeneratePlanRequest] = []

    async def generate(self, request: GeneratePlanRequest) -> EnrichedPlan:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        assert self.plan is not None
        return EnrichedPlan.from_plan(self.plan, request)


async def _dead_link_checker(url: str) -> LivenessVerdict:
    if "dead" in url:
        return Rejected(status_code=404)
    return Confirmed(200)


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    app.dependency_overrides[get_plan_validator] = lambda: PlanValidator(settings, checker=_dead_link_checker)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        clear_listeners()
        # in-memory sqlite: disposing the engine gives the next test an empty database
        dispose_engine()


def _use_generator(generator: StubGenerator) -> None:
    app.dependency_overrides[get_plan_generator] = lambda: generator


def _sample_plan() -> Plan:
    return Plan.model_validate(
        make_plan_payload(
            [
                ["https://a.example/1", "https://dead.example/2"],
                ["https://dead.example/3"],
            ]
        )
    )


def test_generate_returns_validated_enriched_plan(client: TestClient) -> None:
    events: List[TelemetryEvent] = []
    register_listener(events.append)
    _use_generator(StubGenerator(plan=_sample_plan()))

    response = client.post("/api/plans/generate", json=GENERATE_BODY)

    assert response.status_code == 200
    plan = response.json()["plan"]
    assert plan["topic"] == "Python Programming"
    assert plan["level"] == "beginner"
    assert plan["totalWeeks"] == 2
    assert plan["hoursPerWeek"] == 5
    assert [[r["id"] for r in week["resources"]] for week in plan["weeks"]] == [[1], []]
    generated = [event for event in events if event.name == "plan_generated"]
    assert len(generated) == 1
    assert generated[0].payload["resources_removed"] == 2
    assert generated[0].payload["empty_weeks"] == [2]


@pytest.mark.parametrize(
    ("error", "status_code", "message"),
    [
        (UpstreamRateLimited(), 429, "Rate limits exceeded. Please try again later."),
        (UpstreamPaymentRequired(), 402, UpstreamPaymentRequired.public_message),
        (MalformedPlanError("no json"), 500, "Failed to parse AI response"),
        (RuntimeError("kaput"), 500, "kaput"),
    ],
)
def test_generate_maps_failures_to_error_bodies(
    client: TestClient, error: Exception, status_code: int, message: str
) -> None:
    _use_generator(StubGenerator(error=error))

    response = client.post("/api/plans/generate", json=GENERATE_BODY)

    assert response.status_code == status_code
    assert response.json() == {"error": message}


def test_generate_rejects_invalid_request(client: TestClient) -> None:
    _use_generator(StubGenerator(plan=_sample_plan()))

    response = client.post("/api/plans/generate", json={**GENERATE_BODY, "weeks": 0})

    assert response.status_code == 422
    body = response.json()
    assert list(body) == ["error"]
    assert body["error"].startswith("Invalid request: weeks:")


def test_other_routes_keep_detail_validation_errors(client: TestClient) -> None:
    response = client.put("/api/progress", json={"userId": "learner"})

    assert response.status_code == 422
    assert isinstance(response.json()["detail"], list)


def _require_credits(settings: Settings) -> None:
    gated = settings.model_copy(update={"require_credits": True})
    app.dependency_overrides[get_settings] = lambda: gated


def test_credits_gate_requires_user_id(client: TestClient, settings: Settings) -> None:
    _require_credits(settings)
    generator = StubGenerator(plan=_sample_plan())
    _use_generator(generator)

    response = client.post("/api/plans/generate", json=GENERATE_BODY)

    assert response.status_code == 400
    assert "userId" in response.json()["error"]
    assert generator.requests == []


def test_credits_gate_blocks_empty_balance(client: TestClient, settings: Settings) -> None:
    _require_credits(settings)
    generator = StubGenerator(plan=_sample_plan())
    _use_generator(generator)

    response = client.post("/api/plans/generate", json={**GENERATE_BODY, "userId": "broke"})

    assert response.status_code == 402
    assert generator.requests == []


def test_successful_generation_spends_one_credit(client: TestClient, settings: Settings) -> None:
    _require_credits(settings)
    _use_generator(StubGenerator(plan=_sample_plan()))
    with session_scope() as session:
        credit_ledger.grant(session, "learner", 2, "Starter pack")

    response = client.post("/api/plans/generate", json={**GENERATE_BODY, "userId": "learner"})
    assert response.status_code == 200

    credits = client.get("/api/credits/learner").json()
    assert credits["userId"] == "learner"
    assert credits["balance"] == 1
    assert [entry["type"] for entry in credits["transactions"]] == ["usage", "purchase"]
    assert credits["transactions"][0]["amount"] == -1


def test_failed_generation_does_not_spend_credit(client: TestClient, settings: Settings) -> None:
    _require_credits(settings)
    _use_generator(StubGenerator(error=UpstreamRateLimited()))
    with session_scope() as session:
        credit_ledger.grant(session, "learner", 1, "Starter pack")

    response = client.post("/api/plans/generate", json={**GENERATE_BODY, "userId": "learner"})

    assert response.status_code == 429
    assert client.get("/api/credits/learner").json()["balance"] == 1


def test_credit_check_database_failure_returns_error_body(
    client: TestClient, settings: Settings, monkeypatch: pytest.MonkeyPatch
) -> None:
    _require_credits(settings)
    generator = StubGenerator(plan=_sample_plan())
    _use_generator(generator)

    def unavailable(**_kwargs: Any) -> None:
        raise RuntimeError("database unavailable")

    monkeypatch.setattr("app.plan_routes.session_scope", unavailable)

    response = client.post("/api/plans/generate", json={**GENERATE_BODY, "userId": "learner"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to check credits: database unavailable"}
    assert generator.requests == []


def test_credit_deduction_failure_returns_error_body(
    client: TestClient, settings: Settings, monkeypatch: pytest.MonkeyPatch
) -> None:
    _require_credits(settings)
    _use_generator(StubGenerator(plan=_sample_plan()))
    with session_scope() as session:
        credit_ledger.grant(session, "learner", 1, "Starter pack")

    def broken_deduct(*_args: Any, **_kwargs: Any) -> int:
        raise RuntimeError("write failed")

    monkeypatch.setattr(credit_ledger, "deduct_one", broken_deduct)

    response = client.post("/api/plans/generate", json={**GENERATE_BODY, "userId": "learner"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to record credit usage: write failed"}


def _enriched_wire() -> Dict[str, Any]:
    payload = make_plan_payload([["https://a.example/1", "https://a.example/2"], ["https://a.example/3"]])
    payload.update({"level": "beginner", "totalWeeks": 2, "hoursPerWeek": 5})
    return payload


def test_saved_plan_lifecycle_with_progress(client: TestClient) -> None:
    saved = client.put("/api/plans/saved", json={"userId": "learner", "plan": _enriched_wire()})
    assert saved.status_code == 200
    assert saved.json()["totalWeeks"] == 2

    listed = client.get("/api/plans/saved", params={"userId": "learner"})
    assert [plan["topic"] for plan in listed.json()] == ["Python Programming"]

    toggled = client.put(
        "/api/progress",
        json={"userId": "learner", "topic": "Python Programming", "resourceId": 3, "weekNumber": 2, "completed": True},
    )
    assert toggled.json() == {"topic": "Python Programming", "completedResourceIds": [3]}

    fetched = client.get("/api/plans/saved/Python Programming", params={"userId": "learner"})
    assert fetched.status_code == 200
    flags = {r["id"]: r["completed"] for week in fetched.json()["weeks"] for r in week["resources"]}
    assert flags == {1: False, 2: False, 3: True}

    assert client.delete("/api/plans/saved/Python Programming", params={"userId": "learner"}).status_code == 204
    assert client.delete("/api/plans/saved/Python Programming", params={"userId": "learner"}).status_code == 404
    assert client.get("/api/plans/saved/Python Programming", params={"userId": "learner"}).status_code == 404


def test_progress_can_be_cleared(client: TestClient) -> None:
    body = {"userId": "learner", "topic": "Rust", "resourceId": 7, "weekNumber": 1, "completed": True}
    client.put("/api/progress", json=body)
    client.put("/api/progress", json={**body, "completed": False})

    response = client.get("/api/progress", params={"userId": "learner", "topic": "Rust"})

    assert response.json() == {"topic": "Rust", "completedResourceIds": []}


def test_blank_user_id_is_rejected(client: TestClient) -> None:
    response = client.put("/api/plans/saved", json={"userId": "   ", "plan": _enriched_wire()})

    assert response.status_code == 422


def test_feedback_submission_returns_insights(client: TestClient) -> None:
    events: List[TelemetryEvent] = []
    register_listener(events.append)
    body = {"topic": "Rust", "level": "beginner", "weeks": 4, "hoursPerWeek": 6}

    client.post("/api/feedback", json={**body, "overallRating": 5})
    response = client.post("/api/feedback", json={**body, "overallRating": 3, "feedbackText": "Too fast"})

    assert response.status_code == 201
    payload = response.json()
    assert payload["success"] is True
    assert payload["feedbackId"]
    assert payload["insights"] == [
        {
            "topic": "Rust",
            "level": "beginner",
            "sampleSize": 2,
            "avgOverallRating": 4.0,
            "avgResourceQuality": None,
            "avgProgression": None,
            "avgRelevance": None,
        }
    ]
    assert [event.name for event in events].count("plan_feedback_recorded") == 2


def test_feedback_rejects_out_of_range_rating(client: TestClient) -> None:
    response = client.post(
        "/api/feedback",
        json={"topic": "Rust", "level": "beginner", "weeks": 4, "hoursPerWeek": 6, "overallRating": 9},
    )

    assert response.status_code == 422
