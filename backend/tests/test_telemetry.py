from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

import pytest

from app.plan_validator import ValidationSummary, WeekValidationStats
from app.telemetry import TelemetryEvent, clear_listeners, emit_event, register_listener, validation_fields


@pytest.fixture(autouse=True)
def _reset_listeners():
    clear_listeners()
    yield
    clear_listeners()


def test_emit_event_fans_out_and_serialises_datetimes() -> None:
    events: List[TelemetryEvent] = []
    register_listener(events.append)

    emit_event("plan_generated", topic="Rust", at=datetime(2026, 10, 19, tzinfo=timezone.utc))

    assert events == [
        TelemetryEvent(name="plan_generated", payload={"topic": "Rust", "at": "2026-10-19T00:00:00+00:00"})
    ]


def test_failing_listener_does_not_block_others(caplog) -> None:
    events: List[TelemetryEvent] = []

    def broken(_event: TelemetryEvent) -> None:
        raise RuntimeError("listener down")

    register_listener(broken)
    register_listener(events.append)

    with caplog.at_level(logging.INFO, logger="learnpath.telemetry"):
        emit_event("credit_deducted", user_id="learner", balance=3)

    assert len(events) == 1
    assert "Telemetry listener failed for credit_deducted" in caplog.text
    assert 'TELEMETRY {"event": "credit_deducted"' in caplog.text


def test_validation_fields_flatten_summary() -> None:
    summary = ValidationSummary(
        total=5,
        retained=3,
        trusted=1,
        lenient=1,
        weeks=[WeekValidationStats(1, 3, 0), WeekValidationStats(2, 0, 2)],
    )

    assert validation_fields(summary) == {
        "resources_total": 5,
        "resources_retained": 3,
        "resources_removed": 2,
        "resources_trusted": 1,
        "resources_lenient": 1,
        "empty_weeks": [2],
    }
