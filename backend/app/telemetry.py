"""Lightweight telemetry helpers for plan generation instrumentation."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from threading import RLock
from typing import TYPE_CHECKING, Any, Callable, Dict, List

if TYPE_CHECKING:
    from .plan_validator import ValidationSummary

logger = logging.getLogger("learnpath.telemetry")


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    payload: Dict[str, Any]


_listeners: List[Callable[[TelemetryEvent], None]] = []
_lock = RLock()


def register_listener(listener: Callable[[TelemetryEvent], None]) -> None:
    """Register an in-process listener (used in tests)."""
    with _lock:
        _listeners.append(listener)


def clear_listeners() -> None:
    with _lock:
        _listeners.clear()


def emit_event(name: str, **fields: Any) -> None:
    """Emit a structured telemetry event and fan it out to listeners."""
    payload = {
        key: value.isoformat() if isinstance(value, datetime) else value
        for key, value in fields.items()
    }
    event = TelemetryEvent(name=name, payload=payload)

    with _lock:
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry listener failed for %s", name)

    logger.info("TELEMETRY %s", json.dumps({"event": name, **payload}, default=str))


def validation_fields(summary: "ValidationSummary") -> Dict[str, Any]:
    """Flatten a validation summary into telemetry-friendly fields."""
    return {
        "resources_total": summary.total,
        "resources_retained": summary.retained,
        "resources_removed": summary.removed,
        "resources_trusted": summary.trusted,
        "resources_lenient": summary.lenient,
        "empty_weeks": [stats.week_number for stats in summary.weeks if stats.retained == 0],
    }


__all__ = [
    "TelemetryEvent",
    "clear_listeners",
    "emit_event",
    "register_listener",
    "validation_fields",
]
