"""Parse and repair raw LLM output into a canonical :class:`Plan`."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlsplit

from pydantic import ValidationError

from .plan_models import Plan

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^\s*```[A-Za-z0-9_-]*[ \t]*\r?\n?")
_TRAILING_FENCE = re.compile(r"\r?\n?```\s*$")
_EMBED_PATH = re.compile(r"/(?:embed|v)/([^/?#]+)")

YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"


class MalformedPlanError(ValueError):
    """Raised when generated text cannot be parsed into the plan schema."""


def strip_code_fences(text: str) -> str:
    """Remove a wrapping Markdown code fence (```json ... ```) if present."""
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    stripped = _LEADING_FENCE.sub("", stripped, count=1)
    stripped = _TRAILING_FENCE.sub("", stripped, count=1)
    return stripped.strip()


def extract_youtube_video_id(url: str) -> Optional[str]:
    try:
        parts = urlsplit(url.strip())
        hostname = (parts.hostname or "").lower()
    except (AttributeError, ValueError):
        return None

    if "youtube.com" in hostname:
        video_ids = parse_qs(parts.query).get("v")
        if video_ids and video_ids[0]:
            return video_ids[0]
        match = _EMBED_PATH.search(parts.path)
        if match:
            return match.group(1)

    if hostname == "youtu.be":
        segment = parts.path.lstrip("/").split("/")[0]
        if segment:
            return segment

    return None


def canonicalize_youtube_url(url: str) -> str:
    """Rewrite any recognised YouTube URL form to ``watch?v=<id>``; pass others through."""
    video_id = extract_youtube_video_id(url)
    if video_id:
        return YOUTUBE_WATCH_URL.format(video_id=video_id)
    return url


def _repair_numbering(data: Dict[str, Any]) -> None:
    weeks = data.get("weeks")
    if not isinstance(weeks, list):
        return

    resources: List[Dict[str, Any]] = []
    for position, week in enumerate(weeks, start=1):
        if not isinstance(week, dict):
            continue
        if week.get("weekNumber") != position:
            if "weekNumber" in week:
                logger.warning("Renumbering week %r to %s", week.get("weekNumber"), position)
            week["weekNumber"] = position
        week_resources = week.get("resources")
        if isinstance(week_resources, list):
            resources.extend(item for item in week_resources if isinstance(item, dict))

    ids = [item.get("id") for item in resources]
    has_valid_ids = all(isinstance(value, int) and not isinstance(value, bool) for value in ids)
    if has_valid_ids and len(set(ids)) == len(ids):
        return
    logger.warning("Generated plan has missing or duplicate resource ids; assigning sequentially")
    for index, item in enumerate(resources, start=1):
        item["id"] = index


def normalize_plan(raw_text: str) -> Plan:
    """Strip fences, parse JSON, repair numbering, validate, canonicalise URLs and clear completion."""
    if not isinstance(raw_text, str) or not raw_text.strip():
        raise MalformedPlanError("Generated plan was empty.")

    cleaned = strip_code_fences(raw_text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise MalformedPlanError(f"Failed to parse generated plan: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedPlanError("Generated plan must be a JSON object.")

    _repair_numbering(data)
    try:
        plan = Plan.model_validate(data)
    except ValidationError as exc:
        raise MalformedPlanError(f"Generated plan does not match the schema: {exc}") from exc

    for week in plan.weeks:
        for resource in week.resources:
            resource.url = canonicalize_youtube_url(resource.url)
            resource.completed = False
    return plan


__all__ = [
    "MalformedPlanError",
    "canonicalize_youtube_url",
    "extract_youtube_video_id",
    "normalize_plan",
    "strip_code_fences",
]
