"""Key normalisation shared by the repositories."""

from __future__ import annotations


def normalize_user_id(user_id: str) -> str:
    normalized = user_id.strip()
    if not normalized:
        raise ValueError("User id cannot be empty.")
    return normalized


def normalize_topic(topic: str) -> str:
    normalized = " ".join(topic.split())
    if not normalized:
        raise ValueError("Topic cannot be empty.")
    return normalized
