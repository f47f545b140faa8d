"""Bounded-retry HTTP liveness probe for learning resource URLs."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, ClassVar, Optional, Union

import httpx

from .config import Settings

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; ResourceValidator/1.0)"
HEAD_BLOCKED_STATUSES = frozenset({403, 405})
_AMBIGUOUS_ERROR_MARKERS = ("abort", "timeout", "timed out", "network")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class Confirmed:
    """The origin answered with a 2xx status."""

    status_code: int
    via_get: bool = False

    is_valid: ClassVar[bool] = True
    error: ClassVar[Optional[str]] = None


@dataclass(frozen=True)
class Rejected:
    """The URL could not be confirmed and should be pruned."""

    status_code: Optional[int] = None
    error: Optional[str] = None

    is_valid: ClassVar[bool] = False


@dataclass(frozen=True)
class LenientPass:
    """Checks failed for transport reasons; the resource is kept anyway."""

    note: str

    is_valid: ClassVar[bool] = True
    status_code: ClassVar[Optional[int]] = None

    @property
    def error(self) -> str:
        return self.note


LivenessVerdict = Union[Confirmed, Rejected, LenientPass]


@dataclass(frozen=True)
class LivenessPolicy:
    retries: int = 2
    timeout_seconds: float = 10.0
    backoff_seconds: float = 1.0
    lenient_network_errors: bool = True
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_settings(cls, settings: Settings) -> "LivenessPolicy":
        return cls(
            retries=settings.liveness_retries,
            timeout_seconds=settings.liveness_timeout_seconds,
            backoff_seconds=settings.liveness_backoff_seconds,
            lenient_network_errors=settings.liveness_lenient_network_errors,
            user_agent=settings.liveness_user_agent,
        )


def _describe_error(exc: BaseException) -> str:
    message = str(exc).strip()
    return message or type(exc).__name__


def is_transport_ambiguity(exc: BaseException) -> bool:
    """True for timeouts, aborts and network failures that say nothing about the URL itself."""
    if isinstance(exc, (httpx.UnsupportedProtocol, httpx.InvalidURL)):
        return False
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException, httpx.TransportError)):
        return True
    text = f"{type(exc).__name__} {exc}".lower()
    return any(marker in text for marker in _AMBIGUOUS_ERROR_MARKERS)


async def _get_status(client: httpx.AsyncClient, url: str, policy: LivenessPolicy) -> int:
    async with client.stream(
        "GET",
        url,
        headers={"User-Agent": policy.user_agent},
        timeout=policy.timeout_seconds,
        follow_redirects=True,
    ) as response:
        return response.status_code


async def check_url(
    url: str,
    *,
    client: httpx.AsyncClient,
    policy: Optional[LivenessPolicy] = None,
    sleep: Sleep = asyncio.sleep,
) -> LivenessVerdict:
    """Probe ``url`` with HEAD (falling back to GET) and return a verdict.

    Each HEAD or GET attempt is bounded by ``policy.timeout_seconds`` in
    total. Up to ``policy.retries + 1`` HEAD attempts are made, waiting
    ``backoff_seconds * attempt_number`` between them. A 403/405 on the final
    attempt triggers one GET, since some origins refuse HEAD. Only
    cancellation propagates; every other failure resolves to a verdict.
    """
    policy = policy or LivenessPolicy()
    headers = {"User-Agent": policy.user_agent, "Accept": "*/*"}
    total_attempts = policy.retries + 1

    for attempt in range(total_attempts):
        is_final = attempt == policy.retries
        try:
            # httpx timeouts apply per read; a slowly dripping origin needs an overall deadline.
            response = await asyncio.wait_for(
                client.head(
                    url,
                    headers=headers,
                    timeout=policy.timeout_seconds,
                    follow_redirects=True,
                ),
                policy.timeout_seconds,
            )
            if response.is_success:
                logger.debug("Valid URL (status %s): %s", response.status_code, url)
                return Confirmed(response.status_code)

            if response.status_code in HEAD_BLOCKED_STATUSES and is_final:
                logger.info("HEAD blocked with %s, trying GET for %s", response.status_code, url)
                get_status = await asyncio.wait_for(_get_status(client, url, policy), policy.timeout_seconds)
                if 200 <= get_status < 300:
                    return Confirmed(get_status, via_get=True)

            logger.info(
                "Invalid URL (status %s, attempt %s/%s): %s",
                response.status_code,
                attempt + 1,
                total_attempts,
                url,
            )
            if not is_final:
                await sleep(policy.backoff_seconds * (attempt + 1))
                continue
            return Rejected(status_code=response.status_code)
        except Exception as exc:  # noqa: BLE001
            message = _describe_error(exc)
            logger.info(
                "URL validation error (attempt %s/%s): %s - %s",
                attempt + 1,
                total_attempts,
                url,
                message,
            )
            if not is_final:
                await sleep(policy.backoff_seconds * (attempt + 1))
                continue
            if policy.lenient_network_errors and is_transport_ambiguity(exc):
                return LenientPass(note=message)
            return Rejected(error=message)

    return Rejected(error="Max retries exceeded")


__all__ = [
    "Confirmed",
    "DEFAULT_USER_AGENT",
    "LenientPass",
    "LivenessPolicy",
    "LivenessVerdict",
    "Rejected",
    "check_url",
    "is_transport_ambiguity",
]
