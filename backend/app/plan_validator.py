"""Concurrent URL validation and pruning for generated plans."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Tuple, TypeVar

import httpx

from .config import Settings
from .plan_models import Plan, Resource, Week
from .plan_normalizer import canonicalize_youtube_url
from .url_liveness import (
    Confirmed,
    LenientPass,
    LivenessPolicy,
    LivenessVerdict,
    Rejected,
    check_url,
)
from .url_trust import is_trusted_url

logger = logging.getLogger(__name__)

PlanT = TypeVar("PlanT", bound=Plan)
UrlChecker = Callable[[str], Awaitable[LivenessVerdict]]


@dataclass(frozen=True)
class ResourceCheck:
    week_index: int
    resource: Resource
    verdict: LivenessVerdict
    trusted: bool = False


@dataclass(frozen=True)
class WeekValidationStats:
    week_number: int
    retained: int
    removed: int


@dataclass
class ValidationSummary:
    total: int = 0
    retained: int = 0
    trusted: int = 0
    lenient: int = 0
    weeks: List[WeekValidationStats] = field(default_factory=list)

    @property
    def removed(self) -> int:
        return self.total - self.retained


class PlanValidator:
    """Checks every resource URL in parallel and prunes the ones that fail.

    All resources across all weeks are scheduled as one flat batch and joined
    with a single ``asyncio.gather``. The validator never raises on a failed
    check; cancellation of the caller propagates into every in-flight probe.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        client: Optional[httpx.AsyncClient] = None,
        checker: Optional[UrlChecker] = None,
    ) -> None:
        self.settings = settings
        self.policy = LivenessPolicy.from_settings(settings)
        self._client = client
        self._checker = checker

    def _client_checker(self, client: httpx.AsyncClient) -> UrlChecker:
        async def probe(url: str) -> LivenessVerdict:
            return await check_url(url, client=client, policy=self.policy)

        return probe

    async def _check_resource(
        self,
        week_index: int,
        resource: Resource,
        checker: UrlChecker,
        semaphore: Optional[asyncio.Semaphore],
    ) -> ResourceCheck:
        canonical = resource.model_copy(update={"url": canonicalize_youtube_url(resource.url)})
        if is_trusted_url(canonical.url):
            logger.debug("Trusted domain (skipped validation): %s", canonical.url)
            return ResourceCheck(week_index, canonical, Confirmed(200), trusted=True)

        try:
            if semaphore is None:
                verdict = await checker(canonical.url)
            else:
                async with semaphore:
                    verdict = await checker(canonical.url)
        except Exception as exc:  # noqa: BLE001
            logger.warning("URL check crashed for %s: %s", canonical.url, exc)
            verdict = Rejected(error=str(exc) or type(exc).__name__)

        if not verdict.is_valid:
            reason = verdict.error or f"HTTP {verdict.status_code}"
            logger.info("Removing invalid resource: %s - %s (%s)", resource.title, canonical.url, reason)
        return ResourceCheck(week_index, canonical, verdict)

    async def _run_checks(self, plan: Plan, checker: UrlChecker) -> List[ResourceCheck]:
        limit = self.settings.validation_concurrency
        semaphore = asyncio.Semaphore(limit) if limit > 0 else None
        tasks = [
            self._check_resource(week_index, resource, checker, semaphore)
            for week_index, week in enumerate(plan.weeks)
            for resource in week.resources
        ]
        return list(await asyncio.gather(*tasks))

    async def _gather(self, plan: Plan) -> List[ResourceCheck]:
        if self._checker is not None:
            return await self._run_checks(plan, self._checker)
        if self._client is not None:
            return await self._run_checks(plan, self._client_checker(self._client))
        async with httpx.AsyncClient() as client:
            return await self._run_checks(plan, self._client_checker(client))

    async def validate(self, plan: PlanT) -> Tuple[PlanT, ValidationSummary]:
        """Return the pruned plan (same model type as the input) and aggregate counts."""
        logger.info("Validating URLs for %s weeks...", len(plan.weeks))
        checks = await self._gather(plan)

        kept: List[List[Resource]] = [[] for _ in plan.weeks]
        summary = ValidationSummary(total=len(checks))
        for check in checks:
            if check.trusted:
                summary.trusted += 1
            if isinstance(check.verdict, LenientPass):
                summary.lenient += 1
            if check.verdict.is_valid:
                kept[check.week_index].append(check.resource)

        weeks: List[Week] = []
        for week, resources in zip(plan.weeks, kept):
            removed = len(week.resources) - len(resources)
            if removed:
                logger.info("Week %s: removed %s invalid resources", week.week_number, removed)
            summary.weeks.append(WeekValidationStats(week.week_number, len(resources), removed))
            summary.retained += len(resources)
            weeks.append(week.model_copy(update={"resources": resources}))

        logger.info(
            "Validation complete: %s/%s resources validated successfully",
            summary.retained,
            summary.total,
        )
        return plan.model_copy(update={"weeks": weeks}), summary


__all__ = [
    "PlanValidator",
    "ResourceCheck",
    "ValidationSummary",
    "WeekValidationStats",
]
