"""LLM-backed learning plan generation."""

from __future__ import annotations

import logging
from typing import Any, Optional

from openai import APIConnectionError, APIStatusError, AsyncOpenAI, OpenAIError

from .config import Settings
from .plan_models import EnrichedPlan, GeneratePlanRequest
from .plan_normalizer import normalize_plan
from .prompt_utils import build_system_prompt, build_user_prompt

logger = logging.getLogger(__name__)

MIN_RESOURCES = 10
MAX_RESOURCES = 20
HOURS_PER_RESOURCE = 3


class PlanGenerationError(RuntimeError):
    """Base class for failures talking to the generation backend."""

    status_code = 500
    public_message = "Failed to generate learning plan."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.public_message)


class UpstreamRateLimited(PlanGenerationError):
    status_code = 429
    public_message = "Rate limits exceeded. Please try again later."


class UpstreamPaymentRequired(PlanGenerationError):
    status_code = 402
    public_message = "Payment required. Please add credits to your workspace."


class UpstreamGenerationFailure(PlanGenerationError):
    status_code = 500
    public_message = "AI gateway error"


def target_resource_count(weeks: int, hours_per_week: int) -> int:
    """floor(total hours / 3), clamped to [10, 20]."""
    total_hours = weeks * hours_per_week
    return max(MIN_RESOURCES, min(total_hours // HOURS_PER_RESOURCE, MAX_RESOURCES))


def _extract_content(completion: Any) -> str:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        raise UpstreamGenerationFailure("Generation backend returned no choices.")
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if not isinstance(content, str) or not content.strip():
        raise UpstreamGenerationFailure("Generation backend returned an empty message.")
    return content


class PlanGenerator:
    """Builds prompts, calls the chat-completion backend once, and normalises the reply."""

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None) -> None:
        self.settings = settings
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.settings.llm_api_key:
                raise UpstreamGenerationFailure("LEARNPATH_LLM_API_KEY is not configured")
            self._client = AsyncOpenAI(
                api_key=self.settings.llm_api_key,
                base_url=self.settings.llm_base_url,
                timeout=self.settings.llm_timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def complete(self, request: GeneratePlanRequest) -> str:
        """Send the prompt and return the raw assistant text."""
        resource_count = target_resource_count(request.weeks, request.hours_per_week)
        messages = [
            {"role": "system", "content": build_system_prompt()},
            {"role": "user", "content": build_user_prompt(request, resource_count)},
        ]
        try:
            completion = await self.client.chat.completions.create(
                model=self.settings.llm_model,
                messages=messages,  # type: ignore[arg-type]
                temperature=self.settings.llm_temperature,
            )
        except APIStatusError as exc:
            if exc.status_code == 429:
                raise UpstreamRateLimited() from exc
            if exc.status_code == 402:
                raise UpstreamPaymentRequired() from exc
            logger.error("AI gateway error: %s %s", exc.status_code, exc.response.text)
            raise UpstreamGenerationFailure() from exc
        except APIConnectionError as exc:
            logger.error("AI gateway unreachable: %s", exc)
            raise UpstreamGenerationFailure() from exc
        except OpenAIError as exc:
            logger.error("AI gateway client error: %s", exc)
            raise UpstreamGenerationFailure() from exc
        return _extract_content(completion)

    async def generate(self, request: GeneratePlanRequest) -> EnrichedPlan:
        """Generate a plan; ``MalformedPlanError`` propagates when the reply cannot be parsed."""
        logger.info(
            "Generating learning plan for topic=%r level=%s weeks=%s hours_per_week=%s",
            request.topic,
            request.level,
            request.weeks,
            request.hours_per_week,
        )
        content = await self.complete(request)
        logger.debug("Raw AI response: %s", content)
        plan = normalize_plan(content)
        logger.info("Successfully generated plan with %s weeks", len(plan.weeks))
        return EnrichedPlan.from_plan(plan, request)


__all__ = [
    "PlanGenerationError",
    "PlanGenerator",
    "UpstreamGenerationFailure",
    "UpstreamPaymentRequired",
    "UpstreamRateLimited",
    "target_resource_count",
]
