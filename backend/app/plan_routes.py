"""REST endpoints for plan generation, saved plans and resource progress."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import List, Optional, Set, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from pydantic import Field
from sqlalchemy.orm import Session
from starlette.responses import JSONResponse

from .config import Settings, get_settings
from .db.session import get_session_dependency, session_scope
from .plan_generator import PlanGenerationError, PlanGenerator
from .plan_models import EnrichedPlan, GeneratePlanRequest, GeneratePlanResponse, WireModel
from .plan_normalizer import MalformedPlanError
from .plan_validator import PlanValidator, ValidationSummary
from .repositories.credits import InsufficientCreditsError, credit_ledger
from .repositories.progress import apply_progress, progress
from .repositories.saved_plans import saved_plans
from .telemetry import emit_event, validation_fields

router = APIRouter(prefix="/api/plans", tags=["plans"])
progress_router = APIRouter(prefix="/api/progress", tags=["progress"])

logger = logging.getLogger(__name__)

_generator: Optional[PlanGenerator] = None
_validator: Optional[PlanValidator] = None


def get_plan_generator() -> PlanGenerator:
    global _generator
    if _generator is None:
        _generator = PlanGenerator(get_settings())
    return _generator


def get_plan_validator() -> PlanValidator:
    global _validator
    if _validator is None:
        _validator = PlanValidator(get_settings())
    return _validator


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())[1:]) or "body"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    """Generation requests get the ``{error}`` body; other routes keep FastAPI's ``detail`` list."""
    if request.url.path != f"{router.prefix}/generate":
        return await request_validation_exception_handler(request, exc)
    return _error(
        f"Invalid request: {_describe_validation_errors(exc)}",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )


async def run_generation_pipeline(
    request: GeneratePlanRequest,
    generator: PlanGenerator,
    validator: PlanValidator,
) -> Tuple[EnrichedPlan, ValidationSummary]:
    """Generate, normalise and validate a plan for one request."""
    started = perf_counter()
    plan = await generator.generate(request)
    generated_at = perf_counter()
    cleaned, summary = await validator.validate(plan)
    finished = perf_counter()
    emit_event(
        "plan_generated",
        topic=request.topic,
        level=request.level,
        weeks=request.weeks,
        hours_per_week=request.hours_per_week,
        generation_ms=int((generated_at - started) * 1000),
        validation_ms=int((finished - generated_at) * 1000),
        **validation_fields(summary),
    )
    return cleaned, summary


@router.post("/generate", response_model=GeneratePlanResponse)
async def generate_plan(
    payload: GeneratePlanRequest,
    settings: Settings = Depends(get_settings),
    generator: PlanGenerator = Depends(get_plan_generator),
    validator: PlanValidator = Depends(get_plan_validator),
) -> Response:
    if settings.require_credits:
        if not payload.user_id:
            return _error("userId is required to spend credits.", status.HTTP_400_BAD_REQUEST)
        try:
            with session_scope(commit=False) as session:
                balance = credit_ledger.balance(session, payload.user_id)
        except ValueError as exc:
            return _error(str(exc), status.HTTP_400_BAD_REQUEST)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Credit check failed for %s", payload.user_id)
            return _error(f"Failed to check credits: {exc}", status.HTTP_500_INTERNAL_SERVER_ERROR)
        if balance <= 0:
            return _error("No credits remaining. Purchase a pack to continue.", status.HTTP_402_PAYMENT_REQUIRED)

    try:
        plan, _summary = await run_generation_pipeline(payload, generator, validator)
    except PlanGenerationError as exc:
        emit_event("plan_generation_failed", topic=payload.topic, reason=type(exc).__name__)
        return _error(str(exc), exc.status_code)
    except MalformedPlanError as exc:
        logger.error("Failed to parse AI response: %s", exc)
        emit_event("plan_generation_failed", topic=payload.topic, reason="MalformedPlanError")
        return _error("Failed to parse AI response", status.HTTP_500_INTERNAL_SERVER_ERROR)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Error in generate-learning-plan")
        return _error(str(exc) or "Unknown error", status.HTTP_500_INTERNAL_SERVER_ERROR)

    if settings.require_credits and payload.user_id:
        try:
            with session_scope() as session:
                remaining = credit_ledger.deduct_one(session, payload.user_id, "Generated a learning plan")
        except InsufficientCreditsError as exc:
            return _error(str(exc), status.HTTP_402_PAYMENT_REQUIRED)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Credit deduction failed for %s", payload.user_id)
            return _error(f"Failed to record credit usage: {exc}", status.HTTP_500_INTERNAL_SERVER_ERROR)
        emit_event("credit_deducted", user_id=payload.user_id, balance=remaining)

    return JSONResponse(GeneratePlanResponse(plan=plan).to_wire())


class SavePlanRequest(WireModel):
    user_id: str = Field(..., min_length=1, alias="userId")
    plan: EnrichedPlan


@router.put("/saved", status_code=status.HTTP_200_OK)
def save_plan(payload: SavePlanRequest, session: Session = Depends(get_session_dependency)) -> dict:
    try:
        stored = saved_plans.save(session, payload.user_id, payload.plan)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return stored.to_wire()


@router.get("/saved")
def list_saved_plans(
    user_id: str = Query(..., min_length=1, alias="userId"),
    session: Session = Depends(get_session_dependency),
) -> List[dict]:
    return [plan.to_wire() for plan in saved_plans.list_for_user(session, user_id)]


@router.get("/saved/{topic}")
def get_saved_plan(
    topic: str,
    user_id: str = Query(..., min_length=1, alias="userId"),
    session: Session = Depends(get_session_dependency),
) -> dict:
    plan = saved_plans.get(session, user_id, topic)
    if plan is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No saved plan for topic '{topic}'.",
        )
    completed = progress.completed_ids(session, user_id, plan.topic)
    return apply_progress(plan, completed).to_wire()


@router.delete("/saved/{topic}", status_code=status.HTTP_204_NO_CONTENT)
def delete_saved_plan(
    topic: str,
    user_id: str = Query(..., min_length=1, alias="userId"),
    session: Session = Depends(get_session_dependency),
) -> Response:
    if not saved_plans.delete(session, user_id, topic):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No saved plan for topic '{topic}'.",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


class ProgressToggleRequest(WireModel):
    user_id: str = Field(..., min_length=1, alias="userId")
    topic: str = Field(..., min_length=1)
    resource_id: int = Field(..., alias="resourceId")
    week_number: int = Field(..., ge=1, alias="weekNumber")
    completed: bool


class ProgressResponse(WireModel):
    topic: str
    completed_resource_ids: List[int] = Field(default_factory=list, alias="completedResourceIds")


def _progress_response(topic: str, completed: Set[int]) -> dict:
    return ProgressResponse(topic=topic, completed_resource_ids=sorted(completed)).to_wire()


@progress_router.put("")
def toggle_progress(payload: ProgressToggleRequest, session: Session = Depends(get_session_dependency)) -> dict:
    try:
        progress.set_completed(
            session,
            payload.user_id,
            payload.topic,
            payload.resource_id,
            payload.week_number,
            payload.completed,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return _progress_response(payload.topic, progress.completed_ids(session, payload.user_id, payload.topic))


@progress_router.get("")
def get_progress(
    user_id: str = Query(..., min_length=1, alias="userId"),
    topic: str = Query(..., min_length=1),
    session: Session = Depends(get_session_dependency),
) -> dict:
    return _progress_response(topic, progress.completed_ids(session, user_id, topic))


__all__ = [
    "get_plan_generator",
    "get_plan_validator",
    "progress_router",
    "router",
    "run_generation_pipeline",
    "validation_error_handler",
]
