"""Pydantic models for learning plans and their wire contract."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ResourceType = Literal["video", "reading", "interactive", "project"]


class WireModel(BaseModel):
    """Base for models exchanged with clients using camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Resource(WireModel):
    id: int
    type: ResourceType
    title: str
    source: str
    url: str
    duration: str
    description: str
    completed: bool = False


class Week(WireModel):
    week_number: int = Field(..., ge=1, alias="weekNumber")
    theme: str
    resources: List[Resource] = Field(default_factory=list)


class Plan(WireModel):
    topic: str
    weeks: List[Week] = Field(default_factory=list)

    def resource_count(self) -> int:
        return sum(len(week.resources) for week in self.weeks)


class EnrichedPlan(Plan):
    """A plan plus the request parameters it was generated for."""

    level: str
    total_weeks: int = Field(..., ge=1, alias="totalWeeks")
    hours_per_week: int = Field(..., ge=1, alias="hoursPerWeek")

    @classmethod
    def from_plan(cls, plan: Plan, request: "GeneratePlanRequest") -> "EnrichedPlan":
        return cls(
            topic=plan.topic,
            weeks=plan.weeks,
            level=request.level,
            total_weeks=request.weeks,
            hours_per_week=request.hours_per_week,
        )


class GeneratePlanRequest(WireModel):
    topic: str = Field(..., min_length=1, max_length=200)
    level: str = Field(..., min_length=1, max_length=64)
    weeks: int = Field(..., ge=1, le=52)
    hours_per_week: int = Field(..., ge=1, le=80, alias="hoursPerWeek")
    user_id: Optional[str] = Field(default=None, alias="userId")


class GeneratePlanResponse(WireModel):
    plan: EnrichedPlan


__all__ = [
    "EnrichedPlan",
    "GeneratePlanRequest",
    "GeneratePlanResponse",
    "Plan",
    "Resource",
    "ResourceType",
    "Week",
    "WireModel",
]
