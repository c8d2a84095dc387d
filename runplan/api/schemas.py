"""Request bodies for the training plan endpoints."""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from runplan.plans.context import Activity
from runplan.plans.types import AthleteProfile, Session


class TrainingPlanBody(BaseModel):
    """Body of POST /training-plan."""

    objective: str = Field(..., min_length=8, max_length=240, description="Goal race and target, free text")
    race_date: date = Field(..., description="Race date (ISO)")
    start_date: date | None = Field(default=None, description="Plan start date, defaults to today")
    profile: AthleteProfile | None = Field(default=None, description="Athlete settings")
    context: dict[str, Any] = Field(default_factory=dict, description="Precomputed training context")
    activities: list[Activity] = Field(
        default_factory=list,
        description="Raw activity history, summarised into the context when no context is given",
    )


class AdaptSessionBody(BaseModel):
    """Body of POST /training-plan/adapt-session."""

    objective: str = Field(..., min_length=8, max_length=240)
    race_date: date
    start_date: date | None = None
    week_index: int = Field(..., ge=1)
    session_index: int = Field(..., ge=1, le=4)
    session: Session
    sibling_sessions: list[Session] = Field(default_factory=list)
    profile: AthleteProfile | None = None
    context: dict[str, Any] = Field(default_factory=dict)
    user_request: str = Field(default="", max_length=500, description="What the athlete wants changed")
