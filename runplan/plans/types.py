"""Canonical training plan schema.

Every model here describes data that has already been coerced: numeric
fields are clamped, strings are non-empty and every week holds exactly four
sessions. Raw backend output never reaches these models directly, it goes
through runplan.plans.coercion first.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

SESSIONS_PER_WEEK = 4


class Weekday(StrEnum):
    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"
    FRI = "Fri"
    SAT = "Sat"
    SUN = "Sun"


class SessionCategory(StrEnum):
    """Keyword category of a session, highest priority first."""

    RACE = "race"
    INTERVAL = "interval"
    THRESHOLD = "threshold"
    EASY = "easy"
    GENERAL = "general"


class SessionRole(StrEnum):
    LONG = "long"
    QUALITY = "quality"
    EASY = "easy"


class WeekPhase(StrEnum):
    BUILD = "build"
    DELOAD = "deload"
    TAPER = "taper"


class Block(BaseModel):
    """One step of a session (warm-up, main set, cool-down...).

    Attributes:
        step: Short label of the step
        duration_min: Step duration in whole minutes (2-240)
        pace_target: Pace prescription for the step
        hr_target: Heart-rate prescription for the step
        repeat: Repetition count for interval steps
        notes: Free-text execution cue
    """

    step: str
    duration_min: int = Field(ge=2, le=360)
    pace_target: str
    hr_target: str
    repeat: int | None = Field(default=None, ge=1)
    notes: str = ""


class Session(BaseModel):
    """One planned workout."""

    week_index: int = Field(ge=1)
    session_index: int = Field(ge=1, le=SESSIONS_PER_WEEK)
    day: Weekday
    title: str
    objective: str
    zone: str
    duration_min: int = Field(ge=20, le=360)
    distance_km: float = Field(ge=1.0, le=80.0)
    pace_target: str
    hr_target: str
    notes: str = ""
    rationale: str = ""
    blocks: list[Block] = Field(default_factory=list)
    is_race: bool = False


class Week(BaseModel):
    week_index: int = Field(ge=1)
    theme: str
    focus: str
    weekly_volume_km: float = Field(ge=0.0)
    sessions: list[Session]


class PlanSkeleton(BaseModel):
    """Structurally valid plan as produced by coercion, before periodization."""

    title: str
    overview: str
    methodology: str
    warnings: list[str] = Field(default_factory=list)
    weeks: list[Week]


class Plan(BaseModel):
    title: str
    goal: str
    week_count: int = Field(ge=1)
    start_date: str
    race_date: str
    days_to_race: int
    overview: str
    methodology: str
    warnings: list[str] = Field(default_factory=list)
    weeks: list[Week]
    model: str = ""
    generated_at: datetime | None = None


class AthleteProfile(BaseModel):
    """Athlete attributes that steer heart-rate bands and goal pace."""

    hr_max: int | None = Field(default=None, ge=100, le=240)
    age: int | None = Field(default=None, ge=10, le=100)
    weight_kg: float | None = Field(default=None, gt=0)
    height_cm: float | None = Field(default=None, gt=0)
    goal_type: str | None = None
    goal_distance_km: float | None = Field(default=None, gt=0)
    goal_time_sec: int | None = Field(default=None, gt=0)
    speed_unit: str = "kmh"
    distance_unit: str = "km"
    elevation_unit: str = "m"
    cadence_unit: str = "spm"


class PlanRequest(BaseModel):
    objective: str
    week_count: int = Field(ge=1)
    start_date: str
    race_date: str
    days_to_race: int
    context: dict[str, Any] = Field(default_factory=dict)
    profile: AthleteProfile | None = None


class AdaptSessionRequest(BaseModel):
    objective: str
    start_date: str
    race_date: str
    days_to_race: int
    week_index: int = Field(ge=1)
    session_index: int = Field(ge=1, le=SESSIONS_PER_WEEK)
    session: Session
    sibling_sessions: list[Session] = Field(default_factory=list)
    context: dict[str, Any] = Field(default_factory=dict)
    profile: AthleteProfile | None = None
    user_request: str = ""


class AdaptedSession(BaseModel):
    model: str
    generated_at: datetime
    session: Session
