"""Pace and heart-rate calibration.

All pace bands are anchored on one goal pace (seconds per kilometre). The goal
pace comes from the objective text first, then the athlete's declared goal
time and distance, then the athlete's recent running history.
"""

import math
import re
from dataclasses import dataclass
from typing import Any

from runplan.core.numeric import clamp, to_optional_float
from runplan.plans.classify import fold, is_interval_like
from runplan.plans.types import AthleteProfile, Session, SessionRole, WeekPhase

KM_PER_MILE = 1.60934
DEFAULT_GOAL_PACE_SEC = 320.0
DEFAULT_EASY_PACE_LABEL = "Easy conversational pace"

_PACE_RE = re.compile(r"(\d{1,2}):(\d{2})\s*/\s*(km|mi)", re.IGNORECASE)
_HR_RE = re.compile(r"fcmax|hrmax|%|bpm", re.IGNORECASE)
_KM_RE = re.compile(r"(?:sur\s+|over\s+)?([0-9]+(?:[.,][0-9]+)?)\s*(?:km\b|k\b)", re.IGNORECASE)
_HMS_RE = re.compile(r"\b(\d{1,2})\s*([h:])\s*(\d{2})(?:\s*[:']\s*(\d{2}))?\b(?!\s*/)", re.IGNORECASE)
_MINUTES_RE = re.compile(r"\b(?:in|en|under|sous)\s+(\d{2,3})\s*(?:min|minutes)\b", re.IGNORECASE)


@dataclass(frozen=True)
class PaceModel:
    """Role pace bands in seconds per kilometre, derived from the goal pace."""

    goal_pace_sec: float
    long_min_sec: float
    long_max_sec: float
    easy_min_sec: float
    easy_max_sec: float
    threshold_min_sec: float
    threshold_max_sec: float
    interval_min_sec: float
    interval_max_sec: float


def has_explicit_pace(text: str) -> bool:
    return _PACE_RE.search(text) is not None


def has_explicit_hr(text: str) -> bool:
    return _HR_RE.search(text) is not None


def parse_pace_sec_per_km(text: str) -> float | None:
    """Read the first "M:SS/km" or "M:SS/mi" pace, converted to seconds per km."""
    match = _PACE_RE.search(text)
    if match is None:
        return None
    total = int(match.group(1)) * 60 + int(match.group(2))
    if match.group(3).lower() == "mi":
        return total / KM_PER_MILE
    return float(total)


def shift_pace_text(text: str, delta_sec: float) -> str:
    """Shift every explicit pace in `text` by `delta_sec` seconds (clamped 2:00-15:00)."""
    if not math.isfinite(delta_sec) or delta_sec == 0:
        return text

    def _shift(match: re.Match[str]) -> str:
        total = int(match.group(1)) * 60 + int(match.group(2))
        shifted = int(clamp(total + delta_sec, 120, 900))
        return f"{shifted // 60}:{shifted % 60:02d}/{match.group(3).lower()}"

    return _PACE_RE.sub(_shift, text)


def format_pace(sec_per_km: float) -> str:
    safe = int(clamp(round(sec_per_km), 180, 780))
    return f"{safe // 60}:{safe % 60:02d}/km"


def format_pace_range(first_sec: float, second_sec: float) -> str:
    lower = clamp(min(first_sec, second_sec), 180, 780)
    upper = clamp(max(first_sec, second_sec), 180, 780)
    return f"{format_pace(lower)}-{format_pace(upper)}"


def parse_objective_distance_km(objective: str) -> float | None:
    """Infer the race distance from objective text.

    Recognizes explicit kilometres ("42 km", "sur 21 km", "10k") and named
    distances (marathon, half marathon / semi-marathon).
    """
    folded = fold(objective)
    if any(label in folded for label in ("half marathon", "half-marathon", "semi marathon", "semi-marathon")):
        return 21.0975
    if "marathon" in folded:
        return 42.195
    match = _KM_RE.search(objective)
    if match is None:
        return None
    value = to_optional_float(match.group(1))
    if value is None or value <= 0:
        return None
    return value


def parse_objective_time_sec(objective: str) -> float | None:
    """Infer a goal finishing time ("3h30", "1:45:00", "45:00", "in 50 min") from objective text.

    A two-part "A:BB" value reads as hours and minutes when A is below 10,
    as minutes and seconds otherwise.
    """
    match = _HMS_RE.search(objective)
    if match is not None:
        first, second = int(match.group(1)), int(match.group(3))
        third = int(match.group(4)) if match.group(4) else None
        if third is not None:
            total = first * 3600 + second * 60 + third
        elif match.group(2).lower() == "h" or first < 10:
            total = first * 3600 + second * 60
        else:
            total = first * 60 + second
        if second < 60 and (third is None or third < 60) and total > 0:
            return float(total)
    match = _MINUTES_RE.search(objective)
    if match is not None:
        return float(int(match.group(1)) * 60)
    return None


def profile_goal_pace_sec(profile: AthleteProfile | None) -> float | None:
    if profile is None or not profile.goal_time_sec or not profile.goal_distance_km:
        return None
    return profile.goal_time_sec / profile.goal_distance_km


def _running_profile(context: dict[str, Any]) -> dict[str, Any]:
    for key in ("running_profile", "runningProfile"):
        value = context.get(key)
        if isinstance(value, dict):
            return value
    return {}


def _profile_number(profile: dict[str, Any], snake: str, camel: str) -> float | None:
    value = to_optional_float(profile.get(snake))
    if value is None:
        value = to_optional_float(profile.get(camel))
    return value


def build_pace_model(
    context: dict[str, Any],
    objective: str,
    profile: AthleteProfile | None = None,
) -> PaceModel:
    """Derive role pace bands from the objective, the profile and recent history.

    Args:
        context: Training context (reads running_profile median and q25 paces)
        objective: Free-text objective, may hold an explicit pace
        profile: Athlete profile, may hold goal time and distance

    Returns:
        PaceModel anchored on the resolved goal pace
    """
    running = _running_profile(context)
    median_min = _profile_number(running, "median_pace_min_per_km", "medianPaceMinPerKm")
    q25_min = _profile_number(running, "q25_pace_min_per_km", "q25PaceMinPerKm")

    median_sec = clamp(median_min * 60, 190, 760) if median_min is not None else None
    q25_sec = clamp(q25_min * 60, 180, 740) if q25_min is not None else None

    objective_pace = parse_pace_sec_per_km(objective)
    profile_pace = profile_goal_pace_sec(profile)
    if objective_pace is not None:
        goal = clamp(objective_pace, 180, 760)
    elif profile_pace is not None:
        goal = clamp(profile_pace, 180, 760)
    elif q25_sec is not None:
        goal = q25_sec
    elif median_sec is not None:
        goal = median_sec * 0.95
    else:
        goal = DEFAULT_GOAL_PACE_SEC

    if median_sec is not None:
        goal = clamp(goal, median_sec * 0.7, median_sec * 1.15)

    return PaceModel(
        goal_pace_sec=goal,
        long_min_sec=clamp(goal + 32, 205, 780),
        long_max_sec=clamp(goal + 62, 225, 780),
        easy_min_sec=clamp(goal + 48, 220, 780),
        easy_max_sec=clamp(goal + 78, 240, 780),
        threshold_min_sec=clamp(goal - 18, 180, 700),
        threshold_max_sec=clamp(goal - 6, 188, 720),
        interval_min_sec=clamp(goal - 42, 175, 660),
        interval_max_sec=clamp(goal - 24, 180, 680),
    )


def goal_pace_range(model: PaceModel) -> str:
    return format_pace_range(model.goal_pace_sec - 3, model.goal_pace_sec + 4)


def easy_pace_range(model: PaceModel) -> str:
    return format_pace_range(model.easy_min_sec, model.easy_max_sec)


def pace_delta_sec(role: SessionRole, phase: WeekPhase, week_index: int, total_weeks: int) -> int:
    """Seconds added to an explicit pace for this role and phase (negative is faster)."""
    if phase == WeekPhase.BUILD:
        if role == SessionRole.QUALITY:
            return -2 - ((week_index + total_weeks) % 2)
        if role == SessionRole.LONG:
            return -1 if week_index % 2 == 0 else 0
        return 1
    if phase == WeekPhase.DELOAD:
        return {SessionRole.QUALITY: 6, SessionRole.LONG: 4}.get(role, 2)
    if week_index == total_weeks:
        return {SessionRole.QUALITY: 8, SessionRole.LONG: 6}.get(role, 3)
    return {SessionRole.QUALITY: 4, SessionRole.LONG: 2}.get(role, 1)


def role_pace_target(session: Session, role: SessionRole, phase: WeekPhase, model: PaceModel) -> str:
    if phase == WeekPhase.TAPER and role == SessionRole.QUALITY:
        return goal_pace_range(model)
    if role == SessionRole.LONG:
        return format_pace_range(model.long_min_sec, model.long_max_sec)
    if role == SessionRole.EASY:
        return easy_pace_range(model)
    if is_interval_like(session.title, session.objective, session.notes):
        return format_pace_range(model.interval_min_sec, model.interval_max_sec)
    return format_pace_range(model.threshold_min_sec, model.threshold_max_sec)


def role_hr_target(session: Session, role: SessionRole, phase: WeekPhase) -> str:
    if phase == WeekPhase.TAPER and role == SessionRole.QUALITY:
        return "78-86% HRmax"
    if role == SessionRole.LONG:
        return "70-83% HRmax"
    if role == SessionRole.EASY:
        return "65-76% HRmax"
    if is_interval_like(session.title, session.objective, session.notes):
        return "88-95% HRmax"
    return "82-90% HRmax"


def choose_pace_target(base: str, fallback: str) -> str:
    """Keep a specific pace description, replace a missing or generic one."""
    cleaned = base.strip()
    if len(cleaned) >= 4 and cleaned.lower() != DEFAULT_EASY_PACE_LABEL.lower():
        return cleaned
    return fallback
