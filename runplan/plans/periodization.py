"""Periodization of a coerced plan skeleton.

Each week gets a phase (build, deload, taper) and a volume target. Sessions
get a role (one long run, two quality sessions, easy runs), are resized toward
the weekly target within role bounds, and are re-prescribed with role/phase
pace and heart-rate targets. Monotonous or repeated sessions are rewritten from
role templates.

Nothing here raises on odd inputs; out-of-range values are clamped.
"""

import math
import re
from dataclasses import dataclass
from typing import Any

from loguru import logger

from runplan.core.numeric import clamp, mean, rescale_to_total
from runplan.plans.blocks import RECOVERY_JOG_MIN, build_fallback_blocks, scale_blocks_to_duration
from runplan.plans.classify import is_quality_like, looks_long, normalize_for_comparison
from runplan.plans.coercion import DEFAULT_FOCUS
from runplan.plans.days import day_rank
from runplan.plans.pace import (
    PaceModel,
    build_pace_model,
    easy_pace_range,
    goal_pace_range,
    has_explicit_hr,
    has_explicit_pace,
    pace_delta_sec,
    role_hr_target,
    role_pace_target,
    shift_pace_text,
)
from runplan.plans.types import AthleteProfile, Block, Session, SessionRole, Week, WeekPhase
from runplan.plans.variation import apply_variation_template, differentiate_week, has_generic_title, is_repeat_of, week_needs_variation

DEFAULT_BASELINE_KM = 42.0
MAX_WEEKLY_GROWTH = 1.1
DEFAULT_VOLUME_TOLERANCE_KM = 0.4

ROLE_DISTANCE_KM: dict[SessionRole, tuple[float, float]] = {
    SessionRole.LONG: (12.0, 38.0),
    SessionRole.QUALITY: (6.0, 18.0),
    SessionRole.EASY: (5.0, 16.0),
}
ROLE_DURATION_MIN: dict[SessionRole, tuple[float, float]] = {
    SessionRole.LONG: (70.0, 240.0),
    SessionRole.QUALITY: (35.0, 110.0),
    SessionRole.EASY: (30.0, 90.0),
}

_GENERIC_THEME_RE = re.compile(r"^(week|semaine)\s+\d+")


@dataclass(frozen=True)
class PlanWeekRules:
    """Anchor weeks of a plan, counted back from the race week."""

    peak_week: int
    taper_minus_14_week: int
    taper_minus_7_week: int
    race_week: int

    @classmethod
    def for_weeks(cls, total_weeks: int) -> "PlanWeekRules":
        race_week = max(1, total_weeks)
        return cls(
            peak_week=max(1, race_week - 3),
            taper_minus_14_week=max(1, race_week - 2),
            taper_minus_7_week=max(1, race_week - 1),
            race_week=race_week,
        )


def is_deload_week(week_index: int, rules: PlanWeekRules) -> bool:
    return week_index < rules.peak_week and week_index % 4 == 0


def detect_week_phase(week_index: int, total_weeks: int, rules: PlanWeekRules | None = None) -> WeekPhase:
    rules = rules or PlanWeekRules.for_weeks(total_weeks)
    if week_index >= rules.taper_minus_14_week:
        return WeekPhase.TAPER
    if is_deload_week(week_index, rules):
        return WeekPhase.DELOAD
    return WeekPhase.BUILD


def build_weekly_volume_targets(
    baseline_km: float,
    total_weeks: int,
    rules: PlanWeekRules | None = None,
) -> list[float]:
    """Weekly volume targets in km, one per week.

    Build weeks rise 10% at the start of each 4-week cycle and 7% otherwise,
    deload weeks drop to 75%, the peak week rises at most 8%, and the last
    three weeks taper to 80%, 50% and 35% of the peak. No week exceeds 110%
    of the week before.
    """
    rules = rules or PlanWeekRules.for_weeks(total_weeks)
    base = clamp(baseline_km, 20, 110)
    weekly = [base] * max(total_weeks, 1)

    for week_index in range(2, rules.peak_week + 1):
        previous = weekly[week_index - 2]
        if is_deload_week(week_index, rules) and week_index != rules.peak_week:
            weekly[week_index - 1] = round(previous * 0.75, 1)
            continue
        rise = 0.10 if week_index % 4 == 1 else 0.07
        weekly[week_index - 1] = round(previous * (1 + rise), 1)

    if rules.peak_week >= 2:
        previous = weekly[rules.peak_week - 2]
        weekly[rules.peak_week - 1] = min(round(previous * 1.08, 1), round(previous * 1.1, 1))

    peak = weekly[rules.peak_week - 1]
    for week_index, share in (
        (rules.taper_minus_14_week, 0.8),
        (rules.taper_minus_7_week, 0.5),
        (rules.race_week, 0.35),
    ):
        if 1 <= week_index <= total_weeks:
            weekly[week_index - 1] = round(peak * share, 1)

    for index in range(1, len(weekly)):
        ceiling = weekly[index - 1] * MAX_WEEKLY_GROWTH
        if weekly[index] > ceiling:
            weekly[index] = round(ceiling, 1)

    return [clamp(value, 15, 160) for value in weekly[:total_weeks]]


def baseline_volume_km(weeks: list[Week]) -> float:
    """Mean volume of the first two weeks, clamped to 24-95 km (42 when unknown)."""
    volumes = []
    for week in weeks[:2]:
        total = sum(session.distance_km for session in week.sessions)
        volumes.append(total if total > 0 else week.weekly_volume_km)
    candidate = mean(volumes)
    if candidate is None or not math.isfinite(candidate) or candidate <= 0:
        candidate = DEFAULT_BASELINE_KM
    return clamp(candidate, 24, 95)


def detect_session_roles(sessions: list[Session]) -> list[SessionRole]:
    """Assign one long run, up to two quality sessions and easy runs.

    The long run is the longest session by distance. Quality sessions are the
    other sessions with intensity keywords; when fewer than two match, the
    earliest remaining sessions in the week fill the gap.
    """
    roles = [SessionRole.EASY] * len(sessions)
    if not sessions:
        return roles

    longest = max(range(len(sessions)), key=lambda index: (sessions[index].distance_km, -index))
    roles[longest] = SessionRole.LONG

    quality = [index for index, session in enumerate(sessions) if index != longest and is_quality_like(session)]
    for index in quality:
        roles[index] = SessionRole.QUALITY

    if len(quality) < 2:
        fill = sorted(
            (index for index in range(len(sessions)) if index != longest and roles[index] != SessionRole.QUALITY),
            key=lambda index: day_rank(sessions[index].day),
        )
        for index in fill[: 2 - len(quality)]:
            roles[index] = SessionRole.QUALITY
    return roles


def role_scale(role: SessionRole, phase: WeekPhase, week_index: int, position: int, total_weeks: int) -> float:
    if phase == WeekPhase.BUILD:
        scale = 1 + (((week_index + position) % 3) - 1) * 0.025
        if role == SessionRole.LONG:
            scale *= 1.05
        elif role == SessionRole.QUALITY:
            scale *= 1.03
        return scale
    if phase == WeekPhase.DELOAD:
        return {SessionRole.QUALITY: 0.88, SessionRole.LONG: 0.9}.get(role, 0.94)
    if week_index == total_weeks:
        return {SessionRole.QUALITY: 0.62, SessionRole.LONG: 0.58}.get(role, 0.72)
    return {SessionRole.QUALITY: 0.82, SessionRole.LONG: 0.78}.get(role, 0.9)


def week_theme_and_focus(week_index: int, total_weeks: int) -> tuple[str, str]:
    phase = detect_week_phase(week_index, total_weeks)
    if phase == WeekPhase.TAPER:
        if week_index == total_weeks:
            return "Final taper", "Reduce the load, keep some sharpness and arrive fresh on race day."
        return "Early taper", "Keep the useful intensity while cutting volume so freshness builds up."
    if phase == WeekPhase.DELOAD:
        return "Assimilation", "Lighter week to absorb the previous load without losing fitness."
    return "Specific development", "Controlled progression of volume and quality toward the goal."


def _resize(session: Session, role: SessionRole, distance_km: float) -> Session:
    """Set a new distance, scale the duration by the same ratio within role bounds, refit blocks."""
    low, high = ROLE_DURATION_MIN[role]
    ratio = distance_km / session.distance_km if session.distance_km > 0 else 1.0
    duration = int(clamp(round(session.duration_min * ratio), low, high))
    return session.model_copy(
        update={
            "distance_km": round(distance_km, 1),
            "duration_min": duration,
            "blocks": scale_blocks_to_duration(session.blocks, duration),
        }
    )


def fit_week_volume(sessions: list[Session], roles: list[SessionRole], target_km: float) -> list[Session]:
    """Rescale distances toward `target_km` within role bounds, keeping durations and blocks consistent."""
    distances = rescale_to_total(
        [session.distance_km for session in sessions],
        target_km,
        [ROLE_DISTANCE_KM[role] for role in roles],
        digits=1,
    )
    return [_resize(session, role, distance) for session, role, distance in zip(sessions, roles, distances, strict=True)]


def cap_week_growth(sessions: list[Session], roles: list[SessionRole], previous_volume_km: float) -> list[Session]:
    """Shrink a week whose volume exceeds 110% of the previous week's volume."""
    cap = math.floor(previous_volume_km * MAX_WEEKLY_GROWTH * 10 + 1e-6) / 10
    total = round(sum(session.distance_km for session in sessions), 1)
    if total <= cap:
        return sessions
    logger.debug("Capping weekly growth", previous_km=previous_volume_km, volume_km=total, cap_km=cap)
    return fit_week_volume(sessions, roles, cap)


def goal_pace_tuneup_blocks(duration_min: int, model: PaceModel) -> list[Block]:
    """Short goal-pace reminders for taper quality sessions."""
    total = int(clamp(duration_min, 30, 75))
    warmup = int(clamp(round(total * 0.35), 10, 20))
    cooldown = int(clamp(round(total * 0.25), 8, 16))
    middle = max(total - warmup - cooldown, 12)
    repeat = 3 if middle >= 18 else 2
    rep_duration = int(clamp(round((middle - (repeat - 1) * RECOVERY_JOG_MIN) / repeat), 4, 8))
    main = repeat * rep_duration + (repeat - 1) * RECOVERY_JOG_MIN
    final_cooldown = max(6, total - warmup - main)
    blocks = [
        Block(
            step="Warm-up",
            duration_min=warmup,
            pace_target=easy_pace_range(model),
            hr_target="<= 76% HRmax",
            notes="Progressive start.",
        ),
        Block(
            step="Goal-pace reminder",
            duration_min=main,
            pace_target=goal_pace_range(model),
            hr_target="78-86% HRmax",
            repeat=repeat,
            notes=f"{repeat} x {rep_duration} min at goal pace / {RECOVERY_JOG_MIN} min very easy.",
        ),
        Block(
            step="Cool-down",
            duration_min=final_cooldown,
            pace_target=easy_pace_range(model),
            hr_target="<= 74% HRmax",
            notes="Loose finish without adding fatigue.",
        ),
    ]
    return scale_blocks_to_duration(blocks, duration_min)


def _fallback_blocks_for(session: Session) -> list[Block]:
    return build_fallback_blocks(
        title=session.title,
        objective=session.objective,
        zone=session.zone,
        notes=session.notes,
        duration_min=session.duration_min,
        pace_target=session.pace_target,
        hr_target=session.hr_target,
    )


def _main_blocks(blocks: list[Block]) -> list[Block]:
    return blocks[1:-1] if len(blocks) > 2 else blocks


def _role_mismatch(session: Session, role: SessionRole) -> bool:
    if role == SessionRole.QUALITY:
        return not is_quality_like(session)
    if role == SessionRole.LONG:
        return not looks_long(session)
    return False


def calibrate_session(
    session: Session,
    *,
    role: SessionRole,
    phase: WeekPhase,
    position: int,
    week_index: int,
    total_weeks: int,
    volume_scale: float,
    force_variation: bool,
    previous: Session | None,
    pace_model: PaceModel,
) -> Session:
    """First pass on one session: resize by role and phase, vary, re-prescribe pace and HR."""
    scale = volume_scale * role_scale(role, phase, week_index, position, total_weeks)
    distance_low, distance_high = ROLE_DISTANCE_KM[role]
    duration_low, duration_high = ROLE_DURATION_MIN[role]
    current = session.model_copy(
        update={
            "distance_km": round(clamp(session.distance_km * scale, distance_low, distance_high), 1),
            "duration_min": int(clamp(round(session.duration_min * scale), duration_low, duration_high)),
        }
    )

    template_applied = False
    if force_variation or _role_mismatch(current, role):
        current = apply_variation_template(current, role, week_index)
        template_applied = True
    if (previous is not None and is_repeat_of(current, previous)) or has_generic_title(current):
        current = apply_variation_template(current, role, week_index)
        template_applied = True

    shifted = shift_pace_text(current.pace_target, pace_delta_sec(role, phase, week_index, total_weeks))
    role_pace = role_pace_target(current, role, phase, pace_model)
    role_hr = role_hr_target(current, role, phase)
    current = current.model_copy(
        update={
            "pace_target": shifted if has_explicit_pace(shifted) else role_pace,
            "hr_target": current.hr_target if has_explicit_hr(current.hr_target) else role_hr,
        }
    )

    if phase == WeekPhase.TAPER and role == SessionRole.QUALITY:
        return current.model_copy(
            update={
                "title": "Goal-pace reminder",
                "objective": "Keep sharpness with short blocks at goal pace.",
                "zone": "Z2-Z3",
                "notes": "Reduced volume, intensity kept through short goal-pace reminders.",
                "pace_target": role_pace,
                "hr_target": role_hr,
                "blocks": goal_pace_tuneup_blocks(current.duration_min, pace_model),
            }
        )

    blocks = _fallback_blocks_for(current) if template_applied else current.blocks
    main = _main_blocks(blocks)
    has_numeric_pace = any(has_explicit_pace(block.pace_target) for block in main)
    has_hr = any(has_explicit_hr(block.hr_target) for block in main)
    if not blocks or not has_numeric_pace or not has_hr:
        blocks = _fallback_blocks_for(current)
    return current.model_copy(update={"blocks": scale_blocks_to_duration(blocks, current.duration_min)})


def _needs_new_theme(theme: str, source_theme_previous: str | None) -> bool:
    cleaned = theme.strip()
    if len(cleaned) < 4 or _GENERIC_THEME_RE.match(normalize_for_comparison(cleaned)):
        return True
    return source_theme_previous is not None and cleaned == source_theme_previous


def _needs_new_focus(focus: str, source_focus_previous: str | None) -> bool:
    cleaned = focus.strip()
    if len(cleaned) < 6 or cleaned == DEFAULT_FOCUS:
        return True
    return source_focus_previous is not None and cleaned == source_focus_previous


def periodize_weeks(
    weeks: list[Week],
    *,
    total_weeks: int,
    context: dict[str, Any],
    objective: str,
    profile: AthleteProfile | None = None,
    volume_tolerance_km: float = DEFAULT_VOLUME_TOLERANCE_KM,
) -> list[Week]:
    """Apply progression, variation and pace calibration to every week.

    Args:
        weeks: Coerced weeks, in order
        total_weeks: Plan length (the last week is the race week)
        context: Training context, used for the pace model
        objective: Free-text objective, used for the pace model
        profile: Athlete profile, used for the pace model
        volume_tolerance_km: Gap from the weekly target that triggers a corrective rescale

    Returns:
        New list of weeks
    """
    if not weeks:
        return []

    rules = PlanWeekRules.for_weeks(total_weeks)
    baseline = baseline_volume_km(weeks)
    targets = build_weekly_volume_targets(baseline, total_weeks, rules)
    pace_model = build_pace_model(context, objective, profile)
    logger.info(
        "Periodizing plan",
        total_weeks=total_weeks,
        baseline_km=round(baseline, 1),
        peak_week=rules.peak_week,
        goal_pace_sec=round(pace_model.goal_pace_sec),
    )

    result: list[Week] = []
    for position, source in enumerate(weeks):
        week_index = position + 1
        previous = result[-1] if result else None
        phase = detect_week_phase(week_index, total_weeks, rules)
        ordered = sorted(source.sessions, key=lambda session: day_rank(session.day))
        roles = detect_session_roles(ordered)
        force_variation = week_needs_variation(ordered, roles)
        current_volume = sum(session.distance_km for session in ordered)
        target = targets[position] if position < len(targets) else targets[-1]
        volume_scale = target / current_volume if current_volume > 0 else 1.0

        sessions = [
            calibrate_session(
                session,
                role=roles[index],
                phase=phase,
                position=index,
                week_index=week_index,
                total_weeks=total_weeks,
                volume_scale=volume_scale,
                force_variation=force_variation,
                previous=previous.sessions[index] if previous and index < len(previous.sessions) else None,
                pace_model=pace_model,
            )
            for index, session in enumerate(ordered)
        ]

        realised = round(sum(session.distance_km for session in sessions), 1)
        if abs(realised - target) > volume_tolerance_km:
            sessions = fit_week_volume(sessions, roles, target)
        if previous is not None and week_index != rules.race_week:
            sessions = cap_week_growth(sessions, roles, previous.weekly_volume_km)

        sessions = differentiate_week(
            [
                session.model_copy(update={"week_index": week_index, "session_index": index + 1})
                for index, session in enumerate(sessions)
            ]
        )
        weekly_volume = round(sum(session.distance_km for session in sessions), 1)

        default_theme, default_focus = week_theme_and_focus(week_index, total_weeks)
        source_previous = weeks[position - 1] if position > 0 else None
        theme = (
            default_theme
            if _needs_new_theme(source.theme, source_previous.theme if source_previous else None)
            else source.theme.strip()
        )
        focus = (
            default_focus
            if _needs_new_focus(source.focus, source_previous.focus if source_previous else None)
            else source.focus.strip()
        )

        logger.debug(
            "Week periodized",
            week_index=week_index,
            phase=phase.value,
            target_km=target,
            volume_km=weekly_volume,
            forced_variation=force_variation,
        )
        result.append(
            Week(
                week_index=week_index,
                theme=theme,
                focus=focus,
                weekly_volume_km=weekly_volume,
                sessions=sessions,
            )
        )
    return result
