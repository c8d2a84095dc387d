"""Coercion of untrusted backend output into a structurally valid plan.

Nothing in this module raises on bad field values: every missing, mistyped or
out-of-range field is replaced by a clamped value or a literal default, so
that later stages can rely on exactly `week_count` weeks of exactly four
sessions, each with 2-4 blocks that sum to the session duration.

Raw objects may use the camelCase keys requested in the prompt or snake_case
keys; both are read.
"""

from typing import Any

from loguru import logger

from runplan.core.numeric import clamp, to_optional_float
from runplan.plans.blocks import build_fallback_blocks, scale_blocks_to_duration
from runplan.plans.days import day_rank, first_unused_day, normalize_day
from runplan.plans.types import SESSIONS_PER_WEEK, Block, PlanSkeleton, Session, SessionRole, Week, Weekday
from runplan.plans.variation import apply_variation_template

DEFAULT_SESSION_DURATION_MIN = 45
DEFAULT_SESSION_DISTANCE_KM = 7.5
DEFAULT_OBJECTIVE = "Develop aerobic fitness at a controlled effort."
DEFAULT_ZONE = "Z1-Z2"
DEFAULT_PACE = "Easy conversational pace"
DEFAULT_HR = "65-75% HRmax"
DEFAULT_RATIONALE = "Explains the load and intensity of the session within the weekly progression."
DEFAULT_FOCUS = "Controlled progression and active recovery."
DEFAULT_OVERVIEW = "Periodized plan with controlled progression and varied intensities."
DEFAULT_METHODOLOGY = "Progressive overload, goal specificity and alternating load and recovery."

MAX_BLOCKS = 4
MIN_BLOCKS = 2
MAX_NOTES_CHARS = 220
MAX_BLOCK_NOTES_CHARS = 180
MAX_WARNINGS = 8
MAX_WARNING_CHARS = 220

# (role, duration_min, distance_km) for a missing session at each position
PADDING_SLOTS: tuple[tuple[SessionRole, int, float], ...] = (
    (SessionRole.EASY, 45, 7.5),
    (SessionRole.QUALITY, 52, 9.0),
    (SessionRole.QUALITY, 52, 9.0),
    (SessionRole.LONG, 85, 14.0),
)


def _field(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def text_or_default(value: Any, fallback: str, min_len: int = 2) -> str:
    if not isinstance(value, str):
        return fallback
    cleaned = value.strip()
    return cleaned if len(cleaned) >= min_len else fallback


def notes_text(value: Any, max_chars: int = MAX_NOTES_CHARS) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()[:max_chars]


def coerce_warnings(value: Any) -> list[str]:
    warnings = [entry.strip()[:MAX_WARNING_CHARS] for entry in _as_list(value) if isinstance(entry, str)]
    return [entry for entry in warnings if len(entry) >= 2][:MAX_WARNINGS]


def coerce_blocks(
    raw_blocks: Any,
    *,
    title: str,
    objective: str,
    zone: str,
    notes: str,
    duration_min: int,
    pace_target: str,
    hr_target: str,
) -> list[Block]:
    """Keep the first valid raw blocks, or build a fallback structure.

    A raw block is valid when its duration can be read. At most four are kept;
    fewer than two valid blocks means the fallback structure is used. The
    result always sums to the session duration.
    """
    blocks: list[Block] = []
    for index, item in enumerate(_as_list(raw_blocks)):
        raw = _as_dict(item)
        duration = to_optional_float(_field(raw, "duration_min", "durationMin"))
        if duration is None:
            continue
        repeat_raw = to_optional_float(_field(raw, "repeat"))
        blocks.append(
            Block(
                step=text_or_default(_field(raw, "step"), f"Block {index + 1}"),
                duration_min=int(clamp(round(duration), 2, 240)),
                pace_target=text_or_default(_field(raw, "pace_target", "paceTarget"), pace_target),
                hr_target=text_or_default(_field(raw, "hr_target", "hrTarget"), hr_target),
                repeat=int(clamp(round(repeat_raw), 1, 20)) if repeat_raw is not None else None,
                notes=notes_text(_field(raw, "notes"), MAX_BLOCK_NOTES_CHARS),
            )
        )
        if len(blocks) == MAX_BLOCKS:
            break

    if len(blocks) < MIN_BLOCKS:
        return build_fallback_blocks(
            title=title,
            objective=objective,
            zone=zone,
            notes=notes,
            duration_min=duration_min,
            pace_target=pace_target,
            hr_target=hr_target,
        )
    return scale_blocks_to_duration(blocks, duration_min)


def coerce_raw_session(raw: dict[str, Any], week_index: int, position: int) -> Session:
    """Coerce one raw plan session, defaulting every unusable field."""
    duration = to_optional_float(_field(raw, "duration_min", "durationMin"))
    distance = to_optional_float(_field(raw, "distance_km", "distanceKm"))
    duration_min = int(clamp(round(duration), 20, 300)) if duration is not None else DEFAULT_SESSION_DURATION_MIN
    distance_km = round(clamp(distance, 1, 80), 2) if distance is not None else DEFAULT_SESSION_DISTANCE_KM

    title = text_or_default(_field(raw, "title"), f"Session {position + 1}")
    objective = text_or_default(_field(raw, "objective"), DEFAULT_OBJECTIVE)
    zone = text_or_default(_field(raw, "zone"), DEFAULT_ZONE)
    pace_target = text_or_default(_field(raw, "pace_target", "paceTarget"), DEFAULT_PACE)
    hr_target = text_or_default(_field(raw, "hr_target", "hrTarget"), DEFAULT_HR)
    notes = notes_text(_field(raw, "notes"))

    return Session(
        week_index=week_index,
        session_index=position + 1,
        day=normalize_day(_field(raw, "day"), position),
        title=title,
        objective=objective,
        zone=zone,
        duration_min=duration_min,
        distance_km=distance_km,
        pace_target=pace_target,
        hr_target=hr_target,
        notes=notes,
        rationale=text_or_default(_field(raw, "rationale"), DEFAULT_RATIONALE),
        blocks=coerce_blocks(
            _field(raw, "blocks"),
            title=title,
            objective=objective,
            zone=zone,
            notes=notes,
            duration_min=duration_min,
            pace_target=pace_target,
            hr_target=hr_target,
        ),
    )


def padding_session(week_index: int, position: int, used_days: set[Weekday]) -> Session:
    """Synthesize the session missing at `position` from its role template."""
    role, duration_min, distance_km = PADDING_SLOTS[position % SESSIONS_PER_WEEK]
    placeholder = Session(
        week_index=week_index,
        session_index=position + 1,
        day=first_unused_day(used_days),
        title=f"Session {position + 1}",
        objective=DEFAULT_OBJECTIVE,
        zone=DEFAULT_ZONE,
        duration_min=duration_min,
        distance_km=distance_km,
        pace_target=DEFAULT_PACE,
        hr_target=DEFAULT_HR,
        rationale=DEFAULT_RATIONALE,
    )
    session = apply_variation_template(placeholder, role, week_index)
    blocks = build_fallback_blocks(
        title=session.title,
        objective=session.objective,
        zone=session.zone,
        notes=session.notes,
        duration_min=session.duration_min,
        pace_target=session.pace_target,
        hr_target=session.hr_target,
    )
    return session.model_copy(update={"blocks": blocks})


def _reindexed(sessions: list[Session], week_index: int) -> list[Session]:
    ordered = sorted(sessions, key=lambda session: day_rank(session.day))
    return [
        session.model_copy(update={"week_index": week_index, "session_index": index + 1})
        for index, session in enumerate(ordered)
    ]


def coerce_week(raw: dict[str, Any], week_index: int) -> Week:
    raw_sessions = [item for item in _as_list(_field(raw, "sessions")) if isinstance(item, dict)]
    sessions = [
        coerce_raw_session(item, week_index, position)
        for position, item in enumerate(raw_sessions[:SESSIONS_PER_WEEK])
    ]

    missing = SESSIONS_PER_WEEK - len(sessions)
    if missing > 0:
        logger.debug("Padding week with template sessions", week_index=week_index, missing=missing)
    for position in range(len(sessions), SESSIONS_PER_WEEK):
        used_days = {session.day for session in sessions}
        sessions.append(padding_session(week_index, position, used_days))

    sessions = _reindexed(sessions, week_index)
    session_sum = round(sum(session.distance_km for session in sessions), 1)
    volume = to_optional_float(_field(raw, "weekly_volume_km", "weeklyVolumeKm"))

    return Week(
        week_index=week_index,
        theme=text_or_default(_field(raw, "theme"), f"Week {week_index}"),
        focus=text_or_default(_field(raw, "focus"), DEFAULT_FOCUS),
        weekly_volume_km=round(clamp(volume, 0, 300), 1) if volume is not None else session_sum,
        sessions=sessions,
    )


def coerce_plan_skeleton(raw: dict[str, Any], week_count: int) -> PlanSkeleton:
    """Coerce a decoded backend object into exactly `week_count` weeks of four sessions.

    Args:
        raw: Decoded backend object
        week_count: Number of weeks the plan must hold

    Returns:
        PlanSkeleton with defaults filled in
    """
    raw_weeks = _as_list(_field(raw, "weeks", "plan"))
    if len(raw_weeks) != week_count:
        logger.info("Backend week count differs from request", received=len(raw_weeks), expected=week_count)

    weeks = [
        coerce_week(_as_dict(raw_weeks[index]) if index < len(raw_weeks) else {}, index + 1)
        for index in range(week_count)
    ]
    return PlanSkeleton(
        title=text_or_default(_field(raw, "title"), f"{week_count}-week plan", min_len=4),
        overview=text_or_default(_field(raw, "overview"), DEFAULT_OVERVIEW, min_len=10),
        methodology=text_or_default(_field(raw, "methodology"), DEFAULT_METHODOLOGY, min_len=10),
        warnings=coerce_warnings(_field(raw, "warnings")),
        weeks=weeks,
    )


def coerce_session(raw: dict[str, Any], fallback: Session) -> Session:
    """Coerce one adapted session, falling back field by field to `fallback`.

    The week index, session index and day of the fallback are always kept.
    """
    duration = to_optional_float(_field(raw, "duration_min", "durationMin"))
    distance = to_optional_float(_field(raw, "distance_km", "distanceKm"))
    duration_min = int(clamp(round(duration), 20, 300)) if duration is not None else fallback.duration_min
    distance_km = round(clamp(distance, 1, 80), 2) if distance is not None else fallback.distance_km

    title = text_or_default(_field(raw, "title"), fallback.title)
    objective = text_or_default(_field(raw, "objective"), fallback.objective)
    zone = text_or_default(_field(raw, "zone"), fallback.zone)
    pace_target = text_or_default(_field(raw, "pace_target", "paceTarget"), fallback.pace_target)
    hr_target = text_or_default(_field(raw, "hr_target", "hrTarget"), fallback.hr_target)
    notes = notes_text(_field(raw, "notes")) or fallback.notes

    return Session(
        week_index=fallback.week_index,
        session_index=fallback.session_index,
        day=fallback.day,
        title=title,
        objective=objective,
        zone=zone,
        duration_min=duration_min,
        distance_km=distance_km,
        pace_target=pace_target,
        hr_target=hr_target,
        notes=notes,
        rationale=text_or_default(_field(raw, "rationale"), fallback.rationale or DEFAULT_RATIONALE),
        blocks=coerce_blocks(
            _field(raw, "blocks"),
            title=title,
            objective=objective,
            zone=zone,
            notes=notes,
            duration_min=duration_min,
            pace_target=pace_target,
            hr_target=hr_target,
        ),
    )
