"""Pure normalization pipeline from a decoded backend object to a final plan.

Stages run in a fixed order: coercion, periodization and variation, then the
race-week structure. Each call builds a fresh plan; nothing is shared between
requests.
"""

from datetime import UTC, datetime
from typing import Any

from loguru import logger

from runplan.plans.blocks import scale_blocks_to_duration
from runplan.plans.coercion import coerce_plan_skeleton, coerce_session
from runplan.plans.periodization import DEFAULT_VOLUME_TOLERANCE_KM, periodize_weeks
from runplan.plans.race_week import enforce_race_week
from runplan.plans.types import Plan, PlanRequest, Session
from runplan.plans.variation import differentiate_session


def normalize_plan(
    raw: dict[str, Any],
    request: PlanRequest,
    *,
    model: str = "",
    generated_at: datetime | None = None,
    volume_tolerance_km: float = DEFAULT_VOLUME_TOLERANCE_KM,
) -> Plan:
    """Turn a decoded backend object into a complete plan.

    Args:
        raw: Decoded backend object (any shape; unusable fields are defaulted)
        request: The plan request the object answers
        model: Backend model label to report
        generated_at: Generation timestamp (defaults to now, UTC)
        volume_tolerance_km: Weekly volume tolerance used by periodization

    Returns:
        Plan with `request.week_count` weeks of four sessions, the last one
        being the race
    """
    skeleton = coerce_plan_skeleton(raw, request.week_count)
    weeks = periodize_weeks(
        skeleton.weeks,
        total_weeks=request.week_count,
        context=request.context,
        objective=request.objective,
        profile=request.profile,
        volume_tolerance_km=volume_tolerance_km,
    )
    weeks = enforce_race_week(
        weeks,
        objective=request.objective,
        race_date=request.race_date,
        profile=request.profile,
    )
    logger.info(
        "Plan normalized",
        week_count=len(weeks),
        total_km=round(sum(week.weekly_volume_km for week in weeks), 1),
        model=model,
    )
    return Plan(
        title=skeleton.title,
        goal=request.objective,
        week_count=request.week_count,
        start_date=request.start_date,
        race_date=request.race_date,
        days_to_race=request.days_to_race,
        overview=skeleton.overview,
        methodology=skeleton.methodology,
        warnings=skeleton.warnings,
        weeks=weeks,
        model=model,
        generated_at=generated_at or datetime.now(UTC),
    )


def extract_session_payload(raw: dict[str, Any]) -> dict[str, Any]:
    """Adapted sessions come either wrapped as {"session": {...}} or bare."""
    wrapped = raw.get("session")
    return wrapped if isinstance(wrapped, dict) else raw


def normalize_adapted_session(raw: dict[str, Any], target: Session, siblings: list[Session]) -> Session:
    """Coerce an adapted session against its target and keep it distinct from its siblings."""
    session = coerce_session(extract_session_payload(raw), target)
    session = session.model_copy(update={"blocks": scale_blocks_to_duration(session.blocks, session.duration_min)})
    others = [
        sibling
        for sibling in siblings
        if not (sibling.week_index == target.week_index and sibling.session_index == target.session_index)
    ]
    return differentiate_session(session, others)
