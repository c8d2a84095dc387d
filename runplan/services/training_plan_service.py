"""Training plan generation and single-session adaptation.

Both flows send a prompt to the text-generation backend, retrying with
smaller prompt budgets only when the backend reports a context overflow,
then salvage the answer and run it through the normalization pipeline.
"""

import math
from datetime import UTC, date, datetime

from loguru import logger

from runplan.config.settings import Settings, settings
from runplan.core.compactor import CompactionTier, plan_generation_tiers, session_adaptation_tiers
from runplan.core.errors import ContextTooLargeError, PlanRequestError
from runplan.llm.client import GenerationResult, HuggingFaceTextClient
from runplan.llm.prompts import (
    adapt_system_prompt,
    build_adapt_prompt,
    build_plan_prompt,
    describe_prompt,
    plan_system_prompt,
)
from runplan.parsing.salvage import salvage_json_object
from runplan.plans.classify import is_race_like
from runplan.plans.pipeline import normalize_adapted_session, normalize_plan
from runplan.plans.types import AdaptedSession, AdaptSessionRequest, Plan, PlanRequest

MIN_DAYS_TO_RACE = 35
MIN_PLAN_WEEKS = 5
MAX_PLAN_WEEKS = 18

PLAN_TEMPERATURE = 0.15
PLAN_TOP_P = 0.9
ADAPT_TEMPERATURE = 0.1
ADAPT_TOP_P = 0.85


def days_until(race_date: date, start_date: date) -> int:
    return (race_date - start_date).days


def resolve_plan_weeks(days_to_race: int) -> int | None:
    """Number of plan weeks for a race `days_to_race` days away.

    Returns:
        ceil(days / 7) clamped to 5-18, or None when the race is less than
        five weeks away
    """
    if days_to_race < MIN_DAYS_TO_RACE:
        return None
    return min(max(math.ceil(days_to_race / 7), MIN_PLAN_WEEKS), MAX_PLAN_WEEKS)


async def _generate_with_tiers(
    client: HuggingFaceTextClient,
    tiers: list[CompactionTier],
    system_prompt: str,
    build_prompt,
    *,
    temperature: float,
    top_p: float,
    flow: str,
) -> GenerationResult:
    last_error: ContextTooLargeError | None = None
    for attempt, tier in enumerate(tiers, start=1):
        user_prompt = build_prompt(tier)
        logger.info(
            "Requesting generation",
            flow=flow,
            attempt=attempt,
            max_tokens=tier.max_tokens,
            **describe_prompt(user_prompt),
        )
        try:
            return await client.generate(
                system_prompt,
                user_prompt,
                max_tokens=tier.max_tokens,
                temperature=temperature,
                top_p=top_p,
            )
        except ContextTooLargeError as e:
            logger.warning("Prompt too large for backend, shrinking", flow=flow, attempt=attempt)
            last_error = e
    raise last_error or ContextTooLargeError("Prompt exceeds the backend context window at every budget")


async def generate_training_plan(
    request: PlanRequest,
    client: HuggingFaceTextClient,
    config: Settings | None = None,
) -> Plan:
    """Generate and normalize a full training plan.

    Args:
        request: Plan request (objective, dates, context, profile)
        client: Text-generation client
        config: Settings override (module settings otherwise)

    Returns:
        Normalized plan

    Raises:
        ConfigurationError: Backend credential missing
        ContextTooLargeError: Prompt too large at every budget
        UpstreamError: Backend failure
        ParseError: No JSON object in the backend output
    """
    config = config or settings
    language = config.plan_language
    result = await _generate_with_tiers(
        client,
        plan_generation_tiers(config.training_plan_max_tokens),
        plan_system_prompt(language),
        lambda tier: build_plan_prompt(request, tier, language),
        temperature=PLAN_TEMPERATURE,
        top_p=PLAN_TOP_P,
        flow="plan",
    )
    raw = salvage_json_object(result.text)
    plan = normalize_plan(
        raw,
        request,
        model=result.model,
        generated_at=datetime.now(UTC),
        volume_tolerance_km=config.volume_tolerance_km,
    )
    logger.info("Training plan generated", weeks=plan.week_count, model=plan.model, race_date=plan.race_date)
    return plan


async def adapt_training_session(
    request: AdaptSessionRequest,
    client: HuggingFaceTextClient,
    config: Settings | None = None,
) -> AdaptedSession:
    """Regenerate one session while keeping its day and its week coherent.

    Raises:
        PlanRequestError: The target is the race session
    """
    if is_race_like(request.session):
        raise PlanRequestError("The race session cannot be adapted")

    config = config or settings
    language = config.plan_language
    result = await _generate_with_tiers(
        client,
        session_adaptation_tiers(config.training_plan_max_tokens),
        adapt_system_prompt(language),
        lambda tier: build_adapt_prompt(request, tier, language),
        temperature=ADAPT_TEMPERATURE,
        top_p=ADAPT_TOP_P,
        flow="adapt",
    )
    raw = salvage_json_object(result.text)
    target = request.session.model_copy(
        update={"week_index": request.week_index, "session_index": request.session_index}
    )
    session = normalize_adapted_session(raw, target, request.sibling_sessions)
    logger.info(
        "Session adapted",
        week_index=session.week_index,
        session_index=session.session_index,
        day=session.day.value,
    )
    return AdaptedSession(model=result.model, generated_at=datetime.now(UTC), session=session)
