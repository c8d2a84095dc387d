"""Training plan API endpoints.

Generates a full race-preparation plan and adapts single sessions of an
existing plan.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from runplan.api.schemas import AdaptSessionBody, TrainingPlanBody
from runplan.core.errors import (
    ConfigurationError,
    ContextTooLargeError,
    ParseError,
    PlanGenerationError,
    PlanRequestError,
    UpstreamError,
)
from runplan.llm.client import HuggingFaceTextClient
from runplan.plans.context import build_training_context
from runplan.plans.types import AdaptedSession, AdaptSessionRequest, Plan, PlanRequest
from runplan.services.training_plan_service import (
    MIN_DAYS_TO_RACE,
    adapt_training_session,
    days_until,
    generate_training_plan,
    resolve_plan_weeks,
)

router = APIRouter(prefix="/training-plan", tags=["training-plan"])


def get_text_client() -> HuggingFaceTextClient:
    return HuggingFaceTextClient()


def _http_error(error: PlanGenerationError) -> HTTPException:
    if isinstance(error, PlanRequestError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, ConfigurationError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(error, ContextTooLargeError):
        code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    elif isinstance(error, UpstreamError | ParseError):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(error))


@router.post("", response_model=Plan)
async def create_training_plan(
    body: TrainingPlanBody,
    client: HuggingFaceTextClient = Depends(get_text_client),
) -> Plan:
    """Generate a training plan ending with the goal race.

    Args:
        body: Objective, race date, profile and training context
        client: Text-generation client

    Returns:
        Normalized plan

    Raises:
        HTTPException: 400 if the race is too close, 503 if the backend is not
            configured, 413 if the prompt cannot fit, 502 on backend failure
    """
    start_date = body.start_date or date.today()
    days_to_race = days_until(body.race_date, start_date)
    week_count = resolve_plan_weeks(days_to_race)
    if week_count is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Race must be at least {MIN_DAYS_TO_RACE} days after the plan start ({days_to_race} days given)",
        )

    context = body.context
    if not context and body.activities:
        context = build_training_context(body.activities, body.profile.hr_max if body.profile else None)

    request = PlanRequest(
        objective=body.objective.strip(),
        week_count=week_count,
        start_date=start_date.isoformat(),
        race_date=body.race_date.isoformat(),
        days_to_race=days_to_race,
        context=context,
        profile=body.profile,
    )
    logger.info("Training plan requested", week_count=week_count, days_to_race=days_to_race)

    try:
        return await generate_training_plan(request, client)
    except PlanGenerationError as e:
        logger.warning("Training plan generation failed", error_type=type(e).__name__, error=str(e))
        raise _http_error(e) from e


@router.post("/adapt-session", response_model=AdaptedSession)
async def adapt_session(
    body: AdaptSessionBody,
    client: HuggingFaceTextClient = Depends(get_text_client),
) -> AdaptedSession:
    """Regenerate one session of an existing plan."""
    start_date = body.start_date or date.today()
    request = AdaptSessionRequest(
        objective=body.objective.strip(),
        start_date=start_date.isoformat(),
        race_date=body.race_date.isoformat(),
        days_to_race=days_until(body.race_date, start_date),
        week_index=body.week_index,
        session_index=body.session_index,
        session=body.session,
        sibling_sessions=body.sibling_sessions,
        context=body.context,
        profile=body.profile,
        user_request=body.user_request.strip(),
    )
    logger.info("Session adaptation requested", week_index=body.week_index, session_index=body.session_index)

    try:
        return await adapt_training_session(request, client)
    except PlanGenerationError as e:
        logger.warning("Session adaptation failed", error_type=type(e).__name__, error=str(e))
        raise _http_error(e) from e
