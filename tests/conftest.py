"""Root conftest for all tests.

Shared fixtures: raw backend payloads, plan requests and a scripted
text-generation client. The builders behind them live in helpers.py.
"""

import pytest
from helpers import RACE_DATE, ScriptedTextClient, make_raw_plan

from runplan.core.errors import ContextTooLargeError
from runplan.plans.types import AthleteProfile, PlanRequest


@pytest.fixture
def raw_plan_factory():
    return make_raw_plan


@pytest.fixture
def plan_request() -> PlanRequest:
    return PlanRequest(
        objective="Half marathon in 1h45",
        week_count=8,
        start_date="2024-04-07",
        race_date=RACE_DATE,
        days_to_race=56,
        context={"running_profile": {"median_pace_min_per_km": 5.6, "q25_pace_min_per_km": 5.2}},
        profile=AthleteProfile(hr_max=190, age=35),
    )


@pytest.fixture
def scripted_client():
    return ScriptedTextClient


@pytest.fixture
def context_overflow() -> ContextTooLargeError:
    return ContextTooLargeError("context_length_exceeded", status_code=400, detail="maximum context length")
