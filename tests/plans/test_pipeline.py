"""End-to-end properties of the normalization pipeline."""

import pytest
from helpers import RACE_DATE, make_raw_plan, make_session

from runplan.plans.classify import session_signature
from runplan.plans.pipeline import extract_session_payload, normalize_adapted_session, normalize_plan
from runplan.plans.types import PlanRequest, Weekday


def _check_plan_invariants(plan, week_count: int) -> None:
    assert len(plan.weeks) == week_count
    for week in plan.weeks:
        assert len(week.sessions) == 4
        assert week.weekly_volume_km == pytest.approx(sum(session.distance_km for session in week.sessions), abs=0.1)
        signatures = [session_signature(session) for session in week.sessions]
        assert len(set(signatures)) == 4
        for session in week.sessions:
            assert 20 <= session.duration_min <= 360
            assert 1 <= session.distance_km <= 80
            assert 2 <= len(session.blocks) <= 4
            assert sum(block.duration_min for block in session.blocks) == pytest.approx(session.duration_min, abs=0.2)

    for previous, current in zip(plan.weeks[:-2], plan.weeks[1:-1]):
        assert current.weekly_volume_km <= previous.weekly_volume_km * 1.1 + 0.05

    race = plan.weeks[-1].sessions[3]
    assert race.is_race
    assert not any(session.is_race for week in plan.weeks for session in week.sessions if session is not race)


def test_well_formed_plan(plan_request):
    plan = normalize_plan(make_raw_plan(8), plan_request, model="test-model")

    _check_plan_invariants(plan, 8)
    assert plan.weeks[-1].sessions[3].day == Weekday.SUN
    assert plan.weeks[-1].sessions[3].duration_min == 105
    assert plan.model == "test-model"
    assert plan.generated_at is not None
    assert plan.goal == plan_request.objective
    assert plan.title == "Half marathon build"


def test_empty_object_still_yields_complete_plan(plan_request):
    plan = normalize_plan({}, plan_request)

    _check_plan_invariants(plan, 8)
    assert plan.title == "8-week plan"


def test_wrong_week_count_is_corrected(plan_request):
    plan = normalize_plan(make_raw_plan(3), plan_request)
    _check_plan_invariants(plan, 8)

    plan = normalize_plan(make_raw_plan(14), plan_request)
    _check_plan_invariants(plan, 8)


@pytest.mark.parametrize("week_count", [5, 12, 18])
def test_plan_lengths(week_count):
    request = PlanRequest(
        objective="Marathon in 3h30",
        week_count=week_count,
        start_date="2024-01-01",
        race_date=RACE_DATE,
        days_to_race=week_count * 7,
    )
    _check_plan_invariants(normalize_plan(make_raw_plan(week_count), request), week_count)


def test_identical_sessions_every_week_are_varied(plan_request):
    session = {"day": "Mon", "title": "Run", "objective": "Run", "zone": "Z2", "durationMin": 50, "distanceKm": 9}
    raw = {"weeks": [{"sessions": [dict(session) for _ in range(4)]} for _ in range(8)]}
    plan = normalize_plan(raw, plan_request)

    _check_plan_invariants(plan, 8)
    assert len({session.title for session in plan.weeks[0].sessions}) >= 3


def test_race_day_matches_race_date(plan_request):
    request = plan_request.model_copy(update={"race_date": "2024-06-05"})
    plan = normalize_plan(make_raw_plan(8), request)
    assert plan.weeks[-1].sessions[3].day == Weekday.WED


def test_adapted_session_keeps_day_and_avoids_siblings():
    target = make_session(week_index=3, session_index=2, day=Weekday.WED, title="Tempo run", objective="Threshold", zone="Z3")
    sibling = make_session(week_index=3, session_index=3, day=Weekday.FRI, title="Hill repeats", objective="Power", zone="Z4")
    raw = {"session": {"day": "Sun", "title": "Hill repeats", "objective": "Power", "zone": "Z4", "durationMin": 48}}

    adapted = normalize_adapted_session(raw, target, [target, sibling])

    assert adapted.day == Weekday.WED
    assert (adapted.week_index, adapted.session_index) == (3, 2)
    assert adapted.title == "Hill repeats (variant)"
    assert sum(block.duration_min for block in adapted.blocks) == 48


def test_extract_session_payload():
    assert extract_session_payload({"session": {"title": "A"}}) == {"title": "A"}
    assert extract_session_payload({"title": "A"}) == {"title": "A"}
