"""Tests for phase detection, volume targets and weekly calibration."""

import pytest
from helpers import blocks_total, make_raw_plan, make_session

from runplan.plans.blocks import build_fallback_blocks
from runplan.plans.coercion import coerce_plan_skeleton
from runplan.plans.periodization import (
    ROLE_DISTANCE_KM,
    PlanWeekRules,
    baseline_volume_km,
    build_weekly_volume_targets,
    cap_week_growth,
    detect_session_roles,
    detect_week_phase,
    fit_week_volume,
    periodize_weeks,
)
from runplan.plans.types import SessionRole, Weekday, WeekPhase


def test_week_rules_count_back_from_race():
    rules = PlanWeekRules.for_weeks(8)
    assert (rules.peak_week, rules.taper_minus_14_week, rules.taper_minus_7_week, rules.race_week) == (5, 6, 7, 8)


@pytest.mark.parametrize(
    ("week_index", "expected"),
    [(1, WeekPhase.BUILD), (4, WeekPhase.DELOAD), (5, WeekPhase.BUILD), (8, WeekPhase.DELOAD), (9, WeekPhase.BUILD), (10, WeekPhase.TAPER), (12, WeekPhase.TAPER)],
)
def test_week_phase(week_index, expected):
    assert detect_week_phase(week_index, 12) == expected


def test_volume_targets_progress_deload_and_taper():
    targets = build_weekly_volume_targets(40, 12)

    assert len(targets) == 12
    assert targets[3] < targets[2]
    assert targets[11] < targets[10] < targets[9] < targets[8]
    for previous, current in zip(targets, targets[1:]):
        assert current <= previous * 1.1 + 0.05


def test_baseline_defaults_when_weeks_are_empty():
    assert baseline_volume_km([]) == 42.0


def test_roles_from_keywords():
    sessions = [
        make_session(title="Easy run", distance_km=8.0),
        make_session(title="Threshold intervals", zone="Z4", distance_km=10.0),
        make_session(title="Tempo run", zone="Z3", distance_km=9.0),
        make_session(title="Long run", distance_km=16.0),
    ]
    assert detect_session_roles(sessions) == [SessionRole.EASY, SessionRole.QUALITY, SessionRole.QUALITY, SessionRole.LONG]


def test_roles_fill_quality_slots_by_day():
    sessions = [
        make_session(day=Weekday.SAT, distance_km=8.0),
        make_session(day=Weekday.MON, distance_km=8.0),
        make_session(day=Weekday.WED, distance_km=8.0),
        make_session(day=Weekday.SUN, distance_km=16.0),
    ]
    assert detect_session_roles(sessions) == [SessionRole.EASY, SessionRole.QUALITY, SessionRole.QUALITY, SessionRole.LONG]


def _week_sessions():
    sessions = []
    for title, distance, duration in (("Easy run", 10.0, 55), ("Intervals", 12.0, 65), ("Tempo", 12.0, 65), ("Long run", 20.0, 120)):
        blocks = build_fallback_blocks(
            title=title,
            objective="",
            zone="Z2",
            notes="",
            duration_min=duration,
            pace_target="5:30/km",
            hr_target="75% HRmax",
        )
        sessions.append(make_session(title=title, distance_km=distance, duration_min=duration, blocks=blocks))
    roles = [SessionRole.EASY, SessionRole.QUALITY, SessionRole.QUALITY, SessionRole.LONG]
    return sessions, roles


def test_fit_week_volume_hits_target_within_role_bounds():
    sessions, roles = _week_sessions()
    fitted = fit_week_volume(sessions, roles, 45.0)

    assert round(sum(session.distance_km for session in fitted), 1) == 45.0
    for session, role in zip(fitted, roles):
        low, high = ROLE_DISTANCE_KM[role]
        assert low <= session.distance_km <= high
        assert blocks_total(session.blocks) == session.duration_min


def test_growth_is_capped_at_ten_percent():
    sessions, roles = _week_sessions()
    capped = cap_week_growth(sessions, roles, previous_volume_km=40.0)
    assert sum(session.distance_km for session in capped) <= 44.0 + 1e-6


def test_growth_within_limit_is_untouched():
    sessions, roles = _week_sessions()
    assert cap_week_growth(sessions, roles, previous_volume_km=60.0) == sessions


def test_periodized_weeks_are_consistent():
    skeleton = coerce_plan_skeleton(make_raw_plan(10), 10)
    weeks = periodize_weeks(skeleton.weeks, total_weeks=10, context={}, objective="10 km in 45:00")

    assert len(weeks) == 10
    for week in weeks:
        assert len(week.sessions) == 4
        assert week.weekly_volume_km == pytest.approx(sum(session.distance_km for session in week.sessions), abs=0.1)
        assert [session.session_index for session in week.sessions] == [1, 2, 3, 4]
        for session in week.sessions:
            assert blocks_total(session.blocks) == session.duration_min
    assert weeks[0].theme == "Specific development"
    assert weeks[-2].theme == "Early taper"
