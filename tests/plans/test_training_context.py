"""Tests for the training context built from activity history."""

from datetime import datetime, timedelta

import pytest

from runplan.plans.context import Activity, build_training_context, is_run_like, weekly_distance_series
from runplan.plans.pace import build_pace_model


def _run(day_offset: int, distance_km: float, pace_min: float, heartrate: float | None = 150.0, sport: str = "Run") -> Activity:
    return Activity(
        id=f"a{day_offset}",
        start_date_local=datetime(2024, 3, 4, 7, 0) + timedelta(days=day_offset),
        sport_type=sport,
        distance_m=distance_km * 1000,
        moving_time_s=distance_km * pace_min * 60,
        average_heartrate=heartrate,
    )


@pytest.fixture
def history() -> list[Activity]:
    return [
        _run(9, 12.0, 6.0),
        _run(0, 10.0, 5.0),
        _run(2, 8.0, 5.5, heartrate=None),
        _run(3, 40.0, 2.0, sport="Ride"),
        _run(7, 6.0, 5.2, sport="TrailRun"),
    ]


def test_run_detection():
    assert is_run_like(_run(0, 5, 5, sport="TrailRun"))
    assert is_run_like(_run(0, 5, 5, sport="Treadmill"))
    assert not is_run_like(_run(0, 5, 5, sport="Ride"))


def test_context_counts_and_quantiles(history):
    context = build_training_context(history, hr_max=200)
    profile = context["running_profile"]

    assert context["sessions"] == {"total": 5, "running": 4, "first_date": "2024-03-04", "last_date": "2024-03-13"}
    assert profile["sample_size"] == 4
    assert profile["median_pace_min_per_km"] == pytest.approx(5.35)
    assert profile["longest_distance_km"] == 12.0
    assert profile["avg_hr"] == 150.0
    assert profile["hr_pct_max"] == 75.0
    assert [run["date"] for run in profile["recent_runs_sample"]] == ["2024-03-04", "2024-03-06", "2024-03-11", "2024-03-13"]
    assert len(context["activities"]) == 5


def test_weekly_series_groups_by_monday(history):
    context = build_training_context(history)
    assert context["running_profile"]["weekly_distance_last_6_weeks"] == [
        {"week": "2024-03-04", "distance_km": 18.0},
        {"week": "2024-03-11", "distance_km": 18.0},
    ]
    assert weekly_distance_series([]) == []


def test_empty_history():
    context = build_training_context([])
    assert context["sessions"]["total"] == 0
    assert context["running_profile"]["median_pace_min_per_km"] is None
    assert context["running_profile"]["hr_pct_max"] is None


def test_context_feeds_pace_model(history):
    model = build_pace_model(build_training_context(history), "Half marathon")
    assert model.goal_pace_sec == pytest.approx(5.15 * 60, abs=1)
