"""Training context summarised from an athlete's activity history.

The context is what the text-generation backend sees about the athlete's
recent running. Its `running_profile` block also feeds the pace model
(median and first-quartile pace).
"""

from datetime import date, datetime, timedelta
from typing import Any

import numpy as np
from pydantic import BaseModel, Field

RUN_ACTIVITY_KEYWORDS = ("run", "trail", "jog", "treadmill")
RECENT_RUNS_SAMPLE = 20


class Activity(BaseModel):
    """One recorded activity, distances in metres and durations in seconds."""

    id: str
    start_date_local: datetime
    sport_type: str | None = None
    type: str | None = None
    distance_m: float = Field(default=0.0, ge=0)
    moving_time_s: float = Field(default=0.0, ge=0)
    total_elevation_gain_m: float = 0.0
    average_heartrate: float | None = None
    max_heartrate: float | None = None
    average_cadence: float | None = None


def is_run_like(activity: Activity) -> bool:
    combined = f"{activity.sport_type or ''} {activity.type or ''}".lower()
    return any(keyword in combined for keyword in RUN_ACTIVITY_KEYWORDS)


def _rounded(value: float | None, digits: int) -> float | None:
    return None if value is None else round(float(value), digits)


def _quantile(values: np.ndarray, q: float) -> float | None:
    if values.size == 0:
        return None
    return float(np.quantile(values, q))


def _mean(values: np.ndarray) -> float | None:
    if values.size == 0:
        return None
    return float(np.mean(values))


def _run_sample(activity: Activity) -> dict[str, Any] | None:
    if activity.distance_m <= 0 or activity.moving_time_s <= 0:
        return None
    distance_km = activity.distance_m / 1000
    duration_min = activity.moving_time_s / 60
    return {
        "id": activity.id,
        "date": activity.start_date_local.date().isoformat(),
        "distance_km": round(distance_km, 2),
        "duration_min": round(duration_min, 1),
        "pace_min_per_km": round(duration_min / distance_km, 3),
        "avg_speed_kmh": round(distance_km / (activity.moving_time_s / 3600), 2),
        "avg_heartrate": _rounded(activity.average_heartrate, 1),
        "avg_cadence": _rounded(activity.average_cadence, 1),
        "elev_gain_m": round(activity.total_elevation_gain_m, 1),
        "type": activity.sport_type or activity.type,
    }


def _week_start(day: str) -> str:
    parsed = date.fromisoformat(day)
    return (parsed - timedelta(days=parsed.weekday())).isoformat()


def weekly_distance_series(samples: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Running distance per ISO week (weeks start on Monday), oldest first."""
    totals: dict[str, float] = {}
    for sample in samples:
        week = _week_start(sample["date"])
        totals[week] = totals.get(week, 0.0) + sample["distance_km"]
    return [{"week": week, "distance_km": round(totals[week], 2)} for week in sorted(totals)]


def build_training_context(activities: list[Activity], hr_max: int | None = None) -> dict[str, Any]:
    """Summarise an activity history for prompting and pace modelling.

    Args:
        activities: Activity history in any order
        hr_max: Athlete maximum heart rate, used for the average HR share

    Returns:
        JSON-ready dictionary with session counts, running profile and the
        full activity list
    """
    ordered = sorted(activities, key=lambda activity: activity.start_date_local)
    runs = [activity for activity in ordered if is_run_like(activity)]
    samples = [sample for sample in (_run_sample(activity) for activity in runs) if sample is not None]

    paces = np.array(sorted(sample["pace_min_per_km"] for sample in samples), dtype=float)
    distances = np.array([sample["distance_km"] for sample in samples], dtype=float)
    heart_rates = np.array(
        [sample["avg_heartrate"] for sample in samples if sample["avg_heartrate"] is not None],
        dtype=float,
    )
    weekly = weekly_distance_series(samples)
    avg_hr = _mean(heart_rates)

    return {
        "sessions": {
            "total": len(ordered),
            "running": len(runs),
            "first_date": ordered[0].start_date_local.date().isoformat() if ordered else None,
            "last_date": ordered[-1].start_date_local.date().isoformat() if ordered else None,
        },
        "running_profile": {
            "sample_size": len(samples),
            "median_pace_min_per_km": _rounded(_quantile(paces, 0.5), 3),
            "q25_pace_min_per_km": _rounded(_quantile(paces, 0.25), 3),
            "q75_pace_min_per_km": _rounded(_quantile(paces, 0.75), 3),
            "avg_distance_km": _rounded(_mean(distances), 2),
            "longest_distance_km": round(float(distances.max()), 2) if distances.size else None,
            "avg_hr": _rounded(avg_hr, 1),
            "hr_pct_max": round(avg_hr / hr_max * 100, 1) if avg_hr is not None and hr_max else None,
            "weekly_distance_last_6_weeks": weekly[-6:],
            "weekly_distance_last_12_weeks": weekly[-12:],
            "recent_runs_sample": samples[-RECENT_RUNS_SAMPLE:],
        },
        "activities": [
            {
                "id": activity.id,
                "date": activity.start_date_local.date().isoformat(),
                "sport_type": activity.sport_type or activity.type,
                "distance_km": round(activity.distance_m / 1000, 2),
                "duration_min": round(activity.moving_time_s / 60, 1),
                "elev_gain_m": round(activity.total_elevation_gain_m, 1),
                "avg_hr": _rounded(activity.average_heartrate, 1),
                "max_hr": _rounded(activity.max_heartrate, 1),
            }
            for activity in ordered
        ],
    }
