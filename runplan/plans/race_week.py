"""Final-week structure: three light sessions, then the goal race on its real weekday."""

from loguru import logger

from runplan.core.numeric import clamp, rescale_to_total
from runplan.plans.blocks import build_fallback_blocks
from runplan.plans.classify import is_race_like
from runplan.plans.days import day_rank, first_unused_day, race_weekday
from runplan.plans.pace import format_pace_range, parse_objective_distance_km, parse_objective_time_sec, parse_pace_sec_per_km
from runplan.plans.types import AthleteProfile, Block, Session, Week, Weekday
from runplan.plans.variation import differentiate_week

TRAINING_SESSIONS_IN_RACE_WEEK = 3
DEFAULT_RACE_DISTANCE_KM = 10.0
DEFAULT_RACE_MIN_PER_KM = 6.1
RACE_SESSION_MAX_MIN = 360

ACTIVATION_TITLE = "Activation jog"
ACTIVATION_OBJECTIVE = "Wake up the stride and keep the legs fresh."
ACTIVATION_NOTES = "Short maintenance session, no residual fatigue."
ACTIVATION_PACE = "Easy conversational pace"
ACTIVATION_HR = "65-75% HRmax"


def race_hr_target(distance_km: float) -> str:
    if distance_km <= 5.1:
        return "88-95% HRmax"
    if distance_km <= 10.5:
        return "85-92% HRmax"
    if distance_km <= 22:
        return "80-88% HRmax"
    return "74-84% HRmax"


def resolve_race_distance_km(objective: str, profile: AthleteProfile | None) -> float:
    distance = parse_objective_distance_km(objective)
    if distance is None and profile is not None and profile.goal_distance_km:
        distance = profile.goal_distance_km
    return round(clamp(distance or DEFAULT_RACE_DISTANCE_KM, 1, 80), 2)


def resolve_race_pace_sec(objective: str, profile: AthleteProfile | None, distance_km: float) -> float | None:
    """Race pace from the objective pace, the profile goal, or the objective finishing time."""
    pace = parse_pace_sec_per_km(objective)
    if pace is None and profile is not None and profile.goal_time_sec and profile.goal_distance_km:
        pace = profile.goal_time_sec / profile.goal_distance_km
    if pace is None:
        goal_time = parse_objective_time_sec(objective)
        if goal_time is not None:
            pace = goal_time / distance_km
    return clamp(pace, 175, 900) if pace is not None else None


def resolve_race_duration_min(
    objective: str,
    profile: AthleteProfile | None,
    distance_km: float,
    pace_sec: float | None,
) -> int:
    goal_time = parse_objective_time_sec(objective)
    if goal_time is not None:
        minutes = goal_time / 60
    elif profile is not None and profile.goal_time_sec:
        minutes = profile.goal_time_sec / 60
    elif pace_sec is not None:
        minutes = distance_km * pace_sec / 60
    else:
        minutes = distance_km * DEFAULT_RACE_MIN_PER_KM
    return int(clamp(round(minutes), 20, RACE_SESSION_MAX_MIN))


def build_race_session(
    *,
    week_index: int,
    objective: str,
    race_date: str,
    profile: AthleteProfile | None,
) -> Session:
    """Synthesize the goal race as the fourth session of the final week."""
    distance_km = resolve_race_distance_km(objective, profile)
    pace_sec = resolve_race_pace_sec(objective, profile, distance_km)
    duration_min = resolve_race_duration_min(objective, profile, distance_km, pace_sec)
    hr_target = race_hr_target(distance_km)

    if pace_sec is not None:
        race_pace = format_pace_range(pace_sec - 3, pace_sec + 4)
        pre_race_pace = format_pace_range(pace_sec + 60, pace_sec + 85)
        post_race_pace = format_pace_range(pace_sec + 75, pace_sec + 110)
    else:
        race_pace = "Settled goal pace"
        pre_race_pace = "Very easy pace"
        post_race_pace = "Cool-down pace"

    warmup_min, cooldown_min = (10, 6) if distance_km >= 21 else (14, 8)
    race_block_min = max(12, duration_min - warmup_min - cooldown_min)
    blocks = [
        Block(
            step="Pre-race activation",
            duration_min=warmup_min,
            pace_target=pre_race_pace,
            hr_target="<= 78% HRmax",
            notes="Progressive start plus dynamic mobility.",
        ),
        Block(
            step="Goal race",
            duration_min=race_block_min,
            pace_target=race_pace,
            hr_target=hr_target,
            notes="Negative split if the legs feel steady.",
        ),
        Block(
            step="Cool-down",
            duration_min=cooldown_min,
            pace_target=post_race_pace,
            hr_target="<= 75% HRmax",
            notes="Active recovery and immediate rehydration.",
        ),
    ]
    durations = rescale_to_total(
        [float(block.duration_min) for block in blocks],
        float(duration_min),
        [(2.0, 30.0), (2.0, float(RACE_SESSION_MAX_MIN)), (2.0, 30.0)],
    )
    blocks = [
        block.model_copy(update={"duration_min": int(duration)})
        for block, duration in zip(blocks, durations, strict=True)
    ]

    return Session(
        week_index=week_index,
        session_index=4,
        day=race_weekday(race_date),
        title="Goal race",
        objective="Run the goal race with progressive pace management and controlled effort.",
        zone="Race",
        duration_min=duration_min,
        distance_km=distance_km,
        pace_target=race_pace,
        hr_target=hr_target,
        notes="Race day: short warm-up, steady paces, planned fueling and even effort.",
        rationale="The final week keeps three short sessions, then the goal race on its exact date.",
        blocks=blocks,
        is_race=True,
    )


def activation_session(week_index: int, session_index: int, day: Weekday) -> Session:
    return Session(
        week_index=week_index,
        session_index=session_index,
        day=day,
        title=ACTIVATION_TITLE,
        objective=ACTIVATION_OBJECTIVE,
        zone="Z1-Z2",
        duration_min=35,
        distance_km=5.5,
        pace_target=ACTIVATION_PACE,
        hr_target=ACTIVATION_HR,
        notes=ACTIVATION_NOTES,
        rationale="Completes the race week with light sessions without adding load.",
        blocks=build_fallback_blocks(
            title=ACTIVATION_TITLE,
            objective=ACTIVATION_OBJECTIVE,
            zone="Z1-Z2",
            notes=ACTIVATION_NOTES,
            duration_min=35,
            pace_target=ACTIVATION_PACE,
            hr_target=ACTIVATION_HR,
        ),
    )


def enforce_race_week(
    weeks: list[Week],
    *,
    objective: str,
    race_date: str,
    profile: AthleteProfile | None = None,
) -> list[Week]:
    """Rebuild the final week as three training sessions plus the race.

    Race-like sessions proposed by the backend are discarded; the longest
    remaining sessions are dropped until three are left, and activation jogs
    fill any gap.
    """
    if not weeks:
        return weeks

    final = weeks[-1]
    race_day = race_weekday(race_date)
    trainings = [session for session in final.sessions if not is_race_like(session)]
    while len(trainings) > TRAINING_SESSIONS_IN_RACE_WEEK:
        longest = max(range(len(trainings)), key=lambda index: (trainings[index].duration_min, -index))
        trainings.pop(longest)

    while len(trainings) < TRAINING_SESSIONS_IN_RACE_WEEK:
        used = {session.day for session in trainings} | {race_day}
        trainings.append(activation_session(final.week_index, len(trainings) + 1, first_unused_day(used)))

    trainings = sorted(trainings, key=lambda session: day_rank(session.day))
    sessions = [
        session.model_copy(update={"week_index": final.week_index, "session_index": index + 1, "is_race": False})
        for index, session in enumerate(trainings)
    ]
    sessions.append(
        build_race_session(week_index=final.week_index, objective=objective, race_date=race_date, profile=profile)
    )
    sessions = differentiate_week(sessions)

    weekly_volume = round(sum(session.distance_km for session in sessions), 1)
    logger.info(
        "Race week enforced",
        week_index=final.week_index,
        race_day=race_day.value,
        race_distance_km=sessions[-1].distance_km,
        weekly_volume_km=weekly_volume,
    )
    race_week = final.model_copy(
        update={
            "theme": "Race week",
            "focus": "Three light maintenance sessions, then the goal race on race day.",
            "weekly_volume_km": weekly_volume,
            "sessions": sessions,
        }
    )
    return [*weeks[:-1], race_week]
