"""Session variety within a week and across consecutive weeks.

Text-generation backends tend to repeat one session shape for every slot and
every week. This module detects that (monotony within a week, repetition of
the same slot from one week to the next, generic placeholder titles) and
rewrites the affected sessions from per-role templates.
"""

import re
from dataclasses import dataclass

from loguru import logger

from runplan.plans.classify import is_quality_like, looks_easy, normalize_for_comparison, session_signature
from runplan.plans.pace import choose_pace_target
from runplan.plans.types import Session, SessionRole

NEAR_DISTANCE_KM = 0.35
NEAR_DURATION_MIN = 4
DIFFERENTIATION_NOTE = "Forced variant to avoid a duplicate within the week."

_GENERIC_TITLE_RE = re.compile(r"^(seance|session)\s+\d+", re.IGNORECASE)


@dataclass(frozen=True)
class SessionTemplate:
    title: str
    objective: str
    zone: str
    pace_target: str
    hr_target: str
    notes: str


LONG_TEMPLATES: tuple[SessionTemplate, ...] = (
    SessionTemplate(
        title="Progressive long run",
        objective="Build race-specific endurance with a slightly livelier finish.",
        zone="Z2",
        pace_target="Steady endurance pace",
        hr_target="70-82% HRmax",
        notes="Run the last 15-20 minutes under active control.",
    ),
    SessionTemplate(
        title="Endurance long run",
        objective="Raise volume tolerance while staying economical.",
        zone="Z1-Z2",
        pace_target="Relaxed endurance pace",
        hr_target="68-80% HRmax",
        notes="Drink regularly and keep the pace even.",
    ),
    SessionTemplate(
        title="Hilly long run",
        objective="Strengthen muscular endurance on varied terrain.",
        zone="Z2",
        pace_target="Endurance pace on rolling terrain",
        hr_target="70-83% HRmax",
        notes="Keep heart rate under control on the false flats.",
    ),
    SessionTemplate(
        title="Negative split long run",
        objective="Improve race management and the closing progression.",
        zone="Z2-Z3",
        pace_target="Progressive pace",
        hr_target="72-84% HRmax",
        notes="Second half slightly faster than the first.",
    ),
)

QUALITY_TEMPLATES: tuple[SessionTemplate, ...] = (
    SessionTemplate(
        title="Progressive threshold",
        objective="Raise the lactate threshold and settle the target pace.",
        zone="Z3-Z4",
        pace_target="Controlled threshold pace",
        hr_target="82-90% HRmax",
        notes="Progressive main set without losing technical control.",
    ),
    SessionTemplate(
        title="Short intervals",
        objective="Stimulate VO2max with short, clean repetitions.",
        zone="Z4-Z5",
        pace_target="Hard pace on short repetitions",
        hr_target="88-95% HRmax",
        notes="Short jogged recoveries, quality over quantity.",
    ),
    SessionTemplate(
        title="Controlled fartlek",
        objective="Work on continuous changes of pace.",
        zone="Z3-Z4",
        pace_target="Alternating strong / relaxed pace",
        hr_target="84-92% HRmax",
        notes="Alternate effort and recovery without stopping.",
    ),
    SessionTemplate(
        title="Short hill repeats",
        objective="Build specific power and stride strength.",
        zone="Z4",
        pace_target="Short uphill efforts",
        hr_target="86-94% HRmax",
        notes="Explosive climbs, easy jog back down.",
    ),
)

EASY_TEMPLATES: tuple[SessionTemplate, ...] = (
    SessionTemplate(
        title="Endurance jog",
        objective="Consolidate the aerobic base without residual fatigue.",
        zone="Z1-Z2",
        pace_target="Easy conversational pace",
        hr_target="65-75% HRmax",
        notes="Steady conversational pace.",
    ),
    SessionTemplate(
        title="Jog + running drills",
        objective="Stabilize running form at an easy effort.",
        zone="Z1-Z2",
        pace_target="Easy pace + drills",
        hr_target="65-76% HRmax",
        notes="Add a few short drills at the end of the session.",
    ),
    SessionTemplate(
        title="Progressive jog",
        objective="Lift the intensity slightly without turning it into a quality session.",
        zone="Z2",
        pace_target="Controlled progressive pace",
        hr_target="70-80% HRmax",
        notes="Last third slightly stronger, always controlled.",
    ),
    SessionTemplate(
        title="Recovery jog",
        objective="Absorb the previous load and keep running frequency.",
        zone="Z1",
        pace_target="Very easy pace",
        hr_target="<= 72% HRmax",
        notes="Loose and easy, focus on recovery.",
    ),
)

TEMPLATES: dict[SessionRole, tuple[SessionTemplate, ...]] = {
    SessionRole.LONG: LONG_TEMPLATES,
    SessionRole.QUALITY: QUALITY_TEMPLATES,
    SessionRole.EASY: EASY_TEMPLATES,
}


def pick_template(role: SessionRole, week_index: int, session_index: int) -> SessionTemplate:
    presets = TEMPLATES[role]
    return presets[(week_index + session_index) % len(presets)]


def apply_variation_template(session: Session, role: SessionRole, week_index: int) -> Session:
    """Rewrite a session's descriptive fields from the role template for its slot.

    Numeric fields and blocks are left alone; the pace text is kept when it is
    already specific.
    """
    template = pick_template(role, week_index, session.session_index)
    return session.model_copy(
        update={
            "title": template.title,
            "objective": template.objective,
            "zone": template.zone,
            "pace_target": choose_pace_target(session.pace_target, template.pace_target),
            "hr_target": template.hr_target,
            "notes": template.notes,
        }
    )


def has_generic_title(session: Session) -> bool:
    return _GENERIC_TITLE_RE.match(normalize_for_comparison(session.title)) is not None


def week_needs_variation(sessions: list[Session], roles: list[SessionRole]) -> bool:
    """Detect a monotonous week.

    A week is monotonous when it has at most two distinct titles or objectives,
    a single zone, quality slots without any intensity content, or almost only
    easy-looking sessions.
    """
    if len(sessions) <= 1:
        return False

    titles = {normalize_for_comparison(session.title) for session in sessions}
    objectives = {normalize_for_comparison(session.objective) for session in sessions}
    zones = {normalize_for_comparison(session.zone) for session in sessions}
    quality_roles = sum(1 for role in roles if role == SessionRole.QUALITY)
    quality_like = sum(1 for session in sessions if is_quality_like(session))
    mostly_easy = sum(1 for session in sessions if looks_easy(session))

    return (
        len(titles) <= 2
        or len(objectives) <= 2
        or len(zones) <= 1
        or (quality_roles >= 1 and quality_like == 0)
        or mostly_easy >= len(sessions) - 1
    )


def is_repeat_of(current: Session, previous: Session) -> bool:
    """Whether a session repeats the same slot of the previous week."""
    same_title = normalize_for_comparison(current.title) == normalize_for_comparison(previous.title)
    same_objective = normalize_for_comparison(current.objective) == normalize_for_comparison(previous.objective)
    same_pace = normalize_for_comparison(current.pace_target) == normalize_for_comparison(previous.pace_target)
    same_zone = normalize_for_comparison(current.zone) == normalize_for_comparison(previous.zone)
    near_distance = abs(current.distance_km - previous.distance_km) <= NEAR_DISTANCE_KM
    near_duration = abs(current.duration_min - previous.duration_min) <= NEAR_DURATION_MIN

    if not (same_pace and near_distance and near_duration):
        return False
    return same_title or same_objective or same_zone


def _with_note(notes: str) -> str:
    cleaned = notes.strip()
    return f"{cleaned} {DIFFERENTIATION_NOTE}" if cleaned else DIFFERENTIATION_NOTE


def differentiate_session(candidate: Session, others: list[Session]) -> Session:
    """Suffix a session's title until its signature differs from every other session."""
    taken = {session_signature(session) for session in others}
    if session_signature(candidate) not in taken:
        return candidate

    base_title = candidate.title
    attempt = 1
    while True:
        suffix = "(variant)" if attempt == 1 else f"(variant {attempt})"
        renamed = candidate.model_copy(update={"title": f"{base_title} {suffix}"})
        if session_signature(renamed) not in taken:
            return renamed.model_copy(update={"notes": _with_note(candidate.notes)})
        attempt += 1


def differentiate_week(sessions: list[Session]) -> list[Session]:
    """Guarantee that no two sessions of a week share a signature.

    Sessions are processed in order; each one is compared with the sessions
    already accepted, so two identical sessions end up with distinct titles.
    """
    accepted: list[Session] = []
    for session in sessions:
        unique = differentiate_session(session, accepted)
        if unique is not session:
            logger.debug(
                "Duplicate session renamed",
                week_index=session.week_index,
                session_index=session.session_index,
                title=unique.title,
            )
        accepted.append(unique)
    return accepted
