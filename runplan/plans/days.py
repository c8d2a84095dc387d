"""Weekday normalization and ordering."""

from datetime import date

from runplan.plans.types import Weekday

DEFAULT_DAY_ORDER: tuple[Weekday, ...] = (
    Weekday.MON,
    Weekday.TUE,
    Weekday.WED,
    Weekday.THU,
    Weekday.SAT,
    Weekday.SUN,
    Weekday.FRI,
)

DAY_RANK: dict[Weekday, int] = {
    Weekday.MON: 1,
    Weekday.TUE: 2,
    Weekday.WED: 3,
    Weekday.THU: 4,
    Weekday.FRI: 5,
    Weekday.SAT: 6,
    Weekday.SUN: 7,
}

_DAY_ALIASES: dict[str, Weekday] = {
    "mon": Weekday.MON,
    "monday": Weekday.MON,
    "lundi": Weekday.MON,
    "lun": Weekday.MON,
    "tue": Weekday.TUE,
    "tuesday": Weekday.TUE,
    "mardi": Weekday.TUE,
    "mar": Weekday.TUE,
    "wed": Weekday.WED,
    "wednesday": Weekday.WED,
    "mercredi": Weekday.WED,
    "mer": Weekday.WED,
    "thu": Weekday.THU,
    "thursday": Weekday.THU,
    "jeudi": Weekday.THU,
    "jeu": Weekday.THU,
    "fri": Weekday.FRI,
    "friday": Weekday.FRI,
    "vendredi": Weekday.FRI,
    "ven": Weekday.FRI,
    "sat": Weekday.SAT,
    "saturday": Weekday.SAT,
    "samedi": Weekday.SAT,
    "sam": Weekday.SAT,
    "sun": Weekday.SUN,
    "sunday": Weekday.SUN,
    "dimanche": Weekday.SUN,
    "dim": Weekday.SUN,
}

_ISO_WEEKDAYS = (Weekday.MON, Weekday.TUE, Weekday.WED, Weekday.THU, Weekday.FRI, Weekday.SAT, Weekday.SUN)


def fallback_day(position: int) -> Weekday:
    """Default weekday for the session at `position` (0-based) in a week."""
    return DEFAULT_DAY_ORDER[position % len(DEFAULT_DAY_ORDER)]


def normalize_day(value: object, position: int) -> Weekday:
    """Map a loose weekday label to a Weekday.

    English and French names and abbreviations are accepted in any case
    ("lundi", "Mon", "monday", "lun"). Anything else falls back to the
    default rotation by position.
    """
    if isinstance(value, str):
        text = value.strip()
        for day in Weekday:
            if text == day.value:
                return day
        alias = _DAY_ALIASES.get(text.lower().rstrip("."))
        if alias is not None:
            return alias
    return fallback_day(position)


def day_rank(day: Weekday) -> int:
    return DAY_RANK[day]


def race_weekday(race_date: str) -> Weekday:
    """Weekday of an ISO race date; "Sun" when the date cannot be read."""
    try:
        parsed = date.fromisoformat(race_date[:10])
    except (TypeError, ValueError):
        return Weekday.SUN
    return _ISO_WEEKDAYS[parsed.weekday()]


def first_unused_day(used: set[Weekday]) -> Weekday:
    for day in DEFAULT_DAY_ORDER:
        if day not in used:
            return day
    return DEFAULT_DAY_ORDER[0]
