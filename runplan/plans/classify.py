"""Keyword classification of session text.

Backend output is written in whatever language the athlete reads, so the
vocabularies cover English and French. Matching happens on lowercase text
with accents stripped.
"""

import re
import unicodedata

from runplan.plans.types import Session, SessionCategory

RACE_KEYWORDS = ("race day", "goal race", "course objectif")
INTERVAL_KEYWORDS = (
    "interv",
    "fraction",
    "vo2",
    "vma",
    "repet",
    "repeat",
    "cote",
    "hill",
    "pyramid",
    "fartlek",
    "speed",
)
THRESHOLD_KEYWORDS = ("seuil", "tempo", "threshold", "z3", "z4", "z5")
EASY_KEYWORDS = (
    "footing",
    "facile",
    "easy",
    "endurance",
    "recovery",
    "recuperation",
    "z1",
    "z2",
    "aerobic",
    "conversational",
)
LONG_KEYWORDS = ("long", "endurance", "sortie longue")
STRUCTURED_SET_KEYWORDS = (
    "interv",
    "fraction",
    "vo2",
    "vma",
    "seuil",
    "tempo",
    "threshold",
    "repet",
    "repeat",
    "cote",
    "hill",
    "pyramid",
)

_JOUR_J_RE = re.compile(r"\bjour j\b")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def fold(text: str) -> str:
    """Lowercase and strip accents."""
    return strip_accents(text).lower()


def normalize_for_comparison(text: str) -> str:
    """Fold text and collapse every non-alphanumeric run to a single space."""
    return _NON_ALNUM_RE.sub(" ", fold(text)).strip()


def _has_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def classify_session_text(text: str) -> SessionCategory:
    folded = fold(text)
    if _has_any(folded, RACE_KEYWORDS) or _JOUR_J_RE.search(folded) or ("course" in folded and "objectif" in folded):
        return SessionCategory.RACE
    if _has_any(folded, INTERVAL_KEYWORDS):
        return SessionCategory.INTERVAL
    if _has_any(folded, THRESHOLD_KEYWORDS):
        return SessionCategory.THRESHOLD
    if _has_any(folded, EASY_KEYWORDS):
        return SessionCategory.EASY
    return SessionCategory.GENERAL


def _joined(*parts: str) -> str:
    return " ".join(part for part in parts if part)


def is_quality_like(session: Session) -> bool:
    """Whether any session field carries interval or threshold vocabulary.

    Race wording does not mask intensity here: "allure objectif de course"
    inside a threshold session keeps it a quality session.
    """
    folded = fold(_joined(session.title, session.objective, session.zone, session.pace_target, session.notes))
    return _has_any(folded, INTERVAL_KEYWORDS + THRESHOLD_KEYWORDS)


def is_interval_like(title: str, objective: str = "", notes: str = "") -> bool:
    return classify_session_text(_joined(title, objective, notes)) == SessionCategory.INTERVAL


def has_structured_main_set(text: str) -> bool:
    """Whether session text calls for repetitions rather than one continuous block."""
    return _has_any(fold(text), STRUCTURED_SET_KEYWORDS)


def looks_easy(session: Session) -> bool:
    return _has_any(fold(_joined(session.title, session.objective, session.zone, session.notes)), EASY_KEYWORDS)


def is_race_like(session: Session) -> bool:
    if session.is_race:
        return True
    return classify_session_text(_joined(session.title, session.objective, session.zone)) == SessionCategory.RACE


def looks_long(session: Session) -> bool:
    return _has_any(fold(_joined(session.title, session.objective, session.zone)), LONG_KEYWORDS)


def session_signature(session: Session) -> str:
    return "|".join(
        normalize_for_comparison(part) for part in (session.title, session.objective, session.zone)
    )
