"""Tests for keyword classification of session text."""

import pytest
from helpers import make_session

from runplan.plans.classify import (
    classify_session_text,
    has_structured_main_set,
    is_quality_like,
    is_race_like,
    looks_easy,
    looks_long,
    session_signature,
)
from runplan.plans.types import SessionCategory


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Goal race", SessionCategory.RACE),
        ("Jour J : course", SessionCategory.RACE),
        ("Course objectif", SessionCategory.RACE),
        ("VO2 intervals", SessionCategory.INTERVAL),
        ("Côtes courtes", SessionCategory.INTERVAL),
        ("Séance au seuil", SessionCategory.THRESHOLD),
        ("Tempo run", SessionCategory.THRESHOLD),
        ("Footing facile", SessionCategory.EASY),
        ("Mobility and drills", SessionCategory.GENERAL),
    ],
)
def test_classify_session_text(text, expected):
    assert classify_session_text(text) == expected


def test_quality_and_easy_predicates():
    assert is_quality_like(make_session(title="Threshold session", zone="Z4"))
    assert not is_quality_like(make_session(title="Easy run", objective="Aerobic maintenance", zone="Z1-Z2"))
    assert looks_easy(make_session(title="Recovery jog"))


def test_race_predicate_reads_flag_and_text():
    assert is_race_like(make_session(title="Shakeout", is_race=True))
    assert is_race_like(make_session(title="Goal race"))
    assert not is_race_like(make_session(title="Race-pace reminder"))


def test_race_wording_does_not_mask_intensity():
    session = make_session(title="Seuil", objective="3 x 10 min au seuil, allure objectif de course", zone="Z4")
    assert is_quality_like(session)


def test_race_predicate_ignores_notes():
    session = make_session(title="Easy run", zone="Z2", notes="Rehearse your race day breakfast.")
    assert not is_race_like(session)
    assert is_race_like(make_session(title="Shakeout", zone="Race day"))


def test_long_run_detection_in_both_languages():
    assert looks_long(make_session(title="Sortie longue"))
    assert looks_long(make_session(title="Long run"))


def test_structured_main_set():
    assert has_structured_main_set("6 x 3 min VMA")
    assert not has_structured_main_set("Continuous easy jog")


def test_signature_ignores_case_accents_and_punctuation():
    first = make_session(title="Séance Tempo!", objective="Seuil", zone="Z3")
    second = make_session(title="seance tempo", objective="SEUIL", zone="z3")
    assert session_signature(first) == session_signature(second) == "seance tempo|seuil|z3"
