"""Builders shared by the test modules: raw backend payloads, sessions and a scripted text client."""

import json
from typing import Any

from runplan.llm.client import GenerationResult
from runplan.plans.types import Block, Session, Weekday

RACE_DATE = "2024-06-02"


def make_raw_session(day: str, title: str, **overrides: Any) -> dict[str, Any]:
    session = {
        "day": day,
        "title": title,
        "objective": f"{title} objective",
        "zone": "Z2",
        "durationMin": 50,
        "distanceKm": 9.0,
        "paceTarget": "5:40/km",
        "hrTarget": "70-80% HRmax",
        "notes": "",
        "rationale": "Builds aerobic capacity.",
        "blocks": [
            {"step": "Warm-up", "durationMin": 10, "paceTarget": "6:10/km", "hrTarget": "<= 75% HRmax", "repeat": 1},
            {"step": "Main", "durationMin": 30, "paceTarget": "5:40/km", "hrTarget": "75-82% HRmax", "repeat": 1},
            {"step": "Cool-down", "durationMin": 10, "paceTarget": "6:20/km", "hrTarget": "<= 72% HRmax", "repeat": 1},
        ],
    }
    session.update(overrides)
    return session


def make_raw_week(week_index: int) -> dict[str, Any]:
    return {
        "weekIndex": week_index,
        "theme": f"Week {week_index}",
        "focus": "Build",
        "weeklyVolumeKm": 40,
        "sessions": [
            make_raw_session("Tue", "Easy run", zone="Z1-Z2", distanceKm=8.0),
            make_raw_session("Thu", "Threshold intervals", zone="Z3-Z4", distanceKm=10.0),
            make_raw_session("Sat", "Tempo run", zone="Z3", distanceKm=9.0),
            make_raw_session("Sun", "Long run", zone="Z2", durationMin=100, distanceKm=16.0),
        ],
    }


def make_raw_plan(week_count: int) -> dict[str, Any]:
    return {
        "title": "Half marathon build",
        "overview": "Twelve weeks of progressive work toward a half marathon.",
        "methodology": "Polarized training with a long run and two quality sessions.",
        "warnings": [],
        "weeks": [make_raw_week(index + 1) for index in range(week_count)],
    }


class ScriptedTextClient:
    """Text client returning queued answers; exceptions in the queue are raised."""

    def __init__(self, *answers: str | Exception, model: str = "test-model") -> None:
        self.answers = list(answers)
        self.model = model
        self.calls: list[dict[str, Any]] = []

    async def generate(self, system_prompt: str, user_prompt: str, *, max_tokens: int, temperature: float = 0.1, top_p: float = 0.85) -> GenerationResult:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "top_p": top_p,
            }
        )
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return GenerationResult(text=answer, model=self.model)


def as_backend_text(payload: dict[str, Any]) -> str:
    return f"Here is your plan:\n```json\n{json.dumps(payload)}\n```"


def make_session(**overrides: Any) -> Session:
    fields: dict[str, Any] = {
        "week_index": 1,
        "session_index": 1,
        "day": Weekday.TUE,
        "title": "Easy run",
        "objective": "Aerobic maintenance",
        "zone": "Z1-Z2",
        "duration_min": 45,
        "distance_km": 8.0,
        "pace_target": "6:00/km",
        "hr_target": "65-75% HRmax",
        "notes": "",
        "rationale": "",
        "blocks": [],
    }
    fields.update(overrides)
    return Session(**fields)


def blocks_total(blocks: list[Block]) -> int:
    return sum(block.duration_min for block in blocks)
