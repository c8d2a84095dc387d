"""Prompts for plan generation and single-session adaptation.

The backend is asked for camelCase JSON; coercion also accepts snake_case.
"""

import json

from runplan.core.compactor import CompactionTier, compact_json
from runplan.plans.types import AdaptSessionRequest, PlanRequest, Session

TARGET_SESSION_MAX_CHARS = 2400
SIBLING_SESSIONS_MAX_CHARS = 3400

PLAN_SYSTEM_PROMPT = """You are an elite running coach and exercise-physiology analyst.
Task: build a scientifically grounded running training plan.
Constraints:
1) Exactly 4 sessions per week. In the final week: exactly 3 training sessions + 1 race session.
2) Exactly the requested number of weeks.
3) Progressive overload with at least one deload week every 4 weeks.
4) Cover all intensity domains over the cycle (easy, tempo/threshold, VO2, long run).
5) Use realistic pace targets based on the provided athlete history and current fatigue context.
6) Keep sessions varied to reduce monotony and overuse risk.
7) Every session must include: day, title, objective, zone, durationMin, distanceKm, paceTarget, hrTarget, notes, rationale, blocks.
8) blocks must contain 2 to 4 items with: step, durationMin, paceTarget, hrTarget, repeat, notes.
9) For interval sessions, blocks must explicitly show repeats and recovery logic.
10) All user-facing strings MUST be in {language}.
11) No medical diagnosis.
12) Return STRICT JSON only. No markdown, no prose outside JSON.
13) Output must start with "{{" and end with "}}".
14) Keep strings concise and actionable; keep warnings empty unless a concrete data issue exists.
15) No two consecutive weeks may contain the same 4 sessions with the same title, pace, duration and distance.
16) Peak week volume occurs 21 days before race day; 3 build weeks then 1 recovery week 20-30% lighter.
17) Taper: 14 days out volume is 20% below peak, 7 days out 50% below peak, keep short race-pace reminders.
18) Never increase weekly volume by more than 10% versus the previous week.
19) The race session day must match the provided race date."""

ADAPT_SYSTEM_PROMPT = """You are an elite running coach and exercise-physiology analyst.
Task: adapt exactly one running session inside an existing week plan.
Constraints:
1) Keep the same session day as the original target session.
2) Return only one session object (not the full plan).
3) Respect weekly coherence with the sibling sessions and avoid duplicating their intent.
4) Include concrete workout blocks (2 to 4 blocks) with durations and intensity targets.
5) For interval workouts, include explicit repeats and recoveries.
6) Use realistic pace and HR targets from the athlete context.
7) All user-facing text must be in {language}.
8) Return STRICT JSON only, no markdown or extra text.
9) JSON keys required: day,title,objective,zone,durationMin,distanceKm,paceTarget,hrTarget,notes,rationale,blocks.
10) Each block requires: step,durationMin,paceTarget,hrTarget,repeat,notes."""

SESSION_SHAPE = """{
  "day": "Mon|Tue|Wed|Thu|Fri|Sat|Sun",
  "title": "string",
  "objective": "string",
  "zone": "string",
  "durationMin": 55,
  "distanceKm": 10.2,
  "paceTarget": "string",
  "hrTarget": "string",
  "notes": "string",
  "rationale": "string",
  "blocks": [
    {"step": "Warm-up", "durationMin": 12, "paceTarget": "6:20/km", "hrTarget": "<= 75% HRmax", "repeat": 1, "notes": "string"}
  ]
}"""

PLAN_SHAPE = """{
  "title": "string",
  "overview": "string",
  "methodology": "string",
  "warnings": ["string"],
  "weeks": [
    {
      "weekIndex": 1,
      "theme": "string",
      "focus": "string",
      "weeklyVolumeKm": 42.5,
      "sessions": [<session>, <session>, <session>, <session>]
    }
  ]
}"""


def plan_system_prompt(language: str) -> str:
    return PLAN_SYSTEM_PROMPT.format(language=language)


def adapt_system_prompt(language: str) -> str:
    return ADAPT_SYSTEM_PROMPT.format(language=language)


def _profile_payload(request: PlanRequest | AdaptSessionRequest) -> dict:
    return request.profile.model_dump(mode="json") if request.profile else {}


def build_plan_prompt(request: PlanRequest, tier: CompactionTier, language: str) -> str:
    """Build the user prompt for a full plan at one compaction tier.

    Args:
        request: Plan request
        tier: Prompt budgets for context and profile
        language: Output language for user-facing strings

    Returns:
        Prompt text
    """
    parts = [
        f"Objective: {request.objective}",
        f"Weeks requested: {request.week_count}",
        f"Plan start date (local): {request.start_date}",
        f"Race date (local): {request.race_date}",
        f"Days to race: {request.days_to_race}",
        "",
        "Athlete profile (settings):",
        compact_json(_profile_payload(request), tier.profile_max_chars, tier.profile_policy),
        "",
        "Context computed from past sessions and current load:",
        compact_json(request.context, tier.context_max_chars, tier.context_policy),
        "",
        "Return JSON with this exact shape, where <session> is:",
        SESSION_SHAPE,
        "",
        PLAN_SHAPE,
        "",
        "Critical: each week must contain exactly 4 sessions with 2-4 detailed blocks each.",
        f"Critical: output text must be in {language}.",
        "Critical: weeks cannot be copy-pasted; each week must show concrete evolution from the previous week.",
        "Critical: final week = 3 training sessions + 1 goal race on the exact race date.",
    ]
    return "\n".join(parts)


def _session_payload(session: Session) -> dict:
    return session.model_dump(mode="json")


def build_adapt_prompt(request: AdaptSessionRequest, tier: CompactionTier, language: str) -> str:
    parts = [
        f"Overall objective: {request.objective}",
        f"Plan start date: {request.start_date}",
        f"Race date: {request.race_date}",
        f"Days to race: {request.days_to_race}",
        f"Target week: {request.week_index}",
        f"Target session index: {request.session_index}",
        f"Athlete request: {request.user_request}",
        "",
        "Current target session (to adapt):",
        compact_json(_session_payload(request.session), TARGET_SESSION_MAX_CHARS),
        "",
        "Other sessions of the week (keep them, do not duplicate them):",
        compact_json([_session_payload(sibling) for sibling in request.sibling_sessions], SIBLING_SESSIONS_MAX_CHARS),
        "",
        "Athlete profile:",
        compact_json(_profile_payload(request), tier.profile_max_chars, tier.profile_policy),
        "",
        "Training context (history and load):",
        compact_json(request.context, tier.context_max_chars, tier.context_policy),
        "",
        "Return a JSON session with this shape only:",
        SESSION_SHAPE,
        "",
        "Critical: keep the day identical to the current target session.",
        "Critical: no duplicate session intent with the sibling sessions.",
        f"Critical: answer in {language}.",
    ]
    return "\n".join(parts)


def describe_prompt(prompt: str) -> dict[str, int]:
    """Size summary for logging."""
    return {"chars": len(prompt), "bytes": len(json.dumps(prompt, ensure_ascii=False).encode())}
