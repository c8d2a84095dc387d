"""Structure-aware shrinking of JSON-like payloads before prompting.

Large athlete histories are reduced level by level (arrays keep a head and a
tail, objects keep their first keys) and then serialized under a character
budget.
"""

import json
from dataclasses import dataclass

TRUNCATION_MARKER = "\n...truncated..."
MAX_DEPTH_MARKER = "[max-depth]"
TRUNCATED_KEYS_FIELD = "__truncated__"


@dataclass(frozen=True)
class ShrinkPolicy:
    max_depth: int = 4
    max_array_items: int = 20
    array_head_items: int = 15
    array_tail_items: int = 10
    max_object_keys: int = 28


DEFAULT_POLICY = ShrinkPolicy()


@dataclass(frozen=True)
class CompactionTier:
    """One attempt in a sequence of prompt budgets.

    Attributes:
        context_max_chars: Character budget for the serialized training context
        context_policy: Shrink policy for the training context
        profile_max_chars: Character budget for the serialized athlete profile
        profile_policy: Shrink policy for the athlete profile
        max_tokens: Generation ceiling sent to the backend
    """

    context_max_chars: int
    context_policy: ShrinkPolicy
    profile_max_chars: int
    profile_policy: ShrinkPolicy
    max_tokens: int


def shrink_for_prompt(value: object, policy: ShrinkPolicy = DEFAULT_POLICY, depth: int = 0) -> object:
    """Return a reduced copy of a JSON-like value.

    None is returned unchanged. Anything reached at `max_depth` or deeper
    becomes the string "[max-depth]"; shallower scalars are kept as-is.
    """
    if value is None:
        return value
    if depth >= policy.max_depth:
        return MAX_DEPTH_MARKER
    if isinstance(value, str | int | float | bool):
        return value

    if isinstance(value, list | tuple):
        items = list(value)
        if len(items) <= policy.max_array_items:
            return [shrink_for_prompt(item, policy, depth + 1) for item in items]
        head = items[: policy.array_head_items]
        remaining = len(items) - len(head)
        tail_count = min(policy.array_tail_items, max(remaining, 0))
        tail = items[len(items) - tail_count :] if tail_count > 0 else []
        omitted = len(items) - len(head) - len(tail)
        return [
            *(shrink_for_prompt(item, policy, depth + 1) for item in head),
            f"... {omitted} items omitted ...",
            *(shrink_for_prompt(item, policy, depth + 1) for item in tail),
        ]

    if isinstance(value, dict):
        entries = list(value.items())
        kept = entries[: policy.max_object_keys]
        shrunk: dict[str, object] = {str(key): shrink_for_prompt(item, policy, depth + 1) for key, item in kept}
        if len(entries) > len(kept):
            shrunk[TRUNCATED_KEYS_FIELD] = f"{len(entries) - len(kept)} keys omitted"
        return shrunk

    return str(value)


def compact_json(value: object, max_chars: int, policy: ShrinkPolicy = DEFAULT_POLICY) -> str:
    """Serialize a shrunk value as pretty JSON within `max_chars` characters."""
    text = json.dumps(shrink_for_prompt(value, policy), indent=2, ensure_ascii=False)
    if len(text) <= max_chars:
        return text
    cut = max(max_chars - len(TRUNCATION_MARKER), 0)
    return (text[:cut] + TRUNCATION_MARKER)[:max_chars]


def _tier(
    context_chars: int,
    context_policy: tuple[int, int, int, int, int],
    profile_chars: int,
    profile_policy: tuple[int, int, int, int, int],
    max_tokens: int,
) -> CompactionTier:
    return CompactionTier(
        context_max_chars=context_chars,
        context_policy=ShrinkPolicy(*context_policy),
        profile_max_chars=profile_chars,
        profile_policy=ShrinkPolicy(*profile_policy),
        max_tokens=max_tokens,
    )


def plan_generation_tiers(training_plan_max_tokens: int) -> list[CompactionTier]:
    """Budgets for full plan generation, from generous to aggressive."""
    return [
        _tier(56000, (5, 1200, 1000, 80, 70), 2200, (4, 60, 50, 10, 50), min(training_plan_max_tokens, 2800)),
        _tier(36000, (4, 700, 620, 40, 56), 1800, (4, 45, 40, 5, 42), min(training_plan_max_tokens, 2300)),
        _tier(24000, (4, 420, 360, 20, 40), 1300, (3, 28, 24, 4, 34), min(training_plan_max_tokens, 1800)),
    ]


def session_adaptation_tiers(training_plan_max_tokens: int) -> list[CompactionTier]:
    """Budgets for single-session adaptation."""
    return [
        _tier(16000, (4, 240, 180, 30, 42), 1500, (3, 28, 22, 6, 32), min(training_plan_max_tokens, 1600)),
        _tier(9000, (3, 120, 90, 20, 30), 900, (3, 20, 16, 4, 26), min(training_plan_max_tokens, 1200)),
    ]
