"""Tests for prompt payload compaction."""

from runplan.core.compactor import (
    MAX_DEPTH_MARKER,
    TRUNCATED_KEYS_FIELD,
    TRUNCATION_MARKER,
    ShrinkPolicy,
    compact_json,
    plan_generation_tiers,
    session_adaptation_tiers,
    shrink_for_prompt,
)


def test_long_array_keeps_head_marker_and_tail():
    policy = ShrinkPolicy(max_depth=4, max_array_items=20, array_head_items=15, array_tail_items=10, max_object_keys=28)
    shrunk = shrink_for_prompt(list(range(50)), policy)

    assert len(shrunk) == 26
    assert shrunk[:15] == list(range(15))
    assert shrunk[15] == "... 25 items omitted ..."
    assert shrunk[16:] == list(range(40, 50))


def test_short_array_is_kept_whole():
    assert shrink_for_prompt([1, 2, 3]) == [1, 2, 3]


def test_nesting_past_max_depth_is_replaced():
    value = {"a": {"b": {"c": {"d": 1}}}}
    assert shrink_for_prompt(value, ShrinkPolicy(max_depth=4)) == {"a": {"b": {"c": {"d": MAX_DEPTH_MARKER}}}}


def test_none_is_kept_even_past_max_depth():
    assert shrink_for_prompt(None, ShrinkPolicy(max_depth=0)) is None


def test_objects_keep_first_keys_and_count_the_rest():
    value = {f"k{index}": index for index in range(30)}
    shrunk = shrink_for_prompt(value, ShrinkPolicy(max_object_keys=28))

    assert list(shrunk)[:28] == [f"k{index}" for index in range(28)]
    assert shrunk[TRUNCATED_KEYS_FIELD] == "2 keys omitted"


def test_compact_json_respects_character_budget():
    payload = {"runs": [{"id": index, "notes": "steady effort"} for index in range(200)]}
    text = compact_json(payload, 400)

    assert len(text) <= 400
    assert text.endswith(TRUNCATION_MARKER)


def test_compact_json_keeps_non_ascii_text():
    assert "Séance" in compact_json({"title": "Séance"}, 1000)


def test_plan_tiers_shrink_and_cap_tokens():
    tiers = plan_generation_tiers(2600)

    assert [tier.max_tokens for tier in tiers] == [2600, 2300, 1800]
    assert [tier.context_max_chars for tier in tiers] == [56000, 36000, 24000]
    assert plan_generation_tiers(4000)[0].max_tokens == 2800


def test_adaptation_tiers_cap_tokens():
    assert [tier.max_tokens for tier in session_adaptation_tiers(2600)] == [1600, 1200]
    assert [tier.max_tokens for tier in session_adaptation_tiers(1000)] == [1000, 1000]
