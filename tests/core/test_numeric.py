"""Tests for shared numeric helpers."""

import math

import pytest

from runplan.core.numeric import clamp, mean, rescale_to_total, to_optional_float


def test_rescale_exact_proportions():
    assert rescale_to_total([10, 30, 10], 60, [(2, 240)] * 3) == [12, 36, 12]


def test_rescale_pushes_rounding_residual_to_last_item():
    assert rescale_to_total([1, 1, 1], 10, [(2, 240)] * 3) == [3, 3, 4]


def test_rescale_walks_backwards_when_last_item_is_bounded():
    assert rescale_to_total([10, 10], 30, [(2, 240), (2, 12)]) == [18, 12]


def test_rescale_returns_closest_total_when_unreachable():
    assert rescale_to_total([5, 5], 100, [(2, 10), (2, 10)]) == [10, 10]


def test_rescale_with_one_decimal():
    result = rescale_to_total([1.0, 2.0], 4.5, [(0, 10), (0, 10)], digits=1)
    assert result == [1.5, 3.0]


def test_rescale_spreads_evenly_from_zero():
    assert rescale_to_total([0, 0], 40, [(2, 240)] * 2) == [20, 20]


def test_rescale_rejects_mismatched_bounds():
    with pytest.raises(ValueError):
        rescale_to_total([1, 2], 3, [(0, 5)])


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (7, 7.0),
        ("7,5", 7.5),
        (" 12.25 ", 12.25),
        (True, None),
        ("fast", None),
        ("", None),
        (math.nan, None),
        (None, None),
    ],
)
def test_to_optional_float(value, expected):
    assert to_optional_float(value) == expected


def test_clamp_and_mean():
    assert clamp(5, 1, 3) == 3
    assert clamp(-1, 0, 3) == 0
    assert mean([]) is None
    assert mean([2, 4]) == 3
