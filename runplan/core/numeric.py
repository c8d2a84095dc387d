"""Numeric helpers shared by block scaling and weekly volume correction."""

import math
from collections.abc import Sequence


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def mean(values: Sequence[float]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


def to_optional_float(value: object) -> float | None:
    """Read a finite number from a loose value.

    Accepts ints and floats (booleans excluded) and numeric strings using
    either a dot or a comma as decimal separator ("7,5" -> 7.5).
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
        return number if math.isfinite(number) else None
    if isinstance(value, str):
        cleaned = value.strip().replace(",", ".")
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def round_to(value: float, digits: int) -> float:
    if digits <= 0:
        return float(round(value))
    return round(value, digits)


def rescale_to_total(
    values: Sequence[float],
    target: float,
    bounds: Sequence[tuple[float, float]],
    digits: int = 0,
) -> list[float]:
    """Scale values so that they sum to target while respecting per-item bounds.

    Steps:
        1. Scale every value by target / current_sum.
        2. Clamp each value to its own bounds and round to `digits`.
        3. Push the remaining residual onto the last item. Only when the last
           item sits at a bound does the residual walk backwards to earlier
           items.

    When the bounds make the target unreachable the closest reachable total is
    returned.

    Args:
        values: Current values (non-negative)
        target: Desired total
        bounds: (low, high) per item, same length as values
        digits: Rounding precision (0 for whole minutes, 1 for kilometres)

    Returns:
        New list of values
    """
    if not values:
        return []
    if len(bounds) != len(values):
        raise ValueError("bounds must match values")

    current = sum(values)
    if current > 0:
        factor = target / current
        scaled = [v * factor for v in values]
    else:
        scaled = [target / len(values)] * len(values)

    result = [round_to(clamp(v, low, high), digits) for v, (low, high) in zip(scaled, bounds, strict=True)]

    step = 10 ** (-digits) if digits > 0 else 1.0
    for index in range(len(result) - 1, -1, -1):
        residual = round_to(target - sum(result), digits)
        if abs(residual) < step / 2:
            break
        low, high = bounds[index]
        adjusted = round_to(clamp(result[index] + residual, low, high), digits)
        result[index] = adjusted

    return result
