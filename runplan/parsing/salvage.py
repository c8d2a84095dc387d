"""Recovery of a JSON object from freeform text-generation output.

Backend output may wrap the object in prose or code fences, leave trailing
commas, or stop mid-object when it hits its token ceiling. The parser walks a
list of candidate substrings and a list of decoders (each a pure function
returning a dict or None) and keeps the first object it can decode.
"""

import json
import re
from collections.abc import Callable

from loguru import logger

from runplan.core.errors import ParseError

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_LEADING_FENCE_RE = re.compile(r"^```(?:json)?", re.IGNORECASE)
_TRAILING_FENCE_RE = re.compile(r"```$")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")

Decoder = Callable[[str], dict | None]


def _balanced_objects(text: str) -> list[str]:
    """Return every top-level brace-balanced substring, ignoring braces inside strings."""
    objects: list[str] = []
    depth = 0
    start = -1
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0 and start >= 0:
                objects.append(text[start : index + 1])
                start = -1
    return objects


def extract_candidates(text: str) -> list[str]:
    """List candidate substrings in priority order, trimmed and de-duplicated."""
    raw: list[str] = [match.group(1) for match in _FENCE_RE.finditer(text)]
    raw.extend(_balanced_objects(text))
    first_brace = text.find("{")
    if first_brace >= 0:
        raw.append(text[first_brace:])
    raw.append(text)

    seen: set[str] = set()
    candidates: list[str] = []
    for item in raw:
        trimmed = item.strip()
        if not trimmed or trimmed in seen:
            continue
        seen.add(trimmed)
        candidates.append(trimmed)
    return candidates


def normalize_candidate(value: str) -> str:
    """Strip BOM and code fences, drop trailing commas before closers."""
    value = value.removeprefix("\ufeff")
    value = _LEADING_FENCE_RE.sub("", value)
    value = _TRAILING_FENCE_RE.sub("", value)
    value = _TRAILING_COMMA_RE.sub(r"\1", value)
    return value.strip()


def auto_close_candidate(value: str) -> str:
    """Append a missing closing quote and the missing closers of a truncated object."""
    stack: list[str] = []
    in_string = False
    escaped = False
    for char in value:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            stack.append("}")
        elif char == "[":
            stack.append("]")
        elif char in "}]" and stack and stack[-1] == char:
            stack.pop()

    fixed = value + '"' if in_string else value
    while stack:
        fixed += stack.pop()
    return normalize_candidate(fixed)


def _loads_object(text: str) -> dict | None:
    try:
        decoded = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return decoded if isinstance(decoded, dict) else None


def decode_raw(text: str) -> dict | None:
    return _loads_object(text)


def decode_normalized(text: str) -> dict | None:
    return _loads_object(normalize_candidate(text))


def decode_auto_closed(text: str) -> dict | None:
    return _loads_object(auto_close_candidate(text))


DECODERS: tuple[Decoder, ...] = (decode_raw, decode_normalized, decode_auto_closed)


def _slices(candidate: str) -> list[str]:
    slices = [candidate]
    first = candidate.find("{")
    if first >= 0:
        slices.append(candidate[first:])
        last = candidate.rfind("}")
        if last > first:
            slices.append(candidate[first : last + 1])
    unique: list[str] = []
    for item in slices:
        if item not in unique:
            unique.append(item)
    return unique


def salvage_json_object(text: str) -> dict:
    """Recover the first decodable JSON object from backend output.

    Args:
        text: Raw backend output

    Returns:
        Decoded JSON object

    Raises:
        ParseError: reason "no_object" when the text holds no brace at all,
            "malformed" when no candidate decodes to an object
    """
    if "{" not in text:
        raise ParseError("no_object", text)

    for candidate in extract_candidates(text):
        for piece in _slices(candidate):
            for decoder in DECODERS:
                result = decoder(piece)
                if result is not None:
                    if decoder is not decode_raw:
                        logger.debug("Recovered JSON object after repair", decoder=decoder.__name__)
                    return result

    logger.warning("No JSON object could be recovered from backend output", length=len(text))
    raise ParseError("malformed", text)
