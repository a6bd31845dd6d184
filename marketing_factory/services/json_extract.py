from __future__ import annotations

import json
from typing import Any, Dict, List

_CLOSERS = {"{": "}", "[": "]"}


def _extract_first_json_value(text: str, opener: str) -> Any:
    """
    Extract and parse the first top-level JSON value that starts with `opener`.

    Models often wrap JSON in prose or markdown fences even when told not to.
    Scans with a brace-depth counter that ignores brackets inside strings.
    """

    if not isinstance(text, str):
        raise ValueError("Input text must be a string")
    raw = text.strip()
    if not raw:
        raise ValueError("Input text is empty")

    closer = _CLOSERS[opener]
    start: int | None = None
    depth = 0
    in_string = False
    escape = False

    for i, ch in enumerate(raw):
        if start is None:
            if ch == opener:
                start = i
                depth = 1
                in_string = False
                escape = False
            continue

        if in_string:
            if escape:
                escape = False
                continue
            if ch == "\\":
                escape = True
                continue
            if ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
            continue
        if ch == opener:
            depth += 1
            continue
        if ch == closer:
            depth -= 1
            if depth == 0:
                candidate = raw[start : i + 1].strip()
                return json.loads(candidate)

    raise ValueError("Unable to locate a complete JSON value in response text")


def extract_first_json_object(text: str) -> Dict[str, Any]:
    parsed = _extract_first_json_value(text, "{")
    if not isinstance(parsed, dict):
        raise ValueError("Extracted JSON was not an object")
    return parsed


def extract_first_json_array(text: str) -> List[Any]:
    parsed = _extract_first_json_value(text, "[")
    if not isinstance(parsed, list):
        raise ValueError("Extracted JSON was not an array")
    return parsed


def parse_json_object(text: str) -> Dict[str, Any] | None:
    """Best-effort parse of an LLM completion into a dict; None when nothing usable is found."""
    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
    except (TypeError, ValueError):
        pass
    try:
        return extract_first_json_object(text)
    except ValueError:
        return None


def parse_json_array(text: str) -> List[Any] | None:
    try:
        parsed = json.loads(text)
        if isinstance(parsed, list):
            return parsed
    except (TypeError, ValueError):
        pass
    try:
        return extract_first_json_array(text)
    except ValueError:
        return None
