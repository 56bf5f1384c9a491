"""Best-effort decoding of structured blocks out of free-form model output.

Models are asked for JSON but routinely wrap it in prose or code fences, or
return something that is not JSON at all. ``decode_object`` finds the first
balanced ``{...}`` block that parses, then reconciles it against a
per-call-site defaults dict: a field that is missing or of the wrong type is
replaced by its default. The caller therefore always gets every field.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from copy import deepcopy
from typing import Any

logger = logging.getLogger(__name__)


def iter_json_blocks(text: str) -> Iterator[str]:
    """Yield each balanced ``{...}`` substring of *text*, in order of start.

    Braces inside JSON string literals are ignored. Unbalanced openings are
    skipped.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end = -1
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    end = i
                    break
        if end != -1:
            yield text[start : end + 1]
        start = text.find("{", start + 1)


def extract_first_object(text: str) -> dict[str, Any] | None:
    """Return the first balanced block of *text* that decodes to a JSON object."""
    for block in iter_json_blocks(text or ""):
        try:
            value = json.loads(block)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value
    return None


def decode_object(text: str, defaults: dict[str, Any]) -> tuple[dict[str, Any], bool]:
    """Decode *text* against *defaults*.

    Returns:
        ``(fields, parsed)``: *fields* has exactly the keys of *defaults*;
        *parsed* is False when no object could be found at all.
    """
    raw = extract_first_object(text)
    if raw is None:
        logger.debug("No structured block in model output: %.120r", text)
        return deepcopy(defaults), False

    result: dict[str, Any] = {}
    for key, default in defaults.items():
        value = raw.get(key)
        result[key] = _coerce(value, default)
    return result, True


def _coerce(value: Any, default: Any) -> Any:
    if value is None:
        return deepcopy(default)
    if isinstance(default, list):
        if not isinstance(value, list):
            return deepcopy(default)
        return [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]
    if isinstance(default, str) or default is None:
        if isinstance(value, str):
            return value.strip()
        return deepcopy(default)
    if isinstance(value, type(default)):
        return value
    return deepcopy(default)
