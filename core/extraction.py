"""
Image payload extraction from generateImage responses.

Two tiers, evaluated in order:
  1. Structural lookup at known JSON paths (per panel, then top level).
  2. Deep search for the first string longer than DEEP_SEARCH_MIN_LENGTH.

The deep search is a best-effort heuristic: it can match an unrelated long
string (an error description, for instance). The threshold mirrors what the
upstream payloads have looked like so far and should not move without new
evidence of the response schema.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

from core.errors import ParseError

DEEP_SEARCH_MIN_LENGTH = 1000

_WILDCARD = "*"

# Evaluated for each entry of ``imagePanels`` in panel order.
PANEL_PATHS: tuple[tuple[str, ...], ...] = (
    ("generatedImages", _WILDCARD, "encodedImage"),
    ("generatedImage", "encodedImage"),
)
# Evaluated on the response root after every panel came up empty.
ROOT_PATHS: tuple[tuple[str, ...], ...] = (("encodedImage",),)


def _walk_path(value: Any, path: tuple[str, ...]) -> Iterator[Any]:
    if not path:
        yield value
        return

    head, rest = path[0], path[1:]
    if head == _WILDCARD:
        if isinstance(value, list):
            for item in value:
                yield from _walk_path(item, rest)
        return

    if isinstance(value, dict) and head in value:
        yield from _walk_path(value[head], rest)


def _first_non_empty_string(value: Any, paths: tuple[tuple[str, ...], ...]) -> str | None:
    for path in paths:
        for candidate in _walk_path(value, path):
            if isinstance(candidate, str) and candidate:
                return candidate
    return None


def extract_structural(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None

    panels = data.get("imagePanels")
    if isinstance(panels, list):
        for panel in panels:
            found = _first_non_empty_string(panel, PANEL_PATHS)
            if found:
                return found

    return _first_non_empty_string(data, ROOT_PATHS)


def find_payload_deep(value: Any, min_length: int = DEEP_SEARCH_MIN_LENGTH) -> str | None:
    """Depth-first search for the first string longer than ``min_length``."""
    if isinstance(value, str):
        return value if len(value) > min_length else None
    if isinstance(value, dict):
        children = value.values()
    elif isinstance(value, list):
        children = value
    else:
        return None

    for child in children:
        found = find_payload_deep(child, min_length)
        if found is not None:
            return found
    return None


def extract_image_payload(data: Any, raw_body: str = "") -> str:
    payload = extract_structural(data)
    if payload:
        return payload

    payload = find_payload_deep(data)
    if payload:
        return payload

    raise ParseError("No image in response", raw_body)


def parse_generation_body(raw_body: str) -> str:
    """Decode a raw response body and pull the image payload out of it."""
    try:
        data = json.loads(raw_body)
    except ValueError as exc:
        raise ParseError(f"JSON parse: {exc}") from exc
    return extract_image_payload(data, raw_body)
