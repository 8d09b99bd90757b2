"""
locator.py — Find JSON objects embedded as variable assignments in HTML.

Watch pages ship their initial player state as inline script, e.g.

    var ytInitialPlayerResponse = {"captions": {...}, ...};

A regex can't reliably find the end of that object (it's huge, deeply
nested, and full of strings containing braces), so we scan it with a small
quote-aware brace counter instead.

Nothing in here raises: a missing marker, an unbalanced object, or JSON
that won't parse all come back as None.
"""

from __future__ import annotations

import json
from typing import Any

PLAYER_RESPONSE_MARKER = "ytInitialPlayerResponse"

# Scanner states.
_CODE = 0
_STRING = 1
_ESCAPE = 2


def extract_balanced_json_object(source: str, start_at: int = 0) -> str | None:
    """
    Return the text of the first balanced {...} object at or after start_at.

    Inside a string (opened by " or ' and closed only by the same quote
    character) braces are ignored and a backslash escapes exactly the next
    character.  Outside strings, { and } move the depth counter; the object
    ends where depth returns to zero.

    Args:
        source:   Text to scan (usually a whole HTML document).
        start_at: Index to start looking for the opening brace.

    Returns:
        The object text including both braces, or None if there is no
        opening brace or the braces never balance.
    """
    start = source.find("{", max(start_at, 0))
    if start < 0:
        return None

    state = _CODE
    quote = ""
    depth = 0

    for index in range(start, len(source)):
        ch = source[index]

        if state == _ESCAPE:
            state = _STRING
        elif state == _STRING:
            if ch == "\\":
                state = _ESCAPE
            elif ch == quote:
                state = _CODE
        elif ch == '"' or ch == "'":
            state = _STRING
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return source[start:index + 1]

    return None


def extract_json_after_marker(html: str, marker: str) -> dict[str, Any] | None:
    """
    Parse the object assigned right after the first occurrence of marker.

    Finds `marker`, then the next "=", then scans the balanced object that
    follows.  Only JSON objects are accepted; arrays, scalars and parse
    errors are treated the same as "not there".
    """
    marker_index = html.find(marker)
    if marker_index < 0:
        return None

    assignment_index = html.find("=", marker_index + len(marker))
    if assignment_index < 0:
        return None

    object_text = extract_balanced_json_object(html, assignment_index)
    if object_text is None:
        return None

    try:
        parsed = json.loads(object_text)
    except (ValueError, RecursionError):
        return None

    return parsed if isinstance(parsed, dict) else None


def extract_initial_player_response(html: str) -> dict[str, Any] | None:
    """Return the page's embedded `ytInitialPlayerResponse`, if usable."""
    return extract_json_after_marker(html, PLAYER_RESPONSE_MARKER)
