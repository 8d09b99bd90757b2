"""
decoding.py — Turn downloaded caption files into plain transcript text.

Two formats come back from YouTube's caption endpoints:

    JSON3           {"events": [{"segs": [{"utf8": "Hello "}, ...]}, ...]}
    Timed-text XML  <transcript><text start="0" dur="1.5">Hello &amp;...</text>

Both decoders produce one line per caption event, drop blank lines, and
return None rather than an empty string.  None of them raise: malformed
input is just "nothing decoded", so the caller can move on to the next
track.
"""

from __future__ import annotations

import html
import json
import re
from typing import Any

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_XML_TEXT_PATTERN = re.compile(r"<text[^>]*>([\s\S]*?)</text>", re.IGNORECASE)
_WHITESPACE_RUN = re.compile(r"\s+")

# Anti-JSON-hijacking prefixes Google services sometimes put before a body.
_XSSI_PREFIXES = (")]}'", "for(;;);", "while(1);")

# ASCII control characters other than tab, newline and carriage return.
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


# ---------------------------------------------------------------------------
# Response sanitising
# ---------------------------------------------------------------------------

def sanitize_json_response(raw: str) -> str:
    """
    Strip the non-JSON noise YouTube occasionally wraps JSON bodies in.

    Removes a leading BOM, an XSSI guard such as `)]}'`, and stray control
    characters.
    """
    text = raw.lstrip("\ufeff").lstrip()
    for prefix in _XSSI_PREFIXES:
        if text.startswith(prefix):
            text = text[len(prefix):].lstrip()
            break
    return _CONTROL_CHARS.sub("", text).strip()


# ---------------------------------------------------------------------------
# Decoders
# ---------------------------------------------------------------------------

def _event_text(event: Any) -> str:
    if not isinstance(event, dict):
        return ""
    segs = event.get("segs")
    if not isinstance(segs, list):
        return ""
    parts = [
        seg["utf8"]
        for seg in segs
        if isinstance(seg, dict) and isinstance(seg.get("utf8"), str)
    ]
    return "".join(parts).strip()


def _join_lines(lines: list[str]) -> str | None:
    transcript = "\n".join(line for line in lines if line).strip()
    return transcript or None


def parse_json3_transcript(raw: str) -> str | None:
    """
    Decode a JSON3 caption payload.

    Each event's segment texts are concatenated into one line; blank lines
    are dropped.

    Returns:
        The transcript, or None if the payload isn't JSON3 or has no text.
    """
    try:
        parsed = json.loads(raw)
    except (ValueError, TypeError, RecursionError):
        return None
    if not isinstance(parsed, dict):
        return None
    events = parsed.get("events")
    if not isinstance(events, list):
        return None
    return _join_lines([_event_text(event) for event in events])


def parse_xml_transcript(raw: str) -> str | None:
    """
    Decode a timed-text XML payload by pulling out every <text> body.

    Bodies are HTML-entity-decoded and have whitespace runs collapsed.
    """
    lines = []
    for match in _XML_TEXT_PATTERN.finditer(raw):
        decoded = html.unescape(match.group(1))
        lines.append(_WHITESPACE_RUN.sub(" ", decoded).strip())
    return _join_lines(lines)


def decode_transcript(raw: str) -> str | None:
    """Try JSON3 first, then timed-text XML."""
    return parse_json3_transcript(raw) or parse_xml_transcript(raw)
