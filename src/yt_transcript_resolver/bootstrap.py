"""
bootstrap.py — Scrape client/session parameters and build player requests.

When the watch page doesn't carry a usable `ytInitialPlayerResponse`, we
can still ask YouTube's internal player API (`/youtubei/v1/player`) for
the same data — provided the request looks like it came from the page.
The values that make it look that way (API key, client name/version,
visitor id, ...) are set on the page through `ytcfg.set({...})` calls.

Two public functions:

    extract_bootstrap()     HTML → Bootstrap (or None when nothing was found)
    build_player_request()  Bootstrap + PageContext → PlayerRequest

The request shape is reverse-engineered and will drift over time; all of
it lives in build_player_request() so updating it doesn't touch the track
selection or decoding code.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

from yt_transcript_resolver.locator import extract_balanced_json_object
from yt_transcript_resolver.models import Bootstrap, PageContext, PlayerRequest

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PLAYER_API_URL = "https://www.youtube.com/youtubei/v1/player"
YOUTUBE_ORIGIN = "https://www.youtube.com"

# `ytcfg.set({` — the object form.  The two-argument `ytcfg.set("K", v)`
# form is handled by the per-key regexes below.
_YTCFG_SET_PATTERN = re.compile(r"ytcfg\.set\s*\(\s*\{")

# Both plain and JSON-in-a-JS-string escaped forms show up in the wild.
_STRING_VALUE_TEMPLATES = (
    r'"{key}"\s*:\s*"((?:[^"\\]|\\.)*)"',
    r'\\"{key}\\"\s*:\s*\\"([^"\\]+)\\"',
)
_NUMBER_VALUE_TEMPLATE = r'"{key}"\s*:\s*(-?\d+(?:\.\d+)?)'

_FIXED_BODY_FIELDS: dict[str, Any] = {
    "playbackContext": {
        "contentPlaybackContext": {
            "html5Preference": "HTML5_PREF_WANTS",
        },
    },
    "contentCheckOk": True,
    "racyCheckOk": True,
}


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def _ytcfg_objects(html: str) -> dict[str, Any]:
    """Merge every `ytcfg.set({...})` object on the page, later calls winning."""
    merged: dict[str, Any] = {}
    for match in _YTCFG_SET_PATTERN.finditer(html):
        # match.end() - 1 is the opening brace itself.
        object_text = extract_balanced_json_object(html, match.end() - 1)
        if object_text is None:
            continue
        try:
            parsed = json.loads(object_text)
        except (ValueError, RecursionError):
            continue
        if isinstance(parsed, dict):
            merged.update(parsed)
    return merged


def _scrape_string(html: str, key: str) -> str | None:
    for template in _STRING_VALUE_TEMPLATES:
        match = re.search(template.format(key=re.escape(key)), html)
        if not match:
            continue
        raw = match.group(1)
        try:
            # Undo JSON escapes (& etc.) the same way json.loads would.
            value = json.loads(f'"{raw}"')
        except ValueError:
            value = raw
        value = value.strip()
        if value:
            return value
    return None


def _scrape_number(html: str, key: str) -> int | float | None:
    match = re.search(_NUMBER_VALUE_TEMPLATE.format(key=re.escape(key)), html)
    if not match:
        return None
    raw = match.group(1)
    return float(raw) if "." in raw else int(raw)


def _scrape_object(html: str, key: str) -> dict[str, Any] | None:
    match = re.search(r'"{key}"\s*:\s*\{{'.format(key=re.escape(key)), html)
    if not match:
        return None
    object_text = extract_balanced_json_object(html, match.end() - 1)
    if object_text is None:
        return None
    try:
        parsed = json.loads(object_text)
    except (ValueError, RecursionError):
        return None
    return parsed if isinstance(parsed, dict) else None


def _as_text(value: Any) -> str | None:
    """Coerce a config value to a non-empty string (numbers allowed)."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _as_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def extract_bootstrap(html: str) -> Bootstrap | None:
    """
    Recover internal-API client/session parameters from watch-page HTML.

    `ytcfg.set({...})` objects are the primary source; any value missing
    there is scraped individually with a regex.  Each field is independent,
    so a partially-recovered bootstrap is normal.

    Args:
        html: Raw watch-page HTML.

    Returns:
        A Bootstrap, or None if not a single parameter could be found.
        Note that a Bootstrap without `api_key` is still returned; it's the
        caller's job to treat that as unusable.
    """
    cfg = _ytcfg_objects(html)

    def pick_text(*keys: str) -> str | None:
        for key in keys:
            value = _as_text(cfg.get(key))
            if value:
                return value
        for key in keys:
            value = _scrape_string(html, key)
            if value:
                return value
        return None

    context = cfg.get("INNERTUBE_CONTEXT")
    if not isinstance(context, dict):
        context = _scrape_object(html, "INNERTUBE_CONTEXT")

    page_cl = _as_number(cfg.get("PAGE_CL"))
    if page_cl is None:
        page_cl = _scrape_number(html, "PAGE_CL")

    visitor_data = pick_text("VISITOR_DATA")
    if visitor_data is None and context is not None:
        client = context.get("client")
        if isinstance(client, dict):
            visitor_data = _as_text(client.get("visitorData"))

    bootstrap = Bootstrap(
        api_key=pick_text("INNERTUBE_API_KEY"),
        # The numeric id ("1" for WEB) is what the header expects.
        client_name=pick_text("INNERTUBE_CONTEXT_CLIENT_NAME", "INNERTUBE_CLIENT_NAME"),
        client_version=pick_text("INNERTUBE_CONTEXT_CLIENT_VERSION", "INNERTUBE_CLIENT_VERSION"),
        context=context,
        visitor_data=visitor_data,
        xsrf_token=pick_text("XSRF_TOKEN"),
        page_cl=page_cl,
        page_label=pick_text("PAGE_BUILD_LABEL"),
    )

    if bootstrap == Bootstrap():
        return None
    return bootstrap


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------

def build_player_request(
    bootstrap: Bootstrap,
    page: PageContext,
    user_agent: str,
) -> PlayerRequest:
    """
    Build the POST that asks the player API for a video's caption tracks.

    The page's INNERTUBE_CONTEXT is copied into the body with `originalUrl`
    layered onto its `client` sub-object (shallow merge, explicit fields
    win).  Optional headers are only sent when the matching bootstrap
    field was recovered.

    Raises:
        ValueError: If the bootstrap has no API key.
    """
    if not bootstrap.api_key:
        raise ValueError("player request needs an API key")

    context = dict(bootstrap.context or {})
    client = context.get("client")
    client = dict(client) if isinstance(client, dict) else {}
    context["client"] = {**client, "originalUrl": page.original_url}

    body: dict[str, Any] = {
        "context": context,
        "videoId": page.video_id,
        **_FIXED_BODY_FIELDS,
    }

    headers = {
        "Content-Type": "application/json",
        "User-Agent": user_agent,
        "Accept": "application/json",
        "Origin": YOUTUBE_ORIGIN,
        "Referer": page.original_url,
        "X-Goog-AuthUser": "0",
        "X-Youtube-Bootstrap-Logged-In": "false",
    }
    if bootstrap.client_name:
        headers["X-Youtube-Client-Name"] = bootstrap.client_name
    if bootstrap.client_version:
        headers["X-Youtube-Client-Version"] = bootstrap.client_version
    if bootstrap.visitor_data:
        headers["X-Goog-Visitor-Id"] = bootstrap.visitor_data
    if _is_finite_number(bootstrap.page_cl):
        headers["X-Youtube-Page-CL"] = str(bootstrap.page_cl)
    if bootstrap.page_label:
        headers["X-Youtube-Page-Label"] = bootstrap.page_label
    if bootstrap.xsrf_token:
        headers["X-Youtube-Identity-Token"] = bootstrap.xsrf_token

    return PlayerRequest(
        url=f"{PLAYER_API_URL}?key={bootstrap.api_key}",
        headers=headers,
        body=body,
    )


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
