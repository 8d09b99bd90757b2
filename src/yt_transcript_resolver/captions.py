"""
captions.py — The network half of the resolver: caption tracks over HTTP.

Given a fetched watch page, this module gets at the page's caption tracks
in one of two ways and downloads them until one decodes:

    1. Embedded state — the `ytInitialPlayerResponse` object inlined in the
       HTML already lists the tracks.
    2. Player API — if that's missing or yields nothing, scrape the page's
       bootstrap parameters and POST to `/youtubei/v1/player` for a fresh
       player response.

Every network call gets its own timeout.  Failures of any kind (HTTP
errors, timeouts, junk bodies) end the current attempt with None and the
next candidate is tried; nothing is retried and nothing is raised.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from yt_transcript_resolver.bootstrap import build_player_request, extract_bootstrap
from yt_transcript_resolver.config import ResolverConfig
from yt_transcript_resolver.decoding import decode_transcript, sanitize_json_response
from yt_transcript_resolver.fallback import first_success
from yt_transcript_resolver.locator import extract_initial_player_response
from yt_transcript_resolver.models import CaptionTrack, PageContext
from yt_transcript_resolver.tracks import select_caption_tracks

logger = logging.getLogger(__name__)

# Query parameters that make the timedtext endpoint answer in JSON3.
_JSON3_PARAMS = {"fmt": "json3", "alt": "json"}


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------

def mask_url(url: str) -> str:
    """Drop the query string (signatures, keys) before a URL hits the logs."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return "<unparsable url>"
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def _set_query_params(query: str, updates: dict[str, str]) -> str:
    # Replace the first occurrence in place, drop repeats, append the rest.
    pairs: list[tuple[str, str]] = []
    applied: set[str] = set()
    for key, value in parse_qsl(query, keep_blank_values=True):
        if key in updates:
            if key in applied:
                continue
            pairs.append((key, updates[key]))
            applied.add(key)
        else:
            pairs.append((key, value))
    for key, value in updates.items():
        if key not in applied:
            pairs.append((key, value))
    return urlencode(pairs)


def caption_track_url(base_url: str) -> str:
    """
    Point a caption track URL at its JSON3 rendition.

    Sets `fmt=json3&alt=json` on the query string.  URLs that don't parse
    as absolute http(s) URLs get the parameters appended verbatim instead.
    """
    try:
        parts = urlsplit(base_url)
    except ValueError:
        parts = None

    if parts is None or not parts.scheme or not parts.netloc:
        separator = "&" if "?" in base_url else "?"
        return f"{base_url}{separator}fmt=json3&alt=json"

    query = _set_query_params(parts.query, _JSON3_PARAMS)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


# ---------------------------------------------------------------------------
# Downloading
# ---------------------------------------------------------------------------

async def download_caption_track(
    client: httpx.AsyncClient,
    track: CaptionTrack,
    config: ResolverConfig,
) -> str | None:
    """
    Download one caption track and decode it (JSON3, then XML).

    Returns:
        The transcript text, or None on any HTTP, timeout or decode failure.
    """
    url = caption_track_url(track.base_url)
    try:
        response = await client.get(
            url,
            headers=config.browser_headers,
            timeout=config.request_timeout,
        )
        if not response.is_success:
            logger.debug(
                "Caption track %s returned HTTP %d", mask_url(url), response.status_code
            )
            return None
        return decode_transcript(response.text)
    except Exception:
        logger.debug("Caption track %s failed", mask_url(url), exc_info=True)
        return None


async def transcript_from_player_payload(
    client: httpx.AsyncClient,
    payload: dict[str, Any],
    config: ResolverConfig,
) -> str | None:
    """Download the payload's ranked caption tracks until one decodes."""
    tracks = select_caption_tracks(payload)
    logger.debug("Player payload lists %d caption track(s)", len(tracks))
    return await first_success(
        tracks, lambda track: download_caption_track(client, track, config)
    )


async def fetch_player_response(
    client: httpx.AsyncClient,
    page: PageContext,
    config: ResolverConfig,
) -> dict[str, Any] | None:
    """
    Ask the internal player API for the video's player response.

    Returns None without sending anything when the page has no usable
    bootstrap (no API key).  Transport errors, non-2xx responses and
    unparsable bodies also give None.
    """
    bootstrap = extract_bootstrap(page.html)
    if bootstrap is None or not bootstrap.api_key:
        logger.debug("No player API bootstrap on page for %s", page.video_id)
        return None

    request = build_player_request(bootstrap, page, config.user_agent)
    try:
        response = await client.post(
            request.url,
            headers=request.headers,
            content=json.dumps(request.body),
            timeout=config.request_timeout,
        )
        if not response.is_success:
            logger.debug("Player API returned HTTP %d", response.status_code)
            return None
        parsed = json.loads(sanitize_json_response(response.text))
    except Exception:
        logger.debug("Player API request failed for %s", page.video_id, exc_info=True)
        return None

    return parsed if isinstance(parsed, dict) else None


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

async def _from_embedded_state(
    client: httpx.AsyncClient, page: PageContext, config: ResolverConfig
) -> str | None:
    payload = extract_initial_player_response(page.html)
    if payload is None:
        logger.debug("No embedded player response for %s", page.video_id)
        return None
    return await transcript_from_player_payload(client, payload, config)


async def _from_player_api(
    client: httpx.AsyncClient, page: PageContext, config: ResolverConfig
) -> str | None:
    payload = await fetch_player_response(client, page, config)
    if payload is None:
        return None
    return await transcript_from_player_payload(client, payload, config)


_STRATEGIES = (_from_embedded_state, _from_player_api)


async def fetch_transcript_from_caption_tracks(
    client: httpx.AsyncClient,
    page: PageContext,
    config: ResolverConfig,
) -> str | None:
    """
    Resolve a transcript from the page's caption tracks.

    Tries the embedded player response first, then the player API.

    Args:
        client: HTTP client used for every request.
        page:   The fetched watch page.
        config: Timeouts and headers.

    Returns:
        Non-empty transcript text, or None.
    """
    return await first_success(
        _STRATEGIES, lambda strategy: strategy(client, page, config)
    )
