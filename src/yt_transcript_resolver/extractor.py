"""
extractor.py — One-call interface: URL or ID in, transcript out.

The resolver works on a page that has already been fetched.  This module
supplies the rest of the chain for callers that only have a link:

    1. Parsing YouTube URLs / IDs  → parse_video_id()
    2. Fetching the watch page      → fetch_watch_page()
    3. One-call convenience         → extract()

Only single-video extraction is supported (no playlists).
"""

from __future__ import annotations

import re

import httpx

from yt_transcript_resolver.config import ResolverConfig
from yt_transcript_resolver.errors import (
    PageFetchError,
    TranscriptUnavailableError,
    VideoNotFoundError,
)
from yt_transcript_resolver.models import PageContext, TranscriptResult
from yt_transcript_resolver.resolver import resolve_transcript

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Regex patterns that cover the most common YouTube URL shapes:
#   - https://www.youtube.com/watch?v=VIDEO_ID
#   - https://youtu.be/VIDEO_ID
#   - https://www.youtube.com/embed/VIDEO_ID
#   - https://www.youtube.com/shorts/VIDEO_ID
#   - https://www.youtube.com/live/VIDEO_ID
#   - https://www.youtube.com/v/VIDEO_ID
# Each pattern captures the 11-character video ID in group "id".
_URL_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(?:https?://)?(?:www\.|m\.)?youtube\.com/watch\?(?:.*&)?v=(?P<id>[A-Za-z0-9_-]{11})"),
    re.compile(r"(?:https?://)?youtu\.be/(?P<id>[A-Za-z0-9_-]{11})"),
    re.compile(r"(?:https?://)?(?:www\.|m\.)?youtube\.com/(?:embed|shorts|live|v)/(?P<id>[A-Za-z0-9_-]{11})"),
]

# A bare video ID is exactly 11 characters from the base64url alphabet.
_BARE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")

WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"


# ---------------------------------------------------------------------------
# URL / ID parsing
# ---------------------------------------------------------------------------

def parse_video_id(url_or_id: str) -> str:
    """
    Extract a YouTube video ID from a URL string, or validate a raw 11-char ID.

    Args:
        url_or_id: A YouTube URL or a raw video ID.

    Returns:
        The 11-character video ID.

    Raises:
        VideoNotFoundError: If the string doesn't match any known format.
    """
    url_or_id = url_or_id.strip()

    for pattern in _URL_PATTERNS:
        match = pattern.search(url_or_id)
        if match:
            return match.group("id")

    if _BARE_ID_PATTERN.match(url_or_id):
        return url_or_id

    raise VideoNotFoundError(url_or_id)


def watch_url(video_id: str) -> str:
    """Canonical watch-page URL for a video ID."""
    return WATCH_URL_TEMPLATE.format(video_id=video_id)


# ---------------------------------------------------------------------------
# Page fetching
# ---------------------------------------------------------------------------

async def fetch_watch_page(
    client: httpx.AsyncClient,
    video_id: str,
    config: ResolverConfig,
) -> PageContext:
    """
    Download the watch page for `video_id`.

    Raises:
        PageFetchError: On a transport error, timeout or non-2xx status.
    """
    url = watch_url(video_id)
    try:
        response = await client.get(
            url,
            headers=config.browser_headers,
            timeout=config.request_timeout,
        )
    except httpx.HTTPError as exc:
        raise PageFetchError(video_id, reason=str(exc) or type(exc).__name__) from exc

    if not response.is_success:
        raise PageFetchError(video_id, reason=f"HTTP {response.status_code}")

    return PageContext(html=response.text, original_url=url, video_id=video_id)


# ---------------------------------------------------------------------------
# High-level convenience function (main public API)
# ---------------------------------------------------------------------------

async def extract(
    url_or_id: str,
    *,
    config: ResolverConfig | None = None,
    client: httpx.AsyncClient | None = None,
) -> TranscriptResult:
    """
    One-call interface: parse URL → fetch watch page → resolve transcript.

    Unlike resolve_transcript(), which reports "nothing found" as None, this
    raises, so CLI and API code can lean on the TranscriptError hierarchy.

    Args:
        url_or_id: A YouTube URL or raw video ID.
        config:    Resolver settings.  Defaults to ResolverConfig.from_env().
        client:    Optional shared HTTP client.

    Returns:
        The resolved TranscriptResult.

    Raises:
        VideoNotFoundError:         The input isn't a YouTube URL or ID.
        PageFetchError:             The watch page couldn't be fetched.
        TranscriptUnavailableError: No strategy produced a transcript.
    """
    config = config or ResolverConfig.from_env()
    video_id = parse_video_id(url_or_id)

    if client is None:
        async with httpx.AsyncClient(follow_redirects=True) as owned_client:
            return await _extract_with(owned_client, video_id, config)
    return await _extract_with(client, video_id, config)


async def _extract_with(
    client: httpx.AsyncClient, video_id: str, config: ResolverConfig
) -> TranscriptResult:
    page = await fetch_watch_page(client, video_id, config)
    result = await resolve_transcript(page, config=config, client=client)
    if result is None:
        raise TranscriptUnavailableError(video_id)
    return result
