"""
resolver.py — Top-level transcript resolution for one watch page.

    resolve_transcript(page) → TranscriptResult | None

Stages run in order and the first one producing text wins:

    captions  embedded player response, then the internal player API
    yt-dlp    caption listing from the yt-dlp executable

Each call is independent: nothing is cached and no state is shared
between calls.  No exception escapes except task cancellation.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

import httpx

from yt_transcript_resolver.captions import fetch_transcript_from_caption_tracks
from yt_transcript_resolver.config import ResolverConfig
from yt_transcript_resolver.fallback import first_success
from yt_transcript_resolver.models import PageContext, TranscriptResult, TranscriptSource
from yt_transcript_resolver.ytdlp import fetch_transcript_with_ytdlp

logger = logging.getLogger(__name__)

_Stage = tuple[TranscriptSource, Callable[[], Awaitable[str | None]]]


def _stages(
    client: httpx.AsyncClient, page: PageContext, config: ResolverConfig
) -> list[_Stage]:
    stages: list[_Stage] = [
        (
            TranscriptSource.CAPTIONS,
            lambda: fetch_transcript_from_caption_tracks(client, page, config),
        ),
    ]
    if config.use_ytdlp:
        stages.append(
            (
                TranscriptSource.YTDLP,
                lambda: fetch_transcript_with_ytdlp(client, page.original_url, config),
            )
        )
    return stages


async def _run_stage(stage: _Stage) -> TranscriptResult | None:
    source, run = stage
    try:
        text = await run()
    except Exception:
        logger.debug("Stage %s failed", source.value, exc_info=True)
        return None

    text = (text or "").strip()
    if not text:
        logger.debug("Stage %s produced no transcript", source.value)
        return None
    return TranscriptResult(text=text, source=source)


async def resolve_transcript(
    page: PageContext,
    *,
    config: ResolverConfig | None = None,
    client: httpx.AsyncClient | None = None,
) -> TranscriptResult | None:
    """
    Find transcript text for an already-fetched watch page.

    Args:
        page:   The watch page HTML, its URL and the video ID.
        config: Timeouts and fallback settings.  Defaults to ResolverConfig().
        client: HTTP client to use.  When omitted a client is created for
                this call and closed before returning.

    Returns:
        The first transcript found and which strategy produced it, or None
        when no strategy produced any text.
    """
    config = config or ResolverConfig()

    if client is None:
        async with httpx.AsyncClient(follow_redirects=True) as owned_client:
            result = await first_success(_stages(owned_client, page, config), _run_stage)
    else:
        result = await first_success(_stages(client, page, config), _run_stage)

    if result is None:
        logger.info("No transcript found for %s", page.video_id)
    else:
        logger.info(
            "Transcript for %s resolved via %s (%d chars)",
            page.video_id,
            result.source.value,
            len(result.text),
        )
    return result
