"""
ytdlp.py — Last-resort transcript lookup through the yt-dlp executable.

When scraping the watch page gets us nothing, yt-dlp usually still can:
it knows how to talk to YouTube well enough to list every subtitle and
automatic-caption file for a video.  We run it in metadata-dump mode,

    yt-dlp --dump-single-json --no-playlist --no-warnings <url>

pick the best English-ish caption URL out of its JSON, download that file
ourselves and decode it as JSON3.

The executable (rather than the yt_dlp Python API) is used so that the
process can be killed outright when it overruns its time budget.
"""

from __future__ import annotations

import asyncio
import json
import logging
import subprocess
from typing import Any

import httpx

from yt_transcript_resolver.captions import mask_url
from yt_transcript_resolver.config import ResolverConfig
from yt_transcript_resolver.decoding import parse_json3_transcript, sanitize_json_response
from yt_transcript_resolver.errors import ToolNotFoundError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

YTDLP_FLAGS = ("--dump-single-json", "--no-playlist", "--no-warnings")

# yt-dlp info_dict keys holding {language: [format entries]} maps.
_CAPTION_SOURCES = ("subtitles", "automatic_captions")

# Caption formats we can use, most preferred first.
_PREFERRED_EXTS = ("json3", "vtt")


# ---------------------------------------------------------------------------
# Caption URL selection
# ---------------------------------------------------------------------------

def language_preference(language: str) -> int:
    """Rank a language code: en, then en-XX, then other en*, then the rest."""
    lowered = language.lower()
    if lowered == "en":
        return 0
    if lowered.startswith("en-"):
        return 1
    if lowered.startswith("en"):
        return 2
    return 10


def pick_caption_url(info: dict[str, Any]) -> str | None:
    """
    Choose one caption file URL from a yt-dlp info_dict.

    Manual subtitles are listed before automatic captions, then languages
    are stable-sorted with language_preference().  The first language that
    offers a json3 (or, failing that, vtt) entry wins.

    Returns:
        The caption URL, or None if no language offers a usable format.
    """
    candidates: list[tuple[str, Any]] = []
    for key in _CAPTION_SOURCES:
        source = info.get(key)
        if isinstance(source, dict):
            candidates.extend(source.items())

    candidates.sort(key=lambda item: language_preference(str(item[0])))

    for _language, entries in candidates:
        if not isinstance(entries, list):
            continue
        formats = [entry for entry in entries if isinstance(entry, dict)]
        for ext in _PREFERRED_EXTS:
            for entry in formats:
                url = entry.get("url")
                if entry.get("ext") == ext and isinstance(url, str) and url:
                    return url
    return None


# ---------------------------------------------------------------------------
# Process execution
# ---------------------------------------------------------------------------

async def run_ytdlp(url: str, config: ResolverConfig) -> str:
    """
    Run yt-dlp against `url` and return its stdout.

    The process is killed if it outlives `config.ytdlp_timeout` or if the
    calling task is cancelled.

    Raises:
        ToolNotFoundError:             The executable isn't installed.
        subprocess.CalledProcessError: yt-dlp exited non-zero.
        asyncio.TimeoutError:          The time budget ran out.
    """
    command = (config.ytdlp_binary, *YTDLP_FLAGS, url)
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise ToolNotFoundError(config.ytdlp_binary) from exc

    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(), timeout=config.ytdlp_timeout
        )
    finally:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass  # exited on its own in the meantime
            await process.wait()

    if process.returncode != 0:
        raise subprocess.CalledProcessError(
            process.returncode, command, output=stdout, stderr=stderr
        )
    return stdout.decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

async def fetch_transcript_with_ytdlp(
    client: httpx.AsyncClient,
    url: str,
    config: ResolverConfig,
) -> str | None:
    """
    Get a transcript for `url` via yt-dlp's caption listing.

    Only the JSON3 decoder is applied to the downloaded file.

    Returns:
        Transcript text, or None on any failure, including yt-dlp not being
        installed.
    """
    try:
        stdout = await run_ytdlp(url, config)
        info = json.loads(stdout)
        if not isinstance(info, dict):
            return None

        caption_url = pick_caption_url(info)
        if caption_url is None:
            logger.debug("yt-dlp listed no usable captions for %s", url)
            return None

        response = await client.get(
            caption_url,
            headers=config.browser_headers,
            timeout=config.ytdlp_download_timeout,
        )
        if not response.is_success:
            logger.debug(
                "yt-dlp caption %s returned HTTP %d",
                mask_url(caption_url),
                response.status_code,
            )
            return None
        return parse_json3_transcript(sanitize_json_response(response.text))
    except ToolNotFoundError:
        logger.debug("%s is not installed; skipping fallback", config.ytdlp_binary)
        return None
    except Exception:
        logger.debug("yt-dlp fallback failed for %s", url, exc_info=True)
        return None
