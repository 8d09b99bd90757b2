"""
yt_transcript_resolver — Resolve YouTube transcripts without an official API.

Public API:
    resolve_transcript()    Engine: fetched watch page → TranscriptResult | None.
    extract()               High-level one-call interface (URL → TranscriptResult).
    parse_video_id()        Parse a YouTube URL or validate a bare video ID.
    fetch_watch_page()      Download a watch page into a PageContext.
    ResolverConfig          Timeouts and fallback settings.
    PageContext             Engine input (HTML, URL, video ID).
    TranscriptResult        Engine output (text + source).
    TranscriptSource        Which strategy produced a transcript.

Exception hierarchy (all importable from this package):
    TranscriptError                 Base exception for all transcript errors.
    ├── VideoNotFoundError          Input isn't a YouTube URL or video ID.
    ├── TranscriptUnavailableError  No strategy found a transcript.
    ├── PageFetchError              Watch page couldn't be downloaded.
    └── ToolNotFoundError           yt-dlp isn't installed (internal).

Usage:
    import asyncio
    from yt_transcript_resolver import extract

    result = asyncio.run(extract("https://www.youtube.com/watch?v=dQw4w9WgXcQ"))
    print(result.source.value, result.text)
"""

from yt_transcript_resolver.config import ResolverConfig
from yt_transcript_resolver.errors import (
    PageFetchError,
    ToolNotFoundError,
    TranscriptError,
    TranscriptUnavailableError,
    VideoNotFoundError,
)
from yt_transcript_resolver.extractor import (
    extract,
    fetch_watch_page,
    parse_video_id,
)
from yt_transcript_resolver.models import (
    PageContext,
    TranscriptResult,
    TranscriptSource,
)
from yt_transcript_resolver.resolver import resolve_transcript

__all__ = [
    "resolve_transcript",
    "extract",
    "parse_video_id",
    "fetch_watch_page",
    "ResolverConfig",
    "PageContext",
    "TranscriptResult",
    "TranscriptSource",
    "TranscriptError",
    "VideoNotFoundError",
    "TranscriptUnavailableError",
    "PageFetchError",
    "ToolNotFoundError",
]
