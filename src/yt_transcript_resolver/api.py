"""
api.py — FastAPI REST API for yt-transcript-resolver.

Endpoints:
    GET /transcript/{video_id}  — Resolve a transcript (text or JSON).
    GET /health                 — Simple health-check for load balancers / monitoring.

Run with:
    uvicorn yt_transcript_resolver.api:app

The global exception handler catches any TranscriptError and converts it to
the appropriate HTTP response using the status code stored on the exception.
"""

from __future__ import annotations

import dataclasses

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from yt_transcript_resolver.config import ResolverConfig
from yt_transcript_resolver.errors import TranscriptError
from yt_transcript_resolver.extractor import extract

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title="YouTube Transcript Resolver API",
    description="Resolve YouTube video transcripts from caption tracks, "
                "falling back to yt-dlp when scraping fails.",
    version="0.1.0",
)


# ---------------------------------------------------------------------------
# Global error handler
# ---------------------------------------------------------------------------

@app.exception_handler(TranscriptError)
async def transcript_error_handler(request: Request, exc: TranscriptError) -> JSONResponse:
    """Translate any TranscriptError (or subclass) into an HTTP error response."""
    return JSONResponse(
        status_code=exc.http_status,
        content={"error": exc.message},
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

# response_model=None because the endpoint returns either PlainTextResponse
# or JSONResponse depending on the format param.
@app.get("/transcript/{video_id}", response_model=None)
async def get_transcript(
    video_id: str,
    format: str = Query(
        default="text",
        description="Output format: 'text' for the plain transcript, 'json' for text plus its source.",
        pattern="^(text|json)$",
    ),
    ytdlp: bool = Query(
        default=True,
        description="Allow the yt-dlp fallback when caption scraping finds nothing.",
    ),
) -> PlainTextResponse | JSONResponse:
    """
    Resolve the transcript for a single YouTube video.

    **video_id** is the 11-character YouTube video identifier
    (e.g. `dQw4w9WgXcQ`).

    - `text` (default): plain transcript text.
    - `json`: `{"video_id", "source", "text"}` where `source` is
      `captions` or `ytdlp`.
    """
    config = ResolverConfig.from_env()
    if not ytdlp:
        config = dataclasses.replace(config, use_ytdlp=False)

    # extract() raises TranscriptError subclasses; the handler above maps
    # them to HTTP responses.
    result = await extract(video_id, config=config)

    if format == "json":
        return JSONResponse(content={"video_id": video_id, **result.to_dict()})
    return PlainTextResponse(content=result.text)


@app.get("/health")
async def health() -> dict:
    """Minimal health-check endpoint."""
    return {"status": "ok"}
