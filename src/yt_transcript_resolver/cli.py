"""
cli.py — Command-line interface for yt-transcript-resolver.

Provides the `yt-transcript` command group (registered as a console script
in pyproject.toml).

    get       Resolve a video's transcript and print or save it.

Usage examples:
    yt-transcript get "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    yt-transcript get dQw4w9WgXcQ --format json --output transcript.json
    yt-transcript get dQw4w9WgXcQ --no-ytdlp --timeout 10 -v
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import sys

import click

from yt_transcript_resolver.config import ResolverConfig
from yt_transcript_resolver.errors import TranscriptError
from yt_transcript_resolver.extractor import extract

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging(verbosity: int) -> None:
    """-v shows the outcome, -vv shows every stage."""
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG
    logging.basicConfig(level=level, format=_LOG_FORMAT, stream=sys.stderr)


# ---------------------------------------------------------------------------
# CLI group — the top-level `yt-transcript` command
# ---------------------------------------------------------------------------

@click.group()
@click.option(
    "--verbose", "-v",
    count=True,
    help="Log progress to stderr (-v for outcomes, -vv for every stage).",
)
def main(verbose: int) -> None:
    """
    YouTube Transcript Resolver — get a video's transcript without an API key.
    """
    _configure_logging(verbose)


# ---------------------------------------------------------------------------
# Subcommand: get — resolve a transcript
# ---------------------------------------------------------------------------

@main.command()
@click.argument("video", metavar="URL_OR_ID")
@click.option(
    "--format", "-f",
    "fmt",                           # avoid shadowing the builtin "format"
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    show_default=True,
    help="Output format: plain transcript text, or JSON with the source tag.",
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    default=None,
    help="Write output to a file instead of stdout.",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds allowed per HTTP request.  [default: 5]",
)
@click.option(
    "--ytdlp-timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds allowed for the yt-dlp fallback process.  [default: 60]",
)
@click.option(
    "--ytdlp/--no-ytdlp",
    default=None,
    help="Enable or disable the yt-dlp fallback.  [default: enabled]",
)
def get(
    video: str,
    fmt: str,
    output: str | None,
    timeout: float | None,
    ytdlp_timeout: float | None,
    ytdlp: bool | None,
) -> None:
    """
    Resolve a YouTube video's transcript.

    VIDEO can be a full YouTube URL or an 11-character video ID.  Defaults
    come from YT_TRANSCRIPT_* environment variables; flags override them.
    """
    overrides: dict[str, object] = {}
    if timeout is not None:
        overrides["request_timeout"] = timeout
    if ytdlp_timeout is not None:
        overrides["ytdlp_timeout"] = ytdlp_timeout
    if ytdlp is not None:
        overrides["use_ytdlp"] = ytdlp
    config = dataclasses.replace(ResolverConfig.from_env(), **overrides)

    try:
        result = asyncio.run(extract(video, config=config))
    except TranscriptError as exc:
        # A clean message is more useful here than a traceback.
        click.echo(f"Error: {exc.message}", err=True)
        sys.exit(1)

    if fmt == "json":
        text = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
    else:
        text = result.text

    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(text)
            fh.write("\n")
        click.echo(f"Transcript ({result.source.value}) written to {output}", err=True)
    else:
        click.echo(text)
