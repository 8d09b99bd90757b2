"""
test_resolver.py — End-to-end tests for resolve_transcript().

The caption path runs for real against httpx.MockTransport; the yt-dlp
stage is either patched or pointed at a binary that doesn't exist.
"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from yt_transcript_resolver.config import ResolverConfig
from yt_transcript_resolver.models import PageContext, TranscriptResult, TranscriptSource
from yt_transcript_resolver.resolver import resolve_transcript

_WATCH_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
_CONFIG = ResolverConfig(request_timeout=1.0)


def _page(html: str) -> PageContext:
    return PageContext(html=html, original_url=_WATCH_URL, video_id="dQw4w9WgXcQ")


def _json3(*lines: str) -> str:
    return json.dumps({"events": [{"segs": [{"utf8": line}]} for line in lines]})


def _embedded_html(*tracks: dict) -> str:
    payload = {"captions": {"playerCaptionsTracklistRenderer": {"captionTracks": list(tracks)}}}
    return f"<script>var ytInitialPlayerResponse = {json.dumps(payload)};</script>"


def _resolve(page: PageContext, handler, config: ResolverConfig = _CONFIG):
    async def runner():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await resolve_transcript(page, config=config, client=client)
    return asyncio.run(runner())


def _patch_ytdlp(return_value: str | None = None, side_effect=None):
    return patch(
        "yt_transcript_resolver.resolver.fetch_transcript_with_ytdlp",
        new=AsyncMock(return_value=return_value, side_effect=side_effect),
    )


class TestResolveTranscript:
    """Tests for stage ordering, normalisation and error containment."""

    def test_captions_win_and_skip_ytdlp(self) -> None:
        html = _embedded_html({"baseUrl": "https://x.test/en", "languageCode": "en"})

        with _patch_ytdlp("unused") as mock_ytdlp:
            result = _resolve(_page(html), lambda r: httpx.Response(200, text=_json3("  hello  ")))

        assert result == TranscriptResult(text="hello", source=TranscriptSource.CAPTIONS)
        mock_ytdlp.assert_not_awaited()

    def test_no_state_and_no_api_key_goes_straight_to_ytdlp(self) -> None:
        """No embedded state + keyless bootstrap: no API request, then yt-dlp."""
        html = '<script>ytcfg.set({"INNERTUBE_CLIENT_VERSION": "2.0"});</script>'
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(500)

        with _patch_ytdlp("from yt-dlp") as mock_ytdlp:
            result = _resolve(_page(html), handler)

        assert requests == []
        assert result == TranscriptResult(text="from yt-dlp", source=TranscriptSource.YTDLP)
        client, url, config = mock_ytdlp.await_args.args
        assert url == _WATCH_URL
        assert config is _CONFIG

    def test_tool_missing_returns_none(self) -> None:
        """Nothing scraped and yt-dlp not installed → None, no exception."""
        config = ResolverConfig(ytdlp_binary="yt-dlp-definitely-not-installed-9f2c")
        assert _resolve(_page("<html></html>"), lambda r: httpx.Response(404), config) is None

    def test_ytdlp_disabled(self) -> None:
        config = ResolverConfig(use_ytdlp=False)
        with _patch_ytdlp("never") as mock_ytdlp:
            assert _resolve(_page("<html></html>"), lambda r: httpx.Response(404), config) is None
        mock_ytdlp.assert_not_awaited()

    def test_whitespace_only_text_is_treated_as_nothing(self) -> None:
        with _patch_ytdlp("   \n  "):
            assert _resolve(_page("<html></html>"), lambda r: httpx.Response(404)) is None

    def test_unexpected_stage_error_is_contained(self) -> None:
        """A bug in one stage doesn't escape; the next stage still runs."""
        with patch(
            "yt_transcript_resolver.resolver.fetch_transcript_from_caption_tracks",
            new=AsyncMock(side_effect=RuntimeError("boom")),
        ), _patch_ytdlp("recovered"):
            result = _resolve(_page("<html></html>"), lambda r: httpx.Response(404))

        assert result == TranscriptResult(text="recovered", source=TranscriptSource.YTDLP)

    def test_every_stage_failing_returns_none(self) -> None:
        with _patch_ytdlp(side_effect=RuntimeError("boom")):
            assert _resolve(_page("<html></html>"), lambda r: httpx.Response(404)) is None

    def test_cancellation_propagates(self) -> None:
        """Task cancellation isn't swallowed by the stage guards."""
        async def hang(*args, **kwargs):
            await asyncio.sleep(3600)

        async def scenario() -> None:
            with _patch_ytdlp(side_effect=hang):
                task = asyncio.create_task(
                    resolve_transcript(_page("<html></html>"), config=ResolverConfig(request_timeout=1.0))
                )
                await asyncio.sleep(0.01)
                task.cancel()
                with pytest.raises(asyncio.CancelledError):
                    await task

        asyncio.run(scenario())

    def test_creates_own_client_when_none_given(self) -> None:
        """Without an injected client the call still works (and makes no requests here)."""
        config = ResolverConfig(use_ytdlp=False)
        assert asyncio.run(resolve_transcript(_page("<html></html>"), config=config)) is None


class TestTranscriptResult:
    """Tests for the TranscriptResult invariant."""

    @pytest.mark.parametrize("text", ["", "   ", "\n"])
    def test_rejects_empty_text(self, text: str) -> None:
        with pytest.raises(ValueError):
            TranscriptResult(text=text, source=TranscriptSource.CAPTIONS)

    def test_to_dict(self) -> None:
        result = TranscriptResult(text="hi", source=TranscriptSource.YTDLP)
        assert result.to_dict() == {"text": "hi", "source": "ytdlp"}
