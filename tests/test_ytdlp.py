"""
test_ytdlp.py — Tests for the yt-dlp fallback adapter.

The subprocess is replaced by a FakeProcess (or, for the "not installed"
case, a binary name that can't exist), and caption downloads go through
httpx.MockTransport.
"""

from __future__ import annotations

import asyncio
import json
import subprocess
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from yt_transcript_resolver.config import ResolverConfig
from yt_transcript_resolver.errors import ToolNotFoundError
from yt_transcript_resolver.ytdlp import (
    YTDLP_FLAGS,
    fetch_transcript_with_ytdlp,
    language_preference,
    pick_caption_url,
    run_ytdlp,
)

_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
_CONFIG = ResolverConfig(ytdlp_timeout=5.0, ytdlp_download_timeout=1.0)
_MISSING_BINARY = "yt-dlp-definitely-not-installed-9f2c"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class FakeProcess:
    """Stands in for asyncio.subprocess.Process."""

    def __init__(
        self,
        stdout: bytes = b"",
        stderr: bytes = b"",
        returncode: int = 0,
        hang: bool = False,
    ) -> None:
        self.returncode: int | None = None
        self.killed = False
        self._stdout = stdout
        self._stderr = stderr
        self._final_returncode = returncode
        self._hang = hang

    async def communicate(self) -> tuple[bytes, bytes]:
        if self._hang:
            await asyncio.sleep(3600)
        self.returncode = self._final_returncode
        return self._stdout, self._stderr

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9

    async def wait(self) -> int:
        return self.returncode if self.returncode is not None else 0


def _patch_exec(process: FakeProcess):
    return patch(
        "yt_transcript_resolver.ytdlp.asyncio.create_subprocess_exec",
        new=AsyncMock(return_value=process),
    )


def _info(subtitles: dict | None = None, automatic: dict | None = None) -> dict:
    return {"id": "dQw4w9WgXcQ", "subtitles": subtitles or {}, "automatic_captions": automatic or {}}


def _json3(*lines: str) -> str:
    return json.dumps({"events": [{"segs": [{"utf8": line}]} for line in lines]})


def _run_with_client(handler, make_coro):
    async def runner():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await make_coro(client)
    return asyncio.run(runner())


# ---------------------------------------------------------------------------
# language_preference / pick_caption_url
# ---------------------------------------------------------------------------

class TestPickCaptionUrl:
    """Tests for caption URL selection from a yt-dlp info_dict."""

    @pytest.mark.parametrize("language, rank", [
        ("en", 0), ("EN", 0), ("en-US", 1), ("en-GB", 1), ("enm", 2), ("de", 10), ("", 10),
    ])
    def test_language_preference(self, language: str, rank: int) -> None:
        assert language_preference(language) == rank

    def test_prefers_english_json3(self) -> None:
        info = _info(
            subtitles={
                "de": [{"ext": "json3", "url": "https://x.test/de.json3"}],
                "en-US": [{"ext": "json3", "url": "https://x.test/en-us.json3"}],
            },
            automatic={"en": [{"ext": "vtt", "url": "https://x.test/en.vtt"},
                              {"ext": "json3", "url": "https://x.test/en.json3"}]},
        )
        assert pick_caption_url(info) == "https://x.test/en.json3"

    def test_vtt_when_no_json3(self) -> None:
        info = _info(subtitles={"en": [{"ext": "srv1", "url": "https://x.test/a"},
                                       {"ext": "vtt", "url": "https://x.test/en.vtt"}]})
        assert pick_caption_url(info) == "https://x.test/en.vtt"

    def test_first_usable_language_wins(self) -> None:
        """A language with only unusable formats is skipped for the next one."""
        info = _info(subtitles={
            "en": [{"ext": "srv3", "url": "https://x.test/en.srv3"}],
            "fr": [{"ext": "vtt", "url": "https://x.test/fr.vtt"}],
            "de": [{"ext": "json3", "url": "https://x.test/de.json3"}],
        })
        # fr and de tie on preference; stable order keeps fr first.
        assert pick_caption_url(info) == "https://x.test/fr.vtt"

    def test_manual_before_automatic_on_ties(self) -> None:
        info = _info(
            subtitles={"en": [{"ext": "json3", "url": "https://x.test/manual"}]},
            automatic={"en": [{"ext": "json3", "url": "https://x.test/auto"}]},
        )
        assert pick_caption_url(info) == "https://x.test/manual"

    def test_ignores_malformed_entries(self) -> None:
        info = {
            "subtitles": {"en": "nope", "en-GB": [None, {"ext": "json3"}, {"ext": "json3", "url": 3}]},
            "automatic_captions": ["not", "a", "dict"],
        }
        assert pick_caption_url(info) is None

    def test_no_captions(self) -> None:
        assert pick_caption_url({}) is None


# ---------------------------------------------------------------------------
# run_ytdlp
# ---------------------------------------------------------------------------

class TestRunYtdlp:
    """Tests for the subprocess wrapper."""

    def test_returns_stdout(self) -> None:
        process = FakeProcess(stdout=b'{"id": "x"}')
        with _patch_exec(process) as mock_exec:
            assert asyncio.run(run_ytdlp(_URL, _CONFIG)) == '{"id": "x"}'

        args = mock_exec.call_args.args
        assert args == ("yt-dlp", *YTDLP_FLAGS, _URL)
        assert YTDLP_FLAGS == ("--dump-single-json", "--no-playlist", "--no-warnings")

    def test_missing_binary_raises_tool_not_found(self) -> None:
        """A real exec of a nonexistent binary maps to ToolNotFoundError."""
        config = ResolverConfig(ytdlp_binary=_MISSING_BINARY)
        with pytest.raises(ToolNotFoundError):
            asyncio.run(run_ytdlp(_URL, config))

    def test_nonzero_exit_raises(self) -> None:
        process = FakeProcess(stderr=b"ERROR: private video", returncode=1)
        with _patch_exec(process):
            with pytest.raises(subprocess.CalledProcessError):
                asyncio.run(run_ytdlp(_URL, _CONFIG))

    def test_timeout_kills_process(self) -> None:
        process = FakeProcess(hang=True)
        config = ResolverConfig(ytdlp_timeout=0.05)
        with _patch_exec(process):
            with pytest.raises(asyncio.TimeoutError):
                asyncio.run(run_ytdlp(_URL, config))
        assert process.killed

    def test_cancellation_kills_process_and_propagates(self) -> None:
        process = FakeProcess(hang=True)

        async def scenario() -> None:
            task = asyncio.create_task(run_ytdlp(_URL, _CONFIG))
            await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        with _patch_exec(process):
            asyncio.run(scenario())
        assert process.killed


# ---------------------------------------------------------------------------
# fetch_transcript_with_ytdlp
# ---------------------------------------------------------------------------

class TestFetchTranscriptWithYtdlp:
    """Tests for the full adapter: process → pick URL → download → decode."""

    def test_downloads_and_decodes_json3(self) -> None:
        info = _info(automatic={"en": [{"ext": "json3", "url": "https://captions.test/en"}]})
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, text=")]}'\n" + _json3("via", "yt-dlp"))

        with patch("yt_transcript_resolver.ytdlp.run_ytdlp", new=AsyncMock(return_value=json.dumps(info))):
            text = _run_with_client(handler, lambda c: fetch_transcript_with_ytdlp(c, _URL, _CONFIG))

        assert text == "via\nyt-dlp"
        assert [str(r.url) for r in requests] == ["https://captions.test/en"]

    def test_vtt_body_is_not_decoded(self) -> None:
        """Only JSON3 decoding runs on this path, so a VTT file yields None."""
        info = _info(subtitles={"en": [{"ext": "vtt", "url": "https://captions.test/en.vtt"}]})

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="WEBVTT\n\n00:00.000 --> 00:01.000\nhello\n")

        with patch("yt_transcript_resolver.ytdlp.run_ytdlp", new=AsyncMock(return_value=json.dumps(info))):
            assert _run_with_client(handler, lambda c: fetch_transcript_with_ytdlp(c, _URL, _CONFIG)) is None

    def test_tool_missing_returns_none_without_parsing(self) -> None:
        """Not installed → None; nothing is parsed or downloaded."""
        requests: list[httpx.Request] = []
        config = ResolverConfig(ytdlp_binary=_MISSING_BINARY)

        with patch("yt_transcript_resolver.ytdlp.pick_caption_url") as mock_pick:
            text = _run_with_client(
                lambda r: requests.append(r) or httpx.Response(200),
                lambda c: fetch_transcript_with_ytdlp(c, _URL, config),
            )

        assert text is None
        mock_pick.assert_not_called()
        assert requests == []

    @pytest.mark.parametrize("stdout", ["not json", "[]", json.dumps(_info())])
    def test_unusable_metadata_returns_none(self, stdout: str) -> None:
        with patch("yt_transcript_resolver.ytdlp.run_ytdlp", new=AsyncMock(return_value=stdout)):
            text = _run_with_client(
                lambda r: httpx.Response(200, text=_json3("x")),
                lambda c: fetch_transcript_with_ytdlp(c, _URL, _CONFIG),
            )
        assert text is None

    def test_process_failure_returns_none(self) -> None:
        error = subprocess.CalledProcessError(1, ["yt-dlp"])
        with patch("yt_transcript_resolver.ytdlp.run_ytdlp", new=AsyncMock(side_effect=error)):
            text = _run_with_client(
                lambda r: httpx.Response(200),
                lambda c: fetch_transcript_with_ytdlp(c, _URL, _CONFIG),
            )
        assert text is None

    def test_caption_http_error_returns_none(self) -> None:
        info = _info(subtitles={"en": [{"ext": "json3", "url": "https://captions.test/en"}]})
        with patch("yt_transcript_resolver.ytdlp.run_ytdlp", new=AsyncMock(return_value=json.dumps(info))):
            text = _run_with_client(
                lambda r: httpx.Response(429),
                lambda c: fetch_transcript_with_ytdlp(c, _URL, _CONFIG),
            )
        assert text is None
