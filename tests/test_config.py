"""
test_config.py — Tests for ResolverConfig defaults and environment loading.
"""

from __future__ import annotations

import logging

import pytest

from yt_transcript_resolver.config import (
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_YTDLP_TIMEOUT,
    ResolverConfig,
)


class TestResolverConfig:
    """Tests for ResolverConfig."""

    def test_defaults(self) -> None:
        config = ResolverConfig()
        assert config.request_timeout == DEFAULT_REQUEST_TIMEOUT == 5.0
        assert config.ytdlp_timeout == DEFAULT_YTDLP_TIMEOUT == 60.0
        assert config.ytdlp_binary == "yt-dlp"
        assert config.use_ytdlp is True

    def test_browser_headers(self) -> None:
        headers = ResolverConfig(user_agent="UA", accept_language="de").browser_headers
        assert headers == {"User-Agent": "UA", "Accept-Language": "de"}

    def test_from_env_empty(self) -> None:
        assert ResolverConfig.from_env({}) == ResolverConfig()

    def test_from_env_values(self) -> None:
        config = ResolverConfig.from_env({
            "YT_TRANSCRIPT_REQUEST_TIMEOUT": "2.5",
            "YT_TRANSCRIPT_YTDLP_TIMEOUT": "120",
            "YT_TRANSCRIPT_YTDLP_BINARY": "/opt/bin/yt-dlp",
            "YT_TRANSCRIPT_USE_YTDLP": "no",
        })
        assert config.request_timeout == 2.5
        assert config.ytdlp_timeout == 120.0
        assert config.ytdlp_binary == "/opt/bin/yt-dlp"
        assert config.use_ytdlp is False

    @pytest.mark.parametrize("name, value", [
        ("YT_TRANSCRIPT_REQUEST_TIMEOUT", "fast"),
        ("YT_TRANSCRIPT_REQUEST_TIMEOUT", "-1"),
        ("YT_TRANSCRIPT_USE_YTDLP", "maybe"),
    ])
    def test_bad_values_fall_back_with_warning(
        self, name: str, value: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="yt_transcript_resolver.config"):
            config = ResolverConfig.from_env({name: value})

        assert config == ResolverConfig()
        assert name in caplog.text
