"""
config.py — Tunables for the resolver (timeouts, yt-dlp binary, headers).

Defaults live as module constants, like the rest of the package.  The
ResolverConfig dataclass bundles them so the CLI and API can override
individual values with dataclasses.replace(), and from_env() lets a
deployment adjust them without code changes.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Per-request budget for the player API call and each caption download.
DEFAULT_REQUEST_TIMEOUT = 5.0

# yt-dlp has to start up and do its own round-trips, so it gets far more.
DEFAULT_YTDLP_TIMEOUT = 60.0
DEFAULT_YTDLP_DOWNLOAD_TIMEOUT = 60.0
DEFAULT_YTDLP_BINARY = "yt-dlp"

# Fixed desktop UA; the player API is picky about looking like a browser.
DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT_LANGUAGE = "en-US,en;q=0.9"

_ENV_PREFIX = "YT_TRANSCRIPT_"
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ResolverConfig:
    """
    Settings for one resolution call.

    Attributes:
        request_timeout:        Seconds allowed for each HTTP request.
        ytdlp_timeout:          Seconds allowed for the yt-dlp process.
        ytdlp_download_timeout: Seconds allowed to download the caption file
                                yt-dlp pointed us to.
        ytdlp_binary:           Name or path of the yt-dlp executable.
        use_ytdlp:              Whether the yt-dlp fallback runs at all.
        user_agent:             User-Agent sent on every request.
        accept_language:        Accept-Language sent on page/caption requests.
    """
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    ytdlp_timeout: float = DEFAULT_YTDLP_TIMEOUT
    ytdlp_download_timeout: float = DEFAULT_YTDLP_DOWNLOAD_TIMEOUT
    ytdlp_binary: str = DEFAULT_YTDLP_BINARY
    use_ytdlp: bool = True
    user_agent: str = DESKTOP_USER_AGENT
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE

    @property
    def browser_headers(self) -> dict[str, str]:
        """Headers for plain GETs (watch page, caption files)."""
        return {
            "User-Agent": self.user_agent,
            "Accept-Language": self.accept_language,
        }

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ResolverConfig":
        """
        Build a config from YT_TRANSCRIPT_* environment variables.

        Recognised variables: YT_TRANSCRIPT_REQUEST_TIMEOUT,
        YT_TRANSCRIPT_YTDLP_TIMEOUT, YT_TRANSCRIPT_YTDLP_BINARY and
        YT_TRANSCRIPT_USE_YTDLP.  A value that doesn't parse is logged and
        ignored, leaving the default in place.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        return cls(
            request_timeout=_float_from_env(env, "REQUEST_TIMEOUT", defaults.request_timeout),
            ytdlp_timeout=_float_from_env(env, "YTDLP_TIMEOUT", defaults.ytdlp_timeout),
            ytdlp_binary=env.get(_ENV_PREFIX + "YTDLP_BINARY") or defaults.ytdlp_binary,
            use_ytdlp=_bool_from_env(env, "USE_YTDLP", defaults.use_ytdlp),
        )


def _float_from_env(env, name: str, default: float) -> float:
    raw = env.get(_ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s%s=%r: not a number", _ENV_PREFIX, name, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring %s%s=%r: must be positive", _ENV_PREFIX, name, raw)
        return default
    return value


def _bool_from_env(env, name: str, default: bool) -> bool:
    raw = env.get(_ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    logger.warning("Ignoring %s%s=%r: expected a boolean", _ENV_PREFIX, name, raw)
    return default
