"""
models.py — Plain data carried between the resolver stages.

All of these are frozen dataclasses: they're built from one page fetch or
one API response, consumed immediately, and never mutated afterwards.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class TranscriptSource(str, enum.Enum):
    """Which strategy produced a transcript."""

    CAPTIONS = "captions"
    YTDLP = "ytdlp"


@dataclass(frozen=True)
class PageContext:
    """
    Engine input: a fetched watch page and where it came from.

    Attributes:
        html:         Raw HTML of the watch page.
        original_url: Canonical URL the page was fetched from.  Also used as
                      the Referer and `originalUrl` of the player request.
        video_id:     The 11-character YouTube video identifier.
    """
    html: str
    original_url: str
    video_id: str


@dataclass(frozen=True)
class Bootstrap:
    """
    Client/session parameters scraped from the watch page.

    Every field is optional.  Without `api_key` the internal player API
    can't be called, so the whole bootstrap is unusable.
    """
    api_key: str | None = None
    client_name: str | None = None
    client_version: str | None = None
    context: dict[str, Any] | None = None
    visitor_data: str | None = None
    xsrf_token: str | None = None
    page_cl: int | float | None = None
    page_label: str | None = None


@dataclass(frozen=True)
class PlayerRequest:
    """A fully-built POST to the internal player API."""
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CaptionTrack:
    """One caption stream listed in a player response."""
    base_url: str
    language_code: str | None = None
    kind: str | None = None

    @property
    def is_auto_generated(self) -> bool:
        # "asr" = automatic speech recognition
        return self.kind == "asr"


@dataclass(frozen=True)
class TranscriptResult:
    """
    The engine's output: non-empty transcript text plus its source.

    Raises:
        ValueError: If `text` is empty or whitespace-only.  Callers that may
                    hold an empty decode result should return None instead.
    """
    text: str
    source: TranscriptSource

    def __post_init__(self) -> None:
        if not self.text or not self.text.strip():
            raise ValueError("TranscriptResult.text must be non-empty")

    def to_dict(self) -> dict[str, str]:
        return {"text": self.text, "source": self.source.value}
