"""
tracks.py — Pick caption tracks out of a player response and rank them.

Works the same whether the payload came from the embedded
`ytInitialPlayerResponse` or from the internal player API.
"""

from __future__ import annotations

from typing import Any, Iterable

from yt_transcript_resolver.models import CaptionTrack


def _track_lists(payload: dict[str, Any]) -> list[Any]:
    """Manual `captionTracks` first, then `automaticCaptions`."""
    captions = payload.get("captions")
    if not isinstance(captions, dict):
        return []
    renderer = captions.get("playerCaptionsTracklistRenderer")
    if not isinstance(renderer, dict):
        return []

    ordered: list[Any] = []
    for key in ("captionTracks", "automaticCaptions"):
        entries = renderer.get(key)
        if isinstance(entries, list):
            ordered.extend(entries)
    return ordered


def _to_track(raw: Any) -> CaptionTrack | None:
    if not isinstance(raw, dict):
        return None
    base_url = raw.get("baseUrl")
    if not isinstance(base_url, str) or not base_url:
        return None
    language = raw.get("languageCode")
    kind = raw.get("kind")
    return CaptionTrack(
        base_url=base_url,
        language_code=language if isinstance(language, str) else None,
        kind=kind if isinstance(kind, str) else None,
    )


def dedupe_tracks(tracks: Iterable[CaptionTrack]) -> list[CaptionTrack]:
    """
    Keep the first track per language (case-insensitive).

    Tracks without a language code are always kept.
    """
    seen: set[str] = set()
    unique: list[CaptionTrack] = []
    for track in tracks:
        language = (track.language_code or "").lower()
        if language:
            if language in seen:
                continue
            seen.add(language)
        unique.append(track)
    return unique


def rank_tracks(tracks: Iterable[CaptionTrack]) -> list[CaptionTrack]:
    """
    Stable-sort tracks: auto-generated first, then exact "en", then as given.

    Auto-generated tracks go first on purpose: for arbitrary videos they are
    the ones most consistently present and complete.
    """
    return sorted(
        tracks,
        key=lambda track: (not track.is_auto_generated, track.language_code != "en"),
    )


def select_caption_tracks(payload: dict[str, Any]) -> list[CaptionTrack]:
    """
    Return the caption tracks of a player response in download order.

    Args:
        payload: A parsed player response.

    Returns:
        Deduplicated, ranked tracks.  Empty when the payload has no captions.
    """
    tracks = [track for track in map(_to_track, _track_lists(payload)) if track]
    return rank_tracks(dedupe_tracks(tracks))
