"""
errors.py — Custom exception hierarchy for yt-transcript-resolver.

The resolution engine itself never raises: every stage converts failures
into "no transcript".  These exceptions exist for the layers around it —
the one-call extract() helper, the CLI, the FastAPI app — and for the
internal "yt-dlp is not installed" signal inside the fallback adapter.

Every exception carries an `http_status` attribute so the FastAPI error
handler can translate library-level errors directly into the correct HTTP
response code without a separate mapping table.

Hierarchy:
    TranscriptError (base, 500)
    ├── VideoNotFoundError (404)
    ├── TranscriptUnavailableError (404)
    ├── PageFetchError (502)
    └── ToolNotFoundError (500)
"""


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class TranscriptError(Exception):
    """
    Root exception for all transcript-related errors.

    Attributes:
        message:     Human-readable description of what went wrong.
        http_status: Suggested HTTP status code for the API layer.
    """

    def __init__(self, message: str, http_status: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.http_status = http_status


# ---------------------------------------------------------------------------
# Specific error cases
# ---------------------------------------------------------------------------

class VideoNotFoundError(TranscriptError):
    """
    Raised when the input isn't a recognisable YouTube URL or video ID.

    Maps to HTTP 404.
    """

    def __init__(self, video_id: str) -> None:
        super().__init__(
            message=f"Video not found: {video_id}",
            http_status=404,
        )
        self.video_id = video_id


class TranscriptUnavailableError(TranscriptError):
    """
    Raised when every resolution strategy came back empty.

    The engine doesn't say why (no captions, blocked request, yt-dlp
    missing...), so neither does this error.  Maps to HTTP 404.
    """

    def __init__(self, video_id: str) -> None:
        super().__init__(
            message=f"No transcript available for video: {video_id}",
            http_status=404,
        )
        self.video_id = video_id


class PageFetchError(TranscriptError):
    """
    Raised when the watch page itself can't be downloaded.

    Maps to HTTP 502 because the failure is upstream: the request was
    valid but YouTube didn't hand us a usable page.
    """

    def __init__(self, video_id: str, reason: str = "") -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(
            message=f"Failed to fetch watch page for video {video_id}{detail}",
            http_status=502,
        )
        self.video_id = video_id


class ToolNotFoundError(TranscriptError):
    """
    Raised inside the yt-dlp adapter when the executable isn't on PATH.

    Never leaves the adapter: it's caught at the fallback boundary and
    turned into "no transcript", but keeping it distinct from other
    process failures lets the adapter log it quietly.
    """

    def __init__(self, binary: str) -> None:
        super().__init__(
            message=f"Executable not found: {binary}",
            http_status=500,
        )
        self.binary = binary
