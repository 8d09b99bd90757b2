"""
fallback.py — Try candidates one after another until one produces a value.

Used at every layer of the resolver: caption tracks within a payload,
payload sources within the caption path, and the caption path versus the
yt-dlp fallback.  Attempts run strictly in order so that a success skips
every remaining download or process call.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Iterable, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def first_success(
    candidates: Iterable[T],
    attempt: Callable[[T], Awaitable[Optional[R]]],
) -> Optional[R]:
    """
    Await `attempt(candidate)` for each candidate in order.

    Returns the first truthy result, or None when every attempt came back
    empty.  `attempt` is expected to handle its own errors; anything it
    raises (including cancellation) propagates unchanged.
    """
    for candidate in candidates:
        result = await attempt(candidate)
        if result:
            return result
    return None
