"""
YouTube video lookup.

Finds a video link per track through the YouTube Data API search endpoint.
Lookups for a setlist run concurrently; a failed lookup leaves that track's
``youtube_url`` unset and never fails the turn.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional

import httpx
from loguru import logger
from pydantic import BaseModel

from .errors import VideoLookupError
from .models import Track

SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
WATCH_URL = "https://www.youtube.com/watch?v="

VideoLookup = Callable[[Track], Awaitable[Optional[str]]]


class VideoHit(BaseModel):
    video_id: str
    title: str = ""
    channel: str = ""

    @property
    def url(self) -> str:
        return f"{WATCH_URL}{self.video_id}"


async def youtube_search_first_video(
    query: str,
    api_key: str,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[VideoHit]:
    """Return the first video result for ``query``, or None when nothing matches."""
    params = {
        "part": "snippet",
        "type": "video",
        "maxResults": 1,
        "q": query,
        "key": api_key,
    }
    if client is None:
        async with httpx.AsyncClient(timeout=10.0) as own_client:
            resp = await own_client.get(SEARCH_URL, params=params)
    else:
        resp = await client.get(SEARCH_URL, params=params)

    data = resp.json()
    if not resp.is_success:
        reason = None
        if isinstance(data, dict):
            reason = (data.get("error") or {}).get("message")
        raise VideoLookupError(resp.status_code, reason)

    items = data.get("items") or []
    if not items:
        return None
    item = items[0]
    snippet = item.get("snippet") or {}
    return VideoHit(
        video_id=item["id"]["videoId"],
        title=snippet.get("title", ""),
        channel=snippet.get("channelTitle", ""),
    )


def make_youtube_lookup(api_key: str, client: Optional[httpx.AsyncClient] = None) -> VideoLookup:
    """Build a per-track lookup coroutine searching for "artist title"."""

    async def lookup(track: Track) -> Optional[str]:
        hit = await youtube_search_first_video(
            f"{track.artist} {track.title}", api_key, client=client
        )
        return hit.url if hit else None

    return lookup


async def attach_video_links(tracks: List[Track], lookup: VideoLookup) -> List[Track]:
    """
    Fill ``youtube_url`` on every track that lacks one, all lookups at once.

    Returns new Track objects in the original order; failed lookups are
    logged and leave the track as it was.
    """
    pending = [i for i, t in enumerate(tracks) if not t.youtube_url]
    if not pending:
        return list(tracks)

    results = await asyncio.gather(
        *(lookup(tracks[i]) for i in pending), return_exceptions=True
    )

    out = list(tracks)
    for i, result in zip(pending, results):
        if isinstance(result, Exception):
            logger.warning(f"Video lookup failed for '{tracks[i].title}': {result}")
            continue
        if result:
            out[i] = tracks[i].model_copy(update={"youtube_url": result})
    return out
