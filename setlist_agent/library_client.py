"""
Library Fetch Client

Pulls a user's song library from the library service over HTTP.
"""

from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from .errors import LibraryFetchError

DEFAULT_TIMEOUT_S = 15.0


async def fetch_user_library(
    base_url: str,
    user_id: Optional[str] = None,
    auth_token: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> List[Dict[str, Any]]:
    """
    Fetch library tracks from ``base_url``.

    ``user_id`` is sent as the ``userId`` query parameter and ``auth_token``
    as a bearer token, each only when given. The service may answer with a
    bare list or a ``{"songs": [...]}`` wrapper; any other shape yields an
    empty list.

    Raises:
        LibraryFetchError: the service answered with a non-2xx status.
    """
    params = {"userId": user_id} if user_id else None
    headers = {"Authorization": f"Bearer {auth_token}"} if auth_token else {}

    if client is None:
        async with httpx.AsyncClient(timeout=timeout_s) as own_client:
            resp = await own_client.get(base_url, params=params, headers=headers)
    else:
        resp = await client.get(base_url, params=params, headers=headers)

    if not resp.is_success:
        logger.warning(f"Library fetch failed: HTTP {resp.status_code}")
        raise LibraryFetchError(resp.status_code, resp.text[:500])

    data = resp.json()
    if isinstance(data, list):
        songs = data
    elif isinstance(data, dict) and isinstance(data.get("songs"), list):
        songs = data["songs"]
    else:
        songs = []

    logger.info(f"Fetched {len(songs)} library tracks")
    return songs
