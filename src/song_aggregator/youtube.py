"""
YouTube Data API client for video matches and view counts.

Two sequential calls per lookup: a one-result video search, then a statistics
lookup for the matched video. Any provider failure yields no MediaStat.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from song_aggregator.errors import ProviderDegradedError
from song_aggregator.models import MediaStat

log = logging.getLogger(__name__)

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"


def parse_view_count(raw: Any) -> int | None:
    """
    Parse the string ``viewCount`` statistic.

    Returns None for missing, unparseable or negative values so that an unknown
    count is never confused with zero views.
    """
    if raw is None or isinstance(raw, bool):
        return None
    try:
        count = int(str(raw).strip())
    except ValueError:
        return None
    return count if count >= 0 else None


class YouTubeClient:
    """YouTube Data API v3 client (search + videos endpoints)."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str,
        api_url: str = "https://www.googleapis.com/youtube/v3",
    ):
        """
        Initialize YouTube client.

        Args:
            http: Shared async HTTP client for the current request
            api_key: YouTube Data API key
            api_url: API base URL
        """
        self._http = http
        self._api_key = api_key
        self.api_url = api_url

    async def _get_json(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        try:
            response = await self._http.get(
                f"{self.api_url}/{endpoint}",
                params={**params, "key": self._api_key},
            )
        except httpx.HTTPError as e:
            raise ProviderDegradedError("youtube", f"{endpoint}: {e!r}") from e

        if not response.is_success:
            raise ProviderDegradedError("youtube", f"{endpoint}: HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderDegradedError("youtube", f"{endpoint}: invalid JSON") from e

        if not isinstance(data, dict):
            raise ProviderDegradedError("youtube", f"{endpoint}: unexpected payload")
        return data

    async def _find_video_id(self, query: str) -> str | None:
        data = await self._get_json(
            "search",
            {"part": "snippet", "q": query, "type": "video", "maxResults": "1"},
        )
        items = data.get("items") or []
        first = items[0] if isinstance(items, list) and items else None
        if not isinstance(first, dict):
            return None
        ids = first.get("id")
        video_id = ids.get("videoId") if isinstance(ids, dict) else None
        return video_id if isinstance(video_id, str) and video_id else None

    async def _view_count(self, video_id: str) -> int | None:
        data = await self._get_json("videos", {"part": "statistics", "id": video_id})
        items = data.get("items") or []
        first = items[0] if isinstance(items, list) and items else None
        if not isinstance(first, dict):
            return None
        statistics = first.get("statistics")
        if not isinstance(statistics, dict):
            return None
        return parse_view_count(statistics.get("viewCount"))

    async def lookup(self, query: str) -> MediaStat | None:
        """
        Find the best matching video for ``query`` and its view count.

        Returns:
            MediaStat, or None when no video matches or the provider fails
        """
        try:
            video_id = await self._find_video_id(query)
            if video_id is None:
                log.info(f"No YouTube match for '{query}'")
                return None
            view_count = await self._view_count(video_id)
        except ProviderDegradedError as e:
            log.warning(f"YouTube lookup degraded for '{query}': {e.reason}")
            return None

        return MediaStat(
            video_id=video_id,
            video_url=WATCH_URL.format(video_id=video_id),
            view_count=view_count,
        )


## Tests


def test_parse_view_count():
    assert parse_view_count("12345") == 12345
    assert parse_view_count(" 7 ") == 7
    assert parse_view_count("0") == 0
    assert parse_view_count(None) is None
    assert parse_view_count("n/a") is None
    assert parse_view_count("-3") is None
