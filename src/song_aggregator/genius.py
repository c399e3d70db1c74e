"""
Genius API client for song description excerpts.

Searches for the best hit, fetches its song record and truncates the
plain-text description.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from song_aggregator.errors import ProviderDegradedError
from song_aggregator.models import LyricsExcerpt

log = logging.getLogger(__name__)

ELLIPSIS = "..."


def _field(data: Any, key: str) -> Any:
    return data.get(key) if isinstance(data, dict) else None


def make_excerpt(text: str, max_chars: int = 200) -> LyricsExcerpt | None:
    """
    Build an excerpt of at most ``max_chars`` characters.

    The ellipsis marker is appended only when the text was cut.
    Blank text yields None.
    """
    text = text.strip()
    if not text:
        return None
    if len(text) <= max_chars:
        return LyricsExcerpt(text=text, truncated=False)
    return LyricsExcerpt(text=text[:max_chars] + ELLIPSIS, truncated=True)


class GeniusClient:
    """Genius API client (search + song detail)."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        access_token: str,
        api_url: str = "https://api.genius.com",
        max_chars: int = 200,
    ):
        self._http = http
        self._access_token = access_token
        self.api_url = api_url
        self.max_chars = max_chars

    async def _get_json(self, endpoint: str, params: dict[str, str] | None = None) -> Any:
        try:
            response = await self._http.get(
                f"{self.api_url}/{endpoint}",
                params=params,
                headers={"Authorization": f"Bearer {self._access_token}"},
            )
        except httpx.HTTPError as e:
            raise ProviderDegradedError("genius", f"{endpoint}: {e!r}") from e

        if not response.is_success:
            raise ProviderDegradedError("genius", f"{endpoint}: HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise ProviderDegradedError("genius", f"{endpoint}: invalid JSON") from e

    async def _best_hit_id(self, query: str) -> Any:
        data = await self._get_json("search", {"q": query})
        hits = _field(_field(data, "response"), "hits")
        if not hits or not isinstance(hits, list):
            return None
        return _field(_field(hits[0], "result"), "id")

    async def _description(self, song_id: Any) -> str | None:
        data = await self._get_json(f"songs/{song_id}", {"text_format": "plain"})
        song = _field(_field(data, "response"), "song")
        plain = _field(_field(song, "description"), "plain")
        return plain if isinstance(plain, str) else None

    async def excerpt(self, query: str) -> LyricsExcerpt | None:
        """
        Get a truncated description excerpt for the best hit of ``query``.

        Returns None when nothing matches, the record has no description,
        or the provider fails.
        """
        try:
            song_id = await self._best_hit_id(query)
            if song_id is None:
                log.info(f"No Genius hit for '{query}'")
                return None
            description = await self._description(song_id)
        except ProviderDegradedError as e:
            log.warning(f"Genius lookup degraded for '{query}': {e.reason}")
            return None

        if description is None:
            return None
        return make_excerpt(description, self.max_chars)
