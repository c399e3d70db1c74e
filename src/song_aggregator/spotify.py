"""
Spotify Web API clients for song aggregation.

Covers the client credentials token exchange, track search and track
recommendations. Only the token exchange is allowed to fail loudly; search
degrades to no candidates and recommendations degrade to an empty list.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any

import httpx

from song_aggregator.errors import AuthError, ProviderDegradedError
from song_aggregator.models import Credential, RelatedTrackRef, TrackCandidate

log = logging.getLogger(__name__)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _artist_names(item: dict[str, Any]) -> tuple[str, ...]:
    return tuple(
        artist["name"]
        for artist in _as_list(item.get("artists"))
        if isinstance(artist, dict) and artist.get("name")
    )


def _image_urls(item: dict[str, Any]) -> tuple[str, ...]:
    album = _as_dict(item.get("album"))
    return tuple(
        image["url"]
        for image in _as_list(album.get("images"))
        if isinstance(image, dict) and image.get("url")
    )


def parse_track(item: Any) -> TrackCandidate | None:
    """
    Convert a Spotify track object into a TrackCandidate.

    Returns None for items missing an id, name or artist, and for items whose
    popularity is not a number.
    """
    if not isinstance(item, dict):
        return None
    track_id = item.get("id")
    name = item.get("name")
    artists = _artist_names(item)
    if not track_id or not name or not artists:
        return None

    album = _as_dict(item.get("album"))
    popularity = item.get("popularity")
    try:
        popularity = max(0, min(100, int(popularity))) if popularity is not None else 0
    except (TypeError, ValueError):
        return None

    return TrackCandidate(
        provider_id=track_id,
        title=name,
        artist_names=artists,
        album_name=album.get("name"),
        release_date=album.get("release_date"),
        cover_image_urls=_image_urls(item),
        popularity=popularity,
        external_url=_as_dict(item.get("external_urls")).get("spotify"),
        preview_url=item.get("preview_url"),
    )


def parse_related(item: dict[str, Any]) -> RelatedTrackRef | None:
    """Convert a recommended track into a RelatedTrackRef (small cover preferred)."""
    track_id = item.get("id")
    name = item.get("name")
    if not track_id or not name:
        return None

    images = _image_urls(item)
    cover = None
    if len(images) > 2:
        cover = images[2]
    elif images:
        cover = images[0]

    return RelatedTrackRef(
        provider_id=track_id,
        title=name,
        artist_names=_artist_names(item),
        cover_image_url=cover,
    )


class SpotifyTokenProvider:
    """Client credentials token exchange against the Spotify accounts service."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        client_id: str,
        client_secret: str,
        auth_url: str = "https://accounts.spotify.com/api/token",
    ):
        """
        Initialize the token provider.

        Args:
            http: Shared async HTTP client for the current request
            client_id: Spotify client ID
            client_secret: Spotify client secret
            auth_url: Token endpoint
        """
        self._http = http
        self._client_id = client_id
        self._client_secret = client_secret
        self.auth_url = auth_url

    async def fetch(self) -> Credential:
        """
        Obtain a fresh bearer token.

        Raises:
            AuthError: If the token endpoint is unreachable or rejects the credentials
        """
        credentials = f"{self._client_id}:{self._client_secret}"
        b64_credentials = base64.b64encode(credentials.encode()).decode()

        try:
            response = await self._http.post(
                self.auth_url,
                headers={
                    "Authorization": f"Basic {b64_credentials}",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                data={"grant_type": "client_credentials"},
            )
        except httpx.HTTPError as e:
            raise AuthError(f"Spotify auth failed: {e.__class__.__name__}") from e

        if not response.is_success:
            raise AuthError(f"Spotify auth failed: {response.status_code}")

        try:
            token = response.json()["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            raise AuthError("Spotify auth failed: malformed token response") from e

        return Credential(token=token)


class SpotifySearchClient:
    """Track search on the Spotify Web API."""

    def __init__(self, http: httpx.AsyncClient, api_url: str = "https://api.spotify.com/v1"):
        self._http = http
        self.api_url = api_url

    async def search_tracks(
        self,
        query: str,
        credential: Credential,
        limit: int = 10,
    ) -> list[TrackCandidate]:
        """
        Search for tracks matching a free-text query.

        Args:
            query: Free-form query string
            credential: Bearer token for this request
            limit: Max results

        Returns:
            Candidates in Spotify relevance order; empty on HTTP failure
        """
        try:
            response = await self._http.get(
                f"{self.api_url}/search",
                params={"q": query, "type": "track", "limit": str(limit)},
                headers={"Authorization": f"Bearer {credential.token}"},
            )
        except httpx.HTTPError as e:
            log.error(f"Spotify search failed: {e!r}")
            return []

        if not response.is_success:
            log.error(f"Spotify search failed: {response.status_code}")
            return []

        try:
            data = response.json()
        except ValueError:
            log.error("Spotify search returned invalid JSON")
            return []

        items = _as_list(_as_dict(_as_dict(data).get("tracks")).get("items"))

        results = []
        for item in items:
            candidate = parse_track(item)
            if candidate is None:
                log.debug(f"Skipping incomplete Spotify track: {_as_dict(item).get('id')}")
                continue
            results.append(candidate)
        return results


class SpotifyRecommendationClient:
    """Track recommendations seeded by one Spotify track."""

    def __init__(self, http: httpx.AsyncClient, api_url: str = "https://api.spotify.com/v1"):
        self._http = http
        self.api_url = api_url

    async def _fetch(self, track_id: str, credential: Credential, limit: int) -> list[Any]:
        try:
            response = await self._http.get(
                f"{self.api_url}/recommendations",
                params={"seed_tracks": track_id, "limit": str(limit)},
                headers={"Authorization": f"Bearer {credential.token}"},
            )
        except httpx.HTTPError as e:
            raise ProviderDegradedError("spotify-recommendations", repr(e)) from e

        if not response.is_success:
            raise ProviderDegradedError(
                "spotify-recommendations", f"HTTP {response.status_code}"
            )

        text = response.text
        if not text.strip():
            raise ProviderDegradedError("spotify-recommendations", "empty response body")

        try:
            data = json.loads(text)
        except ValueError as e:
            raise ProviderDegradedError("spotify-recommendations", "invalid JSON") from e

        tracks = data.get("tracks") if isinstance(data, dict) else None
        return tracks if isinstance(tracks, list) else []

    async def related_tracks(
        self,
        track_id: str,
        credential: Credential,
        limit: int = 4,
    ) -> list[RelatedTrackRef]:
        """
        Get up to ``limit`` tracks related to ``track_id``.

        Never raises for provider failures; returns an empty list instead.
        """
        if limit <= 0:
            return []

        try:
            items = await self._fetch(track_id, credential, limit)
        except ProviderDegradedError as e:
            log.warning(f"Spotify recommendations unavailable: {e.reason}")
            return []

        refs = []
        for item in items:
            if not isinstance(item, dict):
                continue
            ref = parse_related(item)
            if ref is not None:
                refs.append(ref)
            if len(refs) >= limit:
                break
        return refs
