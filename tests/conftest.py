"""Pytest configuration and shared fixtures for song-aggregator tests."""

from __future__ import annotations

import asyncio
import random
from collections import Counter
from typing import Any

import httpx
import pytest

from song_aggregator.aggregator import SongAggregator
from song_aggregator.config import Config
from song_aggregator.placeholders import PlaceholderGenerator

# =============================================================================
# Provider payload builders
# =============================================================================


def make_track(
    track_id: str,
    name: str,
    artists: tuple[str, ...] = ("Test Artist",),
    popularity: int | None = 50,
    image_count: int = 3,
) -> dict[str, Any]:
    """Build a Spotify track object."""
    return {
        "id": track_id,
        "name": name,
        "artists": [{"name": artist} for artist in artists],
        "album": {
            "name": f"{name} (Album)",
            "release_date": "2020-01-01",
            "images": [
                {"url": f"https://i.scdn.co/{track_id}/{size}"} for size in (640, 300, 64)
            ][:image_count],
        },
        "popularity": popularity,
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
        "preview_url": f"https://p.scdn.co/{track_id}.mp3",
    }


# =============================================================================
# Fake providers
# =============================================================================


class FakeProviders:
    """
    In-memory stand-ins for Spotify, YouTube and Genius.

    Routes requests by host and path, records every request, and lets each
    test switch individual endpoints into failure modes.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

        self.token_status = 200
        self.search_status = 200
        self.tracks: list[dict[str, Any]] = [
            make_track("t1", "Alpha", ("Artist A",), popularity=80),
            make_track("t2", "Beta", ("Artist B", "Guest"), popularity=60),
            make_track("t3", "Gamma", ("Artist C",), popularity=40),
        ]

        self.recommendations_status = 200
        self.recommendations_body: str | None = None
        self.recommendations: list[dict[str, Any]] = [
            make_track(f"r{i}", f"Related {i}", (f"Rel Artist {i}",)) for i in range(6)
        ]

        # YouTube: query -> video id (None means no match)
        self.videos: dict[str, str | None] = {}
        self.view_counts: dict[str, Any] = {}
        self.failing_video_queries: set[str] = set()
        self.slow_video_queries: set[str] = set()
        self.stats_status = 200

        self.genius_status = 200
        self.genius_hits = True
        self.description: str | None = "A short song description."

    # -- request routing ---------------------------------------------------

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        path = request.url.path

        if host == "accounts.spotify.com":
            return self._token()
        if host == "api.spotify.com" and path == "/v1/search":
            return self._search(request)
        if host == "api.spotify.com" and path == "/v1/recommendations":
            return self._recommendations(request)
        if host == "www.googleapis.com" and path.endswith("/search"):
            return await self._video_search(request)
        if host == "www.googleapis.com" and path.endswith("/videos"):
            return self._video_stats(request)
        if host == "api.genius.com" and path == "/search":
            return self._genius_search()
        if host == "api.genius.com" and path.startswith("/songs/"):
            return self._genius_song()
        return httpx.Response(404)

    def _token(self) -> httpx.Response:
        if self.token_status != 200:
            return httpx.Response(self.token_status, json={"error": "invalid_client"})
        return httpx.Response(200, json={"access_token": "fake-token", "expires_in": 3600})

    def _search(self, request: httpx.Request) -> httpx.Response:
        if self.search_status != 200:
            return httpx.Response(self.search_status)
        limit = int(request.url.params.get("limit", "10"))
        return httpx.Response(200, json={"tracks": {"items": self.tracks[:limit]}})

    def _recommendations(self, request: httpx.Request) -> httpx.Response:
        if self.recommendations_status != 200:
            return httpx.Response(self.recommendations_status)
        if self.recommendations_body is not None:
            return httpx.Response(200, text=self.recommendations_body)
        return httpx.Response(200, json={"tracks": self.recommendations})

    async def _video_search(self, request: httpx.Request) -> httpx.Response:
        query = request.url.params.get("q", "")
        if query in self.slow_video_queries:
            await asyncio.sleep(5)
        if query in self.failing_video_queries:
            return httpx.Response(500)
        video_id = self.videos.get(query, "vid-" + query.replace(" ", "-"))
        items = [] if video_id is None else [{"id": {"videoId": video_id}}]
        return httpx.Response(200, json={"items": items})

    def _video_stats(self, request: httpx.Request) -> httpx.Response:
        if self.stats_status != 200:
            return httpx.Response(self.stats_status)
        video_id = request.url.params.get("id", "")
        count = self.view_counts.get(video_id, "1000")
        statistics = {} if count is None else {"viewCount": count}
        return httpx.Response(200, json={"items": [{"statistics": statistics}]})

    def _genius_search(self) -> httpx.Response:
        if self.genius_status != 200:
            return httpx.Response(self.genius_status)
        hits = [{"result": {"id": 42}}] if self.genius_hits else []
        return httpx.Response(200, json={"response": {"hits": hits}})

    def _genius_song(self) -> httpx.Response:
        description = None if self.description is None else {"plain": self.description}
        return httpx.Response(200, json={"response": {"song": {"description": description}}})

    # -- assertions --------------------------------------------------------

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def count(self, host: str, path: str | None = None) -> int:
        """Number of requests sent to ``host`` (optionally restricted to ``path``)."""
        return sum(
            1
            for request in self.requests
            if request.url.host == host and (path is None or request.url.path == path)
        )

    def hosts(self) -> Counter[str]:
        return Counter(request.url.host for request in self.requests)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def providers() -> FakeProviders:
    return FakeProviders()


@pytest.fixture
def config() -> Config:
    """Configuration with dummy credentials and a short provider timeout."""
    return Config.model_validate(
        {
            "providers": {
                "spotify_client_id": "client-id",
                "spotify_client_secret": "client-secret",
                "youtube_api_key": "yt-key",
                "genius_access_token": "genius-token",
                "timeout_s": 0.5,
            },
            "placeholders": {"seed": 7},
        }
    )


@pytest.fixture
def make_aggregator(config: Config, providers: FakeProviders):
    """Build a SongAggregator wired to the fake providers."""

    def _make(cfg: Config | None = None) -> SongAggregator:
        return SongAggregator(
            cfg or config,
            transport=providers.transport(),
            placeholders=PlaceholderGenerator(random.Random(7)),
        )

    return _make
