"""Tests for the Spotify token, search and recommendation clients."""

from __future__ import annotations

import asyncio

import httpx
import pytest
from conftest import FakeProviders, make_track

from song_aggregator.errors import AuthError
from song_aggregator.models import Credential
from song_aggregator.spotify import (
    SpotifyRecommendationClient,
    SpotifySearchClient,
    SpotifyTokenProvider,
    parse_related,
    parse_track,
)

CREDENTIAL = Credential(token="fake-token")


def run_with_http(providers: FakeProviders, func):
    """Run ``func(http)`` against the fake providers."""

    async def _run():
        async with httpx.AsyncClient(transport=providers.transport()) as http:
            return await func(http)

    return asyncio.run(_run())


# Token provider


def test_token_provider_returns_credential(providers):
    credential = run_with_http(
        providers, lambda http: SpotifyTokenProvider(http, "id", "secret").fetch()
    )

    assert credential.token == "fake-token"
    assert credential.obtained_at > 0

    request = providers.requests[0]
    assert request.method == "POST"
    assert request.headers["Authorization"].startswith("Basic ")
    assert b"grant_type=client_credentials" in request.content


def test_token_provider_rejected_credentials(providers):
    providers.token_status = 401

    with pytest.raises(AuthError, match="401"):
        run_with_http(providers, lambda http: SpotifyTokenProvider(http, "id", "bad").fetch())


def test_token_provider_malformed_response():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"oops": 1}))

    async def _run():
        async with httpx.AsyncClient(transport=transport) as http:
            return await SpotifyTokenProvider(http, "id", "secret").fetch()

    with pytest.raises(AuthError, match="malformed"):
        asyncio.run(_run())


def test_token_provider_transport_error():
    def _fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(_fail)) as http:
            return await SpotifyTokenProvider(http, "id", "secret").fetch()

    with pytest.raises(AuthError):
        asyncio.run(_run())


# Search


def test_search_preserves_relevance_order(providers):
    results = run_with_http(
        providers,
        lambda http: SpotifySearchClient(http).search_tracks("query", CREDENTIAL, limit=10),
    )

    assert [r.provider_id for r in results] == ["t1", "t2", "t3"]
    assert results[1].artist_names == ("Artist B", "Guest")
    assert results[0].cover_image_urls[0] == "https://i.scdn.co/t1/640"

    request = providers.requests[0]
    assert request.headers["Authorization"] == "Bearer fake-token"
    assert request.url.params["type"] == "track"
    assert request.url.params["limit"] == "10"


def test_search_respects_limit(providers):
    results = run_with_http(
        providers,
        lambda http: SpotifySearchClient(http).search_tracks("query", CREDENTIAL, limit=1),
    )
    assert [r.provider_id for r in results] == ["t1"]


def test_search_http_failure_returns_empty(providers):
    providers.search_status = 503

    results = run_with_http(
        providers, lambda http: SpotifySearchClient(http).search_tracks("query", CREDENTIAL)
    )
    assert results == []


def test_search_skips_incomplete_tracks(providers):
    incomplete = make_track("t9", "No Artist", artists=())
    providers.tracks = [incomplete, make_track("t1", "Alpha")]

    results = run_with_http(
        providers, lambda http: SpotifySearchClient(http).search_tracks("query", CREDENTIAL)
    )
    assert [r.provider_id for r in results] == ["t1"]


def test_parse_track_clamps_popularity():
    assert parse_track(make_track("a", "A", popularity=250)).popularity == 100
    assert parse_track(make_track("a", "A", popularity=None)).popularity == 0


def test_parse_track_rejects_malformed_items():
    assert parse_track(make_track("a", "A", popularity="high")) is None
    assert parse_track("not-a-track") is None
    assert parse_track({"id": "a", "name": "A", "artists": ["Artist A"]}) is None

    odd_album = {**make_track("a", "A"), "album": "Album A", "external_urls": None}
    candidate = parse_track(odd_album)
    assert candidate is not None
    assert candidate.album_name is None
    assert candidate.cover_image_urls == ()


def test_search_skips_malformed_items(providers):
    providers.tracks = [
        {"id": "x", "name": "n", "artists": [{"name": "a"}], "popularity": "high"},
        None,
        make_track("t1", "Alpha"),
    ]

    results = run_with_http(
        providers, lambda http: SpotifySearchClient(http).search_tracks("query", CREDENTIAL)
    )
    assert [r.provider_id for r in results] == ["t1"]


@pytest.mark.parametrize(
    "payload",
    [[], {"tracks": []}, {"tracks": {"items": "none"}}, {"tracks": "none"}],
)
def test_search_unexpected_payload_returns_empty(payload):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))

    async def _run():
        async with httpx.AsyncClient(transport=transport) as http:
            return await SpotifySearchClient(http).search_tracks("query", CREDENTIAL)

    assert asyncio.run(_run()) == []


# Recommendations


def test_recommendations_bounded(providers):
    refs = run_with_http(
        providers,
        lambda http: SpotifyRecommendationClient(http).related_tracks("t1", CREDENTIAL, limit=4),
    )

    assert len(refs) == 4
    assert refs[0].provider_id == "r0"
    assert providers.requests[0].url.params["seed_tracks"] == "t1"


@pytest.mark.parametrize(
    ("status", "body"),
    [
        (500, None),
        (200, ""),
        (200, "   "),
        (200, "not json"),
        (200, "[1, 2, 3]"),
    ],
)
def test_recommendations_degrade_to_empty(providers, status, body):
    providers.recommendations_status = status
    providers.recommendations_body = body

    refs = run_with_http(
        providers,
        lambda http: SpotifyRecommendationClient(http).related_tracks("t1", CREDENTIAL),
    )
    assert refs == []


def test_parse_related_prefers_small_cover():
    assert parse_related(make_track("r", "R")).cover_image_url == "https://i.scdn.co/r/64"
    single = make_track("r", "R", image_count=1)
    assert parse_related(single).cover_image_url == "https://i.scdn.co/r/640"
    assert parse_related(make_track("r", "R", image_count=0)).cover_image_url is None
