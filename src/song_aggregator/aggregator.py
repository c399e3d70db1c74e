"""
Song aggregation across Spotify, YouTube and Genius.

One call to ``SongAggregator.search`` acquires its own Spotify token, runs the
primary track search, fans out the secondary lookups behind a single
settle-all barrier and assembles SongResults in Spotify relevance order.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field

import httpx

from song_aggregator.config import Config, SearchMode
from song_aggregator.errors import NotFoundError, ValidationError
from song_aggregator.genius import GeniusClient
from song_aggregator.models import (
    LyricsExcerpt,
    MediaStat,
    RelatedTrackRef,
    SongResult,
    TrackCandidate,
)
from song_aggregator.placeholders import PlaceholderGenerator
from song_aggregator.settle import settle_all
from song_aggregator.spotify import (
    SpotifyRecommendationClient,
    SpotifySearchClient,
    SpotifyTokenProvider,
)
from song_aggregator.youtube import YouTubeClient

log = logging.getLogger(__name__)


@dataclass
class Enrichment:
    """Secondary data gathered for one candidate."""

    media: MediaStat | None = None
    lyrics: LyricsExcerpt | None = None
    related: list[RelatedTrackRef] = field(default_factory=list)


class SongAggregator:
    """
    Merges provider data into SongResults.

    Holds configuration only; every search opens its own HTTP client and
    token, so concurrent searches share no mutable state.
    """

    def __init__(
        self,
        config: Config,
        transport: httpx.AsyncBaseTransport | None = None,
        placeholders: PlaceholderGenerator | None = None,
    ):
        """
        Initialize the aggregator.

        Args:
            config: Loaded configuration (credentials must be present)
            transport: Optional httpx transport, used by tests to fake providers
            placeholders: Generator for synthetic fields; built from config if omitted
        """
        config.require_credentials()
        self.config = config
        self._transport = transport

        if placeholders is None and config.placeholders.enabled:
            placeholders = PlaceholderGenerator(random.Random(config.placeholders.seed))
        self.placeholders = placeholders if config.placeholders.enabled else None

    @property
    def mode(self) -> SearchMode:
        return self.config.search.mode

    async def search(self, query: str | None) -> list[SongResult] | SongResult:
        """
        Search for a song and aggregate metadata from all providers.

        Args:
            query: Free-text query

        Returns:
            A list of SongResults in ALL mode, a single SongResult in TOP mode

        Raises:
            ValidationError: Query missing or blank (no provider is called)
            AuthError: Spotify token request failed
            NotFoundError: Spotify returned no candidates
        """
        if query is None or not query.strip():
            raise ValidationError()
        query = query.strip()

        results = await self._aggregate(query)
        if self.mode == SearchMode.TOP:
            return results[0]
        return results

    async def _aggregate(self, query: str) -> list[SongResult]:
        providers = self.config.providers
        search_cfg = self.config.search

        async with httpx.AsyncClient(
            timeout=providers.timeout_s,
            transport=self._transport,
        ) as http:
            token_provider = SpotifyTokenProvider(
                http,
                providers.spotify_client_id or "",
                providers.spotify_client_secret or "",
                auth_url=providers.spotify_auth_url,
            )
            search_client = SpotifySearchClient(http, providers.spotify_api_url)
            recommendations = SpotifyRecommendationClient(http, providers.spotify_api_url)
            youtube = YouTubeClient(
                http, providers.youtube_api_key or "", providers.youtube_api_url
            )
            genius = GeniusClient(
                http,
                providers.genius_access_token or "",
                providers.genius_api_url,
                max_chars=search_cfg.lyrics_max_chars,
            )

            credential = await token_provider.fetch()
            candidates = await search_client.search_tracks(
                query, credential, limit=search_cfg.limit
            )
            if not candidates:
                log.info(f"No Spotify candidates for '{query}'")
                raise NotFoundError()
            if self.mode == SearchMode.TOP:
                candidates = candidates[:1]

            top = candidates[0]
            calls = [youtube.lookup(candidate.lookup_query) for candidate in candidates]
            calls.append(genius.excerpt(top.lookup_query))
            calls.append(
                recommendations.related_tracks(
                    top.provider_id, credential, limit=search_cfg.related_limit
                )
            )
            settled = await settle_all(calls, timeout=providers.timeout_s)

        media = [outcome.value if outcome.ok else None for outcome in settled[: len(candidates)]]
        lyrics_outcome, related_outcome = settled[len(candidates) :]

        enrichments = [Enrichment(media=stat) for stat in media]
        enrichments[0].lyrics = lyrics_outcome.value if lyrics_outcome.ok else None
        enrichments[0].related = related_outcome.value_or([])[: search_cfg.related_limit]

        log.debug(
            f"Aggregated {len(candidates)} candidate(s) for '{query}': "
            f"{sum(stat is not None for stat in media)} with video data"
        )
        return [self._merge(c, e) for c, e in zip(candidates, enrichments, strict=True)]

    def _merge(self, candidate: TrackCandidate, enrichment: Enrichment) -> SongResult:
        """Combine one candidate with whatever secondary data arrived."""
        media = enrichment.media
        result = SongResult(
            id=candidate.provider_id,
            title=candidate.title,
            artist=candidate.artist,
            album=candidate.album_name,
            release_date=candidate.release_date,
            popularity=candidate.popularity,
            spotify_url=candidate.external_url,
            youtube_url=media.video_url if media else None,
            youtube_views=media.view_count if media else None,
            album_cover=candidate.cover_image_urls[0] if candidate.cover_image_urls else None,
            preview=candidate.preview_url,
            lyrics=enrichment.lyrics.text if enrichment.lyrics else None,
            related_songs=list(enrichment.related),
        )
        if self.placeholders is not None:
            result.genre = self.placeholders.genre()
            result.spotify_plays = self.placeholders.spotify_plays()
            result.chart_position = self.placeholders.chart_position()
        return result


def results_to_json(results: list[SongResult] | SongResult) -> list[dict] | dict:
    """Serialize a search outcome to its JSON contract."""
    if isinstance(results, SongResult):
        return results.to_dict()
    return [result.to_dict() for result in results]
