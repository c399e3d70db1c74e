__all__ = (
    "main",
    "Config",
    "SearchMode",
    "SongAggregator",
    "SpotifyTokenProvider",
    "SpotifySearchClient",
    "SpotifyRecommendationClient",
    "YouTubeClient",
    "GeniusClient",
    "PlaceholderGenerator",
    "create_app",
    "settle_all",
    # Models
    "Credential",
    "TrackCandidate",
    "MediaStat",
    "LyricsExcerpt",
    "RelatedTrackRef",
    "Placeholder",
    "SongResult",
    # Errors
    "SongAggregatorError",
    "ConfigError",
    "ValidationError",
    "AuthError",
    "NotFoundError",
    "ProviderDegradedError",
)

from song_aggregator.aggregator import SongAggregator
from song_aggregator.cli import main
from song_aggregator.config import Config, SearchMode
from song_aggregator.errors import (
    AuthError,
    ConfigError,
    NotFoundError,
    ProviderDegradedError,
    SongAggregatorError,
    ValidationError,
)
from song_aggregator.genius import GeniusClient
from song_aggregator.models import (
    Credential,
    LyricsExcerpt,
    MediaStat,
    Placeholder,
    RelatedTrackRef,
    SongResult,
    TrackCandidate,
)
from song_aggregator.placeholders import PlaceholderGenerator
from song_aggregator.server import create_app
from song_aggregator.settle import settle_all
from song_aggregator.spotify import (
    SpotifyRecommendationClient,
    SpotifySearchClient,
    SpotifyTokenProvider,
)
from song_aggregator.youtube import YouTubeClient
