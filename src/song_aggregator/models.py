"""
Data model for aggregated song lookups.

Provider clients produce the fetch-side entities (TrackCandidate, MediaStat,
LyricsExcerpt, RelatedTrackRef); the aggregator alone assembles SongResult,
whose ``to_dict`` produces the JSON contract consumed by the web front end.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Credential:
    """Short-lived Spotify bearer token."""

    token: str
    obtained_at: float = field(default_factory=time.time)

    def __repr__(self) -> str:
        return f"Credential(token='***', obtained_at={self.obtained_at})"


@dataclass(frozen=True)
class TrackCandidate:
    """Spotify track search hit."""

    provider_id: str
    title: str
    artist_names: tuple[str, ...]
    album_name: str | None = None
    release_date: str | None = None
    cover_image_urls: tuple[str, ...] = ()  # largest first
    popularity: int = 0
    external_url: str | None = None
    preview_url: str | None = None

    @property
    def artist(self) -> str:
        """All artist names joined for display."""
        return ", ".join(self.artist_names)

    @property
    def lookup_query(self) -> str:
        """Query used against the video and lyrics providers."""
        primary = self.artist_names[0] if self.artist_names else ""
        return f"{primary} {self.title}".strip()


@dataclass(frozen=True)
class MediaStat:
    """YouTube video match; view_count is None when the statistic is unknown."""

    video_id: str
    video_url: str
    view_count: int | None = None


@dataclass(frozen=True)
class LyricsExcerpt:
    """Genius description excerpt."""

    text: str
    truncated: bool = False


@dataclass(frozen=True)
class RelatedTrackRef:
    """Spotify recommendation reference."""

    provider_id: str
    title: str
    artist_names: tuple[str, ...]
    cover_image_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.provider_id,
            "title": self.title,
            "artist": ", ".join(self.artist_names),
        }
        if self.cover_image_url:
            data["albumCover"] = self.cover_image_url
        return data


@dataclass(frozen=True)
class Placeholder(Generic[T]):
    """
    Synthetic stand-in for a value no provider supplies.

    Kept distinct from real provider data so consumers and tests can tell them apart.
    """

    value: T
    synthetic: bool = True


@dataclass
class SongResult:
    """Aggregated record for one track, in provider relevance order."""

    id: str
    title: str
    artist: str
    album: str | None = None
    release_date: str | None = None
    popularity: int = 0
    spotify_url: str | None = None
    genre: Placeholder[list[str]] | None = None
    spotify_plays: Placeholder[int] | None = None
    chart_position: Placeholder[int] | None = None
    youtube_url: str | None = None
    youtube_views: int | None = None
    album_cover: str | None = None
    preview: str | None = None
    lyrics: str | None = None
    related_songs: list[RelatedTrackRef] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.id or not self.title or not self.artist:
            raise ValueError("SongResult requires id, title and artist")
        self.popularity = max(0, min(100, self.popularity))

    @property
    def synthetic_fields(self) -> list[str]:
        """JSON names of fields holding placeholder data."""
        names = []
        if self.chart_position is not None:
            names.append("chartPosition")
        if self.genre is not None:
            names.append("genre")
        if self.spotify_plays is not None:
            names.append("spotifyPlays")
        return names

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON contract, omitting absent optional fields."""
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "releaseDate": self.release_date,
            "genre": list(self.genre.value) if self.genre else [],
            "popularity": self.popularity,
            "spotifyUrl": self.spotify_url,
            "youtubeUrl": self.youtube_url,
            "spotifyPlays": self.spotify_plays.value if self.spotify_plays else None,
            "youtubeViews": self.youtube_views,
            "albumCover": self.album_cover,
            "preview": self.preview,
            "lyrics": self.lyrics,
            "chartPosition": self.chart_position.value if self.chart_position else None,
            "relatedSongs": [ref.to_dict() for ref in self.related_songs],
        }
        data = {key: value for key, value in data.items() if value is not None}
        if synthetic := self.synthetic_fields:
            data["syntheticFields"] = synthetic
        return data


## Tests


def test_track_candidate_artist_join():
    candidate = TrackCandidate(
        provider_id="abc",
        title="Song",
        artist_names=("First", "Second"),
    )
    assert candidate.artist == "First, Second"
    assert candidate.lookup_query == "First Song"


def test_song_result_clamps_popularity():
    result = SongResult(id="a", title="t", artist="x", popularity=130)
    assert result.popularity == 100
    result = SongResult(id="a", title="t", artist="x", popularity=-5)
    assert result.popularity == 0


def test_song_result_omits_absent_fields():
    data = SongResult(id="a", title="t", artist="x").to_dict()
    assert "youtubeUrl" not in data
    assert "lyrics" not in data
    assert "syntheticFields" not in data
    assert data["genre"] == []
    assert data["relatedSongs"] == []


def test_song_result_marks_placeholders():
    result = SongResult(
        id="a",
        title="t",
        artist="x",
        genre=Placeholder(["Rock"]),
        chart_position=Placeholder(7),
    )
    data = result.to_dict()
    assert data["genre"] == ["Rock"]
    assert data["chartPosition"] == 7
    assert data["syntheticFields"] == ["chartPosition", "genre"]


def test_credential_repr_hides_token():
    assert "secret" not in repr(Credential(token="secret"))
