from __future__ import annotations

import os
import tomllib
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field

from song_aggregator.errors import ConfigError


class SearchMode(StrEnum):
    """Shape of a search response."""

    ALL = "all"  # every candidate, as a JSON array
    TOP = "top"  # only the best candidate, as a JSON object


class ProvidersConfig(BaseModel):
    """Provider credentials and endpoints."""

    # API credentials (read from env vars if not provided)
    spotify_client_id: str | None = Field(default=None)
    spotify_client_secret: str | None = Field(default=None)
    youtube_api_key: str | None = Field(default=None)
    genius_access_token: str | None = Field(default=None)

    # Endpoints
    spotify_auth_url: str = Field(default="https://accounts.spotify.com/api/token")
    spotify_api_url: str = Field(default="https://api.spotify.com/v1")
    youtube_api_url: str = Field(default="https://www.googleapis.com/youtube/v3")
    genius_api_url: str = Field(default="https://api.genius.com")

    # Per provider call, in seconds
    timeout_s: float = Field(default=5.0, gt=0)


class SearchConfig(BaseModel):
    """Aggregation behaviour."""

    mode: SearchMode = Field(default=SearchMode.ALL)
    limit: int = Field(default=10, ge=1, le=50)
    related_limit: int = Field(default=4, ge=0, le=4)
    lyrics_max_chars: int = Field(default=200, ge=1)


class PlaceholderConfig(BaseModel):
    """Synthetic genre, play count and chart position."""

    enabled: bool = Field(default=True)
    seed: int | None = Field(default=None)


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)
    path: str = Field(default="/search-song")
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING")  # DEBUG, INFO, WARNING, ERROR
    format: str = Field(default="%(name)s - %(message)s")


class Config(BaseModel):
    """
    Main configuration for song-aggregator.

    Loads from TOML file with optional environment variable overrides.
    """

    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    placeholders: PlaceholderConfig = Field(default_factory=PlaceholderConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """
        Load configuration from TOML file with environment variable overrides.

        Environment variables take precedence and follow the pattern:
        SONG_AGGREGATOR_<SECTION>_<KEY> (e.g., SONG_AGGREGATOR_SEARCH_MODE).
        Provider credentials are also read from their conventional names
        (SPOTIFY_CLIENT_ID, YOUTUBE_API_KEY, ...).
        """
        config_dict: dict[str, object] = {}

        if config_path and config_path.exists():
            config_dict = tomllib.loads(config_path.read_text())

        config_dict = cls._merge_env_overrides(config_dict)
        return cls.model_validate(config_dict)

    @staticmethod
    def _section(config_dict: dict[str, object], name: str) -> dict[str, object]:
        section = config_dict.setdefault(name, {})
        if not isinstance(section, dict):
            section = {}
            config_dict[name] = section
        return section

    @classmethod
    def _merge_env_overrides(cls, config_dict: dict[str, object]) -> dict[str, object]:
        """
        Merge environment variable overrides into config dictionary.

        Returns a new dictionary with env vars applied, ready for Pydantic validation.
        """
        env_prefix = "SONG_AGGREGATOR_"

        providers = cls._section(config_dict, "providers")

        # API credentials from env
        if spotify_id := os.getenv("SPOTIFY_CLIENT_ID"):
            providers["spotify_client_id"] = spotify_id
        if spotify_secret := os.getenv("SPOTIFY_CLIENT_SECRET"):
            providers["spotify_client_secret"] = spotify_secret
        if youtube_key := os.getenv("YOUTUBE_API_KEY"):
            providers["youtube_api_key"] = youtube_key
        if genius_token := os.getenv("GENIUS_CLIENT_ACCESS_TOKEN"):
            providers["genius_access_token"] = genius_token

        if timeout := os.getenv(f"{env_prefix}PROVIDERS_TIMEOUT_S"):
            providers["timeout_s"] = timeout

        search = cls._section(config_dict, "search")
        if mode := os.getenv(f"{env_prefix}SEARCH_MODE"):
            search["mode"] = mode.lower()
        if limit := os.getenv(f"{env_prefix}SEARCH_LIMIT"):
            search["limit"] = limit
        if related_limit := os.getenv(f"{env_prefix}SEARCH_RELATED_LIMIT"):
            search["related_limit"] = related_limit
        if lyrics_max := os.getenv(f"{env_prefix}SEARCH_LYRICS_MAX_CHARS"):
            search["lyrics_max_chars"] = lyrics_max

        placeholders = cls._section(config_dict, "placeholders")
        if enabled := os.getenv(f"{env_prefix}PLACEHOLDERS_ENABLED"):
            placeholders["enabled"] = enabled.lower() in ("true", "1", "yes")
        if seed := os.getenv(f"{env_prefix}PLACEHOLDERS_SEED"):
            placeholders["seed"] = seed

        server = cls._section(config_dict, "server")
        if host := os.getenv(f"{env_prefix}SERVER_HOST"):
            server["host"] = host
        if port := os.getenv(f"{env_prefix}SERVER_PORT"):
            server["port"] = port
        if origins := os.getenv(f"{env_prefix}SERVER_ALLOWED_ORIGINS"):
            server["allowed_origins"] = [o.strip() for o in origins.split(",") if o.strip()]

        logging_config = cls._section(config_dict, "logging")
        if log_level := os.getenv(f"{env_prefix}LOGGING_LEVEL"):
            logging_config["level"] = log_level
        if log_format := os.getenv(f"{env_prefix}LOGGING_FORMAT"):
            logging_config["format"] = log_format

        return config_dict

    def require_credentials(self) -> None:
        """Raise ConfigError naming every missing provider credential."""
        required = {
            "SPOTIFY_CLIENT_ID": self.providers.spotify_client_id,
            "SPOTIFY_CLIENT_SECRET": self.providers.spotify_client_secret,
            "YOUTUBE_API_KEY": self.providers.youtube_api_key,
            "GENIUS_CLIENT_ACCESS_TOKEN": self.providers.genius_access_token,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigError(f"Missing provider credentials: {', '.join(missing)}")


## Tests


def test_config_defaults():
    config = Config()
    assert config.search.mode == SearchMode.ALL
    assert config.search.limit == 10
    assert config.search.related_limit == 4
    assert config.providers.timeout_s == 5.0
    assert config.placeholders.enabled is True
    assert config.server.path == "/search-song"


def test_config_from_dict():
    config = Config.model_validate(
        {
            "search": {"mode": "top", "lyrics_max_chars": 120},
            "providers": {"timeout_s": 2.5},
        }
    )
    assert config.search.mode == SearchMode.TOP
    assert config.search.lyrics_max_chars == 120
    assert config.providers.timeout_s == 2.5
