"""
Error taxonomy for song aggregation.

Fatal errors abort a search and are reported to the caller as a single
``{"error": ...}`` payload. ``ProviderDegradedError`` is never surfaced: the
secondary clients raise it internally and turn it into an absent field.
"""

from __future__ import annotations


class SongAggregatorError(Exception):
    """Base class for all song-aggregator errors."""


class ConfigError(SongAggregatorError):
    """Required configuration is missing or invalid (raised at startup)."""


class ValidationError(SongAggregatorError):
    """The search request is malformed (missing or empty query)."""

    def __init__(self, message: str = "Query is required"):
        super().__init__(message)


class AuthError(SongAggregatorError):
    """The Spotify token endpoint refused the client credentials."""


class NotFoundError(SongAggregatorError):
    """The primary search returned no candidates."""

    def __init__(self, message: str = "Song not found"):
        super().__init__(message)


class ProviderDegradedError(SongAggregatorError):
    """A secondary provider call failed or returned unusable data."""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason
