"""
Synthetic filler for fields no provider supplies.

Genre, Spotify play count and chart position have no real source. They are
generated here, from an injectable random source, and always wrapped in
``Placeholder`` so they can never pass for provider data.
"""

from __future__ import annotations

import random

from song_aggregator.models import Placeholder

GENRES = ("Pop", "Rock", "Hip-Hop", "Electronic", "Country")
MAX_SPOTIFY_PLAYS = 1_000_000_000
MAX_CHART_POSITION = 100


class PlaceholderGenerator:
    """Produces placeholder values; pass a seeded ``random.Random`` for repeatable output."""

    def __init__(self, rng: random.Random | None = None, genres: tuple[str, ...] = GENRES):
        self.rng = rng or random.Random()
        self.genres = genres

    def genre(self) -> Placeholder[list[str]]:
        return Placeholder([self.rng.choice(self.genres)])

    def spotify_plays(self) -> Placeholder[int]:
        return Placeholder(self.rng.randrange(MAX_SPOTIFY_PLAYS))

    def chart_position(self) -> Placeholder[int]:
        return Placeholder(self.rng.randint(1, MAX_CHART_POSITION))


## Tests


def test_placeholders_are_marked_synthetic():
    gen = PlaceholderGenerator(random.Random(1))
    assert gen.genre().synthetic is True
    assert gen.genre().value[0] in GENRES
    assert 0 <= gen.spotify_plays().value < MAX_SPOTIFY_PLAYS
    assert 1 <= gen.chart_position().value <= MAX_CHART_POSITION


def test_placeholders_repeatable_with_seed():
    first = PlaceholderGenerator(random.Random(42))
    second = PlaceholderGenerator(random.Random(42))
    assert first.chart_position() == second.chart_position()
    assert first.genre() == second.genre()
