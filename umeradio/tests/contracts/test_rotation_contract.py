"""
Contract tests for GenreRotation

- Every genre exactly once per cycle
- Fresh order drawn each time the index wraps
- Index always in bounds
"""

from pathlib import Path

import pytest

from umeradio.music_logic.media_library import Genre
from umeradio.music_logic.rotation import GenreRotation
from umeradio.music_logic.shuffler import Shuffler


def make_genres(*names):
    root = Path("/radio")
    return [Genre(name, root / "music" / name, root / "voice" / name) for name in names]


class CountingShuffler(Shuffler):
    def __init__(self):
        super().__init__()
        self.shuffles = 0

    def shuffle(self, items):
        self.shuffles += 1
        return super().shuffle(items)


class TestCycle:
    """Tests for cycle coverage."""

    def test_initial_position(self, shuffler):
        genres = make_genres("bossa", "jazz", "underground", "city")
        rotation = GenreRotation(genres, shuffler)
        assert rotation.index == 0
        assert sorted(g.name for g in rotation.order) == sorted(g.name for g in genres)
        assert rotation.current() == rotation.order[0]

    def test_k_steps_visit_every_genre_once(self, shuffler):
        genres = make_genres("bossa", "jazz", "underground", "city")
        rotation = GenreRotation(genres, shuffler)

        for _ in range(25):
            visited = [rotation.current()] + [rotation.advance() for _ in range(len(genres) - 1)]
            assert sorted(g.name for g in visited) == ["bossa", "city", "jazz", "underground"]
            rotation.advance()

    def test_wrap_reshuffles(self):
        shuffler = CountingShuffler()
        rotation = GenreRotation(make_genres("a", "b", "c"), shuffler)
        assert shuffler.shuffles == 1

        rotation.advance()
        rotation.advance()
        assert shuffler.shuffles == 1
        rotation.advance()
        assert rotation.index == 0
        assert rotation.reshuffle_count == 1
        assert shuffler.shuffles == 2

    def test_index_stays_in_bounds(self, shuffler):
        rotation = GenreRotation(make_genres("a", "b", "c"), shuffler)
        for _ in range(100):
            rotation.advance()
            assert 0 <= rotation.index < 3

    def test_single_genre_repeats(self, shuffler):
        rotation = GenreRotation(make_genres("jazz"), shuffler)
        assert rotation.advance().name == "jazz"
        assert rotation.advance().name == "jazz"
        assert rotation.reshuffle_count == 2

    def test_empty_set_rejected(self, shuffler):
        with pytest.raises(ValueError):
            GenreRotation([], shuffler)
