"""
Random permutation and selection over a seedable random source.

Every random decision the scheduler makes (genre order, track order, queue
length, voice-line pick) goes through a Shuffler so a seeded
random.Random makes the whole rotation reproducible.
"""

import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


class Shuffler:
    """Fisher-Yates shuffling and uniform picks backed by one random.Random."""

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Args:
            rng: Random source to draw from (default: a fresh, unseeded one)
        """
        self._rng = rng if rng is not None else random.Random()

    @classmethod
    def seeded(cls, seed: Optional[int]) -> "Shuffler":
        return cls(random.Random(seed))

    def shuffle(self, items: List[T]) -> List[T]:
        """
        Permute items in place and return the same list.

        Walks from the last index down to 1, swapping each position with a
        uniformly chosen position at or before it. Lists of length 0 or 1 are
        left untouched.
        """
        for i in range(len(items) - 1, 0, -1):
            j = self._rng.randint(0, i)
            items[i], items[j] = items[j], items[i]
        return items

    def randint(self, low: int, high: int) -> int:
        """Uniform integer in [low, high], both inclusive."""
        return self._rng.randint(low, high)

    def choice(self, items: Sequence[T]) -> T:
        """
        Uniformly pick one element.

        Raises:
            IndexError: If items is empty
        """
        if not items:
            raise IndexError("Cannot choose from an empty sequence")
        return items[self._rng.randrange(len(items))]
