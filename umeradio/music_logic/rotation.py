"""
Genre rotation.

Every genre plays exactly once per full cycle; the order of each cycle is a
fresh permutation drawn when the index wraps back to 0.
"""

import logging
from typing import Iterable, Optional, Tuple

from umeradio.music_logic.media_library import Genre
from umeradio.music_logic.shuffler import Shuffler

logger = logging.getLogger(__name__)


class GenreRotation:
    """
    Owns the shuffled genre order and the current position in it.

    Only advance() mutates state. The index is always within bounds.
    """

    def __init__(self, genres: Iterable[Genre], shuffler: Optional[Shuffler] = None):
        """
        Args:
            genres: The full genre set
            shuffler: Random source for cycle orders

        Raises:
            ValueError: If the genre set is empty
        """
        self._genres: Tuple[Genre, ...] = tuple(genres)
        if not self._genres:
            raise ValueError("GenreRotation needs at least one genre")
        self._shuffler = shuffler or Shuffler()
        self._order: Tuple[Genre, ...] = self._new_order()
        self._index = 0
        self.reshuffle_count = 0

        logger.info(f"[ROTATION] Initial order: {self._describe_order()}")

    def _new_order(self) -> Tuple[Genre, ...]:
        return tuple(self._shuffler.shuffle(list(self._genres)))

    def _describe_order(self) -> str:
        return " -> ".join(g.name for g in self._order)

    @property
    def order(self) -> Tuple[Genre, ...]:
        return self._order

    @property
    def index(self) -> int:
        return self._index

    @property
    def genres(self) -> Tuple[Genre, ...]:
        return self._genres

    def current(self) -> Genre:
        return self._order[self._index]

    def advance(self) -> Genre:
        """
        Move to the next genre, reshuffling when the cycle wraps.

        Returns:
            The new current genre
        """
        previous = self.current()
        self._index = (self._index + 1) % len(self._order)
        if self._index == 0:
            self._order = self._new_order()
            self.reshuffle_count += 1
            logger.info(f"[ROTATION] Cycle complete, new order: {self._describe_order()}")
        logger.info(f"[ROTATION] {previous.name} -> {self.current().name}")
        return self.current()
