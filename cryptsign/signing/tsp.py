"""Timestamp authority (TSP) endpoint selection."""

import random
from typing import Optional, Sequence


class TSPSelector:
    """
    Picks a timestamp server for one attempt.

    Selection is uniform over the pool and stateless between calls, so a retry
    may land on a different server. Pass a seeded ``random.Random`` to make the
    choice deterministic.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def select(self, pool: Sequence[str]) -> Optional[str]:
        """Return a server from ``pool``, or None when the pool is empty."""
        if not pool:
            return None
        if len(pool) == 1:
            return pool[0]
        return pool[self._rng.randrange(len(pool))]


__all__ = ["TSPSelector"]
