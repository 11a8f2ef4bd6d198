"""Streaming tracker for high-saturation accent colors."""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import numpy as np

ACCENT_TRACK_LIMIT = 20
ACCENT_DISTANCE_THRESHOLD = 25


@dataclass
class AccentCandidate:
    """A saturated color region seen while sampling."""

    rgb: Tuple[int, int, int]
    count: int
    saturation: float
    score: float


class AccentTracker:
    """Bounded set of distinct saturated colors, ranked by saturation x count.

    Colors within ``merge_distance`` of an existing candidate are merged into
    the first such candidate in rank order. The candidate list is always
    sorted by descending score, earlier candidates first among equal scores;
    once it grows past ``capacity`` the lowest-scoring entry is dropped.
    Outcomes depend on observation order.
    """

    def __init__(
        self,
        capacity: int = ACCENT_TRACK_LIMIT,
        merge_distance: float = ACCENT_DISTANCE_THRESHOLD,
    ):
        self.capacity = capacity
        self.merge_distance = merge_distance
        self._candidates: List[AccentCandidate] = []
        # Row i holds the color of self._candidates[i].
        self._colors = np.zeros((max(capacity, 0), 3), dtype=np.int64)

    def __len__(self) -> int:
        return len(self._candidates)

    def __iter__(self) -> Iterator[AccentCandidate]:
        return iter(self._candidates)

    @property
    def candidates(self) -> List[AccentCandidate]:
        """Candidates sorted by descending score."""
        return list(self._candidates)

    def find(self, rgb: Tuple[int, int, int]) -> Optional[AccentCandidate]:
        """Return the first candidate within merging distance of ``rgb``."""
        index = self._find_index(rgb)
        return None if index is None else self._candidates[index]

    def _find_index(self, rgb: Tuple[int, int, int]) -> Optional[int]:
        size = len(self._candidates)
        if size == 0:
            return None

        diff = self._colors[:size] - np.asarray(rgb, dtype=np.int64)
        distances = np.sqrt(np.einsum("ij,ij->i", diff, diff))
        hits = np.flatnonzero(distances <= self.merge_distance)
        return int(hits[0]) if hits.size else None

    def observe(
        self, rgb: Tuple[int, int, int], saturation: float, repeat: int = 1
    ) -> Optional[AccentCandidate]:
        """Record ``repeat`` consecutive sightings of a saturated color.

        Args:
            rgb: Observed color
            saturation: HSL saturation of ``rgb``
            repeat: Number of identical consecutive observations

        Returns:
            The candidate that absorbed the color, or None if it was evicted
        """
        index = self._find_index(rgb)
        if index is not None:
            existing = self._candidates[index]
            self._increment(index, saturation, repeat)
            return existing

        size = len(self._candidates)
        position = self._rank_position(saturation, size)
        if position >= self.capacity:
            # An evicted newcomer leaves the set unchanged, so repeats would be too.
            return None

        candidate = AccentCandidate(
            rgb=tuple(rgb), count=1, saturation=saturation, score=saturation
        )
        kept = min(size, self.capacity - 1)
        self._colors[position + 1 : kept + 1] = self._colors[position:kept]
        self._colors[position] = candidate.rgb
        self._candidates.insert(position, candidate)
        del self._candidates[self.capacity :]

        if repeat > 1:
            self._increment(position, saturation, repeat - 1)
        return candidate

    def _rank_position(self, score: float, stop: int) -> int:
        """First index below ``stop`` whose score is lower than ``score``."""
        for index in range(stop):
            if self._candidates[index].score < score:
                return index
        return stop

    def _increment(self, index: int, saturation: float, count: int) -> None:
        candidate = self._candidates[index]
        candidate.count += count
        if saturation > candidate.saturation:
            candidate.saturation = saturation
        candidate.score = candidate.saturation * candidate.count

        # Scores never decrease, so the candidate can only move up.
        position = self._rank_position(candidate.score, index)
        if position < index:
            self._colors[position + 1 : index + 1] = self._colors[position:index]
            self._colors[position] = candidate.rgb
            del self._candidates[index]
            self._candidates.insert(position, candidate)
