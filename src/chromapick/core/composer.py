"""Turn cluster centroids and accent candidates into a ranked palette."""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple

import numpy as np

from ..utils.color import color_distance
from .accents import ACCENT_DISTANCE_THRESHOLD, AccentCandidate
from .kmeans import assign_to_nearest

logger = logging.getLogger(__name__)

ACCENT_MIN_PERCENT = 0.004
ACCENT_REPLACE_THRESHOLD = 0.01
ACCENT_REPLACE_RATIO = 0.85


@dataclass
class Swatch:
    """A palette color and the share of sampled pixels it represents."""

    rgb: Tuple[int, int, int]
    percentage: float


def sort_swatches(swatches: Iterable[Swatch]) -> List[Swatch]:
    """Order swatches by descending share, keeping input order on ties."""
    return sorted(swatches, key=lambda s: s.percentage, reverse=True)


class PaletteComposer:
    """Weights clusters by membership and rescues minor accent colors."""

    def __init__(
        self,
        min_accent_percent: float = ACCENT_MIN_PERCENT,
        distance_threshold: float = ACCENT_DISTANCE_THRESHOLD,
        replace_threshold: float = ACCENT_REPLACE_THRESHOLD,
        replace_ratio: float = ACCENT_REPLACE_RATIO,
    ):
        """Initialize palette composer.

        Args:
            min_accent_percent: Accents below this share are treated as noise
            distance_threshold: RGB distance at which an accent counts as
                already represented
            replace_threshold: The smallest swatch may always be replaced
                when its share is at or below this
            replace_ratio: Otherwise an accent needs at least this fraction
                of the smallest swatch's share to replace it
        """
        self.min_accent_percent = min_accent_percent
        self.distance_threshold = distance_threshold
        self.replace_threshold = replace_threshold
        self.replace_ratio = replace_ratio

    def build_swatches(self, pixels: np.ndarray, centroids: np.ndarray) -> List[Swatch]:
        """Convert centroids into swatches weighted by their pixel share.

        Centroids that attract no pixel are dropped.
        """
        if len(pixels) == 0 or len(centroids) == 0:
            return []

        labels, _ = assign_to_nearest(pixels, centroids)
        counts = np.bincount(labels, minlength=len(centroids))
        total = len(pixels)

        swatches = []
        for centroid, count in zip(centroids, counts):
            if count == 0:
                continue
            r, g, b = (int(c) for c in centroid)
            swatches.append(Swatch(rgb=(r, g, b), percentage=int(count) / total))
        return swatches

    def ensure_accent_coverage(
        self,
        swatches: List[Swatch],
        accents: Iterable[AccentCandidate],
        max_colors: int,
        total_pixels: int,
    ) -> List[Swatch]:
        """Inject accent colors that clustering diluted away.

        Accents are considered from the highest score down. One is added when
        there is room; with a full palette it replaces the smallest swatch
        only if that swatch is tiny or the accent is nearly as large.
        """
        result = sort_swatches(swatches)
        ranked = sorted(accents, key=lambda c: c.score, reverse=True)
        if not ranked or total_pixels == 0:
            return result

        for candidate in ranked:
            percentage = candidate.count / total_pixels
            if percentage < self.min_accent_percent:
                continue

            if any(
                color_distance(entry.rgb, candidate.rgb) <= self.distance_threshold
                for entry in result
            ):
                continue

            accent = Swatch(rgb=tuple(candidate.rgb), percentage=percentage)

            if len(result) < max_colors:
                result.append(accent)
                result = sort_swatches(result)
                logger.debug(f"Added accent {accent.rgb} ({percentage:.4f})")
                continue

            smallest = result[-1]
            if (
                smallest.percentage <= self.replace_threshold
                or percentage >= smallest.percentage * self.replace_ratio
            ):
                logger.debug(
                    f"Accent {accent.rgb} ({percentage:.4f}) replaces "
                    f"{smallest.rgb} ({smallest.percentage:.4f})"
                )
                result[-1] = accent
                result = sort_swatches(result)

        return result

    def compose(
        self,
        pixels: np.ndarray,
        centroids: np.ndarray,
        accents: Iterable[AccentCandidate],
        max_colors: int,
    ) -> List[Swatch]:
        """Build the final ranked palette of at most ``max_colors`` swatches."""
        swatches = self.build_swatches(pixels, centroids)
        palette = self.ensure_accent_coverage(swatches, accents, max_colors, len(pixels))
        palette = sort_swatches(palette)[:max_colors]

        # Accent pixels are also counted by the cluster that absorbed them.
        total = sum(swatch.percentage for swatch in palette)
        if total > 1:
            palette = [Swatch(s.rgb, s.percentage / total) for s in palette]
        return palette
