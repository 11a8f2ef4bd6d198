"""End-to-end palette extraction: sample, cluster, compose and format."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from PIL import Image

from ..image.sampler import (
    ImageSource,
    PixelSampler,
    as_rgba_array,
    decode_image,
    load_image,
)
from ..utils.color import readable_text_color, rgb_to_hex
from ..utils.config import DEFAULT_MAX_COLORS, MAX_COLORS, ExtractionConfig, clamp_count
from ..utils.logging import PerformanceLogger
from .composer import PaletteComposer, Swatch
from .kmeans import KMeansClusterer, count_unique_colors

logger = logging.getLogger(__name__)


def sanitize_cluster_count(value: Any) -> int:
    """Clamp a requested palette size to [1, 50], defaulting to 10."""
    return clamp_count(value, 1, MAX_COLORS, DEFAULT_MAX_COLORS)


@dataclass(frozen=True)
class PaletteEntry:
    """One formatted palette color."""

    hex: str
    text_color: str
    percentage: float
    rgb: Tuple[int, int, int]

    @classmethod
    def from_swatch(cls, swatch: Swatch) -> "PaletteEntry":
        return cls(
            hex=rgb_to_hex(swatch.rgb),
            text_color=readable_text_color(swatch.rgb),
            percentage=swatch.percentage,
            rgb=tuple(swatch.rgb),
        )

    def to_dict(self) -> Dict[str, Any]:
        r, g, b = self.rgb
        return {
            "hex": self.hex,
            "textColor": self.text_color,
            "percentage": self.percentage,
            "rgb": {"r": r, "g": g, "b": b},
        }


class PaletteExtractor:
    """Computes dominant and accent colors of an image.

    Each extraction builds its own sample set, centroids and accent
    candidates. The random generator is the only state kept between calls,
    so one extractor should not be shared across threads.
    """

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """Initialize palette extractor.

        Args:
            config: Extraction parameters, defaults when omitted
            rng: Random source for cluster seeding; seeded from
                ``config.seed`` when omitted
        """
        self.config = config or ExtractionConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

    def extract_from_source(
        self, source: ImageSource, max_colors: Any = None
    ) -> List[PaletteEntry]:
        """Decode an encoded image (path, bytes, file or data URL) and extract.

        Raises:
            ImageDecodeError: If the image cannot be decoded
        """
        return self.extract_from_image(load_image(source), max_colors)

    def extract_from_image(
        self, image: Image.Image, max_colors: Any = None
    ) -> List[PaletteEntry]:
        """Extract the palette of a Pillow image, downscaling it first."""
        rgba = decode_image(image, self.config.max_edge)
        return self._extract(rgba, max_colors)

    def extract_from_rgba(
        self, data, width: int, height: int, max_colors: Any = None
    ) -> List[PaletteEntry]:
        """Extract the palette of an already decoded RGBA buffer.

        Args:
            data: Row-major RGBA values, 8 bits per channel (bytes or array)
            width: Image width in pixels
            height: Image height in pixels
            max_colors: Requested palette size; out of range or non-numeric
                values are clamped or replaced by the default

        Returns:
            Entries sorted by descending percentage; empty when no pixel is
            opaque enough to sample

        Raises:
            InvalidPixelBufferError: If ``data`` does not hold width*height*4 values
        """
        return self._extract(as_rgba_array(data, width, height), max_colors)

    def _extract(self, rgba: np.ndarray, max_colors: Any) -> List[PaletteEntry]:
        config = self.config
        requested = config.max_colors if max_colors is None else max_colors
        palette_size = sanitize_cluster_count(requested)
        perf = PerformanceLogger()

        perf.start_timer("sampling")
        sampler = PixelSampler(
            alpha_threshold=config.alpha_threshold,
            saturation_threshold=config.accent_saturation_threshold,
            accent_distance_threshold=config.accent_distance_threshold,
            accent_track_limit=config.accent_track_limit,
        )
        sample_set = sampler.sample(rgba)
        perf.end_timer("sampling")

        if sample_set.is_empty:
            logger.debug("No opaque pixels to analyze")
            return []

        cluster_count = min(palette_size, count_unique_colors(sample_set.pixels))
        logger.debug(
            f"Clustering {len(sample_set)} pixels into {cluster_count} colors"
        )

        perf.start_timer("clustering")
        clusterer = KMeansClusterer(
            max_iterations=config.max_iterations,
            shift_threshold=config.shift_threshold,
            rng=self.rng,
        )
        centroids = clusterer.fit(sample_set.pixels, cluster_count)
        perf.end_timer("clustering")

        composer = PaletteComposer(
            min_accent_percent=config.accent_min_percent,
            distance_threshold=config.accent_distance_threshold,
            replace_threshold=config.accent_replace_threshold,
            replace_ratio=config.accent_replace_ratio,
        )
        swatches = composer.compose(
            sample_set.pixels, centroids, sample_set.accents, palette_size
        )

        return [PaletteEntry.from_swatch(swatch) for swatch in swatches]


def extract_palette(
    source: ImageSource,
    max_colors: Any = DEFAULT_MAX_COLORS,
    rng: Optional[np.random.Generator] = None,
) -> List[PaletteEntry]:
    """Extract a palette from an encoded image with default settings."""
    return PaletteExtractor(rng=rng).extract_from_source(source, max_colors)
