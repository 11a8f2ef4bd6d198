"""Image decoding and pixel sampling for palette extraction."""

import base64
import io
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Tuple, Union

import numpy as np
from PIL import Image

from ..core.accents import (
    ACCENT_DISTANCE_THRESHOLD,
    ACCENT_TRACK_LIMIT,
    AccentTracker,
)
from ..core.kmeans import pack_rgb
from ..exceptions import ImageDecodeError, InvalidPixelBufferError
from ..utils.color import hsl_saturation_array

logger = logging.getLogger(__name__)

MAX_CANVAS_EDGE = 600
ALPHA_THRESHOLD = 128
ACCENT_SATURATION_THRESHOLD = 0.55

ImageSource = Union[str, Path, bytes, BinaryIO, Image.Image]


def scale_dimensions(
    width: int, height: int, max_edge: int = MAX_CANVAS_EDGE
) -> Tuple[int, int]:
    """Fit (width, height) so that the longer edge is at most ``max_edge``.

    Aspect ratio is preserved and the shorter edge never drops below one.
    """
    if width <= max_edge and height <= max_edge:
        return width, height

    aspect_ratio = width / height
    if aspect_ratio >= 1:
        return max_edge, max(1, math.floor(max_edge / aspect_ratio + 0.5))

    return max(1, math.floor(max_edge * aspect_ratio + 0.5)), max_edge


def _open_source(source: ImageSource) -> Image.Image:
    if isinstance(source, Image.Image):
        return source

    if isinstance(source, str) and source.startswith("data:"):
        header, _, payload = source.partition(",")
        if not header.endswith(";base64"):
            raise ValueError("Only base64 encoded data URLs are supported")
        source = io.BytesIO(base64.b64decode(payload, validate=True))
    elif isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)

    return Image.open(source)


def load_image(source: ImageSource) -> Image.Image:
    """Decode an image into an RGBA Pillow image.

    Args:
        source: File path, raw encoded bytes, a binary file object, a
            ``data:image/...;base64,`` URL or an already opened image

    Returns:
        Fully loaded RGBA image

    Raises:
        ImageDecodeError: If the source cannot be read or decoded
    """
    try:
        image = _open_source(source)
        image.load()
        return image.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError("Failed to load image for analysis.") from e


def decode_image(image: Image.Image, max_edge: int = MAX_CANVAS_EDGE) -> np.ndarray:
    """Downscale ``image`` to the analysis size and return its RGBA pixels.

    Returns:
        Array of shape (H, W, 4), dtype uint8
    """
    width, height = scale_dimensions(image.width, image.height, max_edge)
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    if (width, height) != image.size:
        logger.debug(f"Resizing {image.width}x{image.height} to {width}x{height}")
        image = image.resize((width, height), Image.Resampling.BILINEAR)

    return np.asarray(image, dtype=np.uint8).reshape(height, width, 4)


def as_rgba_array(data, width: int, height: int) -> np.ndarray:
    """View a row-major RGBA buffer as an (N, 4) uint8 array."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        pixels = np.frombuffer(data, dtype=np.uint8)
    else:
        pixels = np.asarray(data, dtype=np.uint8)

    expected = width * height * 4
    if width < 0 or height < 0 or pixels.size != expected:
        raise InvalidPixelBufferError(
            f"Pixel buffer holds {pixels.size} values, expected {expected} "
            f"for a {width}x{height} RGBA image"
        )
    return pixels.reshape(-1, 4)


@dataclass
class SampleSet:
    """Opaque pixels of one image together with their accent candidates."""

    pixels: np.ndarray
    accents: AccentTracker = field(default_factory=AccentTracker)

    def __len__(self) -> int:
        return len(self.pixels)

    @property
    def is_empty(self) -> bool:
        return len(self.pixels) == 0


class PixelSampler:
    """Filters visible pixels and scans them for saturated accent colors."""

    def __init__(
        self,
        alpha_threshold: int = ALPHA_THRESHOLD,
        saturation_threshold: float = ACCENT_SATURATION_THRESHOLD,
        accent_distance_threshold: float = ACCENT_DISTANCE_THRESHOLD,
        accent_track_limit: int = ACCENT_TRACK_LIMIT,
    ):
        """Initialize pixel sampler.

        Args:
            alpha_threshold: Pixels with alpha below this are discarded
            saturation_threshold: Minimum HSL saturation of an accent pixel
            accent_distance_threshold: Merge radius of accent candidates
            accent_track_limit: Capacity of the accent candidate set
        """
        self.alpha_threshold = alpha_threshold
        self.saturation_threshold = saturation_threshold
        self.accent_distance_threshold = accent_distance_threshold
        self.accent_track_limit = accent_track_limit

    def sample(self, rgba: np.ndarray) -> SampleSet:
        """Collect the sample set of an RGBA pixel array.

        Args:
            rgba: Pixels of shape (H, W, 4) or (N, 4), row-major

        Returns:
            Sample set; empty when every pixel is (nearly) transparent
        """
        rgba = np.asarray(rgba, dtype=np.uint8).reshape(-1, 4)
        tracker = AccentTracker(
            capacity=self.accent_track_limit,
            merge_distance=self.accent_distance_threshold,
        )

        visible = rgba[:, 3] >= self.alpha_threshold
        pixels = np.ascontiguousarray(rgba[visible, :3])
        logger.debug(f"Sampled {len(pixels)} of {len(rgba)} pixels")

        if len(pixels):
            saturation = hsl_saturation_array(pixels)
            vivid = saturation >= self.saturation_threshold
            self._track_accents(tracker, pixels[vivid], saturation[vivid])

        return SampleSet(pixels=pixels, accents=tracker)

    def _track_accents(
        self, tracker: AccentTracker, colors: np.ndarray, saturation: np.ndarray
    ) -> None:
        if not len(colors):
            return

        # Feed runs of identical consecutive colors in one call each.
        packed = pack_rgb(colors)
        starts = np.concatenate(([0], np.flatnonzero(packed[1:] != packed[:-1]) + 1))
        lengths = np.diff(np.append(starts, len(colors)))

        runs = zip(
            colors[starts].tolist(), saturation[starts].tolist(), lengths.tolist()
        )
        for (r, g, b), run_saturation, length in runs:
            tracker.observe((r, g, b), run_saturation, repeat=length)

        logger.debug(
            f"Observed {len(colors)} saturated pixels, "
            f"{len(tracker)} accent candidates kept"
        )
