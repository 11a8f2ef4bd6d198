"""Tests for image decoding and pixel sampling."""

import base64
import io

import numpy as np
import pytest
from PIL import Image

from chromapick.core.accents import AccentTracker
from chromapick.exceptions import ImageDecodeError, InvalidPixelBufferError
from chromapick.image.sampler import (
    PixelSampler,
    as_rgba_array,
    decode_image,
    load_image,
    scale_dimensions,
)


def _png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class TestScaleDimensions:
    """Downscaling to the analysis canvas."""

    def test_small_images_are_unchanged(self):
        assert scale_dimensions(100, 50) == (100, 50)
        assert scale_dimensions(600, 600) == (600, 600)

    def test_landscape_is_capped_on_width(self):
        assert scale_dimensions(800, 600) == (600, 450)

    def test_portrait_is_capped_on_height(self):
        assert scale_dimensions(600, 1200) == (300, 600)

    def test_short_edge_never_drops_below_one(self):
        assert scale_dimensions(10000, 1) == (600, 1)
        assert scale_dimensions(1, 10000) == (1, 600)

    def test_rounding(self):
        # 600 / (1000 / 333) = 199.8
        assert scale_dimensions(1000, 333) == (600, 200)


class TestImageLoading:
    """Decoding encoded images into RGBA pixels."""

    def test_load_from_path(self, tmp_path):
        path = tmp_path / "red.png"
        Image.new("RGB", (4, 3), (255, 0, 0)).save(path)

        image = load_image(path)

        assert image.mode == "RGBA"
        assert image.size == (4, 3)

    def test_load_from_data_url(self):
        payload = base64.b64encode(_png_bytes(Image.new("RGBA", (2, 2), (0, 0, 255, 255))))
        image = load_image("data:image/png;base64," + payload.decode("ascii"))

        assert image.getpixel((0, 0)) == (0, 0, 255, 255)

    def test_load_from_bytes(self):
        image = load_image(_png_bytes(Image.new("L", (3, 3), 128)))
        assert image.getpixel((1, 1)) == (128, 128, 128, 255)

    @pytest.mark.parametrize(
        "source",
        [b"not an image", "data:image/png;base64,@@@", "data:text/plain,hello"],
    )
    def test_undecodable_input_raises(self, source):
        with pytest.raises(ImageDecodeError):
            load_image(source)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ImageDecodeError):
            load_image(tmp_path / "missing.png")

    def test_decode_image_downscales(self):
        image = Image.new("RGBA", (1200, 300), (10, 20, 30, 255))

        rgba = decode_image(image)

        assert rgba.shape == (150, 600, 4)
        assert rgba.dtype == np.uint8
        assert tuple(rgba[0, 0]) == (10, 20, 30, 255)


class TestRgbaBuffer:
    """Validation of raw RGBA buffers."""

    def test_bytes_buffer(self):
        pixels = as_rgba_array(bytes([1, 2, 3, 4, 5, 6, 7, 8]), 2, 1)
        assert pixels.tolist() == [[1, 2, 3, 4], [5, 6, 7, 8]]

    def test_wrong_size_raises(self):
        with pytest.raises(InvalidPixelBufferError):
            as_rgba_array(bytes(12), 2, 2)

    def test_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            as_rgba_array(np.zeros(5, dtype=np.uint8), 1, 1)


class TestPixelSampler:
    """Alpha filtering and accent scanning."""

    def setup_method(self):
        self.sampler = PixelSampler()

    def test_alpha_threshold(self):
        rgba = np.array(
            [
                [10, 10, 10, 255],
                [20, 20, 20, 128],
                [30, 30, 30, 127],
                [40, 40, 40, 0],
            ],
            dtype=np.uint8,
        )

        sample_set = self.sampler.sample(rgba)

        assert sample_set.pixels.tolist() == [[10, 10, 10], [20, 20, 20]]

    def test_fully_transparent_image_is_empty(self):
        rgba = np.zeros((8, 8, 4), dtype=np.uint8)
        rgba[..., 0] = 255

        sample_set = self.sampler.sample(rgba)

        assert sample_set.is_empty
        assert len(sample_set.accents) == 0

    def test_only_saturated_pixels_become_accents(self):
        rgba = np.array(
            [
                [128, 128, 128, 255],
                [255, 0, 0, 255],
                [150, 120, 120, 255],
                [0, 0, 255, 255],
            ],
            dtype=np.uint8,
        )

        sample_set = self.sampler.sample(rgba)

        assert sorted(c.rgb for c in sample_set.accents) == [(0, 0, 255), (255, 0, 0)]

    def test_transparent_saturated_pixels_are_ignored(self):
        rgba = np.array([[255, 0, 0, 100], [0, 255, 0, 255]], dtype=np.uint8)

        sample_set = self.sampler.sample(rgba)

        assert [c.rgb for c in sample_set.accents] == [(0, 255, 0)]

    def test_runs_match_pixel_by_pixel_tracking(self):
        rng = np.random.default_rng(8)
        palette = np.array(
            [[255, 0, 0], [0, 200, 0], [0, 0, 255], [250, 240, 0], [90, 90, 90]],
            dtype=np.uint8,
        )
        choice = np.repeat(rng.integers(0, len(palette), size=60), rng.integers(1, 5, size=60))
        rgb = palette[choice]
        rgba = np.hstack([rgb, np.full((len(rgb), 1), 255, dtype=np.uint8)])

        sampler = PixelSampler(accent_track_limit=3)
        sample_set = sampler.sample(rgba)

        expected = AccentTracker(capacity=3)
        for pixel in rgb:
            if tuple(pixel) != (90, 90, 90):
                expected.observe(tuple(int(c) for c in pixel), 1.0)

        assert [(c.rgb, c.count) for c in sample_set.accents] == [
            (c.rgb, c.count) for c in expected
        ]

    def test_each_sample_gets_its_own_tracker(self):
        rgba = np.array([[255, 0, 0, 255]], dtype=np.uint8)

        first = self.sampler.sample(rgba)
        second = self.sampler.sample(rgba)

        assert first.accents is not second.accents
        assert first.accents.candidates[0].count == 1
