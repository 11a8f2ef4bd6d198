"""Image decoding and pixel sampling for Chromapick."""

from .sampler import PixelSampler, SampleSet, decode_image, load_image, scale_dimensions

__all__ = [
    "PixelSampler",
    "SampleSet",
    "decode_image",
    "load_image",
    "scale_dimensions",
]
