"""Chromapick: dominant and accent color palettes from raster images."""

__version__ = "0.1.0"
__author__ = "Chromapick Team"

from .core.extractor import PaletteEntry, PaletteExtractor, extract_palette
from .exceptions import ChromapickError, ImageDecodeError, InvalidPixelBufferError
from .image.sampler import PixelSampler

__all__ = [
    "PaletteEntry",
    "PaletteExtractor",
    "PixelSampler",
    "extract_palette",
    "ChromapickError",
    "ImageDecodeError",
    "InvalidPixelBufferError",
]
