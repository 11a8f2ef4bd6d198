"""Clustering and palette composition for Chromapick."""

from .accents import AccentCandidate, AccentTracker
from .composer import PaletteComposer, Swatch
from .kmeans import KMeansClusterer, count_unique_colors

__all__ = [
    "AccentCandidate",
    "AccentTracker",
    "KMeansClusterer",
    "PaletteComposer",
    "Swatch",
    "count_unique_colors",
]
