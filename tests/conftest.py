"""Shared fixtures for Chromapick tests."""

import numpy as np
import pytest


class ScriptedRng:
    """Stand-in random source returning fixed draws for k-means++ seeding."""

    def __init__(self, index: int = 0, uniform: float = 0.5):
        self.index = index
        self.uniform = uniform

    def integers(self, low, high=None):
        return self.index

    def random(self):
        return self.uniform


@pytest.fixture
def rng():
    """Fixed-seed generator for reproducible clustering."""
    return np.random.default_rng(1234)


@pytest.fixture
def scripted_rng():
    """Factory for random sources with fixed draws."""
    return ScriptedRng


@pytest.fixture
def rgba_row():
    """Build a 1-pixel-high RGBA buffer from (rgba, count) runs.

    The returned function yields a tuple of (flat uint8 buffer, width, height).
    """

    def build(*runs):
        pixels = []
        for rgba, count in runs:
            pixels.extend([rgba] * count)
        data = np.array(pixels, dtype=np.uint8).reshape(-1)
        return data, len(pixels), 1

    return build
