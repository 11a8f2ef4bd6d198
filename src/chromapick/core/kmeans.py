"""K-means color clustering with k-means++ seeding."""

import logging
from typing import Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 10
SHIFT_THRESHOLD = 2.0


def pack_rgb(pixels: np.ndarray) -> np.ndarray:
    """Pack (N, 3) RGB rows into single 24-bit integers."""
    pixels = pixels.astype(np.int64)
    return (pixels[:, 0] << 16) | (pixels[:, 1] << 8) | pixels[:, 2]


def count_unique_colors(pixels: np.ndarray) -> int:
    """Number of distinct RGB colors in an (N, 3) array."""
    if len(pixels) == 0:
        return 0
    return int(np.unique(pack_rgb(pixels)).size)


def squared_distances(pixels: np.ndarray, color: np.ndarray) -> np.ndarray:
    """Squared Euclidean RGB distance of every pixel to ``color``."""
    diff = pixels.astype(np.int64) - np.asarray(color, dtype=np.int64)
    return np.einsum("ij,ij->i", diff, diff)


def assign_to_nearest(
    pixels: np.ndarray, centroids: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """Label every pixel with its nearest centroid.

    Ties go to the lowest centroid index.

    Returns:
        Tuple of (labels, squared distances to the chosen centroid)
    """
    labels = np.zeros(len(pixels), dtype=np.int64)
    best = np.full(len(pixels), np.iinfo(np.int64).max, dtype=np.int64)

    for index, centroid in enumerate(centroids):
        dist = squared_distances(pixels, centroid)
        closer = dist < best
        labels[closer] = index
        best[closer] = dist[closer]

    return labels, best


class KMeansClusterer:
    """Partition pixels into color clusters.

    Seeding is k-means++ (squared-distance weighted sampling); refinement is
    Lloyd's algorithm on integer RGB with rounded means. All randomness comes
    from the injected generator so a fixed seed reproduces a run exactly.
    """

    def __init__(
        self,
        max_iterations: int = MAX_ITERATIONS,
        shift_threshold: float = SHIFT_THRESHOLD,
        rng: Optional[np.random.Generator] = None,
    ):
        """Initialize clusterer.

        Args:
            max_iterations: Upper bound on refinement passes
            shift_threshold: Stop once total centroid movement drops below this
            rng: Random source for seeding, OS-seeded when omitted
        """
        self.max_iterations = max_iterations
        self.shift_threshold = shift_threshold
        self.rng = rng if rng is not None else np.random.default_rng()

    def initialize_centroids(self, pixels: np.ndarray, k: int) -> np.ndarray:
        """Choose ``k`` starting centroids with k-means++ weighting."""
        n = len(pixels)
        data = pixels.astype(np.int64)

        centroids = [data[self.rng.integers(n)].copy()]
        nearest = squared_distances(data, centroids[0])

        while len(centroids) < k:
            total = int(nearest.sum())
            if total == 0:
                index = int(self.rng.integers(n))
            else:
                target = self.rng.random() * total
                cumulative = np.cumsum(nearest)
                index = min(int(np.searchsorted(cumulative, target, side="left")), n - 1)

            centroids.append(data[index].copy())
            nearest = np.minimum(nearest, squared_distances(data, data[index]))

        return np.array(centroids, dtype=np.int64).reshape(-1, 3)

    def recompute_centroids(
        self, pixels: np.ndarray, labels: np.ndarray, k: int
    ) -> np.ndarray:
        """Rounded mean color of each cluster.

        A cluster with no members is reseeded to ``pixels[index % len(pixels)]``.
        """
        data = pixels.astype(np.int64)
        counts = np.bincount(labels, minlength=k)[:k]
        sums = np.stack(
            [np.bincount(labels, weights=data[:, c], minlength=k)[:k] for c in range(3)],
            axis=1,
        )

        centroids = np.empty((k, 3), dtype=np.int64)
        for index in range(k):
            if counts[index] == 0:
                centroids[index] = data[index % len(data)]
            else:
                centroids[index] = np.floor(sums[index] / counts[index] + 0.5)
        return centroids

    def fit(self, pixels: np.ndarray, k: int) -> np.ndarray:
        """Cluster ``pixels`` into ``k`` colors.

        Args:
            pixels: Sample set of shape (N, 3)
            k: Number of clusters, at most the number of distinct colors

        Returns:
            Centroids of shape (k, 3); some may coincide on low-variety input
        """
        if k <= 0 or len(pixels) == 0:
            return np.empty((0, 3), dtype=np.int64)

        centroids = self.initialize_centroids(pixels, k)
        labels = np.zeros(len(pixels), dtype=np.int64)

        for iteration in range(self.max_iterations):
            new_labels, _ = assign_to_nearest(pixels, centroids)
            changed = bool(np.any(new_labels != labels))
            labels = new_labels

            if not changed and iteration > 0:
                logger.debug(f"K-means converged after {iteration + 1} passes")
                break

            new_centroids = self.recompute_centroids(pixels, labels, k)
            diff = (centroids - new_centroids).astype(np.float64)
            total_shift = float(np.sqrt((diff**2).sum(axis=1)).sum())
            centroids = new_centroids

            if total_shift < self.shift_threshold:
                logger.debug(
                    f"K-means settled after {iteration + 1} passes "
                    f"(shift {total_shift:.2f})"
                )
                break

        return centroids
