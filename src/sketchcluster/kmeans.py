"""K-means clustering of fixed-length sketch feature vectors.

Cluster ids are 1-based throughout: ``labels[i] == k`` means drawing ``i``
belongs to the cluster whose centroid is ``centroids[k - 1]``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

import numpy as np

from .config import ClusterConfig
from .errors import ConfigurationError, EmptyClusterResult

logger = logging.getLogger(__name__)

CENTROID_LOW = 0
CENTROID_HIGH = 256

ConvergencePolicy = Callable[[np.ndarray, np.ndarray], bool]


def init_centroids(num_clusters: int, dim: int, rng: np.random.Generator) -> np.ndarray:
    """Draw ``(num_clusters, dim)`` integer components uniformly from [0, 256) as floats."""
    return rng.integers(CENTROID_LOW, CENTROID_HIGH, size=(num_clusters, dim)).astype(np.float64)


def pairwise_distances(features: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Euclidean distances, shape ``(N, K)``."""
    diff = features[:, None, :] - centroids[None, :, :]
    return np.sqrt(np.sum(diff * diff, axis=2))


def assign_clusters(features: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Label each vector with the id (1..K) of its nearest centroid.

    On equal distances the lower-indexed centroid wins.
    """
    if features.shape[1] != centroids.shape[1]:
        raise ValueError(
            f"feature size {features.shape[1]} does not match centroid size {centroids.shape[1]}"
        )
    # argmin returns the first minimum
    return np.argmin(pairwise_distances(features, centroids), axis=1) + 1


def recompute_centroids(
    features: np.ndarray, labels: np.ndarray, num_clusters: int
) -> tuple[np.ndarray, list[int]]:
    """Mean of the members of each cluster.

    Returns the ``(K, D)`` centroids and the ids of clusters without members.
    Those clusters get NaN centroids.
    """
    centroids = np.empty((num_clusters, features.shape[1]), dtype=np.float64)
    empty = []
    for k in range(1, num_clusters + 1):
        members = features[labels == k]
        logger.debug("Cluster size = %d for cluster %d", len(members), k)
        if len(members) == 0:
            centroids[k - 1] = np.nan
            empty.append(k)
        else:
            centroids[k - 1] = members.sum(axis=0) / len(members)
    return centroids, empty


class ExactConvergence:
    """Converged when every centroid component is exactly unchanged."""

    def __call__(self, previous: np.ndarray, current: np.ndarray) -> bool:
        return bool(np.array_equal(previous, current))

    def __repr__(self) -> str:
        return "ExactConvergence()"


class ToleranceConvergence:
    """Converged when no centroid moved further than ``tol`` (Euclidean)."""

    def __init__(self, tol: float) -> None:
        self.tol = tol

    def __call__(self, previous: np.ndarray, current: np.ndarray) -> bool:
        shift = np.sqrt(np.sum((current - previous) ** 2, axis=1))
        return bool(np.all(shift <= self.tol))

    def __repr__(self) -> str:
        return f"ToleranceConvergence(tol={self.tol})"


@dataclass
class ClusterResult:
    """
    Result of a K-means run.

    Attributes:
        labels: Cluster id (1..K) for each feature vector (shape: N)
        centroids: Cluster centroids (shape: K, D); row k-1 belongs to cluster k
        iterations: Number of recompute passes performed
        converged: False when the run stopped at the iteration cap
    """
    labels: np.ndarray
    centroids: np.ndarray
    iterations: int
    converged: bool

    @property
    def num_clusters(self) -> int:
        return len(self.centroids)

    def cluster_sizes(self) -> dict[int, int]:
        """Member count per cluster id, including empty clusters."""
        counts = np.bincount(self.labels, minlength=self.num_clusters + 1)
        return {k: int(counts[k]) for k in range(1, self.num_clusters + 1)}

    def members(self, cluster_id: int) -> np.ndarray:
        """Indices of the vectors assigned to ``cluster_id``."""
        return np.where(self.labels == cluster_id)[0]

    def inertia(self, features: np.ndarray) -> float:
        """Sum of squared distances of each vector to its centroid."""
        diff = features - self.centroids[self.labels - 1]
        return float(np.sum(diff * diff))


class KMeans:
    """Lloyd-style K-means with a pluggable stopping rule.

    Usage::

        result = KMeans(ClusterConfig(num_clusters=7, seed=0)).fit(features)
        result.labels     # (N,) ids in 1..7
        result.centroids  # (7, D)
    """

    def __init__(
        self,
        config: ClusterConfig,
        convergence: ConvergencePolicy | None = None,
    ) -> None:
        self.config = config
        self.convergence = convergence if convergence is not None else config.convergence()

    def fit(
        self,
        features: np.ndarray,
        rng: np.random.Generator | None = None,
        initial_centroids: np.ndarray | None = None,
    ) -> ClusterResult:
        """Cluster ``features`` of shape ``(N, 2 * feature_length)``.

        Raises:
            EmptyClusterResult: a cluster lost all of its members.
        """
        features = np.asarray(features, dtype=np.float64)
        if features.ndim != 2 or len(features) == 0:
            raise ValueError(f"expected a non-empty (N, D) array, got shape {features.shape}")
        if features.shape[1] != self.config.vector_size:
            raise ValueError(
                f"expected vectors of size {self.config.vector_size}, got {features.shape[1]}"
            )

        if initial_centroids is not None:
            centroids = np.array(initial_centroids, dtype=np.float64)
        else:
            if rng is None:
                rng = np.random.default_rng(self.config.seed)
            centroids = init_centroids(self.config.num_clusters, features.shape[1], rng)
        if centroids.shape != (self.config.num_clusters, features.shape[1]):
            raise ValueError(f"initial centroids have shape {centroids.shape}")

        labels = assign_clusters(features, centroids)

        for iteration in range(1, self.config.max_iter + 1):
            logger.debug("Iteration # %d", iteration)
            recomputed, empty = recompute_centroids(features, labels, self.config.num_clusters)
            if empty:
                raise EmptyClusterResult(empty, labels, recomputed, iteration)

            if self.convergence(centroids, recomputed):
                logger.info("Converged after %d iterations", iteration)
                return ClusterResult(labels, recomputed, iteration, converged=True)

            labels = assign_clusters(features, recomputed)
            centroids = recomputed

        logger.warning(
            "Stopped at max_iter=%d without convergence (%r)",
            self.config.max_iter,
            self.convergence,
        )
        return ClusterResult(labels, centroids, self.config.max_iter, converged=False)


def fit_with_restarts(
    features: np.ndarray,
    config: ClusterConfig,
    restarts: int = 1,
    convergence: ConvergencePolicy | None = None,
) -> ClusterResult:
    """Run K-means, re-initializing up to ``restarts`` more times on empty clusters.

    All attempts draw from one generator seeded with ``config.seed``, so the
    first attempt matches ``KMeans(config).fit(features)``.
    """
    if restarts < 0:
        raise ConfigurationError(f"restarts must be >= 0, got {restarts}")
    rng = np.random.default_rng(config.seed)
    kmeans = KMeans(config, convergence=convergence)
    last_error = None
    for attempt in range(restarts + 1):
        try:
            return kmeans.fit(features, rng=rng)
        except EmptyClusterResult as exc:
            last_error = exc
            logger.warning("Attempt %d: %s", attempt + 1, exc)
    raise last_error
