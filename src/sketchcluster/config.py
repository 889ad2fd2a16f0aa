"""Run configuration for feature extraction and clustering."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from .errors import ConfigurationError

if TYPE_CHECKING:
    from .kmeans import ConvergencePolicy

DEFAULT_NUM_IMAGES = 1000
DEFAULT_FEATURE_LENGTH = 70
DEFAULT_NUM_CLUSTERS = 7
DEFAULT_MAX_ITER = 300


@dataclass(frozen=True)
class ClusterConfig:
    """Parameters shared by the resampler and the clusterer.

    Attributes:
        num_images: Number of records to read (N).
        feature_length: Points per image after resampling (M); vectors have 2*M values.
        num_clusters: Number of clusters (K).
        seed: Seed for centroid initialization. ``None`` draws fresh entropy.
        max_iter: Upper bound on assign/recompute passes.
        tolerance: ``None`` stops on exact centroid equality; otherwise stops
            when no centroid moves further than this distance.
    """

    num_images: int = DEFAULT_NUM_IMAGES
    feature_length: int = DEFAULT_FEATURE_LENGTH
    num_clusters: int = DEFAULT_NUM_CLUSTERS
    seed: int | None = None
    max_iter: int = DEFAULT_MAX_ITER
    tolerance: float | None = None

    def __post_init__(self) -> None:
        for name in ("num_images", "feature_length", "num_clusters", "max_iter"):
            value = getattr(self, name)
            if value < 1:
                raise ConfigurationError(f"{name} must be >= 1, got {value}")
        if self.tolerance is not None and self.tolerance < 0:
            raise ConfigurationError(f"tolerance must be >= 0, got {self.tolerance}")

    @property
    def vector_size(self) -> int:
        return 2 * self.feature_length

    def convergence(self) -> ConvergencePolicy:
        """Build the convergence policy matching ``tolerance``."""
        from .kmeans import ExactConvergence, ToleranceConvergence

        if self.tolerance is None:
            return ExactConvergence()
        return ToleranceConvergence(self.tolerance)

    def to_dict(self) -> dict:
        return asdict(self)
