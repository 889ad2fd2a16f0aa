"""Exceptions raised by the resampling and clustering stages."""

from __future__ import annotations

import numpy as np


class SketchClusterError(ValueError):
    """Base class for all sketchcluster errors."""


class ConfigurationError(SketchClusterError):
    """A configuration value is out of range (e.g. ``feature_length < 1``)."""


class InvalidStrokeData(SketchClusterError):
    """A stroke set cannot be turned into a feature vector.

    ``record_index`` is filled in by readers that know which input record
    the strokes came from.
    """

    def __init__(self, message: str, record_index: int | None = None) -> None:
        self.record_index = record_index
        if record_index is not None:
            message = f"record {record_index}: {message}"
        super().__init__(message)


class EmptyClusterResult(SketchClusterError):
    """A recomputation pass left one or more clusters without members.

    The centroids of empty clusters are NaN. The partial state is kept so
    callers can inspect it or restart with a different seed.
    """

    def __init__(
        self,
        empty_clusters: list[int],
        labels: np.ndarray,
        centroids: np.ndarray,
        iteration: int,
    ) -> None:
        self.empty_clusters = list(empty_clusters)
        self.labels = labels
        self.centroids = centroids
        self.iteration = iteration
        super().__init__(
            f"clusters {self.empty_clusters} have no members after iteration {iteration}"
        )
