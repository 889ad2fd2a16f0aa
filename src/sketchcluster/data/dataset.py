"""QuickDraw ndjson records as fixed-length feature vectors."""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path

import numpy as np
import torch
from torch.utils.data import Dataset

from ..errors import ConfigurationError, InvalidStrokeData
from .processing import strokes_to_features

logger = logging.getLogger(__name__)

_DEFAULT_CACHE_DIR = Path(__file__).resolve().parent.parent.parent.parent / "data" / "processed"


class StrokeRecords:
    """Random access to the drawings of a QuickDraw ``.ndjson`` file.

    Line offsets are indexed once; each record is parsed when requested.
    Blank lines are not records.
    """

    def __init__(self, path: str | Path, limit: int | None = None):
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Raw data not found: {self.path}")

        self._offsets: list[int] = []
        with open(self.path, "rb") as f:
            offset = f.tell()
            for line in iter(f.readline, b""):
                if line.strip():
                    self._offsets.append(offset)
                    if limit is not None and len(self._offsets) >= limit:
                        break
                offset = f.tell()

    def __len__(self) -> int:
        return len(self._offsets)

    def get_record(self, record_index: int) -> dict:
        with open(self.path, "rb") as f:
            f.seek(self._offsets[record_index])
            return json.loads(f.readline().decode("utf-8"))

    def get_strokes(self, record_index: int) -> list[list[list[float]]]:
        """Return the ``drawing`` field of a record: a list of ``[xs, ys]`` strokes."""
        return self.get_record(record_index)["drawing"]


def extract_features(records: StrokeRecords, feature_length: int) -> np.ndarray:
    """Resample every record into an ``(N, 2 * feature_length)`` matrix.

    Invalid drawings are not skipped: the error is re-raised with its record index.
    """
    features = np.empty((len(records), 2 * feature_length), dtype=np.float64)
    for i in range(len(records)):
        try:
            features[i] = strokes_to_features(records.get_strokes(i), feature_length)
        except InvalidStrokeData as exc:
            raise InvalidStrokeData(str(exc), record_index=i) from exc
    return features


class QuickDrawFeatureDataset(Dataset):
    """QuickDraw drawings as flattened ``(x1, y1, ..., xM, yM)`` vectors.

    On first access for a given configuration, processes the raw .ndjson file
    and caches the feature matrix as a .npy file. Subsequent loads use the
    cache directly.
    """

    def __init__(
        self,
        path: str | Path,
        num_images: int = 1000,
        feature_length: int = 70,
        cache_dir: str | Path | None = None,
        use_cache: bool = True,
    ):
        if num_images < 1:
            raise ConfigurationError(f"num_images must be >= 1, got {num_images}")
        if feature_length < 1:
            raise ConfigurationError(f"feature_length must be >= 1, got {feature_length}")

        self.path = Path(path)
        self.cache_dir = Path(cache_dir) if cache_dir else _DEFAULT_CACHE_DIR
        self.num_images = num_images
        self.feature_length = feature_length
        self.use_cache = use_cache

        self.features = self._load_or_process()
        self.cluster_ids: np.ndarray | None = None

    def _source_key(self) -> str:
        """Short digest of the resolved input path, size and mtime."""
        stat = self.path.stat()
        ident = f"{self.path.resolve()}:{stat.st_size}:{stat.st_mtime_ns}"
        return hashlib.sha1(ident.encode("utf-8")).hexdigest()[:12]

    def _cache_path(self) -> Path:
        return self.cache_dir / (
            f"{self.path.stem}_{self._source_key()}"
            f"_n{self.num_images}_m{self.feature_length}_features.npy"
        )

    def _load_or_process(self) -> np.ndarray:
        if not self.path.exists():
            raise FileNotFoundError(f"Raw data not found: {self.path}")
        cache_path = self._cache_path()
        if self.use_cache and cache_path.exists():
            logger.debug("Loading cached features from %s", cache_path)
            return np.load(cache_path)

        records = StrokeRecords(self.path, limit=self.num_images)
        if len(records) == 0:
            raise ValueError(f"No drawings found in {self.path}")
        if len(records) < self.num_images:
            logger.warning(
                "%s has only %d records, %d requested", self.path, len(records), self.num_images
            )
        logger.info("Processing %d drawings from %s...", len(records), self.path)
        features = extract_features(records, self.feature_length)

        if self.use_cache:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            np.save(cache_path, features)
        return features

    def set_cluster_ids(self, cluster_ids: np.ndarray) -> None:
        """Attach a cluster id per drawing, in drawing order."""
        cluster_ids = np.asarray(cluster_ids, dtype=np.int64)
        if cluster_ids.shape != (len(self),):
            raise ValueError(
                f"expected {len(self)} cluster ids, got shape {cluster_ids.shape}"
            )
        self.cluster_ids = cluster_ids

    def __len__(self) -> int:
        return len(self.features)

    def __getitem__(self, idx: int) -> dict:
        result = {
            "features": torch.from_numpy(self.features[idx].astype(np.float32)),
            "index": idx,
        }
        if self.cluster_ids is not None:
            result["cluster"] = torch.tensor(self.cluster_ids[idx], dtype=torch.long)
        return result

    def stats(self) -> dict:
        """Return basic dataset statistics."""
        result = {
            "total_samples": len(self),
            "feature_length": self.feature_length,
            "value_range": [float(self.features.min()), float(self.features.max())],
        }
        if self.cluster_ids is not None:
            unique, counts = np.unique(self.cluster_ids, return_counts=True)
            result["samples_per_cluster"] = {int(u): int(c) for u, c in zip(unique, counts)}
        return result
