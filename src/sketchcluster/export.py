"""Writers for cluster assignments and centroids."""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, Union

import numpy as np

TextSink = Union[str, Path, IO[str]]


@contextmanager
def _open_text(target: TextSink, mode: str) -> Iterator[IO[str]]:
    if isinstance(target, (str, Path)):
        if "w" in mode:
            os.makedirs(os.path.dirname(str(target)) or ".", exist_ok=True)
        with open(target, mode, encoding="utf-8") as f:
            yield f
    else:
        yield target


def write_assignments(sink: TextSink, labels: np.ndarray) -> None:
    """Write one cluster id per line, in drawing order."""
    with _open_text(sink, "w") as f:
        for label in labels:
            f.write(f"{int(label)}\n")


def read_assignments(source: TextSink) -> np.ndarray:
    """Read a file written by :func:`write_assignments`."""
    with _open_text(source, "r") as f:
        return np.array([int(line) for line in f if line.strip()], dtype=np.int64)


def write_centroids(sink: TextSink, centroids: np.ndarray) -> None:
    """Write one centroid per line as comma-separated ``x1, y1, ..., xM, yM``."""
    with _open_text(sink, "w") as f:
        for centroid in centroids:
            f.write(", ".join(repr(float(v)) for v in centroid) + "\n")
