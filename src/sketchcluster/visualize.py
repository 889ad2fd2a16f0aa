"""Plot cluster centroids and cluster members as drawings."""

from __future__ import annotations

import math
import os

import matplotlib.pyplot as plt
import numpy as np


def _as_points(vector: np.ndarray) -> np.ndarray:
    """``(x1, y1, ..., xM, yM)`` -> ``(M, 2)``."""
    return np.asarray(vector, dtype=np.float64).reshape(-1, 2)


def _draw(ax, vector: np.ndarray) -> None:
    pts = _as_points(vector)
    ax.plot(pts[:, 0], pts[:, 1], color="black", linewidth=0.8)
    ax.set_aspect("equal")
    ax.invert_yaxis()  # QuickDraw has y increasing downward
    ax.set_xticks([])
    ax.set_yticks([])


def plot_centroids(centroids: np.ndarray, path: str, title: str | None = None) -> None:
    """Render each centroid as a polyline in a grid and save to *path*.

    Args:
        centroids: ``(K, 2 * M)`` array; row k-1 is cluster k.
        path: Destination file path for the saved figure.
        title: Optional title for the figure.
    """
    n = len(centroids)
    cols = math.ceil(math.sqrt(n))
    rows = math.ceil(n / cols)
    fig, axes = plt.subplots(rows, cols, figsize=(2 * cols, 2 * rows), squeeze=False)

    for idx in range(rows * cols):
        r, c = divmod(idx, cols)
        ax = axes[r, c]
        if idx >= n:
            ax.axis("off")
            continue
        _draw(ax, centroids[idx])
        ax.set_title(f"cluster {idx + 1}", fontsize=8)

    if title:
        fig.suptitle(title, fontsize=10)
    fig.tight_layout()
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    fig.savefig(path, dpi=150)
    plt.close(fig)


def plot_cluster_samples(
    features: np.ndarray,
    labels: np.ndarray,
    path: str,
    per_cluster: int = 5,
    seed: int = 0,
) -> None:
    """One row per cluster with up to *per_cluster* randomly chosen members."""
    cluster_ids = np.unique(labels)
    rng = np.random.default_rng(seed)
    fig, axes = plt.subplots(
        len(cluster_ids), per_cluster, figsize=(per_cluster * 2, len(cluster_ids) * 2), squeeze=False
    )

    for row, cluster_id in enumerate(cluster_ids):
        indices = np.where(labels == cluster_id)[0]
        chosen = rng.choice(indices, size=min(per_cluster, len(indices)), replace=False)
        for col in range(per_cluster):
            ax = axes[row, col]
            if col >= len(chosen):
                ax.axis("off")
                continue
            _draw(ax, features[chosen[col]])
            if col == 0:
                ax.set_ylabel(f"cluster {cluster_id}", fontsize=10)

    fig.tight_layout()
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
