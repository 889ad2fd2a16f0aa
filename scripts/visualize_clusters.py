#!/usr/bin/env python3
"""Preview a clustering: centroid drawings plus sample members of every cluster."""

import argparse
import sys
from pathlib import Path

import numpy as np

# Allow running from repo root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from sketchcluster.data.dataset import QuickDrawFeatureDataset
from sketchcluster.export import read_assignments
from sketchcluster.visualize import plot_centroids, plot_cluster_samples


def main() -> None:
    parser = argparse.ArgumentParser(description="Visualize a sketch clustering.")
    parser.add_argument("--input", type=str, required=True, help="QuickDraw .ndjson file used for clustering")
    parser.add_argument("--assignments", type=str, required=True, help="Assignment file written by sketchcluster")
    parser.add_argument("--num-images", type=int, default=1000)
    parser.add_argument("--feature-length", type=int, default=70)
    parser.add_argument("--per-cluster", type=int, default=5)
    parser.add_argument("--output-dir", type=Path, default=Path(__file__).resolve().parent.parent / "outputs")
    args = parser.parse_args()

    ds = QuickDrawFeatureDataset(args.input, num_images=args.num_images, feature_length=args.feature_length)
    ds.set_cluster_ids(read_assignments(args.assignments))
    stats = ds.stats()

    print("=== Clustering Statistics ===")
    print(f"Total samples:  {stats['total_samples']}")
    print(f"Feature length: {stats['feature_length']}")
    print(f"Value range:    {stats['value_range']}")
    print()
    for cluster_id, count in stats["samples_per_cluster"].items():
        print(f"  cluster {cluster_id:3d}: {count}")

    # Member means, recomputed from the assignment file
    cluster_ids = sorted(stats["samples_per_cluster"])
    means = np.stack([ds.features[ds.cluster_ids == k].mean(axis=0) for k in cluster_ids])

    args.output_dir.mkdir(parents=True, exist_ok=True)
    means_path = args.output_dir / "cluster_means.png"
    samples_path = args.output_dir / "cluster_samples.png"
    plot_centroids(means, str(means_path), title="Cluster means")
    plot_cluster_samples(ds.features, ds.cluster_ids, str(samples_path), per_cluster=args.per_cluster)
    print(f"\nVisualizations saved to {means_path} and {samples_path}")


if __name__ == "__main__":
    main()
