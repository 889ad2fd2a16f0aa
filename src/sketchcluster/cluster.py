"""Command line pipeline: QuickDraw ndjson -> feature vectors -> K-means -> assignment file."""

from __future__ import annotations

import argparse
import logging

from sketchcluster.config import (
    DEFAULT_FEATURE_LENGTH,
    DEFAULT_MAX_ITER,
    DEFAULT_NUM_CLUSTERS,
    DEFAULT_NUM_IMAGES,
    ClusterConfig,
)
from sketchcluster.data.dataset import QuickDrawFeatureDataset
from sketchcluster.errors import SketchClusterError
from sketchcluster.export import write_assignments, write_centroids
from sketchcluster.kmeans import ClusterResult, fit_with_restarts


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Cluster QuickDraw sketches with K-means")
    parser.add_argument("--input", type=str, required=True, help="QuickDraw .ndjson file")
    parser.add_argument("--num-images", type=int, default=DEFAULT_NUM_IMAGES, help="Number of drawings to read (N)")
    parser.add_argument("--feature-length", type=int, default=DEFAULT_FEATURE_LENGTH, help="Points per drawing after resampling (M)")
    parser.add_argument("--num-clusters", type=int, default=DEFAULT_NUM_CLUSTERS, help="Number of clusters (K)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for centroid initialization")
    parser.add_argument("--max-iter", type=int, default=DEFAULT_MAX_ITER, help="Iteration cap")
    parser.add_argument("--tolerance", type=float, default=None,
                        help="Stop when no centroid moves further than this (default: exact equality)")
    parser.add_argument("--restarts", type=int, default=0, help="Re-initializations allowed when a cluster ends up empty")
    parser.add_argument("--cache-dir", type=str, default=None, help="Directory for cached feature matrices")
    parser.add_argument("--no-cache", action="store_true", help="Always recompute features")
    parser.add_argument("--output", type=str, default="assignments.txt", help="Cluster id per drawing, one per line")
    parser.add_argument("--means-output", type=str, default=None, help="Write centroids, one per line")
    parser.add_argument("--plot", type=str, default=None, help="Save a centroid preview image")
    parser.add_argument("--verbose", action="store_true", help="Log every iteration")
    return parser


def run(args: argparse.Namespace) -> ClusterResult:
    config = ClusterConfig(
        num_images=args.num_images,
        feature_length=args.feature_length,
        num_clusters=args.num_clusters,
        seed=args.seed,
        max_iter=args.max_iter,
        tolerance=args.tolerance,
    )

    dataset = QuickDrawFeatureDataset(
        args.input,
        num_images=config.num_images,
        feature_length=config.feature_length,
        cache_dir=args.cache_dir,
        use_cache=not args.no_cache,
    )
    print(f"Dataset: {len(dataset)} drawings, {config.vector_size} values each")

    result = fit_with_restarts(dataset.features, config, restarts=args.restarts)
    dataset.set_cluster_ids(result.labels)

    status = "converged" if result.converged else "stopped at iteration cap"
    print(f"K-means {status} after {result.iterations} iterations")
    for cluster_id, size in result.cluster_sizes().items():
        print(f"  cluster {cluster_id:3d}: {size}")

    write_assignments(args.output, result.labels)
    print(f"Saved assignments to {args.output}")

    if args.means_output:
        write_centroids(args.means_output, result.centroids)
        print(f"Saved centroids to {args.means_output}")

    if args.plot:
        from sketchcluster.visualize import plot_centroids

        plot_centroids(result.centroids, args.plot, title=f"{len(result.centroids)} cluster means")
        print(f"Saved centroid preview to {args.plot}")

    return result


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        run(args)
    except (SketchClusterError, FileNotFoundError) as exc:
        parser.exit(1, f"error: {exc}\n")


if __name__ == "__main__":
    main()
