"""Shared pytest fixtures for the sketchcluster test suite.

Fixtures:
    pig_records: QuickDraw-style records with varying point counts
    ndjson_file: The records written to a temporary .ndjson file
    line_features: Two groups of points on a line (feature_length=1)
"""

import json

import matplotlib
import numpy as np
import pytest

matplotlib.use("Agg")


@pytest.fixture
def pig_records():
    """Four drawings with 3, 5, 8 and 12 points in total."""
    return [
        {"word": "pig", "drawing": [[[0, 10, 20], [0, 5, 10]]]},
        {"word": "pig", "drawing": [[[0, 50], [0, 50]], [[100, 120, 140], [0, 10, 20]]]},
        {"word": "pig", "drawing": [[list(range(0, 80, 10)), list(range(80, 0, -10))]]},
        {"word": "pig", "drawing": [[list(range(200, 212)), [255] * 12]]},
    ]


@pytest.fixture
def ndjson_file(tmp_path, pig_records):
    path = tmp_path / "pig.ndjson"
    with open(path, "w", encoding="utf-8") as f:
        for record in pig_records:
            f.write(json.dumps(record) + "\n")
    return path


@pytest.fixture
def line_features():
    """Points 0, 1, 2 and 10, 11, 12 on the x axis as (x, y) vectors."""
    xs = np.array([0.0, 1.0, 2.0, 10.0, 11.0, 12.0])
    return np.column_stack([xs, np.zeros_like(xs)])
