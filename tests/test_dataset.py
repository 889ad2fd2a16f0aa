import json

import numpy as np
import pytest
import torch

from sketchcluster.data import dataset as dataset_module
from sketchcluster.data.dataset import QuickDrawFeatureDataset, StrokeRecords, extract_features
from sketchcluster.errors import ConfigurationError, InvalidStrokeData


def test_stroke_records_random_access(ndjson_file, pig_records):
    records = StrokeRecords(ndjson_file)
    assert len(records) == 4
    assert records.get_strokes(1) == pig_records[1]["drawing"]
    assert records.get_record(3)["word"] == "pig"


def test_stroke_records_limit_and_blank_lines(tmp_path):
    path = tmp_path / "sparse.ndjson"
    lines = [json.dumps({"drawing": [[[i, i + 1], [0, 0]]]}) for i in range(5)]
    path.write_text(lines[0] + "\n\n" + "\n".join(lines[1:]) + "\n", encoding="utf-8")

    assert len(StrokeRecords(path)) == 5
    limited = StrokeRecords(path, limit=3)
    assert len(limited) == 3
    assert limited.get_strokes(1) == [[[1, 2], [0, 0]]]


def test_stroke_records_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        StrokeRecords(tmp_path / "missing.ndjson")


def test_extract_features_reports_record_index(tmp_path):
    path = tmp_path / "bad.ndjson"
    path.write_text(
        json.dumps({"drawing": [[[0, 1, 2], [0, 1, 2]]]}) + "\n"
        + json.dumps({"drawing": [[[7], [7]]]}) + "\n",
        encoding="utf-8",
    )
    with pytest.raises(InvalidStrokeData) as excinfo:
        extract_features(StrokeRecords(path), feature_length=5)
    assert excinfo.value.record_index == 1
    assert "record 1" in str(excinfo.value)


def test_dataset_features(ndjson_file, tmp_path):
    ds = QuickDrawFeatureDataset(ndjson_file, num_images=10, feature_length=5, cache_dir=tmp_path / "cache")
    assert len(ds) == 4
    assert ds.features.shape == (4, 10)
    np.testing.assert_array_equal(ds.features[1], [0, 0, 50, 50, 100, 0, 120, 10, 140, 20])
    np.testing.assert_allclose(ds.features[0], [0, 0, 0, 0, 5, 2.5, 10, 5, 15, 7.5])


def test_dataset_respects_num_images(ndjson_file, tmp_path):
    ds = QuickDrawFeatureDataset(ndjson_file, num_images=2, feature_length=5, cache_dir=tmp_path)
    assert len(ds) == 2


def test_dataset_uses_cache(ndjson_file, tmp_path, monkeypatch):
    cache_dir = tmp_path / "cache"
    first = QuickDrawFeatureDataset(ndjson_file, num_images=4, feature_length=6, cache_dir=cache_dir)
    assert len(list(cache_dir.glob("pig_*_n4_m6_features.npy"))) == 1

    def fail(*args, **kwargs):
        raise AssertionError("features were recomputed")

    monkeypatch.setattr(dataset_module, "extract_features", fail)
    second = QuickDrawFeatureDataset(ndjson_file, num_images=4, feature_length=6, cache_dir=cache_dir)
    np.testing.assert_array_equal(first.features, second.features)


def _write_drawings(path, drawings):
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for drawing in drawings:
            f.write(json.dumps({"drawing": drawing}) + "\n")


def test_cache_separates_files_with_same_name(tmp_path):
    cache_dir = tmp_path / "cache"
    a = tmp_path / "a" / "pig.ndjson"
    b = tmp_path / "b" / "pig.ndjson"
    _write_drawings(a, [[[[0, 1], [0, 1]]]])
    _write_drawings(b, [[[[100, 101], [100, 101]]]])

    ds_a = QuickDrawFeatureDataset(a, num_images=1, feature_length=2, cache_dir=cache_dir)
    ds_b = QuickDrawFeatureDataset(b, num_images=1, feature_length=2, cache_dir=cache_dir)

    np.testing.assert_array_equal(ds_a.features, [[0, 0, 1, 1]])
    np.testing.assert_array_equal(ds_b.features, [[100, 100, 101, 101]])
    assert len(list(cache_dir.glob("pig_*.npy"))) == 2


def test_cache_invalidated_when_file_changes(tmp_path):
    cache_dir = tmp_path / "cache"
    path = tmp_path / "pig.ndjson"
    _write_drawings(path, [[[[0, 1], [0, 1]]]])
    first = QuickDrawFeatureDataset(path, num_images=1, feature_length=2, cache_dir=cache_dir)

    _write_drawings(path, [[[[10, 20, 30], [10, 20, 30]]]])
    second = QuickDrawFeatureDataset(path, num_images=1, feature_length=2, cache_dir=cache_dir)

    np.testing.assert_array_equal(first.features, [[0, 0, 1, 1]])
    np.testing.assert_array_equal(second.features, [[10, 10, 20, 20]])


def test_dataset_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        QuickDrawFeatureDataset(tmp_path / "missing.ndjson", cache_dir=tmp_path / "cache")


def test_dataset_without_cache(ndjson_file, tmp_path):
    cache_dir = tmp_path / "cache"
    QuickDrawFeatureDataset(ndjson_file, num_images=4, feature_length=6, cache_dir=cache_dir, use_cache=False)
    assert not cache_dir.exists()


def test_dataset_items(ndjson_file, tmp_path):
    ds = QuickDrawFeatureDataset(ndjson_file, num_images=4, feature_length=5, cache_dir=tmp_path)
    item = ds[2]
    assert item["index"] == 2
    assert item["features"].dtype == torch.float32
    assert item["features"].shape == (10,)
    assert "cluster" not in item

    ds.set_cluster_ids(np.array([1, 2, 2, 1]))
    assert ds[2]["cluster"].item() == 2
    assert ds.stats()["samples_per_cluster"] == {1: 2, 2: 2}


def test_dataset_rejects_wrong_cluster_count(ndjson_file, tmp_path):
    ds = QuickDrawFeatureDataset(ndjson_file, num_images=4, feature_length=5, cache_dir=tmp_path)
    with pytest.raises(ValueError):
        ds.set_cluster_ids(np.array([1, 2]))


def test_dataset_stats(ndjson_file, tmp_path):
    ds = QuickDrawFeatureDataset(ndjson_file, num_images=4, feature_length=5, cache_dir=tmp_path)
    stats = ds.stats()
    assert stats["total_samples"] == 4
    assert stats["feature_length"] == 5
    assert stats["value_range"] == [0.0, 255.0]
    assert "samples_per_cluster" not in stats


def test_dataset_rejects_bad_configuration(ndjson_file):
    with pytest.raises(ConfigurationError):
        QuickDrawFeatureDataset(ndjson_file, num_images=0)
    with pytest.raises(ConfigurationError):
        QuickDrawFeatureDataset(ndjson_file, feature_length=0)


def test_dataset_empty_file(tmp_path):
    path = tmp_path / "empty.ndjson"
    path.write_text("", encoding="utf-8")
    with pytest.raises(ValueError, match="No drawings"):
        QuickDrawFeatureDataset(path, cache_dir=tmp_path / "cache")
