from datetime import datetime

import numpy as np
import polars as pl
import pytest

from conftest import feature_frame, label_frame
from occupancy_detection.data.schemas import Column, FEATURES
from occupancy_detection.errors import DegenerateFeatureError, IncompleteWindowError
from occupancy_detection.preprocessing.dataset import DatasetBuilder, NormalizationStats


def test_labels_joined_by_key_not_position():
    features = feature_frame(6)
    labels = label_frame([0, 1, 0, 1, 1, 0]).reverse()
    dataset = DatasetBuilder().build(features, labels)
    assert dataset.frame[Column.CENTER_SECOND.value].to_list() == [
        450, 1350, 2250, 3150, 4050, 4950
    ]
    assert dataset.frame[Column.LABEL.value].to_list() == [0, 1, 0, 1, 1, 0]


def test_rows_with_missing_feature_or_label_are_dropped():
    features = feature_frame(5).with_columns(
        pl.when(pl.col(Column.CENTER_SECOND.value) == 1350)
        .then(None)
        .otherwise(pl.col("mean_p2"))
        .alias("mean_p2")
    )
    labels = label_frame([1, 0, None, 1, 0])
    dataset = DatasetBuilder().build(features, labels)
    assert len(dataset) == 3
    assert dataset.n_incomplete == 2
    assert 1350 not in dataset.frame[Column.CENTER_SECOND.value].to_list()
    assert 2250 not in dataset.frame[Column.CENTER_SECOND.value].to_list()


def test_window_without_label_row_is_dropped():
    dataset = DatasetBuilder().build(feature_frame(4), label_frame([1, 0, 1]))
    assert len(dataset) == 3


def test_datetime_is_day_plus_center_second():
    dataset = DatasetBuilder().build(feature_frame(2), label_frame([0, 1]))
    assert dataset.frame[Column.DATETIME.value].to_list() == [
        datetime(2012, 7, 1, 0, 7, 30),
        datetime(2012, 7, 1, 0, 22, 30),
    ]


def test_features_scaled_to_unit_interval():
    dataset = DatasetBuilder().build(feature_frame(20), label_frame([0, 1] * 10))
    X = dataset.X
    assert X.shape == (20, len(FEATURES))
    np.testing.assert_allclose(X.min(axis=0), 0.0)
    np.testing.assert_allclose(X.max(axis=0), 1.0)


def test_normalize_then_denormalize_round_trip():
    frame = feature_frame(30, seed=4)
    stats = NormalizationStats.fit(frame)
    restored = stats.inverse_transform(stats.transform(frame))
    for name in FEATURES:
        np.testing.assert_allclose(restored[name].to_numpy(), frame[name].to_numpy())


def test_stats_are_immutable():
    stats = NormalizationStats.fit(feature_frame(5))
    with pytest.raises(TypeError):
        stats.minimum["mean_p1"] = 0.0


def constant_sad_frame(n):
    return feature_frame(n).with_columns([
        pl.lit(0.0).alias(name) for name in ("sad_p1", "sad_p2", "sad_p3")
    ])


def test_degenerate_feature_raises_when_requested():
    builder = DatasetBuilder(on_degenerate="raise")
    with pytest.raises(DegenerateFeatureError) as info:
        builder.build(constant_sad_frame(4), label_frame([0, 1, 0, 1]))
    assert info.value.features == ("sad_p1", "sad_p2", "sad_p3")


def test_degenerate_feature_reported_and_excluded(capsys):
    dataset = DatasetBuilder().build(constant_sad_frame(4), label_frame([0, 1, 0, 1]))
    assert dataset.stats.degenerate == ("sad_p1", "sad_p2", "sad_p3")
    assert dataset.features == ("mean_p1", "mean_p2", "mean_p3")
    assert dataset.X.shape == (4, 3)
    assert "degenerate" in capsys.readouterr().out


def test_all_features_degenerate_always_raises():
    frame = feature_frame(3).with_columns([pl.lit(1.0).alias(n) for n in FEATURES])
    with pytest.raises(DegenerateFeatureError):
        DatasetBuilder().build(frame, label_frame([0, 1, 0]))


def test_empty_dataset_raises():
    labels = label_frame([None, None])
    with pytest.raises(IncompleteWindowError):
        DatasetBuilder().build(feature_frame(2), labels)


def test_normalized_frame_columns():
    dataset = DatasetBuilder().build(feature_frame(4), label_frame([0, 1, 0, 1]))
    assert dataset.normalized_frame().columns == [
        Column.DAY.value,
        Column.CENTER_SECOND.value,
        Column.DATETIME.value,
        *FEATURES,
        Column.LABEL.value,
    ]
