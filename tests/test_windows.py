from datetime import date

import numpy as np
import pytest

from occupancy_detection.config.settings import ActiveWindow
from occupancy_detection.data.schemas import Channel, Column
from occupancy_detection.data.series import DaySeries
from occupancy_detection.errors import ConfigurationError, IncompleteWindowError
from occupancy_detection.preprocessing.windows import (
    WindowedFeatureExtractor,
    block_mean,
    block_sad,
    partition,
    window_mean,
    window_sad,
)

NA = np.nan


def naive_sad(row):
    """Reference: walk the row and pair each present sample with the last one."""
    total, previous = 0.0, None
    for x in row:
        if np.isnan(x):
            continue
        if previous is not None:
            total += abs(x - previous)
        previous = x
    return total


@pytest.mark.parametrize("length", [60, 300, 900, 3600])
def test_partition_covers_active_window_exactly(length):
    window = ActiveWindow(6 * 3600, 22 * 3600)
    windows = partition(window, length)
    assert len(windows) == window.length // length
    assert windows[0].start_second == window.start_second
    assert windows[-1].end_second == window.end_second
    for a, b in zip(windows, windows[1:]):
        assert a.end_second == b.start_second


def test_partition_requires_divisible_length():
    with pytest.raises(ConfigurationError):
        partition(ActiveWindow(0, 1000), 300)


def test_window_center_is_canonical_timestamp():
    (first, *_) = partition(ActiveWindow(21600, 22500), 900)
    assert first.center_second == 21600 + 450


def test_gap_does_not_count_as_transition():
    values = [10, 10, NA, 10]
    assert window_mean(values) == 10
    assert window_sad(values) == 0


def test_sad_skips_absent_samples():
    assert window_sad([1, NA, NA, 4, 2]) == 3 + 2


def test_single_present_sample_has_zero_sad():
    values = [NA, 7, NA]
    assert window_mean(values) == 7
    assert window_sad(values) == 0


def test_all_absent_window_mean_undefined():
    with pytest.raises(IncompleteWindowError):
        window_mean([NA, NA])
    assert window_sad([NA, NA]) == 0


def test_vectorized_sad_matches_reference():
    rng = np.random.default_rng(7)
    block = rng.normal(100.0, 20.0, size=(40, 90))
    block[rng.random(block.shape) < 0.2] = NA
    block[3] = NA
    block[5, :-1] = NA
    expected = [naive_sad(row) for row in block]
    np.testing.assert_allclose(block_sad(block), expected)


def test_sad_without_gaps_sums_all_consecutive_pairs():
    rng = np.random.default_rng(3)
    block = rng.normal(0.0, 1.0, size=(5, 900))
    expected = np.abs(np.diff(block, axis=1)).sum(axis=1)
    np.testing.assert_allclose(block_sad(block), expected)


def test_block_mean_is_nan_for_empty_rows():
    block = np.array([[1.0, NA, 3.0], [NA, NA, NA]])
    means = block_mean(block)
    assert means[0] == 2.0
    assert np.isnan(means[1])


def make_series(channel, samples, window):
    return DaySeries(date(2012, 7, 1), channel, samples, window.start_second)


def test_extract_returns_one_row_per_window():
    window = ActiveWindow(0, 3600)
    extractor = WindowedFeatureExtractor(window, 900)
    samples = np.repeat([1.0, 2.0, 3.0, 4.0], 900)
    frame = extractor.extract(make_series(Channel.P1, samples, window))
    assert frame.height == 4
    assert frame[Column.CENTER_SECOND.value].to_list() == [450, 1350, 2250, 3150]
    assert frame["mean_p1"].to_list() == [1.0, 2.0, 3.0, 4.0]
    assert frame["sad_p1"].to_list() == [0.0, 0.0, 0.0, 0.0]


def test_extract_marks_all_absent_window_as_null():
    window = ActiveWindow(0, 1800)
    extractor = WindowedFeatureExtractor(window, 900)
    samples = np.ones(1800)
    samples[:900] = NA
    frame = extractor.extract(make_series(Channel.P2, samples, window))
    assert frame["mean_p2"].to_list() == [None, 1.0]


def test_extract_rejects_untrimmed_series():
    extractor = WindowedFeatureExtractor(ActiveWindow(0, 1800), 900)
    series = DaySeries(date(2012, 7, 1), Channel.P1, np.ones(3600))
    with pytest.raises(ValueError):
        extractor.extract(series)
