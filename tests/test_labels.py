from datetime import date

import numpy as np
import pytest

from occupancy_detection.config.settings import ActiveWindow
from occupancy_detection.data.schemas import Channel, Column
from occupancy_detection.data.series import DaySeries
from occupancy_detection.errors import IncompleteWindowError
from occupancy_detection.preprocessing.labels import (
    LabelAggregator,
    label_window,
    round_half_down,
)


@pytest.mark.parametrize("fraction, expected", [
    (0.0, 0),
    (0.49, 0),
    (0.5, 0),
    (0.5001, 1),
    (1.0, 1),
])
def test_round_half_down(fraction, expected):
    assert round_half_down(fraction) == expected


def test_exactly_half_occupied_window_is_absence():
    assert label_window([1, 0, 1, 0]) == 0
    assert label_window([1, 1, 1, 0]) == 1


def test_absent_occupancy_samples_are_ignored():
    assert label_window([1, np.nan, np.nan, 1, 0]) == 1


def test_window_without_occupancy_samples_raises():
    with pytest.raises(IncompleteWindowError):
        label_window([np.nan, np.nan])


def test_aggregate_labels_each_window():
    window = ActiveWindow(0, 2700)
    occupancy = np.concatenate([
        np.ones(900),
        np.tile([1.0, 0.0], 450),
        np.full(900, np.nan),
    ])
    series = DaySeries(date(2012, 7, 1), Channel.OCCUPANCY, occupancy, 0)
    frame = LabelAggregator(window, 900).aggregate(series)
    assert frame[Column.CENTER_SECOND.value].to_list() == [450, 1350, 2250]
    assert frame[Column.LABEL.value].to_list() == [1, 0, None]


def test_aggregate_rejects_power_channel():
    window = ActiveWindow(0, 900)
    series = DaySeries(date(2012, 7, 1), Channel.P1, np.ones(900), 0)
    with pytest.raises(ValueError):
        LabelAggregator(window, 900).aggregate(series)
