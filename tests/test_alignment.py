from datetime import date

import numpy as np
import pytest

from conftest import make_occupancy_table
from occupancy_detection.config.constants import SECONDS_PER_DAY
from occupancy_detection.config.settings import ActiveWindow
from occupancy_detection.data.schemas import Channel, POWER_CHANNELS
from occupancy_detection.errors import AlignmentError
from occupancy_detection.preprocessing.alignment import TimeSeriesAligner


def full_power(days, value=50.0):
    return {
        ch: {d: np.full(SECONDS_PER_DAY, value) for d in days}
        for ch in POWER_CHANNELS
    }


def test_merge_rejects_day_present_in_both_seasons():
    occ = np.zeros(SECONDS_PER_DAY)
    summer = make_occupancy_table({"01-Jul-2012": occ})
    winter = make_occupancy_table({"'01-Jul-2012'": occ})
    with pytest.raises(AlignmentError):
        TimeSeriesAligner().merge_occupancy([summer, winter])


def test_align_restricts_power_to_occupancy_days():
    occ = np.zeros(SECONDS_PER_DAY)
    tables = [make_occupancy_table({"01-Jul-2012": occ, "02-Jul-2012": occ})]
    power = full_power(["2012-07-01", "2012-07-02", "2012-07-03"])
    days = TimeSeriesAligner().align(tables, power)
    assert [d.day for d in days] == [date(2012, 7, 1), date(2012, 7, 2)]


def test_day_missing_from_one_phase_is_dropped_with_warning(capsys):
    occ = np.zeros(SECONDS_PER_DAY)
    tables = [make_occupancy_table({"01-Jul-2012": occ, "02-Jul-2012": occ})]
    power = full_power(["2012-07-01", "2012-07-02"])
    del power[Channel.P2]["2012-07-02"]
    days = TimeSeriesAligner().align(tables, power)
    assert [d.day for d in days] == [date(2012, 7, 1)]
    out = capsys.readouterr().out
    assert "WARNING" in out
    assert "2012-07-02" in out


def test_power_day_with_wrong_length_is_dropped():
    occ = np.zeros(SECONDS_PER_DAY)
    tables = [make_occupancy_table({"01-Jul-2012": occ})]
    power = full_power(["2012-07-01"])
    power[Channel.P3]["2012-07-01"] = np.zeros(SECONDS_PER_DAY - 1)
    assert TimeSeriesAligner().align(tables, power) == ()


def test_missing_phase_source_raises():
    tables = [make_occupancy_table({"01-Jul-2012": np.zeros(SECONDS_PER_DAY)})]
    power = full_power(["2012-07-01"])
    del power[Channel.P1]
    with pytest.raises(AlignmentError):
        TimeSeriesAligner().align(tables, power)


def test_sentinel_replaced_on_power_only():
    occ = np.zeros(SECONDS_PER_DAY)
    occ[6 * 3600] = -1.0
    tables = [make_occupancy_table({"01-Jul-2012": occ})]
    power = full_power(["2012-07-01"])
    power[Channel.P1]["2012-07-01"][6 * 3600] = -1.0
    (day,) = TimeSeriesAligner().align(tables, power)
    assert np.isnan(day.power[Channel.P1].samples[0])
    assert day.occupancy.samples[0] == -1.0


def test_all_channels_trimmed_to_same_half_open_window():
    window = ActiveWindow(6 * 3600, 22 * 3600)
    occ = np.arange(SECONDS_PER_DAY, dtype=np.float64)
    tables = [make_occupancy_table({"01-Jul-2012": occ})]
    power = {
        ch: {"2012-07-01": np.arange(SECONDS_PER_DAY, dtype=np.float64)}
        for ch in POWER_CHANNELS
    }
    (day,) = TimeSeriesAligner(window).align(tables, power)
    for series in day.channels():
        assert len(series) == window.length
        assert series.start_second == window.start_second
        # First sample is the start second, last is end - 1
        assert series.samples[0] == window.start_second
        assert series.samples[-1] == window.end_second - 1


def test_aligned_day_power_mapping_is_read_only():
    tables = [make_occupancy_table({"01-Jul-2012": np.zeros(SECONDS_PER_DAY)})]
    (day,) = TimeSeriesAligner().align(tables, full_power(["2012-07-01"]))
    with pytest.raises(TypeError):
        day.power[Channel.P1] = day.power[Channel.P2]
