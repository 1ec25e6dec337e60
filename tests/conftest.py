"""Shared fixtures and synthetic source builders."""
from datetime import date, timedelta

import numpy as np
import polars as pl
import pytest

from occupancy_detection.config.constants import SECONDS_PER_DAY
from occupancy_detection.data.schemas import Column, FEATURES, POWER_CHANNELS


def make_occupancy_table(rows):
    """Occupancy table with a 'day' column followed by one column per second."""
    days = list(rows)
    values = np.vstack([np.asarray(rows[d], dtype=np.float64) for d in days])
    columns = [f"s{i}" for i in range(values.shape[1])]
    frame = pl.DataFrame(values, schema=columns, orient="row")
    return frame.insert_column(0, pl.Series(Column.DAY.value, days))


def occupancy_label(day_index):
    """Per-second occupancy for a synthetic day: present mornings and evenings."""
    occ = np.zeros(SECONDS_PER_DAY)
    shift = (day_index % 3) * 900
    occ[7 * 3600 + shift:11 * 3600 + shift] = 1.0
    occ[18 * 3600:22 * 3600] = 1.0
    return occ


def synthetic_sources(n_days=4, seed=0):
    """
    Two seasonal occupancy tables and three phases of power for n_days.

    Occupied seconds draw much more (and noisier) power than absent ones,
    and a few sentinel samples are sprinkled into each phase.
    """
    rng = np.random.default_rng(seed)
    start = date(2012, 7, 1)
    occupancy = {}
    power = {ch: {} for ch in POWER_CHANNELS}
    for i in range(n_days):
        day = start + timedelta(days=i)
        occ = occupancy_label(i)
        occupancy[day.strftime("%d-%b-%Y")] = occ
        for j, channel in enumerate(POWER_CHANNELS):
            base = np.where(occ > 0, 150.0 + 50.0 * j, 20.0 + 5.0 * j)
            noise = rng.normal(0.0, 1.0, SECONDS_PER_DAY) * np.where(occ > 0, 25.0, 2.0)
            samples = base + noise
            samples[rng.integers(0, SECONDS_PER_DAY, 50)] = -1.0
            power[channel][day.isoformat()] = samples
    days = list(occupancy)
    half = len(days) // 2
    summer = make_occupancy_table({d: occupancy[d] for d in days[:half]})
    winter = make_occupancy_table({d: occupancy[d] for d in days[half:]})
    return [summer, winter], power


def feature_frame(n, seed=0, day=date(2012, 7, 1)):
    """Feature frame with random values keyed by consecutive window centers."""
    rng = np.random.default_rng(seed)
    data = {
        Column.DAY.value: [day] * n,
        Column.CENTER_SECOND.value: np.arange(n, dtype=np.int64) * 900 + 450,
    }
    for name in FEATURES:
        data[name] = rng.uniform(0.0, 100.0, n)
    return pl.DataFrame(data)


def label_frame(labels, day=date(2012, 7, 1)):
    labels = list(labels)
    return pl.DataFrame({
        Column.DAY.value: [day] * len(labels),
        Column.CENTER_SECOND.value: np.arange(len(labels), dtype=np.int64) * 900 + 450,
        Column.LABEL.value: pl.Series(labels, dtype=pl.Int8),
    })


@pytest.fixture(scope="session")
def sources():
    return synthetic_sources()


@pytest.fixture
def occupied_and_absent_days():
    """Day A always occupied at 100 W per phase, day B always absent at 5 W."""
    tables = [
        make_occupancy_table({"01-Jul-2012": np.ones(SECONDS_PER_DAY)}),
        make_occupancy_table({"02-Dec-2012": np.zeros(SECONDS_PER_DAY)}),
    ]
    power = {
        channel: {
            "2012-07-01": np.full(SECONDS_PER_DAY, 100.0),
            "2012-12-02": np.full(SECONDS_PER_DAY, 5.0),
        }
        for channel in POWER_CHANNELS
    }
    return tables, power
