# stdlib
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union, Sequence
# thirdpartylib
import numpy as np
import polars as pl
from numpy.typing import NDArray
# projectlib
from occupancy_detection.config.constants import WINDOW_LENGTH_SECONDS
from occupancy_detection.config.settings import ActiveWindow
from occupancy_detection.data.schemas import (
    Column,
    Statistic,
    POWER_CHANNELS,
    KEYS,
    feature_name,
)
from occupancy_detection.data.series import DaySeries
from occupancy_detection.errors import ConfigurationError, IncompleteWindowError
from occupancy_detection.preprocessing.alignment import AlignedDay
from occupancy_detection.utils.logging import Logger
from occupancy_detection.utils.typing import Verbosity


@dataclass(frozen=True)
class Window:
    """A span ``[start_second, start_second + length)`` of second-of-day."""
    start_second: int
    length: int

    @property
    def end_second(self) -> int:
        return self.start_second + self.length

    @property
    def center_second(self) -> int:
        """Canonical timestamp of the window (lower middle second)."""
        return self.start_second + self.length // 2


def partition(
        active_window: ActiveWindow,
        length: int = WINDOW_LENGTH_SECONDS,
    ) -> Tuple[Window, ...]:
    """
    Split the active window into consecutive non-overlapping windows.

    Raises
    ------
    ConfigurationError
        If ``length`` is not positive or does not divide the active
        window length exactly.
    """
    if length <= 0 or active_window.length % length:
        msg = (
            f"Window length {length}s does not evenly partition the "
            f"{active_window.length}s active window."
        )
        raise ConfigurationError(msg)
    return tuple(
        Window(start, length)
        for start in range(
            active_window.start_second, active_window.end_second, length
        )
    )


def window_mean(values: Union[Sequence[float], NDArray[np.float64]]) -> float:
    """
    Arithmetic mean of the present (non-NaN) samples of one window.

    Raises
    ------
    IncompleteWindowError
        If every sample is absent.
    """
    arr = np.asarray(values, dtype=np.float64)
    present = arr[~np.isnan(arr)]
    if present.size == 0:
        raise IncompleteWindowError("Window has no present samples.")
    return float(present.mean())


def window_sad(values: Union[Sequence[float], NDArray[np.float64]]) -> float:
    """
    Sum of absolute differences between consecutive present samples.

    Absent samples are skipped rather than zero-filled, so a gap is not
    counted as a transition. Fewer than two present samples gives 0.
    """
    arr = np.asarray(values, dtype=np.float64)
    present = arr[~np.isnan(arr)]
    if present.size < 2:
        return 0.0
    return float(np.abs(np.diff(present)).sum())


def block_mean(block: NDArray[np.float64]) -> NDArray[np.float64]:
    """Row-wise ``window_mean`` of a ``(n_windows, length)`` block; NaN if undefined."""
    present = ~np.isnan(block)
    counts = present.sum(axis=1)
    sums = np.where(present, block, 0.0).sum(axis=1)
    out = np.full(block.shape[0], np.nan)
    np.divide(sums, counts, out=out, where=counts > 0)
    return out


def block_sad(block: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Row-wise ``window_sad`` of a ``(n_windows, length)`` block.

    Each present sample is paired with the closest present sample before
    it in the same row, found by a running maximum over the indices of
    present samples.
    """
    n, length = block.shape
    present = ~np.isnan(block)
    idx = np.where(present, np.arange(length), -1)
    last = np.maximum.accumulate(idx, axis=1)
    # Index of the previous present sample, -1 when there is none
    prev = np.full((n, length), -1)
    prev[:, 1:] = last[:, :-1]
    paired = present & (prev >= 0)
    prev_vals = np.take_along_axis(block, np.clip(prev, 0, None), axis=1)
    diffs = np.where(paired, np.abs(block - prev_vals), 0.0)
    return diffs.sum(axis=1)


class WindowedFeatureExtractor(object):
    """
    Summarize power series per fixed-length window.

    For each window of the partition and each power phase the extractor
    computes ``mean`` (mean of present samples, null when none are
    present) and ``sad`` (sum of absolute differences between
    consecutive present samples). Output frames are keyed by
    ``(day, center_second)`` so downstream stages join on keys rather
    than row order.
    """

    def __init__(
            self,
            active_window: Optional[ActiveWindow] = None,
            window_length: int = WINDOW_LENGTH_SECONDS,
            *,
            verbose: Verbosity = 0,
            logger: Optional[Logger] = None,
        ) -> None:
        self.active_window = active_window or ActiveWindow()
        self.window_length = window_length
        self.windows = partition(self.active_window, window_length)
        self.log = (
            logger.child("features") if logger is not None
            else Logger(verbose=verbose, name="features")
        )

    @property
    def centers(self) -> NDArray[np.int64]:
        return np.array([w.center_second for w in self.windows], dtype=np.int64)

    def blocks(self, series: DaySeries) -> NDArray[np.float64]:
        """
        Reshape a trimmed series to ``(n_windows, window_length)``.

        Raises
        ------
        ValueError
            If the series does not span exactly the active window.
        """
        if (
            series.start_second != self.active_window.start_second
            or series.end_second != self.active_window.end_second
        ):
            msg = (
                f"{series.channel.value} on {series.day} spans "
                f"[{series.start_second}, {series.end_second}), expected "
                f"[{self.active_window.start_second}, "
                f"{self.active_window.end_second})."
            )
            raise ValueError(msg)
        return series.samples.reshape(len(self.windows), self.window_length)

    def extract(self, series: DaySeries) -> pl.DataFrame:
        """
        Per-window ``mean`` and ``sad`` of one channel on one day.

        Returns
        -------
        pl.DataFrame
            Columns ``day``, ``center_second``, ``mean_<channel>`` and
            ``sad_<channel>``, one row per window in order.
        """
        block = self.blocks(series)
        mean_col = feature_name(Statistic.MEAN, series.channel)
        sad_col = feature_name(Statistic.SAD, series.channel)
        return pl.DataFrame({
            Column.DAY.value: [series.day] * len(self.windows),
            Column.CENTER_SECOND.value: self.centers,
            mean_col: block_mean(block),
            sad_col: block_sad(block),
        }).with_columns(
            # Undefined means become nulls so complete-case filtering
            # treats them uniformly
            pl.col(mean_col).fill_nan(None),
        )

    def extract_day(self, day: AlignedDay) -> pl.DataFrame:
        """Six feature columns of one day, joined on ``(day, center_second)``."""
        frames = [self.extract(day.power[ch]) for ch in POWER_CHANNELS]
        out = frames[0]
        for frame in frames[1:]:
            out = out.join(frame, on=list(KEYS), how="inner", validate="1:1")
        return out.sort(list(KEYS))

    def extract_all(self, days: Iterable[AlignedDay]) -> pl.DataFrame:
        """Feature frames of every aligned day, concatenated in day order."""
        frames: List[pl.DataFrame] = [self.extract_day(d) for d in days]
        self.log(
            f"extracted {len(self.windows)} windows of "
            f"{self.window_length}s for {len(frames)} days",
            1,
        )
        if not frames:
            return self.empty_frame()
        return pl.concat(frames, how="vertical")

    def empty_frame(self) -> pl.DataFrame:
        schema = {
            Column.DAY.value: pl.Date,
            Column.CENTER_SECOND.value: pl.Int64,
        }
        for stat in Statistic:
            for ch in POWER_CHANNELS:
                schema[feature_name(stat, ch)] = pl.Float64
        return pl.DataFrame(schema=schema)
