# stdlib
from typing import Iterable, List, Optional, Sequence, Union
# thirdpartylib
import numpy as np
import polars as pl
from numpy.typing import NDArray
# projectlib
from occupancy_detection.config.constants import WINDOW_LENGTH_SECONDS
from occupancy_detection.config.settings import ActiveWindow
from occupancy_detection.data.schemas import Channel, Column
from occupancy_detection.data.series import DaySeries
from occupancy_detection.preprocessing.alignment import AlignedDay
from occupancy_detection.preprocessing.windows import (
    WindowedFeatureExtractor,
    block_mean,
    window_mean,
)
from occupancy_detection.utils.logging import Logger
from occupancy_detection.utils.typing import Verbosity

def round_half_down(fraction: float) -> int:
    """Nearest integer of an occupied fraction; exactly 0.5 gives 0."""
    return 1 if fraction > 0.5 else 0

def label_window(values: Union[Sequence[float], NDArray[np.float64]]) -> int:
    """
    Binary occupancy label of one window of occupancy samples.

    Raises
    ------
    IncompleteWindowError
        If no occupancy sample is present in the window.
    """
    return round_half_down(window_mean(values))


class LabelAggregator(object):
    """
    Reduce fine-grained occupancy samples to one label per window.

    The label is the occupied fraction of the present samples rounded to
    the nearest integer, with ties (exactly half occupied) resolved to
    absence. Windows without any present sample get a null label and are
    removed by complete-case filtering.
    """

    def __init__(
            self,
            active_window: Optional[ActiveWindow] = None,
            window_length: int = WINDOW_LENGTH_SECONDS,
            *,
            verbose: Verbosity = 0,
            logger: Optional[Logger] = None,
        ) -> None:
        # Shares the window partition with the feature extractor
        self.windows = WindowedFeatureExtractor(
            active_window, window_length, logger=logger, verbose=verbose
        )
        self.log = (
            logger.child("labels") if logger is not None
            else Logger(verbose=verbose, name="labels")
        )

    def aggregate(self, series: DaySeries) -> pl.DataFrame:
        """
        Window labels of one occupancy series.

        Returns
        -------
        pl.DataFrame
            Columns ``day``, ``center_second`` and ``label`` (Int8, null
            when undefined), one row per window in order.
        """
        if series.channel is not Channel.OCCUPANCY:
            msg = (
                f"Labels are derived from occupancy, got "
                f"{series.channel.value}."
            )
            raise ValueError(msg)
        fractions = block_mean(self.windows.blocks(series))
        labels = [
            None if np.isnan(f) else round_half_down(f) for f in fractions
        ]
        return pl.DataFrame({
            Column.DAY.value: [series.day] * len(labels),
            Column.CENTER_SECOND.value: self.windows.centers,
            Column.LABEL.value: pl.Series(labels, dtype=pl.Int8),
        })

    def aggregate_all(self, days: Iterable[AlignedDay]) -> pl.DataFrame:
        """Labels of every aligned day, concatenated in day order."""
        frames: List[pl.DataFrame] = [self.aggregate(d.occupancy) for d in days]
        if not frames:
            return pl.DataFrame(schema={
                Column.DAY.value: pl.Date,
                Column.CENTER_SECOND.value: pl.Int64,
                Column.LABEL.value: pl.Int8,
            })
        labels = pl.concat(frames, how="vertical")
        self.log(
            "label distribution: "
            f"{labels[Column.LABEL.value].value_counts(sort=True).rows()}",
            2,
        )
        return labels
