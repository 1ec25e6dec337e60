# stdlib
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
# thirdpartylib
import numpy as np
import polars as pl
from numpy.typing import NDArray
# projectlib
from occupancy_detection.data.schemas import Column, FEATURES, KEYS
from occupancy_detection.errors import DegenerateFeatureError, IncompleteWindowError
from occupancy_detection.utils.logging import Logger
from occupancy_detection.utils.typing import DegeneratePolicy, Verbosity


@dataclass(frozen=True)
class NormalizationStats:
    """
    Per-feature min-max statistics, computed once and read everywhere.

    ``features`` lists the columns that are scaled and used for
    classification; ``degenerate`` lists columns whose range was zero and
    which are therefore excluded.
    """
    features: Tuple[str, ...]
    minimum: Mapping[str, float]
    maximum: Mapping[str, float]
    degenerate: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "minimum", MappingProxyType(dict(self.minimum)))
        object.__setattr__(self, "maximum", MappingProxyType(dict(self.maximum)))

    @classmethod
    def fit(
            cls,
            frame: pl.DataFrame,
            features: Sequence[str] = FEATURES,
            *,
            on_degenerate: DegeneratePolicy = "drop",
            logger: Optional[Logger] = None,
        ) -> "NormalizationStats":
        """
        Compute column minima and maxima over ``frame``.

        Parameters
        ----------
        frame : pl.DataFrame
            Rows to compute statistics over; must not contain nulls in
            ``features``.
        features : sequence of str, default FEATURES
            Candidate feature columns.
        on_degenerate : {"drop", "raise"}, default "drop"
            ``"raise"`` raises ``DegenerateFeatureError`` when a column
            has ``max == min``; ``"drop"`` excludes such columns and
            reports them through ``logger`` and ``degenerate``.

        Raises
        ------
        DegenerateFeatureError
            With ``on_degenerate="raise"`` for zero-range columns, or in
            either mode when every column is degenerate.
        """
        if frame.is_empty():
            raise IncompleteWindowError(
                "Cannot compute normalization statistics of an empty dataset."
            )
        lows = frame.select([pl.col(f).min() for f in features]).row(0)
        highs = frame.select([pl.col(f).max() for f in features]).row(0)
        minimum: Dict[str, float] = {}
        maximum: Dict[str, float] = {}
        retained: List[str] = []
        degenerate: List[str] = []
        for name, lo, hi in zip(features, lows, highs):
            if hi == lo:
                degenerate.append(name)
                continue
            retained.append(name)
            minimum[name] = float(lo)
            maximum[name] = float(hi)
        if degenerate and (on_degenerate == "raise" or not retained):
            raise DegenerateFeatureError(tuple(degenerate))
        if degenerate and logger is not None:
            logger.warning(
                f"excluding degenerate feature(s) {', '.join(degenerate)} "
                "(max == min across the dataset)"
            )
        return cls(tuple(retained), minimum, maximum, tuple(degenerate))

    def span(self, name: str) -> float:
        return self.maximum[name] - self.minimum[name]

    def transform(self, frame: pl.DataFrame) -> pl.DataFrame:
        """Rescale retained feature columns with ``(x - min) / (max - min)``."""
        return frame.with_columns([
            (pl.col(f) - self.minimum[f]) / self.span(f) for f in self.features
        ])

    def inverse_transform(self, frame: pl.DataFrame) -> pl.DataFrame:
        """Undo ``transform`` with ``x * (max - min) + min``."""
        return frame.with_columns([
            pl.col(f) * self.span(f) + self.minimum[f] for f in self.features
        ])

    def matrix(self, frame: pl.DataFrame) -> NDArray[np.float64]:
        """Scaled feature matrix of ``frame``, columns in ``features`` order."""
        return (
            self.transform(frame)
            .select(self.features)
            .to_numpy()
            .astype(np.float64)
        )


@dataclass(frozen=True)
class Dataset:
    """
    Labeled per-window dataset after complete-case filtering.

    ``frame`` keeps raw (unscaled) features so statistics can be refit
    on a training partition; ``stats`` holds the statistics of the full
    dataset.
    """
    frame: pl.DataFrame
    stats: NormalizationStats
    n_incomplete: int = 0

    def __len__(self) -> int:
        return self.frame.height

    @property
    def features(self) -> Tuple[str, ...]:
        return self.stats.features

    @property
    def X(self) -> NDArray[np.float64]:
        return self.stats.matrix(self.frame)

    @property
    def y(self) -> NDArray[np.int64]:
        return self.frame[Column.LABEL.value].to_numpy().astype(np.int64)

    def normalized_frame(self) -> pl.DataFrame:
        """Keys, datetime, scaled features and label, for inspection."""
        return self.stats.transform(self.frame).select(
            *KEYS, Column.DATETIME, *self.features, Column.LABEL
        )


class DatasetBuilder(object):
    """
    Join window features with window labels into a normalized dataset.

    Rows are matched on ``(day, center_second)``. Any row with a missing
    feature or label is dropped (complete-case filtering), a ``datetime``
    column is attached for traceability and global min-max statistics
    are computed over every surviving row.
    """

    def __init__(
            self,
            *,
            on_degenerate: DegeneratePolicy = "drop",
            verbose: Verbosity = 0,
            logger: Optional[Logger] = None,
        ) -> None:
        self.on_degenerate = on_degenerate
        self.log = (
            logger.child("dataset") if logger is not None
            else Logger(verbose=verbose, name="dataset")
        )

    def join(self, features: pl.DataFrame, labels: pl.DataFrame) -> pl.DataFrame:
        """Full keyed join; keys missing on either side yield nulls."""
        return features.join(
            labels,
            on=list(KEYS),
            how="full",
            coalesce=True,
            validate="1:1",
        )

    def build(self, features: pl.DataFrame, labels: pl.DataFrame) -> Dataset:
        """
        Build the dataset from per-window features and labels.

        Raises
        ------
        IncompleteWindowError
            If no complete row survives filtering.
        DegenerateFeatureError
            See ``NormalizationStats.fit``.
        """
        joined = self.join(features, labels)
        complete = (
            joined
            .drop_nulls(subset=[*FEATURES, Column.LABEL.value])
            .filter(pl.all_horizontal([pl.col(f).is_not_nan() for f in FEATURES]))
        )
        n_incomplete = joined.height - complete.height
        if n_incomplete:
            self.log.warning(
                f"dropped {n_incomplete} of {joined.height} windows with a "
                "missing feature or label"
            )
        if complete.is_empty():
            raise IncompleteWindowError(
                "No complete window survived filtering; the dataset is empty."
            )
        frame = (
            complete
            .with_columns(
                (
                    pl.col(Column.DAY).cast(pl.Datetime("us"))
                    + pl.duration(seconds=pl.col(Column.CENTER_SECOND))
                ).alias(Column.DATETIME.value),
                pl.col(Column.LABEL).cast(pl.Int8),
            )
            .select(*KEYS, Column.DATETIME, *FEATURES, Column.LABEL)
            .sort(list(KEYS))
        )
        stats = NormalizationStats.fit(
            frame,
            FEATURES,
            on_degenerate=self.on_degenerate,
            logger=self.log,
        )
        self.log(
            f"dataset of {frame.height} windows, "
            f"{len(stats.features)} features",
            1,
        )
        return Dataset(frame=frame, stats=stats, n_incomplete=n_incomplete)
