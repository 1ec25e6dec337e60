# stdlib
from dataclasses import dataclass, field
from typing import Tuple
# projectlib
from occupancy_detection.config.constants import (
    SECONDS_PER_DAY,
    ACTIVE_WINDOW_START,
    ACTIVE_WINDOW_END,
    WINDOW_LENGTH_SECONDS,
    K_VALUES,
    TRAIN_FRACTION,
    RANDOM_SEED,
    POWER_SENTINEL,
)
from occupancy_detection.errors import ConfigurationError
from occupancy_detection.utils.typing import DegeneratePolicy


@dataclass(frozen=True)
class ActiveWindow:
    """
    Half-open span ``[start_second, end_second)`` of second-of-day.

    The same bounds are applied to occupancy and power series, so a
    trimmed day always holds ``end_second - start_second`` samples for
    every channel.
    """
    start_second: int = ACTIVE_WINDOW_START
    end_second: int = ACTIVE_WINDOW_END

    def __post_init__(self) -> None:
        if not 0 <= self.start_second < self.end_second <= SECONDS_PER_DAY:
            msg = (
                f"Active window [{self.start_second}, {self.end_second}) "
                f"must satisfy 0 <= start < end <= {SECONDS_PER_DAY}."
            )
            raise ConfigurationError(msg)

    @property
    def length(self) -> int:
        return self.end_second - self.start_second


@dataclass(frozen=True)
class PipelineConfig:
    """
    Immutable configuration of the occupancy pipeline.

    Attributes
    ----------
    active_window : ActiveWindow
        Portion of the day that is modelled.
    window_length_seconds : int
        Length of the non-overlapping aggregation windows. Must divide
        the active window length exactly.
    k_values : tuple of int
        Neighbourhood sizes evaluated against the same split.
    train_fraction : float
        Share of rows in the training partition, in ``(0, 1)``.
    random_seed : int
        Seed of the stratified split.
    sentinel : float
        Raw power value marking an absent sample.
    normalize_before_split : bool
        If True, features are scaled with statistics of the full
        dataset (reproduces the original analysis, including its
        lookahead). If False, statistics are fit on the training
        partition only.
    on_degenerate : {"drop", "raise"}
        Handling of zero-range feature columns.
    """
    active_window: ActiveWindow = field(default_factory=ActiveWindow)
    window_length_seconds: int = WINDOW_LENGTH_SECONDS
    k_values: Tuple[int, ...] = K_VALUES
    train_fraction: float = TRAIN_FRACTION
    random_seed: int = RANDOM_SEED
    sentinel: float = POWER_SENTINEL
    normalize_before_split: bool = True
    on_degenerate: DegeneratePolicy = "drop"

    def __post_init__(self) -> None:
        if self.window_length_seconds <= 0:
            msg = "window_length_seconds must be a positive integer."
            raise ConfigurationError(msg)
        if self.active_window.length % self.window_length_seconds:
            msg = (
                f"Active window length {self.active_window.length}s is not "
                f"divisible by the window length "
                f"{self.window_length_seconds}s."
            )
            raise ConfigurationError(msg)
        if not self.k_values:
            raise ConfigurationError("At least one k value is required.")
        invalid = [
            k for k in self.k_values
            if isinstance(k, bool) or not isinstance(k, int) or k <= 0
        ]
        if invalid:
            msg = f"k values must be positive integers, got {invalid}."
            raise ConfigurationError(msg)
        if not 0.0 < self.train_fraction < 1.0:
            msg = f"train_fraction must lie in (0, 1), got {self.train_fraction}."
            raise ConfigurationError(msg)
        if self.on_degenerate not in ("drop", "raise"):
            msg = f"Unknown on_degenerate policy '{self.on_degenerate}'."
            raise ConfigurationError(msg)
        # Tuples keep the frozen instance hashable and immutable
        object.__setattr__(self, "k_values", tuple(self.k_values))

    @property
    def windows_per_day(self) -> int:
        return self.active_window.length // self.window_length_seconds
