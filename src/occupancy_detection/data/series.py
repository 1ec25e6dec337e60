# stdlib
from dataclasses import dataclass
from datetime import date, datetime
from typing import Union, Sequence
# thirdpartylib
import numpy as np
from numpy.typing import NDArray
# projectlib
from occupancy_detection.data.schemas import Channel
from occupancy_detection.errors import AlignmentError
from occupancy_detection.utils.typing import DayLike, Samples

# Date layouts found in the sources: occupancy tables write
# '01-Jul-2012', power files are named 2012-07-01.csv
DAY_FORMATS = ("%d-%b-%Y", "%Y-%m-%d")

def parse_day(value: DayLike) -> date:
    """
    Normalize a raw day representation to ``datetime.date``.

    Accepts ``date``/``datetime`` objects and strings in either source
    layout (``DAY_FORMATS``); surrounding whitespace and quotes are
    ignored.

    Raises
    ------
    AlignmentError
        If the value matches none of the known layouts.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip().strip("'\"")
    for fmt in DAY_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    msg = f"Unrecognized day representation {value!r}."
    raise AlignmentError(msg, day=value)


@dataclass(frozen=True)
class DaySeries:
    """
    One calendar day of one channel at 1 Hz.

    ``samples[i]`` is the value at second-of-day ``start_second + i``.
    Absent samples are ``NaN``. The array is made read-only on
    construction so a series is never mutated after it is built.
    """
    day: date
    channel: Channel
    samples: Samples
    start_second: int = 0

    def __post_init__(self) -> None:
        samples = np.array(self.samples, dtype=np.float64)
        if samples.ndim != 1:
            msg = f"{self.channel.value} samples for {self.day} must be 1-D."
            raise ValueError(msg)
        samples.flags.writeable = False
        object.__setattr__(self, "samples", samples)

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def end_second(self) -> int:
        return self.start_second + len(self.samples)

    @property
    def present(self) -> NDArray[np.bool_]:
        """Mask of samples that are not absent."""
        return ~np.isnan(self.samples)

    def slice(self, start_second: int, end_second: int) -> "DaySeries":
        """Return the half-open span ``[start_second, end_second)``."""
        if not self.start_second <= start_second < end_second <= self.end_second:
            msg = (
                f"Span [{start_second}, {end_second}) lies outside "
                f"[{self.start_second}, {self.end_second}) of "
                f"{self.channel.value} on {self.day}."
            )
            raise ValueError(msg)
        lo = start_second - self.start_second
        hi = end_second - self.start_second
        return DaySeries(
            day=self.day,
            channel=self.channel,
            samples=self.samples[lo:hi],
            start_second=start_second,
        )

    @classmethod
    def from_raw(
            cls,
            day: DayLike,
            channel: Channel,
            values: Union[Sequence[float], NDArray[np.generic]],
            *,
            sentinel: Union[float, None] = None,
        ) -> "DaySeries":
        """
        Build a full-day series from raw values.

        ``None`` entries become ``NaN``. When ``sentinel`` is given every
        sample equal to it is marked absent as well.
        """
        if isinstance(values, np.ndarray) and values.dtype != object:
            samples = values.astype(np.float64)
        else:
            samples = np.array(
                [np.nan if v is None else v for v in values],
                dtype=np.float64,
            )
        if sentinel is not None:
            samples = np.where(samples == sentinel, np.nan, samples)
        return cls(day=parse_day(day), channel=channel, samples=samples)
