# stdlib
from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union
# thirdpartylib
import numpy as np
import polars as pl
from numpy.typing import NDArray
# projectlib
from occupancy_detection.config.constants import SECONDS_PER_DAY, POWER_SENTINEL
from occupancy_detection.config.settings import ActiveWindow
from occupancy_detection.data.schemas import Channel, Column, POWER_CHANNELS
from occupancy_detection.data.series import DaySeries, parse_day
from occupancy_detection.errors import AlignmentError
from occupancy_detection.utils.logging import Logger
from occupancy_detection.utils.typing import PowerDays, Verbosity


@dataclass(frozen=True)
class AlignedDay:
    """
    The four channels of one calendar day, trimmed to the active window.

    ``power`` maps each phase to its series; every series covers the same
    second-of-day span as ``occupancy``.
    """
    day: date
    occupancy: DaySeries
    power: Mapping[Channel, DaySeries]

    def __post_init__(self) -> None:
        object.__setattr__(self, "power", MappingProxyType(dict(self.power)))

    def channels(self) -> Tuple[DaySeries, ...]:
        """Power phases in feature order followed by occupancy."""
        return (*(self.power[ch] for ch in POWER_CHANNELS), self.occupancy)


class TimeSeriesAligner(object):
    """
    Align occupancy and power sources on a common day/second grid.

    Responsibilities:
    - Merging the seasonal occupancy tables into one table keyed by
      calendar day, rejecting days that appear more than once.
    - Normalizing the date layouts of both sources to ``datetime.date``.
    - Restricting every power phase to the occupancy days, dropping days
      that any phase lacks (logged, never fatal).
    - Marking sentinel power samples as absent (``NaN``). Occupancy
      samples are kept as recorded.
    - Trimming all channels to the same half-open active window.
    """

    def __init__(
            self,
            active_window: Optional[ActiveWindow] = None,
            *,
            sentinel: float = POWER_SENTINEL,
            day_column: str = Column.DAY.value,
            verbose: Verbosity = 0,
            logger: Optional[Logger] = None,
        ) -> None:
        self.active_window = active_window or ActiveWindow()
        self.sentinel = sentinel
        self.day_column = day_column
        self.log = (
            logger.child("alignment") if logger is not None
            else Logger(verbose=verbose, name="alignment")
        )

    def merge_occupancy(
            self,
            tables: Sequence[pl.DataFrame],
        ) -> Dict[date, NDArray[np.float64]]:
        """
        Merge seasonal occupancy tables into per-day sample rows.

        Each table holds one row per day: ``day_column`` followed by one
        column per second-of-day, in order.

        Raises
        ------
        AlignmentError
            If a day appears more than once across all tables, or a table
            has no ``day_column``.
        """
        merged: Dict[date, NDArray[np.float64]] = {}
        for table in tables:
            if self.day_column not in table.columns:
                msg = f"Occupancy table has no '{self.day_column}' column."
                raise AlignmentError(msg)
            days = [parse_day(v) for v in table[self.day_column].to_list()]
            values = (
                table
                .drop(self.day_column)
                .cast(pl.Float64)
                .to_numpy()
            )
            for day, row in zip(days, values):
                if day in merged:
                    msg = (
                        f"Day {day} appears in more than one occupancy "
                        "row; the merged occupancy table is ambiguous."
                    )
                    raise AlignmentError(msg, day=day)
                merged[day] = row
        self.log(f"merged occupancy for {len(merged)} days", 1)
        return merged

    def occupancy_series(
            self,
            rows: Mapping[date, NDArray[np.float64]],
        ) -> Dict[date, DaySeries]:
        """Full-day occupancy series; malformed rows are dropped."""
        out: Dict[date, DaySeries] = {}
        for day, row in rows.items():
            try:
                self._check_length(day, Channel.OCCUPANCY, row)
            except AlignmentError as e:
                self.log.warning(f"dropping {day}: {e}")
                continue
            out[day] = DaySeries.from_raw(day, Channel.OCCUPANCY, row)
        return out

    def power_series(
            self,
            channel: Channel,
            days: PowerDays,
        ) -> Dict[date, DaySeries]:
        """
        Full-day power series of one phase with sentinels marked absent.

        Days with the wrong number of samples are omitted (and therefore
        dropped during ``align``).

        Raises
        ------
        AlignmentError
            If two raw keys normalize to the same calendar day.
        """
        out: Dict[date, DaySeries] = {}
        for raw_day, values in days.items():
            day = parse_day(raw_day)
            if day in out:
                msg = f"Day {day} is provided twice for {channel.value}."
                raise AlignmentError(msg, day=day)
            try:
                self._check_length(day, channel, values)
            except AlignmentError as e:
                self.log.warning(f"ignoring {channel.value} on {day}: {e}")
                continue
            out[day] = DaySeries.from_raw(
                day, channel, values, sentinel=self.sentinel
            )
        return out

    def align(
            self,
            occupancy_tables: Sequence[pl.DataFrame],
            power: Mapping[Channel, PowerDays],
        ) -> Tuple[AlignedDay, ...]:
        """
        Align all sources and trim them to the active window.

        Parameters
        ----------
        occupancy_tables : sequence of pl.DataFrame
            Seasonal occupancy tables (see ``merge_occupancy``).
        power : mapping of Channel to PowerDays
            For each phase, raw per-second power samples keyed by day.

        Returns
        -------
        tuple of AlignedDay
            One entry per day with all four channels, sorted by day.
        """
        missing = [ch.value for ch in POWER_CHANNELS if ch not in power]
        if missing:
            msg = f"No power source supplied for phase(s) {missing}."
            raise AlignmentError(msg)
        occupancy = self.occupancy_series(self.merge_occupancy(occupancy_tables))
        phases = {
            ch: self.power_series(ch, power[ch]) for ch in POWER_CHANNELS
        }
        aligned: List[AlignedDay] = []
        for day in sorted(occupancy):
            try:
                aligned.append(self._align_day(day, occupancy[day], phases))
            except AlignmentError as e:
                self.log.warning(f"dropping {day}: {e}")
        self.log(
            f"aligned {len(aligned)} of {len(occupancy)} occupancy days to "
            f"[{self.active_window.start_second}, "
            f"{self.active_window.end_second})",
            1,
        )
        return tuple(aligned)

    def _align_day(
            self,
            day: date,
            occupancy: DaySeries,
            phases: Mapping[Channel, Mapping[date, DaySeries]],
        ) -> AlignedDay:
        start = self.active_window.start_second
        end = self.active_window.end_second
        power: Dict[Channel, DaySeries] = {}
        for channel in POWER_CHANNELS:
            series = phases[channel].get(day)
            if series is None:
                msg = f"no {channel.value} power samples for this day"
                raise AlignmentError(msg, day=day)
            power[channel] = series.slice(start, end)
        return AlignedDay(
            day=day,
            occupancy=occupancy.slice(start, end),
            power=power,
        )

    def _check_length(
            self,
            day: date,
            channel: Channel,
            values: Union[Sequence[float], NDArray[np.generic]],
        ) -> None:
        if len(values) != SECONDS_PER_DAY:
            msg = (
                f"{channel.value} has {len(values)} samples, expected "
                f"{SECONDS_PER_DAY}"
            )
            raise AlignmentError(msg, day=day)
