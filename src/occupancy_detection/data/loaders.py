# stdlib
from typing import Dict, List, Sequence, Tuple
# thirdpartylib
import numpy as np
import polars as pl
from numpy.typing import NDArray
# projectlib
from occupancy_detection.data.schemas import Channel, Column, POWER_CHANNELS
from occupancy_detection.utils.logging import Logger
from occupancy_detection.utils.paths import list_files, validate_address
from occupancy_detection.utils.typing import Address, Verbosity

# Index of the power column in per-phase day files
# (current, voltage, phase shift, power)
POWER_COLUMN = 3

def read_occupancy_csv(path: Address) -> pl.DataFrame:
    """
    Read one seasonal occupancy table.

    The file holds one row per day: a date cell followed by one cell per
    second-of-day. The first column is renamed to ``Column.DAY`` and the
    date is kept as text; ``parse_day`` normalizes it during alignment.
    """
    source = validate_address(path)
    frame = pl.read_csv(source, infer_schema_length=0)
    frame = frame.rename({frame.columns[0]: Column.DAY.value})
    return frame.with_columns(
        pl.exclude(Column.DAY.value).cast(pl.Float64, strict=False)
    )

def read_power_day(path: Address, column: int = POWER_COLUMN) -> NDArray[np.float64]:
    """
    Read the power column of one per-phase day file (no header, 1 Hz).

    Unparseable cells become ``NaN``; sentinel values are left as-is for
    the aligner to mark.
    """
    source = validate_address(path)
    frame = pl.read_csv(source, has_header=False, infer_schema_length=0)
    if column >= frame.width:
        msg = (
            f"{source} has {frame.width} columns; power column index "
            f"{column} is out of range."
        )
        raise ValueError(msg)
    return (
        frame
        .get_column(frame.columns[column])
        .cast(pl.Float64, strict=False)
        .fill_null(float("nan"))
        .to_numpy()
    )

def read_power_directory(
        directory: Address,
        column: int = POWER_COLUMN,
        *,
        verbose: Verbosity = 0,
    ) -> Dict[str, NDArray[np.float64]]:
    """Power samples of one phase keyed by file stem (``YYYY-MM-DD``)."""
    logger = Logger(verbose=verbose, name="loaders")
    files = list_files(directory)
    logger(f"reading {len(files)} day files from {directory}", 1)
    return {path.stem: read_power_day(path, column) for path in files}

def load_sources(
        occupancy_files: Sequence[Address],
        phase_directories: Sequence[Address],
        column: int = POWER_COLUMN,
        *,
        verbose: Verbosity = 0,
    ) -> Tuple[List[pl.DataFrame], Dict[Channel, Dict[str, NDArray[np.float64]]]]:
    """
    Read every occupancy table and the three phase directories.

    Returns
    -------
    tuple
        ``(occupancy_tables, power)`` ready for ``OccupancyPipeline.run``.
    """
    if len(phase_directories) != len(POWER_CHANNELS):
        msg = (
            f"Expected {len(POWER_CHANNELS)} phase directories, got "
            f"{len(phase_directories)}."
        )
        raise ValueError(msg)
    tables = [read_occupancy_csv(p) for p in occupancy_files]
    power: Dict[Channel, Dict[str, NDArray[np.float64]]] = {
        channel: read_power_directory(d, column, verbose=verbose)
        for channel, d in zip(POWER_CHANNELS, phase_directories)
    }
    return tables, power
