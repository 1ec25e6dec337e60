# stdlib
from typing import Literal, Union, Mapping, Sequence
from pathlib import Path
from datetime import date, datetime
# thirdpartylib
import numpy as np
from numpy.typing import NDArray

# Verbosity for classes, functions, methods, etc.
type Verbosity = Literal[0, 1, 2]
# Mode for opening documents
type ReadMode = Literal["r"]
type WriteMode = Literal["w", "x"]
type OpenMode = Literal[ReadMode, WriteMode]
# Type alias for file/folder paths
type Address = Union[str, Path]
# Raw calendar day representations accepted from sources
type DayLike = Union[str, date, datetime]
# Per-second samples of a single day
type Samples = NDArray[np.float64]
# Per-day raw power samples of a single phase, keyed by raw day
type PowerDays = Mapping[DayLike, Union[Sequence[float], NDArray[np.generic]]]
# Policy for zero-variance feature columns
type DegeneratePolicy = Literal["raise", "drop"]
# One-dimensional numeric input accepted by metric helpers
type ArrayLike1D = Union[Sequence[float], NDArray[np.generic]]
