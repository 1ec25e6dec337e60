class OccupancyDetectionError(Exception):
    """Base class for all errors raised by the occupancy pipeline."""


class ConfigurationError(OccupancyDetectionError, ValueError):
    """Invalid pipeline configuration (window bounds, fractions, k list)."""


class AlignmentError(OccupancyDetectionError):
    """
    A day or channel cannot be matched across sources.

    Per-day alignment failures are recoverable: the aligner drops the
    affected day and logs a warning. Ambiguous inputs (a day present in
    both seasonal occupancy tables) are raised to the caller.
    """

    def __init__(self, msg: str, day: object = None) -> None:
        super().__init__(msg)
        self.day = day


class IncompleteWindowError(OccupancyDetectionError):
    """A window has no present samples to compute a feature or label."""


class DegenerateFeatureError(OccupancyDetectionError):
    """A feature column has zero range so min-max scaling is undefined."""

    def __init__(self, features: tuple[str, ...]) -> None:
        self.features = features
        msg = (
            "Degenerate feature column(s) with max == min across the "
            f"dataset: {', '.join(features)}. Min-max normalization is "
            "undefined for these columns."
        )
        super().__init__(msg)


class ClassificationError(OccupancyDetectionError, ValueError):
    """Malformed classifier input, e.g. k <= 0 or k >= training size."""
