from enum import Enum

class Column(str, Enum):
    """Column identifiers shared by every frame in the pipeline."""
    DAY = 'day'
    CENTER_SECOND = 'center_second'
    DATETIME = 'datetime'
    LABEL = 'label'

class Channel(str, Enum):
    """Signals recorded per day: three power phases and occupancy."""
    P1 = 'p1'
    P2 = 'p2'
    P3 = 'p3'
    OCCUPANCY = 'occupancy'

class Statistic(str, Enum):
    """Per-window summary statistics computed on power channels."""
    MEAN = 'mean'
    SAD = 'sad'

# Power phases in feature order
POWER_CHANNELS = (Channel.P1, Channel.P2, Channel.P3)

def feature_name(statistic: Statistic, channel: Channel) -> str:
    """Column name of a per-window statistic, e.g. ``'sad_p2'``."""
    return f"{statistic.value}_{channel.value}"

# Feature columns in canonical order
FEATURES = tuple(
    feature_name(stat, channel)
    for stat in Statistic
    for channel in POWER_CHANNELS
)

# Keys joining per-window features and labels
KEYS = (Column.DAY, Column.CENTER_SECOND)
