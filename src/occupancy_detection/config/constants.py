# Samples per day at 1 Hz
SECONDS_PER_DAY = 86_400
# Default active window [06:00:00, 22:00:00) as second-of-day bounds
ACTIVE_WINDOW_START = 6 * 3_600
ACTIVE_WINDOW_END = 22 * 3_600
# Default aggregation window, 15 minutes
WINDOW_LENGTH_SECONDS = 900
# Candidate neighbourhood sizes evaluated against one split
K_VALUES = (1, 5, 10, 20)
TRAIN_FRACTION = 0.8
RANDOM_SEED = 42
# Value written by the meter when a power sample is missing
POWER_SENTINEL = -1.0
# Label assigned when a k-NN vote is split evenly
VOTE_TIE_LABEL = 0
# Rows of queries scored per distance block in the k-NN search
QUERY_CHUNK_SIZE = 64
