# stdlib
import os
from pathlib import Path
from typing import Optional
# thirdpartylib
from dotenv import load_dotenv
# projectlib
from occupancy_detection.config.settings import ActiveWindow, PipelineConfig
from occupancy_detection.errors import ConfigurationError

def fetch_var(name: str) -> str:
    """
    Fetch a required environment variable.

    Raises
    ------
    RuntimeError
        If the variable is unset or blank.
    """
    value = os.environ.get(name)
    if value is None:
        msg = (
            f"Environment variable '{name}' is not set. Define it in the "
            "environment or in a .env file; see .env.example for DATA_ROOT "
            "and the OCCUPANCY_* settings."
        )
        raise RuntimeError(msg)
    if not value.strip():
        raise RuntimeError(f"Environment variable '{name}' is empty.")
    return value.strip()

def fetch_optional(name: str) -> Optional[str]:
    """Fetch an optional environment variable; blank counts as unset."""
    value = os.environ.get(name, "").strip()
    return value or None

def data_root() -> Path:
    """Root directory holding the occupancy and power sources."""
    return Path(fetch_var("DATA_ROOT"))

def config_from_env() -> PipelineConfig:
    """
    Build a ``PipelineConfig`` from ``OCCUPANCY_*`` environment variables.

    Recognized variables (all optional, defaults from
    ``config.constants``):

    - ``OCCUPANCY_ACTIVE_START`` / ``OCCUPANCY_ACTIVE_END``: second-of-day
    - ``OCCUPANCY_WINDOW_LENGTH``: seconds
    - ``OCCUPANCY_K_VALUES``: comma separated, e.g. ``1,5,10,20``
    - ``OCCUPANCY_TRAIN_FRACTION``, ``OCCUPANCY_RANDOM_SEED``
    - ``OCCUPANCY_SPLIT_THEN_NORMALIZE``: ``1``/``true`` to fit scaling
      on the training partition only
    """
    defaults = PipelineConfig()
    try:
        start = fetch_optional("OCCUPANCY_ACTIVE_START")
        end = fetch_optional("OCCUPANCY_ACTIVE_END")
        window = ActiveWindow(
            int(start) if start else defaults.active_window.start_second,
            int(end) if end else defaults.active_window.end_second,
        )
        length = fetch_optional("OCCUPANCY_WINDOW_LENGTH")
        ks = fetch_optional("OCCUPANCY_K_VALUES")
        fraction = fetch_optional("OCCUPANCY_TRAIN_FRACTION")
        seed = fetch_optional("OCCUPANCY_RANDOM_SEED")
        split_first = fetch_optional("OCCUPANCY_SPLIT_THEN_NORMALIZE")
        return PipelineConfig(
            active_window=window,
            window_length_seconds=(
                int(length) if length else defaults.window_length_seconds
            ),
            k_values=(
                tuple(int(k) for k in ks.split(",") if k.strip())
                if ks else defaults.k_values
            ),
            train_fraction=(
                float(fraction) if fraction else defaults.train_fraction
            ),
            random_seed=int(seed) if seed else defaults.random_seed,
            normalize_before_split=not (
                split_first is not None
                and split_first.lower() in ("1", "true", "yes")
            ),
        )
    except ValueError as e:
        if isinstance(e, ConfigurationError):
            raise
        raise ConfigurationError(
            f"Malformed occupancy configuration variable: {e}"
        ) from e


# Load env variables
load_dotenv()
