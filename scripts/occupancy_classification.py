# stdlib
import argparse
from dataclasses import replace
# projectlib
from occupancy_detection.config.env import config_from_env, data_root
from occupancy_detection.config.settings import PipelineConfig
from occupancy_detection.data.loaders import load_sources
from occupancy_detection.pipeline import OccupancyPipeline

def parse_args() -> argparse.Namespace:
    """Parse input arguments for occupancy classification."""
    parser = argparse.ArgumentParser(
        description=(
            "Predict household occupancy from per-second power "
            "consumption with a k nearest neighbour classifier"
        ),
    )
    parser.add_argument(
        "--verbosity",
        type=int,
        default=0,
        choices=(0, 1, 2),
        help=(
            "Verbosity level: "
            "0 = results only, "
            "1 = info, "
            "2 = debug"
        ),
    )
    parser.add_argument(
        "--occupancy",
        nargs="+",
        default=["occupancy/summer.csv", "occupancy/winter.csv"],
        help="Seasonal occupancy tables, relative to DATA_ROOT",
    )
    parser.add_argument(
        "--phases",
        nargs=3,
        default=["power/p1", "power/p2", "power/p3"],
        help="Per-phase directories of day files, relative to DATA_ROOT",
    )
    parser.add_argument(
        "--k-values",
        type=int,
        nargs="+",
        default=None,
        help="Neighbourhood sizes to evaluate (overrides the environment)",
    )
    parser.add_argument(
        "--window-length",
        type=int,
        default=None,
        help="Aggregation window length in seconds",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed of the stratified split",
    )
    parser.add_argument(
        "--split-then-normalize",
        action="store_true",
        help="Fit feature scaling on the training partition only",
    )
    parser.add_argument(
        "--write-log",
        action="store_true",
        help="Append messages to log.txt instead of printing them",
    )

    return parser.parse_args()

def build_config(args: argparse.Namespace) -> PipelineConfig:
    """Environment configuration with command-line overrides applied."""
    config = config_from_env()
    overrides = {}
    if args.k_values:
        overrides["k_values"] = tuple(args.k_values)
    if args.window_length is not None:
        overrides["window_length_seconds"] = args.window_length
    if args.seed is not None:
        overrides["random_seed"] = args.seed
    if args.split_then_normalize:
        overrides["normalize_before_split"] = False
    return replace(config, **overrides)

def main() -> None:
    args = parse_args()
    root = data_root()
    config = build_config(args)
    tables, power = load_sources(
        [root / p for p in args.occupancy],
        [root / p for p in args.phases],
        verbose=args.verbosity,
    )
    pipeline = OccupancyPipeline(
        config,
        verbose=args.verbosity,
        log_dir=root,
        write_log=args.write_log,
    )
    result = pipeline.run(tables, power)
    for k in sorted(result.results):
        pipeline.log(result.results[k].summary())

if __name__ == "__main__":
    main()
