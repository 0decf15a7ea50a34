"""
Purpose
-------
Command-line driver that samples lines of a text stream with a
`ReservoirEngine` and prints the resulting sample.

Key behaviors
-------------
- Parses CLI arguments for capacity, seed, key strategy, input path, and log
  level.
- Hydrates the environment from a `.env` file (logging configuration).
- Streams the input one line at a time; for weighted strategies each line is
  `item<TAB>weight`, otherwise the whole line is the item.
- Prints one sampled item per line to STDOUT.
- Converts invalid weights and stream overflow into a logged ERROR and exit
  status 1.

Conventions
-----------
- Trailing newlines are stripped; blank lines are skipped.
- The RNG is `numpy.random.default_rng(seed)`, so a fixed seed and input
  order reproduce the same sample.
- Input path "-" (the default) reads STDIN.

Downstream usage
----------------
    python -m sampling.reservoir.stream_sampler 100 42 efraimidis weighted.tsv

Programmatic callers may use `sample_lines(...)` directly on any iterable of
strings.
"""

import sys
from typing import Iterable, TextIO

import numpy as np
from dotenv import load_dotenv

from infra.logging.infra_logger import InfraLogger, initialize_logger
from sampling.reservoir.key_strategies import get_strategy
from sampling.reservoir.reservoir_config import DEFAULT_STRATEGY, WEIGHT_SEPARATOR
from sampling.reservoir.reservoir_engine import ReservoirEngine
from sampling.reservoir.sampling_errors import InvalidWeightError, ReservoirSamplingError


def main(argv: list[str] | None = None) -> int:
    """
    Entry point for the stream sampler CLI.

    Parameters
    ----------
    argv : list[str], optional
        Argument vector including the program name; defaults to `sys.argv`.

    Returns
    -------
    int
        Process exit status: 0 on success, 1 on a sampling failure.

    Raises
    ------
    IndexError
        If capacity or seed are missing.
    ValueError
        If capacity or seed are not integers, or the strategy is unknown.
    """

    load_dotenv()
    capacity, seed, strategy, path, logger_level = extract_cli_args(
        sys.argv if argv is None else argv
    )
    logger: InfraLogger = initialize_logger(
        component_name="sampling.stream_sampler",
        level=logger_level,
        run_meta={"capacity": capacity, "seed": seed, "strategy": strategy, "path": path},
    )
    engine = ReservoirEngine(
        capacity=capacity,
        rng=np.random.default_rng(seed),
        strategy=strategy,  # type: ignore[arg-type]
        logger=logger,
    )
    try:
        if path == "-":
            sample_lines(engine, sys.stdin)
        else:
            with open(path, "r", encoding="utf-8") as f:
                sample_lines(engine, f)
    except ReservoirSamplingError as exc:
        logger.error(
            "stream_sampling_failed",
            msg=str(exc),
            context={"error_type": type(exc).__name__, "stream_size": engine.stream_size},
        )
        return 1

    sample = engine.drain()
    write_sample(sample, sys.stdout)
    logger.info(
        "stream_sampling_finished",
        context={"stream_size": engine.stream_size, "sample_size": len(sample)},
    )
    return 0


def extract_cli_args(argv: list[str]) -> tuple[int, int, str, str, str]:
    """
    Parse `(capacity, seed, strategy, path, logger_level)` from an argument vector.

    Notes
    -----
    - Expects `argv[1]` capacity and `argv[2]` seed; `argv[3]` strategy,
      `argv[4]` input path and `argv[5]` log level are optional.
    """

    capacity: int = int(argv[1])
    seed: int = int(argv[2])
    strategy: str = argv[3] if len(argv) > 3 else DEFAULT_STRATEGY
    get_strategy(strategy)
    path: str = argv[4] if len(argv) > 4 else "-"
    logger_level: str = argv[5] if len(argv) > 5 else "INFO"
    return capacity, seed, strategy, path, logger_level


def sample_lines(engine: ReservoirEngine, lines: Iterable[str]) -> int:
    """
    Feed non-blank lines into `engine`, parsing weights for weighted strategies.

    Parameters
    ----------
    engine : ReservoirEngine
        Engine receiving the items.
    lines : Iterable[str]
        Raw input lines, with or without trailing newlines.

    Returns
    -------
    int
        Number of items admitted at the time they were offered.

    Raises
    ------
    InvalidWeightError
        If a weighted line has no weight column or an unparseable weight.
    StreamOverflowError
        Propagated from the engine.
    """

    weighted = get_strategy(engine.strategy).accepts_weights
    admitted = 0
    for line_number, raw_line in enumerate(lines, start=1):
        line = raw_line.rstrip("\r\n")
        if not line.strip():
            continue
        if not weighted:
            admitted += engine.offer(line)
            continue
        item, weight = parse_weighted_line(line, line_number)
        admitted += engine.offer(item, weight)
    return admitted


def parse_weighted_line(line: str, line_number: int) -> tuple[str, float]:
    """Split `item<TAB>weight` at the last separator and parse the weight."""

    item, sep, raw_weight = line.rpartition(WEIGHT_SEPARATOR)
    if not sep:
        raise InvalidWeightError(f"Line {line_number} has no weight column: {line!r}")
    try:
        return item, float(raw_weight)
    except ValueError:
        raise InvalidWeightError(
            f"Line {line_number} has an unparseable weight: {raw_weight!r}"
        ) from None


def write_sample(sample: list, out: TextIO) -> None:
    for item in sample:
        out.write(f"{item}\n")


if __name__ == "__main__":
    sys.exit(main())
