"""
Purpose
-------
Track the running numerical state of a reservoir and stop sampling before
finite precision silently biases the result.

Key behaviors
-------------
- Holds the `RunningState` of one engine: stream size, cumulative weight, and
  the terminal overflow flag with its reason.
- Checks each admission against two bounds before anything is drawn: the
  stream counter must stay within `max_stream_size`, and the cumulative
  weight must stay finite.
- Checks each computed score through the engine's key strategy and trips
  when the strategy reports a degenerate score.
- Once tripped, every further check raises `StreamOverflowError`
  immediately; the state never leaves "overflowed".

Conventions
-----------
- Checks never mutate the running counters. Only `record(...)` does, and the
  engine calls it after every check for the current item has passed.
- Tripping sets `overflowed` and `overflow_reason` and then raises.

Downstream usage
----------------
Owned by `ReservoirEngine`; not intended to be shared between engines.
"""

import math
from dataclasses import dataclass
from typing import NoReturn

from sampling.reservoir.key_strategies import KeyStrategy
from sampling.reservoir.reservoir_config import MAX_STREAM_SIZE
from sampling.reservoir.sampling_errors import StreamOverflowError


@dataclass
class RunningState:
    """
    Purpose
    -------
    Scalar accumulators describing everything an engine has consumed so far.

    Attributes
    ----------
    stream_size : int
        Number of items accepted for consideration, admitted or not.
    total_weight : float
        Sum of the weights of those items.
    overflowed : bool
        True once the guard has tripped.
    overflow_reason : str or None
        Message of the error that tripped the guard.
    """

    stream_size: int = 0
    total_weight: float = 0.0
    overflowed: bool = False
    overflow_reason: str | None = None


class OverflowGuard:
    """
    Purpose
    -------
    Enforce the numerical bounds under which the reservoir's inclusion
    probabilities remain trustworthy.

    Parameters
    ----------
    max_stream_size : int, default=MAX_STREAM_SIZE
        Largest number of items a single engine may consider.

    Attributes
    ----------
    state : RunningState
        Live running state; read by the engine, mutated only by this guard.

    Raises
    ------
    ValueError
        If `max_stream_size` is smaller than 1.
    """

    def __init__(self, max_stream_size: int = MAX_STREAM_SIZE) -> None:
        if max_stream_size < 1:
            raise ValueError(f"max_stream_size must be at least 1, got {max_stream_size}")
        self.max_stream_size = max_stream_size
        self.state = RunningState()

    def ensure_open(self) -> None:
        """Raise `StreamOverflowError` if the guard has already tripped."""

        if self.state.overflowed:
            raise StreamOverflowError(
                f"Reservoir is in the overflowed state: {self.state.overflow_reason}"
            )

    def check_admission(self, weight: float) -> None:
        """
        Validate the running counters for one more item of `weight`.

        Parameters
        ----------
        weight : float
            Already validated positive, finite weight of the incoming item.

        Returns
        -------
        None

        Raises
        ------
        StreamOverflowError
            If the stream counter would pass `max_stream_size` or the
            cumulative weight would stop being finite.
        """

        self.ensure_open()
        if self.state.stream_size + 1 > self.max_stream_size:
            self.trip(
                f"Stream size would exceed the supported maximum of {self.max_stream_size} items"
            )
        if not math.isfinite(self.state.total_weight + weight):
            self.trip(
                f"Cumulative weight overflowed after {self.state.stream_size} items "
                f"(total={self.state.total_weight!r}, incoming={weight!r})"
            )

    def check_score(self, strategy: KeyStrategy, draw: float, score: float) -> None:
        """
        Validate a freshly computed score against the strategy's precision check.

        Raises
        ------
        StreamOverflowError
            If `strategy.degenerate(draw, score)` is True.
        """

        self.ensure_open()
        if strategy.degenerate(draw, score):
            self.trip(
                f"Key precision degraded under the {strategy.name!r} strategy: "
                f"draw={draw!r} produced score={score!r}"
            )

    def record(self, weight: float) -> None:
        """Account for one item of `weight` whose checks all passed."""

        self.state.stream_size += 1
        self.state.total_weight += weight

    def trip(self, reason: str) -> NoReturn:
        """
        Enter the terminal overflowed state and raise.

        Parameters
        ----------
        reason : str
            Human-readable description of the violated bound.

        Raises
        ------
        StreamOverflowError
            Always.
        """

        self.state.overflowed = True
        self.state.overflow_reason = reason
        raise StreamOverflowError(reason)
