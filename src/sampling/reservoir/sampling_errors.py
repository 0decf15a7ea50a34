"""
Purpose
-------
Define the failure types raised at the reservoir sampling boundary.

Key behaviors
-------------
- `InvalidWeightError` signals a caller mistake in a supplied weight; the
  offending offer leaves the engine untouched.
- `StreamOverflowError` signals that the overflow guard tripped and the
  engine can no longer guarantee correct inclusion probabilities.

Conventions
-----------
- Both errors derive from `ReservoirSamplingError` so callers can catch the
  whole family in one place.
- `InvalidWeightError` is also a `ValueError`; `StreamOverflowError` is also an
  `ArithmeticError`, matching the builtin families they refine.

Downstream usage
----------------
Catch `StreamOverflowError` to stop feeding a stream or restart sampling;
catch `InvalidWeightError` to reject a single malformed record.
"""


class ReservoirSamplingError(Exception):
    """Base class for all reservoir sampling failures."""


class InvalidWeightError(ReservoirSamplingError, ValueError):
    """
    Raised when a weight is non-positive, NaN, infinite or not a real number.

    Notes
    -----
    - Also raised when a weight other than 1.0 is supplied to an engine using
      the unweighted "unit" strategy.
    """


class StreamOverflowError(ReservoirSamplingError, ArithmeticError):
    """
    Raised when the running numerical state of a reservoir has degraded past
    the point where key comparisons remain trustworthy.

    Notes
    -----
    - Once raised by an engine, every later `offer` on the same engine raises
      it again without touching the reservoir.
    """
