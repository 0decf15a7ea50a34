"""
Purpose
-------
Provide shared configuration constants for the reservoir sampling engine and
its overflow guard.

Key behaviors
-------------
- Fixes the key strategy used when none is requested (`DEFAULT_STRATEGY`).
- Fixes the implicit weight of unweighted items (`DEFAULT_WEIGHT`).
- Bounds the number of items a single engine may consider
  (`MAX_STREAM_SIZE`), mirroring a signed 64-bit stream counter.
- Exposes the smallest positive normal double (`MIN_NORMAL_SCORE`); scores
  whose magnitude falls below it carry fewer than 53 significant bits.
- Defines the item/weight separator used by the stream sampler CLI
  (`WEIGHT_SEPARATOR`).

Conventions
-----------
- All values are read-only at runtime; change them here to change behavior
  consistently across the engine, guard, and CLI.

Downstream usage
----------------
    from sampling.reservoir.reservoir_config import DEFAULT_STRATEGY, MAX_STREAM_SIZE
"""

import sys

from sampling.reservoir.reservoir_types import StrategyName

DEFAULT_STRATEGY: StrategyName = "unit"
DEFAULT_WEIGHT: float = 1.0
MAX_STREAM_SIZE: int = 2**63 - 1
MIN_NORMAL_SCORE: float = sys.float_info.min
WEIGHT_SEPARATOR: str = "\t"
