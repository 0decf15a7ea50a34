"""
Purpose
-------
Provide shared type aliases for the reservoir sampling components.

Key behaviors
-------------
- Name the supported key strategies and engine lifecycle states in one place.
- Describe the injected randomness seam as a structural protocol.

Conventions
-----------
- `StrategyName` values are the lowercase tags accepted by
  `ReservoirEngine(strategy=...)`.
- `EngineState` values follow the lifecycle empty → filling → full, with
  "overflowed" as the terminal state.
- Any object exposing `random() -> float` in [0, 1) satisfies `RandomSource`,
  including `numpy.random.Generator` and `random.Random`.

Downstream usage
----------------
Import these aliases in the engine, guard, strategies, and tests to keep
signatures concise and consistent.
"""

from typing import Iterable, Literal, Mapping, Protocol, TypeAlias

StrategyName: TypeAlias = Literal["unit", "efraimidis", "sequential_poisson"]
EngineState: TypeAlias = Literal["empty", "filling", "full", "overflowed"]
WeightedPairs: TypeAlias = Mapping[object, float] | Iterable[tuple[object, float]]


class RandomSource(Protocol):
    def random(self) -> float: ...
