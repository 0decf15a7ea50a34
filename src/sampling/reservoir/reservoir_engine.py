"""
Purpose
-------
Maintain a fixed-capacity random sample of a stream in a single pass, either
uniformly or with inclusion probabilities driven by per-item weights.

Key behaviors
-------------
- `ReservoirEngine.offer(item, weight)` draws one uniform variate from the
  injected random source, turns it into a score through the configured key
  strategy, and keeps the item iff it ranks among the `capacity` largest
  scores seen so far.
- The reservoir is a `heapq` min-heap of `KeyedItem`s: the root is the worst
  retained key and is replaced in place when a better key arrives, giving
  O(log K) work per offer and O(K) memory regardless of stream length.
- Consults an `OverflowGuard` before and after each draw; a tripped guard
  puts the engine in the terminal "overflowed" state.
- `drain()` returns the retained items without consuming them.

Conventions
-----------
- Weights default to 1.0. The "unit" strategy rejects any other weight.
- Failed offers are strongly exception safe: an `InvalidWeightError` leaves
  the reservoir and running state untouched, and a `StreamOverflowError`
  only flips the engine into the overflowed state.
- Not thread-safe. Synchronize calls to `offer(...)` externally or use one
  engine per producer.

Downstream usage
----------------
    engine = ReservoirEngine(capacity=100, rng=np.random.default_rng(7), strategy="efraimidis")
    for item, weight in stream:
        engine.offer(item, weight)
    sample = engine.drain()
"""

import heapq
import math
from numbers import Real
from typing import Any, Iterable, Iterator, Mapping

from infra.logging.infra_logger import InfraLogger, initialize_logger
from sampling.reservoir.key_strategies import KeyStrategy, get_strategy
from sampling.reservoir.keyed_item import KeyedItem
from sampling.reservoir.overflow_guard import OverflowGuard
from sampling.reservoir.reservoir_config import (
    DEFAULT_STRATEGY,
    DEFAULT_WEIGHT,
    MAX_STREAM_SIZE,
)
from sampling.reservoir.reservoir_types import (
    EngineState,
    RandomSource,
    StrategyName,
    WeightedPairs,
)
from sampling.reservoir.sampling_errors import InvalidWeightError, StreamOverflowError


class ReservoirEngine:
    """
    Purpose
    -------
    Single-pass reservoir sampler parameterized by a key strategy.

    Key behaviors
    -------------
    - Admits unconditionally while fewer than `capacity` items are held.
    - Once full, admits an item only if its keyed score beats the current
      worst retained key, which is then evicted and discarded.
    - Tracks stream size and cumulative weight through its overflow guard.

    Parameters
    ----------
    capacity : int
        Maximum number of items retained (K). Zero is allowed and yields an
        engine that never holds anything.
    rng : RandomSource
        Object exposing `random() -> float` in [0, 1), e.g.
        `numpy.random.Generator`. Seed it for reproducible samples.
    strategy : StrategyName, default=DEFAULT_STRATEGY
        "unit", "efraimidis", or "sequential_poisson".
    logger : InfraLogger, optional
        Structured logger; a component logger is created when omitted.
    max_stream_size : int, default=MAX_STREAM_SIZE
        Upper bound on the number of items this engine may consider.

    Attributes
    ----------
    rng : RandomSource
        Source of uniform draws.
    logger : InfraLogger
        Destination for lifecycle and failure events.

    Raises
    ------
    ValueError
        If `capacity` is negative, `strategy` is unknown, or
        `max_stream_size` is smaller than 1.

    Notes
    -----
    - With N items offered and no overflow, `size()` equals `min(N, capacity)`.
    - Under "unit", each of the N items ends up in the sample with
      probability `min(1, capacity / N)` independent of arrival order.
    """

    def __init__(
        self,
        capacity: int,
        rng: RandomSource,
        strategy: StrategyName = DEFAULT_STRATEGY,
        logger: InfraLogger | None = None,
        max_stream_size: int = MAX_STREAM_SIZE,
    ) -> None:
        if capacity < 0:
            raise ValueError(f"capacity must be non-negative, got {capacity}")
        self._capacity = capacity
        self._strategy: KeyStrategy = get_strategy(strategy)
        self._guard = OverflowGuard(max_stream_size)
        self._heap: list[KeyedItem] = []
        self.rng = rng
        if logger is None:
            logger = initialize_logger(component_name="sampling.reservoir_engine")
        self.logger = logger
        self.logger.debug(
            "reservoir_initialized",
            context={
                "capacity": capacity,
                "strategy": self._strategy.name,
                "max_stream_size": max_stream_size,
            },
        )

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def strategy(self) -> StrategyName:
        return self._strategy.name

    @property
    def stream_size(self) -> int:
        """Number of items accepted for consideration, admitted or not."""
        return self._guard.state.stream_size

    @property
    def total_weight(self) -> float:
        return self._guard.state.total_weight

    @property
    def overflowed(self) -> bool:
        return self._guard.state.overflowed

    @property
    def state(self) -> EngineState:
        if self._guard.state.overflowed:
            return "overflowed"
        if self._guard.state.stream_size == 0:
            return "empty"
        if len(self._heap) < self._capacity:
            return "filling"
        return "full"

    def size(self) -> int:
        return len(self._heap)

    def offer(self, item: Any, weight: float | None = None) -> bool:
        """
        Feed one item to the reservoir.

        Parameters
        ----------
        item : Any
            Opaque payload to consider for sampling.
        weight : float, optional
            Positive, finite weight; omitted means 1.0.

        Returns
        -------
        bool
            True if the item was admitted into the reservoir, False if it was
            rejected as not better than the current worst retained key.

        Raises
        ------
        StreamOverflowError
            If the engine already overflowed, or if this item pushes the
            running state past the guard's bounds.
        InvalidWeightError
            If `weight` is invalid for the configured strategy.

        Notes
        -----
        - Order of checks: overflow state, weight validation, admission
          bounds, draw and score precision. Running state is only updated
          after all of them pass.
        """

        self._guard.ensure_open()
        checked_weight = self._validate_weight(weight)
        try:
            self._guard.check_admission(checked_weight)
            if self._capacity == 0:
                self._guard.record(checked_weight)
                return False
            draw = float(self.rng.random())
            score = self._strategy.score(draw, checked_weight)
            self._guard.check_score(self._strategy, draw, score)
        except StreamOverflowError as exc:
            self.logger.error(
                "stream_overflow",
                msg=str(exc),
                context={
                    "strategy": self._strategy.name,
                    "stream_size": self._guard.state.stream_size,
                    "total_weight": self._guard.state.total_weight,
                    "reservoir_size": len(self._heap),
                },
            )
            raise

        self._guard.record(checked_weight)
        keyed = KeyedItem(item=item, score=score)
        if len(self._heap) < self._capacity:
            heapq.heappush(self._heap, keyed)
            return True
        if keyed > self._heap[0]:
            heapq.heapreplace(self._heap, keyed)
            return True
        return False

    def offer_all(self, items: Iterable[Any]) -> int:
        """
        Feed every item of `items` with the default weight, in order.

        Returns
        -------
        int
            Number of items admitted at the time they were offered.

        Raises
        ------
        StreamOverflowError
            Propagated from `offer`; items offered before the failure stay
            applied.
        """

        return sum(1 for item in items if self.offer(item))

    def offer_weighted(
        self,
        pairs: WeightedPairs | Iterable[Any],
        weights: Iterable[float] | None = None,
    ) -> int:
        """
        Feed weighted items in order.

        Parameters
        ----------
        pairs : WeightedPairs or Iterable[Any]
            `(item, weight)` pairs or a mapping of items to weights. When
            `weights` is given, a plain iterable of items instead.
        weights : Iterable[float], optional
            Weights aligned with the items of `pairs`, consumed in lockstep.

        Returns
        -------
        int
            Number of items admitted at the time they were offered.

        Raises
        ------
        TypeError
            If `weights` is combined with a mapping.
        InvalidWeightError
            On the first invalid weight, or when items and weights run out at
            different positions; earlier pairs stay applied.
        StreamOverflowError
            Propagated from `offer`; earlier pairs stay applied.
        """

        if isinstance(pairs, Mapping):
            if weights is not None:
                raise TypeError("weights cannot be combined with a mapping of items to weights")
            pairs = pairs.items()
        elif weights is not None:
            pairs = _aligned_pairs(pairs, weights)
        return sum(1 for item, weight in pairs if self.offer(item, weight))

    def drain(self) -> list[Any]:
        """
        Return the items currently held, in unspecified order.

        Returns
        -------
        list[Any]
            A new list; mutating it does not affect the reservoir, and the
            reservoir keeps its contents.

        Notes
        -----
        - Draining an overflowed engine is allowed, but the result was
          computed under degraded precision and a WARNING is logged.
        """

        if self._guard.state.overflowed:
            self.logger.warning(
                "sample_drained_after_overflow",
                msg="Sample was computed under degraded precision",
                context={
                    "overflow_reason": self._guard.state.overflow_reason,
                    "reservoir_size": len(self._heap),
                },
            )
        return [keyed.item for keyed in self._heap]

    def _validate_weight(self, weight: float | None) -> float:
        if weight is None:
            return DEFAULT_WEIGHT
        if isinstance(weight, bool) or not isinstance(weight, Real):
            raise InvalidWeightError(f"Weight must be a real number, got {weight!r}")
        checked = float(weight)
        if math.isnan(checked) or math.isinf(checked) or checked <= 0.0:
            raise InvalidWeightError(f"Weight must be positive and finite, got {weight!r}")
        if not self._strategy.accepts_weights and checked != DEFAULT_WEIGHT:
            raise InvalidWeightError(
                f"The {self._strategy.name!r} strategy samples uniformly and only accepts "
                f"weight {DEFAULT_WEIGHT}, got {weight!r}"
            )
        return checked


def _aligned_pairs(items: Iterable[Any], weights: Iterable[float]) -> Iterator[tuple[Any, float]]:
    """Yield `(item, weight)` from two parallel iterables of equal length."""

    try:
        yield from zip(items, weights, strict=True)
    except ValueError as exc:
        raise InvalidWeightError(f"Items and weights differ in length: {exc}") from exc
