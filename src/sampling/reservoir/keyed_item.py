"""
Purpose
-------
Provide the ordering primitive used by the reservoir: an item paired with a
randomized score, totally ordered even when scores tie.

Key behaviors
-------------
- `KeyedItem` is immutable and carries a process-wide sequence number
  assigned at construction.
- `compare_keyed(a, b)` orders by score first and by sequence number on an
  exact score tie, so it returns 0 only when `a is b`.
- Equality and hashing are identity based; two keyed items wrapping equal
  payloads with equal scores are still distinct reservoir entries.

Conventions
-----------
- Larger scores are better; the reservoir evicts the smallest keyed item.
- Between equal scores the earlier-constructed keyed item sorts first and is
  therefore evicted first.

Downstream usage
----------------
The reservoir engine stores `KeyedItem` instances in a `heapq` min-heap, which
relies on `<` only. Tests and callers needing a three-way result use
`compare_keyed`.
"""

import itertools
from dataclasses import dataclass, field
from typing import Any

_SEQUENCE = itertools.count()


@dataclass(frozen=True, eq=False)
class KeyedItem:
    """
    Purpose
    -------
    Wrap a sampled item with the score that ranks it inside the reservoir.

    Parameters
    ----------
    item : Any
        Opaque payload supplied by the caller; never inspected.
    score : float
        Randomized key derived from a uniform draw and the item's weight.

    Attributes
    ----------
    seq : int
        Monotonically increasing tie-break token, unique per instance.

    Notes
    -----
    - Frozen: neither the payload reference, the score, nor the sequence
      number can change after construction.
    """

    item: Any
    score: float
    seq: int = field(default_factory=lambda: next(_SEQUENCE), init=False)

    def __lt__(self, other: "KeyedItem") -> bool:
        if not isinstance(other, KeyedItem):
            return NotImplemented
        return compare_keyed(self, other) < 0

    def __le__(self, other: "KeyedItem") -> bool:
        if not isinstance(other, KeyedItem):
            return NotImplemented
        return compare_keyed(self, other) <= 0

    def __gt__(self, other: "KeyedItem") -> bool:
        if not isinstance(other, KeyedItem):
            return NotImplemented
        return compare_keyed(self, other) > 0

    def __ge__(self, other: "KeyedItem") -> bool:
        if not isinstance(other, KeyedItem):
            return NotImplemented
        return compare_keyed(self, other) >= 0

    def __repr__(self) -> str:
        return f"KeyedItem(item={self.item!r}, score={self.score!r}, seq={self.seq})"


def compare_keyed(a: KeyedItem, b: KeyedItem) -> int:
    """
    Three-way comparison of two keyed items.

    Parameters
    ----------
    a : KeyedItem
        Left operand.
    b : KeyedItem
        Right operand.

    Returns
    -------
    int
        -1, 0 or 1 as `a` sorts before, equal to, or after `b`. Zero is
        returned only when `a` and `b` are the same instance.

    Raises
    ------
    TypeError
        If either operand is not a `KeyedItem` (including `None`).
    """

    if not isinstance(a, KeyedItem) or not isinstance(b, KeyedItem):
        raise TypeError(
            f"compare_keyed expects two KeyedItem operands, got "
            f"{type(a).__name__} and {type(b).__name__}"
        )
    if a.score < b.score:
        return -1
    if a.score > b.score:
        return 1
    if a.seq < b.seq:
        return -1
    if a.seq > b.seq:
        return 1
    return 0
