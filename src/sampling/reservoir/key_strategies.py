"""
Purpose
-------
Turn a uniform draw and an item weight into the score that ranks the item
inside the reservoir, and recognize scores that finite precision has ruined.

Key behaviors
-------------
- Provides three tagged strategies, selected once per engine:
  - "unit": score = draw (classical uniform reservoir sampling).
  - "efraimidis": score = log(draw) / weight, the logarithm of the A-ES
    key draw ** (1 / weight) (weighted sampling without replacement).
  - "sequential_poisson": score = -(draw / weight) (order sampling that
    keeps the smallest draw-to-weight ratios).
- Each strategy reports whether a computed score is degenerate, i.e. it
  collapsed to a boundary value shared by many distinct draws, lost
  significant bits in the subnormal range, or stopped being finite.

Conventions
-----------
- Every strategy is arranged so that the reservoir keeps the largest scores.
- Draws lie in [0, 1). A draw of exactly 0.0 maps to the boundary score
  (0.0, or -inf under "efraimidis") legitimately and is not treated as
  degenerate.

Downstream usage
----------------
    strategy = get_strategy("efraimidis")
    score = strategy.score(draw, weight)
    if strategy.degenerate(draw, score):
        ...
"""

import math
from dataclasses import dataclass
from typing import Callable

from sampling.reservoir.reservoir_config import MIN_NORMAL_SCORE
from sampling.reservoir.reservoir_types import StrategyName


@dataclass(frozen=True)
class KeyStrategy:
    """
    Purpose
    -------
    Bundle the key formula of one sampling scheme with its precision check.

    Parameters
    ----------
    name : StrategyName
        Tag under which the strategy is registered.
    accepts_weights : bool
        False for the unweighted scheme; any weight other than 1.0 is then a
        caller error.
    score : Callable[[float, float], float]
        Maps (draw, weight) to a score; larger scores are kept.
    degenerate : Callable[[float, float], bool]
        Maps (draw, score) to True when the score can no longer be trusted
        to order items correctly.
    """

    name: StrategyName
    accepts_weights: bool
    score: Callable[[float, float], float]
    degenerate: Callable[[float, float], bool]


def _unit_score(draw: float, _weight: float) -> float:
    return draw


def _unit_degenerate(_draw: float, _score: float) -> bool:
    return False


def _efraimidis_score(draw: float, weight: float) -> float:
    """
    A-ES key in log space.

    Notes
    -----
    - `log` is monotonic, so ranking by `log(draw) / weight` keeps exactly the
      items that `draw ** (1 / weight)` would keep.
    - The linear form crowds every key into the last few ulps below 1.0 once
      weights grow large; the log form keeps full relative precision for any
      weight whose quotient stays in the normal range.
    """

    if draw == 0.0:
        return -math.inf
    return math.log(draw) / weight


def _efraimidis_degenerate(draw: float, score: float) -> bool:
    """
    Flag A-ES log keys that lost the information carried by the draw.

    Notes
    -----
    - Tiny weights push `log(draw) / weight` past the float range to -inf.
    - Huge weights shrink it into the subnormal range or to -0.0, where
      distinct draws share the same few representable values.
    """

    if draw == 0.0:
        return score != -math.inf
    if not math.isfinite(score):
        return True
    return -score < MIN_NORMAL_SCORE


def _sequential_poisson_score(draw: float, weight: float) -> float:
    return -(draw / weight)


def _sequential_poisson_degenerate(draw: float, score: float) -> bool:
    if not math.isfinite(score):
        return True
    return draw > 0.0 and -score < MIN_NORMAL_SCORE


STRATEGIES: dict[StrategyName, KeyStrategy] = {
    "unit": KeyStrategy(
        name="unit",
        accepts_weights=False,
        score=_unit_score,
        degenerate=_unit_degenerate,
    ),
    "efraimidis": KeyStrategy(
        name="efraimidis",
        accepts_weights=True,
        score=_efraimidis_score,
        degenerate=_efraimidis_degenerate,
    ),
    "sequential_poisson": KeyStrategy(
        name="sequential_poisson",
        accepts_weights=True,
        score=_sequential_poisson_score,
        degenerate=_sequential_poisson_degenerate,
    ),
}


def get_strategy(name: str) -> KeyStrategy:
    """
    Look up a registered key strategy by tag.

    Parameters
    ----------
    name : str
        One of "unit", "efraimidis", "sequential_poisson".

    Returns
    -------
    KeyStrategy
        The registered strategy.

    Raises
    ------
    ValueError
        If `name` is not a registered strategy tag.
    """

    try:
        return STRATEGIES[name]  # type: ignore[index]
    except KeyError:
        raise ValueError(
            f"Unknown key strategy {name!r}; expected one of {sorted(STRATEGIES)}"
        ) from None
