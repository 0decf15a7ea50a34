"""
Purpose
-------
Unit tests for `sampling.reservoir.key_strategies`.

Key behaviors
-------------
- Score formulas for "unit", "efraimidis", and "sequential_poisson".
- Heavier weights produce larger scores for a fixed draw.
- Degeneracy detection: non-finite scores, collapse to the boundary value,
  and subnormal scores.
- A-ES log keys stay distinct for close draws under very large weights.
- Unknown strategy tags are rejected.

Conventions
-----------
- Draws and weights are chosen so the expected scores are exact in binary
  floating point.

Downstream usage
----------------
- Run via `pytest -q tests/test_sampling`.
"""

import math

import pytest

from sampling.reservoir.key_strategies import STRATEGIES, get_strategy

SCORE_TUPLES = [
    ("unit", 0.375, 1.0, 0.375),
    ("efraimidis", 0.25, 2.0, -0.6931471805599453),
    ("efraimidis", 0.5, 0.5, -1.3862943611198906),
    ("efraimidis", 0.5, 1.0, -0.6931471805599453),
    ("sequential_poisson", 0.5, 2.0, -0.25),
    ("sequential_poisson", 0.25, 0.5, -0.5),
]


@pytest.mark.parametrize("name, draw, weight, expected_score", SCORE_TUPLES)
def test_strategy_scores(name: str, draw: float, weight: float, expected_score: float) -> None:
    assert get_strategy(name).score(draw, weight) == pytest.approx(expected_score)


@pytest.mark.parametrize("name", ["efraimidis", "sequential_poisson"])
def test_weighted_strategies_favor_heavier_items(name: str) -> None:
    """
    For a fixed draw, a heavier weight never yields a smaller score.

    Parameters
    ----------
    name : str
        Weighted strategy under test.

    Returns
    -------
    None
    """

    strategy = get_strategy(name)
    scores = [strategy.score(0.3, weight) for weight in (0.5, 1.0, 2.0, 10.0)]
    assert scores == sorted(scores)
    assert len(set(scores)) == len(scores)


def test_accepts_weights_flags() -> None:
    assert get_strategy("unit").accepts_weights is False
    assert get_strategy("efraimidis").accepts_weights is True
    assert get_strategy("sequential_poisson").accepts_weights is True


def test_get_strategy_rejects_unknown_name() -> None:
    with pytest.raises(ValueError, match="Unknown key strategy"):
        get_strategy("priority")


def test_registry_names_match_tags() -> None:
    assert all(name == strategy.name for name, strategy in STRATEGIES.items())


@pytest.mark.parametrize("draw", [0.0, 1e-300, 0.5, 0.999999])
def test_unit_strategy_is_never_degenerate(draw: float) -> None:
    strategy = get_strategy("unit")
    assert strategy.degenerate(draw, strategy.score(draw, 1.0)) is False


EFRAIMIDIS_DEGENERATE_TUPLES = [
    # (draw, weight, expected_degenerate)
    (0.5, 1.0, False),
    (0.0, 1.0, False),
    (0.0, 1e-300, False),
    (0.5, 1e-300, False),
    (0.5, 1e300, False),
    (0.6, 1e15, False),
    (0.5, 1e-310, True),
    (0.5, 1e308, True),
]


@pytest.mark.parametrize("draw, weight, expected", EFRAIMIDIS_DEGENERATE_TUPLES)
def test_efraimidis_degenerate(draw: float, weight: float, expected: bool) -> None:
    """
    A-ES log keys are degenerate once tiny weights push them past the float
    range or huge weights shrink them into the subnormal range.

    Parameters
    ----------
    draw : float
        Uniform draw in [0, 1).
    weight : float
        Item weight.
    expected : bool
        Whether the resulting score must be flagged.

    Returns
    -------
    None

    Notes
    -----
    - A draw of exactly 0.0 maps to -inf for every weight and is legitimate.
    - log(0.5) / 1e-310 overflows to -inf; log(0.5) / 1e308 is subnormal.
    - Weights as large as 1e300 keep a normal key, which the linear form
      `0.5 ** (1 / 1e300)` would have rounded to 1.0.
    """

    strategy = get_strategy("efraimidis")
    score = strategy.score(draw, weight)
    assert strategy.degenerate(draw, score) is expected


def test_efraimidis_degenerate_rejects_non_finite_scores() -> None:
    strategy = get_strategy("efraimidis")
    assert strategy.degenerate(0.5, math.nan) is True
    assert strategy.degenerate(0.5, math.inf) is True
    assert strategy.degenerate(0.5, -math.inf) is True
    assert strategy.degenerate(0.0, -math.inf) is False
    assert strategy.degenerate(0.0, math.nan) is True


SEQUENTIAL_POISSON_DEGENERATE_TUPLES = [
    (0.5, 2.0, False),
    (0.0, 1e-300, False),
    (0.5, 1e-320, True),
    (1e-300, 1e300, True),
    (1e-300, 1e10, True),
]


@pytest.mark.parametrize("draw, weight, expected", SEQUENTIAL_POISSON_DEGENERATE_TUPLES)
def test_sequential_poisson_degenerate(draw: float, weight: float, expected: bool) -> None:
    """
    Sequential Poisson scores are degenerate when `draw / weight` overflows to
    infinity or underflows out of the normal range for a positive draw.

    Parameters
    ----------
    draw : float
        Uniform draw in [0, 1).
    weight : float
        Item weight.
    expected : bool
        Whether the resulting score must be flagged.

    Returns
    -------
    None
    """

    strategy = get_strategy("sequential_poisson")
    score = strategy.score(draw, weight)
    assert strategy.degenerate(draw, score) is expected


def test_efraimidis_keys_resolve_close_draws_under_large_weights() -> None:
    """
    Under a large common weight, keys of close draws stay distinct and keep
    the order of the draws.

    Returns
    -------
    None

    Notes
    -----
    - With weight 1e15, `0.6 ** 1e-15` and `0.55 ** 1e-15` both round to
      0.9999999999999994; the log keys differ in their first significant digit.
    """

    strategy = get_strategy("efraimidis")
    high = strategy.score(0.6, 1e15)
    low = strategy.score(0.55, 1e15)

    assert high > low
    assert strategy.degenerate(0.6, high) is False
    assert strategy.degenerate(0.55, low) is False
