"""
Co-evolution fitness for strategy pools.

A scheme's fitness is its expected payoff against the opponent's current
learned mixture (average probabilities). This differs from the round-by-round
regret of the pool itself, which only compares schemes within one pool.

The fitness pass also ranks each pool so elitism and selection can work
from a reproducible total order.
"""

from typing import List, Sequence, TYPE_CHECKING

import numpy as np

from ..core.payoff import outcome_matrix
from ..core.scheme import Scheme, troop_matrix

if TYPE_CHECKING:
    from .strategy import StrategyPool

# Expected values closer than this are considered tied
FITNESS_TOLERANCE = 1e-12


def compute_expected_values(
    pool_a: 'StrategyPool',
    pool_b: 'StrategyPool',
) -> None:
    """
    Set every scheme's expected_value against the other pool's mixture.

    Args:
        pool_a: First pool
        pool_b: Second pool
    """
    for scheme in pool_a:
        scheme.expected_value = 0.0
    for scheme in pool_b:
        scheme.expected_value = 0.0

    outcomes = outcome_matrix(pool_a.troops, pool_b.troops)
    values_a = outcomes @ pool_b.average_probabilities
    values_b = -(outcomes.T @ pool_a.average_probabilities)

    for scheme, value in zip(pool_a, values_a):
        scheme.expected_value = float(value)
    for scheme, value in zip(pool_b, values_b):
        scheme.expected_value = float(value)


def _tie_scores(schemes: Sequence[Scheme]) -> List[int]:
    """Net head-to-head outcome of each scheme against the others in its group."""
    if len(schemes) < 2:
        return [0] * len(schemes)
    troops = troop_matrix(schemes)
    return outcome_matrix(troops, troops).sum(axis=1).tolist()


def rank_schemes(schemes: Sequence[Scheme]) -> List[Scheme]:
    """
    Order schemes from fittest to least fit.

    Primary key is expected value (descending). Schemes whose expected
    values tie are ordered by how many tied peers they beat minus lose to,
    then by allocation content, so the order never depends on identity.

    Args:
        schemes: Schemes with expected_value populated

    Returns:
        New list in descending fitness order
    """
    by_value = sorted(schemes, key=lambda s: -s.expected_value)

    ranked: List[Scheme] = []
    group: List[Scheme] = []
    for scheme in by_value:
        if group and abs(group[0].expected_value - scheme.expected_value) > FITNESS_TOLERANCE:
            ranked.extend(_order_tied(group))
            group = []
        group.append(scheme)
    ranked.extend(_order_tied(group))
    return ranked


def _order_tied(group: List[Scheme]) -> List[Scheme]:
    if len(group) < 2:
        return list(group)
    scores = _tie_scores(group)
    keyed = sorted(
        zip(group, scores),
        key=lambda pair: (-pair[1], tuple(-t for t in pair[0].troops)),
    )
    return [scheme for scheme, _ in keyed]


def sort_pool(pool: 'StrategyPool') -> None:
    """Reorder a pool in place into descending fitness order."""
    ranked = rank_schemes(pool.schemes)
    pool.reorder([pool.index_of(s) for s in ranked])


def evaluate_fitness(pool_a: 'StrategyPool', pool_b: 'StrategyPool') -> None:
    """
    Co-evolution fitness pass over two opposing pools.

    Resets and recomputes expected values for both pools, then sorts each
    pool in descending fitness order.

    Args:
        pool_a: First player's pool
        pool_b: Second player's pool
    """
    compute_expected_values(pool_a, pool_b)
    sort_pool(pool_a)
    sort_pool(pool_b)


def compare_schemes(scheme1: Scheme, scheme2: Scheme) -> int:
    """
    Compare two evaluated schemes.

    Returns:
        1 if scheme1 ranks higher
        -1 if scheme2 ranks higher
        0 if they are the same allocation
    """
    if scheme1 == scheme2:
        return 0
    first = rank_schemes([scheme1, scheme2])[0]
    return 1 if first is scheme1 else -1
