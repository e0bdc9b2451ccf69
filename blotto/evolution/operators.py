"""
Evolutionary operators: selection, crossover, and mutation.

These operators drive the regeneration of a losing pool by:
- Selecting fit schemes as parents (tournament or roulette wheel)
- Combining parent allocations battlefield by battlefield
- Introducing variation by swapping troops or chasing opponent deficits

Every operator preserves the troop budget, and all randomness comes from an
injected numpy Generator.
"""

import math
from typing import List, Tuple, Optional, Sequence, Callable, Dict, TYPE_CHECKING

import numpy as np

from ..core.scheme import Scheme

if TYPE_CHECKING:
    from .strategy import StrategyPool


# =============================================================================
# Selection Operators
# =============================================================================

def elitism_count(pool_size: int, elitism_rate: float) -> int:
    """Number of schemes copied unchanged into the next generation."""
    return min(pool_size, int(math.ceil(elitism_rate * pool_size)))


def default_tournament_size(pool_size: int, elitism_rate: float) -> int:
    """Tournament size max(ceil(elitism_rate * k), 5)."""
    return max(int(math.ceil(elitism_rate * pool_size)), 5)


def elitism_selection(ranked: Sequence[Scheme], n_elite: int) -> List[Scheme]:
    """
    Preserve the top n_elite schemes unchanged.

    Args:
        ranked: Schemes in descending fitness order
        n_elite: Number of elite schemes

    Returns:
        Copies of the first n_elite schemes
    """
    return [s.copy() for s in ranked[:n_elite]]


def _tournament(
    ranked: Sequence[Scheme],
    tournament_size: int,
    rng: np.random.Generator,
    exclude: Optional[int] = None,
) -> int:
    # Rank position is the fitness order, so the best contestant is the lowest index
    if exclude is None:
        contestants = rng.integers(0, len(ranked), size=tournament_size)
        return int(contestants.min())
    contestants = rng.integers(0, len(ranked) - 1, size=tournament_size)
    best = int(contestants.min())
    return best + 1 if best >= exclude else best


def tournament_selection(
    ranked: Sequence[Scheme],
    rng: np.random.Generator,
    tournament_size: int = 5,
) -> Tuple[Scheme, Scheme]:
    """
    Pick two parents by tournament selection.

    Each tournament draws tournament_size schemes uniformly with replacement
    and keeps the fittest. The second tournament draws only from the schemes
    other than the first winner (when the pool has more than one scheme).

    Args:
        ranked: Schemes in descending fitness order
        rng: Random generator
        tournament_size: Contestants per tournament

    Returns:
        Tuple of two parent schemes
    """
    first = _tournament(ranked, tournament_size, rng)
    if len(ranked) == 1:
        return ranked[first], ranked[first]
    second = _tournament(ranked, tournament_size, rng, exclude=first)
    return ranked[first], ranked[second]


def roulette_selection(
    ranked: Sequence[Scheme],
    rng: np.random.Generator,
    tournament_size: int = 5,
) -> Tuple[Scheme, Scheme]:
    """
    Pick two parents by fitness-proportionate (roulette wheel) selection.

    Weights are the positive part of each scheme's expected value,
    normalized. With no positive fitness in the pool every scheme is
    equally likely. tournament_size is accepted for a uniform signature
    and ignored.

    Args:
        ranked: Schemes in descending fitness order
        rng: Random generator
        tournament_size: Unused

    Returns:
        Tuple of two distinct parent schemes (when the pool allows it)
    """
    weights = np.array([max(s.expected_value, 0.0) for s in ranked], dtype=np.float64)
    total = weights.sum()
    if total <= 0:
        weights = np.full(len(ranked), 1.0 / len(ranked))
    else:
        weights = weights / total

    first = int(rng.choice(len(ranked), p=weights))
    if len(ranked) == 1:
        return ranked[first], ranked[first]

    # Second parent comes from the remaining schemes
    remaining = weights.copy()
    remaining[first] = 0.0
    if remaining.sum() <= 0:
        remaining = np.full(len(ranked), 1.0)
        remaining[first] = 0.0
    remaining = remaining / remaining.sum()
    second = int(rng.choice(len(ranked), p=remaining))
    return ranked[first], ranked[second]


SELECTION_OPERATORS: Dict[str, Callable] = {
    'tournament': tournament_selection,
    'roulette': roulette_selection,
}


# =============================================================================
# Crossover Operators
# =============================================================================

def battlefield_crossover(
    parent1: Scheme,
    parent2: Scheme,
    troop_budget: int,
    rng: np.random.Generator,
) -> Scheme:
    """
    Build a child by copying whole battlefields from random parents.

    Battlefields are visited in shuffled order. Each visited battlefield
    takes its troop count from a randomly chosen parent, and the scan stops
    once the running total meets or exceeds the budget. The last visited
    battlefield then absorbs the signed difference.

    Example:
        Parent 1: [50, 50, 0]   Parent 2: [0, 30, 70], budget 100
        Visit order 2, 0 with parents 2, 1:
        Child: [50, 0, 70] -> total 120 -> battlefield 0 adjusted by -20
        Child: [30, 0, 70]

    Args:
        parent1: First parent
        parent2: Second parent
        troop_budget: Budget the child must use exactly
        rng: Random generator

    Returns:
        A validated child scheme
    """
    n_battlefields = parent1.n_battlefields
    if parent2.n_battlefields != n_battlefields:
        raise ValueError(
            f"Parents disagree on battlefield count: {n_battlefields} vs {parent2.n_battlefields}"
        )

    parents = (parent1, parent2)
    child = [0] * n_battlefields
    order = [int(b) for b in rng.permutation(n_battlefields)]

    remaining = troop_budget
    last_visited = -1
    for battlefield in order:
        if remaining <= 0:
            break
        parent = parents[int(rng.integers(0, 2))]
        child[battlefield] = parent.troops[battlefield]
        remaining -= parent.troops[battlefield]
        last_visited = battlefield

    # Running total overshot (remaining < 0) or never reached the budget
    if remaining != 0 and last_visited >= 0:
        child[last_visited] += remaining

    scheme = Scheme(troops=child)
    scheme.validate(troop_budget)
    return scheme


CROSSOVER_OPERATORS: Dict[str, Callable] = {
    'battlefield': battlefield_crossover,
}


# =============================================================================
# Mutation Operators
# =============================================================================

def swap_mutation(
    scheme: Scheme,
    rng: np.random.Generator,
    opponent: Optional['StrategyPool'] = None,
) -> bool:
    """
    Swap the troop counts of two distinct random battlefields (in place).

    Args:
        scheme: Scheme to mutate
        rng: Random generator
        opponent: Unused; accepted for a uniform signature

    Returns:
        True if the allocation changed
    """
    n_battlefields = scheme.n_battlefields
    if n_battlefields < 2:
        return False
    battlefield1 = int(rng.integers(0, n_battlefields))
    battlefield2 = int(rng.integers(0, n_battlefields - 1))
    if battlefield2 >= battlefield1:
        battlefield2 += 1
    before = scheme.troops[battlefield1], scheme.troops[battlefield2]
    scheme.swap_troops(battlefield1, battlefield2)
    return before[0] != before[1]


def battlefield_loss_profile(
    scheme: Scheme,
    opponent: 'StrategyPool',
) -> Tuple[np.ndarray, np.ndarray]:
    """
    How often and by how much a scheme is outnumbered per battlefield.

    Opponent schemes are weighted by their average probability; an opponent
    that has not learned anything yet (all-zero averages) counts every
    scheme equally.

    Args:
        scheme: Scheme under inspection
        opponent: Opposing pool

    Returns:
        (loss_fraction, largest_deficit), both of shape (n_battlefields,)
    """
    mine = np.asarray(scheme.troops, dtype=np.int64)
    theirs = opponent.troops
    weights = opponent.average_probabilities
    if weights.sum() <= 0:
        weights = np.full(len(opponent), 1.0)
    weights = weights / weights.sum()

    outnumbered = theirs > mine
    loss_fraction = weights @ outnumbered
    deficits = np.where(outnumbered, theirs - mine, 0)
    largest_deficit = deficits.max(axis=0)
    return loss_fraction, largest_deficit


def deficit_mutation(
    scheme: Scheme,
    rng: np.random.Generator,
    opponent: Optional['StrategyPool'] = None,
) -> bool:
    """
    Hill-climbing move toward the opponent's strongest battlefields (in place).

    Finds the battlefield this scheme loses least often (donor) and the one
    it loses most often (recipient). When the recipient is worth more than
    the donor, moves min(largest deficit on the recipient, donor troops).

    Args:
        scheme: Scheme to mutate
        rng: Random generator (unused; the move is deterministic)
        opponent: Opposing pool to search against

    Returns:
        True if troops were moved
    """
    if opponent is None:
        raise ValueError("Deficit mutation needs an opponent pool")

    loss_fraction, largest_deficit = battlefield_loss_profile(scheme, opponent)
    donor = int(np.argmin(loss_fraction))
    # Last maximum, so later (more valuable) battlefields win ties
    recipient = len(loss_fraction) - 1 - int(np.argmax(loss_fraction[::-1]))

    if donor >= recipient:
        return False

    troops_to_move = min(int(largest_deficit[recipient]), scheme.troops[donor])
    if troops_to_move <= 0:
        return False
    scheme.move_troops(recipient, donor, troops_to_move)
    return True


MUTATION_OPERATORS: Dict[str, Callable] = {
    'swap': swap_mutation,
    'deficit': deficit_mutation,
}


def get_operator(registry: Dict[str, Callable], name: str) -> Callable:
    """Look up an operator by name."""
    if name not in registry:
        available = ', '.join(sorted(registry))
        raise ValueError(f"Unknown operator '{name}'. Available: {available}")
    return registry[name]
