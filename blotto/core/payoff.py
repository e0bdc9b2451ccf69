"""
Payoff evaluation for two-player Colonel Blotto.

Battlefield i (0-indexed) is worth i + 1. Whoever commits strictly more
troops to a battlefield collects its weight; ties award nothing. The round
outcome is the sign of the score difference, so the game is zero-sum:
score(a, b).outcome == -score(b, a).outcome.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Any, Sequence, Union

import numpy as np

from .scheme import Scheme

Allocation = Union[Scheme, Sequence[int]]

# Range of a single round's outcome, used to size the regret scale
MIN_UTILITY = -1
MAX_UTILITY = 1


@dataclass(frozen=True)
class PayoffResult:
    """Weighted battlefield scores and the zero-sum outcome for player a."""
    a_score: int
    b_score: int
    outcome: int  # +1, -1 or 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _troops(allocation: Allocation) -> Sequence[int]:
    return allocation.troops if isinstance(allocation, Scheme) else allocation


def battlefield_weights(n_battlefields: int) -> np.ndarray:
    """Value of each battlefield: 1, 2, ..., n."""
    return np.arange(1, n_battlefields + 1, dtype=np.int64)


def score(a: Allocation, b: Allocation) -> PayoffResult:
    """
    Score allocation a against allocation b.

    Args:
        a: Scheme or troop sequence for player a
        b: Scheme or troop sequence for player b

    Returns:
        PayoffResult with both weighted scores and the outcome for a
    """
    troops_a = _troops(a)
    troops_b = _troops(b)
    if len(troops_a) != len(troops_b):
        raise ValueError(
            f"Battlefield count mismatch: {len(troops_a)} vs {len(troops_b)}"
        )

    a_score = 0
    b_score = 0
    for i, (ta, tb) in enumerate(zip(troops_a, troops_b)):
        if ta > tb:
            a_score += i + 1
        elif tb > ta:
            b_score += i + 1

    outcome = (a_score > b_score) - (a_score < b_score)
    return PayoffResult(a_score=a_score, b_score=b_score, outcome=outcome)


def utility(a: Allocation, b: Allocation) -> int:
    """Outcome of a against b: 1, -1 or 0."""
    return score(a, b).outcome


def outcomes_against(troops: np.ndarray, theirs: Allocation) -> np.ndarray:
    """
    Outcome of every row of a troop matrix against one allocation.

    Args:
        troops: (k, n) array of allocations
        theirs: Opponent allocation of length n

    Returns:
        (k,) integer array of outcomes in {-1, 0, 1}
    """
    other = np.asarray(_troops(theirs), dtype=np.int64)
    if troops.shape[1] != other.shape[0]:
        raise ValueError(
            f"Battlefield count mismatch: {troops.shape[1]} vs {other.shape[0]}"
        )
    weights = battlefield_weights(other.shape[0])
    mine = (troops > other) @ weights
    their = (troops < other) @ weights
    return np.sign(mine - their).astype(np.int64)


def outcome_matrix(troops_a: np.ndarray, troops_b: np.ndarray) -> np.ndarray:
    """
    Pairwise outcomes between two sets of allocations.

    Args:
        troops_a: (ka, n) array
        troops_b: (kb, n) array

    Returns:
        (ka, kb) array where entry [i, j] is the outcome of a_i against b_j
    """
    if troops_a.shape[1] != troops_b.shape[1]:
        raise ValueError(
            f"Battlefield count mismatch: {troops_a.shape[1]} vs {troops_b.shape[1]}"
        )
    weights = battlefield_weights(troops_a.shape[1])
    a = troops_a[:, None, :]
    b = troops_b[None, :, :]
    a_scores = (a > b) @ weights
    b_scores = (a < b) @ weights
    return np.sign(a_scores - b_scores).astype(np.int64)
