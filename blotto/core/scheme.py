"""
Scheme representation: one pure allocation of troops across battlefields.

A Scheme is the Blotto counterpart of an individual in a population. It
carries the allocation itself plus the learning state the owning pool
mirrors onto it (current and time-averaged probability) and the fitness
signal computed by the co-evolution pass.

Key properties:
- Troop total always equals the troop budget
- Equality and hashing by allocation content
- Budget-preserving in-place edits (swap, move)
"""

import math
from dataclasses import dataclass, field
from typing import List, Dict, Any, Sequence

import numpy as np

from .errors import AllocationInvariantError


@dataclass(eq=False)
class Scheme:
    """
    A pure allocation of a troop budget across battlefields.

    Attributes:
        troops: Troops per battlefield, e.g. [10, 0, 25, ...]
        current_probability: Probability of playing this scheme this round
        average_probability: Time-averaged probability (the learned strategy)
        expected_value: Expected payoff against the opponent's average mixture
    """
    troops: List[int]
    current_probability: float = 0.0
    average_probability: float = 0.0
    expected_value: float = field(default=0.0)

    def __post_init__(self):
        troops = []
        for t in self.troops:
            count = int(t)
            if count != t:
                raise ValueError(
                    f"Non-integer troop count {t!r} in allocation {list(self.troops)}"
                )
            troops.append(count)
        self.troops = troops
        if not self.troops:
            raise ValueError("A scheme needs at least one battlefield")
        for count in self.troops:
            if count < 0:
                raise ValueError(f"Negative troop count in allocation {self.troops}")

    @property
    def n_battlefields(self) -> int:
        """Number of battlefields."""
        return len(self.troops)

    @property
    def total_troops(self) -> int:
        return sum(self.troops)

    @property
    def key(self) -> tuple:
        """Hashable allocation content used for deduplication."""
        return tuple(self.troops)

    def validate(self, troop_budget: int) -> None:
        """Raise AllocationInvariantError unless the troops sum to the budget."""
        if self.total_troops != troop_budget:
            raise AllocationInvariantError(self.troops, troop_budget)

    def swap_troops(self, battlefield1: int, battlefield2: int) -> None:
        """Swap the troop counts of two battlefields."""
        self.troops[battlefield1], self.troops[battlefield2] = (
            self.troops[battlefield2], self.troops[battlefield1]
        )

    def move_troops(self, troops_to: int, troops_from: int, troops_to_move: int) -> None:
        """
        Move troops from one battlefield to another.

        Args:
            troops_to: Battlefield receiving troops
            troops_from: Battlefield giving up troops
            troops_to_move: Number of troops to move
        """
        if troops_to_move < 0 or troops_to_move > self.troops[troops_from]:
            raise ValueError(
                f"Cannot move {troops_to_move} troops from battlefield {troops_from} "
                f"holding {self.troops[troops_from]}"
            )
        self.troops[troops_to] += troops_to_move
        self.troops[troops_from] -= troops_to_move

    def copy(self) -> 'Scheme':
        """Create an independent copy (allocation and probabilities)."""
        return Scheme(
            troops=self.troops.copy(),
            current_probability=self.current_probability,
            average_probability=self.average_probability,
            expected_value=self.expected_value,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            'troops': list(self.troops),
            'average_probability': self.average_probability,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Scheme':
        """Create Scheme from dictionary (e.g., loaded from JSON)."""
        return cls(
            troops=list(data['troops']),
            average_probability=float(data.get('average_probability', 0.0)),
        )

    def describe(self) -> str:
        """One-line table row, e.g. '| 10|  0| 90| Prob: 0.25'."""
        cells = '|'.join(f"{count:3d}" for count in self.troops)
        return f"|{cells}| Prob: {self.average_probability:.4f}"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Scheme):
            return NotImplemented
        return self.troops == other.troops

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return (
            f"Scheme(troops={self.troops}, avg_prob={self.average_probability:.4f}, "
            f"ev={self.expected_value:.4f})"
        )


def random_allocation(
    n_battlefields: int,
    troop_budget: int,
    rng: np.random.Generator,
) -> List[int]:
    """
    Randomly distribute a troop budget across battlefields.

    Battlefields are visited in a shuffled order (reshuffled after every full
    pass). Each visit adds a uniform draw from [0, ceil(remaining / 2)]
    troops, so early battlefields cannot swallow the whole budget.

    Args:
        n_battlefields: Number of battlefields
        troop_budget: Number of troops to allocate
        rng: Random generator

    Returns:
        List of troop counts summing to troop_budget
    """
    troops = [0] * n_battlefields
    order = [int(b) for b in rng.permutation(n_battlefields)]
    remaining = troop_budget

    while remaining > 0:
        amount = int(rng.integers(0, math.ceil(remaining / 2) + 1))
        troops[order.pop()] += amount
        remaining -= amount
        if not order:
            order = [int(b) for b in rng.permutation(n_battlefields)]

    return troops


def create_random_scheme(
    n_battlefields: int,
    troop_budget: int,
    rng: np.random.Generator,
    probability: float = 0.0,
) -> Scheme:
    """
    Create a scheme with a random allocation.

    Args:
        n_battlefields: Number of battlefields
        troop_budget: Troop budget the allocation must use exactly
        rng: Random generator
        probability: Initial current probability

    Returns:
        A validated Scheme
    """
    scheme = Scheme(
        troops=random_allocation(n_battlefields, troop_budget, rng),
        current_probability=probability,
    )
    # A mismatch here is an allocator defect, not a runtime condition
    scheme.validate(troop_budget)
    return scheme


def count_allocations(n_battlefields: int, troop_budget: int) -> int:
    """Number of distinct allocations (compositions of the budget into n parts)."""
    return math.comb(troop_budget + n_battlefields - 1, n_battlefields - 1)


def troop_matrix(schemes: Sequence[Scheme]) -> np.ndarray:
    """Stack scheme allocations into a (k, n_battlefields) integer array."""
    return np.array([s.troops for s in schemes], dtype=np.int64)
