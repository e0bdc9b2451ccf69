"""
Regeneration of a losing strategy pool.

One generation step:
1. Rank the loser's schemes by co-evolution fitness
2. Copy elites unchanged
3. Select parents (tournament or roulette)
4. Create children via battlefield crossover
5. Mutate children with a small probability
6. Reject duplicates until the pool is full again
7. Seed the new pool's probabilities (elites keep their learned mass)
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional

import numpy as np

from ..core.errors import InfeasiblePoolSizeError
from ..core.scheme import Scheme
from .fitness import rank_schemes
from .operators import (
    SELECTION_OPERATORS,
    CROSSOVER_OPERATORS,
    MUTATION_OPERATORS,
    default_tournament_size,
    elitism_count,
    elitism_selection,
    get_operator,
)
from .strategy import StrategyPool

logger = logging.getLogger(__name__)


@dataclass
class EvolutionConfig:
    """Configuration for regenerating a losing pool."""
    elitism_rate: float = 0.2
    mutation_rate: float = 0.05

    # None derives max(ceil(elitism_rate * pool_size), 5)
    tournament_size: Optional[int] = None

    # Operator choices
    selection: str = 'tournament'   # 'tournament' or 'roulette'
    crossover: str = 'battlefield'
    mutation: str = 'swap'          # 'swap' or 'deficit'

    # Bound on rejected children before declaring the pool size infeasible
    max_attempts_per_scheme: int = 1000

    def validate(self) -> None:
        """Raise ValueError on out-of-range settings."""
        if not 0.0 <= self.elitism_rate <= 1.0:
            raise ValueError(f"Elitism rate {self.elitism_rate} out of range [0, 1]")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError(f"Mutation rate {self.mutation_rate} out of range [0, 1]")
        if self.tournament_size is not None and self.tournament_size < 1:
            raise ValueError(f"Tournament size must be positive, got {self.tournament_size}")
        if self.max_attempts_per_scheme < 1:
            raise ValueError(
                f"max_attempts_per_scheme must be positive, got {self.max_attempts_per_scheme}"
            )
        get_operator(SELECTION_OPERATORS, self.selection)
        get_operator(CROSSOVER_OPERATORS, self.crossover)
        get_operator(MUTATION_OPERATORS, self.mutation)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvolutionConfig':
        return cls(**data)


class EvolutionaryOperator:
    """
    Produces the next generation of a losing pool.

    Each operator kind is pluggable by name (see EvolutionConfig); the
    operator is bound to one random generator so runs are reproducible.
    """

    def __init__(
        self,
        config: Optional[EvolutionConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config or EvolutionConfig()
        self.config.validate()
        self.rng = rng if rng is not None else np.random.default_rng()
        self._select = get_operator(SELECTION_OPERATORS, self.config.selection)
        self._crossover = get_operator(CROSSOVER_OPERATORS, self.config.crossover)
        self._mutate = get_operator(MUTATION_OPERATORS, self.config.mutation)

    def tournament_size(self, pool_size: int) -> int:
        if self.config.tournament_size is not None:
            return self.config.tournament_size
        return default_tournament_size(pool_size, self.config.elitism_rate)

    def breed(
        self,
        ranked: list,
        troop_budget: int,
        opponent: Optional[StrategyPool] = None,
    ) -> Scheme:
        """
        Create one (possibly mutated) child from the ranked schemes.

        Args:
            ranked: Schemes in descending fitness order
            troop_budget: Budget the child must use
            opponent: Opposing pool, required by the deficit mutation

        Returns:
            Child scheme
        """
        parent1, parent2 = self._select(
            ranked, self.rng, self.tournament_size(len(ranked))
        )
        child = self._crossover(parent1, parent2, troop_budget, self.rng)

        if self.rng.random() < self.config.mutation_rate:
            self._mutate(child, self.rng, opponent)
            child.validate(troop_budget)

        return child

    def evolve(
        self,
        loser: StrategyPool,
        opponent: Optional[StrategyPool] = None,
    ) -> StrategyPool:
        """
        Regenerate a losing pool.

        Args:
            loser: Pool that lost the match (expected values populated)
            opponent: Winning pool; required when mutation='deficit'

        Returns:
            New pool of the same size with fresh learning state

        Raises:
            InfeasiblePoolSizeError: When enough unique children cannot be bred
        """
        if self.config.mutation == 'deficit' and opponent is None:
            raise ValueError("Deficit mutation needs the opponent pool")

        pool_size = len(loser)
        troop_budget = loser.troop_budget
        ranked = rank_schemes(loser.schemes)

        # 1. Elites
        n_elite = elitism_count(pool_size, self.config.elitism_rate)
        elites = elitism_selection(ranked, n_elite)
        next_generation: Dict[tuple, Scheme] = {s.key: s for s in elites}

        # 2. Children, rejecting duplicates
        max_attempts = self.config.max_attempts_per_scheme * pool_size
        attempts = 0
        rejected = 0
        while len(next_generation) < pool_size:
            if attempts >= max_attempts:
                raise InfeasiblePoolSizeError(
                    pool_size,
                    len(next_generation),
                    f"no new unique child after {attempts} breeding attempts",
                )
            attempts += 1
            child = self.breed(ranked, troop_budget, opponent)
            if child.key in next_generation:
                rejected += 1
                continue
            next_generation[child.key] = child

        logger.debug(
            "Evolved pool: %d elites, %d children, %d duplicates rejected",
            n_elite, pool_size - n_elite, rejected,
        )

        # 3. Probability seeding: elites keep their mass, children share the rest
        schemes = list(next_generation.values())
        elite_mass = sum(s.average_probability for s in elites)
        n_children = pool_size - n_elite
        child_share = max(0.0, 1.0 - elite_mass) / n_children if n_children else 0.0
        initial = [
            s.average_probability if i < n_elite else child_share
            for i, s in enumerate(schemes)
        ]

        for scheme in schemes:
            scheme.expected_value = 0.0

        return StrategyPool(
            schemes,
            troop_budget,
            loser.rng,
            initial_probabilities=initial,
        )


def evolve(
    loser: StrategyPool,
    rng: np.random.Generator,
    config: Optional[EvolutionConfig] = None,
    opponent: Optional[StrategyPool] = None,
) -> StrategyPool:
    """Convenience wrapper: evolve a losing pool with a one-off operator."""
    return EvolutionaryOperator(config, rng).evolve(loser, opponent)
