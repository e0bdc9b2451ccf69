"""
Blotto learning and search engine.

This module approximates mixed-strategy equilibria of Colonel Blotto by
combining regret matching over a finite pool of schemes with an
evolutionary operator that regenerates the pool of the losing player.

Key components:
- StrategyPool: Schemes plus a regret-matching mixed strategy over them
- evaluate_fitness: Co-evolution fitness against the opponent's mixture
- EvolutionaryOperator: Elitism, selection, crossover and mutation
- CoevolutionEngine: Reference match loop tying everything together

Example usage:
    import numpy as np
    from blotto.evolution import CoevolutionEngine, CoevolutionConfig

    config = CoevolutionConfig(rounds_per_match=2_000, min_matches=10)
    engine = CoevolutionEngine(config, rng=np.random.default_rng(7))
    result = engine.run()

    print(result.summary())
"""

from .strategy import StrategyPool, new_pool, default_regret_scale
from .fitness import evaluate_fitness, rank_schemes, compare_schemes
from .operators import (
    tournament_selection,
    roulette_selection,
    elitism_selection,
    battlefield_crossover,
    swap_mutation,
    deficit_mutation,
)
from .regeneration import EvolutionaryOperator, EvolutionConfig, evolve
from .history import MatchHistory, MatchStats
from .engine import CoevolutionEngine, CoevolutionConfig, CoevolutionResult, MatchResult

__all__ = [
    # Core classes
    'StrategyPool',
    'EvolutionaryOperator',
    'EvolutionConfig',
    'CoevolutionEngine',
    'CoevolutionConfig',
    'CoevolutionResult',
    'MatchResult',
    'MatchHistory',
    'MatchStats',
    # Pool helpers
    'new_pool',
    'default_regret_scale',
    # Fitness
    'evaluate_fitness',
    'rank_schemes',
    'compare_schemes',
    # Operators
    'tournament_selection',
    'roulette_selection',
    'elitism_selection',
    'battlefield_crossover',
    'swap_mutation',
    'deficit_mutation',
    'evolve',
]
