"""Colonel Blotto equilibrium search: regret matching plus co-evolution."""

from .core import (
    Scheme,
    score,
    utility,
    BlottoError,
    ConfigurationError,
    AllocationInvariantError,
    InfeasiblePoolSizeError,
)
from .evolution import (
    StrategyPool,
    new_pool,
    evaluate_fitness,
    EvolutionaryOperator,
    EvolutionConfig,
    CoevolutionEngine,
    CoevolutionConfig,
)

__version__ = '0.1.0'

__all__ = [
    'Scheme',
    'score',
    'utility',
    'BlottoError',
    'ConfigurationError',
    'AllocationInvariantError',
    'InfeasiblePoolSizeError',
    'StrategyPool',
    'new_pool',
    'evaluate_fitness',
    'EvolutionaryOperator',
    'EvolutionConfig',
    'CoevolutionEngine',
    'CoevolutionConfig',
]
