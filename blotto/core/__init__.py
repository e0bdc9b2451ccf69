"""Core Blotto entities: schemes, payoffs and typed failures."""

from .errors import (
    BlottoError,
    ConfigurationError,
    AllocationInvariantError,
    InfeasiblePoolSizeError,
)
from .scheme import Scheme, create_random_scheme, random_allocation, count_allocations
from .payoff import PayoffResult, score, utility, outcomes_against, outcome_matrix

__all__ = [
    'BlottoError',
    'ConfigurationError',
    'AllocationInvariantError',
    'InfeasiblePoolSizeError',
    'Scheme',
    'create_random_scheme',
    'random_allocation',
    'count_allocations',
    'PayoffResult',
    'score',
    'utility',
    'outcomes_against',
    'outcome_matrix',
]
