"""Analysis tools for learned Blotto strategies.

Provides tools for:
- Head-to-head play between learned mixed strategies
- Statistical summaries (confidence intervals, significance tests)
"""

from .headtohead import (
    HeadToHeadResult,
    play_head_to_head,
    compare_approaches,
    load_strategies,
)
from .statistics import (
    ConfidenceInterval,
    ComparisonResult,
    compute_confidence_interval,
    compute_bootstrap_ci,
    compare_utilities,
    compare_mean,
)

__all__ = [
    # Head-to-head
    'HeadToHeadResult',
    'play_head_to_head',
    'compare_approaches',
    'load_strategies',
    # Statistics
    'ConfidenceInterval',
    'ComparisonResult',
    'compute_confidence_interval',
    'compute_bootstrap_ci',
    'compare_utilities',
    'compare_mean',
]
