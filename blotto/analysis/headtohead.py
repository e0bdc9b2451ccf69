"""
Head-to-head play between learned strategies.

Pits the time-averaged mixed strategies produced by different runs (or
different variants) against each other. Each game samples one scheme per
side from the learned distribution and scores it with the Blotto payoff.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Dict, Any, Sequence, Optional

import numpy as np

from ..core.payoff import score
from ..evolution.strategy import StrategyPool
from .statistics import compute_confidence_interval, compare_mean, summarize

logger = logging.getLogger(__name__)


@dataclass
class HeadToHeadResult:
    """Aggregate outcome of many games between two sides."""
    games: int
    a_wins: int = 0
    b_wins: int = 0
    ties: int = 0
    a_payoff: int = 0   # Summed weighted battlefield scores
    b_payoff: int = 0
    utilities: List[int] = field(default_factory=list)  # Outcome for side a per game

    @property
    def a_win_rate(self) -> float:
        return self.a_wins / self.games if self.games else 0.0

    @property
    def mean_utility(self) -> float:
        return float(np.mean(self.utilities)) if self.utilities else 0.0

    def utility_interval(self):
        """95% confidence interval of side a's per-game utility."""
        return compute_confidence_interval(self.utilities)

    def significance(self):
        """One-sample test of side a's mean utility against zero."""
        return compare_mean(self.utilities)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'games': self.games,
            'a_wins': self.a_wins,
            'b_wins': self.b_wins,
            'ties': self.ties,
            'a_payoff': self.a_payoff,
            'b_payoff': self.b_payoff,
            'a_utility': summarize(self.utilities),
        }

    def summary(self) -> str:
        ci = self.utility_interval()
        return (
            f"Games: {self.games}, A wins: {self.a_wins}, B wins: {self.b_wins}, "
            f"ties: {self.ties}\n"
            f"Payoff A: {self.a_payoff}, payoff B: {self.b_payoff}\n"
            f"A utility per game: {ci.mean:.4f} "
            f"[{ci.ci_lower:.4f}, {ci.ci_upper:.4f}]"
        )


def _play(
    result: HeadToHeadResult,
    a: StrategyPool,
    b: StrategyPool,
    rng: Optional[np.random.Generator],
) -> None:
    outcome = score(a.sample_average(rng), b.sample_average(rng))
    result.a_payoff += outcome.a_score
    result.b_payoff += outcome.b_score
    result.utilities.append(outcome.outcome)
    if outcome.outcome > 0:
        result.a_wins += 1
    elif outcome.outcome < 0:
        result.b_wins += 1
    else:
        result.ties += 1


def play_head_to_head(
    strategy_a: StrategyPool,
    strategy_b: StrategyPool,
    games: int,
    rng: Optional[np.random.Generator] = None,
) -> HeadToHeadResult:
    """
    Play two learned strategies against each other.

    Args:
        strategy_a: First learned strategy
        strategy_b: Second learned strategy
        games: Number of games
        rng: Generator for all draws (each pool uses its own if omitted)

    Returns:
        HeadToHeadResult from side a's point of view
    """
    if games < 1:
        raise ValueError(f"Need at least one game, got {games}")
    if strategy_a.n_battlefields != strategy_b.n_battlefields:
        raise ValueError("Strategies disagree on the number of battlefields")

    result = HeadToHeadResult(games=games)
    for _ in range(games):
        _play(result, strategy_a, strategy_b, rng)
    return result


def compare_approaches(
    approach_a: Sequence[StrategyPool],
    approach_b: Sequence[StrategyPool],
    games: int,
    rng: np.random.Generator,
) -> HeadToHeadResult:
    """
    Compare two collections of learned strategies.

    Every game first picks one strategy at random from each collection,
    then plays one sampled scheme from each.

    Args:
        approach_a: Learned strategies of the first approach
        approach_b: Learned strategies of the second approach
        games: Number of games
        rng: Generator used to pick strategies and schemes

    Returns:
        HeadToHeadResult from approach a's point of view
    """
    if not approach_a or not approach_b:
        raise ValueError("Both approaches need at least one strategy")
    if games < 1:
        raise ValueError(f"Need at least one game, got {games}")

    result = HeadToHeadResult(games=games)
    for _ in range(games):
        a = approach_a[int(rng.integers(0, len(approach_a)))]
        b = approach_b[int(rng.integers(0, len(approach_b)))]
        _play(result, a, b, rng)

    logger.debug(
        "Compared %d vs %d strategies over %d games: %d-%d-%d",
        len(approach_a), len(approach_b), games,
        result.a_wins, result.b_wins, result.ties,
    )
    return result


def load_strategies(
    payloads: Sequence[Dict[str, Any]],
    rng: Optional[np.random.Generator] = None,
) -> List[StrategyPool]:
    """Rebuild learned strategies from their dictionary form."""
    rng = rng if rng is not None else np.random.default_rng()
    return [StrategyPool.from_dict(p, rng) for p in payloads]
