"""
Reference co-evolution driver.

Orchestrates the match loop around the learning core:
1. Create two random pools
2. Play a match: many rounds of sample / payoff / regret update
3. Evaluate co-evolution fitness
4. Regenerate the losing pool, reset the winning one
5. Record statistics
6. Repeat until player 1's strategy settles or the match cap is hit

Variants:
- baseline (evolve_both=False): only player 1 evolves; a losing player 2
  is replaced by a fresh random pool
- co-evolution (evolve_both=True): whichever pool loses is evolved
- local search: EvolutionConfig(mutation='deficit'), aimed at the winner
- dynamic sizing: a winning player 1 drops schemes it no longer plays
"""

import logging
import time
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Optional, Callable, Tuple

import numpy as np

from ..core.payoff import utility
from .fitness import evaluate_fitness
from .history import MatchHistory, MatchStats
from .regeneration import EvolutionaryOperator, EvolutionConfig
from .strategy import StrategyPool, new_pool

logger = logging.getLogger(__name__)


@dataclass
class CoevolutionConfig:
    """Configuration for a co-evolution run."""
    # Game parameters
    n_battlefields: int = 10
    troop_budget: int = 100
    pool_size: int = 10

    # Match loop
    rounds_per_match: int = 10_000
    min_matches: int = 50
    max_matches: int = 1_500

    # Player 1's round win rate must land here to stop (None disables)
    win_rate_range: Optional[Tuple[float, float]] = (0.75, 0.9)

    # Variants
    evolve_both: bool = False
    dynamic_sizing: bool = False

    evolution: EvolutionConfig = field(default_factory=EvolutionConfig)

    def validate(self) -> None:
        """Raise ValueError on out-of-range settings."""
        if self.n_battlefields < 1:
            raise ValueError(f"Need at least one battlefield, got {self.n_battlefields}")
        if self.pool_size < 1:
            raise ValueError(f"Pool size must be positive, got {self.pool_size}")
        if self.troop_budget < 0:
            raise ValueError(f"Troop budget must be non-negative, got {self.troop_budget}")
        if self.rounds_per_match < 1:
            raise ValueError(f"Rounds per match must be positive, got {self.rounds_per_match}")
        if self.max_matches < 1 or self.min_matches < 0:
            raise ValueError(
                f"Invalid match bounds: min={self.min_matches}, max={self.max_matches}"
            )
        if self.win_rate_range is not None:
            low, high = self.win_rate_range
            if not 0.0 <= low <= high <= 1.0:
                raise ValueError(f"Invalid win rate range {self.win_rate_range}")
        self.evolution.validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CoevolutionConfig':
        data = dict(data)
        evolution = EvolutionConfig.from_dict(data.pop('evolution', {}))
        if data.get('win_rate_range') is not None:
            data['win_rate_range'] = tuple(data['win_rate_range'])
        return cls(evolution=evolution, **data)


@dataclass
class MatchResult:
    """Outcome of one match between two pools."""
    rounds: int
    player1_wins: int
    player2_wins: int
    player1_total_utility: float
    player2_total_utility: float

    @property
    def ties(self) -> int:
        return self.rounds - self.player1_wins - self.player2_wins

    @property
    def winner(self) -> int:
        """1 or 2; player 1 loses ties in total utility."""
        return 1 if self.player1_total_utility > self.player2_total_utility else 2


@dataclass
class CoevolutionResult:
    """Results from a co-evolution run."""
    matches_completed: int
    converged: bool
    player1: StrategyPool
    player2: StrategyPool
    history: MatchHistory
    runtime_seconds: float
    stop_reason: Optional[str] = None

    def summary(self) -> str:
        """Generate summary string."""
        p1_util, p2_util = self.history.mean_utilities()
        lines = [
            f"Matches: {self.matches_completed}",
            f"Converged: {self.converged}",
            f"Player1 matches won: {self.history.matches_won(1)}",
            f"Player2 matches won: {self.history.matches_won(2)}",
            f"Player1 avg utility: {p1_util:.4f}",
            f"Player2 avg utility: {p2_util:.4f}",
            f"Runtime: {self.runtime_seconds:.1f}s",
        ]
        if self.stop_reason:
            lines.append(f"Stop reason: {self.stop_reason}")
        lines.append("Player1 strategy:")
        lines.append(str(self.player1))
        return '\n'.join(lines)


class CoevolutionEngine:
    """
    Runs repeated Blotto matches between two learning pools.

    Player 1 is the pool whose learned strategy is the product of the run.
    """

    def __init__(
        self,
        config: Optional[CoevolutionConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Run configuration
            rng: Random generator shared by pools and operators
        """
        self.config = config or CoevolutionConfig()
        self.config.validate()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.operator = EvolutionaryOperator(self.config.evolution, self.rng)

        self.player1: Optional[StrategyPool] = None
        self.player2: Optional[StrategyPool] = None
        self.history = MatchHistory()
        self.match = 0

    def _fresh_pool(self) -> StrategyPool:
        return new_pool(
            self.config.n_battlefields,
            self.config.pool_size,
            self.config.troop_budget,
            self.rng,
        )

    def initialize(
        self,
        player1: Optional[StrategyPool] = None,
        player2: Optional[StrategyPool] = None,
    ) -> None:
        """
        Set up both players (random pools unless given).

        Args:
            player1: Optional starting pool for player 1
            player2: Optional starting pool for player 2
        """
        self.player1 = player1 if player1 is not None else self._fresh_pool()
        self.player2 = player2 if player2 is not None else self._fresh_pool()
        self.history = MatchHistory()
        self.match = 0

    def play_match(self, rounds: Optional[int] = None) -> MatchResult:
        """
        Play one match and run the fitness pass.

        Args:
            rounds: Rounds to play (defaults to config.rounds_per_match)

        Returns:
            MatchResult with round wins and total utilities
        """
        if self.player1 is None or self.player2 is None:
            raise RuntimeError("Call initialize() before playing")

        rounds = rounds or self.config.rounds_per_match
        player1_wins = 0
        player2_wins = 0
        p1_total = 0.0
        p2_total = 0.0

        for _ in range(rounds):
            scheme1 = self.player1.sample()
            scheme2 = self.player2.sample()

            p1_util = utility(scheme1, scheme2)
            p2_util = -p1_util

            p1_total += p1_util
            p2_total += p2_util
            if p1_util > 0:
                player1_wins += 1
            elif p1_util < 0:
                player2_wins += 1

            self.player1.update(scheme1, scheme2, p1_util)
            self.player2.update(scheme2, scheme1, p2_util)

        evaluate_fitness(self.player1, self.player2)

        return MatchResult(
            rounds=rounds,
            player1_wins=player1_wins,
            player2_wins=player2_wins,
            player1_total_utility=p1_total,
            player2_total_utility=p2_total,
        )

    def run_match(self) -> MatchStats:
        """Play a match, record it, regenerate the loser and reset the winner."""
        self.match += 1
        result = self.play_match()

        stats = self.history.record_match(
            match=self.match,
            rounds=result.rounds,
            player1_wins=result.player1_wins,
            player2_wins=result.player2_wins,
            player1_total_utility=result.player1_total_utility,
            player2_total_utility=result.player2_total_utility,
            winner=result.winner,
            player1_support=self.player1.support_size(),
            player2_support=self.player2.support_size(),
            player1_size=len(self.player1),
            player2_size=len(self.player2),
        )

        logger.info(
            "Match %d: player1 %d wins, player2 %d wins, utility %.4f / %.4f, player %d wins",
            self.match, result.player1_wins, result.player2_wins,
            stats.player1_utility, stats.player2_utility, result.winner,
        )

        if result.winner == 1:
            winner = self.player1
            if self.config.evolve_both:
                self.player2 = self.operator.evolve(self.player2, opponent=self.player1)
            else:
                self.player2 = self._fresh_pool()
        else:
            winner = self.player2
            self.player1 = self.operator.evolve(self.player1, opponent=self.player2)

        if self.config.dynamic_sizing and result.winner == 1:
            removed = self.player1.adjust_size()
            if removed:
                logger.debug("Player1 dropped %d unplayed schemes", removed)
        winner.reset()

        return stats

    def run(
        self,
        progress_callback: Optional[Callable[[int, int, MatchStats], None]] = None,
    ) -> CoevolutionResult:
        """
        Run matches until player 1 settles or max_matches is reached.

        Args:
            progress_callback: Optional callback(match, max_matches, stats)

        Returns:
            CoevolutionResult with final pools and history
        """
        if self.player1 is None or self.player2 is None:
            self.initialize()

        start_time = time.time()
        converged = False
        stop_reason = None

        while True:
            stats = self.run_match()

            if progress_callback:
                progress_callback(self.match, self.config.max_matches, stats)

            if self.history.is_settled(self.config.min_matches, self.config.win_rate_range):
                converged = True
                break

            if self.match >= self.config.max_matches:
                stop_reason = (
                    f"Player1 did not settle within {self.config.max_matches} matches"
                )
                logger.warning(stop_reason)
                break

        return CoevolutionResult(
            matches_completed=self.match,
            converged=converged,
            player1=self.player1,
            player2=self.player2,
            history=self.history,
            runtime_seconds=time.time() - start_time,
            stop_reason=stop_reason,
        )
