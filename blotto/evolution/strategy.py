"""
Strategy pools: a finite set of schemes plus a mixed strategy over them.

The pool is an arena. Schemes are addressed by their stable index, and the
learning state lives in dense arrays:
- probabilities[i]: current probability of scheme i
- average_probabilities[i]: time-averaged probability (the learned strategy)
- regret[i, j]: counterfactual regret of not having played j when i was played

The update rule is regret matching (Hart & Mas-Colell). Over many rounds the
time-averaged distribution approaches a minimax mixture over the pool.
"""

import logging
from typing import List, Dict, Any, Optional, Sequence, Union, Iterator

import numpy as np

from ..core.errors import ConfigurationError, InfeasiblePoolSizeError
from ..core.payoff import MAX_UTILITY, MIN_UTILITY, outcomes_against
from ..core.scheme import Scheme, create_random_scheme, count_allocations, troop_matrix

logger = logging.getLogger(__name__)

# Slack allowed when checking that probability mass stays within [0, 1]
PROBABILITY_TOLERANCE = 1e-9

# Random draws allowed per requested scheme before giving up
DEFAULT_ATTEMPTS_PER_SCHEME = 1000


def default_regret_scale(pool_size: int) -> float:
    """Smallest mu that keeps regret-matching probabilities within [0, 1]."""
    return float(max(pool_size - 1, 1) * (MAX_UTILITY - MIN_UTILITY))


class StrategyPool:
    """
    A mixed strategy over a fixed pool of unique schemes.

    Attributes:
        schemes: Member schemes, indexed by position
        troop_budget: Troop budget shared by every member
        timestep: Update rounds since construction or the last reset
        regret_scale: Normalizer mu of the regret-matching rule
        rng: Random generator used for sampling
    """

    def __init__(
        self,
        schemes: Sequence[Scheme],
        troop_budget: int,
        rng: np.random.Generator,
        regret_scale: Optional[float] = None,
        initial_probabilities: Optional[Sequence[float]] = None,
    ):
        """
        Build a pool from existing schemes.

        Args:
            schemes: Unique schemes, all summing to troop_budget
            troop_budget: Shared troop budget
            rng: Random generator bound to this pool
            regret_scale: Override for mu (defaults to (k - 1) * utility spread)
            initial_probabilities: Starting probabilities (uniform if omitted);
                also used as the starting average probabilities
        """
        if not schemes:
            raise ValueError("A strategy pool needs at least one scheme")

        self.schemes: List[Scheme] = list(schemes)
        self.troop_budget = troop_budget
        self.rng = rng

        n_battlefields = self.schemes[0].n_battlefields
        seen = set()
        for scheme in self.schemes:
            if scheme.n_battlefields != n_battlefields:
                raise ValueError(
                    f"Scheme {scheme.troops} has {scheme.n_battlefields} battlefields, "
                    f"expected {n_battlefields}"
                )
            scheme.validate(troop_budget)
            if scheme.key in seen:
                raise ValueError(f"Duplicate scheme in pool: {scheme.troops}")
            seen.add(scheme.key)

        self.regret_scale = (
            float(regret_scale) if regret_scale is not None
            else default_regret_scale(len(self.schemes))
        )
        if self.regret_scale <= 0:
            raise ValueError(f"Regret scale must be positive, got {self.regret_scale}")

        k = len(self.schemes)
        self._troops = troop_matrix(self.schemes)
        self._index = {scheme.key: i for i, scheme in enumerate(self.schemes)}
        self.regret = np.zeros((k, k), dtype=np.float64)
        self.timestep = 0

        if initial_probabilities is None:
            self.probabilities = np.full(k, 1.0 / k)
            self.average_probabilities = np.array(
                [s.average_probability for s in self.schemes], dtype=np.float64
            )
        else:
            probs = np.asarray(initial_probabilities, dtype=np.float64)
            if probs.shape != (k,):
                raise ValueError(f"Expected {k} initial probabilities, got {probs.shape}")
            self.probabilities = probs.copy()
            self.average_probabilities = probs.copy()

        self._sync_schemes()

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.schemes)

    def __iter__(self) -> Iterator[Scheme]:
        return iter(self.schemes)

    def __getitem__(self, index: int) -> Scheme:
        return self.schemes[index]

    def __contains__(self, scheme: Scheme) -> bool:
        return scheme.key in self._index

    @property
    def size(self) -> int:
        return len(self.schemes)

    @property
    def n_battlefields(self) -> int:
        return self._troops.shape[1]

    @property
    def troops(self) -> np.ndarray:
        """(k, n_battlefields) allocation matrix, rows in pool order."""
        return self._troops

    def index_of(self, scheme: Union[Scheme, int]) -> int:
        """Arena index of a member scheme (ints pass through)."""
        if isinstance(scheme, (int, np.integer)):
            index = int(scheme)
            if not 0 <= index < len(self.schemes):
                raise IndexError(f"Scheme index {index} out of range")
            return index
        try:
            return self._index[scheme.key]
        except KeyError:
            raise ValueError(f"Scheme {scheme.troops} is not in this pool") from None

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    def _roulette(
        self,
        probabilities: np.ndarray,
        rng: Optional[np.random.Generator] = None,
    ) -> int:
        selector = (rng if rng is not None else self.rng).random()
        cumulative = np.cumsum(probabilities)
        index = int(np.searchsorted(cumulative, selector, side='right'))
        # Residual mass from rounding falls to the last scheme
        return min(index, len(self.schemes) - 1)

    def sample_index(self) -> int:
        """Draw a scheme index by current probability."""
        return self._roulette(self.probabilities)

    def sample(self) -> Scheme:
        """Draw a scheme by current probability (roulette selection)."""
        return self.schemes[self.sample_index()]

    def sample_average(self, rng: Optional[np.random.Generator] = None) -> Scheme:
        """Draw a scheme from the learned (time-averaged) distribution.

        Args:
            rng: Generator to draw with instead of the pool's own
        """
        return self.schemes[self._roulette(self.average_probabilities, rng)]

    # ------------------------------------------------------------------
    # Regret matching
    # ------------------------------------------------------------------

    def update(self, mine: Union[Scheme, int], theirs: Scheme, utility: int) -> None:
        """
        Regret-matching update after both schemes of a round are revealed.

        Args:
            mine: The member scheme (or its index) this pool played
            theirs: The opponent's scheme
            utility: Outcome obtained by mine against theirs
        """
        i = self.index_of(mine)
        self.timestep += 1
        t = self.timestep

        # Counterfactual regret of every alternative against the same opponent
        alternatives = outcomes_against(self._troops, theirs)
        self.regret[i] += alternatives - utility

        probs = np.maximum(self.regret[i], 0.0) / (t * self.regret_scale)
        probs[i] = 0.0
        total = float(probs.sum())
        if total > 1.0 + PROBABILITY_TOLERANCE:
            raise ConfigurationError(
                f"Regret-matching mass {total:.6f} exceeds 1 at timestep {t}; "
                f"regret scale {self.regret_scale} is too small for a pool of "
                f"{len(self.schemes)} schemes"
            )
        probs[i] = max(1.0 - total, 0.0)
        self.probabilities = probs

        self.average_probabilities = ((t - 1) * self.average_probabilities + probs) / t
        self._sync_schemes()

    def reset(self) -> None:
        """Start a new learning lifecycle: uniform play, no regret, timestep 0."""
        k = len(self.schemes)
        self.probabilities = np.full(k, 1.0 / k)
        self.regret = np.zeros((k, k), dtype=np.float64)
        self.timestep = 0
        self._sync_schemes()

    def _sync_schemes(self) -> None:
        for scheme, prob, avg in zip(
            self.schemes, self.probabilities, self.average_probabilities
        ):
            scheme.current_probability = float(prob)
            scheme.average_probability = float(avg)

    # ------------------------------------------------------------------
    # Inspection and restructuring
    # ------------------------------------------------------------------

    def learned_strategy(self) -> np.ndarray:
        """Copy of the time-averaged probability vector."""
        return self.average_probabilities.copy()

    def has_zero_probabilities(self, tolerance: float = PROBABILITY_TOLERANCE) -> bool:
        """True when any scheme carries (numerically) no average mass."""
        return bool(np.any(self.average_probabilities <= tolerance))

    def support_size(self, tolerance: float = PROBABILITY_TOLERANCE) -> int:
        """Number of schemes with positive average probability."""
        return int(np.sum(self.average_probabilities > tolerance))

    def reorder(self, order: Sequence[int]) -> None:
        """
        Permute the arena.

        Args:
            order: New position -> old index; must be a permutation of range(k)
        """
        order = np.asarray(order, dtype=np.int64)
        k = len(self.schemes)
        if sorted(order.tolist()) != list(range(k)):
            raise ValueError(f"Order {order.tolist()} is not a permutation of {k} schemes")

        self.schemes = [self.schemes[i] for i in order]
        self._troops = self._troops[order]
        self.probabilities = self.probabilities[order]
        self.average_probabilities = self.average_probabilities[order]
        self.regret = self.regret[np.ix_(order, order)]
        self._index = {scheme.key: i for i, scheme in enumerate(self.schemes)}

    def adjust_size(
        self,
        min_probability: float = PROBABILITY_TOLERANCE,
        min_size: int = 2,
    ) -> int:
        """
        Drop schemes the learned strategy no longer plays.

        Schemes with average probability at or below min_probability are
        removed (lowest mass first) while more than min_size remain. The
        surviving average probabilities are renormalized, the regret scale is
        shrunk in proportion to the default for the new size, and the
        learning state is reset.

        Args:
            min_probability: Mass at or below which a scheme is dropped
            min_size: Never shrink below this many schemes

        Returns:
            Number of schemes removed
        """
        k = len(self.schemes)
        by_mass = np.argsort(self.average_probabilities, kind='stable')
        drop = set()
        for i in by_mass:
            if k - len(drop) <= min_size:
                break
            if self.average_probabilities[i] > min_probability:
                break
            drop.add(int(i))

        if not drop:
            return 0

        keep = [i for i in range(k) if i not in drop]
        kept_avg = self.average_probabilities[keep]
        total = float(kept_avg.sum())
        kept_avg = kept_avg / total if total > 0 else np.full(len(keep), 1.0 / len(keep))

        self.schemes = [self.schemes[i] for i in keep]
        self._troops = self._troops[keep]
        self._index = {scheme.key: i for i, scheme in enumerate(self.schemes)}
        self.average_probabilities = kept_avg
        self.regret_scale *= default_regret_scale(len(self.schemes)) / default_regret_scale(k)
        self.reset()

        logger.debug("Pool shrunk from %d to %d schemes", k, len(self.schemes))
        return len(drop)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            'troop_budget': self.troop_budget,
            'schemes': [s.to_dict() for s in self.schemes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], rng: np.random.Generator) -> 'StrategyPool':
        """Restore a pool (allocations and learned strategy) from a dictionary."""
        schemes = [Scheme.from_dict(s) for s in data['schemes']]
        return cls(schemes, troop_budget=int(data['troop_budget']), rng=rng)

    def __str__(self) -> str:
        return '\n'.join(
            f"{i + 1}: {scheme.describe()}" for i, scheme in enumerate(self.schemes)
        )

    def __repr__(self) -> str:
        return (
            f"StrategyPool(size={len(self.schemes)}, budget={self.troop_budget}, "
            f"timestep={self.timestep}, support={self.support_size()})"
        )


def new_pool(
    n_battlefields: int,
    pool_size: int,
    troop_budget: int,
    rng: np.random.Generator,
    max_attempts: Optional[int] = None,
    regret_scale: Optional[float] = None,
) -> StrategyPool:
    """
    Create a pool of unique random schemes.

    Args:
        n_battlefields: Number of battlefields
        pool_size: Number of unique schemes
        troop_budget: Troops every scheme must allocate
        rng: Random generator bound to the pool
        max_attempts: Bound on random draws (default 1000 per scheme)
        regret_scale: Optional mu override

    Returns:
        A fresh StrategyPool with uniform current probabilities

    Raises:
        InfeasiblePoolSizeError: When pool_size unique allocations cannot be found
    """
    if n_battlefields < 1:
        raise ValueError(f"Need at least one battlefield, got {n_battlefields}")
    if pool_size < 1:
        raise ValueError(f"Pool size must be positive, got {pool_size}")
    if troop_budget < 0:
        raise ValueError(f"Troop budget must be non-negative, got {troop_budget}")

    available = count_allocations(n_battlefields, troop_budget)
    if pool_size > available:
        raise InfeasiblePoolSizeError(
            pool_size, available,
            f"only {available} allocations of {troop_budget} troops over "
            f"{n_battlefields} battlefields exist",
        )

    if max_attempts is None:
        max_attempts = DEFAULT_ATTEMPTS_PER_SCHEME * pool_size

    schemes: Dict[tuple, Scheme] = {}
    attempts = 0
    while len(schemes) < pool_size:
        if attempts >= max_attempts:
            raise InfeasiblePoolSizeError(
                pool_size, len(schemes), f"gave up after {attempts} random draws"
            )
        attempts += 1
        scheme = create_random_scheme(n_battlefields, troop_budget, rng)
        schemes.setdefault(scheme.key, scheme)

    logger.debug(
        "Created pool of %d schemes in %d draws", pool_size, attempts
    )
    return StrategyPool(
        list(schemes.values()), troop_budget, rng, regret_scale=regret_scale
    )
