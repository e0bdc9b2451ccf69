"""
Typed failures raised by the Blotto engine.

Only three conditions are treated as errors; everything else (sampling
noise, rounding near probability boundaries) is absorbed with explicit
tolerances.
"""


class BlottoError(Exception):
    """Base class for engine failures."""


class ConfigurationError(BlottoError):
    """Regret-matching mass exceeded 1: the regret scale (mu) is too small."""


class AllocationInvariantError(BlottoError):
    """A scheme's troop total differs from the troop budget."""

    def __init__(self, troops, troop_budget: int):
        self.troops = list(troops)
        self.troop_budget = troop_budget
        super().__init__(
            f"Allocation {self.troops} sums to {sum(self.troops)}, "
            f"expected troop budget {troop_budget}"
        )


class InfeasiblePoolSizeError(BlottoError):
    """Not enough distinct allocations could be found to fill a pool."""

    def __init__(self, pool_size: int, found: int, reason: str = ''):
        self.pool_size = pool_size
        self.found = found
        message = f"Infeasible pool size {pool_size}: only {found} unique schemes found"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
