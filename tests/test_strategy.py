"""
Tests for strategy pools and regret matching.

Run with: python -m pytest tests/test_strategy.py -v
"""

import pytest
import numpy as np
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from blotto.core.errors import ConfigurationError, InfeasiblePoolSizeError
from blotto.core.payoff import utility
from blotto.core.scheme import Scheme
from blotto.evolution.strategy import StrategyPool, new_pool, default_regret_scale


def small_pool(rng, regret_scale=None):
    """All three allocations of 2 troops over 2 battlefields."""
    schemes = [Scheme(troops=[2, 0]), Scheme(troops=[0, 2]), Scheme(troops=[1, 1])]
    return StrategyPool(schemes, troop_budget=2, rng=rng, regret_scale=regret_scale)


class TestPoolCreation:
    """Tests for building pools."""

    def test_new_pool(self):
        rng = np.random.default_rng(42)
        pool = new_pool(10, 10, 100, rng)

        assert len(pool) == 10
        assert pool.n_battlefields == 10
        assert len({s.key for s in pool}) == 10
        assert all(s.total_troops == 100 for s in pool)
        assert pool.regret_scale == pytest.approx(18.0)
        assert pool.probabilities == pytest.approx(np.full(10, 0.1))
        assert pool.timestep == 0

    def test_default_regret_scale(self):
        assert default_regret_scale(10) == pytest.approx(18.0)
        assert default_regret_scale(1) == pytest.approx(2.0)

    def test_infeasible_pool_size(self):
        """Two battlefields with one troop admit only two allocations."""
        rng = np.random.default_rng(0)
        with pytest.raises(InfeasiblePoolSizeError) as excinfo:
            new_pool(2, 3, 1, rng)
        assert excinfo.value.pool_size == 3
        assert excinfo.value.found == 2

    def test_invalid_arguments(self):
        rng = np.random.default_rng(0)
        with pytest.raises(ValueError):
            new_pool(0, 3, 10, rng)
        with pytest.raises(ValueError):
            new_pool(3, 0, 10, rng)

    def test_duplicate_schemes_rejected(self):
        rng = np.random.default_rng(0)
        with pytest.raises(ValueError):
            StrategyPool([Scheme(troops=[1, 1]), Scheme(troops=[1, 1])], 2, rng)

    def test_budget_mismatch_rejected(self):
        from blotto.core.errors import AllocationInvariantError
        rng = np.random.default_rng(0)
        with pytest.raises(AllocationInvariantError):
            StrategyPool([Scheme(troops=[1, 1]), Scheme(troops=[3, 0])], 2, rng)

    def test_index_of(self):
        rng = np.random.default_rng(0)
        pool = small_pool(rng)

        assert pool.index_of(Scheme(troops=[0, 2])) == 1
        assert pool.index_of(2) == 2
        assert Scheme(troops=[1, 1]) in pool
        with pytest.raises(ValueError):
            pool.index_of(Scheme(troops=[3, 0]))
        with pytest.raises(IndexError):
            pool.index_of(5)


class TestRegretMatching:
    """Tests for the regret-matching update."""

    def test_single_update(self):
        """[2, 0] loses to [0, 2]; only [0, 2] would have done better."""
        rng = np.random.default_rng(0)
        pool = small_pool(rng)
        theirs = Scheme(troops=[0, 2])

        pool.update(0, theirs, utility(pool[0], theirs))

        # mu = (3 - 1) * 2 = 4, regret toward [0, 2] is 0 - (-1) = 1
        assert pool.timestep == 1
        assert pool.regret[0].tolist() == [0.0, 1.0, 0.0]
        assert pool.probabilities == pytest.approx([0.75, 0.25, 0.0])
        assert pool.average_probabilities == pytest.approx([0.75, 0.25, 0.0])
        assert pool[1].current_probability == pytest.approx(0.25)
        assert pool[0].average_probability == pytest.approx(0.75)

    def test_regret_scale_too_small(self):
        rng = np.random.default_rng(0)
        pool = small_pool(rng, regret_scale=0.01)
        theirs = Scheme(troops=[0, 2])

        with pytest.raises(ConfigurationError):
            pool.update(0, theirs, utility(pool[0], theirs))

    def test_probabilities_sum_to_one(self):
        rng = np.random.default_rng(5)
        pool = new_pool(5, 8, 30, rng)
        opponent = new_pool(5, 8, 30, rng)

        for _ in range(300):
            mine = pool.sample()
            theirs = opponent.sample()
            pool.update(mine, theirs, utility(mine, theirs))
            assert abs(pool.probabilities.sum() - 1.0) < 1e-6
            assert np.all(pool.probabilities >= 0.0)
            assert np.all(pool.average_probabilities >= 0.0)

        avg = pool.average_probabilities
        assert avg.sum() == pytest.approx(1.0)
        assert avg / avg.sum() == pytest.approx(avg)

    def test_long_match(self):
        """Ten thousand rounds between two fresh pools."""
        rng = np.random.default_rng(2024)
        player1 = new_pool(10, 10, 100, rng)
        player2 = new_pool(10, 10, 100, rng)

        for _ in range(10_000):
            s1 = player1.sample()
            s2 = player2.sample()
            u = utility(s1, s2)
            player1.update(s1, s2, u)
            player2.update(s2, s1, -u)

        for pool in (player1, player2):
            assert pool.timestep == 10_000
            assert pool.average_probabilities.sum() == pytest.approx(1.0, abs=1e-6)
            assert pool.average_probabilities.max() > 0.0
            assert np.all(pool.average_probabilities >= 0.0)
            assert all(s.total_troops == 100 for s in pool)

    def test_sampling_follows_probabilities(self):
        rng = np.random.default_rng(1)
        pool = small_pool(rng)
        pool.probabilities = np.array([0.0, 1.0, 0.0])
        pool.average_probabilities = np.array([0.0, 0.0, 1.0])

        assert all(pool.sample_index() == 1 for _ in range(50))
        assert all(pool.sample_average() == Scheme(troops=[1, 1]) for _ in range(50))

    def test_reset_keeps_learned_strategy(self):
        rng = np.random.default_rng(0)
        pool = small_pool(rng)
        theirs = Scheme(troops=[0, 2])
        pool.update(0, theirs, -1)
        learned = pool.learned_strategy()

        pool.reset()

        assert pool.timestep == 0
        assert not pool.regret.any()
        assert pool.probabilities == pytest.approx(np.full(3, 1 / 3))
        assert pool.average_probabilities == pytest.approx(learned)


class TestRestructuring:
    """Tests for reorder and dynamic sizing."""

    def test_reorder_keeps_state_aligned(self):
        rng = np.random.default_rng(0)
        pool = small_pool(rng)
        theirs = Scheme(troops=[0, 2])
        pool.update(0, theirs, -1)
        before = {s.key: (p, a) for s, p, a in
                  zip(pool, pool.probabilities, pool.average_probabilities)}
        regret_row = pool.regret[0].copy()

        pool.reorder([2, 0, 1])

        assert [s.troops for s in pool] == [[1, 1], [2, 0], [0, 2]]
        for scheme, prob, avg in zip(pool, pool.probabilities, pool.average_probabilities):
            assert (prob, avg) == before[scheme.key]
        assert pool.index_of(Scheme(troops=[2, 0])) == 1
        # Old row 0 is new row 1; columns follow the same permutation
        assert pool.regret[1].tolist() == regret_row[[2, 0, 1]].tolist()
        assert pool.troops.tolist() == [[1, 1], [2, 0], [0, 2]]

    def test_reorder_rejects_non_permutation(self):
        rng = np.random.default_rng(0)
        pool = small_pool(rng)
        with pytest.raises(ValueError):
            pool.reorder([0, 0, 1])

    def test_support_size(self):
        rng = np.random.default_rng(0)
        pool = small_pool(rng)
        pool.average_probabilities = np.array([0.5, 0.5, 0.0])

        assert pool.support_size() == 2
        assert pool.has_zero_probabilities()

    def test_adjust_size(self):
        rng = np.random.default_rng(0)
        pool = small_pool(rng)
        pool.average_probabilities = np.array([0.6, 0.0, 0.2])

        removed = pool.adjust_size()

        assert removed == 1
        assert len(pool) == 2
        assert Scheme(troops=[0, 2]) not in pool
        assert pool.average_probabilities == pytest.approx([0.75, 0.25])
        assert pool.regret.shape == (2, 2)
        assert pool.regret_scale == pytest.approx(2.0)
        assert pool.timestep == 0

    def test_adjust_size_rescales_custom_regret_scale(self):
        rng = np.random.default_rng(0)
        pool = small_pool(rng, regret_scale=40.0)
        pool.average_probabilities = np.array([0.6, 0.0, 0.2])

        pool.adjust_size()

        # Default scale goes from 4 to 2 when three schemes become two
        assert pool.regret_scale == pytest.approx(20.0)

    def test_adjust_size_keeps_minimum(self):
        rng = np.random.default_rng(0)
        pool = small_pool(rng)
        pool.average_probabilities = np.array([1.0, 0.0, 0.0])

        removed = pool.adjust_size(min_size=2)

        assert removed == 1
        assert len(pool) == 2

    def test_adjust_size_noop(self):
        rng = np.random.default_rng(0)
        pool = small_pool(rng)
        pool.average_probabilities = np.array([0.4, 0.3, 0.3])
        assert pool.adjust_size() == 0
        assert len(pool) == 3


class TestPoolSerialization:
    """Tests for pool dictionaries."""

    def test_round_trip(self):
        rng = np.random.default_rng(9)
        pool = new_pool(4, 5, 12, rng)
        pool.average_probabilities = np.array([0.1, 0.2, 0.3, 0.4, 0.0])
        pool._sync_schemes()

        d = pool.to_dict()
        assert d['troop_budget'] == 12
        assert len(d['schemes']) == 5

        restored = StrategyPool.from_dict(d, np.random.default_rng(1))
        assert [s.troops for s in restored] == [s.troops for s in pool]
        assert restored.average_probabilities == pytest.approx(pool.average_probabilities)
        assert restored.timestep == 0

    def test_str_lists_schemes(self):
        rng = np.random.default_rng(0)
        pool = small_pool(rng)
        lines = str(pool).splitlines()
        assert len(lines) == 3
        assert lines[0].startswith("1: |")


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
