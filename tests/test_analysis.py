"""
Tests for head-to-head play and statistics.

Run with: python -m pytest tests/test_analysis.py -v
"""

import math

import pytest
import numpy as np
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from blotto.core.scheme import Scheme
from blotto.evolution.strategy import StrategyPool, new_pool
from blotto.analysis.headtohead import (
    HeadToHeadResult,
    play_head_to_head,
    compare_approaches,
    load_strategies,
)
from blotto.analysis.statistics import (
    compute_confidence_interval,
    compute_bootstrap_ci,
    compare_utilities,
    compare_mean,
    summarize,
)


def pure(troops, rng):
    """A learned strategy that always plays one allocation."""
    return StrategyPool(
        [Scheme(troops=troops)], sum(troops), rng, initial_probabilities=[1.0]
    )


class TestHeadToHead:
    """Tests for head-to-head play."""

    def test_dominant_strategy_always_wins(self):
        rng = np.random.default_rng(0)
        result = play_head_to_head(pure([0, 2], rng), pure([2, 0], rng), games=20)

        assert result.a_wins == 20
        assert result.b_wins == 0
        assert result.ties == 0
        assert result.a_payoff == 40
        assert result.b_payoff == 20
        assert result.a_win_rate == pytest.approx(1.0)
        assert result.mean_utility == pytest.approx(1.0)

    def test_mirror_match_ties(self):
        rng = np.random.default_rng(0)
        result = play_head_to_head(pure([1, 1], rng), pure([1, 1], rng), games=5)

        assert result.ties == 5
        assert result.a_payoff == 0
        assert result.utilities == [0] * 5

    def test_mixed_strategies(self):
        rng = np.random.default_rng(4)
        pool_a = StrategyPool(
            [Scheme(troops=[2, 0]), Scheme(troops=[0, 2])], 2, rng,
            initial_probabilities=[0.5, 0.5],
        )
        pool_b = pure([1, 1], rng)

        result = play_head_to_head(pool_a, pool_b, games=400)

        # [0, 2] beats [1, 1] and [2, 0] loses to it
        assert result.a_wins + result.b_wins == 400
        assert 120 < result.a_wins < 280

    def test_seeded_play_is_reproducible(self):
        pool_a = StrategyPool(
            [Scheme(troops=[2, 0]), Scheme(troops=[0, 2])], 2, np.random.default_rng(0),
            initial_probabilities=[0.5, 0.5],
        )
        pool_b = pure([1, 1], np.random.default_rng(0))

        first = play_head_to_head(pool_a, pool_b, games=100, rng=np.random.default_rng(9))
        second = play_head_to_head(pool_a, pool_b, games=100, rng=np.random.default_rng(9))

        assert first.utilities == second.utilities

    def test_invalid_arguments(self):
        rng = np.random.default_rng(0)
        with pytest.raises(ValueError):
            play_head_to_head(pure([1, 1], rng), pure([1, 1], rng), games=0)
        with pytest.raises(ValueError):
            play_head_to_head(pure([1, 1], rng), pure([1, 1, 0], rng), games=3)

    def test_compare_approaches(self):
        rng = np.random.default_rng(8)
        strong = [pure([0, 2], rng), pure([0, 4], rng)]
        weak = [pure([2, 0], rng), pure([4, 0], rng)]

        result = compare_approaches(strong, weak, games=50, rng=rng)

        assert result.a_wins == 50
        significance = result.significance()
        assert significance.test_name == 'one_sample_t'
        assert significance.p_value < 0.05

    def test_borderline_record_not_significant(self):
        """58 wins to 42 losses: the utility interval still contains zero."""
        result = HeadToHeadResult(
            games=100, a_wins=58, b_wins=42, utilities=[1] * 58 + [-1] * 42,
        )

        significance = result.significance()
        interval = result.utility_interval()

        assert interval.ci_lower < 0.0 < interval.ci_upper
        assert significance.statistic == pytest.approx(1.613, abs=1e-3)
        assert significance.p_value == pytest.approx(0.1068, abs=1e-3)
        assert not significance.significant

    def test_compare_requires_strategies(self):
        rng = np.random.default_rng(0)
        with pytest.raises(ValueError):
            compare_approaches([], [pure([1, 1], rng)], games=5, rng=rng)

    def test_load_strategies(self):
        rng = np.random.default_rng(2)
        pool = new_pool(3, 4, 9, rng)
        pool.average_probabilities = np.array([0.25, 0.25, 0.25, 0.25])
        pool._sync_schemes()

        loaded = load_strategies([pool.to_dict()], np.random.default_rng(0))

        assert len(loaded) == 1
        assert [s.troops for s in loaded[0]] == [s.troops for s in pool]

    def test_summary(self):
        rng = np.random.default_rng(0)
        result = play_head_to_head(pure([0, 2], rng), pure([2, 0], rng), games=10)
        assert "A wins: 10" in result.summary()
        assert result.to_dict()['a_utility']['mean'] == pytest.approx(1.0)


class TestStatistics:
    """Tests for statistical helpers."""

    def test_confidence_interval(self):
        values = [1.0, 2.0, 3.0, 4.0, 5.0]
        ci = compute_confidence_interval(values)

        assert ci.mean == pytest.approx(3.0)
        assert ci.n == 5
        assert ci.ci_lower < 3.0 < ci.ci_upper
        # t(4) = 2.776, se = sqrt(2.5) / sqrt(5)
        assert ci.ci_upper - ci.mean == pytest.approx(2.776 * math.sqrt(0.5))

    def test_degenerate_interval(self):
        ci = compute_confidence_interval([0.4])
        assert ci.mean == ci.ci_lower == ci.ci_upper == pytest.approx(0.4)
        assert math.isnan(compute_confidence_interval([]).mean)

    def test_bootstrap_ci(self):
        rng = np.random.default_rng(0)
        values = rng.normal(1.0, 0.5, size=200)
        ci = compute_bootstrap_ci(values, rng=np.random.default_rng(1))

        assert ci.ci_lower < ci.mean < ci.ci_upper
        assert ci.ci_upper - ci.ci_lower < 0.5

    def test_compare_utilities(self):
        rng = np.random.default_rng(0)
        a = rng.normal(0.5, 0.1, size=50)
        b = rng.normal(0.0, 0.1, size=50)

        result = compare_utilities(a, b)

        assert result.test_name == 'welch_t'
        assert result.significant
        assert result.effect_size > 1.0

    def test_compare_mean(self):
        result = compare_mean([1] * 58 + [-1] * 42)

        assert result.test_name == 'one_sample_t'
        # mean 0.16, s = sqrt(0.9744 * 100 / 99), se = s / 10
        assert result.statistic == pytest.approx(0.16 / math.sqrt(0.9744 / 99))
        assert not result.significant

    def test_compare_mean_constant_sample(self):
        assert compare_mean([1.0, 1.0, 1.0]).p_value == 0.0
        assert compare_mean([0.0, 0.0]).p_value == 1.0
        assert compare_mean([2.0, 2.0], target=2.0).p_value == 1.0
        assert compare_mean([0.5]).test_name == 'insufficient_data'

    def test_compare_insufficient_data(self):
        result = compare_utilities([1.0], [0.0, 1.0])
        assert result.test_name == 'insufficient_data'
        assert not result.significant

    def test_summarize(self):
        summary = summarize([1.0, 1.0, 1.0])
        assert summary['mean'] == pytest.approx(1.0)
        assert summary['std'] == pytest.approx(0.0)
        assert summary['n'] == 3


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
