"""
Statistical helpers for comparing learned Blotto strategies.

Provides functions for:
- Confidence interval calculation (parametric and bootstrap)
- Comparing two utility samples (Welch's t-test)
"""

import math
from dataclasses import dataclass
from typing import List, Dict, Optional, Sequence
import numpy as np


@dataclass
class ConfidenceInterval:
    """Result of a confidence interval calculation."""
    mean: float
    ci_lower: float
    ci_upper: float
    std: float
    n: int
    confidence: float


@dataclass
class ComparisonResult:
    """Result of comparing two distributions."""
    statistic: float
    p_value: float
    test_name: str
    significant: bool  # At alpha=0.05
    effect_size: Optional[float] = None


def _degenerate_interval(values: Sequence[float], confidence: float) -> ConfidenceInterval:
    if len(values) == 0:
        nan = float('nan')
        return ConfidenceInterval(nan, nan, nan, nan, 0, confidence)
    val = float(values[0])
    return ConfidenceInterval(val, val, val, 0.0, 1, confidence)


def compute_confidence_interval(
    values: Sequence[float],
    confidence: float = 0.95
) -> ConfidenceInterval:
    """
    Compute a confidence interval using the t-distribution.

    Args:
        values: Sample values
        confidence: Confidence level (0.90, 0.95 or 0.99)

    Returns:
        ConfidenceInterval with mean, bounds, std, and sample size
    """
    n = len(values)
    if n < 2:
        return _degenerate_interval(values, confidence)

    arr = np.asarray(values, dtype=np.float64)
    mean = float(np.mean(arr))
    std = float(np.std(arr, ddof=1))
    se = std / math.sqrt(n)

    if n >= 30:
        t_crit = {0.90: 1.645, 0.95: 1.96, 0.99: 2.576}.get(confidence, 1.96)
    else:
        # Two-tailed 95% critical values by sample size
        t_table_95 = {
            2: 12.706, 3: 4.303, 4: 3.182, 5: 2.776, 6: 2.571,
            7: 2.447, 8: 2.365, 9: 2.306, 10: 2.262, 11: 2.228,
            12: 2.201, 13: 2.179, 14: 2.160, 15: 2.145, 16: 2.131,
            17: 2.120, 18: 2.110, 19: 2.101, 20: 2.093, 21: 2.086,
            22: 2.080, 23: 2.074, 24: 2.069, 25: 2.064, 26: 2.060,
            27: 2.056, 28: 2.052, 29: 2.048,
        }
        t_crit = t_table_95.get(n, 2.0)

    margin = t_crit * se
    return ConfidenceInterval(
        mean=mean,
        ci_lower=mean - margin,
        ci_upper=mean + margin,
        std=std,
        n=n,
        confidence=confidence,
    )


def compute_bootstrap_ci(
    values: Sequence[float],
    confidence: float = 0.95,
    n_bootstrap: int = 1000,
    rng: Optional[np.random.Generator] = None,
) -> ConfidenceInterval:
    """
    Compute a confidence interval using bootstrap resampling.

    Args:
        values: Sample values
        confidence: Confidence level
        n_bootstrap: Number of bootstrap samples
        rng: Random generator for reproducibility

    Returns:
        ConfidenceInterval using the percentile method
    """
    n = len(values)
    if n < 2:
        return _degenerate_interval(values, confidence)

    rng = rng if rng is not None else np.random.default_rng()
    arr = np.asarray(values, dtype=np.float64)

    samples = rng.choice(arr, size=(n_bootstrap, n), replace=True)
    bootstrap_means = samples.mean(axis=1)

    alpha = 1 - confidence
    return ConfidenceInterval(
        mean=float(np.mean(arr)),
        ci_lower=float(np.percentile(bootstrap_means, 100 * alpha / 2)),
        ci_upper=float(np.percentile(bootstrap_means, 100 * (1 - alpha / 2))),
        std=float(np.std(arr, ddof=1)),
        n=n,
        confidence=confidence,
    )


def compare_utilities(
    group_a: Sequence[float],
    group_b: Sequence[float],
) -> ComparisonResult:
    """
    Welch's t-test between two utility samples.

    Args:
        group_a: First sample (e.g. per-game utility of one approach)
        group_b: Second sample

    Returns:
        ComparisonResult with t statistic, p-value and Cohen's d
    """
    a = np.asarray(group_a, dtype=np.float64)
    b = np.asarray(group_b, dtype=np.float64)

    if len(a) < 2 or len(b) < 2:
        return ComparisonResult(
            statistic=float('nan'),
            p_value=1.0,
            test_name='insufficient_data',
            significant=False,
        )

    result = _welch_t_test(a, b)
    pooled_std = math.sqrt((np.var(a, ddof=1) + np.var(b, ddof=1)) / 2)
    effect_size = float((np.mean(a) - np.mean(b)) / pooled_std) if pooled_std > 0 else 0.0

    return ComparisonResult(
        statistic=result['t'],
        p_value=result['p'],
        test_name='welch_t',
        significant=result['p'] < 0.05,
        effect_size=effect_size,
    )


def compare_mean(
    values: Sequence[float],
    target: float = 0.0,
) -> ComparisonResult:
    """
    One-sample t-test of a mean against a fixed value.

    Use this for paired outcomes such as zero-sum game utilities, where the
    other side's sample is the negation of this one and not independent.

    Args:
        values: Sample values (e.g. per-game utility of one side)
        target: Mean under the null hypothesis

    Returns:
        ComparisonResult with t statistic, p-value and standardized effect
    """
    arr = np.asarray(values, dtype=np.float64)
    n = len(arr)
    if n < 2:
        return ComparisonResult(
            statistic=float('nan'),
            p_value=1.0,
            test_name='insufficient_data',
            significant=False,
        )

    diff = float(np.mean(arr)) - target
    std = float(np.std(arr, ddof=1))
    se = std / math.sqrt(n)
    if se == 0:
        t = 0.0 if diff == 0 else math.copysign(math.inf, diff)
        p = 1.0 if diff == 0 else 0.0
    else:
        t = diff / se
        p = 2 * (1 - _normal_cdf(abs(t)))

    return ComparisonResult(
        statistic=float(t),
        p_value=float(p),
        test_name='one_sample_t',
        significant=p < 0.05,
        effect_size=diff / std if std > 0 else 0.0,
    )


def _welch_t_test(a: np.ndarray, b: np.ndarray) -> Dict[str, float]:
    """Welch's t-test with a normal approximation for the p-value."""
    n_a, n_b = len(a), len(b)
    var_a, var_b = np.var(a, ddof=1), np.var(b, ddof=1)

    se = math.sqrt(var_a / n_a + var_b / n_b)
    diff = float(np.mean(a) - np.mean(b))
    if se == 0:
        # Constant samples: any difference in means is certain
        if diff == 0:
            return {'t': 0.0, 'p': 1.0}
        return {'t': math.copysign(math.inf, diff), 'p': 0.0}

    t = diff / se
    p = 2 * (1 - _normal_cdf(abs(t)))
    return {'t': float(t), 'p': float(p)}


def _normal_cdf(x: float) -> float:
    """Standard normal CDF via the error function."""
    return 0.5 * (1 + math.erf(x / math.sqrt(2)))


def summarize(values: List[float]) -> Dict[str, float]:
    """Mean, std and 95% bounds as a flat dictionary."""
    ci = compute_confidence_interval(values)
    return {
        'mean': ci.mean,
        'std': ci.std,
        'ci_lower': ci.ci_lower,
        'ci_upper': ci.ci_upper,
        'n': ci.n,
    }
