"""
Descriptive statistics and two-sample tests for pollutant samples.

Degenerate samples (too few values, constant values) yield NaN results
instead of raising, so one bad channel never stops a comparison.
"""

import logging
from typing import Dict, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from config import MIN_SAMPLES_NORMALITY

logger = logging.getLogger(__name__)


def _clean(values) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    return arr[np.isfinite(arr)]


def describe(df: pd.DataFrame, pollutants: Sequence[str]) -> pd.DataFrame:
    """Count, mean, median, std, min and max per pollutant (one row each)."""
    rows = []
    for p in pollutants:
        v = _clean(df[p])
        rows.append({
            "pollutant": p,
            "count": len(v),
            "mean": float(np.mean(v)) if len(v) else np.nan,
            "median": float(np.median(v)) if len(v) else np.nan,
            "std": float(np.std(v, ddof=1)) if len(v) > 1 else np.nan,
            "min": float(np.min(v)) if len(v) else np.nan,
            "max": float(np.max(v)) if len(v) else np.nan,
        })
    return pd.DataFrame(rows).set_index("pollutant")


def sample_summary(values) -> Dict[str, float]:
    """n, median, min and max of a sample (NaN statistics when empty)."""
    v = _clean(values)
    if len(v) == 0:
        return {"n": 0, "median": np.nan, "min": np.nan, "max": np.nan}
    return {
        "n": len(v),
        "median": float(np.median(v)),
        "min": float(np.min(v)),
        "max": float(np.max(v)),
    }


def normality_test(values, min_samples: int = MIN_SAMPLES_NORMALITY) -> float:
    """
    Shapiro-Wilk p-value for a sample.

    Returns NaN when the sample has fewer than *min_samples* finite values
    or is constant, since the test is undefined there.
    """
    v = _clean(values)
    if len(v) < min_samples:
        logger.debug("Skipping normality test: %d value(s)", len(v))
        return np.nan
    if np.ptp(v) == 0:
        logger.debug("Skipping normality test: constant sample")
        return np.nan
    return float(stats.shapiro(v).pvalue)


def rank_sum_test(a, b) -> Tuple[float, float]:
    """
    Two-sided Wilcoxon rank-sum test between two independent samples.

    Returns:
        (statistic, p_value), both NaN if either sample is empty or all
        values across both samples are equal.
    """
    a, b = _clean(a), _clean(b)
    if len(a) == 0 or len(b) == 0:
        logger.debug("Skipping rank-sum test: empty sample (%d, %d)", len(a), len(b))
        return np.nan, np.nan
    if np.ptp(np.concatenate([a, b])) == 0:
        logger.debug("Skipping rank-sum test: both samples constant and equal")
        return np.nan, np.nan
    result = stats.ranksums(a, b, alternative="two-sided")
    return float(result.statistic), float(result.pvalue)


def linear_fit(x, y, min_samples: int = 3) -> Dict[str, float]:
    """
    Least-squares line of *y* against *x*.

    Returns:
        Dict with n, r_squared, slope, intercept, p_value, stderr.  All but
        n are NaN for fewer than *min_samples* paired values or when either
        variable is constant.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    ok = np.isfinite(x) & np.isfinite(y)
    x, y = x[ok], y[ok]

    result = {
        "n": int(len(x)),
        "r_squared": np.nan,
        "slope": np.nan,
        "intercept": np.nan,
        "p_value": np.nan,
        "stderr": np.nan,
    }
    if len(x) < min_samples or np.ptp(x) == 0 or np.ptp(y) == 0:
        logger.debug("Skipping regression: n=%d or constant input", len(x))
        return result

    fit = stats.linregress(x, y)
    result.update({
        "r_squared": float(fit.rvalue ** 2),
        "slope": float(fit.slope),
        "intercept": float(fit.intercept),
        "p_value": float(fit.pvalue),
        "stderr": float(fit.stderr),
    })
    return result
