"""Small-sample statistics for brand metrics.

  - Linear-blend (Bayesian) smoothing toward a neutral prior:
      w = (min_sample − n) / min_sample,  smoothed = raw × (1 − w) + prior × w
  - 95% Wald interval of a proportion:
      margin = z × sqrt(p(1 − p) / n) × 100, bounds clamped to [0, 100]
  - Coefficient of variation of a visibility proportion (standard error / mean)

All percentages are on the 0–100 scale.
"""

from __future__ import annotations

import math

import numpy as np

from brand_metrics.analysis.types import ConfidenceInterval

HIGH_VARIANCE_CV = 0.3
MIN_VARIANCE_SAMPLE = 5


def clamp_percent(value: float) -> float:
    return float(min(100.0, max(0.0, value)))


def prior_weight(sample_size: float, min_sample: float) -> float:
    """Weight of the prior: 1.0 with no data, 0.0 once the sample reaches min_sample."""
    if min_sample <= 0 or sample_size >= min_sample:
        return 0.0
    return (min_sample - max(sample_size, 0.0)) / min_sample


def smooth(raw: float, prior: float, sample_size: float, min_sample: float) -> float:
    """Blend a raw percentage toward a prior for small samples."""
    w = prior_weight(sample_size, min_sample)
    return clamp_percent(raw * (1 - w) + prior * w)


def smooth_shares(raw_shares, total: float, min_sample: float) -> np.ndarray:
    """Blend a vector of shares toward an equal split (100 / brand count).

    The result still sums to 100 whenever the raw shares do.
    """
    shares = np.asarray(raw_shares, dtype=np.float64)
    if shares.size == 0:
        return shares
    w = prior_weight(total, min_sample)
    equal = 100.0 / shares.size
    return np.clip(shares * (1 - w) + equal * w, 0.0, 100.0)


def raw_shares(counts) -> np.ndarray:
    """Percent share of each count in the total; all zeros when the total is zero."""
    values = np.asarray(counts, dtype=np.float64)
    total = values.sum()
    if values.size == 0 or total <= 0:
        return np.zeros(values.shape, dtype=np.float64)
    return values / total * 100.0


def wald_interval(percent: float, sample_size: float, z: float = 1.96) -> ConfidenceInterval:
    """95% (by default) Wald interval around an observed percentage."""
    if sample_size <= 0:
        return ConfidenceInterval(value=clamp_percent(percent), sample_size=max(sample_size, 0.0))
    p = min(1.0, max(0.0, percent / 100.0))
    margin = z * math.sqrt(p * (1 - p) / sample_size) * 100.0
    margin = clamp_percent(margin)
    return ConfidenceInterval(
        value=clamp_percent(percent),
        margin=margin,
        lower=clamp_percent(percent - margin),
        upper=clamp_percent(percent + margin),
        sample_size=sample_size,
    )


def coefficient_of_variation(percent: float, sample_size: int) -> float | None:
    """Standard error of a proportion divided by the proportion.

    Returns None below MIN_VARIANCE_SAMPLE observations, 0.0 for a zero proportion.
    """
    if sample_size < MIN_VARIANCE_SAMPLE:
        return None
    p = min(1.0, max(0.0, percent / 100.0))
    if p == 0:
        return 0.0
    return math.sqrt(p * (1 - p) / sample_size) / p
