"""Tests for small-sample statistics."""

import pytest

from brand_metrics.analysis.statistics import (
    clamp_percent,
    coefficient_of_variation,
    prior_weight,
    raw_shares,
    smooth,
    smooth_shares,
    wald_interval,
)


class TestSmoothing:
    """Test prior blending."""

    def test_prior_weight(self):
        assert prior_weight(0, 10) == 1.0
        assert prior_weight(6, 10) == pytest.approx(0.4)
        assert prior_weight(10, 10) == 0.0
        assert prior_weight(15, 10) == 0.0

    def test_two_brand_citation_example(self):
        # 4 vs 2 weighted citations: raw 66.67%, smoothed toward 50%
        assert smooth(400 / 6, 50.0, 6, 10) == pytest.approx(60.0)

    def test_shares_sum_to_100(self):
        shares = smooth_shares([400 / 6, 200 / 6], 6, 10)
        assert shares.tolist() == pytest.approx([60.0, 40.0])
        assert shares.sum() == pytest.approx(100.0)

    def test_monotonic_toward_raw(self):
        raw = 90.0
        gaps = [abs(smooth(raw, 50.0, n, 10) - raw) for n in range(0, 12)]
        assert all(a >= b for a, b in zip(gaps, gaps[1:]))
        assert gaps[10] == 0.0

    def test_smooth_shares_empty(self):
        assert smooth_shares([], 3, 10).size == 0


class TestRawShares:
    """Test raw_shares()."""

    def test_proportional(self):
        assert raw_shares([3, 1]).tolist() == pytest.approx([75.0, 25.0])

    def test_zero_total(self):
        assert raw_shares([0, 0]).tolist() == [0.0, 0.0]


class TestWaldInterval:
    """Test the 95% Wald interval."""

    def test_clamped_upper(self):
        ci = wald_interval(80.0, 5)
        assert ci.margin == pytest.approx(35.06, abs=0.01)
        assert ci.lower == pytest.approx(44.94, abs=0.01)
        assert ci.upper == 100.0
        assert ci.sample_size == 5

    def test_no_sample(self):
        ci = wald_interval(50.0, 0)
        assert ci.margin == 0.0
        assert ci.value == 50.0

    def test_zero_proportion(self):
        ci = wald_interval(0.0, 20)
        assert (ci.margin, ci.lower, ci.upper) == (0.0, 0.0, 0.0)


class TestCoefficientOfVariation:
    """Test visibility variance."""

    def test_small_sample(self):
        assert coefficient_of_variation(80.0, 4) is None

    def test_values(self):
        assert coefficient_of_variation(80.0, 5) == pytest.approx(0.2236, abs=1e-4)
        assert coefficient_of_variation(20.0, 5) == pytest.approx(0.8944, abs=1e-4)

    def test_zero_proportion(self):
        assert coefficient_of_variation(0.0, 10) == 0.0


class TestClamp:
    def test_bounds(self):
        assert clamp_percent(-1.0) == 0.0
        assert clamp_percent(101.0) == 100.0
        assert clamp_percent(42.5) == 42.5
