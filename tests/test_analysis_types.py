"""Tests for metrics engine types."""

import pytest

from brand_metrics.analysis.types import (
    VISIBILITY_SCORE,
    AggregatedMetricSet,
    BrandMetric,
    CitationCounts,
    CitationType,
    ConfidenceInterval,
    MatchMethod,
    MetricScope,
    ScopeType,
    ScoredRecord,
    Sentiment,
    SentimentCounts,
)


class TestEnums:
    def test_values(self):
        assert CitationType.BRAND.value == "brand"
        assert MatchMethod.FUZZY == "fuzzy"
        assert ScopeType("persona") == ScopeType.PERSONA


class TestCitationCounts:
    def test_total(self):
        assert CitationCounts(brand=0.95, earned=0.63, social=0.76).total == 0.95 + 0.63 + 0.76
        assert CitationCounts().total == 0.0


class TestMetricScope:
    """Test scope membership."""

    def _record(self):
        return ScoredRecord(record_id="r1", brand="Stripe", platform_id="gemini", topic_id="fees", persona_id="cto")

    def test_overall(self):
        assert MetricScope.overall().contains(self._record())
        assert str(MetricScope.overall()) == "overall:all"

    def test_partitions(self):
        record = self._record()
        assert MetricScope(ScopeType.PLATFORM, "gemini").contains(record)
        assert not MetricScope(ScopeType.PLATFORM, "chatgpt").contains(record)
        assert MetricScope(ScopeType.TOPIC, "fees").contains(record)
        assert MetricScope(ScopeType.PERSONA, "cto").contains(record)
        assert not MetricScope(ScopeType.PERSONA, "cfo").contains(record)


class TestScoredRecord:
    def test_to_dict(self):
        data = ScoredRecord(record_id="r1", brand="Stripe", mentioned=True, first_position=2).to_dict()
        assert data["record_id"] == "r1"
        assert data["first_position"] == 2
        assert data["citation_counts"] == {"brand": 0.0, "earned": 0.0, "social": 0.0}
        assert data["citations"] == []


class TestBrandMetric:
    """Test BrandMetric helpers."""

    def test_confidence_interval_default(self):
        assert BrandMetric(brand_name="Stripe").confidence_interval == ConfidenceInterval()

    def test_confidence_interval(self):
        ci = ConfidenceInterval(value=80.0, margin=35.06, lower=44.94, upper=100.0, sample_size=5)
        metric = BrandMetric(brand_name="Stripe", confidence_intervals={VISIBILITY_SCORE: ci})
        assert metric.confidence_interval == ci

    def test_to_dict_without_variance(self):
        data = BrandMetric(brand_name="Stripe").to_dict()
        assert data["avg_position"] is None
        assert data["visibility_variance"] is None

    def test_total_weighted_citations(self):
        metric = BrandMetric(brand_name="Stripe", brand_citations=1.0, earned_citations=0.5, social_citations=0.25)
        assert metric.total_weighted_citations == 1.75


class TestAggregatedMetricSet:
    def test_get_case_insensitive(self):
        metrics = AggregatedMetricSet(brand_metrics=(BrandMetric(brand_name="Stripe"),))
        assert metrics.get(" stripe ").brand_name == "Stripe"
        assert metrics.get("Adyen") is None
        assert metrics.is_empty


class TestSentimentCounts:
    def test_score_and_label(self):
        counts = SentimentCounts(positive=3, neutral=1)
        assert counts.total == 4
        assert counts.score == 75.0
        assert counts.label == Sentiment.POSITIVE
        assert SentimentCounts(negative=1).label == Sentiment.NEGATIVE

    def test_empty(self):
        assert SentimentCounts().score == 0.0
        assert SentimentCounts().label == Sentiment.NEUTRAL


class TestBrandMetricImmutability:
    """Test that mapping fields cannot be changed after construction."""

    def test_mappings_are_read_only(self):
        ranks = {VISIBILITY_SCORE: 1}
        metric = BrandMetric(brand_name="Stripe", ranks=ranks, citation_type_counts={"brand": 2})
        with pytest.raises(TypeError):
            metric.ranks[VISIBILITY_SCORE] = 5
        with pytest.raises(TypeError):
            metric.citation_type_counts["earned"] = 1
        with pytest.raises(TypeError):
            metric.confidence_intervals[VISIBILITY_SCORE] = ConfidenceInterval()

    def test_source_dict_not_shared(self):
        ranks = {VISIBILITY_SCORE: 1}
        metric = BrandMetric(brand_name="Stripe", ranks=ranks)
        ranks[VISIBILITY_SCORE] = 9
        assert metric.ranks[VISIBILITY_SCORE] == 1

    def test_equality_and_serialization(self):
        a = BrandMetric(brand_name="Stripe", ranks={VISIBILITY_SCORE: 1})
        b = BrandMetric(brand_name="Stripe", ranks={VISIBILITY_SCORE: 1})
        assert a == b
        data = a.to_dict()
        assert data["ranks"] == {VISIBILITY_SCORE: 1}
        assert data["position_distribution"]["count_other"] == 0
        assert data["sentiment"] == {"score": 0.0, "share": 0.0, "breakdown": {}}
