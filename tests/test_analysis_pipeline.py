"""Tests for the metrics pipeline orchestrator."""

import pytest

from brand_metrics.analysis.aggregation import MetricsAggregator
from brand_metrics.analysis.pipeline import (
    aggregate_all,
    compute_metrics,
    score_record,
    score_records,
    scopes_for,
)
from brand_metrics.analysis.types import MetricScope, ScopeType
from brand_metrics.schemas.record import BrandRoster


def _make_raw(record_id, platform, persona, text, citations=None):
    return {
        "id": record_id,
        "platformId": platform,
        "topicId": "payments",
        "personaId": persona,
        "text": text,
        "citations": citations or [],
    }


RAW_RECORDS = [
    _make_raw(
        "1",
        "chatgpt",
        "founder",
        "Stripe is the default choice. Adyen suits enterprises.",
        [{"url": "https://stripe.com/docs", "anchorText": "Docs"}],
    ),
    _make_raw("2", "perplexity", "cfo", "Adyen leads for global merchants.", ["https://www.reddit.com/r/fintech"]),
    {"platformId": "chatgpt", "text": "Record without an id."},
]

ROSTER = BrandRoster(brandName="Stripe", competitorNames=["Adyen"])


class TestComputeMetrics:
    """Test the end-to-end computation."""

    def test_malformed_record_skipped(self):
        report = compute_metrics(RAW_RECORDS, ROSTER)
        assert len(report.rejections) == 1
        assert report.overall.total_responses == 2

    def test_overall_metrics(self):
        overall = compute_metrics(RAW_RECORDS, ROSTER).overall
        assert overall.get("Stripe").visibility_score == pytest.approx(50.0)
        assert overall.get("Adyen").visibility_score == pytest.approx(100.0)
        assert overall.get("Stripe").brand_citations == pytest.approx(0.95)
        assert overall.get("Adyen").brand_citations == 0.0

    def test_scopes(self):
        report = compute_metrics(RAW_RECORDS, ROSTER)
        assert [str(m.scope) for m in report.metric_sets] == [
            "overall:all",
            "platform:chatgpt",
            "platform:perplexity",
            "topic:payments",
            "persona:cfo",
            "persona:founder",
        ]
        assert [m.scope.key for m in report.by_type(ScopeType.PLATFORM)] == ["chatgpt", "perplexity"]
        chatgpt = report.get(MetricScope(ScopeType.PLATFORM, "chatgpt"))
        assert chatgpt.get("Stripe").visibility_score == pytest.approx(100.0)

    def test_inline_citations(self):
        raw = [_make_raw("1", "chatgpt", "founder", "Compare fees on [Stripe pricing](https://stripe.com/pricing).")]
        without = compute_metrics(raw, ROSTER).overall.get("Stripe")
        with_inline = compute_metrics(raw, ROSTER, include_inline_citations=True).overall.get("Stripe")
        assert without.brand_citations == 0.0
        assert with_inline.brand_citations == pytest.approx(0.95)

    def test_unusable_roster_rejects_every_record(self):
        report = compute_metrics(RAW_RECORDS[:2], BrandRoster(brandName="®"))
        assert [r.record_id for r in report.rejections] == ["1", "2"]
        assert report.overall.is_empty

    def test_to_dict(self):
        data = compute_metrics(RAW_RECORDS, ROSTER).to_dict()
        assert data["metric_sets"][0]["scope"] == "overall"
        assert data["rejections"][0]["reason"]


class TestScoreRecords:
    """Test batch scoring."""

    def _records(self, make_record):
        texts = ["Stripe wins.", "Adyen wins.", "Stripe and Adyen tie.", "Nobody wins.", "Adyen then Stripe."]
        return [make_record(text, record_id=f"r{i}") for i, text in enumerate(texts)]

    def test_order_preserved(self, scorer, make_record):
        batch = score_records(self._records(make_record), ROSTER, max_workers=1, scorer=scorer)
        assert [(s.record_id, s.brand) for s in batch.scored][:4] == [
            ("r0", "Stripe"),
            ("r0", "Adyen"),
            ("r1", "Stripe"),
            ("r1", "Adyen"),
        ]
        assert batch.rejections == ()

    def test_parallel_matches_sequential(self, scorer, make_record):
        records = self._records(make_record)
        sequential = score_records(records, ROSTER, max_workers=1, scorer=scorer)
        parallel = score_records(records, ROSTER, max_workers=4, scorer=scorer)
        assert parallel == sequential

    def test_score_record(self, scorer, make_record):
        results = score_record(make_record("Adyen then Stripe."), "Stripe", ["Adyen"], scorer=scorer)
        assert [(r.brand, r.first_position) for r in results] == [("Stripe", 1), ("Adyen", 1)]


class TestAggregateAll:
    """Test scope fan-in."""

    def test_scopes_for(self, scorer, make_record):
        records = [
            make_record("Stripe.", record_id="a", platform_id="gemini", topic_id="", persona_id=""),
            make_record("Adyen.", record_id="b", platform_id="chatgpt", topic_id="fees", persona_id=""),
        ]
        scored = score_records(records, ROSTER, scorer=scorer).scored
        assert [str(s) for s in scopes_for(scored)] == [
            "overall:all",
            "platform:chatgpt",
            "platform:gemini",
            "topic:fees",
        ]

    def test_custom_aggregator(self, scorer, make_record):
        scored = score_records([make_record("Stripe.")], ROSTER, scorer=scorer).scored
        aggregator = MetricsAggregator(brands=["Stripe", "Adyen", "Square"])
        sets = aggregate_all(scored, aggregator=aggregator)
        assert [m.brand_name for m in sets[0].brand_metrics] == ["Stripe", "Adyen", "Square"]
