import pytest

from brand_metrics.analysis.brand_matcher import BrandMatcher
from brand_metrics.analysis.citation_classifier import CitationClassifier
from brand_metrics.analysis.scoring import RecordScorer
from brand_metrics.analysis.sentiment import SentimentScorer
from brand_metrics.analysis.types import CitationType
from brand_metrics.analysis.variants import VariantCache
from brand_metrics.core.config import DEFAULT_NEGATIVE_KEYWORDS, DEFAULT_POSITIVE_KEYWORDS, DEFAULT_STOPLIST
from brand_metrics.schemas.record import ResponseRecord

# Fixed test configuration, independent of any .env / environment overrides
STOPLIST = frozenset(w.strip() for w in DEFAULT_STOPLIST.split(",") if w.strip())
POSITIVE_KEYWORDS = DEFAULT_POSITIVE_KEYWORDS.split(",")
NEGATIVE_KEYWORDS = DEFAULT_NEGATIVE_KEYWORDS.split(",")
ABBREVIATIONS = {
    "american express": ["amex"],
    "bank of america": ["bofa"],
    "jpmorgan chase": ["jpm"],
}
CITATION_WEIGHTS = {
    CitationType.BRAND: 1.0,
    CitationType.EARNED: 0.9,
    CitationType.SOCIAL: 0.8,
}


@pytest.fixture
def variant_cache():
    """Fresh variant cache per test."""
    return VariantCache(ABBREVIATIONS)


@pytest.fixture
def matcher(variant_cache):
    return BrandMatcher(cache=variant_cache, stoplist=STOPLIST, fuzzy_threshold=0.7)


@pytest.fixture
def classifier(variant_cache):
    return CitationClassifier(cache=variant_cache, stoplist=STOPLIST, fuzzy_threshold=0.85)


@pytest.fixture
def sentiment():
    return SentimentScorer(positive=POSITIVE_KEYWORDS, negative=NEGATIVE_KEYWORDS)


@pytest.fixture
def scorer(matcher, classifier, sentiment):
    return RecordScorer(
        matcher=matcher, classifier=classifier, citation_weights=CITATION_WEIGHTS, sentiment=sentiment
    )


@pytest.fixture
def make_record():
    """Factory for ResponseRecords with sensible defaults."""

    def _make(
        text: str = "",
        citations: list[str] | None = None,
        record_id: str = "r1",
        platform_id: str = "chatgpt",
        topic_id: str = "payments",
        persona_id: str = "founder",
        prompt_id: str | None = None,
    ) -> ResponseRecord:
        return ResponseRecord(
            id=record_id,
            platform_id=platform_id,
            topic_id=topic_id,
            persona_id=persona_id,
            prompt_id=prompt_id,
            text=text,
            citations=citations or [],
        )

    return _make
