"""Core types and DTOs for the Brand Visibility & Citation Metrics Engine."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class MatchMethod(str, Enum):
    """Which matching strategy detected a brand."""

    EXACT = "exact"  # Whole-word name or generated variant
    ABBREVIATION = "abbreviation"  # Acronym or known abbreviation
    SUBSTRING = "substring"  # Distinctive token of the brand name
    FUZZY = "fuzzy"  # Normalized Levenshtein similarity
    NONE = "none"


class CitationType(str, Enum):
    """PESO-style citation category, scoped to one target brand."""

    BRAND = "brand"  # Owned media of the target brand
    EARNED = "earned"  # Third-party editorial
    SOCIAL = "social"  # Shared / social platforms
    UNKNOWN = "unknown"  # Failed validation


class Sentiment(str, Enum):
    """Keyword polarity of a sentence or a response."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class ScopeType(str, Enum):
    """Aggregation partition."""

    OVERALL = "overall"
    PLATFORM = "platform"
    TOPIC = "topic"
    PERSONA = "persona"


# Metric names used as keys in BrandMetric.ranks / confidence_intervals
VISIBILITY_SCORE = "visibility_score"
SHARE_OF_VOICE = "share_of_voice"
AVG_POSITION = "avg_position"
DEPTH_OF_MENTION = "depth_of_mention"
CITATION_SHARE = "citation_share"
TOTAL_MENTIONS = "total_mentions"
SENTIMENT_SCORE = "sentiment_score"


# ---------------------------------------------------------------------------
# Matching results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MatchResult:
    """Outcome of BrandMatcher.detect for one text and one brand."""

    detected: bool = False
    confidence: float = 0.0  # 0.0–1.0
    matched_span: tuple[int, int] | None = None  # (start, end) character offsets
    matched_text: str = ""
    method: MatchMethod = MatchMethod.NONE


@dataclass(frozen=True)
class BrandMention:
    """Brand presence across the sentences of one response."""

    brand: str
    detected: bool = False
    confidence: float = 0.0  # Mean confidence over matching sentences
    first_sentence_index: int | None = None  # 0-based, None when not detected


# ---------------------------------------------------------------------------
# Citations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExtractedLink:
    """A link found in response text."""

    url: str
    anchor_text: str = ""
    footnote_index: int | None = None  # [1], [^2] footnote reference
    is_native: bool = False  # Supplied by the record rather than found in the text


@dataclass(frozen=True)
class CleanedUrl:
    """Result of URL validation and cleanup."""

    valid: bool
    cleaned_url: str | None = None
    domain: str | None = None  # Lowercase hostname without www.
    reason: str = ""  # Why validation failed


@dataclass(frozen=True)
class Classification:
    """Citation category for one URL relative to one target brand."""

    type: CitationType = CitationType.UNKNOWN
    brand: str | None = None
    confidence: float = 0.0
    label: str = ""  # e.g. "brand_domain_starts_with", "news_media_outlet"


@dataclass(frozen=True)
class Citation:
    """A validated, classified citation."""

    url: str
    cleaned_url: str
    domain: str
    type: CitationType
    confidence: float
    brand: str | None = None
    label: str = ""
    anchor_text: str = ""


@dataclass(frozen=True)
class CitationCounts:
    """Confidence × type-weight sums of a brand's citations."""

    brand: float = 0.0
    earned: float = 0.0
    social: float = 0.0

    @property
    def total(self) -> float:
        return self.brand + self.earned + self.social


@dataclass(frozen=True)
class SentimentCounts:
    """Polarity of the sentences that mention a brand in one response."""

    positive: int = 0
    neutral: int = 0
    negative: int = 0

    @property
    def total(self) -> int:
        return self.positive + self.neutral + self.negative

    @property
    def score(self) -> float:
        """(positive − negative) / sentences × 100, in [−100, 100]."""
        if self.total == 0:
            return 0.0
        return (self.positive - self.negative) / self.total * 100.0

    @property
    def label(self) -> Sentiment:
        if self.score > 0:
            return Sentiment.POSITIVE
        if self.score < 0:
            return Sentiment.NEGATIVE
        return Sentiment.NEUTRAL


# ---------------------------------------------------------------------------
# Scoring output: one per record × brand
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoredRecord:
    """Scores of one response record for one brand."""

    record_id: str
    brand: str
    platform_id: str = ""
    topic_id: str = ""
    persona_id: str = ""
    prompt_id: str = ""

    mentioned: bool = False
    first_position: int | None = None  # 1-indexed sentence ordinal
    mention_count: int = 0
    detection_confidence: float = 0.0
    weighted_depth_contribution: float = 0.0
    rank_position: int | None = None  # Rank among brands mentioned in this response

    # Response-level totals (identical for every brand of a record)
    word_count: int = 0
    sentence_count: int = 0

    citation_counts: CitationCounts = field(default_factory=CitationCounts)
    citations: tuple[Citation, ...] = ()
    sentiment: SentimentCounts = field(default_factory=SentimentCounts)

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict for storage/API."""
        return {
            "record_id": self.record_id,
            "brand": self.brand,
            "platform_id": self.platform_id,
            "topic_id": self.topic_id,
            "persona_id": self.persona_id,
            "prompt_id": self.prompt_id,
            "mentioned": self.mentioned,
            "first_position": self.first_position,
            "mention_count": self.mention_count,
            "rank_position": self.rank_position,
            "detection_confidence": round(self.detection_confidence, 4),
            "weighted_depth_contribution": round(self.weighted_depth_contribution, 4),
            "word_count": self.word_count,
            "sentence_count": self.sentence_count,
            "citation_counts": {
                "brand": round(self.citation_counts.brand, 4),
                "earned": round(self.citation_counts.earned, 4),
                "social": round(self.citation_counts.social, 4),
            },
            "citations": [
                {
                    "url": c.cleaned_url,
                    "domain": c.domain,
                    "type": c.type.value,
                    "confidence": c.confidence,
                    "brand": c.brand,
                }
                for c in self.citations
            ],
            "sentiment": {
                "positive": self.sentiment.positive,
                "neutral": self.sentiment.neutral,
                "negative": self.sentiment.negative,
                "score": round(self.sentiment.score, 2),
            },
        }


# ---------------------------------------------------------------------------
# Aggregation output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetricScope:
    """An aggregation partition: overall, or one platform/topic/persona key."""

    type: ScopeType = ScopeType.OVERALL
    key: str = "all"

    @classmethod
    def overall(cls) -> MetricScope:
        return cls(ScopeType.OVERALL, "all")

    def contains(self, record: ScoredRecord) -> bool:
        if self.type == ScopeType.OVERALL:
            return True
        if self.type == ScopeType.PLATFORM:
            return record.platform_id == self.key
        if self.type == ScopeType.TOPIC:
            return record.topic_id == self.key
        return record.persona_id == self.key

    def __str__(self) -> str:
        return f"{self.type.value}:{self.key}"


@dataclass(frozen=True)
class ConfidenceInterval:
    """95% Wald interval of a proportion metric, in percent."""

    value: float = 0.0  # Observed (unsmoothed) percentage
    margin: float = 0.0
    lower: float = 0.0
    upper: float = 0.0
    sample_size: float = 0.0


@dataclass(frozen=True)
class BrandMetric:
    """Ranked metrics for one brand within one scope.

    Mapping fields are stored as read-only views, so a BrandMetric cannot be
    changed after the aggregator builds it.
    """

    brand_name: str
    visibility_score: float = 0.0  # Observed % of responses mentioning the brand
    smoothed_visibility_score: float = 0.0  # Blended toward the prior for few prompts
    share_of_voice: float = 0.0
    avg_position: float | None = None  # None when the brand never appears
    depth_of_mention: float = 0.0
    citation_share: float = 0.0  # Smoothed toward an equal split for few citations
    raw_citation_share: float = 0.0

    sentiment_score: float = 0.0  # Mean response sentiment over appearances, −100..100
    sentiment_share: float = 0.0  # % of appearances with positive sentiment

    confidence_intervals: Mapping[str, ConfidenceInterval] = field(default_factory=dict)
    ranks: Mapping[str, int] = field(default_factory=dict)

    total_appearances: int = 0
    total_mentions: int = 0
    brand_citations: float = 0.0  # Weighted sums
    earned_citations: float = 0.0
    social_citations: float = 0.0
    citation_type_counts: Mapping[str, int] = field(default_factory=dict)  # Unweighted
    sentiment_breakdown: Mapping[str, int] = field(default_factory=dict)  # Appearances per Sentiment
    count_1st: int = 0
    count_2nd: int = 0
    count_3rd: int = 0
    count_other: int = 0  # Appearances ranked 4th or lower

    visibility_cv: float | None = None  # Coefficient of variation, ≥5 responses only
    is_high_variance: bool = False

    def __post_init__(self):
        for name in ("confidence_intervals", "ranks", "citation_type_counts", "sentiment_breakdown"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    @property
    def position_distribution(self) -> dict[str, float]:
        """Share of ranked appearances per position bucket, in percent."""
        counts = {
            "first": self.count_1st,
            "second": self.count_2nd,
            "third": self.count_3rd,
            "other": self.count_other,
        }
        total = sum(counts.values())
        if total == 0:
            return {name: 0.0 for name in counts}
        return {name: count / total * 100.0 for name, count in counts.items()}

    @property
    def confidence_interval(self) -> ConfidenceInterval:
        """Interval of the visibility score."""
        return self.confidence_intervals.get(VISIBILITY_SCORE, ConfidenceInterval())

    @property
    def total_weighted_citations(self) -> float:
        return self.brand_citations + self.earned_citations + self.social_citations

    def to_dict(self) -> dict:
        return {
            "brand_name": self.brand_name,
            "visibility_score": round(self.visibility_score, 2),
            "smoothed_visibility_score": round(self.smoothed_visibility_score, 2),
            "share_of_voice": round(self.share_of_voice, 2),
            "avg_position": round(self.avg_position, 2) if self.avg_position is not None else None,
            "depth_of_mention": round(self.depth_of_mention, 4),
            "citation_share": round(self.citation_share, 2),
            "raw_citation_share": round(self.raw_citation_share, 2),
            "confidence_intervals": {
                name: {
                    "margin": round(ci.margin, 2),
                    "lower": round(ci.lower, 2),
                    "upper": round(ci.upper, 2),
                    "sample_size": ci.sample_size,
                }
                for name, ci in self.confidence_intervals.items()
            },
            "ranks": dict(self.ranks),
            "total_appearances": self.total_appearances,
            "total_mentions": self.total_mentions,
            "citations": {
                "brand": round(self.brand_citations, 4),
                "earned": round(self.earned_citations, 4),
                "social": round(self.social_citations, 4),
                "counts": dict(self.citation_type_counts),
            },
            "position_distribution": {
                "count_1st": self.count_1st,
                "count_2nd": self.count_2nd,
                "count_3rd": self.count_3rd,
                "count_other": self.count_other,
                "percentages": {name: round(pct, 2) for name, pct in self.position_distribution.items()},
            },
            "sentiment": {
                "score": round(self.sentiment_score, 2),
                "share": round(self.sentiment_share, 2),
                "breakdown": dict(self.sentiment_breakdown),
            },
            "visibility_variance": (
                {"coefficient_of_variation": round(self.visibility_cv, 3), "is_high_variance": self.is_high_variance}
                if self.visibility_cv is not None
                else None
            ),
        }


@dataclass(frozen=True)
class AggregatedMetricSet:
    """Immutable snapshot of all brand metrics for one scope."""

    scope: MetricScope = field(default_factory=MetricScope.overall)
    total_responses: int = 0
    total_prompts: int = 0
    total_words: int = 0
    total_mentions: int = 0
    total_weighted_citations: float = 0.0
    brand_metrics: tuple[BrandMetric, ...] = ()

    def get(self, brand_name: str) -> BrandMetric | None:
        wanted = brand_name.strip().lower()
        for metric in self.brand_metrics:
            if metric.brand_name.lower() == wanted:
                return metric
        return None

    @property
    def is_empty(self) -> bool:
        return self.total_responses == 0

    def ranked(self, metric: str = VISIBILITY_SCORE) -> list[BrandMetric]:
        """Brand metrics best first on one metric; roster order breaks ties."""
        last = len(self.brand_metrics) + 1
        return sorted(self.brand_metrics, key=lambda m: m.ranks.get(metric, last))

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict for storage/API."""
        return {
            "scope": self.scope.type.value,
            "scope_value": self.scope.key,
            "total_responses": self.total_responses,
            "total_prompts": self.total_prompts,
            "total_words": self.total_words,
            "total_mentions": self.total_mentions,
            "total_weighted_citations": round(self.total_weighted_citations, 4),
            "total_brands": len(self.brand_metrics),
            "brand_metrics": [m.to_dict() for m in self.brand_metrics],
        }
