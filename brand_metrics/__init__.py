"""Brand visibility and citation metrics for LLM responses."""

from brand_metrics.analysis.aggregation import MetricsAggregator, aggregate
from brand_metrics.analysis.brand_matcher import BrandMatcher
from brand_metrics.analysis.citation_classifier import CitationClassifier
from brand_metrics.analysis.errors import InvalidInputError, MetricsEngineError
from brand_metrics.analysis.pipeline import (
    MetricsReport,
    aggregate_all,
    compute_metrics,
    score_record,
    score_records,
)
from brand_metrics.analysis.scoring import RecordScorer
from brand_metrics.analysis.types import AggregatedMetricSet, BrandMetric, MetricScope, ScopeType, ScoredRecord
from brand_metrics.analysis.url_cleaner import validate_and_clean_url
from brand_metrics.analysis.variants import VariantCache, generate_variants
from brand_metrics.schemas.record import BrandRoster, ResponseRecord, parse_records

__version__ = "0.1.0"

__all__ = [
    "AggregatedMetricSet",
    "BrandMatcher",
    "BrandMetric",
    "BrandRoster",
    "CitationClassifier",
    "InvalidInputError",
    "MetricScope",
    "MetricsAggregator",
    "MetricsEngineError",
    "MetricsReport",
    "RecordScorer",
    "ResponseRecord",
    "ScopeType",
    "ScoredRecord",
    "VariantCache",
    "aggregate",
    "aggregate_all",
    "compute_metrics",
    "generate_variants",
    "parse_records",
    "score_record",
    "score_records",
    "validate_and_clean_url",
]
