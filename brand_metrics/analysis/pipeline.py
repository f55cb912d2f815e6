"""Metrics Pipeline: orchestrator for the batch computation.

Chains the engine steps:
  1. Ingestion: raw dicts → validated ResponseRecords (malformed ones skipped)
  2. Scoring: each record × every roster brand → ScoredRecord (fan-out)
  3. Aggregation: overall scope plus one scope per platform, topic and persona (fan-in)

Input:  raw response records + BrandRoster
Output: MetricsReport (one AggregatedMetricSet per scope, plus rejections)
"""

from __future__ import annotations

import logging
import concurrent.futures
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from brand_metrics.analysis.aggregation import MetricsAggregator
from brand_metrics.analysis.errors import InvalidInputError
from brand_metrics.analysis.scoring import RecordScorer
from brand_metrics.analysis.types import AggregatedMetricSet, MetricScope, ScopeType, ScoredRecord
from brand_metrics.core.config import settings
from brand_metrics.core.logging import RecordLogger
from brand_metrics.schemas.record import BrandRoster, RecordRejection, ResponseRecord, parse_records

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringBatch:
    """Scored records of a batch, in input order, and the records that were skipped."""

    scored: tuple[ScoredRecord, ...] = ()
    rejections: tuple[RecordRejection, ...] = ()


@dataclass(frozen=True)
class MetricsReport:
    """All metric sets of one analysis."""

    metric_sets: tuple[AggregatedMetricSet, ...] = ()
    rejections: tuple[RecordRejection, ...] = ()
    scored: tuple[ScoredRecord, ...] = field(default=(), repr=False)

    @property
    def overall(self) -> AggregatedMetricSet | None:
        return self.get(MetricScope.overall())

    def get(self, scope: MetricScope) -> AggregatedMetricSet | None:
        for metric_set in self.metric_sets:
            if metric_set.scope == scope:
                return metric_set
        return None

    def by_type(self, scope_type: ScopeType) -> list[AggregatedMetricSet]:
        return [m for m in self.metric_sets if m.scope.type == scope_type]

    def to_dict(self) -> dict:
        return {
            "metric_sets": [m.to_dict() for m in self.metric_sets],
            "rejections": [r.model_dump() for r in self.rejections],
        }


def score_record(
    record: ResponseRecord,
    brand: str,
    competitors: Iterable[str] = (),
    scorer: RecordScorer | None = None,
) -> list[ScoredRecord]:
    """Score one record against a brand and its competitors.

    Raises:
        InvalidInputError: a brand name is blank.
    """
    return (scorer or RecordScorer()).score(record, brand, competitors)


def score_records(
    records: Sequence[ResponseRecord],
    roster: BrandRoster,
    max_workers: int | None = None,
    scorer: RecordScorer | None = None,
) -> ScoringBatch:
    """Score a batch of records, optionally across a thread pool.

    Records that fail with InvalidInputError are logged and skipped; the
    rest of the batch continues. Output order follows input order.
    """
    scorer = scorer or RecordScorer()
    workers = settings.scoring_max_workers if max_workers is None else max_workers
    brand, competitors = roster.brand_name, roster.competitor_names

    def run(item: tuple[int, ResponseRecord]) -> tuple[int, list[ScoredRecord] | RecordRejection]:
        index, record = item
        try:
            return index, scorer.score(record, brand, competitors)
        except InvalidInputError as e:
            record_id = e.record_id or record.id
            RecordLogger(logger, record_id).warning("Skipping record %s: %s", record_id, e)
            return index, RecordRejection(record_id=record_id, reason=str(e))

    items = list(enumerate(records))
    if workers <= 1 or len(items) <= 1:
        results = [run(item) for item in items]
    else:
        results = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=min(workers, len(items))) as pool:
            futures = [pool.submit(run, item) for item in items]
            for fut in concurrent.futures.as_completed(futures):
                results.append(fut.result())
        results.sort(key=lambda pair: pair[0])

    scored: list[ScoredRecord] = []
    rejections: list[RecordRejection] = []
    for _index, outcome in results:
        if isinstance(outcome, RecordRejection):
            rejections.append(outcome)
        else:
            scored.extend(outcome)

    logger.info(
        "Batch scoring complete: %d records, %d brands, %d skipped",
        len(records) - len(rejections),
        len(roster.all_brands),
        len(rejections),
    )
    return ScoringBatch(scored=tuple(scored), rejections=tuple(rejections))


def scopes_for(scored: Iterable[ScoredRecord]) -> list[MetricScope]:
    """Overall scope, then every distinct platform, topic and persona key (sorted)."""
    platforms: set[str] = set()
    topics: set[str] = set()
    personas: set[str] = set()
    for r in scored:
        if r.platform_id:
            platforms.add(r.platform_id)
        if r.topic_id:
            topics.add(r.topic_id)
        if r.persona_id:
            personas.add(r.persona_id)

    scopes = [MetricScope.overall()]
    scopes.extend(MetricScope(ScopeType.PLATFORM, key) for key in sorted(platforms))
    scopes.extend(MetricScope(ScopeType.TOPIC, key) for key in sorted(topics))
    scopes.extend(MetricScope(ScopeType.PERSONA, key) for key in sorted(personas))
    return scopes


def aggregate_all(
    scored: Sequence[ScoredRecord],
    roster: BrandRoster | None = None,
    aggregator: MetricsAggregator | None = None,
) -> list[AggregatedMetricSet]:
    """Aggregate every scope present in the scored records."""
    if aggregator is None:
        aggregator = MetricsAggregator(brands=roster.all_brands if roster is not None else None)
    return [aggregator.aggregate(scored, scope) for scope in scopes_for(scored)]


def compute_metrics(
    raw_records: Iterable[ResponseRecord | dict[str, Any]],
    roster: BrandRoster,
    max_workers: int | None = None,
    include_inline_citations: bool = False,
) -> MetricsReport:
    """Run ingestion, scoring and aggregation for one analysis.

    Args:
        raw_records: Records as dicts (camelCase or snake_case) or ResponseRecords.
        roster: Target brand and competitors.
        max_workers: Scoring fan-out width; defaults to settings.scoring_max_workers.
        include_inline_citations: Also classify links found in the response text.

    Returns:
        MetricsReport with the overall and per-partition metric sets.
    """
    records, rejections = parse_records(raw_records)
    if include_inline_citations:
        records = [r.with_inline_citations() for r in records]

    batch = score_records(records, roster, max_workers=max_workers)
    metric_sets = aggregate_all(batch.scored, roster)

    logger.info(
        "Metrics computed: brand=%s, records=%d, rejected=%d, scopes=%d",
        roster.brand_name,
        len(records),
        len(rejections) + len(batch.rejections),
        len(metric_sets),
    )
    return MetricsReport(
        metric_sets=tuple(metric_sets),
        rejections=tuple(rejections) + batch.rejections,
        scored=batch.scored,
    )
