"""Metrics Aggregator: scored records → ranked brand metrics for one scope.

  visibility_score  = appearances / responses × 100
                      (smoothed toward 50% while distinct prompts < 20)
  share_of_voice    = brand mentions / all brands' mentions × 100
  avg_position      = mean first position over appearances (None without any)
  depth_of_mention  = Σ weighted depth / Σ words of the scope's responses × 100
  citation_share    = brand weighted citations / all brands' × 100
                      (smoothed toward an equal split while the total < 10)
  sentiment_score   = mean response sentiment over appearances (−100..100)
  sentiment_share   = appearances with positive sentiment / appearances × 100

Every call is a full recompute from the given records: identical input
always yields an identical AggregatedMetricSet.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import numpy as np

from brand_metrics.analysis.ranking import competition_ranks
from brand_metrics.analysis.statistics import (
    HIGH_VARIANCE_CV,
    clamp_percent,
    coefficient_of_variation,
    raw_shares,
    smooth,
    smooth_shares,
    wald_interval,
)
from brand_metrics.analysis.types import (
    AVG_POSITION,
    CITATION_SHARE,
    DEPTH_OF_MENTION,
    SENTIMENT_SCORE,
    SHARE_OF_VOICE,
    TOTAL_MENTIONS,
    VISIBILITY_SCORE,
    AggregatedMetricSet,
    BrandMetric,
    CitationType,
    MetricScope,
    ScoredRecord,
    Sentiment,
)
from brand_metrics.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class _BrandTotals:
    """Running sums for one brand within a scope."""

    appearances: int = 0
    mentions: int = 0
    positions: list[int] = field(default_factory=list)
    depth: float = 0.0
    brand_citations: float = 0.0
    earned_citations: float = 0.0
    social_citations: float = 0.0
    type_counts: dict[str, int] = field(
        default_factory=lambda: {t.value: 0 for t in (CitationType.BRAND, CitationType.EARNED, CitationType.SOCIAL)}
    )
    rank_counts: list[int] = field(default_factory=lambda: [0, 0, 0, 0])  # 1st, 2nd, 3rd, other
    sentiment_scores: list[float] = field(default_factory=list)
    sentiment_labels: dict[str, int] = field(default_factory=lambda: {s.value: 0 for s in Sentiment})

    @property
    def weighted_citations(self) -> float:
        return self.brand_citations + self.earned_citations + self.social_citations

    def add(self, record: ScoredRecord) -> None:
        if record.mentioned:
            self.appearances += 1
            if record.first_position is not None:
                self.positions.append(record.first_position)
            if record.rank_position is not None and record.rank_position >= 1:
                self.rank_counts[min(record.rank_position, 4) - 1] += 1
            self.sentiment_scores.append(record.sentiment.score)
            self.sentiment_labels[record.sentiment.label.value] += 1
        self.mentions += record.mention_count
        self.depth += record.weighted_depth_contribution
        self.brand_citations += record.citation_counts.brand
        self.earned_citations += record.citation_counts.earned
        self.social_citations += record.citation_counts.social
        for citation in record.citations:
            if citation.type.value in self.type_counts:
                self.type_counts[citation.type.value] += 1


class MetricsAggregator:
    """Turns ScoredRecords into an AggregatedMetricSet per scope.

    Args:
        brands: Brands to report, in order. Defaults to brands in first-seen order.
        citation_min_sample: Weighted-citation total below which shares are smoothed.
        visibility_min_sample: Distinct prompts below which visibility is smoothed.
        visibility_prior: Prior visibility percentage.
        confidence_z: z of the Wald interval.
    """

    def __init__(
        self,
        brands: Sequence[str] | None = None,
        citation_min_sample: float | None = None,
        visibility_min_sample: float | None = None,
        visibility_prior: float | None = None,
        confidence_z: float | None = None,
    ):
        self.brands = list(brands) if brands is not None else None
        self.citation_min_sample = settings.citation_min_sample if citation_min_sample is None else citation_min_sample
        self.visibility_min_sample = (
            settings.visibility_min_sample if visibility_min_sample is None else visibility_min_sample
        )
        self.visibility_prior = settings.visibility_prior if visibility_prior is None else visibility_prior
        self.confidence_z = settings.confidence_z if confidence_z is None else confidence_z

    def _brand_order(self, records: Sequence[ScoredRecord]) -> list[str]:
        names: dict[str, str] = {}
        for name in self.brands or ():
            names.setdefault(name.strip().lower(), name.strip())
        if self.brands is None:
            for r in records:
                names.setdefault(r.brand.strip().lower(), r.brand.strip())
        return list(names.values())

    def _empty(self, scope: MetricScope, brands: Sequence[str]) -> AggregatedMetricSet:
        ranks = {
            VISIBILITY_SCORE: 1,
            SHARE_OF_VOICE: 1,
            AVG_POSITION: 1,
            DEPTH_OF_MENTION: 1,
            CITATION_SHARE: 1,
            TOTAL_MENTIONS: 1,
            SENTIMENT_SCORE: 1,
        }
        return AggregatedMetricSet(
            scope=scope,
            brand_metrics=tuple(BrandMetric(brand_name=b, ranks=dict(ranks)) for b in brands),
        )

    def aggregate(
        self,
        scored_records: Iterable[ScoredRecord],
        scope: MetricScope | None = None,
    ) -> AggregatedMetricSet:
        """Aggregate the records that fall into a scope.

        Args:
            scored_records: Output of RecordScorer for any number of records.
            scope: Partition to aggregate; overall when omitted.

        Returns:
            AggregatedMetricSet; all zeros when no record is in scope.
        """
        scope = scope or MetricScope.overall()
        records = [r for r in scored_records if scope.contains(r)]
        brands = self._brand_order(records)

        # One ScoredRecord per (record, brand); later duplicates are ignored
        unique: dict[tuple[str, str], ScoredRecord] = {}
        for r in records:
            unique.setdefault((r.record_id, r.brand.strip().lower()), r)
        records = list(unique.values())

        if not records:
            logger.info(
                "Aggregation %s: no records in scope, %d brands at zero",
                scope,
                len(brands),
                extra={"scope": str(scope)},
            )
            return self._empty(scope, brands)

        words_by_record: dict[str, int] = {}
        prompts: set[str] = set()
        for r in records:
            words_by_record.setdefault(r.record_id, r.word_count)
            prompts.add(r.prompt_id or r.record_id)
        total_responses = len(words_by_record)
        total_prompts = len(prompts)
        total_words = sum(words_by_record.values())

        totals = {b.lower(): _BrandTotals() for b in brands}
        for r in records:
            bucket = totals.get(r.brand.strip().lower())
            if bucket is not None:
                bucket.add(r)
        per_brand = [totals[b.lower()] for b in brands]

        appearances = np.array([t.appearances for t in per_brand], dtype=np.float64)
        mentions = np.array([t.mentions for t in per_brand], dtype=np.float64)
        depth = np.array([t.depth for t in per_brand], dtype=np.float64)
        weighted = np.array([t.weighted_citations for t in per_brand], dtype=np.float64)

        visibility = np.clip(appearances / total_responses * 100.0, 0.0, 100.0)
        share_of_voice = raw_shares(mentions)
        depth_of_mention = (
            np.clip(depth / total_words * 100.0, 0.0, 100.0) if total_words > 0 else np.zeros(len(brands))
        )
        total_weighted = float(weighted.sum())
        raw_citation = raw_shares(weighted)
        citation_share = (
            smooth_shares(raw_citation, total_weighted, self.citation_min_sample)
            if total_weighted > 0
            else np.zeros(len(brands))
        )
        avg_positions = [float(np.mean(t.positions)) if t.positions else None for t in per_brand]
        sentiment = [float(np.mean(t.sentiment_scores)) if t.sentiment_scores else None for t in per_brand]

        ranks = {
            VISIBILITY_SCORE: competition_ranks(visibility.tolist()),
            SHARE_OF_VOICE: competition_ranks(share_of_voice.tolist()),
            AVG_POSITION: competition_ranks(avg_positions, ascending=True),
            DEPTH_OF_MENTION: competition_ranks(depth_of_mention.tolist()),
            CITATION_SHARE: competition_ranks(citation_share.tolist()),
            TOTAL_MENTIONS: competition_ranks(mentions.tolist()),
            SENTIMENT_SCORE: competition_ranks(sentiment),
        }

        total_mentions = int(mentions.sum())
        metrics: list[BrandMetric] = []
        for i, (name, t) in enumerate(zip(brands, per_brand)):
            vis = float(visibility[i])
            cv = coefficient_of_variation(vis, total_responses)
            metrics.append(
                BrandMetric(
                    brand_name=name,
                    visibility_score=vis,
                    smoothed_visibility_score=smooth(
                        vis, self.visibility_prior, total_prompts, self.visibility_min_sample
                    ),
                    share_of_voice=float(share_of_voice[i]),
                    avg_position=avg_positions[i],
                    depth_of_mention=float(depth_of_mention[i]),
                    citation_share=clamp_percent(float(citation_share[i])),
                    raw_citation_share=float(raw_citation[i]),
                    confidence_intervals={
                        VISIBILITY_SCORE: wald_interval(vis, total_responses, self.confidence_z),
                        SHARE_OF_VOICE: wald_interval(float(share_of_voice[i]), total_mentions, self.confidence_z),
                        CITATION_SHARE: wald_interval(float(raw_citation[i]), total_weighted, self.confidence_z),
                    },
                    ranks={metric: values[i] for metric, values in ranks.items()},
                    total_appearances=t.appearances,
                    total_mentions=t.mentions,
                    brand_citations=t.brand_citations,
                    earned_citations=t.earned_citations,
                    social_citations=t.social_citations,
                    citation_type_counts=dict(t.type_counts),
                    count_1st=t.rank_counts[0],
                    count_2nd=t.rank_counts[1],
                    count_3rd=t.rank_counts[2],
                    count_other=t.rank_counts[3],
                    sentiment_score=sentiment[i] if sentiment[i] is not None else 0.0,
                    sentiment_share=(
                        t.sentiment_labels[Sentiment.POSITIVE.value] / t.appearances * 100.0 if t.appearances else 0.0
                    ),
                    sentiment_breakdown=t.sentiment_labels,
                    visibility_cv=cv,
                    is_high_variance=cv is not None and cv > HIGH_VARIANCE_CV,
                )
            )

        logger.info(
            "Aggregation %s: responses=%d, prompts=%d, words=%d, brands=%d, mentions=%d, weighted_citations=%.2f",
            scope,
            total_responses,
            total_prompts,
            total_words,
            len(brands),
            total_mentions,
            total_weighted,
            extra={"scope": str(scope)},
        )

        return AggregatedMetricSet(
            scope=scope,
            total_responses=total_responses,
            total_prompts=total_prompts,
            total_words=total_words,
            total_mentions=total_mentions,
            total_weighted_citations=total_weighted,
            brand_metrics=tuple(metrics),
        )


def aggregate(
    scored_records: Iterable[ScoredRecord],
    scope: MetricScope | None = None,
    brands: Sequence[str] | None = None,
) -> AggregatedMetricSet:
    """Aggregate scored records for one scope with default settings."""
    return MetricsAggregator(brands=brands).aggregate(scored_records, scope)
