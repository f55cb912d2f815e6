"""Record Scorer: scores one response record against every roster brand.

Per brand:
  - mentioned / first_position: first sentence (1-indexed) the brand matches in
  - weighted_depth_contribution:
      Σ over matching sentences of words(sentence) × exp(−index / total_sentences)
    index is 0-based, so a mention in sentence 0 weighs 1.0 and one in the
    last sentence of a 10-sentence response weighs exp(−0.9) ≈ 0.4066
  - mention_count: exact / abbreviation occurrences, at least 1 per matching sentence
  - rank_position: competition rank among the brands mentioned in this response,
    by first position
  - citation_counts: Σ confidence × type weight over the record's citations,
    classified for THIS brand (brand 1.0, earned 0.9, social 0.8); unknown
    citations are dropped
  - sentiment: keyword polarity of the matching sentences

Within a sentence, a brand's match is discarded when it is ambiguous with
another roster brand:
  - a non-exact match overlapping another brand's match of equal or higher
    confidence
  - an exact match whose every occurrence lies inside another brand's longer
    exact match ("Chase" inside "JPMorgan Chase")
"""

from __future__ import annotations

import math
import logging
from collections.abc import Iterable, Mapping, Sequence

from brand_metrics.analysis.brand_matcher import BrandMatcher, span_within
from brand_metrics.analysis.citation_classifier import CitationClassifier
from brand_metrics.analysis.errors import InvalidInputError
from brand_metrics.analysis.preprocessor import count_words, prepare
from brand_metrics.analysis.ranking import competition_ranks
from brand_metrics.analysis.sentiment import SentimentScorer
from brand_metrics.analysis.types import (
    BrandMention,
    Citation,
    CitationCounts,
    CitationType,
    CleanedUrl,
    MatchMethod,
    MatchResult,
    ScoredRecord,
)
from brand_metrics.analysis.url_cleaner import validate_and_clean_url
from brand_metrics.analysis.variants import VariantCache
from brand_metrics.core.config import settings
from brand_metrics.core.logging import RecordLogger
from brand_metrics.schemas.record import ResponseRecord

logger = logging.getLogger(__name__)


def decay_weight(sentence_index: int, total_sentences: int) -> float:
    """Position decay of a sentence: exp(−index / total)."""
    if total_sentences <= 0:
        return 0.0
    return math.exp(-sentence_index / total_sentences)


def default_citation_weights() -> dict[CitationType, float]:
    return {
        CitationType.BRAND: settings.brand_citation_weight,
        CitationType.EARNED: settings.earned_citation_weight,
        CitationType.SOCIAL: settings.social_citation_weight,
    }


def resolve_roster(brand: str, competitors: Iterable[str] = (), record_id: str = "") -> list[str]:
    """Brand first, then competitors; blanks rejected, case-insensitive duplicates dropped."""
    if brand is None or not str(brand).strip():
        raise InvalidInputError("Brand name must not be empty", record_id=record_id)
    names = [str(brand).strip()]
    seen = {names[0].lower()}
    for name in competitors or ():
        if name is None or not str(name).strip():
            raise InvalidInputError("Competitor name must not be empty", record_id=record_id)
        name = str(name).strip()
        if name.lower() not in seen:
            seen.add(name.lower())
            names.append(name)
    return names


def _overlaps(a: tuple[int, int] | None, b: tuple[int, int] | None) -> bool:
    if a is None or b is None:
        return False
    return a[0] < b[1] and b[0] < a[1]


class RecordScorer:
    """Scores ResponseRecords. Stateless apart from the shared, immutable variant cache.

    Args:
        matcher: BrandMatcher; built on ``cache`` when omitted.
        classifier: CitationClassifier; built on ``cache`` when omitted.
        cache: Variant cache shared by the default matcher and classifier.
        citation_weights: Type weight per citation type. Defaults to settings.
        sentiment: Keyword sentiment scorer. Defaults to settings keywords.
    """

    def __init__(
        self,
        matcher: BrandMatcher | None = None,
        classifier: CitationClassifier | None = None,
        cache: VariantCache | None = None,
        citation_weights: Mapping[CitationType, float] | None = None,
        sentiment: SentimentScorer | None = None,
    ):
        if cache is None:
            cache = matcher.cache if matcher is not None else VariantCache(settings.known_abbreviations)
        self.matcher = matcher or BrandMatcher(cache=cache)
        self.classifier = classifier or CitationClassifier(cache=cache)
        self.citation_weights = dict(citation_weights or default_citation_weights())
        self.sentiment = sentiment or SentimentScorer()

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def _shadows(self, sentence: str, brand: str, brands: Sequence[str]) -> list[tuple[int, int]]:
        """Exact-match spans of the other roster brands in a sentence."""
        return [span for other in brands if other != brand for span in self.matcher.exact_spans(sentence, other)]

    def _detect_sentence(self, sentence: str, brands: Sequence[str]) -> dict[str, MatchResult]:
        """Detect every brand in one sentence, discarding ambiguous matches."""
        results = {b: self.matcher.detect(sentence, b) for b in brands}
        accepted: dict[str, MatchResult] = {}
        for brand, result in results.items():
            if not result.detected:
                continue
            if result.method == MatchMethod.EXACT:
                shadows = self._shadows(sentence, brand, brands)
                if shadows and all(span_within(s, shadows) for s in self.matcher.exact_spans(sentence, brand)):
                    logger.debug(
                        "Exact match %r for %s lies inside a longer roster brand, discarded",
                        result.matched_text,
                        brand,
                        extra={"brand": brand},
                    )
                    continue
            else:
                rival = next(
                    (
                        other
                        for other, o in results.items()
                        if other != brand
                        and o.detected
                        and o.confidence >= result.confidence
                        and _overlaps(result.matched_span, o.matched_span)
                    ),
                    None,
                )
                if rival is not None:
                    logger.debug(
                        "Ambiguous match %r for %s (%s %.2f) overlaps %s, discarded",
                        result.matched_text,
                        brand,
                        result.method.value,
                        result.confidence,
                        rival,
                        extra={"brand": brand},
                    )
                    continue
            accepted[brand] = result
        return accepted

    def _sentence_hits(
        self,
        sentences: Sequence[str],
        brands: Sequence[str],
    ) -> dict[str, list[tuple[int, MatchResult]]]:
        """Accepted matches per brand as (0-based sentence index, result), in sentence order."""
        hits: dict[str, list[tuple[int, MatchResult]]] = {b: [] for b in brands}
        for index, sentence in enumerate(sentences):
            for brand, result in self._detect_sentence(sentence, brands).items():
                hits[brand].append((index, result))
        return hits

    @staticmethod
    def _mention(brand: str, hits: list[tuple[int, MatchResult]]) -> BrandMention:
        if not hits:
            return BrandMention(brand=brand)
        return BrandMention(
            brand=brand,
            detected=True,
            confidence=sum(r.confidence for _, r in hits) / len(hits),
            first_sentence_index=hits[0][0],
        )

    def detect_mentions(self, text: str, brands: Sequence[str]) -> list[BrandMention]:
        """Brand presence across the sentences of a text, one BrandMention per brand."""
        hits = self._sentence_hits(prepare(text).sentences, brands)
        return [self._mention(brand, hits[brand]) for brand in brands]

    # ------------------------------------------------------------------
    # Citations
    # ------------------------------------------------------------------

    @staticmethod
    def _clean_citations(record: ResponseRecord) -> list[tuple[CleanedUrl, str, str]]:
        """Validate the record's citations once, deduplicated by cleaned URL."""
        log = RecordLogger(logger, record.id)
        cleaned: list[tuple[CleanedUrl, str, str]] = []
        seen: set[str] = set()
        for ref in record.citations:
            result = validate_and_clean_url(ref.url)
            if not result.valid:
                log.debug("Dropped malformed citation %r (%s)", ref.url, result.reason)
                continue
            if result.cleaned_url in seen:
                continue
            seen.add(result.cleaned_url)
            cleaned.append((result, ref.url, ref.anchor_text))
        return cleaned

    def _score_citations(
        self,
        cleaned: list[tuple[CleanedUrl, str, str]],
        brand: str,
        brands: Sequence[str],
    ) -> tuple[CitationCounts, tuple[Citation, ...]]:
        totals = {CitationType.BRAND: 0.0, CitationType.EARNED: 0.0, CitationType.SOCIAL: 0.0}
        citations: list[Citation] = []
        for result, raw_url, anchor in cleaned:
            classification = self.classifier.classify_cleaned(result, brand, brands)
            if classification.type == CitationType.UNKNOWN:
                continue
            totals[classification.type] += classification.confidence * self.citation_weights.get(classification.type, 0.0)
            citations.append(
                Citation(
                    url=raw_url,
                    cleaned_url=result.cleaned_url,
                    domain=result.domain,
                    type=classification.type,
                    confidence=classification.confidence,
                    brand=classification.brand,
                    label=classification.label,
                    anchor_text=anchor,
                )
            )
        counts = CitationCounts(
            brand=totals[CitationType.BRAND],
            earned=totals[CitationType.EARNED],
            social=totals[CitationType.SOCIAL],
        )
        return counts, tuple(citations)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def score(
        self,
        record: ResponseRecord,
        brand: str,
        competitors: Iterable[str] = (),
    ) -> list[ScoredRecord]:
        """Score one record against the brand and its competitors.

        Args:
            record: Validated response record.
            brand: Target brand.
            competitors: Competitor brands.

        Returns:
            One ScoredRecord per brand, target brand first.

        Raises:
            InvalidInputError: a brand name is blank.
        """
        brands = resolve_roster(brand, competitors, record_id=record.id)
        try:
            for name in brands:
                self.matcher.variants(name)
        except InvalidInputError as e:
            raise InvalidInputError(str(e), record_id=record.id) from e

        prepared = prepare(record.text)
        total_sentences = prepared.sentence_count

        matched = self._sentence_hits(prepared.sentences, brands)
        mentions_by_brand = [self._mention(b, matched[b]) for b in brands]
        first_positions = [
            m.first_sentence_index + 1 if m.first_sentence_index is not None else None for m in mentions_by_brand
        ]
        ranks = competition_ranks(first_positions, ascending=True)
        cleaned = self._clean_citations(record)

        scored: list[ScoredRecord] = []
        for name, mention, first_position, rank in zip(brands, mentions_by_brand, first_positions, ranks):
            hits = matched[name]
            sentences = [prepared.sentences[index] for index, _result in hits]
            depth = 0.0
            mentions = 0
            for (index, _result), sentence in zip(hits, sentences):
                depth += count_words(sentence) * decay_weight(index, total_sentences)
                shadowed = self._shadows(sentence, name, brands)
                mentions += max(1, self.matcher.count_mentions(sentence, name, shadowed=shadowed))

            counts, citations = self._score_citations(cleaned, name, brands)
            scored.append(
                ScoredRecord(
                    record_id=record.id,
                    brand=name,
                    platform_id=record.platform_id,
                    topic_id=record.topic_id,
                    persona_id=record.persona_id,
                    prompt_id=record.prompt_id or record.id,
                    mentioned=mention.detected,
                    first_position=first_position,
                    mention_count=mentions,
                    detection_confidence=mention.confidence,
                    weighted_depth_contribution=depth,
                    rank_position=rank if first_position is not None else None,
                    word_count=prepared.word_count,
                    sentence_count=total_sentences,
                    citation_counts=counts,
                    citations=citations,
                    sentiment=self.sentiment.tally(sentences),
                )
            )

        RecordLogger(logger, record.id).debug(
            "Scored record %s: sentences=%d, words=%d, mentioned=%s, citations=%d",
            record.id,
            total_sentences,
            prepared.word_count,
            [s.brand for s in scored if s.mentioned],
            len(cleaned),
        )
        return scored
