"""Sentiment: keyword polarity of the sentences that mention a brand.

A sentence is positive when it holds more distinct positive keywords than
negative ones, negative in the opposite case, neutral otherwise. Per
response and brand:
  sentiment score = (positive − negative) / mention sentences × 100
Keywords match whole words, case-insensitively; lists come from settings.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from brand_metrics.analysis.types import Sentiment, SentimentCounts
from brand_metrics.core.config import settings


def _keyword_pattern(keywords: Iterable[str]) -> re.Pattern | None:
    words = sorted({w.strip().lower() for w in keywords if w and w.strip()}, key=len, reverse=True)
    if not words:
        return None
    return re.compile(r"(?<!\w)(?:" + "|".join(re.escape(w) for w in words) + r")(?!\w)", re.IGNORECASE)


class SentimentScorer:
    """Keyword sentiment of sentences.

    Args:
        positive: Positive keywords. Defaults to settings.
        negative: Negative keywords. Defaults to settings.
    """

    def __init__(self, positive: Iterable[str] | None = None, negative: Iterable[str] | None = None):
        self._positive = _keyword_pattern(settings.get_positive_keywords() if positive is None else positive)
        self._negative = _keyword_pattern(settings.get_negative_keywords() if negative is None else negative)

    @staticmethod
    def _distinct(pattern: re.Pattern | None, sentence: str) -> int:
        if pattern is None:
            return 0
        return len({m.group(0).lower() for m in pattern.finditer(sentence)})

    def classify(self, sentence: str) -> Sentiment:
        positive = self._distinct(self._positive, sentence)
        negative = self._distinct(self._negative, sentence)
        if positive > negative:
            return Sentiment.POSITIVE
        if negative > positive:
            return Sentiment.NEGATIVE
        return Sentiment.NEUTRAL

    def tally(self, sentences: Iterable[str]) -> SentimentCounts:
        """Count sentence polarities."""
        counts = {Sentiment.POSITIVE: 0, Sentiment.NEUTRAL: 0, Sentiment.NEGATIVE: 0}
        for sentence in sentences:
            counts[self.classify(sentence)] += 1
        return SentimentCounts(
            positive=counts[Sentiment.POSITIVE],
            neutral=counts[Sentiment.NEUTRAL],
            negative=counts[Sentiment.NEGATIVE],
        )
