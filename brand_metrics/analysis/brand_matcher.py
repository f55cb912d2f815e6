"""Brand Matcher: text-matching primitive of the scoring pipeline.

Detects a brand in arbitrary text. Strategies are tried in order and the
first success wins:
  1. Exact whole-word match of the name or a generated variant → 1.0
  2. Acronym / known abbreviation → 0.9
  3. Every significant token of the name present → 0.85, or 0.7 when the
     tokens spread over more than 10 words; at least one token must be
     distinctive (≥ 4 chars, not on the generic stoplist)
  4. Fuzzy window match, normalized Levenshtein ≥ threshold → 0.7 + sim × 0.15

Every strategy is anchored on word boundaries. A multi-word name never
matches on one of its words, so "American Airlines" is not "American
Express", and generic tokens ("platinum", "card") never match on their own.
"""

from __future__ import annotations

import re
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from rapidfuzz.distance import Levenshtein

from brand_metrics.analysis.types import MatchMethod, MatchResult
from brand_metrics.analysis.variants import BrandVariants, VariantCache, normalize
from brand_metrics.core.config import settings

logger = logging.getLogger(__name__)

EXACT_CONFIDENCE = 1.0
ABBREVIATION_CONFIDENCE = 0.9
TOKEN_CONFIDENCE = 0.85
TOKEN_DISTANT_CONFIDENCE = 0.7
TOKEN_MAX_WORD_SPREAD = 10
FUZZY_BASE_CONFIDENCE = 0.7
FUZZY_SIMILARITY_FACTOR = 0.15

_MIN_TOKEN_LEN = 4
_MIN_FUZZY_LEN = 5

# Candidate words for fuzzy windows, with their character offsets
_WORD_PATTERN = re.compile(r"[^\s]+")


def _boundary(body: str) -> str:
    return rf"(?<!\w)(?:{body})(?!\w)"


def _phrase_regex(phrase: str) -> str:
    """Escape a phrase, letting any run of spaces / hyphens separate its words."""
    return r"[\s\-]+".join(re.escape(word) for word in phrase.split())


def span_within(span: tuple[int, int], outer_spans: Iterable[tuple[int, int]]) -> bool:
    """True when span lies inside a strictly longer span of outer_spans."""
    start, end = span
    return any(s <= start and end <= e and (e - s) > (end - start) for s, e in outer_spans)


@dataclass(frozen=True)
class _BrandPatterns:
    """Compiled patterns for one brand."""

    variants: BrandVariants
    exact: re.Pattern
    acronym: re.Pattern | None
    abbreviation: re.Pattern | None
    tokens: tuple[re.Pattern, ...]  # Every significant token, all required
    distinctive: bool  # At least one token usable on its own


class BrandMatcher:
    """Multi-strategy brand detector.

    Args:
        cache: Variant cache; a fresh one is created when omitted.
        stoplist: Generic tokens never matched alone. Defaults to settings.
        abbreviations: Known-abbreviation table, used only when ``cache`` is omitted.
        fuzzy_threshold: Minimum normalized Levenshtein similarity.
    """

    def __init__(
        self,
        cache: VariantCache | None = None,
        stoplist: Iterable[str] | None = None,
        abbreviations: Mapping[str, list[str]] | None = None,
        fuzzy_threshold: float | None = None,
    ):
        if cache is None:
            cache = VariantCache(settings.known_abbreviations if abbreviations is None else abbreviations)
        self.cache = cache
        self.stoplist = (
            settings.get_stoplist() if stoplist is None else frozenset(w.strip().lower() for w in stoplist if w.strip())
        )
        self.fuzzy_threshold = settings.fuzzy_similarity_threshold if fuzzy_threshold is None else fuzzy_threshold
        self._patterns: dict[str, _BrandPatterns] = {}

    # ------------------------------------------------------------------
    # Pattern compilation
    # ------------------------------------------------------------------

    def _compile(self, brand_name: str) -> _BrandPatterns:
        key = (brand_name or "").strip()
        cached = self._patterns.get(key)
        if cached is not None:
            return cached

        variants = self.cache.get(key)
        phrases = sorted(variants.phrases, key=len, reverse=True)
        exact = re.compile(_boundary("|".join(_phrase_regex(p) for p in phrases)), re.IGNORECASE)

        acronym = None
        if variants.acronym and variants.acronym.lower() not in variants.phrases:
            acronym = re.compile(_boundary(re.escape(variants.acronym)))

        abbreviation = None
        if variants.abbreviations:
            abbrevs = sorted(variants.abbreviations, key=len, reverse=True)
            abbreviation = re.compile(_boundary("|".join(_phrase_regex(a) for a in abbrevs)), re.IGNORECASE)

        tokens = tuple(re.compile(_boundary(re.escape(token)), re.IGNORECASE) for token in variants.tokens)

        patterns = _BrandPatterns(
            variants=variants,
            exact=exact,
            acronym=acronym,
            abbreviation=abbreviation,
            tokens=tokens,
            distinctive=any(len(t) >= _MIN_TOKEN_LEN and t not in self.stoplist for t in variants.tokens),
        )
        return self._patterns.setdefault(key, patterns)

    def variants(self, brand_name: str) -> BrandVariants:
        return self._compile(brand_name).variants

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    @staticmethod
    def _hit(match: re.Match, confidence: float, method: MatchMethod) -> MatchResult:
        return MatchResult(
            detected=True,
            confidence=confidence,
            matched_span=match.span(),
            matched_text=match.group(0),
            method=method,
        )

    def _match_abbreviation(self, text: str, patterns: _BrandPatterns) -> re.Match | None:
        found = [p.search(text) for p in (patterns.acronym, patterns.abbreviation) if p is not None]
        found = [m for m in found if m is not None]
        if not found:
            return None
        return min(found, key=lambda m: m.start())

    def _match_tokens(self, text: str, patterns: _BrandPatterns) -> MatchResult | None:
        """All significant tokens of the name, in any order; one-word names need their one token."""
        if not patterns.distinctive or not patterns.tokens:
            return None
        found: list[re.Match] = []
        for pattern in patterns.tokens:
            m = pattern.search(text)
            if m is None:
                return None
            found.append(m)

        start = min(m.start() for m in found)
        end = max(m.end() for m in found)
        word_indices = [len(_WORD_PATTERN.findall(text, 0, m.start())) for m in found]
        spread = max(word_indices) - min(word_indices)
        return MatchResult(
            detected=True,
            confidence=TOKEN_CONFIDENCE if spread <= TOKEN_MAX_WORD_SPREAD else TOKEN_DISTANT_CONFIDENCE,
            matched_span=(start, end),
            matched_text=text[start:end],
            method=MatchMethod.SUBSTRING,
        )

    def _is_generic(self, word: str) -> bool:
        return len(word) <= 2 or word in self.stoplist

    def _match_fuzzy(self, text: str, patterns: _BrandPatterns) -> MatchResult | None:
        variants = patterns.variants
        if len(variants.slug) < _MIN_FUZZY_LEN or self.fuzzy_threshold <= 0:
            return None

        words = [(m.group(0), m.start(), m.end()) for m in _WORD_PATTERN.finditer(text)]
        size = len(variants.normalized.split())
        sizes = sorted({max(1, size - 1), size, size + 1})

        best: tuple[float, int, int] | None = None
        for i, (first_word, _start, _end) in enumerate(words):
            # Candidates start on a capitalized word that shares the brand's initial
            stripped = first_word.lstrip("\"'(“‘")
            if not stripped or not stripped[0].isupper():
                continue
            if stripped[0].lower() != variants.slug[0]:
                continue
            for k in sizes:
                if i + k > len(words):
                    break
                window = words[i : i + k]
                candidate = normalize(" ".join(w for w, _, _ in window))
                cand_words = candidate.split()
                if not cand_words or all(self._is_generic(w) for w in cand_words):
                    continue
                similarity = max(
                    Levenshtein.normalized_similarity(candidate, variants.normalized),
                    Levenshtein.normalized_similarity("".join(cand_words), variants.slug),
                )
                if similarity < self.fuzzy_threshold:
                    continue
                if best is None or similarity > best[0]:
                    best = (similarity, window[0][1], window[-1][2])

        if best is None:
            return None
        similarity, start, end = best
        return MatchResult(
            detected=True,
            confidence=FUZZY_BASE_CONFIDENCE + similarity * FUZZY_SIMILARITY_FACTOR,
            matched_span=(start, end),
            matched_text=text[start:end],
            method=MatchMethod.FUZZY,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def detect(self, text: str, brand_name: str) -> MatchResult:
        """Detect a brand in text.

        Args:
            text: Sentence or response text.
            brand_name: Brand to look for.

        Returns:
            MatchResult of the first strategy that succeeds, or an empty result.

        Raises:
            InvalidInputError: brand name is blank.
        """
        patterns = self._compile(brand_name)
        if not text or not text.strip():
            return MatchResult()

        m = patterns.exact.search(text)
        if m:
            return self._hit(m, EXACT_CONFIDENCE, MatchMethod.EXACT)

        m = self._match_abbreviation(text, patterns)
        if m:
            return self._hit(m, ABBREVIATION_CONFIDENCE, MatchMethod.ABBREVIATION)

        result = self._match_tokens(text, patterns)
        if result:
            return result

        result = self._match_fuzzy(text, patterns)
        if result:
            return result

        return MatchResult()

    def exact_spans(self, text: str, brand_name: str) -> list[tuple[int, int]]:
        """Spans of every exact name / variant match in text."""
        patterns = self._compile(brand_name)
        if not text:
            return []
        return [m.span() for m in patterns.exact.finditer(text)]

    def count_mentions(
        self,
        sentence: str,
        brand_name: str,
        shadowed: Iterable[tuple[int, int]] = (),
    ) -> int:
        """Count non-overlapping exact and abbreviation matches in a sentence.

        Matches inside a longer ``shadowed`` span (another brand's name that
        contains this one, "Chase" in "JPMorgan Chase") are not counted.
        """
        patterns = self._compile(brand_name)
        if not sentence:
            return 0
        shadowed = list(shadowed)
        spans: list[tuple[int, int]] = [m.span() for m in patterns.exact.finditer(sentence)]
        for pattern in (patterns.acronym, patterns.abbreviation):
            if pattern is None:
                continue
            for m in pattern.finditer(sentence):
                s, e = m.span()
                if not any(s < pe and ps < e for ps, pe in spans):
                    spans.append((s, e))
        return sum(1 for span in spans if not span_within(span, shadowed))
