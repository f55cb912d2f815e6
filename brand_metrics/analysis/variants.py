"""Brand name variant generation.

A brand name expands into the surface forms the matchers look for:
  - lowercase / punctuation-free form ("american express")
  - hyphen and space variants ("american-express"), domain-safe slug ("americanexpress")
  - significant tokens with articles and corporate suffixes removed
  - acronym from the capitalized words ("AEPC") and known abbreviations ("amex")
  - domain bases used to recognise brand-owned hostnames

generate_variants() is pure. VariantCache memoizes it per brand name and is
passed explicitly to BrandMatcher / CitationClassifier, so every caller
(and every test) controls its own cache.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Mapping
from dataclasses import dataclass

from brand_metrics.analysis.errors import InvalidInputError

# Articles, prepositions and corporate suffixes ignored when picking the
# significant words of a brand name
_COMMON_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
        "from", "as", "is", "was", "are", "were", "be", "been", "being", "have", "has", "had",
        "do", "does", "did", "will", "would", "could", "should", "may", "might", "must",
        "company", "inc", "incorporated", "corp", "corporation", "ltd", "limited", "llc",
        "group", "holdings", "enterprises", "industries", "international", "global",
    }
)  # fmt: skip

_ARTICLES = re.compile(r"\b(?:the|a|an)\b", re.IGNORECASE)
_TRADEMARKS = re.compile(r"[®™©℠]")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")

_MIN_ACRONYM_LEN = 3
_MIN_SLUG_LEN = 5


@dataclass(frozen=True)
class BrandVariants:
    """Every surface form derived from one brand name."""

    name: str  # Cleaned display name
    normalized: str  # "american express platinum card"
    slug: str  # "americanexpressplatinumcard"
    phrases: tuple[str, ...]  # Whole-word phrases for exact matching (lowercase)
    tokens: tuple[str, ...]  # Significant lowercase tokens, in name order
    acronym: str | None  # Uppercase initials of capitalized words, case-sensitive
    abbreviations: tuple[str, ...]  # Known abbreviations, lowercase, case-insensitive
    domain_bases: tuple[str, ...]  # Alphanumeric strings a brand-owned hostname label may carry

    @property
    def is_multi_word(self) -> bool:
        return " " in self.normalized


def normalize(text: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace."""
    return _NON_ALNUM.sub(" ", text.lower()).strip()


def _unique(items) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for item in items:
        if item and item not in seen:
            seen[item] = None
    return tuple(seen)


def significant_words(normalized: str) -> list[str]:
    """Words longer than two characters that are not articles or corporate suffixes."""
    words = normalized.split()
    significant = [w for w in words if len(w) > 2 and w not in _COMMON_WORDS]
    if not significant:
        significant = [w for w in words if len(w) > 2]
    return significant


def _acronym(name: str) -> str | None:
    initials = [
        word[0]
        for word in _WHITESPACE.split(name)
        if word and word[0].isupper() and normalize(word) not in _COMMON_WORDS
    ]
    if len(initials) < _MIN_ACRONYM_LEN:
        return None
    return "".join(initials).upper()


def _table_abbreviations(normalized: str, table: Mapping[str, list[str]]) -> list[str]:
    found: list[str] = []
    for key, values in table.items():
        key_norm = normalize(key)
        if not key_norm:
            continue
        if normalized == key_norm or normalized.startswith(key_norm + " "):
            found.extend(v.strip().lower() for v in values if v and v.strip())
    return found


def generate_variants(
    brand_name: str,
    abbreviations: Mapping[str, list[str]] | None = None,
) -> BrandVariants:
    """Expand a brand name into its matchable variants.

    Args:
        brand_name: Brand or competitor name as entered by the user.
        abbreviations: Known-abbreviation table {full name: [abbrevs]}.

    Returns:
        BrandVariants; identical input always yields an identical result.

    Raises:
        InvalidInputError: brand name is None or blank.
    """
    if brand_name is None or not str(brand_name).strip():
        raise InvalidInputError("Brand name must not be empty")

    name = _WHITESPACE.sub(" ", _TRADEMARKS.sub("", str(brand_name))).strip()
    normalized = normalize(name)
    if not normalized:
        raise InvalidInputError(f"Brand name has no alphanumeric characters: {brand_name!r}")

    words = normalized.split()
    slug = "".join(words)
    tokens = significant_words(normalized)
    has_significant = any(len(w) > 2 for w in words)

    phrases = [name.lower()]
    if has_significant:
        phrases.append(normalized)
    if len(words) > 1:
        if has_significant:
            phrases.append("-".join(words))
        if len(slug) >= _MIN_SLUG_LEN:
            phrases.append(slug)
        without_articles = normalize(_ARTICLES.sub(" ", name))
        if without_articles and without_articles != normalized and any(len(w) > 2 for w in without_articles.split()):
            phrases.append(without_articles)

    acronym = _acronym(name)
    abbrevs = _unique(_table_abbreviations(normalized, abbreviations or {}))

    domain_bases = [slug, "".join(tokens)]
    if len(tokens) > 2:
        domain_bases.append("".join(tokens[:2]))
    domain_bases.extend(_NON_ALNUM.sub("", a) for a in abbrevs)
    if acronym:
        domain_bases.append(acronym.lower())

    return BrandVariants(
        name=name,
        normalized=normalized,
        slug=slug,
        phrases=_unique(phrases),
        tokens=_unique(tokens),
        acronym=acronym,
        abbreviations=abbrevs,
        domain_bases=_unique(domain_bases),
    )


class VariantCache:
    """Memo of generate_variants() keyed by brand name.

    Entries are immutable, so a cache can be shared read-mostly across
    scoring threads.
    """

    def __init__(self, abbreviations: Mapping[str, list[str]] | None = None):
        self._abbreviations = dict(abbreviations or {})
        self._entries: dict[str, BrandVariants] = {}
        self._lock = threading.Lock()

    def get(self, brand_name: str) -> BrandVariants:
        key = (brand_name or "").strip()
        cached = self._entries.get(key)
        if cached is not None:
            return cached
        variants = generate_variants(key, self._abbreviations)
        with self._lock:
            return self._entries.setdefault(key, variants)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, brand_name: str) -> bool:
        return (brand_name or "").strip() in self._entries
