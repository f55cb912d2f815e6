"""Citation Classifier: PESO categorisation of citation URLs.

Each URL is classified relative to ONE target brand, in order:
  (a) Brand-owned: the hostname matches the target brand's domain variants
      (exact 0.95, starts-with 0.9, contains 0.75, fuzzy similarity × 0.85)
  (b) Social: exact or subdomain match against known platforms (0.95 / 0.9)
  (c) Earned: news (0.85), review/comparison (0.80), industry publication
      (0.75), any other third-party site (0.70)
Unknown only when the URL fails validation.

Other roster brands are never reported as brand-owned. They are consulted
only to veto an ambiguous target match: if a competitor's variants match
the hostname at least as strongly, the URL is not treated as owned by the
target and falls through to (b) / (c).
"""

from __future__ import annotations

import re
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from rapidfuzz.distance import Levenshtein

from brand_metrics.analysis.types import CitationType, Classification, CleanedUrl
from brand_metrics.analysis.url_cleaner import is_ip_address, split_domain, validate_and_clean_url
from brand_metrics.analysis.variants import VariantCache
from brand_metrics.core.config import settings

logger = logging.getLogger(__name__)

_MIN_PARTIAL_LEN = 5
_MIN_CONTAINS_RATIO = 0.5
_NON_ALNUM = re.compile(r"[^a-z0-9]")

# ---------------------------------------------------------------------------
# Shared media (PESO "S"): user-generated content platforms
# ---------------------------------------------------------------------------
SOCIAL_DOMAINS = frozenset(
    {
        # Social networks
        "facebook.com", "fb.com", "twitter.com", "x.com", "t.co", "instagram.com",
        "linkedin.com", "youtube.com", "youtu.be", "tiktok.com", "snapchat.com",
        "pinterest.com", "reddit.com", "threads.net", "mastodon.social", "mastodon.online",
        # Messaging
        "whatsapp.com", "wa.me", "telegram.org", "telegram.me", "t.me",
        "discord.com", "discord.gg", "signal.org", "viber.com", "line.me", "wechat.com",
        # Video
        "twitch.tv", "vimeo.com", "dailymotion.com",
        # Content sharing, Q&A, blogging
        "medium.com", "tumblr.com", "flickr.com", "imgur.com",
        "quora.com", "stackoverflow.com", "stackexchange.com",
        "blogspot.com", "blogger.com", "wordpress.com", "substack.com",
        # Communities
        "clubhouse.com", "meetup.com", "nextdoor.com", "foursquare.com",
        "mewe.com", "truthsocial.com", "minds.com",
    }
)  # fmt: skip

# ---------------------------------------------------------------------------
# Earned media (PESO "E") patterns
# ---------------------------------------------------------------------------
_NEWS_PATTERNS = (
    re.compile(
        r"^(?:news|media|press|journal|times|post|tribune|herald|gazette|chronicle|observer|review|"
        r"standard|guardian|independent|telegraph|express|mirror|sun|star)",
        re.IGNORECASE,
    ),
    re.compile(r"\.(?:news|media|press|journal)$", re.IGNORECASE),
)

_REVIEW_PATTERNS = (
    re.compile(r"^(?:review|reviews|compare|comparison|ratings|rating|rankings|ranking|best|top|vs|versus)", re.IGNORECASE),
    re.compile(r"(?:review|reviews|compare|comparison|ratings|rating|rankings|ranking|best|top)\.", re.IGNORECASE),
    re.compile(r"\.(?:reviews?|ratings?|compare|comparison)$", re.IGNORECASE),
)

_INDUSTRY_PATTERNS = (
    re.compile(r"^(?:industry|business|tech|finance|marketing|sales|hr|legal|health|education)", re.IGNORECASE),
    re.compile(r"(?:magazine|journal|publication|insights|analysis|research|report|study|whitepaper)", re.IGNORECASE),
    re.compile(r"\.(?:org|edu|gov)$", re.IGNORECASE),
)

_EARNED_RULES = (
    (_NEWS_PATTERNS, 0.85, "news_media_outlet"),
    (_REVIEW_PATTERNS, 0.80, "review_comparison_site"),
    (_INDUSTRY_PATTERNS, 0.75, "industry_publication"),
)
_EARNED_DEFAULT = (0.70, "third_party_editorial")


@dataclass(frozen=True)
class _DomainMatch:
    confidence: float
    label: str
    full_name: bool  # Matched the brand's full-name slug, not a derived base

    @property
    def strength(self) -> tuple[float, bool]:
        return (self.confidence, self.full_name)


class CitationClassifier:
    """Brand-scoped, side-effect-free URL classifier.

    Args:
        cache: Variant cache shared with the BrandMatcher; fresh one when omitted.
        stoplist: Generic tokens never matched alone. Defaults to settings.
        abbreviations: Known-abbreviation table, used only when ``cache`` is omitted.
        fuzzy_threshold: Minimum Levenshtein similarity for a fuzzy domain match.
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
        self.fuzzy_threshold = settings.domain_fuzzy_threshold if fuzzy_threshold is None else fuzzy_threshold

    # ------------------------------------------------------------------
    # (a) Brand-owned
    # ------------------------------------------------------------------

    def _match_domain(self, domain: str, brand_name: str) -> _DomainMatch | None:
        if is_ip_address(domain):
            return None
        _subdomains, label, _suffix = split_domain(domain)
        label = _NON_ALNUM.sub("", label)
        if not label:
            return None

        variants = self.cache.get(brand_name)
        bases = [b for b in variants.domain_bases if b]
        partial = [b for b in bases if len(b) >= _MIN_PARTIAL_LEN and b not in self.stoplist]

        for base in bases:
            if label == base:
                return _DomainMatch(0.95, "brand_owned_domain", base == variants.slug)

        for base in partial:
            if label.startswith(base):
                return _DomainMatch(0.9, "brand_domain_starts_with", base == variants.slug)

        for base in partial:
            if base in label and len(base) / len(label) >= _MIN_CONTAINS_RATIO:
                return _DomainMatch(0.75, "brand_domain_contains", base == variants.slug)

        if len(label) >= _MIN_PARTIAL_LEN:
            best: tuple[float, str] | None = None
            for base in partial:
                similarity = Levenshtein.normalized_similarity(base, label)
                if similarity >= self.fuzzy_threshold and (best is None or similarity > best[0]):
                    best = (similarity, base)
            if best is not None:
                return _DomainMatch(round(best[0] * 0.85, 4), "brand_fuzzy_match", best[1] == variants.slug)

        return None

    def classify_brand(
        self,
        domain: str,
        target_brand: str,
        all_known_brands: Iterable[str] = (),
    ) -> Classification | None:
        """Brand-owned classification of a cleaned domain for the target brand only."""
        match = self._match_domain(domain, target_brand)
        if match is None:
            return None

        target_key = target_brand.strip().lower()
        for other in all_known_brands:
            if not other or not other.strip() or other.strip().lower() == target_key:
                continue
            rival = self._match_domain(domain, other)
            if rival is not None and rival.strength >= match.strength:
                logger.debug(
                    "Ambiguous brand domain %s: %s (%.2f) vs %s (%.2f), not brand-owned",
                    domain,
                    target_brand,
                    match.confidence,
                    other,
                    rival.confidence,
                    extra={"brand": target_brand},
                )
                return None

        return Classification(
            type=CitationType.BRAND,
            brand=target_brand,
            confidence=match.confidence,
            label=match.label,
        )

    # ------------------------------------------------------------------
    # (b) Social
    # ------------------------------------------------------------------

    @staticmethod
    def classify_social(domain: str) -> Classification | None:
        domain = domain.lower()
        if domain in SOCIAL_DOMAINS:
            return Classification(CitationType.SOCIAL, None, 0.95, "social_media_platform")
        labels = domain.split(".")
        for i in range(1, len(labels) - 1):
            if ".".join(labels[i:]) in SOCIAL_DOMAINS:
                return Classification(CitationType.SOCIAL, None, 0.9, "social_media_platform")
        return None

    # ------------------------------------------------------------------
    # (c) Earned
    # ------------------------------------------------------------------

    @staticmethod
    def classify_earned(domain: str) -> Classification:
        domain = domain.lower()
        labels = domain.split(".")
        base_domain = ".".join(labels[-2:]) if len(labels) >= 2 else domain

        for patterns, confidence, label in _EARNED_RULES:
            if any(p.search(domain) or p.search(base_domain) for p in patterns):
                return Classification(CitationType.EARNED, None, confidence, label)

        confidence, label = _EARNED_DEFAULT
        return Classification(CitationType.EARNED, None, confidence, label)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def classify_cleaned(
        self,
        cleaned: CleanedUrl,
        target_brand: str,
        all_known_brands: Iterable[str] = (),
    ) -> Classification:
        """Classify an already validated URL."""
        if not cleaned.valid or not cleaned.domain:
            return Classification()

        brand = self.classify_brand(cleaned.domain, target_brand, all_known_brands)
        if brand is not None:
            return brand

        social = self.classify_social(cleaned.domain)
        if social is not None:
            return social

        return self.classify_earned(cleaned.domain)

    def classify(
        self,
        url: str,
        target_brand: str,
        all_known_brands: Iterable[str] = (),
    ) -> Classification:
        """Classify a raw citation URL for one target brand.

        Args:
            url: Raw URL, possibly with Markdown residue.
            target_brand: The only brand that may be reported as brand-owned.
            all_known_brands: Full roster, used to veto ambiguous ownership.

        Returns:
            Classification; type UNKNOWN only when the URL fails validation.

        Raises:
            InvalidInputError: target brand is blank.
        """
        self.cache.get(target_brand)
        return self.classify_cleaned(validate_and_clean_url(url), target_brand, all_known_brands)
