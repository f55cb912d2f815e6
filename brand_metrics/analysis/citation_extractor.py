"""Citation & Grounding Extractor.

Finds links embedded in LLM response text:
  - Native citation URLs supplied with the record
  - Footnote references: [1], [^2] with definitions "[1]: https://..."
  - Inline hyperlinks: [text](url)
  - Bare URLs: https://example.com
"""

from __future__ import annotations

import re
import logging
from collections.abc import Iterable

from brand_metrics.analysis.types import ExtractedLink

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# URL / link extraction patterns
# ---------------------------------------------------------------------------

# Markdown-style links: [anchor text](url), allowing one level of parentheses in the URL
_MD_LINK_PATTERN = re.compile(
    r"\[([^\]]+)\]\((https?://(?:[^\s()]|\([^\s()]*\))+)\)",
)

# Bare URLs
_BARE_URL_PATTERN = re.compile(
    r"(?<![(\w])(https?://[^\s\)\]\"'<>]+)",
)

# Footnote markers: [1], [^2]
_FOOTNOTE_PATTERN = re.compile(
    r"\[\^?(\d+)\](?!:)",
)

# Footnote definitions at end of text: [1]: https://...
_FOOTNOTE_DEF_PATTERN = re.compile(
    r"^\s*\[\^?(\d+)\]:?\s+(https?://\S+)",
    re.MULTILINE,
)


def _trim(url: str) -> str:
    return url.strip().rstrip(".,;:!?")


def extract_links(
    text: str,
    native_urls: Iterable[str] | None = None,
) -> list[ExtractedLink]:
    """Extract all links from the response text.

    Args:
        text: Raw or cleaned response text.
        native_urls: URLs provided with the record (e.g. Perplexity citations).

    Returns:
        List of ExtractedLink objects, deduplicated by URL, in discovery order.
    """
    links: list[ExtractedLink] = []
    seen_urls: set[str] = set()

    def add(url: str, **kwargs) -> None:
        url = _trim(url)
        if url and url not in seen_urls:
            seen_urls.add(url)
            links.append(ExtractedLink(url=url, **kwargs))

    # 1. Native citations
    for url in native_urls or []:
        add(url, is_native=True)

    text = text or ""

    # 2. Footnote definitions: [1]: https://...
    footnote_defs: dict[int, str] = {}
    for match in _FOOTNOTE_DEF_PATTERN.finditer(text):
        footnote_defs[int(match.group(1))] = match.group(2)

    # 3. Markdown links: [text](url)
    for match in _MD_LINK_PATTERN.finditer(text):
        add(match.group(2), anchor_text=match.group(1).strip())

    # 4. Footnote markers with definitions: [1] → look up URL
    for match in _FOOTNOTE_PATTERN.finditer(text):
        idx = int(match.group(1))
        if idx in footnote_defs:
            add(footnote_defs[idx], footnote_index=idx)

    # 5. Orphan footnote definitions, then bare URLs
    for idx, url in footnote_defs.items():
        add(url, footnote_index=idx)
    for match in _BARE_URL_PATTERN.finditer(text):
        add(match.group(1))

    if links:
        logger.debug("Extracted %d links from response text", len(links))
    return links
