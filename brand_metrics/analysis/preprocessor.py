"""Text Preprocessor & Sentence Splitter, Scoring Step 1.

Cleans raw LLM responses before brand matching:
  - Strips DeepSeek <think>...</think> reasoning blocks
  - Replaces Markdown links with their anchor text, drops bare URLs
  - Removes bold/italic markers and list bullets / numbering
  - Splits the result into an ordered, deterministic sentence list
"""

from __future__ import annotations

import re
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# DeepSeek <think> tag pattern
# ---------------------------------------------------------------------------
_THINK_PATTERN = re.compile(
    r"<think>(.*?)</think>",
    re.DOTALL | re.IGNORECASE,
)

# ---------------------------------------------------------------------------
# Markdown cleanup patterns
# ---------------------------------------------------------------------------
# [anchor](url) → anchor
_MD_LINK = re.compile(r"\[([^\]]*)\]\([^)]*\)")
# Footnote definitions: [1]: https://...
_FOOTNOTE_DEF = re.compile(r"^\s*\[\^?\d+\]:?\s+\S+\s*$", re.MULTILINE)
# Footnote markers: [1], [^2]
_FOOTNOTE_MARKER = re.compile(r"\[\^?\d+\]")
_BARE_URL = re.compile(r"https?://\S+|www\.\S+")
_MD_BOLD_ITALIC = re.compile(r"\*{1,3}(.*?)\*{1,3}")
_MD_UNDERSCORE = re.compile(r"(?<!\w)_{1,2}([^_\n]+)_{1,2}(?!\w)")
_MD_HEADING = re.compile(r"^\s*#{1,6}\s+", re.MULTILINE)
_LIST_MARKER = re.compile(r"^\s*(?:[-*•+]|\d+[.)])\s+", re.MULTILINE)
_MD_LINE_WHITESPACE = re.compile(r"^[ \t]+|[ \t]+$", re.MULTILINE)

# Sentence boundary: terminal punctuation followed by whitespace, or a line break
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|\n+")


@dataclass(frozen=True)
class PreparedText:
    """Cleaned response text with its sentence list."""

    text: str
    sentences: tuple[str, ...]
    word_count: int

    @property
    def sentence_count(self) -> int:
        return len(self.sentences)


def clean_text(text: str | None) -> str:
    """Strip reasoning blocks and Markdown artifacts, keeping readable text."""
    if not text or not text.strip():
        return ""

    cleaned = _THINK_PATTERN.sub("", text)
    cleaned = _MD_LINK.sub(r"\1", cleaned)
    cleaned = _FOOTNOTE_DEF.sub("", cleaned)
    cleaned = _FOOTNOTE_MARKER.sub("", cleaned)
    cleaned = _BARE_URL.sub("", cleaned)
    cleaned = _MD_BOLD_ITALIC.sub(r"\1", cleaned)
    cleaned = _MD_UNDERSCORE.sub(r"\1", cleaned)
    cleaned = _MD_HEADING.sub("", cleaned)
    cleaned = _LIST_MARKER.sub("", cleaned)
    cleaned = _MD_LINE_WHITESPACE.sub("", cleaned)
    return cleaned.strip()


def split_sentences(text: str) -> list[str]:
    """Split cleaned text into non-empty sentences, in order."""
    if not text:
        return []
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s and s.strip()]


def count_words(text: str) -> int:
    """Whitespace token count."""
    return len(text.split())


def prepare(text: str | None) -> PreparedText:
    """Run text through cleanup and sentence splitting.

    Args:
        text: Raw response text of a ResponseRecord.

    Returns:
        PreparedText; empty text yields no sentences and zero words.
    """
    cleaned = clean_text(text)
    sentences = split_sentences(cleaned)
    word_count = sum(count_words(s) for s in sentences)
    return PreparedText(text=cleaned, sentences=tuple(sentences), word_count=word_count)
