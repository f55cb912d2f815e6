"""Ingestion schemas: response records and brand rosters.

Records arrive from the prompt-testing orchestrator as camelCase JSON
({id, platformId, topicId, personaId, text, citations:[{url, anchorText}]}).
They are validated here, at the boundary, so the scoring engine only ever
sees well-formed, immutable records.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from brand_metrics.analysis.citation_extractor import extract_links
from brand_metrics.analysis.errors import InvalidInputError

logger = logging.getLogger(__name__)


class RecordRejection(BaseModel):
    """A record skipped during ingestion or scoring."""

    model_config = ConfigDict(frozen=True)

    record_id: str = ""
    reason: str


class CitationRef(BaseModel):
    """A citation URL attached to a response."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    url: str
    anchor_text: str = Field("", alias="anchorText")

    @field_validator("url", mode="before")
    @classmethod
    def _strip_url(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("anchor_text", mode="before")
    @classmethod
    def _none_anchor(cls, value: Any) -> Any:
        return "" if value is None else value


class ResponseRecord(BaseModel):
    """One LLM response with its extracted citations."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    platform_id: str = Field("", alias="platformId")
    topic_id: str = Field("", alias="topicId")
    persona_id: str = Field("", alias="personaId")
    prompt_id: str | None = Field(None, alias="promptId")  # defaults to id
    text: str = ""
    citations: tuple[CitationRef, ...] = ()

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            value = value.strip()
        return value

    @field_validator("platform_id", "topic_id", "persona_id", mode="before")
    @classmethod
    def _optional_key(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("prompt_id", mode="before")
    @classmethod
    def _prompt_key(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("text", mode="before")
    @classmethod
    def _none_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("citations", mode="before")
    @classmethod
    def _coerce_citations(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (str, dict)):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return value
        return tuple({"url": item} if isinstance(item, str) else item for item in value)

    @model_validator(mode="after")
    def _default_prompt_id(self) -> ResponseRecord:
        if self.prompt_id is None:
            object.__setattr__(self, "prompt_id", self.id)
        return self

    @property
    def citation_urls(self) -> list[str]:
        return [c.url for c in self.citations]

    def with_inline_citations(self) -> ResponseRecord:
        """Copy whose citations also include links found in the response text."""
        links = extract_links(self.text, native_urls=self.citation_urls)
        anchors = {c.url.rstrip(".,;:!?"): c.anchor_text for c in self.citations}
        citations = tuple(
            CitationRef(url=link.url, anchor_text=anchors.get(link.url) or link.anchor_text) for link in links
        )
        return self.model_copy(update={"citations": citations})


class BrandRoster(BaseModel):
    """Target brand and competitors for one analysis."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    brand_name: str = Field(min_length=1, alias="brandName")
    competitor_names: tuple[str, ...] = Field((), alias="competitorNames")

    @field_validator("brand_name", mode="before")
    @classmethod
    def _strip_brand(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("competitor_names", mode="before")
    @classmethod
    def _clean_competitors(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return value
        return tuple(name.strip() for name in value if isinstance(name, str) and name.strip())

    @model_validator(mode="after")
    def _dedupe(self) -> BrandRoster:
        seen = {self.brand_name.lower()}
        unique: list[str] = []
        for name in self.competitor_names:
            if name.lower() not in seen:
                seen.add(name.lower())
                unique.append(name)
        object.__setattr__(self, "competitor_names", tuple(unique))
        return self

    @property
    def all_brands(self) -> list[str]:
        return [self.brand_name, *self.competitor_names]


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "record"
        parts.append(f"{loc}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)


def parse_record(raw: ResponseRecord | dict[str, Any]) -> ResponseRecord:
    """Validate one raw record.

    Raises:
        InvalidInputError: the record is malformed.
    """
    if isinstance(raw, ResponseRecord):
        return raw
    if not isinstance(raw, dict):
        raise InvalidInputError(f"Record must be an object, got {type(raw).__name__}")
    record_id = str(raw.get("id") or "")
    try:
        return ResponseRecord.model_validate(raw)
    except ValidationError as e:
        raise InvalidInputError(_describe(e), record_id=record_id) from e


def parse_records(
    raw_items: Iterable[ResponseRecord | dict[str, Any]],
) -> tuple[list[ResponseRecord], list[RecordRejection]]:
    """Validate a batch of raw records, skipping malformed ones.

    Returns:
        Tuple of (valid records in input order, rejections).
    """
    records: list[ResponseRecord] = []
    rejections: list[RecordRejection] = []
    for index, raw in enumerate(raw_items):
        try:
            records.append(parse_record(raw))
        except InvalidInputError as e:
            logger.warning(
                "Skipping malformed record #%d (id=%r): %s", index, e.record_id, e, extra={"record_id": e.record_id}
            )
            rejections.append(RecordRejection(record_id=e.record_id, reason=str(e)))
    return records, rejections
