from brand_metrics.schemas.record import (
    BrandRoster,
    CitationRef,
    RecordRejection,
    ResponseRecord,
    parse_record,
    parse_records,
)

__all__ = [
    "BrandRoster",
    "CitationRef",
    "RecordRejection",
    "ResponseRecord",
    "parse_record",
    "parse_records",
]
