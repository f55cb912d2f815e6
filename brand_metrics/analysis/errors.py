"""Exceptions raised by the metrics engine."""

from __future__ import annotations


class MetricsEngineError(Exception):
    """Base class for engine errors."""


class InvalidInputError(MetricsEngineError):
    """Raised for a blank brand name or a malformed record.

    Batch entry points catch it per record, log it and skip the record.
    """

    def __init__(self, message: str, record_id: str = ""):
        super().__init__(message)
        self.record_id = record_id
