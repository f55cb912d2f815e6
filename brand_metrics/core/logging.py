"""Logging setup for the metrics engine.

Engine modules only log through their module loggers; setup_logging() is for
the caller (a script, worker or API process) that wants the engine's format.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from brand_metrics.core.config import settings

# Context attached via `extra=` by the scorer, pipeline and ingestion
CONTEXT_FIELDS = ("record_id", "scope", "brand")

_PLAIN_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter for production."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value:
                log_data[name] = value
        if record.exc_info and record.exc_info[1]:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False)


class RecordLogger(logging.LoggerAdapter):
    """Logger bound to one response record; every message carries its record_id."""

    def __init__(self, logger: logging.Logger, record_id: str):
        super().__init__(logger, {"record_id": record_id})

    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        extra.setdefault("record_id", self.extra["record_id"])
        return msg, kwargs


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Configure the root logger.

    Args:
        level: Level name; defaults to settings.log_level.
        json_output: JSON lines instead of plain text; defaults to settings.log_json.
    """
    level_value = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    json_output = settings.log_json if json_output is None else json_output

    root = logging.getLogger()
    root.setLevel(level_value)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level_value)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)

    logging.getLogger("brand_metrics").setLevel(level_value)
