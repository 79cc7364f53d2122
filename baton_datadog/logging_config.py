"""Structured JSON logging for the connector.

Every record becomes one JSON object on stderr. Syncers attach sync
coordinates through ``extra={...}``; records from the per-kind loggers
that omit ``resource_type`` get it from the logger name, and upstream
failures logged with ``exc_info`` carry their HTTP status.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

from baton_datadog.errors import UpstreamError

_EXTRA_FIELDS = (
    "resource_type",
    "resource_id",
    "operation",
    "page",
    "records",
    "principal_type",
    "principal_id",
    "duration_s",
)

_LOGGER_RESOURCE_TYPES = {
    "connector.teams": "team",
    "connector.roles": "role",
}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val
        if "resource_type" not in log_entry and record.name in _LOGGER_RESOURCE_TYPES:
            log_entry["resource_type"] = _LOGGER_RESOURCE_TYPES[record.name]

        if record.exc_info and record.exc_info[1]:
            exc = record.exc_info[1]
            log_entry["exception"] = self.formatException(record.exc_info)
            if isinstance(exc, UpstreamError) and exc.status_code is not None:
                log_entry["status_code"] = exc.status_code
        return json.dumps(log_entry, default=str)


def configure_logging(level: str = "INFO") -> None:
    """Route the ``connector`` logger tree to stderr as JSON lines."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    logger = logging.getLogger("connector")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False
