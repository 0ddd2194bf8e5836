"""Structured JSON logging formatter and the ``data=`` log adapter."""

import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Any

# Record attributes copied into the JSON entry when set
CONTEXT_FIELDS = ("correlation_id", "request_path")


def component_of(logger_name: str) -> str:
    """
    Short component name from a logger name.

    Examples:
        spotibuds.modules.media.services.image_cache -> media.services.image_cache
        spotibuds.core.db.retry -> core.db.retry
        __main__ -> main
    """
    if logger_name == "__main__":
        return "main"

    parts = logger_name.split(".")
    for prefix in ("spotibuds", "modules"):
        if parts and parts[0] == prefix:
            parts = parts[1:]
    return ".".join(parts) or logger_name


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record, for log aggregation.

    Carries the request context (correlation id, request path), the
    structured ``data`` of the call and exception details.
    """

    def __init__(self, include_path: bool = False, static_fields: dict[str, Any] | None = None):
        """
        Args:
            include_path: Add file:line of the call site
            static_fields: Added to every entry (service name, environment)
        """
        super().__init__()
        self.include_path = include_path
        self.static_fields = static_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "component": component_of(record.name),
            "logger": record.name,
            "message": (record.getMessage() or "").strip(),
        }
        if self.include_path:
            entry["path"] = f"{record.pathname}:{record.lineno}"

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value:
                entry[name] = value

        data = getattr(record, "structured_data", None)
        if data:
            entry["data"] = data

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        entry.update(self.static_fields)
        return json.dumps(entry, ensure_ascii=False, default=str)


class StructuredLogAdapter(logging.LoggerAdapter):
    """
    Logger adapter accepting a ``data={...}`` keyword on every level.

    Usage:
        logger = get_logger(__name__)
        logger.info("Image served", data={"tier": "local", "bytes": 2048})
    """

    def __init__(self, logger: logging.Logger, extra: dict | None = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        extra = dict(self.extra)
        extra.update(kwargs.get("extra") or {})

        data = kwargs.pop("data", None)
        if data:
            extra["structured_data"] = data

        kwargs["extra"] = extra
        return msg, kwargs
