"""Process-wide logging bootstrap for the API."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .correlation import CorrelationLogFilter
from .formatters import JSONFormatter, StructuredLogAdapter
from .logging_config import get_logging_config

SERVICE_NAME = "spotibuds-media-api"

TEXT_FORMAT = "%(asctime)s [%(correlation_id)s] %(name)s - %(levelname)s - %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

# uvicorn installs its own handlers unless told otherwise; route them to root
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

_logging_configured = False


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.addFilter(CorrelationLogFilter())
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    json_format: Optional[bool] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 3,
    component: str = "default",
    force: bool = False,
) -> None:
    """
    Configure the root logger once per process.

    Console output is plain text with the correlation id, or JSON; the
    optional rotating file is always JSON. Unset arguments come from
    logging-config.yaml and LOG_* environment variables.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Path of a rotating JSON log file
        json_format: JSON on the console
        max_bytes: Rotation size of the log file
        backup_count: Rotated files to keep
        component: Component key in logging-config.yaml (api, media, ...)
        force: Reconfigure even if already set up
    """
    global _logging_configured
    if _logging_configured and not force:
        return

    config = get_logging_config()
    level = level or config.get_level(component)
    if json_format is None:
        json_format = config.get_json_format(component)
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    json_formatter = JSONFormatter(static_fields={"service": SERVICE_NAME})
    console_formatter = json_formatter if json_format else logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(numeric_level)
    root.addHandler(_handler(logging.StreamHandler(sys.stdout), numeric_level, console_formatter))

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        root.addHandler(_handler(file_handler, numeric_level, json_formatter))

    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    for framework, framework_level in config.framework_levels().items():
        logging.getLogger(framework).setLevel(framework_level)

    _logging_configured = True


def get_logger(name: str) -> StructuredLogAdapter:
    """Structured logger for a module (usually ``get_logger(__name__)``)."""
    return StructuredLogAdapter(logging.getLogger(name))
