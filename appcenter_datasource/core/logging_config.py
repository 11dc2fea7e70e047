"""
Logging setup for the data source.

Two output styles share one notion of "context": any attribute a caller
attaches through ``extra={...}`` or log_with_context() (ref_id, url,
request_id, attempt, ...).

- JSONFormatter: one JSON object per line, context merged at top level
- ContextFormatter: console line with context appended as key=value pairs

Usage:
    from appcenter_datasource.core.logging_config import get_logger

    logger = get_logger(__name__)
    logger.warning("Retrying", extra={"url": url, "attempt": 2})
"""

import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Attributes of a bare LogRecord; anything beyond these came from ``extra``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CONSOLE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
TRANSPORT_LOGGERS = ("httpx", "httpcore", "hpack")


def context_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Caller-supplied context of a record."""
    fields: dict[str, Any] = dict(getattr(record, "extra_fields", None) or {})
    for key, value in vars(record).items():
        if key not in _RECORD_ATTRS and key != "extra_fields":
            fields[key] = value
    return fields


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(context_fields(record))
        return json.dumps(entry, default=str)


class ContextFormatter(logging.Formatter):
    """
    Console formatter.

    Level names are colored when ``use_color`` is set; context fields are
    appended after the message.
    """

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str | None = None, datefmt: str | None = None, use_color: bool = False):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        if self.use_color and record.levelname in self.LEVEL_COLORS:
            record = logging.makeLogRecord(vars(record))
            record.levelname = f"{self.LEVEL_COLORS[record.levelname]}{record.levelname}{self.RESET}"

        line = super().format(record)
        fields = context_fields(record)
        if fields:
            line += " | " + " ".join(f"{key}={value}" for key, value in fields.items())
        return line


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    json_output: bool = False,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file that receives JSON lines
        json_output: Write JSON to the console instead of readable lines

    Example:
        setup_logging(level="DEBUG")
        setup_logging(level="INFO", log_file=Path("logs/datasource.log"), json_output=True)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    console = logging.StreamHandler(sys.stdout)
    if json_output:
        console.setFormatter(JSONFormatter())
    else:
        console.setFormatter(
            ContextFormatter(CONSOLE_FORMAT, CONSOLE_DATE_FORMAT, use_color=sys.stdout.isatty())
        )
    handlers: list[logging.Handler] = [console]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)
    for handler in handlers:
        handler.setLevel(log_level)
        root.addHandler(handler)

    # Transport libraries log every request
    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module (pass ``__name__``)."""
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: str, message: str, **context: Any) -> None:
    """
    Log ``message`` at ``level`` with keyword context fields.

    Example:
        log_with_context(logger, "info", "Query finished", ref_id="A", api_call_count=4)
    """
    getattr(logger, level.lower())(message, extra={"extra_fields": context})
