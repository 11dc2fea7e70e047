#!/usr/bin/env python3
"""
Error Handling Utility Module

Two degradation paths used by the data source, both logging the failure
with structured context:

- log_and_continue(): skip one bad item (a record with an unparseable
  timestamp) and keep processing the rest of the response
- log_and_return_default(): substitute a fallback value for a whole
  operation (an App Center request whose retries are exhausted)
"""

import logging
from typing import Any, TypeVar

T = TypeVar("T")


def _failure_fields(error: Exception, error_type: str, context: dict[str, Any]) -> dict[str, Any]:
    return {
        "error_type": error_type,
        "exception_class": type(error).__name__,
        "context": context,
    }


def log_and_continue(
    logger: logging.Logger,
    error: Exception,
    context: dict[str, Any],
    error_type: str = "Operation",
) -> None:
    """
    Log a recoverable per-item failure at WARNING.

    Example:
        for error in errors:
            try:
                occurred = parse_timestamp(error.get("timestamp"))
            except ValueError as e:
                log_and_continue(logger, e, {"errorId": error.get("errorId")}, "Error timestamp parsing")
                continue
    """
    logger.warning(f"{error_type} failed: {error}", extra=_failure_fields(error, error_type, context))


def log_and_return_default(
    logger: logging.Logger,
    error: Exception,
    context: dict[str, Any],
    default_value: T = None,
    error_type: str = "Operation",
) -> T:
    """
    Log a failed operation at ERROR and return ``default_value`` in its place.

    Example:
        return log_and_return_default(
            logger, last_error, {"url": url}, default_value=ApiResult(data={}, attempts=4, error=str(last_error))
        )
    """
    fields = _failure_fields(error, error_type, context)
    fields["default_value"] = repr(default_value)
    logger.error(f"{error_type} failed, returning default value: {error}", extra=fields)
    return default_value
