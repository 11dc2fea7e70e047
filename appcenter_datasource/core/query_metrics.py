"""
Query Performance Tracking Module

Provides per-query health monitoring for the data source:
    - QueryMetricsTracker: Tracks API usage for a single query
    - track_query(): Context manager for automatic tracking
    - get_current_tracker(): Access tracker from the REST client

The tracker is held in a context variable, so every asyncio task spawned
while a query runs (per-app and per-group fan-out) reports into the same
tracker, and concurrent queries never share one.
"""

import time
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from appcenter_datasource.core.logging_config import get_logger, log_with_context

logger = get_logger(__name__)

_current_tracker: ContextVar["QueryMetricsTracker | None"] = ContextVar("appcenter_query_tracker", default=None)


class QueryMetricsTracker:
    """
    Tracks performance and health metrics for a single query.

    Attributes:
        ref_id: Query identifier the tracker belongs to
        query_type: Query type value (e.g., "Error groups")
        start_time: Timestamp when tracking started (None before start())
        execution_time_ms: Total execution time in milliseconds
        api_call_count: Number of HTTP attempts made
        retry_count: Number of retried attempts
        degraded_requests: URLs whose retries were exhausted

    Example:
        >>> tracker = QueryMetricsTracker("A", "Events")
        >>> tracker.start()
        >>> tracker.record_api_call()
        >>> tracker.end()
        >>> tracker.api_call_count
        1
    """

    def __init__(self, ref_id: str, query_type: str):
        self.ref_id = ref_id
        self.query_type = query_type
        self.start_time: float | None = None
        self.execution_time_ms: float = 0
        self.api_call_count: int = 0
        self.retry_count: int = 0
        self.degraded_requests: list[str] = []

    def start(self) -> None:
        """Start tracking execution time."""
        self.start_time = time.time()

    def end(self) -> None:
        """End tracking and calculate execution time."""
        if self.start_time is not None:
            self.execution_time_ms = (time.time() - self.start_time) * 1000

    def record_api_call(self) -> None:
        """Record one HTTP attempt. Called by the REST client."""
        self.api_call_count += 1

    def record_retry(self) -> None:
        """Record a retried attempt. Called by the REST client."""
        self.retry_count += 1

    def record_degraded(self, url: str) -> None:
        """Record a request that fell back to an empty result after exhausting retries."""
        self.degraded_requests.append(url)

    @property
    def degraded(self) -> bool:
        return bool(self.degraded_requests)

    def to_dict(self) -> dict[str, Any]:
        """Convert metrics to dictionary for logging."""
        return {
            "ref_id": self.ref_id,
            "query_type": self.query_type,
            "execution_time_ms": round(self.execution_time_ms, 2),
            "api_call_count": self.api_call_count,
            "retry_count": self.retry_count,
            "degraded_request_count": len(self.degraded_requests),
        }


def get_current_tracker() -> QueryMetricsTracker | None:
    """
    Get the tracker of the query running in the current context.

    Returns:
        Active tracker or None if no query is being tracked
    """
    return _current_tracker.get()


@contextmanager
def track_query(ref_id: str, query_type: str) -> Generator[QueryMetricsTracker, None, None]:
    """
    Context manager for automatic query tracking.

    Example:
        with track_query("A", "Errors count") as tracker:
            frame = await handler(...)
        if tracker.degraded:
            ...
    """
    tracker = QueryMetricsTracker(ref_id, query_type)
    token = _current_tracker.set(tracker)
    tracker.start()
    try:
        yield tracker
    finally:
        tracker.end()
        _current_tracker.reset(token)
        level = "warning" if tracker.degraded else "debug"
        log_with_context(logger, level, "Query finished", **tracker.to_dict())
