#!/usr/bin/env python3
"""
App Center Data Source

Entry point of the adapter: routes each query target to its handler, runs
the targets of one request concurrently, and checks connectivity for the
settings form.

Usage:
    import asyncio
    from appcenter_datasource.collectors.datasource import AppCenterDataSource

    datasource = AppCenterDataSource(config)
    responses = asyncio.run(datasource.query([request]))
    status = asyncio.run(datasource.test_datasource())
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from appcenter_datasource.collectors.appcenter_rest_client import AppCenterRESTClient
from appcenter_datasource.collectors.query_handlers import QueryHandlers
from appcenter_datasource.core import ConfigurationError, get_logger, track_query
from appcenter_datasource.domain.frame import DataFrame
from appcenter_datasource.domain.query import QUERY_TYPE_REQUIRED, QueryRequest, QueryType, QueryTypeError
from appcenter_datasource.secure_config import DataSourceConfig, DataSourceSettings

logger = get_logger(__name__)

BASE_URL_REQUIRED = "A valid Base URL must be informed."
BASE_URL_SCHEME = "Base URL must start with https:// or http://"
API_KEY_REQUIRED = "A valid Key must be informed."
CONNECTION_FAILED = "Could not connect to App Center using the informed parameter. URL: {url}"

Handler = Callable[[QueryRequest], Awaitable[DataFrame]]


@dataclass
class QueryResponse:
    """Result of one query target: a frame, or the error that aborted it."""

    ref_id: str
    frame: DataFrame | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"error": self.error}
        return {"frames": [self.frame.to_dict()] if self.frame is not None else []}


def _error_result(message: str, title: str = "Error") -> dict[str, str]:
    return {"status": "error", "message": message, "title": title}


class AppCenterDataSource:
    """
    App Center data source.

    Holds only the immutable configuration and the REST client; everything
    specific to a query (time range, timezone, limit) travels with the
    QueryRequest.
    """

    def __init__(self, config: DataSourceConfig, rest_client: AppCenterRESTClient | None = None):
        self.config = config
        self.rest_client = rest_client or AppCenterRESTClient.from_config(config)
        self.handlers = QueryHandlers(config, self.rest_client)
        self._routes: dict[QueryType, Handler] = {
            QueryType.ORGS: self.handlers.list_orgs,
            QueryType.APPS: self.handlers.list_apps,
            QueryType.ERROR_GROUPS: self.handlers.list_error_groups,
            QueryType.ERRORS: self.handlers.list_errors,
            QueryType.ERRORS_COUNT: self.handlers.list_errors_count,
            QueryType.EVENTS: self.handlers.list_events,
            QueryType.ERRORS_PER_DAY: self.handlers.list_errors_per_day,
            QueryType.CRASHES_PER_DAY: self.handlers.list_crashes_per_day,
        }

    @classmethod
    def from_settings(cls, settings: DataSourceSettings) -> "AppCenterDataSource":
        return cls(settings.to_config())

    def handler_for(self, query_type: QueryType | None) -> Handler:
        """
        Look up the handler of a query type.

        Raises:
            QueryTypeError: If the type is unset or has no handler
        """
        handler = self._routes.get(query_type) if query_type is not None else None
        if handler is None:
            raise QueryTypeError(QUERY_TYPE_REQUIRED)
        return handler

    async def run_query(self, query: QueryRequest) -> DataFrame:
        """
        Run one query target.

        A frame built while any request was degraded (retries exhausted)
        carries a warning notice in its meta.

        Raises:
            QueryTypeError: If the query type is unset or unknown
            ConfigurationError: If the organization or app names are missing
        """
        handler = self.handler_for(query.type)

        with track_query(query.ref_id, query.type.value) as tracker:
            frame = await handler(query)

        if tracker.degraded:
            frame.add_notice(
                f"Partial results: {len(tracker.degraded_requests)} App Center request(s) "
                f"failed after {self.rest_client.max_retries} retries"
            )
        return frame

    async def query(self, queries: Sequence[QueryRequest]) -> list[QueryResponse]:
        """
        Run every target of a request concurrently.

        A target failing with a configuration or query error aborts only
        itself; its response carries the error message. Any other exception
        propagates.

        Returns:
            One QueryResponse per target, in input order
        """
        results = await asyncio.gather(*(self.run_query(q) for q in queries), return_exceptions=True)

        responses: list[QueryResponse] = []
        for query, result in zip(queries, results, strict=True):
            if isinstance(result, (ConfigurationError, ValueError)):
                logger.warning(
                    f"Query {query.ref_id} failed: {result}",
                    extra={"ref_id": query.ref_id, "exception_class": result.__class__.__name__},
                )
                responses.append(QueryResponse(ref_id=query.ref_id, error=str(result)))
            elif isinstance(result, BaseException):
                raise result
            else:
                responses.append(QueryResponse(ref_id=query.ref_id, frame=result))
        return responses

    async def test_datasource(self) -> dict[str, str]:
        """
        Validate the settings and request the organization listing.

        Never raises. Missing or malformed settings are reported without any
        network call. The check succeeds whenever the REST client returns a
        result, including the empty fallback of an exhausted request.

        Returns:
            {"status": "success", "message": "Success"} or
            {"status": "error", "message": ..., "title": ...}
        """
        if not self.config.base_url:
            return _error_result(BASE_URL_REQUIRED)
        if not self.config.base_url_is_valid():
            return _error_result(BASE_URL_SCHEME)
        if not self.config.api_key:
            return _error_result(API_KEY_REQUIRED)

        orgs_url = self.rest_client.build_url(AppCenterRESTClient.ORGS)
        try:
            await self.rest_client.request(orgs_url, {})
        except Exception as e:
            logger.error(
                f"Connectivity check failed: {e}",
                extra={"url": orgs_url, "exception_class": e.__class__.__name__},
            )
            return _error_result(CONNECTION_FAILED.format(url=orgs_url), title="ERROR")

        logger.info("Connectivity check succeeded", extra={"url": orgs_url})
        return {"status": "success", "message": "Success"}
