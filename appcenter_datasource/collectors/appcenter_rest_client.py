"""
App Center REST API Client

Performs authenticated GET requests against the App Center API with bounded
automatic retry. Uses AsyncSecureHTTPClient for HTTP/2, connection pooling
and SSL enforcement.

Failed requests are retried immediately up to MAX_RETRIES more times. When
every attempt fails the client returns an empty result instead of raising:
one unreachable app must not abort a query fanned out across many apps.
fetch() reports that degradation explicitly; request() returns only the body.

Usage:
    from appcenter_datasource.collectors.appcenter_rest_client import get_appcenter_rest_client

    client = get_appcenter_rest_client()
    url = client.build_url(AppCenterRESTClient.ORGS)
    orgs = await client.request(url)

API Documentation:
    https://openapi.appcenter.ms/
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from appcenter_datasource.async_http_client import AsyncSecureHTTPClient
from appcenter_datasource.core import get_config, get_current_tracker, get_logger
from appcenter_datasource.secure_config import DataSourceConfig
from appcenter_datasource.utils.error_handling import log_and_return_default

logger = get_logger(__name__)

ResponseBody = dict[str, Any] | list[Any]


@dataclass
class ApiResult:
    """
    Outcome of one logical request (all of its attempts).

    Attributes:
        data: Decoded JSON body, or {} when every attempt failed
        attempts: Number of attempts made
        error: Last error message when every attempt failed, else None
    """

    data: ResponseBody
    attempts: int
    error: str | None = None

    @property
    def degraded(self) -> bool:
        """True when retries were exhausted and data is the empty fallback."""
        return self.error is not None


class RequestThrottle:
    """
    Spaces requests at least 1/requests_per_second apart.

    A rate of 0 disables throttling.
    """

    def __init__(self, requests_per_second: float = 0.0):
        self.interval = 1.0 / requests_per_second if requests_per_second > 0 else 0.0
        self._lock = asyncio.Lock()
        self._next_slot = 0.0

    async def wait(self) -> None:
        if not self.interval:
            return

        async with self._lock:
            now = time.monotonic()
            delay = self._next_slot - now
            self._next_slot = max(now, self._next_slot) + self.interval

        if delay > 0:
            await asyncio.sleep(delay)


def extract_records(body: ResponseBody, root_element: str) -> list[dict[str, Any]]:
    """
    Read the record list of a response body.

    Most endpoints wrap their records in an object under ``root_element``;
    the organization and app listings return a bare array. An empty or
    degraded body yields an empty list.
    """
    if isinstance(body, list):
        records = body
    else:
        records = body.get(root_element) or []
    return [record for record in records if isinstance(record, dict)]


class AppCenterRESTClient:
    """
    App Center REST API client.

    Features:
    - Async HTTP/2 requests with connection pooling
    - X-API-Token authentication
    - Immediate retry of failed attempts (no backoff)
    - Fail-open empty result once retries are exhausted
    - Optional requests-per-second throttle
    """

    API_VERSION = "v0.1"
    MAX_RETRIES = 3

    ORGS = "orgs"
    APPS = "orgs/{owner_name}/apps"
    ERROR_GROUPS = "apps/{owner_name}/{app_name}/errors/errorGroups"
    ERRORS = "apps/{owner_name}/{app_name}/errors/errorGroups/{error_group_id}/errors"
    ERROR_COUNTS_PER_DAY = "apps/{owner_name}/{app_name}/errors/errorCountsPerDay"
    EVENTS = "apps/{owner_name}/{app_name}/analytics/events"

    def __init__(self, base_url: str, api_key: str, rate_limit: float = 0.0, max_retries: int = MAX_RETRIES):
        """
        Initialize App Center REST client.

        Args:
            base_url: API base URL (e.g., https://api.appcenter.ms)
            api_key: App Center user API token
            rate_limit: Maximum requests per second (0 disables)
            max_retries: Retries after the first failed attempt
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.max_retries = max_retries
        self.auth_header = {"X-API-Token": api_key, "Accept": "application/json"}
        self.throttle = RequestThrottle(rate_limit)

    @classmethod
    def from_config(cls, config: DataSourceConfig) -> "AppCenterRESTClient":
        return cls(base_url=config.base_url, api_key=config.api_key, rate_limit=config.rate_limit)

    def build_url(self, resource: str, **placeholders: str) -> str:
        """
        Build an API URL, substituting ``{name}`` placeholders.

        Placeholders without a value are left in place so a template can be
        filled in two steps (org first, then each app).

        Example:
            build_url(AppCenterRESTClient.APPS, owner_name="my-org")
            -> "https://api.appcenter.ms/v0.1/orgs/my-org/apps"
        """
        url = resource if resource.startswith(("http://", "https://")) else f"{self.base_url}/{self.API_VERSION}/{resource}"
        for name, value in placeholders.items():
            url = url.replace(f"{{{name}}}", quote(str(value), safe=""))
        return url

    async def fetch(self, url: str, params: dict[str, Any] | None = None) -> ApiResult:
        """
        GET ``url`` with up to ``max_retries`` immediate retries.

        Args:
            url: Full API URL
            params: Query parameters (None values are dropped)

        Returns:
            ApiResult with the decoded body, or the empty fallback when every
            attempt failed
        """
        query = {k: v for k, v in (params or {}).items() if v is not None}
        tracker = get_current_tracker()
        total_attempts = self.max_retries + 1
        last_error: Exception | None = None

        for attempt in range(1, total_attempts + 1):
            if tracker:
                tracker.record_api_call()
            await self.throttle.wait()

            try:
                async with AsyncSecureHTTPClient(headers=self.auth_header) as client:
                    response = await client.get(url, params=query)
                    response.raise_for_status()
                    data: ResponseBody = response.json()
            except (httpx.HTTPError, ValueError) as e:
                # ValueError covers undecodable JSON bodies
                last_error = e
                if attempt < total_attempts:
                    if tracker:
                        tracker.record_retry()
                    logger.warning(
                        f"Retrying (attempt {attempt}/{self.max_retries}): {url}",
                        extra={"url": url, "attempt": attempt, "error": str(e)},
                    )
                continue

            if attempt > 1:
                logger.info(f"Retried successfully on attempt {attempt - 1}", extra={"url": url})
            return ApiResult(data=data if isinstance(data, (dict, list)) else {}, attempts=attempt)

        if tracker:
            tracker.record_degraded(url)
        error = last_error or RuntimeError("No attempt was made")
        return log_and_return_default(
            logger,
            error,
            context={"url": url, "attempts": total_attempts},
            default_value=ApiResult(data={}, attempts=total_attempts, error=str(error)),
            error_type="App Center request (failed on last attempt)",
        )

    async def request(self, url: str, params: dict[str, Any] | None = None) -> ResponseBody:
        """
        GET ``url`` and return the decoded body, or {} once retries are exhausted.

        Callers must treat an empty body as "no data", not as a failure.
        """
        result = await self.fetch(url, params)
        return result.data


def get_appcenter_rest_client() -> AppCenterRESTClient:
    """
    Get an App Center REST client with credentials from the environment.

    Returns:
        AppCenterRESTClient: Authenticated REST client
    """
    return AppCenterRESTClient.from_config(get_config().get_datasource_config())
