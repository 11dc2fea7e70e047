"""
Async HTTP transport for the App Center API

Wraps httpx.AsyncClient with the transport policy every App Center call
uses: TLS verification always on, HTTP/2, a bounded connection pool and a
per-request timeout. Headers (authentication) are bound once per client.

Usage:
    from appcenter_datasource.async_http_client import AsyncSecureHTTPClient

    async with AsyncSecureHTTPClient(headers={"X-API-Token": api_key}) as client:
        response = await client.get(url, params={"top": 30})
"""

from collections.abc import Mapping
from typing import Any

import httpx


class AsyncSecureHTTPClient:
    """
    Async GET client with enforced SSL verification.

    Must be used as an async context manager; the pooled connections are
    closed on exit.
    """

    DEFAULT_TIMEOUT = 30.0  # seconds
    MAX_CONNECTIONS = 20
    MAX_KEEPALIVE_CONNECTIONS = 10

    def __init__(
        self,
        headers: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        http2: bool = True,
    ):
        self.headers = dict(headers or {})
        self.timeout = httpx.Timeout(timeout)
        self.limits = httpx.Limits(
            max_connections=self.MAX_CONNECTIONS, max_keepalive_connections=self.MAX_KEEPALIVE_CONNECTIONS
        )
        self.http2 = http2
        self.client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "AsyncSecureHTTPClient":
        self.client = httpx.AsyncClient(
            headers=self.headers,
            limits=self.limits,
            timeout=self.timeout,
            verify=True,
            http2=self.http2,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None

    async def get(self, url: str, params: Mapping[str, Any] | None = None) -> httpx.Response:
        """
        GET ``url`` with the client's headers and timeout.

        Raises:
            RuntimeError: If called outside ``async with``
            httpx.HTTPError: On transport failure
        """
        if self.client is None:
            raise RuntimeError("AsyncSecureHTTPClient must be used as an async context manager")
        return await self.client.get(url, params=params)
