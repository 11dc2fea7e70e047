"""
Pytest configuration and shared fixtures

Provides a data source configuration, query factories and HTTP transport
mocks shared across the test suite.
"""

import time
from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock, patch

import pytest

from appcenter_datasource.collectors.appcenter_rest_client import AppCenterRESTClient
from appcenter_datasource.domain.query import QueryRequest, TemplateVariables, TimeRange
from appcenter_datasource.secure_config import DataSourceConfig


@pytest.fixture
def config():
    """Data source configured with one organization and two apps"""
    return DataSourceConfig(
        base_url="https://api.appcenter.ms",
        org_name="my-org",
        app_names=("app-1", "app-2"),
        api_key="test-key",
    )


@pytest.fixture
def time_range():
    """Two UTC calendar days: 2026-02-10 and 2026-02-11"""
    return TimeRange(datetime(2026, 2, 10, tzinfo=UTC), datetime(2026, 2, 11, 23, 59, 59, tzinfo=UTC))


@pytest.fixture
def make_query(time_range):
    """Factory for QueryRequest with UTC day boundaries by default"""

    def _make_query(query_type, ref_id="A", limit=30, timezone="utc", variables=None, range_=None):
        return QueryRequest(
            ref_id=ref_id,
            type=query_type,
            time_range=range_ or time_range,
            limit=limit,
            timezone=timezone,
            variables=TemplateVariables(variables),
        )

    return _make_query


@pytest.fixture
def lisbon_host(monkeypatch):
    """Host zone set to Europe/Lisbon (summer time starts 2026-03-29)"""
    monkeypatch.setenv("TZ", "Europe/Lisbon")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.fixture
def make_response():
    """Factory for mocked httpx responses"""

    def _make_response(json_data=None, status_error=None):
        response = Mock()
        response.json = Mock(return_value=json_data)
        response.raise_for_status = Mock(side_effect=status_error)
        return response

    return _make_response


@pytest.fixture
def mock_http_client():
    """
    Patch the REST client's transport with an async mock client.

    The patched class is available as ``client.client_cls`` to inspect
    constructor arguments (headers).
    """
    client = AsyncMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)

    with patch(
        "appcenter_datasource.collectors.appcenter_rest_client.AsyncSecureHTTPClient", return_value=client
    ) as client_cls:
        client.client_cls = client_cls
        yield client


@pytest.fixture
def routed_rest_client(config):
    """
    Factory for a REST client whose request() answers from a route table.

    Routes map a URL path suffix (after /v0.1/) to a response body; unknown
    URLs answer {} like an exhausted request. Every call is recorded on
    ``client.request``.
    """

    def _routed_rest_client(routes):
        client = AppCenterRESTClient.from_config(config)
        prefix = f"{config.base_url}/{AppCenterRESTClient.API_VERSION}/"

        async def route(url, params=None):
            return routes.get(url.removeprefix(prefix), {})

        client.request = AsyncMock(side_effect=route)
        return client

    return _routed_rest_client
