"""
Unit Tests for App Center REST Client

Test Coverage:
- URL construction and placeholder substitution
- Record extraction from wrapped and bare-array bodies
- Authentication header
- Retry logic (4 attempts, fail-open empty result)
- Per-query tracking of calls, retries and degraded requests
- Request throttling
"""

import os
import time
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from appcenter_datasource.collectors.appcenter_rest_client import (
    AppCenterRESTClient,
    RequestThrottle,
    extract_records,
    get_appcenter_rest_client,
)
from appcenter_datasource.core import track_query


@pytest.fixture
def client(config):
    return AppCenterRESTClient.from_config(config)


def _server_error():
    return httpx.HTTPStatusError("500 Internal Server Error", request=Mock(), response=Mock())


class TestClientInitialization:
    def test_from_config(self, client):
        assert client.base_url == "https://api.appcenter.ms"
        assert client.api_key == "test-key"
        assert client.max_retries == 3

    def test_strips_trailing_slash(self):
        client = AppCenterRESTClient(base_url="https://api.appcenter.ms/", api_key="k")
        assert client.base_url == "https://api.appcenter.ms"

    def test_auth_header(self, client):
        assert client.auth_header["X-API-Token"] == "test-key"

    def test_get_appcenter_rest_client_from_environment(self):
        env = {"APPCENTER_URL": "https://appcenter.example.com", "APPCENTER_API_KEY": "env-key"}
        with patch.dict(os.environ, env, clear=False):
            client = get_appcenter_rest_client()

        assert client.base_url == "https://appcenter.example.com"
        assert client.auth_header["X-API-Token"] == "env-key"


class TestURLBuilding:
    def test_orgs(self, client):
        assert client.build_url(AppCenterRESTClient.ORGS) == "https://api.appcenter.ms/v0.1/orgs"

    def test_placeholders_are_quoted(self, client):
        url = client.build_url(AppCenterRESTClient.APPS, owner_name="my org")
        assert url == "https://api.appcenter.ms/v0.1/orgs/my%20org/apps"

    def test_two_step_fill(self, client):
        template = client.build_url(AppCenterRESTClient.ERRORS, error_group_id="g-1")
        assert "{owner_name}" in template
        assert "{app_name}" in template

        url = client.build_url(template, owner_name="org", app_name="app")

        assert url == "https://api.appcenter.ms/v0.1/apps/org/app/errors/errorGroups/g-1/errors"


class TestExtractRecords:
    def test_wrapped_body(self):
        assert extract_records({"errorGroups": [{"id": 1}]}, "errorGroups") == [{"id": 1}]

    def test_bare_array_body(self):
        assert extract_records([{"id": 1}, {"id": 2}], "orgs") == [{"id": 1}, {"id": 2}]

    def test_missing_root_element(self):
        assert extract_records({"other": []}, "events") == []

    def test_degraded_body(self):
        assert extract_records({}, "events") == []

    def test_non_object_items_dropped(self):
        assert extract_records({"events": [{"id": 1}, "x", None]}, "events") == [{"id": 1}]


class TestFetch:
    @pytest.mark.asyncio
    async def test_success_first_attempt(self, client, mock_http_client, make_response):
        mock_http_client.get = AsyncMock(return_value=make_response({"events": []}))

        result = await client.fetch("https://api.appcenter.ms/v0.1/orgs", {"top": 30, "start": None})

        assert result.data == {"events": []}
        assert result.attempts == 1
        assert result.degraded is False

        assert mock_http_client.client_cls.call_args.kwargs["headers"]["X-API-Token"] == "test-key"
        assert mock_http_client.get.call_args.kwargs["params"] == {"top": 30}

    @pytest.mark.asyncio
    async def test_retry_then_success(self, client, mock_http_client, make_response):
        mock_http_client.get = AsyncMock(
            side_effect=[httpx.ConnectError("connection refused"), make_response([{"id": "o-1"}])]
        )

        result = await client.fetch("https://api.appcenter.ms/v0.1/orgs")

        assert result.data == [{"id": "o-1"}]
        assert result.attempts == 2
        assert mock_http_client.get.call_count == 2

    @pytest.mark.asyncio
    async def test_two_failures_then_success(self, client, mock_http_client, make_response):
        mock_http_client.get = AsyncMock(
            side_effect=[
                httpx.ConnectError("down"),
                make_response(status_error=_server_error()),
                make_response({"orgs": [{"id": "o-1"}]}),
            ]
        )

        assert await client.request("https://api.appcenter.ms/v0.1/orgs") == {"orgs": [{"id": "o-1"}]}
        assert mock_http_client.get.call_count == 3

    @pytest.mark.asyncio
    async def test_non_2xx_is_retried(self, client, mock_http_client, make_response):
        mock_http_client.get = AsyncMock(
            side_effect=[make_response(status_error=_server_error()), make_response({"ok": True})]
        )

        result = await client.fetch("https://api.appcenter.ms/v0.1/orgs")

        assert result.data == {"ok": True}
        assert result.attempts == 2

    @pytest.mark.asyncio
    async def test_undecodable_body_is_retried(self, client, mock_http_client, make_response):
        bad = make_response()
        bad.json = Mock(side_effect=ValueError("Expecting value"))
        mock_http_client.get = AsyncMock(side_effect=[bad, make_response({"ok": True})])

        result = await client.fetch("https://api.appcenter.ms/v0.1/orgs")

        assert result.attempts == 2

    @pytest.mark.asyncio
    async def test_four_failures_return_empty(self, client, mock_http_client):
        mock_http_client.get = AsyncMock(side_effect=httpx.ConnectError("connection refused"))

        result = await client.fetch("https://api.appcenter.ms/v0.1/orgs")

        assert mock_http_client.get.call_count == 4
        assert result.data == {}
        assert result.attempts == 4
        assert result.degraded is True
        assert "connection refused" in result.error

    @pytest.mark.asyncio
    async def test_request_returns_empty_body_after_exhaustion(self, client, mock_http_client, make_response):
        mock_http_client.get = AsyncMock(return_value=make_response(status_error=_server_error()))

        assert await client.request("https://api.appcenter.ms/v0.1/orgs") == {}
        assert mock_http_client.get.call_count == 4

    @pytest.mark.asyncio
    async def test_success_on_fourth_attempt(self, client, mock_http_client, make_response):
        error = httpx.ReadTimeout("timed out")
        mock_http_client.get = AsyncMock(side_effect=[error, error, error, make_response({"ok": True})])

        result = await client.fetch("https://api.appcenter.ms/v0.1/orgs")

        assert result.data == {"ok": True}
        assert result.attempts == 4
        assert result.degraded is False

    @pytest.mark.asyncio
    async def test_retries_and_failure_are_logged(self, client, mock_http_client, caplog):
        mock_http_client.get = AsyncMock(side_effect=httpx.ConnectError("down"))

        await client.fetch("https://api.appcenter.ms/v0.1/orgs")

        messages = [r.getMessage() for r in caplog.records]
        assert "Retrying (attempt 1/3): https://api.appcenter.ms/v0.1/orgs" in messages
        assert "Retrying (attempt 3/3): https://api.appcenter.ms/v0.1/orgs" in messages
        assert any("failed on last attempt" in m for m in messages)

    @pytest.mark.asyncio
    async def test_tracker_records_calls_and_degradation(self, client, mock_http_client):
        mock_http_client.get = AsyncMock(side_effect=httpx.ConnectError("down"))

        with track_query("A", "Orgs") as tracker:
            await client.fetch("https://api.appcenter.ms/v0.1/orgs")

        assert tracker.api_call_count == 4
        assert tracker.retry_count == 3
        assert tracker.degraded_requests == ["https://api.appcenter.ms/v0.1/orgs"]

    @pytest.mark.asyncio
    async def test_custom_retry_count(self, config, mock_http_client):
        client = AppCenterRESTClient(config.base_url, config.api_key, max_retries=0)
        mock_http_client.get = AsyncMock(side_effect=httpx.ConnectError("down"))

        result = await client.fetch("https://api.appcenter.ms/v0.1/orgs")

        assert mock_http_client.get.call_count == 1
        assert result.degraded is True


class TestRequestThrottle:
    @pytest.mark.asyncio
    async def test_disabled_by_default(self):
        throttle = RequestThrottle()
        start = time.monotonic()

        for _ in range(20):
            await throttle.wait()

        assert throttle.interval == 0
        assert time.monotonic() - start < 0.5

    @pytest.mark.asyncio
    async def test_spaces_requests(self):
        throttle = RequestThrottle(requests_per_second=20)
        start = time.monotonic()

        for _ in range(3):
            await throttle.wait()

        # First request goes immediately, the next two wait 0.05s each
        assert time.monotonic() - start >= 0.09

    def test_rate_limit_from_config(self, config):
        client = AppCenterRESTClient(config.base_url, config.api_key, rate_limit=4)
        assert client.throttle.interval == 0.25
