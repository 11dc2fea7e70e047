"""
Multi-app invocation

Issues one request per configured app for an endpoint template, tags every
returned record with its app, and merges the per-app lists.
"""

import asyncio
from typing import Any

from appcenter_datasource.collectors.appcenter_rest_client import AppCenterRESTClient, extract_records
from appcenter_datasource.core import get_logger
from appcenter_datasource.secure_config import DataSourceConfig

logger = get_logger(__name__)


class MultiAppInvoker:
    """Fans a request template out across every app of the data source configuration."""

    def __init__(self, config: DataSourceConfig, rest_client: AppCenterRESTClient):
        self.config = config
        self.rest_client = rest_client

    async def _invoke_for_app(
        self, url_template: str, params: dict[str, Any], root_element: str, app_name: str
    ) -> list[dict[str, Any]]:
        url = self.rest_client.build_url(url_template, owner_name=self.config.org_name, app_name=app_name)
        body = await self.rest_client.request(url, params)

        records = extract_records(body, root_element)
        for record in records:
            record["appName"] = app_name
        return records

    async def invoke_for_all_apps(
        self, url_template: str, params: dict[str, Any], root_element: str
    ) -> list[dict[str, Any]]:
        """
        Invoke ``url_template`` for every configured app and merge the results.

        All per-app requests are started together and awaited as a group.
        Apps are concatenated in configuration order whatever order their
        responses arrive in; each app keeps the API's record order. An app
        whose request was exhausted contributes no records.

        Args:
            url_template: Resource template with {owner_name}/{app_name} placeholders
            params: Query parameters shared by every app
            root_element: Key of the record list in each response body

        Returns:
            Merged list of records, each carrying an ``appName`` key

        Raises:
            ConfigurationError: If the organization or app names are not configured
        """
        self.config.require_org()
        app_names = self.config.require_apps()

        tasks = [self._invoke_for_app(url_template, params, root_element, app_name) for app_name in app_names]
        per_app = await asyncio.gather(*tasks)

        merged: list[dict[str, Any]] = []
        for app_name, records in zip(app_names, per_app, strict=True):
            logger.debug(f"{app_name}: {len(records)} {root_element}")
            merged.extend(records)
        return merged
