"""
App Center collectors - REST client, multi-app fan-out, query handlers and the data source
"""

from appcenter_datasource.collectors.appcenter_rest_client import (
    ApiResult,
    AppCenterRESTClient,
    extract_records,
    get_appcenter_rest_client,
)
from appcenter_datasource.collectors.datasource import AppCenterDataSource, QueryResponse
from appcenter_datasource.collectors.multi_app import MultiAppInvoker
from appcenter_datasource.collectors.query_handlers import QueryHandlers

__all__ = [
    "ApiResult",
    "AppCenterDataSource",
    "AppCenterRESTClient",
    "MultiAppInvoker",
    "QueryHandlers",
    "QueryResponse",
    "extract_records",
    "get_appcenter_rest_client",
]
