#!/usr/bin/env python3
"""
App Center Query Handlers

One handler per query type. Each handler builds its request parameters,
fetches through the multi-app invoker (or a direct request for org-level
listings), sorts or aggregates, and projects the records into a DataFrame.

Aggregating handlers:
- Errors count: errors of every error group counted per app version and
  timezone-local calendar day
- Errors per day / Crashes per day: App Center's daily counts per app

Both produce a wide table: one "time" field listing every calendar day of
the requested range, plus one zero-filled number field per series.
"""

import asyncio
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import Any

from appcenter_datasource.collectors.appcenter_rest_client import AppCenterRESTClient, extract_records
from appcenter_datasource.collectors.multi_app import MultiAppInvoker
from appcenter_datasource.core import get_logger
from appcenter_datasource.domain.frame import DataFrame, Field, FieldType
from appcenter_datasource.domain.query import QueryRequest
from appcenter_datasource.domain.records import (
    AnalyticsEvent,
    App,
    DailyErrorCount,
    ErrorGroup,
    ErrorOccurrence,
    Organization,
)
from appcenter_datasource.secure_config import DataSourceConfig
from appcenter_datasource.utils.datetime_utils import day_sequence, local_day, parse_timestamp, to_iso
from appcenter_datasource.utils.error_handling import log_and_continue
from appcenter_datasource.utils.sorting import sort_by

logger = get_logger(__name__)

TIME_FIELD = "time"
UNKNOWN_VERSION = "unknown"
HANDLED_ERROR = "handledError"
UNHANDLED_ERROR = "unhandledError"

ERROR_GROUP_SORT = ["count desc", "appVersion desc"]
ERROR_SORT = ["timestamp desc"]
EVENT_SORT = ["count desc"]

DailyCounts = dict[str, dict[datetime, int]]


def range_params(query: QueryRequest, with_limit: bool = False) -> dict[str, Any]:
    """Request parameters for the query's time range (and result limit)."""
    params: dict[str, Any] = {
        "start": to_iso(query.time_range.start),
        "end": to_iso(query.time_range.end),
    }
    if with_limit:
        params["top"] = query.limit
    return params


def count_errors_by_version_and_day(errors: Iterable[dict[str, Any]], timezone_name: str) -> DailyCounts:
    """
    Count error records per app version and local calendar day.

    Args:
        errors: Error records carrying ``appVersion`` and ``timestamp``
        timezone_name: Zone whose calendar days are counted

    Returns:
        {app_version: {day: count}}, versions in order of first appearance

    Example:
        >>> counts = count_errors_by_version_and_day(
        ...     [{"appVersion": "1.0", "timestamp": "2026-02-10T10:00:00Z"}], "utc"
        ... )
        >>> list(counts["1.0"].values())
        [1]
    """
    counts: DailyCounts = {}
    for error in errors:
        try:
            occurred = parse_timestamp(error.get("timestamp"))
        except ValueError as e:
            log_and_continue(logger, e, {"errorId": error.get("errorId")}, "Error timestamp parsing")
            continue
        if occurred is None:
            continue

        version = error.get("appVersion")
        series = counts.setdefault(UNKNOWN_VERSION if version is None else str(version), {})
        day = local_day(occurred, timezone_name)
        series[day] = series.get(day, 0) + 1
    return counts


def build_daily_count_frame(ref_id: str, days: Sequence[datetime], counts: DailyCounts) -> DataFrame:
    """
    Build the wide per-day table.

    Counts on days outside ``days`` are not represented.

    Returns:
        Frame with fields [time, <series>...]; one row per day
    """
    columns = [Field(TIME_FIELD, FieldType.TIME, list(days))]
    for name, series in counts.items():
        columns.append(Field(name, FieldType.NUMBER, [series.get(day, 0) for day in days]))
    return DataFrame.from_columns(ref_id, columns, meta={"preferredVisualisationType": "graph"})


def _frame_from_records(
    ref_id: str, fields, build: Callable[[dict[str, Any]], Any], records: Iterable[dict[str, Any]]
) -> DataFrame:
    """Project records into a frame; records whose values cannot be parsed are logged and skipped."""
    frame = DataFrame(ref_id, fields)
    for record in records:
        try:
            model = build(record)
        except ValueError as e:
            log_and_continue(logger, e, {"record": record}, "Record parsing")
            continue
        frame.append_row(model.to_row())
    return frame


class QueryHandlers:
    """Query handlers bound to one data source configuration."""

    def __init__(self, config: DataSourceConfig, rest_client: AppCenterRESTClient):
        self.config = config
        self.rest_client = rest_client
        self.invoker = MultiAppInvoker(config, rest_client)

    async def list_orgs(self, query: QueryRequest) -> DataFrame:
        """Organizations the API key can see."""
        body = await self.rest_client.request(self.rest_client.build_url(AppCenterRESTClient.ORGS), {})
        records = extract_records(body, "orgs")
        return _frame_from_records(query.ref_id, Organization.FIELDS, Organization.from_record, records)

    async def list_apps(self, query: QueryRequest) -> DataFrame:
        """Apps of the configured organization."""
        org_name = self.config.require_org()
        url = self.rest_client.build_url(AppCenterRESTClient.APPS, owner_name=org_name)
        body = await self.rest_client.request(url, {})
        records = extract_records(body, "apps")
        return _frame_from_records(query.ref_id, App.FIELDS, App.from_record, records)

    async def list_error_groups(self, query: QueryRequest) -> DataFrame:
        """Error groups of every app, most frequent first."""
        records = await self.invoker.invoke_for_all_apps(
            AppCenterRESTClient.ERROR_GROUPS, range_params(query, with_limit=True), "errorGroups"
        )
        ordered = sort_by(records, ERROR_GROUP_SORT)
        return _frame_from_records(query.ref_id, ErrorGroup.FIELDS, ErrorGroup.from_record, ordered)

    async def list_errors(self, query: QueryRequest) -> DataFrame:
        """Errors of the error group selected by the ``errorGroupId`` variable, newest first."""
        error_group_id = query.variables.resolve("errorGroupId")
        url_template = self.rest_client.build_url(AppCenterRESTClient.ERRORS, error_group_id=error_group_id)

        records = await self.invoker.invoke_for_all_apps(url_template, range_params(query), "errors")
        ordered = sort_by(records, ERROR_SORT)
        return _frame_from_records(
            query.ref_id,
            ErrorOccurrence.FIELDS,
            lambda record: ErrorOccurrence.from_record(record, error_group_id),
            ordered,
        )

    async def list_events(self, query: QueryRequest) -> DataFrame:
        """Custom analytics events of every app, most frequent first."""
        records = await self.invoker.invoke_for_all_apps(
            AppCenterRESTClient.EVENTS, range_params(query, with_limit=True), "events"
        )
        ordered = sort_by(records, EVENT_SORT)
        return _frame_from_records(query.ref_id, AnalyticsEvent.FIELDS, AnalyticsEvent.from_record, ordered)

    async def _fetch_group_errors(self, group: dict[str, Any], params: dict[str, Any]) -> list[dict[str, Any]]:
        url = self.rest_client.build_url(
            AppCenterRESTClient.ERRORS,
            owner_name=self.config.org_name,
            app_name=group.get("appName", ""),
            error_group_id=group.get("errorGroupId", ""),
        )
        body = await self.rest_client.request(url, params)

        errors = extract_records(body, "errors")
        for error in errors:
            error["appVersion"] = group.get("appVersion")
            error["appName"] = group.get("appName")
        return errors

    async def list_errors_count(self, query: QueryRequest) -> DataFrame:
        """
        Daily error counts per app version.

        Two stages: the error groups of every app are listed first, then the
        errors of each group are fetched (concurrently) and bucketed by the
        group's app version and the error's local calendar day.
        """
        params = range_params(query)
        days = day_sequence(query.time_range.start, query.time_range.end, query.timezone)

        groups = await self.invoker.invoke_for_all_apps(AppCenterRESTClient.ERROR_GROUPS, params, "errorGroups")
        per_group = await asyncio.gather(*(self._fetch_group_errors(group, params) for group in groups))
        errors = [error for group_errors in per_group for error in group_errors]

        logger.info(
            f"Counting {len(errors)} errors from {len(groups)} error groups over {len(days)} days",
            extra={"ref_id": query.ref_id},
        )
        counts = count_errors_by_version_and_day(errors, query.timezone)
        return build_daily_count_frame(query.ref_id, days, counts)

    async def list_daily_error_counts(self, query: QueryRequest, error_type: str) -> DataFrame:
        """
        App Center's own daily error counts, one series per configured app.

        Args:
            query: Query request
            error_type: "handledError" (errors) or "unhandledError" (crashes)
        """
        params = {**range_params(query), "errorType": error_type}
        days = day_sequence(query.time_range.start, query.time_range.end, query.timezone)

        records = await self.invoker.invoke_for_all_apps(AppCenterRESTClient.ERROR_COUNTS_PER_DAY, params, "errors")

        counts: DailyCounts = {app_name: {} for app_name in self.config.app_names}
        for record in records:
            try:
                daily = DailyErrorCount.from_record(record)
            except ValueError as e:
                log_and_continue(logger, e, {"record": record}, "Daily error count parsing")
                continue
            if daily.day is None or daily.app_name is None:
                continue
            series = counts.setdefault(daily.app_name, {})
            day = local_day(daily.day, query.timezone)
            series[day] = series.get(day, 0) + daily.count

        return build_daily_count_frame(query.ref_id, days, counts)

    async def list_errors_per_day(self, query: QueryRequest) -> DataFrame:
        return await self.list_daily_error_counts(query, HANDLED_ERROR)

    async def list_crashes_per_day(self, query: QueryRequest) -> DataFrame:
        return await self.list_daily_error_counts(query, UNHANDLED_ERROR)
