"""
App Center record models

Typed views over the JSON objects App Center returns. Each model reads one
merged record (already tagged with ``appName``) and projects it into a frame
row matching its ``FIELDS`` declaration.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar

from appcenter_datasource.domain.frame import FieldSpec, FieldType
from appcenter_datasource.utils.datetime_utils import parse_timestamp

RemoteRecord = dict[str, Any]


@dataclass
class Organization:
    """An App Center organization (``/orgs``)."""

    FIELDS: ClassVar[list[FieldSpec]] = [FieldSpec("Id"), FieldSpec("Name")]

    id: str | None
    name: str | None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Organization":
        return cls(id=record.get("id"), name=record.get("name"))

    def to_row(self) -> list[Any]:
        return [self.id, self.name]


@dataclass
class App(Organization):
    """An App Center app of the configured organization (``/orgs/{org}/apps``)."""

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "App":
        return cls(id=record.get("id"), name=record.get("name"))


@dataclass
class ErrorGroup:
    """
    An error group (``errors/errorGroups``).

    Handled errors report ``exceptionMessage``; native crashes may only carry
    ``codeRaw``. ``message`` holds whichever is present.
    """

    FIELDS: ClassVar[list[FieldSpec]] = [
        FieldSpec("Id"),
        FieldSpec("App"),
        FieldSpec("Version"),
        FieldSpec("Build"),
        FieldSpec("Message"),
        FieldSpec("Device Count", FieldType.NUMBER),
        FieldSpec("Count", FieldType.NUMBER),
        FieldSpec("State"),
        FieldSpec("First Occurrence", FieldType.TIME),
        FieldSpec("Last Occurrence", FieldType.TIME),
    ]

    error_group_id: str | None
    app_name: str | None
    app_version: str | None
    app_build: str | None
    exception_message: str | None
    code_raw: str | None
    device_count: int | None
    count: int | None
    state: str | None
    first_occurrence: datetime | None
    last_occurrence: datetime | None

    @property
    def message(self) -> str | None:
        return self.exception_message if self.exception_message is not None else self.code_raw

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ErrorGroup":
        return cls(
            error_group_id=record.get("errorGroupId"),
            app_name=record.get("appName"),
            app_version=record.get("appVersion"),
            app_build=record.get("appBuild"),
            exception_message=record.get("exceptionMessage"),
            code_raw=record.get("codeRaw"),
            device_count=record.get("deviceCount"),
            count=record.get("count"),
            state=record.get("state"),
            first_occurrence=parse_timestamp(record.get("firstOccurrence")),
            last_occurrence=parse_timestamp(record.get("lastOccurrence")),
        )

    def to_row(self) -> list[Any]:
        return [
            self.error_group_id,
            self.app_name,
            self.app_version,
            self.app_build,
            self.message,
            self.device_count,
            self.count,
            self.state,
            self.first_occurrence,
            self.last_occurrence,
        ]


@dataclass
class ErrorOccurrence:
    """A single error instance of an error group (``errorGroups/{id}/errors``)."""

    FIELDS: ClassVar[list[FieldSpec]] = [
        FieldSpec("Error Id"),
        FieldSpec("App"),
        FieldSpec("Device"),
        FieldSpec("OS"),
        FieldSpec("OS Version"),
        FieldSpec("User"),
        FieldSpec("Date", FieldType.TIME),
    ]

    error_id: str | None
    app_name: str | None
    device_name: str | None
    os_type: str | None
    os_version: str | None
    user_id: str | None
    timestamp: datetime | None

    @classmethod
    def from_record(cls, record: Mapping[str, Any], error_group_id: str | None = None) -> "ErrorOccurrence":
        """Build an occurrence; falls back to the group id when the record has no ``errorId``."""
        return cls(
            error_id=record.get("errorId") or error_group_id,
            app_name=record.get("appName"),
            device_name=record.get("deviceName"),
            os_type=record.get("osType"),
            os_version=record.get("osVersion"),
            user_id=record.get("userId"),
            timestamp=parse_timestamp(record.get("timestamp")),
        )

    def to_row(self) -> list[Any]:
        return [
            self.error_id,
            self.app_name,
            self.device_name,
            self.os_type,
            self.os_version,
            self.user_id,
            self.timestamp,
        ]


@dataclass
class AnalyticsEvent:
    """A custom analytics event summary (``analytics/events``)."""

    FIELDS: ClassVar[list[FieldSpec]] = [
        FieldSpec("Id"),
        FieldSpec("Name"),
        FieldSpec("Device Count", FieldType.NUMBER),
        FieldSpec("Previous Device Count", FieldType.NUMBER),
        FieldSpec("Count", FieldType.NUMBER),
        FieldSpec("Previous Count", FieldType.NUMBER),
        FieldSpec("Count Per Device", FieldType.NUMBER),
    ]

    id: str | None
    name: str | None
    device_count: int | None
    previous_device_count: int | None
    count: int | None
    previous_count: int | None
    count_per_device: float | None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "AnalyticsEvent":
        return cls(
            id=record.get("id"),
            name=record.get("name"),
            device_count=record.get("device_count"),
            previous_device_count=record.get("previous_device_count"),
            count=record.get("count"),
            previous_count=record.get("previous_count"),
            count_per_device=record.get("count_per_device"),
        )

    def to_row(self) -> list[Any]:
        return [
            self.id,
            self.name,
            self.device_count,
            self.previous_device_count,
            self.count,
            self.previous_count,
            self.count_per_device,
        ]


@dataclass
class DailyErrorCount:
    """One day of ``errors/errorCountsPerDay`` for one app."""

    app_name: str | None
    day: datetime | None
    count: int

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "DailyErrorCount":
        return cls(
            app_name=record.get("appName"),
            day=parse_timestamp(record.get("datetime")),
            count=int(record.get("count") or 0),
        )
