"""
Query domain models

Represents one query target as issued by a dashboard:
    - QueryType: Supported query kinds
    - TimeRange: Inclusive start/end instants
    - TemplateVariables: Dashboard variable lookup
    - QueryRequest: Type, limit, range and timezone of one target
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from appcenter_datasource.utils.datetime_utils import LOCAL_TIMEZONE, parse_timestamp

DEFAULT_LIMIT = 30
QUERY_TYPE_REQUIRED = "A 'Query type' must be selected."
UNRESOLVED_VARIABLE = "undefined"


class QueryTypeError(ValueError):
    """Raised when a query has no type or an unknown type."""

    pass


class QueryType(str, Enum):
    """Query kinds, valued by the labels shown in the query editor."""

    ORGS = "Orgs"
    APPS = "Apps"
    ERROR_GROUPS = "Error groups"
    ERRORS = "Errors"
    ERRORS_COUNT = "Errors count"
    EVENTS = "Events"
    ERRORS_PER_DAY = "Errors per day"
    CRASHES_PER_DAY = "Crashes per day"

    @classmethod
    def parse(cls, value: Any) -> "QueryType | None":
        """
        Parse a query type from a plain string or a {"value": ..., "label": ...} selection.

        Returns:
            The matching QueryType, or None when unset or unknown
        """
        if isinstance(value, Mapping):
            value = value.get("value")
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class TimeRange:
    """Inclusive time range of a query."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Time range end {self.end.isoformat()} is before start {self.start.isoformat()}")

    @classmethod
    def parse(cls, start: Any, end: Any) -> "TimeRange":
        parsed_start = parse_timestamp(start)
        parsed_end = parse_timestamp(end)
        if parsed_start is None or parsed_end is None:
            raise ValueError("Time range requires both 'from' and 'to'")
        return cls(parsed_start, parsed_end)


class TemplateVariables:
    """
    Dashboard template variables.

    Values may be plain strings or {"text": ..., "value": ...} entries as
    dashboards send them.

    Example:
        variables = TemplateVariables({"errorGroupId": {"text": "abc", "value": "abc"}})
        variables.resolve("errorGroupId")  # "abc"
        variables.resolve("missing")       # "undefined"
    """

    def __init__(self, values: Mapping[str, Any] | None = None):
        self._values = dict(values or {})

    def get(self, name: str) -> str | None:
        value = self._values.get(name)
        if isinstance(value, Mapping):
            value = value.get("value")
        if isinstance(value, (list, tuple)):
            value = ",".join(str(item) for item in value)
        return None if value is None else str(value)

    def resolve(self, name: str) -> str:
        """Value of the named variable, or "undefined" when it cannot be resolved."""
        value = self.get(name)
        return UNRESOLVED_VARIABLE if value is None else value

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __repr__(self) -> str:
        return f"TemplateVariables({sorted(self._values)!r})"


@dataclass(frozen=True)
class QueryRequest:
    """
    One query target.

    Attributes:
        ref_id: Opaque identifier echoed on the result frame
        type: Query kind (None when unset or unknown)
        time_range: Inclusive time range
        limit: Maximum number of results where the API supports it
        timezone: IANA zone name, "utc", or "local"
        variables: Dashboard template variables
    """

    ref_id: str
    type: QueryType | None
    time_range: TimeRange
    limit: int = DEFAULT_LIMIT
    timezone: str = LOCAL_TIMEZONE
    variables: TemplateVariables = field(default_factory=TemplateVariables, compare=False)

    def __post_init__(self) -> None:
        if self.limit <= 0:
            raise ValueError(f"Query limit must be a positive integer, got {self.limit}")

    @classmethod
    def from_target(
        cls,
        target: Mapping[str, Any],
        time_range: TimeRange,
        timezone: str | None = None,
        variables: TemplateVariables | None = None,
    ) -> "QueryRequest":
        """
        Build a request from a dashboard target.

        Example:
            QueryRequest.from_target({"refId": "A", "type": {"value": "Events"}, "limit": 10}, time_range)
        """
        return cls(
            ref_id=str(target.get("refId") or "A"),
            type=QueryType.parse(target.get("type")),
            time_range=time_range,
            limit=_parse_limit(target.get("limit")),
            timezone=timezone or LOCAL_TIMEZONE,
            variables=variables or TemplateVariables(),
        )


def _parse_limit(value: Any) -> int:
    if value is None or value == "":
        return DEFAULT_LIMIT
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError) as e:
        raise ValueError(f"Query limit must be a positive integer, got {value!r}") from e
