"""
Request models for the query endpoint

The dashboard query payload:

    {
        "range": {"from": "2026-02-01T00:00:00Z", "to": "2026-02-07T23:59:59Z"},
        "timezone": "Europe/Lisbon",
        "targets": [{"refId": "A", "type": "Errors count", "limit": 30}],
        "scopedVars": {"errorGroupId": {"text": "...", "value": "..."}}
    }

A malformed payload (no range, bounds that cannot be parsed, targets that
are not objects) is rejected as a whole. Target fields such as ``type``
and ``limit`` are validated per target when the query requests are built.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from appcenter_datasource.domain.query import TimeRange


class QueryRange(BaseModel):
    """Time range bounds as ISO-8601 strings or epoch milliseconds."""

    start: str | int | float = Field(..., alias="from")
    end: str | int | float = Field(..., alias="to")

    @model_validator(mode="after")
    def check_bounds(self) -> "QueryRange":
        self.to_time_range()
        return self

    def to_time_range(self) -> TimeRange:
        return TimeRange.parse(self.start, self.end)


class QueryTarget(BaseModel):
    # Editor fields not listed here are kept and passed through
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    ref_id: str = Field("A", alias="refId")
    type: str | dict[str, Any] | None = None
    limit: Any = None
    hide: bool = False


class QueryPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    range: QueryRange
    timezone: str | None = None
    targets: list[QueryTarget] = Field(default_factory=list)
    scoped_vars: dict[str, Any] = Field(default_factory=dict, alias="scopedVars")
