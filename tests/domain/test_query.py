"""
Tests for query domain models
"""

from datetime import UTC, datetime

import pytest

from appcenter_datasource.domain.query import (
    DEFAULT_LIMIT,
    QueryRequest,
    QueryType,
    TemplateVariables,
    TimeRange,
)


class TestQueryType:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Orgs", QueryType.ORGS),
            ("Errors count", QueryType.ERRORS_COUNT),
            ({"value": "Events", "label": "Events"}, QueryType.EVENTS),
            (QueryType.APPS, QueryType.APPS),
            ("Crashes per day", QueryType.CRASHES_PER_DAY),
        ],
    )
    def test_parse_known(self, value, expected):
        assert QueryType.parse(value) is expected

    @pytest.mark.parametrize("value", [None, "", "errors", {"label": "Orgs"}, "Unknown"])
    def test_parse_unknown_or_unset(self, value):
        assert QueryType.parse(value) is None


class TestTimeRange:
    def test_parse(self):
        time_range = TimeRange.parse("2026-02-10T00:00:00Z", "2026-02-11T00:00:00Z")
        assert time_range.start == datetime(2026, 2, 10, tzinfo=UTC)

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError, match="before start"):
            TimeRange(datetime(2026, 2, 11, tzinfo=UTC), datetime(2026, 2, 10, tzinfo=UTC))

    def test_missing_bound_rejected(self):
        with pytest.raises(ValueError, match="requires both"):
            TimeRange.parse("2026-02-10T00:00:00Z", None)


class TestTemplateVariables:
    def test_resolve_plain_and_scoped_values(self):
        variables = TemplateVariables({"a": "1", "errorGroupId": {"text": "Group", "value": "g-1"}})

        assert variables.resolve("a") == "1"
        assert variables.resolve("errorGroupId") == "g-1"

    def test_unresolved_is_undefined_literal(self):
        assert TemplateVariables().resolve("errorGroupId") == "undefined"

    def test_multi_value(self):
        assert TemplateVariables({"v": {"value": ["a", "b"]}}).get("v") == "a,b"

    def test_contains(self):
        assert "a" in TemplateVariables({"a": "1"})
        assert "b" not in TemplateVariables({"a": "1"})


class TestQueryRequest:
    @pytest.fixture
    def time_range(self):
        return TimeRange(datetime(2026, 2, 10, tzinfo=UTC), datetime(2026, 2, 11, tzinfo=UTC))

    def test_from_target_defaults(self, time_range):
        request = QueryRequest.from_target({"refId": "B", "type": "Events"}, time_range)

        assert request.ref_id == "B"
        assert request.type is QueryType.EVENTS
        assert request.limit == DEFAULT_LIMIT == 30
        assert request.timezone == "local"

    def test_from_target_selection_type_and_limit(self, time_range):
        request = QueryRequest.from_target(
            {"refId": "A", "type": {"value": "Error groups"}, "limit": "10"}, time_range, timezone="utc"
        )

        assert request.type is QueryType.ERROR_GROUPS
        assert request.limit == 10
        assert request.timezone == "utc"

    def test_from_target_unknown_type(self, time_range):
        assert QueryRequest.from_target({"refId": "A"}, time_range).type is None

    def test_non_positive_limit_rejected(self, time_range):
        with pytest.raises(ValueError, match="positive integer"):
            QueryRequest(ref_id="A", type=QueryType.EVENTS, time_range=time_range, limit=0)

    @pytest.mark.parametrize("limit", ["ten", [5], "inf"])
    def test_non_numeric_limit_rejected(self, time_range, limit):
        with pytest.raises(ValueError, match="positive integer"):
            QueryRequest.from_target({"refId": "A", "type": "Events", "limit": limit}, time_range)

    def test_is_immutable(self, time_range):
        request = QueryRequest(ref_id="A", type=QueryType.EVENTS, time_range=time_range)
        with pytest.raises(AttributeError):
            request.limit = 5  # type: ignore[misc]
