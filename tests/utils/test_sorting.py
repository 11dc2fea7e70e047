"""
Tests for multi-key record sorting
"""

import pytest

from appcenter_datasource.utils.sorting import sort_by


class TestSortBy:
    def test_descending(self):
        records = [{"count": 1}, {"count": 3}, {"count": 2}]
        assert [r["count"] for r in sort_by(records, ["count desc"])] == [3, 2, 1]

    def test_ascending_is_default(self):
        records = [{"count": 3}, {"count": 1}, {"count": 2}]
        assert [r["count"] for r in sort_by(records, ["count"])] == [1, 2, 3]
        assert [r["count"] for r in sort_by(records, ["count asc"])] == [1, 2, 3]

    def test_second_key_breaks_ties(self):
        records = [
            {"id": "a", "count": 5, "appVersion": "1.0"},
            {"id": "b", "count": 9, "appVersion": "1.0"},
            {"id": "c", "count": 5, "appVersion": "2.0"},
        ]

        result = sort_by(records, ["count desc", "appVersion desc"])

        assert [r["id"] for r in result] == ["b", "c", "a"]

    def test_stable_for_equal_records(self):
        records = [{"id": i, "count": 1} for i in range(10)]
        assert [r["id"] for r in sort_by(records, ["count desc"])] == list(range(10))

    def test_missing_values_compare_equal(self):
        records = [{"id": "a"}, {"id": "b", "count": 2}, {"id": "c"}]

        result = sort_by(records, ["count desc"])

        # Nothing orders relative to the missing values, so input order holds
        assert [r["id"] for r in result] == ["a", "b", "c"]

    def test_incomparable_values_compare_equal(self):
        records = [{"id": "a", "v": "x"}, {"id": "b", "v": 1}]
        assert [r["id"] for r in sort_by(records, ["v"])] == ["a", "b"]

    def test_iso_timestamps_sort_chronologically(self):
        records = [
            {"timestamp": "2026-02-10T08:00:00Z"},
            {"timestamp": "2026-02-11T07:00:00Z"},
            {"timestamp": "2026-02-10T09:30:00Z"},
        ]

        result = sort_by(records, ["timestamp desc"])

        assert [r["timestamp"] for r in result] == [
            "2026-02-11T07:00:00Z",
            "2026-02-10T09:30:00Z",
            "2026-02-10T08:00:00Z",
        ]

    def test_returns_new_list(self):
        records = [{"count": 1}, {"count": 2}]
        result = sort_by(records, ["count desc"])

        assert result is not records
        assert records == [{"count": 1}, {"count": 2}]

    def test_empty_sort_key_raises(self):
        with pytest.raises(ValueError, match="must name a field"):
            sort_by([{"count": 1}], [""])
