"""
Multi-key record sorting.

Sort keys are strings of the form "<field> [asc|desc]"
(ascending when the direction is omitted), e.g. ["count desc", "appVersion desc"].
"""

from collections.abc import Iterable, Mapping, Sequence
from functools import cmp_to_key
from typing import Any


def _parse_sort_key(key: str) -> tuple[str, bool]:
    parts = key.split()
    if not parts:
        raise ValueError("Sort key must name a field")
    descending = len(parts) > 1 and parts[1].lower() == "desc"
    return parts[0], descending


def _compare_values(left: Any, right: Any) -> int:
    # Missing or mutually incomparable values compare equal
    if left is None or right is None:
        return 0
    try:
        if left < right:
            return -1
        if left > right:
            return 1
    except TypeError:
        return 0
    return 0


def sort_by(records: Iterable[Mapping[str, Any]], properties: Sequence[str]) -> list[Any]:
    """
    Sort records by several fields.

    The first field whose values differ decides the order; records equal on
    every field keep their input order (the sort is stable).

    Args:
        records: Records (mappings) to sort
        properties: Sort keys, e.g. ["count desc", "appVersion desc"]

    Returns:
        New sorted list

    Example:
        >>> sort_by([{"n": 1}, {"n": 3}, {"n": 2}], ["n desc"])
        [{'n': 3}, {'n': 2}, {'n': 1}]
    """
    keys = [_parse_sort_key(prop) for prop in properties]

    def compare(left: Mapping[str, Any], right: Mapping[str, Any]) -> int:
        for name, descending in keys:
            result = _compare_values(left.get(name), right.get(name))
            if result:
                return -result if descending else result
        return 0

    return sorted(records, key=cmp_to_key(compare))
