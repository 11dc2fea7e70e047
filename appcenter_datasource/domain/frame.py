"""
Tabular data frame returned by every query.

A frame is an ordered list of named, typed fields (columns). Every field
holds exactly one value per row; the builder enforces that on each append
and at construction, so a frame can never carry ragged columns.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

import pandas as pd

from appcenter_datasource.utils.datetime_utils import to_epoch_ms


class FieldType(str, Enum):
    """Semantic type of a frame field."""

    STRING = "string"
    NUMBER = "number"
    TIME = "time"


@dataclass(frozen=True)
class FieldSpec:
    """Declared name and type of one frame column."""

    name: str
    type: FieldType = FieldType.STRING


@dataclass
class Field:
    """One frame column with its values."""

    name: str
    type: FieldType
    values: list[Any] = field(default_factory=list)


class DataFrame:
    """
    Column-oriented result table.

    Example:
        frame = DataFrame("A", [FieldSpec("Id"), FieldSpec("Count", FieldType.NUMBER)])
        frame.append_row(["group-1", 12])
        frame.append_row(["group-2", 3])
        len(frame)  # 2
    """

    def __init__(self, ref_id: str, fields: Sequence[FieldSpec], meta: dict[str, Any] | None = None):
        names = [field.name for field in fields]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate field names: {names}")

        self.ref_id = ref_id
        self.fields: list[Field] = [Field(name=field.name, type=field.type) for field in fields]
        self.meta: dict[str, Any] = dict(meta or {})
        self._length = 0

    @classmethod
    def from_columns(cls, ref_id: str, columns: Sequence[Field], meta: dict[str, Any] | None = None) -> "DataFrame":
        """
        Build a frame from complete columns.

        Raises:
            ValueError: If the columns do not all have the same length
        """
        lengths = {len(column.values) for column in columns}
        if len(lengths) > 1:
            raise ValueError(
                "All fields must have the same length: "
                + ", ".join(f"{column.name}={len(column.values)}" for column in columns)
            )

        frame = cls(ref_id, [FieldSpec(column.name, column.type) for column in columns], meta)
        for target, column in zip(frame.fields, columns, strict=True):
            target.values = list(column.values)
        frame._length = lengths.pop() if lengths else 0
        return frame

    def append_row(self, values: Sequence[Any]) -> None:
        """
        Append one row, one value per field in declared field order.

        Raises:
            ValueError: If the number of values differs from the number of fields
        """
        if len(values) != len(self.fields):
            raise ValueError(f"Row has {len(values)} values, frame has {len(self.fields)} fields")

        for target, value in zip(self.fields, values, strict=True):
            target.values.append(value)
        self._length += 1

    def __len__(self) -> int:
        return self._length

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def column(self, name: str) -> list[Any]:
        """Copy of the values of the named field."""
        for f in self.fields:
            if f.name == name:
                return list(f.values)
        raise KeyError(name)

    def rows(self) -> Iterator[tuple[Any, ...]]:
        return zip(*(f.values for f in self.fields), strict=True) if self.fields else iter(())

    def add_notice(self, text: str, severity: str = "warning") -> None:
        self.meta.setdefault("notices", []).append({"severity": severity, "text": text})

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize the frame (time values as epoch milliseconds).

        Returns:
            {"refId": ..., "fields": [{"name", "type", "values"}], "meta": {...}, "length": n}
        """
        return {
            "refId": self.ref_id,
            "fields": [
                {
                    "name": f.name,
                    "type": f.type.value,
                    "values": [_serialize_value(f.type, value) for value in f.values],
                }
                for f in self.fields
            ],
            "meta": self.meta,
            "length": self._length,
        }

    def to_pandas(self) -> pd.DataFrame:
        """Convert to a pandas DataFrame; time fields become UTC datetimes."""
        data: dict[str, Any] = {}
        for f in self.fields:
            if f.type == FieldType.TIME:
                data[f.name] = pd.to_datetime(f.values, utc=True)
            else:
                data[f.name] = f.values
        return pd.DataFrame(data, columns=self.field_names)

    def __repr__(self) -> str:
        return f"DataFrame(ref_id={self.ref_id!r}, fields={self.field_names!r}, length={self._length})"


def _serialize_value(field_type: FieldType, value: Any) -> Any:
    if field_type == FieldType.TIME and isinstance(value, datetime):
        return to_epoch_ms(value)
    return value
