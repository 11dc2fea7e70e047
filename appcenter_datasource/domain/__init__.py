"""
Domain Models - Type-safe data structures for queries and results

This package contains dataclasses representing data source concepts:
    - frame: DataFrame, Field, FieldSpec, FieldType
    - query: QueryRequest, QueryType, TimeRange, TemplateVariables
    - records: Organization, App, ErrorGroup, ErrorOccurrence, AnalyticsEvent, DailyErrorCount

Usage:
    from appcenter_datasource.domain import DataFrame, FieldSpec, FieldType

    frame = DataFrame("A", [FieldSpec("Id"), FieldSpec("Count", FieldType.NUMBER)])
    frame.append_row(["group-1", 12])
"""

from .frame import DataFrame, Field, FieldSpec, FieldType
from .query import QueryRequest, QueryType, QueryTypeError, TemplateVariables, TimeRange
from .records import AnalyticsEvent, App, DailyErrorCount, ErrorGroup, ErrorOccurrence, Organization, RemoteRecord

__all__ = [
    # Frame
    "DataFrame",
    "Field",
    "FieldSpec",
    "FieldType",
    # Query
    "QueryRequest",
    "QueryType",
    "QueryTypeError",
    "TemplateVariables",
    "TimeRange",
    # Records
    "AnalyticsEvent",
    "App",
    "DailyErrorCount",
    "ErrorGroup",
    "ErrorOccurrence",
    "Organization",
    "RemoteRecord",
]
