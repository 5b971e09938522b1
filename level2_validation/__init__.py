"""Level 2: Type Coercion, Schema Profiling & Validation.

This module coerces raw cell values into canonical types, classifies
columns, and validates ingested rows into a ValidationResult.
"""

from .coercion import (
    CellValue,
    CoercionError,
    ColumnKind,
    NotDateError,
    NotNumericError,
    coerce_date,
    coerce_numeric,
    column_kind_for_name,
    is_empty,
    to_table_record,
)
from .profiler import (
    ColumnProfile,
    classify,
    detect_data_type,
    detect_table_type,
    find_primary_category_column,
    find_primary_value_column,
)
from .validator import (
    SchemaError,
    Severity,
    SummaryType,
    ValidationIssue,
    ValidationResult,
    ValidationSummary,
    validate,
)

__all__ = [
    "CellValue",
    "CoercionError",
    "ColumnKind",
    "ColumnProfile",
    "NotDateError",
    "NotNumericError",
    "SchemaError",
    "Severity",
    "SummaryType",
    "ValidationIssue",
    "ValidationResult",
    "ValidationSummary",
    "classify",
    "coerce_date",
    "coerce_numeric",
    "column_kind_for_name",
    "detect_data_type",
    "detect_table_type",
    "find_primary_category_column",
    "find_primary_value_column",
    "is_empty",
    "to_table_record",
    "validate",
]
