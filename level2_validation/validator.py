"""Row validation and coercion.

This module checks every row and column of an ingested file, coerces
values into canonical types, and produces a ValidationResult.

Rules:
- Required columns that are missing or empty are errors
- Values in numeric-bearing columns that do not parse are errors
- Improbable values (negative quantities, unreadable dates, stray text in a
  mostly numeric column) are warnings
- A row is kept iff it has no errors; rows without any data are skipped
  with a warning

Per-cell problems are accumulated, never raised.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from level2_validation.coercion import (
    CellValue,
    CoercionError,
    ColumnKind,
    coerce_date,
    coerce_numeric,
    column_kind_for_name,
    is_empty,
)
from level2_validation.profiler import ColumnProfile, classify, collect_columns, detect_data_type
from settings.schema import DeclaredSchema, PipelineSettings

logger = logging.getLogger(__name__)

GENERAL_COLUMN = "general"


class SchemaError(Exception):
    """Raised when a declared schema cannot be applied to the data."""

    pass


class Severity:
    """Issue severity constants."""

    ERROR = "error"
    WARNING = "warning"


class SummaryType:
    """Summary type constants."""

    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ColumnRule:
    """How values of a column are checked and coerced."""

    NUMERIC = "numeric"  # name- or schema-declared: failures are errors
    SOFT_NUMERIC = "soft_numeric"  # numeric by majority only: failures are warnings
    DATE = "date"
    TEXT = "text"


@dataclass
class ValidationIssue:
    """A single per-cell or per-row validation finding.

    row_index is 1-based; row 0 with column "general" is a file-level issue.
    """

    row_index: int
    column: str
    message: str
    severity: str


@dataclass
class ValidationSummary:
    """Short human-readable outcome of a validation run."""

    type: str
    message: str


@dataclass
class ValidationResult:
    """Complete result of validating a set of rows."""

    valid_rows: list[dict[str, CellValue]]
    is_valid: bool
    total_rows: int
    valid_row_count: int
    errors: list[ValidationIssue]
    missing_columns: list[str]
    summary: ValidationSummary
    detected_columns: list[str] = field(default_factory=list)
    inferred_type: str = "unknown"
    column_profiles: list[ColumnProfile] = field(default_factory=list)
    source_file_name: Optional[str] = None
    source_size_bytes: int = 0

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.errors if issue.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for issue in self.errors if issue.severity == Severity.WARNING)

    def top_issues(self, limit: int = 10) -> list[ValidationIssue]:
        """Return the first issues, for display."""
        return self.errors[:limit]


def resolve_column_rules(
    columns: list[str], profiles: list[ColumnProfile], schema: DeclaredSchema
) -> dict[str, str]:
    """Decide how each column is checked.

    Declared types win over name dispatch, which wins over the profile.

    Raises:
        SchemaError: If the declared schema contradicts itself
    """
    conflicting = sorted(set(schema.numeric_columns) & set(schema.date_columns))
    if conflicting:
        raise SchemaError(f"Columns declared both numeric and date: {conflicting}")

    profile_kinds = {profile.name: profile.kind for profile in profiles}
    rules = {}
    for column in columns:
        if column in schema.numeric_columns:
            rules[column] = ColumnRule.NUMERIC
        elif column in schema.date_columns:
            rules[column] = ColumnRule.DATE
        else:
            name_kind = column_kind_for_name(column)
            if name_kind == ColumnKind.DATE:
                rules[column] = ColumnRule.DATE
            elif name_kind == ColumnKind.NUMERIC:
                rules[column] = ColumnRule.NUMERIC
            elif profile_kinds.get(column) == ColumnKind.NUMERIC:
                rules[column] = ColumnRule.SOFT_NUMERIC
            elif profile_kinds.get(column) == ColumnKind.DATE:
                rules[column] = ColumnRule.DATE
            else:
                rules[column] = ColumnRule.TEXT
    return rules


def _clean_text(value: CellValue) -> CellValue:
    return value.strip() if isinstance(value, str) else value


def _is_non_negative_column(column: str, keywords: list[str]) -> bool:
    lower_name = column.lower()
    return any(keyword in lower_name for keyword in keywords)


def _build_summary(error_count: int, warning_count: int, valid_row_count: int, total_rows: int) -> ValidationSummary:
    is_valid = error_count == 0

    if not is_valid and valid_row_count == 0:
        return ValidationSummary(
            type=SummaryType.ERROR,
            message=f"{error_count} critical errors found. {valid_row_count}/{total_rows} rows can be loaded.",
        )
    if not is_valid:
        return ValidationSummary(
            type=SummaryType.WARNING,
            message=f"{error_count} critical errors found. {valid_row_count}/{total_rows} rows can be loaded.",
        )
    if warning_count > 0 or valid_row_count < total_rows:
        return ValidationSummary(
            type=SummaryType.WARNING,
            message=f"{warning_count} warnings found. {valid_row_count}/{total_rows} rows loaded successfully.",
        )
    return ValidationSummary(
        type=SummaryType.SUCCESS,
        message=f"{valid_row_count} rows loaded successfully",
    )


class RowValidator:
    """Validates and coerces rows against resolved column rules."""

    def __init__(self, rules: dict[str, str], schema: DeclaredSchema, settings: PipelineSettings):
        self.rules = rules
        self.columns = list(rules)
        self.schema = schema
        self.non_negative_keywords = settings.validation.non_negative_keywords
        self.issues: list[ValidationIssue] = []

    def _issue(self, row_index: int, column: str, message: str, severity: str) -> None:
        self.issues.append(ValidationIssue(row_index, column, message, severity))

    def _coerce_cell(self, row_index: int, column: str, value: CellValue) -> tuple[CellValue, bool]:
        """Coerce one non-empty cell. Returns (value, had_error)."""
        rule = self.rules[column]

        if rule in (ColumnRule.NUMERIC, ColumnRule.SOFT_NUMERIC):
            try:
                number = coerce_numeric(value)
            except CoercionError:
                if rule == ColumnRule.NUMERIC:
                    self._issue(row_index, column, f"Expected a number, got {value!r}", Severity.ERROR)
                    return _clean_text(value), True
                self._issue(
                    row_index, column, f"Non-numeric value {value!r} in a numeric column", Severity.WARNING
                )
                return _clean_text(value), False

            if number < 0 and _is_non_negative_column(column, self.non_negative_keywords):
                self._issue(row_index, column, f"Negative value {number} is improbable", Severity.WARNING)
            return number, False

        if rule == ColumnRule.DATE:
            try:
                return coerce_date(value), False
            except CoercionError:
                self._issue(row_index, column, f"Unrecognized date {value!r}", Severity.WARNING)
                return _clean_text(value), False

        return _clean_text(value), False

    def validate_row(self, row_index: int, row: dict[str, CellValue]) -> Optional[dict[str, CellValue]]:
        """Validate one row.

        Returns:
            The coerced row, or None when the row is rejected or blank
        """
        if all(is_empty(row.get(column)) for column in self.columns):
            self._issue(row_index, GENERAL_COLUMN, "Row contains no valid data", Severity.WARNING)
            return None

        has_error = False
        for column in self.schema.required_columns:
            if is_empty(row.get(column)):
                self._issue(row_index, column, f"Required column '{column}' is missing or empty", Severity.ERROR)
                has_error = True

        cleaned: dict[str, CellValue] = {}
        for column in self.columns:
            value = row.get(column)
            if is_empty(value):
                cleaned[column] = None
                continue
            cleaned[column], cell_error = self._coerce_cell(row_index, column, value)
            has_error = has_error or cell_error

        return None if has_error else cleaned


def validate(
    rows: list[dict[str, CellValue]],
    declared_schema: Optional[DeclaredSchema] = None,
    settings: Optional[PipelineSettings] = None,
) -> ValidationResult:
    """Validate and coerce a set of rows.

    This is the main entry point for validation.

    Args:
        rows: Raw rows from the file loader
        declared_schema: Optional expectations (required/numeric/date columns)
        settings: Pipeline settings (defaults when None)

    Returns:
        ValidationResult with coerced valid rows and every issue found

    Raises:
        SchemaError: If the declared schema cannot be applied
    """
    settings = settings or PipelineSettings()
    schema = declared_schema or DeclaredSchema()

    if not rows:
        logger.warning("Validation received no rows")
        issues = [ValidationIssue(0, GENERAL_COLUMN, "No data found", Severity.ERROR)]
        return ValidationResult(
            valid_rows=[],
            is_valid=False,
            total_rows=0,
            valid_row_count=0,
            errors=issues,
            missing_columns=list(schema.required_columns),
            summary=_build_summary(1, 0, 0, 0),
        )

    columns = collect_columns(rows)
    profiles = classify(rows, settings.profiling)
    rules = resolve_column_rules(columns, profiles, schema)
    missing_columns = [column for column in schema.required_columns if column not in columns]
    if missing_columns:
        logger.warning(f"Required columns missing from data: {missing_columns}")

    logger.info(f"Validating {len(rows)} rows across {len(columns)} columns")

    row_validator = RowValidator(rules, schema, settings)
    valid_rows = []
    for row_index, row in enumerate(rows, start=1):
        cleaned = row_validator.validate_row(row_index, row)
        if cleaned is not None:
            valid_rows.append(cleaned)

    issues = row_validator.issues
    error_count = sum(1 for issue in issues if issue.severity == Severity.ERROR)
    warning_count = len(issues) - error_count
    summary = _build_summary(error_count, warning_count, len(valid_rows), len(rows))

    logger.info(
        f"Validation complete: {len(valid_rows)}/{len(rows)} rows valid, "
        f"{error_count} errors, {warning_count} warnings"
    )

    return ValidationResult(
        valid_rows=valid_rows,
        is_valid=error_count == 0,
        total_rows=len(rows),
        valid_row_count=len(valid_rows),
        errors=issues,
        missing_columns=missing_columns,
        summary=summary,
        detected_columns=columns,
        inferred_type=detect_data_type(columns),
        column_profiles=profiles,
    )
