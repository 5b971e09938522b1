"""Tests for row validation and summaries."""

import pytest

from level1_ingestion.loader import parse_file
from level2_validation.coercion import ColumnKind
from level2_validation.profiler import ColumnProfile
from level2_validation.validator import (
    ColumnRule,
    SchemaError,
    Severity,
    SummaryType,
    resolve_column_rules,
    validate,
)
from settings.schema import DeclaredSchema, PipelineSettings


class TestValidate:
    def test_clean_rows_succeed(self):
        result = validate([{"Name": "x", "Price": "1.5"}, {"Name": "y", "Price": "2"}])
        assert result.is_valid
        assert result.summary.type == SummaryType.SUCCESS
        assert result.summary.message == "2 rows loaded successfully"
        assert result.valid_rows == [{"Name": "x", "Price": 1.5}, {"Name": "y", "Price": 2.0}]
        assert result.detected_columns == ["Name", "Price"]

    def test_numeric_error_rejects_row(self):
        rows = [
            {"Product": "A", "Quantity": "10", "Date": "01/02/2024"},
            {"Product": "B", "Quantity": "abc", "Date": "x"},
        ]
        result = validate(rows)

        assert not result.is_valid
        assert result.total_rows == 2
        assert result.valid_row_count == 1
        assert result.valid_rows == [{"Product": "A", "Quantity": 10.0, "Date": "2024-02-01"}]
        assert result.error_count == 1
        assert result.warning_count == 1
        assert result.summary.type == SummaryType.WARNING
        assert result.summary.message == "1 critical errors found. 1/2 rows can be loaded."

        error = next(issue for issue in result.errors if issue.severity == Severity.ERROR)
        assert (error.row_index, error.column) == (2, "Quantity")

    def test_all_rows_rejected_is_error_summary(self):
        result = validate([{"Quantity": "abc"}, {"Quantity": "def"}])
        assert result.valid_row_count == 0
        assert result.summary.type == SummaryType.ERROR
        assert result.summary.message == "2 critical errors found. 0/2 rows can be loaded."

    def test_unreadable_date_is_warning_and_keeps_value(self):
        result = validate([{"Order Date": " someday "}])
        assert result.is_valid
        assert result.valid_rows == [{"Order Date": "someday"}]
        assert result.summary.type == SummaryType.WARNING

    def test_delimited_date_serial_is_converted(self):
        result = validate(parse_file(b"Order Date,Quantity\n45292,1\n", "orders.csv"))
        assert result.summary.type == SummaryType.SUCCESS
        assert result.valid_rows == [{"Order Date": "2024-01-02", "Quantity": 1.0}]

    def test_negative_quantity_is_warning(self):
        result = validate([{"Quantity": "-5"}])
        assert result.is_valid
        assert result.valid_rows == [{"Quantity": -5.0}]
        assert [issue.severity for issue in result.errors] == [Severity.WARNING]

    def test_blank_row_skipped_with_warning(self):
        result = validate([{"a": "1", "b": "x"}, {"a": "", "b": "  "}])
        assert result.is_valid
        assert result.valid_row_count == 1
        assert result.errors[0].row_index == 2
        assert result.summary.message == "1 warnings found. 1/2 rows loaded successfully."

    def test_empty_cells_become_none(self):
        result = validate([{"Name": "x", "Price": ""}, {"Name": "y", "Price": "3"}])
        assert result.valid_rows[0] == {"Name": "x", "Price": None}

    def test_no_rows(self):
        result = validate([])
        assert not result.is_valid
        assert result.total_rows == 0
        assert len(result.errors) == 1
        assert result.errors[0].message == "No data found"
        assert result.errors[0].row_index == 0
        assert result.errors[0].column == "general"
        assert result.summary.type == SummaryType.ERROR

    def test_valid_row_count_never_exceeds_total(self):
        rows = [{"Price": "1"}, {"Price": "x"}, {"Price": ""}, {"Price": "-2"}]
        result = validate(rows)
        assert result.valid_row_count <= result.total_rows
        assert result.is_valid == (result.error_count == 0)


class TestDeclaredSchema:
    def test_missing_required_column(self):
        result = validate([{"Product": "A"}], DeclaredSchema(required_columns=["Customer"]))
        assert result.missing_columns == ["Customer"]
        assert result.valid_row_count == 0
        assert result.summary.type == SummaryType.ERROR

    def test_required_column_empty_in_one_row(self):
        rows = [
            {"Customer": "Ann", "Qty": "1"},
            {"Customer": " ", "Qty": "2"},
            {"Customer": "Bob", "Qty": "3"},
        ]
        result = validate(rows, DeclaredSchema(required_columns=["Customer"]))
        assert result.valid_row_count == 2
        assert result.error_count == 1

    def test_declared_numeric_overrides_profile(self):
        result = validate([{"Score": "n/a"}], DeclaredSchema(numeric_columns=["Score"]))
        assert result.error_count == 1

    def test_declared_date(self):
        result = validate([{"When": "2/3/2024"}], DeclaredSchema(date_columns=["When"]))
        assert result.valid_rows == [{"When": "2024-03-02"}]

    def test_contradictory_schema_raises(self):
        with pytest.raises(SchemaError):
            validate([{"x": "1"}], DeclaredSchema(numeric_columns=["x"], date_columns=["x"]))


def test_soft_numeric_failure_is_warning():
    rows = [{"Score": "1"}, {"Score": "2"}, {"Score": "3"}, {"Score": "n/a"}]
    result = validate(rows)
    assert result.is_valid
    assert result.valid_row_count == 4
    assert result.valid_rows[3] == {"Score": "n/a"}
    assert result.warning_count == 1


def test_resolve_column_rules_precedence():
    profiles = [ColumnProfile("Score", ColumnKind.NUMERIC), ColumnProfile("Note", ColumnKind.DATE)]
    rules = resolve_column_rules(
        ["Score", "Note", "Price", "Created Date", "Label"],
        profiles,
        DeclaredSchema(date_columns=["Price"]),
    )
    assert rules == {
        "Score": ColumnRule.SOFT_NUMERIC,
        "Note": ColumnRule.DATE,
        "Price": ColumnRule.DATE,
        "Created Date": ColumnRule.DATE,
        "Label": ColumnRule.TEXT,
    }


def test_non_negative_keywords_from_settings():
    settings = PipelineSettings(validation={"non_negative_keywords": ["balance"]})
    result = validate([{"Balance": "-1", "Quantity": "-1"}], settings=settings)
    flagged = [issue.column for issue in result.errors]
    assert flagged == ["Balance"]
