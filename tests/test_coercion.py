"""Tests for raw value coercion."""

from datetime import date, datetime

import numpy as np
import pytest

from level2_validation.coercion import (
    ColumnKind,
    NotDateError,
    NotNumericError,
    build_verified_date,
    coerce_date,
    coerce_numeric,
    column_kind_for_name,
    is_empty,
    is_numeric_column,
    serial_to_date,
    to_table_record,
)


class TestCoerceNumeric:
    def test_thousands_separator_and_whitespace(self):
        assert coerce_numeric("1,234.5") == 1234.5
        assert coerce_numeric("  42 ") == 42.0

    def test_signs_and_exponents(self):
        assert coerce_numeric("-3") == -3.0
        assert coerce_numeric("+.5") == 0.5
        assert coerce_numeric("1e3") == 1000.0

    def test_numbers_pass_through(self):
        assert coerce_numeric(7) == 7.0
        assert coerce_numeric(np.int64(3)) == 3.0
        assert coerce_numeric(2.25) == 2.25

    @pytest.mark.parametrize("raw", ["abc", "", "12abc", "1.2.3", "inf", "nan", None, True])
    def test_rejects_non_numbers(self, raw):
        with pytest.raises(NotNumericError):
            coerce_numeric(raw)

    def test_rejects_non_finite_floats(self):
        with pytest.raises(NotNumericError):
            coerce_numeric(float("inf"))


class TestCoerceDate:
    def test_day_first_formats(self):
        assert coerce_date("29-02-2024") == "2024-02-29"
        assert coerce_date("5/3/2024") == "2024-03-05"
        assert coerce_date("01/12/2023") == "2023-12-01"

    def test_invalid_calendar_days_fail(self):
        with pytest.raises(NotDateError):
            coerce_date("31-02-2024")
        with pytest.raises(NotDateError):
            coerce_date("29/02/2023")
        with pytest.raises(NotDateError):
            coerce_date("01/13/2024")

    def test_iso_dates(self):
        assert coerce_date("2024-03-05") == "2024-03-05"
        with pytest.raises(NotDateError):
            coerce_date("2024-02-30")

    def test_spreadsheet_serial_as_text(self):
        assert coerce_date("45292") == "2024-01-02"
        assert coerce_date(" 45292.5 ") == "2024-01-02"
        with pytest.raises(NotDateError):
            coerce_date("45292 days")

    def test_spreadsheet_serial(self):
        assert coerce_date(45292) == "2024-01-02"
        assert coerce_date(45292.75) == "2024-01-02"

    def test_date_objects(self):
        assert coerce_date(datetime(2024, 1, 2, 10, 30)) == "2024-01-02"
        assert coerce_date(date(2023, 7, 1)) == "2023-07-01"

    @pytest.mark.parametrize("raw", ["yesterday", "", None, float("nan")])
    def test_rejects_non_dates(self, raw):
        with pytest.raises(NotDateError):
            coerce_date(raw)


def test_serial_to_date_epoch():
    assert serial_to_date(25569) == date(1970, 1, 2)


def test_build_verified_date_rejects_overflowing_day():
    assert build_verified_date(2024, 2, 29) == date(2024, 2, 29)
    with pytest.raises(NotDateError):
        build_verified_date(2024, 4, 31)


def test_is_empty():
    assert is_empty(None)
    assert is_empty("   ")
    assert is_empty(float("nan"))
    assert not is_empty(0)
    assert not is_empty("x")


class TestColumnKindForName:
    def test_date_keyword(self):
        assert column_kind_for_name("Order Date") == ColumnKind.DATE

    def test_numeric_keywords(self):
        assert column_kind_for_name("Unit Price") == ColumnKind.NUMERIC
        assert column_kind_for_name("Stock Left") == ColumnKind.NUMERIC

    def test_date_wins_over_numeric_keyword(self):
        assert not is_numeric_column("Sales Date")
        assert column_kind_for_name("Sales Date") == ColumnKind.DATE

    def test_unrelated_name(self):
        assert column_kind_for_name("Region") is None


class TestToTableRecord:
    def test_normalizes_dates_and_numbers_and_drops_empty(self):
        record = to_table_record(
            {"Order Date": "01/02/2024", "Price": "1,000", "Notes": "", "Region": "North", "Quantity": None}
        )
        assert record == {"Order Date": "2024-02-01", "Price": 1000.0, "Region": "North"}

    def test_unparseable_values(self):
        record = to_table_record({"Order Date": "soon", "Price": "n/a"})
        assert record == {"Order Date": "soon"}

    def test_numbers_kept_as_is(self):
        assert to_table_record({"Quantity": 4.0, "id": 9}) == {"Quantity": 4.0, "id": 9}
