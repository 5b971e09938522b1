"""Tests for column profiling and primary column selection."""

from level2_validation.coercion import ColumnKind
from level2_validation.profiler import (
    ColumnProfile,
    classify,
    collect_columns,
    detect_data_type,
    detect_table_type,
    find_primary_category_column,
    find_primary_value_column,
)
from settings.schema import ProfilingConfig


def _kinds(rows, config=None):
    return {profile.name: profile.kind for profile in classify(rows, config)}


class TestClassify:
    def test_numeric_and_categorical_columns(self):
        rows = [{"Region": region, "Units": str(i)} for i, region in enumerate("NNNSSS")]
        kinds = _kinds(rows)
        assert kinds == {"Region": ColumnKind.CATEGORICAL, "Units": ColumnKind.NUMERIC}

    def test_date_by_name_regardless_of_values(self):
        kinds = _kinds([{"Order Date": "whenever"}, {"Order Date": "later"}])
        assert kinds["Order Date"] == ColumnKind.DATE

    def test_date_by_content(self):
        kinds = _kinds([{"When": "01/02/2024"}, {"When": "02/02/2024"}, {"When": "2024-03-01"}])
        assert kinds["When"] == ColumnKind.DATE

    def test_high_cardinality_text_is_unknown(self):
        kinds = _kinds([{"Comment": "a"}, {"Comment": "b"}, {"Comment": "c"}])
        assert kinds["Comment"] == ColumnKind.UNKNOWN

    def test_empty_column_is_unknown(self):
        profiles = classify([{"Blank": ""}, {"Blank": None}])
        assert profiles[0].kind == ColumnKind.UNKNOWN
        assert profiles[0].non_empty_count == 0

    def test_numeric_threshold_from_config(self):
        rows = [{"Mixed": "1"}, {"Mixed": "2"}, {"Mixed": "x"}, {"Mixed": "y"}]
        assert _kinds(rows)["Mixed"] != ColumnKind.NUMERIC
        assert _kinds(rows, ProfilingConfig(numeric_threshold=0.5))["Mixed"] == ColumnKind.NUMERIC

    def test_counts(self):
        profile = classify([{"Units": "1"}, {"Units": "1"}, {"Units": "2"}])[0]
        assert profile.non_empty_count == 3
        assert profile.unique_count == 2
        assert profile.numeric_ratio == 1.0


def test_collect_columns_first_seen_order():
    rows = [{"b": 1, "a": 2}, {"c": 3, "a": 4}]
    assert collect_columns(rows) == ["b", "a", "c"]


class TestPrimaryColumns:
    def test_value_column_prefers_keyword(self):
        columns = [ColumnProfile("Count", ColumnKind.NUMERIC), ColumnProfile("Price", ColumnKind.NUMERIC)]
        assert find_primary_value_column(columns) == "Price"

    def test_value_column_falls_back_to_first_numeric(self):
        columns = [ColumnProfile("Region", ColumnKind.CATEGORICAL), ColumnProfile("Count", ColumnKind.NUMERIC)]
        assert find_primary_value_column(columns) == "Count"

    def test_value_column_none_without_numeric(self):
        assert find_primary_value_column([ColumnProfile("Region", ColumnKind.CATEGORICAL)]) is None

    def test_category_column_prefers_keyword(self):
        columns = [
            ColumnProfile("Region", ColumnKind.CATEGORICAL),
            ColumnProfile("Product Name", ColumnKind.UNKNOWN),
        ]
        assert find_primary_category_column(columns) == "Product Name"

    def test_category_column_falls_back_to_first_categorical(self):
        columns = [ColumnProfile("Notes", ColumnKind.UNKNOWN), ColumnProfile("Region", ColumnKind.CATEGORICAL)]
        assert find_primary_category_column(columns) == "Region"

    def test_first_keyword_match_wins(self):
        columns = [ColumnProfile("Quantity", ColumnKind.NUMERIC), ColumnProfile("Price", ColumnKind.NUMERIC)]
        assert find_primary_value_column(columns) == "Quantity"


class TestDataType:
    def test_detect_data_type(self):
        assert detect_data_type(["Product Name", "Quantity", "Price"]) == "sales"
        assert detect_data_type(["Production", "Sales", "Stock Left"]) == "production"
        assert detect_data_type(["Item", "Inventory"]) == "stock"
        assert detect_data_type(["a", "b"]) == "unknown"

    def test_detect_table_type(self):
        assert detect_table_type("stock_levels") == "stock"
        assert detect_table_type("Production") == "production"
        assert detect_table_type("fom_orders") == "sales"
        assert detect_table_type("misc") == "unknown"
