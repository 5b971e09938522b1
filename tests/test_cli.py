"""Tests for the command-line interface."""

import pandas as pd

from cli import main
from utils import EXIT_INVALID_INPUT, EXIT_SUCCESS, EXIT_VALIDATION_FAILED


def test_ingest_success(sales_csv, capsys):
    assert main(["ingest", str(sales_csv)]) == EXIT_SUCCESS
    out = capsys.readouterr().out
    assert "✓ sales.csv: 3 rows loaded successfully" in out


def test_ingest_all_rows_rejected(write_file, capsys):
    path = write_file("bad.csv", "Quantity\nabc\ndef\n")
    assert main(["ingest", str(path)]) == EXIT_VALIDATION_FAILED
    out = capsys.readouterr().out
    assert "Expected a number" in out


def test_ingest_missing_file(tmp_path, capsys):
    assert main(["ingest", str(tmp_path / "missing.csv")]) == EXIT_INVALID_INPUT
    assert "✗" in capsys.readouterr().err


def test_ingest_with_schema(sales_csv, write_file):
    schema = write_file("schema.yaml", "required_columns:\n  - Customer\n")
    assert main(["ingest", str(sales_csv), "--schema", str(schema)]) == EXIT_VALIDATION_FAILED


def test_invalid_config(sales_csv, write_file, capsys):
    config = write_file("config.yaml", "unknown_section: {}\n")
    assert main(["ingest", str(sales_csv), "--config", str(config)]) == EXIT_INVALID_INPUT
    assert "Invalid configuration" in capsys.readouterr().err


def test_profile(sales_csv, capsys):
    assert main(["profile", str(sales_csv)]) == EXIT_SUCCESS
    out = capsys.readouterr().out
    assert "Order Date: date" in out
    assert "Primary category column: Product Name" in out
    assert "Primary value column: Quantity" in out
    assert "Records: 3, total value: 20.00, average: 6.67, categories: 3" in out
    assert "Date range: 2024-02-01 to 2024-04-30" in out
    assert "Widget: 10.00 (1 rows)" in out
    assert "2024-03: 3.00 (1 rows)" in out


def test_merge_with_export(write_file, tmp_path, capsys):
    a = write_file("a.csv", "k,x\n1,a\n2,b\n")
    b = write_file("b.csv", "k,y\n1,c\n")
    output = tmp_path / "merged.csv"

    assert main(["merge", str(a), str(b), "--key", "k", "--how", "left", "--output", str(output)]) == EXIT_SUCCESS

    out = capsys.readouterr().out
    assert "Merged: a + b" in out
    assert "rows: 2" in out
    df = pd.read_csv(output)
    assert list(df.columns) == ["k", "x", "y"]
    assert len(df) == 2


def test_merge_unknown_key(write_file):
    a = write_file("a.csv", "k,x\n1,a\n")
    b = write_file("b.csv", "k,y\n1,c\n")
    assert main(["merge", str(a), str(b), "--key", "missing"]) == EXIT_INVALID_INPUT
