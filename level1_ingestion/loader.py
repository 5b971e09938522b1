"""File loader for Level 1 ingestion.

This module parses raw file bytes in supported formats (delimited text,
spreadsheet workbooks, JSON arrays of flat objects) into rows using pandas.
Header values become column names verbatim. Rows are returned without any
validation or coercion beyond what each format implies.
"""

import csv
import io
import json
from datetime import date, datetime
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from level2_validation.coercion import CellValue
from utils import (
    DELIMITED_EXTENSIONS,
    JSON_EXTENSIONS,
    SPREADSHEET_EXTENSIONS,
    FileHelperError,
    get_file_extension,
    get_logger,
    read_file_bytes,
)

logger = get_logger(__name__)

Row = dict[str, CellValue]

FORMAT_DELIMITED = "delimited"
FORMAT_XLSX = "xlsx"
FORMAT_XLS = "xls"
FORMAT_JSON = "json"

ZIP_MAGIC = b"PK\x03\x04"
OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
CANDIDATE_DELIMITERS = ",;\t|"
SNIFF_SAMPLE_CHARS = 8192


class ParseError(Exception):
    """Raised when a file cannot be read or its format is unsupported."""

    pass


def sniff_format(raw_bytes: bytes) -> str:
    """Guess a file format from its content."""
    if raw_bytes.startswith(ZIP_MAGIC):
        return FORMAT_XLSX
    if raw_bytes.startswith(OLE2_MAGIC):
        return FORMAT_XLS

    head = raw_bytes[:64].lstrip(b"\xef\xbb\xbf").lstrip()
    if head.startswith((b"[", b"{")):
        return FORMAT_JSON
    return FORMAT_DELIMITED


def select_format(raw_bytes: bytes, name_hint: str) -> str:
    """Select a parser by file extension, sniffing content when the extension is missing or unknown."""
    extension = get_file_extension(name_hint)

    if extension in DELIMITED_EXTENSIONS:
        return FORMAT_DELIMITED
    if extension in JSON_EXTENSIONS:
        return FORMAT_JSON
    if extension in SPREADSHEET_EXTENSIONS:
        return FORMAT_XLS if extension == "xls" else FORMAT_XLSX

    detected = sniff_format(raw_bytes)
    logger.debug(f"Extension '{extension}' not recognized, sniffed format: {detected}")
    return detected


def decode_text(raw_bytes: bytes) -> str:
    """Decode text as UTF-8 (BOM tolerated), falling back to Latin-1."""
    try:
        return raw_bytes.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug("UTF-8 decoding failed, falling back to latin-1")
        return raw_bytes.decode("latin-1")


def sniff_delimiter(text: str) -> str:
    """Detect the delimiter of a delimited text sample (comma by default)."""
    sample = text[:SNIFF_SAMPLE_CHARS]
    try:
        return csv.Sniffer().sniff(sample, delimiters=CANDIDATE_DELIMITERS).delimiter
    except csv.Error:
        return ","


def _clean_cell(value: Any) -> CellValue:
    """Convert a pandas/numpy cell into a plain row value."""
    if value is None:
        return None
    if isinstance(value, (pd.Timestamp, datetime)):
        if pd.isna(value):
            return None
        if value.hour == 0 and value.minute == 0 and value.second == 0 and value.microsecond == 0:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, (float, np.floating)):
        if np.isnan(value):
            return None
        return float(value)
    return value


def _frame_to_rows(df: pd.DataFrame) -> list[Row]:
    columns = [str(column) for column in df.columns]
    rows = []
    for record in df.itertuples(index=False, name=None):
        rows.append({column: _clean_cell(value) for column, value in zip(columns, record)})
    return rows


def parse_delimited(raw_bytes: bytes) -> list[Row]:
    """Parse delimited text; the first row is the header and all cells stay text."""
    text = decode_text(raw_bytes)
    if not text.strip():
        raise ParseError("Delimited file is empty")

    delimiter = sniff_delimiter(text)
    logger.debug(f"Delimiter detected: {delimiter!r}")

    try:
        df = pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as e:
        raise ParseError("Delimited file is empty") from e
    except pd.errors.ParserError as e:
        raise ParseError(f"Failed to parse delimited file: {e}") from e

    return _frame_to_rows(df)


def parse_spreadsheet(raw_bytes: bytes, file_format: str) -> list[Row]:
    """Parse the first sheet of a workbook; the first row is the header."""
    engine = "xlrd" if file_format == FORMAT_XLS else "openpyxl"
    try:
        df = pd.read_excel(io.BytesIO(raw_bytes), sheet_name=0, header=0, dtype=object, engine=engine)
    except ImportError as e:
        raise ParseError(f"Missing required library for {file_format} workbooks: {e}") from e
    except (ValueError, OSError, KeyError) as e:
        raise ParseError(f"Failed to read workbook: {e}") from e
    except Exception as e:
        raise ParseError(f"Unexpected error reading workbook: {e}") from e

    if df.columns.empty:
        raise ParseError("Workbook is empty")

    df = df.dropna(how="all")
    return _frame_to_rows(df)


def parse_json(raw_bytes: bytes) -> list[Row]:
    """Parse a JSON array of flat objects."""
    try:
        data = json.loads(decode_text(raw_bytes))
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON syntax: {e}") from e

    if not isinstance(data, list):
        raise ParseError("JSON file must contain an array of objects")

    rows = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ParseError(f"JSON element {index} is not an object")
        row: Row = {}
        for key, value in item.items():
            if isinstance(value, (dict, list)):
                raise ParseError(f"JSON element {index} has a nested value for '{key}'")
            row[str(key)] = _clean_cell(value)
        rows.append(row)
    return rows


def parse_file(raw_bytes: bytes, name_hint: str) -> list[Row]:
    """Parse raw file content into rows.

    Args:
        raw_bytes: File content
        name_hint: File name, used for extension-based format selection

    Returns:
        Rows keyed by the file's header values

    Raises:
        ParseError: If the content is empty, unreadable, or unsupported
    """
    if not raw_bytes:
        raise ParseError(f"File is empty: {name_hint}")

    file_format = select_format(raw_bytes, name_hint)
    logger.info(f"Parsing {name_hint} as {file_format} ({len(raw_bytes)} bytes)")

    if file_format == FORMAT_DELIMITED:
        rows = parse_delimited(raw_bytes)
    elif file_format == FORMAT_JSON:
        rows = parse_json(raw_bytes)
    else:
        rows = parse_spreadsheet(raw_bytes, file_format)

    logger.info(f"Parsed {len(rows)} rows from {name_hint}")
    return rows


def load_file(file_path: str | Path) -> tuple[list[Row], int]:
    """Read a file from disk and parse it.

    Returns:
        Tuple of (rows, file size in bytes)

    Raises:
        ParseError: If the file cannot be read or parsed
    """
    try:
        raw_bytes = read_file_bytes(file_path)
    except FileHelperError as e:
        raise ParseError(str(e)) from e

    return parse_file(raw_bytes, Path(file_path).name), len(raw_bytes)
