"""Type coercion for raw cell values.

This module normalizes raw scalars into canonical numbers and ISO calendar
dates, and decides from a column's name whether it carries numbers or dates.
All functions are pure and raise a CoercionError subclass on failure.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

CellValue = Optional[str | int | float]

NUMERIC_KEYWORDS = (
    "quantity",
    "price",
    "revenue",
    "amount",
    "total",
    "sum",
    "count",
    "production",
    "sales",
    "stock",
    "left",
    "units",
    "value",
    "cost",
    "year",
    "week",
    "code",
    "pin",
    "recovery",
)
DATE_KEYWORD = "date"

# Serial 25569 is 1970-01-01 in the 1900 date system.
SPREADSHEET_EPOCH_SERIAL = 25569
UNIX_EPOCH = date(1970, 1, 1)

_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DAY_FIRST_PATTERN = re.compile(r"(\d{1,2})[/-](\d{1,2})[/-](\d{4})")


class ColumnKind:
    """Column-kind constants shared by the profiler and validator."""

    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    DATE = "date"
    UNKNOWN = "unknown"


class CoercionError(ValueError):
    """Raised when a raw value cannot be coerced."""

    pass


class NotNumericError(CoercionError):
    """Raised when a value is not a finite number."""

    pass


class NotDateError(CoercionError):
    """Raised when a value is not a valid calendar date."""

    pass


def is_empty(value: Any) -> bool:
    """Return True for None, NaN, and blank strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, float) and np.isnan(value):
        return True
    return False


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, (bool, np.bool_))


def coerce_numeric(raw: Any) -> float:
    """Coerce a raw value into a finite float.

    Whitespace and thousands separators are stripped before parsing.

    Args:
        raw: Raw cell value

    Returns:
        Parsed float

    Raises:
        NotNumericError: If the value is not a plain finite number
    """
    if _is_number(raw):
        value = float(raw)
    elif isinstance(raw, str):
        text = re.sub(r"[,\s]", "", raw)
        if not _NUMBER_PATTERN.match(text):
            raise NotNumericError(f"Not a number: {raw!r}")
        value = float(text)
    else:
        raise NotNumericError(f"Not a number: {raw!r}")

    if not np.isfinite(value):
        raise NotNumericError(f"Not a finite number: {raw!r}")
    return value


def serial_to_date(serial: float) -> date:
    """Convert a spreadsheet day serial into a calendar date.

    The extra day reproduces the 1900 leap-year correction applied by
    spreadsheet software.
    """
    days = int(np.floor(serial)) - SPREADSHEET_EPOCH_SERIAL + 1
    try:
        return UNIX_EPOCH + timedelta(days=days)
    except OverflowError as e:
        raise NotDateError(f"Date serial out of range: {serial!r}") from e


def build_verified_date(year: int, month: int, day: int) -> date:
    """Build a date from components and verify it round-trips.

    The day is added as an offset to the first of the month, so an
    overflowing day rolls into the next month and then fails verification.

    Raises:
        NotDateError: If the components do not name a real calendar day
    """
    try:
        candidate = date(year, month, 1) + timedelta(days=day - 1)
    except (ValueError, OverflowError) as e:
        raise NotDateError(f"Invalid date components: {day}-{month}-{year}") from e

    if (candidate.year, candidate.month, candidate.day) != (year, month, day):
        raise NotDateError(f"Invalid calendar date: {day}-{month}-{year}")
    return candidate


def coerce_date(raw: Any) -> str:
    """Coerce a raw value into an ISO ``YYYY-MM-DD`` date string.

    Numbers and numeric text are spreadsheet day serials. Other text may
    be ISO or day-first ``D/M/YYYY`` / ``D-M-YYYY``.

    Raises:
        NotDateError: If the value is not a recognizable, valid date
    """
    if isinstance(raw, (datetime, pd.Timestamp)):
        if pd.isna(raw):
            raise NotDateError("Missing timestamp")
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()

    if _is_number(raw):
        if not np.isfinite(float(raw)):
            raise NotDateError(f"Not a date serial: {raw!r}")
        return serial_to_date(float(raw)).isoformat()

    if not isinstance(raw, str):
        raise NotDateError(f"Not a date: {raw!r}")

    text = raw.strip()
    iso_match = _ISO_DATE_PATTERN.match(text)
    if iso_match:
        year, month, day = (int(part) for part in iso_match.groups())
        return build_verified_date(year, month, day).isoformat()

    match = _DAY_FIRST_PATTERN.search(text)
    if not match:
        try:
            serial = coerce_numeric(text)
        except NotNumericError as e:
            raise NotDateError(f"Unrecognized date format: {raw!r}") from e
        return serial_to_date(serial).isoformat()

    day, month, year = (int(part) for part in match.groups())
    return build_verified_date(year, month, day).isoformat()


def is_date_column(column_name: str) -> bool:
    """Check if a column name marks a date-bearing column."""
    return DATE_KEYWORD in column_name.lower()


def is_numeric_column(column_name: str) -> bool:
    """Check if a column name marks a numeric-bearing column.

    Date-bearing names are never numeric, even when they contain a
    numeric keyword.
    """
    if is_date_column(column_name):
        return False
    lower_name = column_name.lower()
    return any(keyword in lower_name for keyword in NUMERIC_KEYWORDS)


def column_kind_for_name(column_name: str) -> Optional[str]:
    """Dispatch a column to a kind from its name alone.

    Returns:
        ColumnKind.DATE, ColumnKind.NUMERIC, or None when the name says nothing
    """
    if is_date_column(column_name):
        return ColumnKind.DATE
    if is_numeric_column(column_name):
        return ColumnKind.NUMERIC
    return None


def to_table_record(row: dict[str, CellValue]) -> dict[str, CellValue]:
    """Convert a row into a record suitable for the remote row store.

    Empty values are dropped. Date-bearing columns are normalized to ISO
    dates (the raw value is kept when that fails); numeric-bearing text is
    parsed (and dropped when it does not parse).
    """
    record: dict[str, CellValue] = {}
    for column, value in row.items():
        if is_empty(value):
            continue

        if is_date_column(column):
            try:
                record[column] = coerce_date(value)
            except NotDateError:
                logger.debug(f"Keeping raw value for date column '{column}': {value!r}")
                record[column] = value
            continue

        if is_numeric_column(column) and isinstance(value, str):
            try:
                record[column] = coerce_numeric(value)
            except NotNumericError:
                logger.debug(f"Dropping non-numeric value for column '{column}': {value!r}")
        else:
            record[column] = value

    return record
