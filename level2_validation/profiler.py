"""Schema profiling for ingested rows.

This module classifies each column of a set of rows as numeric, date,
categorical, or unknown, and picks the primary category and value columns
by keyword heuristics. Profiling is deterministic for identical input.

Keyword heuristics break ties by first occurrence in column order; no
keyword is ranked above another.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import pandas as pd

from level2_validation.coercion import (
    CellValue,
    CoercionError,
    ColumnKind,
    coerce_date,
    coerce_numeric,
    column_kind_for_name,
    is_empty,
)
from settings.schema import ProfilingConfig

logger = logging.getLogger(__name__)

CATEGORY_KEYWORDS = ("name", "product", "category")
VALUE_KEYWORDS = ("price", "revenue", "quantity", "amount")


@dataclass
class ColumnProfile:
    """Inferred semantic kind of a single column."""

    name: str
    kind: str
    non_empty_count: int = 0
    unique_count: int = 0
    numeric_ratio: float = 0.0


def collect_columns(rows: Iterable[dict[str, CellValue]]) -> list[str]:
    """Return every column name in first-seen order across rows."""
    columns: dict[str, None] = {}
    for row in rows:
        for column in row:
            columns.setdefault(column, None)
    return list(columns)


def _parse_ratio(values: list[CellValue], parser) -> float:
    if not values:
        return 0.0
    parsed = 0
    for value in values:
        try:
            parser(value)
            parsed += 1
        except CoercionError:
            continue
    return parsed / len(values)


def profile_column(
    rows: list[dict[str, CellValue]], column_name: str, config: ProfilingConfig
) -> ColumnProfile:
    """Classify a single column.

    Args:
        rows: Rows containing the column
        column_name: Name of the column to classify
        config: Profiling thresholds

    Returns:
        ColumnProfile for the column
    """
    non_empty = [row.get(column_name) for row in rows if not is_empty(row.get(column_name))]
    sample = non_empty[: config.sample_size]

    if not sample:
        return ColumnProfile(name=column_name, kind=ColumnKind.UNKNOWN)

    series = pd.Series([str(value).strip() for value in sample], dtype=object)
    unique_count = int(series.nunique())
    numeric_ratio = _parse_ratio(sample, coerce_numeric)

    profile = ColumnProfile(
        name=column_name,
        kind=ColumnKind.UNKNOWN,
        non_empty_count=len(non_empty),
        unique_count=unique_count,
        numeric_ratio=round(numeric_ratio, 4),
    )

    if column_kind_for_name(column_name) == ColumnKind.DATE:
        profile.kind = ColumnKind.DATE
    elif numeric_ratio >= config.numeric_threshold:
        profile.kind = ColumnKind.NUMERIC
    elif _parse_ratio(sample, coerce_date) >= config.date_threshold:
        profile.kind = ColumnKind.DATE
    elif unique_count / len(sample) < config.categorical_ratio and unique_count < config.max_categories:
        profile.kind = ColumnKind.CATEGORICAL

    return profile


def classify(
    rows: list[dict[str, CellValue]], config: Optional[ProfilingConfig] = None
) -> list[ColumnProfile]:
    """Classify every column of a set of rows.

    Args:
        rows: Raw rows, as produced by the file loader
        config: Profiling thresholds (defaults when None)

    Returns:
        One ColumnProfile per column, in column order
    """
    config = config or ProfilingConfig()
    columns = collect_columns(rows)
    logger.debug(f"Profiling {len(columns)} columns over {len(rows)} rows")

    profiles = []
    for column_name in columns:
        profile = profile_column(rows, column_name, config)
        profiles.append(profile)
        logger.debug(
            f"Column '{column_name}': kind={profile.kind}, "
            f"non_empty={profile.non_empty_count}, unique={profile.unique_count}"
        )
    return profiles


def _first_matching(columns: list[ColumnProfile], kinds: tuple[str, ...], keywords: tuple[str, ...]) -> Optional[str]:
    for column in columns:
        if column.kind in kinds and any(keyword in column.name.lower() for keyword in keywords):
            return column.name
    return None


def _first_of_kind(columns: list[ColumnProfile], kind: str) -> Optional[str]:
    for column in columns:
        if column.kind == kind:
            return column.name
    return None


def find_primary_category_column(columns: list[ColumnProfile]) -> Optional[str]:
    """Pick the column that best names the category of each row.

    The first text column whose name mentions name/product/category wins,
    then the first categorical column.
    """
    match = _first_matching(columns, (ColumnKind.CATEGORICAL, ColumnKind.UNKNOWN), CATEGORY_KEYWORDS)
    if match is not None:
        return match
    return _first_of_kind(columns, ColumnKind.CATEGORICAL)


def find_primary_value_column(columns: list[ColumnProfile]) -> Optional[str]:
    """Pick the numeric column that best measures each row.

    The first numeric column whose name mentions price/revenue/quantity/amount
    wins, then the first numeric column.
    """
    match = _first_matching(columns, (ColumnKind.NUMERIC,), VALUE_KEYWORDS)
    if match is not None:
        return match
    return _first_of_kind(columns, ColumnKind.NUMERIC)


def detect_data_type(columns: list[str]) -> str:
    """Infer the business type of a dataset from its column names.

    Returns:
        One of "sales", "production", "stock", "unknown"
    """
    joined = " ".join(columns).lower()

    if "production" in joined and "sales" in joined and "stock" in joined:
        return "production"
    if "quantity" in joined and "price" in joined and ("name" in joined or "buyer" in joined):
        return "sales"
    if "stock" in joined or "inventory" in joined:
        return "stock"
    return "unknown"


def detect_table_type(table_name: str) -> str:
    """Infer the business type of a remote table from its name."""
    lower_name = table_name.lower()
    if "stock" in lower_name:
        return "stock"
    if "production" in lower_name:
        return "production"
    if "fom" in lower_name:
        return "sales"
    return "unknown"
