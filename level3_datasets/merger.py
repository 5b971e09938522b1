"""Dataset joins for Level 3.

This module joins two datasets on a single key column with pandas.

Semantics:
- inner: rows whose key exists on both sides; a key repeated on either side
  yields every matching pair (no deduplication)
- left / right: every row of the named side, the other side None-filled
- outer: union of the left and right results
- Non-key column collisions keep the first dataset's name and suffix the
  second dataset's column
- Keys compare by normalized value; empty keys never match
"""

from typing import Optional

import pandas as pd

from level2_validation.validator import validate
from settings.schema import PipelineSettings
from utils import MERGED_COLOR, generate_dataset_id, get_logger

from .models import Dataset, Row, normalize_key, status_from_summary

logger = get_logger(__name__)

JOIN_TYPES = ("inner", "left", "right", "outer")
MATCH_COLUMN = "__match_key__"
RIGHT_KEY_COLUMN = "__right_join_key__"


class MergeError(Exception):
    """Raised when two datasets cannot be merged."""

    pass


def _match_keys(rows: list[Row], join_key: str, side: str) -> list[str]:
    """Build comparable match keys; rows without a key get a key that matches nothing."""
    keys = []
    for index, row in enumerate(rows):
        normalized = normalize_key(row.get(join_key))
        if normalized is None:
            keys.append(f"null:{side}:{index}")
        else:
            kind, value = normalized
            keys.append(f"{kind}:{value!r}")
    return keys


def _columns_of(dataset: Dataset) -> list[str]:
    columns: dict[str, None] = dict.fromkeys(dataset.detected_columns)
    for row in dataset.rows:
        for column in row:
            columns.setdefault(column, None)
    return list(columns)


def _to_frame(rows: list[Row], columns: list[str], match_keys: list[str]) -> pd.DataFrame:
    df = pd.DataFrame(
        [[row.get(column) for column in columns] for row in rows],
        columns=columns,
        dtype=object,
    )
    df[MATCH_COLUMN] = pd.Series(match_keys, dtype=object)
    return df


def _to_rows(df: pd.DataFrame, columns: list[str]) -> list[Row]:
    df = df[columns].astype(object)
    df = df.where(pd.notna(df), None)
    return [dict(zip(columns, record)) for record in df.itertuples(index=False, name=None)]


def merge_rows(
    left_rows: list[Row],
    left_columns: list[str],
    right_rows: list[Row],
    right_columns: list[str],
    join_key: str,
    join_type: str,
    suffix: str = "_2",
) -> tuple[list[Row], list[str]]:
    """Join two row lists on a key column.

    Returns:
        Tuple of (merged rows, merged column names)
    """
    renamed = {}
    taken = set(left_columns) | set(right_columns)
    for column in right_columns:
        if column == join_key or column not in left_columns:
            continue
        name = f"{column}{suffix}"
        while name in taken:
            name = f"{name}{suffix}"
        taken.add(name)
        renamed[column] = name
    key_on_both_sides = join_key in left_columns and join_key in right_columns
    if key_on_both_sides:
        renamed[join_key] = RIGHT_KEY_COLUMN

    left = _to_frame(left_rows, left_columns, _match_keys(left_rows, join_key, "left"))
    right = _to_frame(right_rows, right_columns, _match_keys(right_rows, join_key, "right")).rename(columns=renamed)

    merged = pd.merge(left, right, how=join_type, on=MATCH_COLUMN, sort=False)

    if key_on_both_sides:
        merged[join_key] = merged[join_key].where(pd.notna(merged[join_key]), merged[RIGHT_KEY_COLUMN])

    columns = list(left_columns)
    for column in right_columns:
        name = renamed.get(column, column)
        if name == RIGHT_KEY_COLUMN or name in columns:
            continue
        columns.append(name)

    return _to_rows(merged, columns), columns


def merge(
    a: Dataset,
    b: Dataset,
    join_key: str,
    join_type: str = "inner",
    settings: Optional[PipelineSettings] = None,
) -> Dataset:
    """Join two datasets into a new dataset.

    Args:
        a: First (left) dataset
        b: Second (right) dataset
        join_key: Column correlating rows across both datasets
        join_type: One of inner, left, right, outer
        settings: Pipeline settings (defaults when None)

    Returns:
        A new Dataset with a fresh id and a freshly computed status

    Raises:
        MergeError: If the key is in neither dataset or the join type is unknown
    """
    settings = settings or PipelineSettings()

    if join_type not in JOIN_TYPES:
        raise MergeError(f"Unsupported join type: {join_type}. Must be one of {list(JOIN_TYPES)}")

    left_columns = _columns_of(a)
    right_columns = _columns_of(b)
    if join_key not in left_columns and join_key not in right_columns:
        raise MergeError(
            f"Join key '{join_key}' not found in '{a.name}' or '{b.name}'. "
            f"Available columns: {sorted(set(left_columns) | set(right_columns))}"
        )

    logger.info(f"Merging '{a.name}' ({a.row_count} rows) with '{b.name}' ({b.row_count} rows) on '{join_key}' ({join_type})")

    rows, columns = merge_rows(
        a.rows,
        left_columns,
        b.rows,
        right_columns,
        join_key,
        join_type,
        suffix=settings.datasets.merge_suffix,
    )

    result = validate(rows, settings=settings)
    merged = Dataset(
        id=generate_dataset_id("merged"),
        name=f"Merged: {a.name} + {b.name}",
        rows=rows,
        source_file_name=f"merged-{a.source_file_name or a.name}-{b.source_file_name or b.name}",
        source_size_bytes=a.source_size_bytes + b.source_size_bytes,
        status=status_from_summary(result.summary.type),
        validation_summary=f"Merged {a.row_count} + {b.row_count} rows into {len(rows)} ({join_type} join on '{join_key}')",
        color_tag=MERGED_COLOR,
        inferred_type=a.inferred_type if a.inferred_type == b.inferred_type else "unknown",
        known_columns=columns,
        preview_size=settings.datasets.preview_size,
    )

    logger.info(f"Merge complete: {merged.row_count} rows, {len(columns)} columns, status={merged.status}")
    return merged
