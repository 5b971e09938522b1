"""Dataset aggregation: category totals, time series, and KPIs.

Aggregations run over a dataset's rows with pandas. The category, value,
and date columns are picked by the profiler's primary-column heuristics,
so a dataset can be summarized without naming any column.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

import pandas as pd

from level2_validation.coercion import CoercionError, ColumnKind, coerce_date, coerce_numeric, is_empty
from level2_validation.profiler import (
    ColumnProfile,
    classify,
    find_primary_category_column,
    find_primary_value_column,
)
from settings.schema import PipelineSettings, TimeGrouping
from utils import get_logger

from .models import Row

logger = get_logger(__name__)

UNKNOWN_CATEGORY = "Unknown"


@dataclass
class CategoryTotal:
    """Sum, count, and mean of the value column for one category."""

    name: str
    total: float
    count: int
    average: float


@dataclass
class TimePoint:
    """Value total for one time bucket (a day, a week start, or a month)."""

    period: str
    value: float
    count: int


@dataclass
class DatasetKPIs:
    total_records: int
    total_value: float
    average_value: float
    unique_categories: int
    primary_value_column: Optional[str] = None
    primary_category_column: Optional[str] = None


@dataclass
class DatasetAnalysis:
    """Headline numbers and breakdowns for a set of rows."""

    kpis: DatasetKPIs
    date_column: Optional[str] = None
    date_range: Optional[tuple[str, str]] = None
    categories: list[CategoryTotal] = field(default_factory=list)
    time_series: list[TimePoint] = field(default_factory=list)
    time_grouping: str = TimeGrouping.MONTH.value


def _to_number(value: Any) -> float:
    try:
        return coerce_numeric(value)
    except CoercionError:
        return 0.0


def _to_timestamp(value: Any) -> pd.Timestamp:
    if is_empty(value):
        return pd.NaT
    try:
        return pd.Timestamp(coerce_date(value))
    except CoercionError:
        return pd.NaT


def _category_label(value: Any) -> Optional[str]:
    if is_empty(value):
        return None
    return str(value).strip()


def _value_series(frame: pd.DataFrame, value_column: Optional[str]) -> pd.Series:
    """Numeric values of a column, or a count of one per row without one."""
    if value_column is not None and value_column in frame.columns:
        return frame[value_column].map(_to_number)
    return pd.Series(1.0, index=frame.index)


def _date_series(frame: pd.DataFrame, date_column: str) -> pd.Series:
    return pd.to_datetime(frame[date_column].map(_to_timestamp))


def find_date_column(profiles: list[ColumnProfile]) -> Optional[str]:
    """Return the first column profiled as a date, if any."""
    for profile in profiles:
        if profile.kind == ColumnKind.DATE:
            return profile.name
    return None


def aggregate_by_category(
    rows: list[Row],
    category_column: str,
    value_column: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[CategoryTotal]:
    """Total the value column per category, largest total first.

    Rows with an empty category are grouped under "Unknown". Values that are
    not numbers count as zero. Without a value column every row counts as one.

    Args:
        rows: Dataset rows
        category_column: Column whose values name the groups
        value_column: Numeric column to total
        limit: Keep only the largest N groups
    """
    if not rows:
        return []
    frame = pd.DataFrame(rows)
    if category_column not in frame.columns:
        return []

    labels = frame[category_column].map(_category_label).fillna(UNKNOWN_CATEGORY)
    grouped = (
        pd.DataFrame({"name": labels, "value": _value_series(frame, value_column)})
        .groupby("name", sort=False)["value"]
        .agg(["sum", "count", "mean"])
        .sort_values("sum", ascending=False, kind="mergesort")
    )
    if limit is not None:
        grouped = grouped.head(limit)

    return [
        CategoryTotal(name=str(name), total=float(stats["sum"]), count=int(stats["count"]), average=float(stats["mean"]))
        for name, stats in grouped.iterrows()
    ]


def get_time_series(
    rows: list[Row],
    date_column: str,
    value_column: Optional[str] = None,
    grouping: Union[TimeGrouping, str] = TimeGrouping.MONTH,
) -> list[TimePoint]:
    """Total the value column per day, week, or month, oldest first.

    Weeks are keyed by their Sunday. Rows whose date does not parse are
    skipped.
    """
    if not rows:
        return []
    frame = pd.DataFrame(rows)
    if date_column not in frame.columns:
        return []

    points = pd.DataFrame({"date": _date_series(frame, date_column), "value": _value_series(frame, value_column)})
    points = points.dropna(subset=["date"])
    if points.empty:
        return []

    grouping = TimeGrouping(grouping)
    dates = points["date"]
    if grouping == TimeGrouping.DAY:
        keys = dates.dt.strftime("%Y-%m-%d")
    elif grouping == TimeGrouping.WEEK:
        days_since_sunday = pd.to_timedelta((dates.dt.dayofweek + 1) % 7, unit="D")
        keys = (dates - days_since_sunday).dt.strftime("%Y-%m-%d")
    else:
        keys = dates.dt.strftime("%Y-%m")

    grouped = points.groupby(keys)["value"].agg(["sum", "count"]).sort_index()
    return [
        TimePoint(period=str(period), value=float(stats["sum"]), count=int(stats["count"]))
        for period, stats in grouped.iterrows()
    ]


def get_date_range(rows: list[Row], date_column: str) -> Optional[tuple[str, str]]:
    """Return the earliest and latest ISO dates in a column, or None."""
    if not rows:
        return None
    frame = pd.DataFrame(rows)
    if date_column not in frame.columns:
        return None

    dates = _date_series(frame, date_column).dropna()
    if dates.empty:
        return None
    return dates.min().date().isoformat(), dates.max().date().isoformat()


def calculate_kpis(rows: list[Row], profiles: list[ColumnProfile]) -> DatasetKPIs:
    """Compute record count, value total and mean, and distinct categories."""
    category_column = find_primary_category_column(profiles)
    value_column = find_primary_value_column(profiles)
    if not rows:
        return DatasetKPIs(0, 0.0, 0.0, 0, value_column, category_column)

    frame = pd.DataFrame(rows)
    total_value = 0.0
    if value_column is not None and value_column in frame.columns:
        total_value = float(frame[value_column].map(_to_number).sum())

    unique_categories = 0
    if category_column is not None and category_column in frame.columns:
        unique_categories = int(frame[category_column].map(_category_label).dropna().nunique())

    return DatasetKPIs(
        total_records=len(rows),
        total_value=total_value,
        average_value=total_value / len(rows),
        unique_categories=unique_categories,
        primary_value_column=value_column,
        primary_category_column=category_column,
    )


def analyze_rows(
    rows: list[Row],
    settings: Optional[PipelineSettings] = None,
    profiles: Optional[list[ColumnProfile]] = None,
) -> DatasetAnalysis:
    """Profile rows and compute KPIs, category totals, and a time series.

    Args:
        rows: Dataset rows (typically already coerced by validation)
        settings: Pipeline settings (defaults when None)
        profiles: Precomputed column profiles; rows are classified when None
    """
    settings = settings or PipelineSettings()
    if profiles is None:
        profiles = classify(rows, settings.profiling)

    kpis = calculate_kpis(rows, profiles)
    date_column = find_date_column(profiles)
    grouping = settings.analysis.time_grouping

    analysis = DatasetAnalysis(kpis=kpis, date_column=date_column, time_grouping=grouping.value)
    if kpis.primary_category_column is not None:
        analysis.categories = aggregate_by_category(
            rows,
            kpis.primary_category_column,
            kpis.primary_value_column,
            limit=settings.analysis.top_categories,
        )
    if date_column is not None:
        analysis.date_range = get_date_range(rows, date_column)
        analysis.time_series = get_time_series(rows, date_column, kpis.primary_value_column, grouping)

    logger.debug(
        f"Analyzed {kpis.total_records} rows: {len(analysis.categories)} categories, "
        f"{len(analysis.time_series)} time buckets"
    )
    return analysis
