"""Level 3: Dataset Registry, Merging & Export.

This module defines the Dataset model, the in-memory registry with its
active subset, dataset joins, aggregation, and dataset export.
"""

from .aggregator import (
    CategoryTotal,
    DatasetAnalysis,
    DatasetKPIs,
    TimePoint,
    aggregate_by_category,
    analyze_rows,
    calculate_kpis,
    get_date_range,
    get_time_series,
)
from .exporter import ExportError, dataset_to_frame, export_dataset
from .merger import JOIN_TYPES, MergeError, merge, merge_rows
from .models import Dataset, DatasetStatus, Row, normalize_key, status_from_summary
from .store import DatasetStore

__all__ = [
    "CategoryTotal",
    "Dataset",
    "DatasetAnalysis",
    "DatasetKPIs",
    "DatasetStatus",
    "DatasetStore",
    "ExportError",
    "JOIN_TYPES",
    "MergeError",
    "Row",
    "TimePoint",
    "aggregate_by_category",
    "analyze_rows",
    "calculate_kpis",
    "dataset_to_frame",
    "export_dataset",
    "get_date_range",
    "get_time_series",
    "merge",
    "merge_rows",
    "normalize_key",
    "status_from_summary",
]
