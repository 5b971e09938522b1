"""Dataset export for Level 3.

Writes a dataset's rows to CSV or JSON with pandas.
"""

from pathlib import Path

import pandas as pd

from utils import FileHelperError, get_logger, safe_write_dataframe

from .models import Dataset

logger = get_logger(__name__)

EXPORT_FORMATS = ("csv", "json")


class ExportError(Exception):
    """Raised when a dataset cannot be exported."""

    pass


def dataset_to_frame(dataset: Dataset) -> pd.DataFrame:
    """Build a DataFrame with the dataset's columns in order."""
    return pd.DataFrame(dataset.rows, columns=dataset.detected_columns)


def export_dataset(dataset: Dataset, file_path: Path, format: str = "csv", overwrite: bool = False) -> Path:
    """Export a dataset's rows to disk.

    Args:
        dataset: Dataset to export
        file_path: Destination file
        format: "csv" or "json"
        overwrite: If True, replace an existing file

    Returns:
        The path written

    Raises:
        ExportError: If the format is unsupported or the write fails
    """
    if format not in EXPORT_FORMATS:
        raise ExportError(f"Unsupported export format: {format}. Supported formats: {list(EXPORT_FORMATS)}")

    try:
        safe_write_dataframe(dataset_to_frame(dataset), Path(file_path), format=format, overwrite=overwrite)
    except FileHelperError as e:
        raise ExportError(f"Failed to export dataset '{dataset.name}': {e}") from e

    logger.info(f"Exported dataset '{dataset.name}' ({dataset.row_count} rows) to {file_path}")
    return Path(file_path)
