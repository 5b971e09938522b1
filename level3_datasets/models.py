"""Dataset model for Level 3.

A Dataset is a named collection of rows plus validation/status metadata.
Row count, preview rows, and detected columns are derived from the rows so
they always agree with them.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from level2_validation.coercion import CellValue, NotNumericError, coerce_numeric, is_empty
from level2_validation.validator import SummaryType
from utils.constants import DEFAULT_PREVIEW_SIZE

Row = dict[str, CellValue]


class DatasetStatus:
    """Dataset status constants."""

    VALID = "valid"
    WARNING = "warning"
    ERROR = "error"


_STATUS_BY_SUMMARY = {
    SummaryType.SUCCESS: DatasetStatus.VALID,
    SummaryType.WARNING: DatasetStatus.WARNING,
    SummaryType.ERROR: DatasetStatus.ERROR,
}


def status_from_summary(summary_type: str) -> str:
    """Map a validation summary type onto a dataset status."""
    return _STATUS_BY_SUMMARY.get(summary_type, DatasetStatus.ERROR)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_key(value: Any) -> Optional[tuple[str, Any]]:
    """Normalize a key value for identity comparisons.

    Numbers and numeric text compare by value (1, 1.0 and "1" are equal);
    other text compares trimmed. Empty values have no key.
    """
    if is_empty(value):
        return None
    try:
        return ("n", coerce_numeric(value))
    except NotNumericError:
        return ("s", str(value).strip())


@dataclass
class Dataset:
    """A named, validated collection of rows."""

    id: str
    name: str
    rows: list[Row] = field(default_factory=list)
    source_file_name: str = ""
    source_size_bytes: int = 0
    uploaded_at: str = field(default_factory=utc_now_iso)
    status: str = DatasetStatus.VALID
    validation_summary: str = ""
    color_tag: str = ""
    inferred_type: str = "unknown"
    known_columns: list[str] = field(default_factory=list)
    preview_size: int = DEFAULT_PREVIEW_SIZE

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def preview_rows(self) -> list[Row]:
        return self.rows[: self.preview_size]

    @property
    def detected_columns(self) -> list[str]:
        """Columns of the first row, or the columns known at creation when empty."""
        if self.rows:
            return list(self.rows[0])
        return list(self.known_columns)

    def to_summary(self) -> dict[str, Any]:
        """Describe the dataset without its rows."""
        return {
            "id": self.id,
            "name": self.name,
            "source_file_name": self.source_file_name,
            "source_size_bytes": self.source_size_bytes,
            "uploaded_at": self.uploaded_at,
            "status": self.status,
            "row_count": self.row_count,
            "validation_summary": self.validation_summary,
            "color_tag": self.color_tag,
            "inferred_type": self.inferred_type,
            "detected_columns": self.detected_columns,
        }
