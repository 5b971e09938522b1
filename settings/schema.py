"""Pipeline settings definitions using Pydantic.

This module defines the immutable configuration contract for the pipeline:
profiling thresholds, validation policy, dataset presentation defaults,
realtime synchronization options, analysis defaults, and optional
declared schemas.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from utils.constants import (
    DEFAULT_IDENTITY_COLUMN,
    DEFAULT_PREVIEW_SIZE,
    DEFAULT_UPLOAD_BATCH_SIZE,
)


class ProfilingConfig(BaseModel):
    """Thresholds used by the schema profiler."""

    numeric_threshold: float = Field(
        default=0.6, gt=0.0, le=1.0, description="Share of sampled values that must parse as numbers"
    )
    date_threshold: float = Field(
        default=0.6, gt=0.0, le=1.0, description="Share of sampled values that must parse as dates"
    )
    categorical_ratio: float = Field(
        default=0.5, gt=0.0, le=1.0, description="Distinct/total ratio below which text is categorical"
    )
    max_categories: int = Field(
        default=1000, ge=1, description="Distinct count at or above which text is never categorical"
    )
    sample_size: int = Field(default=100, ge=1, description="Non-empty values sampled per column")

    model_config = ConfigDict(frozen=True, extra="forbid")


class ValidationConfig(BaseModel):
    """Validation policy."""

    non_negative_keywords: list[str] = Field(
        default_factory=lambda: [
            "quantity",
            "price",
            "units",
            "count",
            "stock",
            "production",
            "sales",
            "cost",
            "amount",
            "revenue",
        ],
        description="Column-name keywords whose negative values are flagged as warnings",
    )
    max_reported_issues: int = Field(
        default=10, ge=1, description="Number of issues surfaced to callers for display"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")


class DatasetConfig(BaseModel):
    """Dataset presentation and merge defaults."""

    preview_size: int = Field(default=DEFAULT_PREVIEW_SIZE, ge=0)
    merge_suffix: str = Field(
        default="_2", min_length=1, description="Suffix appended to colliding columns of the second dataset"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")


class RealtimeConfig(BaseModel):
    """Remote row store synchronization options."""

    tables: list[str] = Field(default_factory=list, description="Remote tables mirrored as datasets")
    identity_column: str = Field(default=DEFAULT_IDENTITY_COLUMN, min_length=1)
    queue_size: int = Field(default=1000, ge=1, description="Capacity of the change-event channel")
    upload_batch_size: int = Field(default=DEFAULT_UPLOAD_BATCH_SIZE, ge=1)

    @field_validator("tables")
    @classmethod
    def validate_tables(cls, v: list[str]) -> list[str]:
        """Reject blank and duplicate table names."""
        cleaned = []
        for name in v:
            if not name or not name.strip():
                raise ValueError("table names cannot be empty")
            if name in cleaned:
                raise ValueError(f"duplicate table name: {name}")
            cleaned.append(name)
        return cleaned

    model_config = ConfigDict(frozen=True, extra="forbid")


class TimeGrouping(str, Enum):
    """Bucket size of a dataset time series."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class AnalysisConfig(BaseModel):
    """Aggregation defaults for dataset analysis."""

    top_categories: int = Field(
        default=20, ge=1, description="Category totals kept per analysis, largest first"
    )
    time_grouping: TimeGrouping = Field(default=TimeGrouping.MONTH, description="Time series bucket size")

    model_config = ConfigDict(frozen=True, extra="forbid")


class DeclaredSchema(BaseModel):
    """Optional caller-declared expectations for an ingested file."""

    required_columns: list[str] = Field(default_factory=list)
    numeric_columns: list[str] = Field(default_factory=list)
    date_columns: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_names(self) -> "DeclaredSchema":
        for name in self.required_columns + self.numeric_columns + self.date_columns:
            if not name:
                raise ValueError("declared column names cannot be empty")
        return self

    model_config = ConfigDict(frozen=True, extra="forbid")


class PipelineSettings(BaseModel):
    """Complete pipeline configuration.

    Every section has defaults, so an empty mapping is a valid configuration.
    """

    profiling: ProfilingConfig = Field(default_factory=ProfilingConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    datasets: DatasetConfig = Field(default_factory=DatasetConfig)
    realtime: RealtimeConfig = Field(default_factory=RealtimeConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)

    model_config = ConfigDict(frozen=True, extra="forbid")
