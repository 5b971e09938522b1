"""Pipeline settings: configuration models and file loading."""

from .loader import (
    SettingsError,
    load_config_file,
    load_declared_schema,
    load_settings,
    validate_settings,
)
from .schema import (
    AnalysisConfig,
    DatasetConfig,
    DeclaredSchema,
    PipelineSettings,
    ProfilingConfig,
    RealtimeConfig,
    TimeGrouping,
    ValidationConfig,
)

__all__ = [
    "AnalysisConfig",
    "DatasetConfig",
    "DeclaredSchema",
    "PipelineSettings",
    "ProfilingConfig",
    "RealtimeConfig",
    "SettingsError",
    "TimeGrouping",
    "ValidationConfig",
    "load_config_file",
    "load_declared_schema",
    "load_settings",
    "validate_settings",
]
