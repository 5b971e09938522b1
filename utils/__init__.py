"""Shared utilities for DatasetSync.

This module provides common utilities used across the application.
"""

from .colors import MERGED_COLOR, ColorAssigner, detect_dataset_family
from .constants import (
    APP_NAME,
    APP_VERSION,
    DEFAULT_IDENTITY_COLUMN,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PREVIEW_SIZE,
    DEFAULT_UPLOAD_BATCH_SIZE,
    DELIMITED_EXTENSIONS,
    EXIT_INVALID_INPUT,
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_FAILED,
    JSON_EXTENSIONS,
    SPREADSHEET_EXTENSIONS,
    SUPPORTED_CONFIG_FORMATS,
    SUPPORTED_DATASET_FORMATS,
)
from .file_helpers import (
    FileHelperError,
    PathValidationError,
    ensure_directory,
    generate_dataset_id,
    get_file_extension,
    is_supported_config_format,
    read_file_bytes,
    safe_write_dataframe,
    slugify,
    validate_path_safe,
)
from .logging import get_logger, resolve_log_level, setup_logging

__all__ = [
    "APP_NAME",
    "APP_VERSION",
    "DEFAULT_IDENTITY_COLUMN",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_PREVIEW_SIZE",
    "DEFAULT_UPLOAD_BATCH_SIZE",
    "DELIMITED_EXTENSIONS",
    "EXIT_INVALID_INPUT",
    "EXIT_RUNTIME_ERROR",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_FAILED",
    "JSON_EXTENSIONS",
    "MERGED_COLOR",
    "SPREADSHEET_EXTENSIONS",
    "SUPPORTED_CONFIG_FORMATS",
    "SUPPORTED_DATASET_FORMATS",
    "ColorAssigner",
    "FileHelperError",
    "PathValidationError",
    "detect_dataset_family",
    "ensure_directory",
    "generate_dataset_id",
    "get_file_extension",
    "get_logger",
    "is_supported_config_format",
    "read_file_bytes",
    "resolve_log_level",
    "safe_write_dataframe",
    "setup_logging",
    "slugify",
    "validate_path_safe",
]
