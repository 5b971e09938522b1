"""Constants for DatasetSync.

This module defines shared constants used across the application.
"""

# Exit codes (matching CLI exit codes)
EXIT_SUCCESS = 0
EXIT_INVALID_INPUT = 1
EXIT_VALIDATION_FAILED = 2
EXIT_RUNTIME_ERROR = 3

# Application metadata
APP_NAME = "DatasetSync"
APP_VERSION = "1.0.0"

# Supported file formats, keyed by extension (without dot)
DELIMITED_EXTENSIONS = ["csv", "tsv", "txt"]
SPREADSHEET_EXTENSIONS = ["xlsx", "xlsm", "xls"]
JSON_EXTENSIONS = ["json"]
SUPPORTED_DATASET_FORMATS = DELIMITED_EXTENSIONS + SPREADSHEET_EXTENSIONS + JSON_EXTENSIONS
SUPPORTED_CONFIG_FORMATS = ["yaml", "yml", "json"]

# Default values
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_PREVIEW_SIZE = 5
DEFAULT_IDENTITY_COLUMN = "id"
DEFAULT_UPLOAD_BATCH_SIZE = 1000
