"""File helper utilities for DatasetSync.

This module provides common file operations used across the application.
"""

import logging
import os
import re
import uuid
from pathlib import Path
from typing import Optional

import pandas as pd

from .constants import SUPPORTED_CONFIG_FORMATS

logger = logging.getLogger(__name__)


class PathValidationError(Exception):
    """Raised when path validation fails due to security concerns."""

    pass


class FileHelperError(Exception):
    """Raised when a file read or write fails."""

    pass


def ensure_directory(path: Path) -> Path:
    """Ensure directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure

    Returns:
        Resolved Path object (for chaining)

    Raises:
        OSError: If directory creation fails
    """
    try:
        resolved_path = path.resolve()
        resolved_path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Directory ensured: {resolved_path}")
        return resolved_path
    except (OSError, RuntimeError) as e:
        logger.error(f"Failed to resolve or create directory {path}: {e}")
        raise


def get_file_extension(file_path: str | Path) -> str:
    """Get file extension from path.

    Args:
        file_path: File path

    Returns:
        File extension (without dot), empty string if no extension
    """
    path = Path(file_path)
    return path.suffix.lstrip(".").lower()


def is_supported_config_format(file_path: str | Path) -> bool:
    """Check if file is a supported config format."""
    return get_file_extension(file_path) in SUPPORTED_CONFIG_FORMATS


def validate_path_safe(
    file_path: str | Path,
    base_dir: Optional[Path] = None,
    must_exist: bool = False,
    must_be_file: bool = False,
) -> Path:
    """Validate path to prevent directory traversal attacks.

    Args:
        file_path: Path to validate
        base_dir: Optional base directory to restrict paths within
        must_exist: If True, path must exist
        must_be_file: If True, path must be a file

    Returns:
        Resolved Path object

    Raises:
        PathValidationError: If path contains traversal or violates constraints
        FileNotFoundError: If must_exist=True and path doesn't exist
    """
    path = Path(file_path).expanduser()

    if ".." in path.parts:
        raise PathValidationError(
            f"Path contains directory traversal sequence: {file_path}"
        )

    try:
        resolved = path.resolve()
    except (OSError, RuntimeError) as e:
        raise PathValidationError(f"Failed to resolve path {file_path}: {e}") from e

    if base_dir is not None:
        base_resolved = Path(base_dir).expanduser().resolve()
        try:
            common = os.path.commonpath([str(resolved), str(base_resolved)])
        except ValueError:
            raise PathValidationError(
                f"Path {file_path} cannot be validated against base directory {base_dir}"
            )
        if common != str(base_resolved):
            raise PathValidationError(
                f"Path {file_path} is outside allowed base directory {base_dir}"
            )

    if must_exist and not resolved.exists():
        raise FileNotFoundError(f"Path does not exist: {file_path}")

    if must_be_file and not resolved.is_file():
        if resolved.exists():
            raise PathValidationError(f"Path is not a file: {file_path}")
        else:
            raise FileNotFoundError(f"File does not exist: {file_path}")

    return resolved


def read_file_bytes(file_path: str | Path) -> bytes:
    """Read a whole file after validating its path.

    Args:
        file_path: Path to the file

    Returns:
        Raw file content

    Raises:
        FileHelperError: If the path is invalid or the file cannot be read
    """
    try:
        resolved_path = validate_path_safe(file_path, must_exist=True, must_be_file=True)
    except PathValidationError as e:
        raise FileHelperError(f"Invalid file path: {e}") from e
    except FileNotFoundError as e:
        raise FileHelperError(f"File not found: {file_path}") from e

    try:
        data = resolved_path.read_bytes()
    except (OSError, IOError) as e:
        raise FileHelperError(f"Failed to read {resolved_path}: I/O error: {e}") from e

    logger.debug(f"Read {len(data)} bytes from: {resolved_path}")
    return data


def safe_write_dataframe(
    dataframe: pd.DataFrame, file_path: Path, format: str = "csv", overwrite: bool = False
) -> None:
    """Safely write a DataFrame to file.

    Args:
        dataframe: DataFrame to write
        file_path: Path to write file
        format: File format ("csv" or "json")
        overwrite: If True, overwrite existing file

    Raises:
        FileHelperError: If write fails or file exists and overwrite=False
    """
    try:
        resolved_path = file_path.resolve()
    except (OSError, RuntimeError) as e:
        raise FileHelperError(f"Failed to resolve path {file_path}: {e}") from e

    if resolved_path.exists() and not overwrite:
        raise FileHelperError(f"File already exists: {resolved_path} (use overwrite=True to replace)")

    try:
        ensure_directory(resolved_path.parent)
        if format == "csv":
            dataframe.to_csv(resolved_path, index=False)
        elif format == "json":
            dataframe.to_json(resolved_path, orient="records", indent=2)
        else:
            raise ValueError(f"Unsupported format: {format}")
        logger.debug(f"DataFrame written to: {resolved_path} ({format})")
    except (OSError, IOError) as e:
        raise FileHelperError(f"Failed to write DataFrame to {resolved_path}: I/O error: {e}") from e
    except ValueError as e:
        raise FileHelperError(f"Failed to write DataFrame to {resolved_path}: Invalid format or data: {e}") from e


def slugify(name: str) -> str:
    """Lowercase a name and collapse whitespace runs into hyphens."""
    return re.sub(r"\s+", "-", name.strip().lower())


def generate_dataset_id(prefix: str = "dataset") -> str:
    """Generate a unique dataset ID.

    Returns:
        ID string of the form ``<prefix>-<hex>``
    """
    return f"{prefix}-{uuid.uuid4().hex[:12]}"
