"""Settings loader for YAML/JSON configuration files.

This module handles loading configuration files and validating them
against the settings models. It provides clear, user-friendly error messages.
"""

import json
import pathlib
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ValidationError

from settings.schema import DeclaredSchema, PipelineSettings
from utils import (
    SUPPORTED_CONFIG_FORMATS,
    PathValidationError,
    is_supported_config_format,
    validate_path_safe,
)


class SettingsError(Exception):
    """Raised when a configuration file cannot be loaded or validated."""

    pass


def load_config_file(config_path: Union[str, pathlib.Path]) -> dict:
    """Load configuration from YAML or JSON file.

    Args:
        config_path: Path to configuration file

    Returns:
        Dictionary containing configuration

    Raises:
        SettingsError: If file cannot be loaded or parsed
    """
    try:
        config_path = validate_path_safe(config_path, must_exist=True, must_be_file=True)
    except PathValidationError as e:
        raise SettingsError(f"Invalid configuration path: {e}") from e
    except FileNotFoundError as e:
        raise SettingsError(f"Configuration file not found: {config_path}") from e

    if not is_supported_config_format(config_path):
        raise SettingsError(
            f"Unsupported file format: {config_path.suffix}. "
            f"Supported formats: {SUPPORTED_CONFIG_FORMATS}"
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.suffix.lower() == ".json":
                config = json.load(f)
            else:
                config = yaml.safe_load(f)
    except (OSError, IOError) as e:
        raise SettingsError(f"Failed to read configuration file {config_path}: I/O error: {e}") from e
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML syntax in {config_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SettingsError(f"Invalid JSON syntax in {config_path}: {e}") from e
    except UnicodeDecodeError as e:
        raise SettingsError(f"Failed to decode configuration file {config_path}: Encoding error: {e}") from e

    if config is None:
        return {}

    if not isinstance(config, dict):
        raise SettingsError(f"Configuration must be a dictionary, got {type(config).__name__}")

    return config


def _format_validation_error(error: ValidationError) -> str:
    """Format a Pydantic validation error for display."""
    lines = []
    for err in error.errors():
        field_path = " -> ".join(str(loc) for loc in err.get("loc", []))
        lines.append(f"  {field_path}: {err.get('msg', 'Validation error')} ({err.get('type', 'unknown')})")
    return "\n".join(lines)


def _validate(model: type[BaseModel], config: dict, label: str):
    try:
        return model(**config)
    except ValidationError as e:
        raise SettingsError(f"{label} validation failed:\n{_format_validation_error(e)}") from e


def validate_settings(config: dict) -> PipelineSettings:
    """Validate a configuration mapping against PipelineSettings."""
    return _validate(PipelineSettings, config, "Settings")


def load_settings(config_path: Optional[Union[str, pathlib.Path]] = None) -> PipelineSettings:
    """Load and validate pipeline settings.

    Args:
        config_path: Path to YAML or JSON file; defaults are used when None

    Returns:
        Validated PipelineSettings instance

    Raises:
        SettingsError: If loading or validation fails
    """
    if config_path is None:
        return PipelineSettings()
    return validate_settings(load_config_file(config_path))


def load_declared_schema(schema_path: Union[str, pathlib.Path]) -> DeclaredSchema:
    """Load and validate a declared schema file.

    Raises:
        SettingsError: If loading or validation fails
    """
    return _validate(DeclaredSchema, load_config_file(schema_path), "Declared schema")
