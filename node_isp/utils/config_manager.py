"""Configuration loading utilities."""

from pathlib import Path

import yaml
from pydantic import ValidationError

from ..models.config import NodeISPConfig
from ..services.exceptions import ConfigError


def load_config(path: Path) -> NodeISPConfig:
    """Load and validate the YAML configuration file.

    Args:
        path: Path to the configuration file

    Returns:
        Validated configuration

    Raises:
        ConfigError: If the file is missing, not valid YAML or fails validation
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read configuration {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration {path} must be a mapping")

    try:
        return NodeISPConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration {path}: {e}") from e
