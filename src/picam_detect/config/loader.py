"""
Configuration loading.

Finds the YAML config, follows pointer files, applies environment
variable overrides and validates the result against the schema.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..utils.constants import (
    DEFAULT_CONFIG_NAME,
    ENV_CONFIDENCE,
    ENV_IMAGE_PATH,
    ENV_MODEL_FILE,
    USER_CONFIG_DIR,
)
from .schemas import Config

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the config file cannot be read or is invalid."""

    pass


def find_config_file(config_path: str | None = None) -> Path | None:
    """
    Find config file in standard locations.

    Search order:
    1. Specified path (must exist)
    2. Current directory (picam.yaml)
    3. ~/.config/picam-detect/picam.yaml

    Args:
        config_path: User-specified config path, or None

    Returns:
        Path to config file, or None to use built-in defaults

    Raises:
        ConfigError: If an explicitly specified file does not exist
    """
    if config_path:
        specified = Path(config_path)
        if not specified.exists():
            raise ConfigError(f"Specified config file not found: {config_path}")
        return specified

    search_paths = [
        Path.cwd() / DEFAULT_CONFIG_NAME,
        Path.home() / ".config" / USER_CONFIG_DIR / DEFAULT_CONFIG_NAME,
    ]
    for path in search_paths:
        if path.exists():
            logger.info(f"Using config: {path}")
            return path

    logger.info("No config file found, using defaults")
    return None


def _read_yaml(path: Path) -> dict:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {path} must be a mapping")
    return data


def apply_env_overrides(data: dict) -> dict:
    """
    Apply environment variable overrides to raw config data.

    Args:
        data: Raw configuration dictionary (modified in place)

    Returns:
        The same dictionary, for chaining
    """
    if ENV_IMAGE_PATH in os.environ:
        logger.info(f"Using image path from environment: {ENV_IMAGE_PATH}")
        data.setdefault("capture", {})["image_path"] = os.environ[ENV_IMAGE_PATH]

    if ENV_MODEL_FILE in os.environ:
        logger.info(f"Using model file from environment: {ENV_MODEL_FILE}")
        data.setdefault("detection", {})["model_file"] = os.environ[ENV_MODEL_FILE]

    if ENV_CONFIDENCE in os.environ:
        raw = os.environ[ENV_CONFIDENCE]
        try:
            confidence = float(raw)
        except ValueError as e:
            raise ConfigError(f"{ENV_CONFIDENCE} must be a number, got '{raw}'") from e
        data.setdefault("detection", {})["confidence_threshold"] = confidence

    return data


def parse_config(data: dict) -> Config:
    """Validate raw config data, converting pydantic errors to ConfigError."""
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        lines = []
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"]) or "config"
            lines.append(f"  - {location}: {err['msg']}")
        raise ConfigError("Configuration validation failed:\n" + "\n".join(lines)) from e


def load_config(config_path: str | None = None) -> Config:
    """
    Load, override and validate the configuration.

    Supports pointer files: if the config only contains `use: path/to/config.yaml`,
    that file is loaded instead (relative to the pointer file).

    Args:
        config_path: Optional explicit path to a YAML config

    Returns:
        Validated Config

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    config_file = find_config_file(config_path)

    data: dict = {}
    if config_file is not None:
        data = _read_yaml(config_file)

        if list(data.keys()) == ["use"]:
            pointer_path = config_file.parent / data["use"]
            logger.info(f"Config pointer: {config_file} -> {data['use']}")
            data = _read_yaml(pointer_path)

        logger.info(f"Configuration loaded from {config_file}")

    data = apply_env_overrides(data)
    return parse_config(data)
