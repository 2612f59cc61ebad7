"""
Configuration loading and validation.

- load_config: Find, read and validate the YAML config
- Config: Complete pydantic configuration schema
"""

from .loader import (
    ConfigError,
    apply_env_overrides,
    find_config_file,
    load_config,
    parse_config,
)
from .schemas import (
    CameraLibraryConfig,
    CaptureConfig,
    Config,
    DetectionConfig,
    ExternalToolConfig,
    FrameGrabConfig,
    ModelConfig,
    ProvisionConfig,
)

__all__ = [
    "CameraLibraryConfig",
    "CaptureConfig",
    "Config",
    # Exception
    "ConfigError",
    "DetectionConfig",
    "ExternalToolConfig",
    "FrameGrabConfig",
    "ModelConfig",
    "ProvisionConfig",
    # Loading
    "apply_env_overrides",
    "find_config_file",
    "load_config",
    "parse_config",
]
