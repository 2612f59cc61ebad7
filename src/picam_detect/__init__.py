"""
picam-detect

Raspberry Pi camera provisioning, image capture and YOLO person detection.

Package structure:
  capture/    - Ordered capture fallback chain (libcamera-still, Picamera2, OpenCV)
  detection/  - YOLO detection over captured images
  provision/  - Setup plan, model download, diagnostics
  config/     - Configuration loading and validation
  utils/      - Constants
"""

__version__ = "1.0.0"

from .capture import (
    CaptureChain,
    CaptureMethod,
    CaptureResult,
    ChainResult,
    capture_image,
)
from .config import Config, ConfigError, load_config

__all__ = [
    # Capture
    "CaptureChain",
    "CaptureMethod",
    "CaptureResult",
    "ChainResult",
    # Config
    "Config",
    "ConfigError",
    "capture_image",
    "load_config",
]
