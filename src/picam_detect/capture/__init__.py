"""
Image capture with ordered fallback.

Methods (registered by name):
  libcamera-still - libcamera command-line tool
  picamera2       - Picamera2 camera library
  opencv          - OpenCV frame grab over device indices
  fswebcam        - fswebcam command-line tool (USB webcams)
"""

from .base import CaptureMethod, CaptureResult, ChainResult
from .chain import CaptureChain, capture_image
from .device_library import Picamera2Capture
from .errors import (
    CameraLibraryUnavailable,
    CaptureError,
    CaptureTimeout,
    DeviceOpenFailure,
    EmptyOutput,
    FrameReadFailure,
    NonZeroExit,
    ToolNotFound,
)
from .external_tool import ExternalToolCapture
from .frame_grab import OpenCVFrameGrab
from .registry import METHOD_REGISTRY, build_methods, register

__all__ = [
    "METHOD_REGISTRY",
    "CameraLibraryUnavailable",
    "CaptureChain",
    # Errors
    "CaptureError",
    # Methods
    "CaptureMethod",
    "CaptureResult",
    "CaptureTimeout",
    "ChainResult",
    "DeviceOpenFailure",
    "EmptyOutput",
    "ExternalToolCapture",
    "FrameReadFailure",
    "NonZeroExit",
    "OpenCVFrameGrab",
    "Picamera2Capture",
    "ToolNotFound",
    "build_methods",
    "capture_image",
    "register",
]
