"""
YOLO detection over captured images.
"""

from .detector import DetectionResult, detect_objects
from .pipeline import run_pipeline

__all__ = [
    "DetectionResult",
    "detect_objects",
    "run_pipeline",
]
