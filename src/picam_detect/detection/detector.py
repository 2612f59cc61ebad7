"""
Object detection on a captured still using YOLO.

Counts detections of the configured classes (persons by default) and
writes an annotated copy of the image.
"""

import logging
import os
from dataclasses import dataclass

import cv2
import torch
from ultralytics import YOLO

from ..config.schemas import DetectionConfig

logger = logging.getLogger(__name__)


@dataclass
class DetectionResult:
    """Outcome of running detection on one image."""

    success: bool
    count: int = 0
    result_path: str | None = None
    message: str = ""


def _initialize_model(model_file: str) -> YOLO:
    """Load YOLO weights onto GPU if available."""
    device = "cuda" if torch.cuda.is_available() else "cpu"
    model = YOLO(model_file)
    model.to(device)

    logger.info(f"Model initialized: {model_file}")
    logger.info(f"Device: {device}")
    return model


def detect_objects(image_path: str, config: DetectionConfig) -> DetectionResult:
    """
    Detect objects of interest in an image.

    Args:
        image_path: Captured image to analyze
        config: Detection settings (model, threshold, classes, result path)

    Returns:
        DetectionResult with the number of detections
    """
    if not os.path.exists(image_path):
        message = f"Image not found: {image_path}"
        logger.error(message)
        return DetectionResult(success=False, message=message)

    try:
        logger.info("Loading YOLO model...")
        model = _initialize_model(config.model_file)

        logger.info("Running detection...")
        results = model(
            image_path,
            conf=config.confidence_threshold,
            classes=config.classes,
            verbose=False,
        )
        first = results[0]

        annotated = first.plot()
        if not cv2.imwrite(config.result_path, annotated):
            raise OSError(f"Could not write result image {config.result_path}")

        count = len(first.boxes)
    except Exception as e:
        message = f"Error during detection: {e}"
        logger.error(message, exc_info=True)
        return DetectionResult(success=False, message=message)

    logger.info(f"Detection complete. Found {count} object(s).")
    return DetectionResult(
        success=True,
        count=count,
        result_path=config.result_path,
        message=f"{count} detection(s)",
    )
