"""
Capture-then-detect pipeline.
"""

import logging

from ..capture import capture_image
from ..config import Config
from .detector import detect_objects

logger = logging.getLogger(__name__)


def run_pipeline(config: Config) -> int:
    """
    Capture an image and run detection on it.

    Args:
        config: Full configuration

    Returns:
        Process exit code: 0 on success (including zero detections), 1 on failure
    """
    image_path = config.capture.image_path

    capture = capture_image(config.capture)
    if not capture.success:
        logger.error("Failed to capture image. Exiting.")
        return 1

    result = detect_objects(image_path, config.detection)
    if not result.success:
        logger.error("Failed to run detection. Exiting.")
        return 1

    if result.count > 0:
        logger.info(f"Detected {result.count} object(s) of interest")
        logger.info(f"Result saved as {result.result_path}")
    else:
        logger.info("No objects of interest detected in the image")
    return 0
