"""
Utility modules for constants.
"""

from .constants import (
    DEFAULT_CAPTURE_METHODS,
    DEFAULT_CONFIG_NAME,
    DEFAULT_IMAGE_PATH,
    DEFAULT_MODEL_URL,
    DEFAULT_RESULT_PATH,
    ENV_CONFIDENCE,
    ENV_IMAGE_PATH,
    ENV_MODEL_FILE,
    PERSON_CLASS_ID,
)

__all__ = [
    "DEFAULT_CAPTURE_METHODS",
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_IMAGE_PATH",
    "DEFAULT_MODEL_URL",
    "DEFAULT_RESULT_PATH",
    # Environment overrides
    "ENV_CONFIDENCE",
    "ENV_IMAGE_PATH",
    "ENV_MODEL_FILE",
    "PERSON_CLASS_ID",
]
