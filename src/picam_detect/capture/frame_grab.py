"""
Generic frame grab via OpenCV.

Walks device indices in order. Each device gets a fixed number of read
attempts because the first frames after opening are often empty.
"""

import logging
import time
from collections.abc import Callable

import cv2
import numpy as np

from ..config.schemas import CaptureConfig, FrameGrabConfig
from .base import CaptureMethod
from .errors import CaptureError, DeviceOpenFailure, EmptyOutput, FrameReadFailure
from .registry import register

logger = logging.getLogger(__name__)


def _is_valid_frame(ret: bool, frame: np.ndarray | None) -> bool:
    return bool(ret) and frame is not None and frame.size > 0


class OpenCVFrameGrab(CaptureMethod):
    """Capture the first valid frame from the first working device index."""

    name = "opencv"

    def __init__(
        self,
        config: FrameGrabConfig,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self._sleep = sleep

    def read_frame(self, cap: cv2.VideoCapture, index: int) -> np.ndarray | None:
        """
        Read from an open device until a valid frame arrives.

        Returns:
            The frame, or None after `read_attempts` failed reads
        """
        attempts = self.config.read_attempts
        for attempt in range(attempts):
            logger.debug(f"Camera {index}: read attempt {attempt + 1}/{attempts}")
            ret, frame = cap.read()
            if _is_valid_frame(ret, frame):
                return frame
            if attempt < attempts - 1:
                self._sleep(self.config.read_delay_seconds)
        return None

    def _grab_from(self, index: int, destination: str) -> None:
        cap = cv2.VideoCapture(index)
        try:
            if not cap.isOpened():
                raise DeviceOpenFailure(f"Could not open camera {index}")

            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)

            frame = self.read_frame(cap, index)
            if frame is None:
                raise FrameReadFailure(
                    f"Could not read from camera {index} after "
                    f"{self.config.read_attempts} attempts"
                )

            if not cv2.imwrite(destination, frame):
                raise EmptyOutput(f"Could not write frame from camera {index}")
        finally:
            cap.release()

    def capture(self, destination: str) -> None:
        last_error: CaptureError | None = None

        for index in range(self.config.device_count):
            logger.info(f"Trying camera index {index}...")
            try:
                self._grab_from(index, destination)
            except CaptureError as e:
                logger.info(str(e))
                # An opened device says more than one that never opened
                if last_error is None or isinstance(last_error, DeviceOpenFailure):
                    last_error = e
                continue

            logger.info(f"Captured frame from camera {index}")
            return

        summary = f"All {self.config.device_count} camera indices failed"
        raise last_error.__class__(f"{summary}: {last_error}")


@register("opencv")
def build_opencv(config: CaptureConfig) -> OpenCVFrameGrab:
    return OpenCVFrameGrab(config.frame_grab)
