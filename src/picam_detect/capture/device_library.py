"""
Camera library capture via Picamera2.

picamera2 is only installable on Raspberry Pi OS, so it is imported
lazily and a missing library is an ordinary failed attempt.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from ..config.schemas import CaptureConfig
from .base import CaptureMethod
from .errors import CameraLibraryUnavailable, DeviceOpenFailure
from .registry import register

logger = logging.getLogger(__name__)


def _default_camera_factory() -> Any:
    try:
        from picamera2 import Picamera2
    except ImportError as e:
        raise CameraLibraryUnavailable(f"picamera2 is not installed: {e}") from e
    return Picamera2()


class Picamera2Capture(CaptureMethod):
    """
    Capture a still through the stateful Picamera2 handle.

    Lifecycle: open -> configure -> start -> warm up -> capture_file -> stop -> close.
    The handle is always stopped and closed before returning.
    """

    name = "picamera2"

    def __init__(
        self,
        warmup_seconds: float,
        camera_factory: Callable[[], Any] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.warmup_seconds = warmup_seconds
        self._camera_factory = camera_factory or _default_camera_factory
        self._sleep = sleep

    def _open(self) -> Any:
        try:
            return self._camera_factory()
        except CameraLibraryUnavailable:
            raise
        except Exception as e:
            raise DeviceOpenFailure(f"Could not open camera: {e}") from e

    def capture(self, destination: str) -> None:
        camera = self._open()
        started = False
        try:
            camera.configure(camera.create_still_configuration())
            camera.start()
            started = True

            if self.warmup_seconds > 0:
                logger.info("Camera warming up...")
                self._sleep(self.warmup_seconds)

            logger.info(f"Capturing image to {destination}...")
            camera.capture_file(destination)
        finally:
            try:
                if started:
                    camera.stop()
            finally:
                camera.close()


@register("picamera2")
def build_picamera2(config: CaptureConfig) -> Picamera2Capture:
    return Picamera2Capture(warmup_seconds=config.camera_library.warmup_seconds)
