"""
External Tool Capture - run a command-line camera tool.

The tool writes the image itself; the command template receives the
output path and capture settings as format fields. Runs with a hard
timeout so a wedged camera stack cannot hang the chain.
"""

import logging
import subprocess

from ..config.schemas import CaptureConfig
from .base import CaptureMethod
from .errors import CaptureTimeout, NonZeroExit, ToolNotFound
from .registry import register

logger = logging.getLogger(__name__)

LIBCAMERA_STILL_COMMAND = ["libcamera-still", "-t", "{duration_ms}", "-o", "{output}"]
FSWEBCAM_COMMAND = [
    "fswebcam",
    "-r",
    "{width}x{height}",
    "--no-banner",
    "{output}",
]


class ExternalToolCapture(CaptureMethod):
    """Capture by invoking a subprocess that writes the image file."""

    def __init__(
        self,
        name: str,
        command: list[str],
        timeout: float,
        fields: dict | None = None,
    ):
        self.name = name
        self.command = command
        self.timeout = timeout
        self.fields = fields or {}

    def build_command(self, destination: str) -> list[str]:
        """Fill the command template for one run."""
        values = dict(self.fields, output=destination)
        return [part.format(**values) for part in self.command]

    def capture(self, destination: str) -> None:
        cmd = self.build_command(destination)
        logger.info(f"Running command: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ToolNotFound(f"{cmd[0]} not found") from e
        except PermissionError as e:
            raise ToolNotFound(f"{cmd[0]} is not executable: {e}") from e
        except subprocess.TimeoutExpired as e:
            # subprocess.run kills the child before re-raising
            raise CaptureTimeout(f"{cmd[0]} timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise NonZeroExit(result.returncode, result.stderr or "")

        if result.stdout:
            logger.debug(f"{self.name} stdout: {result.stdout.strip()}")


@register("libcamera-still")
def build_libcamera_still(config: CaptureConfig) -> ExternalToolCapture:
    """libcamera-still, the recommended path on Pi 5 / Bookworm."""
    return ExternalToolCapture(
        "libcamera-still",
        LIBCAMERA_STILL_COMMAND,
        timeout=config.external_tool.timeout_seconds,
        fields={"duration_ms": config.external_tool.duration_ms},
    )


@register("fswebcam")
def build_fswebcam(config: CaptureConfig) -> ExternalToolCapture:
    """fswebcam, for USB webcams exposed through V4L2."""
    return ExternalToolCapture(
        "fswebcam",
        FSWEBCAM_COMMAND,
        timeout=config.external_tool.timeout_seconds,
        fields={
            "width": config.frame_grab.width,
            "height": config.frame_grab.height,
        },
    )
