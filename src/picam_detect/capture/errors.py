"""
Capture failure taxonomy.

Methods raise these internally; the chain converts every one of them
into a failed CaptureResult and moves on to the next method.
"""


class CaptureError(Exception):
    """Base class for a failed capture attempt."""

    pass


class ToolNotFound(CaptureError):
    """External capture binary is missing or not executable."""

    pass


class NonZeroExit(CaptureError):
    """External capture tool exited with a non-zero return code."""

    def __init__(self, returncode: int, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        message = f"exited with code {returncode}"
        if stderr:
            message += f": {stderr.strip()}"
        super().__init__(message)


class CaptureTimeout(CaptureError):
    """Capture did not finish within its time budget."""

    pass


class EmptyOutput(CaptureError):
    """Destination file is missing or zero bytes after the attempt."""

    pass


class DeviceOpenFailure(CaptureError):
    """Camera device could not be opened."""

    pass


class FrameReadFailure(CaptureError):
    """Device opened but never produced a usable frame."""

    pass


class CameraLibraryUnavailable(CaptureError):
    """Optional camera library (e.g. picamera2) is not installed."""

    pass
