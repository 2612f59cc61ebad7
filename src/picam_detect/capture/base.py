"""
Capture method interface and result types.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from .errors import CaptureError, EmptyOutput

logger = logging.getLogger(__name__)


@dataclass
class CaptureResult:
    """
    Outcome of a single capture attempt.

    Attributes:
        success: True only if the destination holds a non-empty file
        method: Name of the method that made the attempt
        size_bytes: Size of the produced file (0 if absent)
        message: Human-readable diagnostic
        error: Error kind (exception class name) on failure, else None
    """

    success: bool
    method: str
    size_bytes: int = 0
    message: str = ""
    error: str | None = None

    @classmethod
    def failed(cls, method: str, exc: BaseException) -> "CaptureResult":
        """Build a failed result from the exception that ended the attempt."""
        return cls(
            success=False,
            method=method,
            message=str(exc) or exc.__class__.__name__,
            error=exc.__class__.__name__,
        )


@dataclass
class ChainResult:
    """Outcome of running the whole capture chain."""

    success: bool
    method: str | None = None
    size_bytes: int = 0
    attempts: list[CaptureResult] = field(default_factory=list)

    @property
    def attempted_methods(self) -> list[str]:
        return [a.method for a in self.attempts]


def output_size(path: str) -> int:
    """Return the size of path in bytes, or 0 if it does not exist."""
    try:
        return os.path.getsize(path)
    except OSError:
        return 0


class CaptureMethod(ABC):
    """
    A named capture strategy.

    Subclasses implement `capture()`, which writes an image to the
    destination or raises. `attempt()` wraps it so that no exception
    escapes and the output file is validated.
    """

    name: str = "capture"

    @abstractmethod
    def capture(self, destination: str) -> None:
        """
        Write one image to destination.

        Raises:
            CaptureError: (or any other exception) on failure
        """
        ...

    def attempt(self, destination: str) -> CaptureResult:
        """
        Run one capture attempt and report the outcome.

        Args:
            destination: Path the image must be written to

        Returns:
            CaptureResult, successful only if the file exists and is non-empty
        """
        try:
            self.capture(destination)
        except CaptureError as e:
            return CaptureResult.failed(self.name, e)
        except Exception as e:
            logger.debug(f"{self.name}: unexpected error", exc_info=True)
            return CaptureResult.failed(self.name, e)

        size = output_size(destination)
        if size <= 0:
            return CaptureResult.failed(
                self.name, EmptyOutput(f"{destination} is missing or empty")
            )

        return CaptureResult(
            success=True,
            method=self.name,
            size_bytes=size,
            message=f"saved {size} bytes to {destination}",
        )
