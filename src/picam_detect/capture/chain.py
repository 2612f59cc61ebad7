"""
Capture Fallback Chain

Tries each capture method in priority order and stops at the first one
that leaves a non-empty image at the destination. The destination is
cleared before every attempt so a file from an earlier run can never be
mistaken for a fresh capture.
"""

import logging
import os

from ..config.schemas import CaptureConfig
from .base import CaptureMethod, CaptureResult, ChainResult, output_size
from .errors import EmptyOutput
from .registry import build_methods

logger = logging.getLogger(__name__)


def remove_stale_output(path: str) -> None:
    """Delete path if present. Raises OSError if it exists but cannot be removed."""
    if os.path.lexists(path):
        os.remove(path)
        logger.debug(f"Removed stale file: {path}")


class CaptureChain:
    """Ordered fallback over capture methods."""

    def __init__(self, methods: list[CaptureMethod]):
        if not methods:
            raise ValueError("CaptureChain needs at least one method")
        self.methods = list(methods)

    def _run_one(self, method: CaptureMethod, destination: str) -> CaptureResult:
        try:
            remove_stale_output(destination)
        except OSError as e:
            return CaptureResult.failed(method.name, e)

        try:
            result = method.attempt(destination)
        except Exception as e:
            logger.debug(f"{method.name}: attempt raised", exc_info=True)
            return CaptureResult.failed(method.name, e)

        if not result.success:
            return result

        # Trust the file, not the method's report
        size = output_size(destination)
        if size <= 0:
            return CaptureResult.failed(
                method.name, EmptyOutput(f"{destination} is missing or empty")
            )
        result.size_bytes = size
        return result

    def run(self, destination: str) -> ChainResult:
        """
        Capture an image to destination.

        Args:
            destination: Image path; overwritten by each attempt

        Returns:
            ChainResult with the winning method and file size, or success=False
            if every method failed (the destination is then left absent)
        """
        chain_result = ChainResult(success=False)

        for method in self.methods:
            logger.info(f"Trying {method.name} method...")
            result = self._run_one(method, destination)
            chain_result.attempts.append(result)

            if result.success:
                logger.info(
                    f"{method.name} method successful ({result.size_bytes} bytes)"
                )
                chain_result.success = True
                chain_result.method = method.name
                chain_result.size_bytes = result.size_bytes
                return chain_result

            logger.warning(f"{method.name} method failed [{result.error}]: {result.message}")

        try:
            remove_stale_output(destination)
        except OSError as e:
            logger.warning(f"Could not remove partial output {destination}: {e}")

        failed = ", ".join(f"{a.method}={a.error}" for a in chain_result.attempts)
        logger.error(f"All camera methods failed ({failed})")
        return chain_result


def capture_image(config: CaptureConfig, destination: str | None = None) -> ChainResult:
    """
    Build the configured chain and capture one image.

    Args:
        config: Capture configuration
        destination: Override for config.image_path

    Returns:
        ChainResult; success=False without any attempts if the destination
        directory cannot be created
    """
    destination = destination or config.image_path
    parent = os.path.dirname(os.path.abspath(destination))
    try:
        os.makedirs(parent, exist_ok=True)
    except OSError as e:
        logger.error(f"Cannot create output directory {parent}: {e}")
        return ChainResult(success=False)

    chain = CaptureChain(build_methods(config))
    return chain.run(destination)
