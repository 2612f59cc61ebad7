"""
Provision Runner - Execute the provisioning plan step by step.

Steps run sequentially. A failing fatal step stops the run; other
failures are logged and the run continues.
"""

import logging
import os
import subprocess
from collections.abc import Callable
from dataclasses import dataclass

from .steps import ProvisionStep

logger = logging.getLogger(__name__)

# Keep the end of long apt/pip output for error messages
OUTPUT_TAIL_CHARS = 2000


class ProvisionError(Exception):
    """Raised when provisioning cannot continue."""

    pass


@dataclass
class StepResult:
    """Outcome of one provisioning step."""

    step: ProvisionStep
    success: bool
    returncode: int | None = None
    skipped: bool = False
    output: str = ""


def require_root() -> None:
    """
    Ensure the process runs as root.

    Raises:
        ProvisionError: If the effective uid is not 0
    """
    if os.geteuid() != 0:
        raise ProvisionError(
            "Provisioning must be run as root (use: sudo picam-detect setup)"
        )


def _tail(text: str | None) -> str:
    if not text:
        return ""
    return text.strip()[-OUTPUT_TAIL_CHARS:]


def run_step(
    step: ProvisionStep,
    dry_run: bool = False,
    run: Callable = subprocess.run,
) -> StepResult:
    """
    Execute a single step.

    Args:
        step: Step to execute
        dry_run: Log the command instead of running it
        run: subprocess.run compatible callable

    Returns:
        StepResult
    """
    if step.skip_if_exists and os.path.exists(step.skip_if_exists):
        logger.warning(f"{step.skip_if_exists} already exists - skipping: {step.description}")
        return StepResult(step=step, success=True, skipped=True)

    if dry_run:
        logger.info(f"[dry-run] {' '.join(step.command)}")
        return StepResult(step=step, success=True, skipped=True)

    logger.info(f"Running: {' '.join(step.command)}")
    try:
        result = run(step.command, capture_output=True, text=True)
    except OSError as e:
        logger.error(f"FAILED: {step.description} ({e})")
        return StepResult(step=step, success=False, output=str(e))

    output = _tail(result.stderr) or _tail(result.stdout)
    if result.returncode == 0:
        logger.info(f"OK: {step.description}")
        return StepResult(step=step, success=True, returncode=0, output=output)

    logger.error(f"FAILED: {step.description} (exit code {result.returncode})")
    if output:
        logger.debug(f"Output: {output}")
    return StepResult(
        step=step, success=False, returncode=result.returncode, output=output
    )


def run_plan(
    steps: list[ProvisionStep],
    dry_run: bool = False,
    run: Callable = subprocess.run,
) -> list[StepResult]:
    """
    Execute all steps in order.

    Args:
        steps: Plan from build_plan()
        dry_run: Log commands without executing them
        run: subprocess.run compatible callable

    Returns:
        One StepResult per step that was reached

    Raises:
        ProvisionError: If a fatal step fails
    """
    results = []
    current_section = None

    for step in steps:
        if step.section != current_section:
            current_section = step.section
            logger.info("=" * 60)
            logger.info(current_section)
            logger.info("=" * 60)

        result = run_step(step, dry_run=dry_run, run=run)
        results.append(result)

        if not result.success and step.fatal:
            raise ProvisionError(f"Fatal step failed: {step.description}")

    failed = [r for r in results if not r.success]
    if failed:
        logger.warning(f"{len(failed)} non-fatal step(s) failed")
    return results
