"""
Raspberry Pi provisioning: packages, interfaces, permissions, Python
environment, model weights and diagnostics.
"""

from .diagnostics import collect_diagnostics, print_diagnostics
from .model_download import ModelDownloadError, ensure_model
from .runner import ProvisionError, StepResult, require_root, run_plan, run_step
from .steps import ProvisionStep, ProvisionTarget, build_plan, resolve_target

__all__ = [
    "ModelDownloadError",
    # Runner
    "ProvisionError",
    # Plan
    "ProvisionStep",
    "ProvisionTarget",
    "StepResult",
    "build_plan",
    # Diagnostics
    "collect_diagnostics",
    # Model
    "ensure_model",
    "print_diagnostics",
    "require_root",
    "resolve_target",
    "run_plan",
    "run_step",
]
