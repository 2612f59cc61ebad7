"""
Provisioning plan for a Raspberry Pi camera + YOLO host.

Each step is a single one-shot command. The plan is built up front so it
can be printed (dry run) or executed in order by the runner.
"""

import glob
import logging
import os
import pwd
from dataclasses import dataclass

from ..config.schemas import ProvisionConfig

logger = logging.getLogger(__name__)

PYTHON_PACKAGES = ["python3-pip", "python3-venv", "python3-dev"]
LIBCAMERA_PACKAGES = [
    "libcamera-apps",
    "python3-picamera2",
    "libcamera-dev",
    "python3-libcamera",
]
CAMERA_TOOL_PACKAGES = [
    "libraspberrypi-bin",
    "libraspberrypi-dev",
    "v4l-utils",
    "fswebcam",
    "i2c-tools",
]
VIDEO_MODULES = ["bcm2835-v4l2", "v4l2_common", "videodev"]


@dataclass
class ProvisionStep:
    """
    One command in the provisioning plan.

    Attributes:
        section: Heading the step is grouped under
        description: What the step achieves (logged on success/failure)
        command: argv to execute
        fatal: Abort the whole run if this step fails
        skip_if_exists: Skip the step when this path already exists
    """

    section: str
    description: str
    command: list[str]
    fatal: bool = False
    skip_if_exists: str | None = None


@dataclass
class ProvisionTarget:
    """Account and directories the plan provisions."""

    user: str
    home: str
    venv_dir: str
    models_dir: str


def resolve_target(config: ProvisionConfig) -> ProvisionTarget:
    """Work out which user is being provisioned and where their files go."""
    user = (
        config.user
        or os.environ.get("SUDO_USER")
        or os.environ.get("LOGNAME")
        or pwd.getpwuid(os.getuid()).pw_name
    )
    try:
        home = pwd.getpwnam(user).pw_dir
    except KeyError:
        home = os.path.join("/home", user)

    return ProvisionTarget(
        user=user,
        home=home,
        venv_dir=os.path.join(home, config.venv_dirname),
        models_dir=os.path.join(home, config.models_dirname),
    )


def _as_user(user: str, command: list[str]) -> list[str]:
    return ["sudo", "-u", user, "-H", *command]


def build_plan(config: ProvisionConfig, target: ProvisionTarget) -> list[ProvisionStep]:
    """
    Build the ordered list of provisioning steps.

    Args:
        config: Provisioning settings
        target: Resolved user and directories

    Returns:
        Steps in execution order
    """
    steps = [
        ProvisionStep(
            "Updating System", "Package lists updated", ["apt-get", "update"], fatal=True
        ),
    ]

    if config.upgrade_system:
        steps.append(
            ProvisionStep("Updating System", "System updated", ["apt-get", "upgrade", "-y"])
        )

    steps += [
        ProvisionStep(
            "Installing Required Packages",
            "Basic Python packages installed",
            ["apt-get", "install", "-y", *PYTHON_PACKAGES],
            fatal=True,
        ),
        ProvisionStep(
            "Installing Camera Libraries",
            "libcamera libraries installed",
            ["apt-get", "install", "-y", *LIBCAMERA_PACKAGES],
        ),
        ProvisionStep(
            "Installing Camera Libraries",
            "Additional camera tools installed",
            ["apt-get", "install", "-y", *CAMERA_TOOL_PACKAGES],
        ),
        ProvisionStep(
            "Enabling Camera Interfaces",
            "Camera interface enabled",
            ["raspi-config", "nonint", "do_camera", "0"],
        ),
    ]

    if config.enable_i2c:
        steps.append(
            ProvisionStep(
                "Enabling Camera Interfaces",
                "I2C interface enabled",
                ["raspi-config", "nonint", "do_i2c", "0"],
            )
        )

    steps.append(
        ProvisionStep(
            "Setting Camera Permissions",
            f"User {target.user} added to video group",
            ["usermod", "-a", "-G", "video", target.user],
        )
    )

    video_devices = sorted(glob.glob("/dev/video*"))
    if video_devices:
        steps.append(
            ProvisionStep(
                "Setting Camera Permissions",
                "Video device permissions set",
                ["chmod", "666", *video_devices],
            )
        )
    else:
        logger.warning("No /dev/video* devices yet - skipping permission fix")

    for module in VIDEO_MODULES:
        steps.append(
            ProvisionStep(
                "Loading Camera Modules", f"{module} module loaded", ["modprobe", module]
            )
        )

    pip = os.path.join(target.venv_dir, "bin", "pip")
    steps += [
        ProvisionStep(
            "Setting up YOLOv8 Environment",
            "Models directory created",
            _as_user(target.user, ["mkdir", "-p", target.models_dir]),
        ),
        ProvisionStep(
            "Setting up YOLOv8 Environment",
            "Virtual environment created",
            _as_user(target.user, ["python3", "-m", "venv", target.venv_dir]),
            fatal=True,
            skip_if_exists=target.venv_dir,
        ),
        ProvisionStep(
            "Setting up YOLOv8 Environment",
            "pip upgraded",
            _as_user(target.user, [pip, "install", "--upgrade", "pip"]),
        ),
    ]

    if config.pip_packages:
        steps.append(
            ProvisionStep(
                "Setting up YOLOv8 Environment",
                "YOLOv8 libraries installed",
                _as_user(target.user, [pip, "install", *config.pip_packages]),
                fatal=True,
            )
        )

    if config.install_source:
        steps.append(
            ProvisionStep(
                "Setting up YOLOv8 Environment",
                "picam-detect installed",
                _as_user(target.user, [pip, "install", config.install_source]),
                fatal=True,
            )
        )

    return steps
