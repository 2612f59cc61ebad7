"""
Host diagnostics: board model, OS, and visible camera devices.
"""

import glob
import logging
import subprocess

logger = logging.getLogger(__name__)

CPUINFO_PATH = "/proc/cpuinfo"
OS_RELEASE_PATH = "/etc/os-release"


def _read_text(path: str) -> str | None:
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return f.read()
    except OSError:
        return None


def read_board_model(path: str = CPUINFO_PATH) -> str | None:
    """Return the `Model` line of /proc/cpuinfo (Raspberry Pi kernels only)."""
    text = _read_text(path)
    if text is None:
        return None
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if sep and key.strip() == "Model":
            return value.strip()
    return None


def read_os_version(path: str = OS_RELEASE_PATH) -> str | None:
    """Return PRETTY_NAME from os-release."""
    text = _read_text(path)
    if text is None:
        return None
    for line in text.splitlines():
        if line.startswith("PRETTY_NAME="):
            return line.split("=", 1)[1].strip().strip('"')
    return None


def list_video_devices(pattern: str = "/dev/video*") -> list[str]:
    return sorted(glob.glob(pattern))


def list_v4l2_devices(timeout: float = 10.0) -> str | None:
    """Output of `v4l2-ctl --list-devices`, or None if unavailable."""
    try:
        result = subprocess.run(
            ["v4l2-ctl", "--list-devices"],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"v4l2-ctl unavailable: {e}")
        return None
    return (result.stdout or result.stderr or "").strip()


def collect_diagnostics() -> dict:
    """
    Gather camera-relevant facts about this host.

    Returns:
        Dict with board_model, os_version, video_devices and v4l2_devices.
        Fields that cannot be determined are None (or an empty list).
    """
    return {
        "board_model": read_board_model(),
        "os_version": read_os_version(),
        "video_devices": list_video_devices(),
        "v4l2_devices": list_v4l2_devices(),
    }


def print_diagnostics(info: dict) -> None:
    """Print a diagnostics dict for humans."""
    print("\n" + "=" * 70)
    print("CAMERA DIAGNOSTICS")
    print("=" * 70)
    print(f"Device model: {info.get('board_model') or 'unknown'}")
    print(f"Operating system: {info.get('os_version') or 'unknown'}")

    devices = info.get("video_devices") or []
    if devices:
        print("\nVideo devices found:")
        for device in devices:
            print(f"  {device}")
    else:
        print("\nNo video devices found. Make sure the camera is properly connected.")

    v4l2 = info.get("v4l2_devices")
    if v4l2:
        print("\nDetailed camera information:")
        print(v4l2)
    print("=" * 70 + "\n")
