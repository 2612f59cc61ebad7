"""
Tests for the provisioning plan, runner, model download and diagnostics.
"""

import os
import subprocess
import tempfile
import unittest
from unittest import mock

import requests

from src.picam_detect.config import ModelConfig, ProvisionConfig
from src.picam_detect.provision import (
    ModelDownloadError,
    ProvisionError,
    ProvisionStep,
    ProvisionTarget,
    build_plan,
    ensure_model,
    require_root,
    resolve_target,
    run_plan,
)
from src.picam_detect.provision.diagnostics import (
    list_v4l2_devices,
    read_board_model,
    read_os_version,
)


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess([], returncode, stdout=stdout, stderr=stderr)


class TestBuildPlan(unittest.TestCase):
    """Test the ordered provisioning plan."""

    def setUp(self):
        self.target = ProvisionTarget(
            user="pi",
            home="/home/pi",
            venv_dir="/home/pi/yolo_env",
            models_dir="/home/pi/yolo_models",
        )
        patcher = mock.patch(
            "src.picam_detect.provision.steps.glob.glob",
            return_value=["/dev/video1", "/dev/video0"],
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    def commands(self, config):
        return [step.command for step in build_plan(config, self.target)]

    def test_starts_with_fatal_update(self):
        """Test that apt-get update runs first and is fatal."""
        steps = build_plan(ProvisionConfig(), self.target)

        self.assertEqual(steps[0].command, ["apt-get", "update"])
        self.assertTrue(steps[0].fatal)

    def test_sections_in_order(self):
        """Test that every setup section is present in order."""
        sections = []
        for step in build_plan(ProvisionConfig(), self.target):
            if not sections or sections[-1] != step.section:
                sections.append(step.section)

        self.assertEqual(
            sections,
            [
                "Updating System",
                "Installing Required Packages",
                "Installing Camera Libraries",
                "Enabling Camera Interfaces",
                "Setting Camera Permissions",
                "Loading Camera Modules",
                "Setting up YOLOv8 Environment",
            ],
        )

    def test_user_and_devices(self):
        """Test the video group and device permission steps."""
        commands = self.commands(ProvisionConfig())

        self.assertIn(["usermod", "-a", "-G", "video", "pi"], commands)
        self.assertIn(["chmod", "666", "/dev/video0", "/dev/video1"], commands)
        self.assertIn(["modprobe", "bcm2835-v4l2"], commands)

    def test_optional_steps_disabled(self):
        """Test that upgrade and i2c can be turned off."""
        commands = self.commands(ProvisionConfig(upgrade_system=False, enable_i2c=False))

        self.assertNotIn(["apt-get", "upgrade", "-y"], commands)
        self.assertNotIn(["raspi-config", "nonint", "do_i2c", "0"], commands)

    def test_venv_created_as_user_once(self):
        """Test that venv creation runs as the user and skips when present."""
        steps = build_plan(ProvisionConfig(), self.target)
        venv = [s for s in steps if "venv" in s.command][0]

        self.assertEqual(venv.command[:3], ["sudo", "-u", "pi"])
        self.assertEqual(venv.skip_if_exists, "/home/pi/yolo_env")

    def test_installs_tool_into_venv(self):
        """Test that picam-detect itself is installed into the venv last."""
        steps = build_plan(ProvisionConfig(), self.target)

        self.assertEqual(
            steps[-1].command,
            ["sudo", "-u", "pi", "-H", "/home/pi/yolo_env/bin/pip", "install", "picam-detect"],
        )
        self.assertTrue(steps[-1].fatal)

    def test_custom_install_source(self):
        """Test installing from a local checkout, or not at all."""
        commands = self.commands(ProvisionConfig(install_source="/opt/picam-detect"))
        self.assertEqual(commands[-1][-2:], ["install", "/opt/picam-detect"])

        commands = self.commands(ProvisionConfig(install_source=None))
        self.assertFalse(any("picam-detect" in cmd for cmd in commands))

    def test_no_video_devices(self):
        """Test that chmod is omitted when no devices exist."""
        with mock.patch("src.picam_detect.provision.steps.glob.glob", return_value=[]):
            commands = self.commands(ProvisionConfig())

        self.assertFalse(any(cmd[0] == "chmod" for cmd in commands))


class TestResolveTarget(unittest.TestCase):
    """Test user and home directory resolution."""

    @mock.patch("src.picam_detect.provision.steps.pwd.getpwnam", side_effect=KeyError("pi"))
    def test_explicit_user_without_passwd_entry(self, _getpwnam):
        """Test fallback to /home/<user>."""
        target = resolve_target(ProvisionConfig(user="pi"))

        self.assertEqual(target.user, "pi")
        self.assertEqual(target.home, "/home/pi")
        self.assertEqual(target.venv_dir, "/home/pi/yolo_env")
        self.assertEqual(target.models_dir, "/home/pi/yolo_models")

    @mock.patch.dict(os.environ, {"SUDO_USER": "alice"})
    @mock.patch("src.picam_detect.provision.steps.pwd.getpwnam")
    def test_sudo_user(self, getpwnam):
        """Test that the invoking sudo user is provisioned."""
        getpwnam.return_value = mock.Mock(pw_dir="/srv/alice")

        target = resolve_target(ProvisionConfig())

        self.assertEqual(target.user, "alice")
        self.assertEqual(target.venv_dir, "/srv/alice/yolo_env")


class TestRunPlan(unittest.TestCase):
    """Test step execution semantics."""

    def test_fatal_failure_stops(self):
        """Test that a failing fatal step raises and stops the run."""
        steps = [
            ProvisionStep("S", "first", ["false"], fatal=True),
            ProvisionStep("S", "second", ["true"]),
        ]
        run = mock.Mock(return_value=completed(returncode=100, stderr="E: locked"))

        with self.assertRaises(ProvisionError):
            run_plan(steps, run=run)
        self.assertEqual(run.call_count, 1)

    def test_non_fatal_failure_continues(self):
        """Test that non-fatal failures are recorded and the run continues."""
        steps = [
            ProvisionStep("S", "first", ["modprobe", "x"]),
            ProvisionStep("S", "second", ["true"]),
        ]
        run = mock.Mock(side_effect=[completed(returncode=1), completed()])

        results = run_plan(steps, run=run)

        self.assertEqual([r.success for r in results], [False, True])
        self.assertEqual(results[0].returncode, 1)

    def test_missing_binary_is_failure(self):
        """Test that OSError from the runner is a failed step."""
        steps = [ProvisionStep("S", "raspi", ["raspi-config"])]
        run = mock.Mock(side_effect=FileNotFoundError("raspi-config"))

        results = run_plan(steps, run=run)

        self.assertFalse(results[0].success)

    def test_dry_run_executes_nothing(self):
        """Test that dry-run only logs."""
        steps = [ProvisionStep("S", "update", ["apt-get", "update"], fatal=True)]
        run = mock.Mock()

        results = run_plan(steps, dry_run=True, run=run)

        run.assert_not_called()
        self.assertTrue(results[0].skipped)

    def test_skip_if_exists(self):
        """Test that an existing path skips the step."""
        with tempfile.TemporaryDirectory() as existing:
            steps = [ProvisionStep("S", "venv", ["python3", "-m", "venv"], skip_if_exists=existing)]
            run = mock.Mock()

            results = run_plan(steps, run=run)

        run.assert_not_called()
        self.assertTrue(results[0].skipped)
        self.assertTrue(results[0].success)

    @mock.patch("src.picam_detect.provision.runner.os.geteuid", return_value=1000)
    def test_require_root(self, _geteuid):
        """Test that non-root users are refused."""
        with self.assertRaises(ProvisionError):
            require_root()


class FakeResponse:
    """Minimal streaming response for requests.get."""

    def __init__(self, chunks=(), status=200):
        self.chunks = list(chunks)
        self.status_code = status

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def iter_content(self, chunk_size=1):
        return iter(self.chunks)


class TestEnsureModel(unittest.TestCase):
    """Test model weights download."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.temp_dir.name, "models", "yolov8n.pt")
        self.config = ModelConfig(url="https://example.invalid/yolov8n.pt", max_retries=2)
        patcher = mock.patch("src.picam_detect.provision.model_download.requests.get")
        self.get = patcher.start()
        self.addCleanup(patcher.stop)
        self.sleeps = []

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_existing_model_skipped(self):
        """Test that present weights are not downloaded again."""
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "wb") as f:
            f.write(b"weights")

        self.assertFalse(ensure_model(self.path, self.config, sleep=self.sleeps.append))
        self.get.assert_not_called()

    def test_download(self):
        """Test that chunks are written and the partial file renamed."""
        self.get.return_value = FakeResponse([b"abc", b"", b"def"])

        self.assertTrue(ensure_model(self.path, self.config, sleep=self.sleeps.append))

        with open(self.path, "rb") as f:
            self.assertEqual(f.read(), b"abcdef")
        self.assertFalse(os.path.exists(self.path + ".part"))

    def test_client_error_not_retried(self):
        """Test that 404 fails immediately without leaving files."""
        self.get.return_value = FakeResponse(status=404)

        with self.assertRaises(ModelDownloadError):
            ensure_model(self.path, self.config, sleep=self.sleeps.append)

        self.assertEqual(self.get.call_count, 1)
        self.assertFalse(os.path.exists(self.path))
        self.assertFalse(os.path.exists(self.path + ".part"))

    def test_transient_error_retried(self):
        """Test that connection errors are retried with backoff."""
        self.get.side_effect = [
            requests.ConnectionError("reset"),
            FakeResponse([b"weights"]),
        ]

        self.assertTrue(ensure_model(self.path, self.config, sleep=self.sleeps.append))
        self.assertEqual(self.sleeps, [1.0])

    def test_retries_exhausted(self):
        """Test failure after max_retries + 1 attempts."""
        self.get.side_effect = requests.Timeout("slow")

        with self.assertRaises(ModelDownloadError):
            ensure_model(self.path, self.config, sleep=self.sleeps.append)

        self.assertEqual(self.get.call_count, 3)
        self.assertEqual(self.sleeps, [1.0, 2.0])

    def test_empty_body(self):
        """Test that an empty download is rejected."""
        self.get.return_value = FakeResponse([])

        with self.assertRaises(ModelDownloadError):
            ensure_model(self.path, self.config, sleep=self.sleeps.append)
        self.assertFalse(os.path.exists(self.path))


class TestDiagnostics(unittest.TestCase):
    """Test host diagnostics parsing."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.temp_dir.cleanup()

    def write(self, name, text):
        path = os.path.join(self.temp_dir.name, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def test_board_model(self):
        """Test the Model line of /proc/cpuinfo."""
        path = self.write(
            "cpuinfo",
            "processor\t: 0\nHardware\t: BCM2835\nModel\t\t: Raspberry Pi 5 Model B Rev 1.0\n",
        )
        self.assertEqual(read_board_model(path), "Raspberry Pi 5 Model B Rev 1.0")

    def test_os_version(self):
        """Test PRETTY_NAME parsing."""
        path = self.write(
            "os-release",
            'NAME="Debian GNU/Linux"\nPRETTY_NAME="Debian GNU/Linux 12 (bookworm)"\n',
        )
        self.assertEqual(read_os_version(path), "Debian GNU/Linux 12 (bookworm)")

    def test_missing_files(self):
        """Test that missing files give None instead of raising."""
        missing = os.path.join(self.temp_dir.name, "missing")
        self.assertIsNone(read_board_model(missing))
        self.assertIsNone(read_os_version(missing))

    @mock.patch(
        "src.picam_detect.provision.diagnostics.subprocess.run",
        side_effect=FileNotFoundError("v4l2-ctl"),
    )
    def test_v4l2_missing(self, _run):
        """Test that a missing v4l2-ctl returns None."""
        self.assertIsNone(list_v4l2_devices())


if __name__ == "__main__":
    unittest.main()
