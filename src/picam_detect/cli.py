"""
picam-detect CLI
Main entry point for capture, detection and Raspberry Pi provisioning.

Commands:
  capture         Capture one image with the fallback chain
  detect          Run YOLO detection on an existing image
  run             Capture, then detect
  setup           Provision this Raspberry Pi (run with sudo)
  download-model  Fetch the pretrained YOLO weights
  check           Show camera diagnostics
"""

import argparse
import logging
import os
import shutil
import sys

import questionary

from .capture import capture_image
from .config import Config, ConfigError, load_config
from .provision import (
    ModelDownloadError,
    ProvisionError,
    build_plan,
    collect_diagnostics,
    ensure_model,
    print_diagnostics,
    require_root,
    resolve_target,
    run_plan,
)

logger = logging.getLogger(__name__)

SETUP_TEST_IMAGE = "/tmp/test_camera.jpg"
SETUP_TEST_METHODS = ["libcamera-still", "fswebcam"]


def setup_logging(quiet: bool = False, verbose: bool = False) -> None:
    """
    Setup logging configuration.

    Args:
        quiet: If True, only show warnings and errors
        verbose: If True, include debug output (wins over quiet)
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    # Custom formatter with shorter module names
    class ShortNameFormatter(logging.Formatter):
        def format(self, record):
            record.name = record.name.replace("picam_detect.", "pd.")
            return super().format(record)

    handler = logging.StreamHandler()
    handler.setFormatter(
        ShortNameFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s", datefmt="%H:%M:%S"
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(level)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="picam-detect",
        description="Raspberry Pi camera capture and YOLO person detection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  picam-detect capture                 # Save captured.jpg using the first working method
  picam-detect capture -o /tmp/a.jpg   # Capture to a specific path
  picam-detect run                     # Capture and count persons
  sudo picam-detect setup              # Provision this Pi
  picam-detect setup --dry-run         # Show provisioning commands only

Environment Variables:
  PICAM_IMAGE_PATH  - Override capture.image_path
  PICAM_MODEL_FILE  - Override detection.model_file
  PICAM_CONFIDENCE  - Override detection.confidence_threshold
        """,
    )

    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Path to config file (default: ./picam.yaml, then ~/.config/picam-detect/picam.yaml)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Only show warnings and errors"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug output"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    capture = sub.add_parser("capture", help="Capture one image")
    capture.add_argument("-o", "--output", help="Destination path (default: from config)")
    capture.add_argument(
        "-m",
        "--method",
        action="append",
        dest="methods",
        metavar="NAME",
        help="Capture method to try, repeatable, in order (default: from config)",
    )

    detect = sub.add_parser("detect", help="Run detection on an existing image")
    detect.add_argument("image", nargs="?", help="Image path (default: capture.image_path)")

    sub.add_parser("run", help="Capture an image and run detection")

    setup = sub.add_parser("setup", help="Provision this Raspberry Pi (requires root)")
    setup.add_argument(
        "--dry-run", action="store_true", help="Show commands without running them"
    )
    setup.add_argument(
        "-y", "--yes", action="store_true", help="Do not ask for confirmation"
    )
    setup.add_argument(
        "--skip-camera-test", action="store_true", help="Skip the final test capture"
    )

    download = sub.add_parser("download-model", help="Download pretrained YOLO weights")
    download.add_argument("-o", "--output", help="Destination (default: detection.model_file)")

    sub.add_parser("check", help="Show camera diagnostics")

    return parser.parse_args(argv)


def cmd_capture(config: Config, args: argparse.Namespace) -> int:
    capture_config = config.capture
    if args.methods:
        try:
            capture_config = type(capture_config).model_validate(
                capture_config.model_dump() | {"methods": args.methods}
            )
        except ValueError as e:
            logger.error(f"Invalid --method: {e}")
            return 1

    result = capture_image(capture_config, args.output)
    if not result.success:
        logger.error("All camera methods failed. Check camera connection and permissions.")
        return 1

    logger.info(f"Image capture completed with {result.method} ({result.size_bytes} bytes)")
    return 0


def cmd_detect(config: Config, args: argparse.Namespace) -> int:
    from .detection import detect_objects

    image = args.image or config.capture.image_path
    result = detect_objects(image, config.detection)
    if not result.success:
        return 1

    print(f"Detections: {result.count}")
    if result.result_path:
        print(f"Result saved as {result.result_path}")
    return 0


def cmd_run(config: Config, args: argparse.Namespace) -> int:
    from .detection import run_pipeline

    return run_pipeline(config)


def cmd_download_model(config: Config, args: argparse.Namespace) -> int:
    path = args.output or config.detection.model_file
    try:
        ensure_model(path, config.model)
    except ModelDownloadError as e:
        logger.error(str(e))
        return 1
    return 0


def cmd_check(config: Config, args: argparse.Namespace) -> int:
    print_diagnostics(collect_diagnostics())
    return 0


def _test_camera(config: Config) -> bool:
    test_config = config.capture.model_copy(update={"methods": SETUP_TEST_METHODS})
    result = capture_image(test_config, SETUP_TEST_IMAGE)
    if result.success:
        logger.info(f"Test image captured using {result.method}: {SETUP_TEST_IMAGE}")
    else:
        logger.error("Failed to capture test image")
    return result.success


def print_setup_summary(target, model_path: str) -> None:
    """Print final instructions after provisioning."""
    print("\n" + "=" * 70)
    print("INSTALLATION COMPLETE")
    print("=" * 70)
    tool = os.path.join(target.venv_dir, "bin", "picam-detect")
    print("\nTo verify camera setup, run:")
    print(f"   {tool} capture")
    print("\nTo run person detection:")
    print(f"   {tool} -c picam.yaml run   # detection.model_file: {model_path}")
    print("\nCreated files:")
    print(f"   - Python virtual environment: {target.venv_dir}")
    print(f"   - YOLO models folder: {target.models_dir}")
    print("\nA reboot is recommended so that all changes take effect: sudo reboot")
    print("=" * 70 + "\n")


def cmd_setup(config: Config, args: argparse.Namespace) -> int:
    try:
        if not args.dry_run:
            require_root()

        print_diagnostics(collect_diagnostics())

        target = resolve_target(config.provision)
        steps = build_plan(config.provision, target)
        logger.info(f"Provisioning for user {target.user}: {len(steps)} steps")

        if not (args.yes or args.dry_run):
            proceed = questionary.confirm(
                f"Run {len(steps)} provisioning steps for user {target.user}?",
                default=True,
            ).ask()
            if not proceed:
                print("Aborted.")
                return 0

        run_plan(steps, dry_run=args.dry_run)

        model_path = os.path.join(
            target.models_dir, os.path.basename(config.detection.model_file)
        )
        if args.dry_run:
            logger.info(f"[dry-run] download {config.model.url} -> {model_path}")
        else:
            if ensure_model(model_path, config.model):
                try:
                    shutil.chown(model_path, target.user, target.user)
                except (LookupError, OSError) as e:
                    logger.warning(f"Could not hand {model_path} to {target.user}: {e}")

            if not args.skip_camera_test:
                _test_camera(config)

    except (ProvisionError, ModelDownloadError) as e:
        logger.error(str(e))
        return 1

    print_setup_summary(target, model_path)
    return 0


COMMANDS = {
    "capture": cmd_capture,
    "detect": cmd_detect,
    "run": cmd_run,
    "setup": cmd_setup,
    "download-model": cmd_download_model,
    "check": cmd_check,
}


def main(argv: list[str] | None = None) -> None:
    """Main orchestrator function."""
    args = parse_args(argv)
    setup_logging(quiet=args.quiet, verbose=args.verbose)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)

    sys.exit(COMMANDS[args.command](config, args))


if __name__ == "__main__":
    main()
