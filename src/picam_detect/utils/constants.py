"""
Constants used throughout picam-detect
"""

# Capture destination and detection output
DEFAULT_IMAGE_PATH = "captured.jpg"
DEFAULT_RESULT_PATH = "result.jpg"

# Capture method order (highest priority first)
DEFAULT_CAPTURE_METHODS = ["libcamera-still", "picamera2", "opencv"]

# External tool capture
DEFAULT_CAPTURE_DURATION_MS = 2000  # libcamera-still -t value
DEFAULT_TOOL_TIMEOUT = 10.0  # Seconds before the tool process is killed

# Camera library capture
DEFAULT_WARMUP_SECONDS = 2.0  # Auto-exposure settle time before capture

# Generic frame grab
DEFAULT_DEVICE_COUNT = 3  # Try /dev/video0..2
DEFAULT_READ_ATTEMPTS = 5  # First frames are often empty
DEFAULT_READ_DELAY = 0.5  # Seconds between read attempts
DEFAULT_FRAME_WIDTH = 640
DEFAULT_FRAME_HEIGHT = 480

# Detection
DEFAULT_MODEL_FILE = "yolov8n.pt"
DEFAULT_CONFIDENCE = 0.25
PERSON_CLASS_ID = 0  # COCO "person"
DEFAULT_MODEL_URL = (
    "https://github.com/ultralytics/assets/releases/download/v0.0.0/yolov8n.pt"
)

# Provisioning
DEFAULT_VENV_DIRNAME = "yolo_env"
DEFAULT_MODELS_DIRNAME = "yolo_models"
DEFAULT_INSTALL_SOURCE = "picam-detect"

# Config file
DEFAULT_CONFIG_NAME = "picam.yaml"
USER_CONFIG_DIR = "picam-detect"

# Environment variables
ENV_IMAGE_PATH = "PICAM_IMAGE_PATH"
ENV_MODEL_FILE = "PICAM_MODEL_FILE"
ENV_CONFIDENCE = "PICAM_CONFIDENCE"
