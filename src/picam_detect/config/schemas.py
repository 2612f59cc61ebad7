"""
Pydantic schemas for configuration validation.

Every field has a default, so an empty file (or no file at all) yields
a working configuration for a Pi camera and YOLOv8n.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.constants import (
    DEFAULT_CAPTURE_DURATION_MS,
    DEFAULT_CAPTURE_METHODS,
    DEFAULT_CONFIDENCE,
    DEFAULT_DEVICE_COUNT,
    DEFAULT_FRAME_HEIGHT,
    DEFAULT_FRAME_WIDTH,
    DEFAULT_IMAGE_PATH,
    DEFAULT_INSTALL_SOURCE,
    DEFAULT_MODEL_FILE,
    DEFAULT_MODEL_URL,
    DEFAULT_MODELS_DIRNAME,
    DEFAULT_READ_ATTEMPTS,
    DEFAULT_READ_DELAY,
    DEFAULT_RESULT_PATH,
    DEFAULT_TOOL_TIMEOUT,
    DEFAULT_VENV_DIRNAME,
    DEFAULT_WARMUP_SECONDS,
    PERSON_CLASS_ID,
)


class StrictModel(BaseModel):
    """Base model that rejects unknown fields."""

    model_config = ConfigDict(extra="forbid", protected_namespaces=())


class ExternalToolConfig(StrictModel):
    """Settings for command-line capture tools."""

    duration_ms: int = Field(
        default=DEFAULT_CAPTURE_DURATION_MS, ge=0, description="Preview time before capture"
    )
    timeout_seconds: float = Field(
        default=DEFAULT_TOOL_TIMEOUT, gt=0, description="Hard limit on the tool process"
    )


class CameraLibraryConfig(StrictModel):
    """Settings for the Picamera2 capture method."""

    warmup_seconds: float = Field(default=DEFAULT_WARMUP_SECONDS, ge=0)


class FrameGrabConfig(StrictModel):
    """Settings for the OpenCV frame grab method."""

    device_count: int = Field(default=DEFAULT_DEVICE_COUNT, ge=1, le=64)
    read_attempts: int = Field(default=DEFAULT_READ_ATTEMPTS, ge=1)
    read_delay_seconds: float = Field(default=DEFAULT_READ_DELAY, ge=0)
    width: int = Field(default=DEFAULT_FRAME_WIDTH, gt=0)
    height: int = Field(default=DEFAULT_FRAME_HEIGHT, gt=0)


class CaptureConfig(StrictModel):
    """Capture chain settings."""

    image_path: str = Field(default=DEFAULT_IMAGE_PATH, min_length=1)
    methods: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CAPTURE_METHODS),
        description="Capture method names in priority order",
    )
    external_tool: ExternalToolConfig = Field(default_factory=ExternalToolConfig)
    camera_library: CameraLibraryConfig = Field(default_factory=CameraLibraryConfig)
    frame_grab: FrameGrabConfig = Field(default_factory=FrameGrabConfig)

    @field_validator("methods")
    @classmethod
    def validate_methods(cls, v: list[str]) -> list[str]:
        # Imported here: the capture package imports config for type hints
        from ..capture.registry import METHOD_REGISTRY, load_builtin_methods

        load_builtin_methods()
        if not v:
            raise ValueError("At least one capture method is required")
        unknown = [name for name in v if name not in METHOD_REGISTRY]
        if unknown:
            known = ", ".join(sorted(METHOD_REGISTRY))
            raise ValueError(f"Unknown capture method(s) {unknown}; known: {known}")
        if len(set(v)) != len(v):
            raise ValueError("Capture methods must not repeat")
        return v


class DetectionConfig(StrictModel):
    """Detection settings."""

    model_file: str = Field(default=DEFAULT_MODEL_FILE, description="YOLO weights (.pt)")
    result_path: str = Field(default=DEFAULT_RESULT_PATH, min_length=1)
    confidence_threshold: float = Field(
        default=DEFAULT_CONFIDENCE, ge=0.0, le=1.0, description="Detection confidence threshold"
    )
    classes: list[int] = Field(
        default_factory=lambda: [PERSON_CLASS_ID], description="COCO class IDs to count"
    )

    @field_validator("model_file")
    @classmethod
    def validate_model_file(cls, v: str) -> str:
        if not v.endswith(".pt"):
            raise ValueError("Model file must be .pt format")
        return v

    @field_validator("classes")
    @classmethod
    def validate_classes(cls, v: list[int]) -> list[int]:
        if any(c < 0 for c in v):
            raise ValueError("Class IDs must be non-negative")
        return v


class ModelConfig(StrictModel):
    """Pretrained weights download."""

    url: str = Field(default=DEFAULT_MODEL_URL)
    timeout_seconds: float = Field(default=60.0, gt=0)
    max_retries: int = Field(default=2, ge=0)


class ProvisionConfig(StrictModel):
    """Raspberry Pi provisioning settings."""

    user: str | None = Field(
        default=None, description="Account to provision (default: invoking sudo user)"
    )
    venv_dirname: str = Field(default=DEFAULT_VENV_DIRNAME, min_length=1)
    models_dirname: str = Field(default=DEFAULT_MODELS_DIRNAME, min_length=1)
    upgrade_system: bool = True
    enable_i2c: bool = True
    pip_packages: list[str] = Field(
        default_factory=lambda: ["ultralytics", "opencv-python", "picamera2"]
    )
    install_source: str | None = Field(
        default=DEFAULT_INSTALL_SOURCE,
        description="pip requirement for this tool (name, path or VCS URL); None to skip",
    )


class Config(StrictModel):
    """Complete configuration schema."""

    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    provision: ProvisionConfig = Field(default_factory=ProvisionConfig)
