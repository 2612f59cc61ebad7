"""
Capture Method Registry - Maps method names to method factories.

Registry is populated by the method modules. The ordered method list is
built once per run from the `capture.methods` config entry.
"""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

# Registry: method name -> factory(CaptureConfig) -> CaptureMethod
METHOD_REGISTRY: dict[str, Callable] = {}


def register(name: str):
    """Decorator to register a capture method factory under a name."""

    def decorator(factory):
        METHOD_REGISTRY[name] = factory
        return factory

    return decorator


def load_builtin_methods() -> None:
    """Import built-in method modules (decorators register on import)."""
    from . import device_library, external_tool, frame_grab  # noqa: F401


def build_methods(config) -> list:
    """
    Build capture methods in configured priority order.

    Args:
        config: CaptureConfig

    Returns:
        List of CaptureMethod instances

    Raises:
        KeyError: If a configured method name is not registered
    """
    load_builtin_methods()

    methods = []
    for name in config.methods:
        if name not in METHOD_REGISTRY:
            raise KeyError(f"No capture method registered as '{name}'")
        methods.append(METHOD_REGISTRY[name](config))

    logger.info(f"Capture order: {' -> '.join(m.name for m in methods)}")
    return methods
