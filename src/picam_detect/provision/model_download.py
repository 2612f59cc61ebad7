"""
Pretrained model download.

Streams the weights to a `.part` file and renames it into place, so an
interrupted download never leaves a truncated `.pt` behind.
"""

import logging
import os
import time

import requests

from ..config.schemas import ModelConfig

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
RETRY_BASE_DELAY = 1.0  # seconds, doubles each retry


class ModelDownloadError(Exception):
    """Raised when the model weights cannot be downloaded."""

    pass


def _fetch(url: str, dest: str, timeout: float) -> int:
    """Download url to dest. Returns bytes written."""
    written = 0
    with requests.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        with open(dest, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    f.write(chunk)
                    written += len(chunk)
    return written


def ensure_model(path: str, config: ModelConfig, sleep=time.sleep) -> bool:
    """
    Download model weights to path unless they already exist.

    Args:
        path: Destination .pt file
        config: Download URL, timeout and retry count
        sleep: Delay function between retries

    Returns:
        True if a download happened, False if the file was already present

    Raises:
        ModelDownloadError: If all attempts fail
    """
    if os.path.exists(path) and os.path.getsize(path) > 0:
        logger.warning(f"Model already exists: {path}")
        return False

    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)
    partial = path + ".part"
    last_error: Exception | None = None

    for attempt in range(config.max_retries + 1):
        try:
            logger.info(f"Downloading {config.url} -> {path}")
            written = _fetch(config.url, partial, config.timeout_seconds)
            if written == 0:
                raise ModelDownloadError(f"Empty response from {config.url}")
            os.replace(partial, path)
            logger.info(f"Model downloaded ({written} bytes)")
            return True

        except requests.HTTPError as e:
            # 4xx won't fix itself
            _discard(partial)
            status = e.response.status_code if e.response is not None else None
            if status is not None and status < 500:
                raise ModelDownloadError(f"Download failed: {e}") from e
            last_error = e

        except (requests.Timeout, requests.ConnectionError) as e:
            _discard(partial)
            last_error = e

        except ModelDownloadError:
            _discard(partial)
            raise

        except OSError as e:
            _discard(partial)
            raise ModelDownloadError(f"Download failed: {e}") from e

        if attempt < config.max_retries:
            delay = RETRY_BASE_DELAY * (2**attempt)
            logger.warning(
                f"Download error, retry {attempt + 1}/{config.max_retries} in {delay}s: {last_error}"
            )
            sleep(delay)

    raise ModelDownloadError(f"Download failed after retries: {last_error}")


def _discard(path: str) -> None:
    if os.path.exists(path):
        os.remove(path)
