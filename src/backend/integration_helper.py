"""
Helper functions for the camera pipeline to push labels to the label board
(src/backend/app.py).

Used by pipeline.display.HttpLabelSink, which runs on the display thread,
so a slow or dead backend never stalls frame processing.
"""
import logging
import requests
from typing import Dict, Optional
from datetime import datetime, timezone

from pipeline.config import get_settings

logger = logging.getLogger(__name__)


def _base_url(backend_url: Optional[str]) -> str:
    return (backend_url or get_settings().backend_url).rstrip("/")


def check_backend_health(backend_url: Optional[str] = None, timeout: float = 2.0) -> bool:
    """
    Check if the label board is running

    Usage:
    ```
    if check_backend_health():
        print("✅ Backend is ready")
    ```
    """
    try:
        response = requests.get(f"{_base_url(backend_url)}/", timeout=timeout)
        return response.status_code == 200
    except requests.exceptions.RequestException as e:
        logger.warning("Backend health check failed: %s", e)
        return False


def send_label_to_backend(
    label: str,
    timestamp_utc: Optional[str] = None,
    source_id: Optional[str] = None,
    backend_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Optional[Dict]:
    """
    POST one label to /labels.

    Parameters:
    - label: emotion label ("Happy", ..., or "Unknown")
    - timestamp_utc: ISO format timestamp, defaults to now
    - source_id: camera / client identifier (optional)

    Returns:
    - Response dict from backend or None if failed
    """
    payload = {
        "label": label,
        "timestamp_utc": timestamp_utc or datetime.now(timezone.utc).isoformat(),
        "source_id": source_id,
    }
    if timeout is None:
        timeout = get_settings().backend_timeout_s

    try:
        response = requests.post(f"{_base_url(backend_url)}/labels", json=payload, timeout=timeout)
    except requests.exceptions.Timeout:
        logger.warning("Backend request timed out for label %s", label)
        return None
    except requests.exceptions.ConnectionError:
        logger.warning("Cannot connect to backend at %s", _base_url(backend_url))
        return None
    except requests.exceptions.RequestException as e:
        logger.warning("Error sending label to backend: %s", e)
        return None

    if response.status_code == 200:
        return response.json()

    logger.warning("Backend error %s: %s", response.status_code, response.text)
    return None
