"""
display.py
Delivery of labels from the pipeline worker to display collaborators.

The worker never calls a display directly. It posts to a LabelDispatcher,
which hands the label to the sink on its own thread and returns at once.
If the sink is slower than the pipeline, only the newest pending label
is kept, so nothing piles up.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Tuple

logger = logging.getLogger(__name__)

LabelSink = Callable[[str], None]


class LabelDispatcher:
    def __init__(self, sink: LabelSink, name: str = "display"):
        self._sink = sink
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
        self._lock = threading.Lock()
        self._pending: Optional[str] = None
        self._scheduled = False
        self._closed = False

    def post(self, label: str) -> bool:
        """Queue label for delivery; never blocks on the sink."""
        with self._lock:
            if self._closed:
                return False
            self._pending = label
            if not self._scheduled:
                self._scheduled = True
                self._executor.submit(self._deliver)
        return True

    def _deliver(self) -> None:
        with self._lock:
            label, self._pending = self._pending, None
            self._scheduled = False
        if label is None:
            return
        try:
            self._sink(label)
        except Exception:
            logger.exception("Display sink failed for label %r", label)

    def close(self, wait: bool = True) -> None:
        """Stop taking labels; with wait=True, flush the pending one first."""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait)


# ============================================================
# Sinks
# ============================================================

class LatestLabel:
    """Thread-safe holder for the most recent label (read by the preview loop)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._label: Optional[str] = None
        self._updated_at: Optional[float] = None

    def __call__(self, label: str) -> None:
        with self._lock:
            self._label = label
            self._updated_at = time.monotonic()

    def get(self) -> Tuple[Optional[str], Optional[float]]:
        with self._lock:
            return self._label, self._updated_at


def log_label(label: str) -> None:
    logger.info("Emotion: %s", label)


class HttpLabelSink:
    """Push every label to the label board (backend.app)."""

    def __init__(self, backend_url: Optional[str] = None, timeout: Optional[float] = None, source_id: Optional[str] = None):
        self.backend_url = backend_url
        self.timeout = timeout
        self.source_id = source_id

    def __call__(self, label: str) -> None:
        # imported here so the pipeline does not need the backend package loaded
        from backend.integration_helper import send_label_to_backend

        send_label_to_backend(
            label,
            source_id=self.source_id,
            backend_url=self.backend_url,
            timeout=self.timeout,
        )


def fan_out(*sinks: LabelSink) -> LabelSink:
    """Combine sinks; one failing sink does not starve the others."""

    def _sink(label: str) -> None:
        for sink in sinks:
            try:
                sink(label)
            except Exception:
                logger.exception("Display sink %r failed", sink)

    return _sink
