"""
camera.py
OpenCV camera frame source.

Only the bare minimum needed to feed the pipeline from a webcam or a
video file: open, read, hand out RawFrames, track which ones are still
out, close.
"""

import logging
import threading
from typing import Iterator, Optional, Tuple, Union

import cv2
import numpy as np

from recognition.errors import StartupError
from .frames import BGR, RawFrame

logger = logging.getLogger(__name__)


class CameraFrameSource:
    def __init__(self, source: Union[int, str] = 0, width: Optional[int] = None, height: Optional[int] = None):
        """
        source: device index (0 = default camera) or a video file path
        width/height: requested capture resolution, the driver may ignore it
        """
        self.source = source
        self.width = width
        self.height = height
        self.cap: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()
        self._outstanding = 0
        self._stopped = False

    @property
    def outstanding(self) -> int:
        """Frames handed out and not yet released."""
        with self._lock:
            return self._outstanding

    def open(self) -> "CameraFrameSource":
        self._stopped = False
        self.cap = cv2.VideoCapture(self.source)
        if not self.cap.isOpened():
            self.cap.release()
            self.cap = None
            raise StartupError(f"Could not open camera source {self.source!r}")

        if self.width:
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        if self.height:
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        logger.info("Opened camera source %r", self.source)
        return self

    def _on_release(self, frame: RawFrame) -> None:
        with self._lock:
            self._outstanding -= 1

    def frames(self) -> Iterator[Tuple[np.ndarray, RawFrame]]:
        """
        Yield (preview_image, frame) until the source runs dry or stop()
        is called. The RawFrame must be released by whoever ends up
        holding it; the preview image stays with the caller.
        """
        if self.cap is None:
            self.open()

        while not self._stopped:
            ok, image = self.cap.read()
            if not ok:
                logger.info("Camera source %r returned no more frames", self.source)
                break

            with self._lock:
                self._outstanding += 1
            yield image, RawFrame.from_array(image, pixel_format=BGR, on_release=self._on_release)

    def stop(self) -> None:
        self._stopped = True

    def close(self) -> None:
        self.stop()
        if self.cap is not None:
            self.cap.release()
            self.cap = None
            logger.info("Released camera source %r", self.source)
        if self.outstanding:
            logger.warning("%d frame(s) were never released", self.outstanding)

    def __enter__(self) -> "CameraFrameSource":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
