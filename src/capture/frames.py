"""
frames.py
RawFrame: one camera frame as handed from the frame source to the pipeline.

A RawFrame is owned by whoever currently holds it and must be released
exactly once, whatever happens to it (processed, dropped, failed).
Use it as a context manager to get that guarantee:

    with frame:
        tensor = preprocess(frame)
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

# Pixel formats understood by the preprocessor
ENCODED = "encoded"   # JPEG / PNG / ... bytes, dimensions come from the encoding
RGB = "rgb"
RGBA = "rgba"
BGR = "bgr"           # OpenCV native order
BGRA = "bgra"
GRAY = "gray"

CHANNELS = {
    RGB: 3,
    RGBA: 4,
    BGR: 3,
    BGRA: 4,
    GRAY: 1,
}


@dataclass
class RawFrame:
    buffer: bytes
    width: int = 0
    height: int = 0
    pixel_format: str = ENCODED
    timestamp: float = field(default_factory=time.monotonic)
    on_release: Optional[Callable[["RawFrame"], None]] = field(default=None, repr=False)
    _released: bool = field(default=False, init=False, repr=False)

    @classmethod
    def from_array(
        cls,
        image: np.ndarray,
        pixel_format: str = BGR,
        on_release: Optional[Callable[["RawFrame"], None]] = None,
    ) -> "RawFrame":
        """Wrap an HxW(xC) uint8 array (e.g. from cv2.VideoCapture.read())."""
        h, w = image.shape[:2]
        return cls(
            buffer=np.ascontiguousarray(image, dtype=np.uint8).tobytes(),
            width=int(w),
            height=int(h),
            pixel_format=pixel_format,
            on_release=on_release,
        )

    @classmethod
    def from_encoded(
        cls,
        data: bytes,
        on_release: Optional[Callable[["RawFrame"], None]] = None,
    ) -> "RawFrame":
        return cls(buffer=bytes(data), pixel_format=ENCODED, on_release=on_release)

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Give the frame back to its source. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        if self.on_release is not None:
            self.on_release(self)

    def __enter__(self) -> "RawFrame":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
