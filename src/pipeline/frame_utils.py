"""
frame_utils.py
Preview overlay helpers for the live camera window.

Features:
1. Drawing the current emotion label on a frame
2. Rolling FPS measurement
"""

import time
from collections import deque
from typing import Dict, Optional, Tuple

import cv2
import numpy as np

from recognition.labels import UNKNOWN_LABEL

# BGR colours per emotion
EMOTION_COLORS: Dict[str, Tuple[int, int, int]] = {
    "Angry": (68, 68, 239),
    "Disgust": (129, 185, 16),
    "Fear": (246, 92, 139),
    "Happy": (36, 191, 251),
    "Neutral": (128, 114, 107),
    "Sad": (246, 130, 59),
    "Surprise": (153, 72, 236),
    UNKNOWN_LABEL: (255, 255, 255),
}


def draw_label(
    frame: np.ndarray,
    label: Optional[str],
    fps: Optional[float] = None,
    origin: Tuple[int, int] = (20, 40),
) -> np.ndarray:
    """
    Draws "Emotion: <label>" (and optionally FPS) in the top-left corner.

    Returns: annotated frame copy (does not modify original)
    """
    out = frame.copy()
    x, y = origin

    text = f"Emotion: {label if label else '...'}"
    color = EMOTION_COLORS.get(label, (255, 255, 255))

    # dark backing box so the text stays readable on bright frames
    (tw, th), baseline = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 0.8, 2)
    cv2.rectangle(out, (x - 8, y - th - 8), (x + tw + 8, y + baseline + 4), (0, 0, 0), -1)
    cv2.putText(out, text, (x, y), cv2.FONT_HERSHEY_SIMPLEX, 0.8, color, 2)

    if fps is not None:
        cv2.putText(
            out,
            f"FPS: {fps:.1f}",
            (x, y + th + 20),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.6,
            (255, 255, 255),
            1,
        )

    return out


class FpsMeter:
    """Average FPS over the last `window` ticks."""

    def __init__(self, window: int = 30):
        self.intervals = deque(maxlen=window)
        self.last_tick: Optional[float] = None

    def tick(self, now: Optional[float] = None) -> float:
        now = time.perf_counter() if now is None else now
        if self.last_tick is not None and now > self.last_tick:
            self.intervals.append(now - self.last_tick)
        self.last_tick = now
        return self.fps

    @property
    def fps(self) -> float:
        if not self.intervals:
            return 0.0
        return len(self.intervals) / sum(self.intervals)
