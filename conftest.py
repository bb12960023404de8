"""
Shared fixtures: synthetic frames and stand-in classifiers.
"""

import threading

import cv2
import numpy as np
import pytest

from capture.frames import BGR, RawFrame

HAPPY_SCORES = np.array([0.1, 0.1, 0.1, 0.9, 0.1, 0.1, 0.1], dtype=np.float32)


class ReleaseCounter:
    """on_release callback that remembers how often each frame was released"""

    def __init__(self):
        self.lock = threading.Lock()
        self.counts = {}
        # keep released frames alive so id() values are never reused
        self._seen = []

    def __call__(self, frame):
        with self.lock:
            self._seen.append(frame)
            self.counts[id(frame)] = self.counts.get(id(frame), 0) + 1

    @property
    def total(self):
        return sum(self.counts.values())


class FakeClassifier:
    """
    Returns fixed scores. With gate set, infer() blocks until gate.set()
    so tests can hold a frame in flight.
    """

    def __init__(self, scores=HAPPY_SCORES, gate=None, errors=None):
        self.scores = scores
        self.gate = gate
        self.errors = list(errors or [])
        self.started = threading.Event()
        self.calls = 0
        self.closed = False
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def infer(self, tensor):
        with self._lock:
            self.calls += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            self.started.set()
            if self.gate is not None:
                self.gate.wait(timeout=5)
            if self.errors:
                raise self.errors.pop(0)
            return self.scores
        finally:
            with self._lock:
                self.active -= 1

    def close(self):
        self.closed = True


class LabelRecorder:
    def __init__(self):
        self.labels = []
        self.received = threading.Event()

    def __call__(self, label):
        self.labels.append(label)
        self.received.set()


@pytest.fixture
def release_counter():
    return ReleaseCounter()


@pytest.fixture
def make_frame(release_counter):
    """Build a raw BGR frame of the given size / colour"""

    def _make(width=64, height=48, color=(128, 128, 128)):
        image = np.zeros((height, width, 3), dtype=np.uint8)
        image[:] = color
        return RawFrame.from_array(image, pixel_format=BGR, on_release=release_counter)

    return _make


@pytest.fixture
def corrupt_frame(release_counter):
    return RawFrame.from_encoded(b"definitely not a jpeg", on_release=release_counter)


@pytest.fixture
def png_bytes():
    def _encode(image):
        ok, buf = cv2.imencode(".png", image)
        assert ok
        return buf.tobytes()

    return _encode


@pytest.fixture
def recorder():
    return LabelRecorder()


