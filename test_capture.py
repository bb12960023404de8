"""
test_capture.py
RawFrame release semantics, the OpenCV frame source, overlays and the camera runner
"""

import cv2
import numpy as np
import pytest
import torch

from capture.camera import CameraFrameSource
from capture.frames import BGR, ENCODED, RawFrame
from pipeline import run_camera
from pipeline.frame_utils import FpsMeter, draw_label
from recognition.errors import StartupError
from recognition.model import EmotionCNN


@pytest.fixture
def video_path(tmp_path):
    path = tmp_path / "clip.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10, (64, 48))
    if not writer.isOpened():
        pytest.skip("MJPG video writer not available")
    for i in range(12):
        frame = np.full((48, 64, 3), 20 * i, dtype=np.uint8)
        writer.write(frame)
    writer.release()
    return path


# ============================================================
# RawFrame
# ============================================================

def test_release_is_called_exactly_once(release_counter):
    frame = RawFrame(buffer=b"\x00" * 12, width=2, height=2, pixel_format=BGR, on_release=release_counter)
    frame.release()
    frame.release()
    assert frame.released
    assert release_counter.total == 1


def test_context_manager_releases_on_error(release_counter):
    frame = RawFrame.from_encoded(b"abc", on_release=release_counter)
    with pytest.raises(RuntimeError):
        with frame:
            raise RuntimeError("preprocessing blew up")
    assert frame.released
    assert frame.pixel_format == ENCODED
    assert release_counter.total == 1


def test_from_array_metadata():
    frame = RawFrame.from_array(np.zeros((5, 7, 3), dtype=np.uint8))
    assert (frame.width, frame.height, frame.pixel_format) == (7, 5, BGR)
    assert len(frame.buffer) == 5 * 7 * 3


# ============================================================
# CameraFrameSource
# ============================================================

def test_unopenable_source_is_startup_error(tmp_path):
    source = CameraFrameSource(str(tmp_path / "no_such_video.avi"))
    with pytest.raises(StartupError):
        source.open()


def test_frames_are_tracked_until_released(video_path):
    with CameraFrameSource(str(video_path)) as source:
        seen = []
        for image, frame in source.frames():
            assert image.shape == (48, 64, 3)
            assert frame.width == 64 and frame.height == 48
            seen.append(frame)
        assert len(seen) == 12
        assert source.outstanding == 12

        for frame in seen:
            frame.release()
        assert source.outstanding == 0


def test_stop_ends_iteration(video_path):
    source = CameraFrameSource(str(video_path)).open()
    count = 0
    for _, frame in source.frames():
        frame.release()
        count += 1
        if count == 3:
            source.stop()
    source.close()
    assert count == 3


# ============================================================
# Overlays
# ============================================================

def test_draw_label_returns_annotated_copy():
    frame = np.zeros((120, 320, 3), dtype=np.uint8)
    out = draw_label(frame, "Happy", fps=29.7)
    assert out.shape == frame.shape
    assert out.any()
    assert not frame.any()


def test_draw_label_without_label():
    out = draw_label(np.zeros((120, 320, 3), dtype=np.uint8), None)
    assert out.any()


def test_fps_meter():
    meter = FpsMeter(window=5)
    assert meter.tick(now=0.0) == 0.0
    for i in range(1, 6):
        fps = meter.tick(now=i * 0.1)
    assert fps == pytest.approx(10.0)


# ============================================================
# run_camera
# ============================================================

def test_run_camera_missing_model_exits_with_startup_code(tmp_path):
    code = run_camera.main(["--model", str(tmp_path / "missing.pt"), "--no-window", "--device", "cpu"])
    assert code == run_camera.EXIT_STARTUP


def test_run_camera_processes_video(tmp_path, video_path):
    model_path = tmp_path / "weights.pt"
    torch.save(EmotionCNN().state_dict(), model_path)

    code = run_camera.main([
        "--model", str(model_path),
        "--camera", str(video_path),
        "--device", "cpu",
        "--no-window",
    ])
    assert code == run_camera.EXIT_OK


def test_run_camera_missing_camera(tmp_path):
    model_path = tmp_path / "weights.pt"
    torch.save(EmotionCNN().state_dict(), model_path)

    code = run_camera.main([
        "--model", str(model_path),
        "--camera", str(tmp_path / "nope.avi"),
        "--device", "cpu",
        "--no-window",
    ])
    assert code == run_camera.EXIT_STARTUP
