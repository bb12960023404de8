"""
test_preprocessing.py
RawFrame -> 48x48 grayscale tensor
"""

import numpy as np
import pytest

from capture.frames import BGRA, GRAY, RGB, RGBA, RawFrame
from recognition.errors import DecodeError, PreprocessError
from recognition.preprocess import INPUT_LENGTH, LUMA_WEIGHTS, decode_rgb, preprocess


@pytest.mark.parametrize("width,height", [(48, 48), (640, 480), (1, 1), (3, 200), (97, 13)])
def test_output_shape_and_range_for_any_size(width, height):
    rng = np.random.default_rng(width * height)
    image = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
    frame = RawFrame.from_array(image)

    tensor = preprocess(frame)

    assert tensor.shape == (INPUT_LENGTH,)
    assert tensor.dtype == np.float32
    assert np.all(np.isfinite(tensor))
    assert tensor.min() >= 0.0
    assert tensor.max() <= 1.0


def test_uniform_gray_maps_to_half():
    image = np.full((48, 48, 3), 128, dtype=np.uint8)

    tensor = preprocess(RawFrame.from_array(image))

    assert np.allclose(tensor, 128 / 255.0, atol=1e-3)


def test_luminance_weights_per_channel():
    # uniform colour survives the resize, so every element is the weighted value
    for channel, weight in enumerate(LUMA_WEIGHTS):
        rgb = np.zeros((30, 50, 3), dtype=np.uint8)
        rgb[..., channel] = 255
        tensor = preprocess(RawFrame.from_array(rgb, pixel_format=RGB))
        assert np.allclose(tensor, weight, atol=1e-4)


def test_white_is_clipped_to_one():
    tensor = preprocess(RawFrame.from_array(np.full((10, 10, 3), 255, dtype=np.uint8)))
    assert tensor.max() <= 1.0
    assert np.allclose(tensor, 1.0, atol=1e-3)


def test_bgr_is_reordered_to_rgb(make_frame):
    # pure blue in OpenCV order -> only the blue weight contributes
    tensor = preprocess(make_frame(color=(255, 0, 0)))
    assert np.allclose(tensor, LUMA_WEIGHTS[2], atol=1e-4)


def test_alpha_channel_is_ignored():
    rgba = np.zeros((20, 20, 4), dtype=np.uint8)
    rgba[..., 1] = 255
    rgba[..., 3] = 7
    bgra = rgba[..., [2, 1, 0, 3]].copy()

    from_rgba = preprocess(RawFrame.from_array(rgba, pixel_format=RGBA))
    from_bgra = preprocess(RawFrame.from_array(bgra, pixel_format=BGRA))

    assert np.allclose(from_rgba, LUMA_WEIGHTS[1], atol=1e-4)
    assert np.allclose(from_rgba, from_bgra)


def test_gray_pixel_format():
    gray = np.full((12, 40), 200, dtype=np.uint8)
    tensor = preprocess(RawFrame.from_array(gray, pixel_format=GRAY))
    assert np.allclose(tensor, 200 * sum(LUMA_WEIGHTS) / 255.0, atol=1e-3)


def test_encoded_png(png_bytes):
    image = np.full((120, 80, 3), 128, dtype=np.uint8)
    frame = RawFrame.from_encoded(png_bytes(image))

    assert decode_rgb(frame).shape == (120, 80, 3)
    tensor = preprocess(frame)
    assert tensor.shape == (INPUT_LENGTH,)
    assert np.allclose(tensor, 128 / 255.0, atol=1e-3)


def test_rows_stay_row_major():
    # top half black, bottom half white, tall enough that resize keeps a clean split
    image = np.zeros((96, 96, 3), dtype=np.uint8)
    image[48:] = 255
    grid = preprocess(RawFrame.from_array(image)).reshape(48, 48)

    assert np.allclose(grid[:20], 0.0, atol=1e-3)
    assert np.allclose(grid[-20:], 1.0, atol=1e-3)


def test_corrupt_buffer_raises_decode_error(corrupt_frame):
    with pytest.raises(DecodeError):
        preprocess(corrupt_frame)


def test_empty_encoded_buffer_raises_decode_error():
    with pytest.raises(DecodeError):
        preprocess(RawFrame.from_encoded(b""))


def test_buffer_size_mismatch_raises_decode_error():
    frame = RawFrame(buffer=b"\x00" * 10, width=4, height=4, pixel_format=RGB)
    with pytest.raises(DecodeError):
        preprocess(frame)


def test_unknown_pixel_format_raises_decode_error():
    frame = RawFrame(buffer=b"\x00" * 16, width=4, height=4, pixel_format="yuv420")
    with pytest.raises(DecodeError):
        preprocess(frame)


def test_zero_dimension_raises_preprocess_error():
    frame = RawFrame(buffer=b"", width=0, height=10, pixel_format=RGB)
    with pytest.raises(PreprocessError):
        preprocess(frame)


def test_preprocess_does_not_release(make_frame, release_counter):
    frame = make_frame()
    preprocess(frame)
    assert not frame.released
    assert release_counter.total == 0
