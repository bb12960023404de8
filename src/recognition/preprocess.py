"""
preprocess.py
RawFrame -> InputTensor.

Steps (in order):
1. Decode the buffer into an RGB pixel grid (Pillow for encoded images,
   numpy reshape for raw pixel layouts)
2. Resize to INPUT_SIZE x INPUT_SIZE with bilinear interpolation. Aspect
   ratio is not preserved, there is no letterboxing.
3. Weighted-sum luminance with LUMA_WEIGHTS
4. Divide by 255 and flatten row-major into INPUT_LENGTH float32 values
"""

import io
from typing import Tuple

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from capture.frames import BGR, BGRA, CHANNELS, ENCODED, GRAY, RGB, RGBA, RawFrame
from .errors import DecodeError, PreprocessError

INPUT_SIZE = 48
INPUT_LENGTH = INPUT_SIZE * INPUT_SIZE
LUMA_WEIGHTS = (0.2989, 0.5870, 0.1140)


def _decode_encoded(buffer: bytes) -> np.ndarray:
    if not buffer:
        raise DecodeError("Empty frame buffer")
    try:
        with Image.open(io.BytesIO(buffer)) as img:
            img.load()
            rgb = img.convert("RGB")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodeError(f"Buffer is not a decodable image: {e}") from e
    return np.asarray(rgb, dtype=np.uint8)


def _decode_raw(raw: RawFrame) -> np.ndarray:
    channels = CHANNELS.get(raw.pixel_format)
    if channels is None:
        raise DecodeError(f"Unsupported pixel format: {raw.pixel_format!r}")
    if raw.width <= 0 or raw.height <= 0:
        raise PreprocessError(f"Invalid frame dimensions {raw.width}x{raw.height}")

    expected = raw.width * raw.height * channels
    if len(raw.buffer) != expected:
        raise DecodeError(
            f"Buffer holds {len(raw.buffer)} bytes, expected {expected} "
            f"for {raw.width}x{raw.height} {raw.pixel_format}"
        )

    pixels = np.frombuffer(raw.buffer, dtype=np.uint8)
    if raw.pixel_format == GRAY:
        gray = pixels.reshape(raw.height, raw.width)
        return np.stack([gray, gray, gray], axis=-1)

    pixels = pixels.reshape(raw.height, raw.width, channels)
    if raw.pixel_format in (BGR, BGRA):
        pixels = pixels[..., 2::-1]   # BGR(A) -> RGB, alpha dropped
    elif raw.pixel_format in (RGB, RGBA):
        pixels = pixels[..., :3]
    return pixels


def decode_rgb(raw: RawFrame) -> np.ndarray:
    """Decode a RawFrame into an HxWx3 uint8 RGB array."""
    if raw.pixel_format == ENCODED:
        rgb = _decode_encoded(raw.buffer)
    else:
        rgb = _decode_raw(raw)

    if rgb.ndim != 3 or rgb.shape[0] == 0 or rgb.shape[1] == 0:
        raise PreprocessError(f"Decoded image has unusable shape {rgb.shape}")
    return rgb


def to_luminance(rgb: np.ndarray, weights: Tuple[float, float, float] = LUMA_WEIGHTS) -> np.ndarray:
    """HxWx3 RGB -> HxW float32 luminance in 0..255."""
    return rgb.astype(np.float32) @ np.asarray(weights, dtype=np.float32)


def preprocess(
    raw: RawFrame,
    size: int = INPUT_SIZE,
    weights: Tuple[float, float, float] = LUMA_WEIGHTS,
) -> np.ndarray:
    """
    Convert a raw frame into the model's input tensor.

    Returns a float32 array of shape (size * size,), values in [0, 1].
    Raises DecodeError / PreprocessError; never releases the frame.
    """
    rgb = decode_rgb(raw)

    try:
        resized = cv2.resize(
            np.ascontiguousarray(rgb), (size, size), interpolation=cv2.INTER_LINEAR
        )
    except cv2.error as e:
        raise PreprocessError(f"Resize to {size}x{size} failed: {e}") from e

    gray = to_luminance(resized, weights)
    tensor = np.clip(gray / 255.0, 0.0, 1.0).astype(np.float32).reshape(-1)

    if tensor.size != size * size:
        raise PreprocessError(f"Tensor has {tensor.size} values, expected {size * size}")
    if not np.all(np.isfinite(tensor)):
        raise PreprocessError("Tensor contains non-finite values")
    return tensor
