"""Optional grayscale conversion ahead of detection."""

from __future__ import annotations

import cv2
import numpy as np

from coin_vision.core.entities import Frame, PixelFormat
from coin_vision.infra.errors import UnsupportedFormat

# OpenCV applies the fixed BT.601 weights 0.299 R + 0.587 G + 0.114 B.
GRAY_CODES = {
    PixelFormat.BGR: cv2.COLOR_BGR2GRAY,
    PixelFormat.BGRA: cv2.COLOR_BGRA2GRAY,
    PixelFormat.RGB: cv2.COLOR_RGB2GRAY,
    PixelFormat.RGBA: cv2.COLOR_RGBA2GRAY,
}


class FrameConverter:
    """Turns color frames into single-channel intensity frames on request."""

    def convert(self, frame: Frame, grayscale_enabled: bool) -> Frame:
        if not grayscale_enabled:
            return frame

        pixel_format = frame.pixel_format
        if not isinstance(pixel_format, PixelFormat):
            raise UnsupportedFormat(f"Unknown pixel format: {pixel_format!r}")
        _validate_layout(frame.image, pixel_format)

        if pixel_format is PixelFormat.GRAY:
            return frame

        gray = cv2.cvtColor(frame.image, GRAY_CODES[pixel_format])
        return frame.copy_with(image=gray, pixel_format=PixelFormat.GRAY)


def _validate_layout(image, pixel_format: PixelFormat) -> None:
    if not isinstance(image, np.ndarray):
        raise UnsupportedFormat(f"Frame image must be a numpy array, got {type(image).__name__}")
    if image.dtype != np.uint8:
        raise UnsupportedFormat(f"Expected 8-bit pixels, got dtype {image.dtype}")
    if image.size == 0:
        raise UnsupportedFormat("Frame image is empty")

    expected = pixel_format.channels
    if image.ndim == 2:
        channels = 1
    elif image.ndim == 3:
        channels = image.shape[2]
    else:
        raise UnsupportedFormat(f"Unsupported image dimensionality: {image.ndim}")
    if channels != expected:
        raise UnsupportedFormat(
            f"{pixel_format.name} frame should have {expected} channel(s), image has {channels}"
        )
