"""Frame container used across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


class PixelFormat(Enum):
    """Channel layout of a frame's pixel data."""

    BGR = "bgr"
    BGRA = "bgra"
    RGB = "rgb"
    RGBA = "rgba"
    GRAY = "gray"

    @property
    def channels(self) -> int:
        return _CHANNELS[self]


_CHANNELS = {
    PixelFormat.BGR: 3,
    PixelFormat.BGRA: 4,
    PixelFormat.RGB: 3,
    PixelFormat.RGBA: 4,
    PixelFormat.GRAY: 1,
}


@dataclass(frozen=True)
class Frame:
    """Encapsulates a captured image along with metadata.

    ``timestamp`` is expressed in seconds on a monotonic clock. The image is
    borrowed from the producer for the duration of one pipeline call; anything
    that needs it longer must copy it.
    """

    image: np.ndarray
    timestamp: float
    frame_id: int = 0
    pixel_format: PixelFormat = PixelFormat.BGR
    source: Optional[str] = None

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @classmethod
    def from_buffer(
        cls,
        buffer: bytes,
        width: int,
        height: int,
        pixel_format: PixelFormat,
        timestamp: float,
        *,
        bytes_per_row: Optional[int] = None,
        frame_id: int = 0,
        source: Optional[str] = None,
    ) -> "Frame":
        """Build a frame from a raw row-major byte buffer.

        Capture devices often pad each row; ``bytes_per_row`` is the stride
        including that padding. The pixel data is copied, so the caller may
        reuse ``buffer`` afterwards.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Frame dimensions must be positive, got {width}x{height}")
        channels = pixel_format.channels
        row_bytes = width * channels
        stride = row_bytes if bytes_per_row is None else bytes_per_row
        if stride < row_bytes:
            raise ValueError(f"bytes_per_row={stride} is smaller than one row of pixels ({row_bytes})")
        expected = stride * (height - 1) + row_bytes
        if len(buffer) < expected:
            raise ValueError(f"Buffer holds {len(buffer)} bytes, expected at least {expected}")

        flat = np.frombuffer(buffer, dtype=np.uint8, count=expected)
        rows = np.lib.stride_tricks.as_strided(flat, shape=(height, row_bytes), strides=(stride, 1))
        image = rows.copy()
        if channels == 1:
            image = image.reshape(height, width)
        else:
            image = image.reshape(height, width, channels)
        return cls(image=image, timestamp=timestamp, frame_id=frame_id, pixel_format=pixel_format, source=source)

    def copy_with(self, **kwargs) -> "Frame":
        values = {
            "image": self.image,
            "timestamp": self.timestamp,
            "frame_id": self.frame_id,
            "pixel_format": self.pixel_format,
            "source": self.source,
        }
        values.update(kwargs)
        return Frame(**values)
