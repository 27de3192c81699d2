from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

import cv2
import numpy as np
import pytest

from coin_vision.core.detector import DetectorBase
from coin_vision.core.entities import DetectionBatch, FillMode, Frame, PixelFormat, PixelRegion
from coin_vision.infra.errors import DetectionFailure


class RecordingSink:
    def __init__(self, surface_size=(200, 200), fill_mode=FillMode.ASPECT_FIT) -> None:
        self.surface_size = surface_size
        self.mode = fill_mode
        self.batches: List[DetectionBatch] = []
        self.size_queries = 0

    def presentation_surface_size(self):
        self.size_queries += 1
        return self.surface_size

    def fill_mode(self):
        return self.mode

    def on_detections(self, batch: DetectionBatch) -> None:
        self.batches.append(batch)


class StubDetector(DetectorBase):
    """Returns fixed regions; raises DetectionFailure for selected frame ids."""

    def __init__(self, regions: Sequence[PixelRegion] = (), fail_on: Sequence[int] = ()) -> None:
        self.regions = list(regions)
        self.fail_on = set(fail_on)
        self.seen: List[Frame] = []
        self.warmed_up = False

    def warmup(self) -> None:
        self.warmed_up = True

    def detect(self, frame: Frame) -> List[PixelRegion]:
        self.seen.append(frame)
        if frame.frame_id in self.fail_on:
            raise DetectionFailure(f"corrupt frame {frame.frame_id}")
        return list(self.regions)


@pytest.fixture
def make_frame() -> Callable[..., Frame]:
    def _make(
        timestamp: float = 0.0,
        frame_id: int = 1,
        size: Tuple[int, int] = (320, 240),
        value: int = 128,
        pixel_format: PixelFormat = PixelFormat.BGR,
        image: Optional[np.ndarray] = None,
    ) -> Frame:
        if image is None:
            width, height = size
            channels = pixel_format.channels
            shape = (height, width) if channels == 1 else (height, width, channels)
            image = np.full(shape, value, dtype=np.uint8)
        return Frame(image=image, timestamp=timestamp, frame_id=frame_id, pixel_format=pixel_format)

    return _make


@pytest.fixture
def coin_image() -> np.ndarray:
    """Dark background with one bright disc of radius 40 centered at (160, 120)."""
    image = np.full((240, 320, 3), 30, dtype=np.uint8)
    cv2.circle(image, (160, 120), 40, (220, 220, 220), thickness=-1)
    return image


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
