"""Result sinks used by the command line demo."""

from __future__ import annotations

import logging
import threading
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from coin_vision.core.entities import DetectionBatch, FillMode, Frame, PresentationContext, PresentationRegion
from coin_vision.core.processing import CoordinateMapper

logger = logging.getLogger("ui.overlay")

BOX_COLOR = (0, 0, 255)
LABEL_COLOR = (50, 50, 255)


def draw_overlay(canvas: np.ndarray, regions: Sequence[PresentationRegion]) -> np.ndarray:
    annotated = canvas.copy()
    for region in regions:
        x1, y1, x2, y2 = map(int, map(round, region.as_xyxy()))
        cv2.rectangle(annotated, (x1, y1), (x2, y2), BOX_COLOR, 2)
        cx, cy = region.center()
        cv2.putText(
            annotated,
            f"{int(cx)},{int(cy)}",
            (max(0, x1), max(20, y1 - 10)),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.5,
            LABEL_COLOR,
            1,
            cv2.LINE_AA,
        )
    return annotated


class LoggingSink:
    """Headless sink: logs each batch."""

    def __init__(self, surface_size: Tuple[int, int], fill_mode: FillMode | str = FillMode.ASPECT_FIT) -> None:
        self._surface_size = tuple(surface_size)
        self._fill_mode = FillMode.parse(fill_mode)
        self.batches_seen = 0

    def presentation_surface_size(self) -> Tuple[int, int]:
        return self._surface_size

    def fill_mode(self) -> FillMode:
        return self._fill_mode

    def on_detections(self, batch: DetectionBatch) -> None:
        self.batches_seen += 1
        if batch.empty:
            logger.debug("Frame %d: no coins", batch.frame_id)
            return
        boxes = ", ".join(f"({r.x:.0f},{r.y:.0f},{r.width:.0f}x{r.height:.0f})" for r in batch.regions)
        logger.info("Frame %d: %d coin(s) %s", batch.frame_id, len(batch), boxes)


class OverlayWindowSink:
    """Draws the latest frame and its detections into an OpenCV window.

    The frame is laid onto the surface with the same transform the pipeline
    uses for the regions, so boxes line up in every fill mode. Frames arrive
    on the capture thread; rendering happens on whichever thread pumps the
    dispatcher (normally the main thread, which owns the window).
    """

    def __init__(
        self,
        window_name: str,
        surface_size: Tuple[int, int],
        fill_mode: FillMode | str = FillMode.ASPECT_FIT,
        mapper: Optional[CoordinateMapper] = None,
    ) -> None:
        self.window_name = window_name
        self._surface_size = (int(surface_size[0]), int(surface_size[1]))
        self._fill_mode = FillMode.parse(fill_mode)
        self._mapper = mapper or CoordinateMapper()
        self._lock = threading.Lock()
        self._latest: Optional[np.ndarray] = None
        self._regions: Tuple[PresentationRegion, ...] = ()

    def presentation_surface_size(self) -> Tuple[int, int]:
        return self._surface_size

    def fill_mode(self) -> FillMode:
        return self._fill_mode

    def cycle_fill_mode(self) -> FillMode:
        modes = list(FillMode)
        self._fill_mode = modes[(modes.index(self._fill_mode) + 1) % len(modes)]
        logger.info("Fill mode: %s", self._fill_mode.value)
        return self._fill_mode

    def on_frame(self, frame: Frame) -> None:
        # The pipeline does not keep frames, so the sink takes its own copy.
        with self._lock:
            self._latest = frame.image.copy()

    def on_detections(self, batch: DetectionBatch) -> None:
        self._regions = batch.regions

    def render(self) -> Optional[np.ndarray]:
        with self._lock:
            image = self._latest
        if image is None:
            return None
        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)

        height, width = image.shape[:2]
        context = PresentationContext.create(self._surface_size, self._fill_mode)
        transform = self._mapper.transform((width, height), context)
        matrix = np.float32(
            [
                [transform.scale_x, 0.0, transform.offset_x],
                [0.0, transform.scale_y, transform.offset_y],
            ]
        )
        canvas = cv2.warpAffine(image, matrix, self._surface_size, flags=cv2.INTER_LINEAR)
        return draw_overlay(canvas, self._regions)

    def show(self) -> None:
        canvas = self.render()
        if canvas is not None:
            cv2.imshow(self.window_name, canvas)
