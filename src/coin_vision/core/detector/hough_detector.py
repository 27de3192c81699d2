"""Coin detector based on OpenCV's Hough gradient circle transform."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import List, Tuple

import cv2
import numpy as np

from coin_vision.config.models import DetectorConfig
from coin_vision.core.entities import Frame, PixelFormat, PixelRegion
from coin_vision.core.processing.converter import GRAY_CODES
from coin_vision.infra.errors import DetectionFailure

from .base import DetectorBase

logger = logging.getLogger("detector.hough")

Circle = Tuple[float, float, float]


class HoughCoinDetector(DetectorBase):
    """Finds circular coin silhouettes and reports their bounding squares.

    Work per frame is bounded by downscaling the image so that its longest
    side never exceeds ``max_dimension`` and by capping the number of
    candidates. Overlapping candidates are merged deterministically, larger
    circles first.
    """

    def __init__(self, config: DetectorConfig | None = None) -> None:
        self._config = config or DetectorConfig()
        kernel = self._config.blur_kernel
        if kernel > 0 and kernel % 2 == 0:
            raise ValueError(f"blur_kernel must be odd, got {kernel}")
        if self._config.max_dimension <= 0:
            raise ValueError("max_dimension must be positive")

    @property
    def config(self) -> DetectorConfig:
        return self._config

    def detect(self, frame: Frame) -> List[PixelRegion]:
        image = frame.image
        gray = self._to_intensity(image, frame.pixel_format)
        height, width = gray.shape[:2]

        start = perf_counter()
        working, scale = self._downscale(gray)
        try:
            circles = self._find_circles(working)
        except cv2.error as exc:
            raise DetectionFailure(f"OpenCV rejected frame {frame.frame_id}: {exc}") from exc

        regions = [self._circle_to_region(circle, scale) for circle in circles]
        regions = self._merge_overlaps(regions)[: self._config.max_candidates]
        logger.debug(
            "Frame %s (%dx%d, scale %.3f): %d coin candidate(s) in %.1f ms",
            frame.frame_id,
            width,
            height,
            scale,
            len(regions),
            (perf_counter() - start) * 1000.0,
        )
        return regions

    def _to_intensity(self, image, pixel_format: PixelFormat = PixelFormat.BGR) -> np.ndarray:
        if not isinstance(image, np.ndarray):
            raise DetectionFailure(f"Frame image must be a numpy array, got {type(image).__name__}")
        if image.dtype != np.uint8:
            raise DetectionFailure(f"Expected 8-bit pixels, got dtype {image.dtype}")
        if image.size == 0 or min(image.shape[:2]) == 0:
            raise DetectionFailure("Frame image is empty")

        if image.ndim == 2:
            return image
        if image.ndim != 3:
            raise DetectionFailure(f"Unsupported image dimensionality: {image.ndim}")

        channels = image.shape[2]
        if channels == 1:
            return np.ascontiguousarray(image[:, :, 0])
        # Honour the declared channel order; fall back to BGR(A) when it does not fit.
        code = GRAY_CODES.get(pixel_format)
        if code is not None and pixel_format.channels == channels:
            return cv2.cvtColor(image, code)
        if channels == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        if channels == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        raise DetectionFailure(f"Unsupported channel count: {channels}")

    def _downscale(self, gray: np.ndarray) -> Tuple[np.ndarray, float]:
        longest = max(gray.shape[:2])
        limit = self._config.max_dimension
        if longest <= limit:
            return gray, 1.0
        scale = limit / float(longest)
        size = (max(1, int(round(gray.shape[1] * scale))), max(1, int(round(gray.shape[0] * scale))))
        return cv2.resize(gray, size, interpolation=cv2.INTER_AREA), scale

    def _find_circles(self, working: np.ndarray) -> List[Circle]:
        cfg = self._config
        if cfg.blur_kernel > 1:
            working = cv2.GaussianBlur(working, (cfg.blur_kernel, cfg.blur_kernel), cfg.blur_sigma)

        short_side = min(working.shape[:2])
        min_radius = max(1, int(round(short_side * cfg.min_radius_ratio)))
        max_radius = max(min_radius + 1, int(round(short_side * cfg.max_radius_ratio)))
        min_dist = max(1.0, short_side * cfg.min_dist_ratio)

        found = cv2.HoughCircles(
            working,
            cv2.HOUGH_GRADIENT,
            dp=cfg.dp,
            minDist=min_dist,
            param1=cfg.canny_threshold,
            param2=cfg.accumulator_threshold,
            minRadius=min_radius,
            maxRadius=max_radius,
        )
        if found is None:
            return []
        return [(float(x), float(y), float(r)) for x, y, r in found.reshape(-1, 3)]

    @staticmethod
    def _circle_to_region(circle: Circle, scale: float) -> PixelRegion:
        x, y, r = (value / scale for value in circle)
        return PixelRegion(x=x - r, y=y - r, width=2.0 * r, height=2.0 * r)

    def _merge_overlaps(self, regions: List[PixelRegion]) -> List[PixelRegion]:
        ordered = sorted(regions, key=lambda region: (-region.width, region.x, region.y))
        kept: List[PixelRegion] = []
        for region in ordered:
            if all(region.iou(other) <= self._config.overlap_threshold for other in kept):
                kept.append(region)
        return kept
