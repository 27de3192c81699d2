"""Rectangles in frame pixel space and presentation space."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .presentation import PresentationContext, Size


@dataclass(frozen=True)
class _Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.x2, self.y2


@dataclass(frozen=True)
class PixelRegion(_Rect):
    """Axis-aligned rectangle in a frame's own pixel coordinates (origin top-left)."""

    def iou(self, other: "PixelRegion") -> float:
        ix = max(0.0, min(self.x2, other.x2) - max(self.x, other.x))
        iy = max(0.0, min(self.y2, other.y2) - max(self.y, other.y))
        intersection = ix * iy
        union = self.area() + other.area() - intersection
        if union <= 0.0:
            return 0.0
        return intersection / union


@dataclass(frozen=True)
class PresentationRegion(_Rect):
    """Axis-aligned rectangle in the presentation surface's coordinates."""


@dataclass(frozen=True)
class DetectionBatch:
    """Mapped regions produced from exactly one admitted frame."""

    regions: Tuple[PresentationRegion, ...]
    frame_id: int
    timestamp: float
    frame_size: Size
    context: Optional[PresentationContext] = field(default=None, compare=False)

    def __len__(self) -> int:
        return len(self.regions)

    def __iter__(self):
        return iter(self.regions)

    @property
    def empty(self) -> bool:
        return not self.regions
