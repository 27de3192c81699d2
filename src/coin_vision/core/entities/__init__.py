"""Entity definitions for domain objects."""

from .frame import Frame, PixelFormat
from .presentation import FillMode, PresentationContext, Size
from .region import DetectionBatch, PixelRegion, PresentationRegion

__all__ = [
    "DetectionBatch",
    "FillMode",
    "Frame",
    "PixelFormat",
    "PixelRegion",
    "PresentationContext",
    "PresentationRegion",
    "Size",
]
