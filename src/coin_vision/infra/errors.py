"""Per-frame fault taxonomy raised by the processing stages."""

from __future__ import annotations


class CoinVisionError(Exception):
    """Base class for recoverable, per-frame pipeline faults."""

    kind = "error"


class UnsupportedFormat(CoinVisionError):
    """The converter was given a frame whose pixel layout it cannot interpret."""

    kind = "unsupported_format"


class DetectionFailure(CoinVisionError):
    """A malformed or corrupt frame reached the detector."""

    kind = "detection_failure"


class InvalidSurfaceSize(CoinVisionError):
    """The result sink reported a non-positive presentation surface dimension."""

    kind = "invalid_surface_size"

    def __init__(self, width: float, height: float) -> None:
        super().__init__(f"Presentation surface must be positive, got {width}x{height}")
        self.width = width
        self.height = height
