"""Detector interface."""

from __future__ import annotations

import abc
from typing import List

from coin_vision.core.entities import Frame, PixelRegion


class DetectorBase(abc.ABC):
    """Base class for coin detectors."""

    def warmup(self) -> None:
        """Prepare any state needed before the first frame (no-op by default)."""

    @abc.abstractmethod
    def detect(self, frame: Frame) -> List[PixelRegion]:
        """Return pixel-space regions likely to contain a coin.

        An empty list means nothing was found. Implementations raise
        ``DetectionFailure`` only when the frame data itself is malformed.
        """
