"""Admission control for incoming frames."""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger("processing.rate_limiter")

# Absorbs float error of evenly spaced timestamps (e.g. i / 30.0).
_TOLERANCE_S = 1e-9


class FrameRateLimiter:
    """Admits at most one frame per ``1 / target_fps`` seconds of frame time.

    The first frame after construction, :meth:`reconfigure` or :meth:`reset`
    is admitted immediately. A non-positive rate pauses admission entirely.
    Timestamps that go backwards are rejected without touching the schedule.
    """

    def __init__(self, target_fps: float) -> None:
        self._target_fps = float(target_fps)
        self._last_admitted: Optional[float] = None
        self._last_seen: Optional[float] = None

    @property
    def target_fps(self) -> float:
        return self._target_fps

    @property
    def interval(self) -> float:
        if self._target_fps <= 0:
            return float("inf")
        return 1.0 / self._target_fps

    def reconfigure(self, target_fps: float) -> None:
        logger.debug("Rate limiter reconfigured: %.3f -> %.3f fps", self._target_fps, target_fps)
        self._target_fps = float(target_fps)
        self.reset()

    def reset(self) -> None:
        self._last_admitted = None
        self._last_seen = None

    def admit(self, timestamp: float) -> bool:
        if self._target_fps <= 0:
            return False

        if self._last_seen is not None and timestamp < self._last_seen:
            logger.debug("Out-of-order timestamp %.6f (previous %.6f); frame rejected", timestamp, self._last_seen)
            return False
        self._last_seen = timestamp

        if self._last_admitted is None or timestamp - self._last_admitted >= self.interval - _TOLERANCE_S:
            self._last_admitted = timestamp
            return True
        return False
