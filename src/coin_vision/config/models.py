"""Dataclass definitions for application configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Literal, Sequence, Union


@dataclass(frozen=True)
class CameraConfig:
    """Capture source configuration."""

    device_index: Union[int, str] = 0
    resolution: Sequence[int] = (640, 480)
    fps: int = 30
    reconnect_delay_ms: int = 2000
    realtime: bool = True
    loop: bool = False


@dataclass(frozen=True)
class ProcessorConfig:
    """Runtime processing options; swapped as a whole, never mutated."""

    target_fps: float = 15.0
    grayscale: bool = True

    @property
    def paused(self) -> bool:
        return self.target_fps <= 0


@dataclass(frozen=True)
class DetectorConfig:
    """Hough circle detector configuration.

    Radii and minimum distance are ratios of the shorter side of the working
    image, so the same values hold whatever the capture resolution.
    """

    max_dimension: int = 640
    blur_kernel: int = 7
    blur_sigma: float = 2.0
    dp: float = 1.2
    min_dist_ratio: float = 0.1
    canny_threshold: float = 100.0
    accumulator_threshold: float = 40.0
    min_radius_ratio: float = 0.03
    max_radius_ratio: float = 0.3
    max_candidates: int = 32
    overlap_threshold: float = 0.3


@dataclass(frozen=True)
class DisplayConfig:
    """Presentation surface used by the demo overlay window."""

    window_name: str = "Coin Vision"
    surface_size: Sequence[int] = (960, 540)
    fill_mode: str = "aspect_fit"
    queue_size: int = 8


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    filepath: Path = Path("logs/coin_vision.log")
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5
    console: bool = True
    # Per-logger overrides, e.g. {"detector.hough": "DEBUG"}.
    levels: Dict[str, str] = field(default_factory=dict)

    def resolved_path(self) -> Path:
        path = self.filepath if isinstance(self.filepath, Path) else Path(self.filepath)
        return path.expanduser().resolve()


@dataclass(frozen=True)
class Config:
    """Root configuration object."""

    camera: CameraConfig = field(default_factory=CameraConfig)
    processor: ProcessorConfig = field(default_factory=ProcessorConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
