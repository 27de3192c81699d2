"""Configuration package for the coin detection pipeline."""

from .loader import load_config
from .models import CameraConfig, Config, DetectorConfig, DisplayConfig, LoggingConfig, ProcessorConfig

__all__ = [
    "CameraConfig",
    "Config",
    "DetectorConfig",
    "DisplayConfig",
    "LoggingConfig",
    "ProcessorConfig",
    "load_config",
]
