"""Cross-cutting infrastructure: errors, logging, exception hooks."""

from .errors import CoinVisionError, DetectionFailure, InvalidSurfaceSize, UnsupportedFormat
from .exceptions import install_exception_hook
from .logging import configure_logging

__all__ = [
    "CoinVisionError",
    "DetectionFailure",
    "InvalidSurfaceSize",
    "UnsupportedFormat",
    "configure_logging",
    "install_exception_hook",
]
