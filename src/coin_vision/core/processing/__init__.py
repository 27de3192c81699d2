"""Frame processing stages: admission, conversion, coordinate mapping."""

from .converter import FrameConverter
from .coordinate_mapper import CoordinateMapper, ViewTransform
from .rate_limiter import FrameRateLimiter

__all__ = ["CoordinateMapper", "FrameConverter", "FrameRateLimiter", "ViewTransform"]
