"""Detector abstractions."""

from .base import DetectorBase
from .hough_detector import HoughCoinDetector

__all__ = ["DetectorBase", "HoughCoinDetector"]
