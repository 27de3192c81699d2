"""Real-time coin detection pipeline for live video feeds."""

__version__ = "0.1.0"
