"""OpenCV based result sinks for the demo application."""

from .overlay_sink import LoggingSink, OverlayWindowSink, draw_overlay

__all__ = ["LoggingSink", "OverlayWindowSink", "draw_overlay"]
