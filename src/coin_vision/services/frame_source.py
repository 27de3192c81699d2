"""Frame producers that push captured frames to registered listeners."""

from __future__ import annotations

import abc
import logging
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional, Union

import cv2
import numpy as np

from coin_vision.core.entities import Frame, PixelFormat

logger = logging.getLogger("services.frame_source")

FrameListener = Callable[[Frame], object]


class FrameSource(abc.ABC):
    """Base class for frame producers.

    Frames are delivered on the source's own capture thread, one at a time,
    to every listener in registration order.
    """

    def __init__(self) -> None:
        self._listeners: List[FrameListener] = []
        self._listeners_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._frame_id = 0

    def add_listener(self, listener: FrameListener) -> None:
        with self._listeners_lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: FrameListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            logger.debug("%s already running", type(self).__name__)
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=f"{type(self).__name__}Thread", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> bool:
        """Ask the capture thread to finish; True once it has exited."""
        self._stop_event.set()
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.warning("%s did not stop within %.1fs", type(self).__name__, timeout)
            return False
        self._thread = None
        return True

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the capture thread exits; True if it has."""
        if self._thread is None:
            return True
        self._thread.join(timeout=timeout)
        return not self._thread.is_alive()

    @abc.abstractmethod
    def _run(self) -> None:
        """Capture loop executed on the source thread until the stop event is set."""

    def _emit(self, image: np.ndarray, pixel_format: PixelFormat = PixelFormat.BGR) -> None:
        self._frame_id += 1
        frame = Frame(
            image=image,
            timestamp=time.monotonic(),
            frame_id=self._frame_id,
            pixel_format=pixel_format,
            source=self.label,
        )
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(frame)
            except Exception:
                # A failing consumer must not take the capture thread down.
                logger.exception("Frame listener %r failed on frame %d", listener, frame.frame_id)

    @property
    def label(self) -> str:
        return type(self).__name__


class VideoCaptureSource(FrameSource):
    """Reads frames from cv2.VideoCapture (camera index or video file) on a background thread.

    Cameras are reopened after a failed open or read. Files stop at their end
    unless ``loop`` is set, and with ``realtime`` they are paced at the clip's
    own frame rate (``fps`` is only the fallback when the container has none).
    The capture handle is owned by the capture thread and released there.
    """

    def __init__(
        self,
        device: Union[int, str],
        width: Optional[int] = None,
        height: Optional[int] = None,
        fps: float = 30.0,
        reopen_delay_s: float = 1.0,
        realtime: bool = True,
        loop: bool = False,
    ) -> None:
        super().__init__()
        self._device = device
        self._width = width
        self._height = height
        self._fps = fps
        self._reopen_delay_s = reopen_delay_s
        self._realtime = realtime
        self._loop = loop
        self._cap: Optional[cv2.VideoCapture] = None
        self._frame_period = 1.0 / fps if fps > 0 else 0.0

    @property
    def label(self) -> str:
        kind = "camera" if isinstance(self._device, int) else "video"
        return f"{kind}:{self._device}"

    @property
    def is_file(self) -> bool:
        return not isinstance(self._device, int)

    @property
    def frame_period(self) -> float:
        return self._frame_period

    def _open_capture(self) -> bool:
        cap = cv2.VideoCapture(self._device)
        if not cap.isOpened():
            logger.error("Unable to open video source %s", self._device)
            cap.release()
            return False
        if self.is_file:
            native_fps = cap.get(cv2.CAP_PROP_FPS)
            fps = native_fps if native_fps and native_fps > 0 else self._fps
            self._frame_period = 1.0 / fps if fps > 0 else 0.0
        else:
            if self._width and self._height:
                cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
                cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
            cap.set(cv2.CAP_PROP_FPS, self._fps)
            cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        self._cap = cap
        logger.info("Frame source connected to %s", self._device)
        return True

    def _release_capture(self) -> None:
        if self._cap is not None:
            logger.debug("Releasing capture %s", self._device)
            self._cap.release()
            self._cap = None

    def _run(self) -> None:
        try:
            self._capture_loop()
        finally:
            self._release_capture()
        logger.debug("Capture loop for %s finished", self._device)

    def _capture_loop(self) -> None:
        retry_delay = self._reopen_delay_s
        next_due = time.monotonic()
        while not self._stop_event.is_set():
            if self._cap is None and not self._open_capture():
                if self._stop_event.wait(retry_delay):
                    break
                continue

            assert self._cap is not None
            ret, image = self._cap.read()
            if not ret or image is None:
                if self.is_file and not self._loop:
                    logger.info("End of video %s", self._device)
                    break
                if self.is_file:
                    logger.debug("Rewinding %s", self._device)
                else:
                    logger.warning("Failed to read frame from %s; reopening", self._device)
                self._release_capture()
                continue

            # Video files decode faster than real time; pace them to the clip's rate.
            period = self._frame_period
            if self.is_file and self._realtime and period:
                delay = next_due - time.monotonic()
                if delay > 0 and self._stop_event.wait(delay):
                    break
                next_due = max(next_due, time.monotonic() - period) + period

            self._emit(image)


class StaticImageSource(FrameSource):
    """Re-emits a single still image at a fixed rate."""

    def __init__(self, image: Union[Path, np.ndarray], fps: float = 30.0) -> None:
        super().__init__()
        self._path = image if isinstance(image, Path) else None
        self._image: Optional[np.ndarray] = None if isinstance(image, Path) else image
        self._fps = fps

    @property
    def label(self) -> str:
        return f"image:{self._path}" if self._path else "image:memory"

    def start(self) -> None:
        if self._image is None:
            assert self._path is not None
            image = cv2.imread(str(self._path))
            if image is None:
                raise FileNotFoundError(f"Unable to load image at {self._path}")
            self._image = image
            logger.info("Static image loaded from %s", self._path)
        super().start()

    def _run(self) -> None:
        assert self._image is not None
        period = 1.0 / self._fps if self._fps > 0 else 0.1
        while not self._stop_event.is_set():
            self._emit(self._image.copy())
            if self._stop_event.wait(period):
                break
