from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import List

import cv2
import numpy as np
import pytest

from coin_vision.core.entities import Frame, PixelFormat
from coin_vision.services import FrameSource, StaticImageSource, VideoCaptureSource


def _write_clip(path: Path, frames: int, fps: float = 20.0) -> Path:
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), fps, (64, 48))
    assert writer.isOpened()
    for index in range(frames):
        image = np.full((48, 64, 3), 20, dtype=np.uint8)
        cv2.circle(image, (10 + 4 * index, 24), 8, (230, 230, 230), thickness=-1)
        writer.write(image)
    writer.release()
    return path


class Collector:
    def __init__(self, until: int = 0) -> None:
        self.frames: List[Frame] = []
        self.enough = threading.Event()
        self._until = until

    def __call__(self, frame: Frame) -> None:
        self.frames.append(frame)
        if self._until and len(self.frames) >= self._until:
            self.enough.set()


@pytest.fixture
def clip(tmp_path: Path) -> Path:
    return _write_clip(tmp_path / "coins.avi", frames=10)


def test_video_file_emits_every_frame_then_finishes(clip: Path) -> None:
    source = VideoCaptureSource(str(clip), realtime=False)
    collector = Collector()
    source.add_listener(collector)

    source.start()

    assert source.wait(timeout=10.0)
    assert not source.is_running()
    assert [frame.frame_id for frame in collector.frames] == list(range(1, 11))
    timestamps = [frame.timestamp for frame in collector.frames]
    assert timestamps == sorted(timestamps)
    first = collector.frames[0]
    assert first.size == (64, 48)
    assert first.pixel_format is PixelFormat.BGR
    assert first.source == f"video:{clip}"


def test_looping_file_rewinds_at_its_end(clip: Path) -> None:
    source = VideoCaptureSource(str(clip), realtime=False, loop=True)
    collector = Collector(until=25)
    source.add_listener(collector)

    source.start()
    try:
        assert collector.enough.wait(timeout=10.0)
        assert source.is_running()
    finally:
        assert source.stop()

    ids = [frame.frame_id for frame in collector.frames]
    assert ids == list(range(1, len(ids) + 1))


def test_file_is_paced_at_its_native_rate(tmp_path: Path) -> None:
    path = _write_clip(tmp_path / "slow.avi", frames=6, fps=20.0)
    # The configured rate is far faster than the clip's own 20 fps.
    source = VideoCaptureSource(str(path), fps=1000.0, realtime=True)
    collector = Collector()
    source.add_listener(collector)

    source.start()
    assert source.wait(timeout=10.0)

    assert source.frame_period == pytest.approx(1 / 20.0)
    assert len(collector.frames) == 6
    assert collector.frames[-1].timestamp - collector.frames[0].timestamp >= 0.2


def test_missing_file_keeps_retrying_until_stopped(tmp_path: Path) -> None:
    source = VideoCaptureSource(str(tmp_path / "missing.avi"), reopen_delay_s=0.05)
    collector = Collector()
    source.add_listener(collector)

    source.start()
    time.sleep(0.3)
    assert source.is_running()
    assert collector.frames == []

    assert source.stop()
    assert not source.is_running()


def test_camera_index_label() -> None:
    source = VideoCaptureSource(0)
    assert source.label == "camera:0"
    assert not source.is_file


def test_stop_before_start_is_harmless() -> None:
    assert VideoCaptureSource(3).stop()


def test_static_image_missing_path_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        StaticImageSource(tmp_path / "nope.png").start()


def test_static_image_reemits_at_its_rate() -> None:
    image = np.full((48, 64, 3), 90, dtype=np.uint8)
    source = StaticImageSource(image, fps=50.0)
    collector = Collector()
    source.add_listener(collector)

    source.start()
    time.sleep(0.2)
    assert source.stop()

    assert 3 <= len(collector.frames) <= 20
    assert all(frame.image is not image for frame in collector.frames)
    np.testing.assert_array_equal(collector.frames[0].image, image)
    assert collector.frames[0].source == "image:memory"


def test_static_image_loads_from_disk(tmp_path: Path) -> None:
    path = tmp_path / "coins.png"
    cv2.imwrite(str(path), np.full((48, 64, 3), 200, dtype=np.uint8))
    source = StaticImageSource(path, fps=50.0)
    collector = Collector(until=1)
    source.add_listener(collector)

    source.start()
    try:
        assert collector.enough.wait(timeout=5.0)
    finally:
        source.stop()

    assert collector.frames[0].size == (64, 48)
    assert collector.frames[0].source == f"image:{path}"


def test_failing_listener_does_not_stop_capture(caplog) -> None:
    source = StaticImageSource(np.zeros((8, 8, 3), dtype=np.uint8), fps=100.0)
    collector = Collector(until=3)

    def broken(frame: Frame) -> None:
        raise RuntimeError("sink exploded")

    source.add_listener(broken)
    source.add_listener(collector)
    source.start()
    try:
        assert collector.enough.wait(timeout=5.0)
        assert source.is_running()
    finally:
        source.stop()

    assert "Frame listener" in caplog.text


def test_frame_source_requires_a_capture_loop() -> None:
    with pytest.raises(TypeError):
        FrameSource()


class StuckSource(FrameSource):
    """Capture loop that ignores the stop event until released."""

    def __init__(self) -> None:
        super().__init__()
        self.release = threading.Event()

    def _run(self) -> None:
        self.release.wait(timeout=5.0)


def test_stop_reports_a_thread_that_did_not_exit() -> None:
    source = StuckSource()
    source.start()

    assert not source.stop(timeout=0.05)
    assert source.is_running()

    source.release.set()
    assert source.stop(timeout=5.0)
    assert not source.is_running()
