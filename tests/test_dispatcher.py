from __future__ import annotations

import threading
import time

import pytest

from coin_vision.config.models import ProcessorConfig
from coin_vision.core.entities import DetectionBatch, Size
from coin_vision.services import FrameOutcome, ImmediateDispatcher, ProcessingPipeline, QueuedDispatcher

from conftest import RecordingSink, StubDetector


def _batch(frame_id: int) -> DetectionBatch:
    return DetectionBatch(regions=(), frame_id=frame_id, timestamp=float(frame_id), frame_size=Size(1, 1))


def test_immediate_dispatcher_delivers_inline() -> None:
    received = []
    assert ImmediateDispatcher().dispatch(_batch(1), received.append)
    assert [b.frame_id for b in received] == [1]


def test_queued_dispatcher_defers_until_pumped() -> None:
    received = []
    dispatcher = QueuedDispatcher()
    for frame_id in range(5):
        dispatcher.dispatch(_batch(frame_id), received.append)

    assert received == []
    assert dispatcher.pending == 5
    assert dispatcher.process_pending(max_items=2) == 2
    assert dispatcher.process_pending() == 3
    assert [b.frame_id for b in received] == [0, 1, 2, 3, 4]


def test_queued_dispatcher_discards_when_full() -> None:
    received = []
    dispatcher = QueuedDispatcher(maxsize=2)
    results = [dispatcher.dispatch(_batch(i), received.append) for i in range(3)]
    assert results == [True, True, False]
    dispatcher.process_pending()
    assert [b.frame_id for b in received] == [0, 1]


def test_worker_thread_preserves_order_and_runs_off_producer_thread() -> None:
    received = []
    threads = set()
    done = threading.Event()

    def deliver(batch: DetectionBatch) -> None:
        threads.add(threading.get_ident())
        received.append(batch.frame_id)
        if batch.frame_id == 49:
            done.set()

    dispatcher = QueuedDispatcher(maxsize=64)
    dispatcher.start()
    try:
        for frame_id in range(50):
            dispatcher.dispatch(_batch(frame_id), deliver)
        assert done.wait(timeout=5.0)
    finally:
        dispatcher.stop()

    assert received == list(range(50))
    assert threading.get_ident() not in threads
    assert not dispatcher.is_running()


def test_worker_survives_failing_delivery() -> None:
    received = []

    def deliver(batch: DetectionBatch) -> None:
        if batch.frame_id == 0:
            raise RuntimeError("sink exploded")
        received.append(batch.frame_id)

    dispatcher = QueuedDispatcher()
    dispatcher.start()
    try:
        dispatcher.dispatch(_batch(0), deliver)
        dispatcher.dispatch(_batch(1), deliver)
        deadline = time.monotonic() + 5.0
        while not received and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        dispatcher.stop()
    assert received == [1]


def test_process_pending_refuses_while_worker_runs() -> None:
    dispatcher = QueuedDispatcher()
    dispatcher.start()
    try:
        with pytest.raises(RuntimeError):
            dispatcher.process_pending()
    finally:
        dispatcher.stop()


def test_pipeline_with_queued_dispatcher(make_frame) -> None:
    sink = RecordingSink()
    dispatcher = QueuedDispatcher(maxsize=1)
    pipeline = ProcessingPipeline(StubDetector(), sink, ProcessorConfig(target_fps=10), dispatcher=dispatcher)
    pipeline.start()

    assert pipeline.on_frame(make_frame(timestamp=0.0, frame_id=1)) is FrameOutcome.DISPATCHED
    assert pipeline.on_frame(make_frame(timestamp=1.0, frame_id=2)) is FrameOutcome.DISCARDED
    assert sink.batches == []

    dispatcher.process_pending()
    assert [b.frame_id for b in sink.batches] == [1]
    snap = pipeline.diagnostics.snapshot()
    assert (snap.batches_dispatched, snap.batches_discarded) == (1, 1)
