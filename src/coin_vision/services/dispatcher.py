"""Delivery of detection batches onto the consumer's context."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, Optional, Tuple

from coin_vision.core.entities import DetectionBatch

logger = logging.getLogger("services.dispatcher")

Delivery = Callable[[DetectionBatch], None]


class ImmediateDispatcher:
    """Delivers on the calling (producer) thread."""

    def dispatch(self, batch: DetectionBatch, deliver: Delivery) -> bool:
        deliver(batch)
        return True


class QueuedDispatcher:
    """FIFO hand-off from the producer thread to a consumer context.

    The producer never blocks: when the queue is full the newest batch is
    discarded with a warning. The consumer either pumps the queue from its own
    loop with :meth:`process_pending` or lets :meth:`start` run a dedicated
    worker thread. Both consume in production order.
    """

    def __init__(self, maxsize: int = 32) -> None:
        self._queue: "queue.Queue[Tuple[DetectionBatch, Delivery]]" = queue.Queue(maxsize=maxsize)
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def dispatch(self, batch: DetectionBatch, deliver: Delivery) -> bool:
        try:
            self._queue.put_nowait((batch, deliver))
        except queue.Full:
            logger.warning("Dispatch queue full; discarding batch for frame %s", batch.frame_id)
            return False
        return True

    def process_pending(self, max_items: Optional[int] = None, timeout: float = 0.0) -> int:
        """Deliver queued batches on the calling thread; returns how many ran.

        ``timeout`` is how long to wait for the first batch when the queue is
        empty.
        """
        if self.is_running():
            raise RuntimeError("process_pending() cannot be used while the worker thread is running")
        delivered = 0
        wait = timeout
        while max_items is None or delivered < max_items:
            try:
                if wait > 0:
                    batch, deliver = self._queue.get(timeout=wait)
                else:
                    batch, deliver = self._queue.get_nowait()
            except queue.Empty:
                break
            wait = 0.0
            deliver(batch)
            delivered += 1
        return delivered

    def start(self) -> None:
        if self.is_running():
            logger.debug("Dispatcher worker already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="DetectionDispatcher", daemon=True)
        self._thread.start()
        logger.info("Dispatcher worker started")

    def stop(self, timeout: float = 2.0) -> None:
        if not self._thread:
            return
        self._stop_event.set()
        self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("Dispatcher worker stopped")

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        # Keeps draining until asked to stop and the queue is empty.
        while not (self._stop_event.is_set() and self._queue.empty()):
            try:
                batch, deliver = self._queue.get(timeout=0.05)
            except queue.Empty:
                continue
            try:
                deliver(batch)
            except Exception:
                logger.exception("Result sink raised while handling frame %s", batch.frame_id)
