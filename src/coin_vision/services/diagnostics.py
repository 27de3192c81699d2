"""Counters that let callers tell dropped frames from failed ones."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True)
class DiagnosticsSnapshot:
    frames_received: int = 0
    frames_ignored: int = 0
    frames_dropped: int = 0
    frames_admitted: int = 0
    batches_dispatched: int = 0
    batches_discarded: int = 0
    failures: Dict[str, int] = field(default_factory=dict)

    @property
    def total_failures(self) -> int:
        return sum(self.failures.values())


class PipelineDiagnostics:
    """Thread-safe tallies updated by the pipeline and the dispatchers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Counter = Counter()
        self._failures: Counter = Counter()

    def increment(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[name] += amount

    def record_failure(self, kind: str) -> None:
        with self._lock:
            self._failures[kind] += 1

    def failures(self, kind: str) -> int:
        with self._lock:
            return self._failures[kind]

    def snapshot(self) -> DiagnosticsSnapshot:
        with self._lock:
            counts = dict(self._counts)
            failures = dict(self._failures)
        return DiagnosticsSnapshot(
            frames_received=counts.get("frames_received", 0),
            frames_ignored=counts.get("frames_ignored", 0),
            frames_dropped=counts.get("frames_dropped", 0),
            frames_admitted=counts.get("frames_admitted", 0),
            batches_dispatched=counts.get("batches_dispatched", 0),
            batches_discarded=counts.get("batches_discarded", 0),
            failures=failures,
        )

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
            self._failures.clear()
