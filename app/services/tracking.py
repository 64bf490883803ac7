"""
Progress Tracker and Result Accumulator for one analysis run.

Both are written by the dispatcher only (single writer) and read by the API
while the run is in flight, so reads return copies taken under a lock.

The accumulator lock also covers progress: commit_batch() appends and
advances the tracker as one step, and snapshot() reads both under the same
lock, so the processed count and progress.completed are always equal.
"""

import threading
from typing import Iterable, List, Tuple

from app.schemas.schemas import ProcessedRecord, ProgressState


class ProgressTracker:
    """completed <= total, and completed never goes down within a run."""

    def __init__(self, total: int = 0):
        self._lock = threading.Lock()
        self._completed = 0
        self._total = max(total, 0)

    def reset(self, total: int) -> None:
        if total < 0:
            raise ValueError("total must be >= 0")
        with self._lock:
            self._completed = 0
            self._total = total

    def advance(self, n: int) -> None:
        if n < 0:
            raise ValueError("progress can only move forward")
        with self._lock:
            self._completed = min(self._completed + n, self._total)

    @property
    def completed(self) -> int:
        return self._completed

    @property
    def total(self) -> int:
        return self._total

    def state(self) -> ProgressState:
        with self._lock:
            return ProgressState(completed=self._completed, total=self._total)


class ResultAccumulator:
    """Append-only. A batch becomes visible all at once or not at all."""

    def __init__(self):
        self._lock = threading.RLock()
        self._records: List[ProcessedRecord] = []

    def all(self) -> List[ProcessedRecord]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def commit_batch(self, records: Iterable[ProcessedRecord], tracker: ProgressTracker) -> int:
        """Append a batch and advance `tracker` by its size, atomically."""
        batch = list(records)
        with self._lock:
            self._records.extend(batch)
            tracker.advance(len(batch))
        return len(batch)

    def snapshot(self, tracker: ProgressTracker) -> Tuple[int, ProgressState]:
        """(processed count, progress) as seen between two commits."""
        with self._lock:
            return len(self._records), tracker.state()
