"""
Placement Analysis Service - the batch pipeline.

PURPOSE:
Drive a roster of student records through the AI service, batch by batch,
in input order:

1. Slice the records into batches of `batch_size` (last one may be shorter)
2. Send one batch at a time with the pool's active credential
3. Bad / wrong-length AI output -> "Error" sentinels for that batch only
4. Invalid key or rate limit -> rotate to the next key, retry the SAME batch
5. Append the batch's results and advance progress by the batch size, as one step

FAILURE POLICY (same for the report orchestrator):
- All keys failed on a batch -> stop the run (CredentialsExhausted)
- Network / other service errors -> stop the run
- Results of completed batches are always kept

A failed attempt is discarded entirely: nothing is appended and progress
does not move, so a retried batch is never counted twice.
"""

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional, Sequence

from app.core.config import get_settings
from app.core.exceptions import CredentialsExhausted, PlacementError, SchemaMismatch
from app.schemas.schemas import PlacementInfo, ProcessedRecord, RunStatus, StudentRecord
from app.services.credential_pool import CredentialPool, call_with_rotation
from app.services.tracking import ProgressTracker, ResultAccumulator

logger = logging.getLogger(__name__)


# ============================================================
# BATCH HELPERS
# ============================================================

def partition(records: Sequence[StudentRecord], size: int) -> List[List[StudentRecord]]:
    """Split records into ordered, contiguous batches of at most `size`."""
    if size < 1:
        raise ValueError("batch size must be >= 1")
    return [list(records[i:i + size]) for i in range(0, len(records), size)]


def validate_placements(
    batch: Sequence[StudentRecord],
    placements: Optional[Sequence[PlacementInfo]]
) -> List[PlacementInfo]:
    """
    Make sure there is exactly one PlacementInfo per record.
    A count mismatch turns the whole batch into error sentinels.
    """
    if placements is None or len(placements) != len(batch):
        got = "none" if placements is None else len(placements)
        logger.warning(f"AI response mismatch: expected {len(batch)} placements, got {got}")
        return [PlacementInfo.error("AI Format Error") for _ in batch]
    return list(placements)


def merge_batch(
    batch: Sequence[StudentRecord],
    placements: Sequence[PlacementInfo]
) -> List[ProcessedRecord]:
    return [
        ProcessedRecord(record=record, placement=placement)
        for record, placement in zip(batch, placements)
    ]


# ============================================================
# BATCH DISPATCHER
# ============================================================

@dataclass
class DispatchResult:
    status: RunStatus
    processed: int
    batches_completed: int
    error: Optional[PlacementError] = None

    @property
    def success(self) -> bool:
        return self.status == RunStatus.completed


class BatchDispatcher:
    """
    Sequential batch runner with credential rotation.

    `inference` is anything with analyze_batch(records, credential).
    The pool is shared with the caller; its cursor is left wherever the
    last successful call happened.
    """

    def __init__(self, inference, pool: CredentialPool, batch_size: int = None):
        self.inference = inference
        self.pool = pool
        self.batch_size = batch_size or get_settings().batch_size

    def _analyze(self, batch: List[StudentRecord], batch_index: int) -> List[PlacementInfo]:
        try:
            placements = call_with_rotation(
                self.pool,
                lambda credential: self.inference.analyze_batch(batch, credential),
                what=f"Batch {batch_index + 1}",
                batch_index=batch_index
            )
        except SchemaMismatch as exc:
            logger.warning(f"Batch {batch_index + 1}: {exc} -> marking {len(batch)} records as errors")
            return [PlacementInfo.error(exc.reason) for _ in batch]
        return validate_placements(batch, placements)

    def run(
        self,
        records: Sequence[StudentRecord],
        accumulator: ResultAccumulator,
        tracker: ProgressTracker,
        start_index: int = 0,
        abort_event: Optional[threading.Event] = None
    ) -> DispatchResult:
        """
        Process records[start_index:] into the accumulator.

        Args:
            records: Full record list of the run
            accumulator: Receives one ProcessedRecord per record, in order
            tracker: Advanced by each batch after it is appended
            start_index: First unprocessed record (non-zero when resuming)
            abort_event: Checked between batches, never mid-call

        Returns:
            DispatchResult; `error` is set when the run stopped early
        """
        batches = partition(records[start_index:], self.batch_size)
        first_batch = start_index // self.batch_size
        done = 0

        logger.info(
            f"Dispatching {len(records) - start_index} records in {len(batches)} batches "
            f"(size {self.batch_size}, starting with credential {self.pool.index + 1}/{len(self.pool)})"
        )

        for offset, batch in enumerate(batches):
            batch_index = first_batch + offset

            if abort_event is not None and abort_event.is_set():
                logger.info(f"Abort requested before batch {batch_index + 1}")
                return DispatchResult(RunStatus.aborted, len(accumulator), done)

            try:
                placements = self._analyze(batch, batch_index)
            except CredentialsExhausted as exc:
                logger.error(f"Batch {batch_index + 1}: all credentials failed, stopping run")
                return DispatchResult(RunStatus.failed, len(accumulator), done, exc)
            except PlacementError as exc:
                logger.error(f"Batch {batch_index + 1}: {type(exc).__name__}: {exc}, stopping run")
                return DispatchResult(RunStatus.failed, len(accumulator), done, exc)

            accumulator.commit_batch(merge_batch(batch, placements), tracker)
            done += 1
            logger.info(f"Batch {batch_index + 1} done ({tracker.completed}/{tracker.total})")

        return DispatchResult(RunStatus.completed, len(accumulator), done)
