"""
Analysis Session - everything one browser session used to hold.

One instance per application:
- the credential pool (and its store)
- the uploaded roster
- the current run's accumulator, progress tracker and status
- the latest generated report

Only one run may be active at a time; a second start/resume/report while a
run is in flight raises RunInProgress.
"""

import logging
import threading
from datetime import datetime
from typing import List, Optional

from app.core.config import get_settings
from app.core.exceptions import CredentialMissing, InputInvalid, PlacementError, RunInProgress
from app.schemas.schemas import ProcessedRecord, RunStatus, RunStatusResponse, StudentRecord
from app.services.credential_pool import CredentialPool, mask_credential
from app.services.credential_store import CredentialStore
from app.services.inference_client import get_inference_client
from app.services.placement_service import BatchDispatcher
from app.services.report_service import ReportOrchestrator
from app.services.tracking import ProgressTracker, ResultAccumulator

logger = logging.getLogger(__name__)


class AnalysisSession:

    def __init__(
        self,
        inference=None,
        store: Optional[CredentialStore] = None,
        pool: Optional[CredentialPool] = None,
        batch_size: int = None,
        resume_cursor: bool = None
    ):
        settings = get_settings()
        self.inference = inference or get_inference_client()
        self.store = store
        if pool is None:
            keys = store.load_or_seed(settings.seed_api_keys) if store else settings.seed_api_keys
            pool = CredentialPool(keys)
        self.pool = pool
        self.batch_size = batch_size or settings.batch_size
        self.resume_cursor = settings.resume_cursor if resume_cursor is None else resume_cursor

        self.records: List[StudentRecord] = []
        self.filename: Optional[str] = None
        self.accumulator = ResultAccumulator()
        self.tracker = ProgressTracker()
        self.run_status = RunStatus.idle
        self.error: Optional[str] = None
        self.started_at: Optional[datetime] = None
        self.finished_at: Optional[datetime] = None
        self.report: Optional[str] = None
        self.report_generated_at: Optional[datetime] = None

        self._guard = threading.Lock()
        # "run" while the batch pipeline owns the session, "report" during a report
        self._activity: Optional[str] = None
        self._abort = threading.Event()

    # ------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------

    def set_credentials(self, keys: List[str]) -> List[str]:
        if self.store:
            keys = self.store.save(keys)
        else:
            keys = [k.strip() for k in keys if k and k.strip()]
        self.pool.replace(keys)
        return keys

    def add_credential(self, key: str) -> List[str]:
        return self.set_credentials(self.pool.credentials + [key])

    def remove_credential(self, index: int) -> List[str]:
        keys = self.pool.credentials
        if not 0 <= index < len(keys):
            raise IndexError(f"No credential at position {index}")
        del keys[index]
        return self.set_credentials(keys)

    def masked_credentials(self) -> List[str]:
        return [mask_credential(k) for k in self.pool.credentials]

    # ------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        """A batch run is in flight."""
        return self._activity == "run"

    @property
    def is_busy(self) -> bool:
        """A batch run or a report generation is in flight."""
        return self._activity is not None

    def _acquire(self, activity: str = "run") -> None:
        with self._guard:
            if self._activity is not None:
                raise RunInProgress()
            self._activity = activity

    def _release(self) -> None:
        with self._guard:
            self._activity = None

    def begin_run(self, records: List[StudentRecord], filename: str = None) -> None:
        """
        Claim the session for a new run and reset per-run state.
        Call execute_run() afterwards (possibly from a background task).
        """
        if not records:
            raise InputInvalid()
        if self.pool.current() is None:
            raise CredentialMissing()
        self._acquire()

        self.records = list(records)
        self.filename = filename
        self.accumulator = ResultAccumulator()
        self.tracker = ProgressTracker()
        self.tracker.reset(len(self.records))
        self.report = None
        self.report_generated_at = None
        self._start(start_index=0)

        if not self.resume_cursor:
            self.pool.reset()

    def begin_resume(self) -> int:
        """
        Claim the session to continue a stopped run (e.g. after adding keys).
        Keeps the accumulator and progress; returns the first record to process.
        """
        if self.pool.current() is None:
            raise CredentialMissing()
        self._acquire()
        start_index = len(self.accumulator)
        if not self.records or start_index >= len(self.records):
            self._release()
            raise InputInvalid("Nothing left to resume.")
        self._start(start_index)
        return start_index

    def _start(self, start_index: int) -> None:
        self._abort.clear()
        self.run_status = RunStatus.running
        self.error = None
        self.started_at = datetime.utcnow()
        self.finished_at = None
        logger.info(
            f"Run starting at record {start_index + 1}/{len(self.records)} "
            f"with {len(self.pool)} credential(s)"
        )

    def execute_run(self, start_index: int = 0) -> None:
        """Run the dispatcher; always releases the session."""
        dispatcher = BatchDispatcher(self.inference, self.pool, self.batch_size)
        try:
            result = dispatcher.run(
                self.records,
                self.accumulator,
                self.tracker,
                start_index=start_index,
                abort_event=self._abort
            )
            self.run_status = result.status
            self.error = result.error.detail if result.error else None
        except Exception as e:
            logger.exception("Analysis run crashed")
            self.run_status = RunStatus.failed
            self.error = str(e) or "An unknown error occurred."
        finally:
            self.finished_at = datetime.utcnow()
            self._release()
        logger.info(
            f"Run finished: {self.run_status.value}, "
            f"{len(self.accumulator)}/{len(self.records)} records processed"
        )

    def start_run(self, records: List[StudentRecord], filename: str = None) -> RunStatus:
        """Blocking run (scripts and tests)."""
        self.begin_run(records, filename)
        self.execute_run(0)
        return self.run_status

    def resume_run(self) -> RunStatus:
        start_index = self.begin_resume()
        self.execute_run(start_index)
        return self.run_status

    def abort(self) -> bool:
        """Ask the running dispatcher to stop before its next batch."""
        if not self.is_running:
            return False
        self._abort.set()
        return True

    # ------------------------------------------------------------
    # Results & reports
    # ------------------------------------------------------------

    def results(self) -> List[ProcessedRecord]:
        return self.accumulator.all()

    def status(self) -> RunStatusResponse:
        processed, progress = self.accumulator.snapshot(self.tracker)
        return RunStatusResponse(
            status=self.run_status,
            progress=progress,
            processed=processed,
            error=self.error,
            filename=self.filename,
            credential_index=self.pool.index,
            started_at=self.started_at,
            finished_at=self.finished_at,
        )

    def generate_report(self) -> str:
        """Single AI call with credential rotation; stores the markdown."""
        self._acquire("report")
        try:
            markdown = ReportOrchestrator(self.inference, self.pool).generate(self.results())
        except PlacementError as e:
            logger.error(f"Report generation failed: {e}")
            raise
        finally:
            self._release()
        self.report = markdown
        self.report_generated_at = datetime.utcnow()
        return markdown


# Singleton instance
_session: AnalysisSession = None


def get_session() -> AnalysisSession:
    """Get or create the application session (singleton pattern)"""
    global _session
    if _session is None:
        _session = AnalysisSession(store=CredentialStore())
    return _session
