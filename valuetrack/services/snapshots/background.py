# valuetrack/services/snapshots/background.py
"""
Background portfolio snapshot rebuilds.

A single daemon thread consumes a queue of job ids. Jobs carry only plain
values (start day, optional end day, correlation id); the worker opens its
own session for each job and re-resolves accounts there, so no ORM object
ever crosses a thread boundary.

Behavior:
    - Submitting while a job is still pending merges into it (the earlier
      start day wins) instead of queueing a second rebuild.
    - Cancelling a pending job drops it; cancelling a running job stops it
      between whole days, keeping every day already written.
    - Finished jobs are kept (bounded) for status queries.

Usage:
    worker = RecalculationWorker(SnapshotMaintainer())
    job_id = worker.submit(date(2024, 1, 1))
    job = worker.wait(job_id, timeout=30)
"""

from __future__ import annotations

import logging
import queue
import threading
import uuid
from collections import OrderedDict
from collections.abc import Callable
from datetime import date, datetime

from sqlalchemy.orm import Session

from valuetrack.database import SessionLocal, session_scope
from valuetrack.services.constants import MAX_FINISHED_JOBS, WORKER_POLL_INTERVAL_SECONDS
from valuetrack.services.exceptions import JobNotFoundError
from valuetrack.services.snapshots.maintainer import SnapshotMaintainer
from valuetrack.services.snapshots.types import JobStatus, RecalculationJob
from valuetrack.utils.context import correlation_scope, get_correlation_id

logger = logging.getLogger(__name__)

_STOP = object()


class RecalculationWorker:
    """
    Runs portfolio snapshot rebuilds off the request path.

    Attributes:
        _maintainer: Performs the actual rebuild
        _session_factory: Opens a fresh session per job
        _jobs: Job registry, oldest first
    """

    def __init__(
            self,
            maintainer: SnapshotMaintainer,
            session_factory: Callable[[], Session] | None = None,
            max_finished_jobs: int = MAX_FINISHED_JOBS,
    ) -> None:
        self._maintainer = maintainer
        self._session_factory = session_factory or SessionLocal
        self._max_finished_jobs = max_finished_jobs
        self._queue: queue.Queue = queue.Queue()
        self._jobs: OrderedDict[str, RecalculationJob] = OrderedDict()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

        logger.info("RecalculationWorker initialized")

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread (no-op if already running)."""
        with self._lock:
            if self.is_running:
                return
            self._thread = threading.Thread(
                target=self._run,
                name="snapshot-recalculation",
                daemon=True,
            )
            self._thread.start()
        logger.info("Recalculation worker started")

    def stop(self, timeout: float = 5.0) -> None:
        """Cancel the running job, drain pending ones and stop the thread."""
        with self._lock:
            for job in self._jobs.values():
                if job.status is JobStatus.RUNNING:
                    job.cancel_event.set()
                elif job.status is JobStatus.PENDING:
                    self._finish(job, JobStatus.CANCELLED)
            thread = self._thread

        if thread is not None and thread.is_alive():
            self._queue.put(_STOP)
            thread.join(timeout)
        self._thread = None
        logger.info("Recalculation worker stopped")

    # =========================================================================
    # JOBS
    # =========================================================================

    def submit(self, from_day: date, until_day: date | None = None) -> str:
        """
        Queue a rebuild of portfolio snapshots from from_day.

        Returns:
            The job id (an existing pending job's id when merged)
        """
        with self._lock:
            for job in self._jobs.values():
                if job.status is JobStatus.PENDING and job.until_day == until_day:
                    if from_day < job.from_day:
                        job.from_day = from_day
                    logger.debug(f"Merged rebuild from {from_day} into pending job {job.job_id}")
                    return job.job_id

            job = RecalculationJob(
                job_id=uuid.uuid4().hex,
                from_day=from_day,
                until_day=until_day,
                submitted_at=datetime.now(),
                correlation_id=get_correlation_id(),
            )
            self._jobs[job.job_id] = job
            self._prune()

        self._queue.put(job.job_id)
        self.start()
        logger.info(f"Queued portfolio rebuild {job.job_id} from {from_day}")
        return job.job_id

    def get_job(self, job_id: str) -> RecalculationJob:
        """
        Raises:
            JobNotFoundError: If the id is unknown (or already pruned)
        """
        with self._lock:
            job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def cancel(self, job_id: str) -> RecalculationJob:
        """
        Cancel a job.

        Pending jobs are dropped immediately. Running jobs stop after the
        day currently being written. Finished jobs are returned unchanged.
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            if job.status is JobStatus.PENDING:
                self._finish(job, JobStatus.CANCELLED)
            elif job.status is JobStatus.RUNNING:
                job.cancel_event.set()
        logger.info(f"Cancellation requested for job {job_id} ({job.status.value})")
        return job

    def wait(self, job_id: str, timeout: float | None = None) -> RecalculationJob:
        """Block until the job finishes or the timeout elapses."""
        job = self.get_job(job_id)
        job.done_event.wait(timeout)
        return job

    # =========================================================================
    # WORKER LOOP
    # =========================================================================

    def _run(self) -> None:
        while True:
            try:
                item = self._queue.get(timeout=WORKER_POLL_INTERVAL_SECONDS)
            except queue.Empty:
                continue
            if item is _STOP:
                break
            self._process(item)

    def _process(self, job_id: str) -> None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.status is not JobStatus.PENDING:
                return
            job.status = JobStatus.RUNNING
            job.started_at = datetime.now()
            from_day, until_day = job.from_day, job.until_day

        with correlation_scope(job.correlation_id):
            try:
                with session_scope(self._session_factory) as db:
                    result = self._maintainer.recalculate_portfolio_snapshots(
                        db,
                        from_day,
                        today=until_day,
                        cancel_event=job.cancel_event,
                    )
            except Exception as e:
                logger.exception(f"Portfolio rebuild {job_id} failed: {e}")
                with self._lock:
                    job.error = str(e)
                    self._finish(job, JobStatus.FAILED)
                return

            with self._lock:
                job.result = result
                if result.error is not None:
                    job.error = result.error
                    self._finish(job, JobStatus.FAILED)
                elif result.cancelled:
                    self._finish(job, JobStatus.CANCELLED)
                else:
                    self._finish(job, JobStatus.COMPLETED)
            logger.info(f"Portfolio rebuild {job_id} finished: {job.status.value}")

    def _finish(self, job: RecalculationJob, status: JobStatus) -> None:
        job.status = status
        job.finished_at = datetime.now()
        job.done_event.set()

    def _prune(self) -> None:
        finished = [j.job_id for j in self._jobs.values() if j.status.is_finished]
        for job_id in finished[:max(len(finished) - self._max_finished_jobs, 0)]:
            del self._jobs[job_id]
