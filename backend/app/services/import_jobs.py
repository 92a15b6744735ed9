"""Background import jobs: one asyncio task and one ProgressReporter per upload.

Each job is an explicit session object, so concurrent imports never share
state. Finished jobs are kept for polling up to IMPORT_MAX_JOBS; the
oldest finished job is evicted first.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass, field

from app.core.config import settings
from app.core.exceptions import ImportExportError, ImportJobNotFound
from app.schemas.imports import ImportJobState, ImportJobStatus, ImportKind, ImportResult
from app.services.import_reconciler import process_file
from app.services.progress import ProgressReporter

logger = logging.getLogger(__name__)


@dataclass
class ImportJob:
    job_id: str
    kind: ImportKind
    filename: str | None
    progress: ProgressReporter = field(default_factory=ProgressReporter)
    task: asyncio.Task | None = None
    result: ImportResult | None = None
    error: dict | None = None

    @property
    def state(self) -> ImportJobState:
        if self.error is not None:
            return ImportJobState.FAILED
        if self.result is None:
            return ImportJobState.RUNNING
        if not self.result.complete:
            return ImportJobState.CANCELLED
        return ImportJobState.COMPLETED

    @property
    def finished(self) -> bool:
        return self.state != ImportJobState.RUNNING

    def status(self) -> ImportJobStatus:
        snap = self.progress.snapshot()
        return ImportJobStatus(
            job_id=self.job_id,
            kind=self.kind,
            filename=self.filename,
            state=self.state,
            progress=snap.fraction,
            rows_processed=snap.rows_processed,
            result=self.result,
            error=self.error,
        )


class ImportJobRegistry:
    def __init__(self, max_jobs: int | None = None):
        self.max_jobs = max_jobs or settings.IMPORT_MAX_JOBS
        self._jobs: dict[str, ImportJob] = {}

    def start(
        self,
        content: bytes,
        kind: ImportKind | str,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> ImportJob:
        """Schedule *content* for reconciliation and return the job immediately."""
        job = ImportJob(job_id=uuid.uuid4().hex, kind=ImportKind(kind), filename=filename)
        job.task = asyncio.create_task(self._run(job, content, content_type))
        self._jobs[job.job_id] = job
        self._evict()
        logger.info("Started import job %s (%s, %s)", job.job_id, job.kind.value, filename)
        return job

    async def _run(self, job: ImportJob, content: bytes, content_type: str | None) -> None:
        try:
            job.result = await process_file(
                content,
                job.kind,
                progress=job.progress,
                filename=job.filename,
                content_type=content_type,
            )
        except ImportExportError as exc:
            logger.warning("Import job %s failed: %s", job.job_id, exc.message)
            job.error = exc.to_dict()
        except Exception as exc:
            logger.error("Import job %s crashed: %s", job.job_id, exc, exc_info=True)
            job.error = {"error_code": "INTERNAL_ERROR", "message": "Import failed unexpectedly.", "details": {}}

    def get(self, job_id: str) -> ImportJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise ImportJobNotFound(job_id)
        return job

    def cancel(self, job_id: str) -> ImportJob:
        """Flag the job; the reconciler stops before its next row."""
        job = self.get(job_id)
        if not job.finished:
            job.progress.cancel()
            logger.info("Cancellation requested for import job %s", job_id)
        return job

    def cancel_all(self) -> None:
        for job_id in list(self._jobs):
            self.cancel(job_id)

    async def shutdown(self) -> None:
        """Cancel every running job and wait for its task to stop."""
        self.cancel_all()
        running = [j.task for j in self._jobs.values() if j.task is not None and not j.task.done()]
        if running:
            logger.info("Waiting for %d import job(s) to stop", len(running))
            await asyncio.gather(*running)

    async def wait(self, job_id: str) -> ImportJob:
        job = self.get(job_id)
        if job.task is not None:
            await job.task
        return job

    def _evict(self) -> None:
        overflow = len(self._jobs) - self.max_jobs
        if overflow <= 0:
            return
        # dicts keep insertion order, so this walks oldest first
        for job_id in [jid for jid, j in self._jobs.items() if j.finished][:overflow]:
            del self._jobs[job_id]


import_jobs = ImportJobRegistry()


def get_import_jobs() -> ImportJobRegistry:
    return import_jobs
