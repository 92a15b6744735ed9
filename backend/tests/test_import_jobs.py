"""Tests for the progress reporter and background import job sessions."""
import pytest

from app.core.exceptions import ImportJobNotFound
from app.schemas.imports import ImportJobState
from app.services.exporter import generate_template
from app.services.import_jobs import ImportJobRegistry
from app.services.progress import ProgressReporter


def _attendees(n: int) -> bytes:
    header = "username,email,firstName,lastName,phone,company,department,role"
    rows = [f"user{i},user{i}@example.com,F,L,+1555{i:07d},,," for i in range(n)]
    return ("\n".join([header, *rows]) + "\n").encode()


# ─── ProgressReporter ─────────────────────────────────────────────────────────

def test_progress_keeps_latest_value_only():
    progress = ProgressReporter()
    progress.report(0.2, 10)
    progress.report(0.5, 25)
    snap = progress.snapshot()
    assert (snap.fraction, snap.rows_processed, snap.cancelled) == (0.5, 25, False)


def test_progress_is_clamped():
    progress = ProgressReporter()
    progress.report(1.7)
    assert progress.fraction == 1.0
    progress.report(-0.3)
    assert progress.fraction == 0.0


def test_cancel_flag():
    progress = ProgressReporter()
    assert not progress.is_cancelled()
    progress.cancel()
    assert progress.is_cancelled()
    assert progress.snapshot().cancelled


# ─── ImportJobRegistry ────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_job_completes_with_result():
    registry = ImportJobRegistry()
    job = registry.start(generate_template("meetings").encode(), "meetings", filename="meetings.csv")
    assert job.state == ImportJobState.RUNNING

    await registry.wait(job.job_id)
    status = registry.get(job.job_id).status()
    assert status.state == ImportJobState.COMPLETED
    assert status.progress == 1.0
    assert status.rows_processed == 2
    assert status.result.success == 2


@pytest.mark.asyncio
async def test_fatal_error_marks_job_failed():
    registry = ImportJobRegistry()
    job = registry.start(b"", "attendees", filename="empty.csv")
    await registry.wait(job.job_id)
    status = job.status()
    assert status.state == ImportJobState.FAILED
    assert status.error["error_code"] == "INVALID_FILE"
    assert status.result is None


@pytest.mark.asyncio
async def test_cancel_before_first_row():
    registry = ImportJobRegistry()
    job = registry.start(_attendees(500), "attendees", filename="big.csv")
    registry.cancel(job.job_id)
    await registry.wait(job.job_id)
    status = job.status()
    assert status.state == ImportJobState.CANCELLED
    assert status.result.complete is False
    assert status.result.total == 0


@pytest.mark.asyncio
async def test_cancelling_finished_job_is_a_no_op():
    registry = ImportJobRegistry()
    job = registry.start(_attendees(1), "attendees", filename="one.csv")
    await registry.wait(job.job_id)
    assert registry.cancel(job.job_id).state == ImportJobState.COMPLETED


def test_unknown_job_id():
    with pytest.raises(ImportJobNotFound):
        ImportJobRegistry().get("missing")


@pytest.mark.asyncio
async def test_oldest_finished_jobs_are_evicted():
    registry = ImportJobRegistry(max_jobs=2)
    first = registry.start(_attendees(1), "attendees", filename="1.csv")
    await registry.wait(first.job_id)
    second = registry.start(_attendees(1), "attendees", filename="2.csv")
    await registry.wait(second.job_id)
    third = registry.start(_attendees(1), "attendees", filename="3.csv")

    with pytest.raises(ImportJobNotFound):
        registry.get(first.job_id)
    assert registry.get(second.job_id) is second
    assert registry.get(third.job_id) is third
    await registry.wait(third.job_id)


@pytest.mark.asyncio
async def test_shutdown_waits_for_running_jobs():
    registry = ImportJobRegistry()
    running = registry.start(_attendees(500), "attendees", filename="big.csv")
    done = registry.start(_attendees(1), "attendees", filename="one.csv")
    await registry.wait(done.job_id)

    await registry.shutdown()

    assert running.task.done()
    assert running.state == ImportJobState.CANCELLED
    assert done.state == ImportJobState.COMPLETED
