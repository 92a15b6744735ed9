"""CSV bulk import endpoints for attendees and meetings."""
import logging
from typing import Annotated, Callable

from fastapi import APIRouter, Depends, File, Query, Request, Response, UploadFile, status

from app.core.config import settings
from app.core.exceptions import InvalidFileError
from app.core.limiter import limiter
from app.rules.import_schemas import get_schema
from app.schemas.imports import ImportJobCreated, ImportJobStatus, ImportResponse
from app.services.exporter import generate_template, template_filename
from app.services.import_jobs import ImportJobRegistry, get_import_jobs
from app.services.import_reconciler import check_file_type, process_file
from app.services.scheduling_api import SchedulingApiClient, get_scheduling_client_factory

logger = logging.getLogger(__name__)

router = APIRouter()


# ─── Helpers ───

def _check_size(file: UploadFile) -> None:
    if file.size is not None and file.size > settings.IMPORT_MAX_FILE_BYTES:
        raise InvalidFileError(
            f"File exceeds the {settings.IMPORT_MAX_FILE_BYTES} byte upload limit",
            {"size": file.size},
        )


async def _read_upload(file: UploadFile) -> bytes:
    _check_size(file)
    content = await file.read(settings.IMPORT_MAX_FILE_BYTES + 1)
    if len(content) > settings.IMPORT_MAX_FILE_BYTES:
        raise InvalidFileError(f"File exceeds the {settings.IMPORT_MAX_FILE_BYTES} byte upload limit")
    return content


# ─── GET /import/templates/{kind} ───

@router.get("/templates/{kind}", summary="Download the CSV template for an import kind")
async def download_template(kind: str):
    content = generate_template(kind)
    filename = template_filename(kind)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ─── POST /import/{kind} ───

@router.post("/{kind}", response_model=ImportResponse, summary="Validate a CSV file and report per-row results")
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def import_csv(
    request: Request,
    kind: str,
    make_client: Annotated[Callable[[], SchedulingApiClient], Depends(get_scheduling_client_factory)],
    file: UploadFile = File(...),
    submit: bool = Query(False, description="Forward accepted rows to the scheduling API"),
):
    schema = get_schema(kind)
    check_file_type(file.filename, file.content_type)
    content = await _read_upload(file)

    result = await process_file(content, schema.kind)

    submission = None
    if submit and result.accepted:
        async with make_client() as client:
            submission = await client.bulk_create(schema.kind, result.accepted)

    return ImportResponse(**result.model_dump(), submission=submission)


# ─── Background jobs ───

@router.post(
    "/{kind}/jobs",
    response_model=ImportJobCreated,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a cancellable background import",
)
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def start_import_job(
    request: Request,
    kind: str,
    jobs: Annotated[ImportJobRegistry, Depends(get_import_jobs)],
    file: UploadFile = File(...),
):
    schema = get_schema(kind)
    check_file_type(file.filename, file.content_type)
    content = await _read_upload(file)

    job = jobs.start(content, schema.kind, filename=file.filename, content_type=file.content_type)
    return ImportJobCreated(job_id=job.job_id, kind=job.kind, state=job.state)


@router.get("/jobs/{job_id}", response_model=ImportJobStatus, summary="Poll an import job")
async def get_import_job(
    job_id: str,
    jobs: Annotated[ImportJobRegistry, Depends(get_import_jobs)],
):
    return jobs.get(job_id).status()


@router.delete("/jobs/{job_id}", response_model=ImportJobStatus, summary="Cancel an import job")
async def cancel_import_job(
    job_id: str,
    jobs: Annotated[ImportJobRegistry, Depends(get_import_jobs)],
):
    return jobs.cancel(job_id).status()
