"""Schedule export endpoints."""
import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from app.schemas.export import ExportFormat, ExportRequest
from app.services.exporter import export_filename, export_media_type, export_schedules
from app.services.scheduling_api import SchedulingApiClient, get_scheduling_client

logger = logging.getLogger(__name__)

router = APIRouter()


# ─── GET /export/schedules ───

@router.get("/schedules", summary="Download schedules in a date range as CSV, Excel or PDF text")
async def export_schedules_file(
    client: Annotated[SchedulingApiClient, Depends(get_scheduling_client)],
    start_date: date = Query(..., description="First day (inclusive), YYYY-MM-DD"),
    end_date: date = Query(..., description="Last day (inclusive), YYYY-MM-DD"),
    format: ExportFormat = Query(ExportFormat.CSV),
):
    export_request = ExportRequest(start_date=start_date, end_date=end_date, format=format)
    content = await export_schedules(export_request, client)
    filename = export_filename(export_request)
    return Response(
        content=content,
        media_type=export_media_type(format),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
