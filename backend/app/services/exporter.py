"""Template Generator / Exporter: renders import templates and record exports as text.

Excel output is the same comma-delimited text served with an .xlsx name,
and PDF output is a pipe-separated text rendering. Neither is a real
binary document.
"""
import csv
import io
import logging
from typing import Any, Iterable

from app.core.exceptions import InvalidDateRangeError
from app.rules.import_schemas import get_schema
from app.schemas.export import ExportFormat, ExportRequest
from app.schemas.imports import ImportKind

logger = logging.getLogger(__name__)

PDF_TITLE = "PDF Export"
PDF_SEPARATOR = " | "

FILE_EXTENSIONS = {
    ExportFormat.CSV: "csv",
    ExportFormat.EXCEL: "xlsx",
    ExportFormat.PDF: "pdf",
}

MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.EXCEL: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.PDF: "application/pdf",
}


# ─── Helpers ───

def _render_csv(rows: Iterable[list[str]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerows(rows)
    return buf.getvalue()


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "; ".join(_cell(v) for v in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def validate_date_range(request: ExportRequest) -> None:
    if request.start_date > request.end_date:
        raise InvalidDateRangeError(
            "Start date must be before or equal to end date",
            {"start_date": request.start_date.isoformat(), "end_date": request.end_date.isoformat()},
        )


# ─── Templates ───

def generate_template(kind: ImportKind | str) -> str:
    """Header row plus the schema's example rows; identical on every call."""
    schema = get_schema(kind)
    return _render_csv([schema.column_names, *[list(row) for row in schema.examples]])


def template_filename(kind: ImportKind | str) -> str:
    return f"{get_schema(kind).kind.value}_template.csv"


# ─── Exports ───

def export_records(
    request: ExportRequest,
    records: Iterable[dict[str, Any]],
    kind: ImportKind | str = ImportKind.MEETINGS,
) -> str:
    """Render *records* in the column order of *kind*'s import schema."""
    validate_date_range(request)
    columns = get_schema(kind).column_names
    rows = [columns] + [[_cell(record.get(col)) for col in columns] for record in records]

    if request.format == ExportFormat.PDF:
        # commas inside values are flattened to separators as well
        lines = [PDF_SEPARATOR.join(cell.replace(",", PDF_SEPARATOR) for cell in row) for row in rows]
        return f"{PDF_TITLE}\n\n" + "\n".join(lines) + "\n"
    return _render_csv(rows)


def export_filename(request: ExportRequest, entity: str = "schedules") -> str:
    ext = FILE_EXTENSIONS[request.format]
    return f"{entity}_export_{request.start_date.isoformat()}_to_{request.end_date.isoformat()}.{ext}"


def export_media_type(fmt: ExportFormat) -> str:
    return MEDIA_TYPES[fmt]


async def export_schedules(request: ExportRequest, client) -> str:
    """Validate the range, fetch matching schedules, and render them.

    The scheduling API is not contacted when the range is invalid.
    """
    validate_date_range(request)
    records = await client.fetch_schedules(request)
    logger.info(
        "Exporting %d schedules %s..%s as %s",
        len(records),
        request.start_date,
        request.end_date,
        request.format.value,
    )
    return export_records(request, records, ImportKind.MEETINGS)
