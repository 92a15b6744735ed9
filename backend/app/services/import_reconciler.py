"""Import Reconciler: tokenizes a CSV file, validates every row, and tallies the outcome.

Row problems are collected on the result and never abort the run. Only
file-level failures (wrong type, unreadable, missing required columns)
raise, and then no partial result is returned. Accepted records are handed
back to the caller; nothing is written from here.
"""
import asyncio
import logging
import time

from app.core.config import settings
from app.core.exceptions import InvalidFileError
from app.rules.import_schemas import ImportSchema, get_schema
from app.schemas.imports import ImportKind, ImportResult
from app.services.csv_tokenizer import CSVSource, tokenize
from app.services.progress import ProgressReporter
from app.services.row_validator import map_header, unknown_columns, validate_row

logger = logging.getLogger(__name__)

CSV_CONTENT_TYPES = {"text/csv", "application/csv", "text/comma-separated-values"}


def check_file_type(filename: str | None, content_type: str | None) -> None:
    """Accept a CSV MIME type or a .csv extension; either one is enough."""
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime in CSV_CONTENT_TYPES:
        return
    if filename and filename.lower().endswith(".csv"):
        return
    raise InvalidFileError(
        "Please select a CSV file",
        {"filename": filename, "content_type": content_type},
    )


def missing_required_columns(schema: ImportSchema, header: list[str]) -> list[str]:
    present = map_header(schema, header)
    return [name for name in schema.required_columns if name not in present]


async def process_file(
    source: CSVSource,
    kind: ImportKind | str,
    *,
    progress: ProgressReporter | None = None,
    filename: str | None = None,
    content_type: str | None = None,
    batch_size: int | None = None,
) -> ImportResult:
    """Reconcile one CSV file against the schema for *kind*.

    Args:
        source: raw bytes, a binary file object, or a path.
        kind: import kind; UnknownImportKind if not registered.
        progress: optional reporter; receives the fraction of bytes read
            every ``batch_size`` rows and is polled for cancellation between
            rows. A cancelled run returns the counts so far with
            ``complete=False``.
        filename / content_type: when given, used to reject non-CSV uploads.
        batch_size: rows between progress reports (defaults to settings).
    """
    schema = get_schema(kind)
    if filename is not None or content_type is not None:
        check_file_type(filename, content_type)
    batch_size = max(1, batch_size or settings.IMPORT_PROGRESS_BATCH_SIZE)

    started = time.monotonic()
    result = ImportResult(kind=schema.kind)

    with tokenize(source) as parsed:
        missing = missing_required_columns(schema, parsed.header)
        if missing:
            raise InvalidFileError(
                f"Missing required columns: {', '.join(missing)}",
                {"missing": missing},
            )
        ignored = unknown_columns(schema, parsed.header)
        if ignored:
            result.warnings.append(f"Ignored unknown columns: {', '.join(ignored)}")

        positions = map_header(schema, parsed.header)
        rows = parsed.rows
        while True:
            if progress is not None and progress.is_cancelled():
                result.complete = False
                break
            raw_row = next(rows, None)
            if raw_row is None:
                break

            result.add(validate_row(schema, parsed.header, raw_row, positions))

            if result.total % batch_size == 0:
                if progress is not None:
                    fraction = parsed.fraction_read()
                    progress.report(progress.fraction if fraction is None else fraction, result.total)
                await asyncio.sleep(0)

    if progress is not None:
        if result.complete:
            progress.report(1.0, result.total)
        else:
            progress.report(progress.fraction, result.total)

    logger.info(
        "Import %s %s: success=%d errors=%d total=%d (%.0f ms)",
        schema.kind.value,
        "completed" if result.complete else "cancelled",
        result.success,
        result.errors,
        result.total,
        (time.monotonic() - started) * 1000,
    )
    return result
