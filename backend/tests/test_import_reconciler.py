"""Tests for the import reconciler: aggregate counts, fatal errors, progress and cancellation."""
import io
from unittest.mock import patch

import pytest

from app.core.exceptions import InvalidFileError, UnknownImportKind
from app.services import row_validator
from app.services.exporter import generate_template
from app.services.import_reconciler import check_file_type, process_file
from app.services.progress import ProgressReporter

ATTENDEE_HEADER = "username,email,firstName,lastName,phone,company,department,role"
MEETING_HEADER = "title,description,startDate,endDate,startTime,endTime,location,clientId,organizer,otherAttendees,status"


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _csv(header: str, *rows: str) -> bytes:
    return ("\n".join([header, *rows]) + "\n").encode()


def _attendees(n: int) -> bytes:
    rows = [f"user{i},user{i}@example.com,First{i},Last{i},+1555000{i:04d},Acme,IT,Dev" for i in range(n)]
    return _csv(ATTENDEE_HEADER, *rows)


class CancelAfter(ProgressReporter):
    """Reporter that requests cancellation once a given row count is reported."""

    def __init__(self, rows: int):
        super().__init__()
        self.rows = rows

    def report(self, fraction, rows_processed=None):
        super().report(fraction, rows_processed)
        if rows_processed is not None and rows_processed >= self.rows:
            self.cancel()


# ─── Aggregate counts ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_all_valid_rows_are_accepted():
    result = await process_file(_attendees(3), "attendees")
    assert result.counts() == {"success": 3, "errors": 0, "total": 3}
    assert result.complete is True
    assert [a.row for a in result.accepted] == [1, 2, 3]


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", ["attendees", "meetings"])
async def test_template_round_trips(kind):
    result = await process_file(generate_template(kind).encode(), kind)
    assert result.counts() == {"success": 2, "errors": 0, "total": 2}


@pytest.mark.asyncio
async def test_header_only_file():
    result = await process_file(_csv(ATTENDEE_HEADER), "attendees")
    assert result.counts() == {"success": 0, "errors": 0, "total": 0}


@pytest.mark.asyncio
async def test_blank_required_column_names_that_column():
    data = _csv(
        MEETING_HEADER,
        "Team Meeting,Weekly team standup,2024-12-25,2024-12-25,09:00,10:00,Room A,client1,John,,",
        "Client Call,Project discussion,2024-12-26,2024-12-26,14:00,15:30,Online,,Jane,,",
    )
    result = await process_file(data, "meetings")
    assert result.counts() == {"success": 1, "errors": 1, "total": 2}
    rejected = result.rejected[0]
    assert rejected.row == 2
    assert [(e.column, e.message) for e in rejected.errors] == [("clientId", "clientId is required")]


@pytest.mark.asyncio
async def test_short_row_is_a_column_count_mismatch():
    data = _csv(ATTENDEE_HEADER, "bad-email,John,Doe,123,Corp,IT,Dev")
    result = await process_file(data, "attendees")
    assert result.counts() == {"success": 0, "errors": 1, "total": 1}
    assert result.rejected[0].errors[0].message == "column count mismatch"


@pytest.mark.asyncio
async def test_blank_lines_do_not_count_toward_total():
    rows = _attendees(2).decode().splitlines()
    data = "\n\n".join(rows).encode() + b"\n\n"
    result = await process_file(data, "attendees")
    assert result.total == 2


@pytest.mark.asyncio
async def test_quoted_values_with_commas():
    data = _csv(
        MEETING_HEADER,
        '"Sync, weekly","Planning, budget and roadmap",2024-12-25,2024-12-25,09:00,10:00,"Room 1, HQ",c1,,"A; B",',
    )
    result = await process_file(data, "meetings")
    assert result.success == 1
    record = result.accepted[0].record
    assert record["title"] == "Sync, weekly"
    assert record["location"] == "Room 1, HQ"


@pytest.mark.asyncio
async def test_processing_is_idempotent():
    data = _csv(
        ATTENDEE_HEADER,
        "jdoe,jdoe@example.com,John,Doe,1234567890,,,",
        ",bad-email,John,Doe,123,,,",
    )
    first = await process_file(data, "attendees")
    second = await process_file(data, "attendees")
    assert first.model_dump() == second.model_dump()


@pytest.mark.asyncio
async def test_unknown_columns_are_reported_as_warnings():
    data = _csv(ATTENDEE_HEADER + ",notes", "jdoe,jdoe@example.com,John,Doe,1234567890,,,,vip")
    result = await process_file(data, "attendees")
    assert result.success == 1
    assert result.warnings == ["Ignored unknown columns: notes"]


# ─── Fatal errors ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_unknown_kind_is_fatal():
    with pytest.raises(UnknownImportKind):
        await process_file(_attendees(1), "invoices")


@pytest.mark.asyncio
async def test_missing_required_columns_is_fatal():
    with pytest.raises(InvalidFileError) as exc_info:
        await process_file(_csv("username,email", "a,b"), "attendees")
    assert exc_info.value.details["missing"] == ["firstName", "lastName", "phone"]


@pytest.mark.asyncio
async def test_wrong_file_type_is_fatal():
    with pytest.raises(InvalidFileError, match="CSV"):
        await process_file(
            _attendees(1),
            "attendees",
            filename="people.xlsx",
            content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )


@pytest.mark.parametrize("filename,content_type", [
    ("people.csv", "application/octet-stream"),
    ("PEOPLE.CSV", None),
    ("upload", "text/csv; charset=utf-8"),
])
def test_csv_extension_or_mime_is_enough(filename, content_type):
    check_file_type(filename, content_type)


@pytest.mark.asyncio
async def test_caller_stream_survives_processing():
    stream = io.BytesIO(_attendees(2))
    result = await process_file(stream, "attendees")
    assert result.total == 2
    assert not stream.closed


# ─── Progress and cancellation ────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_progress_reaches_one_on_completion():
    progress = ProgressReporter()
    result = await process_file(_attendees(5), "attendees", progress=progress, batch_size=2)
    snap = progress.snapshot()
    assert snap.fraction == 1.0
    assert snap.rows_processed == result.total == 5


@pytest.mark.asyncio
async def test_cancel_mid_run_returns_partial_counts():
    progress = CancelAfter(3)
    with patch(
        "app.services.import_reconciler.validate_row",
        wraps=row_validator.validate_row,
    ) as spy:
        result = await process_file(_attendees(10), "attendees", progress=progress, batch_size=1)

    assert result.complete is False
    assert result.counts() == {"success": 3, "errors": 0, "total": 3}
    assert spy.call_count == 3
    assert progress.snapshot().rows_processed == 3


@pytest.mark.asyncio
async def test_cancel_before_start_validates_nothing():
    progress = ProgressReporter()
    progress.cancel()
    result = await process_file(_attendees(4), "attendees", progress=progress)
    assert result.complete is False
    assert result.total == 0
