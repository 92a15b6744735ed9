"""Row Schema Registry: declared columns, validators and defaults per import kind.

The registry is built once at import time and never mutated. Column
messages live here so they can be adjusted without touching the validator.
"""
from dataclasses import dataclass, field
from typing import Callable

from app.core.exceptions import UnknownImportKind
from app.rules import validators as v
from app.schemas.imports import FieldError, ImportKind

RowCheck = Callable[[dict[str, str]], list[FieldError]]


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    required: bool = False
    validate: v.Validator = v.passthrough
    default: str | None = None


@dataclass(frozen=True)
class ImportSchema:
    kind: ImportKind
    columns: tuple[ColumnSpec, ...]
    # Cross-column rules; each receives the normalized record and only runs
    # when every column it names validated cleanly.
    row_checks: tuple[tuple[tuple[str, ...], RowCheck], ...] = ()
    # Illustrative rows for the downloadable template, in column order.
    examples: tuple[tuple[str, ...], ...] = field(default=())

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    @property
    def required_columns(self) -> list[str]:
        return [c.name for c in self.columns if c.required]

    def column(self, name: str) -> ColumnSpec | None:
        """Case-insensitive lookup of a column by header name."""
        key = name.strip().lower()
        for col in self.columns:
            if col.name.lower() == key:
                return col
        return None


# ─── Cross-column checks ───

def _meeting_end_after_start(record: dict[str, str]) -> list[FieldError]:
    # ISO dates and zero-padded HH:MM compare correctly as strings.
    if record["endDate"] < record["startDate"]:
        return [FieldError(column="endDate", message="End date must be on or after start date")]
    if record["endDate"] == record["startDate"] and record["endTime"] <= record["startTime"]:
        return [FieldError(column="endTime", message="End time must be after start time")]
    return []


# ─── Schemas ───

ATTENDEES_SCHEMA = ImportSchema(
    kind=ImportKind.ATTENDEES,
    columns=(
        ColumnSpec("username", required=True, validate=v.length("Username", 3, 50)),
        ColumnSpec("email", required=True, validate=v.email),
        ColumnSpec("firstName", required=True, validate=v.length("First name", 1, 50)),
        ColumnSpec("lastName", required=True, validate=v.length("Last name", 1, 50)),
        ColumnSpec("phone", required=True, validate=v.phone),
        ColumnSpec("company", validate=v.length("Company", 0, 100)),
        ColumnSpec("department", validate=v.length("Department", 0, 100)),
        ColumnSpec("role", validate=v.length("Role", 0, 100)),
    ),
    examples=(
        ("john.doe@example.com", "john.doe@example.com", "John", "Doe",
         "+1234567890", "Acme Corp", "IT", "Developer"),
        ("jane.smith@example.com", "jane.smith@example.com", "Jane", "Smith",
         "+1234567891", "Tech Inc", "Marketing", "Manager"),
    ),
)

MEETINGS_SCHEMA = ImportSchema(
    kind=ImportKind.MEETINGS,
    columns=(
        ColumnSpec("title", required=True, validate=v.length("Title", 3, 100)),
        ColumnSpec("description", required=True, validate=v.length("Description", 10, 500)),
        ColumnSpec("startDate", required=True, validate=v.iso_date),
        ColumnSpec("endDate", required=True, validate=v.iso_date),
        ColumnSpec("startTime", required=True, validate=v.clock_time),
        ColumnSpec("endTime", required=True, validate=v.clock_time),
        ColumnSpec("location", required=True, validate=v.length("Location", 3, 100)),
        ColumnSpec("clientId", required=True),
        ColumnSpec("organizer", validate=v.length("Organizer", 0, 100)),
        ColumnSpec("otherAttendees"),
        ColumnSpec("status", validate=v.meeting_status, default=v.DEFAULT_MEETING_STATUS),
    ),
    row_checks=(
        (("startDate", "endDate", "startTime", "endTime"), _meeting_end_after_start),
    ),
    examples=(
        ("Team Meeting", "Weekly team standup", "2024-12-25", "2024-12-25", "09:00", "10:00",
         "Conference Room A", "client1", "John Doe", "External: Mike Smith", "scheduled"),
        ("Client Call", "Project discussion", "2024-12-26", "2024-12-26", "14:00", "15:30",
         "Online", "client2", "Jane Smith", "", "scheduled"),
    ),
)

_REGISTRY: dict[ImportKind, ImportSchema] = {
    ATTENDEES_SCHEMA.kind: ATTENDEES_SCHEMA,
    MEETINGS_SCHEMA.kind: MEETINGS_SCHEMA,
}


def get_schema(kind: ImportKind | str) -> ImportSchema:
    """Return the schema for *kind*; raises UnknownImportKind otherwise."""
    try:
        return _REGISTRY[ImportKind(kind)]
    except ValueError:
        raise UnknownImportKind(str(kind))


def import_kinds() -> list[str]:
    return [k.value for k in _REGISTRY]
